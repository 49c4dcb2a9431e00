"""
Transcript and recall history for the console.

The transcript is the visible log of inputs and outputs. Entries are rich
markup strings; plain-text outputs are escaped and auto-linkified before
they are stored. The recall history is the separate list of submitted lines
browsed with the arrow keys.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Iterator, List, Optional

from rich.errors import MarkupError
from rich.markup import escape
from rich.text import Text

DEFAULT_RECALL_LIMIT = 50


class EntryKind(str, Enum):
    """Kinds of transcript entries."""

    command = "command"
    error = "error"
    info = "info"


@dataclass(frozen=True)
class TranscriptEntry:
    output: str
    kind: EntryKind = EntryKind.command
    input: str = ""
    timestamp: datetime = field(default_factory=datetime.now)


_MARKUP_RE = re.compile(
    r"\\\[|\[/?(?:link|bold|b|italic|i|dim|underline|u|strike|s|reverse|"
    r"red|green|yellow|blue|magenta|cyan|white|black|bright_\w+)\b[^\]]*\]"
)

_LINK_RE = re.compile(
    r"(?P<url>https?://[^\s<>\[\]]+[^\s<>\[\].,;:!?)'\"])"
    r"|(?P<www>\bwww\.[^\s<>\[\]]+[^\s<>\[\].,;:!?)'\"])"
    r"|(?P<email>\b[\w.+-]+@[\w-]+(?:\.[\w-]+)*\.[A-Za-z]{2,})"
)


def has_markup(text: str) -> bool:
    """True if the text already carries known rich markup tags or escapes."""
    return bool(_MARKUP_RE.search(text))


def is_valid_markup(text: str) -> bool:
    try:
        Text.from_markup(text)
    except MarkupError:
        return False
    return True


def linkify(text: str) -> str:
    """Escape plain text and wrap URLs, www domains and emails as rich links.

    All three pattern classes are matched in one pass, so a span is wrapped
    at most once.
    """
    parts: List[str] = []
    pos = 0
    for match in _LINK_RE.finditer(text):
        parts.append(escape(text[pos : match.start()]))
        found = match.group(0)
        if match.group("url"):
            target = found
        elif match.group("www"):
            target = f"https://{found}"
        else:
            target = f"mailto:{found}"
        parts.append(f"[link={target}]{escape(found)}[/link]")
        pos = match.end()
    parts.append(escape(text[pos:]))
    return "".join(parts)


class Transcript:
    """Append-only log of console entries with change listeners."""

    def __init__(self) -> None:
        self._entries: List[TranscriptEntry] = []
        self._append_listeners: List[Callable[[TranscriptEntry], None]] = []
        self._clear_listeners: List[Callable[[], None]] = []

    def add(
        self,
        output: str,
        kind: EntryKind = EntryKind.command,
        input: str = "",
    ) -> TranscriptEntry:
        """Append one entry.

        Outputs carrying well-formed markup are kept as-is; everything else,
        including unbalanced tags typed by the user, is escaped and linkified.
        """
        if has_markup(output) and is_valid_markup(output):
            rendered = output
        else:
            rendered = linkify(output)
        entry = TranscriptEntry(output=rendered, kind=kind, input=input)
        self._entries.append(entry)
        for listener in list(self._append_listeners):
            listener(entry)
        return entry

    def clear(self) -> None:
        self._entries.clear()
        for listener in list(self._clear_listeners):
            listener()

    def on_append(self, listener: Callable[[TranscriptEntry], None]) -> None:
        self._append_listeners.append(listener)

    def on_clear(self, listener: Callable[[], None]) -> None:
        self._clear_listeners.append(listener)

    @property
    def entries(self) -> List[TranscriptEntry]:
        return list(self._entries)

    def __iter__(self) -> Iterator[TranscriptEntry]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)


class RecallHistory:
    """Previously submitted lines, navigable with a cursor.

    Only adjacent duplicates are suppressed. The cursor is ``None`` when the
    user is not browsing.
    """

    def __init__(self, limit: int = DEFAULT_RECALL_LIMIT) -> None:
        self.limit = limit
        self._lines: List[str] = []
        self.cursor: Optional[int] = None

    def record(self, line: str) -> None:
        if not self._lines or self._lines[-1] != line:
            self._lines.append(line)
            del self._lines[: -self.limit]
        self.cursor = None

    def previous(self) -> Optional[str]:
        """Step toward older lines; returns the line to show, or None if empty."""
        if not self._lines:
            return None
        if self.cursor is None:
            self.cursor = len(self._lines) - 1
        else:
            self.cursor = max(0, self.cursor - 1)
        return self._lines[self.cursor]

    def next(self) -> Optional[str]:
        """Step toward newer lines.

        Returns the line to show, ``""`` when stepping past the newest line
        (input is cleared and the cursor reset), or None if not browsing.
        """
        if self.cursor is None:
            return None
        if self.cursor < len(self._lines) - 1:
            self.cursor += 1
            return self._lines[self.cursor]
        self.cursor = None
        return ""

    def reset_cursor(self) -> None:
        self.cursor = None

    def clear(self) -> None:
        self._lines.clear()
        self.cursor = None

    @property
    def lines(self) -> List[str]:
        return list(self._lines)

    def __len__(self) -> int:
        return len(self._lines)
