"""
Command dispatcher: resolves a parsed line to a handler, runs it and turns
the outcome into a transcript entry.

Every failure stops here. Usage and game errors become error entries with
their own message; anything else a handler raises is logged and rendered as
``Error: <description>``.
"""

import inspect
import logging
from typing import Optional

from rich.markup import escape

from dev_console.console.errors import CommandError
from dev_console.console.fuzzy import FuzzyMatcher
from dev_console.console.parsing import parse_input
from dev_console.console.registry import CommandRegistry
from dev_console.console.transcript import EntryKind, Transcript, TranscriptEntry

logger = logging.getLogger(__name__)

HELP_COMMAND = "help"


class Dispatcher:
    def __init__(
        self,
        registry: CommandRegistry,
        matcher: FuzzyMatcher,
        transcript: Transcript,
    ) -> None:
        self.registry = registry
        self.matcher = matcher
        self.transcript = transcript

    def unknown_command_message(self, name: str) -> str:
        match = self.matcher.best(name)
        shown = escape(name)
        if match is not None:
            return f"Unknown command: {shown}. Did you mean '{match.command.name}'?"
        return f"Unknown command: {shown}. Type '{HELP_COMMAND}' for available commands."

    async def dispatch(self, line: str, echo: Optional[str] = None) -> Optional[TranscriptEntry]:
        """Run one input line and append its outcome to the transcript.

        Args:
            line: The line to execute.
            echo: The text shown as the entry's input, when it differs from
                the executed line (e.g. a bare trivia answer letter).

        Returns:
            The appended entry, or None for a blank line.
        """
        parsed = parse_input(line)
        name = parsed.command
        if not name:
            return None
        shown = line.strip() if echo is None else echo

        command = self.registry.get(name)
        if command is None:
            logger.info(f"Unknown command: {name}")
            return self.transcript.add(
                self.unknown_command_message(name), EntryKind.error, shown
            )

        args = parsed.args
        if command.raw_args:
            rest = line.strip().split(None, 1)
            args = rest[1:]
        logger.info(f"Dispatching {command.name} with args {args}")
        try:
            result = command.handler(args)
            if inspect.isawaitable(result):
                result = await result
        except CommandError as e:
            return self.transcript.add(str(e), EntryKind.error, shown)
        except Exception as e:
            logger.exception(f"Command {command.name} failed")
            return self.transcript.add(f"Error: {e}", EntryKind.error, shown)

        return self.transcript.add(str(result), EntryKind.command, shown)
