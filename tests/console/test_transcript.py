from typing import List

from dev_console.console.transcript import (
    EntryKind,
    RecallHistory,
    Transcript,
    TranscriptEntry,
    has_markup,
    is_valid_markup,
    linkify,
)


def test_add_appends_entry_with_defaults() -> None:
    transcript = Transcript()
    entry = transcript.add("hello")
    assert transcript.entries == [entry]
    assert entry.kind == EntryKind.command
    assert entry.input == ""
    assert entry.output == "hello"


def test_add_records_input_and_kind() -> None:
    transcript = Transcript()
    entry = transcript.add("boom", EntryKind.error, "explode")
    assert entry.kind == EntryKind.error
    assert entry.input == "explode"


def test_listeners_are_notified() -> None:
    transcript = Transcript()
    seen: List[TranscriptEntry] = []
    cleared: List[bool] = []
    transcript.on_append(seen.append)
    transcript.on_clear(lambda: cleared.append(True))

    entry = transcript.add("one")
    transcript.clear()

    assert seen == [entry]
    assert cleared == [True]
    assert len(transcript) == 0


def test_linkify_wraps_urls() -> None:
    out = linkify("see https://example.com/path for more")
    assert out == "see [link=https://example.com/path]https://example.com/path[/link] for more"


def test_linkify_wraps_www_domains_with_scheme() -> None:
    out = linkify("visit www.example.com.")
    assert out == "visit [link=https://www.example.com]www.example.com[/link]."


def test_linkify_wraps_emails() -> None:
    out = linkify("mail beer@vreeze.com today")
    assert out == "mail [link=mailto:beer@vreeze.com]beer@vreeze.com[/link] today"


def test_linkify_does_not_double_wrap() -> None:
    out = linkify("https://www.example.com")
    assert out.count("[link=") == 1
    assert out.count("[/link]") == 1


def test_linkify_escapes_brackets_in_plain_text() -> None:
    out = linkify("Usage: storage <list|get> [args]")
    assert "\\[args]" in out


def test_has_markup_detects_known_tags() -> None:
    assert has_markup("[bold]hi[/bold]")
    assert has_markup("[link=https://x.y]x[/link]")
    assert not has_markup("list [1, 2, 3]")
    assert not has_markup("Usage: cmd [args]")


def test_markup_output_is_kept_as_is() -> None:
    transcript = Transcript()
    entry = transcript.add("[bold]https://example.com[/bold]")
    assert entry.output == "[bold]https://example.com[/bold]"


def test_plain_output_is_linkified() -> None:
    transcript = Transcript()
    entry = transcript.add("GitHub: https://github.com/Beer-de-Vreeze")
    assert "[link=https://github.com/Beer-de-Vreeze]" in entry.output


def test_unbalanced_markup_is_escaped() -> None:
    transcript = Transcript()
    entry = transcript.add("closing [/bold] without opening")
    assert entry.output == "closing \\[/bold] without opening"
    assert is_valid_markup(entry.output)


def test_escaped_output_is_not_escaped_twice() -> None:
    transcript = Transcript()
    entry = transcript.add("\\[/red]")
    assert entry.output == "\\[/red]"


def test_is_valid_markup() -> None:
    assert is_valid_markup("[bold]hi[/bold]")
    assert is_valid_markup("plain text")
    assert not is_valid_markup("[/link]")


def test_recall_suppresses_adjacent_duplicates_only() -> None:
    recall = RecallHistory()
    recall.record("help")
    recall.record("help")
    assert recall.lines == ["help"]
    recall.record("time")
    recall.record("help")
    assert recall.lines == ["help", "time", "help"]


def test_recall_keeps_most_recent_entries() -> None:
    recall = RecallHistory(limit=50)
    for i in range(60):
        recall.record(f"echo {i}")
    assert len(recall) == 50
    assert recall.lines[0] == "echo 10"
    assert recall.lines[-1] == "echo 59"


def test_previous_clamps_at_oldest() -> None:
    recall = RecallHistory()
    for line in ("one", "two", "three"):
        recall.record(line)
    assert recall.previous() == "three"
    assert recall.previous() == "two"
    assert recall.previous() == "one"
    assert recall.previous() == "one"
    assert recall.cursor == 0


def test_next_past_newest_clears_and_resets() -> None:
    recall = RecallHistory()
    for line in ("one", "two"):
        recall.record(line)
    recall.previous()
    recall.previous()
    assert recall.next() == "two"
    assert recall.next() == ""
    assert recall.cursor is None
    assert recall.next() is None


def test_navigation_on_empty_history() -> None:
    recall = RecallHistory()
    assert recall.previous() is None
    assert recall.next() is None
    assert recall.cursor is None


def test_cursor_stays_in_bounds() -> None:
    recall = RecallHistory()
    for line in ("a", "b", "c"):
        recall.record(line)
    moves = ["up", "up", "down", "up", "up", "up", "down", "down", "down", "up"]
    for move in moves:
        if move == "up":
            recall.previous()
        else:
            recall.next()
        assert recall.cursor is None or 0 <= recall.cursor <= len(recall) - 1


def test_record_resets_cursor() -> None:
    recall = RecallHistory()
    recall.record("a")
    recall.previous()
    recall.record("b")
    assert recall.cursor is None
