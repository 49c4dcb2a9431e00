import random
from pathlib import Path

import pytest
from rich.console import Console

import dev_console.console.rendering as rendering
from dev_console.console.engine import (
    GESTURE_MESSAGE,
    REOPEN_MESSAGE,
    REOPEN_STORE_KEY,
    DevConsole,
)
from dev_console.console.gesture import KONAMI_SEQUENCE
from dev_console.console.storage import MemoryStore
from dev_console.console.transcript import EntryKind
from dev_console.runtime_config import RuntimeConfig


def test_starts_closed(engine: DevConsole) -> None:
    assert not engine.is_open
    assert len(engine.transcript) == 0


def test_gesture_opens_once_with_welcome(engine: DevConsole) -> None:
    results = [engine.handle_key(key) for key in KONAMI_SEQUENCE]
    assert results[-1] is True
    assert engine.is_open
    entries = list(engine.transcript)
    assert len(entries) == 1
    assert entries[0].output == GESTURE_MESSAGE
    assert entries[0].kind == EntryKind.info


def test_partial_gesture_then_unrelated_key(engine: DevConsole) -> None:
    for key in list(KONAMI_SEQUENCE[:9]) + ["x"]:
        engine.handle_key(key)
    assert not engine.is_open


def test_keys_ignored_while_open(engine: DevConsole) -> None:
    engine.open()
    assert not any(engine.handle_key(key) for key in KONAMI_SEQUENCE)
    assert len(engine.transcript) == 0


def test_start_open_config(tmp_path: Path, store: MemoryStore, trivia_source) -> None:
    engine = DevConsole(
        RuntimeConfig(data_dir=tmp_path, start_open=True), store, trivia_source=trivia_source
    )
    assert engine.is_open


def test_reopen_flag_is_consumed(tmp_path: Path, store: MemoryStore, trivia_source) -> None:
    store.set(REOPEN_STORE_KEY, "true")
    engine = DevConsole(RuntimeConfig(data_dir=tmp_path), store, trivia_source=trivia_source)
    assert engine.is_open
    assert [e.output for e in engine.transcript] == [REOPEN_MESSAGE]
    assert store.get(REOPEN_STORE_KEY) is None

    again = DevConsole(RuntimeConfig(data_dir=tmp_path), store, trivia_source=trivia_source)
    assert not again.is_open


@pytest.mark.asyncio
async def test_blank_submit_is_ignored(engine: DevConsole) -> None:
    engine.open()
    assert await engine.submit("   ") is None
    assert len(engine.recall) == 0
    assert len(engine.transcript) == 0


@pytest.mark.asyncio
async def test_submit_records_and_dispatches(engine: DevConsole) -> None:
    engine.open()
    entry = await engine.submit("  echo hello  ")
    assert entry is not None
    assert entry.input == "echo hello"
    assert entry.output == "hello"
    assert engine.recall.lines == ["echo hello"]


@pytest.mark.asyncio
async def test_recall_skips_adjacent_duplicates(engine: DevConsole) -> None:
    engine.open()
    for line in ("echo a", "echo a", "echo b", "echo a"):
        await engine.submit(line)
    assert engine.recall.lines == ["echo a", "echo b", "echo a"]
    assert engine.recall_previous() == "echo a"
    assert engine.recall_previous() == "echo b"
    assert engine.recall_next() == "echo a"
    assert engine.recall_next() == ""


@pytest.mark.asyncio
async def test_unknown_command_is_error(engine: DevConsole) -> None:
    engine.open()
    entry = await engine.submit("hlp")
    assert entry is not None
    assert entry.kind == EntryKind.error
    assert entry.output == "Unknown command: hlp. Did you mean 'help'?"


@pytest.mark.asyncio
async def test_exit_closes_console(engine: DevConsole) -> None:
    engine.open()
    entry = await engine.submit("exit")
    assert entry is not None
    assert entry.output == "Console closed"
    assert not engine.is_open


@pytest.mark.asyncio
async def test_close_resets_recall_cursor(engine: DevConsole) -> None:
    engine.open()
    await engine.submit("echo a")
    engine.recall_previous()
    engine.close()
    engine.open()
    assert engine.recall_next() is None


@pytest.mark.asyncio
async def test_reload_resets_session_and_reopens(engine: DevConsole, store: MemoryStore) -> None:
    engine.open()
    await engine.submit("echo before")
    await engine.trivia.ask()
    entry = await engine.submit("reload")

    assert entry is not None
    assert entry.output == "Reloading console..."
    assert engine.is_open
    assert not engine.reload_requested
    assert [e.output for e in engine.transcript] == [REOPEN_MESSAGE]
    assert len(engine.recall) == 0
    assert not engine.trivia.has_pending
    assert store.get(REOPEN_STORE_KEY) is None


@pytest.mark.asyncio
async def test_reload_keeps_persisted_hangman(engine: DevConsole) -> None:
    engine.open()
    await engine.submit("hangman start animals")
    await engine.submit("reload")
    assert engine.hangman.load() is not None


@pytest.mark.asyncio
async def test_bare_letter_answers_pending_trivia(engine: DevConsole) -> None:
    engine.open()
    await engine.submit("trivia")
    assert engine.trivia.has_pending

    entry = await engine.submit("b")
    assert entry is not None
    assert entry.input == "b"
    assert entry.output.startswith("✅ Correct!")
    assert not engine.trivia.has_pending
    assert engine.recall.lines[-1] == "b"


@pytest.mark.asyncio
async def test_bare_letter_without_trivia_is_a_command(engine: DevConsole) -> None:
    engine.open()
    entry = await engine.submit("a")
    assert entry is not None
    assert entry.kind == EntryKind.error
    assert entry.output.startswith("Unknown command: a.")


@pytest.mark.asyncio
async def test_clear_empties_transcript(engine: DevConsole) -> None:
    engine.open()
    await engine.submit("echo one")
    await engine.submit("echo two")
    await engine.submit("clear")
    assert [e.output for e in engine.transcript] == ["Console cleared"]


@pytest.mark.asyncio
async def test_handler_failure_keeps_console_usable(
    engine: DevConsole, monkeypatch: pytest.MonkeyPatch
) -> None:
    engine.open()

    def broken() -> None:
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(engine.store, "keys", broken)
    entry = await engine.submit("storage list")
    assert entry is not None
    assert entry.kind == EntryKind.error
    assert entry.output == "Error: disk on fire"

    entry = await engine.submit("echo still here")
    assert entry is not None
    assert entry.output == "still here"


def test_rng_is_shared_with_games(config: RuntimeConfig, store: MemoryStore, trivia_source) -> None:
    rng = random.Random(0)
    engine = DevConsole(config, store, trivia_source=trivia_source, rng=rng)
    assert engine.rng is rng
    assert engine.hangman.rng is rng


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "line,shown",
    [
        ("[/bold]", "Unknown command: [/bold]."),
        ("echo [/red]", "[/red]"),
        ("hangman start [/link]", "Unknown category '[/link]'."),
    ],
)
async def test_unbalanced_markup_input_renders(
    engine: DevConsole, monkeypatch: pytest.MonkeyPatch, line: str, shown: str
) -> None:
    recorder = Console(record=True, width=120)
    monkeypatch.setattr(rendering, "console", recorder)
    engine.transcript.on_append(rendering.render_entry)
    engine.open()

    entry = await engine.submit(line)

    assert entry is not None
    out = recorder.export_text()
    assert f"› {line}" in out
    assert shown in out
