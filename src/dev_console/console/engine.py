"""
The developer console engine.

`DevConsole` owns all console state for one session: the open flag, the
transcript, the recall history, the gesture detector, the games and the
command registry. Front-ends (REPL, headless) feed it key presses and input
lines and render its transcript.
"""

import logging
import random
import re
import time
from typing import Optional

from dev_console.console.commands import build_commands
from dev_console.console.dispatcher import Dispatcher
from dev_console.console.fuzzy import FuzzyMatcher
from dev_console.console.gesture import GestureDetector
from dev_console.console.registry import CommandRegistry
from dev_console.console.storage import KeyValueStore
from dev_console.console.transcript import EntryKind, RecallHistory, Transcript, TranscriptEntry
from dev_console.games.hangman import HangmanGame
from dev_console.games.trivia import OpenTriviaSource, TriviaGame, TriviaSource
from dev_console.runtime_config import RuntimeConfig

logger = logging.getLogger(__name__)

REOPEN_STORE_KEY = "dev_console.reopen_after_reload"

GESTURE_MESSAGE = "🎮 Konami Code activated! Welcome to the developer console."
REOPEN_MESSAGE = "🔄 Console reopened after reload."

_TRIVIA_LETTER_RE = re.compile(r"[a-dA-D]")


class DevConsole:
    """Keyboard-activated command console."""

    def __init__(
        self,
        config: RuntimeConfig,
        store: KeyValueStore,
        trivia_source: Optional[TriviaSource] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config
        self.store = store
        self.rng = rng or random.Random()

        self.is_open = False
        self.started_at = time.monotonic()
        self.reload_requested = False

        self.transcript = Transcript()
        self.recall = RecallHistory(limit=config.history_limit)
        self.gesture = GestureDetector()
        self.hangman = HangmanGame(store, rng=self.rng)
        self.trivia = TriviaGame(
            trivia_source
            or OpenTriviaSource(
                config.trivia_api_url, timeout=config.request_timeout, rng=self.rng
            )
        )

        self.registry = CommandRegistry(build_commands(self))
        self.matcher = FuzzyMatcher(self.registry, threshold=config.fuzzy_threshold)
        self.dispatcher = Dispatcher(self.registry, self.matcher, self.transcript)

        self._restore_session()
        if config.start_open and not self.is_open:
            self.open()

    def _restore_session(self) -> None:
        if self.store.get(REOPEN_STORE_KEY) == "true":
            self.store.remove(REOPEN_STORE_KEY)
            self.open()
            self.transcript.add(REOPEN_MESSAGE, EntryKind.info)
            logger.info("Console reopened after reload")

    def open(self) -> None:
        if not self.is_open:
            self.is_open = True
            self.gesture.reset()
            logger.info("Console opened")

    def close(self) -> None:
        if self.is_open:
            self.is_open = False
            self.recall.reset_cursor()
            self.gesture.reset()
            logger.info("Console closed")

    def handle_key(self, key: str) -> bool:
        """Feed a raw key press while the console is closed.

        Returns True if the key completed the gesture and opened the console.
        """
        if self.is_open:
            return False
        if self.gesture.feed(key):
            self.open()
            self.transcript.add(GESTURE_MESSAGE, EntryKind.info)
            return True
        return False

    def recall_previous(self) -> Optional[str]:
        return self.recall.previous()

    def recall_next(self) -> Optional[str]:
        return self.recall.next()

    def request_reload(self) -> None:
        """Ask for a session restart; performed once the current command finishes."""
        self.store.set(REOPEN_STORE_KEY, "true")
        self.reload_requested = True

    def reload(self) -> None:
        """Drop all in-memory session state and restore from the store."""
        logger.info("Reloading console session")
        self.reload_requested = False
        self.is_open = False
        self.started_at = time.monotonic()
        self.transcript.clear()
        self.recall.clear()
        self.gesture.reset()
        self.trivia.discard()
        self._restore_session()

    async def submit(self, line: str) -> Optional[TranscriptEntry]:
        """Record and execute one input line. Blank lines are ignored."""
        text = line.strip()
        if not text:
            return None
        self.recall.record(text)

        command_line = text
        if self.trivia.has_pending and _TRIVIA_LETTER_RE.fullmatch(text):
            command_line = f"trivia-answer {text}"

        entry = await self.dispatcher.dispatch(command_line, echo=text)
        if self.reload_requested:
            self.reload()
        return entry
