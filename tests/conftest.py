import random
from pathlib import Path
from typing import List, Optional, Tuple

import pytest

from dev_console.console.engine import DevConsole
from dev_console.console.storage import MemoryStore
from dev_console.games.trivia import TriviaQuestion
from dev_console.runtime_config import RuntimeConfig


class FakeTriviaSource:
    """Trivia source returning canned questions in order."""

    def __init__(self, questions: Optional[List[TriviaQuestion]] = None) -> None:
        self.questions = questions or [
            TriviaQuestion(
                question="What does CPU stand for?",
                options=(
                    "Central Process Unit",
                    "Central Processing Unit",
                    "Computer Personal Unit",
                    "Central Processor Utility",
                ),
                correct_index=1,
                category="computers",
                difficulty="easy",
            )
        ]
        self.calls: List[Tuple[Optional[str], Optional[str]]] = []

    async def fetch(
        self, category: Optional[str] = None, difficulty: Optional[str] = None
    ) -> TriviaQuestion:
        self.calls.append((category, difficulty))
        return self.questions[(len(self.calls) - 1) % len(self.questions)]


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def config(tmp_path: Path) -> RuntimeConfig:
    return RuntimeConfig(data_dir=tmp_path)


@pytest.fixture
def trivia_source() -> FakeTriviaSource:
    return FakeTriviaSource()


@pytest.fixture
def engine(
    config: RuntimeConfig, store: MemoryStore, trivia_source: FakeTriviaSource
) -> DevConsole:
    return DevConsole(config, store, trivia_source=trivia_source, rng=random.Random(7))


class MockConsole:
    """Console front-end that records whether it was run."""

    def __init__(self, engine: DevConsole, command: Optional[str] = None) -> None:
        self.engine = engine
        self.command = command
        self.run_called = False

    async def run(self) -> None:
        self.run_called = True
