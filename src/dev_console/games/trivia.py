"""
Trivia question/answer flow.

One question is pending at a time. Asking again overwrites an unanswered
question; answering clears it whether or not the answer was right.
"""

import asyncio
import html
import logging
import random
from dataclasses import dataclass
from typing import Dict, Optional, Protocol, Tuple

import requests
from rich.markup import escape

from dev_console.console.errors import CommandError, NoPendingQuestionError, UsageError
from dev_console.runtime_config import DEFAULT_TRIVIA_API_URL

logger = logging.getLogger(__name__)

LETTERS = "ABCD"
DIFFICULTIES = ("easy", "medium", "hard")

NO_QUESTION_MESSAGE = "No pending trivia question. Ask for one with 'trivia [category] [difficulty]'."

# Open Trivia DB category ids
CATEGORIES: Dict[str, int] = {
    "general": 9,
    "books": 10,
    "film": 11,
    "music": 12,
    "television": 14,
    "games": 15,
    "science": 17,
    "computers": 18,
    "math": 19,
    "mythology": 20,
    "sports": 21,
    "geography": 22,
    "history": 23,
    "art": 25,
    "animals": 27,
}


@dataclass(frozen=True)
class TriviaQuestion:
    question: str
    options: Tuple[str, str, str, str]
    correct_index: int
    category: str = ""
    difficulty: str = ""

    def __post_init__(self) -> None:
        if len(self.options) != 4:
            raise ValueError("A trivia question needs exactly 4 options")
        if not 0 <= self.correct_index <= 3:
            raise ValueError("correct_index must be in [0, 3]")

    @property
    def correct_letter(self) -> str:
        return LETTERS[self.correct_index]

    @property
    def correct_answer(self) -> str:
        return self.options[self.correct_index]


@dataclass(frozen=True)
class TriviaAnswer:
    question: TriviaQuestion
    chosen_index: int

    @property
    def is_correct(self) -> bool:
        return self.chosen_index == self.question.correct_index


class TriviaSource(Protocol):
    """Provider of trivia questions."""

    async def fetch(
        self, category: Optional[str] = None, difficulty: Optional[str] = None
    ) -> TriviaQuestion: ...


class OpenTriviaSource:
    """Fetches multiple-choice questions from the Open Trivia DB API."""

    def __init__(
        self,
        api_url: str = DEFAULT_TRIVIA_API_URL,
        timeout: float = 10.0,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.api_url = api_url
        self.timeout = timeout
        self.rng = rng or random.Random()

    async def fetch(
        self, category: Optional[str] = None, difficulty: Optional[str] = None
    ) -> TriviaQuestion:
        params: Dict[str, object] = {"amount": 1, "type": "multiple"}
        if category:
            params["category"] = CATEGORIES[category]
        if difficulty:
            params["difficulty"] = difficulty
        logger.debug(f"Requesting trivia question: {params}")
        response = await asyncio.to_thread(
            requests.get, self.api_url, params=params, timeout=self.timeout
        )
        response.raise_for_status()
        payload = response.json()
        results = payload.get("results") or []
        if payload.get("response_code") != 0 or not results:
            raise CommandError("The trivia service returned no question. Try again later.")
        return self._to_question(results[0])

    def _to_question(self, item: Dict[str, object]) -> TriviaQuestion:
        correct = html.unescape(str(item["correct_answer"]))
        incorrect = [html.unescape(str(a)) for a in item["incorrect_answers"]][:3]  # type: ignore[attr-defined]
        options = incorrect + [correct]
        self.rng.shuffle(options)
        return TriviaQuestion(
            question=html.unescape(str(item["question"])),
            options=tuple(options),  # type: ignore[arg-type]
            correct_index=options.index(correct),
            category=html.unescape(str(item.get("category", ""))),
            difficulty=str(item.get("difficulty", "")),
        )


def letter_to_index(letter: str) -> int:
    """Map A-D (any case) to 0-3."""
    letter = letter.strip().upper()
    if len(letter) != 1 or letter not in LETTERS:
        raise UsageError("Usage: trivia-answer <A|B|C|D>")
    return LETTERS.index(letter)


class TriviaGame:
    """Single-slot pending question plus answer checking."""

    def __init__(self, source: TriviaSource) -> None:
        self.source = source
        self.pending: Optional[TriviaQuestion] = None

    @property
    def has_pending(self) -> bool:
        return self.pending is not None

    async def ask(
        self, category: Optional[str] = None, difficulty: Optional[str] = None
    ) -> TriviaQuestion:
        if category is not None:
            category = category.lower()
            if category not in CATEGORIES:
                raise UsageError(
                    f"Unknown trivia category '{escape(category)}'. "
                    f"Available: {', '.join(sorted(CATEGORIES))}"
                )
        if difficulty is not None:
            difficulty = difficulty.lower()
            if difficulty not in DIFFICULTIES:
                raise UsageError(
                    f"Unknown difficulty '{escape(difficulty)}'. Use one of: {', '.join(DIFFICULTIES)}"
                )
        question = await self.source.fetch(category, difficulty)
        if self.pending is not None:
            logger.debug("Replacing unanswered trivia question")
        self.pending = question
        return question

    def answer(self, letter: str) -> TriviaAnswer:
        chosen = letter_to_index(letter)
        if self.pending is None:
            raise NoPendingQuestionError(NO_QUESTION_MESSAGE)
        question, self.pending = self.pending, None
        return TriviaAnswer(question, chosen)

    def discard(self) -> None:
        self.pending = None


def format_question(question: TriviaQuestion) -> str:
    lines = []
    header = " / ".join(p for p in (question.category, question.difficulty) if p)
    if header:
        lines.append(f"[{header}]")
    lines.append(question.question)
    lines.append("")
    for letter, option in zip(LETTERS, question.options):
        lines.append(f"  {letter}) {option}")
    lines.append("")
    lines.append("Answer with 'trivia-answer <A|B|C|D>' or just type the letter.")
    return "\n".join(lines)


def format_answer(answer: TriviaAnswer) -> str:
    q = answer.question
    if answer.is_correct:
        return f"✅ Correct! The answer was {q.correct_letter}) {q.correct_answer}."
    return (
        f"❌ Wrong! You chose {LETTERS[answer.chosen_index]}. "
        f"The correct answer was {q.correct_letter}) {q.correct_answer}."
    )
