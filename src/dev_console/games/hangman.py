"""
Hangman game state machine.

A game moves from idle to in progress on `start` and ends as won or lost.
The in-progress state is persisted as JSON in a key-value store so it
survives console restarts; it is removed as soon as the game completes or is
quit.
"""

import json
import logging
import random
import string
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from rich.markup import escape

from dev_console.console.errors import NoActiveGameError, UsageError
from dev_console.console.storage import KeyValueStore

logger = logging.getLogger(__name__)

HANGMAN_STORE_KEY = "dev_console.hangman"
MAX_WRONG = 6
WORD_GUESS_PENALTY = 2
PLACEHOLDER = "_"

NO_GAME_MESSAGE = "No active game. Start one with 'hangman start [category]'."

WORD_LISTS: Dict[str, List[str]] = {
    "programming": [
        "python",
        "javascript",
        "compiler",
        "function",
        "variable",
        "recursion",
        "algorithm",
        "debugger",
        "typescript",
        "framework",
    ],
    "animals": [
        "elephant",
        "giraffe",
        "penguin",
        "kangaroo",
        "dolphin",
        "cheetah",
        "octopus",
        "hedgehog",
        "flamingo",
        "tortoise",
    ],
    "games": [
        "tetris",
        "minecraft",
        "zelda",
        "portal",
        "pacman",
        "celeste",
        "hollowknight",
        "stardew",
        "terraria",
        "undertale",
    ],
    "countries": [
        "netherlands",
        "germany",
        "japan",
        "brazil",
        "canada",
        "australia",
        "portugal",
        "norway",
        "argentina",
        "egypt",
    ],
}

GALLOWS = [
    "  +---+\n  |   |\n      |\n      |\n      |\n      |\n=========",
    "  +---+\n  |   |\n  O   |\n      |\n      |\n      |\n=========",
    "  +---+\n  |   |\n  O   |\n  |   |\n      |\n      |\n=========",
    "  +---+\n  |   |\n  O   |\n /|   |\n      |\n      |\n=========",
    "  +---+\n  |   |\n  O   |\n /|\\  |\n      |\n      |\n=========",
    "  +---+\n  |   |\n  O   |\n /|\\  |\n /    |\n      |\n=========",
    "  +---+\n  |   |\n  O   |\n /|\\  |\n / \\  |\n      |\n=========",
]


@dataclass
class HangmanState:
    secret_word: str
    category: str
    guessed_letters: Set[str] = field(default_factory=set)
    wrong_guess_count: int = 0
    max_wrong: int = MAX_WRONG
    is_complete: bool = False
    is_won: bool = False

    @property
    def is_lost(self) -> bool:
        return self.is_complete and not self.is_won

    @property
    def masked_word(self) -> str:
        return " ".join(
            c if c in self.guessed_letters or not c.isalpha() else PLACEHOLDER
            for c in self.secret_word
        )

    @property
    def hidden_letters(self) -> List[str]:
        return sorted(
            {c for c in self.secret_word if c.isalpha()} - self.guessed_letters
        )

    @property
    def remaining_guesses(self) -> int:
        return self.max_wrong - self.wrong_guess_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "secret_word": self.secret_word,
            "category": self.category,
            "guessed_letters": sorted(self.guessed_letters),
            "wrong_guess_count": self.wrong_guess_count,
            "max_wrong": self.max_wrong,
            "is_complete": self.is_complete,
            "is_won": self.is_won,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HangmanState":
        return cls(
            secret_word=str(data["secret_word"]).lower(),
            category=str(data.get("category", "")),
            guessed_letters=set(data.get("guessed_letters", [])),
            wrong_guess_count=int(data.get("wrong_guess_count", 0)),
            max_wrong=int(data.get("max_wrong", MAX_WRONG)),
            is_complete=bool(data.get("is_complete", False)),
            is_won=bool(data.get("is_won", False)),
        )


@dataclass(frozen=True)
class HangmanTurn:
    """Result of one game operation: the state afterwards and a message."""

    state: HangmanState
    message: str


class HangmanGame:
    """Hangman driven by console commands, persisted in a key-value store."""

    def __init__(
        self,
        store: KeyValueStore,
        rng: Optional[random.Random] = None,
        word_lists: Optional[Dict[str, List[str]]] = None,
    ) -> None:
        self.store = store
        self.rng = rng or random.Random()
        self.word_lists = word_lists or WORD_LISTS

    @property
    def categories(self) -> List[str]:
        return sorted(self.word_lists)

    def load(self) -> Optional[HangmanState]:
        raw = self.store.get(HANGMAN_STORE_KEY)
        if not raw:
            return None
        try:
            state = HangmanState.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Discarding unreadable hangman state: {e}")
            self.store.remove(HANGMAN_STORE_KEY)
            return None
        if state.is_complete:
            self.store.remove(HANGMAN_STORE_KEY)
            return None
        return state

    def _require_game(self) -> HangmanState:
        state = self.load()
        if state is None:
            raise NoActiveGameError(NO_GAME_MESSAGE)
        return state

    def _save(self, state: HangmanState) -> None:
        if state.is_complete:
            self.store.remove(HANGMAN_STORE_KEY)
        else:
            self.store.set(HANGMAN_STORE_KEY, json.dumps(state.to_dict()))

    def _evaluate(self, state: HangmanState) -> None:
        if not state.hidden_letters:
            state.is_complete = True
            state.is_won = True
        elif state.wrong_guess_count >= state.max_wrong:
            state.is_complete = True
            state.is_won = False

    def start(self, category: Optional[str] = None) -> HangmanTurn:
        if category is None:
            category = self.rng.choice(self.categories)
        category = category.lower()
        if category not in self.word_lists:
            raise UsageError(
                f"Unknown category '{escape(category)}'. "
                f"Available: {', '.join(self.categories)}"
            )
        word = self.rng.choice(self.word_lists[category]).lower()
        state = HangmanState(secret_word=word, category=category)
        self._save(state)
        logger.info(f"Started hangman game in category {category}")
        return HangmanTurn(
            state,
            f"New game started! Category: {category}\n\n{self.render(state)}\n\n"
            "Guess with 'hangman guess <letter>' or 'hangman word <word>'.",
        )

    def guess(self, letter: str) -> HangmanTurn:
        letter = letter.strip().lower()
        if len(letter) != 1 or letter not in string.ascii_lowercase:
            raise UsageError("Usage: hangman guess <letter> (a single letter a-z)")
        state = self._require_game()

        if letter in state.guessed_letters:
            return HangmanTurn(
                state,
                f"You already guessed '{letter}'.\n\n{self.render(state)}",
            )

        state.guessed_letters.add(letter)
        hit = letter in state.secret_word
        if not hit:
            state.wrong_guess_count = min(state.max_wrong, state.wrong_guess_count + 1)
        self._evaluate(state)
        self._save(state)

        if state.is_complete:
            return HangmanTurn(state, self._final_message(state))
        verdict = f"Yes! '{letter}' is in the word." if hit else f"No '{letter}' in the word."
        return HangmanTurn(state, f"{verdict}\n\n{self.render(state)}")

    def word(self, guess: str) -> HangmanTurn:
        guess = guess.strip().lower()
        if not guess or not guess.isalpha():
            raise UsageError("Usage: hangman word <word> (letters only)")
        state = self._require_game()

        if guess == state.secret_word:
            state.guessed_letters.update(c for c in state.secret_word if c.isalpha())
            state.is_complete = True
            state.is_won = True
        else:
            state.wrong_guess_count = min(
                state.max_wrong, state.wrong_guess_count + WORD_GUESS_PENALTY
            )
            state.is_complete = True
            state.is_won = False
        self._save(state)
        return HangmanTurn(state, self._final_message(state))

    def hint(self) -> HangmanTurn:
        state = self._require_game()
        letter = self.rng.choice(state.hidden_letters)
        state.guessed_letters.add(letter)
        self._evaluate(state)
        self._save(state)
        if state.is_complete:
            return HangmanTurn(state, self._final_message(state))
        return HangmanTurn(state, f"Hint: the word contains '{letter}'.\n\n{self.render(state)}")

    def status(self) -> HangmanTurn:
        state = self._require_game()
        return HangmanTurn(state, f"Category: {state.category}\n\n{self.render(state)}")

    def quit(self) -> HangmanTurn:
        state = self._require_game()
        self.store.remove(HANGMAN_STORE_KEY)
        return HangmanTurn(state, f"Game abandoned. The word was '{state.secret_word}'.")

    def render(self, state: HangmanState) -> str:
        stage = GALLOWS[min(state.wrong_guess_count, len(GALLOWS) - 1)]
        guessed = ", ".join(sorted(state.guessed_letters)) or "none"
        return (
            f"{stage}\n\n"
            f"Word: {state.masked_word}\n"
            f"Guessed: {guessed}\n"
            f"Wrong guesses: {state.wrong_guess_count}/{state.max_wrong}"
        )

    def _final_message(self, state: HangmanState) -> str:
        if state.is_won:
            return f"🎉 You won! The word was '{state.secret_word}'.\n\n{self.render(state)}"
        return f"💀 Game over! The word was '{state.secret_word}'.\n\n{self.render(state)}"
