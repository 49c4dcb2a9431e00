"""
Approximate command-name matching for "did you mean" suggestions.

Scores are normalized Levenshtein distances: 0.0 is an exact match and 1.0
shares nothing. A command is scored against its name and against every word
of four or more letters in its description; the lower of the two wins.
"""

import re
from dataclasses import dataclass
from typing import List, Optional

from Levenshtein import distance

from dev_console.console.registry import Command, CommandRegistry

DEFAULT_THRESHOLD = 0.6

_WORD_RE = re.compile(r"[A-Za-z0-9-]+")
# description words shorter than this are not scored
MIN_DESCRIPTION_WORD = 4


def similarity_score(a: str, b: str) -> float:
    """Normalized edit distance between two strings, case-insensitive."""
    a, b = a.lower(), b.lower()
    longest = max(len(a), len(b))
    if longest == 0:
        return 0.0
    return distance(a, b) / longest


@dataclass(frozen=True)
class Match:
    command: Command
    score: float
    on_name: bool


class FuzzyMatcher:
    """Ranks registry entries against an unmatched command name."""

    def __init__(
        self, registry: CommandRegistry, threshold: float = DEFAULT_THRESHOLD
    ) -> None:
        self.registry = registry
        self.threshold = threshold

    def score(self, query: str, command: Command) -> Match:
        name_score = similarity_score(query, command.name)
        words = [
            word
            for word in _WORD_RE.findall(command.description)
            if len(word) >= MIN_DESCRIPTION_WORD
        ]
        desc_score = min(
            (similarity_score(query, word) for word in words), default=1.0
        )
        if desc_score < name_score:
            return Match(command, desc_score, on_name=False)
        return Match(command, name_score, on_name=True)

    def rank(self, query: str) -> List[Match]:
        """All commands ordered best first; ties prefer name hits, then registry order."""
        scored = [
            (self.score(query, cmd), index) for index, cmd in enumerate(self.registry)
        ]
        scored.sort(key=lambda item: (item[0].score, not item[0].on_name, item[1]))
        return [match for match, _ in scored]

    def best(self, query: str) -> Optional[Match]:
        """The single best candidate if it scores below the threshold."""
        if not query:
            return None
        ranked = self.rank(query)
        if ranked and ranked[0].score < self.threshold:
            return ranked[0]
        return None
