from collections import deque
from typing import Deque, Sequence, Tuple

# Konami code, as prompt_toolkit key identifiers
KONAMI_SEQUENCE: Tuple[str, ...] = (
    "up",
    "up",
    "down",
    "down",
    "left",
    "right",
    "left",
    "right",
    "b",
    "a",
)


class GestureDetector:
    """Sliding-window matcher that fires when the target key sequence is typed."""

    def __init__(self, sequence: Sequence[str] = KONAMI_SEQUENCE) -> None:
        if not sequence:
            raise ValueError("Gesture sequence must not be empty")
        self.sequence: Tuple[str, ...] = tuple(k.lower() for k in sequence)
        self._window: Deque[str] = deque(maxlen=len(self.sequence))

    def feed(self, key: str) -> bool:
        """Push one key; returns True (and empties the window) on a full match."""
        self._window.append(key.lower())
        if tuple(self._window) == self.sequence:
            self._window.clear()
            return True
        return False

    def reset(self) -> None:
        self._window.clear()

    @property
    def progress(self) -> int:
        """Length of the longest window suffix that is a prefix of the sequence."""
        window = tuple(self._window)
        for size in range(len(window), 0, -1):
            if window[-size:] == self.sequence[:size]:
                return size
        return 0
