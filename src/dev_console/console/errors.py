"""
Exception types shared by the console engine, its commands and the games.
"""


class ParseError(ValueError):
    """Raised by the strict tokenizer on unbalanced quotes or malformed options."""


class CommandError(Exception):
    """A user-facing command failure; rendered as an error entry with its message."""


class UsageError(CommandError):
    """Malformed arguments for a command."""


class GameError(CommandError):
    """An action that is not valid for the current game state."""


class NoActiveGameError(GameError):
    def __init__(self, message: str = "No active game.") -> None:
        super().__init__(message)


class NoPendingQuestionError(GameError):
    def __init__(self, message: str = "No pending trivia question.") -> None:
        super().__init__(message)
