from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Iterable, Iterator, List, Optional, Tuple, Union

HandlerResult = Union[str, Awaitable[str]]
Handler = Callable[[List[str]], HandlerResult]


@dataclass(frozen=True)
class Command:
    """Definition of a console command: name, description and handler."""

    name: str
    description: str
    handler: Handler
    category: str = "General"
    usage: str = ""
    # handler receives the unparsed remainder of the line as its only argument
    raw_args: bool = False


class CommandRegistry:
    """Ordered, read-only collection of commands with case-insensitive lookup."""

    def __init__(self, commands: Iterable[Command]) -> None:
        self._commands: Tuple[Command, ...] = tuple(commands)
        self._by_name: Dict[str, Command] = {}
        for cmd in self._commands:
            key = cmd.name.lower()
            if key in self._by_name:
                raise ValueError(f"Duplicate command name: {cmd.name}")
            self._by_name[key] = cmd

    def get(self, name: str) -> Optional[Command]:
        return self._by_name.get(name.lower())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._by_name

    def __iter__(self) -> Iterator[Command]:
        return iter(self._commands)

    def __len__(self) -> int:
        return len(self._commands)

    @property
    def names(self) -> List[str]:
        return [cmd.name for cmd in self._commands]

    def by_category(self) -> Dict[str, List[Command]]:
        """Group commands by category, keeping registration order."""
        groups: Dict[str, List[Command]] = {}
        for cmd in self._commands:
            groups.setdefault(cmd.category, []).append(cmd)
        return groups
