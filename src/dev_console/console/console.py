from typing import Protocol

from dev_console.console.engine import DevConsole
from dev_console.console.rendering import render_entry
from dev_console.console.repl_console import ReplConsole

__all__ = ["Console", "HeadlessConsole", "ReplConsole"]


class Console(Protocol):
    """Common interface for console front-ends."""

    engine: DevConsole

    async def run(self) -> None:
        pass


class HeadlessConsole(Console):
    """Console that runs a single input line and prints the transcript."""

    def __init__(self, engine: DevConsole, line: str) -> None:
        self.engine = engine
        self.line = line

    async def run(self) -> None:
        """
        Open the console, execute the line and render every resulting entry.
        """
        if not self.line.strip():
            raise ValueError("A command line is required for headless mode")

        self.engine.transcript.on_append(render_entry)
        self.engine.open()
        await self.engine.submit(self.line)
