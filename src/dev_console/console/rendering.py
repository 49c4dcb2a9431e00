import os

from rich.console import Console
from rich.errors import MarkupError
from rich.text import Text

from dev_console.console.transcript import EntryKind, TranscriptEntry

console = Console()

_OUTPUT_STYLES = {
    EntryKind.command: "",
    EntryKind.error: "bold red",
    EntryKind.info: "cyan",
}


def clear_terminal() -> None:
    """Clear the terminal screen."""
    os.system("cls" if os.name == "nt" else "clear")


def render_entry(entry: TranscriptEntry) -> None:
    """Render a single transcript entry via Rich."""
    if entry.input:
        console.print(Text.assemble(("› ", "bold green"), (entry.input, "dim")))
    style = _OUTPUT_STYLES.get(entry.kind, "")
    try:
        output = Text.from_markup(entry.output, style=style)
    except MarkupError:
        output = Text(entry.output, style=style)
    console.print(output)
    console.print()


def render_closed_hint() -> None:
    console.print("[dim]Console is closed. Press Ctrl+C to quit.[/dim]")
