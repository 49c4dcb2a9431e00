import asyncio
import logging
from typing import Generator, List, Optional, Set

from prompt_toolkit.application import Application, get_app_or_none, run_in_terminal
from prompt_toolkit.auto_suggest import AutoSuggest, Suggestion
from prompt_toolkit.buffer import Buffer
from prompt_toolkit.completion import CompleteEvent, Completer, Completion
from prompt_toolkit.document import Document
from prompt_toolkit.key_binding import KeyPressEvent
from prompt_toolkit.layout import Layout
from prompt_toolkit.layout.containers import Window
from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.shortcuts import PromptSession
from prompt_toolkit.styles import Style
from rich.panel import Panel

from dev_console.console import rendering
from dev_console.console.engine import DevConsole
from dev_console.console.key_bindings import get_gesture_key_bindings, get_key_bindings
from dev_console.console.registry import CommandRegistry
from dev_console.console.transcript import TranscriptEntry

logger = logging.getLogger(__name__)


class CommandCompleter(Completer):
    """Completes the command name (first word) from the registry."""

    def __init__(self, registry: CommandRegistry) -> None:
        self.registry = registry

    def get_completions(
        self, document: Document, complete_event: CompleteEvent
    ) -> Generator[Completion, None, None]:
        text = document.text_before_cursor
        if " " in text.lstrip() or not text.strip():
            return
        prefix = text.strip().lower()
        for cmd in self.registry:
            if cmd.name.lower().startswith(prefix):
                display = f"{cmd.name:<14} {cmd.description}"
                yield Completion(cmd.name, start_position=-len(text), display=display)


class CommandAutoSuggest(AutoSuggest):
    """Greys out the rest of the first command name matching the typed prefix."""

    def __init__(self, registry: CommandRegistry) -> None:
        self.registry = registry

    def get_suggestion(self, buffer: Buffer, document: Document) -> Optional[Suggestion]:
        text = document.text
        if not text or " " in text:
            return None
        for cmd in self.registry:
            name = cmd.name.lower()
            if name.startswith(text.lower()) and name != text.lower():
                return Suggestion(cmd.name[len(text) :])
        return None


class ReplConsole:
    """Interactive console: waits for the gesture, then runs a prompt loop.

    Each submitted line is dispatched in its own task so the prompt stays
    responsive while slow (network) commands are running. Outputs are printed
    as transcript entries are appended, in completion order.
    """

    style: Style = Style.from_dict(
        {
            "completion-menu": "noinherit",
            "completion-menu.completion": "noinherit",
            "completion-menu.completion.current": "noinherit bold",
            "scrollbar": "noinherit",
            "bottom-toolbar": "noreverse",
        }
    )

    engine: DevConsole
    prompt_session: Optional[PromptSession[str]]

    def __init__(self, engine: DevConsole) -> None:
        self.engine = engine
        self.prompt_session = None
        self._tasks: Set[asyncio.Task[Optional[TranscriptEntry]]] = set()

        engine.transcript.on_append(self._on_entry)
        engine.transcript.on_clear(self._on_clear)

    def _on_entry(self, entry: TranscriptEntry) -> None:
        if self._app_running():
            run_in_terminal(lambda: rendering.render_entry(entry))
        else:
            rendering.render_entry(entry)

    def _on_clear(self) -> None:
        if self._app_running():
            run_in_terminal(rendering.clear_terminal)
        else:
            rendering.clear_terminal()

    def _app_running(self) -> bool:
        """True while the prompt or the gesture listener is running."""
        app = get_app_or_none()
        return bool(app and app.is_running) or self._prompt_running()

    def _prompt_running(self) -> bool:
        return bool(
            self.prompt_session
            and self.prompt_session.app
            and self.prompt_session.app.is_running
        )

    def _bottom_toolbar(self) -> str:
        busy = len(self._tasks)
        status = f" {busy} running" if busy else ""
        return f" ESC to close • ↑↓ history • 'help' for commands{status}"

    def _build_prompt_session(self) -> PromptSession[str]:
        return PromptSession(
            message="› ",
            completer=CommandCompleter(self.engine.registry),
            auto_suggest=CommandAutoSuggest(self.engine.registry),
            style=self.style,
            complete_while_typing=True,
            key_bindings=get_key_bindings(self.engine),
            bottom_toolbar=self._bottom_toolbar,
        )

    async def _wait_for_gesture(self) -> bool:
        """Run a dormant application that feeds key presses to the detector.

        Returns True once the console opened, False if the user quit.
        """

        def on_quit(event: KeyPressEvent) -> None:
            event.app.exit(result=False)

        app: Application[bool] = Application(
            layout=Layout(Window(FormattedTextControl(""), height=1)),
            key_bindings=get_gesture_key_bindings(self.engine, on_quit),
            full_screen=False,
            erase_when_done=True,
        )
        rendering.render_closed_hint()
        return bool(await app.run_async())

    def _submit(self, line: str) -> None:
        task = asyncio.create_task(self.engine.submit(line))
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: "asyncio.Task[Optional[TranscriptEntry]]") -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Submission task failed: {task.exception()}")
        # A command such as 'exit' may have closed the console while the prompt was up
        if not self.engine.is_open and self._prompt_running():
            self.prompt_session.app.exit(result="")  # type: ignore[union-attr]

    async def run(self) -> None:
        """Interactive loop for the console interface."""
        rendering.console.print(
            Panel(
                "[bold cyan]╭─ DEVELOPER CONSOLE ─╮[/bold cyan]\n\n"
                f"[dim]Data directory:[/dim] [dim cyan]{self.engine.config.data_dir}[/dim cyan]",
                expand=False,
            )
        )
        self.prompt_session = self._build_prompt_session()

        try:
            while True:
                if not self.engine.is_open:
                    if not await self._wait_for_gesture():
                        break
                    continue

                logger.info("Prompting user...")
                user_input = await self.prompt_session.prompt_async()
                if not user_input.strip():
                    continue
                self._submit(user_input)
                # let the task start so quick commands render before the next prompt
                await asyncio.sleep(0)
        except (KeyboardInterrupt, EOFError):
            pass
        finally:
            await self._shutdown()

    async def _shutdown(self) -> None:
        pending: List[asyncio.Task[Optional[TranscriptEntry]]] = list(self._tasks)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
