from typing import Callable

from prompt_toolkit.document import Document
from prompt_toolkit.filters import completion_is_selected, has_completions
from prompt_toolkit.key_binding import KeyBindings, KeyPressEvent
from prompt_toolkit.keys import Keys

from dev_console.console.engine import DevConsole


def key_identifier(event: KeyPressEvent) -> str:
    """Normalize the first key of a key press to a lowercase identifier."""
    key = event.key_sequence[0].key
    if isinstance(key, Keys):
        return key.value.lower()
    return str(key).lower()


def _show(event: KeyPressEvent, text: str) -> None:
    event.current_buffer.document = Document(text, cursor_position=len(text))


def get_key_bindings(engine: DevConsole) -> KeyBindings:
    """Return the KeyBindings used while the console prompt is open."""
    kb = KeyBindings()

    @kb.add(Keys.Up)
    def _(event: KeyPressEvent) -> None:
        """Recall the previous (older) submitted line."""
        line = engine.recall_previous()
        if line is not None:
            _show(event, line)

    @kb.add(Keys.Down)
    def _(event: KeyPressEvent) -> None:
        """Recall the next (newer) line; clears the input past the newest."""
        line = engine.recall_next()
        if line is not None:
            _show(event, line)

    @kb.add(Keys.Escape, eager=True)
    def _(event: KeyPressEvent) -> None:
        """Close the console on ESC."""
        engine.close()
        event.app.exit(result="")

    @kb.add(Keys.Enter, filter=has_completions)
    def _(event: KeyPressEvent) -> None:
        buffer = event.current_buffer
        state = buffer.complete_state

        if not completion_is_selected():  # user never arrowed/tabbed
            state.complete_index = state.complete_index or 0  # type: ignore
        buffer.apply_completion(state.current_completion)  # type: ignore
        buffer.cancel_completion()
        buffer.validate_and_handle()

    @kb.add(Keys.Tab)
    def _(event: KeyPressEvent) -> None:
        buffer = event.current_buffer
        suggestion = buffer.suggestion
        if suggestion:
            buffer.insert_text(suggestion.text)
        else:
            buffer.complete_next()

    return kb


def get_gesture_key_bindings(
    engine: DevConsole, on_quit: Callable[[KeyPressEvent], None]
) -> KeyBindings:
    """Return the KeyBindings used while the console is closed.

    Every key press is fed to the gesture detector; Ctrl+C and Ctrl+D call
    ``on_quit``.
    """
    kb = KeyBindings()

    def feed(event: KeyPressEvent) -> None:
        if engine.handle_key(key_identifier(event)):
            event.app.exit(result=True)

    for key in (Keys.Up, Keys.Down, Keys.Left, Keys.Right, Keys.Any):
        kb.add(key)(feed)

    kb.add("c-c")(on_quit)
    kb.add("c-d")(on_quit)

    return kb
