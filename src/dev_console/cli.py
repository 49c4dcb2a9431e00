import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional

import typer
from typing_extensions import Annotated

from dev_console.console.console import Console, HeadlessConsole, ReplConsole
from dev_console.console.engine import DevConsole
from dev_console.console.storage import JsonFileStore
from dev_console.logger import setup_logging
from dev_console.runtime_config import DATA_DIR_ENV, RuntimeConfig, get_data_dir, load_envs

# Global factory functions - set by create_app()
_engine_factory: Optional[Callable[[RuntimeConfig], DevConsole]] = None
_console_factory: Optional[Callable[[DevConsole, Optional[str]], Console]] = None


def default_engine_factory(config: RuntimeConfig) -> DevConsole:
    """Default factory for creating DevConsole engines backed by the JSON store."""
    return DevConsole(config, JsonFileStore(config.store_path))


def default_console_factory(engine: DevConsole, command: Optional[str]) -> Console:
    """Default factory for creating Console front-ends."""
    if command:
        return HeadlessConsole(engine, command)
    else:
        return ReplConsole(engine)


def reset(
    data_dir: Annotated[
        Optional[Path],
        typer.Option("--data-dir", envvar=DATA_DIR_ENV, help="Directory holding the console store"),
    ] = None,
) -> None:
    """Remove all persisted console state (hangman game, reopen flag, storage)."""
    store = JsonFileStore((data_dir or get_data_dir()) / "store.json")
    if not store.keys():
        typer.echo("No persisted console state found.")
        return

    if typer.confirm("Are you sure you want to remove all persisted console state?"):
        store.clear()
        typer.echo("✅ Console state cleared.")
    else:
        typer.echo("Reset cancelled.")


def create_app(
    engine_factory: Optional[Callable[[RuntimeConfig], DevConsole]] = None,
    console_factory: Optional[Callable[[DevConsole, Optional[str]], Console]] = None,
) -> typer.Typer:
    """
    Create and configure the Typer application.

    Args:
        engine_factory: Factory function to create DevConsole engines
        console_factory: Factory function to create Console front-ends

    Returns:
        Typer application
    """
    # Load settings from .env if not already set in the environment
    load_envs()

    def main(
        ctx: typer.Context,
        open_console: Annotated[
            bool,
            typer.Option(
                "--open",
                "-o",
                help="Open the console immediately instead of waiting for the key gesture",
            ),
        ] = False,
        data_dir: Annotated[
            Optional[Path],
            typer.Option(
                "--data-dir",
                envvar=DATA_DIR_ENV,
                help="Directory for the persistent store and log file",
            ),
        ] = None,
        threshold: Annotated[
            float,
            typer.Option(
                "--threshold",
                min=0.0,
                max=1.0,
                help="Fuzzy match score below which a command suggestion is shown",
            ),
        ] = 0.6,
        command: Annotated[
            Optional[str],
            typer.Option(
                "--command",
                "-c",
                help="Run a single console command non-interactively and print its output",
            ),
        ] = None,
    ) -> None:
        """DEVELOPER CONSOLE - keyboard-activated command console"""
        if ctx.invoked_subcommand is not None:
            return

        cfg = RuntimeConfig(
            data_dir=data_dir or get_data_dir(),
            start_open=open_console,
            fuzzy_threshold=threshold,
        )
        setup_logging(cfg.log_path)
        logger = logging.getLogger(__name__)
        if command:
            logger.info(f"Running command in headless mode: {command}")
        else:
            logger.info(f"Starting interactive console with data dir {cfg.data_dir}")

        try:
            factory = _engine_factory or default_engine_factory
            console_fact = _console_factory or default_console_factory
            engine = factory(cfg)
            console = console_fact(engine, command)
            asyncio.run(console.run())
        except KeyboardInterrupt:
            print("\nExiting...")

    # Set global factory functions
    global _engine_factory, _console_factory
    _engine_factory = engine_factory
    _console_factory = console_factory

    app = typer.Typer(rich_markup_mode=None)
    app.callback(invoke_without_command=True)(main)
    app.command("reset")(reset)

    return app


# Create default app instance
app = create_app()


if __name__ == "__main__":
    app()
