"""
Runtime configuration for the developer console.

This module provides:
- load_envs(): load DEV_CONSOLE_DATA_DIR, DEV_CONSOLE_TRIVIA_API_URL and
  DEV_CONSOLE_WEATHER_API_URL from a .env file if they are not already
  present in the environment.
- RuntimeConfig: a dataclass holding runtime settings.
- get_config_dir() / get_data_dir(): XDG locations for the console's files.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values

# Environment variable names
DATA_DIR_ENV: str = "DEV_CONSOLE_DATA_DIR"
TRIVIA_API_URL_ENV: str = "DEV_CONSOLE_TRIVIA_API_URL"
WEATHER_API_URL_ENV: str = "DEV_CONSOLE_WEATHER_API_URL"

DEFAULT_TRIVIA_API_URL: str = "https://opentdb.com/api.php"
DEFAULT_WEATHER_API_URL: str = "https://wttr.in"


def load_envs(env_file: Optional[str] = None) -> None:
    """
    Load the console's environment variables from a .env file into the
    process environment if they are not already set.
    """
    env_values = dotenv_values(env_file) if env_file else dotenv_values()
    for key in (DATA_DIR_ENV, TRIVIA_API_URL_ENV, WEATHER_API_URL_ENV):
        if not os.environ.get(key):
            val = env_values.get(key)
            if val:
                os.environ[key] = str(val)


def get_config_dir() -> Path:
    """
    Return the dev console config directory under XDG_CONFIG_HOME or fallback to ~/.config.
    """
    config_home = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return config_home / "dev_console"


def get_data_dir() -> Path:
    """
    Return the dev console data directory. DEV_CONSOLE_DATA_DIR wins, then
    XDG_DATA_HOME, then ~/.local/share.
    """
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return Path(override)
    data_home = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local/share"))
    return data_home / "dev_console"


@dataclass(frozen=True)
class RuntimeConfig:
    """
    Holds runtime configuration for the developer console.

    Attributes:
        data_dir: Directory for the persistent store and the log file.
        start_open: Open the console immediately instead of waiting for the gesture.
        fuzzy_threshold: Similarity score below which a "did you mean" suggestion is made.
        history_limit: Number of submitted lines kept in the recall history.
        request_timeout: Timeout in seconds for third-party HTTP requests.
        trivia_api_url: Endpoint of the Open Trivia DB compatible question service.
        weather_api_url: Base URL of the wttr.in compatible weather service.
    """

    data_dir: Path = field(default_factory=get_data_dir)
    start_open: bool = False
    fuzzy_threshold: float = 0.6
    history_limit: int = 50
    request_timeout: float = 10.0
    trivia_api_url: str = field(
        default_factory=lambda: os.environ.get(TRIVIA_API_URL_ENV) or DEFAULT_TRIVIA_API_URL
    )
    weather_api_url: str = field(
        default_factory=lambda: os.environ.get(WEATHER_API_URL_ENV) or DEFAULT_WEATHER_API_URL
    )

    @property
    def store_path(self) -> Path:
        return self.data_dir / "store.json"

    @property
    def log_path(self) -> Path:
        return self.data_dir / "dev_console.log"
