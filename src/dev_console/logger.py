import logging
from pathlib import Path
from typing import Optional

from dev_console.runtime_config import get_data_dir

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_file: Optional[Path] = None, level: int = logging.INFO) -> None:
    """Send package logs to a file so they never interleave with the console."""
    log_file = log_file or get_data_dir() / "dev_console.log"
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger("dev_console")
    root.setLevel(level)
    for handler in list(root.handlers):
        if isinstance(handler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()

    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(file_handler)
    root.propagate = False
