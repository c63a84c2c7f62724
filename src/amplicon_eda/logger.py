# ===================================== IMPORTS ====================================== #

# Standard Library
from datetime import datetime
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Union

# 3rd‑party (Rich)
from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

# ========================== INITIALIZATION & CONFIGURATION ========================== #

LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3

CONSOLE_THEME = Theme({
    "logging.level.info": "bold white",
    "logging.level.debug": "dim cyan",
    "logging.level.warning": "bold yellow",
    "logging.level.error": "bold red",
})

# ==================================== FUNCTIONS ===================================== #

def setup_logging(log_dir_path: Union[str, Path]) -> logging.Logger:
    """
    Attach handlers to the 'amplicon_eda' logger: a rotating DEBUG log file in
    `log_dir_path` (one per run, named by start time) and an INFO Rich console.
    Handlers from an earlier call are replaced.
    """
    log_dir_path = Path(log_dir_path)
    log_dir_path.mkdir(parents=True, exist_ok=True)
    log_file_path = log_dir_path / datetime.now().strftime("amplicon_eda_%Y-%m-%d_%H%M%S.log")

    logger = logging.getLogger("amplicon_eda")
    logger.setLevel(logging.DEBUG)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    file_handler = RotatingFileHandler(
        filename=log_file_path,
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)-8s %(module)s.%(funcName)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    logger.addHandler(file_handler)

    console_handler = RichHandler(
        console=Console(theme=CONSOLE_THEME),
        level=logging.INFO,
        rich_tracebacks=True,
        show_path=False,
        markup=False,
        log_time_format="[%X]",
    )
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    logger.info(f"Logging to {log_file_path}")
    return logger
