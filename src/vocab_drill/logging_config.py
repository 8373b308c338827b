"""Logging setup: rich console output plus a rotating log file."""
import logging
import logging.handlers
import os
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(
    log_level: str = "INFO",
    log_dir: Optional[str] = None,
    console: Optional[Console] = None,
) -> logging.Logger:
    """Configure the ``vocab_drill`` logger and return it.

    Console output only shows warnings and above so it doesn't interrupt a
    quiz; the file gets everything at ``log_level``.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger("vocab_drill")
    logger.setLevel(level)
    logger.handlers.clear()
    logger.propagate = False

    console_handler = RichHandler(console=console, show_path=False, rich_tracebacks=True)
    console_handler.setLevel(max(level, logging.WARNING))
    logger.addHandler(console_handler)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, "vocab_drill.log"),
            maxBytes=1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
        ))
        logger.addHandler(file_handler)

    return logger
