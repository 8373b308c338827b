"""Runtime configuration from the environment (and a ``.env`` file if present)."""
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from vocab_drill.db import DEFAULT_DB_PATH

logger = logging.getLogger(__name__)

DEFAULT_LOG_DIR = str(Path.home() / ".vocab_drill" / "logs")


def _env_number(name: str, default, cast):
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %r", name, raw, default)
        return default


@dataclass
class Config:
    db_path: str = DEFAULT_DB_PATH
    user_id: str = "local"
    display_name: str = "User"
    log_level: str = "INFO"
    log_dir: str = DEFAULT_LOG_DIR
    correct_delay: float = 1.0
    incorrect_delay: float = 1.5
    default_tier: int = 4
    default_count: int = 10

    @classmethod
    def from_env(cls) -> "Config":
        load_dotenv()
        return cls(
            db_path=os.environ.get("VOCAB_DRILL_DB_PATH") or DEFAULT_DB_PATH,
            user_id=os.environ.get("VOCAB_DRILL_USER") or "local",
            display_name=os.environ.get("VOCAB_DRILL_DISPLAY_NAME") or "User",
            log_level=os.environ.get("VOCAB_DRILL_LOG_LEVEL") or "INFO",
            log_dir=os.environ.get("VOCAB_DRILL_LOG_DIR") or DEFAULT_LOG_DIR,
            correct_delay=_env_number("VOCAB_DRILL_CORRECT_DELAY", 1.0, float),
            incorrect_delay=_env_number("VOCAB_DRILL_INCORRECT_DELAY", 1.5, float),
            default_tier=_env_number("VOCAB_DRILL_DEFAULT_TIER", 4, int),
            default_count=_env_number("VOCAB_DRILL_DEFAULT_COUNT", 10, int),
        )
