import logging

import pytest

from vocab_drill.config import DEFAULT_LOG_DIR, Config
from vocab_drill.db import DEFAULT_DB_PATH
from vocab_drill.logging_config import setup_logging

ENV_VARS = [
    "VOCAB_DRILL_DB_PATH", "VOCAB_DRILL_USER", "VOCAB_DRILL_DISPLAY_NAME", "VOCAB_DRILL_LOG_LEVEL",
    "VOCAB_DRILL_LOG_DIR", "VOCAB_DRILL_CORRECT_DELAY", "VOCAB_DRILL_INCORRECT_DELAY",
    "VOCAB_DRILL_DEFAULT_TIER", "VOCAB_DRILL_DEFAULT_COUNT",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # keep a developer's .env out of the tests
    monkeypatch.setattr("vocab_drill.config.load_dotenv", lambda: False)
    return monkeypatch


@pytest.fixture
def restore_logger():
    logger = logging.getLogger("vocab_drill")
    saved = (logger.level, list(logger.handlers), logger.propagate)
    yield
    for handler in logger.handlers:
        handler.close()
    logger.setLevel(saved[0])
    logger.handlers[:] = saved[1]
    logger.propagate = saved[2]


def test_defaults(clean_env):
    config = Config.from_env()
    assert config.db_path == DEFAULT_DB_PATH
    assert config.user_id == "local"
    assert config.log_dir == DEFAULT_LOG_DIR
    assert config.correct_delay == 1.0
    assert config.incorrect_delay == 1.5
    assert config.default_tier == 4
    assert config.default_count == 10


def test_values_from_environment(clean_env, tmp_path):
    clean_env.setenv("VOCAB_DRILL_DB_PATH", str(tmp_path / "v.db"))
    clean_env.setenv("VOCAB_DRILL_USER", "kid")
    clean_env.setenv("VOCAB_DRILL_CORRECT_DELAY", "0")
    clean_env.setenv("VOCAB_DRILL_DEFAULT_TIER", "6")
    clean_env.setenv("VOCAB_DRILL_DEFAULT_COUNT", "30")
    config = Config.from_env()
    assert config.db_path == str(tmp_path / "v.db")
    assert config.user_id == "kid"
    assert config.correct_delay == 0.0
    assert config.default_tier == 6
    assert config.default_count == 30


def test_invalid_number_falls_back(clean_env, caplog):
    clean_env.setenv("VOCAB_DRILL_INCORRECT_DELAY", "slow")
    clean_env.setenv("VOCAB_DRILL_DEFAULT_TIER", "4.5")
    with caplog.at_level(logging.WARNING, logger="vocab_drill.config"):
        config = Config.from_env()
    assert config.incorrect_delay == 1.5
    assert config.default_tier == 4
    assert "VOCAB_DRILL_INCORRECT_DELAY" in caplog.text


def test_setup_logging_console_only(restore_logger):
    logger = setup_logging("DEBUG")
    assert logger.name == "vocab_drill"
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1
    assert logger.handlers[0].level == logging.WARNING


def test_setup_logging_writes_file(restore_logger, tmp_path):
    log_dir = tmp_path / "logs"
    logger = setup_logging("info", str(log_dir))
    assert len(logger.handlers) == 2
    logging.getLogger("vocab_drill.store").info("hello from the store")
    for handler in logger.handlers:
        handler.flush()
    text = (log_dir / "vocab_drill.log").read_text(encoding="utf-8")
    assert "hello from the store" in text
    assert "vocab_drill.store" in text


def test_setup_logging_is_repeatable(restore_logger, tmp_path):
    setup_logging("INFO", str(tmp_path))
    logger = setup_logging("WARNING", str(tmp_path))
    assert len(logger.handlers) == 2
    assert logger.level == logging.WARNING
