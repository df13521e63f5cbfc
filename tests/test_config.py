"""
Tests for configuration helpers and logger setup
"""

import logging
import os

import pytest

from sales_warehouse.config import env_flag
from sales_warehouse.utils.logger import resolve_level, setup_logger


@pytest.mark.parametrize("raw, expected", [
    ("1", True),
    ("true", True),
    (" Yes ", True),
    ("on", True),
    ("0", False),
    ("no", False),
    ("", False),
])
def test_env_flag(monkeypatch, raw, expected):
    monkeypatch.setenv("WAREHOUSE_TEST_FLAG", raw)
    assert env_flag("WAREHOUSE_TEST_FLAG") is expected


def test_env_flag_default(monkeypatch):
    monkeypatch.delenv("WAREHOUSE_TEST_FLAG", raising=False)
    assert env_flag("WAREHOUSE_TEST_FLAG") is False
    assert env_flag("WAREHOUSE_TEST_FLAG", default=True) is True


def test_setup_logger_writes_file(tmp_path):
    logger = setup_logger("warehouse test", level="debug", log_dir=str(tmp_path))
    logger.debug("debug line")
    for handler in logger.handlers:
        handler.flush()

    log_path = tmp_path / "warehouse_test.log"
    assert os.path.exists(log_path)
    assert "debug line" in log_path.read_text(encoding="utf-8")
    assert logger.level == logging.DEBUG


def test_setup_logger_replaces_handlers(tmp_path):
    setup_logger("warehouse_repeat", log_dir=str(tmp_path))
    logger = setup_logger("warehouse_repeat", log_file="other.log", log_dir=str(tmp_path))

    assert len(logger.handlers) == 2
    assert os.path.exists(tmp_path / "other.log")


@pytest.mark.parametrize("raw, expected", [
    (logging.WARNING, logging.WARNING),
    ("warning", logging.WARNING),
    (" Error ", logging.ERROR),
])
def test_resolve_level(raw, expected):
    assert resolve_level(raw) == expected


def test_resolve_level_rejects_unknown_names():
    with pytest.raises(ValueError, match="Unknown logging level"):
        resolve_level("chatty")


def test_setup_logger_without_console(tmp_path):
    logger = setup_logger("warehouse_quiet", log_dir=str(tmp_path), console=False)

    assert [type(handler) for handler in logger.handlers] == [logging.FileHandler]
