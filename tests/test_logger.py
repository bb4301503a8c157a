"""Tests for the project logger."""

import logging
import os

import pytest

from aptos_ai_agent.utils import logger as logger_module
from aptos_ai_agent.utils.logger import NOISY_LOGGERS, get_logger, resolve_level, setup_logging


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, logging.INFO),
        ("", logging.INFO),
        ("debug", logging.DEBUG),
        (" WARNING ", logging.WARNING),
        ("10", 10),
        (logging.ERROR, logging.ERROR),
        ("chatty", logging.INFO),
    ],
)
def test_resolve_level(value, expected):
    assert resolve_level(value) == expected


def test_log_file_lands_in_configured_dir():
    path = setup_logging()

    assert path.parent == logger_module.LOG_DIR
    assert str(logger_module.LOG_DIR) == os.environ["APTOS_AGENT_LOG_DIR"]
    assert path.name.startswith("aptos_ai_agent_log_")
    assert setup_logging() == path


def test_http_client_loggers_held_at_warning():
    get_logger(__name__)

    for name in NOISY_LOGGERS:
        assert logging.getLogger(name).level >= logging.WARNING
