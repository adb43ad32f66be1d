"""Tests for logging helpers."""

import logging

from pydantic import SecretStr
from rich.logging import RichHandler

from watermark_relay.log import configure_logging, redact


def test_redact_long_key():
    assert redact("sk-1234567890abcd") == "sk-1...abcd"


def test_redact_short_and_empty():
    assert redact("short") == "****"
    assert redact("") == "<unset>"
    assert redact(None) == "<unset>"


def test_redact_secret_str():
    assert redact(SecretStr("sk-1234567890abcd")) == "sk-1...abcd"


def test_configure_logging_installs_rich_handler():
    configure_logging(logging.DEBUG)
    logger = logging.getLogger("watermark_relay")
    assert logger.level == logging.DEBUG
    assert any(isinstance(handler, RichHandler) for handler in logger.handlers)
    assert logger.propagate is False
    logger.propagate = True
    logger.handlers.clear()
