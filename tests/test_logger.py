"""Tests for logging setup and command redaction."""

import logging

from aiterm.logger import get_logger, redact, setup_logger


def test_redacts_secrets():
    assert redact("curl --token abc123 https://x") == "curl --token *** https://x"
    assert redact("API_KEY=sk-live-1 ./deploy") == "API_KEY=*** ./deploy"
    assert "s3cr3t" not in redact("curl -H 'Authorization: Bearer s3cr3t' x")


def test_clips_long_commands():
    clipped = redact("x" * 500, limit=10)
    assert clipped == "x" * 10 + "…"


def test_plain_commands_untouched():
    assert redact("ls -la") == "ls -la"


def test_setup_logger_levels(tmp_path):
    logger = setup_logger("aiterm-test", verbose=True, log_file=tmp_path / "a.log")
    assert logger.level == logging.INFO
    assert any(h.__class__.__name__ == "RotatingFileHandler" for h in logger.handlers)

    logger = setup_logger("aiterm-test", verbose=False, log_file="")
    assert logger.level == logging.WARNING
    assert len(logger.handlers) == 1
    assert get_logger("aiterm-test") is logger
