import logging

from volam.core import logger as logger_module
from volam.core.logger import get_logger


def test_logger_writes_to_stdout_without_propagation(capsys):
    logger = get_logger("volam.tests.stdout")
    logger.info("[Test] hello")

    out = capsys.readouterr().out
    assert "[INFO] [volam.tests.stdout] → [Test] hello" in out
    assert logger.propagate is False


def test_logger_is_configured_once():
    first = get_logger("volam.tests.once")
    second = get_logger("volam.tests.once")
    assert first is second
    assert len(second.handlers) == 1


def test_level_follows_settings(monkeypatch):
    monkeypatch.setattr(logger_module.settings, "LOG_LEVEL", "debug")
    assert get_logger("volam.tests.debug").level == logging.DEBUG

    monkeypatch.setattr(logger_module.settings, "LOG_LEVEL", "not-a-level")
    assert get_logger("volam.tests.fallback").level == logging.INFO
