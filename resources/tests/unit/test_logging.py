"""
Unit tests for logging setup.
"""

import json
import logging

import pytest
from pythonjsonlogger.json import JsonFormatter

from tuberank.utils.config import TubeRankSettings
from tuberank.utils.errors import ConfigurationError
from tuberank.utils.logging import configure_from_settings, configure_root_logging, setup_logging


@pytest.fixture
def restore_logging():
    """Put the root and package loggers back the way they were."""
    saved = {}
    for name in (None, "tuberank"):
        logger = logging.getLogger(name)
        saved[name] = (logger.level, list(logger.handlers), logger.propagate)
    yield
    for name, (level, handlers, propagate) in saved.items():
        logger = logging.getLogger(name)
        for handler in logger.handlers:
            if handler not in handlers:
                handler.close()
        logger.setLevel(level)
        logger.handlers[:] = handlers
        logger.propagate = propagate


def test_setup_logging_text_handler():
    logger = setup_logging("tuberank.tests.text", level="debug")
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1
    assert not isinstance(logger.handlers[0].formatter, JsonFormatter)

    # Second call does not stack handlers
    assert setup_logging("tuberank.tests.text") is logger
    assert len(logger.handlers) == 1


def test_setup_logging_structured_file(tmp_path):
    log_file = tmp_path / "logs" / "tuberank.log"
    logger = setup_logging("tuberank.tests.json", structured=True, log_file=log_file)
    logger.propagate = False
    try:
        logger.info("graph built", extra={"node_count": 5})
        for handler in logger.handlers:
            handler.flush()

        record = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert record["message"] == "graph built"
        assert record["levelname"] == "INFO"
        assert record["node_count"] == 5
    finally:
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()


def test_unknown_level_is_a_configuration_error():
    with pytest.raises(ConfigurationError, match="Unknown log level"):
        setup_logging("tuberank.tests.bad", level="chatty")
    with pytest.raises(ConfigurationError):
        configure_root_logging(level="chatty")


def test_configure_root_logging(restore_logging, tmp_path):
    log_file = tmp_path / "root.log"
    configure_root_logging(level="warning", structured=True, log_file=log_file)

    package_logger = logging.getLogger("tuberank")
    assert package_logger.level == logging.WARNING
    assert package_logger.propagate is False
    assert any(isinstance(h, logging.FileHandler) for h in package_logger.handlers)
    assert all(isinstance(h.formatter, JsonFormatter) for h in package_logger.handlers)


def test_configure_from_settings(restore_logging):
    configure_from_settings(TubeRankSettings(_env_file=None, log_level="ERROR"))
    assert logging.getLogger("tuberank").level == logging.ERROR
    assert logging.getLogger().level == logging.ERROR
