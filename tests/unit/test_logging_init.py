from __future__ import annotations

import logging

from review_engine.logging.init import (
    LOGGER_NAME,
    SUMMARY_LEVEL,
    LabeledFormatter,
    get_logger,
    log_summary,
    reset_logging,
    setup_logging,
)


def _record(level: int, msg: str) -> logging.LogRecord:
    return logging.LogRecord("review_engine", level, __file__, 1, msg, None, None)


def test_labeled_formatter():
    fmt = LabeledFormatter()
    assert fmt.format(_record(logging.INFO, "hello")) == "INFO hello"
    assert fmt.format(_record(logging.WARNING, "careful")) == "WARN careful"
    assert fmt.format(_record(SUMMARY_LEVEL, "sheet=S")) == "SUMMARY sheet=S"


def test_setup_logging_is_idempotent():
    reset_logging()
    first = setup_logging()
    second = setup_logging()
    assert first is second
    assert first.name == LOGGER_NAME
    assert len(first.handlers) == 1
    assert first.propagate is False
    assert first.level == logging.INFO


def test_debug_can_be_enabled_later():
    reset_logging()
    logger = setup_logging()
    setup_logging(debug=True)
    assert logger.level == logging.DEBUG
    assert logger.handlers[0].level == logging.DEBUG


def test_output_goes_to_stdout(capsys):
    reset_logging()
    logger = setup_logging()
    logger.info("starting")
    log_summary("sheet=S rows=1")
    logger.debug("hidden")
    out = capsys.readouterr().out
    assert "INFO starting" in out
    assert "SUMMARY sheet=S rows=1" in out
    assert "hidden" not in out


def test_service_loggers_share_handler(capsys):
    reset_logging()
    setup_logging(debug=True)
    logging.getLogger("review_engine.services.pipeline").debug("child message")
    assert "DEBUG child message" in capsys.readouterr().out


def test_get_logger_initializes():
    reset_logging()
    assert get_logger().name == LOGGER_NAME


def test_reset_logging_removes_handlers():
    reset_logging()
    logger = setup_logging()
    reset_logging()
    assert logger.handlers == []
