"""Tests for logging configuration."""

import logging

from loguru import logger

from rangeserve.log import InterceptHandler


def test_intercept_handler_forwards_stdlib_records():
    messages = []
    sink_id = logger.add(messages.append, format="{level} {message}")
    std_logger = logging.getLogger("rangeserve.tests.intercept")
    std_logger.addHandler(InterceptHandler())
    std_logger.propagate = False
    std_logger.setLevel(logging.INFO)
    try:
        std_logger.warning("hello %s", "world")
    finally:
        logger.remove(sink_id)
        std_logger.handlers.clear()

    assert any("WARNING hello world" in str(m) for m in messages)
