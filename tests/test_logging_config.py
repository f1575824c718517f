"""
Tests for loguru configuration.
"""

import logging
import sys

import pytest
from loguru import logger

from cachebench.logging_config import InterceptHandler, configure_logging


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    level = root.level
    yield
    logger.remove()
    logger.add(sys.stderr)
    for handler in [h for h in root.handlers if isinstance(h, InterceptHandler)]:
        root.removeHandler(handler)
    root.setLevel(level)


def test_file_sink_receives_debug(tmp_path):
    sink = tmp_path / "logs" / "benchmark.log"
    configure_logging("WARNING", json_format=False, sink=sink)
    logger.debug("scenario finished")
    logger.complete()
    assert "scenario finished" in sink.read_text()


def test_stdlib_records_forwarded(tmp_path):
    sink = tmp_path / "benchmark.log"
    configure_logging("DEBUG", json_format=False, sink=sink)
    logging.getLogger("redis.connection").warning("socket closed")
    logger.complete()
    assert "socket closed" in sink.read_text()


def test_json_format(tmp_path):
    sink = tmp_path / "benchmark.log"
    configure_logging("INFO", json_format=True, sink=sink)
    logger.info("hello")
    logger.complete()
    line = [l for l in sink.read_text().splitlines() if "hello" in l][0]
    assert line.startswith('{"timestamp": ')
    assert '"level": "INFO"' in line
