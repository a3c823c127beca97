#!/usr/bin/env python3
"""Tests for the Logger module."""

import logging
import logging.handlers
import threading
from unittest.mock import patch

import pytest

from filteredfs.infrastructure.logger import LogLevel, Logger, get_logger, set_global_logger


class ListHandler(logging.Handler):
    """Collects formatted messages."""

    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)

    @property
    def messages(self):
        return [r.getMessage() for r in self.records]


@pytest.fixture
def handler():
    return ListHandler()


class TestLogLevel:
    """Tests for LogLevel enum."""

    def test_log_levels(self):
        """Log level values match Python logging."""
        assert LogLevel.DEBUG == logging.DEBUG
        assert LogLevel.INFO == logging.INFO
        assert LogLevel.ERROR == logging.ERROR


class TestLogger:
    """Tests for Logger."""

    def test_level_from_string(self, handler):
        logger = Logger("filteredfs.t1", level="debug", handlers=[handler])
        assert logger.get_level() == LogLevel.DEBUG

    def test_messages_below_level_dropped(self, handler):
        logger = Logger("filteredfs.t2", level=LogLevel.INFO, handlers=[handler])
        logger.debug("hidden")
        logger.info("shown")
        assert handler.messages == ["shown"]

    def test_context_formatting(self, handler):
        logger = Logger("filteredfs.t3", level=LogLevel.DEBUG, handlers=[handler])
        logger.debug("translate", path="/a", real_path="/srv/a")
        assert handler.messages == ["translate | path=/a real_path=/srv/a"]
        assert handler.records[0].context == {"path": "/a", "real_path": "/srv/a"}

    def test_add_context(self, handler):
        logger = Logger("filteredfs.t4", level=LogLevel.DEBUG, handlers=[handler])
        with logger.add_context(op="getattr"):
            logger.info("inside", path="/x")
        logger.info("outside")
        assert handler.messages == ["inside | op=getattr path=/x", "outside"]

    def test_context_is_thread_local(self, handler):
        logger = Logger("filteredfs.t5", level=LogLevel.DEBUG, handlers=[handler])

        def worker():
            logger.info("worker")

        with logger.add_context(op="readdir"):
            t = threading.Thread(target=worker)
            t.start()
            t.join()

        assert handler.messages == ["worker"]

    def test_exception_logs_type(self, handler):
        logger = Logger("filteredfs.t6", handlers=[handler])
        logger.exception("failed", ValueError("bad"))
        assert "exception_type=ValueError" in handler.messages[0]

    def test_does_not_propagate(self, handler):
        logger = Logger("filteredfs.t7", handlers=[handler])
        assert logger.logger.propagate is False

    def test_file_handler(self, tmp_path):
        logger = Logger("filteredfs.t8", handlers=[])
        log_file = tmp_path / "fs.log"
        file_handler = logger.create_file_handler(log_file)
        logger.add_handler(file_handler)
        logger.info("to file")
        file_handler.close()
        assert "to file" in log_file.read_text()

    def test_syslog_handler_missing_socket(self):
        logger = Logger("filteredfs.t9", handlers=[])
        assert logger.create_syslog_handler(address="/nonexistent/log") is None

    def test_syslog_handler_uses_daemon_facility(self):
        logger = Logger("filteredfs.t10", handlers=[])
        log_daemon = logging.handlers.SysLogHandler.LOG_DAEMON
        with patch("filteredfs.infrastructure.logger.os.path.exists", return_value=True), patch(
            "logging.handlers.SysLogHandler"
        ) as syslog_cls:
            syslog_cls.LOG_DAEMON = log_daemon
            logger.create_syslog_handler()
        _, kwargs = syslog_cls.call_args
        assert kwargs["address"] == "/dev/log"
        assert kwargs["facility"] == log_daemon


class TestGlobalLogger:
    """Tests for global logger helpers."""

    def test_set_and_get(self):
        logger = Logger("filteredfs", handlers=[])
        set_global_logger(logger)
        assert get_logger() is logger
