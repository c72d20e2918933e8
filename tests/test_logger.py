"""
Tests for logging setup and the deduplication filter
"""
import logging

import pytest

from infrastructure.logging.logger import DeduplicationFilter, setup_logging


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def record(message, level=logging.INFO, name="core.services.bridge"):
    return logging.LogRecord(name, level, __file__, 1, message, None, None)


class TestDeduplicationFilter:

    def test_repeats_dropped_after_limit(self):
        dedup = DeduplicationFilter(window=60, max_repeats=3, clock=FakeClock())

        passed = [dedup.filter(record("🔎 Found 0 claim transfers")) for _ in range(5)]

        assert passed == [True, True, True, False, False]

    def test_warnings_always_pass(self):
        dedup = DeduplicationFilter(window=60, max_repeats=1, clock=FakeClock())

        assert all(dedup.filter(record("rpc slow", logging.WARNING)) for _ in range(5))
        assert all(dedup.filter(record("rpc down", logging.ERROR)) for _ in range(5))

    def test_window_expiry_lets_message_through(self):
        clock = FakeClock()
        dedup = DeduplicationFilter(window=60, max_repeats=1, clock=clock)

        assert dedup.filter(record("tick"))
        assert not dedup.filter(record("tick"))

        clock.now += 60
        assert dedup.filter(record("tick"))

    def test_same_message_from_other_logger_is_separate(self):
        dedup = DeduplicationFilter(window=60, max_repeats=1, clock=FakeClock())

        assert dedup.filter(record("started", name="workers"))
        assert dedup.filter(record("started", name="api_only"))


class TestSetupLogging:

    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_repeat_calls_keep_one_handler(self):
        root = logging.getLogger()
        before = len(root.handlers)

        setup_logging("workers", level="DEBUG")
        setup_logging("workers", level="DEBUG")

        assert len(root.handlers) == before + 1
        assert root.level == logging.DEBUG
        [dedup] = root.handlers[-1].filters
        assert isinstance(dedup, DeduplicationFilter)

    def test_noisy_loggers_lowered(self):
        setup_logging("workers", level="DEBUG")

        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
        assert logging.getLogger("web3").level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        logger = setup_logging("workers", level="chatty", enable_deduplication=False)

        assert logger.name == "workers"
        assert logging.getLogger().level == logging.INFO
        assert logging.getLogger().handlers[-1].filters == []
