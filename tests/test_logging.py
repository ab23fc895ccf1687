"""Tests for the scheduler log buffer.

The logger records structured entries stamped with the virtual clock,
so identical runs produce identical logs.
"""

from cfs_sim.logging import LogEntry, Logger, LogLevel


class TestLogLevel:
    """Verify log level ordering."""

    def test_levels_are_ordered(self) -> None:
        """DEBUG < INFO < WARNING < ERROR."""
        assert LogLevel.DEBUG < LogLevel.INFO
        assert LogLevel.INFO < LogLevel.WARNING
        assert LogLevel.WARNING < LogLevel.ERROR


class TestLogEntry:
    """Verify log entry structure."""

    def test_entry_has_fields(self) -> None:
        """An entry keeps the tick it was written at."""
        entry = LogEntry(level=LogLevel.INFO, message="loaded", source="scheduler", tick=3)
        assert entry.level is LogLevel.INFO
        assert entry.message == "loaded"
        assert entry.source == "scheduler"
        assert entry.tick == 3

    def test_entry_str_pads_tick(self) -> None:
        """The tick is right-aligned in six columns ahead of level and source."""
        entry = LogEntry(level=LogLevel.WARNING, message="slow", source="cli", tick=12)
        assert str(entry) == "[    12] [WARNING] cli: slow"


class TestLogger:
    """Verify the append-only buffer."""

    def test_new_logger_is_empty(self) -> None:
        """Nothing is logged until log() is called."""
        assert Logger().entries == []

    def test_log_appends_in_order(self) -> None:
        """Entries are kept chronologically."""
        logger = Logger()
        logger.log(LogLevel.INFO, "first", source="a")
        logger.log(LogLevel.DEBUG, "second", source="b", tick=1)
        assert [e.message for e in logger.entries] == ["first", "second"]

    def test_entries_is_a_copy(self) -> None:
        """Mutating the returned list does not touch the buffer."""
        logger = Logger()
        logger.log(LogLevel.INFO, "x", source="a")
        logger.entries.clear()
        assert len(logger.entries) == 1

    def test_min_level_drops_entries(self) -> None:
        """Entries below min_level are not recorded."""
        logger = Logger(min_level=LogLevel.WARNING)
        logger.log(LogLevel.INFO, "quiet", source="a")
        logger.log(LogLevel.ERROR, "loud", source="a")
        assert [e.message for e in logger.entries] == ["loud"]
        assert logger.min_level is LogLevel.WARNING

    def test_filter_by_level_and_source(self) -> None:
        """filter() combines level and source criteria."""
        logger = Logger()
        logger.log(LogLevel.DEBUG, "d", source="scheduler")
        logger.log(LogLevel.ERROR, "e1", source="scheduler")
        logger.log(LogLevel.ERROR, "e2", source="cli")
        assert [e.message for e in logger.filter(min_level=LogLevel.ERROR)] == ["e1", "e2"]
        assert [e.message for e in logger.filter(source="cli")] == ["e2"]
        assert len(logger.filter()) == 3

    def test_clear(self) -> None:
        """clear() empties the buffer."""
        logger = Logger()
        logger.log(LogLevel.INFO, "x", source="a")
        logger.clear()
        assert logger.entries == []
