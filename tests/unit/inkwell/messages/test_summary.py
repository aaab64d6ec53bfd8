"""
Tests for the end-of-run Summary.
"""
import time
from unittest.mock import Mock

from inkwell.messages import Summary


def _messages(mock_method):
    return [call[0][0] for call in mock_method.call_args_list]


class TestSummary:
    """Test Summary generation functionality."""

    def test_summary_initialization(self):
        """Test Summary initialization with defaults."""
        summary = Summary()
        assert summary.logger is not None

    def test_summary_initialization_with_logger(self):
        """Test Summary initialization with custom logger."""
        mock_logger = Mock()
        summary = Summary(logger=mock_logger)
        assert summary.logger is mock_logger

    def test_generate_summary_empty_results(self):
        """Test an empty export produces a single 'nothing to do' line."""
        mock_logger = Mock()
        Summary(logger=mock_logger).generate_summary([])

        assert any("Nothing to do" in m for m in _messages(mock_logger.info))
        mock_logger.error.assert_not_called()

    def test_generate_summary_counts(self):
        """Test counts per status are reported."""
        mock_logger = Mock()
        results = [
            {"id": "A", "title": "One", "status": "new"},
            {"id": "B", "title": "Two", "status": "new"},
            {"id": "C", "title": None, "status": "changed"},
            {"id": "D", "title": "Four", "status": "unchanged"},
        ]

        Summary(logger=mock_logger).generate_summary(
            results, migration_count=1, start_time=time.monotonic()
        )

        info = _messages(mock_logger.info)
        assert any("Finished checking 4 entries" in m for m in info)
        assert any("Completed successfully" in m for m in info)
        assert any("2 new, 1 changed, 1 unchanged." in m for m in info)
        assert any("1 entry needs moving" in m for m in info)
        mock_logger.error.assert_not_called()

    def test_generate_summary_lists_failures(self):
        """Test failed entries are listed with their error."""
        mock_logger = Mock()
        results = [
            {"id": "A", "title": "One", "status": "new"},
            {"id": "B", "title": None, "status": "failed", "error": "disk full"},
        ]

        Summary(logger=mock_logger).generate_summary(results)

        errors = _messages(mock_logger.error)
        assert "Completed with errors" in errors
        assert "Failed entries:" in errors
        assert any("B: disk full" in m for m in errors)
