# tests/test_logging_config.py

"""Tests for the per-run logging configuration."""

import logging
import tempfile
import unittest
from pathlib import Path

from src.config.logging_config import ROOT_LOGGER_NAME, setup_logging
from src.config.settings import Settings


class TestLoggingConfig(unittest.TestCase):
    """Verify logging setup behaviour."""

    def setUp(self) -> None:
        """Clean up the project logger before each test."""
        self.root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        self._clear_handlers()
        self.addCleanup(self._clear_handlers)
        self.tmp_dir = tempfile.mkdtemp()
        self.settings = Settings(LOGS_DIR=Path(self.tmp_dir) / "logs")

    def _clear_handlers(self) -> None:
        for handler in list(self.root_logger.handlers):
            handler.close()
            self.root_logger.removeHandler(handler)

    def test_setup_creates_log_file(self) -> None:
        """setup_logging returns a path that exists on disk."""
        log_path = setup_logging(self.settings)
        self.assertTrue(log_path.exists())
        self.assertEqual(log_path.parent, self.settings.LOGS_DIR)

    def test_log_file_naming_convention(self) -> None:
        """Log file name matches run_YYYYMMDD_HHMMSS.log format."""
        log_path = setup_logging(self.settings)
        self.assertRegex(log_path.name, r"^run_\d{8}_\d{6}\.log$")

    def test_handler_levels(self) -> None:
        """File handler logs DEBUG+, console handler WARNING+."""
        setup_logging(self.settings)
        file_handlers = [
            h
            for h in self.root_logger.handlers
            if isinstance(h, logging.FileHandler)
        ]
        stream_handlers = [
            h
            for h in self.root_logger.handlers
            if isinstance(h, logging.StreamHandler)
            and not isinstance(h, logging.FileHandler)
        ]
        self.assertEqual(len(file_handlers), 1)
        self.assertEqual(file_handlers[0].level, logging.DEBUG)
        self.assertEqual(len(stream_handlers), 1)
        self.assertEqual(stream_handlers[0].level, logging.WARNING)

    def test_repeated_setup_does_not_duplicate_handlers(self) -> None:
        """Calling setup_logging twice keeps the same handler count."""
        setup_logging(self.settings)
        count = len(self.root_logger.handlers)
        setup_logging(self.settings)
        self.assertEqual(len(self.root_logger.handlers), count)

    def test_repeated_setup_returns_current_log_file(self) -> None:
        """A second call reports the file already being written."""
        first = setup_logging(self.settings)
        second = setup_logging(self.settings)
        self.assertEqual(first.resolve(), second.resolve())

    def test_child_logger_reaches_file(self) -> None:
        """Messages from charmed_site.* loggers land in the run log."""
        log_path = setup_logging(self.settings)
        logging.getLogger("charmed_site.test").info("hello from test")
        for handler in self.root_logger.handlers:
            handler.flush()
        self.assertIn("hello from test", log_path.read_text(encoding="utf-8"))


if __name__ == "__main__":
    unittest.main()
