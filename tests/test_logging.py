"""
Test suite for netpriv logging setup.
"""

import logging
import tempfile
import unittest
from pathlib import Path

from netpriv.program_logging import DeviceOutputFilter, get_logger, setup_logging


class TestSetupLogging(unittest.TestCase):
    """Test the handlers `setup_logging` installs."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.log_file = Path(self._tmp.name) / "logs" / "netpriv.log"

    def tearDown(self):
        logger = logging.getLogger("netpriv")
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(logging.NOTSET)
        self._tmp.cleanup()

    def handler_levels(self, logger):
        return {type(handler).__name__: handler.level for handler in logger.handlers}

    def test_file_log_has_no_escape_codes(self):
        """Test that prompts with colour codes are written as plain text."""
        setup_logging(level="INFO", log_file=str(self.log_file), console_output=False)

        get_logger("controller").info("prompt says '\x1b[1mswitch#\x1b[0m'\r")
        for handler in logging.getLogger("netpriv").handlers:
            handler.flush()

        text = self.log_file.read_text(encoding="utf-8")
        self.assertIn("prompt says 'switch#'", text)
        self.assertNotIn("\x1b", text)
        self.assertNotIn("\r", text)

    def test_default_console_level(self):
        """Test WARNING on the console unless debugging."""
        logger = setup_logging(level="INFO")
        self.assertEqual(self.handler_levels(logger), {"StreamHandler": logging.WARNING})
        self.assertEqual(logger.level, logging.INFO)

        logger = setup_logging(level="DEBUG")
        self.assertEqual(self.handler_levels(logger), {"StreamHandler": logging.DEBUG})

    def test_console_level(self):
        """Test a console level separate from the file level."""
        logger = setup_logging(level="WARNING", log_file=str(self.log_file), console_level="INFO")

        self.assertEqual(
            self.handler_levels(logger),
            {"StreamHandler": logging.INFO, "RotatingFileHandler": logging.WARNING},
        )
        self.assertEqual(logger.level, logging.INFO)

    def test_setup_twice_replaces_handlers(self):
        """Test that calling setup again does not duplicate handlers."""
        setup_logging(level="INFO", log_file=str(self.log_file))
        logger = setup_logging(level="INFO", log_file=str(self.log_file))
        self.assertEqual(len(logger.handlers), 2)


class TestDeviceOutputFilter(unittest.TestCase):
    """Test cleaning log records."""

    def test_formats_arguments_before_cleaning(self):
        """Test a record using %-style arguments."""
        record = logging.LogRecord(
            "netpriv.channel", logging.DEBUG, __file__, 1, "read: %s", ("\x1b[32mok\x1b[0m",), None
        )

        self.assertTrue(DeviceOutputFilter().filter(record))
        self.assertEqual(record.getMessage(), "read: ok")

    def test_plain_record_untouched(self):
        """Test that a record without escapes keeps its arguments."""
        record = logging.LogRecord(
            "netpriv.channel", logging.DEBUG, __file__, 1, "read: %s", ("ok",), None
        )

        DeviceOutputFilter().filter(record)

        self.assertEqual(record.args, ("ok",))


if __name__ == "__main__":
    unittest.main()
