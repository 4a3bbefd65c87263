"""
Logging configuration for settings-tree applications.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from ..settings.logging import LoggingSettings

PACKAGE_LOGGER = "settings_tree"
CONSOLE_FORMAT = "%(asctime)s : %(levelname)-8s : %(name)s : %(message)s"


class ColoredFormatter(logging.Formatter):
    """Formatter coloring the level field for console output.

    The level is colored on a copy of the record, so level names that
    appear in logger names or messages are left untouched.
    """

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname)
        if color is None:
            return super().format(record)
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname:<8}{self.RESET}"
        return super().format(colored)


class CSVFormatter(logging.Formatter):
    """Formatter writing one ';'-separated, quoted CSV row per record."""

    FIELDS = ("timestamp", "level", "duration", "logger", "line", "message")

    @classmethod
    def header(cls) -> str:
        """Return the header row matching the formatted rows."""
        return ";".join(cls._quote(field) for field in cls.FIELDS)

    @staticmethod
    def _quote(value: str) -> str:
        # One row per record: embedded line breaks are escaped
        value = value.replace("\r\n", "\\n").replace("\n", "\\n")
        return '"' + value.replace('"', '""') + '"'

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"

        values = (
            self.formatTime(record, self.datefmt),
            record.levelname,
            f"{int(record.relativeCreated)} ms",
            record.name,
            str(record.lineno),
            message,
        )
        return ";".join(self._quote(value) for value in values)


def setup_logging(settings: LoggingSettings) -> Optional[Path]:
    """
    Setup logging with console and file handlers.

    Args:
        settings: LoggingSettings instance for all logging configuration

    Returns:
        Path of the log file if file logging was set up, None otherwise
    """
    console_enabled = settings.console_logging
    console_level = settings.console_log_level
    use_colors = settings.console_use_colors
    file_enabled = settings.file_logging
    log_file = settings.log_file_path

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(logging.DEBUG)

    # Clear any existing handlers
    root_logger.handlers.clear()

    # Console handler - only if enabled
    if console_enabled:
        formatter_class = ColoredFormatter if use_colors else logging.Formatter
        console_handler = logging.StreamHandler()
        console_handler.setLevel(getattr(logging, console_level.upper(), logging.INFO))
        console_handler.setFormatter(formatter_class(fmt=CONSOLE_FORMAT, datefmt="%H:%M:%S"))
        root_logger.addHandler(console_handler)

    # File handler with rotation - only if enabled
    log_path = None
    if file_enabled:
        try:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            if not log_path.exists() or log_path.stat().st_size == 0:
                log_path.write_text(CSVFormatter.header() + "\n", encoding="utf-8")

            file_handler = logging.handlers.RotatingFileHandler(
                log_path,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding="utf-8",
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(CSVFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
            root_logger.addHandler(file_handler)
        except OSError as e:
            # If file logging fails, continue with console logging
            log_path = None
            root_logger.warning(f"Could not setup file logging: {e}")

    logger = logging.getLogger(__name__)
    logger.info("Logging initialized")
    if console_enabled:
        logger.debug(f"Console logging: {console_level} (colors: {use_colors})")
    if log_path is not None:
        logger.debug(f"File logging: DEBUG at {log_path.absolute()}")
    return log_path
