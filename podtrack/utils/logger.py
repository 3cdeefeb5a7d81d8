"""Logging utilities for PodTrack."""

import logging
import sys
from datetime import datetime
from pathlib import Path

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class EmojiFormatter(logging.Formatter):
    """Prefixes each line with a level marker unless the message brings its own.

    Recorder flushes and analysis workers log from their own threads, so the
    marker is added to the formatted text rather than to the shared format
    string.
    """

    EMOJI_MAP = {
        logging.DEBUG: "🐛",
        logging.INFO: "🟢",
        logging.WARNING: "🟡",
        logging.ERROR: "🛑",
        logging.CRITICAL: "🛑",
    }

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        if self.has_marker(record.getMessage()):
            return formatted
        return f"{self.EMOJI_MAP.get(record.levelno, '')} {formatted}"

    @staticmethod
    def has_marker(message: str) -> bool:
        """True when the message already starts with a pictograph."""
        return bool(message) and not message[0].isascii()


def _file_handler(directory: Path, log_format: str) -> logging.Handler:
    # One file per day
    directory.mkdir(parents=True, exist_ok=True)
    log_file = directory / f"podtrack-{datetime.now().strftime('%Y-%m-%d')}.log"
    handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter(log_format))
    return handler


def setup_logger(name: str) -> logging.Logger:
    """Set up a logger with console and file handlers.

    Args:
        name: Logger name (typically __name__).

    Returns:
        Configured logger instance.
    """
    from podtrack.config.config_loader import config

    logger = logging.getLogger(name)

    # Only configure if not already configured
    if logger.handlers:
        return logger

    log_format = config.get("logging.format", DEFAULT_FORMAT)
    logger.setLevel(getattr(logging, str(config.get("logging.level", "INFO")).upper()))

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(EmojiFormatter(log_format))
    logger.addHandler(console_handler)

    if config.get("logging.to_file", True):
        logger.addHandler(
            _file_handler(Path(config.get("logging.directory", "logs")), log_format)
        )

    return logger
