"""Handler factories for the destinations the service logs to."""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, TextIO

from .formatters import get_formatter

_LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[35m",
}
_RESET = "\033[0m"


def _supports_color(stream: TextIO) -> bool:
    return sys.platform != "win32" and bool(getattr(stream, "isatty", lambda: False)())


class ColoredConsoleHandler(logging.StreamHandler):
    """Stream handler that highlights the ``[LEVEL]`` tag on terminals.

    Output piped to a file or another process is left uncoloured.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        super().__init__(stream or sys.stdout)
        self.use_colors = _supports_color(self.stream)

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        color = _LEVEL_COLORS.get(record.levelno)
        if not self.use_colors or color is None:
            return formatted

        tag = f"[{record.levelname}]"
        return formatted.replace(tag, f"[{color}{record.levelname}{_RESET}]", 1)


def _configure(handler: logging.Handler, format_type: str, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(get_formatter(format_type))
    return handler


def create_console_handler(
    format_type: str = "detailed",
    level: int = logging.INFO,
    use_colors: bool = True,
    stream: Optional[TextIO] = None,
) -> logging.Handler:
    """Create a console handler writing to ``stream`` (stdout by default)."""
    handler: logging.Handler
    if use_colors:
        handler = ColoredConsoleHandler(stream)
    else:
        handler = logging.StreamHandler(stream or sys.stdout)
    return _configure(handler, format_type, level)


def create_file_handler(
    filepath: str,
    format_type: str = "structured",
    level: int = logging.DEBUG,
    max_bytes: int = 10485760,
    backup_count: int = 5,
) -> logging.Handler:
    """Create a size-rotated file handler, creating the log directory if needed.

    Args:
        filepath: Path to the log file
        format_type: Formatter name, see ``get_formatter``
        level: Minimum level written to the file
        max_bytes: Size that triggers rotation (10MB by default)
        backup_count: Rotated files to keep
    """
    Path(filepath).parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        filename=filepath, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    return _configure(handler, format_type, level)


def create_null_handler() -> logging.Handler:
    return logging.NullHandler()
