"""
utils/logger.py — Project-wide logging configuration
=====================================================
Provides a `get_logger(name)` factory so every module gets a consistently
formatted logger with a colour-coded level tag.

Log lines go to stderr: the command-line front-end prints metric tables and
CSV on stdout, and the two streams must not interleave.  `configure_logging`
adjusts the level of every logger handed out so far (used by `--verbose`).
"""

import logging
import sys

# Colour codes (ANSI, works on most terminals)
_COLOURS = {
    logging.DEBUG:    "\033[36m",   # cyan
    logging.INFO:     "\033[32m",   # green
    logging.WARNING:  "\033[33m",   # yellow
    logging.ERROR:    "\033[31m",   # red
    logging.CRITICAL: "\033[35m",   # magenta
}
_RESET = "\033[0m"


class _ColourFormatter(logging.Formatter):
    """Inject ANSI colour around the log-level tag when writing to a TTY."""

    def __init__(self, fmt: str, datefmt: str, use_colour: bool):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._use_colour = use_colour

    def format(self, record: logging.LogRecord) -> str:
        if not self._use_colour:
            return super().format(record)
        # Work on a copy so other handlers see the plain level name
        record = logging.makeLogRecord(record.__dict__)
        colour = _COLOURS.get(record.levelno, _RESET)
        record.levelname = f"{colour}{record.levelname:<8}{_RESET}"
        return super().format(record)


_BASE_FMT = "%(asctime)s  %(levelname)-8s  %(name)-22s  %(message)s"
_DATE_FMT = "%H:%M:%S"

# Module-level registry to avoid adding duplicate handlers
_loggers: dict[str, logging.Logger] = {}
_level: int = logging.INFO


def get_logger(name: str, level: int | None = None) -> logging.Logger:
    """
    Return (or create) a named logger.

    Parameters
    ----------
    name  : str         Module / component name shown in log lines.
    level : int | None  Minimum severity; defaults to the level set by
                        `configure_logging` (INFO unless changed).
    """
    if name in _loggers:
        return _loggers[name]

    effective = _level if level is None else level
    logger = logging.getLogger(name)
    logger.setLevel(effective)
    logger.propagate = False          # Avoid duplicate messages from root

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.DEBUG)   # Filtering happens on the logger
    use_colour = hasattr(sys.stderr, "isatty") and sys.stderr.isatty()
    handler.setFormatter(_ColourFormatter(_BASE_FMT, _DATE_FMT, use_colour))
    logger.addHandler(handler)

    _loggers[name] = logger
    return logger


def configure_logging(level: int) -> None:
    """Set the minimum severity for all existing and future project loggers."""
    global _level
    _level = level
    for logger in _loggers.values():
        logger.setLevel(level)
