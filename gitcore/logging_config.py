"""Logging configuration for gitcore"""
import logging
import sys
from pathlib import Path
from typing import Optional, Union

DETAILED_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
SHORT_FORMAT = '[%(name)s] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name when its stream is a terminal."""

    LEVEL_COLORS = {
        logging.DEBUG: '\033[36m',
        logging.INFO: '\033[32m',
        logging.WARNING: '\033[33m',
        logging.ERROR: '\033[31m',
        logging.CRITICAL: '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, fmt: str, datefmt: Optional[str] = None, stream=None):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = bool(stream is not None and getattr(stream, 'isatty', lambda: False)())

    def format(self, record):
        if not self.use_color or record.levelno not in self.LEVEL_COLORS:
            return super().format(record)
        original = record.levelname
        record.levelname = f"{self.LEVEL_COLORS[record.levelno]}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # other handlers see the same record
            record.levelname = original


def setup_logging(
    verbose: bool = False,
    debug: bool = False,
    log_file: Optional[Union[str, Path]] = None,
) -> None:
    """
    Configure logging for the application.

    Args:
        verbose: If True, show INFO level messages
        debug: If True, show DEBUG level messages and detailed formatting
        log_file: Optional file receiving every message at DEBUG level
    """
    # Determine log level
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    root_logger = logging.getLogger()
    # The file handler needs DEBUG records even when the console shows less
    root_logger.setLevel(logging.DEBUG if log_file else level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode='w')  # Overwrite each run
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(fmt=DETAILED_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    if debug:
        console_handler.setFormatter(ColoredFormatter(DETAILED_FORMAT, DATE_FORMAT, stream=sys.stderr))
    else:
        console_handler.setFormatter(ColoredFormatter(SHORT_FORMAT, stream=sys.stderr))
    root_logger.addHandler(console_handler)

    # GitPython logs every spawned command at DEBUG; keep that out of normal runs
    logging.getLogger('git').setLevel(logging.DEBUG if debug else logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the specified module.

    Args:
        name: Name of the module (typically __name__)

    Returns:
        Logger instance
    """
    # Strip the package prefix for cleaner log names; `services.` stays so that
    # `services.git.*` never lands under GitPython's own `git` logger
    if name.startswith('gitcore.'):
        name = name.replace('gitcore.', '', 1)

    return logging.getLogger(name)
