# subrename/log_setup.py
"""Console and file logging for the ``subrename`` logger tree."""
import logging
import sys
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional, Union

from . import __version__

APP_LOGGER_NAME = "subrename"
BRIEF_FORMAT = '%(levelname)-8s: %(message)s'
DETAILED_FORMAT = '%(asctime)s %(levelname)-8s [%(name)s:%(lineno)d] %(message)s'


def _console_handler(level: int, quiet: bool) -> logging.Handler:
    # --quiet keeps warnings and errors only, whatever the configured level
    if quiet: level = max(level, logging.WARNING)
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    fmt = DETAILED_FORMAT if level <= logging.DEBUG else BRIEF_FORMAT
    handler.setFormatter(logging.Formatter(fmt, datefmt='%H:%M:%S'))
    return handler

def _file_handler(log_file: Union[str, Path]) -> logging.Handler:
    path = Path(log_file).expanduser().resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, mode='a', encoding='utf-8')
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(DETAILED_FORMAT, datefmt='%Y-%m-%d %H:%M:%S%z'))
    return handler


def setup_logging(log_level_console: int = logging.INFO, log_file: Optional[Union[str, Path]] = None,
                  quiet: bool = False) -> logging.Logger:
    """
    (Re)configures the app logger; module loggers (``subrename.*``) inherit its handlers.

    The log file, when given, always records DEBUG and opens each run with a
    session header. A file that cannot be opened is reported and skipped.
    """
    log = logging.getLogger(APP_LOGGER_NAME)
    log.setLevel(logging.DEBUG)
    for handler in log.handlers[:]:
        log.removeHandler(handler); handler.close()

    log.addHandler(_console_handler(log_level_console, quiet))
    if not log_file:
        return log

    try:
        log.addHandler(_file_handler(log_file))
    except OSError as e:
        log.error(f"Failed to configure file logging to '{log_file}': {e}")
        return log
    log.info(f"--- Log session started: {datetime.now(timezone.utc).isoformat()} ---")
    log.info(f"subrename {__version__} | command: {' '.join(sys.argv)}")
    return log
