"""
Logging Configuration
=====================
Every module logs through `logging.getLogger(__name__)`, so all records end
up below the 'voronoitreemap' namespace logger configured here.

Level policy of the package:
    DEBUG: Per-iteration solver error, hull and clipper degeneracies.
    INFO: Outcome of every solved layer, treemap totals, timings.
    WARNING: Layers that did not converge, degenerate or mismatched layers,
        empty clips, broken hull rings.
"""
import logging
import sys
from typing import Optional

PACKAGE_LOGGER = "voronoitreemap"
LOG_FORMAT = "%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s"

# numba reports every compilation pass at DEBUG level
NOISY_LOGGERS = ("numba",)


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Route the package's records to stdout and, optionally, to a file.

    Calling it again replaces the handlers of the previous call.

    Args:
        level: Level of the package logger, e.g. logging.DEBUG to follow every solver iteration.
        log_file: Optional path of a log file, overwritten on every call.

    Returns:
        The package logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S')
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='w', encoding='utf-8'))
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    # Keep third-party compiler chatter out of a DEBUG run of the layout
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logger.debug(f"Logging initialized at level {logging.getLevelName(level)}.")
    return logger
