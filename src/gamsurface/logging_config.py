"""
Logging Configuration
Attaches console (and optionally file) output to the 'gamsurface' logger.
"""
import logging
import sys
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%H:%M:%S'


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Route records of every gamsurface module to stdout and, optionally, to a file.

    The package never configures logging on import, it only emits through module
    loggers. Calling this again replaces the handlers of the previous call.

    Args:
        level: Threshold for the package logger and its handlers.
        log_file: Path of a log file, overwritten on each call. None logs to stdout only.

    Returns:
        The 'gamsurface' package logger.
    """
    package_logger = logging.getLogger("gamsurface")
    package_logger.setLevel(level)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='w', encoding='utf-8'))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)

    package_logger.info("Logging initialized.")
    return package_logger
