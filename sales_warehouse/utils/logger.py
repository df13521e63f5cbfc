"""
Logging setup shared by the pipeline CLI and the data generator.

A configured logger writes to <log_dir>/<log_file> and, unless disabled, to
the console with the same format. Module loggers (sales_warehouse.silver,
sales_warehouse.quality, ...) reach these handlers through propagation.
"""
import os
import logging
from typing import List, Optional, Union

from sales_warehouse import config

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def resolve_level(level: Union[int, str, None]) -> int:
    """Accept a level number or name; None means WAREHOUSE_LOG_LEVEL."""
    if level is None:
        level = config.LOG_LEVEL
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown logging level: {level}")
    return resolved


def default_log_file(logger_name: str) -> str:
    return f"{logger_name.lower().replace(' ', '_').replace('.', '_')}.log"


def _detach_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def _build_handlers(log_path: str, console: bool) -> List[logging.Handler]:
    formatter = logging.Formatter(LOG_FORMAT)
    handlers: List[logging.Handler] = [logging.FileHandler(log_path)]
    if console:
        handlers.append(logging.StreamHandler())
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def setup_logger(
    logger_name: str,
    log_file: Optional[str] = None,
    level: Union[int, str, None] = None,
    log_dir: Optional[str] = None,
    console: bool = True,
) -> logging.Logger:
    """
    Configure a named logger, replacing any handlers it already has.

    Args:
        logger_name: Name of the logger ('sales_warehouse' covers the package)
        log_file: Log filename (default derived from logger_name)
        level: Level number or name (default WAREHOUSE_LOG_LEVEL)
        log_dir: Directory for log files (default WAREHOUSE_LOG_DIR)
        console: Also log to stderr

    Returns:
        Configured logger instance
    """
    log_dir = log_dir or config.LOG_DIR
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, log_file or default_log_file(logger_name))

    logger = logging.getLogger(logger_name)
    logger.setLevel(resolve_level(level))
    _detach_handlers(logger)
    for handler in _build_handlers(log_path, console):
        logger.addHandler(handler)

    logger.info(f"Log file is being saved to: {os.path.abspath(log_path)}")
    return logger
