"""
Minimal logging infrastructure for the bayesnlme package.

All package loggers live below the ``bayesnlme`` root logger, which gets a
single console handler the first time a logger is requested.
"""

import inspect
import logging
import time
from contextlib import contextmanager
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


class MinimalLogger:
    """Logger manager for the bayesnlme package."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._configured = False
        self._root_logger_name = "bayesnlme"
        self._initialized = True

    def configure(self, level: str = "INFO", force: bool = False):
        """Configure the package root logger."""
        if self._configured and not force:
            return

        root_logger = logging.getLogger(self._root_logger_name)
        root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

        if not root_logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            root_logger.addHandler(handler)

        self._configured = True

    def get_logger(self, name: str) -> logging.Logger:
        """Get or create a logger with hierarchical naming."""
        if name.startswith(self._root_logger_name):
            full_name = name
        elif name == "__main__":
            full_name = f"{self._root_logger_name}.main"
        else:
            full_name = f"{self._root_logger_name}.{name}"

        if not self._configured:
            self.configure()

        return logging.getLogger(full_name)


_logger_manager = MinimalLogger()


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger instance with automatic naming.

    Args:
        name: Logger name. If None, uses caller's module name.

    Returns:
        Configured logger instance.
    """
    if name is None:
        frame = inspect.currentframe()
        try:
            caller_frame = frame.f_back
            if caller_frame:
                name = caller_frame.f_globals.get("__name__", "unknown")
        finally:
            del frame

    return _logger_manager.get_logger(name or "unknown")


def configure_logging(level: str = "INFO") -> logging.Logger:
    """
    Set the level of the package root logger.

    Args:
        level: Logging level name ("DEBUG", "INFO", ...).

    Returns:
        The package root logger.
    """
    _logger_manager.configure(level=level, force=True)
    return logging.getLogger(_logger_manager._root_logger_name)


@contextmanager
def log_operation(
    operation_name: str,
    logger: Optional[logging.Logger] = None,
    level: int = logging.INFO,
):
    """
    Context manager for logging operations.

    Args:
        operation_name: Name of the operation.
        logger: Logger to use. If None, creates one for caller's module.
        level: Logging level to use.
    """
    if logger is None:
        logger = get_logger()

    logger.log(level, f"Starting operation: {operation_name}")
    start_time = time.perf_counter()

    try:
        yield logger
    except Exception as e:
        duration = time.perf_counter() - start_time
        logger.log(
            logging.ERROR,
            f"Failed operation: {operation_name} after {duration:.3f}s: {e}",
        )
        raise

    duration = time.perf_counter() - start_time
    logger.log(level, f"Completed operation: {operation_name} in {duration:.3f}s")


_logger_manager.configure()
