"""Observability utilities for notecache.

Provides logging configuration (console plus optional rotating log file)
and timing helpers that log the start and end of each operation.
"""
import functools
import logging
import time
import uuid
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional, Sized, TypeVar, Union

logger = logging.getLogger(__name__)

# Root of the package logger hierarchy
ROOT_LOGGER_NAME = "notecache"

# Logging format with ISO 8601 timestamps
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
LOG_FILE_NAME = "notes.log"

# Type variable for decorators
F = TypeVar('F', bound=Callable[..., Any])


def configure_logging(
    level: int = logging.WARNING,
    log_dir: Optional[Union[str, Path]] = None,
    max_bytes: int = 1024 * 1024,  # 1 MB per file
    backup_count: int = 3,
    console: bool = True,
) -> Optional[Path]:
    """Configure logging for the notecache logger hierarchy.

    Console output goes to stderr so it never mixes with command output.
    When log_dir is given, a rotating file handler is added as well.

    Args:
        level: Logging level (default: WARNING)
        log_dir: Directory for log files. No file logging when None.
        max_bytes: Maximum size per log file before rotation (default: 1 MB)
        backup_count: Number of rotated files to keep (default: 3)
        console: Also log to the console (default: True)

    Returns:
        Path to the log file, or None when file logging is disabled.
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    log_file = None
    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        log_file = log_path / LOG_FILE_NAME
        if not any(isinstance(h, RotatingFileHandler) for h in root_logger.handlers):
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

    if console and not any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, RotatingFileHandler)
        for h in root_logger.handlers
    ):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    # Handlers from an earlier call follow the new level
    for handler in root_logger.handlers:
        handler.setLevel(level)

    root_logger.debug(
        f"Logging configured: level={logging.getLevelName(level)}, file={log_file}"
    )

    return log_file


@contextmanager
def timed_operation(operation: str, **context) -> Iterator[Dict[str, Any]]:
    """Log the start and end of one operation at DEBUG level.

    Both lines carry a short id so the two can be paired up in a log file
    shared by several runs. The END line reports the elapsed time, whether
    the block raised, and anything the block stored in the yielded dict.

    Example:
        with timed_operation("drop_notes", force=True) as op:
            dropped = ...
            op["result_count"] = len(dropped)
    """
    run_id = uuid.uuid4().hex[:8]
    details: Dict[str, Any] = {}
    args = ", ".join(f"{key}={value}" for key, value in context.items())
    logger.debug(f"[{run_id}] START {operation} ({args})")

    started = time.perf_counter()
    status = "OK"
    try:
        yield details
    except Exception as e:
        status = f"ERROR: {e}"
        raise
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000
        summary = ", ".join(f"{key}={value}" for key, value in details.items())
        logger.debug(
            f"[{run_id}] END {operation} ({elapsed_ms:.2f}ms) [{status}] {summary}"
        )


def traced(operation_name: Optional[str] = None) -> Callable[[F], F]:
    """Wrap a function in timed_operation.

    Sized results (such as the note mapping returned by a cache load) are
    logged with their length.

    Args:
        operation_name: Name logged for the operation, the function name by default.
    """
    def decorator(func: F) -> F:
        name = operation_name or func.__name__

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            with timed_operation(name) as op:
                result = func(*args, **kwargs)
                if isinstance(result, Sized):
                    op["result_count"] = len(result)
                return result

        return wrapper  # type: ignore
    return decorator
