"""Logging configuration using Loguru for structured logging.

Provides request-aware logging with JSON formatting, rotation, and retention policies.
"""

import inspect
import sys
import time
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Optional

from loguru import logger


# Remove default handler
logger.remove()


def setup_logging(
    log_dir: str = "logs",
    level: str = "INFO",
    rotation: str = "100 MB",
    retention: str = "30 days",
    compression: str = "zip",
    enable_files: bool = True
) -> None:
    """Configure Loguru logging with structured JSON format.

    Args:
        log_dir: Directory for log files
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        rotation: When to rotate log files
        retention: How long to keep old logs
        compression: Compression format for rotated logs
        enable_files: Whether to write log files in addition to stderr
    """
    logger.remove()

    # Console handler with colored output
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>",
        level=level,
        colorize=True
    )

    if not enable_files:
        logger.info("Logging system initialized", level=level, files=False)
        return

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    # Main application log
    logger.add(
        log_path / "docpilot_{time}.log",
        format="{time} | {level} | {name}:{function}:{line} | {message}",
        level=level,
        rotation=rotation,
        retention=retention,
        compression=compression
    )

    # JSON structured log for parsing and analysis
    logger.add(
        log_path / "docpilot_json_{time}.log",
        level=level,
        rotation=rotation,
        retention=retention,
        compression=compression,
        serialize=True
    )

    # Task-specific log file
    # The returned string is a template, so record values stay as fields
    def task_format(record):
        record["extra"].setdefault("request_id", "unknown")
        return "{time} | {level} | {extra[request_id]} | {extra[task_name]} | {message}\n"

    logger.add(
        log_path / "tasks_{time}.log",
        format=task_format,
        level="INFO",
        rotation=rotation,
        retention=retention,
        compression=compression,
        filter=lambda record: "task_name" in record["extra"]
    )

    # Error-only log file
    logger.add(
        log_path / "errors_{time}.log",
        format="{time} | {level} | {name}:{function}:{line} | {message}",
        level="ERROR",
        rotation=rotation,
        retention=retention,
        compression=compression
    )

    logger.info("Logging system initialized", log_dir=log_dir, level=level)


def get_task_logger(request_id: str, task_name: Optional[str] = None):
    """Get a logger bound to a specific request and optionally a task.

    Args:
        request_id: Analysis request or chat session identifier
        task_name: Optional task name for task-specific logging

    Returns:
        Logger instance with request context
    """
    context = {"request_id": request_id}
    if task_name:
        context["task_name"] = task_name
    return logger.bind(**context)


def log_task_execution(task_name: str) -> Callable:
    """Decorator to log task execution with timing.

    Works for both plain and coroutine functions. The bound request id is
    taken from the ``request_id`` keyword argument when present.

    Args:
        task_name: Name of the task being executed

    Returns:
        Decorated function with logging
    """
    def decorator(func: Callable) -> Callable:
        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs) -> Any:
                task_logger = get_task_logger(kwargs.get("request_id", "unknown"), task_name)
                task_logger.info(f"Starting {task_name}", function=func.__name__)
                start_time = time.perf_counter()
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    task_logger.error(
                        f"{task_name} failed with error",
                        function=func.__name__,
                        error=str(e),
                        error_type=type(e).__name__
                    )
                    raise
                task_logger.info(
                    f"{task_name} finished",
                    function=func.__name__,
                    duration_seconds=round(time.perf_counter() - start_time, 3)
                )
                return result

            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            task_logger = get_task_logger(kwargs.get("request_id", "unknown"), task_name)
            task_logger.info(f"Starting {task_name}", function=func.__name__)
            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                task_logger.error(
                    f"{task_name} failed with error",
                    function=func.__name__,
                    error=str(e),
                    error_type=type(e).__name__
                )
                raise
            task_logger.info(
                f"{task_name} finished",
                function=func.__name__,
                duration_seconds=round(time.perf_counter() - start_time, 3)
            )
            return result

        return wrapper
    return decorator


def log_tool_execution(tool_name: str) -> Callable:
    """Decorator to log deterministic tool execution.

    Args:
        tool_name: Name of the tool being executed

    Returns:
        Decorated function with logging
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            logger.debug(f"Executing tool: {tool_name}", function=func.__name__)

            try:
                result = func(*args, **kwargs)
                logger.debug(f"Tool {tool_name} completed", function=func.__name__)
                return result

            except Exception as e:
                logger.error(
                    f"Tool {tool_name} failed",
                    function=func.__name__,
                    error=str(e),
                    error_type=type(e).__name__
                )
                raise

        return wrapper
    return decorator
