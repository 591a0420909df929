"""Structured observability system using structlog.

Provides:
- Context-aware structured logging
- Package context tracking while a package is parsed
- JSON output for production, pretty console for dev
- Performance timing utilities

Usage:
    from techtree.observ import get_logger

    logger = get_logger(__name__)
    logger.info("package_parsed", package="1121692237", technologies=42)
"""

import sys
import logging
import inspect
from typing import Optional
from contextlib import contextmanager
from functools import wraps
from time import perf_counter

import structlog

from techtree.config import get_settings


# ═════════════════════════════════════════════════════════════════════════════
# Structlog Configuration
# ═════════════════════════════════════════════════════════════════════════════

def configure_logging(level: Optional[str] = None, debug: Optional[bool] = None) -> None:
    """Configure structlog based on environment settings.

    Explicit arguments win over settings, so the CLI can raise verbosity
    after import time.
    """
    settings = get_settings()
    level = (level or settings.log_level).upper()
    debug = settings.debug if debug is None else debug

    # Determine if we're in development mode
    is_dev = debug or level == "DEBUG"

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level, logging.INFO),
        force=True
    )

    # Build processor chain
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    # Add format-specific processors
    if is_dev:
        # Development: pretty console output
        processors.extend([
            structlog.dev.set_exc_info,
            structlog.dev.ConsoleRenderer(colors=True)
        ])
    else:
        # Production: JSON for log aggregation
        processors.extend([
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
        ])

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


# Initialize on module import
configure_logging()


# ═════════════════════════════════════════════════════════════════════════════
# Logger Factory
# ═════════════════════════════════════════════════════════════════════════════

def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger for the given module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Bound logger with automatic context
    """
    return structlog.get_logger(name)


# ═════════════════════════════════════════════════════════════════════════════
# Context Management
# ═════════════════════════════════════════════════════════════════════════════

@contextmanager
def package_context(package: str):
    """Bind the package being parsed to every log entry in this context."""
    with structlog.contextvars.bound_contextvars(package=package):
        yield


# ═════════════════════════════════════════════════════════════════════════════
# Performance Timing
# ═════════════════════════════════════════════════════════════════════════════

def timed(logger: Optional[structlog.stdlib.BoundLogger] = None):
    """Decorator to log function execution time.

    Args:
        logger: Logger to use (creates one if not provided)

    Example:
        @timed(logger)
        def fold_localisation_map(entries):
            ...
    """
    def decorator(func):
        nonlocal logger
        if logger is None:
            logger = get_logger(func.__module__)

        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            start = perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    "function_failed",
                    function=func.__qualname__,
                    duration_ms=round((perf_counter() - start) * 1000, 2),
                    error=str(e),
                    error_type=type(e).__name__,
                    success=False
                )
                raise
            logger.debug(
                "function_completed",
                function=func.__qualname__,
                duration_ms=round((perf_counter() - start) * 1000, 2),
                success=True
            )
            return result

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            start = perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    "function_failed",
                    function=func.__qualname__,
                    duration_ms=round((perf_counter() - start) * 1000, 2),
                    error=str(e),
                    error_type=type(e).__name__,
                    success=False
                )
                raise
            logger.debug(
                "function_completed",
                function=func.__qualname__,
                duration_ms=round((perf_counter() - start) * 1000, 2),
                success=True
            )
            return result

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator


class timer:
    """Context manager for timing code blocks.

    Example:
        with timer(logger, "fold_localisations", languages=3):
            folded = fold_all(merged)
    """

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger,
        operation: str,
        **context
    ):
        self.logger = logger
        self.operation = operation
        self.context = context
        self.start_time: Optional[float] = None

    def __enter__(self):
        self.start_time = perf_counter()
        self.logger.debug(f"{self.operation}_started", **self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = perf_counter() - self.start_time
        if exc_type is None:
            self.logger.info(
                f"{self.operation}_completed",
                duration_ms=round(duration * 1000, 2),
                success=True,
                **self.context
            )
        else:
            self.logger.error(
                f"{self.operation}_failed",
                duration_ms=round(duration * 1000, 2),
                error=str(exc_val),
                error_type=exc_type.__name__,
                success=False,
                **self.context
            )
        return False  # Don't suppress exceptions
