"""
Structured logging configuration for graphweave.

structlog events and plain ``logging`` records (uvicorn, httpx) share one
pre-chain and are rendered once, by the root handler's formatter.
"""

import functools
import inspect
import logging
import sys
import time
from typing import Any, Callable, List, Optional

import structlog
from structlog.contextvars import merge_contextvars
from structlog.processors import (
    CallsiteParameter,
    CallsiteParameterAdder,
    JSONRenderer,
    TimeStamper,
    add_log_level,
)
from structlog.stdlib import ProcessorFormatter, add_logger_name
from structlog.typing import Processor

from graphweave.core.config import settings

QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "asyncio")


def _shared_processors() -> List[Processor]:
    return [
        merge_contextvars,
        add_log_level,
        add_logger_name,
        CallsiteParameterAdder(
            parameters=[
                CallsiteParameter.FILENAME,
                CallsiteParameter.FUNC_NAME,
                CallsiteParameter.LINENO,
            ]
        ),
        TimeStamper(fmt="iso"),
    ]


def build_formatter() -> ProcessorFormatter:
    """Formatter rendering both structlog events and foreign log records."""
    renderer = JSONRenderer() if settings.is_production else structlog.dev.ConsoleRenderer()
    return ProcessorFormatter(
        processors=[ProcessorFormatter.remove_processors_meta, renderer],
        foreign_pre_chain=_shared_processors(),
    )


def setup_logging() -> None:
    """Configure structlog and route every log record through one handler."""

    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter())

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, settings.log_level))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return structlog.get_logger(name)


class LogContext:
    """Bind context variables to every log line emitted inside the block."""

    def __init__(self, **kwargs: Any):
        self.context = kwargs
        self.tokens: list = []

    def __enter__(self) -> "LogContext":
        self.tokens.append(structlog.contextvars.bind_contextvars(**self.context))
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        for token in reversed(self.tokens):
            structlog.contextvars.reset_contextvars(**token)
        self.tokens.clear()


class _Timer:
    """Logs the start, the outcome and the duration of one call."""

    def __init__(self, operation: str, module: str):
        self.operation = operation
        self.logger = get_logger(module)
        self.start_time = 0.0

    def __enter__(self) -> "_Timer":
        self.logger.info(f"{self.operation} started")
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        duration_ms = round((time.perf_counter() - self.start_time) * 1000, 2)
        if exc_val is None:
            self.logger.info(f"{self.operation} completed", duration_ms=duration_ms)
        else:
            self.logger.error(
                f"{self.operation} failed", duration_ms=duration_ms, error=str(exc_val)
            )


def log_performance(operation: str) -> Callable[[Callable], Callable]:
    """
    Decorator to log function performance.

    Works for both coroutine functions and plain callables.

    Args:
        operation: Name of the operation being performed
    """

    def decorator(func: Callable) -> Callable:
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                with _Timer(operation, func.__module__):
                    return await func(*args, **kwargs)

            return async_wrapper

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with _Timer(operation, func.__module__):
                return func(*args, **kwargs)

        return sync_wrapper

    return decorator


# Initialize logging on module import
setup_logging()
