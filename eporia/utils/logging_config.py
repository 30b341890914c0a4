"""
Logging setup for the playlist service.

structlog renders every record; the stdlib logging tree routes them to:
- ``eporia.log``: everything at the configured level
- ``errors.log``: ERROR and above
- stdout: coloured console output, or one JSON object per line when
  ``log_format`` is ``"json"``

Request-scoped values (request id, user id) live in structlog contextvars
and are merged into every record emitted while the request is handled.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import List, Optional

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars

LOG_FORMATS = ("console", "json")

# Supabase pulls in httpx/httpcore/hpack; PostgREST logs every query at INFO
QUIET_LOGGERS = ["httpx", "httpcore", "hpack", "postgrest", "urllib3", "uvicorn.access"]


class ServiceLogging:
    """
    Root logging configuration for one process.

    Creating an instance replaces whatever handlers the root logger had;
    ``shutdown`` removes them again.
    """

    def __init__(
        self,
        log_dir: str = "logs",
        log_level: str = "INFO",
        log_format: str = "console",
        enable_console: bool = True,
        max_file_size: int = 10 * 1024 * 1024,  # 10MB
        backup_count: int = 5
    ):
        """
        Args:
            log_dir: Directory for the rotating log files
            log_level: Level name for the service loggers
            log_format: ``console`` or ``json`` for stdout
            enable_console: Whether to log to stdout at all
            max_file_size: Bytes per file before rotation
            backup_count: Rotated files kept per log
        """
        if log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {LOG_FORMATS}, got {log_format!r}")

        level = logging.getLevelName(log_level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {log_level!r}")

        self.log_dir = Path(log_dir)
        self.level = level
        self.log_format = log_format
        self.max_file_size = max_file_size
        self.backup_count = backup_count
        self.handlers: List[logging.Handler] = []

        self.log_dir.mkdir(parents=True, exist_ok=True)

        self._configure_structlog()

        root = logging.getLogger()
        root.handlers.clear()
        self.handlers.append(self._file_handler("eporia.log", self.level))
        self.handlers.append(self._file_handler("errors.log", logging.ERROR))
        if enable_console:
            self.handlers.append(self._console_handler())
        for handler in self.handlers:
            root.addHandler(handler)
        root.setLevel(self.level)

        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    @staticmethod
    def _configure_structlog():
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                structlog.processors.TimeStamper(fmt="iso", utc=True),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.UnicodeDecoder(),
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

    def _file_handler(self, filename: str, level: int) -> logging.Handler:
        handler = logging.handlers.RotatingFileHandler(
            filename=self.log_dir / filename,
            maxBytes=self.max_file_size,
            backupCount=self.backup_count,
            encoding="utf-8"
        )
        handler.setLevel(level)
        # Files are always JSON lines so they can be shipped as-is
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(processor=structlog.processors.JSONRenderer())
        )
        return handler

    def _console_handler(self) -> logging.Handler:
        if self.log_format == "json":
            renderer = structlog.processors.JSONRenderer()
        else:
            renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(self.level)
        handler.setFormatter(structlog.stdlib.ProcessorFormatter(processor=renderer))
        return handler

    def shutdown(self):
        """Detach and close this instance's handlers."""
        root = logging.getLogger()
        for handler in self.handlers:
            root.removeHandler(handler)
            handler.close()
        self.handlers = []


_service_logging: Optional[ServiceLogging] = None


def setup_logging(
    log_dir: str = "logs",
    log_level: str = "INFO",
    log_format: str = "console",
    **kwargs
) -> ServiceLogging:
    """
    Configure process-wide logging, replacing any earlier setup.

    Args:
        log_dir: Directory for the rotating log files
        log_level: Level name, e.g. ``INFO``
        log_format: ``console`` or ``json`` for stdout
        **kwargs: Passed through to ServiceLogging

    Returns:
        The active configuration
    """
    global _service_logging

    if _service_logging is not None:
        _service_logging.shutdown()
    _service_logging = ServiceLogging(
        log_dir=log_dir,
        log_level=log_level,
        log_format=log_format,
        **kwargs
    )
    return _service_logging


def shutdown_logging():
    """Close the log files opened by ``setup_logging``."""
    global _service_logging

    if _service_logging is not None:
        _service_logging.shutdown()
        _service_logging = None


def set_request_context(request_id: str, user_id: Optional[str] = None):
    """Bind request-scoped fields to every record in the current context."""
    clear_contextvars()
    bind_contextvars(request_id=request_id, user_id=user_id)


def log_performance(operation: str, duration: float, **kwargs):
    """Emit a timing record on the ``performance`` logger."""
    if _service_logging is None:
        return
    structlog.get_logger("performance").info(
        "performance_metric",
        operation=operation,
        duration_ms=round(duration * 1000, 2),
        **kwargs
    )


def log_api_request(method: str, path: str, status_code: int, duration: float, **kwargs):
    """Emit one access record on the ``api`` logger."""
    if _service_logging is None:
        return
    structlog.get_logger("api").info(
        "api_request",
        method=method,
        path=path,
        status_code=status_code,
        duration_ms=round(duration * 1000, 2),
        **kwargs
    )
