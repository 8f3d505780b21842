"""Logging configuration for the logistics service.

Standard library handlers (console plus rotating files) carry the records;
structlog renders them as JSON in production and staging and as colourised
console output everywhere else. Request and job identifiers are bound as
context variables so every line logged while handling them carries them.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

SERVICE_NAME = "fleetline"

_LEVELS_BY_ENV = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}
_STRUCTURED_ENVS = {"production", "staging"}
_QUIET_LOGGERS = ("urllib3", "asyncio", "redis", "httpx")
_MAX_LOG_BYTES = 10 * 1024 * 1024


def current_env() -> str:
    return (os.getenv("PROTEAN_ENV") or os.getenv("ENV") or "development").lower()


def get_log_level(env: str | None = None) -> str:
    return os.getenv("LOG_LEVEL", _LEVELS_BY_ENV.get(env or current_env(), "INFO"))


def _rotating_handler(path: Path, level) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=_MAX_LOG_BYTES,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def setup_stdlib_logging(log_dir: str | None = None, level: str | None = None) -> None:
    """Route stdlib records to stdout and, when ``log_dir`` is set, rotating files.

    An empty ``LOG_DIR`` disables file logging.
    """
    level = level or get_log_level()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = []

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    root_logger.addHandler(console)

    log_dir = os.getenv("LOG_DIR", "logs") if log_dir is None else log_dir
    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        root_logger.addHandler(_rotating_handler(path / f"{SERVICE_NAME}.log", level))
        root_logger.addHandler(_rotating_handler(path / f"{SERVICE_NAME}_error.log", logging.ERROR))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _add_service(_logger, _method_name, event_dict: dict) -> dict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def build_processors(env: str) -> list:
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if env in _STRUCTURED_ENVS:
        processors += [
            _add_service,
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            ),
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stdout.isatty(),
                exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=env == "development", max_frames=4),
            )
        )
    return processors


def configure_logging(log_dir: str | None = None, env: str | None = None) -> None:
    """Configure stdlib handlers and structlog for the whole process."""
    env = env or current_env()
    setup_stdlib_logging(log_dir, get_log_level(env))
    structlog.configure(
        processors=build_processors(env),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_request_context(**kwargs: Any) -> None:
    """Attach identifiers (request id, job id, ...) to every following log line."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**{k: v for k, v in kwargs.items() if v is not None})
