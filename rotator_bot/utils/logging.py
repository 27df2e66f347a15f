# rotator_bot/utils/logging.py
import logging
import sys
from typing import Any

import orjson
import structlog

from rotator_bot.data.settings import settings

# Third-party loggers that are too chatty at INFO.
_QUIET_LOGGERS = {
    "aiohttp.access": logging.WARNING,
    "aiogram.event": logging.WARNING,
    "httpx": logging.WARNING,
    "google_genai": logging.WARNING,
}


def orjson_dumps(value: Any, **kwargs: Any) -> str:
    """structlog JSONRenderer serializer; unknown types are rendered with str()."""
    return orjson.dumps(value, default=str).decode()


def _shared_processors() -> list[structlog.typing.Processor]:
    return [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.dict_tracebacks,
    ]


def _renderer(json_logs: bool) -> structlog.typing.Processor:
    if json_logs:
        return structlog.processors.JSONRenderer(serializer=orjson_dumps)
    return structlog.dev.ConsoleRenderer()


def setup_logger(level: int | None = None, json_logs: bool | None = None) -> structlog.typing.FilteringBoundLogger:
    """
    Routes structlog and stdlib logging (aiogram, aiohttp, google-genai)
    through one stdout handler.

    Args:
        level: Root log level, `LOGGING_LEVEL` by default.
        json_logs: Force JSON or console output. By default the console
            renderer is used on a TTY and JSON everywhere else.

    Returns:
        The application's root bound logger.
    """
    if json_logs is None:
        json_logs = not sys.stderr.isatty()
    shared = _shared_processors()

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(foreign_pre_chain=shared, processor=_renderer(json_logs))
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(settings.logging_level if level is None else level)

    for name, quiet_level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)

    return structlog.get_logger("rotator_bot")
