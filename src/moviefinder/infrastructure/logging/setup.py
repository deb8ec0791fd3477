"""structlog over stdlib logging, emitted off the event loop by a queue listener.

Application code logs through ``structlog.get_logger(__name__)``; uvicorn
and httpx log through stdlib. Both end up in the same ``ProcessorFormatter``
so every line is rendered alike: colored key/values in dev and test, one
JSON object per line in prod.
"""

from __future__ import annotations

import atexit
import copy
import logging
import logging.config
import queue
import sys
from logging.handlers import QueueHandler, QueueListener
from typing import Any

import structlog
from structlog.typing import Processor

from moviefinder.infrastructure.config.schema import AppConfig

log = structlog.get_logger(__name__)

# uvicorn loggers get the configured level; httpx stays quiet.
_SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")
_PINNED_LEVELS = {"httpx": "WARNING"}

_listener: QueueListener | None = None


def _drop_color_message(_: Any, __: Any, event_dict: dict[str, Any]) -> dict[str, Any]:
    # uvicorn duplicates its message with ANSI codes under this key
    event_dict.pop("color_message", None)
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        _drop_color_message,
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
    ]


def _renderer(config: AppConfig) -> Processor:
    if config.log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def _formatter(config: AppConfig) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_processors(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(config),
        ],
    )


def build_logging_config(config: AppConfig) -> dict[str, Any]:
    """dictConfig for ``uvicorn.run(log_config=...)`` using the structlog formatter."""
    level = config.log_level
    loggers: dict[str, Any] = {
        name: {"level": level, "handlers": ["default"], "propagate": False}
        for name in _SERVER_LOGGERS
    }
    # uvicorn.error propagates to "uvicorn"; a handler here would double every line
    loggers["uvicorn.error"] = {"level": level}
    for name, pinned in _PINNED_LEVELS.items():
        loggers[name] = {"level": pinned}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structlog": {
                "()": structlog.stdlib.ProcessorFormatter,
                "foreign_pre_chain": _shared_processors(),
                "processors": [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    _renderer(config),
                ],
            },
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "formatter": "structlog",
            },
        },
        "loggers": loggers,
        "root": {"level": level, "handlers": ["default"]},
    }


class _RecordQueueHandler(QueueHandler):
    """Enqueue the record as-is.

    ``QueueHandler.prepare`` formats and flattens ``record.msg``, which
    would turn structlog's event dict into a string before the formatter
    on the listener thread sees it.
    """

    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        return copy.copy(record)


class _LevelRangeFilter(logging.Filter):
    def __init__(self, min_level: int = logging.NOTSET, max_level: int = logging.CRITICAL):
        super().__init__()
        self._min = min_level
        self._max = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return self._min <= record.levelno <= self._max


def _stream_handler(
    stream: Any, formatter: logging.Formatter, level_filter: logging.Filter
) -> logging.Handler:
    handler = logging.StreamHandler(stream=stream)
    handler.setFormatter(formatter)
    handler.addFilter(level_filter)
    return handler


def _stop_listener() -> None:
    global _listener
    listener, _listener = _listener, None
    if listener is not None:
        listener.stop()


def _route_through_queue(config: AppConfig) -> None:
    """Replace every handler with one queue; a listener thread does the I/O.

    Records up to WARNING go to stdout, ERROR and above to stderr.
    """
    global _listener
    _stop_listener()

    formatter = _formatter(config)
    records: queue.SimpleQueue[logging.LogRecord] = queue.SimpleQueue()

    root = logging.getLogger()
    root.handlers[:] = [_RecordQueueHandler(records)]
    root.setLevel(config.log_level)

    for existing in list(logging.root.manager.loggerDict.values()):
        if isinstance(existing, logging.Logger):
            existing.handlers.clear()
            existing.propagate = True

    _listener = QueueListener(
        records,
        _stream_handler(sys.stdout, formatter, _LevelRangeFilter(max_level=logging.WARNING)),
        _stream_handler(sys.stderr, formatter, _LevelRangeFilter(min_level=logging.ERROR)),
        respect_handler_level=True,
    )
    _listener.start()


def configure_logging(config: AppConfig) -> dict[str, Any]:
    """Configure structlog and stdlib logging once per process.

    Returns the dictConfig for uvicorn. uvicorn applies it again at
    startup; emission still goes through the queue listener.
    """
    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    cfg = build_logging_config(config)
    logging.config.dictConfig(cfg)
    _route_through_queue(config)
    atexit.register(_stop_listener)

    log.info("logging_configured", log_format=config.log_format, log_level=config.log_level)
    return cfg
