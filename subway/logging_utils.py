"""Logging setup: console output plus optional forwarding into ``system_logs``."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .config import settings
from .database import AsyncSessionLocal
from .models.system_log import SystemLog


_LOG_RECORD_RESERVED_KEYS = set(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


def _record_extra(record: logging.LogRecord) -> Dict[str, Any]:
    """Return the JSON-safe ``extra=`` fields attached to a record."""
    sanitized: Dict[str, Any] = {}
    for key, value in record.__dict__.items():
        if key in _LOG_RECORD_RESERVED_KEYS or key.startswith("_"):
            continue
        try:
            json.dumps(value)
            sanitized[key] = value
        except (TypeError, ValueError):
            sanitized[key] = repr(value)
    return sanitized


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_record_extra(record))
        if record.exc_info:
            payload["traceback"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> logging.Handler:
    """Attach a stderr handler to the root logger using the configured format."""
    level_name = (level or settings.log_level).upper()
    handler = logging.StreamHandler(sys.stderr)
    if (log_format or settings.log_format).lower() == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        )

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if getattr(existing, "_subway_console", False):
            root_logger.removeHandler(existing)
    handler._subway_console = True  # type: ignore[attr-defined]
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level_name, logging.INFO))
    return handler


class _CentralLogHandler(logging.Handler):
    """Logging handler that forwards records into an async queue."""

    def __init__(self, manager: "CentralizedLogManager") -> None:
        super().__init__(manager.level)
        self.manager = manager

    def emit(self, record: logging.LogRecord) -> None:  # noqa: D401 - standard emit signature
        if record.levelno < self.manager.level:
            return
        payload = self.manager.serialize_record(record)
        try:
            self.manager.queue.put_nowait(payload)
        except asyncio.QueueFull:
            self.manager.report_queue_full()


class CentralizedLogManager:
    """Background task that persists log records to the database."""

    def __init__(
        self,
        service_name: str,
        level: int,
        queue_size: int,
        session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
    ) -> None:
        self.service_name = service_name
        self.level = level
        self.queue: asyncio.Queue[Optional[Dict[str, Any]]] = asyncio.Queue(maxsize=queue_size)
        self._session_factory = session_factory
        self._task: Optional[asyncio.Task[None]] = None
        self._queue_warning_emitted = False

    def create_handler(self) -> logging.Handler:
        """Return a handler bound to this manager."""
        return _CentralLogHandler(self)

    async def start(self) -> None:
        """Start the background consumer if not already running."""
        if self._task is None:
            self._task = asyncio.create_task(self._worker(), name=f"log-writer-{self.service_name}")

    async def stop(self) -> None:
        """Stop the background consumer, flushing any pending records."""
        if self._task is None:
            return
        await self.queue.put(None)
        await self._task
        self._task = None
        self._queue_warning_emitted = False

    async def _worker(self) -> None:
        while True:
            item = await self.queue.get()
            if item is None:
                self.queue.task_done()
                break
            try:
                async with self._session_factory() as session:
                    session.add(SystemLog(**item))
                    await session.commit()
            except Exception:  # pragma: no cover - database unavailable
                # Logging here would feed the queue again; write to stderr.
                traceback.print_exc()
            finally:
                self.queue.task_done()

    def serialize_record(self, record: logging.LogRecord) -> Dict[str, Any]:
        """Convert a log record into the payload stored in the database."""
        payload: Dict[str, Any] = {
            "service": self.service_name,
            "level": record.levelname,
            "logger_name": record.name,
            "message": record.getMessage(),
            "created_at": datetime.fromtimestamp(record.created, tz=timezone.utc),
        }

        if record.exc_info:
            payload["traceback"] = "".join(traceback.format_exception(*record.exc_info))
        elif record.exc_text:
            payload["traceback"] = record.exc_text

        extra = _record_extra(record)
        if extra:
            payload["extra"] = extra
        return payload

    def report_queue_full(self) -> None:
        """Emit a single warning to stderr if the queue overflows."""
        if self._queue_warning_emitted:
            return
        self._queue_warning_emitted = True
        print(
            f"Centralized logging queue for service '{self.service_name}' is full; dropping log entries.",
            file=sys.stderr,
        )


_manager_instance: Optional[CentralizedLogManager] = None


async def enable_centralized_logging(service_name: str) -> Optional[CentralizedLogManager]:
    """Configure Python logging to forward records into the central store."""
    global _manager_instance

    if not settings.centralized_logging_enabled:
        return None

    if _manager_instance is not None:
        # Already configured for this process.
        return _manager_instance

    level = getattr(logging, settings.centralized_log_level.upper(), logging.WARNING)
    manager = CentralizedLogManager(
        service_name=service_name,
        level=level,
        queue_size=max(1, settings.centralized_log_queue_size),
    )

    handler = manager.create_handler()
    handler.setLevel(level)
    logging.getLogger().addHandler(handler)

    _manager_instance = manager
    await manager.start()
    return manager


async def disable_centralized_logging() -> None:
    """Tear down the centralized logging manager if it exists."""
    global _manager_instance

    if _manager_instance is None:
        return
    await _manager_instance.stop()
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if isinstance(handler, _CentralLogHandler) and handler.manager is _manager_instance:
            root_logger.removeHandler(handler)
    _manager_instance = None
