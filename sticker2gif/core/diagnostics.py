"""Append-only, timestamped diagnostics log for one conversion job."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import datetime
from typing import Iterator, Optional

ROOT_LOGGER = "sticker2gif"


@dataclass(frozen=True)
class LogEntry:
    timestamp: str
    level: str
    message: str


def _format_timestamp(created: float) -> str:
    return datetime.fromtimestamp(created).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]


class DiagnosticsLog(logging.Handler):
    """Collect log records as :class:`LogEntry` items.

    DEBUG records are kept only when ``debug_mode`` is set.
    """

    def __init__(self, debug_mode: bool = False) -> None:
        super().__init__(level=logging.DEBUG if debug_mode else logging.INFO)
        self.debug_mode = debug_mode
        self.entries: list[LogEntry] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.entries.append(
            LogEntry(
                timestamp=_format_timestamp(record.created),
                level=record.levelname,
                message=record.getMessage(),
            )
        )

    def messages(self) -> list[str]:
        return [entry.message for entry in self.entries]

    def lines(self) -> list[str]:
        return [f"[{entry.timestamp}] {entry.message}" for entry in self.entries]

    def clear(self) -> None:
        self.entries.clear()


# The sink owning the code running in the current thread or task.
_current_sink: ContextVar[Optional[DiagnosticsLog]] = ContextVar("sticker2gif_diagnostics", default=None)


class _LevelGuard:
    """Keep the package logger verbose enough for every open sink.

    The logger's own level is saved when the first sink opens and restored
    when the last one closes.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sinks: list[DiagnosticsLog] = []
        self._saved_level = logging.NOTSET
        self._saved_effective = logging.WARNING

    def _apply(self, package_logger: logging.Logger) -> None:
        if not self._sinks:
            package_logger.setLevel(self._saved_level)
            return
        wanted = logging.DEBUG if any(sink.debug_mode for sink in self._sinks) else logging.INFO
        package_logger.setLevel(self._saved_level if self._saved_effective <= wanted else wanted)

    def open(self, sink: DiagnosticsLog, package_logger: logging.Logger) -> None:
        with self._lock:
            if not self._sinks:
                self._saved_level = package_logger.level
                self._saved_effective = package_logger.getEffectiveLevel()
            self._sinks.append(sink)
            self._apply(package_logger)

    def close(self, sink: DiagnosticsLog, package_logger: logging.Logger) -> None:
        with self._lock:
            self._sinks.remove(sink)
            self._apply(package_logger)


_levels = _LevelGuard()


@contextmanager
def capture_diagnostics(debug_mode: bool = False) -> Iterator[DiagnosticsLog]:
    """Attach a :class:`DiagnosticsLog` to the package logger for the duration of a job.

    Only records logged from the job's own thread or task reach its sink, so
    concurrent jobs never see each other's messages.
    """

    sink = DiagnosticsLog(debug_mode)
    sink.addFilter(lambda record: _current_sink.get() is sink)
    package_logger = logging.getLogger(ROOT_LOGGER)
    token = _current_sink.set(sink)
    _levels.open(sink, package_logger)
    package_logger.addHandler(sink)
    try:
        yield sink
    finally:
        package_logger.removeHandler(sink)
        _levels.close(sink, package_logger)
        _current_sink.reset(token)
