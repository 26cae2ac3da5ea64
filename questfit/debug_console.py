"""In-process capture of recent log lines.

``ConsoleCapture`` is a ``logging.Handler`` that keeps the last N formatted
records in a ring buffer and fans each new line out to subscribers.  It is
created and attached in the app lifespan and detached on shutdown; nothing
here patches ``print`` or any global stream.

Usage::

    capture = ConsoleCapture(capacity=500)
    capture.install()
    with capture.subscribe(queue.append):
        ...
    capture.uninstall()
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterator


@dataclass(frozen=True)
class LogLine:
    timestamp: str
    level: str
    logger: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {
            "timestamp": self.timestamp,
            "level": self.level,
            "logger": self.logger,
            "message": self.message,
        }


Listener = Callable[[LogLine], None]


class ConsoleCapture(logging.Handler):
    """Bounded, observable log buffer."""

    def __init__(self, capacity: int = 500, level: int = logging.DEBUG) -> None:
        super().__init__(level=level)
        self._lines: deque[LogLine] = deque(maxlen=capacity)
        self._listeners: list[Listener] = []
        self._lines_lock = threading.Lock()
        self._target: logging.Logger | None = None

    # ------------------------------------------------------------------
    # logging.Handler
    # ------------------------------------------------------------------

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = LogLine(
                timestamp=datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
                level=record.levelname,
                logger=record.name,
                message=record.getMessage(),
            )
        except Exception:
            self.handleError(record)
            return

        with self._lines_lock:
            self._lines.append(line)
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(line)
            except Exception:
                self.handleError(record)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def install(self, logger_name: str = "questfit") -> None:
        self._target = logging.getLogger(logger_name)
        self._target.addHandler(self)

    def uninstall(self) -> None:
        if self._target is not None:
            self._target.removeHandler(self)
            self._target = None
        with self._lines_lock:
            self._listeners.clear()

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def lines(self, limit: int | None = None) -> list[LogLine]:
        with self._lines_lock:
            snapshot = list(self._lines)
        return snapshot[-limit:] if limit else snapshot

    def clear(self) -> None:
        with self._lines_lock:
            self._lines.clear()

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that removes it."""
        with self._lines_lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lines_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    @contextmanager
    def subscribe(self, listener: Listener) -> Iterator[None]:
        unsubscribe = self.add_listener(listener)
        try:
            yield
        finally:
            unsubscribe()
