from __future__ import annotations

from typing import Callable, Generic, Hashable, Optional, TypeVar

from PySide6.QtCore import QTimer

from chartdesk.application.orders.protocols import Scheduler, TimerHandle

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class QtTimerHandle:
    def __init__(self, timer: QTimer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        self._timer.stop()
        self._timer.deleteLater()


class QtScheduler:
    """Single-shot QTimers on the calling thread's event loop."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        timer = QTimer()
        timer.setSingleShot(True)

        def fire() -> None:
            timer.deleteLater()
            callback()

        timer.timeout.connect(fire)
        timer.start(max(0, int(delay_ms)))
        return QtTimerHandle(timer)


class KeyedDebouncer(Generic[K, V]):
    """
    One pending timer per key; a new value restarts that key's timer and
    replaces the pending value. Only the last value is delivered.
    """

    def __init__(self, scheduler: Scheduler, delay_ms: int) -> None:
        self._scheduler = scheduler
        self._delay_ms = max(0, int(delay_ms))
        self._pending: dict[K, tuple[TimerHandle, V, object]] = {}

    @property
    def delay_ms(self) -> int:
        return self._delay_ms

    def submit(self, key: K, value: V, callback: Callable[[K, V], None]) -> None:
        self.cancel(key)
        token = object()

        def fire() -> None:
            entry = self._pending.get(key)
            # A timer that was replaced after it fired delivers nothing.
            if entry is None or entry[2] is not token:
                return
            del self._pending[key]
            callback(key, entry[1])

        handle = self._scheduler.call_later(self._delay_ms, fire)
        self._pending[key] = (handle, value, token)

    def pending_value(self, key: K) -> Optional[V]:
        entry = self._pending.get(key)
        return None if entry is None else entry[1]

    def is_pending(self, key: K) -> bool:
        return key in self._pending

    def cancel(self, key: K) -> None:
        entry = self._pending.pop(key, None)
        if entry is not None:
            entry[0].cancel()

    def cancel_all(self) -> None:
        for key in list(self._pending):
            self.cancel(key)
