from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, DefaultDict, List

NOTICE_EVENT = "notice"


class NoticeLevel(str, Enum):
    INFO = "INFO"
    OK = "OK"
    WARN = "WARN"
    ERROR = "ERROR"


@dataclass(frozen=True)
class Notice:
    """User-facing, non-blocking notification."""
    level: NoticeLevel
    message: str


class EventBus:
    """Simple in-process event bus for app-level signals."""

    def __init__(self) -> None:
        self._subscribers: DefaultDict[str, List[Callable[[Any], None]]] = defaultdict(list)

    def subscribe(self, event: str, handler: Callable[[Any], None]) -> None:
        self._subscribers[event].append(handler)

    def unsubscribe(self, event: str, handler: Callable[[Any], None]) -> None:
        handlers = self._subscribers.get(event)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def publish(self, event: str, payload: Any) -> None:
        for handler in list(self._subscribers.get(event, [])):
            handler(payload)

    def notify(self, level: NoticeLevel, message: str) -> None:
        self.publish(NOTICE_EVENT, Notice(level=level, message=message))
