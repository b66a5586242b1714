from __future__ import annotations

import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable, DefaultDict, List, Optional, Protocol


@dataclass(frozen=True)
class Tick:
    instrument_id: str
    price: float
    ts_ms: float = field(default_factory=lambda: time.time() * 1000.0)


TickHandler = Callable[[Tick], None]
Unsubscribe = Callable[[], None]


class TickFeed(Protocol):
    def subscribe(self, instrument_id: str, handler: TickHandler) -> Unsubscribe:
        ...


class LocalTickFeed:
    """In-process push feed; handlers run on the publisher's thread."""

    def __init__(self) -> None:
        self._handlers: DefaultDict[str, List[TickHandler]] = defaultdict(list)

    def subscribe(self, instrument_id: str, handler: TickHandler) -> Unsubscribe:
        key = str(instrument_id)
        self._handlers[key].append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(key)
            if handlers and handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def publish(self, instrument_id: str, price: float, ts_ms: Optional[float] = None) -> None:
        key = str(instrument_id)
        tick = Tick(key, float(price)) if ts_ms is None else Tick(key, float(price), float(ts_ms))
        for handler in list(self._handlers.get(key, [])):
            handler(tick)

    def subscriber_count(self, instrument_id: str) -> int:
        return len(self._handlers.get(str(instrument_id), []))
