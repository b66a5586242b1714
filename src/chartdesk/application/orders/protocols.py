from __future__ import annotations

from typing import Callable, Optional, Protocol

from chartdesk.domain.bars import Bar
from chartdesk.domain.orders import OrderContext


class TradeApiLike(Protocol):
    def fetch_order_context(self, trade_id: str) -> Optional[OrderContext]:
        ...

    def fetch_candles(self, instrument: str, expiry: str, ltp_range: float) -> list[Bar]:
        ...

    def update_trade(self, trade_id: str, payload: dict) -> None:
        ...


class OrderTransport(Protocol):
    """Sends one validated update; raises on transport or backend failure."""

    def update_trade(self, trade_id: str, payload: dict) -> None:
        ...


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        ...


# Runs a blocking job without blocking the caller.
Dispatcher = Callable[[Callable[[], None]], None]
