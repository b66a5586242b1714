from __future__ import annotations

import random
import threading
import time
from dataclasses import dataclass, field
from typing import Optional

from chartdesk.domain.bars import BAR_SECONDS, Bar, bucket_start
from chartdesk.domain.orders import OrderContext
from chartdesk.infrastructure.broker.errors import ErrorCode, TradeApiError


def synthetic_bars(count: int = 120, *, start_price: float = 100.0, end_ts: Optional[int] = None, seed: int = 7) -> list[Bar]:
    """Random-walk minute bars ending at the current bucket."""
    rng = random.Random(seed)
    last = bucket_start(end_ts if end_ts is not None else int(time.time()))
    bars: list[Bar] = []
    price = start_price
    for index in range(count):
        open_price = price
        close = max(0.05, open_price + rng.uniform(-1.5, 1.5))
        high = max(open_price, close) + rng.uniform(0.0, 0.8)
        low = max(0.01, min(open_price, close) - rng.uniform(0.0, 0.8))
        bar_time = last - (count - 1 - index) * BAR_SECONDS
        bars.append(Bar(time=bar_time, open=round(open_price, 2), high=round(high, 2), low=round(low, 2), close=round(close, 2)))
        price = close
    return bars


@dataclass
class FakeTradeApi:
    """In-memory stand-in for the order service."""
    trades: dict[str, dict] = field(default_factory=dict)
    bars: list[Bar] = field(default_factory=list)
    fail_updates: bool = False
    updates: list[tuple[str, dict]] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def fetch_trades(self) -> list[dict]:
        with self._lock:
            return [dict(trade) for trade in self.trades.values()]

    def fetch_order_context(self, trade_id: str) -> Optional[OrderContext]:
        with self._lock:
            trade = self.trades.get(str(trade_id))
            return OrderContext.from_trade(trade) if trade else None

    def fetch_candles(self, instrument: str, expiry: str, ltp_range: float) -> list[Bar]:
        return list(self.bars)

    def update_trade(self, trade_id: str, payload: dict) -> None:
        if self.fail_updates:
            raise TradeApiError(ErrorCode.NETWORK, "Fake order service unavailable")
        with self._lock:
            self.updates.append((str(trade_id), dict(payload)))
            trade = self.trades.get(str(trade_id))
            if trade is None:
                return
            if "qty" in payload:
                trade["entryTriggered"] = payload.get("entryType") == "MARKET"
            trade.update(payload)
