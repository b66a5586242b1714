from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

BAR_SECONDS = 60


@dataclass(frozen=True)
class Bar:
    """One OHLC aggregate for a minute bucket."""
    time: int
    open: float
    high: float
    low: float
    close: float

    @classmethod
    def from_payload(cls, row: Mapping[str, Any]) -> "Bar":
        try:
            time_value = int(float(row["time"]))
            open_price = float(row["open"])
            high = float(row["high"])
            low = float(row["low"])
            close = float(row["close"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Malformed bar row: {row!r}") from exc
        if not low <= min(open_price, close) or not max(open_price, close) <= high:
            raise ValueError(f"Bar prices out of range: {row!r}")
        return cls(time=time_value, open=open_price, high=high, low=low, close=close)

    def as_tuple(self) -> tuple[float, float, float, float, float]:
        return (float(self.time), self.open, self.high, self.low, self.close)


@dataclass
class LiveBar:
    """Mutable trailing bar folded from ticks."""
    time: int
    open: float
    high: float
    low: float
    close: float

    @classmethod
    def start(cls, bucket: int, price: float) -> "LiveBar":
        return cls(time=bucket, open=price, high=price, low=price, close=price)

    def fold(self, price: float) -> None:
        self.high = max(self.high, price)
        self.low = min(self.low, price)
        self.close = price

    def as_tuple(self) -> tuple[float, float, float, float, float]:
        return (float(self.time), self.open, self.high, self.low, self.close)


def bucket_start(seconds: int, step_seconds: int = BAR_SECONDS) -> int:
    return (int(seconds) // step_seconds) * step_seconds
