from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional


class Side(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"

    @classmethod
    def from_entry_side(cls, value: Any) -> "Side":
        text = str(value or "").strip().upper()
        if text in ("BUY", "LONG"):
            return cls.LONG
        if text in ("SELL", "SHORT"):
            return cls.SHORT
        raise ValueError(f"Unknown entry side: {value!r}")


class EntryType(str, Enum):
    UNDEFINED = "UNDEFINED"
    LIMIT = "LIMIT"
    MARKET = "MARKET"

    @classmethod
    def parse(cls, value: Any) -> "EntryType":
        text = str(value or "").strip().upper()
        try:
            return cls(text)
        except ValueError:
            return cls.UNDEFINED


class OrderKind(str, Enum):
    UNDEFINED = "UNDEFINED"
    PENDING_LIMIT = "PENDING_LIMIT"
    PENDING_MARKET = "PENDING_MARKET"
    TRIGGERED = "TRIGGERED"


class MarkerKind(str, Enum):
    LIMIT = "limit"
    STOP_LOSS = "stopLoss"
    TAKE_PROFIT = "takeProfit"

    @property
    def short_label(self) -> str:
        return _SHORT_LABELS[self]


_SHORT_LABELS = {
    MarkerKind.LIMIT: "LIMIT",
    MarkerKind.STOP_LOSS: "SL",
    MarkerKind.TAKE_PROFIT: "TP",
}

# Hit-test tie break order.
MARKER_PRIORITY: tuple[MarkerKind, ...] = (
    MarkerKind.LIMIT,
    MarkerKind.STOP_LOSS,
    MarkerKind.TAKE_PROFIT,
)


class TicketOrderType(str, Enum):
    MARKET = "MARKET"
    LIMIT = "LIMIT"


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


@dataclass(frozen=True)
class OrderContext:
    """Snapshot of one trade's order state as the order service reports it."""
    trade_id: str
    side: Side
    entry_type: EntryType = EntryType.UNDEFINED
    triggered: bool = False
    entry_price: float = 0.0
    stop_loss_price: float = 0.0
    take_profit_price: float = 0.0
    stop_loss_points: float = 0.0
    take_profit_points: float = 0.0
    quantity: int = 0
    instrument: str = ""
    expiry: str = ""
    ltp_range: float = 0.0

    @property
    def order_kind(self) -> OrderKind:
        if self.entry_type == EntryType.UNDEFINED:
            return OrderKind.UNDEFINED
        if self.triggered:
            return OrderKind.TRIGGERED
        if self.entry_type == EntryType.LIMIT:
            return OrderKind.PENDING_LIMIT
        return OrderKind.PENDING_MARKET

    @property
    def instrument_key(self) -> tuple[str, str, float]:
        return (self.instrument, self.expiry, self.ltp_range)

    def price_for(self, kind: MarkerKind) -> float:
        if kind == MarkerKind.LIMIT:
            return self.entry_price
        if kind == MarkerKind.STOP_LOSS:
            return self.stop_loss_price
        return self.take_profit_price

    @classmethod
    def from_trade(cls, trade: Mapping[str, Any]) -> "OrderContext":
        return cls(
            trade_id=str(trade["id"]),
            side=Side.from_entry_side(trade.get("entrySide")),
            entry_type=EntryType.parse(trade.get("entryType")),
            triggered=bool(trade.get("entryTriggered", False)),
            entry_price=_as_float(trade.get("entryPrice")),
            stop_loss_price=_as_float(trade.get("stopLossPremium")),
            take_profit_price=_as_float(trade.get("takeProfitPremium")),
            stop_loss_points=_as_float(trade.get("stopLossPoints")),
            take_profit_points=_as_float(trade.get("takeProfitPoints")),
            quantity=int(_as_float(trade.get("qty"))),
            instrument=str(trade.get("indexName") or ""),
            expiry=str(trade.get("expiry") or ""),
            ltp_range=_as_float(trade.get("ltpRange")),
        )


@dataclass
class Marker:
    kind: MarkerKind
    price: float

    @property
    def label(self) -> str:
        return f"{self.kind.short_label} ({self.price:.2f})"


@dataclass
class OrderTicket:
    """Pending order parameters edited in the chart's order panel."""
    order_type: TicketOrderType = TicketOrderType.MARKET
    quantity: int = 1
    stop_loss_points: float = 5.0
    take_profit_points: float = 5.0


@dataclass(frozen=True)
class OrderUpdate:
    """One validated outbound request against a trade's order resource."""
    trade_id: str
    action: str
    payload: dict = field(default_factory=dict)
    kind: Optional[MarkerKind] = None
