from __future__ import annotations

import logging
import math
from typing import Callable, Optional

from chartdesk.domain.orders import (
    MARKER_PRIORITY,
    EntryType,
    Marker,
    MarkerKind,
    OrderContext,
    TicketOrderType,
)

logger = logging.getLogger(__name__)

# Called with (kind, marker); marker is None when the kind was removed.
MarkerListener = Callable[[MarkerKind, Optional[Marker]], None]


def markers_suppressed(context: OrderContext, ticket_order_type: TicketOrderType) -> bool:
    return context.entry_type == EntryType.UNDEFINED and ticket_order_type == TicketOrderType.MARKET


class PriceMarkerSet:
    """Owns the limit / stop-loss / take-profit markers drawn on the chart."""

    def __init__(self) -> None:
        self._markers: dict[MarkerKind, Marker] = {}
        self._listeners: list[MarkerListener] = []

    def subscribe(self, listener: MarkerListener) -> None:
        self._listeners.append(listener)

    def get(self, kind: MarkerKind) -> Optional[float]:
        marker = self._markers.get(kind)
        return None if marker is None else marker.price

    def marker(self, kind: MarkerKind) -> Optional[Marker]:
        return self._markers.get(kind)

    def kinds(self) -> list[MarkerKind]:
        return [kind for kind in MARKER_PRIORITY if kind in self._markers]

    def __contains__(self, kind: object) -> bool:
        return kind in self._markers

    def __len__(self) -> int:
        return len(self._markers)

    def set(self, kind: MarkerKind, price: float) -> None:
        price = float(price)
        if not math.isfinite(price):
            logger.warning("Ignoring non-finite %s marker price: %s", kind.value, price)
            return
        marker = self._markers.get(kind)
        if marker is None:
            marker = Marker(kind=kind, price=price)
            self._markers[kind] = marker
        else:
            marker.price = price
        self._notify(kind, marker)

    def remove(self, kind: MarkerKind) -> None:
        if self._markers.pop(kind, None) is not None:
            self._notify(kind, None)

    def clear(self) -> None:
        for kind in list(self._markers):
            self.remove(kind)

    def rebuild(
        self,
        context: OrderContext,
        latest_close: Optional[float],
        ticket_order_type: TicketOrderType = TicketOrderType.MARKET,
    ) -> None:
        """Drop every marker and rebuild all three from the order context."""
        self.clear()
        if markers_suppressed(context, ticket_order_type):
            return
        fallback = latest_close if latest_close is not None else float("nan")
        for kind in MARKER_PRIORITY:
            price = context.price_for(kind)
            if not price:
                price = fallback
            if not math.isfinite(price):
                logger.warning("Invalid price for %s marker: %s", kind.value, price)
                continue
            self.set(kind, price)

    def _notify(self, kind: MarkerKind, marker: Optional[Marker]) -> None:
        for listener in list(self._listeners):
            listener(kind, marker)
