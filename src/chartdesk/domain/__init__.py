"""Domain models package."""

from chartdesk.domain.bars import Bar, LiveBar
from chartdesk.domain.orders import (
    EntryType,
    Marker,
    MarkerKind,
    OrderContext,
    OrderKind,
    OrderTicket,
    OrderUpdate,
    Side,
    TicketOrderType,
)

__all__ = [
    "Bar",
    "EntryType",
    "LiveBar",
    "Marker",
    "MarkerKind",
    "OrderContext",
    "OrderKind",
    "OrderTicket",
    "OrderUpdate",
    "Side",
    "TicketOrderType",
]
