"""
Side-dependent validation of marker commits and order placement.

Every builder either returns the JSON body for the order service or raises
`OrderValidationError`; nothing here performs I/O.
"""
from __future__ import annotations

import math
from typing import Optional

from chartdesk.domain.orders import MarkerKind, OrderContext, OrderTicket, Side, TicketOrderType


class OrderValidationError(ValueError):
    """The requested prices break the long/short ordering rules."""


def _r2(value: float) -> float:
    return round(float(value), 2)


def reference_entry(context: OrderContext, limit_marker: Optional[float]) -> float:
    if context.entry_price:
        return context.entry_price
    if limit_marker is not None and math.isfinite(limit_marker):
        return float(limit_marker)
    return 0.0


def build_marker_update(
    context: OrderContext,
    kind: MarkerKind,
    price: float,
    *,
    limit_marker: Optional[float] = None,
) -> dict:
    """Payload for a dragged marker, starting from the trade's current fields."""
    price = float(price)
    if not math.isfinite(price):
        raise OrderValidationError(f"{kind.short_label} price is not a number")
    data = {
        "entryPrice": context.entry_price,
        "stopLossPremium": context.stop_loss_price,
        "takeProfitPremium": context.take_profit_price,
        "stopLossPoints": context.stop_loss_points,
        "takeProfitPoints": context.take_profit_points,
    }
    long_side = context.side == Side.LONG

    if kind == MarkerKind.LIMIT:
        if long_side:
            data["stopLossPoints"] = _r2(price - context.stop_loss_price)
            data["takeProfitPoints"] = _r2(context.take_profit_price - price)
        else:
            data["stopLossPoints"] = _r2(context.stop_loss_price - price)
            data["takeProfitPoints"] = _r2(price - context.take_profit_price)
        data["entryPrice"] = _r2(price)
        return data

    entry = reference_entry(context, limit_marker)
    if kind == MarkerKind.STOP_LOSS:
        if long_side:
            if price >= entry:
                raise OrderValidationError("SL price should be less than the limit price")
            data["stopLossPoints"] = _r2(entry - price)
        else:
            if price <= entry:
                raise OrderValidationError("SL price should be greater than the limit price")
            data["stopLossPoints"] = _r2(price - entry)
        data["stopLossPremium"] = _r2(price)
        return data

    if long_side:
        if price <= entry:
            raise OrderValidationError("TP price should be greater than the limit price")
        data["takeProfitPoints"] = _r2(price - entry)
    else:
        if price >= entry:
            raise OrderValidationError("TP price should be less than the limit price")
        data["takeProfitPoints"] = _r2(entry - price)
    data["takeProfitPremium"] = _r2(price)
    return data


def build_place_order(
    context: OrderContext,
    ticket: OrderTicket,
    *,
    limit: Optional[float] = None,
    stop_loss: Optional[float] = None,
    take_profit: Optional[float] = None,
) -> dict:
    if not ticket.quantity or ticket.quantity <= 0:
        raise OrderValidationError("Qty is required")

    if ticket.order_type == TicketOrderType.MARKET:
        return {
            "entryType": TicketOrderType.MARKET.value,
            "stopLossPoints": float(ticket.stop_loss_points),
            "takeProfitPoints": float(ticket.take_profit_points),
            "qty": int(ticket.quantity),
        }

    prices = (limit, stop_loss, take_profit)
    if any(p is None or not math.isfinite(p) or p == 0 for p in prices):
        raise OrderValidationError("Limit, SL and TP prices are required for a limit order")
    limit_price, sl_price, tp_price = (_r2(p) for p in prices)  # type: ignore[arg-type]

    if context.side == Side.LONG:
        if tp_price <= limit_price:
            raise OrderValidationError("take profit cannot be less than the limit price")
        if sl_price >= limit_price:
            raise OrderValidationError("stop loss cannot be greater than the limit price")
        tp_points = tp_price - limit_price
        sl_points = limit_price - sl_price
    else:
        if tp_price >= limit_price:
            raise OrderValidationError("take profit cannot be greater than the limit price")
        if sl_price <= limit_price:
            raise OrderValidationError("stop loss cannot be less than the limit price")
        tp_points = limit_price - tp_price
        sl_points = sl_price - limit_price

    return {
        "entryType": TicketOrderType.LIMIT.value,
        "entryPrice": limit_price,
        "stopLossPremium": sl_price,
        "takeProfitPremium": tp_price,
        "stopLossPoints": _r2(sl_points),
        "takeProfitPoints": _r2(tp_points),
        "qty": int(ticket.quantity),
    }
