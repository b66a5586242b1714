"""
Order sync gateway: debounced, validated commits to the order service.
"""
from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from chartdesk.application.orders.debounce import KeyedDebouncer
from chartdesk.application.orders.protocols import Dispatcher, OrderTransport, Scheduler
from chartdesk.application.orders.validation import (
    OrderValidationError,
    build_marker_update,
    build_place_order,
)
from chartdesk.domain.orders import MarkerKind, OrderContext, OrderTicket, OrderUpdate
from chartdesk.infrastructure.broker.base import BaseCallbacks, LoggingMixin, build_callbacks
from chartdesk.infrastructure.broker.errors import TradeApiError

logger = logging.getLogger(__name__)

DEBOUNCE_MS = 500


@dataclass
class OrderSyncCallbacks(BaseCallbacks):
    """Gateway callbacks; `on_error` carries user-facing rejections and failures."""

    on_success: Optional[Callable[[str], None]] = None
    on_warning: Optional[Callable[[str], None]] = None
    on_sent: Optional[Callable[[OrderUpdate], None]] = None


def thread_dispatcher(job: Callable[[], None]) -> None:
    worker = threading.Thread(target=job, name="order-sync", daemon=True)
    worker.start()


class OrderSyncGateway(LoggingMixin[OrderSyncCallbacks]):
    def __init__(
        self,
        transport: OrderTransport,
        scheduler: Scheduler,
        *,
        context_provider: Callable[[], Optional[OrderContext]],
        limit_price_provider: Callable[[], Optional[float]] = lambda: None,
        debounce_ms: int = DEBOUNCE_MS,
        dispatcher: Dispatcher = thread_dispatcher,
    ) -> None:
        self._transport = transport
        self._context_provider = context_provider
        self._limit_price_provider = limit_price_provider
        self._debouncer: KeyedDebouncer[MarkerKind, float] = KeyedDebouncer(scheduler, debounce_ms)
        self._dispatcher = dispatcher
        self._callbacks = OrderSyncCallbacks()

    def set_callbacks(
        self,
        on_success: Optional[Callable[[str], None]] = None,
        on_warning: Optional[Callable[[str], None]] = None,
        on_sent: Optional[Callable[[OrderUpdate], None]] = None,
        on_error: Optional[Callable[[str], None]] = None,
        on_log: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._callbacks = build_callbacks(
            OrderSyncCallbacks,
            on_success=on_success,
            on_warning=on_warning,
            on_sent=on_sent,
            on_error=on_error,
            on_log=on_log,
        )

    @property
    def debouncer(self) -> KeyedDebouncer[MarkerKind, float]:
        return self._debouncer

    def commit_marker(self, kind: MarkerKind, price: float) -> None:
        """Queue a dragged marker price; later commits of the same kind win."""
        try:
            price = float(price)
        except (TypeError, ValueError):
            price = math.nan
        if not math.isfinite(price):
            logger.info("Dropping %s commit with non-finite price", kind.value)
            return
        self._debouncer.submit(kind, price, self._flush_marker)

    def place_order(
        self,
        ticket: OrderTicket,
        *,
        limit: Optional[float] = None,
        stop_loss: Optional[float] = None,
        take_profit: Optional[float] = None,
    ) -> bool:
        context = self._context_provider()
        if context is None:
            self._log("No trade selected; order not placed")
            return False
        try:
            payload = build_place_order(
                context,
                ticket,
                limit=limit,
                stop_loss=stop_loss,
                take_profit=take_profit,
            )
        except OrderValidationError as exc:
            self._emit_warning(str(exc))
            return False
        update = OrderUpdate(trade_id=context.trade_id, action="placeOrder", payload=payload)
        self._send(update, success_message="Order placed successfully")
        return True

    def cancel_pending(self) -> None:
        self._debouncer.cancel_all()

    def _flush_marker(self, kind: MarkerKind, price: float) -> None:
        context = self._context_provider()
        if context is None:
            self._log(f"No trade selected; {kind.short_label} commit dropped")
            return
        try:
            payload = build_marker_update(
                context,
                kind,
                price,
                limit_marker=self._limit_price_provider(),
            )
        except OrderValidationError as exc:
            self._emit_error(str(exc))
            return
        update = OrderUpdate(trade_id=context.trade_id, action="updatePrice", payload=payload, kind=kind)
        self._send(update, success_message=f"{kind.short_label} price updated")

    def _send(self, update: OrderUpdate, *, success_message: str) -> None:
        self._log(f"➡️ {update.action} trade={update.trade_id} {update.payload}")
        if self._callbacks.on_sent:
            self._callbacks.on_sent(update)

        def job() -> None:
            try:
                self._transport.update_trade(update.trade_id, update.payload)
            except TradeApiError as exc:
                logger.warning("Order update failed: %s", exc)
                if update.kind is not None:
                    self._emit_error("Error updating price")
                else:
                    self._emit_error(f"Error placing order: {exc.error.message}")
                return
            if self._callbacks.on_success:
                self._callbacks.on_success(success_message)

        self._dispatcher(job)

    def _emit_warning(self, message: str) -> None:
        self._log(f"⚠️ {message}")
        if self._callbacks.on_warning:
            self._callbacks.on_warning(message)
