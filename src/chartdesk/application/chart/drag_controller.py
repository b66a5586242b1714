from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol

from chartdesk.application.chart.marker_set import PriceMarkerSet
from chartdesk.domain.orders import MARKER_PRIORITY, MarkerKind, OrderContext, OrderKind

logger = logging.getLogger(__name__)

HIT_THRESHOLD_PX = 10.0

_ALL_KINDS = frozenset(MarkerKind)
_PROTECTIVE_KINDS = frozenset({MarkerKind.STOP_LOSS, MarkerKind.TAKE_PROFIT})

DRAGGABLE_KINDS: dict[OrderKind, frozenset[MarkerKind]] = {
    OrderKind.UNDEFINED: _ALL_KINDS,
    OrderKind.PENDING_LIMIT: _ALL_KINDS,
    OrderKind.PENDING_MARKET: frozenset(),
    OrderKind.TRIGGERED: _PROTECTIVE_KINDS,
}


def can_drag(order_kind: Optional[OrderKind], kind: MarkerKind) -> bool:
    if order_kind is None:
        return True
    return kind in DRAGGABLE_KINDS[order_kind]


class DragState(str, Enum):
    IDLE = "idle"
    HOVERING = "hovering"
    DRAGGING = "dragging"


class Cursor(str, Enum):
    DEFAULT = "default"
    GRAB = "grab"
    GRABBING = "grabbing"
    NOT_ALLOWED = "not_allowed"


class PriceScale(Protocol):
    def price_to_y(self, price: float) -> float:
        ...

    def y_to_price(self, y: float) -> float:
        ...


@dataclass
class DragSession:
    active_kind: MarkerKind
    origin_y: float
    committed: bool = False


class DragController:
    """
    Turns pointer events into marker moves.

    Idle -> Hovering(kind) on a hit, Hovering -> Dragging on a permitted
    press, Dragging -> Idle on release (which hands the price to `on_commit`).
    """

    def __init__(
        self,
        markers: PriceMarkerSet,
        scale: PriceScale,
        *,
        context_provider: Callable[[], Optional[OrderContext]],
        on_commit: Callable[[MarkerKind, float], None],
        on_cursor_changed: Optional[Callable[[Cursor], None]] = None,
        hit_threshold_px: float = HIT_THRESHOLD_PX,
    ) -> None:
        self._markers = markers
        self._scale = scale
        self._context_provider = context_provider
        self._on_commit = on_commit
        self._on_cursor_changed = on_cursor_changed
        self._hit_threshold_px = float(hit_threshold_px)
        self._state = DragState.IDLE
        self._hover_kind: Optional[MarkerKind] = None
        self._session: Optional[DragSession] = None
        self._cursor = Cursor.DEFAULT

    @property
    def state(self) -> DragState:
        return self._state

    @property
    def hover_kind(self) -> Optional[MarkerKind]:
        return self._hover_kind

    @property
    def session(self) -> Optional[DragSession]:
        return self._session

    @property
    def cursor(self) -> Cursor:
        return self._cursor

    def set_scale(self, scale: PriceScale) -> None:
        self._scale = scale

    def set_cursor_listener(self, listener: Optional[Callable[[Cursor], None]]) -> None:
        self._on_cursor_changed = listener

    def hit_test(self, y: float) -> Optional[MarkerKind]:
        nearest: Optional[MarkerKind] = None
        min_distance = math.inf
        for kind in MARKER_PRIORITY:
            price = self._markers.get(kind)
            if price is None:
                continue
            coord = self._scale.price_to_y(price)
            if coord is None or not math.isfinite(coord):
                continue
            distance = abs(y - coord)
            # Strict comparison keeps the earlier kind on ties.
            if distance < self._hit_threshold_px and distance < min_distance:
                nearest = kind
                min_distance = distance
        return nearest

    def pointer_move(self, y: float) -> None:
        if self._state == DragState.DRAGGING and self._session is not None:
            price = self._scale.y_to_price(y)
            if price is not None and math.isfinite(price):
                self._markers.set(self._session.active_kind, price)
            self._set_cursor(Cursor.GRABBING)
            return
        kind = self.hit_test(y)
        self._hover_kind = kind
        if kind is None:
            self._state = DragState.IDLE
            self._set_cursor(Cursor.DEFAULT)
        else:
            self._state = DragState.HOVERING
            self._set_cursor(Cursor.GRAB)

    def pointer_down(self, y: float) -> bool:
        """Start a drag on the hovered marker; returns whether dragging began."""
        if self._state != DragState.HOVERING or self._hover_kind is None:
            return False
        kind = self._hover_kind
        if kind not in self._markers:
            self._reset()
            return False
        context = self._context_provider()
        order_kind = None if context is None else context.order_kind
        if not can_drag(order_kind, kind):
            logger.debug("Drag of %s marker not allowed for %s", kind.value, order_kind)
            self._set_cursor(Cursor.NOT_ALLOWED)
            return False
        self._session = DragSession(active_kind=kind, origin_y=float(y))
        self._state = DragState.DRAGGING
        self._set_cursor(Cursor.GRABBING)
        return True

    def pointer_up(self, y: Optional[float] = None) -> None:
        session = self._session
        if self._state != DragState.DRAGGING or session is None or session.committed:
            self._reset()
            return
        # Set before the callback so a release delivered from inside it is a no-op.
        session.committed = True
        try:
            price = self._markers.get(session.active_kind)
            if price is None or not math.isfinite(price):
                logger.info("Dropping %s commit without a finite price", session.active_kind.value)
                return
            self._on_commit(session.active_kind, price)
        finally:
            if self._session is session:
                self._reset()

    def cancel(self) -> None:
        """Discard any drag in progress without committing."""
        if self._session is not None:
            logger.debug("Drag of %s marker cancelled", self._session.active_kind.value)
        self._reset()

    def _reset(self) -> None:
        self._session = None
        self._hover_kind = None
        self._state = DragState.IDLE
        self._set_cursor(Cursor.DEFAULT)

    def _set_cursor(self, cursor: Cursor) -> None:
        if cursor == self._cursor:
            return
        self._cursor = cursor
        if self._on_cursor_changed:
            self._on_cursor_changed(cursor)
