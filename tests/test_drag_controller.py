from __future__ import annotations

import math

import pytest

from chartdesk.application.chart.drag_controller import (
    Cursor,
    DragController,
    DragState,
    can_drag,
)
from chartdesk.application.chart.marker_set import PriceMarkerSet
from chartdesk.domain.orders import EntryType, MarkerKind, OrderContext, OrderKind, Side


class _LinearScale:
    """10 px per price unit, price 200 at y=0."""

    def __init__(self) -> None:
        self.broken = False

    def price_to_y(self, price: float) -> float:
        return (200.0 - price) * 10.0

    def y_to_price(self, y: float) -> float:
        if self.broken:
            return math.nan
        return 200.0 - y / 10.0


class _Harness:
    def __init__(self, context: OrderContext | None) -> None:
        self.context = context
        self.commits: list[tuple[MarkerKind, float]] = []
        self.cursors: list[Cursor] = []
        self.scale = _LinearScale()
        self.markers = PriceMarkerSet()
        self.markers.set(MarkerKind.LIMIT, 100.0)
        self.markers.set(MarkerKind.STOP_LOSS, 90.0)
        self.markers.set(MarkerKind.TAKE_PROFIT, 110.0)
        self.controller = DragController(
            self.markers,
            self.scale,
            context_provider=lambda: self.context,
            on_commit=lambda kind, price: self.commits.append((kind, price)),
            on_cursor_changed=self.cursors.append,
        )

    @staticmethod
    def y(price: float) -> float:
        return (200.0 - price) * 10.0


def _context(entry_type: EntryType, triggered: bool = False) -> OrderContext:
    return OrderContext(trade_id="t1", side=Side.LONG, entry_type=entry_type, triggered=triggered, entry_price=100.0)


@pytest.mark.parametrize(
    ("order_kind", "allowed"),
    [
        (OrderKind.UNDEFINED, {MarkerKind.LIMIT, MarkerKind.STOP_LOSS, MarkerKind.TAKE_PROFIT}),
        (OrderKind.PENDING_LIMIT, {MarkerKind.LIMIT, MarkerKind.STOP_LOSS, MarkerKind.TAKE_PROFIT}),
        (OrderKind.TRIGGERED, {MarkerKind.STOP_LOSS, MarkerKind.TAKE_PROFIT}),
        (OrderKind.PENDING_MARKET, set()),
        (None, {MarkerKind.LIMIT, MarkerKind.STOP_LOSS, MarkerKind.TAKE_PROFIT}),
    ],
)
def test_permission_matrix(order_kind, allowed) -> None:
    assert {kind for kind in MarkerKind if can_drag(order_kind, kind)} == allowed


def test_hover_picks_nearest_marker_within_threshold() -> None:
    h = _Harness(_context(EntryType.LIMIT))

    h.controller.pointer_move(h.y(90.0) + 4)

    assert h.controller.state == DragState.HOVERING
    assert h.controller.hover_kind == MarkerKind.STOP_LOSS
    assert h.cursors[-1] == Cursor.GRAB

    h.controller.pointer_move(h.y(95.0))

    assert h.controller.state == DragState.IDLE
    assert h.controller.hover_kind is None
    assert h.cursors[-1] == Cursor.DEFAULT


def test_hover_tie_prefers_priority_order() -> None:
    h = _Harness(_context(EntryType.LIMIT))
    h.markers.set(MarkerKind.TAKE_PROFIT, 100.0)

    h.controller.pointer_move(h.y(100.0))

    assert h.controller.hover_kind == MarkerKind.LIMIT


def test_drag_moves_marker_and_commits_on_release() -> None:
    h = _Harness(_context(EntryType.LIMIT))
    h.controller.pointer_move(h.y(90.0))

    assert h.controller.pointer_down(h.y(90.0)) is True
    assert h.controller.state == DragState.DRAGGING
    h.controller.pointer_move(h.y(87.0))
    h.controller.pointer_move(h.y(85.5))

    assert h.markers.get(MarkerKind.STOP_LOSS) == pytest.approx(85.5)
    assert h.markers.marker(MarkerKind.STOP_LOSS).label == "SL (85.50)"
    assert h.commits == []

    h.controller.pointer_up(h.y(85.5))

    assert h.controller.state == DragState.IDLE
    assert h.controller.session is None
    assert h.commits == [(MarkerKind.STOP_LOSS, pytest.approx(85.5))]
    assert h.cursors[-1] == Cursor.DEFAULT


def test_triggered_order_rejects_limit_drag() -> None:
    h = _Harness(_context(EntryType.LIMIT, triggered=True))
    h.controller.pointer_move(h.y(100.0))

    started = h.controller.pointer_down(h.y(100.0))
    h.controller.pointer_up(h.y(100.0))

    assert started is False
    assert Cursor.NOT_ALLOWED in h.cursors
    assert h.commits == []
    assert h.markers.get(MarkerKind.LIMIT) == 100.0


def test_rejected_press_stays_hovering() -> None:
    h = _Harness(_context(EntryType.MARKET, triggered=True))
    h.controller.pointer_move(h.y(100.0))

    h.controller.pointer_down(h.y(100.0))

    assert h.controller.state == DragState.HOVERING
    assert h.controller.cursor == Cursor.NOT_ALLOWED


def test_triggered_order_still_allows_take_profit_drag() -> None:
    h = _Harness(_context(EntryType.MARKET, triggered=True))
    h.controller.pointer_move(h.y(110.0))

    assert h.controller.pointer_down(h.y(110.0)) is True


def test_press_without_hover_does_nothing() -> None:
    h = _Harness(_context(EntryType.LIMIT))

    assert h.controller.pointer_down(h.y(50.0)) is False
    h.controller.pointer_up(h.y(50.0))

    assert h.commits == []


def test_nan_from_scale_leaves_marker_in_place() -> None:
    h = _Harness(_context(EntryType.LIMIT))
    h.controller.pointer_move(h.y(110.0))
    h.controller.pointer_down(h.y(110.0))
    h.scale.broken = True

    h.controller.pointer_move(h.y(120.0))
    h.controller.pointer_up()

    assert h.markers.get(MarkerKind.TAKE_PROFIT) == 110.0
    assert h.commits == [(MarkerKind.TAKE_PROFIT, 110.0)]


def test_cancel_discards_drag_without_commit() -> None:
    h = _Harness(_context(EntryType.LIMIT))
    h.controller.pointer_move(h.y(100.0))
    h.controller.pointer_down(h.y(100.0))
    h.controller.pointer_move(h.y(104.0))

    h.controller.cancel()
    h.controller.pointer_up()

    assert h.controller.state == DragState.IDLE
    assert h.commits == []


def test_marker_removed_during_drag_drops_commit() -> None:
    h = _Harness(_context(EntryType.LIMIT))
    h.controller.pointer_move(h.y(90.0))
    h.controller.pointer_down(h.y(90.0))

    h.markers.remove(MarkerKind.STOP_LOSS)
    h.controller.pointer_up()

    assert h.commits == []


def test_release_delivered_during_commit_commits_once() -> None:
    h = _Harness(_context(EntryType.LIMIT))

    def reentrant_commit(kind: MarkerKind, price: float) -> None:
        h.commits.append((kind, price))
        h.controller.pointer_up()

    h.controller._on_commit = reentrant_commit
    h.controller.pointer_move(h.y(110.0))
    h.controller.pointer_down(h.y(110.0))
    session = h.controller.session

    h.controller.pointer_up(h.y(110.0))

    assert h.commits == [(MarkerKind.TAKE_PROFIT, 110.0)]
    assert session.committed is True
    assert h.controller.state == DragState.IDLE
