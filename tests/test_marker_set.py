from __future__ import annotations

from chartdesk.application.chart.marker_set import PriceMarkerSet
from chartdesk.domain.orders import EntryType, MarkerKind, OrderContext, Side, TicketOrderType


def _context(**overrides) -> OrderContext:
    values = dict(trade_id="t1", side=Side.LONG, entry_type=EntryType.LIMIT)
    values.update(overrides)
    return OrderContext(**values)


def test_rebuild_uses_context_prices_and_falls_back_to_latest_close() -> None:
    markers = PriceMarkerSet()

    markers.rebuild(_context(entry_price=100.0, stop_loss_price=95.0), latest_close=101.5)

    assert markers.get(MarkerKind.LIMIT) == 100.0
    assert markers.get(MarkerKind.STOP_LOSS) == 95.0
    assert markers.get(MarkerKind.TAKE_PROFIT) == 101.5
    assert markers.marker(MarkerKind.STOP_LOSS).label == "SL (95.00)"


def test_undefined_order_with_market_ticket_draws_nothing() -> None:
    markers = PriceMarkerSet()
    markers.rebuild(_context(entry_price=100.0), latest_close=101.0)

    markers.rebuild(_context(entry_type=EntryType.UNDEFINED), 101.0, TicketOrderType.MARKET)

    assert len(markers) == 0


def test_undefined_order_with_limit_ticket_draws_all_three() -> None:
    markers = PriceMarkerSet()

    markers.rebuild(_context(entry_type=EntryType.UNDEFINED), 101.0, TicketOrderType.LIMIT)

    assert markers.kinds() == [MarkerKind.LIMIT, MarkerKind.STOP_LOSS, MarkerKind.TAKE_PROFIT]
    assert {markers.get(kind) for kind in markers.kinds()} == {101.0}


def test_rebuild_without_any_price_skips_markers() -> None:
    markers = PriceMarkerSet()

    markers.rebuild(_context(entry_price=100.0), latest_close=None)

    assert markers.kinds() == [MarkerKind.LIMIT]


def test_listeners_see_set_and_remove() -> None:
    markers = PriceMarkerSet()
    events: list[tuple[MarkerKind, object]] = []
    markers.subscribe(lambda kind, marker: events.append((kind, None if marker is None else marker.price)))

    markers.set(MarkerKind.TAKE_PROFIT, 110.123)
    markers.set(MarkerKind.TAKE_PROFIT, float("nan"))
    markers.remove(MarkerKind.TAKE_PROFIT)
    markers.remove(MarkerKind.TAKE_PROFIT)

    assert events == [(MarkerKind.TAKE_PROFIT, 110.123), (MarkerKind.TAKE_PROFIT, None)]
    assert markers.get(MarkerKind.TAKE_PROFIT) is None
