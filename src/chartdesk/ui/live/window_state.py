from __future__ import annotations

from chartdesk.application.chart.candle_store import CandleStore
from chartdesk.domain.orders import OrderTicket
from chartdesk.ui.live.chart_coordinator import DEFAULT_MARGINS


def initialize_chart_state(window) -> None:
    window._context = None
    window._candle_store = CandleStore()
    window._ticket = OrderTicket()
    window._chart_type = "candlestick"
    window._chart_plot = None
    window._candlestick_item = None
    window._line_item = None
    window._line_points = []
    window._last_price_line = None
    window._scale_margins = DEFAULT_MARGINS
    window._feed_unsubscribe = None
    window._snapshot_inflight_key = None
    window._mounted = False
