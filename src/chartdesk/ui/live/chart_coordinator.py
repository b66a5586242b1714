from __future__ import annotations

from chartdesk.domain.bars import BAR_SECONDS, LiveBar

CHART_TYPES = ("candlestick", "line")
DEFAULT_MARGINS = (0.2, 0.2)
VISIBLE_CANDLES = 120


class LiveChartCoordinator:
    """Encapsulates chart rendering, live-bar updates and range control."""

    def __init__(self, window) -> None:
        self._window = window

    def set_chart_type(self, chart_type: str) -> None:
        w = self._window
        chart_type = str(chart_type or "").strip().lower()
        if chart_type not in CHART_TYPES or chart_type == w._chart_type:
            return
        w._chart_type = chart_type
        self.redraw()

    def redraw(self) -> None:
        """Full redraw from the candle store; used for snapshots and mode switches."""
        w = self._window
        if not w._candlestick_item or not w._chart_plot:
            return
        store = w._candle_store
        is_line = w._chart_type == "line"
        w._candlestick_item.setVisible(not is_line)
        w._line_item.setVisible(is_line)
        w._line_points = []
        if is_line:
            w._candlestick_item.setData([])
            w._candlestick_item.update_bar(None)
            xs, ys = store.line_points()
            w._line_item.setData(xs, ys)
        else:
            w._line_item.setData([], [])
            w._candlestick_item.setData(store.candle_tuples())
            live = store.live_bar
            w._candlestick_item.update_bar(None if live is None else live.as_tuple())
        if store.is_empty():
            if w._last_price_line:
                w._last_price_line.hide()
            return
        self.reapply_chart_window_from_latest()
        self.update_last_price(store.bars[-1].close)

    def apply_live_bar(self, live_bar: LiveBar) -> None:
        w = self._window
        if not w._candlestick_item:
            return
        if w._chart_type == "candlestick":
            w._candlestick_item.update_bar(live_bar.as_tuple())
        self.update_last_price(live_bar.close)

    def apply_line_point(self, point: tuple[float, float]) -> None:
        w = self._window
        if w._chart_type != "line" or not w._line_item:
            return
        points = w._line_points
        if points and points[-1][0] >= point[0]:
            points[-1] = (points[-1][0], point[1])
        else:
            points.append(point)
        xs, ys = w._candle_store.line_points()
        last_history = xs[-1] if xs else float("-inf")
        for ts, value in points:
            if ts > last_history:
                xs.append(ts)
                ys.append(value)
        w._line_item.setData(xs, ys)

    def update_last_price(self, price: float) -> None:
        w = self._window
        if not w._last_price_line:
            return
        w._last_price_line.setValue(price)
        w._last_price_line.show()

    def nudge_scale(self, direction: str) -> None:
        """Shift the price-axis margins: 'down' moves the series down, 'up' moves it up."""
        w = self._window
        top, bottom = w._scale_margins
        if direction == "down":
            top, bottom = min(top + 0.05, 0.8), max(bottom - 0.05, 0.1)
        elif direction == "up":
            top, bottom = max(top - 0.05, 0.1), min(bottom + 0.05, 0.8)
        else:
            top, bottom = DEFAULT_MARGINS
        w._scale_margins = (round(top, 2), round(bottom, 2))
        self.reapply_chart_window_from_latest()

    def reapply_chart_window_from_latest(self) -> None:
        w = self._window
        store = w._candle_store
        if not w._chart_plot or store.is_empty():
            return
        candles = store.candle_tuples()[-VISIBLE_CANDLES:]
        live = store.live_bar
        if live is not None and live.time > candles[-1][0]:
            candles.append(live.as_tuple())
        step_seconds = BAR_SECONDS
        last_ts = candles[-1][0]
        first_ts = max(candles[0][0], last_ts - (VISIBLE_CANDLES - 1) * step_seconds)
        right_padding_candles = 4
        right_ts = last_ts + (right_padding_candles * step_seconds)
        y_low, y_high = self.compute_chart_y_range(candles)
        y_low, y_high = self.apply_margins(y_low, y_high, w._scale_margins)
        w._chart_plot.enableAutoRange(False, False)
        w._chart_plot.setXRange(float(first_ts), float(right_ts), padding=0.0)
        w._chart_plot.setYRange(float(y_low), float(y_high), padding=0.0)

    @staticmethod
    def apply_margins(y_low: float, y_high: float, margins: tuple[float, float]) -> tuple[float, float]:
        top, bottom = margins
        visible = max(0.05, 1.0 - top - bottom)
        span = max(1e-8, y_high - y_low)
        total = span / visible
        return y_low - total * bottom, y_high + total * top

    @staticmethod
    def compute_chart_y_range(candles: list[tuple[float, float, float, float, float]]) -> tuple[float, float]:
        lows = [float(c[3]) for c in candles]
        highs = [float(c[2]) for c in candles]
        raw_low = min(lows)
        raw_high = max(highs)
        raw_span = max(1e-8, raw_high - raw_low)

        body_lows = [min(float(c[1]), float(c[4])) for c in candles]
        body_highs = [max(float(c[1]), float(c[4])) for c in candles]
        body_low = min(body_lows)
        body_high = max(body_highs)
        body_span = max(1e-8, body_high - body_low)

        # A few extreme wicks should not flatten the bodies.
        if raw_span > body_span * 4.0:
            pad = max(body_span * 0.35, raw_span * 0.08)
            y_low = body_low - pad
            y_high = body_high + pad
        else:
            y_low = raw_low
            y_high = raw_high

        if y_low == y_high:
            pad = max(0.0001, abs(y_low) * 0.0001)
            y_low -= pad
            y_high += pad
        return y_low, y_high
