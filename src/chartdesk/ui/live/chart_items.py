from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import pyqtgraph as pg
from pyqtgraph.Qt import QtCore, QtGui

from chartdesk.domain.orders import Marker, MarkerKind

Candle = tuple[float, float, float, float, float]

UP_COLOR = "#10b981"
DOWN_COLOR = "#ef4444"
MARKER_COLORS = {
    MarkerKind.LIMIT: "#2962FF",
    MarkerKind.STOP_LOSS: "#ef5350",
    MarkerKind.TAKE_PROFIT: "#26a69a",
}


class TimeAxisItem(pg.AxisItem):
    def tickStrings(self, values, scale, spacing) -> list[str]:
        labels = []
        for value in values:
            try:
                labels.append(datetime.fromtimestamp(value, tz=timezone.utc).strftime("%H:%M"))
            except (OSError, ValueError, OverflowError):
                labels.append("")
        return labels


class CandlestickItem(pg.GraphicsObject):
    """
    Candles drawn from a cached picture of the history plus one live candle
    painted on top, so a tick only repaints the trailing bar.
    """

    def __init__(self, data: list[Candle]):
        super().__init__()
        self._data = data
        self._live: Optional[Candle] = None
        self._picture = QtGui.QPicture()
        self._bounds = QtCore.QRectF(0.0, 0.0, 1.0, 1.0)
        self._half_width = 20.0
        self._generate_picture()

    def setData(self, data: list[Candle]) -> None:
        self.prepareGeometryChange()
        self._data = data
        if self._live is not None and data and self._live[0] <= data[-1][0]:
            self._live = None
        self._generate_picture()
        self.update()

    def update_bar(self, candle: Optional[Candle]) -> None:
        self.prepareGeometryChange()
        self._live = candle
        self._update_bounds()
        self.update()

    @property
    def live_candle(self) -> Optional[Candle]:
        return self._live

    def _generate_picture(self) -> None:
        self._picture = QtGui.QPicture()
        painter = QtGui.QPainter(self._picture)
        self._half_width = self._infer_half_width()
        for candle in self._data:
            self._draw_candle(painter, candle)
        painter.end()
        self._update_bounds()

    def _draw_candle(self, painter: QtGui.QPainter, candle: Candle) -> None:
        candle_ts, open_price, high, low, close = candle
        width = self._half_width
        painter.setPen(pg.mkPen("#9ca3af", width=1))
        painter.drawLine(QtCore.QPointF(candle_ts, low), QtCore.QPointF(candle_ts, high))
        if open_price > close:
            color = DOWN_COLOR
            rect = QtCore.QRectF(candle_ts - width, close, width * 2, open_price - close)
        else:
            color = UP_COLOR
            rect = QtCore.QRectF(candle_ts - width, open_price, width * 2, close - open_price)
        painter.setPen(pg.mkPen(color, width=2))
        if rect.height() == 0:
            painter.drawLine(
                QtCore.QPointF(candle_ts - width, open_price),
                QtCore.QPointF(candle_ts + width, open_price),
            )
        else:
            painter.setBrush(pg.mkBrush(color))
            painter.drawRect(rect)

    def _update_bounds(self) -> None:
        points = list(self._data)
        if self._live is not None:
            points.append(self._live)
        if not points:
            self._bounds = QtCore.QRectF(0.0, 0.0, 1.0, 1.0)
            return
        width = self._half_width
        min_x = min(float(p[0]) for p in points) - width
        max_x = max(float(p[0]) for p in points) + width
        min_y = min(float(p[3]) for p in points)
        max_y = max(float(p[2]) for p in points)
        self._bounds = QtCore.QRectF(min_x, min_y, max(max_x - min_x, 1.0), max(max_y - min_y, 1e-8))

    def _infer_half_width(self) -> float:
        if len(self._data) < 2:
            return 20.0
        times = [point[0] for point in self._data]
        diffs = [b - a for a, b in zip(times, times[1:]) if b > a]
        if not diffs:
            return 20.0
        diffs.sort()
        step = diffs[len(diffs) // 2]
        return max(1.0, step * 0.225)

    def paint(self, painter, *args) -> None:
        painter.drawPicture(0, 0, self._picture)
        if self._live is not None:
            self._draw_candle(painter, self._live)

    def boundingRect(self) -> QtCore.QRectF:
        return QtCore.QRectF(self._bounds)

    def dataBounds(self, ax: int, frac: float = 1.0, orthoRange=None):
        if not self._data and self._live is None:
            return None
        if ax == 0:
            return [self._bounds.left(), self._bounds.right()]
        if ax == 1:
            return [self._bounds.top(), self._bounds.bottom()]
        return None


class MarkerLine(pg.InfiniteLine):
    """Horizontal price line for one order marker; moved only by the engine."""

    def __init__(self, marker: Marker) -> None:
        color = MARKER_COLORS[marker.kind]
        super().__init__(
            pos=marker.price,
            angle=0,
            movable=False,
            pen=pg.mkPen(color, width=2),
            label=marker.label,
            labelOpts={"position": 0.92, "color": "#f9fafb", "fill": pg.mkBrush(color), "movable": False},
        )
        self.kind = marker.kind
        self.setZValue(20)

    def apply(self, marker: Marker) -> None:
        self.setValue(marker.price)
        self.label.setFormat(marker.label)
