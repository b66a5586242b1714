from __future__ import annotations

import logging
import math

from PySide6.QtCore import QPointF

logger = logging.getLogger(__name__)


class ViewBoxCoordinateMapper:
    """
    Price <-> scene-pixel conversion through a pyqtgraph ViewBox.

    Every call reads the view box's live transform, so zoom and pan between
    pointer events are always honoured.
    """

    def __init__(self, view_box) -> None:
        self._view_box = view_box

    def price_to_y(self, price: float) -> float:
        try:
            point = self._view_box.mapViewToScene(QPointF(0.0, float(price)))
        except Exception as exc:
            logger.debug("price_to_y unavailable: %s", exc)
            return math.nan
        if point is None:
            return math.nan
        return float(point.y())

    def y_to_price(self, y: float) -> float:
        try:
            point = self._view_box.mapSceneToView(QPointF(0.0, float(y)))
        except Exception as exc:
            # Raised while the scale is not invertible yet (zero-size view).
            logger.debug("y_to_price unavailable: %s", exc)
            return math.nan
        if point is None:
            return math.nan
        return float(point.y())
