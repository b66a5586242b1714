from __future__ import annotations

from typing import Optional

from chartdesk.application.chart.marker_set import PriceMarkerSet
from chartdesk.domain.orders import Marker, MarkerKind
from chartdesk.ui.live.chart_items import MarkerLine


class MarkerLineLayer:
    """Keeps one MarkerLine per marker in the plot, following the marker set."""

    def __init__(self, plot, markers: PriceMarkerSet) -> None:
        self._plot = plot
        self._lines: dict[MarkerKind, MarkerLine] = {}
        markers.subscribe(self.handle_marker_changed)

    def line(self, kind: MarkerKind) -> Optional[MarkerLine]:
        return self._lines.get(kind)

    def handle_marker_changed(self, kind: MarkerKind, marker: Optional[Marker]) -> None:
        line = self._lines.get(kind)
        if marker is None:
            if line is not None:
                self._plot.removeItem(line)
                del self._lines[kind]
            return
        if line is None:
            line = MarkerLine(marker)
            self._lines[kind] = line
            self._plot.addItem(line, ignoreBounds=True)
            return
        line.apply(marker)
