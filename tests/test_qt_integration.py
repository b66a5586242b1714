from __future__ import annotations

import os
import unittest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
os.environ.setdefault("QT_OPENGL", "software")

import pyqtgraph as pg
from PySide6.QtCore import QEvent, QPoint, QPointF, Qt
from PySide6.QtGui import QMouseEvent
from PySide6.QtTest import QTest
from PySide6.QtWidgets import QApplication

from chartdesk.application.chart.drag_controller import DragController, DragState
from chartdesk.application.chart.marker_set import PriceMarkerSet
from chartdesk.application.orders.debounce import KeyedDebouncer, QtScheduler
from chartdesk.application.orders.gateway import OrderSyncGateway
from chartdesk.domain.orders import EntryType, MarkerKind, OrderContext, Side
from chartdesk.ui.live.drag_input import ChartPointerFilter


class _RecordingTransport:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []

    def update_trade(self, trade_id: str, payload: dict) -> None:
        self.calls.append((trade_id, payload))


class _SceneScale:
    """2 px per price unit, price 100 at the given scene y."""

    def __init__(self, anchor_y: float) -> None:
        self.anchor_y = anchor_y

    def price_to_y(self, price: float) -> float:
        return self.anchor_y + (100.0 - price) * 2.0

    def y_to_price(self, y: float) -> float:
        return 100.0 - (y - self.anchor_y) / 2.0


def _mouse(event_type: QEvent.Type, x: int, y: int, button=Qt.LeftButton) -> QMouseEvent:
    buttons = Qt.LeftButton if event_type == QEvent.MouseButtonPress else Qt.NoButton
    pos = QPointF(x, y)
    return QMouseEvent(event_type, pos, pos, button, buttons, Qt.NoModifier)


class QtSchedulerTest(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls._app = QApplication.instance() or QApplication([])

    def test_debounced_commits_fire_once_on_the_event_loop(self) -> None:
        transport = _RecordingTransport()
        context = OrderContext(trade_id="t1", side=Side.LONG, entry_type=EntryType.LIMIT, entry_price=100.0)
        gateway = OrderSyncGateway(
            transport,
            QtScheduler(),
            context_provider=lambda: context,
            debounce_ms=20,
            dispatcher=lambda job: job(),
        )

        for price in (96.0, 95.0, 94.0):
            gateway.commit_marker(MarkerKind.STOP_LOSS, price)
        self.assertEqual(transport.calls, [])
        QTest.qWait(150)

        self.assertEqual(len(transport.calls), 1)
        self.assertEqual(transport.calls[0][1]["stopLossPremium"], 94.0)

    def test_cancelled_timer_never_fires(self) -> None:
        delivered = []
        debouncer: KeyedDebouncer[str, float] = KeyedDebouncer(QtScheduler(), 20)

        debouncer.submit("tp", 1.0, lambda key, value: delivered.append(value))
        debouncer.cancel("tp")
        QTest.qWait(100)

        self.assertEqual(delivered, [])


class ChartPointerFilterTest(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls._app = QApplication.instance() or QApplication([])

    def setUp(self) -> None:
        self.plot = pg.PlotWidget()
        self.plot.resize(400, 300)
        self.viewport = self.plot.viewport()
        anchor_y = float(self.plot.mapToScene(QPoint(50, 100)).y())
        self.scale = _SceneScale(anchor_y)
        self.markers = PriceMarkerSet()
        self.markers.set(MarkerKind.LIMIT, 100.0)
        self.commits: list[tuple[MarkerKind, float]] = []
        self.controller = DragController(
            self.markers,
            self.scale,
            context_provider=lambda: None,
            on_commit=lambda kind, price: self.commits.append((kind, price)),
        )
        self.pointer_filter = ChartPointerFilter(self.plot, self.controller)
        self.controller.set_cursor_listener(self.pointer_filter.apply_cursor)

    def tearDown(self) -> None:
        self.plot.close()
        self.plot.deleteLater()
        self._app.processEvents()

    def test_mouse_events_drag_marker_and_commit(self) -> None:
        QApplication.sendEvent(self.viewport, _mouse(QEvent.MouseMove, 50, 100, Qt.NoButton))
        self.assertEqual(self.controller.state, DragState.HOVERING)
        self.assertEqual(self.viewport.cursor().shape(), Qt.OpenHandCursor)

        QApplication.sendEvent(self.viewport, _mouse(QEvent.MouseButtonPress, 50, 100))
        self.assertEqual(self.controller.state, DragState.DRAGGING)
        self.assertEqual(self.viewport.cursor().shape(), Qt.ClosedHandCursor)

        expected = self.scale.y_to_price(float(self.plot.mapToScene(QPoint(50, 110)).y()))
        QApplication.sendEvent(self.viewport, _mouse(QEvent.MouseMove, 50, 110, Qt.NoButton))
        self.assertLess(expected, 100.0)
        self.assertAlmostEqual(self.markers.get(MarkerKind.LIMIT), expected)

        QApplication.sendEvent(self.viewport, _mouse(QEvent.MouseButtonRelease, 50, 110))

        self.assertEqual(self.controller.state, DragState.IDLE)
        self.assertEqual(len(self.commits), 1)
        self.assertEqual(self.commits[0][0], MarkerKind.LIMIT)
        self.assertAlmostEqual(self.commits[0][1], expected)
        self.assertEqual(self.viewport.cursor().shape(), Qt.ArrowCursor)

    def test_press_away_from_markers_is_left_to_the_view(self) -> None:
        filtered = self.pointer_filter.eventFilter(self.viewport, _mouse(QEvent.MouseButtonPress, 50, 250))

        self.assertFalse(filtered)
        self.assertEqual(self.controller.state, DragState.IDLE)
        self.assertEqual(self.commits, [])

    def test_leaving_viewport_clears_hover(self) -> None:
        QApplication.sendEvent(self.viewport, _mouse(QEvent.MouseMove, 50, 100, Qt.NoButton))

        self.pointer_filter.eventFilter(self.viewport, QEvent(QEvent.Leave))

        self.assertEqual(self.controller.state, DragState.IDLE)


if __name__ == "__main__":
    unittest.main()
