from __future__ import annotations

import logging
from typing import Optional, Sequence

import pyqtgraph as pg
from PySide6.QtCore import Qt, QTimer, Signal, Slot
from PySide6.QtWidgets import QComboBox, QHBoxLayout, QPushButton, QVBoxLayout, QWidget

from chartdesk.application.chart.drag_controller import DragController, HIT_THRESHOLD_PX
from chartdesk.application.chart.marker_set import PriceMarkerSet
from chartdesk.application.chart.tick_aggregator import TickAggregator
from chartdesk.application.chart.tick_feed import Tick, TickFeed
from chartdesk.application.events import EventBus, NOTICE_EVENT, Notice, NoticeLevel
from chartdesk.application.orders.debounce import QtScheduler
from chartdesk.application.orders.gateway import DEBOUNCE_MS, OrderSyncGateway, thread_dispatcher
from chartdesk.application.orders.protocols import Dispatcher, Scheduler, TradeApiLike
from chartdesk.domain.bars import Bar
from chartdesk.domain.orders import EntryType, MarkerKind, OrderContext, TicketOrderType
from chartdesk.infrastructure.broker.errors import TradeApiError
from chartdesk.ui.live.chart_coordinator import LiveChartCoordinator
from chartdesk.ui.live.chart_items import CandlestickItem, TimeAxisItem
from chartdesk.ui.live.coordinate_mapper import ViewBoxCoordinateMapper
from chartdesk.ui.live.drag_input import ChartPointerFilter
from chartdesk.ui.live.marker_lines import MarkerLineLayer
from chartdesk.ui.live.order_panel import OrderPanel
from chartdesk.ui.live.window_state import initialize_chart_state
from chartdesk.ui.shared.widgets.notice_bar import NoticeBar

logger = logging.getLogger(__name__)

pg.setConfigOptions(useOpenGL=False, antialias=False)


class OrderChartWidget(QWidget):
    """
    Price chart for one trade with draggable limit / SL / TP markers.

    Ticks, pointer events and timers are all handled on the GUI thread;
    network calls run on worker threads and report back through signals.
    """

    tickReceived = Signal(object)
    snapshotReceived = Signal(object, object)
    contextReceived = Signal(object)
    noticeRequested = Signal(object)
    commitSucceeded = Signal(str)

    def __init__(
        self,
        trade_api: TradeApiLike,
        *,
        tick_feed: Optional[TickFeed] = None,
        event_bus: Optional[EventBus] = None,
        scheduler: Optional[Scheduler] = None,
        dispatcher: Dispatcher = thread_dispatcher,
        debounce_ms: int = DEBOUNCE_MS,
        hit_threshold_px: float = HIT_THRESHOLD_PX,
        tick_offset_seconds: int = 0,
        refresh_seconds: float = 300.0,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        initialize_chart_state(self)
        self._trade_api = trade_api
        self._tick_feed = tick_feed
        self._event_bus = event_bus or EventBus()
        self._dispatcher = dispatcher
        self._chart_coordinator = LiveChartCoordinator(self)
        self._aggregator = TickAggregator(offset_seconds=tick_offset_seconds)
        self._markers = PriceMarkerSet()

        self._build_ui()
        self._mapper = ViewBoxCoordinateMapper(self._chart_plot.getViewBox())
        self._marker_layer = MarkerLineLayer(self._chart_plot, self._markers)
        self._gateway = OrderSyncGateway(
            trade_api,
            scheduler or QtScheduler(),
            context_provider=lambda: self._context,
            limit_price_provider=lambda: self._markers.get(MarkerKind.LIMIT),
            debounce_ms=debounce_ms,
            dispatcher=dispatcher,
        )
        self._gateway.set_callbacks(
            on_success=self.commitSucceeded.emit,
            on_warning=lambda message: self.noticeRequested.emit(Notice(NoticeLevel.WARN, message)),
            on_error=lambda message: self.noticeRequested.emit(Notice(NoticeLevel.ERROR, message)),
            on_log=lambda message: logger.info(message),
        )
        self._drag_controller = DragController(
            self._markers,
            self._mapper,
            context_provider=lambda: self._context,
            on_commit=self._gateway.commit_marker,
            hit_threshold_px=hit_threshold_px,
        )
        self._pointer_filter = ChartPointerFilter(self._chart_plot, self._drag_controller)
        self._drag_controller.set_cursor_listener(self._pointer_filter.apply_cursor)

        self._refresh_timer = QTimer(self)
        self._refresh_timer.setInterval(max(1, int(refresh_seconds * 1000)))
        self._refresh_timer.timeout.connect(self.refresh_snapshot)

        self.tickReceived.connect(self._handle_tick)
        self.snapshotReceived.connect(self._handle_snapshot)
        self.contextReceived.connect(self._handle_context_refreshed)
        self.noticeRequested.connect(self._publish_notice)
        self.commitSucceeded.connect(self._handle_commit_success)

    # UI Construction
    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)
        toolbar = QHBoxLayout()
        self._chart_type_combo = QComboBox()
        self._chart_type_combo.addItem("Candles", "candlestick")
        self._chart_type_combo.addItem("Line", "line")
        self._chart_type_combo.currentIndexChanged.connect(
            lambda _index: self.set_chart_type(self._chart_type_combo.currentData())
        )
        toolbar.addWidget(self._chart_type_combo)
        for text, direction in (("↑", "up"), ("↓", "down"), ("Reset", "reset")):
            button = QPushButton(text)
            button.clicked.connect(lambda _checked=False, d=direction: self._chart_coordinator.nudge_scale(d))
            toolbar.addWidget(button)
        refresh_button = QPushButton("Refresh")
        refresh_button.clicked.connect(self.refresh_snapshot)
        toolbar.addWidget(refresh_button)
        toolbar.addStretch(1)
        layout.addLayout(toolbar)

        body = QHBoxLayout()
        plot = pg.PlotWidget(axisItems={"bottom": TimeAxisItem(orientation="bottom")})
        plot.setBackground("#1f2937")
        plot.showGrid(x=False, y=True, alpha=0.15)
        plot.enableAutoRange(False, False)
        axis_pen = pg.mkPen("#5b6370")
        axis_text = pg.mkPen("#d1d5db")
        for axis_name in ("bottom", "left"):
            plot.getAxis(axis_name).setPen(axis_pen)
            plot.getAxis(axis_name).setTextPen(axis_text)
        self._candlestick_item = CandlestickItem([])
        plot.addItem(self._candlestick_item)
        self._line_item = pg.PlotDataItem([], [], pen=pg.mkPen("#3b82f6", width=2))
        self._line_item.setVisible(False)
        plot.addItem(self._line_item)
        self._last_price_line = pg.InfiniteLine(
            angle=0,
            pen=pg.mkPen("#9ca3af", width=1, style=Qt.DashLine),
            movable=False,
        )
        self._last_price_line.hide()
        plot.addItem(self._last_price_line, ignoreBounds=True)
        self._chart_plot = plot
        body.addWidget(plot, 1)

        self._order_panel = OrderPanel(self._ticket)
        self._order_panel.orderTypeChanged.connect(self._handle_ticket_type_changed)
        self._order_panel.placeOrderRequested.connect(self.place_order)
        self._order_panel.hide()
        body.addWidget(self._order_panel)
        layout.addLayout(body, 1)

        self._notice_bar = NoticeBar(self)
        layout.addWidget(self._notice_bar)

    # Public API
    @property
    def context(self) -> Optional[OrderContext]:
        return self._context

    @property
    def markers(self) -> PriceMarkerSet:
        return self._markers

    @property
    def drag_controller(self) -> DragController:
        return self._drag_controller

    @property
    def gateway(self) -> OrderSyncGateway:
        return self._gateway

    @property
    def candle_store(self):
        return self._candle_store

    def mount(self, context: OrderContext, bars: Optional[Sequence[Bar]] = None) -> None:
        if not self._mounted:
            self._event_bus.subscribe(NOTICE_EVENT, self._notice_bar.show_notice)
        self._mounted = True
        self.set_trade(context, bars)
        self._refresh_timer.start()

    def unmount(self) -> None:
        """Stop everything that could touch the chart after it is disposed."""
        if self._mounted:
            self._event_bus.unsubscribe(NOTICE_EVENT, self._notice_bar.show_notice)
        self._mounted = False
        self._refresh_timer.stop()
        self._drag_controller.cancel()
        self._gateway.cancel_pending()
        self._detach_feed()

    def set_trade(self, context: OrderContext, bars: Optional[Sequence[Bar]] = None) -> None:
        """Switch the chart to another trade/instrument; rebuilds everything."""
        previous = self._context
        self._drag_controller.cancel()
        if previous is not None and previous.trade_id != context.trade_id:
            self._gateway.cancel_pending()
        self._detach_feed()
        self._context = context
        if bars is not None:
            self._candle_store.replace(bars, key=context.instrument_key)
        elif previous is None or previous.instrument_key != context.instrument_key:
            self._candle_store.clear()
            self.refresh_snapshot()
        self._chart_coordinator.redraw()
        self._rebuild_markers()
        self._sync_order_panel()
        self._attach_feed()

    def update_context(self, context: OrderContext) -> None:
        """Apply an externally refreshed order context for the active trade."""
        current = self._context
        if current is None or current.trade_id != context.trade_id:
            self.set_trade(context)
            return
        if current.instrument_key != context.instrument_key:
            self.set_trade(context)
            return
        self._context = context
        if self._drag_controller.session is not None:
            self._drag_controller.cancel()
        self._rebuild_markers()
        self._sync_order_panel()

    def set_chart_type(self, chart_type: str) -> None:
        self._chart_coordinator.set_chart_type(chart_type)

    def place_order(self) -> None:
        self._gateway.place_order(
            self._ticket,
            limit=self._markers.get(MarkerKind.LIMIT),
            stop_loss=self._markers.get(MarkerKind.STOP_LOSS),
            take_profit=self._markers.get(MarkerKind.TAKE_PROFIT),
        )

    def refresh_snapshot(self) -> None:
        context = self._context
        if context is None:
            return
        key = context.instrument_key
        if self._snapshot_inflight_key == key:
            return
        self._snapshot_inflight_key = key

        def job() -> None:
            bars = None
            try:
                bars = self._trade_api.fetch_candles(*key)
            except TradeApiError as exc:
                logger.warning("Candle snapshot failed: %s", exc)
                self.noticeRequested.emit(Notice(NoticeLevel.ERROR, "Failed to fetch chart data"))
            except Exception:
                logger.exception("Candle snapshot for %s could not be read", key)
                self.noticeRequested.emit(Notice(NoticeLevel.ERROR, "Failed to fetch chart data"))
            finally:
                # Always report back so the in-flight key is released.
                self.snapshotReceived.emit(key, bars)

        self._dispatcher(job)

    def refresh_context(self) -> None:
        context = self._context
        if context is None:
            return
        trade_id = context.trade_id

        def job() -> None:
            try:
                refreshed = self._trade_api.fetch_order_context(trade_id)
            except TradeApiError as exc:
                logger.warning("Trade refresh failed: %s", exc)
                return
            if refreshed is not None:
                self.contextReceived.emit(refreshed)

        self._dispatcher(job)

    def push_tick(self, price: float, ts_ms: float) -> None:
        if self._context is None:
            return
        self._handle_tick(Tick(instrument_id=self._context.trade_id, price=float(price), ts_ms=float(ts_ms)))

    # Internals
    def _attach_feed(self) -> None:
        if self._tick_feed is None or self._context is None:
            return
        self._feed_unsubscribe = self._tick_feed.subscribe(self._context.trade_id, self.tickReceived.emit)

    def _detach_feed(self) -> None:
        if self._feed_unsubscribe is not None:
            self._feed_unsubscribe()
            self._feed_unsubscribe = None
        self._aggregator.reset()
        self._candle_store.set_live_bar(None)
        self._line_points = []

    @Slot(object)
    def _handle_tick(self, tick: Tick) -> None:
        # Ticks queued before a detach belong to a disposed subscription.
        if not self._mounted or self._context is None or tick.instrument_id != self._context.trade_id:
            return
        live_bar = self._aggregator.fold(tick.price, tick.ts_ms)
        self._candle_store.set_live_bar(live_bar)
        if self._chart_type == "line":
            self._chart_coordinator.apply_line_point(self._aggregator.line_point(tick.price, tick.ts_ms))
            self._chart_coordinator.update_last_price(live_bar.close)
        else:
            self._chart_coordinator.apply_live_bar(live_bar)

    @Slot(object, object)
    def _handle_snapshot(self, key, bars) -> None:
        if self._snapshot_inflight_key == key:
            self._snapshot_inflight_key = None
        if not self._mounted or bars is None or self._context is None or key != self._context.instrument_key:
            return
        had_bars = not self._candle_store.is_empty()
        self._candle_store.replace(bars, key=key)
        self._chart_coordinator.redraw()
        if not had_bars:
            # Fallback marker prices depend on the latest close.
            self._rebuild_markers()

    @Slot(object)
    def _handle_context_refreshed(self, context: OrderContext) -> None:
        if not self._mounted or self._context is None or context.trade_id != self._context.trade_id:
            return
        self.update_context(context)

    @Slot(object)
    def _publish_notice(self, notice: Notice) -> None:
        self._event_bus.publish(NOTICE_EVENT, notice)

    @Slot(str)
    def _handle_commit_success(self, message: str) -> None:
        self._publish_notice(Notice(NoticeLevel.OK, message))
        if self._mounted:
            self.refresh_context()

    def _handle_ticket_type_changed(self, _order_type: TicketOrderType) -> None:
        self._drag_controller.cancel()
        self._rebuild_markers()

    def _rebuild_markers(self) -> None:
        if self._context is None:
            self._markers.clear()
            return
        self._markers.rebuild(self._context, self._candle_store.latest_close(), self._ticket.order_type)

    def _sync_order_panel(self) -> None:
        undefined = self._context is not None and self._context.entry_type == EntryType.UNDEFINED
        self._order_panel.setVisible(undefined)

    def closeEvent(self, event) -> None:
        self.unmount()
        super().closeEvent(event)
