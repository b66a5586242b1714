import argparse
import logging
import os
import random
import sys
import time

from PySide6.QtCore import QTimer
from PySide6.QtWidgets import QApplication, QMainWindow

from chartdesk.app.bootstrap import bootstrap
from chartdesk.application.chart.tick_feed import LocalTickFeed
from chartdesk.application.events import NOTICE_EVENT
from chartdesk.infrastructure.broker.errors import TradeApiError
from chartdesk.ui.live.chart_widget import OrderChartWidget

logger = logging.getLogger(__name__)


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Interactive order chart for one trade")
    parser.add_argument("--trade-id", default="demo", help="Trade id on the order service")
    parser.add_argument("--fake", action="store_true", help="Use an in-memory order service with synthetic ticks")
    return parser.parse_args(argv)


def _start_demo_ticks(feed: LocalTickFeed, trade_id: str, start_price: float, parent) -> QTimer:
    state = {"price": start_price}

    def publish() -> None:
        state["price"] = max(0.05, state["price"] + random.uniform(-0.4, 0.4))
        feed.publish(trade_id, round(state["price"], 2), time.time() * 1000.0)

    timer = QTimer(parent)
    timer.timeout.connect(publish)
    timer.start(500)
    return timer


def main(argv=None) -> int:
    """Live order chart entry point"""
    args = _parse_args(argv)
    trade_api, config, event_bus = bootstrap(fake=args.fake)
    if os.getenv("QT_OPENGL") is None:
        os.environ["QT_OPENGL"] = "software"
    app = QApplication(sys.argv[:1])
    app.setStyle("Fusion")

    try:
        context = trade_api.fetch_order_context(args.trade_id)
        if context is None:
            logger.error("Trade %s not found", args.trade_id)
            return 1
        bars = trade_api.fetch_candles(*context.instrument_key)
    except TradeApiError as exc:
        logger.error("Could not load trade %s: %s", args.trade_id, exc)
        return 1

    feed = LocalTickFeed()
    chart = OrderChartWidget(
        trade_api,
        tick_feed=feed,
        event_bus=event_bus,
        debounce_ms=config.commit_debounce_ms,
        hit_threshold_px=config.marker_hit_px,
        tick_offset_seconds=0 if args.fake else config.tick_offset_seconds,
        refresh_seconds=config.candle_refresh_seconds,
    )
    event_bus.subscribe(NOTICE_EVENT, lambda notice: logger.info("[%s] %s", notice.level.value, notice.message))

    window = QMainWindow()
    window.setWindowTitle(f"Chart - {context.instrument}-{context.expiry}-{context.ltp_range:g}")
    window.setCentralWidget(chart)
    chart.mount(context, bars)
    if args.fake and bars:
        _start_demo_ticks(feed, context.trade_id, bars[-1].close, window)
    window.resize(1200, 720)
    window.show()
    exit_code = app.exec()
    chart.unmount()
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
