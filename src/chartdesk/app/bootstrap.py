"""
Application bootstrap: set up logging and build the order service client.
"""
from typing import Tuple

from chartdesk.application.events import EventBus
from chartdesk.application.orders.protocols import TradeApiLike
from chartdesk.config.logging import setup_logging
from chartdesk.config.runtime import AppConfig, load_config
from chartdesk.config.settings import resolve_api_token
from chartdesk.infrastructure.broker.fake.provider import FakeTradeApi, synthetic_bars
from chartdesk.infrastructure.broker.http.trade_api import TradeApiClient


def bootstrap(*, fake: bool = False) -> Tuple[TradeApiLike, AppConfig, EventBus]:
    """
    Initialize shared infrastructure.

    Args:
        fake: use an in-memory order service with one demo trade.

    Returns:
        (trade_api, config, event_bus)
    """
    config = load_config()
    setup_logging(level_name=config.log_level, log_file=config.log_file)
    if fake:
        trade_api: TradeApiLike = FakeTradeApi(
            trades={
                "demo": {
                    "id": "demo",
                    "indexName": "NIFTY",
                    "expiry": "demo",
                    "ltpRange": 100,
                    "entrySide": "SELL",
                    "entryType": "UNDEFINED",
                    "entryTriggered": False,
                }
            },
            bars=synthetic_bars(),
        )
    else:
        trade_api = TradeApiClient(
            config.api_url,
            resolve_api_token(config),
            timeout=config.request_timeout,
        )
    return trade_api, config, EventBus()


__all__ = ["bootstrap"]
