"""
HTTP client for the order service (trades, candle snapshots, order updates).
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from chartdesk.domain.bars import Bar
from chartdesk.domain.orders import OrderContext
from chartdesk.infrastructure.broker.errors import ErrorCode, TradeApiError

logger = logging.getLogger(__name__)

TRADE_INFO_PATH = "/user/tradeInfo"
CANDLE_PATH = "/user/candle/"


class TradeApiClient:
    """
    Thin synchronous client; calls are expected to run off the GUI thread.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        *,
        timeout: float = 15.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = client or httpx.Client(base_url=base_url, headers=headers, timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def _request(
        self,
        method: str,
        url: str,
        *,
        json_body: Optional[dict] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        """
        Perform a request and return the decoded JSON body.

        Raises:
            TradeApiError: on timeout, transport failure, non-2xx status or undecodable body.
        """
        try:
            resp = self._client.request(method, url, json=json_body, params=params)
        except httpx.TimeoutException as exc:
            logger.warning("Order service timeout %s %s", method, url)
            raise TradeApiError(ErrorCode.TIMEOUT, f"{method} {url} timed out") from exc
        except httpx.HTTPError as exc:
            logger.error("Order service HTTP error %s %s: %s", method, url, exc)
            raise TradeApiError(ErrorCode.NETWORK, f"{method} {url} failed", str(exc)) from exc

        if resp.status_code in (401, 403):
            raise TradeApiError(ErrorCode.AUTH, "Not authorized", f"HTTP {resp.status_code}")
        if resp.status_code in (400, 422):
            raise TradeApiError(ErrorCode.VALIDATION, f"{method} {url} rejected the payload", resp.text[:200] or None)
        if not resp.is_success:
            raise TradeApiError(ErrorCode.PROVIDER, f"{method} {url} rejected", f"HTTP {resp.status_code}")
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise TradeApiError(ErrorCode.PROVIDER, "Invalid JSON from order service") from exc

    def fetch_trades(self) -> list[dict]:
        """GET /user/tradeInfo"""
        body = self._request("GET", TRADE_INFO_PATH)
        data = body.get("data") if isinstance(body, dict) else None
        return list(data) if isinstance(data, list) else []

    def fetch_order_context(self, trade_id: str) -> Optional[OrderContext]:
        for trade in self.fetch_trades():
            if str(trade.get("id")) == str(trade_id):
                return OrderContext.from_trade(trade)
        return None

    def fetch_candles(self, instrument: str, expiry: str, ltp_range: float) -> list[Bar]:
        """GET /user/candle/ for one instrument/expiry/range key."""
        body = self._request(
            "GET",
            CANDLE_PATH,
            params={"indexName": instrument, "expiryDate": expiry, "range": ltp_range},
        )
        rows = body.get("data") if isinstance(body, dict) else None
        if not rows:
            return []
        bars: list[Bar] = []
        for row in rows:
            try:
                bars.append(Bar.from_payload(row))
            except ValueError as exc:
                logger.warning("Skipping candle row: %s", exc)
        return bars

    def update_trade(self, trade_id: str, payload: dict) -> None:
        """PUT /user/tradeInfo?id=<trade_id>"""
        logger.debug("PUT %s id=%s payload=%s", TRADE_INFO_PATH, trade_id, payload)
        self._request("PUT", TRADE_INFO_PATH, json_body=payload, params={"id": trade_id})
