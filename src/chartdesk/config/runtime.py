import os
from dataclasses import dataclass
from typing import Optional

from chartdesk.config.paths import TOKEN_FILE


@dataclass(frozen=True)
class AppConfig:
    api_url: str
    token_file: str
    api_token: Optional[str]
    log_level: Optional[str]
    log_file: Optional[str]
    request_timeout: float
    commit_debounce_ms: int
    marker_hit_px: float
    tick_offset_seconds: int
    candle_refresh_seconds: float


def _get_float_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def load_config() -> AppConfig:
    return AppConfig(
        api_url=os.getenv("CHARTDESK_API_URL", "http://localhost:8000/api").rstrip("/"),
        token_file=os.getenv("CHARTDESK_TOKEN_FILE", TOKEN_FILE),
        api_token=os.getenv("CHARTDESK_API_TOKEN") or None,
        log_level=os.getenv("LOG_LEVEL"),
        log_file=os.getenv("LOG_FILE"),
        request_timeout=_get_float_env("CHARTDESK_REQUEST_TIMEOUT", 15.0),
        commit_debounce_ms=max(0, _get_int_env("CHARTDESK_COMMIT_DEBOUNCE_MS", 500)),
        marker_hit_px=_get_float_env("CHARTDESK_MARKER_HIT_PX", 10.0),
        # Feed timestamps are bucketed in IST (UTC+05:30).
        tick_offset_seconds=_get_int_env("CHARTDESK_TICK_OFFSET_SECONDS", 19800),
        candle_refresh_seconds=_get_float_env("CHARTDESK_CANDLE_REFRESH_SECONDS", 300.0),
    )
