from __future__ import annotations

from typing import Optional

from chartdesk.domain.bars import BAR_SECONDS, LiveBar, bucket_start


class TickAggregator:
    """Folds scalar price ticks into the trailing minute bar."""

    def __init__(self, offset_seconds: int = 0, step_seconds: int = BAR_SECONDS) -> None:
        self._offset_seconds = int(offset_seconds)
        self._step_seconds = max(1, int(step_seconds))
        self._live_bar: Optional[LiveBar] = None

    @property
    def live_bar(self) -> Optional[LiveBar]:
        return self._live_bar

    def local_seconds(self, ts_ms: float) -> int:
        return int(float(ts_ms) // 1000) + self._offset_seconds

    def fold(self, price: float, ts_ms: float) -> LiveBar:
        """
        Apply one tick and return the live bar.

        A tick in a different bucket replaces the live bar outright, even when
        it is older than the current one; there is no sequence guard.
        """
        price = float(price)
        bucket = bucket_start(self.local_seconds(ts_ms), self._step_seconds)
        live = self._live_bar
        if live is None or live.time != bucket:
            live = LiveBar.start(bucket, price)
            self._live_bar = live
        else:
            live.fold(price)
        return live

    def line_point(self, price: float, ts_ms: float) -> tuple[float, float]:
        return (float(self.local_seconds(ts_ms)), float(price))

    def reset(self) -> None:
        self._live_bar = None
