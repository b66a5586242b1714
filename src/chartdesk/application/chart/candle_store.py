from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from chartdesk.domain.bars import Bar, LiveBar

logger = logging.getLogger(__name__)


class CandleStore:
    """
    Historical bars for the active instrument plus the live trailing bar.

    The history is only ever replaced wholesale from a snapshot; completed
    live bars are not promoted into it.
    """

    def __init__(self) -> None:
        self._bars: tuple[Bar, ...] = ()
        self._key: Optional[tuple] = None
        self._live_bar: Optional[LiveBar] = None

    @property
    def bars(self) -> tuple[Bar, ...]:
        return self._bars

    @property
    def key(self) -> Optional[tuple]:
        return self._key

    @property
    def live_bar(self) -> Optional[LiveBar]:
        return self._live_bar

    def __len__(self) -> int:
        return len(self._bars)

    def is_empty(self) -> bool:
        return not self._bars

    def replace(self, bars: Iterable[Bar], key: Optional[tuple] = None) -> None:
        # Duplicate times keep the last row.
        by_time: dict[int, Bar] = {}
        received = 0
        for bar in bars:
            received += 1
            by_time[int(bar.time)] = bar
        ordered = tuple(by_time[t] for t in sorted(by_time))
        dropped = received - len(ordered)
        self._bars = ordered
        self._key = key
        logger.debug("Candle snapshot replaced: key=%s bars=%d dropped=%d", key, len(ordered), dropped)

    def clear(self) -> None:
        self._bars = ()
        self._key = None
        self._live_bar = None

    def set_live_bar(self, live_bar: Optional[LiveBar]) -> None:
        self._live_bar = live_bar

    def latest_close(self) -> Optional[float]:
        if not self._bars:
            return None
        return self._bars[-1].close

    def candle_tuples(self) -> list[tuple[float, float, float, float, float]]:
        return [bar.as_tuple() for bar in self._bars]

    def line_points(self) -> tuple[list[float], list[float]]:
        return [float(bar.time) for bar in self._bars], [bar.close for bar in self._bars]

    @staticmethod
    def from_bars(bars: Sequence[Bar], key: Optional[tuple] = None) -> "CandleStore":
        store = CandleStore()
        store.replace(bars, key=key)
        return store
