from __future__ import annotations

from chartdesk.application.chart.tick_aggregator import TickAggregator


def test_ticks_in_same_bucket_keep_open_and_widen_range() -> None:
    aggregator = TickAggregator()

    aggregator.fold(100.0, 1_000)
    aggregator.fold(103.5, 10_000)
    aggregator.fold(98.25, 20_000)
    bar = aggregator.fold(101.0, 59_000)

    assert bar.time == 0
    assert bar.open == 100.0
    assert bar.high == 103.5
    assert bar.low == 98.25
    assert bar.close == 101.0
    assert bar.low <= min(bar.open, bar.close)
    assert bar.high >= max(bar.open, bar.close)


def test_minute_rollover_replaces_live_bar() -> None:
    aggregator = TickAggregator()

    first = aggregator.fold(100.0, 59_900)
    second = aggregator.fold(105.0, 60_100)

    assert first is not second
    assert second.time == 60
    assert (second.open, second.high, second.low, second.close) == (105.0, 105.0, 105.0, 105.0)
    # The finished bar is left as it was, not merged.
    assert (first.open, first.close) == (100.0, 100.0)


def test_offset_is_applied_before_bucketing() -> None:
    aggregator = TickAggregator(offset_seconds=19_800)

    bar = aggregator.fold(10.0, 30_000)

    assert bar.time == 19_800
    assert aggregator.line_point(10.0, 30_000) == (19_830.0, 10.0)


def test_stale_tick_from_older_bucket_replaces_live_bar() -> None:
    aggregator = TickAggregator()
    aggregator.fold(100.0, 125_000)

    bar = aggregator.fold(90.0, 65_000)

    assert bar.time == 60
    assert bar.open == 90.0


def test_duplicate_timestamp_is_folded_last_close_wins() -> None:
    aggregator = TickAggregator()
    aggregator.fold(100.0, 5_000)

    bar = aggregator.fold(99.0, 5_000)

    assert bar.close == 99.0
    assert bar.low == 99.0
    assert bar.open == 100.0


def test_reset_discards_live_bar() -> None:
    aggregator = TickAggregator()
    aggregator.fold(100.0, 5_000)

    aggregator.reset()

    assert aggregator.live_bar is None
    assert aggregator.fold(101.0, 6_000).open == 101.0
