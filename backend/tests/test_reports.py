import uuid
from datetime import date, datetime

import pytest

from swapmarket.services.reports import (
    ReportRange,
    bucket_by_day,
    daily_series,
    percent_delta,
    render_csv,
    resolve_window,
    split_periods,
    top_n,
)

NOW = datetime(2026, 3, 10, 15, 30)


@pytest.mark.parametrize(
    "current, previous, expected",
    [
        (0, 0, 0.0),
        (5, 0, 100.0),
        (10, 10, 0.0),
        (15, 10, 50.0),
        (5, 10, -50.0),
        (1, 3, -66.7),
    ],
)
def test_percent_delta(current, previous, expected):
    assert percent_delta(current, previous) == expected


def test_resolve_window_covers_whole_days():
    window = resolve_window(ReportRange.LAST_7_DAYS, NOW)
    assert window.end == datetime(2026, 3, 11)
    assert window.start == datetime(2026, 3, 4)
    assert window.previous_start == datetime(2026, 2, 25)
    assert len(window.days) == 7
    assert window.days[0] == date(2026, 3, 4)
    assert window.days[-1] == date(2026, 3, 10)


def test_range_days():
    assert [r.days for r in ReportRange] == [7, 30, 90]


def test_split_periods():
    window = resolve_window(ReportRange.LAST_7_DAYS, NOW)
    stamps = [
        datetime(2026, 3, 10, 23, 59),
        datetime(2026, 3, 4),
        datetime(2026, 3, 3, 23, 59),
        datetime(2026, 2, 25),
        datetime(2026, 2, 24),
        None,
    ]
    assert split_periods(stamps, window) == (2, 2)


def test_bucket_by_day_zero_fills():
    window = resolve_window(ReportRange.LAST_7_DAYS, NOW)
    buckets = bucket_by_day([datetime(2026, 3, 5, 1), datetime(2026, 3, 5, 22), datetime(2026, 3, 1)], window)
    assert len(buckets) == 7
    assert buckets[date(2026, 3, 5)] == 2
    assert sum(buckets.values()) == 2


def test_daily_series_has_every_category():
    window = resolve_window(ReportRange.LAST_7_DAYS, NOW)
    series = daily_series({"swaps": [datetime(2026, 3, 9, 12)]}, window)
    assert len(series) == 7
    assert series[5] == {"date": date(2026, 3, 9), "users": 0, "products": 0, "swaps": 1, "shoutouts": 0}


def test_top_n_orders_by_count_then_name():
    a, b, c = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    names = {a: "banana", b: "Apple", c: "cherry"}
    ranked = top_n({a: 2, b: 2, c: 5}, names, 2)
    assert [r["name"] for r in ranked] == ["cherry", "Apple"]
    assert ranked[0]["swap_count"] == 5


def test_render_csv():
    rows = [
        {"date": date(2026, 3, 9), "users": 1, "products": 2, "swaps": 3, "shoutouts": 4},
        {"date": date(2026, 3, 10), "users": 0, "products": 0, "swaps": 0, "shoutouts": 0},
    ]
    assert render_csv(rows) == (
        "date,users,products,swaps,shoutouts\n"
        "2026-03-09,1,2,3,4\n"
        "2026-03-10,0,0,0,0\n"
    )
