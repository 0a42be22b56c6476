"""Platform reports: KPI deltas, daily series and top products

Everything is computed from row timestamps fetched for the current and the
previous window, grouped in a single pass.
"""

import csv
import enum
import io
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from swapmarket.core.database import utc_now
from swapmarket.models.product import Product
from swapmarket.models.shoutout import Shoutout
from swapmarket.models.swap import Swap, SwapStatus
from swapmarket.models.user import UserProfile

SERIES_CATEGORIES = ("users", "products", "swaps", "shoutouts")
CSV_HEADER = ("date",) + SERIES_CATEGORIES

KPI_LABELS = {
    "new_users": "New users",
    "products_submitted": "Products submitted",
    "swap_requests": "Swap requests",
    "completed_swaps": "Completed swaps",
    "shoutouts": "Shoutouts",
}


class ReportRange(str, enum.Enum):
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    LAST_90_DAYS = "90d"

    @property
    def days(self) -> int:
        return int(self.value[:-1])


@dataclass(frozen=True)
class ReportWindow:
    """Current window [start, end) and the previous one [previous_start, start)"""

    start: datetime
    end: datetime
    previous_start: datetime

    @property
    def days(self) -> List[date]:
        count = (self.end - self.start).days
        return [self.start.date() + timedelta(days=i) for i in range(count)]


def resolve_window(report_range: ReportRange, now: datetime) -> ReportWindow:
    """Whole UTC days ending at the end of today"""
    end = datetime.combine(now.date(), time.min) + timedelta(days=1)
    span = timedelta(days=ReportRange(report_range).days)
    start = end - span
    return ReportWindow(start=start, end=end, previous_start=start - span)


def percent_delta(current: int, previous: int) -> float:
    """Period-over-period change in percent

    A zero previous period reports +100% when anything happened, else 0%.
    """
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round((current - previous) / previous * 100, 1)


def split_periods(timestamps: Iterable[Optional[datetime]], window: ReportWindow) -> Tuple[int, int]:
    """Count timestamps in the current and previous windows"""
    current = previous = 0
    for ts in timestamps:
        if ts is None:
            continue
        if window.start <= ts < window.end:
            current += 1
        elif window.previous_start <= ts < window.start:
            previous += 1
    return current, previous


def bucket_by_day(timestamps: Iterable[Optional[datetime]], window: ReportWindow) -> Dict[date, int]:
    """Per-day counts for every day of the window, zero-filled"""
    buckets = {day: 0 for day in window.days}
    for ts in timestamps:
        if ts is None or not window.start <= ts < window.end:
            continue
        buckets[ts.date()] += 1
    return buckets


def daily_series(series: Mapping[str, Iterable[Optional[datetime]]], window: ReportWindow) -> List[dict]:
    bucketed = {name: bucket_by_day(series.get(name, ()), window) for name in SERIES_CATEGORIES}
    return [
        {"date": day, **{name: bucketed[name][day] for name in SERIES_CATEGORIES}}
        for day in window.days
    ]


def top_n(counts: Mapping[UUID, int], names: Mapping[UUID, str], n: int) -> List[dict]:
    """Highest counts first, ties broken by product name"""
    ranked = sorted(counts.items(), key=lambda item: (-item[1], (names.get(item[0]) or "").lower()))
    return [
        {"product_id": product_id, "name": names.get(product_id, "Unknown product"), "swap_count": count}
        for product_id, count in ranked[:n]
    ]


def render_csv(rows: Sequence[dict]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for row in rows:
        writer.writerow([row["date"].isoformat()] + [row[name] for name in SERIES_CATEGORIES])
    return buffer.getvalue()


class ReportService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _timestamps(self, column, since: datetime, *criteria) -> List[datetime]:
        result = await self.db.execute(select(column).where(column >= since, *criteria))
        return list(result.scalars().all())

    async def _fetch(self, window: ReportWindow) -> dict:
        since = window.previous_start
        swap_rows = (
            await self.db.execute(
                select(Swap.product_id, Swap.created_at).where(Swap.created_at >= since)
            )
        ).all()
        return {
            "users": await self._timestamps(UserProfile.created_at, since),
            "products": await self._timestamps(Product.created_at, since),
            "swaps": [row.created_at for row in swap_rows],
            "swap_products": [(row.product_id, row.created_at) for row in swap_rows],
            "completed": await self._timestamps(
                Swap.responded_at, since, Swap.status == SwapStatus.ACCEPTED.value
            ),
            "shoutouts": await self._timestamps(Shoutout.created_at, since),
        }

    async def _top_products(self, swap_products: Iterable[Tuple[UUID, datetime]], window: ReportWindow, n: int) -> List[dict]:
        counts = Counter(
            product_id for product_id, created_at in swap_products
            if window.start <= created_at < window.end
        )
        if not counts or n <= 0:
            return []
        result = await self.db.execute(
            select(Product.id, Product.name).where(Product.id.in_(list(counts)))
        )
        names = {row.id: row.name for row in result.all()}
        return top_n(counts, names, n)

    async def build(self, report_range: ReportRange, top: int = 5, now: Optional[datetime] = None) -> dict:
        window = resolve_window(report_range, now or utc_now())
        data = await self._fetch(window)

        kpi_sources = {
            "new_users": data["users"],
            "products_submitted": data["products"],
            "swap_requests": data["swaps"],
            "completed_swaps": data["completed"],
            "shoutouts": data["shoutouts"],
        }
        kpis = []
        for key, timestamps in kpi_sources.items():
            current, previous = split_periods(timestamps, window)
            kpis.append({
                "key": key,
                "label": KPI_LABELS[key],
                "current": current,
                "previous": previous,
                "delta": percent_delta(current, previous),
            })

        return {
            "range": ReportRange(report_range).value,
            "start": window.start,
            "end": window.end,
            "kpis": kpis,
            "daily": daily_series(data, window),
            "top_products": await self._top_products(data["swap_products"], window, top),
        }

    async def export_csv(self, report_range: ReportRange, now: Optional[datetime] = None) -> str:
        window = resolve_window(report_range, now or utc_now())
        data = await self._fetch(window)
        return render_csv(daily_series(data, window))
