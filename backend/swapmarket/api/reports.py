"""Admin reports API"""

from datetime import date, datetime
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from swapmarket.core.auth_deps import require_admin
from swapmarket.core.database import get_db, utc_now
from swapmarket.models.user import UserProfile
from swapmarket.services.reports import ReportRange, ReportService

router = APIRouter(prefix="/api/admin/reports", tags=["reports"])


class KPI(BaseModel):
    key: str
    label: str
    current: int
    previous: int
    delta: float


class DailyPoint(BaseModel):
    date: date
    users: int
    products: int
    swaps: int
    shoutouts: int


class TopProduct(BaseModel):
    product_id: UUID
    name: str
    swap_count: int


class ReportResponse(BaseModel):
    range: ReportRange
    start: datetime
    end: datetime
    kpis: List[KPI]
    daily: List[DailyPoint]
    top_products: List[TopProduct]


@router.get("", response_model=ReportResponse)
async def get_report(
    report_range: ReportRange = Query(ReportRange.LAST_30_DAYS, alias="range", description="7d, 30d or 90d"),
    top: int = Query(5, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
    admin: UserProfile = Depends(require_admin),
):
    """KPIs against the previous period, a daily series and the most requested products"""
    report = await ReportService(db).build(report_range, top)
    return ReportResponse(**report)


@router.get("/export")
async def export_report(
    report_range: ReportRange = Query(ReportRange.LAST_30_DAYS, alias="range"),
    db: AsyncSession = Depends(get_db),
    admin: UserProfile = Depends(require_admin),
):
    """Daily series as CSV"""
    now = utc_now()
    content = await ReportService(db).export_csv(report_range, now=now)
    filename = f"swapmarket-report-{report_range.value}-{now.date().isoformat()}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
