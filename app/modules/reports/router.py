"""Reports API router."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query

from app.modules.identity.service import get_current_user
from app.modules.reports.schemas import (
    DailyBill,
    DailyBillRequest,
    SummaryReport,
    UploadBill,
    UploadBillRequest,
    UploadedVideosReport,
)
from app.modules.reports.service import ReportsService, get_reports_service
from app.shared.utils import DateRange

router = APIRouter(prefix="/reports", tags=["reports"])


def get_date_range(
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
) -> DateRange:
    return DateRange(start, end)


@router.get("/summary", response_model=SummaryReport)
async def summary_report(
    date_range: DateRange = Depends(get_date_range),
    service: ReportsService = Depends(get_reports_service),
    current_user=Depends(get_current_user),
) -> SummaryReport:
    """Confirmed classes, hours and amounts, overall and per teacher."""
    return await service.summary_report(current_user, date_range)


@router.get("/uploaded-videos", response_model=UploadedVideosReport)
async def uploaded_videos_report(
    date_range: DateRange = Depends(get_date_range),
    service: ReportsService = Depends(get_reports_service),
    current_user=Depends(get_current_user),
) -> UploadedVideosReport:
    return await service.uploaded_videos_report(current_user, date_range)


@router.post("/bills/daily", response_model=DailyBill)
async def daily_bill(
    payload: DailyBillRequest,
    service: ReportsService = Depends(get_reports_service),
    current_user=Depends(get_current_user),
) -> DailyBill:
    """Issue the bill for one confirmation day. Included classes are marked paid."""
    return await service.assemble_daily_bill(current_user, payload.day)


@router.post("/bills/uploads", response_model=UploadBill)
async def uploads_bill(
    payload: UploadBillRequest,
    service: ReportsService = Depends(get_reports_service),
    current_user=Depends(get_current_user),
) -> UploadBill:
    return await service.assemble_upload_bill(
        current_user,
        DateRange(payload.start, payload.end),
        payload.per_video_rate,
        payload.tip,
    )
