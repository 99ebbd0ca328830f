"""Report and bill schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from app.modules.classes.schemas import BulkMarkPaidResult


class SessionTotals(BaseModel):
    total_classes: int = 0
    total_hours: Decimal = Decimal("0")
    total_amount: Decimal = Decimal("0")


class TeacherTotals(BaseModel):
    teacher_id: UUID | None
    teacher_tpin: str | None
    teacher_name: str
    classes: int
    hours: Decimal
    amount: Decimal


class SummaryReport(BaseModel):
    """Confirmed classes aggregated over a confirmation date range."""

    period: str
    summary: SessionTotals
    by_teacher: list[TeacherTotals] = Field(default_factory=list)


class EditorTotals(BaseModel):
    editor_id: UUID | None
    editor_tpin: str | None
    editor_name: str
    videos: int


class UploadedVideosReport(BaseModel):
    period: str
    total_videos: int = 0
    by_editor: list[EditorTotals] = Field(default_factory=list)


class DailyBillRequest(BaseModel):
    day: date


class BillLine(BaseModel):
    session_id: UUID
    course_name: str
    class_name: str
    hours: Decimal
    hourly_rate: Decimal
    amount: Decimal
    confirmed_at: datetime | None
    paid: bool


class TeacherBill(BaseModel):
    teacher_id: UUID | None
    teacher_tpin: str | None
    teacher_name: str
    lines: list[BillLine]
    classes: int
    hours: Decimal
    subtotal: Decimal


class DailyBill(BaseModel):
    """Bill for one confirmation day; issuing it marks its classes paid."""

    invoice_id: str
    day: date
    generated_at: datetime
    teachers: list[TeacherBill]
    total_classes: int
    total_hours: Decimal
    grand_total: Decimal
    payment: BulkMarkPaidResult


class UploadBillRequest(BaseModel):
    start: date | None = None
    end: date | None = None
    per_video_rate: Decimal
    tip: Decimal = Decimal("0")


class UploadBillLine(BaseModel):
    task_id: UUID
    course_name: str
    class_name: str
    teacher_name: str
    teacher_tpin: str
    editor_name: str
    uploaded_at: datetime | None
    amount: Decimal


class UploadBill(BaseModel):
    invoice_id: str
    period: str
    generated_at: datetime
    videos: int
    per_video_rate: Decimal
    subtotal: Decimal
    tip: Decimal
    grand_total: Decimal
    lines: list[UploadBillLine] = Field(default_factory=list)
