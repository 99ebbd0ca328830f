"""Reports and bill assembly over confirmed classes and uploaded videos."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.access import authorize
from app.core.config import get_settings
from app.core.database import get_db_session
from app.core.enums import OperationEnum
from app.modules.audit.repository import AuditRepository
from app.modules.classes.repository import ClassSessionsRepository
from app.modules.classes.service import ClassSessionService, get_class_session_service
from app.modules.identity.models import User
from app.modules.reports.aggregation import (
    display_name,
    group_bill_lines,
    summarize_sessions,
    summarize_uploads,
)
from app.modules.reports.schemas import (
    DailyBill,
    SummaryReport,
    UploadBill,
    UploadBillLine,
    UploadedVideosReport,
)
from app.modules.uploads.repository import UploadTasksRepository
from app.shared.exceptions import EmptyBillException, ValidationException
from app.shared.utils import DateRange, day_bounds, local_day, utc_now

logger = logging.getLogger(__name__)
settings = get_settings()


class ReportsService:
    """Read-side aggregation plus bill documents."""

    def __init__(
        self,
        sessions_repository: ClassSessionsRepository,
        uploads_repository: UploadTasksRepository,
        audit_repository: AuditRepository,
        sessions_service: ClassSessionService,
    ) -> None:
        self.sessions_repository = sessions_repository
        self.uploads_repository = uploads_repository
        self.audit_repository = audit_repository
        self.sessions_service = sessions_service

    async def summary_report(self, actor: User, date_range: DateRange) -> SummaryReport:
        """Totals and per-teacher breakdown of classes confirmed within the range."""
        authorize(actor, OperationEnum.REPORT_VIEW)
        lower, upper = date_range.to_utc_bounds(settings.business_tz)
        sessions = await self.sessions_repository.list_confirmed_between(lower, upper)
        summary, by_teacher = summarize_sessions(sessions)
        return SummaryReport(period=date_range.label, summary=summary, by_teacher=by_teacher)

    async def uploaded_videos_report(self, actor: User, date_range: DateRange) -> UploadedVideosReport:
        """Uploaded video counts within the range, overall and per editor."""
        authorize(actor, OperationEnum.REPORT_VIEW)
        lower, upper = date_range.to_utc_bounds(settings.business_tz)
        tasks = await self.uploads_repository.list_uploaded_between(lower, upper)
        total, by_editor = summarize_uploads(tasks)
        return UploadedVideosReport(period=date_range.label, total_videos=total, by_editor=by_editor)

    async def assemble_daily_bill(self, actor: User, day: date) -> DailyBill:
        """Bill every class confirmed on ``day`` and mark the unpaid ones paid."""
        authorize(actor, OperationEnum.BILL_ASSEMBLE)
        lower, upper = day_bounds(day, settings.business_tz)
        sessions = await self.sessions_repository.list_confirmed_between(lower, upper)
        if not sessions:
            raise EmptyBillException(f"No confirmed classes on {day.isoformat()}")

        teachers = group_bill_lines(sessions)
        summary, _ = summarize_sessions(sessions)
        unpaid_ids = [item.id for item in sessions if not item.paid]
        payment = await self.sessions_service.bulk_mark_paid(actor, unpaid_ids)

        newly_paid = set(payment.modified_ids)
        for group in teachers:
            for line in group.lines:
                if line.session_id in newly_paid:
                    line.paid = True

        invoice_id = f"CLS-{day.strftime('%Y%m%d')}-{summary.total_classes}"
        await self.audit_repository.create_audit_log(
            actor_id=actor.id,
            action="reports.bill.daily",
            entity_type="bill",
            entity_id=invoice_id,
            payload={
                "day": day.isoformat(),
                "classes": summary.total_classes,
                "grand_total": str(summary.total_amount),
                "marked_paid": payment.modified,
            },
        )
        logger.info(
            "Issued daily bill %s: classes=%d total=%s newly_paid=%d",
            invoice_id,
            summary.total_classes,
            summary.total_amount,
            payment.modified,
        )
        return DailyBill(
            invoice_id=invoice_id,
            day=day,
            generated_at=utc_now(),
            teachers=teachers,
            total_classes=summary.total_classes,
            total_hours=summary.total_hours,
            grand_total=summary.total_amount,
            payment=payment,
        )

    async def assemble_upload_bill(
        self,
        actor: User,
        date_range: DateRange,
        per_video_rate: Decimal,
        tip: Decimal = Decimal("0"),
    ) -> UploadBill:
        """``videos x per_video_rate + tip`` over uploads in range; task state is not touched."""
        authorize(actor, OperationEnum.BILL_ASSEMBLE)
        if per_video_rate <= 0:
            raise ValidationException("Per-video rate must be greater than zero")
        if tip < 0:
            raise ValidationException("Tip must not be negative")

        lower, upper = date_range.to_utc_bounds(settings.business_tz)
        tasks = await self.uploads_repository.list_uploaded_between(lower, upper)

        lines = []
        for task in tasks:
            class_session = task.class_session
            course = class_session.course if class_session is not None else None
            editor = task.editor
            lines.append(
                UploadBillLine(
                    task_id=task.id,
                    course_name=display_name(course.name if course is not None else None),
                    class_name=class_session.name if class_session is not None else "-",
                    teacher_name=display_name(class_session.teacher_name if class_session is not None else None),
                    teacher_tpin=class_session.teacher_tpin if class_session is not None else "-",
                    editor_name=display_name(editor.name if editor is not None else None),
                    uploaded_at=task.uploaded_at,
                    amount=per_video_rate,
                ),
            )

        now = utc_now()
        subtotal = per_video_rate * len(lines)
        invoice_id = f"UPL-{local_day(now, settings.business_tz).strftime('%Y%m%d')}-{len(lines)}"
        return UploadBill(
            invoice_id=invoice_id,
            period=date_range.label,
            generated_at=now,
            videos=len(lines),
            per_video_rate=per_video_rate,
            subtotal=subtotal,
            tip=tip,
            grand_total=subtotal + tip,
            lines=lines,
        )


async def get_reports_service(
    session: AsyncSession = Depends(get_db_session),
    sessions_service: ClassSessionService = Depends(get_class_session_service),
) -> ReportsService:
    """Dependency provider for reports service."""
    return ReportsService(
        sessions_repository=ClassSessionsRepository(session),
        uploads_repository=UploadTasksRepository(session),
        audit_repository=AuditRepository(session),
        sessions_service=sessions_service,
    )
