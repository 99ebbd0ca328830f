from __future__ import annotations

from datetime import UTC, date, datetime
from decimal import Decimal
from uuid import uuid4

import pytest

import app.modules.classes.service as classes_service_module
import app.modules.reports.service as reports_service_module
from app.core.enums import RoleEnum
from app.modules.classes.service import ClassSessionService
from app.modules.reports.aggregation import UNKNOWN_NAME, summarize_sessions
from app.modules.reports.service import ReportsService
from app.shared.exceptions import EmptyBillException, ForbiddenException, ValidationException
from app.shared.utils import DateRange
from tests.fakes import (
    FakeAuditRepository,
    FakeClassSessionsRepository,
    FakeCourse,
    FakeCoursesRepository,
    FakeIdentityRepository,
    FakeUploadTask,
    FakeUploadTasksRepository,
    FakeUser,
    make_actor,
    make_confirmed_session,
)

NOW = datetime(2026, 3, 15, 4, 0, tzinfo=UTC)

# Business timezone is Asia/Dhaka (UTC+6): local 23:59 on 2026-03-10 is 17:59 UTC.
END_DAY_LATE = datetime(2026, 3, 10, 17, 59, tzinfo=UTC)
NEXT_DAY_MIDNIGHT = datetime(2026, 3, 10, 18, 0, tzinfo=UTC)
START_DAY_MORNING = datetime(2026, 3, 9, 3, 0, tzinfo=UTC)
BEFORE_START = datetime(2026, 3, 8, 17, 59, tzinfo=UTC)


class ReportWorld:
    def __init__(self) -> None:
        self.rahim = FakeUser(id=uuid4(), tpin="200001", name="Rahim", role=RoleEnum.TEACHER)
        self.karim = FakeUser(id=uuid4(), tpin="200002", name="Karim", role=RoleEnum.TEACHER)
        self.editor = FakeUser(id=uuid4(), tpin="300001", name="Nadia", role=RoleEnum.EDITOR)
        self.course = FakeCourse(id=uuid4(), name="HSC Physics")
        self.admin = make_actor(RoleEnum.ADMIN)

        self.sessions = FakeClassSessionsRepository({self.course.id: self.course})
        self.uploads = FakeUploadTasksRepository(self.sessions)
        self.audit = FakeAuditRepository()
        sessions_service = ClassSessionService(
            repository=self.sessions,
            courses_repository=FakeCoursesRepository({self.course.id: self.course}),
            identity_repository=FakeIdentityRepository({}),
            uploads_repository=self.uploads,
            audit_repository=self.audit,
        )
        self.service = ReportsService(
            sessions_repository=self.sessions,
            uploads_repository=self.uploads,
            audit_repository=self.audit,
            sessions_service=sessions_service,
        )

    def confirmed(self, teacher: FakeUser, name: str, confirmed_at: datetime, hours: str = "1.5", **kwargs):
        return self.sessions.add(
            make_confirmed_session(
                teacher,
                self.course,
                name=name,
                confirmed_at=confirmed_at,
                hours=hours,
                **kwargs,
            ),
        )

    def uploaded(self, class_session, uploaded_at: datetime, editor: FakeUser | None) -> FakeUploadTask:
        return self.uploads.add(
            FakeUploadTask(
                id=uuid4(),
                class_session_id=class_session.id,
                class_session=class_session,
                editor_id=editor.id if editor else None,
                editor=editor,
                uploaded=True,
                video_url="https://videos.example/x",
                uploaded_at=uploaded_at,
            ),
        )


@pytest.fixture
def world(monkeypatch: pytest.MonkeyPatch) -> ReportWorld:
    monkeypatch.setattr(classes_service_module, "utc_now", lambda: NOW)
    monkeypatch.setattr(reports_service_module, "utc_now", lambda: NOW)
    return ReportWorld()


@pytest.mark.asyncio
async def test_summary_report_totals_and_end_of_day_inclusion(world: ReportWorld) -> None:
    world.confirmed(world.rahim, "Class 01", START_DAY_MORNING, hours="1.5")
    world.confirmed(world.rahim, "Class 02", END_DAY_LATE, hours="2")
    world.confirmed(world.karim, "Class 03", NEXT_DAY_MIDNIGHT, hours="3")
    world.confirmed(world.karim, "Class 04", BEFORE_START, hours="3")

    report = await world.service.summary_report(
        world.admin,
        DateRange(date(2026, 3, 9), date(2026, 3, 10)),
    )

    assert report.period == "2026-03-09 to 2026-03-10"
    assert report.summary.total_classes == 2
    assert report.summary.total_hours == Decimal("3.5")
    assert report.summary.total_amount == Decimal("2100")
    assert len(report.by_teacher) == 1
    assert report.by_teacher[0].teacher_tpin == "200001"
    assert report.by_teacher[0].amount == Decimal("2100")


@pytest.mark.asyncio
async def test_summary_report_without_range_groups_by_teacher(world: ReportWorld) -> None:
    world.confirmed(world.rahim, "Class 01", START_DAY_MORNING)
    world.confirmed(world.karim, "Class 02", END_DAY_LATE, hours="2", hourly_rate="550.50")

    report = await world.service.summary_report(world.admin, DateRange())

    assert report.period == "All dates"
    assert report.summary.total_classes == 2
    assert report.summary.total_amount == Decimal("2001.00")
    assert [row.teacher_name for row in report.by_teacher] == ["Karim", "Rahim"]
    assert report.by_teacher[0].amount == Decimal("1101.00")


@pytest.mark.asyncio
async def test_summary_report_empty_range_returns_zero_totals(world: ReportWorld) -> None:
    report = await world.service.summary_report(world.admin, DateRange(date(2026, 1, 1), date(2026, 1, 2)))

    assert report.summary.total_classes == 0
    assert report.summary.total_hours == Decimal("0")
    assert report.summary.total_amount == Decimal("0")
    assert report.by_teacher == []


@pytest.mark.asyncio
async def test_reports_are_admin_only(world: ReportWorld) -> None:
    with pytest.raises(ForbiddenException):
        await world.service.summary_report(make_actor(RoleEnum.TEACHER), DateRange())
    with pytest.raises(ForbiddenException):
        await world.service.uploaded_videos_report(make_actor(RoleEnum.EDITOR), DateRange())


def test_missing_teacher_name_falls_back_to_placeholder(world: ReportWorld) -> None:
    class_session = world.confirmed(world.rahim, "Class 01", START_DAY_MORNING)
    class_session.teacher_name = "  "

    _, by_teacher = summarize_sessions([class_session])

    assert by_teacher[0].teacher_name == UNKNOWN_NAME


@pytest.mark.asyncio
async def test_uploaded_videos_report_counts_per_editor(world: ReportWorld) -> None:
    first = world.confirmed(world.rahim, "Class 01", START_DAY_MORNING)
    second = world.confirmed(world.rahim, "Class 02", START_DAY_MORNING)
    third = world.confirmed(world.karim, "Class 03", START_DAY_MORNING)
    world.uploaded(first, END_DAY_LATE, world.editor)
    world.uploaded(second, START_DAY_MORNING, world.editor)
    world.uploaded(third, START_DAY_MORNING, None)
    outside = world.confirmed(world.karim, "Class 04", START_DAY_MORNING)
    world.uploaded(outside, NEXT_DAY_MIDNIGHT, world.editor)

    report = await world.service.uploaded_videos_report(
        world.admin,
        DateRange(date(2026, 3, 9), date(2026, 3, 10)),
    )

    assert report.total_videos == 3
    assert [(row.editor_name, row.videos) for row in report.by_editor] == [
        ("Nadia", 2),
        (UNKNOWN_NAME, 1),
    ]


@pytest.mark.asyncio
async def test_uploaded_videos_report_empty_is_zero(world: ReportWorld) -> None:
    report = await world.service.uploaded_videos_report(world.admin, DateRange())

    assert report.total_videos == 0
    assert report.by_editor == []


@pytest.mark.asyncio
async def test_daily_bill_groups_by_teacher_and_marks_sessions_paid(world: ReportWorld) -> None:
    first = world.confirmed(world.rahim, "Class 01", START_DAY_MORNING, hours="1.5")
    second = world.confirmed(world.rahim, "Class 02", START_DAY_MORNING, hours="2")
    third = world.confirmed(world.karim, "Class 03", START_DAY_MORNING, hours="1", paid=True)
    other_day = world.confirmed(world.karim, "Class 04", END_DAY_LATE)

    bill = await world.service.assemble_daily_bill(world.admin, date(2026, 3, 9))

    assert bill.invoice_id == "CLS-20260309-3"
    assert bill.total_classes == 3
    assert bill.total_hours == Decimal("4.5")
    assert bill.grand_total == Decimal("2700")
    assert [group.teacher_name for group in bill.teachers] == ["Karim", "Rahim"]
    assert bill.teachers[1].subtotal == Decimal("2100")
    assert bill.payment.requested == 2
    assert bill.payment.modified == 2
    assert all(line.paid for group in bill.teachers for line in group.lines)

    assert first.paid and second.paid and third.paid
    assert first.paid_at == NOW
    assert other_day.paid is False
    assert "reports.bill.daily" in world.audit.actions()


@pytest.mark.asyncio
async def test_daily_bill_without_sessions_fails_loudly(world: ReportWorld) -> None:
    world.confirmed(world.rahim, "Class 01", END_DAY_LATE)

    with pytest.raises(EmptyBillException):
        await world.service.assemble_daily_bill(world.admin, date(2026, 3, 9))


@pytest.mark.asyncio
async def test_upload_bill_computes_rate_times_count_plus_tip_without_mutation(world: ReportWorld) -> None:
    first = world.confirmed(world.rahim, "Class 01", START_DAY_MORNING)
    second = world.confirmed(world.karim, "Class 02", START_DAY_MORNING)
    first_task = world.uploaded(first, START_DAY_MORNING, world.editor)
    world.uploaded(second, END_DAY_LATE, world.editor)

    bill = await world.service.assemble_upload_bill(
        world.admin,
        DateRange(date(2026, 3, 9), date(2026, 3, 10)),
        per_video_rate=Decimal("150"),
        tip=Decimal("25.50"),
    )

    assert bill.invoice_id == "UPL-20260315-2"
    assert bill.videos == 2
    assert bill.subtotal == Decimal("300")
    assert bill.grand_total == Decimal("325.50")
    assert {line.course_name for line in bill.lines} == {"HSC Physics"}
    assert first_task.uploaded is True
    assert world.audit.logs == []


@pytest.mark.asyncio
async def test_upload_bill_with_no_videos_is_tip_only(world: ReportWorld) -> None:
    bill = await world.service.assemble_upload_bill(
        world.admin,
        DateRange(date(2026, 3, 9), date(2026, 3, 9)),
        per_video_rate=Decimal("150"),
    )

    assert bill.period == "2026-03-09"
    assert bill.videos == 0
    assert bill.grand_total == Decimal("0")


@pytest.mark.asyncio
async def test_upload_bill_validates_rate_and_tip(world: ReportWorld) -> None:
    with pytest.raises(ValidationException):
        await world.service.assemble_upload_bill(world.admin, DateRange(), per_video_rate=Decimal("0"))
    with pytest.raises(ValidationException):
        await world.service.assemble_upload_bill(
            world.admin,
            DateRange(),
            per_video_rate=Decimal("10"),
            tip=Decimal("-1"),
        )
