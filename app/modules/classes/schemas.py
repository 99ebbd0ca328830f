"""Class session schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import ClassSessionStatusEnum, RoleEnum
from app.modules.courses.schemas import CourseBrief


class ClassSessionAssign(BaseModel):
    """Assign a new session to a teacher (or an admin who teaches)."""

    course_id: UUID
    teacher_id: UUID
    name: str = Field(max_length=255)
    hours: Decimal | None = Field(default=None, gt=0, max_digits=6, decimal_places=2)
    hourly_rate: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)


class ClassSessionRead(BaseModel):
    """Class session response schema.

    ``hourly_rate`` and ``amount`` are only populated for admins.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    course_id: UUID
    course: CourseBrief | None = None
    teacher_id: UUID
    teacher_tpin: str
    teacher_name: str
    hours: Decimal
    hourly_rate: Decimal | None = None
    amount: Decimal | None = None
    status: ClassSessionStatusEnum
    paid: bool
    completed_at: datetime | None
    confirmed_at: datetime | None
    paid_at: datetime | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def for_actor(cls, class_session, actor_role: RoleEnum) -> "ClassSessionRead":
        view = cls.model_validate(class_session)
        if actor_role != RoleEnum.ADMIN:
            return view.model_copy(update={"hourly_rate": None, "amount": None})
        return view


class CompletedFilterParams(BaseModel):
    """Query filters for the completed-sessions listing."""

    course_id: UUID | None = None
    teacher_id: UUID | None = None
    tpin: str | None = None
    start: date | None = None
    end: date | None = None


class BulkMarkPaidRequest(BaseModel):
    ids: list[UUID] = Field(min_length=1)


class BulkMarkPaidResult(BaseModel):
    """Outcome of a bulk mark-paid request; counts are actual, not assumed."""

    requested: int
    modified: int
    failed: int
    modified_ids: list[UUID] = Field(default_factory=list)


class DeleteResult(BaseModel):
    ok: bool = True
    id: UUID
