"""Class session ORM models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, BaseModelMixin, enum_values
from app.core.enums import ClassSessionStatusEnum

if TYPE_CHECKING:
    from app.modules.courses.models import Course
    from app.modules.uploads.models import UploadTask

SESSION_NAME_CONSTRAINT = "uq_class_sessions_course_id_name"


def compute_amount(hours: Decimal, hourly_rate: Decimal) -> Decimal:
    """Billable amount of one session: hours x hourly rate, unrounded."""
    return Decimal(hours) * Decimal(hourly_rate)


class ClassSession(BaseModelMixin, Base):
    """Scheduled billable class assigned to one teacher.

    ``teacher_tpin``/``teacher_name`` are copied from the assignee when the
    session is created and are never refreshed afterwards.
    """

    __tablename__ = "class_sessions"
    __table_args__ = (
        UniqueConstraint("course_id", "name", name=SESSION_NAME_CONSTRAINT),
        CheckConstraint("hours > 0", name="hours_positive"),
        CheckConstraint("hourly_rate >= 0", name="hourly_rate_non_negative"),
        Index("ix_class_sessions_status_confirmed_at", "status", "confirmed_at"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    course_id: Mapped[UUID] = mapped_column(
        ForeignKey("courses.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    teacher_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    teacher_tpin: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    teacher_name: Mapped[str] = mapped_column(String(128), nullable=False)

    hours: Mapped[Decimal] = mapped_column(Numeric(6, 2), default=Decimal("1.5"), nullable=False)
    hourly_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("600"), nullable=False)

    status: Mapped[ClassSessionStatusEnum] = mapped_column(
        SAEnum(
            ClassSessionStatusEnum,
            name="class_session_status_enum",
            native_enum=False,
            values_callable=enum_values,
        ),
        default=ClassSessionStatusEnum.PENDING,
        nullable=False,
        index=True,
    )
    paid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    course: Mapped[Course] = relationship()
    upload_task: Mapped[UploadTask | None] = relationship(
        back_populates="class_session",
        uselist=False,
        passive_deletes=True,
    )

    @property
    def amount(self) -> Decimal:
        return compute_amount(self.hours, self.hourly_rate)
