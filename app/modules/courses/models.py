"""Courses ORM models."""

from __future__ import annotations

from sqlalchemy import Enum as SAEnum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, BaseModelMixin, enum_values
from app.core.enums import CourseStatusEnum


class Course(BaseModelMixin, Base):
    """Course that class sessions are scheduled under."""

    __tablename__ = "courses"

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    number_of_classes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    status: Mapped[CourseStatusEnum] = mapped_column(
        SAEnum(CourseStatusEnum, name="course_status_enum", native_enum=False, values_callable=enum_values),
        default=CourseStatusEnum.ACTIVE,
        nullable=False,
    )
