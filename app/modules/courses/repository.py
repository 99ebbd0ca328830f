"""Courses repository layer."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import CourseStatusEnum
from app.modules.courses.models import Course


class CoursesRepository:
    """DB operations for the course directory."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_course(self, name: str, number_of_classes: int) -> Course:
        course = Course(
            name=name,
            number_of_classes=number_of_classes,
            status=CourseStatusEnum.ACTIVE,
        )
        self.session.add(course)
        await self.session.flush()
        return course

    async def get_course_by_id(self, course_id: UUID) -> Course | None:
        return await self.session.get(Course, course_id)

    async def list_courses(
        self,
        status: CourseStatusEnum,
        limit: int,
        offset: int,
    ) -> tuple[list[Course], int]:
        base_stmt: Select[tuple[Course]] = select(Course).where(Course.status == status)
        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(Course.name.asc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return items, total
