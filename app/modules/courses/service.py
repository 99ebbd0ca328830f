"""Courses business logic layer."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.access import authorize
from app.core.database import get_db_session
from app.core.enums import CourseStatusEnum, OperationEnum
from app.modules.courses.models import Course
from app.modules.courses.repository import CoursesRepository
from app.modules.courses.schemas import CourseCreate
from app.modules.identity.models import User
from app.shared.exceptions import NotFoundException, ValidationException


class CoursesService:
    """Course directory service."""

    def __init__(self, repository: CoursesRepository) -> None:
        self.repository = repository

    async def create_course(self, payload: CourseCreate, actor: User) -> Course:
        authorize(actor, OperationEnum.COURSE_CREATE)
        name = payload.name.strip()
        if not name:
            raise ValidationException("Course name is required")
        return await self.repository.create_course(name, payload.number_of_classes)

    async def get_course(self, course_id: UUID, actor: User) -> Course:
        authorize(actor, OperationEnum.COURSE_READ)
        course = await self.repository.get_course_by_id(course_id)
        if course is None:
            raise NotFoundException("Course not found")
        return course

    async def list_courses(
        self,
        actor: User,
        status: CourseStatusEnum,
        limit: int,
        offset: int,
    ) -> tuple[list[Course], int]:
        authorize(actor, OperationEnum.COURSE_READ)
        return await self.repository.list_courses(status=status, limit=limit, offset=offset)


async def get_courses_service(session: AsyncSession = Depends(get_db_session)) -> CoursesService:
    """Dependency provider for courses service."""
    return CoursesService(CoursesRepository(session))
