"""Courses API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.core.enums import CourseStatusEnum
from app.modules.courses.schemas import CourseCreate, CourseRead
from app.modules.courses.service import CoursesService, get_courses_service
from app.modules.identity.service import get_current_user
from app.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/courses", tags=["courses"])


@router.post("", response_model=CourseRead, status_code=status.HTTP_201_CREATED)
async def create_course(
    payload: CourseCreate,
    service: CoursesService = Depends(get_courses_service),
    current_user=Depends(get_current_user),
) -> CourseRead:
    """Create course (admin only)."""
    course = await service.create_course(payload, current_user)
    return CourseRead.model_validate(course)


@router.get("", response_model=Page[CourseRead])
async def list_courses(
    course_status: CourseStatusEnum = Query(default=CourseStatusEnum.ACTIVE, alias="status"),
    pagination=Depends(get_pagination_params),
    service: CoursesService = Depends(get_courses_service),
    current_user=Depends(get_current_user),
) -> Page[CourseRead]:
    """List active or archived courses."""
    items, total = await service.list_courses(
        current_user,
        course_status,
        pagination.limit,
        pagination.offset,
    )
    serialized = [CourseRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/{course_id}", response_model=CourseRead)
async def get_course(
    course_id: UUID,
    service: CoursesService = Depends(get_courses_service),
    current_user=Depends(get_current_user),
) -> CourseRead:
    course = await service.get_course(course_id, current_user)
    return CourseRead.model_validate(course)
