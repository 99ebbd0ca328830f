"""Class sessions API router."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.modules.classes.schemas import (
    BulkMarkPaidRequest,
    BulkMarkPaidResult,
    ClassSessionAssign,
    ClassSessionRead,
    CompletedFilterParams,
    DeleteResult,
)
from app.modules.classes.service import ClassSessionService, get_class_session_service
from app.modules.identity.service import get_current_user
from app.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/classes", tags=["classes"])


def _page(items, total: int, pagination, current_user) -> Page[ClassSessionRead]:
    serialized = [ClassSessionRead.for_actor(item, current_user.role) for item in items]
    return build_page(serialized, total, pagination)


def get_completed_filters(
    course_id: UUID | None = Query(default=None, alias="courseId"),
    teacher_id: UUID | None = Query(default=None, alias="teacherId"),
    tpin: str | None = Query(default=None),
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
) -> CompletedFilterParams:
    return CompletedFilterParams(
        course_id=course_id,
        teacher_id=teacher_id,
        tpin=tpin,
        start=start,
        end=end,
    )


@router.post("/assign", response_model=ClassSessionRead, status_code=status.HTTP_201_CREATED)
async def assign_session(
    payload: ClassSessionAssign,
    service: ClassSessionService = Depends(get_class_session_service),
    current_user=Depends(get_current_user),
) -> ClassSessionRead:
    """Assign a new pending class to a teacher (admin only)."""
    class_session = await service.assign_session(payload, current_user)
    return ClassSessionRead.for_actor(class_session, current_user.role)


@router.get("/pending", response_model=Page[ClassSessionRead])
async def list_pending(
    pagination=Depends(get_pagination_params),
    service: ClassSessionService = Depends(get_class_session_service),
    current_user=Depends(get_current_user),
) -> Page[ClassSessionRead]:
    """Pending classes; teachers only see their own."""
    items, total = await service.list_pending(current_user, pagination.limit, pagination.offset)
    return _page(items, total, pagination, current_user)


@router.get("/confirmation", response_model=Page[ClassSessionRead])
async def list_confirmation_queue(
    pagination=Depends(get_pagination_params),
    service: ClassSessionService = Depends(get_class_session_service),
    current_user=Depends(get_current_user),
) -> Page[ClassSessionRead]:
    """Classes completed by teachers and waiting for admin confirmation."""
    items, total = await service.list_confirmation_queue(
        current_user,
        pagination.limit,
        pagination.offset,
    )
    return _page(items, total, pagination, current_user)


@router.get("/completed", response_model=Page[ClassSessionRead])
async def list_completed(
    filters: CompletedFilterParams = Depends(get_completed_filters),
    pagination=Depends(get_pagination_params),
    service: ClassSessionService = Depends(get_class_session_service),
    current_user=Depends(get_current_user),
) -> Page[ClassSessionRead]:
    """Confirmed classes filtered by course, teacher, TPIN and date range."""
    items, total = await service.list_completed(
        current_user,
        filters,
        pagination.limit,
        pagination.offset,
    )
    return _page(items, total, pagination, current_user)


@router.get("/unpaid", response_model=Page[ClassSessionRead])
async def list_unpaid(
    pagination=Depends(get_pagination_params),
    service: ClassSessionService = Depends(get_class_session_service),
    current_user=Depends(get_current_user),
) -> Page[ClassSessionRead]:
    items, total = await service.list_unpaid(current_user, pagination.limit, pagination.offset)
    return _page(items, total, pagination, current_user)


@router.post("/unpaid/confirm-all", response_model=BulkMarkPaidResult)
async def confirm_all_unpaid(
    service: ClassSessionService = Depends(get_class_session_service),
    current_user=Depends(get_current_user),
) -> BulkMarkPaidResult:
    """Mark every confirmed, unpaid class as paid."""
    return await service.bulk_mark_paid(current_user)


@router.post("/paid/batch", response_model=BulkMarkPaidResult)
async def mark_paid_batch(
    payload: BulkMarkPaidRequest,
    service: ClassSessionService = Depends(get_class_session_service),
    current_user=Depends(get_current_user),
) -> BulkMarkPaidResult:
    """Mark the given confirmed, unpaid classes as paid."""
    return await service.bulk_mark_paid(current_user, payload.ids)


@router.get("/{session_id}", response_model=ClassSessionRead)
async def get_session(
    session_id: UUID,
    service: ClassSessionService = Depends(get_class_session_service),
    current_user=Depends(get_current_user),
) -> ClassSessionRead:
    class_session = await service.get_session(session_id, current_user)
    return ClassSessionRead.for_actor(class_session, current_user.role)


@router.patch("/{session_id}/complete", response_model=ClassSessionRead)
async def complete_session(
    session_id: UUID,
    service: ClassSessionService = Depends(get_class_session_service),
    current_user=Depends(get_current_user),
) -> ClassSessionRead:
    """Teacher marks their pending class as completed."""
    class_session = await service.complete_session(session_id, current_user)
    return ClassSessionRead.for_actor(class_session, current_user.role)


@router.patch("/{session_id}/confirm", response_model=ClassSessionRead)
async def confirm_session(
    session_id: UUID,
    service: ClassSessionService = Depends(get_class_session_service),
    current_user=Depends(get_current_user),
) -> ClassSessionRead:
    """Admin confirms a teacher-completed class."""
    class_session = await service.confirm_session(session_id, current_user)
    return ClassSessionRead.for_actor(class_session, current_user.role)


@router.patch("/{session_id}/paid", response_model=ClassSessionRead)
async def mark_paid(
    session_id: UUID,
    service: ClassSessionService = Depends(get_class_session_service),
    current_user=Depends(get_current_user),
) -> ClassSessionRead:
    class_session = await service.mark_paid(session_id, current_user)
    return ClassSessionRead.for_actor(class_session, current_user.role)


@router.patch("/{session_id}/unpaid", response_model=ClassSessionRead)
async def mark_unpaid(
    session_id: UUID,
    service: ClassSessionService = Depends(get_class_session_service),
    current_user=Depends(get_current_user),
) -> ClassSessionRead:
    class_session = await service.mark_unpaid(session_id, current_user)
    return ClassSessionRead.for_actor(class_session, current_user.role)


@router.delete("/{session_id}", response_model=DeleteResult)
async def delete_session(
    session_id: UUID,
    service: ClassSessionService = Depends(get_class_session_service),
    current_user=Depends(get_current_user),
) -> DeleteResult:
    """Delete a pending class (admin only)."""
    deleted_id = await service.delete_session(session_id, current_user)
    return DeleteResult(id=deleted_id)
