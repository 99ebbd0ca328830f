"""Upload tasks API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from app.modules.identity.service import get_current_user
from app.modules.uploads.schemas import (
    EnsureTaskResult,
    MarkUploadedRequest,
    ReconcileResult,
    UploadDeleteResult,
    UploadTaskRead,
)
from app.modules.uploads.service import UploadTasksService, get_upload_tasks_service
from app.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/upload", tags=["upload"])


@router.post("/sync-from-sessions", response_model=ReconcileResult)
async def sync_from_sessions(
    service: UploadTasksService = Depends(get_upload_tasks_service),
    current_user=Depends(get_current_user),
) -> ReconcileResult:
    """Create missing upload tasks for all confirmed classes (admin only)."""
    created = await service.reconcile_all(current_user)
    return ReconcileResult(created=created)


@router.post("/sessions/{session_id}", response_model=EnsureTaskResult)
async def ensure_task(
    session_id: UUID,
    service: UploadTasksService = Depends(get_upload_tasks_service),
    current_user=Depends(get_current_user),
) -> EnsureTaskResult:
    """Ensure the upload task of one confirmed class exists."""
    task, created = await service.ensure_task(session_id, current_user)
    return EnsureTaskResult(created=created, task=UploadTaskRead.model_validate(task))


@router.get("/pending", response_model=Page[UploadTaskRead])
async def list_pending(
    pagination=Depends(get_pagination_params),
    service: UploadTasksService = Depends(get_upload_tasks_service),
    current_user=Depends(get_current_user),
) -> Page[UploadTaskRead]:
    items, total = await service.list_pending(current_user, pagination.limit, pagination.offset)
    serialized = [UploadTaskRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/uploaded", response_model=Page[UploadTaskRead])
async def list_uploaded(
    pagination=Depends(get_pagination_params),
    service: UploadTasksService = Depends(get_upload_tasks_service),
    current_user=Depends(get_current_user),
) -> Page[UploadTaskRead]:
    items, total = await service.list_uploaded(current_user, pagination.limit, pagination.offset)
    serialized = [UploadTaskRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.patch("/{task_id}/uploaded", response_model=UploadTaskRead)
async def mark_uploaded(
    task_id: UUID,
    payload: MarkUploadedRequest | None = None,
    service: UploadTasksService = Depends(get_upload_tasks_service),
    current_user=Depends(get_current_user),
) -> UploadTaskRead:
    """Editor or admin confirms the video has been uploaded."""
    video_url = payload.video_url if payload is not None else None
    task = await service.mark_uploaded(task_id, video_url, current_user)
    return UploadTaskRead.model_validate(task)


@router.patch("/{task_id}/unuploaded", response_model=UploadTaskRead)
async def mark_not_uploaded(
    task_id: UUID,
    service: UploadTasksService = Depends(get_upload_tasks_service),
    current_user=Depends(get_current_user),
) -> UploadTaskRead:
    task = await service.mark_not_uploaded(task_id, current_user)
    return UploadTaskRead.model_validate(task)


@router.delete("/{task_id}", response_model=UploadDeleteResult)
async def delete_task(
    task_id: UUID,
    service: UploadTasksService = Depends(get_upload_tasks_service),
    current_user=Depends(get_current_user),
) -> UploadDeleteResult:
    """Delete an upload task; the class itself is kept (admin only)."""
    deleted_id = await service.delete_task(task_id, current_user)
    return UploadDeleteResult(id=deleted_id)
