"""Upload task bridge: one video-delivery task per confirmed class session."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.access import authorize
from app.core.database import get_db_session
from app.core.enums import ClassSessionStatusEnum, OperationEnum, RoleEnum
from app.core.metrics import record_upload_tasks_created
from app.modules.audit.repository import AuditRepository
from app.modules.classes.repository import ClassSessionsRepository
from app.modules.identity.models import User
from app.modules.uploads.models import UploadTask
from app.modules.uploads.repository import UploadTasksRepository
from app.shared.exceptions import InvalidStateException, NotFoundException
from app.shared.utils import utc_now

logger = logging.getLogger(__name__)


class UploadTasksService:
    """Upload task domain service."""

    def __init__(
        self,
        repository: UploadTasksRepository,
        sessions_repository: ClassSessionsRepository,
        audit_repository: AuditRepository,
    ) -> None:
        self.repository = repository
        self.sessions_repository = sessions_repository
        self.audit_repository = audit_repository

    async def _get_for_update(self, task_id: UUID) -> UploadTask:
        task = await self.repository.get_task_for_update(task_id)
        if task is None:
            raise NotFoundException("Upload task not found")
        return task

    async def _audit(self, actor: User, action: str, task_id: UUID, payload: dict) -> None:
        await self.audit_repository.create_audit_log(
            actor_id=actor.id,
            action=action,
            entity_type="upload_task",
            entity_id=str(task_id),
            payload=payload,
        )

    async def ensure_task(self, class_session_id: UUID, actor: User) -> tuple[UploadTask, bool]:
        """Create the task for one confirmed session; no-op when it already exists."""
        authorize(actor, OperationEnum.UPLOAD_RECONCILE)
        class_session = await self.sessions_repository.get_session_by_id(class_session_id)
        if class_session is None:
            raise NotFoundException("Class session not found")
        if class_session.status != ClassSessionStatusEnum.ADMIN_CONFIRMED:
            raise InvalidStateException("Upload tasks exist only for confirmed classes")

        task, created = await self.repository.create_task_if_missing(class_session_id)
        if created:
            record_upload_tasks_created("ensure")
            await self._audit(
                actor,
                "uploads.task.create",
                task.id,
                {"class_session_id": str(class_session_id), "trigger": "ensure"},
            )
        return await self.repository.get_task_by_id(task.id), created

    async def reconcile_all(self, actor: User) -> int:
        """Back-fill tasks for every confirmed session lacking one; return how many were created."""
        authorize(actor, OperationEnum.UPLOAD_RECONCILE)
        confirmed_ids = await self.repository.list_confirmed_session_ids()
        existing_ids = await self.repository.list_task_session_ids()
        missing_ids = [item for item in confirmed_ids if item not in existing_ids]
        if not missing_ids:
            logger.info("Upload task reconciliation: nothing to create")
            return 0

        created = await self.repository.create_tasks_for_sessions(missing_ids)
        record_upload_tasks_created("reconcile", created)
        await self.audit_repository.create_audit_log(
            actor_id=actor.id,
            action="uploads.task.reconcile",
            entity_type="upload_task",
            entity_id=None,
            payload={"candidates": len(missing_ids), "created": created},
        )
        logger.info(
            "Upload task reconciliation: confirmed=%d missing=%d created=%d",
            len(confirmed_ids),
            len(missing_ids),
            created,
        )
        return created

    async def list_pending(self, actor: User, limit: int, offset: int) -> tuple[list[UploadTask], int]:
        authorize(actor, OperationEnum.UPLOAD_LIST)
        return await self.repository.list_tasks(uploaded=False, limit=limit, offset=offset)

    async def list_uploaded(self, actor: User, limit: int, offset: int) -> tuple[list[UploadTask], int]:
        authorize(actor, OperationEnum.UPLOAD_LIST)
        return await self.repository.list_tasks(uploaded=True, limit=limit, offset=offset)

    async def mark_uploaded(self, task_id: UUID, video_url: str | None, actor: User) -> UploadTask:
        """Flag the video as delivered; editors are stamped as the task's editor."""
        authorize(actor, OperationEnum.UPLOAD_MARK)
        task = await self._get_for_update(task_id)

        task.uploaded = True
        task.uploaded_at = utc_now()
        cleaned_url = video_url.strip() if video_url else ""
        if cleaned_url:
            task.video_url = cleaned_url
        if actor.role == RoleEnum.EDITOR:
            task.editor_id = actor.id
        task = await self.repository.save(task)

        await self._audit(
            actor,
            "uploads.task.uploaded",
            task.id,
            {"video_url": task.video_url, "uploaded_at": task.uploaded_at.isoformat()},
        )
        logger.info("Upload task %s marked uploaded by %s", task.id, actor.id)
        return task

    async def mark_not_uploaded(self, task_id: UUID, actor: User) -> UploadTask:
        authorize(actor, OperationEnum.UPLOAD_MARK)
        task = await self._get_for_update(task_id)

        task.uploaded = False
        task.uploaded_at = None
        task.video_url = None
        task = await self.repository.save(task)

        await self._audit(actor, "uploads.task.unuploaded", task.id, {})
        logger.info("Upload task %s reverted to not uploaded", task.id)
        return task

    async def delete_task(self, task_id: UUID, actor: User) -> UUID:
        """Remove the task record only; the class session is untouched."""
        authorize(actor, OperationEnum.UPLOAD_DELETE)
        task = await self._get_for_update(task_id)
        payload = {"class_session_id": str(task.class_session_id), "uploaded": task.uploaded}
        await self.repository.delete_task(task)
        await self._audit(actor, "uploads.task.delete", task_id, payload)
        return task_id


async def get_upload_tasks_service(
    session: AsyncSession = Depends(get_db_session),
) -> UploadTasksService:
    """Dependency provider for upload tasks service."""
    return UploadTasksService(
        repository=UploadTasksRepository(session),
        sessions_repository=ClassSessionsRepository(session),
        audit_repository=AuditRepository(session),
    )
