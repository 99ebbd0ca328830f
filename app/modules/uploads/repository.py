"""Upload tasks repository layer."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.enums import ClassSessionStatusEnum
from app.modules.classes.models import ClassSession
from app.modules.uploads.models import UploadTask


class UploadTasksRepository:
    """DB operations for upload tasks."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _with_relations(stmt: Select[tuple[UploadTask]]) -> Select[tuple[UploadTask]]:
        return stmt.options(
            selectinload(UploadTask.class_session).selectinload(ClassSession.course),
            selectinload(UploadTask.editor),
        )

    async def create_task_if_missing(self, class_session_id: UUID) -> tuple[UploadTask, bool]:
        """Insert a task for the session unless one exists; return it and whether it was new."""
        stmt = (
            insert(UploadTask)
            .values(class_session_id=class_session_id, uploaded=False)
            .on_conflict_do_nothing(index_elements=[UploadTask.class_session_id])
            .returning(UploadTask.id)
        )
        created_id = await self.session.scalar(stmt)
        task = await self.session.scalar(
            select(UploadTask).where(UploadTask.class_session_id == class_session_id),
        )
        return task, created_id is not None

    async def create_tasks_for_sessions(self, class_session_ids: Sequence[UUID]) -> int:
        """Bulk insert tasks; sessions that gained a task concurrently are skipped."""
        if not class_session_ids:
            return 0
        stmt = (
            insert(UploadTask)
            .values([{"class_session_id": item, "uploaded": False} for item in class_session_ids])
            .on_conflict_do_nothing(index_elements=[UploadTask.class_session_id])
            .returning(UploadTask.id)
        )
        result = await self.session.execute(stmt)
        return len(result.scalars().all())

    async def list_confirmed_session_ids(self) -> list[UUID]:
        stmt = select(ClassSession.id).where(
            ClassSession.status == ClassSessionStatusEnum.ADMIN_CONFIRMED,
        )
        return list((await self.session.scalars(stmt)).all())

    async def list_task_session_ids(self) -> set[UUID]:
        return set((await self.session.scalars(select(UploadTask.class_session_id))).all())

    async def get_task_by_id(self, task_id: UUID) -> UploadTask | None:
        stmt = self._with_relations(select(UploadTask).where(UploadTask.id == task_id))
        return await self.session.scalar(stmt)

    async def get_task_for_update(self, task_id: UUID) -> UploadTask | None:
        stmt = (
            self._with_relations(select(UploadTask).where(UploadTask.id == task_id))
            .with_for_update(of=UploadTask)
            .execution_options(populate_existing=True)
        )
        return await self.session.scalar(stmt)

    async def list_tasks(
        self,
        uploaded: bool,
        limit: int,
        offset: int,
    ) -> tuple[list[UploadTask], int]:
        base_stmt = select(UploadTask).where(UploadTask.uploaded.is_(uploaded))
        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        order_column = UploadTask.uploaded_at if uploaded else UploadTask.created_at
        stmt = (
            self._with_relations(base_stmt)
            .order_by(order_column.desc(), UploadTask.id.asc())
            .limit(limit)
            .offset(offset)
        )
        items = (await self.session.scalars(stmt)).all()
        return items, total

    async def list_uploaded_between(
        self,
        uploaded_from: datetime | None,
        uploaded_to: datetime | None,
    ) -> list[UploadTask]:
        """Uploaded tasks with ``uploaded_from <= uploaded_at < uploaded_to``."""
        stmt = select(UploadTask).where(UploadTask.uploaded.is_(True))
        if uploaded_from is not None:
            stmt = stmt.where(UploadTask.uploaded_at >= uploaded_from)
        if uploaded_to is not None:
            stmt = stmt.where(UploadTask.uploaded_at < uploaded_to)
        stmt = self._with_relations(stmt).order_by(UploadTask.uploaded_at.asc())
        return list((await self.session.scalars(stmt)).all())

    async def save(self, task: UploadTask) -> UploadTask:
        await self.session.flush()
        await self.session.refresh(task, attribute_names=["editor"])
        return task

    async def delete_task(self, task: UploadTask) -> None:
        await self.session.delete(task)
        await self.session.flush()
