"""Class session lifecycle: assign, complete, confirm, pay, delete.

Status only moves forward ``pending -> teacherCompleted -> adminConfirmed``;
the ``paid`` flag is independent and may toggle either way. Every single
record transition re-reads the row under ``SELECT ... FOR UPDATE`` so two
concurrent requests against the same session are serialized.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from uuid import UUID

from fastapi import Depends
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.access import authorize
from app.core.config import get_settings
from app.core.database import get_db_session
from app.core.enums import ClassSessionStatusEnum, OperationEnum, RoleEnum
from app.core.metrics import record_transition, record_upload_tasks_created
from app.modules.audit.repository import AuditRepository
from app.modules.classes.models import ClassSession
from app.modules.classes.repository import ClassSessionFilter, ClassSessionsRepository
from app.modules.classes.schemas import BulkMarkPaidResult, ClassSessionAssign, CompletedFilterParams
from app.modules.courses.repository import CoursesRepository
from app.modules.identity.models import User
from app.modules.identity.repository import IdentityRepository
from app.modules.uploads.repository import UploadTasksRepository
from app.shared.exceptions import (
    DuplicateNameException,
    InvalidAssigneeException,
    InvalidCourseException,
    InvalidStateException,
    NotFoundException,
    ValidationException,
)
from app.shared.utils import DateRange, utc_now

logger = logging.getLogger(__name__)
settings = get_settings()

ASSIGNABLE_ROLES = frozenset({RoleEnum.TEACHER, RoleEnum.ADMIN})


class ClassSessionService:
    """Class session domain service."""

    def __init__(
        self,
        repository: ClassSessionsRepository,
        courses_repository: CoursesRepository,
        identity_repository: IdentityRepository,
        uploads_repository: UploadTasksRepository,
        audit_repository: AuditRepository,
    ) -> None:
        self.repository = repository
        self.courses_repository = courses_repository
        self.identity_repository = identity_repository
        self.uploads_repository = uploads_repository
        self.audit_repository = audit_repository

    async def _get_for_update(self, session_id: UUID) -> ClassSession:
        class_session = await self.repository.get_session_for_update(session_id)
        if class_session is None:
            raise NotFoundException("Class session not found")
        return class_session

    async def _audit(self, actor: User, action: str, class_session: ClassSession, payload: dict) -> None:
        await self.audit_repository.create_audit_log(
            actor_id=actor.id,
            action=action,
            entity_type="class_session",
            entity_id=str(class_session.id),
            payload=payload,
        )

    async def _ensure_upload_task(self, class_session: ClassSession, actor: User) -> None:
        """Create the upload task for a freshly confirmed session if missing."""
        task, created = await self.uploads_repository.create_task_if_missing(class_session.id)
        if not created:
            return
        record_upload_tasks_created("confirm")
        await self.audit_repository.create_audit_log(
            actor_id=actor.id,
            action="uploads.task.create",
            entity_type="upload_task",
            entity_id=str(task.id),
            payload={"class_session_id": str(class_session.id), "trigger": "confirm"},
        )

    async def assign_session(self, payload: ClassSessionAssign, actor: User) -> ClassSession:
        """Create a pending session with a snapshot of the assignee."""
        authorize(actor, OperationEnum.SESSION_ASSIGN)

        name = payload.name.strip()
        if not name:
            raise ValidationException("Class name is required")

        course = await self.courses_repository.get_course_by_id(payload.course_id)
        if course is None:
            raise InvalidCourseException("Invalid course")

        assignee = await self.identity_repository.get_user_by_id(payload.teacher_id)
        if assignee is None or assignee.role not in ASSIGNABLE_ROLES:
            raise InvalidAssigneeException("Invalid assignee (must be teacher or admin)")

        if await self.repository.exists_by_course_and_name(course.id, name):
            raise DuplicateNameException("A class with this name already exists for this course")

        hours = payload.hours if payload.hours is not None else settings.default_session_hours
        hourly_rate = (
            payload.hourly_rate if payload.hourly_rate is not None else settings.default_hourly_rate
        )
        class_session = await self.repository.create_session(
            name=name,
            course_id=course.id,
            teacher_id=assignee.id,
            teacher_tpin=assignee.tpin,
            teacher_name=assignee.name,
            hours=hours,
            hourly_rate=hourly_rate,
        )
        await self._audit(
            actor,
            "classes.session.assign",
            class_session,
            {
                "course_id": str(course.id),
                "teacher_id": str(assignee.id),
                "name": name,
                "hours": str(hours),
                "hourly_rate": str(hourly_rate),
            },
        )
        record_transition("assign")
        logger.info("Assigned class session %s to %s", class_session.id, assignee.tpin)
        return class_session

    async def get_session(self, session_id: UUID, actor: User) -> ClassSession:
        """Read one session; teachers may only read their own."""
        authorize(actor, OperationEnum.SESSION_READ)
        class_session = await self.repository.get_session_by_id(session_id)
        if class_session is None:
            raise NotFoundException("Class session not found")
        authorize(actor, OperationEnum.SESSION_READ, class_session)
        return class_session

    async def list_pending(self, actor: User, limit: int, offset: int) -> tuple[list[ClassSession], int]:
        """Pending sessions: all for admins, own for teachers."""
        authorize(actor, OperationEnum.SESSION_LIST_PENDING)
        filters = ClassSessionFilter(status=ClassSessionStatusEnum.PENDING)
        if actor.role == RoleEnum.TEACHER:
            filters.teacher_id = actor.id
        return await self.repository.list_sessions(filters, limit, offset)

    async def complete_session(self, session_id: UUID, actor: User) -> ClassSession:
        """pending -> teacherCompleted."""
        authorize(actor, OperationEnum.SESSION_COMPLETE)
        class_session = await self._get_for_update(session_id)
        if class_session.status != ClassSessionStatusEnum.PENDING:
            raise InvalidStateException("Only pending classes can be completed")
        authorize(actor, OperationEnum.SESSION_COMPLETE, class_session)

        class_session.status = ClassSessionStatusEnum.TEACHER_COMPLETED
        class_session.completed_at = utc_now()
        class_session = await self.repository.save(class_session)

        await self._audit(
            actor,
            "classes.session.complete",
            class_session,
            {"completed_at": class_session.completed_at.isoformat()},
        )
        record_transition("complete")
        logger.info("Class session %s completed by %s", class_session.id, actor.id)
        return class_session

    async def list_confirmation_queue(
        self,
        actor: User,
        limit: int,
        offset: int,
    ) -> tuple[list[ClassSession], int]:
        authorize(actor, OperationEnum.SESSION_LIST_CONFIRMATION)
        filters = ClassSessionFilter(status=ClassSessionStatusEnum.TEACHER_COMPLETED)
        return await self.repository.list_sessions(filters, limit, offset)

    async def confirm_session(self, session_id: UUID, actor: User) -> ClassSession:
        """teacherCompleted -> adminConfirmed, then ensure its upload task."""
        authorize(actor, OperationEnum.SESSION_CONFIRM)
        class_session = await self._get_for_update(session_id)
        if class_session.status != ClassSessionStatusEnum.TEACHER_COMPLETED:
            raise InvalidStateException("Class is not in the confirmation queue")

        class_session.status = ClassSessionStatusEnum.ADMIN_CONFIRMED
        class_session.confirmed_at = utc_now()
        class_session = await self.repository.save(class_session)

        await self._audit(
            actor,
            "classes.session.confirm",
            class_session,
            {"confirmed_at": class_session.confirmed_at.isoformat()},
        )
        record_transition("confirm")
        if settings.create_upload_task_on_confirm:
            await self._ensure_upload_task(class_session, actor)
        logger.info("Class session %s confirmed", class_session.id)
        return class_session

    async def list_completed(
        self,
        actor: User,
        params: CompletedFilterParams,
        limit: int,
        offset: int,
    ) -> tuple[list[ClassSession], int]:
        """Confirmed sessions filtered by course, teacher, TPIN and confirmation day."""
        authorize(actor, OperationEnum.SESSION_LIST_COMPLETED)
        confirmed_from, confirmed_to = DateRange(params.start, params.end).to_utc_bounds(
            settings.business_tz,
        )
        filters = ClassSessionFilter(
            status=ClassSessionStatusEnum.ADMIN_CONFIRMED,
            course_id=params.course_id,
            teacher_id=params.teacher_id,
            teacher_tpin=params.tpin.strip() if params.tpin else None,
            confirmed_from=confirmed_from,
            confirmed_to=confirmed_to,
        )
        return await self.repository.list_sessions(filters, limit, offset)

    async def list_unpaid(self, actor: User, limit: int, offset: int) -> tuple[list[ClassSession], int]:
        authorize(actor, OperationEnum.SESSION_LIST_UNPAID)
        filters = ClassSessionFilter(status=ClassSessionStatusEnum.ADMIN_CONFIRMED, paid=False)
        return await self.repository.list_sessions(filters, limit, offset)

    async def mark_paid(self, session_id: UUID, actor: User) -> ClassSession:
        """Set ``paid``; re-marking refreshes ``paid_at``. No status precondition."""
        authorize(actor, OperationEnum.SESSION_MARK_PAID)
        class_session = await self._get_for_update(session_id)

        class_session.paid = True
        class_session.paid_at = utc_now()
        class_session = await self.repository.save(class_session)

        await self._audit(
            actor,
            "classes.session.paid",
            class_session,
            {"paid_at": class_session.paid_at.isoformat(), "status": str(class_session.status)},
        )
        record_transition("mark_paid")
        return class_session

    async def mark_unpaid(self, session_id: UUID, actor: User) -> ClassSession:
        authorize(actor, OperationEnum.SESSION_MARK_PAID)
        class_session = await self._get_for_update(session_id)

        class_session.paid = False
        class_session.paid_at = None
        class_session = await self.repository.save(class_session)

        await self._audit(actor, "classes.session.unpaid", class_session, {})
        record_transition("mark_unpaid")
        return class_session

    async def bulk_mark_paid(
        self,
        actor: User,
        session_ids: Sequence[UUID] | None = None,
    ) -> BulkMarkPaidResult:
        """Mark confirmed, unpaid sessions paid.

        With no ids every confirmed unpaid session is targeted. Ids are
        processed in chunks, each atomic on its own. A failing chunk is
        retried one id at a time, so ``failed`` counts only the records
        whose own update raised.
        """
        authorize(actor, OperationEnum.SESSION_BULK_MARK_PAID)

        if session_ids is None:
            candidate_ids = await self.repository.list_unpaid_confirmed_ids()
        else:
            candidate_ids = list(dict.fromkeys(session_ids))

        paid_at = utc_now()
        chunk_size = settings.bulk_paid_chunk_size
        modified_ids: list[UUID] = []
        failed = 0
        for index in range(0, len(candidate_ids), chunk_size):
            chunk = candidate_ids[index : index + chunk_size]
            try:
                modified_ids.extend(await self.repository.mark_paid_if_unpaid(chunk, paid_at))
            except DBAPIError as exc:
                if exc.connection_invalidated:
                    raise
                logger.warning(
                    "Bulk mark-paid chunk of %d sessions failed, retrying one by one",
                    len(chunk),
                )
                for session_id in chunk:
                    try:
                        modified_ids.extend(
                            await self.repository.mark_paid_if_unpaid([session_id], paid_at),
                        )
                    except DBAPIError as record_exc:
                        if record_exc.connection_invalidated:
                            raise
                        failed += 1
                        logger.exception("Bulk mark-paid failed for session %s", session_id)

        result = BulkMarkPaidResult(
            requested=len(candidate_ids),
            modified=len(modified_ids),
            failed=failed,
            modified_ids=modified_ids,
        )
        if modified_ids:
            await self.audit_repository.create_audit_log(
                actor_id=actor.id,
                action="classes.session.bulk_paid",
                entity_type="class_session",
                entity_id=None,
                payload={
                    "paid_at": paid_at.isoformat(),
                    "session_ids": [str(item) for item in modified_ids],
                },
            )
        record_transition("mark_paid", result.modified)
        logger.info(
            "Bulk mark-paid: requested=%d modified=%d failed=%d",
            result.requested,
            result.modified,
            result.failed,
        )
        return result

    async def delete_session(self, session_id: UUID, actor: User) -> UUID:
        """Remove a session; only pending sessions may be deleted."""
        authorize(actor, OperationEnum.SESSION_DELETE)
        class_session = await self._get_for_update(session_id)
        if class_session.status != ClassSessionStatusEnum.PENDING:
            raise InvalidStateException("Only pending classes can be deleted")

        payload = {
            "name": class_session.name,
            "course_id": str(class_session.course_id),
            "teacher_id": str(class_session.teacher_id),
        }
        await self.repository.delete_session(class_session)
        await self._audit(actor, "classes.session.delete", class_session, payload)
        record_transition("delete")
        logger.info("Deleted pending class session %s", session_id)
        return session_id


async def get_class_session_service(
    session: AsyncSession = Depends(get_db_session),
) -> ClassSessionService:
    """Dependency provider for class session service."""
    return ClassSessionService(
        repository=ClassSessionsRepository(session),
        courses_repository=CoursesRepository(session),
        identity_repository=IdentityRepository(session),
        uploads_repository=UploadTasksRepository(session),
        audit_repository=AuditRepository(session),
    )
