"""Class sessions repository layer."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Select, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.enums import ClassSessionStatusEnum
from app.modules.classes.models import SESSION_NAME_CONSTRAINT, ClassSession
from app.shared.exceptions import DuplicateNameException


@dataclass(slots=True)
class ClassSessionFilter:
    """Optional predicates for session listings."""

    status: ClassSessionStatusEnum | None = None
    teacher_id: UUID | None = None
    course_id: UUID | None = None
    teacher_tpin: str | None = None
    paid: bool | None = None
    confirmed_from: datetime | None = None
    confirmed_to: datetime | None = None


class ClassSessionsRepository:
    """DB operations for class sessions."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_session(
        self,
        *,
        name: str,
        course_id: UUID,
        teacher_id: UUID,
        teacher_tpin: str,
        teacher_name: str,
        hours: Decimal,
        hourly_rate: Decimal,
    ) -> ClassSession:
        class_session = ClassSession(
            name=name,
            course_id=course_id,
            teacher_id=teacher_id,
            teacher_tpin=teacher_tpin,
            teacher_name=teacher_name,
            hours=hours,
            hourly_rate=hourly_rate,
            status=ClassSessionStatusEnum.PENDING,
            paid=False,
        )
        try:
            async with self.session.begin_nested():
                self.session.add(class_session)
                await self.session.flush()
        except IntegrityError as exc:
            if SESSION_NAME_CONSTRAINT in str(exc.orig):
                raise DuplicateNameException(
                    "A class with this name already exists for this course",
                ) from exc
            raise
        await self.session.refresh(class_session, attribute_names=["course"])
        return class_session

    async def exists_by_course_and_name(self, course_id: UUID, name: str) -> bool:
        stmt = select(ClassSession.id).where(
            ClassSession.course_id == course_id,
            ClassSession.name == name,
        )
        return (await self.session.scalar(stmt)) is not None

    async def get_session_by_id(self, session_id: UUID) -> ClassSession | None:
        stmt = (
            select(ClassSession)
            .options(selectinload(ClassSession.course))
            .where(ClassSession.id == session_id)
        )
        return await self.session.scalar(stmt)

    async def get_session_for_update(self, session_id: UUID) -> ClassSession | None:
        """Load and row-lock a session until the request transaction ends."""
        stmt = (
            select(ClassSession)
            .options(selectinload(ClassSession.course))
            .where(ClassSession.id == session_id)
            .with_for_update(of=ClassSession)
            .execution_options(populate_existing=True)
        )
        return await self.session.scalar(stmt)

    async def list_sessions(
        self,
        filters: ClassSessionFilter,
        limit: int,
        offset: int,
    ) -> tuple[list[ClassSession], int]:
        base_stmt = self._apply_filters(select(ClassSession), filters)

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        order_column = (
            ClassSession.confirmed_at
            if filters.status == ClassSessionStatusEnum.ADMIN_CONFIRMED
            else ClassSession.created_at
        )
        stmt = (
            base_stmt.options(selectinload(ClassSession.course))
            .order_by(order_column.desc(), ClassSession.name.asc())
            .limit(limit)
            .offset(offset)
        )
        items = (await self.session.scalars(stmt)).all()
        return items, total

    async def list_confirmed_between(
        self,
        confirmed_from: datetime | None,
        confirmed_to: datetime | None,
    ) -> list[ClassSession]:
        """All confirmed sessions with ``confirmed_from <= confirmed_at < confirmed_to``."""
        filters = ClassSessionFilter(
            status=ClassSessionStatusEnum.ADMIN_CONFIRMED,
            confirmed_from=confirmed_from,
            confirmed_to=confirmed_to,
        )
        stmt = (
            self._apply_filters(select(ClassSession), filters)
            .options(selectinload(ClassSession.course))
            .order_by(ClassSession.teacher_name.asc(), ClassSession.confirmed_at.asc())
        )
        return list((await self.session.scalars(stmt)).all())

    async def list_unpaid_confirmed_ids(self) -> list[UUID]:
        stmt = (
            select(ClassSession.id)
            .where(
                ClassSession.status == ClassSessionStatusEnum.ADMIN_CONFIRMED,
                ClassSession.paid.is_(False),
            )
            .order_by(ClassSession.confirmed_at.asc())
        )
        return list((await self.session.scalars(stmt)).all())

    async def mark_paid_if_unpaid(self, session_ids: Sequence[UUID], paid_at: datetime) -> list[UUID]:
        """Flip ``paid`` on confirmed, unpaid sessions among ``session_ids``.

        Runs inside a savepoint; the compare-and-set predicate makes a row
        already paid by a concurrent request drop out of the result.
        """
        stmt = (
            update(ClassSession)
            .where(
                ClassSession.id.in_(list(session_ids)),
                ClassSession.status == ClassSessionStatusEnum.ADMIN_CONFIRMED,
                ClassSession.paid.is_(False),
            )
            .values(paid=True, paid_at=paid_at)
            .returning(ClassSession.id)
            .execution_options(synchronize_session="fetch")
        )
        async with self.session.begin_nested():
            result = await self.session.execute(stmt)
            return list(result.scalars().all())

    async def save(self, class_session: ClassSession) -> ClassSession:
        await self.session.flush()
        return class_session

    async def delete_session(self, class_session: ClassSession) -> None:
        await self.session.delete(class_session)
        await self.session.flush()

    @staticmethod
    def _apply_filters(
        stmt: Select[tuple[ClassSession]],
        filters: ClassSessionFilter,
    ) -> Select[tuple[ClassSession]]:
        if filters.status is not None:
            stmt = stmt.where(ClassSession.status == filters.status)
        if filters.teacher_id is not None:
            stmt = stmt.where(ClassSession.teacher_id == filters.teacher_id)
        if filters.course_id is not None:
            stmt = stmt.where(ClassSession.course_id == filters.course_id)
        if filters.teacher_tpin:
            stmt = stmt.where(ClassSession.teacher_tpin == filters.teacher_tpin)
        if filters.paid is not None:
            stmt = stmt.where(ClassSession.paid.is_(filters.paid))
        if filters.confirmed_from is not None:
            stmt = stmt.where(ClassSession.confirmed_at >= filters.confirmed_from)
        if filters.confirmed_to is not None:
            stmt = stmt.where(ClassSession.confirmed_at < filters.confirmed_to)
        return stmt
