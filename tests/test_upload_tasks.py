from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

import pytest

import app.modules.uploads.service as uploads_service_module
from app.core.enums import ClassSessionStatusEnum, RoleEnum
from app.modules.uploads.router import ensure_task as ensure_task_endpoint
from app.modules.uploads.schemas import UploadTaskRead
from app.modules.uploads.service import UploadTasksService
from app.shared.exceptions import ForbiddenException, InvalidStateException, NotFoundException
from tests.fakes import (
    FakeAuditRepository,
    FakeClassSessionsRepository,
    FakeCourse,
    FakeUploadTask,
    FakeUploadTasksRepository,
    FakeUser,
    make_actor,
    make_confirmed_session,
)

NOW = datetime(2026, 3, 12, 11, 0, tzinfo=UTC)


class UploadWorld:
    def __init__(self) -> None:
        self.teacher = FakeUser(id=uuid4(), tpin="200001", name="Rahim", role=RoleEnum.TEACHER)
        self.editor = FakeUser(id=uuid4(), tpin="300001", name="Nadia", role=RoleEnum.EDITOR)
        self.course = FakeCourse(id=uuid4(), name="HSC Physics")
        self.admin = make_actor(RoleEnum.ADMIN)
        self.editor_actor = make_actor(RoleEnum.EDITOR)
        self.editor_actor.id = self.editor.id

        self.sessions = FakeClassSessionsRepository({self.course.id: self.course})
        self.uploads = FakeUploadTasksRepository(self.sessions, {self.editor.id: self.editor})
        self.audit = FakeAuditRepository()
        self.service = UploadTasksService(
            repository=self.uploads,
            sessions_repository=self.sessions,
            audit_repository=self.audit,
        )

    def confirmed(self, name: str):
        return self.sessions.add(
            make_confirmed_session(
                self.teacher,
                self.course,
                name=name,
                confirmed_at=datetime(2026, 3, 11, 10, 0, tzinfo=UTC),
            ),
        )

    def task_for(self, class_session) -> FakeUploadTask:
        return self.uploads.add(
            FakeUploadTask(id=uuid4(), class_session_id=class_session.id, class_session=class_session),
        )


@pytest.fixture
def world(monkeypatch: pytest.MonkeyPatch) -> UploadWorld:
    monkeypatch.setattr(uploads_service_module, "utc_now", lambda: NOW)
    return UploadWorld()


@pytest.mark.asyncio
async def test_ensure_task_is_idempotent(world: UploadWorld) -> None:
    class_session = world.confirmed("Class 01")

    first, first_created = await world.service.ensure_task(class_session.id, world.admin)
    second, second_created = await world.service.ensure_task(class_session.id, world.admin)

    assert first_created is True
    assert second_created is False
    assert first.id == second.id
    assert len(world.uploads.tasks) == 1


@pytest.mark.asyncio
async def test_ensure_task_requires_confirmed_session(world: UploadWorld) -> None:
    class_session = world.confirmed("Class 01")
    class_session.status = ClassSessionStatusEnum.TEACHER_COMPLETED

    with pytest.raises(InvalidStateException):
        await world.service.ensure_task(class_session.id, world.admin)
    with pytest.raises(NotFoundException):
        await world.service.ensure_task(uuid4(), world.admin)


@pytest.mark.asyncio
async def test_reconcile_all_creates_only_missing_tasks(world: UploadWorld) -> None:
    covered = world.confirmed("Class 01")
    world.task_for(covered)
    world.confirmed("Class 02")
    world.confirmed("Class 03")
    pending = world.confirmed("Class 04")
    pending.status = ClassSessionStatusEnum.PENDING

    created = await world.service.reconcile_all(world.admin)

    assert created == 2
    assert len(world.uploads.tasks) == 3
    assert pending.id not in await world.uploads.list_task_session_ids()
    assert await world.service.reconcile_all(world.admin) == 0
    assert world.audit.actions() == ["uploads.task.reconcile"]


@pytest.mark.asyncio
async def test_reconcile_all_is_admin_only(world: UploadWorld) -> None:
    with pytest.raises(ForbiddenException):
        await world.service.reconcile_all(world.editor_actor)


@pytest.mark.asyncio
async def test_editor_marking_uploaded_is_stamped_as_editor(world: UploadWorld) -> None:
    task = world.task_for(world.confirmed("Class 01"))

    updated = await world.service.mark_uploaded(task.id, "  https://videos.example/1  ", world.editor_actor)

    assert updated.uploaded is True
    assert updated.uploaded_at == NOW
    assert updated.video_url == "https://videos.example/1"
    assert updated.editor_id == world.editor.id

    view = UploadTaskRead.model_validate(updated)
    assert view.editor is not None
    assert view.editor.name == "Nadia"
    assert view.class_session is not None
    assert view.class_session.course is not None
    assert view.class_session.course.name == "HSC Physics"
    assert not hasattr(view.class_session, "hourly_rate")


@pytest.mark.asyncio
async def test_admin_marking_uploaded_leaves_editor_unset(world: UploadWorld) -> None:
    task = world.task_for(world.confirmed("Class 01"))

    updated = await world.service.mark_uploaded(task.id, None, world.admin)

    assert updated.uploaded is True
    assert updated.editor_id is None
    assert updated.video_url is None


@pytest.mark.asyncio
async def test_mark_not_uploaded_clears_delivery_fields(world: UploadWorld) -> None:
    task = world.task_for(world.confirmed("Class 01"))
    await world.service.mark_uploaded(task.id, "https://videos.example/1", world.editor_actor)

    reverted = await world.service.mark_not_uploaded(task.id, world.editor_actor)

    assert reverted.uploaded is False
    assert reverted.uploaded_at is None
    assert reverted.video_url is None


@pytest.mark.asyncio
async def test_mark_uploaded_rejects_teachers_and_missing_tasks(world: UploadWorld) -> None:
    task = world.task_for(world.confirmed("Class 01"))

    with pytest.raises(ForbiddenException):
        await world.service.mark_uploaded(task.id, None, make_actor(RoleEnum.TEACHER))
    with pytest.raises(NotFoundException):
        await world.service.mark_uploaded(uuid4(), None, world.editor_actor)


@pytest.mark.asyncio
async def test_delete_task_keeps_class_session(world: UploadWorld) -> None:
    class_session = world.confirmed("Class 01")
    task = world.task_for(class_session)

    with pytest.raises(ForbiddenException):
        await world.service.delete_task(task.id, world.editor_actor)

    assert await world.service.delete_task(task.id, world.admin) == task.id
    assert world.uploads.tasks == {}
    assert class_session.id in world.sessions.sessions


@pytest.mark.asyncio
async def test_pending_and_uploaded_listings(world: UploadWorld) -> None:
    first = world.task_for(world.confirmed("Class 01"))
    world.task_for(world.confirmed("Class 02"))
    await world.service.mark_uploaded(first.id, "https://videos.example/1", world.editor_actor)

    pending, pending_total = await world.service.list_pending(world.editor_actor, limit=20, offset=0)
    uploaded, uploaded_total = await world.service.list_uploaded(world.admin, limit=20, offset=0)

    assert pending_total == 1
    assert uploaded_total == 1
    assert uploaded[0].id == first.id
    assert pending[0].id != first.id

    with pytest.raises(ForbiddenException):
        await world.service.list_pending(make_actor(RoleEnum.TEACHER), limit=20, offset=0)


@pytest.mark.asyncio
async def test_ensure_endpoint_reports_whether_task_was_created(world: UploadWorld) -> None:
    class_session = world.confirmed("Class 01")

    first = await ensure_task_endpoint(class_session.id, service=world.service, current_user=world.admin)
    repeat = await ensure_task_endpoint(class_session.id, service=world.service, current_user=world.admin)

    assert first.created is True
    assert repeat.created is False
    assert first.task.id == repeat.task.id
    assert first.task.class_session_id == class_session.id
