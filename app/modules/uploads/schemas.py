"""Upload task schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import ClassSessionStatusEnum
from app.modules.courses.schemas import CourseBrief
from app.modules.identity.schemas import PersonBrief


class UploadSessionView(BaseModel):
    """Parent session as shown to editors; carries no rate information."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    course: CourseBrief | None = None
    teacher_id: UUID
    teacher_tpin: str
    teacher_name: str
    hours: Decimal
    status: ClassSessionStatusEnum
    confirmed_at: datetime | None


class UploadTaskRead(BaseModel):
    """Upload task response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    class_session_id: UUID
    class_session: UploadSessionView | None = None
    editor_id: UUID | None
    editor: PersonBrief | None = None
    uploaded: bool
    video_url: str | None
    uploaded_at: datetime | None
    created_at: datetime
    updated_at: datetime


class MarkUploadedRequest(BaseModel):
    video_url: str | None = Field(default=None, max_length=1024)


class ReconcileResult(BaseModel):
    created: int


class UploadDeleteResult(BaseModel):
    ok: bool = True
    id: UUID


class EnsureTaskResult(BaseModel):
    """Upload task of one class and whether this call created it."""

    created: bool
    task: UploadTaskRead
