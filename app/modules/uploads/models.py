"""Upload task ORM models."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, BaseModelMixin

if TYPE_CHECKING:
    from app.modules.classes.models import ClassSession
    from app.modules.identity.models import User


class UploadTask(BaseModelMixin, Base):
    """Video delivery task derived from one confirmed class session."""

    __tablename__ = "upload_tasks"

    class_session_id: Mapped[UUID] = mapped_column(
        ForeignKey("class_sessions.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    editor_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    uploaded: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    video_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    uploaded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)

    class_session: Mapped[ClassSession] = relationship(back_populates="upload_task")
    editor: Mapped[User | None] = relationship()
