"""Initial schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 10:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


role_enum = sa.Enum("admin", "teacher", "editor", name="role_enum", native_enum=False)
course_status_enum = sa.Enum("active", "archived", name="course_status_enum", native_enum=False)
class_session_status_enum = sa.Enum(
    "pending",
    "teacherCompleted",
    "adminConfirmed",
    name="class_session_status_enum",
    native_enum=False,
)


def _id_col() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _created_col() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def _updated_col() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    op.create_table(
        "users",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("tpin", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("role", role_enum, nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
    )
    op.create_index("ix_users_tpin", "users", ["tpin"], unique=True)
    op.create_index("ix_users_role", "users", ["role"], unique=False)

    op.create_table(
        "refresh_tokens",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("token_id", sa.String(length=64), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_refresh_tokens_user_id_users", ondelete="CASCADE"),
    )
    op.create_index("ix_refresh_tokens_token_id", "refresh_tokens", ["token_id"], unique=True)

    op.create_table(
        "courses",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("number_of_classes", sa.Integer(), nullable=False),
        sa.Column("status", course_status_enum, nullable=False),
    )
    op.create_index("ix_courses_name", "courses", ["name"], unique=False)

    op.create_table(
        "class_sessions",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("course_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("teacher_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("teacher_tpin", sa.String(length=32), nullable=False),
        sa.Column("teacher_name", sa.String(length=128), nullable=False),
        sa.Column("hours", sa.Numeric(6, 2), nullable=False),
        sa.Column("hourly_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", class_session_status_enum, nullable=False),
        sa.Column("paid", sa.Boolean(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"], name="fk_class_sessions_course_id_courses", ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["teacher_id"], ["users.id"], name="fk_class_sessions_teacher_id_users", ondelete="RESTRICT"),
        sa.UniqueConstraint("course_id", "name", name="uq_class_sessions_course_id_name"),
        sa.CheckConstraint("hours > 0", name="ck_class_sessions_hours_positive"),
        sa.CheckConstraint("hourly_rate >= 0", name="ck_class_sessions_hourly_rate_non_negative"),
    )
    op.create_index("ix_class_sessions_course_id", "class_sessions", ["course_id"], unique=False)
    op.create_index("ix_class_sessions_teacher_id", "class_sessions", ["teacher_id"], unique=False)
    op.create_index("ix_class_sessions_teacher_tpin", "class_sessions", ["teacher_tpin"], unique=False)
    op.create_index("ix_class_sessions_status", "class_sessions", ["status"], unique=False)
    op.create_index(
        "ix_class_sessions_status_confirmed_at",
        "class_sessions",
        ["status", "confirmed_at"],
        unique=False,
    )

    op.create_table(
        "upload_tasks",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("class_session_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("editor_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("uploaded", sa.Boolean(), nullable=False),
        sa.Column("video_url", sa.String(length=1024), nullable=True),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["class_session_id"],
            ["class_sessions.id"],
            name="fk_upload_tasks_class_session_id_class_sessions",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(["editor_id"], ["users.id"], name="fk_upload_tasks_editor_id_users", ondelete="SET NULL"),
        sa.UniqueConstraint("class_session_id", name="uq_upload_tasks_class_session_id"),
    )
    op.create_index("ix_upload_tasks_editor_id", "upload_tasks", ["editor_id"], unique=False)
    op.create_index("ix_upload_tasks_uploaded", "upload_tasks", ["uploaded"], unique=False)
    op.create_index("ix_upload_tasks_uploaded_at", "upload_tasks", ["uploaded_at"], unique=False)

    op.create_table(
        "audit_logs",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("actor_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("action", sa.String(length=128), nullable=False),
        sa.Column("entity_type", sa.String(length=64), nullable=False),
        sa.Column("entity_id", sa.String(length=128), nullable=True),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.ForeignKeyConstraint(["actor_id"], ["users.id"], name="fk_audit_logs_actor_id_users", ondelete="SET NULL"),
    )
    op.create_index("ix_audit_logs_actor_id", "audit_logs", ["actor_id"], unique=False)
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"], unique=False)
    op.create_index("ix_audit_logs_entity_type", "audit_logs", ["entity_type"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_audit_logs_entity_type", table_name="audit_logs")
    op.drop_index("ix_audit_logs_action", table_name="audit_logs")
    op.drop_index("ix_audit_logs_actor_id", table_name="audit_logs")
    op.drop_table("audit_logs")

    op.drop_index("ix_upload_tasks_uploaded_at", table_name="upload_tasks")
    op.drop_index("ix_upload_tasks_uploaded", table_name="upload_tasks")
    op.drop_index("ix_upload_tasks_editor_id", table_name="upload_tasks")
    op.drop_table("upload_tasks")

    op.drop_index("ix_class_sessions_status_confirmed_at", table_name="class_sessions")
    op.drop_index("ix_class_sessions_status", table_name="class_sessions")
    op.drop_index("ix_class_sessions_teacher_tpin", table_name="class_sessions")
    op.drop_index("ix_class_sessions_teacher_id", table_name="class_sessions")
    op.drop_index("ix_class_sessions_course_id", table_name="class_sessions")
    op.drop_table("class_sessions")

    op.drop_index("ix_courses_name", table_name="courses")
    op.drop_table("courses")

    op.drop_index("ix_refresh_tokens_token_id", table_name="refresh_tokens")
    op.drop_table("refresh_tokens")

    op.drop_index("ix_users_role", table_name="users")
    op.drop_index("ix_users_tpin", table_name="users")
    op.drop_table("users")
