"""Core enums used across modules."""

from enum import StrEnum


class RoleEnum(StrEnum):
    """System roles."""

    ADMIN = "admin"
    TEACHER = "teacher"
    EDITOR = "editor"


class ClassSessionStatusEnum(StrEnum):
    """Class session lifecycle status."""

    PENDING = "pending"
    TEACHER_COMPLETED = "teacherCompleted"
    ADMIN_CONFIRMED = "adminConfirmed"


class CourseStatusEnum(StrEnum):
    """Course visibility status."""

    ACTIVE = "active"
    ARCHIVED = "archived"


class OperationEnum(StrEnum):
    """Operations guarded by the access policy."""

    PERSON_CREATE = "person.create"
    PERSON_LIST = "person.list"
    PERSON_PASSWORD_RESET = "person.password_reset"
    COURSE_CREATE = "course.create"
    COURSE_READ = "course.read"

    SESSION_ASSIGN = "session.assign"
    SESSION_READ = "session.read"
    SESSION_LIST_PENDING = "session.list_pending"
    SESSION_COMPLETE = "session.complete"
    SESSION_LIST_CONFIRMATION = "session.list_confirmation"
    SESSION_CONFIRM = "session.confirm"
    SESSION_LIST_COMPLETED = "session.list_completed"
    SESSION_LIST_UNPAID = "session.list_unpaid"
    SESSION_MARK_PAID = "session.mark_paid"
    SESSION_BULK_MARK_PAID = "session.bulk_mark_paid"
    SESSION_DELETE = "session.delete"

    UPLOAD_RECONCILE = "upload.reconcile"
    UPLOAD_LIST = "upload.list"
    UPLOAD_MARK = "upload.mark"
    UPLOAD_DELETE = "upload.delete"

    REPORT_VIEW = "report.view"
    BILL_ASSEMBLE = "bill.assemble"
    AUDIT_VIEW = "audit.view"
