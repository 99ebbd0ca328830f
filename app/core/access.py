"""Single authorization policy for every guarded operation.

Each operation maps to the static set of roles allowed to invoke it. The
only resource-level rule is teacher ownership of a class session.
"""

from __future__ import annotations

from typing import Any, Protocol
from uuid import UUID

from app.core.enums import OperationEnum, RoleEnum
from app.shared.exceptions import ForbiddenException

ADMIN_ONLY = frozenset({RoleEnum.ADMIN})
TEACHER_OR_ADMIN = frozenset({RoleEnum.TEACHER, RoleEnum.ADMIN})
EDITOR_OR_ADMIN = frozenset({RoleEnum.EDITOR, RoleEnum.ADMIN})

POLICY: dict[OperationEnum, frozenset[RoleEnum]] = {
    OperationEnum.PERSON_CREATE: ADMIN_ONLY,
    OperationEnum.PERSON_LIST: ADMIN_ONLY,
    OperationEnum.PERSON_PASSWORD_RESET: ADMIN_ONLY,
    OperationEnum.COURSE_CREATE: ADMIN_ONLY,
    OperationEnum.COURSE_READ: ADMIN_ONLY,
    OperationEnum.SESSION_ASSIGN: ADMIN_ONLY,
    OperationEnum.SESSION_READ: TEACHER_OR_ADMIN,
    OperationEnum.SESSION_LIST_PENDING: TEACHER_OR_ADMIN,
    OperationEnum.SESSION_COMPLETE: TEACHER_OR_ADMIN,
    OperationEnum.SESSION_LIST_CONFIRMATION: ADMIN_ONLY,
    OperationEnum.SESSION_CONFIRM: ADMIN_ONLY,
    OperationEnum.SESSION_LIST_COMPLETED: ADMIN_ONLY,
    OperationEnum.SESSION_LIST_UNPAID: ADMIN_ONLY,
    OperationEnum.SESSION_MARK_PAID: ADMIN_ONLY,
    OperationEnum.SESSION_BULK_MARK_PAID: ADMIN_ONLY,
    OperationEnum.SESSION_DELETE: ADMIN_ONLY,
    OperationEnum.UPLOAD_RECONCILE: ADMIN_ONLY,
    OperationEnum.UPLOAD_LIST: EDITOR_OR_ADMIN,
    OperationEnum.UPLOAD_MARK: EDITOR_OR_ADMIN,
    OperationEnum.UPLOAD_DELETE: ADMIN_ONLY,
    OperationEnum.REPORT_VIEW: ADMIN_ONLY,
    OperationEnum.BILL_ASSEMBLE: ADMIN_ONLY,
    OperationEnum.AUDIT_VIEW: ADMIN_ONLY,
}

# Operations where a teacher is further restricted to sessions they own.
OWNERSHIP_SCOPED = frozenset(
    {
        OperationEnum.SESSION_READ,
        OperationEnum.SESSION_COMPLETE,
    },
)


class Actor(Protocol):
    id: UUID
    role: RoleEnum


def is_allowed(actor: Actor, operation: OperationEnum, resource: Any | None = None) -> bool:
    """Return True if ``actor`` may perform ``operation`` on ``resource``."""
    allowed_roles = POLICY.get(operation, frozenset())
    if actor.role not in allowed_roles:
        return False
    if (
        resource is not None
        and operation in OWNERSHIP_SCOPED
        and actor.role == RoleEnum.TEACHER
    ):
        return getattr(resource, "teacher_id", None) == actor.id
    return True


def authorize(actor: Actor, operation: OperationEnum, resource: Any | None = None) -> None:
    """Raise ``ForbiddenException`` unless ``actor`` may perform ``operation``."""
    if not is_allowed(actor, operation, resource):
        raise ForbiddenException(f"Operation {operation} is not permitted for this actor")
