"""Audit business logic layer."""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.access import authorize
from app.core.database import get_db_session
from app.core.enums import OperationEnum
from app.modules.audit.models import AuditLog
from app.modules.audit.repository import AuditRepository
from app.modules.identity.models import User


class AuditService:
    """Read access to the audit trail."""

    def __init__(self, repository: AuditRepository) -> None:
        self.repository = repository

    async def list_logs(
        self,
        actor: User,
        limit: int,
        offset: int,
        entity_type: str | None = None,
        entity_id: str | None = None,
    ) -> tuple[list[AuditLog], int]:
        """List audit logs, newest first (admin only)."""
        authorize(actor, OperationEnum.AUDIT_VIEW)
        return await self.repository.list_audit_logs(
            limit=limit,
            offset=offset,
            entity_type=entity_type,
            entity_id=entity_id,
        )


async def get_audit_service(session: AsyncSession = Depends(get_db_session)) -> AuditService:
    """Dependency provider for audit service."""
    return AuditService(AuditRepository(session))
