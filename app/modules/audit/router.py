"""Audit API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.modules.audit.schemas import AuditLogRead
from app.modules.audit.service import AuditService, get_audit_service
from app.modules.identity.service import get_current_user
from app.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("/logs", response_model=Page[AuditLogRead])
async def list_logs(
    entity_type: str | None = Query(default=None),
    entity_id: str | None = Query(default=None),
    pagination=Depends(get_pagination_params),
    service: AuditService = Depends(get_audit_service),
    current_user=Depends(get_current_user),
) -> Page[AuditLogRead]:
    """List audit logs."""
    items, total = await service.list_logs(
        current_user,
        pagination.limit,
        pagination.offset,
        entity_type=entity_type,
        entity_id=entity_id,
    )
    serialized = [AuditLogRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)
