"""Identity API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.core.enums import RoleEnum
from app.modules.identity.schemas import (
    LoginRequest,
    PasswordChange,
    RefreshRequest,
    TokenPair,
    UserCreate,
    UserRead,
)
from app.modules.identity.service import IdentityService, get_current_user, get_identity_service
from app.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/identity", tags=["identity"])


@router.post("/auth/login", response_model=TokenPair)
async def login(
    payload: LoginRequest,
    service: IdentityService = Depends(get_identity_service),
) -> TokenPair:
    """Sign in by TPIN/password and return JWT token pair."""
    return await service.login(payload)


@router.post("/auth/refresh", response_model=TokenPair)
async def refresh_tokens(
    payload: RefreshRequest,
    service: IdentityService = Depends(get_identity_service),
) -> TokenPair:
    """Rotate refresh token and issue new token pair."""
    return await service.refresh_tokens(payload.refresh_token)


@router.get("/users/me", response_model=UserRead)
async def get_me(current_user=Depends(get_current_user)) -> UserRead:
    """Return profile of authenticated user."""
    return UserRead.model_validate(current_user)


@router.post("/users", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_person(
    payload: UserCreate,
    service: IdentityService = Depends(get_identity_service),
    current_user=Depends(get_current_user),
) -> UserRead:
    """Add admin, teacher or editor (admin only)."""
    user = await service.create_person(payload, current_user)
    return UserRead.model_validate(user)


@router.get("/users", response_model=Page[UserRead])
async def list_persons(
    role: RoleEnum | None = Query(default=None),
    pagination=Depends(get_pagination_params),
    service: IdentityService = Depends(get_identity_service),
    current_user=Depends(get_current_user),
) -> Page[UserRead]:
    """List people, optionally by role (admin only)."""
    items, total = await service.list_persons(current_user, role, pagination.limit, pagination.offset)
    serialized = [UserRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.patch("/users/{user_id}/password", response_model=UserRead)
async def change_password(
    user_id: UUID,
    payload: PasswordChange,
    service: IdentityService = Depends(get_identity_service),
    current_user=Depends(get_current_user),
) -> UserRead:
    """Reset password of a person (admin only)."""
    user = await service.change_password(user_id, payload, current_user)
    return UserRead.model_validate(user)
