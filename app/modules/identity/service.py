"""Identity business logic layer."""

from __future__ import annotations

from datetime import timedelta
from uuid import UUID, uuid4

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.access import authorize
from app.core.config import get_settings
from app.core.database import get_db_session
from app.core.enums import OperationEnum, RoleEnum
from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    oauth2_scheme,
    verify_password,
)
from app.modules.identity.models import User
from app.modules.identity.repository import IdentityRepository
from app.modules.identity.schemas import LoginRequest, PasswordChange, TokenPair, UserCreate
from app.shared.exceptions import AuthenticationException, ConflictException, NotFoundException
from app.shared.utils import utc_now

settings = get_settings()


class IdentityService:
    """Person directory and token issuance."""

    def __init__(self, repository: IdentityRepository) -> None:
        self.repository = repository

    async def create_person(self, payload: UserCreate, actor: User) -> User:
        """Add a person to the directory (admin only)."""
        authorize(actor, OperationEnum.PERSON_CREATE)

        tpin = payload.tpin.strip()
        existing_user = await self.repository.get_user_by_tpin(tpin)
        if existing_user is not None:
            raise ConflictException("User with this TPIN already exists")

        return await self.repository.create_user(
            tpin=tpin,
            name=payload.name.strip(),
            role=payload.role,
            password_hash=hash_password(payload.password),
        )

    async def list_persons(
        self,
        actor: User,
        role: RoleEnum | None,
        limit: int,
        offset: int,
    ) -> tuple[list[User], int]:
        authorize(actor, OperationEnum.PERSON_LIST)
        return await self.repository.list_users(role=role, limit=limit, offset=offset)

    async def change_password(self, user_id: UUID, payload: PasswordChange, actor: User) -> User:
        """Reset a person's password (admin only)."""
        authorize(actor, OperationEnum.PERSON_PASSWORD_RESET)
        user = await self.repository.get_user_by_id(user_id)
        if user is None:
            raise NotFoundException("User not found")
        return await self.repository.update_password(user, hash_password(payload.password))

    async def login(self, payload: LoginRequest) -> TokenPair:
        """Authenticate by TPIN and issue JWT tokens."""
        user = await self.repository.get_user_by_tpin(payload.tpin.strip())
        if user is None or not verify_password(payload.password, user.password_hash):
            raise AuthenticationException("Invalid credentials")

        if not user.is_active:
            raise AuthenticationException("User is inactive")

        return await self._issue_tokens(user)

    async def refresh_tokens(self, refresh_token_value: str) -> TokenPair:
        """Rotate refresh token and issue new token pair."""
        payload = decode_token(refresh_token_value)
        if payload.get("type") != "refresh":
            raise AuthenticationException("Invalid token type")

        token_id = payload.get("jti")
        subject = payload.get("sub")
        if not token_id or not subject:
            raise AuthenticationException("Invalid refresh token")

        db_token = await self.repository.get_refresh_token_by_id(token_id)
        if db_token is None or db_token.revoked_at is not None or db_token.expires_at <= utc_now():
            raise AuthenticationException("Refresh token is not valid")

        await self.repository.revoke_refresh_token(token_id, utc_now())

        user = await self.repository.get_user_by_id(UUID(subject))
        if user is None or not user.is_active:
            raise AuthenticationException("User is not valid")

        return await self._issue_tokens(user)

    async def _issue_tokens(self, user: User) -> TokenPair:
        token_id = str(uuid4())
        access_token = create_access_token(subject=str(user.id), role=str(user.role))
        refresh_token = create_refresh_token(subject=str(user.id), token_id=token_id, role=str(user.role))
        expires_at = utc_now() + timedelta(days=settings.refresh_token_expire_days)
        await self.repository.create_refresh_token(user.id, token_id, expires_at)
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    async def get_user_from_access_token(self, token: str) -> User:
        """Resolve the acting person from an access token."""
        payload = decode_token(token)
        if payload.get("type") != "access":
            raise AuthenticationException("Invalid access token")

        subject = payload.get("sub")
        if not subject:
            raise AuthenticationException("Token subject is missing")

        user = await self.repository.get_user_by_id(UUID(subject))
        if user is None:
            raise AuthenticationException("User not found")
        if not user.is_active:
            raise AuthenticationException("User is inactive")

        return user


async def get_identity_service(session: AsyncSession = Depends(get_db_session)) -> IdentityService:
    """Dependency to provide identity service."""
    return IdentityService(IdentityRepository(session))


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    service: IdentityService = Depends(get_identity_service),
) -> User:
    """Resolve currently authenticated user from bearer token."""
    return await service.get_user_from_access_token(token)
