"""Identity repository layer."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import RoleEnum
from app.modules.identity.models import RefreshToken, User


class IdentityRepository:
    """DB operations for the person directory and tokens."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_user_by_tpin(self, tpin: str) -> User | None:
        stmt = select(User).where(User.tpin == tpin)
        return await self.session.scalar(stmt)

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        return await self.session.get(User, user_id)

    async def create_user(
        self,
        tpin: str,
        name: str,
        role: RoleEnum,
        password_hash: str,
    ) -> User:
        user = User(tpin=tpin, name=name, role=role, password_hash=password_hash)
        self.session.add(user)
        await self.session.flush()
        return user

    async def list_users(
        self,
        role: RoleEnum | None,
        limit: int,
        offset: int,
    ) -> tuple[list[User], int]:
        base_stmt: Select[tuple[User]] = select(User)
        if role is not None:
            base_stmt = base_stmt.where(User.role == role)

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(User.name.asc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return items, total

    async def update_password(self, user: User, password_hash: str) -> User:
        user.password_hash = password_hash
        await self.session.flush()
        return user

    async def create_refresh_token(
        self,
        user_id: UUID,
        token_id: str,
        expires_at: datetime,
    ) -> RefreshToken:
        refresh_token = RefreshToken(user_id=user_id, token_id=token_id, expires_at=expires_at)
        self.session.add(refresh_token)
        await self.session.flush()
        return refresh_token

    async def get_refresh_token_by_id(self, token_id: str) -> RefreshToken | None:
        stmt = select(RefreshToken).where(RefreshToken.token_id == token_id)
        return await self.session.scalar(stmt)

    async def revoke_refresh_token(self, token_id: str, revoked_at: datetime) -> None:
        token = await self.get_refresh_token_by_id(token_id)
        if token is not None:
            token.revoked_at = revoked_at
            await self.session.flush()
