from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, update
from sqlalchemy.orm.attributes import set_committed_value
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from commerce_iam.app.repositories.user_repository import IUserRepository
from commerce_iam.domain.entities import Role, User


class UserRepository(IUserRepository):
    """User repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get live user by email address"""
        stmt = select(User).where(User.email == email, User.deleted_at.is_(None))
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get live user by ID"""
        stmt = select(User).where(User.id == user_id, User.deleted_at.is_(None))
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_with_role_by_id(self, user_id: UUID) -> Optional[Tuple[User, Optional[Role]]]:
        stmt = (
            select(User, Role)
            .join(Role, User.role_id == Role.id, isouter=True)
            .where(User.id == user_id, User.deleted_at.is_(None))
        )
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_with_role_by_email(self, email: str) -> Optional[Tuple[User, Optional[Role]]]:
        stmt = (
            select(User, Role)
            .join(Role, User.role_id == Role.id, isouter=True)
            .where(User.email == email, User.deleted_at.is_(None))
        )
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_reset_token_hash(self, token_hash: str) -> Optional[User]:
        stmt = select(User).where(
            User.reset_password_token == token_hash, User.deleted_at.is_(None)
        )
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def consume_reset_token(
        self, user: User, token_hash: str, password_hash: Optional[str] = None
    ) -> bool:
        """Clear the reset token only if the row still holds it; False when it was already consumed"""
        values = {"reset_password_token": None, "reset_password_token_expires_at": None}
        if password_hash is not None:
            values["password_hash"] = password_hash
        stmt = (
            update(User)
            .where(User.id == user.id, User.reset_password_token == token_hash)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            return False
        for field, value in values.items():
            set_committed_value(user, field, value)
        return True

    async def create(self, user: User) -> User:
        """Create a new user"""
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def update(self, user: User) -> User:
        """Update existing user"""
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def delete(self, user: User) -> None:
        await self.session.delete(user)
        await self.session.flush()

    async def count(self) -> int:
        result = await self.session.exec(select(func.count()).select_from(User))
        return result.one()

    async def count_by_role(self, role_id: UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(User)
            .where(User.role_id == role_id, User.deleted_at.is_(None))
        )
        result = await self.session.exec(stmt)
        return result.one()

    async def list_by_role(self, role_id: UUID) -> List[User]:
        stmt = select(User).where(User.role_id == role_id, User.deleted_at.is_(None))
        result = await self.session.exec(stmt)
        return list(result.all())
