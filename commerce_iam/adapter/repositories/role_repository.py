from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from commerce_iam.app.repositories.role_repository import IRoleRepository
from commerce_iam.domain.entities import Role


class RoleRepository(IRoleRepository):
    """Role repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, role_id: UUID, include_deleted: bool = False) -> Optional[Role]:
        stmt = select(Role).where(Role.id == role_id)
        if not include_deleted:
            stmt = stmt.where(Role.deleted_at.is_(None))
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_name(self, name: str, include_deleted: bool = False) -> Optional[Role]:
        stmt = select(Role).where(Role.name == name)
        if not include_deleted:
            stmt = stmt.where(Role.deleted_at.is_(None))
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_ids(self, role_ids: List[UUID]) -> List[Role]:
        if not role_ids:
            return []
        result = await self.session.exec(select(Role).where(Role.id.in_(role_ids)))
        return list(result.all())

    async def list_live(
        self,
        offset: int = 0,
        limit: int = 10,
        search: Optional[str] = None,
        sort_by: str = "created_at",
        descending: bool = True,
    ) -> Tuple[List[Role], int]:
        conditions = [Role.deleted_at.is_(None)]
        if search:
            term = f"%{search.strip()}%"
            conditions.append(or_(Role.name.ilike(term), Role.description.ilike(term)))

        column = getattr(Role, sort_by)
        stmt = (
            select(Role)
            .where(*conditions)
            .order_by(column.desc() if descending else column.asc(), Role.id)
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.exec(stmt)
        total = await self.session.exec(select(func.count()).select_from(Role).where(*conditions))
        return list(result.all()), total.one()

    async def create(self, role: Role) -> Role:
        self.session.add(role)
        await self.session.flush()
        await self.session.refresh(role)
        return role

    async def update(self, role: Role) -> Role:
        self.session.add(role)
        await self.session.flush()
        await self.session.refresh(role)
        return role

    async def delete(self, role: Role) -> None:
        await self.session.delete(role)
        await self.session.flush()
