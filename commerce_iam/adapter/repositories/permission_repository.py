from typing import List, Optional
from uuid import UUID

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from commerce_iam.app.repositories.permission_repository import IPermissionRepository
from commerce_iam.domain.entities import Permission


class PermissionRepository(IPermissionRepository):
    """Permission repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_by_actor(self, actor_id: UUID, name: Optional[str] = None) -> List[Permission]:
        stmt = select(Permission).where(
            Permission.actor_id == actor_id, Permission.deleted_at.is_(None)
        )
        if name is not None:
            stmt = stmt.where(Permission.name == name)
        result = await self.session.exec(stmt.order_by(Permission.name))
        return list(result.all())

    async def save_all(self, permissions: List[Permission]) -> List[Permission]:
        self.session.add_all(permissions)
        await self.session.flush()
        return permissions

    async def delete_by_actor(self, actor_id: UUID) -> int:
        result = await self.session.exec(select(Permission).where(Permission.actor_id == actor_id))
        rows = list(result.all())
        for row in rows:
            await self.session.delete(row)
        await self.session.flush()
        return len(rows)
