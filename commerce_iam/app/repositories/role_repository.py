from abc import ABC, abstractmethod
from typing import List, Optional, Tuple
from uuid import UUID

from commerce_iam.domain.entities import Role


class IRoleRepository(ABC):
    """Role repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, role_id: UUID, include_deleted: bool = False) -> Optional[Role]:
        """Get role by ID"""
        pass

    @abstractmethod
    async def get_by_name(self, name: str, include_deleted: bool = False) -> Optional[Role]:
        """Get role by its unique name"""
        pass

    @abstractmethod
    async def get_by_ids(self, role_ids: List[UUID]) -> List[Role]:
        """Get all roles (trashed included) matching the given IDs"""
        pass

    @abstractmethod
    async def list_live(
        self,
        offset: int = 0,
        limit: int = 10,
        search: Optional[str] = None,
        sort_by: str = "created_at",
        descending: bool = True,
    ) -> Tuple[List[Role], int]:
        """Page of live roles matching ``search`` on name or description, with the total count"""
        pass

    @abstractmethod
    async def create(self, role: Role) -> Role:
        """Create a new role"""
        pass

    @abstractmethod
    async def update(self, role: Role) -> Role:
        """Update existing role"""
        pass

    @abstractmethod
    async def delete(self, role: Role) -> None:
        """Hard delete a role"""
        pass
