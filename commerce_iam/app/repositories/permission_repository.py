from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from commerce_iam.domain.entities import Permission


class IPermissionRepository(ABC):
    """Permission repository interface - application layer"""

    @abstractmethod
    async def list_by_actor(self, actor_id: UUID, name: Optional[str] = None) -> List[Permission]:
        """List live permission rows of an actor, optionally for one capability"""
        pass

    @abstractmethod
    async def save_all(self, permissions: List[Permission]) -> List[Permission]:
        """Insert or update the given rows in one flush"""
        pass

    @abstractmethod
    async def delete_by_actor(self, actor_id: UUID) -> int:
        """Hard delete every permission row of an actor, returns rows removed"""
        pass
