from abc import ABC, abstractmethod
from typing import List, Optional, Tuple
from uuid import UUID

from commerce_iam.domain.entities import Role, User


class IUserRepository(ABC):
    """User repository interface - application layer"""

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        """Get live user by email address"""
        pass

    @abstractmethod
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get live user by ID"""
        pass

    @abstractmethod
    async def get_with_role_by_id(self, user_id: UUID) -> Optional[Tuple[User, Optional[Role]]]:
        """Get live user by ID together with its role"""
        pass

    @abstractmethod
    async def get_with_role_by_email(self, email: str) -> Optional[Tuple[User, Optional[Role]]]:
        """Get live user by email together with its role"""
        pass

    @abstractmethod
    async def get_by_reset_token_hash(self, token_hash: str) -> Optional[User]:
        """Get user holding the given password reset token hash"""
        pass

    @abstractmethod
    async def consume_reset_token(
        self, user: User, token_hash: str, password_hash: Optional[str] = None
    ) -> bool:
        """Atomically clear a reset token, optionally setting a new password hash"""
        pass

    @abstractmethod
    async def create(self, user: User) -> User:
        """Create a new user"""
        pass

    @abstractmethod
    async def update(self, user: User) -> User:
        """Update existing user"""
        pass

    @abstractmethod
    async def delete(self, user: User) -> None:
        """Hard delete a user"""
        pass

    @abstractmethod
    async def count(self) -> int:
        """Count all users, soft-deleted included"""
        pass

    @abstractmethod
    async def count_by_role(self, role_id: UUID) -> int:
        """Count live users assigned to a role"""
        pass

    @abstractmethod
    async def list_by_role(self, role_id: UUID) -> List[User]:
        """Live users assigned to a role"""
        pass
