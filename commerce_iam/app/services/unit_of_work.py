from abc import ABC, abstractmethod

from commerce_iam.app.repositories.permission_repository import IPermissionRepository
from commerce_iam.app.repositories.role_repository import IRoleRepository
from commerce_iam.app.repositories.user_repository import IUserRepository


class UnitOfWork(ABC):
    """Abstract UnitOfWork - defines repository access and transaction management"""

    # Repository properties (initialized in __aenter__)
    users: IUserRepository
    roles: IRoleRepository
    permissions: IPermissionRepository

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
