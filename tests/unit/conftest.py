import pytest
from unittest.mock import AsyncMock, MagicMock

from commerce_iam.adapter.cache.memory_cache import InMemoryCache
from commerce_iam.app.services.session_cache import SessionCacheManager
from commerce_iam.domain.capabilities import ADMIN, CUSTOMER, SUPER_ADMIN
from tests.fixtures.factories import FakeClock, make_role


async def _consume_reset_token(user, token_hash, password_hash=None):
    """Compare-and-clear on the entity, as the conditional UPDATE does on the row"""
    if user.reset_password_token != token_hash:
        return False
    user.reset_password_token = None
    user.reset_password_token_expires_at = None
    if password_hash is not None:
        user.password_hash = password_hash
    return True


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.users = MagicMock()
    for name in (
        "get_by_email",
        "get_by_id",
        "get_with_role_by_id",
        "get_with_role_by_email",
        "get_by_reset_token_hash",
        "delete",
        "count",
        "count_by_role",
    ):
        setattr(uow.users, name, AsyncMock())
    uow.users.list_by_role = AsyncMock(return_value=[])
    # Persistence calls echo the entity back
    uow.users.create = AsyncMock(side_effect=lambda user: user)
    uow.users.update = AsyncMock(side_effect=lambda user: user)
    uow.users.consume_reset_token = AsyncMock(side_effect=_consume_reset_token)

    uow.roles = MagicMock()
    for name in ("get_by_id", "get_by_name", "get_by_ids", "delete"):
        setattr(uow.roles, name, AsyncMock())
    uow.roles.create = AsyncMock(side_effect=lambda role: role)
    uow.roles.update = AsyncMock(side_effect=lambda role: role)
    uow.roles.list_live = AsyncMock(return_value=([], 0))

    uow.permissions = MagicMock()
    uow.permissions.list_by_actor = AsyncMock(return_value=[])
    uow.permissions.save_all = AsyncMock(side_effect=lambda rows: rows)
    uow.permissions.delete_by_actor = AsyncMock(return_value=0)
    return uow


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return InMemoryCache(clock=clock)


@pytest.fixture
def session_cache(mock_uow, cache):
    return SessionCacheManager(mock_uow, cache)


@pytest.fixture
def super_admin_role():
    return make_role(SUPER_ADMIN)


@pytest.fixture
def admin_role():
    return make_role(ADMIN)


@pytest.fixture
def customer_role():
    return make_role(CUSTOMER)
