"""
Unit tests for SessionCacheManager

Cache-aside reads, write-through updates and fault fallback.
"""
from unittest.mock import AsyncMock

import pytest

from commerce_iam.app.services.cache import CacheError
from commerce_iam.app.services.session_cache import (
    SessionCacheManager,
    actor_email_key,
    actor_id_key,
    permissions_key,
    role_key,
)
from commerce_iam.app.errors import ErrorCode
from tests.fixtures.factories import live_keys, make_permission, make_user


@pytest.mark.asyncio
async def test_actor_miss_loads_from_store_and_populates(session_cache, mock_uow, cache, customer_role):
    user = make_user(customer_role)
    mock_uow.users.get_with_role_by_id.return_value = (user, customer_role)

    result = await session_cache.resolve_actor_by_id(user.id)

    assert result.is_ok()
    assert result.value.email == "jane@shop.com"
    assert result.value.role == "CUSTOMER"
    assert (await cache.get(actor_id_key(user.id)))["email"] == "jane@shop.com"
    assert (await cache.get(actor_email_key(user.email)))["id"] == str(user.id)


@pytest.mark.asyncio
async def test_actor_hit_skips_store(session_cache, mock_uow, customer_role):
    user = make_user(customer_role)
    mock_uow.users.get_with_role_by_id.return_value = (user, customer_role)
    await session_cache.resolve_actor_by_id(user.id)
    mock_uow.users.get_with_role_by_id.reset_mock()

    result = await session_cache.resolve_actor_by_email("JANE@shop.com")

    assert result.is_ok()
    assert result.value.id == user.id
    mock_uow.users.get_with_role_by_id.assert_not_called()
    mock_uow.users.get_with_role_by_email.assert_not_called()


@pytest.mark.asyncio
async def test_unknown_actor_is_not_found(session_cache, mock_uow, cache):
    mock_uow.users.get_with_role_by_id.return_value = None
    user = make_user()

    result = await session_cache.resolve_actor_by_id(user.id)

    assert result.is_err()
    assert result.error.code == ErrorCode.NOT_FOUND
    assert live_keys(cache) == []


@pytest.mark.asyncio
async def test_projection_excludes_secrets(session_cache, cache, customer_role):
    user = make_user(customer_role, reset_password_token="abc")

    await session_cache.write_actor(user, customer_role)

    cached = await cache.get(actor_id_key(user.id))
    assert "password_hash" not in cached
    assert "reset_password_token" not in cached


@pytest.mark.asyncio
async def test_email_change_moves_email_key(session_cache, cache, customer_role):
    user = make_user(customer_role)
    await session_cache.write_actor(user, customer_role)

    user.email = "jane.doe@shop.com"
    await session_cache.write_actor(user, customer_role, previous_email="jane@shop.com")

    assert await cache.get(actor_email_key("jane@shop.com")) is None
    assert (await cache.get(actor_email_key("jane.doe@shop.com")))["email"] == "jane.doe@shop.com"
    assert (await cache.get(actor_id_key(user.id)))["email"] == "jane.doe@shop.com"


@pytest.mark.asyncio
async def test_permissions_populated_and_scoped_by_name(session_cache, mock_uow, cache):
    user = make_user()
    mock_uow.permissions.list_by_actor.return_value = [
        make_permission(user.id, "Order", can_read=True, can_create=True),
        make_permission(user.id, "Product", can_read=True),
    ]

    everything = await session_cache.resolve_permissions(user.id)
    orders = await session_cache.resolve_permissions(user.id, name="Order")

    assert [p.name for p in everything] == ["Product", "Order"]
    assert [p.name for p in orders] == ["Order"]
    assert orders[0].can_create is True
    mock_uow.permissions.list_by_actor.assert_called_once_with(user.id)
    assert len(await cache.get(permissions_key(user.id))) == 2


@pytest.mark.asyncio
async def test_hit_and_miss_agree_on_order(session_cache, mock_uow, cache):
    user = make_user()
    # Written in the order a direct edit appends rows
    await session_cache.write_permissions(
        user.id,
        [make_permission(user.id, name) for name in ("Order", "Media", "User", "Brand")],
    )
    hit = await session_cache.resolve_permissions(user.id)

    await cache.delete(permissions_key(user.id))
    # Persistence returns rows alphabetically
    mock_uow.permissions.list_by_actor.return_value = [
        make_permission(user.id, name) for name in ("Brand", "Media", "Order", "User")
    ]
    miss = await session_cache.resolve_permissions(user.id)

    assert [p.name for p in hit] == ["User", "Brand", "Order", "Media"]
    assert miss == hit


@pytest.mark.asyncio
async def test_malformed_permission_entry_is_reloaded(session_cache, mock_uow, cache):
    user = make_user()
    await cache.set(permissions_key(user.id), "garbage")
    mock_uow.permissions.list_by_actor.return_value = [make_permission(user.id, "Order", can_read=True)]

    permissions = await session_cache.resolve_permissions(user.id)

    assert [p.name for p in permissions] == ["Order"]


@pytest.mark.asyncio
async def test_invalidate_actor_removes_all_keys(session_cache, cache, customer_role):
    user = make_user(customer_role)
    await session_cache.write_actor(user, customer_role)
    await session_cache.write_permissions(user.id, [make_permission(user.id, "Order")])

    await session_cache.invalidate_actor(user.id, user.email)

    assert live_keys(cache) == []


@pytest.mark.asyncio
async def test_role_cache_round(session_cache, mock_uow, cache, customer_role):
    mock_uow.roles.get_by_id.return_value = customer_role

    first = await session_cache.resolve_role(customer_role.id)
    second = await session_cache.resolve_role(customer_role.id)

    assert first.value.name == second.value.name == "CUSTOMER"
    mock_uow.roles.get_by_id.assert_called_once()

    await session_cache.invalidate_role(customer_role.id)
    assert await cache.get(role_key(customer_role.id)) is None


@pytest.mark.asyncio
async def test_read_fault_falls_back_to_store(mock_uow, customer_role):
    broken = AsyncMock()
    broken.get.side_effect = CacheError("down")
    broken.set.side_effect = CacheError("down")
    broken.delete.side_effect = CacheError("down")
    manager = SessionCacheManager(mock_uow, broken)
    user = make_user(customer_role)
    mock_uow.users.get_with_role_by_id.return_value = (user, customer_role)

    result = await manager.resolve_actor_by_id(user.id)

    assert result.is_ok()
    assert result.value.id == user.id


@pytest.mark.asyncio
async def test_failed_write_deletes_key(mock_uow, customer_role):
    flaky = AsyncMock()
    flaky.set.side_effect = CacheError("down")
    manager = SessionCacheManager(mock_uow, flaky)
    user = make_user(customer_role)

    await manager.write_actor(user, customer_role)

    deleted = [call.args[0] for call in flaky.delete.call_args_list]
    assert actor_id_key(user.id) in deleted
    assert actor_email_key(user.email) in deleted
