"""
Unit tests for RegisterUseCase

Tests all business logic with mocked dependencies.
"""
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import IntegrityError

from commerce_iam.app.errors import ErrorCode
from commerce_iam.app.services.session_cache import actor_email_key, permissions_key
from commerce_iam.app.use_cases.auth import RegisterCommand, RegisterUseCase
from commerce_iam.domain.capabilities import CAPABILITIES, ROLE_PERMISSION_MATRIX
from tests.fixtures.factories import PASSWORD, live_keys, make_user


@pytest.fixture
def notifier():
    notifier = AsyncMock()
    notifier.send.return_value = True
    return notifier


@pytest.fixture
def use_case(mock_uow, session_cache, notifier):
    return RegisterUseCase(mock_uow, session_cache, notifier, "https://shop.test")


def command(**overrides):
    fields = dict(first_name="Jane", last_name="Doe", email="Jane@Shop.com", password=PASSWORD)
    fields.update(overrides)
    return RegisterCommand(**fields)


@pytest.mark.asyncio
async def test_first_actor_becomes_super_admin(use_case, mock_uow, super_admin_role):
    # Arrange
    mock_uow.users.get_by_email.return_value = None
    mock_uow.users.count.return_value = 0
    mock_uow.roles.get_by_name.return_value = super_admin_role

    # Act
    result = await use_case.execute(command())

    # Assert
    assert result.is_ok()
    mock_uow.roles.get_by_name.assert_called_once_with("SUPER ADMIN")
    user = mock_uow.users.create.call_args.args[0]
    assert user.role_id == super_admin_role.id
    assert user.email == "jane@shop.com"
    assert user.email_verified is False
    assert user.is_account_activated is False
    assert user.password_hash != PASSWORD
    saved = mock_uow.permissions.save_all.call_args.args[0]
    assert [row.name for row in saved] == list(CAPABILITIES)
    assert result.value.status_code == 201
    assert result.value.id == str(user.id)


@pytest.mark.asyncio
async def test_later_actor_becomes_customer_and_role_is_created(use_case, mock_uow, cache):
    mock_uow.users.get_by_email.return_value = None
    mock_uow.users.count.return_value = 3
    mock_uow.roles.get_by_name.return_value = None

    result = await use_case.execute(command())

    assert result.is_ok()
    role = mock_uow.roles.create.call_args.args[0]
    assert role.name == "CUSTOMER"
    saved = mock_uow.permissions.save_all.call_args.args[0]
    assert {row.name for row in saved} == set(ROLE_PERMISSION_MATRIX["CUSTOMER"])
    # Projections written after commit
    assert (await cache.get(actor_email_key("jane@shop.com")))["role"] == "CUSTOMER"
    user = mock_uow.users.create.call_args.args[0]
    assert len(await cache.get(permissions_key(user.id))) == len(saved)


@pytest.mark.asyncio
async def test_activation_link_is_sent(use_case, mock_uow, notifier, customer_role):
    mock_uow.users.get_by_email.return_value = None
    mock_uow.users.count.return_value = 1
    mock_uow.roles.get_by_name.return_value = customer_role

    await use_case.execute(command())

    to, subject, text, html = notifier.send.call_args.args
    user = mock_uow.users.create.call_args.args[0]
    assert to == "jane@shop.com"
    assert f"https://shop.test/active-account/?userId={user.id}" in text


@pytest.mark.asyncio
async def test_duplicate_email_is_conflict(use_case, mock_uow):
    mock_uow.users.get_by_email.return_value = make_user()

    result = await use_case.execute(command())

    assert result.is_err()
    assert result.error.code == ErrorCode.CONFLICT
    assert result.error.message == "Email already in use"
    mock_uow.users.create.assert_not_called()


@pytest.mark.asyncio
async def test_email_clash_on_insert_is_conflict(use_case, mock_uow, customer_role):
    # A concurrent registration commits the same email between lookup and insert
    mock_uow.users.get_by_email.side_effect = [None, make_user()]
    mock_uow.users.count.return_value = 1
    mock_uow.roles.get_by_name.return_value = customer_role
    mock_uow.users.create.side_effect = IntegrityError("insert", {}, Exception("unique"))

    result = await use_case.execute(command())

    assert result.error.code == ErrorCode.CONFLICT
    assert result.error.message == "Email already in use"
    mock_uow.users.create.assert_called_once()


@pytest.mark.asyncio
async def test_initial_role_race_retries_as_customer(use_case, mock_uow, customer_role):
    # Another first registration created SUPER ADMIN concurrently
    mock_uow.users.get_by_email.return_value = None
    mock_uow.users.count.side_effect = [0, 1]
    mock_uow.roles.get_by_name.side_effect = [None, customer_role]
    mock_uow.roles.create.side_effect = IntegrityError("insert", {}, Exception("unique"))

    result = await use_case.execute(command())

    assert result.is_ok()
    user = mock_uow.users.create.call_args.args[0]
    assert user.role_id == customer_role.id
    assert [call.args[0] for call in mock_uow.roles.get_by_name.call_args_list] == [
        "SUPER ADMIN",
        "CUSTOMER",
    ]


@pytest.mark.asyncio
async def test_persistent_non_email_clash_is_conflict(use_case, mock_uow, customer_role):
    mock_uow.users.get_by_email.return_value = None
    mock_uow.users.count.return_value = 1
    mock_uow.roles.get_by_name.return_value = customer_role
    mock_uow.users.create.side_effect = IntegrityError("insert", {}, Exception("unique"))

    result = await use_case.execute(command())

    assert result.error.code == ErrorCode.CONFLICT
    assert result.error.message == "Registration conflicted with a concurrent request"
    assert mock_uow.users.create.call_count == 2


@pytest.mark.asyncio
async def test_weak_password_is_rejected(use_case, mock_uow):
    result = await use_case.execute(command(password="password"))

    assert result.is_err()
    assert result.error.code == ErrorCode.VALIDATION_ERROR
    assert result.error.details["errors"][0]["field"] == "password"
    mock_uow.users.get_by_email.assert_not_called()


@pytest.mark.asyncio
async def test_invalid_name_is_rejected(use_case):
    result = await use_case.execute(command(first_name="J4ne", last_name=""))

    fields = [e["field"] for e in result.error.details["errors"]]
    assert fields == ["firstName", "lastName"]


@pytest.mark.asyncio
async def test_email_failure_deletes_actor_again(use_case, mock_uow, notifier, cache, customer_role):
    # Arrange
    mock_uow.users.get_by_email.return_value = None
    mock_uow.users.count.return_value = 1
    mock_uow.roles.get_by_name.return_value = customer_role
    notifier.send.return_value = False

    # Act
    result = await use_case.execute(command())

    # Assert
    assert result.is_err()
    assert result.error.code == ErrorCode.DEPENDENCY_ERROR
    assert result.error.message == "Registration failed. Failed to send account activation email."
    user = mock_uow.users.create.call_args.args[0]
    mock_uow.permissions.delete_by_actor.assert_called_once_with(user.id)
    mock_uow.users.delete.assert_called_once_with(user)
    assert mock_uow.commit.call_count == 2
    assert live_keys(cache) == []


@pytest.mark.asyncio
async def test_notifier_exception_also_compensates(use_case, mock_uow, notifier, customer_role):
    mock_uow.users.get_by_email.return_value = None
    mock_uow.users.count.return_value = 1
    mock_uow.roles.get_by_name.return_value = customer_role
    notifier.send.side_effect = ConnectionError("smtp down")

    result = await use_case.execute(command())

    assert result.error.code == ErrorCode.DEPENDENCY_ERROR
    mock_uow.users.delete.assert_called_once()
