"""
Unit tests for RequestPasswordResetUseCase and ConfirmPasswordResetUseCase

Tests all business logic with mocked dependencies.
"""
import asyncio
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import bcrypt
import pytest

from commerce_iam.app.errors import ErrorCode
from commerce_iam.app.services.cache import CacheError
from commerce_iam.app.use_cases.auth import (
    ConfirmPasswordResetUseCase,
    RequestPasswordResetUseCase,
)
from commerce_iam.app.use_cases.auth.request_password_reset_use_case import (
    NEUTRAL_MESSAGE,
    cooldown_key,
    hash_reset_token,
)
from tests.fixtures.factories import make_user

NEW_PASSWORD = "NewSecurePass456!"


@pytest.fixture
def notifier():
    notifier = AsyncMock()
    notifier.send.return_value = True
    return notifier


@pytest.fixture
def request_reset(mock_uow, cache, notifier, clock):
    return RequestPasswordResetUseCase(mock_uow, cache, notifier, "https://shop.test", clock=clock)


@pytest.fixture
def confirm_reset(mock_uow, session_cache):
    return ConfirmPasswordResetUseCase(mock_uow, session_cache)


def sent_token(notifier):
    text = notifier.send.call_args.args[2]
    return text.split("token=", 1)[1]


@pytest.mark.asyncio
async def test_request_stores_only_token_hash(request_reset, mock_uow, notifier):
    # Arrange
    user = make_user()
    mock_uow.users.get_by_email.return_value = user

    # Act
    result = await request_reset.execute("JANE@shop.com")

    # Assert
    assert result.is_ok()
    assert result.value.message == NEUTRAL_MESSAGE
    token = sent_token(notifier)
    assert user.reset_password_token == hash_reset_token(token)
    assert user.reset_password_token != token
    remaining = user.reset_password_token_expires_at - datetime.utcnow()
    assert timedelta(minutes=4) < remaining <= timedelta(minutes=5)
    mock_uow.commit.assert_called_once()


@pytest.mark.asyncio
async def test_unknown_email_gets_neutral_response(request_reset, mock_uow, notifier):
    mock_uow.users.get_by_email.return_value = None

    result = await request_reset.execute("ghost@shop.com")

    assert result.value.message == NEUTRAL_MESSAGE
    notifier.send.assert_not_called()


@pytest.mark.asyncio
async def test_new_request_replaces_previous_token(request_reset, mock_uow, notifier, clock):
    user = make_user()
    mock_uow.users.get_by_email.return_value = user
    await request_reset.execute(user.email)
    first_hash = user.reset_password_token

    clock.advance(61)
    await request_reset.execute(user.email)

    assert user.reset_password_token != first_hash
    assert user.reset_password_token == hash_reset_token(sent_token(notifier))


@pytest.mark.asyncio
async def test_cooldown_blocks_second_request(request_reset, mock_uow, clock):
    mock_uow.users.get_by_email.return_value = make_user()
    await request_reset.execute("jane@shop.com")

    clock.advance(20)
    result = await request_reset.execute("jane@shop.com")

    assert result.error.code == ErrorCode.LOCKED
    assert result.error.message == "Please wait 0m 40s before requesting another password reset."


@pytest.mark.asyncio
async def test_send_failure_clears_token(request_reset, mock_uow, notifier, cache):
    user = make_user()
    mock_uow.users.get_by_email.return_value = user
    notifier.send.return_value = False

    result = await request_reset.execute(user.email)

    assert result.error.code == ErrorCode.DEPENDENCY_ERROR
    assert user.reset_password_token is None
    assert user.reset_password_token_expires_at is None


@pytest.mark.asyncio
async def test_concurrent_confirmations_consume_token_once(confirm_reset, mock_uow, customer_role):
    user = make_user(
        customer_role,
        reset_password_token=hash_reset_token("tok"),
        reset_password_token_expires_at=datetime.utcnow() + timedelta(minutes=5),
    )
    both_loaded = asyncio.Event()
    loads = []

    async def load_after_both_arrive(token_hash):
        loads.append(token_hash)
        if len(loads) == 2:
            both_loaded.set()
        await both_loaded.wait()
        return user

    mock_uow.users.get_by_reset_token_hash.side_effect = load_after_both_arrive
    mock_uow.roles.get_by_id.return_value = customer_role

    first, second = await asyncio.gather(
        confirm_reset.execute("tok", NEW_PASSWORD),
        confirm_reset.execute("tok", "OtherSecurePass789!"),
    )

    assert sorted([first.is_ok(), second.is_ok()]) == [False, True]
    loser = first if first.is_err() else second
    assert loser.error.code == ErrorCode.INVALID_TOKEN
    assert mock_uow.commit.await_count == 1
    assert await cache.get(cooldown_key(user.email)) is None


@pytest.mark.asyncio
async def test_cache_fault_disables_cooldown(mock_uow, notifier):
    broken = AsyncMock()
    broken.get.side_effect = CacheError("down")
    broken.set.side_effect = CacheError("down")
    use_case = RequestPasswordResetUseCase(mock_uow, broken, notifier)
    mock_uow.users.get_by_email.return_value = make_user()

    assert (await use_case.execute("jane@shop.com")).is_ok()
    assert (await use_case.execute("jane@shop.com")).is_ok()


@pytest.mark.asyncio
async def test_confirm_sets_password_and_consumes_token(confirm_reset, mock_uow, customer_role):
    # Arrange
    user = make_user(
        customer_role,
        reset_password_token=hash_reset_token("tok"),
        reset_password_token_expires_at=datetime.utcnow() + timedelta(minutes=5),
    )
    mock_uow.users.get_by_reset_token_hash.return_value = user
    mock_uow.roles.get_by_id.return_value = customer_role

    # Act
    result = await confirm_reset.execute("tok", NEW_PASSWORD)

    # Assert
    assert result.is_ok()
    assert result.value.message == "Password reset successfully"
    mock_uow.users.get_by_reset_token_hash.assert_called_once_with(hash_reset_token("tok"))
    assert bcrypt.checkpw(NEW_PASSWORD.encode(), user.password_hash.encode())
    assert user.reset_password_token is None
    assert user.reset_password_token_expires_at is None


@pytest.mark.asyncio
async def test_replayed_token_is_invalid(confirm_reset, mock_uow):
    # Consumed tokens are no longer found by hash
    mock_uow.users.get_by_reset_token_hash.return_value = None

    result = await confirm_reset.execute("tok", NEW_PASSWORD)

    assert result.error.code == ErrorCode.INVALID_TOKEN
    assert result.error.message == "Invalid or expired password reset token"


@pytest.mark.asyncio
async def test_expired_token_is_cleared(confirm_reset, mock_uow):
    user = make_user(
        reset_password_token=hash_reset_token("tok"),
        reset_password_token_expires_at=datetime.utcnow() - timedelta(seconds=1),
    )
    old_hash = user.password_hash
    mock_uow.users.get_by_reset_token_hash.return_value = user

    result = await confirm_reset.execute("tok", NEW_PASSWORD)

    assert result.error.code == ErrorCode.EXPIRED_TOKEN
    assert result.error.message == "Password reset token has expired"
    assert user.reset_password_token is None
    assert user.password_hash == old_hash
    mock_uow.commit.assert_called_once()


@pytest.mark.asyncio
async def test_token_without_expiry_counts_as_expired(confirm_reset, mock_uow):
    user = make_user(reset_password_token=hash_reset_token("tok"))
    mock_uow.users.get_by_reset_token_hash.return_value = user

    result = await confirm_reset.execute("tok", NEW_PASSWORD)

    assert result.error.code == ErrorCode.EXPIRED_TOKEN


@pytest.mark.asyncio
async def test_confirm_rejects_weak_password(confirm_reset, mock_uow):
    result = await confirm_reset.execute("tok", "short")

    assert result.error.code == ErrorCode.VALIDATION_ERROR
    assert result.error.details["errors"][0]["field"] == "newPassword"
    mock_uow.users.get_by_reset_token_hash.assert_not_called()
