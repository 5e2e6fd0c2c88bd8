"""
Login Throttle

Per-account failed-attempt counting and temporary lockout, kept entirely in
the cache: CLEAR -> COUNTING(n) -> LOCKED(until) -> CLEAR.
"""

import logging
import time
from typing import Callable

from commerce_iam.app.errors import locked
from commerce_iam.app.services.cache import CacheError, ICache
from commerce_iam.libs.result import Result, Return

logger = logging.getLogger(__name__)

MAX_FAILED_ATTEMPTS = 5
LOCKOUT_SECONDS = 15 * 60
ATTEMPT_TTL_SECONDS = 60 * 60


def attempts_key(email: str) -> str:
    return f"login-attempts:{email.lower()}"


def lockout_key(email: str) -> str:
    return f"account-lockout:{email.lower()}"


def remaining_seconds(locked_at_ms: int, duration: int, now_ms: int) -> int:
    """Seconds left on a lock; zero or less means the lock has lapsed"""
    elapsed = (now_ms - locked_at_ms) // 1000
    return duration - elapsed


def format_remaining(seconds: int) -> str:
    return f"{seconds // 60}m {seconds % 60}s"


class LoginThrottle:
    """
    Login throttle state machine.

    Business Rules:
    - The MAX_FAILED_ATTEMPTS-th consecutive failure locks the account for LOCKOUT_SECONDS
    - The attempt counter expires after ATTEMPT_TTL_SECONDS without a new failure
    - Entering the lock deletes the counter, so an expired lock means CLEAR
    - A successful credential check deletes the counter
    - Throttle state is advisory: a cache fault lets the login proceed (fail open)
    """

    def __init__(
        self,
        cache: ICache,
        max_attempts: int = MAX_FAILED_ATTEMPTS,
        lockout_seconds: int = LOCKOUT_SECONDS,
        attempt_ttl: int = ATTEMPT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.cache = cache
        self.max_attempts = max_attempts
        self.lockout_seconds = lockout_seconds
        self.attempt_ttl = attempt_ttl
        self.clock = clock

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    async def check_lockout(self, email: str) -> Result[None]:
        """
        Reject while the account is locked.

        Returns:
            Ok when no active lock exists, or a LOCKED error carrying the remaining time
        """
        try:
            record = await self.cache.get(lockout_key(email))
        except CacheError as e:
            logger.warning(f"Login throttle degraded, skipping lockout check: {e}")
            return Return.ok(None)

        if not record:
            return Return.ok(None)

        remaining = remaining_seconds(
            int(record.get("locked_at", 0)),
            int(record.get("duration", self.lockout_seconds)),
            self._now_ms(),
        )
        if remaining <= 0:
            await self._forget(lockout_key(email))
            return Return.ok(None)

        return Return.err(
            locked(
                f"Account locked. Please try again after {format_remaining(remaining)}.",
                remaining,
            )
        )

    async def record_failed_attempt(self, email: str) -> Result[int]:
        """
        Count one failed credential check.

        Returns:
            Ok with the current attempt count, or a LOCKED error when this
            failure reached the threshold
        """
        try:
            attempts = await self.cache.incr(attempts_key(email), self.attempt_ttl)
        except CacheError as e:
            logger.warning(f"Login throttle degraded, failed attempt not counted: {e}")
            return Return.ok(0)

        if attempts < self.max_attempts:
            return Return.ok(attempts)

        try:
            await self.cache.set(
                lockout_key(email),
                {"locked_at": self._now_ms(), "duration": self.lockout_seconds},
                self.lockout_seconds,
            )
        except CacheError as e:
            logger.warning(f"Login throttle degraded, lock not recorded: {e}")
            return Return.ok(attempts)

        await self._forget(attempts_key(email))
        logger.warning(f"Account locked after {attempts} failed login attempts")
        return Return.err(
            locked(
                f"Account locked. Try again in {self.lockout_seconds // 60} minutes.",
                self.lockout_seconds,
            )
        )

    async def clear_on_success(self, email: str) -> None:
        await self._forget(attempts_key(email))

    async def _forget(self, key: str) -> None:
        try:
            await self.cache.delete(key)
        except CacheError as e:
            logger.warning(f"Login throttle degraded, could not delete {key}: {e}")
