from functools import lru_cache

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from commerce_iam.adapter.cache.memory_cache import InMemoryCache
from commerce_iam.adapter.cache.redis_cache import RedisCache
from commerce_iam.adapter.notifications.smtp_notification_service import SmtpNotificationService
from commerce_iam.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from commerce_iam.api.error import ClientError
from commerce_iam.api.utils.jwt import verify_jwt
from commerce_iam.app.errors import authentication_error
from commerce_iam.app.services.cache import ICache
from commerce_iam.app.services.login_throttle import LoginThrottle
from commerce_iam.app.services.notification import INotificationService
from commerce_iam.app.services.session_cache import SessionCacheManager

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

security = HTTPBearer(auto_error=False)


@lru_cache
def get_cache() -> ICache:
    """Process-wide cache client, built on first use"""
    if ApplicationConfig.CACHE_BACKEND == "memory":
        return InMemoryCache()
    return RedisCache.from_url(
        ApplicationConfig.REDIS_URL, key_prefix=ApplicationConfig.CACHE_KEY_PREFIX
    )


@lru_cache
def get_notifier() -> INotificationService:
    return SmtpNotificationService(
        smtp_host=ApplicationConfig.SMTP_HOST,
        smtp_port=ApplicationConfig.SMTP_PORT,
        smtp_user=ApplicationConfig.SMTP_USER,
        smtp_password=ApplicationConfig.SMTP_PASSWORD,
        smtp_use_tls=ApplicationConfig.SMTP_USE_TLS,
        from_email=ApplicationConfig.MAIL_FROM,
        from_name=ApplicationConfig.MAIL_FROM_NAME,
    )


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_session_cache(
    uow=Depends(get_unit_of_work), cache: ICache = Depends(get_cache)
) -> SessionCacheManager:
    return SessionCacheManager(uow, cache, ttl=ApplicationConfig.SESSION_CACHE_TTL)


def get_login_throttle(cache: ICache = Depends(get_cache)) -> LoginThrottle:
    return LoginThrottle(
        cache,
        max_attempts=ApplicationConfig.LOGIN_MAX_ATTEMPTS,
        lockout_seconds=ApplicationConfig.LOGIN_LOCKOUT_SECONDS,
        attempt_ttl=ApplicationConfig.LOGIN_ATTEMPT_TTL,
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    """
    Dependency to extract and verify JWT token from Authorization header.

    Args:
        credentials: Bearer token from Authorization header

    Returns:
        Decoded JWT payload containing user_id, email and role

    Raises:
        ClientError: 401 if token is missing, invalid or expired
    """
    if credentials is None:
        raise ClientError(authentication_error("You're not authenticated"), status_code=401)

    payload = verify_jwt(credentials.credentials)
    if payload is None or "user_id" not in payload:
        raise ClientError(authentication_error("Invalid or expired token"), status_code=401)

    return payload
