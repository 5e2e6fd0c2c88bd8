from datetime import UTC, datetime, timedelta
from typing import Optional

from jose import JWTError, jwt

from config import ApplicationConfig
from commerce_iam.app.services.projections import ActorSession


def generate_jwt(actor: ActorSession, expires_delta: Optional[timedelta] = None) -> str:
    """
    Generate a signed session token for an actor

    Args:
        actor: Actor projection whose identity goes into the claims
        expires_delta: Token lifetime, JWT_EXPIRES_IN_DAYS by default

    Returns:
        JWT token string (HS256)
    """
    now = datetime.now(UTC)
    expires_delta = expires_delta or timedelta(days=ApplicationConfig.JWT_EXPIRES_IN_DAYS)
    payload = {
        "user_id": str(actor.id),
        "email": actor.email,
        "first_name": actor.first_name,
        "last_name": actor.last_name,
        "role": actor.role,
        "email_verified": actor.email_verified,
        "is_account_activated": actor.is_account_activated,
        "exp": now + expires_delta,
        "iat": now,
    }
    return jwt.encode(payload, ApplicationConfig.JWT_SECRET, algorithm="HS256")


def verify_jwt(token: str) -> Optional[dict]:
    """
    Verify and decode JWT token

    Args:
        token: JWT token string

    Returns:
        Decoded payload dict or None if invalid
    """
    try:
        payload = jwt.decode(
            token, ApplicationConfig.JWT_SECRET, algorithms=["HS256"]
        )
        return payload
    except JWTError:
        return None
