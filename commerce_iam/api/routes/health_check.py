import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from commerce_iam.app.services.cache import CacheError, ICache
from commerce_iam.depends import engine, get_cache

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(cache: ICache = Depends(get_cache)):
    """Database is required; a cache outage only marks the service degraded"""
    checks = {"database": "ok", "cache": "ok"}

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check: database unavailable: {e}")
        checks["database"] = "unavailable"

    try:
        await cache.get("health:ping")
    except CacheError as e:
        logger.warning(f"Health check: cache unavailable: {e}")
        checks["cache"] = "unavailable"

    healthy = checks["database"] == "ok"
    status_code = status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(
        status_code=status_code,
        content={
            "statusCode": status_code,
            "success": healthy,
            "message": "ok" if healthy and checks["cache"] == "ok" else "degraded",
            "checks": checks,
        },
    )
