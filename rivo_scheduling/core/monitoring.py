"""Health endpoints for the scheduling API"""
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from rivo_scheduling.config.database import get_db
from rivo_scheduling.config.redis import get_redis
from rivo_scheduling.config.settings import get_settings

settings = get_settings()

health_router = APIRouter()


async def ping_redis(url: str) -> str:
    try:
        redis_client = await get_redis(url)
        await redis_client.ping()
        await redis_client.aclose()
        return "healthy"
    except Exception as e:
        return f"unhealthy: {str(e)}"


@health_router.get("")
async def health_check():
    """Basic health check"""
    return {"status": "healthy", "service": "rivo-scheduling"}


@health_router.get("/detailed")
async def detailed_health_check(db: Session = Depends(get_db)):
    """Database schema, Redis and the broker that carries booking notifications"""
    checks = {
        "api": "healthy",
        "database": "unknown",
        "redis": "unknown",
        "notification_broker": "unknown",
        "overall": "unknown"
    }

    # Reading the bookings table also catches a database that was never migrated
    try:
        db.execute(text("SELECT 1 FROM provider_bookings LIMIT 1"))
        checks["database"] = "healthy"
    except Exception as e:
        checks["database"] = f"unhealthy: {str(e)}"

    checks["redis"] = await ping_redis(settings.REDIS_URL)

    if settings.NOTIFICATIONS_ENABLED:
        checks["notification_broker"] = await ping_redis(settings.CELERY_BROKER_URL)
    else:
        checks["notification_broker"] = "disabled"

    if all(status in ("healthy", "disabled") for key, status in checks.items() if key != "overall"):
        checks["overall"] = "healthy"
    else:
        checks["overall"] = "degraded"

    return checks
