"""Redis clients for the cache instance and the Celery broker behind booking notifications"""
import redis.asyncio as redis
from typing import Dict, Optional

from rivo_scheduling.config.settings import get_settings

settings = get_settings()

# One connection pool per Redis URL
_redis_pools: Dict[str, redis.ConnectionPool] = {}


def get_redis_pool(url: Optional[str] = None) -> redis.ConnectionPool:
    url = url or settings.REDIS_URL
    if url not in _redis_pools:
        _redis_pools[url] = redis.ConnectionPool.from_url(
            url,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            retry_on_timeout=True,
        )
    return _redis_pools[url]


async def get_redis(url: Optional[str] = None) -> redis.Redis:
    """Client for `url`, REDIS_URL by default"""
    return redis.Redis(connection_pool=get_redis_pool(url))
