"""
Redis connection management
"""
from typing import Optional
import redis.asyncio as aioredis
from loguru import logger

from quotedesk.core.config import settings

_redis: Optional[aioredis.Redis] = None


async def init_redis() -> aioredis.Redis:
    """Open the shared connection pool"""
    global _redis
    if _redis is None:
        if not settings.REDIS_URL:
            raise RuntimeError("REDIS_URL is not configured")
        _redis = aioredis.from_url(settings.REDIS_URL, encoding="utf-8", decode_responses=True)
        logger.info("Redis client initialised")
    return _redis


async def get_redis() -> aioredis.Redis:
    if _redis is None:
        return await init_redis()
    return _redis


async def close_redis():
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None
        logger.info("Redis client closed")
