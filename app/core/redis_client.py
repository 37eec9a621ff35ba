import redis.asyncio as redis
from app.core.config import settings

# Connections are opened lazily on first command
redis_client = redis.from_url(settings.redis_url, decode_responses=True)


async def get_redis_client():
    """Get the shared Redis client used for change events and rate limiting"""
    return redis_client
