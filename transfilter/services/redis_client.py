"""Redis client for the shared translation cache."""

import redis
import logging

logger = logging.getLogger(__name__)

# Redis connections (lazy initialization), one per URL
_redis_clients = {}


def get_redis(redis_url: str):
    """Get or create a Redis connection, or None when unavailable."""
    if not redis_url:
        logger.warning("REDIS_URL not set - shared translation cache disabled")
        return None

    client = _redis_clients.get(redis_url)
    if client is not None:
        return client

    try:
        client = redis.from_url(redis_url, decode_responses=True)
        # Test connection
        client.ping()
        logger.info("Redis connected successfully")
    except Exception as e:
        logger.error(f"Redis connection failed: {e}")
        return None

    _redis_clients[redis_url] = client
    return client
