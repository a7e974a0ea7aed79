"""
Centralized Redis connection configuration.

Single source of truth for the Celery broker URL, with credentials
URL-encoded so passwords may contain reserved characters.
"""

import logging
import os
from urllib.parse import quote_plus

logger = logging.getLogger(__name__)

DEFAULT_REDIS_URL = "redis://localhost:6379"


def redact_redis_url(url: str) -> str:
    """Strip credentials from a Redis URL for logging."""
    return url.split("@")[-1] if "@" in url else url


def get_redis_url() -> str:
    """
    Get the Redis URL from the environment.

    Environment Variables:
        REDIS_URL: Complete Redis URL (used as-is when set)
        REDISHOST: Redis host
        REDISPORT: Redis port (default: 6379)
        REDISPASSWORD or REDIS_PASSWORD: Redis password
        REDISUSER: Redis username (default: "default")
    """
    redis_url = os.getenv("REDIS_URL", "").strip()
    if redis_url:
        return redis_url

    host = os.getenv("REDISHOST")
    port = os.getenv("REDISPORT", "6379")
    password = os.getenv("REDISPASSWORD") or os.getenv("REDIS_PASSWORD")
    user = os.getenv("REDISUSER", "default")

    if host and password:
        return f"redis://{quote_plus(user)}:{quote_plus(password)}@{host}:{port}"
    if host:
        return f"redis://{host}:{port}"

    logger.warning(
        "REDIS_URL not provided; defaulting to local Redis at %s",
        DEFAULT_REDIS_URL,
    )
    return DEFAULT_REDIS_URL
