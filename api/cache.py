import hashlib
import json
import logging
import os
from typing import Optional

import redis

logger = logging.getLogger(__name__)

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379")
CACHE_TTL = int(os.getenv("CACHE_TTL_SECONDS", "3600"))  # 1 hour default
CACHE_ENABLED = os.getenv("CACHE_ENABLED", "true").lower() == "true"

# module-level client; None if Redis is unavailable (cache degrades gracefully)
_client: Optional[redis.Redis] = None


def get_client() -> Optional[redis.Redis]:
    global _client
    if not CACHE_ENABLED:
        return None
    if _client is None:
        try:
            _client = redis.from_url(REDIS_URL, decode_responses=True, socket_connect_timeout=2)
            _client.ping()
        except (redis.RedisError, ValueError) as exc:
            logger.warning("Redis unavailable, caching disabled: %s", exc)
            _client = None
    return _client


def cache_key(mode: str, url: str, image_url: Optional[str] = None) -> str:
    # the same page analyzed with a different image or mode is a different result
    raw = "\n".join((mode, url, image_url or ""))
    digest = hashlib.sha256(raw.encode()).hexdigest()[:16]
    return f"analysis:{digest}"


def get_cached(key: str) -> Optional[dict]:
    client = get_client()
    if client is None:
        return None
    try:
        raw = client.get(key)
        return json.loads(raw) if raw else None
    except (redis.RedisError, ValueError) as exc:
        logger.warning("Cache read error: %s", exc)
        return None


def set_cached(key: str, data: dict, ttl: int = CACHE_TTL) -> None:
    client = get_client()
    if client is None:
        return
    try:
        client.setex(key, ttl, json.dumps(data))
    except redis.RedisError as exc:
        logger.warning("Cache write error: %s", exc)


def is_cache_healthy() -> bool:
    client = get_client()
    if client is None:
        return False
    try:
        client.ping()
        return True
    except redis.RedisError:
        return False
