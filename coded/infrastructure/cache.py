import json
from typing import Any, Callable, Optional

import redis
import structlog

from ..config import settings
from .metrics import cache_errors_total, cache_hits_total, cache_misses_total

logger = structlog.get_logger(__name__)

_redis_client: Optional[redis.Redis] = None


def get_redis() -> redis.Redis:
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True
        )
    return _redis_client


def _unavailable(op: str, target: str, error: Exception) -> None:
    # Redis недоступен: работаем напрямую с БД
    cache_errors_total.labels(op=op).inc()
    logger.warning("cache_unavailable", op=op, key=target, error=str(error))


def get_cache(key: str) -> Optional[Any]:
    """Значение из кэша или None"""
    if not settings.CACHE_ENABLED:
        return None
    try:
        raw = get_redis().get(key)
    except Exception as e:
        _unavailable("get", key, e)
        return None
    return json.loads(raw) if raw is not None else None


def set_cache(key: str, value: Any, ttl: Optional[int] = None) -> bool:
    if not settings.CACHE_ENABLED:
        return False
    try:
        get_redis().setex(key, ttl or settings.CACHE_TTL, json.dumps(value, ensure_ascii=False))
    except Exception as e:
        _unavailable("set", key, e)
        return False
    return True


def delete_cache_pattern(pattern: str) -> int:
    """Удалить все ключи по паттерну, вернуть число удалённых"""
    if not settings.CACHE_ENABLED:
        return 0
    try:
        client = get_redis()
        keys = list(client.scan_iter(match=pattern))
        return client.delete(*keys) if keys else 0
    except Exception as e:
        _unavailable("delete", pattern, e)
        return 0


def cached_json(key: str, load: Callable[[], Any], ttl: Optional[int] = None) -> Any:
    """Read-through: при промахе вызывает load() и кладёт JSON-результат в кэш.

    Пустой список тоже валидное значение кэша, промах это только None.
    """
    value = get_cache(key)
    if value is not None:
        cache_hits_total.inc()
        return value
    cache_misses_total.inc()
    value = load()
    set_cache(key, value, ttl)
    return value
