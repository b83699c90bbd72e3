"""Redis-backed leaky-bucket rate limiter for admin endpoints.

Each admin (or, without a token, each client IP) owns one bucket of up to
``RATE_LIMIT_ADMIN_BURST`` tokens that refills at ``RATE_LIMIT_ADMIN_RPM / 60``
tokens per second. Every admin request spends a token; with the bucket empty
the request gets 429 and a ``Retry-After`` header.

Applied per router in ``app.main``:

```python
app.include_router(admin_router, dependencies=[Depends(require_admin_rate_limit)])
```
"""

import logging
import math
import time

import redis
from fastapi import HTTPException, Request, status

from app.config import settings
from app.core.security import decode_access_token

logger = logging.getLogger(__name__)

_pool: redis.ConnectionPool | None = None

# KEYS[1] = bucket key
# ARGV[1] = capacity, ARGV[2] = refill per second, ARGV[3] = now (float seconds)
# Returns 0 when a token was taken, else milliseconds until the next token.
_LUA_SCRIPT = """
local capacity = tonumber(ARGV[1])
local rate     = tonumber(ARGV[2])
local now      = tonumber(ARGV[3])

local state  = redis.call('HMGET', KEYS[1], 'level', 'ts')
local level  = tonumber(state[1]) or capacity
local ts     = tonumber(state[2]) or now

level = math.min(capacity, level + math.max(0, now - ts) * rate)

local wait_ms = 0
if level >= 1 then
    level = level - 1
else
    wait_ms = math.ceil((1 - level) / rate * 1000)
end

redis.call('HSET', KEYS[1], 'level', level, 'ts', now)
redis.call('EXPIRE', KEYS[1], math.ceil(capacity / rate) + 60)
return wait_ms
"""


def _get_redis() -> redis.Redis:
    global _pool
    if _pool is None:
        _pool = redis.ConnectionPool.from_url(
            settings.redis_url,
            decode_responses=True,
            max_connections=10,
            socket_connect_timeout=0.5,
        )
    return redis.Redis(connection_pool=_pool)


def _client_key(request: Request) -> str:
    """Bucket per admin (JWT subject), falling back to the client IP."""
    auth = request.headers.get("authorization", "")
    if auth.lower().startswith("bearer "):
        payload = decode_access_token(auth[7:])
        if payload and payload.get("sub"):
            return f"rl:admin:u:{payload['sub']}"
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return f"rl:admin:ip:{forwarded.split(',')[0].strip()}"
    return f"rl:admin:ip:{request.client.host if request.client else 'unknown'}"


def _wait_seconds(bucket_key: str) -> int:
    """Seconds the caller must wait; 0 means the request may proceed."""
    rpm = settings.RATE_LIMIT_ADMIN_RPM
    if rpm <= 0:
        return 0

    try:
        wait_ms = _get_redis().eval(
            _LUA_SCRIPT, 1, bucket_key, settings.RATE_LIMIT_ADMIN_BURST, rpm / 60.0, time.time()
        )
    except redis.RedisError as e:
        # Fail open: admin tooling keeps working while Redis is down
        logger.warning("Rate-limiter Redis error (allowing request): %s", e)
        return 0
    return math.ceil(int(wait_ms) / 1000)


async def require_admin_rate_limit(request: Request) -> None:
    """FastAPI dependency: 429 once the caller's admin bucket is empty."""
    key = _client_key(request)
    wait = _wait_seconds(key)
    if wait:
        logger.info("Rate-limited: %s %s (retry in %ds)", key, request.url.path, wait)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many admin requests, please slow down.",
            headers={"Retry-After": str(wait)},
        )
