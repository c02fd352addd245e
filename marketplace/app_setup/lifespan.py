"""
Lifespan FastAPI: initialisation/arrêt des ressources partagées.
- Ouvre la connexion Redis (redis.asyncio) partagée par FastAPILimiter et le cache des régions.
- Variables d’environnement supportées:
  - DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS=1: désactive complètement (tests)
  - USE_FAKE_REDIS_FOR_TESTS=1: utilise fakeredis (tests)
  - LOCAL_RATE_LIMIT_FALLBACK=1: active un fallback local si l’init échoue
"""
import os
import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from fastapi import FastAPI
from fastapi_limiter import FastAPILimiter

try:
    from fakeredis import FakeAsyncRedis  # tests only
except ImportError:
    FakeAsyncRedis = None

def _open_redis():
    if os.getenv("USE_FAKE_REDIS_FOR_TESTS") == "1":
        if not FakeAsyncRedis:
            raise RuntimeError("USE_FAKE_REDIS_FOR_TESTS=1 mais fakeredis n'est pas installé.")
        return FakeAsyncRedis(decode_responses=True)
    redis_url = os.getenv("RATE_LIMIT_REDIS_URL", "redis://127.0.0.1:6379/0")
    return aioredis.from_url(redis_url, encoding="utf-8", decode_responses=True)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Configure le rate limiting et le cache Redis, avec fallbacks.
    - Redis indisponible: pas de cache de région, rate limiting désactivé (ou mémoire locale).
    - Les logs indiquent l’état effectif (enabled/disabled).
    """
    logger = logging.getLogger("uvicorn.error")
    app.state.redis = None
    if os.getenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS") == "1":
        app.state.rate_limit_enabled = False
        logger.info("Rate limiting disabled by DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS")
        yield
        return

    try:
        r = _open_redis()
        await FastAPILimiter.init(r)
        app.state.redis = r
        app.state.rate_limit_enabled = True
        logger.info("Rate limiting enabled")
    except Exception as e:
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            app.state.rate_limit_enabled = True
            logger.warning("Rate limiting falling back to local in-memory due to init error: %s", e)
        else:
            app.state.rate_limit_enabled = False
            logger.warning("Rate limiting disabled due to init error: %s", e)

    yield

    if app.state.redis is not None:
        try:
            await FastAPILimiter.close()
        except Exception as e:
            logger.warning("Redis close failed: %s", e)
        app.state.redis = None
