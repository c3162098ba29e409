# app/infrastructure/queue/whatsapp_queue.py

from arq.connections import ArqRedis, RedisSettings, create_pool
from loguru import logger

from app.config.settings import settings

SEND_JOB_NAME = "send_whatsapp_job"

_redis_pool: ArqRedis | None = None


async def get_redis_pool() -> ArqRedis:
    """Create (once) and return the arq Redis pool."""
    global _redis_pool
    if _redis_pool is None:
        logger.info("Creating ARQ Redis pool: {}", settings.REDIS_URL)
        _redis_pool = await create_pool(RedisSettings.from_dsn(settings.REDIS_URL))
        logger.success("ARQ Redis pool ready")
    return _redis_pool


async def enqueue_whatsapp_message(to_number: str, text: str) -> bool:
    """
    Hand a reply to the worker. Returns False when the queue is unreachable,
    so the caller can fall back to sending inline.
    """
    try:
        redis = await get_redis_pool()
        await redis.enqueue_job(SEND_JOB_NAME, to_number, text)
    except Exception as e:
        logger.exception("ARQ enqueue failed for {}: {}", to_number, e)
        return False

    logger.info("ARQ → Enqueued WA message to {}", to_number)
    return True
