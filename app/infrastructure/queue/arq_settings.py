# app/infrastructure/queue/arq_settings.py

from arq.connections import RedisSettings
from loguru import logger

from app.config.settings import settings
from app.core.logging_config import setup_logging
from app.infrastructure.queue.whatsapp_jobs import MAX_WHATSAPP_RETRIES, send_whatsapp_job


class WorkerSettings:
    """
    Outbound reply worker, used when REPLY_VIA_QUEUE is on:
        arq app.infrastructure.queue.arq_settings.WorkerSettings
    """

    redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)

    functions = [send_whatsapp_job]

    max_jobs = 100
    # one Cloud API call with a 10s client timeout
    job_timeout = 30
    # send_whatsapp_job re-enqueues itself; arq must not retry on top of that
    max_tries = 1
    keep_result = 0

    @staticmethod
    async def on_startup(ctx):
        setup_logging()
        logger.info(
            "ARQ reply worker starting (redis={}, max send attempts={})",
            settings.REDIS_URL,
            MAX_WHATSAPP_RETRIES,
        )

    @staticmethod
    async def on_shutdown(ctx):
        logger.info("ARQ reply worker shutting down")
