# app/infrastructure/queue/whatsapp_jobs.py

import json
from datetime import datetime, timezone

from arq.connections import ArqRedis
from loguru import logger

from app.infrastructure.external.whatsapp_api import WhatsAppSendError, send_whatsapp_text

MAX_WHATSAPP_RETRIES = 3
DEAD_LETTER_KEY = "wa:dead_letter"


async def send_whatsapp_job(
    ctx: dict, to_number: str, text: str, attempt: int = 1
) -> None:
    """
    Arq job: send a WhatsApp reply with retries and dead-letter logging.
    Executed by the arq worker, never by FastAPI directly.
    """
    logger.info(
        "Arq job send_whatsapp_job: to={} attempt={} text={!r}",
        to_number,
        attempt,
        text[:120],
    )

    try:
        await send_whatsapp_text(to_number, text)
        return
    except WhatsAppSendError as e:
        error_message = str(e)
        # 4xx other than rate limiting will not get better with retries
        retryable = e.status_code == 0 or e.status_code == 429 or e.status_code >= 500
        logger.warning(
            "WhatsApp send failed to {} on attempt {}: {}",
            to_number,
            attempt,
            error_message,
        )

    redis: ArqRedis = ctx["redis"]
    if retryable and attempt < MAX_WHATSAPP_RETRIES:
        await redis.enqueue_job(
            "send_whatsapp_job",
            to_number,
            text,
            attempt + 1,
            _defer_by=2 ** attempt,
        )
        logger.info("Re-enqueued WhatsApp message for {} attempt {}", to_number, attempt + 1)
        return

    await _write_dead_letter(
        redis,
        to_number=to_number,
        text=text,
        failure_reason="max_retries_exceeded" if retryable else "rejected",
        last_error=error_message,
        retry_count=attempt,
    )
    logger.error(
        "Message moved to dead-letter after {} attempts for {}",
        attempt,
        to_number,
    )


async def _write_dead_letter(
    redis: ArqRedis,
    to_number: str,
    text: str,
    failure_reason: str,
    last_error: str | None,
    retry_count: int,
) -> None:
    entry = {
        "to_number": to_number,
        "text": text,
        "failure_reason": failure_reason,
        "last_error": last_error,
        "retry_count": retry_count,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }
    await redis.rpush(DEAD_LETTER_KEY, json.dumps(entry))
