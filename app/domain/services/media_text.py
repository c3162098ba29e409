# app/domain/services/media_text.py

import logging
from dataclasses import dataclass

from app.domain.models.vendor_session import InboundMessage, MediaKind

logger = logging.getLogger("media_text")


@dataclass
class MediaResult:
    text: str = ""
    error: str | None = None


async def media_to_text(message: InboundMessage) -> MediaResult:
    """
    Turn an image or voice note into text for the product pipeline.

    No OCR or speech-to-text is wired in: an image contributes its caption,
    a voice note contributes a transcript when the transport supplied one
    (``media_payload["transcript"]``). Either may fall back to ``message.text``.
    """
    payload = message.media_payload or {}

    if message.media_kind == MediaKind.IMAGE:
        text = payload.get("caption") or message.text
    elif message.media_kind == MediaKind.VOICE:
        text = payload.get("transcript") or message.text
    else:
        text = message.text

    text = (text or "").strip()
    if not text:
        logger.info("no text recoverable from %s media for %s", message.media_kind.value, message.identity)
        return MediaResult(error="no_text")
    return MediaResult(text=text)
