# app/infrastructure/external/whatsapp_api.py

import httpx
from loguru import logger

from app.config.settings import settings

WHATSAPP_API_BASE = "https://graph.facebook.com/v20.0"


class WhatsAppSendError(Exception):
    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code


async def send_whatsapp_text(
    to_number: str,
    text: str,
    transport: httpx.AsyncBaseTransport | None = None,
) -> None:
    """
    Send one text reply through the WhatsApp Cloud API.

    Called directly from the webhook, or from the arq worker when replies
    are queued (REPLY_VIA_QUEUE). Raises WhatsAppSendError on any failure so
    the worker can retry.
    """
    if not settings.WHATSAPP_PHONE_NUMBER_ID or not settings.WHATSAPP_ACCESS_TOKEN:
        raise WhatsAppSendError("WhatsApp credentials are not configured")

    url = f"{WHATSAPP_API_BASE}/{settings.WHATSAPP_PHONE_NUMBER_ID}/messages"
    headers = {
        "Authorization": f"Bearer {settings.WHATSAPP_ACCESS_TOKEN}",
        "Content-Type": "application/json",
    }
    payload = {
        "messaging_product": "whatsapp",
        "to": to_number,
        "type": "text",
        "text": {"body": text},
    }

    logger.info("WA HTTP → Sending message to {}: {!r}", to_number, text[:120])

    try:
        async with httpx.AsyncClient(timeout=10, transport=transport) as client:
            resp = await client.post(url, json=payload, headers=headers)
    except httpx.HTTPError as exc:
        logger.error("WA HTTP transport error for {}: {}", to_number, exc)
        raise WhatsAppSendError(f"transport error: {exc}") from exc

    if resp.status_code >= 400:
        logger.error("WA HTTP error {}: {}", resp.status_code, resp.text)
        raise WhatsAppSendError(f"WhatsApp API error {resp.status_code}", resp.status_code)

    logger.success("WA HTTP → Message sent successfully to {}", to_number)
