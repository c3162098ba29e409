# app/api/routes/whatsapp.py

import logging
from typing import Any, Iterator, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from app.api.deps import get_dialogue
from app.config.settings import settings
from app.domain.models.vendor_session import InboundMessage, MediaKind, Step
from app.domain.services.onboarding_dialogue import OnboardingDialogue
from app.domain.services.vendor_identity import normalize_identity, store_url_for
from app.infrastructure.external.whatsapp_api import WhatsAppSendError, send_whatsapp_text
from app.infrastructure.queue.whatsapp_queue import enqueue_whatsapp_message

logger = logging.getLogger("api.whatsapp")

router = APIRouter(prefix="/whatsapp")


class DemoMessage(BaseModel):
    phone: str
    message: str = ""
    media_kind: MediaKind = MediaKind.TEXT
    media_payload: Optional[dict] = None


# ---------------------------------------------------------------------------
# Cloud API payload helpers
# ---------------------------------------------------------------------------

def iter_messages(body: dict) -> Iterator[dict]:
    """Yield every message object in a Cloud API webhook body."""
    for entry in body.get("entry") or []:
        for change in entry.get("changes") or []:
            value = change.get("value") or {}
            for message in value.get("messages") or []:
                yield message


def parse_inbound(message: dict) -> InboundMessage | None:
    """Map one Cloud API message onto an InboundMessage; None for unsupported types."""
    identity = normalize_identity(message.get("from", ""))
    if not identity:
        return None

    mtype = message.get("type")
    if mtype == "text":
        return InboundMessage(identity=identity, text=(message.get("text") or {}).get("body", ""))

    if mtype == "interactive":
        interactive = message.get("interactive") or {}
        reply = interactive.get("button_reply") or interactive.get("list_reply") or {}
        return InboundMessage(identity=identity, text=reply.get("title", ""))

    if mtype == "image":
        image = message.get("image") or {}
        caption = image.get("caption", "")
        return InboundMessage(
            identity=identity,
            text=caption,
            media_kind=MediaKind.IMAGE,
            media_payload={"media_id": image.get("id"), "mime_type": image.get("mime_type"), "caption": caption},
        )

    if mtype in ("audio", "voice"):
        audio = message.get(mtype) or {}
        return InboundMessage(
            identity=identity,
            media_kind=MediaKind.VOICE,
            media_payload={"media_id": audio.get("id"), "mime_type": audio.get("mime_type")},
        )

    return None


async def deliver_reply(identity: str, reply: str) -> None:
    if settings.REPLY_VIA_QUEUE and await enqueue_whatsapp_message(identity, reply):
        return
    try:
        await send_whatsapp_text(identity, reply)
    except WhatsAppSendError as exc:
        # Meta must still get a 200, or it redelivers the inbound message
        logger.error("reply to %s not delivered: %s", identity, exc)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.get("/webhook", response_class=PlainTextResponse)
async def verify(
    hub_mode: str = Query(None, alias="hub.mode"),
    hub_challenge: str = Query(None, alias="hub.challenge"),
    hub_verify_token: str = Query(None, alias="hub.verify_token"),
):
    if (
        hub_mode == "subscribe"
        and settings.WHATSAPP_VERIFY_TOKEN
        and hub_verify_token == settings.WHATSAPP_VERIFY_TOKEN
    ):
        logger.info("WhatsApp webhook verified")
        return PlainTextResponse(hub_challenge or "")
    logger.warning("WhatsApp webhook verification failed")
    return PlainTextResponse("Verification failed", status_code=403)


@router.post("/webhook")
async def webhook(request: Request, dialogue: OnboardingDialogue = Depends(get_dialogue)):
    body = await request.json()

    for message in iter_messages(body):
        inbound = parse_inbound(message)
        if inbound is None:
            logger.info("ignoring unsupported WhatsApp message type %r", message.get("type"))
            continue
        try:
            reply = await dialogue.handle_message(inbound)
        except Exception:
            logger.exception("dialogue failed for %s", inbound.identity)
            continue
        await deliver_reply(inbound.identity, reply)

    return {"status": "ok"}


@router.post("/demo/send")
async def demo_send(body: DemoMessage, dialogue: OnboardingDialogue = Depends(get_dialogue)) -> dict[str, Any]:
    """Run one message through the dialogue and return the reply instead of sending it."""
    identity = normalize_identity(body.phone)
    if not identity:
        raise HTTPException(status_code=400, detail="Phone and message required")
    if body.media_kind == MediaKind.TEXT and not body.message.strip():
        raise HTTPException(status_code=400, detail="Phone and message required")

    reply = await dialogue.handle_message(
        InboundMessage(
            identity=identity,
            text=body.message,
            media_kind=body.media_kind,
            media_payload=body.media_payload,
        )
    )
    session = await dialogue.store.get(identity)
    step = session.step if session else Step.WELCOME
    vendor_ref = session.external_vendor_ref if session else None

    return {
        "success": True,
        "phone": identity,
        "reply": reply,
        "step": step.value,
        "vendor_ref": vendor_ref,
        "store_url": store_url_for(vendor_ref, identity) if vendor_ref else None,
    }


@router.get("/status/{phone}")
async def onboarding_status(phone: str, dialogue: OnboardingDialogue = Depends(get_dialogue)) -> dict[str, Any]:
    identity = normalize_identity(phone)
    session = await dialogue.store.get(identity) if identity else None

    if session is None or not session.is_onboarded:
        return {
            "onboarded": False,
            "step": session.step.value if session else Step.WELCOME.value,
            "message": 'Vendor not found. Send "Hi" to start onboarding.',
        }

    return {
        "onboarded": True,
        "step": session.step.value,
        "vendor": {
            "id": session.external_vendor_ref,
            "name": session.draft.name,
            "products": len(session.draft.products),
            "storeUrl": store_url_for(session.external_vendor_ref, identity),
        },
    }
