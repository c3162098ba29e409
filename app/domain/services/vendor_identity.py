# app/domain/services/vendor_identity.py
"""
Implicit vendor identity: the WhatsApp phone number *is* the vendor key.

There is no password; whoever writes from a number owns the shop bound to it.
"""

from __future__ import annotations

import re

from app.config.settings import settings

_NON_DIGIT_RE = re.compile(r"\D")


def normalize_identity(phone: str) -> str:
    """Strip everything but digits: ``+91 98765-43210`` -> ``919876543210``."""
    return _NON_DIGIT_RE.sub("", phone or "")


def upi_id_for(identity: str) -> str:
    """Default UPI handle offered to a new shop (last 10 digits @paytm)."""
    digits = normalize_identity(identity)
    return f"{digits[-10:]}@paytm"


def store_url_for(vendor_ref: str | None, identity: str) -> str:
    """Public store link; falls back to a phone-derived demo id before binding."""
    store_id = vendor_ref or f"demo_{normalize_identity(identity)[-10:]}"
    return f"{settings.STORE_BASE_URL.rstrip('/')}/{store_id}"
