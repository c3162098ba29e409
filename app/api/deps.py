# app/api/deps.py
"""
Shared FastAPI dependencies.

One session store and one dialogue per process. Tests swap them through
``app.dependency_overrides`` or ``reset_dependencies()``.
"""

import logging

from app.domain.services.onboarding_dialogue import OnboardingDialogue
from app.infrastructure.cache.session_store import SessionStore, build_session_store
from app.infrastructure.external.vendor_api_client import build_vendor_directory

logger = logging.getLogger("api.deps")

_session_store: SessionStore | None = None
_dialogue: OnboardingDialogue | None = None


def get_session_store() -> SessionStore:
    global _session_store
    if _session_store is None:
        _session_store = build_session_store()
    return _session_store


def get_dialogue() -> OnboardingDialogue:
    global _dialogue
    if _dialogue is None:
        _dialogue = OnboardingDialogue(get_session_store(), build_vendor_directory())
        logger.info("onboarding dialogue ready")
    return _dialogue


def reset_dependencies() -> None:
    global _session_store, _dialogue
    _session_store = None
    _dialogue = None
