# app/domain/exceptions.py
"""
Errors raised across the onboarding engine.

Persistence errors come from the vendor directory (marketplace API or the
in-memory stand-in). The dialogue turns them into plain-language replies and
leaves the stored session untouched, so the participant can simply resend.
"""

from __future__ import annotations


class PersistenceError(Exception):
    """Base class for vendor directory failures."""


class TransientPersistenceError(PersistenceError):
    """Directory unreachable, timed out or answered 5xx. Safe to retry."""


class PermanentPersistenceError(PersistenceError):
    """Directory rejected the request (validation, not found, ...)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class DuplicateIdentityError(PermanentPersistenceError):
    """A vendor is already registered for this phone identity."""

    def __init__(self, message: str, existing_ref: str | None = None):
        super().__init__(message, status_code=400)
        self.existing_ref = existing_ref


class SessionInvariantError(Exception):
    """A session reached a state the transition table cannot produce."""
