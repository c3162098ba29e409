# app/infrastructure/cache/session_store.py
"""
Per-identity session storage with mutual exclusion.

Two backends share one interface:

* ``InMemorySessionStore``: a dict plus one ``asyncio.Lock`` per identity.
  Good for a single process, local runs and tests.
* ``RedisSessionStore``: JSON under ``wa:session:<identity>`` and a Redis lock
  under ``wa:lock:<identity>`` so several API workers serialise per vendor.

Callers hold ``locked(identity)`` around the whole read-decide-write cycle.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict

import redis.asyncio as redis
from pydantic import ValidationError

from app.config.settings import settings
from app.domain.models.vendor_session import SESSION_VERSION, VendorSession

logger = logging.getLogger("session_store")


def _migrate_session(data: Dict[str, Any]) -> Dict[str, Any]:
    """Bring an older stored payload up to SESSION_VERSION in place."""
    if data.get("version", 1) >= SESSION_VERSION:
        return data
    data["version"] = SESSION_VERSION
    data.setdefault("last_active_ts", time.time())
    return data


def _is_expired(session: VendorSession, ttl_seconds: int) -> bool:
    if ttl_seconds <= 0:
        return False
    return (time.time() - session.last_active_ts) > ttl_seconds


class SessionStore(ABC):
    """Lookup-or-create, save and clear sessions keyed by phone identity."""

    def __init__(self, ttl_seconds: int = 0):
        self.ttl_seconds = ttl_seconds

    @abstractmethod
    async def get(self, identity: str) -> VendorSession | None:
        ...

    @abstractmethod
    async def save(self, session: VendorSession) -> None:
        ...

    @abstractmethod
    async def clear(self, identity: str) -> None:
        ...

    @abstractmethod
    def locked(self, identity: str):
        """Async context manager serialising work on one identity."""

    async def get_or_create(self, identity: str) -> VendorSession:
        session = await self.get(identity)
        if session is None:
            logger.info("new session for %s", identity)
            session = VendorSession(identity=identity)
        return session


class InMemorySessionStore(SessionStore):
    def __init__(self, ttl_seconds: int = 0):
        super().__init__(ttl_seconds)
        self._sessions: Dict[str, str] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    async def get(self, identity: str) -> VendorSession | None:
        raw = self._sessions.get(identity)
        if raw is None:
            return None
        session = VendorSession.model_validate_json(raw)
        if _is_expired(session, self.ttl_seconds):
            self._sessions.pop(identity, None)
            return None
        return session

    async def save(self, session: VendorSession) -> None:
        # Stored serialised so callers never share a live object with the store
        self._sessions[session.identity] = session.model_dump_json()

    async def clear(self, identity: str) -> None:
        self._sessions.pop(identity, None)

    @asynccontextmanager
    async def locked(self, identity: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(identity, asyncio.Lock())
        self._lock_users[identity] = self._lock_users.get(identity, 0) + 1
        try:
            async with lock:
                yield
        finally:
            # Forget the lock once nobody holds or waits on it
            self._lock_users[identity] -= 1
            if not self._lock_users[identity]:
                del self._lock_users[identity]
                del self._locks[identity]

    def __len__(self) -> int:
        return len(self._sessions)


class RedisSessionStore(SessionStore):
    def __init__(
        self,
        redis_url: str | None = None,
        ttl_seconds: int = 0,
        lock_timeout: int = 30,
        client: redis.Redis | None = None,
    ):
        super().__init__(ttl_seconds)
        if client is None:
            if not redis_url:
                raise RuntimeError("REDIS_URL is not set")
            client = redis.from_url(redis_url, decode_responses=True)
        self._r = client
        self.lock_timeout = lock_timeout

    def _key(self, identity: str) -> str:
        return f"wa:session:{identity}"

    def _lock_key(self, identity: str) -> str:
        return f"wa:lock:{identity}"

    async def get(self, identity: str) -> VendorSession | None:
        raw = await self._r.get(self._key(identity))
        if not raw:
            return None
        try:
            data = _migrate_session(json.loads(raw))
            return VendorSession.model_validate(data)
        except (ValueError, ValidationError):
            logger.warning("unreadable session for %s, starting fresh", identity, exc_info=True)
            return None

    async def save(self, session: VendorSession) -> None:
        await self._r.set(
            self._key(session.identity),
            session.model_dump_json(),
            ex=self.ttl_seconds or None,
        )

    async def clear(self, identity: str) -> None:
        await self._r.delete(self._key(identity))

    @asynccontextmanager
    async def locked(self, identity: str) -> AsyncIterator[None]:
        lock = self._r.lock(
            self._lock_key(identity),
            timeout=self.lock_timeout,
            blocking_timeout=self.lock_timeout,
        )
        async with lock:
            yield


def build_session_store() -> SessionStore:
    backend = settings.SESSION_BACKEND.lower()
    if backend == "redis":
        logger.info("session store: redis")
        return RedisSessionStore(
            settings.REDIS_URL,
            ttl_seconds=settings.SESSION_TTL_SECONDS,
            lock_timeout=settings.SESSION_LOCK_TIMEOUT_SECONDS,
        )
    logger.info("session store: memory")
    return InMemorySessionStore(ttl_seconds=settings.SESSION_TTL_SECONDS)
