"""Shared test fixtures for the vendor onboarding bot test suite."""

import asyncio

import pytest

from app.domain.services.vendor_directory import InMemoryVendorDirectory
from app.infrastructure.cache.session_store import InMemorySessionStore


@pytest.fixture(scope="session")
def event_loop():
    """Use a single event loop for the entire test session."""
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def directory() -> InMemoryVendorDirectory:
    return InMemoryVendorDirectory()
