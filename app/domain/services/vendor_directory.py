# app/domain/services/vendor_directory.py
"""
Contract with the marketplace that owns vendor and product records.

The dialogue only ever talks to a ``VendorDirectory``. Production wires in
``VendorApiClient`` (REST over httpx); local runs and tests use
``InMemoryVendorDirectory`` below.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional, Protocol

from pydantic import BaseModel, Field

from app.domain.exceptions import DuplicateIdentityError, PermanentPersistenceError
from app.domain.models.vendor_session import Category, DraftProfile, ProductDraft
from app.domain.services.vendor_identity import normalize_identity

logger = logging.getLogger("vendor_directory")


class VendorProfile(BaseModel):
    """A vendor as the marketplace knows it."""

    ref: str
    identity: str
    name: str
    category: Optional[Category] = None
    location_text: Optional[str] = None
    products: list[ProductDraft] = Field(default_factory=list)

    def to_draft(self) -> DraftProfile:
        return DraftProfile(
            name=self.name,
            category=self.category,
            location_text=self.location_text,
            products=[p.model_copy() for p in self.products],
        )


class VendorDirectory(Protocol):
    async def find_by_identity(self, identity: str) -> VendorProfile | None:
        ...

    async def create(self, identity: str, draft: DraftProfile) -> VendorProfile:
        """Raises DuplicateIdentityError when the identity is already enrolled."""
        ...

    async def update_fields(self, ref: str, *, name: str) -> None:
        ...

    async def replace_products(self, ref: str, products: list[ProductDraft]) -> None:
        ...

    async def delete(self, ref: str) -> None:
        ...


class InMemoryVendorDirectory:
    """Process-local directory with the same identity rules as the marketplace."""

    def __init__(self):
        self._vendors: dict[str, VendorProfile] = {}
        self.calls: list[tuple[str, str]] = []

    async def find_by_identity(self, identity: str) -> VendorProfile | None:
        self.calls.append(("find_by_identity", identity))
        identity = normalize_identity(identity)
        for vendor in self._vendors.values():
            if vendor.identity == identity:
                return vendor.model_copy(deep=True)
        return None

    async def create(self, identity: str, draft: DraftProfile) -> VendorProfile:
        self.calls.append(("create", identity))
        identity = normalize_identity(identity)
        for vendor in self._vendors.values():
            if vendor.identity == identity:
                raise DuplicateIdentityError("Phone number already registered", existing_ref=vendor.ref)

        vendor = VendorProfile(
            ref=uuid.uuid4().hex[:24],
            identity=identity,
            name=draft.name or "",
            category=draft.category,
            location_text=draft.location_text,
            products=[p.model_copy() for p in draft.products],
        )
        self._vendors[vendor.ref] = vendor
        logger.info("vendor created ref=%s identity=%s products=%d", vendor.ref, identity, len(vendor.products))
        return vendor.model_copy(deep=True)

    async def update_fields(self, ref: str, *, name: str) -> None:
        self.calls.append(("update_fields", ref))
        self._get(ref).name = name

    async def replace_products(self, ref: str, products: list[ProductDraft]) -> None:
        self.calls.append(("replace_products", ref))
        self._get(ref).products = [p.model_copy() for p in products]

    async def delete(self, ref: str) -> None:
        self.calls.append(("delete", ref))
        self._get(ref)
        del self._vendors[ref]
        logger.info("vendor deleted ref=%s", ref)

    def _get(self, ref: str) -> VendorProfile:
        try:
            return self._vendors[ref]
        except KeyError:
            raise PermanentPersistenceError("Vendor not found", status_code=404) from None

    def __len__(self) -> int:
        return len(self._vendors)
