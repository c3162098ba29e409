# app/infrastructure/external/vendor_api_client.py
"""
Marketplace vendor REST API client.

Endpoints used:
  GET    /api/vendors?phone=<digits>       -> {"vendors": [...]}
  POST   /api/vendors                      -> 201 vendor document
                                              400 {"error": "Phone number already registered", "vendorId": ...}
  PUT    /api/vendors/{id}                 -> updated vendor document
  PUT    /api/vendors/{id}/products/bulk   -> {"message": ..., "productCount": n}
  DELETE /api/vendors/{id}                 -> {"message": ..., "vendorName": ...}

Failures are mapped onto the persistence error hierarchy:
  network error, timeout, 5xx  -> TransientPersistenceError
  "already registered"         -> DuplicateIdentityError
  any other 4xx                -> PermanentPersistenceError
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from app.config.settings import settings
from app.domain.exceptions import (
    DuplicateIdentityError,
    PermanentPersistenceError,
    TransientPersistenceError,
)
from app.domain.models.vendor_session import Category, DraftProfile, ProductDraft
from app.domain.services.vendor_directory import InMemoryVendorDirectory, VendorDirectory, VendorProfile
from app.domain.services.vendor_identity import normalize_identity, upi_id_for

logger = logging.getLogger("vendor_api_client")


def _product_payload(products: list[ProductDraft], category: Category | None) -> list[Dict[str, Any]]:
    return [
        {
            "name": p.name,
            "price": p.price,
            "description": p.description or p.name,
            "available": True,
            **({"category": category.value} if category else {}),
        }
        for p in products
    ]


def build_create_payload(identity: str, draft: DraftProfile) -> Dict[str, Any]:
    """Vendor document for POST /api/vendors."""
    phone = normalize_identity(identity)
    category = draft.category
    return {
        "name": draft.name,
        "businessName": draft.name,
        "phone": phone,
        "category": category.value if category else None,
        "location": {
            "type": "Point",
            # GeoJSON order: [longitude, latitude]
            "coordinates": [settings.DEFAULT_LONGITUDE, settings.DEFAULT_LATITUDE],
            "address": {"street": draft.location_text or "Location via WhatsApp"},
        },
        "products": _product_payload(draft.products, category),
        "isCurrentlyOpen": True,
        "status": "active",
        "onboardingSource": "whatsapp",
        "createdVia": "whatsapp",
        "paymentMethods": {
            "cash": True,
            "upi": True,
            "upiId": upi_id_for(phone),
        },
    }


def parse_vendor(doc: Dict[str, Any], identity: str | None = None) -> VendorProfile:
    """Map a marketplace vendor document onto a VendorProfile."""
    location = doc.get("location")
    if isinstance(location, dict):
        location_text = (location.get("address") or {}).get("street")
    else:
        # demo records carry a plain string
        location_text = location

    category: Optional[Category] = None
    try:
        category = Category(doc.get("category"))
    except ValueError:
        pass

    products = []
    for raw in doc.get("products") or []:
        try:
            products.append(
                ProductDraft(
                    name=raw["name"],
                    price=int(round(float(raw["price"]))),
                    description=raw.get("description") or "",
                )
            )
        except (KeyError, TypeError, ValueError):
            logger.warning("skipping unreadable product on vendor %s: %r", doc.get("_id"), raw)

    return VendorProfile(
        ref=str(doc.get("_id") or doc.get("id")),
        identity=normalize_identity(doc.get("phone") or identity or ""),
        name=doc.get("name") or doc.get("businessName") or "",
        category=category,
        location_text=location_text,
        products=products,
    )


class VendorApiClient:
    """VendorDirectory backed by the marketplace REST API."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base = (base_url or settings.VENDOR_API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.VENDOR_API_TIMEOUT_SECONDS
        self._transport = transport

    async def _request(
        self,
        method: str,
        path: str,
        params: Dict[str, str] | None = None,
        json_body: dict | None = None,
    ) -> Dict[str, Any]:
        url = f"{self.base}{path}"
        logger.info("Vendor API %s %s", method, path)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                r = await client.request(method, url, params=params, json=json_body)
            except httpx.TimeoutException as exc:
                logger.error("Vendor API timeout: %s %s", method, path)
                raise TransientPersistenceError("vendor API timeout") from exc
            except httpx.TransportError as exc:
                logger.error("Vendor API unreachable: %s %s (%s)", method, path, exc)
                raise TransientPersistenceError("vendor API unreachable") from exc

        if r.status_code >= 400:
            body: Dict[str, Any] = {}
            try:
                body = r.json()
            except ValueError:
                pass
            logger.error("Vendor API HTTP error: %s %s -> %d %s", method, path, r.status_code, body)
            self._raise_for(r.status_code, body)

        if not r.text.strip():
            return {}
        try:
            return r.json()
        except ValueError:
            logger.warning("Vendor API non-JSON body: %s %s (status=%d)", method, path, r.status_code)
            return {}

    @staticmethod
    def _raise_for(status_code: int, body: Dict[str, Any]) -> None:
        message = str(body.get("error") or body.get("message") or f"HTTP {status_code}")
        if status_code >= 500:
            raise TransientPersistenceError(f"vendor API error {status_code}")
        if status_code in (400, 409) and "already registered" in message.lower():
            existing = body.get("vendorId")
            raise DuplicateIdentityError(message, existing_ref=str(existing) if existing else None)
        raise PermanentPersistenceError(message, status_code=status_code)

    # ----------------------------------------------------------------
    # VendorDirectory
    # ----------------------------------------------------------------

    async def find_by_identity(self, identity: str) -> VendorProfile | None:
        phone = normalize_identity(identity)
        data = await self._request("GET", "/api/vendors", params={"phone": phone})
        for doc in data.get("vendors") or []:
            # the listing endpoint may ignore the filter; match on phone ourselves
            if normalize_identity(str(doc.get("phone", ""))) == phone:
                return parse_vendor(doc, phone)
        return None

    async def create(self, identity: str, draft: DraftProfile) -> VendorProfile:
        payload = build_create_payload(identity, draft)
        doc = await self._request("POST", "/api/vendors", json_body=payload)
        vendor = parse_vendor(doc, identity)
        logger.info("Vendor created: %s (%s), %d products", vendor.ref, vendor.name, len(vendor.products))
        return vendor

    async def update_fields(self, ref: str, *, name: str) -> None:
        await self._request("PUT", f"/api/vendors/{ref}", json_body={"name": name, "businessName": name})

    async def replace_products(self, ref: str, products: list[ProductDraft]) -> None:
        await self._request(
            "PUT",
            f"/api/vendors/{ref}/products/bulk",
            json_body={"products": _product_payload(products, None)},
        )

    async def delete(self, ref: str) -> None:
        await self._request("DELETE", f"/api/vendors/{ref}")
        logger.info("Vendor deleted: %s", ref)


def build_vendor_directory() -> VendorDirectory:
    if settings.VENDOR_BACKEND.lower() == "memory":
        logger.info("vendor directory: in-memory")
        return InMemoryVendorDirectory()
    logger.info("vendor directory: %s", settings.VENDOR_API_BASE_URL)
    return VendorApiClient()
