# app/domain/models/vendor_session.py

from __future__ import annotations

import time
from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from app.domain.exceptions import SessionInvariantError

SESSION_VERSION = 1

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 50
MIN_PRICE = 1
MAX_PRICE = 10_000_000


class Step(str, Enum):
    WELCOME = "WELCOME"
    COLLECT_NAME = "COLLECT_NAME"
    COLLECT_CATEGORY = "COLLECT_CATEGORY"
    COLLECT_LOCATION = "COLLECT_LOCATION"
    COLLECT_PRODUCTS = "COLLECT_PRODUCTS"
    CONFIRM_PROFILE = "CONFIRM_PROFILE"
    RENAME_SHOP = "RENAME_SHOP"
    ACTIVE = "ACTIVE"


# Steps that require a bound vendor profile
ONBOARDED_STEPS = frozenset({Step.ACTIVE, Step.RENAME_SHOP})


class Category(str, Enum):
    FOOD = "food"
    CLOTHING = "clothing"
    ELECTRONICS = "electronics"
    ACCESSORIES = "accessories"

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]


CATEGORY_LABELS = {
    Category.FOOD: "Food & Beverages",
    Category.CLOTHING: "Clothing & Fashion",
    Category.ELECTRONICS: "Electronics & Gadgets",
    Category.ACCESSORIES: "Accessories & Others",
}


class MediaKind(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    VOICE = "voice"


class ProductDraft(BaseModel):
    name: str = Field(min_length=MIN_NAME_LENGTH, max_length=MAX_NAME_LENGTH)
    price: int = Field(ge=MIN_PRICE, le=MAX_PRICE)
    description: str = ""

    @model_validator(mode="after")
    def _default_description(self) -> "ProductDraft":
        if not self.description:
            self.description = self.name
        return self


class DraftProfile(BaseModel):
    name: Optional[str] = None
    category: Optional[Category] = None
    location_text: Optional[str] = None
    products: list[ProductDraft] = Field(default_factory=list)


class HistoryEntry(BaseModel):
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    direction: Literal["in", "out"]
    text: str


class InboundMessage(BaseModel):
    identity: str
    text: str = ""
    media_kind: MediaKind = MediaKind.TEXT
    media_payload: Optional[dict] = None


class VendorSession(BaseModel):
    """Conversational state for one phone identity."""

    version: int = SESSION_VERSION
    identity: str
    step: Step = Step.WELCOME
    draft: DraftProfile = Field(default_factory=DraftProfile)
    external_vendor_ref: Optional[str] = None
    retry_count: int = 0
    pending_shop_delete: bool = False
    history: list[HistoryEntry] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_active_ts: float = Field(default_factory=time.time)

    @property
    def is_onboarded(self) -> bool:
        return self.external_vendor_ref is not None

    def record(self, direction: Literal["in", "out"], text: str) -> None:
        self.history.append(HistoryEntry(direction=direction, text=text))

    def touch(self) -> None:
        self.last_active_ts = time.time()

    def move_to(self, step: Step) -> None:
        """Transition to ``step``; a real transition resets the retry counter."""
        if step != self.step:
            self.retry_count = 0
        self.step = step

    def check_invariants(self) -> None:
        if self.step in ONBOARDED_STEPS and not self.external_vendor_ref:
            raise SessionInvariantError(f"step {self.step.value} without a bound vendor profile")
        if self.external_vendor_ref and self.step not in ONBOARDED_STEPS:
            raise SessionInvariantError(f"bound vendor profile in onboarding step {self.step.value}")
