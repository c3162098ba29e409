# app/domain/services/product_extractor.py
"""
Product extraction from free text.

Turns a vendor's line such as ``"Samosa ₹15, Tea Rs 10, ₹20 Coffee"`` into
validated ``ProductDraft`` records. Three shapes are recognised:

  1. ``name <marker> amount``   e.g. "Samosa ₹15", "Tea Rs. 10", "Chai rupees 5"
  2. ``<marker> amount name``   e.g. "₹10 Samosa"
  3. ``name <separator> amount`` e.g. "Vada - 20", "Idli: 30"

Markers are ``₹``, ``rs``, ``rs.``, ``rupee`` and ``rupees`` (any case).
Every shape runs over every segment; overlapping matches are settled by
position and then by shape order, so one span of text yields one product.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from app.domain.models.vendor_session import (
    MAX_NAME_LENGTH,
    MAX_PRICE,
    MIN_NAME_LENGTH,
    MIN_PRICE,
    ProductDraft,
)

_MARKER = r"(?:₹|\brupees?|\brs\.?)"
_AMOUNT = r"(?P<price>\d(?:[\d,]*\d)?(?:\.\d{1,2})?)(?!\d)"
_NAME_START = r"[^\W\d_]"
_NAME_BODY = r"(?:[\w'&]|[ \t]|-(?=[^\W\d_]))"
# name body that refuses to run into the next "<marker> amount"
_NAME_BODY_NO_MARKER = r"(?:(?![ \t]*" + _MARKER + r"[ \t]*\d)" + _NAME_BODY + r")"

SHAPE_PATTERNS: list[re.Pattern] = [
    # "samsung s24 ultra ₹50,000", "tea rs 10"
    re.compile(
        rf"(?P<name>{_NAME_START}{_NAME_BODY}*?)[ \t]*(?:[-:–—][ \t]*)?{_MARKER}[ \t]*{_AMOUNT}",
        re.IGNORECASE,
    ),
    # "₹10 samosa", "rs 50 veg burger"
    re.compile(
        rf"{_MARKER}[ \t]*{_AMOUNT}[ \t]+(?P<name>{_NAME_START}{_NAME_BODY_NO_MARKER}*)",
        re.IGNORECASE,
    ),
    # "masala dosa - 40", "idli: 30", "vada — 20"
    re.compile(
        rf"(?P<name>{_NAME_START}{_NAME_BODY}*?)[ \t]*[-:–—][ \t]*{_AMOUNT}",
        re.IGNORECASE,
    ),
]

PRICE_MARKER_RE = re.compile(rf"{_MARKER}[ \t]*\d", re.IGNORECASE)

# Commas between items, but not inside "1,00,000"
_SEGMENT_SPLIT_RE = re.compile(r"[\n;]+|,(?!\d)")
_SPACE_RE = re.compile(r"\s+")
_LETTER_RE = re.compile(r"[^\W\d_]")

# Filler words and session-control keywords that are never product names.
# Trimmed from the edges of a candidate name ("add samosa" -> "samosa").
STOPLIST = frozenset({
    "a", "an", "the", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by", "is", "are", "was", "were", "i", "you", "he", "she", "it",
    "we", "they", "this", "that", "these", "those", "my", "your", "his", "her",
    "our", "their", "sell", "selling", "have", "has", "had", "do", "does",
    "did", "will", "would", "could", "should", "can", "may", "might", "must",
    "want", "need", "like", "get", "got", "make", "made", "just", "only",
    "also", "please", "each", "per", "price", "cost", "costs", "rate",
    "how", "what", "why", "when", "where", "who",
    "done", "finish", "complete", "add", "new", "product", "products", "item",
    "items", "delete", "remove", "show", "list", "help", "start", "cancel",
    "yes", "no", "rs", "rupee", "rupees",
})


@dataclass
class _Match:
    start: int
    end: int
    shape: int
    raw_name: str
    raw_price: str


def has_price_marker(text: str) -> bool:
    """True when the text carries a currency marker followed by a number."""
    return bool(PRICE_MARKER_RE.search(text or ""))


def normalize_product_name(raw: str) -> str:
    """Trim, collapse whitespace and capitalise every word."""
    words = _SPACE_RE.sub(" ", raw.strip()).split(" ")
    return " ".join(w[:1].upper() + w[1:].lower() for w in words if w)


def parse_price(raw: str) -> int | None:
    """``"1,00,000"`` -> 100000, ``"12.50"`` -> 13. None when unparseable."""
    try:
        value = Decimal(raw.replace(",", ""))
        return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except InvalidOperation:
        return None


def clean_name(raw: str) -> str:
    """Strip punctuation and stoplist tokens from both ends of a name."""
    tokens = [t.strip("'&-") for t in _SPACE_RE.split(raw.strip())]
    tokens = [t for t in tokens if t]
    while tokens and tokens[0].lower() in STOPLIST:
        tokens.pop(0)
    while tokens and tokens[-1].lower() in STOPLIST:
        tokens.pop()
    return " ".join(tokens)


def is_valid_product(name: str, price: int | None) -> bool:
    if price is None or not (MIN_PRICE <= price <= MAX_PRICE):
        return False
    if not (MIN_NAME_LENGTH <= len(name) <= MAX_NAME_LENGTH):
        return False
    if name.lower() in STOPLIST:
        return False
    return bool(_LETTER_RE.search(name))


def split_segments(text: str) -> list[str]:
    return [s for s in (p.strip() for p in _SEGMENT_SPLIT_RE.split(text)) if s]


def _find_matches(segment: str) -> list[_Match]:
    found: list[_Match] = []
    for shape, pattern in enumerate(SHAPE_PATTERNS):
        for m in pattern.finditer(segment):
            found.append(
                _Match(m.start(), m.end(), shape, m.group("name"), m.group("price"))
            )

    # Earliest span wins; on equal start the earlier shape wins.
    found.sort(key=lambda m: (m.start, m.shape))
    accepted: list[_Match] = []
    last_end = -1
    for m in found:
        if m.start < last_end:
            continue
        accepted.append(m)
        last_end = m.end
    return accepted


def extract_products(text: str) -> list[ProductDraft]:
    """
    Extract validated products from one inbound line.

    Returns an empty list when nothing survives validation; the caller
    decides whether that is a retry or a normal outcome.
    """
    if not text or not text.strip():
        return []

    folded: dict[str, ProductDraft] = {}
    for segment in split_segments(text):
        for m in _find_matches(segment):
            # Validate the display form; title-casing can change the length
            display = normalize_product_name(clean_name(m.raw_name))
            price = parse_price(m.raw_price)
            if not is_valid_product(display, price):
                continue
            # Same name twice in one message: last one wins, first position kept
            folded[display.lower()] = ProductDraft(name=display, price=price)

    return list(folded.values())

