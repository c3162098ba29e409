# app/domain/services/help_responder.py
"""
Plain-language answers to vendor questions.

Questions are matched against an ordered topic table (first match wins) and
the answer is tailored to whatever the session already knows: shop name,
products, location and whether the shop is live. The visibility
troubleshooter runs the same checks as the ``check status`` command.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable

from app.config.settings import settings
from app.domain.messages import format_product_list, t
from app.domain.models.vendor_session import (
    Category,
    ONBOARDED_STEPS,
    ProductDraft,
    Step,
    VendorSession,
)
from app.domain.services.vendor_identity import store_url_for, upi_id_for

logger = logging.getLogger("help_responder")


@dataclass
class HelpContext:
    identity: str
    step: Step
    shop_name: str | None = None
    category: Category | None = None
    location: str | None = None
    products: list[ProductDraft] = field(default_factory=list)
    vendor_ref: str | None = None

    @property
    def is_live(self) -> bool:
        return self.vendor_ref is not None and self.step in ONBOARDED_STEPS

    @classmethod
    def from_session(cls, session: VendorSession) -> "HelpContext":
        draft = session.draft
        return cls(
            identity=session.identity,
            step=session.step,
            shop_name=draft.name,
            category=draft.category,
            location=draft.location_text,
            products=list(draft.products),
            vendor_ref=session.external_vendor_ref,
        )


@dataclass(frozen=True)
class HelpTopic:
    name: str
    patterns: tuple[re.Pattern, ...]
    render: Callable[[str, HelpContext], str]

    def matches(self, text: str) -> bool:
        return any(p.search(text) for p in self.patterns)


def _rx(*sources: str) -> tuple[re.Pattern, ...]:
    return tuple(re.compile(s, re.IGNORECASE) for s in sources)


# ── Topic answers ───────────────────────────────────────────

def _add_products(text: str, ctx: HelpContext) -> str:
    lines = [
        "📦 *How to add products*",
        "",
        "Send the name and price, one or many at once:",
        "• _Samosa ₹15_",
        "• _Tea Rs 10, Coffee ₹20_",
        "• _₹40 Masala Dosa_",
        "• _Idli - 30_",
        "",
        "Prices can use ₹, Rs or rupees.",
    ]
    if ctx.products:
        lines += ["", f"✅ You have {len(ctx.products)} product(s). Type *show products* to see them."]
    elif ctx.step == Step.COLLECT_PRODUCTS:
        lines += ["", "💡 Try adding your first product now, then type *done*."]
    return "\n".join(lines)


def _delete_product(text: str, ctx: HelpContext) -> str:
    if not ctx.products:
        return (
            "❌ You don't have any products yet.\n\n"
            "Add one first, e.g. _Samosa ₹15_. Then remove it with *delete samosa*."
        )
    examples = "\n".join(f"• *delete {p.name.lower()}*" for p in ctx.products[:3])
    return (
        "🗑️ *How to remove a product*\n\n"
        "Type *delete* followed by the product name:\n"
        f"{examples}\n\n"
        "Type *show products* to see the full list."
    )


def _delete_shop(text: str, ctx: HelpContext) -> str:
    return (
        "🗑️ *How to delete your shop*\n\n"
        "⚠️ This is permanent. Your products and your place on the map are removed.\n\n"
        "1. Type *delete shop*\n"
        "2. Confirm with *YES DELETE SHOP*"
    )


def _change_price(text: str, ctx: HelpContext) -> str:
    return (
        "💰 *How to change a price*\n\n"
        "Remove the old entry, then add it back with the new price:\n"
        "1. Type *delete samosa*\n"
        "2. Send _Samosa ₹20_\n\n"
        "Sending the product again without deleting it adds a second entry."
    )


def _update_location(text: str, ctx: HelpContext) -> str:
    return (
        "📍 *Your location*\n\n"
        f"Current location: {ctx.location or 'Not set'}\n\n"
        "Location is set while creating your shop. To move, delete your shop "
        "with *delete shop* and set it up again at the new place."
    )


def _open_close(text: str, ctx: HelpContext) -> str:
    return (
        "🏪 *Opening and closing*\n\n"
        "Your shop stays visible to customers while it is live.\n"
        "To stop selling for good, type *delete shop* (you will be asked to confirm).\n\n"
        "Taking a break? Just let customers know when they message you; your listing stays as it is."
    )


def _customer_discovery(text: str, ctx: HelpContext) -> str:
    lines = [
        "🎯 *How customers find you*",
        "",
        "✅ Your shop appears on the customer map as soon as it goes live",
        "✅ Customers see your products, prices and location",
        "",
        f"🛒 Customer app: {settings.CUSTOMER_APP_URL}",
    ]
    if ctx.is_live:
        lines.append(f"🔗 Your store: {store_url_for(ctx.vendor_ref, ctx.identity)}")
    else:
        lines += ["", "Finish setting up your shop to appear on the map."]
    return "\n".join(lines)


def _orders(text: str, ctx: HelpContext) -> str:
    return (
        "📦 *How orders work*\n\n"
        "1. A customer finds your shop and picks products\n"
        "2. They place the order with their phone number\n"
        "3. You get the order details on WhatsApp\n"
        "4. You prepare it and hand it over\n\n"
        "Payment goes straight to your UPI, with no commission."
    )


def _payments(text: str, ctx: HelpContext) -> str:
    upi = upi_id_for(ctx.identity) if ctx.is_live else "set when your shop goes live"
    return (
        "💰 *How payments work*\n\n"
        "Customers pay you by UPI (PhonePe, GPay, Paytm...).\n"
        "The money goes directly to your account.\n\n"
        f"💳 Your UPI: {upi}\n\n"
        f"{settings.PLATFORM_NAME} takes no commission."
    )


def _about(text: str, ctx: HelpContext) -> str:
    closing = "Type *help* to see what you can do." if ctx.is_live else "Ready? Say *hi* to start."
    return (
        f"🚀 *What is {settings.PLATFORM_NAME}?*\n\n"
        "It puts street vendors and small shops online in about 2 minutes, over WhatsApp.\n\n"
        "• A digital storefront with your products\n"
        "• A place on the customer map\n"
        "• Orders and UPI payments\n\n"
        "🆓 Free, with no commission on sales.\n\n"
        f"{closing}"
    )


def _pricing(text: str, ctx: HelpContext) -> str:
    return (
        f"🆓 *{settings.PLATFORM_NAME} is free.*\n\n"
        "No setup fee, no monthly fee, no commission. You keep 100% of your sales."
    )


def _visibility(text: str, ctx: HelpContext) -> str:
    if ctx.is_live:
        return (
            "👀 Yes, customers can see your shop on the map.\n\n"
            "Type *check status* for a quick health check."
        )
    return "👀 Customers will see your shop once it goes live. Finish the setup to appear on the map."


def _troubleshoot(text: str, ctx: HelpContext) -> str:
    msg = text.lower()
    if re.search(r"not (showing|appearing|visible)|can'?t see|cannot see", msg):
        return diagnose(ctx)
    if "product" in msg:
        return (
            "🛠️ *Product problems*\n\n"
            "Make sure each product has a name and a price, e.g. _Samosa ₹15_.\n"
            "Separate several products with commas.\n\n"
            "Type *show products* to check what is saved."
        )
    if "payment" in msg or "upi" in msg:
        return _payments(text, ctx)
    return (
        "🛠️ *Let's sort it out*\n\n"
        "• Type *check status* to check your shop\n"
        "• Type *show products* to see your products\n"
        "• Type *help* for all commands\n\n"
        "Or describe the problem in a few words."
    )


TOPICS: list[HelpTopic] = [
    HelpTopic("add_products", _rx(
        r"how (do i|can i|to) add (products?|items?)",
        r"add (new )?products?",
        r"how (do i|to) (list|upload) (products?|items?)",
        r"what (is the )?format",
    ), _add_products),
    HelpTopic("delete_shop", _rx(
        r"(delete|remove|close) (my |the )?(shop|store|business)",
        r"permanently (delete|remove|close)",
        r"shut down",
    ), _delete_shop),
    HelpTopic("delete_product", _rx(
        r"(delete|remove) (a |my |the )?(products?|items?)",
        r"(get rid of|take down) (a )?products?",
    ), _delete_product),
    HelpTopic("change_price", _rx(
        r"(change|update|edit|modify) (the |my )?(product )?prices?",
    ), _change_price),
    HelpTopic("update_location", _rx(
        r"(change|update) (my )?(location|address)",
        r"move (my )?(shop|store)",
    ), _update_location),
    HelpTopic("open_close", _rx(
        r"(open|close) (my |the )?(shop|store) (for|today|now)",
        r"(temporarily|for today) close",
        r"how (do i|to) (open|close)",
    ), _open_close),
    HelpTopic("customer_discovery", _rx(
        r"how (do|will|can) (customers?|people) (find|see|reach)",
        r"how (do i|to) get customers?",
        r"where (do|will) (i|my shop) appear",
    ), _customer_discovery),
    HelpTopic("orders", _rx(
        r"how (do|will) orders? work",
        r"how (do i|to) (get|receive) orders?",
        r"order (process|system)",
    ), _orders),
    HelpTopic("payments", _rx(
        r"how (do|does) payments? work",
        r"how (do i|to) (get|receive) (money|payments?|paid)",
        r"\bupi\b",
        r"payment (method|system)",
    ), _payments),
    HelpTopic("about", _rx(
        r"what is (this|" + re.escape(settings.PLATFORM_NAME.lower()) + r")",
        r"what (does|can) (this|you|" + re.escape(settings.PLATFORM_NAME.lower()) + r") do",
        r"tell me about",
    ), _about),
    HelpTopic("troubleshooting", _rx(
        r"(not|doesn'?t|isn'?t|can'?t|cannot) (work|working|show|showing|appear|appearing|see|visible)",
        r"\b(problem|issue|error|trouble)\b",
        r"\bwhy (is|isn'?t|doesn'?t|can'?t)\b",
    ), _troubleshoot),
    HelpTopic("pricing", _rx(
        r"how much",
        r"\b(pricing|fee|fees|charges?|commission)\b",
        r"is it free",
        r"do i (have|need) to pay",
    ), _pricing),
    HelpTopic("visibility", _rx(
        r"can customers? see",
        r"\b(visible|visibility)\b",
        r"show (up )?on (the )?map",
    ), _visibility),
]


# ── Diagnostics ─────────────────────────────────────────────

def diagnose(ctx: HelpContext) -> str:
    """Walk the checks that decide whether customers can find the shop."""
    if not ctx.is_live:
        return t("DIAGNOSTIC_NOT_ONBOARDED")

    # (label, passed, how to fix)
    checks = [
        ("Shop is live", True, ""),
        ("Shop name set", bool(ctx.shop_name), "Type *change name* to set one"),
        ("Category set", ctx.category is not None, "Delete and recreate the shop to pick a category"),
        ("Location set", bool(ctx.location), "Delete and recreate the shop with your location"),
        (
            f"Products listed ({len(ctx.products)})",
            bool(ctx.products),
            "Add products now, e.g. _Samosa ₹15, Tea ₹10_",
        ),
    ]
    lines = []
    for label, ok, fix in checks:
        lines.append(f"{'✅' if ok else '❌'} {label}")
        if not ok:
            lines.append(f"   ➡️ {fix}")
    healthy = all(ok for _, ok, _ in checks)
    verdict = t("DIAGNOSTIC_OK", location=ctx.location) if healthy else t("DIAGNOSTIC_ISSUES")
    return t(
        "DIAGNOSTIC_REPORT",
        name=ctx.shop_name or "your shop",
        checks="\n".join(lines),
        verdict=verdict,
    )


def general_help(ctx: HelpContext) -> str:
    if ctx.is_live:
        return (
            "🤔 I'm not sure I understood.\n\n"
            + t("HELP_MENU")
        )
    if ctx.step == Step.COLLECT_PRODUCTS:
        return (
            "🤔 I'm not sure I understood.\n\n"
            "Send products like _Samosa ₹15, Tea ₹10_, or type *done* when finished.\n\n"
            f"Current products:\n{format_product_list(ctx.products)}"
        )
    return _about("", ctx)


class HelpResponder:
    def __init__(self, topics: list[HelpTopic] | None = None):
        self.topics = topics if topics is not None else TOPICS

    def topic_for(self, text: str) -> HelpTopic | None:
        for topic in self.topics:
            if topic.matches(text):
                return topic
        return None

    def respond(self, text: str, ctx: HelpContext) -> str:
        topic = self.topic_for(text)
        if topic is None:
            logger.info("no help topic for %r (step=%s)", text[:80], ctx.step.value)
            return general_help(ctx)
        logger.debug("help topic %s for step=%s", topic.name, ctx.step.value)
        return topic.render(text, ctx)

    def diagnose(self, ctx: HelpContext) -> str:
        return diagnose(ctx)
