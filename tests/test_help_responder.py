# tests/test_help_responder.py
"""Tests for topic matching, contextual answers and shop diagnostics."""

import pytest

from app.config.settings import settings
from app.domain.models.vendor_session import Category, ProductDraft, Step
from app.domain.services.help_responder import (
    HelpContext,
    HelpResponder,
    TOPICS,
    diagnose,
    general_help,
)

PHONE = "919876543210"


def _live_ctx(**overrides) -> HelpContext:
    fields = dict(
        identity=PHONE,
        step=Step.ACTIVE,
        shop_name="Raj Tea Stall",
        category=Category.FOOD,
        location="MG Road, Bangalore",
        products=[ProductDraft(name="Tea", price=10), ProductDraft(name="Samosa", price=15)],
        vendor_ref="v123",
    )
    fields.update(overrides)
    return HelpContext(**fields)


def _onboarding_ctx(step=Step.COLLECT_PRODUCTS, **overrides) -> HelpContext:
    fields = dict(identity=PHONE, step=step, shop_name="Raj Tea Stall")
    fields.update(overrides)
    return HelpContext(**fields)


# ── Topic matching ───────────────────────────────────────────────

class TestTopicMatching:
    @pytest.mark.parametrize(
        "text, topic",
        [
            ("how do I add products?", "add_products"),
            ("what is the format", "add_products"),
            ("how do I delete my shop?", "delete_shop"),
            ("how do I delete a product?", "delete_product"),
            ("how to change the price", "change_price"),
            ("can I change my location", "update_location"),
            ("how do customers find me?", "customer_discovery"),
            ("how do orders work", "orders"),
            ("how do payments work", "payments"),
            ("what is this", "about"),
            ("my shop is not showing", "troubleshooting"),
            ("is it free?", "pricing"),
            ("can customers see my shop", "visibility"),
        ],
    )
    def test_first_matching_topic(self, text, topic):
        assert HelpResponder().topic_for(text).name == topic

    def test_platform_name_in_about(self):
        text = f"what is {settings.PLATFORM_NAME}"
        assert HelpResponder().topic_for(text).name == "about"

    def test_no_topic(self):
        assert HelpResponder().topic_for("blah blah?") is None

    def test_topic_names_unique(self):
        names = [topic.name for topic in TOPICS]
        assert len(names) == len(set(names))


# ── Contextual answers ───────────────────────────────────────────

class TestRespond:
    def test_add_products_mentions_existing_count(self):
        reply = HelpResponder().respond("how do I add products?", _live_ctx())
        assert "You have 2 product(s)" in reply

    def test_add_products_nudges_during_collection(self):
        reply = HelpResponder().respond("how do I add products?", _onboarding_ctx())
        assert "then type *done*" in reply

    def test_delete_product_uses_own_product_names(self):
        reply = HelpResponder().respond("how do I remove a product?", _live_ctx())
        assert "*delete tea*" in reply
        assert "*delete samosa*" in reply

    def test_change_price_deletes_before_re_adding(self):
        reply = HelpResponder().respond("how do I change the price?", _live_ctx())
        assert "*delete samosa*" in reply
        assert "_Samosa ₹20_" in reply
        assert "replaces" not in reply

    def test_delete_product_without_products(self):
        reply = HelpResponder().respond("how do I remove a product?", _onboarding_ctx())
        assert "don't have any products yet" in reply

    def test_payments_shows_upi_only_when_live(self):
        responder = HelpResponder()
        live = responder.respond("how do payments work", _live_ctx())
        assert "9876543210@paytm" in live
        pending = responder.respond("how do payments work", _onboarding_ctx())
        assert "@paytm" not in pending

    def test_customer_discovery_links_store_when_live(self):
        reply = HelpResponder().respond("how do customers find me?", _live_ctx())
        assert "v123" in reply

    def test_not_showing_runs_diagnostics(self):
        reply = HelpResponder().respond("my shop is not showing", _live_ctx())
        assert "Shop check for Raj Tea Stall" in reply

    def test_unmatched_falls_back_to_general_help(self):
        reply = HelpResponder().respond("blah blah?", _live_ctx())
        assert "I'm not sure I understood" in reply

    def test_custom_topic_table(self):
        responder = HelpResponder(topics=[])
        assert responder.topic_for("how do I add products?") is None


class TestGeneralHelp:
    def test_live_gets_menu(self):
        assert "help*" in general_help(_live_ctx())

    def test_collecting_products_lists_current(self):
        ctx = _onboarding_ctx(products=[ProductDraft(name="Tea", price=10)])
        reply = general_help(ctx)
        assert "• Tea: ₹10" in reply

    def test_welcome_gets_about(self):
        reply = general_help(_onboarding_ctx(step=Step.WELCOME))
        assert f"What is {settings.PLATFORM_NAME}?" in reply
        assert "say *hi*" in reply.lower()


# ── Diagnostics ──────────────────────────────────────────────────

class TestDiagnose:
    def test_not_onboarded(self):
        reply = diagnose(_onboarding_ctx())
        assert "don't have a live shop yet" in reply

    def test_healthy_shop(self):
        reply = diagnose(_live_ctx())
        assert "❌" not in reply
        assert "Products listed (2)" in reply
        assert "Customers near MG Road, Bangalore can find you" in reply

    def test_shop_without_products(self):
        reply = diagnose(_live_ctx(products=[]))
        assert "❌ Products listed (0)" in reply
        assert "➡️ Add products now" in reply
        assert "Fix the items marked" in reply

    def test_responder_delegates(self):
        ctx = _live_ctx()
        assert HelpResponder().diagnose(ctx) == diagnose(ctx)
