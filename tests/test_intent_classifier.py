# tests/test_intent_classifier.py
"""Tests for inbound message classification (command / data / question)."""

import pytest

from app.domain.models.vendor_session import Step
from app.domain.services.intent_classifier import (
    Command,
    Intent,
    IntentKind,
    classify,
    is_question,
    normalize_text,
)


# ── Commands ─────────────────────────────────────────────────────

class TestCommands:
    @pytest.mark.parametrize(
        "text, command",
        [
            ("done", Command.DONE),
            ("Done.", Command.DONE),
            ("finished", Command.DONE),
            ("hi", Command.START),
            ("Hello!", Command.START),
            ("hi there", Command.START),
            ("namaste", Command.START),
            ("help", Command.HELP),
            ("help me", Command.HELP),
            ("cancel", Command.CANCEL),
            ("show products", Command.SHOW_PRODUCTS),
            ("my products", Command.SHOW_PRODUCTS),
            ("check status", Command.DIAGNOSE),
            ("delete shop", Command.DELETE_SHOP),
            ("delete my shop", Command.DELETE_SHOP),
            ("close shop", Command.DELETE_SHOP),
            ("YES DELETE SHOP", Command.CONFIRM_DELETE_SHOP),
            ("change name", Command.CHANGE_NAME),
            ("rename shop", Command.CHANGE_NAME),
        ],
    )
    def test_phrase(self, text, command):
        intent = classify(text, Step.ACTIVE)
        assert intent.kind == IntentKind.COMMAND
        assert intent.command == command

    def test_word_prefix_needs_word_boundary(self):
        assert classify("hindi", Step.WELCOME).kind == IntentKind.DATA
        assert classify("history", Step.WELCOME).kind == IntentKind.DATA

    def test_confirm_delete_exact_has_no_argument(self):
        intent = classify("yes delete shop", Step.ACTIVE)
        assert intent.command == Command.CONFIRM_DELETE_SHOP
        assert intent.argument is None

    def test_confirm_delete_with_trailing_words(self):
        intent = classify("yes delete shop please", Step.ACTIVE)
        assert intent.command == Command.CONFIRM_DELETE_SHOP
        assert intent.argument == "please"

    def test_delete_product_argument(self):
        intent = classify("delete tea", Step.ACTIVE)
        assert intent == Intent(IntentKind.COMMAND, Command.DELETE_PRODUCT, "tea")

    def test_delete_product_strips_article(self):
        assert classify("remove the samosa", Step.ACTIVE).argument == "samosa"

    def test_delete_without_argument(self):
        intent = classify("delete", Step.ACTIVE)
        assert intent.command == Command.DELETE_PRODUCT
        assert intent.argument is None

    def test_delete_product_question_is_a_question(self):
        assert classify("delete a product?", Step.ACTIVE).kind == IntentKind.QUESTION

    def test_change_name_inline_keeps_case(self):
        intent = classify("change name to Raj Tea Stall", Step.ACTIVE)
        assert intent.command == Command.CHANGE_NAME
        assert intent.argument == "Raj Tea Stall"

    def test_change_name_without_argument(self):
        assert classify("change name", Step.ACTIVE).argument is None


# ── Confirmation answers ─────────────────────────────────────────

class TestConfirmation:
    @pytest.mark.parametrize("text", ["yes", "Y", "ok", "okay", "confirm", "correct"])
    def test_yes(self, text):
        assert classify(text, Step.CONFIRM_PROFILE).is_command(Command.YES)

    @pytest.mark.parametrize("text", ["no", "N", "no thanks", "change", "edit"])
    def test_no(self, text):
        assert classify(text, Step.CONFIRM_PROFILE).is_command(Command.NO)

    def test_yes_outside_confirmation_is_data(self):
        assert classify("yes", Step.ACTIVE).kind == IntentKind.DATA
        assert classify("y", Step.COLLECT_NAME).kind == IntentKind.DATA

    def test_single_letter_must_stand_alone(self):
        assert not classify("nope", Step.CONFIRM_PROFILE).is_command(Command.NO)


# ── Data vs question ─────────────────────────────────────────────

class TestDataAndQuestions:
    def test_products_are_data(self):
        assert classify("Samosa ₹15", Step.COLLECT_PRODUCTS).kind == IntentKind.DATA
        assert classify("Tea Rs 10, Coffee ₹20", Step.COLLECT_PRODUCTS).kind == IntentKind.DATA

    def test_price_marker_beats_question_wording(self):
        assert classify("why tea ₹10", Step.COLLECT_PRODUCTS).kind == IntentKind.DATA
        assert classify("can I add tea ₹10?", Step.COLLECT_PRODUCTS).kind == IntentKind.DATA

    @pytest.mark.parametrize(
        "text",
        [
            "how do I add products?",
            "Is it free?",
            "what is this",
            "my shop is not showing",
            "i need help",
        ],
    )
    def test_questions(self, text):
        assert classify(text, Step.ACTIVE).kind == IntentKind.QUESTION

    def test_plain_text_is_data(self):
        assert classify("Raj Tea Stall", Step.COLLECT_NAME).kind == IntentKind.DATA
        assert classify("MG Road, Bangalore", Step.COLLECT_LOCATION).kind == IntentKind.DATA

    def test_empty_text_is_data(self):
        assert classify("", Step.WELCOME).kind == IntentKind.DATA


# ── Helpers ──────────────────────────────────────────────────────

class TestHelpers:
    def test_normalize_text(self):
        assert normalize_text("  Done!!  ") == "done"
        assert normalize_text("show   MY products.") == "show my products"
        assert normalize_text(None) == ""

    def test_is_question(self):
        assert is_question("where is my shop")
        assert is_question("shop?")
        assert is_question("payment problem")
        assert not is_question("Samosa 15")
        assert not is_question("")
