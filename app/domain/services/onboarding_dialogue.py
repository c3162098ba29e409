# app/domain/services/onboarding_dialogue.py
"""
Onboarding dialogue: one inbound message in, one reply string out.

Steps:
  WELCOME           greeting looks the phone up; known vendors go straight to ACTIVE
  COLLECT_NAME      shop name (2-50 chars)
  COLLECT_CATEGORY  1-4 or a keyword (food, clothing, electronics, accessories)
  COLLECT_LOCATION  free text, at least 5 chars
  COLLECT_PRODUCTS  products with prices until "done"
  CONFIRM_PROFILE   yes -> create or bind the marketplace profile, no -> edit products
  RENAME_SHOP       sub-state of ACTIVE, always returns to it
  ACTIVE            add/delete/list products, rename, diagnose, two-phase shop delete

Each message is handled against a deep copy of the stored session. Step
handlers only decide: they mutate the copy and return a ``StepOutcome`` whose
effects (profile creation, rename, product sync, deletion) are flushed to the
vendor directory afterwards. If a synchronous effect fails the copy is
dropped, so the participant can resend the same message.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Union

from app.config.settings import settings
from app.domain.exceptions import (
    DuplicateIdentityError,
    PersistenceError,
    SessionInvariantError,
    TransientPersistenceError,
)
from app.domain.messages import format_product_list, plural, t
from app.domain.models.vendor_session import (
    MAX_NAME_LENGTH,
    MIN_NAME_LENGTH,
    Category,
    InboundMessage,
    MediaKind,
    Step,
    VendorSession,
)
from app.domain.services.help_responder import HelpContext, HelpResponder
from app.domain.services.intent_classifier import (
    Command,
    Intent,
    IntentKind,
    classify,
    normalize_text,
)
from app.domain.services.media_text import MediaResult, media_to_text
from app.domain.services.product_extractor import extract_products
from app.domain.services.vendor_directory import VendorDirectory
from app.domain.services.vendor_identity import normalize_identity, store_url_for, upi_id_for

logger = logging.getLogger("onboarding_dialogue")

MIN_LOCATION_LENGTH = 5
MAX_LOCATION_LENGTH = 200

CATEGORY_CHOICES = {
    "1": Category.FOOD,
    "2": Category.CLOTHING,
    "3": Category.ELECTRONICS,
    "4": Category.ACCESSORIES,
}

# Substring keywords, checked in order
CATEGORY_KEYWORDS = [
    ("food", Category.FOOD),
    ("beverage", Category.FOOD),
    ("cloth", Category.CLOTHING),
    ("fashion", Category.CLOTHING),
    ("electronic", Category.ELECTRONICS),
    ("gadget", Category.ELECTRONICS),
    ("accessor", Category.ACCESSORIES),
    ("other", Category.ACCESSORIES),
]

_CHOICE_RE = re.compile(r"^([1-4])\W*$")
_SPACE_RE = re.compile(r"\s+")


# ── Effects ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class EnsureProfile:
    """Create the marketplace profile, or bind the one this phone already has."""


@dataclass(frozen=True)
class UpdateName:
    name: str


@dataclass(frozen=True)
class ReplaceProducts:
    """Push the session's product list. Eventually consistent."""


@dataclass(frozen=True)
class DeleteProfile:
    """Delete the marketplace profile and clear the session."""


Effect = Union[EnsureProfile, UpdateName, ReplaceProducts, DeleteProfile]


@dataclass
class StepOutcome:
    reply: str = ""
    effects: list[Effect] = field(default_factory=list)
    # Rendered after effects ran, for replies that need their result
    render: Callable[[VendorSession], str] | None = None


Handler = Callable[[VendorSession, Intent, str], Awaitable[StepOutcome]]
MediaExtractor = Callable[[InboundMessage], Awaitable[MediaResult]]


def clean_shop_name(text: str) -> str | None:
    name = _SPACE_RE.sub(" ", (text or "").strip())
    if MIN_NAME_LENGTH <= len(name) <= MAX_NAME_LENGTH:
        return name
    return None


def clean_location(text: str) -> str | None:
    location = _SPACE_RE.sub(" ", (text or "").strip())
    if MIN_LOCATION_LENGTH <= len(location) <= MAX_LOCATION_LENGTH:
        return location
    return None


def parse_category(text: str) -> Category | None:
    msg = normalize_text(text)
    m = _CHOICE_RE.match(msg)
    if m:
        return CATEGORY_CHOICES[m.group(1)]
    for keyword, category in CATEGORY_KEYWORDS:
        if keyword in msg:
            return category
    return None


def find_product_index(products, name: str) -> int | None:
    """Exact (case-insensitive) match first, then first substring match."""
    needle = name.strip().lower()
    if not needle:
        return None
    for i, p in enumerate(products):
        if p.name.lower() == needle:
            return i
    for i, p in enumerate(products):
        if needle in p.name.lower():
            return i
    return None


class OnboardingDialogue:
    def __init__(
        self,
        store,
        directory: VendorDirectory,
        help_responder: HelpResponder | None = None,
        media_extractor: MediaExtractor = media_to_text,
        max_input_retries: int | None = None,
    ):
        self.store = store
        self.directory = directory
        self.help = help_responder or HelpResponder()
        self.media_extractor = media_extractor
        self.max_input_retries = (
            settings.MAX_INPUT_RETRIES if max_input_retries is None else max_input_retries
        )
        self._handlers: dict[Step, Handler] = {
            Step.WELCOME: self._on_welcome,
            Step.COLLECT_NAME: self._on_collect_name,
            Step.COLLECT_CATEGORY: self._on_collect_category,
            Step.COLLECT_LOCATION: self._on_collect_location,
            Step.COLLECT_PRODUCTS: self._on_collect_products,
            Step.CONFIRM_PROFILE: self._on_confirm_profile,
            Step.RENAME_SHOP: self._on_rename_shop,
            Step.ACTIVE: self._on_active,
        }
        self._effect_runners = {
            EnsureProfile: self._run_ensure_profile,
            UpdateName: self._run_update_name,
            ReplaceProducts: self._run_replace_products,
            DeleteProfile: self._run_delete_profile,
        }

    @property
    def handled_steps(self) -> frozenset[Step]:
        return frozenset(self._handlers)

    # ── Entry point ─────────────────────────────────────────────

    async def handle_message(self, message: InboundMessage) -> str:
        identity = normalize_identity(message.identity)
        if not identity:
            raise ValueError("inbound message without a phone identity")

        async with self.store.locked(identity):
            stored = await self.store.get_or_create(identity)
            working = stored.model_copy(deep=True)
            working.touch()
            inbound = message.text or f"[{message.media_kind.value}]"
            working.record("in", inbound)

            try:
                outcome = await self._decide(working, message)
                notes = await self._flush(working, outcome.effects)
                reply = outcome.render(working) if outcome.render else outcome.reply
                if notes:
                    reply = "\n\n".join(notes + [reply])

                if any(isinstance(e, DeleteProfile) for e in outcome.effects):
                    await self.store.clear(identity)
                    logger.info("session cleared after shop deletion: %s", identity)
                    return reply

                working.check_invariants()

            except PersistenceError as exc:
                # Keep the stored state; only the conversation log moves on
                transient = isinstance(exc, TransientPersistenceError)
                logger.warning(
                    "vendor directory failure for %s in %s (%s): %s",
                    identity, stored.step.value,
                    "transient" if transient else "permanent", exc,
                )
                reply = t("ERROR_TRANSIENT" if transient else "ERROR_PERMANENT")
                working = stored
                working.touch()
                working.record("in", inbound)

            except SessionInvariantError as exc:
                logger.error("session invariant broken for %s: %s; resetting", identity, exc)
                working = self._reset(stored)
                reply = t("SESSION_RESET")

            except Exception:
                logger.exception("unexpected failure handling message for %s; resetting", identity)
                working = self._reset(stored)
                reply = t("SESSION_RESET")

            working.record("out", reply)
            await self.store.save(working)
            return reply

    @staticmethod
    def _reset(stored: VendorSession) -> VendorSession:
        fresh = VendorSession(
            identity=stored.identity,
            created_at=stored.created_at,
            history=list(stored.history),
        )
        return fresh

    async def _decide(self, session: VendorSession, message: InboundMessage) -> StepOutcome:
        text = message.text or ""
        if message.media_kind != MediaKind.TEXT:
            if session.step != Step.COLLECT_PRODUCTS:
                return StepOutcome(t("MEDIA_TEXT_ONLY"))
            result = await self.media_extractor(message)
            if result.error:
                return StepOutcome(t("MEDIA_UNREADABLE"))
            text = result.text

        intent = classify(text, session.step)
        logger.debug(
            "identity=%s step=%s intent=%s command=%s",
            session.identity, session.step.value, intent.kind.value,
            intent.command.value if intent.command else None,
        )
        handler = self._handlers[session.step]
        return await handler(session, intent, text)

    # ── Shared replies ──────────────────────────────────────────

    def _summary(self, session: VendorSession) -> str:
        draft = session.draft
        return t(
            "PROFILE_SUMMARY",
            name=draft.name,
            category=draft.category.label if draft.category else "Not set",
            location=draft.location_text or "Not set",
            product_list=format_product_list(draft.products),
        )

    def _step_prompt(self, session: VendorSession) -> str:
        draft = session.draft
        step = session.step
        if step == Step.COLLECT_NAME:
            return t("ASK_NAME")
        if step == Step.COLLECT_CATEGORY:
            return t("ASK_CATEGORY", name=draft.name)
        if step == Step.COLLECT_LOCATION:
            return t("ASK_LOCATION", category=draft.category.label if draft.category else "")
        if step == Step.COLLECT_PRODUCTS:
            return t("ASK_PRODUCTS", location=draft.location_text)
        if step == Step.CONFIRM_PROFILE:
            return self._summary(session)
        if step == Step.RENAME_SHOP:
            return t("RENAME_PROMPT", name=draft.name)
        return t("WELCOME_INTRO")

    def _welcome_back(self, session: VendorSession) -> str:
        draft = session.draft
        return t(
            "WELCOME_BACK",
            name=draft.name,
            product_count=len(draft.products),
            location=draft.location_text or "Location not set",
        )

    def _go_live(self, session: VendorSession) -> str:
        return t(
            "PROFILE_LIVE",
            name=session.draft.name,
            store_url=store_url_for(session.external_vendor_ref, session.identity),
            customer_app_url=settings.CUSTOMER_APP_URL,
            upi_id=upi_id_for(session.identity),
        )

    # ── Step handlers ───────────────────────────────────────────

    async def _on_welcome(self, session: VendorSession, intent: Intent, text: str) -> StepOutcome:
        if intent.is_command(Command.START):
            profile = await self.directory.find_by_identity(session.identity)
            if profile is not None:
                logger.info("returning vendor %s bound to %s", session.identity, profile.ref)
                session.external_vendor_ref = profile.ref
                session.draft = profile.to_draft()
                session.move_to(Step.ACTIVE)
                return StepOutcome(self._welcome_back(session))
            session.move_to(Step.COLLECT_NAME)
            return StepOutcome(t("WELCOME_NEW"))

        if intent.is_command(Command.DIAGNOSE):
            return StepOutcome(self.help.diagnose(HelpContext.from_session(session)))
        if intent.kind == IntentKind.QUESTION:
            return StepOutcome(self.help.respond(text, HelpContext.from_session(session)))
        return StepOutcome(t("WELCOME_INTRO"))

    def _reprompt(self, session: VendorSession) -> StepOutcome:
        return StepOutcome(t("STEP_HINT", prompt=self._step_prompt(session)))

    async def _on_collect_name(self, session: VendorSession, intent: Intent, text: str) -> StepOutcome:
        if intent.is_command(Command.HELP, Command.START):
            return self._reprompt(session)
        name = clean_shop_name(text)
        if name is None:
            session.retry_count += 1
            return StepOutcome(t("NAME_INVALID", min_len=MIN_NAME_LENGTH, max_len=MAX_NAME_LENGTH))
        session.draft.name = name
        session.move_to(Step.COLLECT_CATEGORY)
        return StepOutcome(t("ASK_CATEGORY", name=name))

    async def _on_collect_category(self, session: VendorSession, intent: Intent, text: str) -> StepOutcome:
        if intent.is_command(Command.HELP, Command.START):
            return self._reprompt(session)
        category = parse_category(text)
        if category is None:
            session.retry_count += 1
            return StepOutcome(t("CATEGORY_INVALID"))
        session.draft.category = category
        session.move_to(Step.COLLECT_LOCATION)
        return StepOutcome(t("ASK_LOCATION", category=category.label))

    async def _on_collect_location(self, session: VendorSession, intent: Intent, text: str) -> StepOutcome:
        if intent.is_command(Command.HELP, Command.START):
            return self._reprompt(session)
        location = clean_location(text)
        if location is None:
            session.retry_count += 1
            return StepOutcome(t("LOCATION_INVALID", min_len=MIN_LOCATION_LENGTH))
        session.draft.location_text = location
        session.move_to(Step.COLLECT_PRODUCTS)
        return StepOutcome(t("ASK_PRODUCTS", location=location))

    async def _on_collect_products(self, session: VendorSession, intent: Intent, text: str) -> StepOutcome:
        draft = session.draft

        if intent.kind == IntentKind.COMMAND:
            if intent.command == Command.DONE:
                if not draft.products:
                    return StepOutcome(t("PRODUCTS_NONE_YET"))
                session.move_to(Step.CONFIRM_PROFILE)
                return StepOutcome(self._summary(session))

            if intent.command == Command.DELETE_PRODUCT:
                return self._delete_draft_product(session, intent.argument)

            if intent.command == Command.SHOW_PRODUCTS:
                if not draft.products:
                    return StepOutcome(t("NO_PRODUCTS"))
                return StepOutcome(t(
                    "PRODUCT_LIST",
                    total=len(draft.products),
                    product_list=format_product_list(draft.products),
                ))

            if intent.command == Command.DIAGNOSE:
                return StepOutcome(self.help.diagnose(HelpContext.from_session(session)))

            # Commands that only make sense once the shop is live
            return self._reprompt(session)

        if intent.kind == IntentKind.QUESTION:
            return StepOutcome(self.help.respond(text, HelpContext.from_session(session)))

        found = extract_products(text)
        if found:
            draft.products.extend(found)
            session.retry_count = 0
            return StepOutcome(t(
                "PRODUCTS_ADDED_DRAFT",
                count=len(found),
                plural=plural(len(found)),
                product_list=format_product_list(found),
                total=len(draft.products),
            ))

        session.retry_count += 1
        if session.retry_count > self.max_input_retries:
            logger.info(
                "giving up on products for %s after %d malformed messages",
                session.identity, session.retry_count,
            )
            session.move_to(Step.CONFIRM_PROFILE)
            return StepOutcome(t("PRODUCTS_SKIPPED") + "\n\n" + self._summary(session))
        return StepOutcome(t("PRODUCTS_NOT_UNDERSTOOD"))

    def _delete_draft_product(self, session: VendorSession, name: str | None) -> StepOutcome:
        products = session.draft.products
        if not products:
            return StepOutcome(t("NO_PRODUCTS"))
        if not name:
            return StepOutcome(t("DELETE_WHICH"))
        idx = find_product_index(products, name)
        if idx is None:
            return StepOutcome(t("PRODUCT_NOT_FOUND", name=name))
        removed = products.pop(idx)
        return StepOutcome(t("DRAFT_PRODUCT_DELETED", name=removed.name, total=len(products)))

    async def _on_confirm_profile(self, session: VendorSession, intent: Intent, text: str) -> StepOutcome:
        if intent.is_command(Command.YES):
            return StepOutcome(effects=[EnsureProfile()], render=self._go_live)
        if intent.is_command(Command.NO):
            session.move_to(Step.COLLECT_PRODUCTS)
            return StepOutcome(t("DRAFT_EDIT", product_list=format_product_list(session.draft.products)))
        return StepOutcome(t("CONFIRM_YES_NO"))

    async def _on_rename_shop(self, session: VendorSession, intent: Intent, text: str) -> StepOutcome:
        if intent.is_command(Command.CANCEL):
            session.move_to(Step.ACTIVE)
            return StepOutcome(t("RENAME_CANCELLED", name=session.draft.name))
        if intent.is_command(Command.HELP, Command.START):
            return self._reprompt(session)
        name = clean_shop_name(text)
        if name is None:
            session.retry_count += 1
            return StepOutcome(t("NAME_INVALID", min_len=MIN_NAME_LENGTH, max_len=MAX_NAME_LENGTH))
        return self._rename(session, name)

    def _rename(self, session: VendorSession, name: str) -> StepOutcome:
        old_name = session.draft.name
        session.draft.name = name
        session.move_to(Step.ACTIVE)
        return StepOutcome(
            t("RENAME_DONE", old_name=old_name, new_name=name),
            effects=[UpdateName(name)],
        )

    async def _on_active(self, session: VendorSession, intent: Intent, text: str) -> StepOutcome:
        armed = session.pending_shop_delete
        session.pending_shop_delete = False

        if intent.is_command(Command.CONFIRM_DELETE_SHOP):
            if not armed:
                session.pending_shop_delete = True
                return StepOutcome(t("SHOP_DELETE_WARNING"))
            if intent.argument is None:
                logger.info("deleting shop %s for %s", session.external_vendor_ref, session.identity)
                return StepOutcome(t("SHOP_DELETED"), effects=[DeleteProfile()])
            return StepOutcome(t("SHOP_DELETE_CANCELLED"))

        if intent.is_command(Command.DELETE_SHOP):
            session.pending_shop_delete = True
            return StepOutcome(t("SHOP_DELETE_WARNING"))

        outcome = await self._active_action(session, intent, text)
        if armed:
            outcome.reply = t("SHOP_DELETE_CANCELLED") + ("\n\n" + outcome.reply if outcome.reply else "")
        return outcome

    async def _active_action(self, session: VendorSession, intent: Intent, text: str) -> StepOutcome:
        draft = session.draft

        if intent.kind == IntentKind.COMMAND:
            command = intent.command

            if command == Command.DELETE_PRODUCT:
                if not draft.products:
                    return StepOutcome(t("NO_PRODUCTS"))
                if not intent.argument:
                    return StepOutcome(t("DELETE_WHICH"))
                idx = find_product_index(draft.products, intent.argument)
                if idx is None:
                    return StepOutcome(t("PRODUCT_NOT_FOUND", name=intent.argument))
                removed = draft.products.pop(idx)
                remaining = len(draft.products)
                return StepOutcome(
                    t("PRODUCT_DELETED", name=removed.name, total=remaining, plural=plural(remaining)),
                    effects=[ReplaceProducts()],
                )

            if command == Command.SHOW_PRODUCTS:
                if not draft.products:
                    return StepOutcome(t("NO_PRODUCTS"))
                return StepOutcome(t(
                    "PRODUCT_LIST",
                    total=len(draft.products),
                    product_list=format_product_list(draft.products),
                ))

            if command == Command.CHANGE_NAME:
                name = clean_shop_name(intent.argument or "")
                if name is not None:
                    return self._rename(session, name)
                session.move_to(Step.RENAME_SHOP)
                return StepOutcome(t("RENAME_PROMPT", name=draft.name))

            if command == Command.DIAGNOSE:
                return StepOutcome(self.help.diagnose(HelpContext.from_session(session)))
            if command == Command.HELP:
                return StepOutcome(t("HELP_MENU"))
            if command == Command.START:
                return StepOutcome(self._welcome_back(session))
            if command == Command.DONE:
                return StepOutcome(t("ALREADY_LIVE"))
            if command == Command.CANCEL:
                return StepOutcome(t("NOTHING_TO_CANCEL"))
            return StepOutcome(t("HELP_MENU"))

        if intent.kind == IntentKind.QUESTION:
            return StepOutcome(self.help.respond(text, HelpContext.from_session(session)))

        found = extract_products(text)
        if not found:
            return StepOutcome(t("PRODUCTS_FORMAT_HELP"))
        draft.products.extend(found)
        return StepOutcome(
            t(
                "PRODUCTS_ADDED_LIVE",
                count=len(found),
                plural=plural(len(found)),
                product_list=format_product_list(found),
                total=len(draft.products),
            ),
            effects=[ReplaceProducts()],
        )

    # ── Effect layer ────────────────────────────────────────────

    async def _flush(self, session: VendorSession, effects: list[Effect]) -> list[str]:
        notes: list[str] = []
        for effect in effects:
            runner = self._effect_runners[type(effect)]
            note = await runner(session, effect)
            if note:
                notes.append(note)
        return notes

    async def _run_ensure_profile(self, session: VendorSession, effect: EnsureProfile) -> str | None:
        identity = session.identity
        bound_existing = False

        existing = await self.directory.find_by_identity(identity)
        if existing is not None:
            ref = existing.ref
            bound_existing = True
        else:
            try:
                created = await self.directory.create(identity, session.draft)
                ref = created.ref
            except DuplicateIdentityError as exc:
                logger.info("create raced an existing profile for %s", identity)
                ref = exc.existing_ref
                if ref is None:
                    again = await self.directory.find_by_identity(identity)
                    if again is None:
                        raise
                    ref = again.ref
                bound_existing = True

        session.external_vendor_ref = ref
        session.move_to(Step.ACTIVE)

        if not bound_existing:
            logger.info("vendor %s created for %s", ref, identity)
            return None

        logger.info("bound %s to existing vendor %s", identity, ref)
        await self._push_products(session)
        return t("PROFILE_EXISTING_BOUND")

    async def _run_update_name(self, session: VendorSession, effect: UpdateName) -> None:
        await self.directory.update_fields(session.external_vendor_ref, name=effect.name)

    async def _run_replace_products(self, session: VendorSession, effect: ReplaceProducts) -> None:
        await self._push_products(session)

    async def _push_products(self, session: VendorSession) -> None:
        try:
            await self.directory.replace_products(session.external_vendor_ref, list(session.draft.products))
        except PersistenceError as exc:
            # The local list stays authoritative; the next change pushes it again
            logger.warning(
                "product sync failed for %s (%s): %s",
                session.identity, session.external_vendor_ref, exc,
            )

    async def _run_delete_profile(self, session: VendorSession, effect: DeleteProfile) -> None:
        await self.directory.delete(session.external_vendor_ref)
