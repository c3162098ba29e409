# app/domain/services/intent_classifier.py

import logging
import re
from dataclasses import dataclass
from enum import Enum

from app.domain.models.vendor_session import Step
from app.domain.services.product_extractor import has_price_marker

logger = logging.getLogger("intent_classifier")


class IntentKind(str, Enum):
    COMMAND = "command"
    DATA = "data"
    QUESTION = "question"


class Command(str, Enum):
    START = "start"
    DONE = "done"
    SHOW_PRODUCTS = "show_products"
    CONFIRM_DELETE_SHOP = "confirm_delete_shop"
    DELETE_SHOP = "delete_shop"
    DELETE_PRODUCT = "delete_product"
    CHANGE_NAME = "change_name"
    DIAGNOSE = "diagnose"
    HELP = "help"
    CANCEL = "cancel"
    YES = "yes"
    NO = "no"


# Ordered: longer phrases that share a prefix with shorter ones come first
# ("yes delete shop" before "yes", "delete shop" before "delete <item>").
COMMAND_PHRASES: list[tuple[Command, tuple[str, ...]]] = [
    (Command.CONFIRM_DELETE_SHOP, ("yes delete shop",)),
    (Command.DELETE_SHOP, ("delete shop", "close shop", "remove shop", "delete my shop")),
    (Command.SHOW_PRODUCTS, ("show products", "list products", "my products", "show my products", "view products")),
    (Command.CHANGE_NAME, ("change name", "rename shop", "edit name", "change shop name")),
    (Command.DIAGNOSE, ("check status", "diagnose", "check shop")),
    (Command.DONE, ("done", "finish", "finished", "complete", "completed")),
    (Command.START, ("start", "hi", "hello", "hey", "namaste", "begin")),
    (Command.HELP, ("help",)),
    (Command.CANCEL, ("cancel",)),
    (Command.DELETE_PRODUCT, ("delete", "remove")),
]

# Only meaningful while a profile summary awaits confirmation
CONFIRMATION_PHRASES: list[tuple[Command, tuple[str, ...]]] = [
    (Command.YES, ("yes", "y", "confirm", "correct", "ok", "okay")),
    (Command.NO, ("no", "n", "change", "edit")),
]

INTERROGATIVES = (
    "how", "what", "why", "when", "where", "who", "which",
    "can", "could", "do", "does", "is", "are", "will", "would", "should",
)

HELP_VOCABULARY = (
    "help", "assist", "support", "explain", "tell me", "show me", "guide",
    "problem", "issue", "error", "trouble", "not working", "doesn't work",
    "doesnt work", "can't", "cant", "cannot", "unable", "not showing",
    "not appearing", "not visible",
)

_SPACE_RE = re.compile(r"\s+")
_TRAILING_PUNCT = " .!,"
_INTERROGATIVE_RE = re.compile(r"^(?:" + "|".join(INTERROGATIVES) + r")\b", re.IGNORECASE)
_HELP_VOCAB_RE = re.compile(
    r"(?<!\w)(?:" + "|".join(re.escape(w) for w in HELP_VOCABULARY) + r")(?!\w)",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class Intent:
    kind: IntentKind
    command: Command | None = None
    argument: str | None = None  # e.g. "tea" for "delete tea"

    def is_command(self, *commands: Command) -> bool:
        return self.kind == IntentKind.COMMAND and self.command in commands


def normalize_text(text: str) -> str:
    return _SPACE_RE.sub(" ", (text or "").strip().lower()).strip(_TRAILING_PUNCT)


def _match_phrase(msg: str, phrase: str) -> str | None:
    """Return the text after ``phrase`` when msg equals or starts with it."""
    if msg == phrase:
        return ""
    # Single-letter answers ("y", "n") must stand alone
    if len(phrase) > 1 and re.match(re.escape(phrase) + r"\b", msg):
        return msg[len(phrase):].strip(" ,:-")
    return None


def _match_command(msg: str, table: list[tuple[Command, tuple[str, ...]]]) -> Intent | None:
    for command, phrases in table:
        for phrase in phrases:
            rest = _match_phrase(msg, phrase)
            if rest is None:
                continue
            if command == Command.DELETE_PRODUCT and "?" in msg:
                # "delete a product?" is somebody asking how
                return None
            return Intent(IntentKind.COMMAND, command, rest or None)
    return None


def is_question(text: str) -> bool:
    msg = normalize_text(text)
    if not msg:
        return False
    return (
        "?" in msg
        or bool(_INTERROGATIVE_RE.match(msg))
        or bool(_HELP_VOCAB_RE.search(msg))
    )


def classify(text: str, step: Step | None = None) -> Intent:
    """
    Categorise one inbound line for the session's current step.

    1. Fixed command vocabulary (exact or word-prefix match). Commands win
       over everything so the help responder can never swallow them.
    2. Anything carrying a price marker is data, even if worded as a question.
    3. Interrogative opening, "?" or help/problem vocabulary -> question.
    4. Otherwise data, for the extraction engine to try.
    """
    msg = normalize_text(text)

    if step == Step.CONFIRM_PROFILE:
        intent = _match_command(msg, CONFIRMATION_PHRASES)
        if intent is not None:
            return intent

    intent = _match_command(msg, COMMAND_PHRASES)
    if intent is not None:
        if intent.command == Command.CHANGE_NAME and intent.argument:
            intent = Intent(IntentKind.COMMAND, Command.CHANGE_NAME, _inline_new_name(text))
        elif intent.command == Command.DELETE_PRODUCT and intent.argument:
            intent = Intent(IntentKind.COMMAND, Command.DELETE_PRODUCT, _strip_article(intent.argument))
        return intent

    if has_price_marker(text):
        return Intent(IntentKind.DATA)

    if is_question(text):
        logger.debug("classified as question: %r", msg[:80])
        return Intent(IntentKind.QUESTION)

    return Intent(IntentKind.DATA)


def _strip_article(name: str) -> str:
    return re.sub(r"^(?:the|a|an|my)\s+", "", name).strip()


def _inline_new_name(text: str) -> str | None:
    """Keep the participant's casing for "change name to Raj Tea Stall"."""
    m = re.match(
        r"\s*(?:change shop name|change name|rename shop|edit name)\b[\s,:-]*(?:to\s+)?(.*)$",
        text,
        re.IGNORECASE | re.DOTALL,
    )
    if not m:
        return None
    name = m.group(1).strip(" .!")
    return name or None
