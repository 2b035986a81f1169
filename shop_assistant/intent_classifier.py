# shop_assistant/intent_classifier.py
"""
Intent Classification
─────────────────────
Keyword cascade over the ordered rule table in intent_config.INTENT_RULES.
The first rule whose conditions hold decides the intent; nothing is
scored and no rule is evaluated independently of the ones before it.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional, Sequence

from .enums import Intent
from .intent_config import CODE_TOKEN_PATTERN, INTENT_RULES, SEARCH_MIN_MESSAGE_LENGTH
from .matching import find_exact_product
from .models import ConversationState, PendingComparison, Product
from .utils.helpers import contains_any, normalize

log = logging.getLogger(__name__)

_CODE_TOKEN_RGX = re.compile(CODE_TOKEN_PATTERN)


def looks_like_product_search(
    raw_text: str,
    min_length: int = SEARCH_MIN_MESSAGE_LENGTH,
    nouns: Sequence[str] = (),
) -> bool:
    """Marketplace noun present, long message, or a lone SKU-like token."""
    text = normalize(raw_text)
    if nouns and contains_any(text, nouns):
        return True
    if len(text) > min_length:
        return True
    return _CODE_TOKEN_RGX.fullmatch((raw_text or "").strip()) is not None


def _rule_matches(
    rule: Dict[str, Any],
    raw_text: str,
    text: str,
    pending: PendingComparison,
    exact: Optional[Product],
    min_search_length: int,
) -> bool:
    requires = rule["requires"]
    if requires == "search":
        return looks_like_product_search(raw_text, min_search_length, rule["triggers"])
    if requires == "pending" and not pending.is_awaiting:
        return False
    if requires == "product" and exact is None:
        return False
    return contains_any(text, rule["triggers"])


def classify(
    text: str,
    state: Optional[ConversationState] = None,
    catalog: Sequence[Product] = (),
    min_search_length: int = SEARCH_MIN_MESSAGE_LENGTH,
) -> Intent:
    """
    Pick exactly one intent for `text` given the current comparison state.

    Product-specific rules (detail, reviews, seller, sales) sit before the
    broad search heuristic so that "đánh giá iPhone 15" is not swallowed by it.
    """
    pending = state.pending if state is not None else PendingComparison()
    normalized = normalize(text)
    exact = find_exact_product(normalized, catalog)

    for rule in INTENT_RULES:
        if _rule_matches(rule, text, normalized, pending, exact, min_search_length):
            log.debug(
                f"INTENT_RULE_HIT | intent={rule['intent'].value} | "
                f"pending={pending.is_awaiting} | exact={exact.id if exact else None}"
            )
            return rule["intent"]

    return Intent.FALLBACK
