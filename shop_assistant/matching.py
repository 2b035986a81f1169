# shop_assistant/matching.py
"""
Product matching over the in-memory catalog snapshot
────────────────────────────────────────────────────
• score_product      – weighted keyword containment against product fields
• rank_products      – score the whole catalog, drop zeros, stable sort
• find_relevant_products – exact-phrase shortcut, then keyword ranking (top-k)
• find_exact_product – single product whose name/model appears in the message
• find_mentioned_products – up to two distinct products for a comparison

Everything here is a pure function of its arguments; the catalog is never
mutated and an empty catalog simply yields empty results.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from .models import Product, ScoredProduct
from .utils.helpers import (MIN_KEYWORD_LENGTH, extract_keywords, normalize,
                            split_conjunctions, tokenize)

log = logging.getLogger(__name__)

MATCH_LIMIT = 5
MAX_MENTIONS = 2

# Messages with more words than this try an exact-phrase match first
EXACT_PHRASE_MIN_WORDS = 2

# Conjunction-split parts this short (characters) are ignored
MIN_MENTION_PART_LENGTH = 4

# Name/model hits are the strongest literal signal; description is long
# free text, hence the lowest weight.
FIELD_WEIGHTS: List[Dict[str, object]] = [
    {"field": "name", "weight": 2.0},
    {"field": "model", "weight": 2.0},
    {"field": "category", "weight": 1.0},
    {"field": "description", "weight": 0.5},
]


def _field_text(product: Product, field_name: str) -> str:
    value = getattr(product, field_name, None)
    return normalize(value) if value else ""


def score_product(product: Product, keywords: Sequence[str]) -> float:
    """
    Sum of field weights over every (keyword, field) containment hit.

    A keyword may hit several fields at once. Callers are expected to pass
    keywords already filtered for length.
    """
    fields = [(_field_text(product, fw["field"]), float(fw["weight"])) for fw in FIELD_WEIGHTS]
    score = 0.0
    for keyword in keywords:
        kw = keyword.lower()
        if not kw:
            continue
        for text, weight in fields:
            if text and kw in text:
                score += weight
    return score


def rank_products(
    keywords: Sequence[str],
    catalog: Sequence[Product],
) -> List[ScoredProduct]:
    """Non-zero scores, descending; ties keep catalog order (sorted is stable)."""
    scored = [
        ScoredProduct(product=p, score=score_product(p, keywords))
        for p in catalog
        if p and p.name
    ]
    scored = [sp for sp in scored if sp.score > 0]
    return sorted(scored, key=lambda sp: sp.score, reverse=True)


def find_relevant_products(
    message: str,
    catalog: Sequence[Product],
    limit: int = MATCH_LIMIT,
    min_keyword_length: int = MIN_KEYWORD_LENGTH,
) -> List[Product]:
    """
    Ranked products for a free-text query, at most `limit`.

    1. Multi-word queries first look for products whose name contains the
       whole query; a hit bypasses scoring entirely.
    2. Otherwise score keywords (length >= min_keyword_length) across the
       catalog and keep the top `limit`.
    """
    if not catalog:
        return []

    query = normalize(message)

    if len(tokenize(query)) > EXACT_PHRASE_MIN_WORDS:
        exact = [p for p in catalog if p and p.name and query in normalize(p.name)]
        if exact:
            log.debug(f"EXACT_PHRASE_MATCH | query='{query}' | hits={len(exact)}")
            return exact[:limit]

    keywords = extract_keywords(query, min_keyword_length)
    if not keywords:
        return []

    ranked = rank_products(keywords, catalog)
    log.debug(
        f"KEYWORD_MATCH | keywords={keywords} | hits={len(ranked)} | "
        f"top={[(sp.product.id, sp.score) for sp in ranked[:limit]]}"
    )
    return [sp.product for sp in ranked[:limit]]


def find_exact_product(message: str, catalog: Sequence[Product]) -> Optional[Product]:
    """
    First product in catalog order whose name or model code appears
    literally in the message. No scoring.
    """
    if not catalog:
        return None

    text = normalize(message)
    for product in catalog:
        if product and _mentions(product, text):
            return product
    return None


def _mentions(product: Product, text: str) -> bool:
    if product.name and normalize(product.name) in text:
        return True
    return bool(product.model and normalize(product.model) in text)


def find_mentioned_products(message: str, catalog: Sequence[Product]) -> List[Product]:
    """
    Up to two distinct products referenced by a comparison request,
    in discovery order.

    Literal name/model mentions come first. If fewer than two are found and
    the message splits on conjunctions ("A và B", "A vs B") into at least two
    substantial parts, each part contributes its best not-yet-seen match.
    """
    if not catalog:
        return []

    text = normalize(message)
    found: List[Product] = []
    seen: set[str] = set()

    for product in catalog:
        if not product or product.id in seen:
            continue
        if _mentions(product, text):
            found.append(product)
            seen.add(product.id)

    if len(found) < MAX_MENTIONS:
        parts = [p for p in split_conjunctions(text) if len(p) >= MIN_MENTION_PART_LENGTH]
        if len(parts) >= MAX_MENTIONS:
            for part in parts:
                for candidate in find_relevant_products(part, catalog):
                    if candidate.id not in seen:
                        found.append(candidate)
                        seen.add(candidate.id)
                        break
                if len(found) >= MAX_MENTIONS:
                    break

    return found[:MAX_MENTIONS]


def list_categories(catalog: Sequence[Product]) -> List[str]:
    """Distinct category names in catalog order."""
    categories: List[str] = []
    for product in catalog:
        if product and product.category and product.category not in categories:
            categories.append(product.category)
    return categories
