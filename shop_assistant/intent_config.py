"""
Centralized configuration for intent triggers and the classification cascade.

This module serves as the single source of truth for:
- Trigger vocabularies (Vietnamese with English equivalents)
- Conjunction / continuation markers used by the comparison flow
- The ordered rule table evaluated by intent_classifier.classify
- Quick reply actions attached to every response
"""

from typing import Any, Dict, List, Tuple

from .enums import Intent


# ─────────────────────────────────────────────────────────────
# Trigger vocabularies (matched as whole words on lowercased text)
# ─────────────────────────────────────────────────────────────
COMPARE_TERMS: Tuple[str, ...] = ("so sánh", "đối chiếu", "compare")

# Second-item markers; only meaningful while a comparison is pending
CONTINUATION_TERMS: Tuple[str, ...] = ("so sánh với", "với", "và", "with", "and", "vs", "versus")

DETAIL_TERMS: Tuple[str, ...] = ("thông tin", "chi tiết", "mô tả", "detail", "details")
REVIEW_TERMS: Tuple[str, ...] = ("đánh giá", "review", "reviews", "nhận xét")
SELLER_TERMS: Tuple[str, ...] = ("người bán", "seller", "shop")
SALES_TERMS: Tuple[str, ...] = ("lượt bán", "đã bán", "bán được")
PRICE_TERMS: Tuple[str, ...] = ("giá", "bao nhiêu", "price")
STOCK_TERMS: Tuple[str, ...] = ("còn hàng", "tồn kho", "stock")
CATEGORY_TERMS: Tuple[str, ...] = ("danh mục", "loại", "phân loại", "category")

# Generic marketplace nouns that make a message look like a product search
SEARCH_NOUNS: Tuple[str, ...] = ("sản phẩm", "hàng", "mua", "bán")

# Separators used to split one comparison request into two subjects
CONJUNCTION_SPLIT_PATTERN = r"\s+(?:và|với|or|and|vs|versus)\s+"


# ─────────────────────────────────────────────────────────────
# Ordered classification cascade – first matching rule wins.
#   requires:
#     None       → trigger terms alone decide
#     "pending"  → a comparison must be awaiting its second product
#     "product"  → the exact resolver must find a product in the message
#     "search"   → the product-search heuristic decides (no trigger terms)
# ─────────────────────────────────────────────────────────────
INTENT_RULES: List[Dict[str, Any]] = [
    {"intent": Intent.COMPARE, "triggers": COMPARE_TERMS, "requires": None},
    {"intent": Intent.CONTINUE_COMPARISON, "triggers": CONTINUATION_TERMS, "requires": "pending"},
    {"intent": Intent.PRODUCT_DETAIL, "triggers": DETAIL_TERMS, "requires": "product"},
    {"intent": Intent.REVIEWS, "triggers": REVIEW_TERMS, "requires": "product"},
    {"intent": Intent.SELLER_INFO, "triggers": SELLER_TERMS, "requires": "product"},
    {"intent": Intent.SALES_INFO, "triggers": SALES_TERMS, "requires": "product"},
    {"intent": Intent.SEARCH, "triggers": SEARCH_NOUNS, "requires": "search"},
    {"intent": Intent.PRICE_QUERY, "triggers": PRICE_TERMS, "requires": None},
    {"intent": Intent.STOCK_QUERY, "triggers": STOCK_TERMS, "requires": None},
    {"intent": Intent.CATEGORY_LIST, "triggers": CATEGORY_TERMS, "requires": None},
]

# Messages longer than this (characters, after normalization) count as a search
SEARCH_MIN_MESSAGE_LENGTH = 10

# A lone SKU-like token ("HP-PAV-15", "hp-pav-15", "ABCDXYZ") is treated as a lookup:
# letters, digits and hyphens, at least 4 long, either all uppercase or carrying a digit
CODE_TOKEN_PATTERN = r"[A-Z0-9][A-Z0-9-]{3,}|(?=[A-Za-z-]*[0-9])[A-Za-z0-9][A-Za-z0-9-]{3,}"


# ─────────────────────────────────────────────────────────────
# Quick replies
# ─────────────────────────────────────────────────────────────
QUICK_ACTIONS: List[Dict[str, str]] = [
    {"label": "Sản phẩm mới", "value": "Sản phẩm mới nhất là gì?"},
    {"label": "Giá tốt nhất", "value": "Sản phẩm nào có giá tốt nhất?"},
    {"label": "Đánh giá cao", "value": "Sản phẩm nào có đánh giá tốt nhất?"},
    {"label": "So sánh sản phẩm", "value": "So sánh các sản phẩm"},
]


def get_rule(intent: Intent) -> Dict[str, Any]:
    for rule in INTENT_RULES:
        if rule["intent"] == intent:
            return rule
    raise KeyError(intent)
