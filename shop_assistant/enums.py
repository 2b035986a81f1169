# shop_assistant/enums.py
from enum import Enum


class Intent(str, Enum):
    """One intent is selected per user message."""
    COMPARE = "compare"
    CONTINUE_COMPARISON = "continue-comparison"
    PRODUCT_DETAIL = "product-detail"
    REVIEWS = "reviews"
    SELLER_INFO = "seller-info"
    SALES_INFO = "sales-info"
    SEARCH = "search"
    PRICE_QUERY = "price-query"
    STOCK_QUERY = "stock-query"
    CATEGORY_LIST = "category-list"
    FALLBACK = "fallback"


class ComparisonStatus(str, Enum):
    IDLE = "idle"
    AWAITING_SECOND = "awaiting_second"


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ResponseType(str, Enum):
    FINAL_ANSWER = "final_answer"
    QUESTION = "question"          # we need more input (second product, clarification)
    ERROR = "error"


class BackendFunction(str, Enum):
    FETCH_CATALOG = "fetch_catalog"
    FETCH_PRODUCT_REVIEWS = "fetch_product_reviews"
    FETCH_RATING_STATS = "fetch_rating_stats"


# Intents that need a single definite product resolved by literal name/model
SINGLE_PRODUCT_INTENTS = frozenset({
    Intent.PRODUCT_DETAIL,
    Intent.REVIEWS,
    Intent.SELLER_INFO,
    Intent.SALES_INFO,
})


class ComparisonOutcome(str, Enum):
    """Result of one comparison-state transition."""
    COMPARED = "compared"
    AWAITING_SECOND = "awaiting_second"
    NO_PRODUCTS = "no_products"
    SELF_COMPARISON = "self_comparison"
    SECOND_NOT_FOUND = "second_not_found"
