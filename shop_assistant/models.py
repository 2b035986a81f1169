"""
Dataclass models for the shopping assistant.

Product / Seller / Review describe the read-only catalog snapshot as it
arrives from the market API. ConversationState is the per-session context
that the caller owns and passes into the core on every turn.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

from .enums import ComparisonStatus, Intent, MessageRole, ResponseType


def _to_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class Seller:
    name: Optional[str] = None
    rating: Optional[float] = None
    product_count: Optional[int] = None
    active_years: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Seller":
        product_count = data.get("productCount", data.get("product_count"))
        active_years = data.get("activeYears", data.get("active_years"))
        return cls(
            name=data.get("name"),
            rating=_to_float(data.get("rating")),
            product_count=_to_int(product_count) if product_count is not None else None,
            active_years=str(active_years) if active_years is not None else None,
            description=data.get("description"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Product:
    """One catalog entry. Never mutated by the core; a refresh replaces the snapshot."""
    id: str
    name: str
    model: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None          # None or 0 means "contact for price"
    stock: int = 0
    rating: Optional[float] = None         # average 0-5
    brand: Optional[str] = None
    warranty: Optional[str] = None
    seller: Optional[Seller] = None
    sales_count: Optional[int] = None
    last_sold_at: Optional[str] = None     # ISO8601
    sales_trend: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        """Lenient parse of a market API product (camelCase) or a stored one (snake_case)."""
        category = data.get("category")
        if isinstance(category, dict):
            category = category.get("name")

        seller = data.get("seller")
        sales_count = data.get("salesCount", data.get("sales_count"))

        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            model=data.get("model") or None,
            category=category or None,
            description=data.get("description") or None,
            price=_to_float(data.get("price")),
            stock=max(0, _to_int(data.get("stockQuantity", data.get("stock")))),
            rating=_to_float(data.get("rating", data.get("averageRating"))),
            brand=data.get("brand") or None,
            warranty=data.get("warranty") or None,
            seller=Seller.from_dict(seller) if isinstance(seller, dict) else None,
            sales_count=_to_int(sales_count) if sales_count is not None else None,
            last_sold_at=data.get("lastSoldDate", data.get("last_sold_at")),
            sales_trend=data.get("salesTrend", data.get("sales_trend")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ScoredProduct:
    product: Product
    score: float


@dataclass
class Review:
    author: Optional[str]
    rating: Optional[float]
    comment: str = ""
    verified_purchase: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Review":
        user = data.get("user")
        author = user.get("name") if isinstance(user, dict) else data.get("author")
        return cls(
            author=author,
            rating=_to_float(data.get("rating")),
            comment=str(data.get("comment") or ""),
            verified_purchase=bool(data.get("verifiedPurchase", data.get("verified_purchase", False))),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RatingStats:
    average: Optional[float] = None
    count: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RatingStats":
        return cls(
            average=_to_float(data.get("averageRating", data.get("average"))),
            count=_to_int(data.get("totalReviews", data.get("count"))),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ReviewBundle:
    """Reviews plus aggregate stats for one product; both may be empty."""
    reviews: List[Review] = field(default_factory=list)
    stats: Optional[RatingStats] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReviewBundle":
        stats = data.get("stats")
        return cls(
            reviews=[Review.from_dict(r) for r in data.get("reviews") or []],
            stats=RatingStats.from_dict(stats) if stats else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reviews": [r.to_dict() for r in self.reviews],
            "stats": self.stats.to_dict() if self.stats else None,
        }


@dataclass(frozen=True)
class QuickReply:
    """Quick action button; `value` is sent back as the next user message."""
    label: str
    value: str

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "value": self.value}


@dataclass(frozen=True)
class ComparisonRow:
    """One criterion of the side-by-side table. better: 1, 2, or 0 for a tie."""
    criterion: str
    first: Any
    second: Any
    better: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Message:
    role: MessageRole
    content: str
    products: List[Product] = field(default_factory=list)
    is_comparison: bool = False
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        return cls(
            role=MessageRole(data["role"]),
            content=data.get("content", ""),
            products=[Product.from_dict(p) for p in data.get("products") or []],
            is_comparison=bool(data.get("is_comparison", False)),
            timestamp=data.get("timestamp") or datetime.now().isoformat(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "role": self.role.value,
            "content": self.content,
            "products": [p.to_dict() for p in self.products],
            "is_comparison": self.is_comparison,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class PendingComparison:
    """Either empty (Idle) or holding exactly one product awaiting a second."""
    product: Optional[Product] = None

    @property
    def status(self) -> ComparisonStatus:
        if self.product is None:
            return ComparisonStatus.IDLE
        return ComparisonStatus.AWAITING_SECOND

    @property
    def is_awaiting(self) -> bool:
        return self.product is not None


@dataclass
class ConversationState:
    session_id: str = ""
    messages: List[Message] = field(default_factory=list)
    pending: PendingComparison = field(default_factory=PendingComparison)
    last_compared: List[Product] = field(default_factory=list)
    # product id -> ReviewBundle dict, filled once per session
    fetched: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConversationState":
        pending = data.get("pending")
        return cls(
            session_id=data.get("session_id", ""),
            messages=[Message.from_dict(m) for m in data.get("messages") or []],
            pending=PendingComparison(Product.from_dict(pending) if pending else None),
            last_compared=[Product.from_dict(p) for p in data.get("last_compared") or []],
            fetched=dict(data.get("fetched") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "messages": [m.to_dict() for m in self.messages],
            "pending": self.pending.product.to_dict() if self.pending.product else None,
            "last_compared": [p.to_dict() for p in self.last_compared],
            "fetched": self.fetched,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)

    def cached_reviews(self, product_id: str) -> Optional[ReviewBundle]:
        data = self.fetched.get(product_id)
        return ReviewBundle.from_dict(data) if data is not None else None


@dataclass
class BotResponse:
    """One reply per turn; rendering is left to the UI."""
    response_type: ResponseType
    intent: Intent
    text: str
    products: List[Product] = field(default_factory=list)
    is_comparison: bool = False
    comparison: List[ComparisonRow] = field(default_factory=list)
    quick_replies: List[QuickReply] = field(default_factory=list)
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "response_type": self.response_type.value,
            "intent": self.intent.value,
            "text": self.text,
            "products": [p.to_dict() for p in self.products],
            "is_comparison": self.is_comparison,
            "comparison": [row.to_dict() for row in self.comparison],
            "quick_replies": [qr.to_dict() for qr in self.quick_replies],
            "timestamp": self.timestamp,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)

    def to_message(self) -> Message:
        return Message(
            role=MessageRole.ASSISTANT,
            content=self.text,
            products=list(self.products),
            is_comparison=self.is_comparison,
            timestamp=self.timestamp,
        )
