# shop_assistant/tests/conftest.py
from __future__ import annotations

import os

os.environ.setdefault("APP_ENV", "testing")

from typing import Any, Dict, List, Optional  # noqa: E402

import pytest  # noqa: E402

from shop_assistant.data_fetchers import _REGISTRY  # noqa: E402
from shop_assistant.enums import BackendFunction  # noqa: E402
from shop_assistant.models import Product, RatingStats, Review, Seller  # noqa: E402


@pytest.fixture
def p1() -> Product:
    return Product(
        id="p1",
        name="Laptop HP Pavilion",
        model="HP-PAV-15",
        category="Laptop",
        description="Laptop văn phòng mỏng nhẹ, màn hình 15 inch",
        price=15990000,
        stock=12,
        rating=4.2,
        brand="HP",
        seller=Seller(name="HP Store", rating=4.8, product_count=120, active_years="5 năm"),
        sales_count=340,
        last_sold_at="2024-03-05T10:00:00Z",
        sales_trend="Tăng",
    )


@pytest.fixture
def p2() -> Product:
    return Product(
        id="p2",
        name="Laptop Dell XPS",
        model="DELL-XPS-13",
        category="Laptop",
        description="Ultrabook cao cấp",
        price=32990000,
        stock=4,
        rating=4.7,
    )


@pytest.fixture
def catalog(p1: Product, p2: Product) -> List[Product]:
    return [p1, p2]


class DummyRedis:
    """In-memory stand-in for the handful of redis.Redis calls we use."""

    def __init__(self, healthy: bool = True):
        self.store: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.healthy = healthy

    def ping(self) -> bool:
        if not self.healthy:
            from redis.exceptions import ConnectionError
            raise ConnectionError("redis down")
        return True

    def get(self, key: str) -> Optional[str]:
        return self.store.get(key)

    def set(self, key: str, value: str) -> bool:
        self.store[key] = value
        return True

    def setex(self, key: str, ttl: int, value: str) -> bool:
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    def delete(self, *keys: str) -> int:
        deleted = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                deleted += 1
        return deleted


@pytest.fixture
def dummy_redis() -> DummyRedis:
    return DummyRedis()


class FakeMarket:
    """Records calls and serves canned data through the fetcher registry."""

    def __init__(self, products: List[Product]):
        self.products = products
        self.reviews: List[Review] = [
            Review(author="An", rating=5, comment="Rất tốt", verified_purchase=True),
            Review(author=None, rating=4, comment="Ổn"),
        ]
        self.stats: Optional[RatingStats] = RatingStats(average=4.5, count=2)
        self.calls: Dict[str, int] = {"catalog": 0, "reviews": 0, "stats": 0}
        self.fail_reviews = False

    async def fetch_catalog(self) -> List[Product]:
        self.calls["catalog"] += 1
        return list(self.products)

    async def fetch_reviews(self, product_id: str) -> List[Review]:
        self.calls["reviews"] += 1
        if self.fail_reviews:
            raise RuntimeError("reviews backend unreachable")
        return list(self.reviews)

    async def fetch_stats(self, product_id: str) -> Any:
        self.calls["stats"] += 1
        if self.fail_reviews:
            raise RuntimeError("stats backend unreachable")
        return self.stats


@pytest.fixture
def market(monkeypatch, catalog) -> FakeMarket:
    fake = FakeMarket(catalog)
    monkeypatch.setitem(_REGISTRY, BackendFunction.FETCH_CATALOG, fake.fetch_catalog)
    monkeypatch.setitem(_REGISTRY, BackendFunction.FETCH_PRODUCT_REVIEWS, fake.fetch_reviews)
    monkeypatch.setitem(_REGISTRY, BackendFunction.FETCH_RATING_STATS, fake.fetch_stats)
    return fake


@pytest.fixture
def down_redis() -> DummyRedis:
    return DummyRedis(healthy=False)
