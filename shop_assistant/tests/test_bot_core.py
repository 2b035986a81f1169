from __future__ import annotations

import asyncio

import pytest

from shop_assistant import bot_core as bot_core_module
from shop_assistant.bot_core import AssistantCore, CatalogSnapshot, new_conversation, resolve
from shop_assistant.config import TestingConfig
from shop_assistant.enums import ComparisonStatus, Intent, MessageRole, ResponseType
from shop_assistant.intent_classifier import classify
from shop_assistant.models import ConversationState, PendingComparison, RatingStats, ReviewBundle
from shop_assistant.response_composer import GREETING, NO_SEARCH_RESULTS_TEXT


def _turn(core: AssistantCore, text: str, state: ConversationState):
    return asyncio.run(core.process_message(text, state))


@pytest.fixture
def core(market) -> AssistantCore:
    return AssistantCore(cfg=TestingConfig())


# ─────────────────────────────────────────────────────────────
# Pure resolution: the six walkthrough conversations
# ─────────────────────────────────────────────────────────────
def test_compare_two_named_products(catalog):
    text = "so sánh Laptop HP Pavilion và Laptop Dell XPS"
    state = new_conversation("s1")
    intent = classify(text, state, catalog)
    resp, new_state = resolve(intent, text, state, catalog)

    assert intent == Intent.COMPARE
    assert resp.is_comparison
    assert [p.id for p in resp.products] == ["p1", "p2"]
    assert new_state.pending.status == ComparisonStatus.IDLE
    assert [p.id for p in new_state.last_compared] == ["p1", "p2"]


def test_two_turn_comparison(catalog):
    state = new_conversation("s1")
    first = "so sánh Laptop HP Pavilion"
    resp, state = resolve(classify(first, state, catalog), first, state, catalog)
    assert resp.response_type == ResponseType.QUESTION
    assert state.pending.product.id == "p1"

    second = "với Laptop Dell XPS"
    intent = classify(second, state, catalog)
    resp, state = resolve(intent, second, state, catalog)
    assert intent == Intent.CONTINUE_COMPARISON
    assert resp.is_comparison
    assert [p.id for p in resp.products] == ["p1", "p2"]
    assert state.pending.status == ComparisonStatus.IDLE


def test_self_comparison_keeps_pending(catalog, p1):
    state = ConversationState(session_id="s1", pending=PendingComparison(p1))
    text = "với Laptop HP Pavilion"
    intent = classify(text, state, catalog)
    resp, new_state = resolve(intent, text, state, catalog)

    assert intent == Intent.CONTINUE_COMPARISON
    assert not resp.is_comparison
    assert "chính nó" in resp.text
    assert new_state.pending.product.id == "p1"


def test_reviews_by_model_code(catalog):
    text = "đánh giá HP-PAV-15"
    state = new_conversation("s1")
    intent = classify(text, state, catalog)
    resp, new_state = resolve(intent, text, state, catalog, ReviewBundle())

    assert intent == Intent.REVIEWS
    assert [p.id for p in resp.products] == ["p1"]
    assert "p1" in new_state.fetched


def test_unknown_code_is_an_empty_search(catalog):
    text = "ABCDXYZ"
    state = new_conversation("s1")
    intent = classify(text, state, catalog)
    resp, _ = resolve(intent, text, state, catalog)

    assert intent == Intent.SEARCH
    assert resp.products == []
    assert resp.text == NO_SEARCH_RESULTS_TEXT


def test_exactness_beats_description_keywords(catalog):
    # "mỏng nhẹ" only appears in P1's description; the literal name is P2
    text = "đánh giá Laptop Dell XPS mỏng nhẹ"
    resp, _ = resolve(classify(text, None, catalog), text, ConversationState(), catalog)
    assert [p.id for p in resp.products] == ["p2"]


def test_unrelated_intent_clears_pending(catalog, p1):
    state = ConversationState(session_id="s1", pending=PendingComparison(p1))
    text = "tìm laptop gaming"
    resp, new_state = resolve(classify(text, state, catalog), text, state, catalog)

    assert resp.intent == Intent.SEARCH
    assert new_state.pending.status == ComparisonStatus.IDLE
    assert state.pending.product is p1


@pytest.mark.parametrize(
    "text",
    [
        "so sánh Laptop HP Pavilion và Laptop Dell XPS",
        "đánh giá HP-PAV-15",
        "chi tiết Laptop HP Pavilion",
        "giá?",
        "stock?",
        "danh mục",
        "ABCDXYZ",
    ],
)
def test_empty_catalog_never_raises(text):
    state = new_conversation("s1")
    resp, _ = resolve(classify(text, state, []), text, state, [])
    assert resp.products == []
    assert resp.text


# ─────────────────────────────────────────────────────────────
# Catalog snapshot
# ─────────────────────────────────────────────────────────────
def test_snapshot_staleness(catalog):
    assert CatalogSnapshot().is_stale(300)
    snap = CatalogSnapshot(products=tuple(catalog), loaded_at=1000.0)
    assert not snap.is_stale(300, now=1200.0)
    assert snap.is_stale(300, now=1400.0)
    assert not snap.is_stale(0, now=10_000.0)
    assert len(snap) == 2


def test_catalog_loaded_once(core, market):
    state = new_conversation("s1")
    _, state = _turn(core, "danh mục", state)
    _, state = _turn(core, "danh mục", state)
    assert market.calls["catalog"] == 1
    assert len(core.catalog) == 2


def test_empty_fetch_is_retried_next_turn(core, market, catalog):
    market.products = []
    resp, state = _turn(core, "so sánh Laptop HP Pavilion và Laptop Dell XPS", new_conversation("s1"))
    assert resp.products == []
    assert not core.catalog.is_loaded

    market.products = list(catalog)
    resp, _ = _turn(core, "so sánh Laptop HP Pavilion và Laptop Dell XPS", state)
    assert resp.is_comparison
    assert market.calls["catalog"] == 2


# ─────────────────────────────────────────────────────────────
# Orchestrated turns
# ─────────────────────────────────────────────────────────────
def test_history_is_appended(core):
    state = new_conversation("s1")
    assert state.messages[0].content == GREETING

    resp, new_state = _turn(core, "so sánh Laptop HP Pavilion và Laptop Dell XPS", state)
    roles = [m.role for m in new_state.messages]
    assert roles == [MessageRole.ASSISTANT, MessageRole.USER, MessageRole.ASSISTANT]
    assert new_state.messages[-1].is_comparison
    assert len(state.messages) == 1


def test_history_is_trimmed(market):
    class ShortHistory(TestingConfig):
        HISTORY_MAX_MESSAGES = 4

    core = AssistantCore(cfg=ShortHistory())
    state = new_conversation("s1")
    for _ in range(3):
        _, state = _turn(core, "danh mục", state)
    assert len(state.messages) == 4


def test_reviews_fetched_once_per_session(core, market):
    state = new_conversation("s1")
    resp, state = _turn(core, "đánh giá HP-PAV-15", state)
    assert "Rất tốt" in resp.text
    assert "4.5 (2 đánh giá)" in resp.text

    resp, state = _turn(core, "đánh giá HP-PAV-15", state)
    assert "Rất tốt" in resp.text
    assert market.calls == {"catalog": 1, "reviews": 1, "stats": 1}

    # cached stats also enrich the detail view
    resp, _ = _turn(core, "chi tiết Laptop HP Pavilion", state)
    assert "4.5 (2 đánh giá)" in resp.text


def test_review_fetch_failure_degrades(core, market):
    market.fail_reviews = True
    resp, _ = _turn(core, "đánh giá HP-PAV-15", new_conversation("s1"))
    assert resp.response_type == ResponseType.FINAL_ANSWER
    assert [p.id for p in resp.products] == ["p1"]
    assert "Chưa có đánh giá nào" in resp.text


def test_failed_review_fetch_is_retried_next_turn(core, market):
    market.fail_reviews = True
    _, state = _turn(core, "đánh giá HP-PAV-15", new_conversation("s1"))
    assert state.fetched == {}

    market.fail_reviews = False
    resp, state = _turn(core, "đánh giá HP-PAV-15", state)
    assert "Rất tốt" in resp.text
    assert market.calls["reviews"] == 2
    assert "p1" in state.fetched


def test_partial_review_bundle_is_not_cached(core, market):
    market.stats = None
    resp, state = _turn(core, "đánh giá HP-PAV-15", new_conversation("s1"))
    assert "Rất tốt" in resp.text
    assert state.fetched == {}

    market.stats = RatingStats(average=4.5, count=2)
    _, state = _turn(core, "đánh giá HP-PAV-15", state)
    assert market.calls["stats"] == 2
    assert state.cached_reviews("p1").stats.count == 2


def test_resolve_can_skip_review_cache(catalog):
    text = "đánh giá HP-PAV-15"
    _, new_state = resolve(Intent.REVIEWS, text, new_conversation("s1"), catalog,
                           ReviewBundle(), cache_reviews=False)
    assert new_state.fetched == {}


def test_unexpected_error_yields_apology(core, monkeypatch, p1):
    def boom(*args, **kwargs):
        raise RuntimeError("classifier exploded")

    monkeypatch.setattr(bot_core_module, "classify", boom)
    state = ConversationState(session_id="s1", pending=PendingComparison(p1))
    resp, new_state = _turn(core, "so sánh", state)

    assert resp.response_type == ResponseType.ERROR
    assert "Xin lỗi" in resp.text
    assert new_state.pending.product is p1
    assert len(new_state.messages) == 2


class _MemorySessions:
    def __init__(self):
        self.saved = {}

    def get_state(self, session_id):
        return self.saved.get(session_id) or new_conversation(session_id)

    def save_state(self, state):
        self.saved[state.session_id] = state
        return True


def test_handle_turn_persists_state(market):
    sessions = _MemorySessions()
    core = AssistantCore(sessions, TestingConfig())

    asyncio.run(core.handle_turn("s1", "so sánh Laptop HP Pavilion"))
    assert sessions.saved["s1"].pending.product.id == "p1"

    resp, _ = asyncio.run(core.handle_turn("s1", "với Laptop Dell XPS"))
    assert resp.is_comparison
    assert not sessions.saved["s1"].pending.is_awaiting


def test_handle_turn_requires_session_manager(core):
    with pytest.raises(RuntimeError):
        asyncio.run(core.handle_turn("s1", "xin chào"))
