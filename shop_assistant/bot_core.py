"""
Brain of the storefront shopping assistant.

Turn pipeline
─────────────
• classify(text, state, catalog)  → one Intent (ordered keyword cascade)
• resolve(intent, text, state, catalog, reviews) → (BotResponse, new state)
• AssistantCore.process_message wraps both with the async collaborators:
  catalog snapshot loading and review / rating-stats fetching.

The conversation state is owned by the caller and passed in on every turn;
nothing in this module keeps per-session data in globals.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, replace
from typing import Optional, Sequence, Tuple

from .comparison import abandon_comparison, continue_comparison, start_comparison
from .config import BaseConfig, get_config
from .data_fetchers import get_fetcher
from .enums import BackendFunction, Intent, MessageRole, SINGLE_PRODUCT_INTENTS
from .intent_classifier import classify
from .intent_config import CONTINUATION_TERMS
from .matching import (MATCH_LIMIT, find_exact_product, find_mentioned_products,
                       find_relevant_products, list_categories)
from .models import BotResponse, ConversationState, Message, Product, ReviewBundle
from .response_composer import (GREETING, compose_categories, compose_comparison,
                                compose_error, compose_fallback, compose_product_list,
                                compose_single_product)
from .utils.helpers import MIN_KEYWORD_LENGTH, normalize, text_after_first, trim_history
from .utils.smart_logger import get_smart_logger

log = logging.getLogger(__name__)

LIST_INTENTS = {Intent.SEARCH, Intent.PRICE_QUERY, Intent.STOCK_QUERY}


def new_conversation(session_id: str) -> ConversationState:
    """Fresh session: Idle, greeted."""
    return ConversationState(
        session_id=session_id,
        messages=[Message(role=MessageRole.ASSISTANT, content=GREETING)],
    )


# ─────────────────────────────────────────────────────────────
# Catalog snapshot
# ─────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class CatalogSnapshot:
    """Read-only product list; a refresh builds a new snapshot."""
    products: Tuple[Product, ...] = ()
    loaded_at: Optional[float] = None

    @property
    def is_loaded(self) -> bool:
        return self.loaded_at is not None

    def is_stale(self, ttl_seconds: int, now: Optional[float] = None) -> bool:
        if not self.is_loaded:
            return True
        if ttl_seconds <= 0:
            return False
        return ((now or time.time()) - self.loaded_at) > ttl_seconds

    def __len__(self) -> int:
        return len(self.products)


# ─────────────────────────────────────────────────────────────
# Pure resolution
# ─────────────────────────────────────────────────────────────
def _resolve_second_product(text: str, catalog: Sequence[Product]) -> Optional[Product]:
    """Exact lookup on the text after the continuation marker, then on the whole message."""
    normalized = normalize(text)
    remainder = text_after_first(normalized, CONTINUATION_TERMS)
    if remainder:
        product = find_exact_product(remainder, catalog)
        if product is not None:
            return product
    return find_exact_product(normalized, catalog)


def resolve(
    intent: Intent,
    text: str,
    state: ConversationState,
    catalog: Sequence[Product],
    reviews: Optional[ReviewBundle] = None,
    *,
    match_limit: int = MATCH_LIMIT,
    min_keyword_length: int = MIN_KEYWORD_LENGTH,
    reviews_shown: int = 3,
    cache_reviews: bool = True,
) -> Tuple[BotResponse, ConversationState]:
    """
    Build the reply for an already-classified message and the next state.

    `reviews` is the pre-fetched bundle for the resolved product when the
    intent is `reviews`; it is cached in the returned state unless
    `cache_reviews` is False (a partial bundle from a failed fetch).
    The input state is never mutated.
    """
    if intent == Intent.COMPARE:
        step = start_comparison(state, find_mentioned_products(text, catalog))
        return compose_comparison(intent, step.outcome, step.products), step.state

    if intent == Intent.CONTINUE_COMPARISON:
        step = continue_comparison(state, _resolve_second_product(text, catalog))
        return compose_comparison(intent, step.outcome, step.products), step.state

    new_state = abandon_comparison(state)

    if intent in SINGLE_PRODUCT_INTENTS:
        product = find_exact_product(text, catalog)
        bundle = reviews
        if product is not None:
            if bundle is None:
                bundle = new_state.cached_reviews(product.id)
            elif intent == Intent.REVIEWS and cache_reviews:
                new_state.fetched[product.id] = bundle.to_dict()
        return compose_single_product(intent, product, bundle, reviews_shown), new_state

    if intent in LIST_INTENTS:
        products = find_relevant_products(text, catalog, match_limit, min_keyword_length)
        return compose_product_list(intent, products), new_state

    if intent == Intent.CATEGORY_LIST:
        return compose_categories(list_categories(catalog)), new_state

    return compose_fallback(), new_state


# ─────────────────────────────────────────────────────────────
# Async orchestration
# ─────────────────────────────────────────────────────────────
class AssistantCore:
    def __init__(self, session_mgr=None, cfg: Optional[BaseConfig] = None) -> None:
        self.session_mgr = session_mgr
        self.cfg = cfg or get_config()
        self.catalog = CatalogSnapshot()
        self.smart_log = get_smart_logger("bot_core")

    # ────────────────────────────────────────────────────────
    # Catalog
    # ────────────────────────────────────────────────────────
    async def refresh_catalog(self) -> CatalogSnapshot:
        """Fetch and swap in a new snapshot; an empty or failed fetch keeps the old one."""
        try:
            products = await get_fetcher(BackendFunction.FETCH_CATALOG)()
        except Exception as exc:  # noqa: BLE001
            log.warning(f"CATALOG_REFRESH_FAILED | error={exc}")
            return self.catalog

        if not products:
            log.info(f"CATALOG_EMPTY | keeping={len(self.catalog)} products")
            return self.catalog

        self.catalog = CatalogSnapshot(products=tuple(products), loaded_at=time.time())
        log.info(f"CATALOG_REFRESHED | products={len(self.catalog)}")
        return self.catalog

    async def ensure_catalog(self) -> CatalogSnapshot:
        if self.catalog.is_stale(self.cfg.CATALOG_TTL_SECONDS):
            return await self.refresh_catalog()
        return self.catalog

    # ────────────────────────────────────────────────────────
    # Reviews
    # ────────────────────────────────────────────────────────
    async def fetch_reviews(
        self, product: Product, state: ConversationState
    ) -> Tuple[ReviewBundle, bool]:
        """Bundle for `product` plus whether it is complete enough to cache."""
        cached = state.cached_reviews(product.id)
        if cached is not None:
            self.smart_log.cache_hit(state.session_id, "reviews", product.id)
            return cached, True

        reviews_result, stats_result = await asyncio.gather(
            get_fetcher(BackendFunction.FETCH_PRODUCT_REVIEWS)(product.id),
            get_fetcher(BackendFunction.FETCH_RATING_STATS)(product.id),
            return_exceptions=True,
        )

        if isinstance(reviews_result, BaseException):
            self.smart_log.fetch_failed(state.session_id, "reviews", str(reviews_result))
            reviews_result = None
        if isinstance(stats_result, BaseException):
            self.smart_log.fetch_failed(state.session_id, "rating_stats", str(stats_result))
            stats_result = None

        complete = reviews_result is not None and stats_result is not None
        if not complete:
            log.info(f"REVIEWS_NOT_CACHED | session={state.session_id} | product={product.id}")
        return ReviewBundle(reviews=list(reviews_result or []), stats=stats_result), complete

    # ────────────────────────────────────────────────────────
    # Public entry points
    # ────────────────────────────────────────────────────────
    async def process_message(
        self, text: str, state: ConversationState
    ) -> Tuple[BotResponse, ConversationState]:
        """One full turn. Never raises; unexpected errors yield an apology reply."""
        started = time.time()
        snapshot = await self.ensure_catalog()
        catalog = snapshot.products
        session_id = state.session_id
        self.smart_log.query_start(session_id, text, len(catalog))

        intent = Intent.FALLBACK
        try:
            intent = classify(text, state, catalog, self.cfg.SEARCH_MIN_MESSAGE_LENGTH)
            self.smart_log.intent_classified(session_id, intent.value, state.pending.is_awaiting)

            bundle: Optional[ReviewBundle] = None
            complete = True
            if intent == Intent.REVIEWS:
                product = find_exact_product(text, catalog)
                if product is not None:
                    bundle, complete = await self.fetch_reviews(product, state)

            response, new_state = resolve(
                intent, text, state, catalog, bundle,
                match_limit=self.cfg.MATCH_LIMIT,
                min_keyword_length=self.cfg.MIN_KEYWORD_LENGTH,
                reviews_shown=self.cfg.REVIEWS_SHOWN,
                cache_reviews=complete,
            )
        except Exception as exc:  # noqa: BLE001
            log.error(f"TURN_FAILED | session={session_id} | intent={intent.value} | error={exc}", exc_info=True)
            self.smart_log.error_occurred(session_id, type(exc).__name__, "process_message", str(exc))
            response = compose_error(intent)
            new_state = replace(
                state,
                messages=list(state.messages),
                last_compared=list(state.last_compared),
                fetched=dict(state.fetched),
            )

        self.smart_log.products_matched(session_id, intent.value, [p.id for p in response.products])
        if state.pending.status != new_state.pending.status or intent in (
            Intent.COMPARE, Intent.CONTINUE_COMPARISON
        ):
            self.smart_log.comparison_transition(
                session_id, intent.value, state.pending.status.value, new_state.pending.status.value
            )

        new_state.messages.append(Message(role=MessageRole.USER, content=text))
        new_state.messages.append(response.to_message())
        trim_history(new_state.messages, self.cfg.HISTORY_MAX_MESSAGES)

        self.smart_log.response_ready(
            session_id, response.response_type.value, len(response.products), time.time() - started
        )
        return response, new_state

    async def handle_turn(self, session_id: str, text: str) -> Tuple[BotResponse, ConversationState]:
        """Load the session, process one message, persist the new state."""
        if self.session_mgr is None:
            raise RuntimeError("AssistantCore.handle_turn requires a session manager")
        state = self.session_mgr.get_state(session_id)
        response, new_state = await self.process_message(text, state)
        if not self.session_mgr.save_state(new_state):
            log.warning(f"SESSION_SAVE_FAILED | session={session_id}")
        return response, new_state
