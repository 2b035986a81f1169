# shop_assistant/comparison.py
"""
Comparison state machine.

    Idle ──compare, 1 product──▶ AwaitingSecond(p1)
    Idle ──compare, 2 products─▶ Idle (pair cached as last_compared)
    AwaitingSecond(p1) ──continuation, p2 != p1──▶ Idle
    AwaitingSecond(p1) ──continuation, p2 == p1 or none──▶ AwaitingSecond(p1)
    AwaitingSecond(p1) ──any other intent──▶ Idle

Transitions never mutate the incoming state; they return a new one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence

from .enums import ComparisonOutcome
from .models import ConversationState, PendingComparison, Product

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComparisonStep:
    outcome: ComparisonOutcome
    state: ConversationState
    products: List[Product] = field(default_factory=list)

    @property
    def is_comparison(self) -> bool:
        return self.outcome == ComparisonOutcome.COMPARED


def _copy(state: ConversationState, **changes) -> ConversationState:
    changes.setdefault("messages", list(state.messages))
    changes.setdefault("last_compared", list(state.last_compared))
    changes.setdefault("fetched", dict(state.fetched))
    return replace(state, **changes)


def start_comparison(state: ConversationState, mentioned: Sequence[Product]) -> ComparisonStep:
    """Handle a compare request given the products it mentions (0-2, distinct)."""
    if len(mentioned) >= 2:
        first, second = mentioned[0], mentioned[1]
        new_state = _copy(state, pending=PendingComparison(), last_compared=[first, second])
        log.info(f"COMPARISON_READY | first={first.id} | second={second.id}")
        return ComparisonStep(ComparisonOutcome.COMPARED, new_state, [first, second])

    if len(mentioned) == 1:
        new_state = _copy(state, pending=PendingComparison(mentioned[0]))
        log.info(f"COMPARISON_PENDING | first={mentioned[0].id}")
        return ComparisonStep(ComparisonOutcome.AWAITING_SECOND, new_state, [mentioned[0]])

    return ComparisonStep(ComparisonOutcome.NO_PRODUCTS, _copy(state), [])


def continue_comparison(state: ConversationState, candidate: Optional[Product]) -> ComparisonStep:
    """Offer a second product to a pending comparison."""
    first = state.pending.product
    if first is None:
        # Nothing pending: treat like an empty compare request
        return ComparisonStep(ComparisonOutcome.NO_PRODUCTS, _copy(state), [])

    if candidate is None:
        return ComparisonStep(ComparisonOutcome.SECOND_NOT_FOUND, _copy(state), [first])

    if candidate.id == first.id:
        log.info(f"COMPARISON_SELF_REJECTED | product={first.id}")
        return ComparisonStep(ComparisonOutcome.SELF_COMPARISON, _copy(state), [first])

    new_state = _copy(state, pending=PendingComparison(), last_compared=[first, candidate])
    log.info(f"COMPARISON_READY | first={first.id} | second={candidate.id}")
    return ComparisonStep(ComparisonOutcome.COMPARED, new_state, [first, candidate])


def abandon_comparison(state: ConversationState) -> ConversationState:
    """Any unrelated intent drops a pending comparison."""
    if state.pending.is_awaiting:
        log.info(f"COMPARISON_ABANDONED | first={state.pending.product.id}")
    return _copy(state, pending=PendingComparison())
