# shop_assistant/data_fetchers/__init__.py
"""
Data fetcher registry for the market API collaborators.
Every handler is an async callable; failures are swallowed inside the
handler and surface as empty results, never as exceptions.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict

from ..enums import BackendFunction

log = logging.getLogger(__name__)

# Registry for all data fetchers
_REGISTRY: Dict[BackendFunction, Callable[..., Awaitable[Any]]] = {}

def register_fetcher(
    function: BackendFunction,
    handler: Callable[..., Awaitable[Any]],
) -> None:
    """Register a fetcher function with its handler"""
    _REGISTRY[function] = handler

def get_fetcher(function: BackendFunction) -> Callable[..., Awaitable[Any]]:
    """Get the handler for a specific function"""
    if function not in _REGISTRY:
        raise ValueError(f"No fetcher registered for {function}")
    return _REGISTRY[function]

# Import the market API implementation (this registers the handlers)
from . import market_api  # noqa: E402, F401

def verify_registry() -> bool:
    """Ensure all backend functions have handlers"""
    missing = [func for func in BackendFunction if func not in _REGISTRY]
    if missing:
        log.warning(f"FETCHER_REGISTRY_INCOMPLETE | missing={[m.value for m in missing]}")
        return False
    log.debug(f"FETCHER_REGISTRY_OK | count={len(BackendFunction)}")
    return True

verify_registry()

__all__ = ["register_fetcher", "get_fetcher", "verify_registry"]
