# shop_assistant/utils/__init__.py
"""
Expose helpers at package-level for convenience:

    from shop_assistant.utils import tokenize
"""

from .helpers import (  # noqa: F401
    contains_any,
    extract_keywords,
    normalize,
    split_conjunctions,
    tokenize,
    unique,
)

__all__ = [
    "contains_any",
    "extract_keywords",
    "normalize",
    "split_conjunctions",
    "tokenize",
    "unique",
]
