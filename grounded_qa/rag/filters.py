"""
Compile the literal text of a question into a metadata predicate.
"""

from __future__ import annotations

from typing import Sequence

from grounded_qa.config import FilterRule
from grounded_qa.vector_store.base import MATCH_ALL, Equals, FilterPredicate


class FilterCompiler:
    """First rule whose trigger occurs in the lower-cased question wins; no conjunction."""

    def __init__(self, rules: Sequence[FilterRule]) -> None:
        self.rules = list(rules)

    def compile(self, query_text: str) -> FilterPredicate:
        lowered = (query_text or "").lower()
        for rule in self.rules:
            if rule.trigger.lower() in lowered:
                return Equals(key=rule.key, value=rule.value)
        return MATCH_ALL


__all__ = ["FilterCompiler"]
