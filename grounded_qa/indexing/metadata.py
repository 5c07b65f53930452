"""
Rule-based metadata extraction from raw document text.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

from grounded_qa.config import MetadataRule


def _rule_matches(rule: MetadataRule, text: str, lowered: str) -> bool:
    if rule.contains is None:
        return True
    if rule.case_sensitive:
        return rule.contains in text
    return rule.contains.lower() in lowered


class MetadataExtractor:
    """
    Evaluate an ordered rule table; for every key the first matching rule wins.

    Every key must end with an unconditional rule so that each call yields
    exactly one value per key, whatever the text.
    """

    def __init__(self, rules: Sequence[MetadataRule]) -> None:
        grouped: Dict[str, List[MetadataRule]] = {}
        for rule in rules:
            grouped.setdefault(rule.key, []).append(rule)
        missing = [key for key, key_rules in grouped.items() if all(r.contains is not None for r in key_rules)]
        if missing:
            raise ValueError(f"metadata keys without an unconditional fallback rule: {missing}")
        self._rules = grouped

    def extract(self, text: str) -> Dict[str, str]:
        text = text or ""
        lowered = text.lower()
        metadata: Dict[str, str] = {}
        for key, key_rules in self._rules.items():
            for rule in key_rules:
                if _rule_matches(rule, text, lowered):
                    metadata[key] = rule.value
                    break
        return metadata


__all__ = ["MetadataExtractor"]
