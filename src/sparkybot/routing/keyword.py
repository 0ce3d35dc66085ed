"""
Keyword classifier - fast, deterministic, no network.

Each enabled non-fallback skill is scored by how many of its trigger
patterns occur in the lowercased message:

    confidence = min(matched / total + 0.5, 1.0)

A single hit therefore scores at least 0.5. When nothing matches, the
fallback skill is returned at confidence 1.0.
"""

from __future__ import annotations

from typing import List, Optional, Protocol, Sequence

from sparkybot.skills.models import RoutingResult
from sparkybot.skills.registry import SkillRegistry


class KeywordMatcher(Protocol):
    def matches(self, message_lower: str, patterns: Sequence[str]) -> List[str]:
        """Return the patterns that hit the (already lowercased) message."""
        ...


class SubstringMatcher:
    """Plain substring containment, the historical matching rule."""

    def matches(self, message_lower: str, patterns: Sequence[str]) -> List[str]:
        return [p for p in patterns if p.lower() in message_lower]


def keyword_confidence(matched: int, total: int) -> float:
    if matched <= 0 or total <= 0:
        return 0.0
    return min(matched / total + 0.5, 1.0)


class KeywordClassifier:
    def __init__(self, registry: SkillRegistry, matcher: Optional[KeywordMatcher] = None) -> None:
        self._registry = registry
        self._matcher = matcher or SubstringMatcher()

    def classify(self, message: str) -> List[RoutingResult]:
        """Ranked candidates, best first. Never empty once the registry is loaded."""
        text = str(message or "").lower()

        results: List[RoutingResult] = []
        for skill in self._registry.list_enabled():
            if skill.is_fallback:
                continue
            hits = self._matcher.matches(text, skill.trigger_patterns)
            if not hits:
                continue
            results.append(
                RoutingResult(
                    skill_id=skill.id,
                    confidence=keyword_confidence(len(hits), len(skill.trigger_patterns)),
                    requires_approval=skill.requires_approval,
                )
            )

        # list.sort is stable: equal confidence keeps registry order
        results.sort(key=lambda r: r.confidence, reverse=True)

        if not results:
            results.append(self._fallback_result())
        return results

    def top(self, message: str) -> RoutingResult:
        return self.classify(message)[0]

    def _fallback_result(self) -> RoutingResult:
        fallback = self._registry.fallback
        if fallback is None:
            raise RuntimeError("skill registry is not loaded")
        return RoutingResult(
            skill_id=fallback.id,
            confidence=1.0,
            requires_approval=fallback.requires_approval,
        )
