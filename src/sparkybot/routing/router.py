"""
SkillRouter - choose which skill should handle a user message.

Selection:
1) AI classification when requested and a model is supplied
2) Keyword classification otherwise (and as the AI path's fallback)

The winning id is resolved against the registry. An unknown id (e.g. one
invented by the model) is replaced by the fallback skill. Exactly one audit
entry is written per call; audit failures are logged and ignored.
"""

from __future__ import annotations

from typing import Any, Optional

from loguru import logger

from sparkybot.audit.log import AuditEntry, AuditLog
from sparkybot.routing.ai import AIClassifier
from sparkybot.routing.keyword import KeywordClassifier, KeywordMatcher
from sparkybot.skills.models import IntentClassification, RoutingResult
from sparkybot.skills.registry import SkillRegistry


class SkillRouter:
    def __init__(
        self,
        registry: SkillRegistry,
        *,
        audit_log: Optional[AuditLog] = None,
        matcher: Optional[KeywordMatcher] = None,
        ai_timeout_seconds: Optional[float] = None,
        preview_chars: int = 100,
    ) -> None:
        self._registry = registry
        self._audit = audit_log
        self._keyword = KeywordClassifier(registry, matcher)
        self._ai = AIClassifier(registry, self._keyword, timeout_seconds=ai_timeout_seconds)
        self._preview_chars = max(int(preview_chars), 0)

    @property
    def registry(self) -> SkillRegistry:
        return self._registry

    @property
    def keyword(self) -> KeywordClassifier:
        return self._keyword

    @property
    def ai(self) -> AIClassifier:
        return self._ai

    async def route(
        self,
        message: str,
        conversation_id: str = "",
        llm: Any = None,
        use_ai: bool = False,
    ) -> RoutingResult:
        await self._registry.ensure_loaded()

        if use_ai and llm is not None:
            classification = await self._ai.classify(message, llm)
        else:
            top = self._keyword.top(message)
            classification = IntentClassification(
                primary_intent=top.skill_id,
                confidence=top.confidence,
                entities={},
                reasoning="",
            )

        result = self._resolve(classification)
        logger.debug(
            f"Routed [{conversation_id}] to {result.skill_id} "
            f"({result.confidence:.2f}, approval={result.requires_approval})"
        )
        await self._audit_decision(result, message, conversation_id)
        return result

    def _resolve(self, classification: IntentClassification) -> RoutingResult:
        skill = self._registry.get_by_id(classification.primary_intent)
        reasoning = classification.reasoning

        if skill is None or not skill.enabled:
            fallback = self._registry.fallback
            logger.warning(
                f"Classifier chose unknown skill {classification.primary_intent!r}, "
                f"using {fallback.id if fallback else 'none'}"
            )
            if fallback is None:
                raise RuntimeError("skill registry has no fallback skill")
            note = f"unknown skill '{classification.primary_intent}', routed to {fallback.id}"
            reasoning = f"{reasoning} ({note})" if reasoning else note
            skill = fallback

        return RoutingResult(
            skill_id=skill.id,
            confidence=classification.confidence,
            extracted_params=dict(classification.entities),
            requires_approval=skill.requires_approval,
            reasoning=reasoning or None,
        )

    async def _audit_decision(self, result: RoutingResult, message: str, conversation_id: str) -> None:
        if self._audit is None:
            return
        entry = AuditEntry(
            skill_id=result.skill_id,
            action_type="route",
            action_details={
                "message": str(message or "")[: self._preview_chars],
                "confidence": result.confidence,
                "reasoning": result.reasoning or "",
                "conversation_id": conversation_id,
            },
            outcome="success",
        )
        try:
            await self._audit.record(entry)
        except Exception as e:
            logger.warning(f"Failed to write routing audit entry: {e}")
