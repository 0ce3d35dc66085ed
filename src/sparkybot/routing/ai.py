"""
AI classifier - language-model intent classification.

The model is asked for a JSON object; its reply is scanned for the first
balanced `{...}` that parses, so prose and code fences around the JSON are
ignored. Provider errors, timeouts and unparseable replies all degrade to
the keyword classifier's top result. This classifier never raises for
those cases.
"""

from __future__ import annotations

import asyncio
import json
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from loguru import logger

from sparkybot.routing.keyword import KeywordClassifier
from sparkybot.skills.models import IntentClassification, SkillDescriptor
from sparkybot.skills.registry import SkillRegistry

KEYWORD_FALLBACK_REASONING = "Fallback to keyword matching"

SYSTEM_PROMPT = """You are an intent classifier for a personal executive assistant bot.

Classify the user's message against the available skills. Respond in JSON format only:
{{
  "primaryIntent": "skill_id",
  "confidence": 0.0-1.0,
  "entities": {{ "key": "value" }},
  "reasoning": "brief explanation"
}}

Rules:
- Choose the most specific skill that matches
- Extract relevant entities (dates, names, symbols, etc.)
- Use "{fallback_id}" only if no other skill fits
- Confidence should reflect how certain you are"""

HUMAN_TEMPLATE = """Available skills:
{skills}
- {fallback_id}: For general conversation, questions, and anything that doesn't fit other categories

User message: "{message}\""""


@dataclass(frozen=True)
class ParsedClassification:
    classification: IntentClassification


@dataclass(frozen=True)
class ParseFailure:
    reason: str


ParseOutcome = Union[ParsedClassification, ParseFailure]


def _balanced_objects(text: str) -> Iterator[str]:
    """Yield every balanced {...} substring, in order of its opening brace."""
    start = text.find("{")
    while start >= 0:
        depth = 0
        in_string = False
        escaped = False
        end = -1
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    end = i
                    break
        if end >= 0:
            yield text[start : end + 1]
        start = text.find("{", start + 1)


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """First balanced JSON object embedded in `text`, or None."""
    for candidate in _balanced_objects(str(text or "")):
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data
    return None


def _coerce_confidence(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        return 0.5
    return min(max(float(value), 0.0), 1.0)


def parse_classification(text: str, fallback_id: str) -> ParseOutcome:
    data = extract_json_object(text)
    if data is None:
        return ParseFailure("no JSON object in model response")

    intent = str(data.get("primaryIntent") or "").strip() or fallback_id
    entities = data.get("entities")
    if not isinstance(entities, dict):
        entities = {}
    reasoning = data.get("reasoning")

    return ParsedClassification(
        IntentClassification(
            primary_intent=intent,
            confidence=_coerce_confidence(data.get("confidence")),
            entities={str(k): str(v) for k, v in entities.items() if v is not None},
            reasoning=str(reasoning) if reasoning is not None else "",
        )
    )


def build_messages(message: str, skills: Sequence[SkillDescriptor], fallback_id: str) -> List[BaseMessage]:
    lines = "\n".join(f"- {s.id}: {s.description}" for s in skills if not s.is_fallback)
    return [
        SystemMessage(content=SYSTEM_PROMPT.format(fallback_id=fallback_id)),
        HumanMessage(content=HUMAN_TEMPLATE.format(skills=lines, fallback_id=fallback_id, message=message)),
    ]


def _response_text(resp: Any) -> str:
    content = resp.content if hasattr(resp, "content") else resp
    if isinstance(content, list):
        # Some chat models return a list of content parts
        parts = []
        for part in content:
            if isinstance(part, dict):
                parts.append(str(part.get("text", "")))
            else:
                parts.append(str(part))
        return "".join(parts)
    return str(content)


class AIClassifier:
    def __init__(
        self,
        registry: SkillRegistry,
        keyword: KeywordClassifier,
        *,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self._registry = registry
        self._keyword = keyword
        self._timeout = float(timeout_seconds) if timeout_seconds else None

    async def classify(self, message: str, llm: Any) -> IntentClassification:
        fallback = self._registry.fallback
        fallback_id = fallback.id if fallback else "general"
        messages = build_messages(message, self._registry.list_enabled(), fallback_id)

        try:
            text = await self._complete(llm, messages)
        except asyncio.TimeoutError:
            logger.warning(f"AI classification timed out after {self._timeout}s, falling back to keyword matching")
            return self._keyword_fallback(message)
        except Exception as e:
            logger.warning(f"AI classification failed, falling back to keyword matching: {e}")
            return self._keyword_fallback(message)

        outcome = parse_classification(text, fallback_id)
        if isinstance(outcome, ParseFailure):
            logger.warning(f"AI classification unusable ({outcome.reason}), falling back to keyword matching")
            return self._keyword_fallback(message)

        logger.debug(
            f"AI classified as {outcome.classification.primary_intent} "
            f"({outcome.classification.confidence:.2f})"
        )
        return outcome.classification

    async def _complete(self, llm: Any, messages: List[BaseMessage]) -> str:
        # Accept an LLMProvider wrapper or a bare LangChain chat model
        model = getattr(llm, "llm", None) or llm
        call = model.ainvoke(messages)
        if self._timeout:
            resp = await asyncio.wait_for(call, timeout=self._timeout)
        else:
            resp = await call
        return _response_text(resp)

    def _keyword_fallback(self, message: str) -> IntentClassification:
        top = self._keyword.top(message)
        return IntentClassification(
            primary_intent=top.skill_id,
            confidence=top.confidence,
            entities={},
            reasoning=KEYWORD_FALLBACK_REASONING,
        )
