import pytest
from langchain_core.messages import AIMessage

from sparkybot.audit.log import MemoryAuditLog
from sparkybot.routing.ai import KEYWORD_FALLBACK_REASONING
from sparkybot.routing.router import SkillRouter
from sparkybot.skills.registry import SkillRegistry


class FakeLLM:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = 0

    async def ainvoke(self, messages):
        self.calls += 1
        if self.error:
            raise self.error
        return AIMessage(content=self.reply)


class CountingStore:
    def __init__(self):
        self.calls = 0

    async def fetch_enabled(self):
        self.calls += 1
        return []


class BrokenAudit:
    async def record(self, entry):
        raise OSError("disk full")

    async def recent(self, limit=50):
        return []


def make_router(**kwargs):
    audit = MemoryAuditLog()
    router = SkillRouter(SkillRegistry(kwargs.pop("store", None)), audit_log=audit, **kwargs)
    return router, audit


@pytest.mark.asyncio
async def test_route_price_question_to_market():
    router, _ = make_router()
    result = await router.route("What's the price of NVDA?", "conv-1")
    assert result.skill_id == "market"
    assert result.confidence >= 0.5
    assert result.requires_approval is False
    assert result.extracted_params == {}
    assert result.reasoning is None


@pytest.mark.asyncio
async def test_route_small_talk_to_general():
    router, _ = make_router()
    result = await router.route("Hello, how are you?")
    assert result.skill_id == "general"
    assert result.confidence == 1.0
    assert result.requires_approval is False


@pytest.mark.asyncio
async def test_route_meeting_requires_approval():
    router, _ = make_router()
    result = await router.route("Schedule a meeting with John tomorrow at 2pm")
    assert result.skill_id == "calendar"
    assert result.requires_approval is True


@pytest.mark.asyncio
async def test_route_loads_registry_lazily_once():
    store = CountingStore()
    router, _ = make_router(store=store)
    assert router.registry.is_loaded is False

    await router.route("Check my email")
    await router.route("Check my email")

    assert router.registry.is_loaded is True
    assert store.calls == 1


@pytest.mark.asyncio
async def test_ai_failure_matches_keyword_result():
    message = "Schedule a meeting with John tomorrow at 2pm"
    router, _ = make_router()
    keyword_only = await router.route(message)
    llm = FakeLLM(error=ConnectionError("network error"))

    result = await router.route(message, llm=llm, use_ai=True)

    assert llm.calls == 1
    assert result is not None
    assert result.skill_id == keyword_only.skill_id
    assert result.confidence == keyword_only.confidence
    assert result.requires_approval == keyword_only.requires_approval
    assert result.extracted_params == keyword_only.extracted_params
    assert result.reasoning == KEYWORD_FALLBACK_REASONING


@pytest.mark.asyncio
async def test_use_ai_without_model_uses_keywords():
    router, _ = make_router()
    result = await router.route("Check my email", use_ai=True)
    assert result.skill_id == "email"
    assert result.reasoning is None


@pytest.mark.asyncio
async def test_model_ignored_when_ai_not_requested():
    router, _ = make_router()
    llm = FakeLLM('{"primaryIntent": "social"}')
    result = await router.route("Check my email", llm=llm)
    assert result.skill_id == "email"
    assert llm.calls == 0


@pytest.mark.asyncio
async def test_ai_result_carries_entities_and_approval():
    router, _ = make_router()
    llm = FakeLLM(
        '```json\n{"primaryIntent": "calendar", "confidence": 0.92, '
        '"entities": {"attendee": "John", "datetime": "tomorrow 2pm"}, "reasoning": "meeting request"}\n```'
    )
    result = await router.route("Set something up with John tomorrow at 2", llm=llm, use_ai=True)
    assert result.skill_id == "calendar"
    assert result.confidence == pytest.approx(0.92)
    assert result.extracted_params == {"attendee": "John", "datetime": "tomorrow 2pm"}
    assert result.requires_approval is True
    assert result.reasoning == "meeting request"


@pytest.mark.asyncio
async def test_unknown_ai_skill_routes_to_fallback():
    router, _ = make_router()
    llm = FakeLLM('{"primaryIntent": "weather", "confidence": 0.7, "reasoning": "forecast"}')
    result = await router.route("Will it rain?", llm=llm, use_ai=True)
    assert result.skill_id == "general"
    assert result.requires_approval is False
    assert result.confidence == pytest.approx(0.7)
    assert "forecast" in result.reasoning
    assert "weather" in result.reasoning


@pytest.mark.asyncio
async def test_one_audit_entry_per_call():
    router, audit = make_router()
    await router.route("What's the price of NVDA?", "conv-7")
    await router.route("Hello, how are you?", "conv-7")

    entries = await audit.recent()
    assert len(entries) == 2
    latest, first = entries
    assert first.skill_id == "market"
    assert first.action_type == "route"
    assert first.outcome == "success"
    assert first.action_details == {
        "message": "What's the price of NVDA?",
        "confidence": pytest.approx(0.625),
        "reasoning": "",
        "conversation_id": "conv-7",
    }
    assert latest.skill_id == "general"


@pytest.mark.asyncio
async def test_audit_preview_is_truncated():
    router, audit = make_router(preview_chars=10)
    await router.route("market " * 40)
    [entry] = await audit.recent()
    assert entry.action_details["message"] == "market mar"


@pytest.mark.asyncio
async def test_audit_failure_does_not_fail_routing():
    router = SkillRouter(SkillRegistry(), audit_log=BrokenAudit())
    result = await router.route("Check my email")
    assert result.skill_id == "email"


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["NaN", "Infinity", "-Infinity"])
async def test_non_finite_ai_confidence_still_routes(raw):
    router, audit = make_router()
    llm = FakeLLM('{"primaryIntent": "email", "confidence": %s}' % raw)
    result = await router.route("check my inbox", llm=llm, use_ai=True)
    assert result.skill_id == "email"
    assert result.confidence == 0.5
    [entry] = await audit.recent()
    assert entry.action_details["confidence"] == 0.5
