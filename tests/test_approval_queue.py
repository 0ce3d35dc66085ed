from datetime import datetime, timedelta, timezone

import pytest

from sparkybot.approval.queue import (
    ApprovalError,
    ApprovalNotFoundError,
    ApprovalQueue,
    ApprovalStatus,
)
from sparkybot.audit.log import MemoryAuditLog
from sparkybot.skills.models import RoutingResult


class FakeClock:
    def __init__(self):
        self.now = datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def gated(skill_id="calendar", **params):
    return RoutingResult(
        skill_id=skill_id,
        confidence=0.8,
        extracted_params=params,
        requires_approval=True,
    )


@pytest.mark.asyncio
async def test_actionable_results_are_not_queued():
    queue = ApprovalQueue()
    result = RoutingResult(skill_id="market", confidence=0.6)
    assert await queue.submit(result, "price of NVDA") is None
    assert await queue.pending() == []


@pytest.mark.asyncio
async def test_submit_creates_pending_request():
    clock = FakeClock()
    queue = ApprovalQueue(ttl_seconds=60, clock=clock)
    request = await queue.submit(gated(attendee="John"), "Meet John", "conv-1")

    assert request.status == ApprovalStatus.PENDING
    assert request.is_pending
    assert request.params == {"attendee": "John"}
    assert request.conversation_id == "conv-1"
    assert request.expires_at == clock.now + timedelta(seconds=60)
    assert [r.id for r in await queue.pending()] == [request.id]
    assert (await queue.get(request.id)).message == "Meet John"


@pytest.mark.asyncio
async def test_approve_is_terminal_and_audited():
    audit = MemoryAuditLog()
    queue = ApprovalQueue(audit_log=audit)
    request = await queue.submit(gated(), "Schedule a meeting")

    approved = await queue.approve(request.id)
    assert approved.status == ApprovalStatus.APPROVED
    assert approved.resolved_at is not None
    assert approved.user_response == {"decision": "approved"}
    assert await queue.pending() == []

    with pytest.raises(ApprovalError, match="already approved"):
        await queue.reject(request.id)

    [entry] = await audit.recent()
    assert entry.action_type == "approval"
    assert entry.skill_id == "calendar"
    assert entry.user_approved is True
    assert entry.outcome == "approved"
    assert entry.action_details["request_id"] == request.id


@pytest.mark.asyncio
async def test_reject_is_audited_as_not_approved():
    audit = MemoryAuditLog()
    queue = ApprovalQueue(audit_log=audit)
    request = await queue.submit(gated("social"), "Post a tweet")

    rejected = await queue.reject(request.id)
    assert rejected.status == ApprovalStatus.REJECTED

    [entry] = await audit.recent()
    assert entry.user_approved is False
    assert entry.outcome == "rejected"


@pytest.mark.asyncio
async def test_modify_replaces_params():
    queue = ApprovalQueue()
    request = await queue.submit(gated("email", recipient="bob"), "Email Bob")

    modified = await queue.modify(request.id, {"recipient": "alice", "subject": "Hi"})
    assert modified.status == ApprovalStatus.MODIFIED
    assert modified.params == {"recipient": "alice", "subject": "Hi"}
    assert modified.user_response["params"] == {"recipient": "alice", "subject": "Hi"}


@pytest.mark.asyncio
async def test_requests_expire_on_access():
    clock = FakeClock()
    queue = ApprovalQueue(ttl_seconds=300, clock=clock)
    request = await queue.submit(gated(), "Schedule a meeting")

    clock.advance(seconds=299)
    assert (await queue.get(request.id)).is_pending

    clock.advance(seconds=1)
    assert await queue.pending() == []
    assert (await queue.get(request.id)).status == ApprovalStatus.EXPIRED
    with pytest.raises(ApprovalError, match="expired"):
        await queue.approve(request.id)


@pytest.mark.asyncio
async def test_no_ttl_never_expires():
    clock = FakeClock()
    queue = ApprovalQueue(ttl_seconds=None, clock=clock)
    request = await queue.submit(gated(), "Schedule a meeting")
    clock.advance(days=365)
    assert request.expires_at is None
    assert (await queue.get(request.id)).is_pending


@pytest.mark.asyncio
async def test_unknown_request():
    queue = ApprovalQueue()
    with pytest.raises(ApprovalNotFoundError):
        await queue.get("nope")
    with pytest.raises(ApprovalError):
        await queue.approve("nope")


@pytest.mark.asyncio
async def test_to_dict_is_json_ready():
    queue = ApprovalQueue()
    request = await queue.submit(gated(when="tomorrow"), "Meeting tomorrow")
    data = request.to_dict()
    assert data["status"] == "pending"
    assert data["params"] == {"when": "tomorrow"}
    assert data["resolved_at"] is None
    assert isinstance(data["created_at"], str)
