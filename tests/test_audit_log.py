from datetime import datetime, timezone

import pytest

from sparkybot.audit.log import AuditEntry, MemoryAuditLog, SQLiteAuditLog


@pytest.mark.asyncio
async def test_memory_log_is_bounded_and_newest_first():
    log = MemoryAuditLog(max_entries=3)
    for i in range(5):
        await log.record(AuditEntry(skill_id=f"s{i}", action_type="route"))

    entries = await log.recent()
    assert [e.skill_id for e in entries] == ["s4", "s3", "s2"]
    assert [e.skill_id for e in await log.recent(limit=1)] == ["s4"]
    assert await log.recent(limit=0) == []


@pytest.mark.asyncio
async def test_sqlite_log_persists_entries(tmp_path):
    log = SQLiteAuditLog(tmp_path / "audit" / "audit.db")
    await log.initialize()

    created = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    await log.record(
        AuditEntry(
            skill_id="market",
            action_type="route",
            action_details={"message": "price of NVDA", "confidence": 0.625},
            outcome="success",
            created_at=created,
        )
    )
    await log.record(
        AuditEntry(skill_id="calendar", action_type="approval", user_approved=False, outcome="rejected")
    )

    reopened = SQLiteAuditLog(tmp_path / "audit" / "audit.db")
    entries = await reopened.recent()
    assert [e.skill_id for e in entries] == ["calendar", "market"]

    rejected, routed = entries
    assert rejected.user_approved is False
    assert rejected.outcome == "rejected"
    assert routed.user_approved is None
    assert routed.action_details == {"message": "price of NVDA", "confidence": 0.625}
    assert routed.created_at == created


def test_entry_to_dict():
    entry = AuditEntry(skill_id="email", action_type="route", outcome="success")
    data = entry.to_dict()
    assert data["skill_id"] == "email"
    assert data["user_approved"] is None
    assert data["created_at"].endswith("+00:00")
