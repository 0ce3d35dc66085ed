"""
Autonomy audit log.

One record per routing decision (and per approval decision). Sinks are
write-mostly; `recent()` exists for the web API and tests.
"""

from __future__ import annotations

import asyncio
import json
import sqlite3
from collections import deque
from contextlib import closing
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional, Protocol


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class AuditEntry:
    skill_id: str
    action_type: str
    action_details: Dict[str, Any] = field(default_factory=dict)
    user_approved: Optional[bool] = None
    outcome: Optional[str] = None
    created_at: datetime = field(default_factory=_utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "skill_id": self.skill_id,
            "action_type": self.action_type,
            "action_details": self.action_details,
            "user_approved": self.user_approved,
            "outcome": self.outcome,
            "created_at": self.created_at.isoformat(),
        }


class AuditLog(Protocol):
    async def record(self, entry: AuditEntry) -> None:
        ...

    async def recent(self, limit: int = 50) -> List[AuditEntry]:
        ...


class MemoryAuditLog:
    """In-process sink, bounded to the most recent `max_entries`."""

    def __init__(self, max_entries: int = 1000) -> None:
        self._entries: Deque[AuditEntry] = deque(maxlen=max_entries)

    async def record(self, entry: AuditEntry) -> None:
        self._entries.append(entry)

    async def recent(self, limit: int = 50) -> List[AuditEntry]:
        items = list(self._entries)[-limit:] if limit > 0 else []
        return list(reversed(items))


class SQLiteAuditLog:
    """`autonomy_log` table in a local SQLite database."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    async def initialize(self) -> None:
        await asyncio.to_thread(self._initialize_sync)

    def _initialize_sync(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with closing(self._connect()) as conn, conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS autonomy_log (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    skill_id TEXT NOT NULL,
                    action_type TEXT NOT NULL,
                    action_details TEXT NOT NULL,
                    user_approved INTEGER,
                    outcome TEXT,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_autonomy_log_skill ON autonomy_log(skill_id)")

    async def record(self, entry: AuditEntry) -> None:
        await asyncio.to_thread(self._record_sync, entry)

    def _record_sync(self, entry: AuditEntry) -> None:
        approved = None if entry.user_approved is None else int(entry.user_approved)
        with closing(self._connect()) as conn, conn:
            conn.execute(
                """
                INSERT INTO autonomy_log (skill_id, action_type, action_details, user_approved, outcome, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.skill_id,
                    entry.action_type,
                    json.dumps(entry.action_details, ensure_ascii=False, default=str),
                    approved,
                    entry.outcome,
                    entry.created_at.isoformat(),
                ),
            )

    async def recent(self, limit: int = 50) -> List[AuditEntry]:
        return await asyncio.to_thread(self._recent_sync, limit)

    def _recent_sync(self, limit: int) -> List[AuditEntry]:
        with closing(self._connect()) as conn:
            rows = conn.execute(
                "SELECT * FROM autonomy_log ORDER BY id DESC LIMIT ?", (int(limit),)
            ).fetchall()
        out: List[AuditEntry] = []
        for row in rows:
            approved = row["user_approved"]
            out.append(
                AuditEntry(
                    skill_id=row["skill_id"],
                    action_type=row["action_type"],
                    action_details=json.loads(row["action_details"] or "{}"),
                    user_approved=None if approved is None else bool(approved),
                    outcome=row["outcome"],
                    created_at=datetime.fromisoformat(row["created_at"]),
                )
            )
        return out
