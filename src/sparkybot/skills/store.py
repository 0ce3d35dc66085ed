"""
Durable skill stores.

A store only has to answer "fetch all enabled skill rows". Rows are plain
dicts shaped like the `skills` table; the registry validates them into
`SkillDescriptor` objects.

Backends:
- FileSkillStore:     skills.yaml / skills.json on disk
- SQLiteSkillStore:   local `skills` table
- SupabaseSkillStore: hosted Postgres through the PostgREST endpoint
"""

from __future__ import annotations

import asyncio
import json
import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

import httpx
import yaml
from loguru import logger

from sparkybot.skills.models import SkillDescriptor

_LIST_COLUMNS = ("trigger_patterns", "required_inputs", "outputs", "dependencies")


@runtime_checkable
class SkillStore(Protocol):
    async def fetch_enabled(self) -> List[Dict[str, Any]]:
        ...


class FileSkillStore:
    """
    Skills defined in a YAML or JSON file.

    Accepted shapes: a top-level list of rows, or a mapping with a `skills` list.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    async def fetch_enabled(self) -> List[Dict[str, Any]]:
        content = self.path.read_text(encoding="utf-8")
        if self.path.suffix.lower() == ".json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)

        if isinstance(data, dict):
            data = data.get("skills")
        if not isinstance(data, list):
            raise ValueError(f"{self.path}: expected a list of skills")

        rows = [row for row in data if isinstance(row, dict)]
        return [row for row in rows if bool(row.get("enabled", True))]


class SQLiteSkillStore:
    """Local `skills` table; list columns hold JSON arrays."""

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
                CREATE TABLE IF NOT EXISTS skills (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    trigger_patterns TEXT NOT NULL DEFAULT '[]',
                    required_inputs TEXT NOT NULL DEFAULT '[]',
                    outputs TEXT NOT NULL DEFAULT '[]',
                    dependencies TEXT NOT NULL DEFAULT '[]',
                    autonomy_level TEXT NOT NULL
                        CHECK (autonomy_level IN ('full', 'approval_required')),
                    enabled INTEGER NOT NULL DEFAULT 1
                )
                """
            )

    async def upsert(self, skill: SkillDescriptor) -> None:
        await asyncio.to_thread(self._upsert_sync, skill)

    def _upsert_sync(self, skill: SkillDescriptor) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                """
                INSERT INTO skills (id, name, description, trigger_patterns, required_inputs,
                                    outputs, dependencies, autonomy_level, enabled)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    description = excluded.description,
                    trigger_patterns = excluded.trigger_patterns,
                    required_inputs = excluded.required_inputs,
                    outputs = excluded.outputs,
                    dependencies = excluded.dependencies,
                    autonomy_level = excluded.autonomy_level,
                    enabled = excluded.enabled
                """,
                (
                    skill.id,
                    skill.name,
                    skill.description,
                    json.dumps(skill.trigger_patterns),
                    json.dumps(skill.required_inputs),
                    json.dumps(skill.outputs),
                    json.dumps(skill.dependencies),
                    skill.autonomy_level.value,
                    1 if skill.enabled else 0,
                ),
            )

    async def fetch_enabled(self) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self._fetch_enabled_sync)

    def _fetch_enabled_sync(self) -> List[Dict[str, Any]]:
        if not self.db_path.exists():
            raise FileNotFoundError(f"skills database not found: {self.db_path}")
        with closing(self._connect()) as conn, conn:
            cursor = conn.execute("SELECT * FROM skills WHERE enabled = 1 ORDER BY rowid")
            rows = []
            for row in cursor.fetchall():
                item = dict(row)
                for col in _LIST_COLUMNS:
                    item[col] = json.loads(item.get(col) or "[]")
                item["enabled"] = bool(item.get("enabled"))
                rows.append(item)
            return rows


class SupabaseSkillStore:
    """
    Skills table in Supabase, read through PostgREST.

    Equivalent to: select * from skills where enabled = true
    """

    def __init__(
        self,
        url: str,
        key: str,
        *,
        table: str = "skills",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._url = str(url).rstrip("/")
        self._key = key
        self._table = table
        self._timeout = timeout
        self._transport = transport

    async def fetch_enabled(self) -> List[Dict[str, Any]]:
        headers = {
            "apikey": self._key,
            "Authorization": f"Bearer {self._key}",
            "Accept": "application/json",
        }
        params = {"select": "*", "enabled": "eq.true"}
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            resp = await client.get(f"{self._url}/rest/v1/{self._table}", headers=headers, params=params)
            resp.raise_for_status()
            data = resp.json()

        if not isinstance(data, list):
            raise ValueError("unexpected skills payload from Supabase")
        logger.debug(f"Fetched {len(data)} skill rows from Supabase")
        return [row for row in data if isinstance(row, dict)]
