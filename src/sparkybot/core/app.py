"""
Main application object for SparkyBot.

Builds the routing stack from configuration and manages its lifecycle.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from loguru import logger

from sparkybot.approval.queue import ApprovalQueue, ApprovalRequest
from sparkybot.audit.log import AuditLog, MemoryAuditLog, SQLiteAuditLog
from sparkybot.config.manager import ConfigManager
from sparkybot.integrations.llm_provider import LLMProvider
from sparkybot.routing.router import SkillRouter
from sparkybot.skills.models import RoutingResult
from sparkybot.skills.registry import SkillRegistry
from sparkybot.skills.store import FileSkillStore, SkillStore, SQLiteSkillStore, SupabaseSkillStore


@dataclass(frozen=True)
class Dispatch:
    """A routing decision plus its approval request, if the skill is gated."""

    result: RoutingResult
    approval: Optional[ApprovalRequest] = None


def build_skill_store(config: ConfigManager) -> Optional[SkillStore]:
    kind = str(config.get("skills.store", "auto") or "auto").lower()
    url = config.get("supabase.url") or ""
    key = config.get("supabase.key") or ""
    file_path = Path(config.get("skills.file_path") or "config/skills.yaml")
    db_path = Path(config.get("skills.db_path") or "data/skills.db")

    if kind == "auto":
        if url and key:
            kind = "supabase"
        elif db_path.exists():
            kind = "sqlite"
        elif file_path.exists():
            kind = "file"
        else:
            kind = "none"

    if kind == "supabase":
        return SupabaseSkillStore(url, key)
    if kind == "sqlite":
        return SQLiteSkillStore(db_path)
    if kind == "file":
        return FileSkillStore(file_path)
    if kind != "none":
        logger.warning(f"Unknown skills.store {kind!r}, using built-in skills")
    return None


class SparkyApp:
    """
    Coordinates config, skill registry, router, audit log and approvals.
    """

    def __init__(self, config_path: Optional[str] = None, *, config: Optional[ConfigManager] = None):
        self._config_path = config_path
        self.config: Optional[ConfigManager] = config
        self.registry: Optional[SkillRegistry] = None
        self.audit: Optional[AuditLog] = None
        self.router: Optional[SkillRouter] = None
        self.approvals: Optional[ApprovalQueue] = None
        self.llm: Optional[LLMProvider] = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def startup(self) -> None:
        """Initialize all components in order."""
        logger.info("Starting SparkyBot...")

        # 1. Configuration
        if self.config is None:
            self.config = ConfigManager(self._config_path)
            await self.config.load()

        # 2. Audit log
        audit_path = self.config.get("audit.db_path")
        if audit_path:
            sqlite_audit = SQLiteAuditLog(Path(audit_path))
            try:
                await sqlite_audit.initialize()
                self.audit = sqlite_audit
            except Exception as e:
                logger.warning(f"Audit database unavailable ({e}), keeping audit log in memory")
                self.audit = MemoryAuditLog()
        else:
            self.audit = MemoryAuditLog()

        # 3. Skills
        self.registry = SkillRegistry(build_skill_store(self.config))
        await self.registry.load()

        # 4. Router and approval gate
        self.router = SkillRouter(
            self.registry,
            audit_log=self.audit,
            ai_timeout_seconds=self.config.get("routing.ai_timeout_seconds"),
            preview_chars=int(self.config.get("routing.preview_chars", 100)),
        )
        self.approvals = ApprovalQueue(
            ttl_seconds=self.config.get("approval.ttl_seconds"),
            audit_log=self.audit,
        )

        # 5. Language model (optional)
        self.llm = LLMProvider(self.config.get("llm", {}))
        await self.llm.initialize()

        self._running = True
        logger.success(f"SparkyBot ready with {len(self.registry.list_enabled())} skills ({self.registry.source})")

    async def shutdown(self) -> None:
        logger.info("Shutting down SparkyBot...")
        self._running = False
        logger.success("SparkyBot shutdown complete")

    async def dispatch(
        self, message: str, conversation_id: str = "", use_ai: Optional[bool] = None
    ) -> Dispatch:
        """Route a message and gate the result when its skill needs approval."""
        if self.router is None or self.approvals is None:
            raise RuntimeError("SparkyApp.startup() has not been called")

        if use_ai is None:
            use_ai = bool(self.config.get("routing.use_ai", False)) if self.config else False
        llm = self.llm if self.llm is not None and self.llm.llm is not None else None

        result = await self.router.route(message, conversation_id, llm=llm, use_ai=use_ai)
        approval = await self.approvals.submit(result, message, conversation_id)
        return Dispatch(result=result, approval=approval)
