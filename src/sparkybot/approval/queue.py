"""
Approval gate.

Routing results for `approval_required` skills are proposals: they are
parked here as pending requests until the user approves, rejects or
modifies them, or until they expire.

    pending -> approved | rejected | modified | expired

Every state except `pending` is terminal.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from sparkybot.audit.log import AuditEntry, AuditLog
from sparkybot.skills.models import RoutingResult


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    MODIFIED = "modified"
    EXPIRED = "expired"


class ApprovalError(RuntimeError):
    """Unknown request id or a transition out of a terminal state."""


class ApprovalNotFoundError(ApprovalError):
    pass


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ApprovalRequest:
    id: str
    skill_id: str
    conversation_id: str
    message: str
    params: Dict[str, Any]
    status: ApprovalStatus
    created_at: datetime
    expires_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    user_response: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_pending(self) -> bool:
        return self.status == ApprovalStatus.PENDING

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "skill_id": self.skill_id,
            "conversation_id": self.conversation_id,
            "message": self.message,
            "params": dict(self.params),
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
            "user_response": dict(self.user_response),
        }


class ApprovalQueue:
    def __init__(
        self,
        *,
        ttl_seconds: Optional[float] = 86400,
        audit_log: Optional[AuditLog] = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._ttl = timedelta(seconds=float(ttl_seconds)) if ttl_seconds else None
        self._audit = audit_log
        self._clock = clock
        self._requests: Dict[str, ApprovalRequest] = {}
        self._lock = asyncio.Lock()

    async def submit(
        self, result: RoutingResult, message: str, conversation_id: str = ""
    ) -> Optional[ApprovalRequest]:
        """Park a gated routing result. Returns None when the result is immediately actionable."""
        if not result.requires_approval:
            return None

        now = self._clock()
        request = ApprovalRequest(
            id=uuid.uuid4().hex,
            skill_id=result.skill_id,
            conversation_id=conversation_id,
            message=message,
            params=dict(result.extracted_params),
            status=ApprovalStatus.PENDING,
            created_at=now,
            expires_at=now + self._ttl if self._ttl else None,
        )
        async with self._lock:
            self._requests[request.id] = request
        logger.info(f"Approval requested for {request.skill_id} ({request.id})")
        return request

    async def get(self, request_id: str) -> ApprovalRequest:
        async with self._lock:
            return self._get_locked(request_id)

    async def pending(self) -> List[ApprovalRequest]:
        async with self._lock:
            for rid in list(self._requests):
                self._get_locked(rid)
            return [r for r in self._requests.values() if r.is_pending]

    async def approve(self, request_id: str) -> ApprovalRequest:
        return await self._resolve(request_id, ApprovalStatus.APPROVED, approved=True)

    async def reject(self, request_id: str) -> ApprovalRequest:
        return await self._resolve(request_id, ApprovalStatus.REJECTED, approved=False)

    async def modify(self, request_id: str, params: Dict[str, Any]) -> ApprovalRequest:
        return await self._resolve(
            request_id, ApprovalStatus.MODIFIED, approved=True, params=dict(params)
        )

    def _get_locked(self, request_id: str) -> ApprovalRequest:
        request = self._requests.get(request_id)
        if request is None:
            raise ApprovalNotFoundError(f"approval request not found: {request_id}")
        if request.is_pending and request.expires_at and self._clock() >= request.expires_at:
            request = replace(request, status=ApprovalStatus.EXPIRED, resolved_at=self._clock())
            self._requests[request_id] = request
            logger.info(f"Approval request {request_id} expired")
        return request

    async def _resolve(
        self,
        request_id: str,
        status: ApprovalStatus,
        *,
        approved: bool,
        params: Optional[Dict[str, Any]] = None,
    ) -> ApprovalRequest:
        async with self._lock:
            request = self._get_locked(request_id)
            if not request.is_pending:
                raise ApprovalError(f"approval request {request_id} is already {request.status.value}")

            response: Dict[str, Any] = {"decision": status.value}
            if params is not None:
                response["params"] = params
            request = replace(
                request,
                status=status,
                resolved_at=self._clock(),
                params=params if params is not None else request.params,
                user_response=response,
            )
            self._requests[request_id] = request

        await self._audit_decision(request, approved)
        return request

    async def _audit_decision(self, request: ApprovalRequest, approved: bool) -> None:
        if self._audit is None:
            return
        try:
            await self._audit.record(
                AuditEntry(
                    skill_id=request.skill_id,
                    action_type="approval",
                    action_details={"request_id": request.id, "params": dict(request.params)},
                    user_approved=approved,
                    outcome=request.status.value,
                )
            )
        except Exception as e:
            logger.warning(f"Failed to write approval audit entry: {e}")
