from sparkybot.approval.queue import (
    ApprovalError,
    ApprovalNotFoundError,
    ApprovalQueue,
    ApprovalRequest,
    ApprovalStatus,
)

__all__ = ["ApprovalError", "ApprovalNotFoundError", "ApprovalQueue", "ApprovalRequest", "ApprovalStatus"]
