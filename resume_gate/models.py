"""
Data models for resume requests.

RequestRecord is what the store holds under each request id. It is written
once at intake (status=pending) and changed at most once more, when the
approver clicks a link and the record moves to approved or denied. Records
are never deleted by the service; the store drops them after
RECORD_TTL_SECONDS.

Field names are snake_case in Python and camelCase on the wire
(createdAt, decidedAt) so stored JSON matches the records written by the
earlier service.
"""
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

RECORD_TTL_SECONDS = 60 * 60 * 24 * 30  # 30 days
TOKEN_TTL_HOURS = 168                   # 7 days


class RequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class DecisionAction(str, Enum):
    APPROVE = "approve"
    DENY = "deny"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Requester(BaseModel):
    """Who asked for the resume. Captured at intake, never edited."""
    model_config = ConfigDict(frozen=True)

    name: str
    email: str
    company: str
    reason: str


class RequestRecord(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    status: RequestStatus = RequestStatus.PENDING
    created_at: str = Field(alias="createdAt")
    decided_at: str | None = Field(default=None, alias="decidedAt")
    requester: Requester

    def decided(self, status: RequestStatus, decided_at: str | None = None) -> "RequestRecord":
        """
        Return a copy moved to a terminal status with decided_at stamped.

        Raises ValueError when the record has already left pending. The state
        machine checks status before calling this, so reaching the raise means
        a caller skipped that check.
        """
        if self.status != RequestStatus.PENDING:
            raise ValueError(f"Request {self.id} already {self.status.value}")
        if status == RequestStatus.PENDING:
            raise ValueError("A decision must move the request out of pending")
        return self.model_copy(
            update={"status": status, "decided_at": decided_at or utc_now_iso()}
        )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)

    @classmethod
    def from_json(cls, raw: str) -> "RequestRecord":
        return cls.model_validate_json(raw)
