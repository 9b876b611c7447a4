"""
Decision state machine and the handler behind GET /api/resume-decision.

decide() is pure: given verified claims, the stored record (or None) and the
current time, it returns which Transition applies. DecisionHandler performs
the side effects that Transition calls for.

    record        action    link        outcome
    ------        ------    ----        -------
    absent        any       any         NOT_FOUND        no mutation
    approved/     any       any         ALREADY_DECIDED  no mutation, no email
      denied
    pending       any       expired     EXPIRED          no mutation
    pending       deny      valid       DENY             → denied, no requester email
    pending       approve   valid       APPROVE          fetch PDF, send email, → approved

Status is checked before expiry, so clicking an old link on a decided request
reports the decision instead of "expired".

Ordering of the approve side effects
-------------------------------------
The email goes out before the record flips to approved. If the PDF fetch or
the send fails, DependencyError propagates, the record stays pending and the
approver can click again. A crash after the send but before the write means
the next click sends a second email; that window is accepted.

The write itself is put_if_status(id, PENDING, ...), so only one decision can
ever move a request out of pending. Two simultaneous approve clicks can still
both send before either writes; the store has no way to reserve the send.
"""
import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Callable

from pydantic import BaseModel

from resume_gate.config import Settings
from resume_gate.errors import AuthTokenError, NotFoundError
from resume_gate.models import DecisionAction, RequestRecord, RequestStatus
from resume_gate.storage import ObjectStore, fetch_attachment
from resume_gate.store import RequestStore
from resume_gate.templates import approval_email
from resume_gate.token import DecisionClaims, decode_token

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    ALREADY_DECIDED = "already_decided"
    DENY = "deny"
    APPROVE = "approve"


class Transition(BaseModel):
    outcome: Outcome
    record: RequestRecord | None = None

    @property
    def mutates(self) -> bool:
        return self.outcome in (Outcome.DENY, Outcome.APPROVE)


class DecisionResult(BaseModel):
    """What the approver sees. message is plain text; the route escapes it."""
    status_code: int
    message: str
    status: RequestStatus | None = None


def decide(claims: DecisionClaims, record: RequestRecord | None, now: float) -> Transition:
    if record is None:
        return Transition(outcome=Outcome.NOT_FOUND)
    if record.status != RequestStatus.PENDING:
        return Transition(outcome=Outcome.ALREADY_DECIDED, record=record)
    if claims.is_expired(now):
        return Transition(outcome=Outcome.EXPIRED, record=record)
    if claims.action == DecisionAction.DENY:
        return Transition(outcome=Outcome.DENY, record=record)
    return Transition(outcome=Outcome.APPROVE, record=record)


def _already(record: RequestRecord) -> DecisionResult:
    return DecisionResult(
        status_code=200,
        message=f"Request already {record.status.value}.",
        status=record.status,
    )


class DecisionHandler:
    def __init__(
        self,
        settings: Settings,
        store: RequestStore,
        objects: ObjectStore,
        mailer,
        clock: Callable[[], float] = time.time,
    ):
        self._settings = settings
        self._store = store
        self._objects = objects
        self._mailer = mailer
        self._clock = clock

    def handle(self, token: str | None) -> DecisionResult:
        """
        Verify token and apply the decision it carries.

        Raises:
            AuthTokenError  - token absent, malformed, forged or expired
            NotFoundError   - no live record for the token's request id
            DependencyError - PDF fetch or email send failed (record stays pending)
        """
        if not token:
            raise AuthTokenError("Invalid link.")
        claims = decode_token(token, self._settings.secret_bytes)
        if claims is None:
            logger.warning("Rejected decision token")
            raise AuthTokenError("Invalid or expired link.")

        now = self._clock()
        transition = decide(claims, self._store.get(claims.id), now)
        logger.info("Decision %s on request %s -> %s", claims.action.value, claims.id, transition.outcome.value)

        if transition.outcome == Outcome.NOT_FOUND:
            raise NotFoundError("Request not found.")
        if transition.outcome == Outcome.EXPIRED:
            raise AuthTokenError("This decision link has expired.")
        if not transition.mutates:
            return _already(transition.record)

        decided_at = datetime.fromtimestamp(now, timezone.utc).isoformat()
        if transition.outcome == Outcome.DENY:
            return self._deny(transition.record, decided_at)
        return self._approve(transition.record, decided_at)

    def _commit(self, record: RequestRecord, status: RequestStatus, decided_at: str) -> RequestRecord | None:
        """Move record out of pending. Returns the winning record if another decision got there first."""
        if self._store.put_if_status(record.id, RequestStatus.PENDING, record.decided(status, decided_at)):
            return None
        current = self._store.get(record.id)
        if current is None:
            raise NotFoundError("Request not found.")
        logger.warning("Request %s was decided concurrently", record.id)
        return current

    def _deny(self, record: RequestRecord, decided_at: str) -> DecisionResult:
        winner = self._commit(record, RequestStatus.DENIED, decided_at)
        if winner is not None:
            return _already(winner)
        return DecisionResult(
            status_code=200,
            message="Request denied. No email sent to requester.",
            status=RequestStatus.DENIED,
        )

    def _approve(self, record: RequestRecord, decided_at: str) -> DecisionResult:
        attachment = fetch_attachment(self._objects, self._settings.resume_pdf_key)
        self._mailer.send(approval_email(record.requester, self._settings.approver_email, attachment))

        winner = self._commit(record, RequestStatus.APPROVED, decided_at)
        if winner is not None:
            return _already(winner)
        return DecisionResult(
            status_code=200,
            message=f"Approved. Resume sent to {record.requester.email}.",
            status=RequestStatus.APPROVED,
        )
