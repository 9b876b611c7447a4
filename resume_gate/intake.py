"""
Intake handler behind POST /api/resume-request.

A submission becomes a pending RequestRecord plus one email to the approver
holding two links: approve and deny. Each link carries its own signed token
(see token.py); the two tokens share nothing but the secret.
"""
import logging
import re
import time
import uuid
from datetime import datetime, timezone
from typing import Callable
from urllib.parse import quote

from resume_gate.config import Settings
from resume_gate.errors import ValidationError
from resume_gate.models import RECORD_TTL_SECONDS, RequestRecord, Requester
from resume_gate.store import RequestStore
from resume_gate.templates import approver_notification
from resume_gate.token import issue_decision_tokens

logger = logging.getLogger(__name__)

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

DECISION_PATH = "/api/resume-decision"


def clean(value) -> str:
    return str(value or "").strip()


def is_email(value: str) -> bool:
    return bool(_EMAIL_PATTERN.match(value))


def parse_requester(form: dict) -> Requester:
    """
    Trim and validate the four form fields.

    Raises:
        ValidationError - a field is missing or blank, or email is malformed
    """
    if not isinstance(form, dict):
        raise ValidationError("All fields are required.")
    fields = {key: clean(form.get(key)) for key in ("name", "email", "company", "reason")}
    if not all(fields.values()):
        raise ValidationError("All fields are required.")
    if not is_email(fields["email"]):
        raise ValidationError("Invalid email address.")
    return Requester(**fields)


def decision_url(base: str, token: str) -> str:
    return f"{base}{DECISION_PATH}?token={quote(token, safe='')}"


class IntakeHandler:
    def __init__(
        self,
        settings: Settings,
        store: RequestStore,
        mailer,
        clock: Callable[[], float] = time.time,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        self._settings = settings
        self._store = store
        self._mailer = mailer
        self._clock = clock
        self._id_factory = id_factory

    def link_base(self, request_origin: str) -> str:
        return (self._settings.approval_base_url or request_origin).rstrip("/")

    def submit(self, form: dict, request_origin: str) -> RequestRecord:
        """
        Create a pending request and email the approver.

        Args:
            form           - decoded JSON body: name, email, company, reason
            request_origin - scheme://host of the incoming request; used for
                             links when APPROVAL_BASE_URL is not set

        Returns:
            RequestRecord - the stored pending record

        Raises:
            ValidationError - bad form input (nothing is stored or sent)
            DependencyError - the approver email could not be sent
        """
        requester = parse_requester(form)
        now = self._clock()
        record = RequestRecord(
            id=self._id_factory(),
            created_at=datetime.fromtimestamp(now, timezone.utc).isoformat(),
            requester=requester,
        )
        self._store.put(record.id, record, RECORD_TTL_SECONDS)

        tokens = issue_decision_tokens(record.id, self._settings.secret_bytes, now=now)
        base = self.link_base(request_origin)
        self._mailer.send(approver_notification(
            requester,
            approver_email=self._settings.approver_email,
            approve_url=decision_url(base, tokens["approve"]),
            deny_url=decision_url(base, tokens["deny"]),
        ))
        logger.info("Created resume request %s", record.id)
        return record
