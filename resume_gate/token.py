"""
Signed decision tokens for the approve/deny links in the approver email.

Token format:

    base64url(claims_json) "." base64url(hmac_sha256(secret, claims_json))

Both segments are unpadded URL-safe base64. claims_json is canonical JSON
(sorted keys, compact separators) of {"action", "exp", "id"}.

The claims are readable by anyone holding the token; the tag only stops
forgery. A token is a bearer capability: whoever has an unexpired, correctly
signed token may decide that request. No session or server-side token state
is kept. Replays are made harmless by the request record's status, not by
the token (see decision.py).

decode_token() checks structure and signature only. Expiry is left to the
state machine because an expired link on an already-decided request still
reports the existing decision.
"""
import base64
import binascii
import json
import re
import time

from pydantic import BaseModel, ConfigDict, StrictInt, ValidationError

from resume_gate.models import TOKEN_TTL_HOURS, DecisionAction
from resume_gate.signing import sign, verify


class DecisionClaims(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    action: DecisionAction
    exp: StrictInt

    def is_expired(self, now: float | None = None) -> bool:
        now = time.time() if now is None else now
        return now > self.exp


def expires_in_hours(hours: int = TOKEN_TTL_HOURS, now: float | None = None) -> int:
    now = time.time() if now is None else now
    return int(now) + hours * 60 * 60


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


_B64URL_SEGMENT = re.compile(r"[A-Za-z0-9_-]+")


def _b64url_decode(segment: str) -> bytes:
    if not _B64URL_SEGMENT.fullmatch(segment):
        raise ValueError(f"not a base64url segment: {segment[:16]!r}")
    padded = segment + "=" * (-len(segment) % 4)
    return base64.b64decode(padded, altchars=b"-_", validate=True)


def _canonical_bytes(claims: DecisionClaims) -> bytes:
    body = {"id": claims.id, "action": claims.action.value, "exp": claims.exp}
    return json.dumps(body, sort_keys=True, separators=(",", ":")).encode("utf-8")


def encode_token(claims: DecisionClaims, secret: bytes) -> str:
    claims_bytes = _canonical_bytes(claims)
    tag = sign(claims_bytes, secret)
    return f"{_b64url_encode(claims_bytes)}.{_b64url_encode(tag)}"


def decode_token(token: str, secret: bytes) -> DecisionClaims | None:
    """
    Verify a token and return its claims, or None if it is not valid.

    Returns None (never raises) when:
      - the token is not exactly two "."-separated segments
      - either segment is not valid base64url
      - the tag does not match under constant-time comparison
      - the claims are not a JSON object with id, a known action and an integer exp

    The caller learns only "invalid", never which check failed.
    """
    if not isinstance(token, str):
        return None
    parts = token.split(".")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return None
    try:
        claims_bytes = _b64url_decode(parts[0])
        provided_tag = _b64url_decode(parts[1])
    except (binascii.Error, ValueError):
        return None

    if not verify(claims_bytes, provided_tag, secret):
        return None

    try:
        payload = json.loads(claims_bytes.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return None
    if not isinstance(payload, dict):
        return None
    try:
        claims = DecisionClaims.model_validate(payload)
    except ValidationError:
        return None
    if not claims.id:
        return None
    return claims


def issue_decision_tokens(request_id: str, secret: bytes, now: float | None = None) -> dict[str, str]:
    """Mint the approve and deny tokens for a new request. Keyed by action value."""
    exp = expires_in_hours(TOKEN_TTL_HOURS, now=now)
    return {
        action.value: encode_token(DecisionClaims(id=request_id, action=action, exp=exp), secret)
        for action in (DecisionAction.APPROVE, DecisionAction.DENY)
    }
