"""
Outbound email for resume requests.

Three transports share one send(OutboundEmail) method:

    ResendTransport  - POST https://api.resend.com/emails (default)
    SmtpTransport    - smtplib with STARTTLS
    DryRunTransport  - logs and records the message instead of sending

Configure with env vars (see config.Settings):

    RESUME_EMAIL_TRANSPORT=resend | smtp | dry_run
    RESEND_API_KEY=re_xxx
    RESEND_FROM="Hunter Ramp <resume@hunterramp.dev>"
    SMTP_HOST / SMTP_PORT / SMTP_USER / SMTP_PASS

For local dev: set RESUME_EMAIL_DRY_RUN=1 to log instead of send.

Every transport failure is raised as DependencyError. The decision handler
relies on that: if the approval email cannot be sent, the request stays
pending and the approver can click the link again.
"""
import base64
import json
import logging
import smtplib
import urllib.error
import urllib.request
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from pydantic import BaseModel, Field

from resume_gate.errors import DependencyError

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class Attachment(BaseModel):
    filename: str
    content: str  # base64


class OutboundEmail(BaseModel):
    to: str
    subject: str
    html: str
    text: str
    bcc: str | None = None
    attachments: list[Attachment] = Field(default_factory=list)


class ResendTransport:
    def __init__(self, api_key: str, sender: str, api_url: str = RESEND_API_URL, timeout: int = 10):
        self._api_key = api_key
        self._sender = sender
        self._api_url = api_url
        self._timeout = timeout

    def _payload(self, message: OutboundEmail) -> dict:
        payload = {
            "from": self._sender,
            "to": message.to,
            "subject": message.subject,
            "html": message.html,
            "text": message.text,
        }
        if message.attachments:
            payload["attachments"] = [a.model_dump() for a in message.attachments]
        if message.bcc:
            payload["bcc"] = message.bcc
        return payload

    def send(self, message: OutboundEmail) -> None:
        req = urllib.request.Request(
            self._api_url,
            data=json.dumps(self._payload(message)).encode(),
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
            },
            method="POST",
        )
        try:
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:
                resp.read()
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace")
            raise DependencyError(f"Email send failed: {e.code} {body}") from e
        except (urllib.error.URLError, OSError) as e:
            raise DependencyError(f"Email send failed: {e}") from e


class SmtpTransport:
    def __init__(self, sender: str, host: str = "localhost", port: int = 587,
                 user: str = "", password: str = ""):
        self._sender = sender
        self._host = host
        self._port = port
        self._user = user
        self._password = password

    def _mime(self, message: OutboundEmail) -> MIMEMultipart:
        msg = MIMEMultipart("mixed")
        msg["Subject"] = message.subject
        msg["From"] = self._sender
        msg["To"] = message.to
        if message.bcc:
            msg["Bcc"] = message.bcc

        body = MIMEMultipart("alternative")
        body.attach(MIMEText(message.text, "plain", "utf-8"))
        body.attach(MIMEText(message.html, "html", "utf-8"))
        msg.attach(body)

        for attachment in message.attachments:
            part = MIMEApplication(base64.b64decode(attachment.content), Name=attachment.filename)
            part["Content-Disposition"] = f'attachment; filename="{attachment.filename}"'
            msg.attach(part)
        return msg

    def send(self, message: OutboundEmail) -> None:
        try:
            with smtplib.SMTP(self._host, self._port, timeout=10) as server:
                server.starttls()
                if self._user:
                    server.login(self._user, self._password)
                # send_message drops the Bcc header but still delivers to it.
                server.send_message(self._mime(message))
        except (smtplib.SMTPException, OSError) as e:
            raise DependencyError(f"Email send failed: {e}") from e


class DryRunTransport:
    """Keeps every message in .sent; tests assert against it."""

    def __init__(self):
        self.sent: list[OutboundEmail] = []

    def send(self, message: OutboundEmail) -> None:
        self.sent.append(message)
        logger.info(
            "[DRY RUN] email to=%s bcc=%s subject=%r attachments=%d",
            message.to, message.bcc, message.subject, len(message.attachments),
        )


def build_transport(settings):
    if settings.email_transport == "dry_run":
        return DryRunTransport()
    if settings.email_transport == "smtp":
        return SmtpTransport(
            sender=settings.email_from,
            host=settings.smtp_host,
            port=settings.smtp_port,
            user=settings.smtp_user,
            password=settings.smtp_pass,
        )
    if settings.email_transport == "resend":
        return ResendTransport(api_key=settings.resend_api_key, sender=settings.email_from)
    raise ValueError(f"Unknown RESUME_EMAIL_TRANSPORT: {settings.email_transport!r}")
