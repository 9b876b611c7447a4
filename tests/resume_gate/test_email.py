import base64
import io
import json
import smtplib
import urllib.error
from unittest.mock import MagicMock, patch

import pytest

from resume_gate.config import Settings
from resume_gate.email import (
    Attachment,
    DryRunTransport,
    OutboundEmail,
    ResendTransport,
    SmtpTransport,
    build_transport,
)
from resume_gate.errors import DependencyError


def message(**overrides):
    fields = dict(to="jo@x.com", subject="Hi", html="<p>Hi</p>", text="Hi")
    fields.update(overrides)
    return OutboundEmail(**fields)


def urlopen_ok():
    resp = MagicMock()
    resp.read.return_value = b'{"id": "email-1"}'
    cm = MagicMock()
    cm.__enter__.return_value = resp
    return cm


class TestResendTransport:
    def test_posts_payload_with_bearer(self):
        transport = ResendTransport(api_key="re_test", sender="Bot <bot@x.com>")
        with patch("resume_gate.email.urllib.request.urlopen", return_value=urlopen_ok()) as mock_open:
            transport.send(message())
        req = mock_open.call_args.args[0]
        assert req.full_url == "https://api.resend.com/emails"
        assert req.get_method() == "POST"
        assert req.get_header("Authorization") == "Bearer re_test"
        assert json.loads(req.data) == {
            "from": "Bot <bot@x.com>",
            "to": "jo@x.com",
            "subject": "Hi",
            "html": "<p>Hi</p>",
            "text": "Hi",
        }

    def test_optional_fields_included_when_set(self):
        transport = ResendTransport(api_key="re_test", sender="bot@x.com")
        att = Attachment(filename="cv.pdf", content="JVBERg==")
        with patch("resume_gate.email.urllib.request.urlopen", return_value=urlopen_ok()) as mock_open:
            transport.send(message(bcc="hunter@x.com", attachments=[att]))
        payload = json.loads(mock_open.call_args.args[0].data)
        assert payload["bcc"] == "hunter@x.com"
        assert payload["attachments"] == [{"filename": "cv.pdf", "content": "JVBERg=="}]

    def test_http_error_becomes_dependency_error(self):
        transport = ResendTransport(api_key="re_test", sender="bot@x.com")
        error = urllib.error.HTTPError(
            "https://api.resend.com/emails", 422, "Unprocessable", {}, io.BytesIO(b"invalid from")
        )
        with patch("resume_gate.email.urllib.request.urlopen", side_effect=error):
            with pytest.raises(DependencyError, match="Email send failed: 422 invalid from"):
                transport.send(message())

    def test_network_error_becomes_dependency_error(self):
        transport = ResendTransport(api_key="re_test", sender="bot@x.com")
        with patch("resume_gate.email.urllib.request.urlopen", side_effect=urllib.error.URLError("timed out")):
            with pytest.raises(DependencyError, match="Email send failed"):
                transport.send(message())


class TestSmtpTransport:
    def test_sends_multipart_with_attachment(self):
        transport = SmtpTransport(sender="bot@x.com", host="smtp.test", port=2525, user="u", password="p")
        pdf = base64.b64encode(b"%PDF").decode()
        with patch("resume_gate.email.smtplib.SMTP") as mock_smtp:
            transport.send(message(bcc="hunter@x.com", attachments=[Attachment(filename="cv.pdf", content=pdf)]))
        mock_smtp.assert_called_once_with("smtp.test", 2525, timeout=10)
        server = mock_smtp.return_value.__enter__.return_value
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("u", "p")
        sent = server.send_message.call_args.args[0]
        assert sent["To"] == "jo@x.com"
        assert sent["Bcc"] == "hunter@x.com"
        parts = [p for p in sent.walk() if p.get_filename()]
        assert [p.get_filename() for p in parts] == ["cv.pdf"]
        assert parts[0].get_payload(decode=True) == b"%PDF"

    def test_skips_login_without_user(self):
        with patch("resume_gate.email.smtplib.SMTP") as mock_smtp:
            SmtpTransport(sender="bot@x.com").send(message())
        mock_smtp.return_value.__enter__.return_value.login.assert_not_called()

    def test_smtp_error_becomes_dependency_error(self):
        with patch("resume_gate.email.smtplib.SMTP", side_effect=smtplib.SMTPConnectError(421, "busy")):
            with pytest.raises(DependencyError):
                SmtpTransport(sender="bot@x.com").send(message())


class TestDryRunTransport:
    def test_records_messages(self):
        transport = DryRunTransport()
        transport.send(message())
        assert [m.to for m in transport.sent] == ["jo@x.com"]


class TestBuildTransport:
    def test_default_is_resend(self):
        assert isinstance(build_transport(Settings()), ResendTransport)

    def test_smtp(self):
        assert isinstance(build_transport(Settings(email_transport="smtp")), SmtpTransport)

    def test_dry_run(self):
        assert isinstance(build_transport(Settings(email_transport="dry_run")), DryRunTransport)

    def test_unknown(self):
        with pytest.raises(ValueError):
            build_transport(Settings(email_transport="pigeon"))
