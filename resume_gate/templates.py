"""
Email bodies and result pages.

Every value that came from the requester is HTML-escaped before it goes into
an HTML body. Plain-text bodies carry the raw values.
"""
from html import escape

from resume_gate.email import Attachment, OutboundEmail
from resume_gate.models import Requester

_BUTTON = (
    'display:inline-block;padding:10px 14px;border-radius:8px;'
    'background:{color};color:#fff;text-decoration:none;margin-right:8px;'
)

_RESULT_PAGE = (
    "<!doctype html><html><body style=\"font-family:system-ui;background:#0b0d12;"
    "color:#f3f4f6;padding:24px;\"><h2>{message}</h2></body></html>"
)


def result_page(message: str) -> str:
    """Wrap an already-escaped message in the decision result page."""
    return _RESULT_PAGE.format(message=message)


def approver_notification(
    requester: Requester,
    approver_email: str,
    approve_url: str,
    deny_url: str,
) -> OutboundEmail:
    name, company = requester.name, requester.company
    reason_html = escape(requester.reason).replace("\n", "<br/>")
    html = f"""
        <p>New resume request submitted.</p>
        <p><strong>Name:</strong> {escape(name)}<br/>
        <strong>Email:</strong> {escape(requester.email)}<br/>
        <strong>Company:</strong> {escape(company)}<br/>
        <strong>Reason:</strong><br/>{reason_html}</p>
        <p>
          <a href="{escape(approve_url)}" style="{_BUTTON.format(color='#1d4ed8')}">Approve</a>
          <a href="{escape(deny_url)}" style="{_BUTTON.format(color='#374151')}">Deny</a>
        </p>
        <p>Links expire in 7 days.</p>
    """
    text = "\n".join([
        "New resume request submitted.",
        f"Name: {name}",
        f"Email: {requester.email}",
        f"Company: {company}",
        f"Reason: {requester.reason}",
        "",
        f"Approve: {approve_url}",
        f"Deny: {deny_url}",
        "",
        "Links expire in 7 days.",
    ])
    return OutboundEmail(
        to=approver_email,
        subject=f"Resume request: {name} ({company})",
        html=html,
        text=text,
    )


def approval_email(requester: Requester, approver_email: str, attachment: Attachment) -> OutboundEmail:
    html = f"""
        <p>Hi {escape(requester.name)},</p>
        <p>Thanks for your interest. Your resume request has been approved.</p>
        <p>Please find the PDF attached.</p>
        <p>Best,<br/>Hunter Ramp</p>
    """
    text = (
        f"Hi {requester.name},\n\n"
        "Thanks for your interest. Your resume request has been approved.\n"
        "Please find the PDF attached.\n\n"
        "Best,\nHunter Ramp"
    )
    return OutboundEmail(
        to=requester.email,
        bcc=approver_email or None,
        subject="Resume Request Approved - Hunter Ramp",
        html=html,
        text=text,
        attachments=[attachment],
    )
