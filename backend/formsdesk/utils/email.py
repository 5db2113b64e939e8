"""Notification email delivery through AWS SES"""
from html import escape
from typing import Any, Dict, List, NamedTuple, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from formsdesk.config import settings
from formsdesk.utils.logger import logger


class EmailResult(NamedTuple):
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class EmailMessage(NamedTuple):
    subject: str
    html: str
    text: str


class EmailService:
    """Thin wrapper over the SES ``send_email`` call.

    Delivery problems are reported in the returned :class:`EmailResult`; they
    never raise, since a failed notification must not fail a form post.
    """

    def __init__(self, client=None):
        self.client = client or boto3.client(
            "ses",
            region_name=settings.AWS_REGION,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
        )

    def send(self, to: List[str], sender: str, message: EmailMessage) -> EmailResult:
        try:
            response = self.client.send_email(
                Source=sender,
                Destination={"ToAddresses": to},
                Message={
                    "Subject": {"Data": message.subject, "Charset": "UTF-8"},
                    "Body": {
                        "Html": {"Data": message.html, "Charset": "UTF-8"},
                        "Text": {"Data": message.text, "Charset": "UTF-8"},
                    },
                },
            )
        except (BotoCoreError, ClientError) as exc:
            logger.warning("SES delivery failed", extra={"action": "send_email", "reason": str(exc)})
            return EmailResult(success=False, error=str(exc))

        return EmailResult(success=True, message_id=response.get("MessageId"))


# ---------------------------------------------------------------------------
# Message templates
# ---------------------------------------------------------------------------

_CONTACT_FIELDS = (("Name", "name"), ("Email", "email"), ("Phone", "phone"), ("Message", "message"))
_APPLICATION_FIELDS = (
    ("Name", "name"),
    ("Email", "email"),
    ("Phone", "phone"),
    ("Date of Birth", "dob"),
    ("Location", "location"),
    ("Experience", "experience"),
    ("CDL", "cdl"),
    ("Resume", "resume_filename"),
)


def _render(title: str, tenant_name: str, fields, data: Dict[str, Any]) -> EmailMessage:
    rows = [(label, data.get(key)) for label, key in fields if data.get(key)]
    html_rows = "".join(
        f"<tr><th align=\"left\">{escape(label)}</th><td>{escape(str(value))}</td></tr>"
        for label, value in rows
    )
    html = (
        f"<h2>{escape(title)}</h2>"
        f"<p>A new submission was received on the {escape(tenant_name)} website.</p>"
        f"<table>{html_rows}</table>"
    )
    text = "\n".join([title, ""] + [f"{label}: {value}" for label, value in rows])
    return EmailMessage(subject=f"{title} - {tenant_name}", html=html, text=text)


def contact_message(submission: Dict[str, Any], tenant_name: str) -> EmailMessage:
    return _render("New Contact Form Submission", tenant_name, _CONTACT_FIELDS, submission)


def application_message(submission: Dict[str, Any], tenant_name: str) -> EmailMessage:
    return _render("New Job Application", tenant_name, _APPLICATION_FIELDS, submission)


def verification_message(recipient_name: str, tenant_name: str) -> EmailMessage:
    text = (
        f"Hi {recipient_name},\n\n"
        f"This is a test notification from the {tenant_name} admin dashboard. "
        "If you received it, email notifications are working."
    )
    html = (
        f"<p>Hi {escape(recipient_name)},</p>"
        f"<p>This is a test notification from the {escape(tenant_name)} admin dashboard. "
        "If you received it, email notifications are working.</p>"
    )
    return EmailMessage(subject=f"Test Email - {tenant_name}", html=html, text=text)
