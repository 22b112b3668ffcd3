"""
Transactional email for the contact form.

Sends through the Resend HTTP API with ``requests``; an in-memory mailer
records messages for tests and local runs. Bodies are Jinja2 templates in
``templates/`` rendered with autoescaping.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Protocol

import requests
from jinja2 import Environment, FileSystemLoader, select_autoescape

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"
REQUEST_TIMEOUT = 30  # seconds
TEMPLATE_DIR = Path(__file__).parent / "templates"

# "html.j2" is listed so the .html.j2 templates are escaped too.
_template_env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html", "xml", "html.j2"]),
)


class MailerError(Exception):
    """Sending an email failed."""


@dataclass
class EmailMessage:
    sender: str
    to: list[str]
    subject: str
    html: str


class Mailer(Protocol):
    def send(self, message: EmailMessage) -> dict:
        ...


@dataclass
class InMemoryMailer:
    """Test double that keeps every message it is asked to send."""

    sent: list[EmailMessage] = field(default_factory=list)
    error: Optional[Exception] = None

    def send(self, message: EmailMessage) -> dict:
        if self.error is not None:
            raise self.error
        self.sent.append(message)
        return {"id": f"in-memory-{len(self.sent)}"}


class ResendMailer:
    def __init__(self, api_key: str, session: Optional[requests.Session] = None):
        if not api_key:
            raise ValueError("RESEND_API_KEY is required for ResendMailer")
        self.api_key = api_key
        self.session = session or requests.Session()

    def send(self, message: EmailMessage) -> dict:
        try:
            response = self.session.post(
                RESEND_API_URL,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={
                    "from": message.sender,
                    "to": message.to,
                    "subject": message.subject,
                    "html": message.html,
                },
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            raise MailerError(f"Email request failed: {e}") from e
        if not response.ok:
            logger.error(
                "Email rejected: status=%s body=%s",
                response.status_code,
                (response.text or "")[:500],
            )
            raise MailerError(f"Email API error: {response.status_code}")
        return response.json()


@dataclass
class ContactDetails:
    first_name: str
    last_name: str
    email: str
    project_type: str
    message: str


def _render(template_name: str, **variables) -> str:
    return _template_env.get_template(template_name).render(**variables)


def build_confirmation_email(
    contact: ContactDetails, *, sender: str, whatsapp_number: str
) -> EmailMessage:
    """Thank-you note sent back to whoever filled in the form."""
    return EmailMessage(
        sender=sender,
        to=[contact.email],
        subject="Thank you for your inquiry!",
        html=_render(
            "contact_confirmation.html.j2",
            contact=contact,
            whatsapp_number=whatsapp_number,
        ),
    )


def build_notification_email(
    contact: ContactDetails, *, sender: str, recipient: str
) -> EmailMessage:
    """Notice to the business that a new enquiry arrived."""
    # Subject lines are plain text; only strip line breaks.
    project_type = " ".join(contact.project_type.split())
    return EmailMessage(
        sender=sender,
        to=[recipient],
        subject=f"New Contact Form Submission - {project_type}",
        html=_render("contact_notification.html.j2", contact=contact),
    )
