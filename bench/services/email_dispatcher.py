"""
Email dispatch for newsletter and account messages.

Templates are Jinja2 files under bench/templates/email. Two transports:
``log`` writes the rendered message to the structured log (the hosted
platform's send-email function did the same), ``http`` POSTs it to a
configured function URL.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import requests
from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape

from bench.utils.config import EmailSettings
from bench.utils.exceptions import ConfigError, UpstreamFailure, ValidationError
from bench.utils.logger import get_logger

logger = get_logger(__name__)

TEMPLATES_PATH = Path(__file__).resolve().parent.parent / "templates" / "email"

TEMPLATE_SUBJECTS: Dict[str, str] = {
    "email-verification": "Verify Your Email - Sulphuric Bench",
    "newsletter-welcome": "Welcome to Sulphuric Bench Newsletter!",
    "newsletter": "Sulphuric Bench Newsletter",
}


@dataclass
class EmailMessage:
    to: str
    subject: str
    html: str
    sender: str
    template: Optional[str] = None

    def as_payload(self) -> Dict[str, Any]:
        return {
            "to": self.to,
            "from": self.sender,
            "subject": self.subject,
            "html": self.html,
            "template": self.template,
        }


Transport = Callable[[EmailMessage], None]


def log_transport(message: EmailMessage) -> None:
    logger.info(
        "Email dispatched",
        to=message.to,
        subject=message.subject,
        template=message.template,
        preview=message.html[:200],
    )


class HttpTransport:
    """POST the message JSON to a serverless send-email endpoint."""

    def __init__(self, url: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def __call__(self, message: EmailMessage) -> None:
        try:
            response = self.session.post(self.url, json=message.as_payload(), timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamFailure(f"Email endpoint unreachable: {e}")
        if response.status_code >= 400:
            raise UpstreamFailure(f"Email endpoint returned {response.status_code}: {response.text[:200]}")


class EmailDispatcher:
    def __init__(self, transport: Transport = log_transport, sender: str = "noreply@sulphuricbench.com"):
        self.transport = transport
        self.sender = sender
        self._env = Environment(
            loader=FileSystemLoader(str(TEMPLATES_PATH)),
            autoescape=select_autoescape(["html"]),
        )

    @classmethod
    def from_settings(cls, settings: EmailSettings) -> "EmailDispatcher":
        transport_name = (settings.transport or "log").strip().lower()
        if transport_name == "log":
            transport: Transport = log_transport
        elif transport_name == "http":
            if not settings.function_url:
                raise ConfigError("email.function_url is required for the http transport")
            transport = HttpTransport(settings.function_url, timeout=settings.timeout_seconds)
        else:
            raise ConfigError(f"Unknown email transport: {settings.transport}")
        return cls(transport=transport, sender=settings.from_address)

    def render(self, template: str, data: Optional[Dict[str, Any]] = None) -> str:
        try:
            tpl = self._env.get_template(f"{template}.html")
        except TemplateNotFound:
            raise ValidationError(f"Unknown email template: {template}", public_message="Unknown email template")
        return tpl.render(**(data or {}))

    def send(
        self,
        to: str,
        subject: Optional[str] = None,
        template: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
        html: Optional[str] = None,
    ) -> EmailMessage:
        """Render and hand one message to the transport."""
        if not to:
            raise ValidationError("Missing recipient", public_message="Recipient email is required")
        if template:
            html = self.render(template, data)
            subject = subject or TEMPLATE_SUBJECTS.get(template, "Sulphuric Bench")
        message = EmailMessage(
            to=to,
            subject=subject or "Sulphuric Bench",
            html=html or "",
            sender=self.sender,
            template=template,
        )
        self.transport(message)
        return message
