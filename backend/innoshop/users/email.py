from __future__ import annotations

from abc import ABC, abstractmethod
from html import escape
from typing import Any
from urllib.parse import urlencode

import anyio.to_thread
import boto3

from ..observability.logging import get_logger
from ..settings import Settings

log = get_logger("email")


class EmailSender(ABC):
    @abstractmethod
    async def send(self, *, to_email: str, subject: str, html: str) -> str | None:
        """Deliver one message; returns the provider message id when there is one."""
        raise NotImplementedError


class LogEmailSender(EmailSender):
    """Development backend: records the message instead of delivering it."""

    async def send(self, *, to_email: str, subject: str, html: str) -> str | None:
        log.info("email_logged", to=to_email, subject=subject)
        log.debug("email_body", to=to_email, body=html)
        return None


class SesEmailSender(EmailSender):
    def __init__(self, *, from_email: str, region: str):
        self.from_email = from_email
        self.region = region
        self._client: Any = None

    def _sesv2_client(self) -> Any:
        if self._client is None:
            self._client = boto3.client("sesv2", region_name=self.region)
        return self._client

    def _send_sync(self, to_email: str, subject: str, html: str) -> str | None:
        resp = self._sesv2_client().send_email(
            FromEmailAddress=self.from_email,
            Destination={"ToAddresses": [to_email]},
            Content={
                "Simple": {
                    "Subject": {"Data": subject[:200]},
                    "Body": {"Html": {"Data": html}},
                }
            },
        )
        return (resp or {}).get("MessageId") if isinstance(resp, dict) else None

    async def send(self, *, to_email: str, subject: str, html: str) -> str | None:
        # boto3 is blocking.
        message_id = await anyio.to_thread.run_sync(self._send_sync, to_email, subject, html)
        log.info("email_sent", to=to_email, subject=subject, message_id=message_id)
        return message_id


def build_email_sender(settings: Settings) -> EmailSender:
    backend = str(settings.email_backend or "").strip().lower()
    if backend == "ses":
        return SesEmailSender(from_email=settings.email_from, region=settings.aws_region)
    if backend != "log":
        log.warning("email_backend_unknown", backend=backend, fallback="log")
    return LogEmailSender()


class EmailService:
    """Account emails: confirmation, password reset and welcome."""

    def __init__(self, settings: Settings, sender: EmailSender):
        self._frontend = str(settings.frontend_base_url or "").rstrip("/")
        self.sender = sender

    def _link(self, path: str, token: str) -> str:
        return f"{self._frontend}{path}?{urlencode({'token': token})}"

    async def send_confirmation_email(self, email: str, token: str) -> None:
        link = escape(self._link("/api/auth/confirm-email", token))
        html = (
            "<h2>Welcome to InnoShop!</h2>"
            "<p>Please confirm your email address by clicking the link below:</p>"
            f'<p><a href="{link}">Confirm Email</a></p>'
            "<p>If you did not create an account, you can ignore this email.</p>"
        )
        await self.sender.send(to_email=email, subject="Confirm Your Email - InnoShop", html=html)

    async def send_password_reset_email(self, email: str, token: str) -> None:
        link = escape(self._link("/reset-password", token))
        html = (
            "<h2>Password Reset Request</h2>"
            "<p>You requested a password reset. Click the link below to choose a new password:</p>"
            f'<p><a href="{link}">Reset Password</a></p>'
            "<p>This link will expire in 24 hours.</p>"
            "<p>If you did not request a password reset, you can ignore this email.</p>"
        )
        await self.sender.send(to_email=email, subject="Reset Your Password - InnoShop", html=html)

    async def send_welcome_email(self, email: str, first_name: str) -> None:
        html = (
            f"<h2>Welcome to InnoShop, {escape(first_name)}!</h2>"
            "<p>Your email has been confirmed and your account is ready to use.</p>"
        )
        await self.sender.send(to_email=email, subject="Welcome to InnoShop!", html=html)
