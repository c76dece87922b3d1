"""Outbound email for magic links.

Uses the Resend HTTP API when an API key is configured and falls back to
logging the link in development.
"""

from html import escape
from typing import Protocol

import httpx
import structlog

logger = structlog.get_logger()

RESEND_API_URL = "https://api.resend.com/emails"

_EMAIL_STYLES = """
  body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; }
  .container { max-width: 600px; margin: 0 auto; padding: 20px; }
  .button { display: inline-block; padding: 12px 24px; background-color: #c67d5a; color: white; text-decoration: none; border-radius: 6px; margin: 20px 0; }
  .footer { margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }
"""


class IEmailSender(Protocol):
    """Protocol for delivering magic links."""

    async def send_invite(
        self, to_email: str, to_name: str | None, group_name: str, magic_link: str
    ) -> None:
        """Send an invitation to join a group."""
        ...

    async def send_login_link(self, to_email: str, to_name: str, magic_link: str) -> None:
        """Send a sign-in link to an existing user."""
        ...


def render_invite(
    to_email: str, to_name: str | None, group_name: str, magic_link: str
) -> tuple[str, str, str]:
    """Return (subject, html, text) for an invite email."""
    greeting = f"Hi {escape(to_name)}!" if to_name else "Hi!"
    safe_group = escape(group_name)
    subject = f"You've been invited to join {group_name}!"
    html = f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><style>{_EMAIL_STYLES}</style></head>
<body>
  <div class="container">
    <p>{greeting}</p>
    <p>You've been invited to join <strong>{safe_group}</strong> on photodrop, a private photo sharing app.</p>
    <p>Click the button below to accept your invite. This link will expire in 15 minutes.</p>
    <p><a href="{escape(magic_link)}" class="button">Join {safe_group}</a></p>
    <p>Or copy and paste this link into your browser:</p>
    <p style="font-size: 12px; color: #6b7280; word-break: break-all;">{escape(magic_link)}</p>
    <div class="footer">
      <p>This invite was sent to {escape(to_email)}. If you didn't expect this email, you can safely ignore it.</p>
    </div>
  </div>
</body>
</html>"""
    text = (
        f"{'Hi ' + to_name + '!' if to_name else 'Hi!'}\n\n"
        f"You've been invited to join {group_name} on photodrop.\n\n"
        f"Accept your invite (expires in 15 minutes):\n{magic_link}\n"
    )
    return subject, html, text


def render_login_link(to_email: str, to_name: str, magic_link: str) -> tuple[str, str, str]:
    """Return (subject, html, text) for a sign-in email."""
    subject = "Your photodrop login link"
    html = f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><style>{_EMAIL_STYLES}</style></head>
<body>
  <div class="container">
    <p>Hi {escape(to_name)}!</p>
    <p>Click the button below to sign in to photodrop. This link will expire in 15 minutes.</p>
    <p><a href="{escape(magic_link)}" class="button">Sign in</a></p>
    <p>Or copy and paste this link into your browser:</p>
    <p style="font-size: 12px; color: #6b7280; word-break: break-all;">{escape(magic_link)}</p>
    <div class="footer">
      <p>This link was requested for {escape(to_email)}. If you didn't request it, you can safely ignore this email.</p>
    </div>
  </div>
</body>
</html>"""
    text = f"Hi {to_name}!\n\nSign in to photodrop (expires in 15 minutes):\n{magic_link}\n"
    return subject, html, text


class ResendEmailSender:
    """Delivers email through the Resend HTTP API."""

    def __init__(self, api_key: str, sender: str, timeout: float = 10.0) -> None:
        self._api_key = api_key
        self._sender = sender
        self._timeout = timeout

    async def send_invite(
        self, to_email: str, to_name: str | None, group_name: str, magic_link: str
    ) -> None:
        subject, html, text = render_invite(to_email, to_name, group_name, magic_link)
        await self._send(to_email, subject, html, text)

    async def send_login_link(self, to_email: str, to_name: str, magic_link: str) -> None:
        subject, html, text = render_login_link(to_email, to_name, magic_link)
        await self._send(to_email, subject, html, text)

    async def _send(self, to_email: str, subject: str, html: str, text: str) -> None:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                RESEND_API_URL,
                headers={"Authorization": f"Bearer {self._api_key}"},
                json={
                    "from": self._sender,
                    "to": [to_email],
                    "subject": subject,
                    "html": html,
                    "text": text,
                },
                timeout=self._timeout,
            )
            response.raise_for_status()
        logger.info("email_sent", subject=subject)


class LoggingEmailSender:
    """Development sender: records that an email would have gone out.

    The link itself is never logged since it carries a live bearer token.
    """

    async def send_invite(
        self, to_email: str, to_name: str | None, group_name: str, magic_link: str
    ) -> None:
        logger.info("email_skipped", kind="invite", to=to_email, group_name=group_name)

    async def send_login_link(self, to_email: str, to_name: str, magic_link: str) -> None:
        logger.info("email_skipped", kind="login", to=to_email)
