"""Email notifier using Resend API."""

import asyncio
import html
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol

import resend
from pydantic import BaseModel

from src.app.core.config import Settings
from src.app.core.exceptions import DeliveryError
from src.app.core.logging import get_logger

logger = get_logger(__name__)

# Thread pool for email sending with timeout support
_email_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="email_sender")

# Shared email styles
_BODY_STYLE = (
    "font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; "
    "line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;"
)
_BUTTON_STYLE = (
    "background-color: #2563eb; color: white; padding: 12px 24px; "
    "text-decoration: none; border-radius: 6px; display: inline-block; font-weight: 500;"
)
_CODE_STYLE = (
    "background-color: #111; color: #fff; font-size: 24px; letter-spacing: 4px; "
    "text-align: center; padding: 10px 20px; border-radius: 8px; margin: 16px 0;"
)
_LINK_STYLE = "color: #2563eb; word-break: break-all;"
_MUTED_STYLE = "color: #666; font-size: 14px;"


class EmailMessage(BaseModel):
    """A rendered message ready for delivery."""

    to: str
    subject: str
    html: str
    text: str | None = None


class Notifier(Protocol):
    """Delivers a message to one address.

    Implementations raise ``DeliveryError`` when the message could not be
    handed off.
    """

    async def send(self, message: EmailMessage) -> None: ...


class ResendNotifier:
    """Notifier backed by the Resend HTTP API.

    Without an API key the message is logged and dropped, which keeps local
    development working without credentials.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    async def send(self, message: EmailMessage) -> None:
        if not self.settings.resend_api_key:
            # Dev mode: log instead of sending
            logger.warning(
                "RESEND_API_KEY not set - email not sent",
                to=message.to,
                subject=message.subject,
            )
            return

        resend.api_key = self.settings.resend_api_key
        params: resend.Emails.SendParams = {
            "from": self.settings.email_from,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
        }
        if message.text:
            params["text"] = message.text

        loop = asyncio.get_running_loop()
        timeout = self.settings.email_send_timeout_seconds
        try:
            # Run the blocking SDK call off the event loop, bounded by a timeout
            await asyncio.wait_for(
                loop.run_in_executor(_email_executor, resend.Emails.send, params),
                timeout=timeout,
            )
        except TimeoutError as e:
            logger.error("Email send timed out", to=message.to, timeout=timeout)
            raise DeliveryError("Email send timed out") from e
        except Exception as e:
            logger.error("Failed to send email", to=message.to, error=str(e))
            raise DeliveryError() from e

        logger.info("Email sent", to=message.to, subject=message.subject)


def render_email_html(
    title: str,
    body: str,
    *,
    access_code: str | None = None,
    button_text: str | None = None,
    button_link: str | None = None,
    gym_name: str | None = None,
) -> str:
    """Render the shared email layout.

    Every interpolated value is HTML-escaped. The access code, when given, is
    rendered in a prominent block of its own.
    """
    parts = [
        f'<h1 style="color: #2563eb; margin-bottom: 24px;">{html.escape(title)}</h1>',
        f"<p>{html.escape(body)}</p>",
    ]
    if gym_name:
        parts.append(
            "<p>You've been invited by "
            f"<strong>{html.escape(gym_name)}</strong> to join as a trainer!</p>"
        )
    if access_code:
        parts.append(f'<div style="{_CODE_STYLE}">{html.escape(access_code)}</div>')
    if button_text and button_link:
        safe_link = html.escape(button_link, quote=True)
        parts.append(
            '<p style="margin: 32px 0;">'
            f'<a href="{safe_link}" style="{_BUTTON_STYLE}">{html.escape(button_text)}</a>'
            "</p>"
        )
        parts.append(
            f'<p style="{_MUTED_STYLE}">Or copy and paste this link into your browser:<br>'
            f'<a href="{safe_link}" style="{_LINK_STYLE}">{safe_link}</a></p>'
        )
    signature = f"{html.escape(gym_name)} Team" if gym_name else "Your Team"
    parts.append(
        f'<p style="{_MUTED_STYLE} margin-top: 32px;">'
        "If you did not request this, please ignore this email.</p>"
    )
    parts.append(f"<p>Best regards,<br>{signature}</p>")

    content = "\n    ".join(parts)
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="{_BODY_STYLE}">
    {content}
</body>
</html>"""


def build_invitation_email(
    settings: Settings, to: str, gym_name: str, access_code: str, token: str
) -> EmailMessage:
    """Build the trainer invitation carrying the access code and confirmation link."""
    confirmation_link = f"{settings.app_url}/trainer/confirm-invite?token={token}"
    return EmailMessage(
        to=to,
        subject="Gym Invitation",
        html=render_email_html(
            "You're invited!",
            f"Your access code for {gym_name} is shown below. "
            f"The invitation link expires in {settings.invitation_expire_days} days.",
            access_code=access_code,
            button_text="Accept Invitation",
            button_link=confirmation_link,
            gym_name=gym_name,
        ),
        text=(
            f"You have been invited to join {gym_name}. Your MPIN is {access_code}. "
            f"Please click the link to accept the invitation: {confirmation_link}"
        ),
    )


def build_verification_email(
    settings: Settings, to: str, full_name: str, token: str
) -> EmailMessage:
    """Build the email address verification message."""
    verification_link = f"{settings.app_url}/verify-email?token={token}"
    return EmailMessage(
        to=to,
        subject="Verify your email address",
        html=render_email_html(
            "Verify your email",
            f"Hi {full_name}, please verify your email by clicking the link below. "
            f"This link will expire in {settings.email_verification_expire_hours} hours.",
            button_text="Verify Email",
            button_link=verification_link,
        ),
    )
