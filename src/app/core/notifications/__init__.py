"""Notification utilities - email."""

from src.app.core.notifications.email import (
    EmailMessage,
    Notifier,
    ResendNotifier,
    build_invitation_email,
    build_verification_email,
    render_email_html,
)

__all__ = [
    "EmailMessage",
    "Notifier",
    "ResendNotifier",
    "build_invitation_email",
    "build_verification_email",
    "render_email_html",
]
