"""
Email Sender
Delivers Classroom Solutions responses through the Resend API.

Without RESEND_API_KEY the message is only logged and reported as sent,
which keeps local development and demos working.
"""

import logging
from typing import Optional

import resend

from concern2care.core.config import settings

logger = logging.getLogger(__name__)


class EmailSender:
    """Send plain-text emails via Resend."""

    def __init__(self, api_key: Optional[str] = None, from_email: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.RESEND_API_KEY
        self.from_email = from_email or settings.EMAIL_FROM
        if self.api_key:
            resend.api_key = self.api_key
        else:
            logger.warning("RESEND_API_KEY not set. Emails will be logged, not delivered.")

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def send(self, recipient: str, subject: str, body: str, reply_to: Optional[str] = None) -> bool:
        """
        Send a single email.

        Returns:
            True if the provider accepted the message, False otherwise
        """
        if not self.configured:
            logger.info(f"Email would be sent to: {recipient} | Subject: {subject}")
            return True

        params = {
            "from": self.from_email,
            "to": [recipient],
            "subject": subject,
            "text": body,
        }
        if reply_to:
            params["reply_to"] = reply_to

        try:
            response = resend.Emails.send(params)
        except Exception as e:
            logger.error(f"Error sending email to {recipient}: {e}")
            return False

        email_id = response.get("id") if isinstance(response, dict) else getattr(response, "id", None)
        if not email_id:
            logger.error(f"Email provider returned no id for {recipient}")
            return False

        logger.info(f"Email {email_id} sent to {recipient}")
        return True


_sender_instance: Optional[EmailSender] = None


def get_email_sender() -> EmailSender:
    global _sender_instance
    if _sender_instance is None:
        _sender_instance = EmailSender()
    return _sender_instance
