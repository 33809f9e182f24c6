"""
SendGrid email dispatcher for reminders and milestone notices
"""
import asyncio
import logging

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from wedding_timeline.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self):
        self.api_key = settings.SENDGRID_API_KEY or None
        self.from_email = (settings.NOTIFICATION_FROM_EMAIL, settings.NOTIFICATION_FROM_NAME)
        self._available = bool(self.api_key)
        self.client = SendGridAPIClient(self.api_key) if self._available else None

    @property
    def is_available(self) -> bool:
        return self._available

    async def send(self, recipient: str, subject: str, body: str) -> bool:
        """
        Send a plain-text email. Returns False instead of raising so callers
        can treat delivery as fire-and-forget.
        """
        logger.info(f"Sending email to {recipient}: {subject}")
        if not self._available or self.client is None:
            logger.error("SENDGRID_API_KEY is not set; email not sent")
            return False

        message = Mail(
            from_email=self.from_email,
            to_emails=recipient,
            subject=subject,
            plain_text_content=body,
        )
        try:
            response = await asyncio.to_thread(self.client.send, message)
        except Exception as e:
            logger.error(f"Exception when sending email to {recipient}: {e}", exc_info=True)
            return False

        if 200 <= response.status_code < 300:
            logger.info(f"Email sent successfully to {recipient}")
            return True
        logger.error(f"SendGrid returned error status: {response.status_code}")
        return False


def task_reminder_message(task, member) -> tuple[str, str]:
    subject = f"Task Reminder: {task.task_name}"
    due = task.due_date.isoformat() if task.due_date else "soon"
    body = (
        f"Hi {member.first_name}! This is a reminder that your task "
        f"\"{task.task_name}\" is due on {due}. "
        "Please complete it when you have a chance."
    )
    return subject, body


def milestone_reached_message(task, wedding) -> tuple[str, str]:
    subject = f"Milestone reached: {task.task_name}"
    body = (
        f"The milestone \"{task.task_name}\" for {wedding.name} "
        f"({wedding.wedding_date.isoformat()}) has been completed."
    )
    return subject, body


notification_service = NotificationService()
