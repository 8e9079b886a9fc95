"""
Patient email notifications over SMTP.

Sending is best-effort: every failure is logged and reported as ``False``
so the appointment change that triggered the email is never rolled back.
"""

import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Optional, Tuple

from cureconnect.core.config import get_smtp_settings
from cureconnect.core.logging_config import get_logger
from cureconnect.domain.entities import Appointment
from cureconnect.domain.interfaces import INotificationService
from cureconnect.domain.lifecycle import CANCELLED, COMPLETED, CONFIRMED

logger = get_logger(__name__)

DEFAULT_SMTP_TIMEOUT = 10.0


def _when(appointment: Appointment) -> Tuple[str, str]:
    return appointment.date.strftime("%A, %B %d, %Y"), appointment.time


class NotificationService(INotificationService):
    def __init__(self, settings: Optional[dict] = None):
        self.settings = settings or get_smtp_settings()

    @property
    def enabled(self) -> bool:
        return bool(self.settings.get("host"))

    def send_email(self, to_email: str, subject: str, body: str) -> bool:
        """Send a plain-text email. Returns False instead of raising."""
        if not self.enabled:
            logger.info(
                "Email not sent: SMTP is not configured",
                extra={"context": {"to": to_email, "subject": subject}},
            )
            return False
        if not to_email:
            logger.warning(
                "Email not sent: missing recipient",
                extra={"context": {"subject": subject}},
            )
            return False

        msg = MIMEMultipart()
        msg["From"] = formataddr((self.settings["from_name"], self.settings["from_email"]))
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.attach(MIMEText(body, "plain"))

        try:
            with smtplib.SMTP(
                self.settings["host"],
                self.settings["port"],
                timeout=self.settings.get("timeout", DEFAULT_SMTP_TIMEOUT),
            ) as server:
                if self.settings.get("use_tls"):
                    server.starttls()
                if self.settings.get("user"):
                    server.login(self.settings["user"], self.settings["password"])
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(
                "Failed to send email notification",
                extra={"context": {"to": to_email, "subject": subject, "error": str(e)}},
            )
            return False

        logger.info("Email sent", extra={"context": {"to": to_email, "subject": subject}})
        return True

    # Appointment emails

    def appointment_booked(self, to_email: str, appointment: Appointment) -> bool:
        day, time = _when(appointment)
        return self.send_email(
            to_email,
            "Appointment Confirmation",
            f"Your appointment has been scheduled with Dr. {appointment.doctor_name} "
            f"on {day} at {time}. "
            "Please arrive 10 minutes before your scheduled time.",
        )

    def appointment_rescheduled(self, to_email: str, appointment: Appointment) -> bool:
        day, time = _when(appointment)
        return self.send_email(
            to_email,
            "Appointment Rescheduled",
            f"Your appointment has been rescheduled to {day} at {time}.",
        )

    def appointment_status_changed(
        self, to_email: str, appointment: Appointment, reason: Optional[str] = None
    ) -> bool:
        day, time = _when(appointment)
        if appointment.status == CONFIRMED:
            subject = "Appointment Confirmed"
            body = (
                f"Your appointment with Dr. {appointment.doctor_name} has been "
                f"confirmed for {day} at {time}."
            )
        elif appointment.status == CANCELLED:
            subject = "Appointment Cancelled"
            body = f"Your appointment scheduled for {day} at {time} has been cancelled."
            if reason:
                body += f" Reason: {reason}"
        elif appointment.status == COMPLETED:
            subject = "Appointment Completed"
            body = (
                f"Your appointment with Dr. {appointment.doctor_name} has been "
                "marked as completed. Thank you for using our services."
            )
        else:
            subject = "Appointment Status Updated"
            body = f"Your appointment status has been updated to {appointment.status}."
        return self.send_email(to_email, subject, body)
