# ===== rivo_scheduling/services/email/email_service.py =====
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional
import logging

from rivo_scheduling.config.settings import settings

logger = logging.getLogger(__name__)

BOOKING_SUBJECTS = {
    "created": "New booking request",
    "confirmed": "Your booking is confirmed",
    "cancelled": "Booking cancelled",
}

BOOKING_HEADLINES = {
    "created": "{homeowner} requested {service} on {when}.",
    "confirmed": "{provider} confirmed your {service} appointment on {when}.",
    "cancelled": "The {service} appointment on {when} has been cancelled.",
}


class EmailService:
    """Service for sending emails via SMTP"""

    @staticmethod
    def _get_smtp_connection():
        """Create and return SMTP connection"""
        try:
            if settings.EMAIL_USE_TLS:
                server = smtplib.SMTP(settings.EMAIL_HOST, settings.EMAIL_PORT)
                server.starttls()
            else:
                server = smtplib.SMTP_SSL(settings.EMAIL_HOST, settings.EMAIL_PORT)

            if settings.EMAIL_USERNAME and settings.EMAIL_PASSWORD:
                server.login(settings.EMAIL_USERNAME, settings.EMAIL_PASSWORD)

            return server
        except Exception as e:
            logger.error(f"Failed to connect to SMTP server: {e}")
            raise

    @staticmethod
    def send_email(to_email: str, subject: str, html_content: str, plain_text: Optional[str] = None) -> bool:
        """
        Send an email using SMTP

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML content of the email
            plain_text: Plain text version (fallback for non-HTML clients)

        Returns:
            bool: True if email sent successfully
        """
        msg = MIMEMultipart('alternative')
        msg['Subject'] = subject
        msg['From'] = f"{settings.EMAIL_FROM_NAME} <{settings.EMAIL_FROM_ADDRESS}>"
        msg['To'] = to_email

        if plain_text:
            msg.attach(MIMEText(plain_text, 'plain'))
        msg.attach(MIMEText(html_content, 'html'))

        try:
            server = EmailService._get_smtp_connection()
            server.sendmail(settings.EMAIL_FROM_ADDRESS, [to_email], msg.as_string())
            server.quit()
        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            raise

        logger.info(f"Email sent successfully to {to_email}")
        return True

    @staticmethod
    def render_booking_email(
            event: str,
            recipient_name: Optional[str],
            provider_name: str,
            homeowner_name: str,
            service_type: str,
            when: str,
    ) -> tuple:
        """Subject, HTML body and plain-text body for a booking event"""
        if event not in BOOKING_SUBJECTS:
            raise ValueError(f"Unknown booking event: {event}")

        headline = BOOKING_HEADLINES[event].format(
            homeowner=homeowner_name,
            provider=provider_name,
            service=service_type,
            when=when,
        )
        bookings_url = f"{settings.FRONTEND_URL}/bookings"
        display_name = recipient_name or "there"

        html_content = f"""
        <!DOCTYPE html>
        <html>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
            <h2 style="margin-top: 0;">Hi {display_name},</h2>
            <p style="font-size: 16px; color: #555;">{headline}</p>
            <p style="font-size: 16px; color: #555;">
                <a href="{bookings_url}">View your bookings</a>
            </p>
            <p style="font-size: 12px; color: #999;">{settings.EMAIL_FROM_NAME}</p>
        </body>
        </html>
        """

        plain_text = f"Hi {display_name},\n\n{headline}\n\nView your bookings: {bookings_url}\n"

        return BOOKING_SUBJECTS[event], html_content, plain_text

    @staticmethod
    def send_booking_email(
            to_email: str,
            event: str,
            recipient_name: Optional[str],
            provider_name: str,
            homeowner_name: str,
            service_type: str,
            when: str,
    ) -> bool:
        """Notify one party of a booking being created, confirmed or cancelled"""
        subject, html_content, plain_text = EmailService.render_booking_email(
            event=event,
            recipient_name=recipient_name,
            provider_name=provider_name,
            homeowner_name=homeowner_name,
            service_type=service_type,
            when=when,
        )
        return EmailService.send_email(to_email, subject, html_content, plain_text)
