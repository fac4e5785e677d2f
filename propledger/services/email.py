"""Email notifications for completed sales"""
import smtplib
import logging
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional

from propledger.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending emails via SMTP"""

    def __init__(self):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.use_tls = settings.SMTP_TLS
        self.from_email = settings.FROM_EMAIL
        self.from_name = settings.FROM_NAME

    def is_configured(self) -> bool:
        """Check if email settings are properly configured"""
        return all([
            self.smtp_host,
            self.from_email
        ])

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: Optional[str] = None
    ) -> bool:
        """
        Send an email.

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_body: HTML content of the email
            text_body: Plain text fallback (optional)

        Returns:
            bool: True if email was sent successfully
        """
        if not self.is_configured():
            logger.warning("Email not configured. Skipping email send.")
            return False

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to_email

        if text_body:
            msg.attach(MIMEText(text_body, "plain"))
        msg.attach(MIMEText(html_body, "html"))

        try:
            if self.use_tls:
                server = smtplib.SMTP(self.smtp_host, self.smtp_port)
                server.starttls()
            else:
                server = smtplib.SMTP_SSL(self.smtp_host, self.smtp_port)

            if self.smtp_user and self.smtp_password:
                server.login(self.smtp_user, self.smtp_password)

            server.sendmail(self.from_email, to_email, msg.as_string())
            server.quit()
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP error sending email to {to_email}: {e}")
            return False

        logger.info(f"Email sent successfully to {to_email}")
        return True

    def send_ownership_transfer_email(
        self,
        to_email: str,
        recipient_name: str,
        property_title: str,
        party: str,
        tx_hash: str,
        block_number: int,
    ) -> bool:
        """
        Tell a buyer or seller that a sale has completed.

        Args:
            to_email: Recipient email address
            recipient_name: Recipient display name
            property_title: Title of the property that changed hands
            party: "buyer" or "seller"
            tx_hash: Ledger transaction hash of the transfer
            block_number: Ledger block the transfer landed in

        Returns:
            bool: True if email was sent successfully
        """
        if party == "buyer":
            headline = f"You are now the owner of {property_title}"
        else:
            headline = f"Your sale of {property_title} is complete"

        subject = f"{settings.APP_NAME} - {headline}"

        html_body = f"""
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="UTF-8">
        </head>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                <h2 style="color: #2563eb;">{headline}</h2>

                <p>Hello {recipient_name},</p>

                <p>The ownership transfer has been verified by an agent and recorded on the ledger.</p>

                <p style="background-color: #f3f4f6; padding: 10px; border-radius: 4px; word-break: break-all;">
                    Transaction hash: {tx_hash}<br>
                    Block number: {block_number}
                </p>

                <hr style="border: none; border-top: 1px solid #e5e7eb; margin: 30px 0;">

                <p style="color: #6b7280; font-size: 12px;">
                    This email was sent by {settings.APP_NAME}.
                    Please do not reply to this email.
                </p>
            </div>
        </body>
        </html>
        """

        text_body = f"""
{headline}

Hello {recipient_name},

The ownership transfer has been verified by an agent and recorded on the ledger.

Transaction hash: {tx_hash}
Block number: {block_number}

This email was sent by {settings.APP_NAME}.
        """

        return self.send_email(to_email, subject, html_body, text_body)


# Singleton instance
_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """Get or create the email service singleton"""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
