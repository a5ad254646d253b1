"""
Email Service
Deliver certificates by email and keep a log of every attempt
"""

import html
import logging
import uuid
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

import aiosmtplib
import httpx
from fastapi import HTTPException

from certi.config import settings
from certi.database import database, row_to_dict
from certi.services.certificate_service import CertificateService

logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending certificate emails"""

    @staticmethod
    def build_message(
        email_to: str,
        subject: str,
        text_body: str,
        html_body: str,
        attachment: Optional[bytes] = None,
        attachment_name: Optional[str] = None,
        attachment_subtype: str = "pdf",
    ) -> MIMEMultipart:
        message = MIMEMultipart("mixed")
        message["Subject"] = subject
        message["From"] = settings.EMAIL_FROM
        message["To"] = email_to

        body = MIMEMultipart("alternative")
        body.attach(MIMEText(text_body, "plain"))
        body.attach(MIMEText(html_body, "html"))
        message.attach(body)

        if attachment:
            part = MIMEApplication(attachment, _subtype=attachment_subtype)
            part.add_header("Content-Disposition", "attachment", filename=attachment_name or "certificate")
            message.attach(part)

        return message

    @staticmethod
    def html_body(intro: str, certificate: dict, verify_url: str) -> str:
        """HTML part of the certificate email, user-supplied text escaped"""
        return f"""
        <html>
          <body style="font-family: Arial, sans-serif; color: #333;">
            <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
              <p>{html.escape(intro)}</p>
              <p><strong>Certificate:</strong> {html.escape(certificate['name'])}</p>
              <p><strong>Code:</strong> <code>{html.escape(certificate['unique_code'])}</code></p>
              <p><a href="{html.escape(verify_url)}">Verify this certificate</a></p>
              <p>Best regards,<br><strong>{html.escape(settings.APP_NAME)}</strong></p>
            </div>
          </body>
        </html>
        """

    @staticmethod
    async def deliver(message: MIMEMultipart, email_to: str) -> None:
        """Send through SMTP; raises when SMTP is missing or the server refuses"""
        if not (settings.SMTP_HOST and settings.smtp_configured):
            raise RuntimeError("SMTP not configured")

        async with aiosmtplib.SMTP(
            hostname=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            start_tls=settings.SMTP_PORT == 587,
        ) as smtp:
            await smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            await smtp.sendmail(settings.EMAIL_FROM, email_to, message.as_string())

    @staticmethod
    async def send_certificate(
        certificate_id: str,
        sent_by: Optional[str] = None,
        email_to: Optional[str] = None,
        subject: Optional[str] = None,
        message: Optional[str] = None,
        fmt: str = "pdf",
    ) -> dict:
        """
        Email a rendered certificate to its recipient

        Args:
            certificate_id: Certificate to send
            sent_by: User triggering the send
            email_to: Override for the recipient's address
            subject: Override for the default subject
            message: Extra text placed above the verification details
            fmt: Attachment format, "pdf" or "jpg"

        Returns:
            The email_sends row, with status ``sent`` or ``failed``
        """
        certificate = await CertificateService.get_certificate(certificate_id, with_relations=False)
        recipient = certificate.get("user") or {}
        email_to = email_to or recipient.get("email")
        subject = subject or f"Your certificate: {certificate['name']}"

        verify_url = f"{settings.APP_URL.rstrip('/')}/api/public/certificate/{certificate['unique_code']}"
        intro = message or f"Congratulations, {recipient.get('name') or 'participant'}! Your certificate is attached."

        text_body = (
            f"{intro}\n\n"
            f"Certificate: {certificate['name']}\n"
            f"Code: {certificate['unique_code']}\n"
            f"Verify at: {verify_url}\n"
        )
        html_body = EmailService.html_body(intro, certificate, verify_url)

        send_id = str(uuid.uuid4())
        await database.execute(
            """
            INSERT INTO email_sends (id, certificate_id, user_id, email_to, subject, body, status, created_at)
            VALUES (:id, :certificate_id, :user_id, :email_to, :subject, :body, 'pending', CURRENT_TIMESTAMP)
            """,
            {
                "id": send_id,
                "certificate_id": certificate_id,
                "user_id": str(sent_by) if sent_by else None,
                "email_to": email_to,
                "subject": subject,
                "body": text_body,
            }
        )

        try:
            content, _, extension = await CertificateService.render_certificate(certificate, fmt)
            mime = EmailService.build_message(
                email_to,
                subject,
                text_body,
                html_body,
                attachment=content,
                attachment_name=CertificateService.download_filename(certificate, extension),
                attachment_subtype="pdf" if extension == "pdf" else "octet-stream",
            )
            await EmailService.deliver(mime, email_to)
        except (RuntimeError, OSError, HTTPException, httpx.HTTPError, aiosmtplib.SMTPException) as e:
            error = str(e.detail) if isinstance(e, HTTPException) else str(e)
            logger.warning("Certificate %s email to %s failed: %s", certificate["unique_code"], email_to, error)
            await database.execute(
                "UPDATE email_sends SET status = 'failed', error_message = :error WHERE id = :id",
                {"id": send_id, "error": error}
            )
        else:
            logger.info("Certificate %s emailed to %s", certificate["unique_code"], email_to)
            await database.execute(
                "UPDATE email_sends SET status = 'sent', sent_at = CURRENT_TIMESTAMP WHERE id = :id",
                {"id": send_id}
            )

        row = await database.fetch_one("SELECT * FROM email_sends WHERE id = :id", {"id": send_id})
        return row_to_dict(row)


# Create singleton instance
email_service = EmailService()
