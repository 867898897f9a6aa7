"""
services/mail_service.py
------------------------
Outbound email over SMTP.

`send` is blocking; async callers run it in a worker thread via
`send_async` so the event loop is never held by the SMTP conversation.
Attachments are (filename, bytes) pairs; with any present the text/html
alternative is wrapped in a multipart/mixed message.
"""

import smtplib
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional, Tuple

from starlette.concurrency import run_in_threadpool

from summit.core.config import settings
from summit.core.errors import UpstreamFailure
from summit.core.logging import get_logger

logger = get_logger(__name__)

Attachment = Tuple[str, bytes]


class Mailer:

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        starttls: Optional[bool] = None,
        sender: Optional[str] = None,
    ) -> None:
        self.host = host or settings.SMTP_HOST
        self.port = port or settings.SMTP_PORT
        self.user = settings.SMTP_USER if user is None else user
        self.password = settings.SMTP_PASSWORD if password is None else password
        self.starttls = settings.SMTP_STARTTLS if starttls is None else starttls
        self.sender = sender or settings.email_sender

    def build_message(
        self,
        to: str,
        subject: str,
        text: str,
        html: Optional[str] = None,
        attachments: Optional[List[Attachment]] = None,
    ) -> MIMEMultipart:
        body = MIMEMultipart("alternative")
        body.attach(MIMEText(text, "plain"))
        if html:
            body.attach(MIMEText(html, "html"))

        if attachments:
            msg = MIMEMultipart("mixed")
            msg.attach(body)
            for filename, data in attachments:
                part = MIMEApplication(data, Name=filename)
                part["Content-Disposition"] = f'attachment; filename="{filename}"'
                msg.attach(part)
        else:
            msg = body
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject
        return msg

    def send(
        self,
        to: str,
        subject: str,
        text: str,
        html: Optional[str] = None,
        attachments: Optional[List[Attachment]] = None,
    ) -> None:
        msg = self.build_message(to, subject, text, html, attachments)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=30) as server:
                if self.starttls:
                    server.starttls()
                if self.user:
                    server.login(self.user, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Email delivery failed", subject=subject, error=str(exc))
            raise UpstreamFailure("Failed to send email") from exc
        logger.info("Email sent", subject=subject, attachments=len(attachments or ()))

    async def send_async(
        self,
        to: str,
        subject: str,
        text: str,
        html: Optional[str] = None,
        attachments: Optional[List[Attachment]] = None,
    ) -> None:
        await run_in_threadpool(self.send, to, subject, text, html, attachments)
