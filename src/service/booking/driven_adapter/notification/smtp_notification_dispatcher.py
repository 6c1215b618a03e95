from email.message import EmailMessage
from typing import Optional

import aiosmtplib

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.dto.ticket_artifact import MailAttachment
from src.service.booking.app.interface.i_notification_dispatcher import INotificationDispatcher
from src.service.booking.domain.booking_errors import TicketDeliveryError


class SmtpNotificationDispatcher(INotificationDispatcher):
    """One SMTP attempt per delivery, bounded by `timeout`; no retries."""

    def __init__(
        self,
        *,
        hostname: str,
        port: int,
        sender: str,
        timeout: float,
        username: Optional[str] = None,
        password: Optional[str] = None,
        start_tls: bool = True,
    ) -> None:
        self.hostname = hostname
        self.port = port
        self.sender = sender
        self.timeout = timeout
        self.username = username or None
        self.password = password or None
        self.start_tls = start_tls

    def build_message(
        self, *, recipient: str, subject: str, html_body: str, attachment: MailAttachment
    ) -> EmailMessage:
        message = EmailMessage()
        message['From'] = self.sender
        message['To'] = recipient
        message['Subject'] = subject
        message.set_content('Your concert ticket is attached as a PDF.')
        message.add_alternative(html_body, subtype='html')
        message.add_attachment(
            attachment.content,
            maintype=attachment.maintype,
            subtype=attachment.subtype,
            filename=attachment.filename,
        )
        return message

    @Logger.io
    async def deliver(
        self, *, recipient: str, subject: str, html_body: str, attachment: MailAttachment
    ) -> None:
        message = self.build_message(
            recipient=recipient, subject=subject, html_body=html_body, attachment=attachment
        )
        try:
            await aiosmtplib.send(
                message,
                hostname=self.hostname,
                port=self.port,
                username=self.username,
                password=self.password,
                start_tls=self.start_tls,
                timeout=self.timeout,
            )
        except (aiosmtplib.SMTPException, OSError, TimeoutError) as e:
            raise TicketDeliveryError(f'{type(e).__name__}: {e}') from e
        Logger.base.info(f'📧 [MAIL] Ticket mail sent to {recipient} via {self.hostname}')
