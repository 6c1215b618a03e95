"""Console dispatcher that logs mail instead of sending it (development and tests)."""

from collections import deque
from datetime import datetime, timezone
from typing import Deque

import attrs

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.dto.ticket_artifact import MailAttachment
from src.service.booking.app.interface.i_notification_dispatcher import INotificationDispatcher


@attrs.define(frozen=True)
class SentMail:
    recipient: str
    subject: str
    html_body: str = attrs.field(repr=False)
    attachment: MailAttachment
    sent_at: datetime


class ConsoleNotificationDispatcher(INotificationDispatcher):
    def __init__(self, *, history_size: int = 50) -> None:
        # Only the most recent mails are kept; older ones (and their PDFs) are dropped
        self.sent_mails: Deque[SentMail] = deque(maxlen=history_size)

    @Logger.io
    async def deliver(
        self, *, recipient: str, subject: str, html_body: str, attachment: MailAttachment
    ) -> None:
        mail = SentMail(
            recipient=recipient,
            subject=subject,
            html_body=html_body,
            attachment=attachment,
            sent_at=datetime.now(timezone.utc),
        )
        self.sent_mails.append(mail)
        Logger.base.info(
            f'📧 [MAIL:console] To: {recipient} | Subject: {subject} | '
            f'Attachment: {attachment.filename} ({len(attachment.content)} bytes)'
        )
