from abc import ABC, abstractmethod

from src.service.booking.app.dto.ticket_artifact import MailAttachment


class INotificationDispatcher(ABC):
    @abstractmethod
    async def deliver(
        self, *, recipient: str, subject: str, html_body: str, attachment: MailAttachment
    ) -> None:
        """
        Single delivery attempt with a bounded timeout.

        Raises:
            TicketDeliveryError: transport failure or timeout
        """
        pass
