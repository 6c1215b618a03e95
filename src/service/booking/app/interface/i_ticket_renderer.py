from abc import ABC, abstractmethod

from src.service.booking.app.dto.booking_snapshot import BookingSnapshot
from src.service.booking.app.dto.ticket_artifact import TicketArtifact


class ITicketRenderer(ABC):
    @abstractmethod
    async def render(self, *, snapshot: BookingSnapshot) -> TicketArtifact:
        """
        Render QR payload, QR image and PDF for a booking.

        Safe to call concurrently; leaves no files behind on any exit path.

        Raises:
            TicketRenderError: QR encoding or PDF generation failed
        """
        pass
