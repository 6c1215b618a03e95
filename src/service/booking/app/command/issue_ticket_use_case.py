from html import escape
from time import perf_counter

import anyio
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.booking.app.dto.booking_result import IssuanceOutcome, IssuanceStatus
from src.service.booking.app.dto.booking_snapshot import BookingSnapshot
from src.service.booking.app.dto.ticket_artifact import MailAttachment, TicketArtifact
from src.service.booking.app.interface.i_notification_dispatcher import INotificationDispatcher
from src.service.booking.app.interface.i_ticket_renderer import ITicketRenderer
from src.service.booking.domain.booking_errors import TicketDeliveryError, TicketRenderError


TICKET_MAIL_SUBJECT = 'Your Concert Ticket'


def _describe(error: BaseException) -> str:
    if isinstance(error, TimeoutError):
        return 'timed out'
    return str(error) or type(error).__name__


def compose_ticket_mail(*, snapshot: BookingSnapshot, artifact: TicketArtifact) -> str:
    rows = ''.join(
        f'<p><strong>{label}:</strong> {escape(value)}</p>'
        for label, value in (
            ('Concert', snapshot.concert_name),
            ('Date & Time', snapshot.schedule),
            ('Venue', snapshot.venue),
            ('Booked By', snapshot.username),
            ('Tickets', str(snapshot.tickets_booked)),
        )
    )
    return (
        '<h2>Booking Confirmation</h2>'
        f'{rows}'
        '<p>Present this QR code at the venue entrance:</p>'
        f'<img src="{artifact.qr_data_url}" alt="Ticket QR code" width="200" height="200"/>'
        '<p>Your ticket is attached as a PDF.</p>'
    )


class IssueTicketUseCase:
    """
    Ticket issuance pipeline: render -> deliver.

    Runs after the reservation has committed and never raises for render or
    delivery failures; the outcome is reported as an IssuanceOutcome and the
    booking stays valid either way (the ticket can be re-downloaded later).
    """

    def __init__(
        self,
        *,
        ticket_renderer: ITicketRenderer,
        notification_dispatcher: INotificationDispatcher,
        timeout_seconds: float = 30.0,
    ) -> None:
        self.ticket_renderer = ticket_renderer
        self.notification_dispatcher = notification_dispatcher
        self.timeout_seconds = timeout_seconds
        self.in_flight = 0
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def execute(self, *, snapshot: BookingSnapshot) -> IssuanceOutcome:
        started = perf_counter()
        with self.tracer.start_as_current_span(
            'use_case.issue_ticket',
            attributes={'booking.id': str(snapshot.booking_id)},
        ):
            outcome = await self._issue(snapshot=snapshot)
        metrics.record_issuance(status=outcome.status.value, duration=perf_counter() - started)
        return outcome

    async def issue_in_background(self, snapshot: BookingSnapshot) -> IssuanceOutcome:
        """Task-group entry point: must never raise into the shared task group"""
        self.in_flight += 1
        try:
            return await self.execute(snapshot=snapshot)
        except Exception as e:
            Logger.base.exception(
                f'💥 [ISSUANCE] Unexpected failure for booking {snapshot.booking_id}: {e}'
            )
            return IssuanceOutcome(status=IssuanceStatus.DELIVERY_FAILED, detail=_describe(e))
        finally:
            self.in_flight -= 1

    async def wait_until_idle(self, *, timeout: float) -> int:
        """
        Wait up to ``timeout`` seconds for running issuance tasks to finish.

        Returns:
            Number of tasks still running when the wait ended
        """
        with anyio.move_on_after(timeout):
            while self.in_flight:
                await anyio.sleep(0.05)
        return self.in_flight

    async def _issue(self, *, snapshot: BookingSnapshot) -> IssuanceOutcome:
        if not snapshot.recipient_email:
            Logger.base.warning(f'📭 [ISSUANCE] No recipient for booking {snapshot.booking_id}')
            return IssuanceOutcome(status=IssuanceStatus.SKIPPED, detail='No recipient email')

        try:
            with anyio.fail_after(self.timeout_seconds):
                artifact = await self.ticket_renderer.render(snapshot=snapshot)
        except (TicketRenderError, TimeoutError) as e:
            Logger.base.error(f'🖨️ [ISSUANCE] Render failed for {snapshot.booking_id}: {e}')
            return IssuanceOutcome(status=IssuanceStatus.RENDER_FAILED, detail=_describe(e))

        try:
            with anyio.fail_after(self.timeout_seconds):
                await self.notification_dispatcher.deliver(
                    recipient=snapshot.recipient_email,
                    subject=TICKET_MAIL_SUBJECT,
                    html_body=compose_ticket_mail(snapshot=snapshot, artifact=artifact),
                    attachment=MailAttachment(filename=artifact.filename, content=artifact.pdf),
                )
        except (TicketDeliveryError, TimeoutError) as e:
            Logger.base.error(f'📧 [ISSUANCE] Delivery failed for {snapshot.booking_id}: {e}')
            return IssuanceOutcome(status=IssuanceStatus.DELIVERY_FAILED, detail=_describe(e))

        Logger.base.info(
            f'🎫 [ISSUANCE] Ticket for booking {snapshot.booking_id} sent to {snapshot.recipient_email}'
        )
        return IssuanceOutcome(status=IssuanceStatus.DELIVERED)
