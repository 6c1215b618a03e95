"""
QR + PDF ticket renderer

QR payload (plain text, one fact per line)::

    BookingID:<booking id>
    User:<username>
    Concert:<concert name>
    Tickets:<tickets booked>
    Signature:<hex hmac-sha256>      # only when a signing key is configured

The signature covers the preceding lines joined with newlines, so a venue
scanner holding the same key can detect forged or edited payloads.
"""

import hashlib
import hmac
from pathlib import Path
from typing import Optional

import anyio.to_thread
import qrcode
from qrcode.constants import ERROR_CORRECT_M
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from src.platform.constant.path import TICKET_SCRATCH_ROOT
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.dto.booking_snapshot import BookingSnapshot
from src.service.booking.app.dto.ticket_artifact import TicketArtifact
from src.service.booking.app.interface.i_ticket_renderer import ITicketRenderer
from src.service.booking.domain.booking_errors import TicketRenderError
from src.service.booking.driven_adapter.artifact.scratch_space import scratch_directory


QR_IMAGE_SIZE = 200  # points, on the PDF page
TICKET_TITLE = 'Concert Ticket'


def build_qr_payload(snapshot: BookingSnapshot, *, signing_key: Optional[str] = None) -> str:
    lines = [
        f'BookingID:{snapshot.booking_id}',
        f'User:{snapshot.username}',
        f'Concert:{snapshot.concert_name}',
        f'Tickets:{snapshot.tickets_booked}',
    ]
    body = '\n'.join(lines)
    if signing_key:
        return f'{body}\nSignature:{sign_payload(body, signing_key=signing_key)}'
    return body


def sign_payload(payload: str, *, signing_key: str) -> str:
    return hmac.new(signing_key.encode(), payload.encode(), hashlib.sha256).hexdigest()


def verify_qr_payload(payload: str, *, signing_key: str) -> bool:
    body, separator, signature_line = payload.rpartition('\nSignature:')
    if not separator:
        return False
    return hmac.compare_digest(sign_payload(body, signing_key=signing_key), signature_line)


def ticket_lines(snapshot: BookingSnapshot) -> list[tuple[str, str]]:
    return [
        ('Booking ID', str(snapshot.booking_id)),
        ('Concert', snapshot.concert_name),
        ('Date & Time', snapshot.schedule),
        ('Venue', snapshot.venue),
        ('Booked By', snapshot.username),
        ('Tickets Booked', str(snapshot.tickets_booked)),
    ]


class QrPdfTicketRenderer(ITicketRenderer):
    def __init__(
        self, *, scratch_root: Path = TICKET_SCRATCH_ROOT, signing_key: Optional[str] = None
    ) -> None:
        self.scratch_root = scratch_root
        self.signing_key = signing_key

    @Logger.io
    async def render(self, *, snapshot: BookingSnapshot) -> TicketArtifact:
        try:
            # qrcode/reportlab are CPU-bound and blocking
            return await anyio.to_thread.run_sync(self._render_sync, snapshot)
        except TicketRenderError:
            raise
        except Exception as e:
            raise TicketRenderError(f'{type(e).__name__}: {e}') from e

    def _render_sync(self, snapshot: BookingSnapshot) -> TicketArtifact:
        payload = build_qr_payload(snapshot, signing_key=self.signing_key)

        with scratch_directory(root=self.scratch_root, booking_id=snapshot.booking_id) as workdir:
            qr_path = workdir / 'qr.png'
            pdf_path = workdir / 'ticket.pdf'

            self._write_qr_image(payload=payload, path=qr_path)
            self._write_pdf(snapshot=snapshot, qr_path=qr_path, path=pdf_path)

            return TicketArtifact(
                booking_id=snapshot.booking_id,
                qr_payload=payload,
                qr_png=qr_path.read_bytes(),
                pdf=pdf_path.read_bytes(),
            )

    @staticmethod
    def _write_qr_image(*, payload: str, path: Path) -> None:
        qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, box_size=8, border=4)
        qr.add_data(payload)
        qr.make(fit=True)
        qr.make_image(fill_color='black', back_color='white').save(str(path))

    @staticmethod
    def _write_pdf(*, snapshot: BookingSnapshot, qr_path: Path, path: Path) -> None:
        # invariant=1 drops creation timestamps so re-renders are byte-identical
        pdf = canvas.Canvas(str(path), pagesize=A4, invariant=1)
        pdf.setTitle(TICKET_TITLE)
        width, height = A4

        pdf.setFont('Helvetica-Bold', 24)
        pdf.drawCentredString(width / 2, height - 72, TICKET_TITLE)

        y = height - 120
        pdf.setFont('Helvetica', 13)
        for label, value in ticket_lines(snapshot):
            pdf.drawString(72, y, f'{label}: {value}')
            y -= 22

        y -= QR_IMAGE_SIZE + 10
        pdf.drawImage(
            str(qr_path), (width - QR_IMAGE_SIZE) / 2, y, width=QR_IMAGE_SIZE, height=QR_IMAGE_SIZE
        )
        pdf.setFont('Helvetica-Oblique', 10)
        pdf.drawCentredString(width / 2, y - 18, 'Present this QR code at the venue entrance.')

        pdf.showPage()
        pdf.save()
