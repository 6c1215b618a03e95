"""
Unit tests for QrPdfTicketRenderer

Test Focus:
1. PDF carries the human-readable ticket facts
2. QR payload format (and optional HMAC signature)
3. Re-rendering is idempotent in content
4. Scratch directories never outlive a render, including concurrent renders
"""

import io

import anyio
import pytest
from pypdf import PdfReader
import uuid_utils

from src.service.booking.app.dto.booking_snapshot import BookingSnapshot
from src.service.booking.domain.booking_errors import TicketRenderError
from src.service.booking.driven_adapter.artifact.qr_pdf_ticket_renderer import (
    QrPdfTicketRenderer,
    build_qr_payload,
    verify_qr_payload,
)


@pytest.fixture
def snapshot() -> BookingSnapshot:
    return BookingSnapshot(
        booking_id=uuid_utils.uuid7(),
        user_id=1,
        username='Test Buyer',
        concert_id=1,
        concert_name='Summer Nights',
        venue='Riverside Arena',
        schedule='2026-07-01 20:00',
        tickets_booked=3,
    )


def _pdf_text(pdf: bytes) -> str:
    return '\n'.join(page.extract_text() for page in PdfReader(io.BytesIO(pdf)).pages)


@pytest.mark.unit
class TestQrPayload:
    def test_plain_payload(self, snapshot):
        assert build_qr_payload(snapshot) == (
            f'BookingID:{snapshot.booking_id}\n'
            'User:Test Buyer\n'
            'Concert:Summer Nights\n'
            'Tickets:3'
        )

    def test_signed_payload_verifies(self, snapshot):
        payload = build_qr_payload(snapshot, signing_key='venue-key')

        assert payload.splitlines()[-1].startswith('Signature:')
        assert verify_qr_payload(payload, signing_key='venue-key')
        assert not verify_qr_payload(payload, signing_key='other-key')

    def test_tampered_payload_fails_verification(self, snapshot):
        payload = build_qr_payload(snapshot, signing_key='venue-key')

        tampered = payload.replace('Tickets:3', 'Tickets:30')

        assert not verify_qr_payload(tampered, signing_key='venue-key')
        assert not verify_qr_payload(build_qr_payload(snapshot), signing_key='venue-key')


@pytest.mark.unit
class TestRender:
    async def test_pdf_contains_ticket_facts(self, ticket_renderer, snapshot):
        artifact = await ticket_renderer.render(snapshot=snapshot)

        text = _pdf_text(artifact.pdf)
        assert 'Concert Ticket' in text
        assert f'Booking ID: {snapshot.booking_id}' in text
        assert 'Concert: Summer Nights' in text
        assert 'Venue: Riverside Arena' in text
        assert 'Booked By: Test Buyer' in text
        assert 'Tickets Booked: 3' in text
        assert artifact.qr_png.startswith(b'\x89PNG')
        assert artifact.filename == f'Concert_Ticket_{snapshot.booking_id}.pdf'

    async def test_rerender_is_idempotent(self, ticket_renderer, snapshot):
        first = await ticket_renderer.render(snapshot=snapshot)
        second = await ticket_renderer.render(snapshot=snapshot)

        assert first.qr_payload == second.qr_payload
        assert _pdf_text(first.pdf) == _pdf_text(second.pdf)

    async def test_no_scratch_leftovers(self, ticket_renderer, scratch_root, snapshot):
        async with anyio.create_task_group() as tg:
            for _ in range(4):
                tg.start_soon(lambda: ticket_renderer.render(snapshot=snapshot))

        assert list(scratch_root.iterdir()) == []

    async def test_failure_raises_render_error_and_cleans_up(
        self, ticket_renderer, scratch_root, snapshot, monkeypatch
    ):
        def explode(**kwargs):
            raise OSError('disk full')

        monkeypatch.setattr(QrPdfTicketRenderer, '_write_pdf', staticmethod(explode))

        with pytest.raises(TicketRenderError, match='disk full'):
            await ticket_renderer.render(snapshot=snapshot)

        assert list(scratch_root.iterdir()) == []

    async def test_signed_renderer_embeds_signature(self, scratch_root, snapshot):
        renderer = QrPdfTicketRenderer(scratch_root=scratch_root, signing_key='venue-key')

        artifact = await renderer.render(snapshot=snapshot)

        assert verify_qr_payload(artifact.qr_payload, signing_key='venue-key')
