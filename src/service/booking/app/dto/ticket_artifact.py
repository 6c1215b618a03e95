"""Rendered ticket artifact DTO."""

import base64

import attrs
from uuid_utils import UUID


@attrs.define(frozen=True)
class TicketArtifact:
    booking_id: UUID
    qr_payload: str
    qr_png: bytes = attrs.field(repr=lambda value: f'<{len(value)} bytes>')
    pdf: bytes = attrs.field(repr=lambda value: f'<{len(value)} bytes>')

    @property
    def filename(self) -> str:
        return f'Concert_Ticket_{self.booking_id}.pdf'

    @property
    def qr_data_url(self) -> str:
        return f'data:image/png;base64,{base64.b64encode(self.qr_png).decode("ascii")}'


@attrs.define(frozen=True)
class MailAttachment:
    filename: str
    content: bytes = attrs.field(repr=lambda value: f'<{len(value)} bytes>')
    mime_type: str = 'application/pdf'

    @property
    def maintype(self) -> str:
        return self.mime_type.split('/', 1)[0]

    @property
    def subtype(self) -> str:
        return self.mime_type.split('/', 1)[1]
