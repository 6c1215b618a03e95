from typing import Optional

import attrs


@attrs.define
class Concert:
    id: int
    name: str
    venue: str
    schedule: str
    ticket_price: float
    capacity: int
    available_tickets: int
    image: Optional[str] = None

    @property
    def is_sold_out(self) -> bool:
        return self.available_tickets <= 0

    @property
    def reserved_tickets(self) -> int:
        return self.capacity - self.available_tickets
