from abc import ABC, abstractmethod
from typing import List, Optional

from uuid_utils import UUID

from src.service.booking.domain.entity.booking_entity import Booking


class IBookingQueryRepo(ABC):
    """Repository interface for booking read operations"""

    @abstractmethod
    async def get_by_id(self, *, booking_id: UUID) -> Optional[Booking]:
        pass

    @abstractmethod
    async def get_by_user_and_concert(self, *, user_id: int, concert_id: int) -> Optional[Booking]:
        pass

    @abstractmethod
    async def list_by_user(self, *, user_id: int) -> List[Booking]:
        pass

    @abstractmethod
    async def list_by_concert(self, *, concert_id: int) -> List[Booking]:
        pass
