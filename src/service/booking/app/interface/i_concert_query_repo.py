from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional

from src.service.booking.domain.entity.concert_entity import Concert


class IConcertQueryRepo(ABC):
    """Read access to the concert catalog (owned by the catalog service)"""

    @abstractmethod
    async def get_by_id(self, *, concert_id: int) -> Optional[Concert]:
        pass

    @abstractmethod
    async def get_many(self, *, concert_ids: Iterable[int]) -> Dict[int, Concert]:
        pass
