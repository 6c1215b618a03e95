from enum import Enum
from typing import Optional

import attrs


class UserRole(str, Enum):
    SELLER = 'seller'
    BUYER = 'buyer'
    ADMIN = 'admin'


@attrs.define(frozen=True)
class UserEntity:
    """Caller identity as asserted by the auth service token; never loaded from storage here"""

    id: int
    email: str = ''
    name: str = ''
    role: UserRole = UserRole.BUYER
    is_active: bool = True

    @property
    def display_name(self) -> str:
        return self.name or self.email

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @staticmethod
    def parse_role(role: Optional[str]) -> Optional[UserRole]:
        try:
            return UserRole(role)
        except ValueError:
            return None
