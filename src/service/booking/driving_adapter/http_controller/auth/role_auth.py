from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import Cookie, Depends, Header
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.exception.exceptions import ForbiddenError
from src.service.booking.domain.entity.user_entity import UserEntity, UserRole
from src.service.booking.driving_adapter.http_controller.auth.jwt_auth import JwtAuth


AUTH_COOKIE_NAME = 'fastapiusersauth'


class RoleAuthStrategy:
    @staticmethod
    def can_book(user: UserEntity) -> bool:
        return user.role in (UserRole.BUYER, UserRole.ADMIN)

    @staticmethod
    def is_admin(user: UserEntity) -> bool:
        return user.role == UserRole.ADMIN


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, credentials = authorization.partition(' ')
    return credentials.strip() if scheme.lower() == 'bearer' else None


@inject
async def get_current_user(
    jwt_auth: JwtAuth = Depends(Provide[Container.jwt_auth]),
    token: Optional[str] = Cookie(None, alias=AUTH_COOKIE_NAME),
    authorization: Optional[str] = Header(None),
) -> UserEntity:
    """Stateless: the caller identity comes from the token claims, no DB query"""
    return jwt_auth.get_current_user_info_from_jwt(token or _bearer_token(authorization))


async def require_booker(current_user: UserEntity = Depends(get_current_user)) -> UserEntity:
    tracer = trace.get_tracer(__name__)
    with tracer.start_as_current_span(
        'auth.require_booker',
        attributes={'user.id': current_user.id, 'user.role': current_user.role.value},
    ):
        if not RoleAuthStrategy.can_book(current_user):
            raise ForbiddenError('Only buyers can book tickets')
        return current_user


async def require_admin(current_user: UserEntity = Depends(get_current_user)) -> UserEntity:
    if not RoleAuthStrategy.is_admin(current_user):
        raise ForbiddenError('Admin access required')
    return current_user
