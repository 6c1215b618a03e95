"""
JWT decoding for tokens issued by the auth service.

This service never checks credentials; it only trusts a token signed with
the shared SECRET_KEY and rebuilds the caller identity from its claims.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from fastapi import HTTPException, status
import jwt

from src.platform.config.core_setting import settings
from src.service.booking.domain.entity.user_entity import UserEntity


class JwtAuth:
    def __init__(self) -> None:
        self.secret = settings.SECRET_KEY.get_secret_value()
        self.algorithm = settings.ALGORITHM
        self.token_expire_days = 7

    def create_jwt_token(self, user_entity: UserEntity) -> str:
        """Mint a token the way the auth service does (local tooling and tests)"""
        now = datetime.now(timezone.utc)
        payload = {
            'sub': str(user_entity.id),
            'exp': now + timedelta(days=self.token_expire_days),
            'iat': now,
            'user_id': user_entity.id,
            'email': user_entity.email,
            'name': user_entity.name,
            'role': user_entity.role.value,
            'is_active': user_entity.is_active,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode_jwt_token(self, token: str) -> Dict:
        try:
            return jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.PyJWTError:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Invalid token')

    def get_current_user_info_from_jwt(self, token: Optional[str]) -> UserEntity:
        if not token:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED, detail='Not authenticated'
            )

        payload = self.decode_jwt_token(token)

        user_id = payload.get('user_id')
        email = payload.get('email')
        name = payload.get('name')
        role = UserEntity.parse_role(payload.get('role'))
        is_active = payload.get('is_active')

        if not isinstance(user_id, int) or not email or role is None or is_active is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Invalid token')

        user_entity = UserEntity(
            id=user_id,
            email=email,
            name=name or '',
            role=role,
            is_active=is_active,
        )

        if not user_entity.is_active:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='User is inactive')

        return user_entity
