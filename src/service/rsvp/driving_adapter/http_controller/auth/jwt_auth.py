"""
Bearer token verification

Tokens are issued by the credential service; this side only verifies them
and extracts the caller's user id.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import jwt

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import InvalidTokenError, UnauthenticatedError


class JwtAuth:
    def __init__(self) -> None:
        self.secret = settings.SECRET_KEY.get_secret_value()
        self.algorithm = settings.ALGORITHM
        self.token_expire_days = 7

    def create_jwt_token(self, *, user_id: int) -> str:
        """Mint a token the way the credential service does (local runs and tests)."""
        payload = {
            'sub': str(user_id),
            'exp': datetime.now(timezone.utc) + timedelta(days=self.token_expire_days),
            'iat': datetime.now(timezone.utc),
            'user_id': user_id,
        }

        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode_jwt_token(self, token: str) -> Dict:
        try:
            return jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.PyJWTError:
            raise InvalidTokenError()

    def get_user_id_from_jwt(self, token: Optional[str]) -> int:
        if not token:
            raise UnauthenticatedError()

        payload = self.decode_jwt_token(token)

        user_id = payload.get('user_id', payload.get('sub'))
        try:
            user_id = int(user_id)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            raise InvalidTokenError()
        if user_id <= 0:
            raise InvalidTokenError()

        return user_id
