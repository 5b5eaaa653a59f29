"""
JWT bearer token provider (python-jose).

Example:
    auth = JWTAuth(secret="your-secret-key", access_token_expire_minutes=60)

    token = await auth.create_token(user_id)
    claims = await auth.verify_token(token)
    print(claims["sub"])  # user_id
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Any

from jose import jwt, JWTError

from common.auth.base import AuthProvider


class JWTAuth(AuthProvider):
    """HS256 (by default) JWT provider."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        access_token_expire_minutes: int = 30,
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.access_token_expire = timedelta(minutes=access_token_expire_minutes)

    async def create_token(self, user_id: str, **claims: Any) -> str:
        issued_at = datetime.now(timezone.utc)
        payload = {
            **claims,
            "sub": user_id,
            "iat": issued_at,
            "exp": issued_at + self.access_token_expire,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    async def verify_token(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            raise ValueError(f"Invalid token: {e}")
