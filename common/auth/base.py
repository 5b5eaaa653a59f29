"""
Authentication provider interface.

Sign-in happens upstream (OAuth); this service only needs to mint and
verify bearer tokens that carry the user ID in `sub`.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any


class AuthProvider(ABC):
    """Abstract bearer token provider."""

    @abstractmethod
    async def create_token(self, user_id: str, **claims: Any) -> str:
        """Issue a token whose `sub` is user_id."""

    @abstractmethod
    async def verify_token(self, token: str) -> Dict[str, Any]:
        """
        Decode a token.

        Returns:
            Token claims (at minimum: sub)

        Raises:
            ValueError: If token is invalid or expired
        """
