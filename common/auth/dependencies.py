"""
FastAPI bearer-token dependencies.

Factories that turn an AuthProvider getter into a dependency yielding
the caller's user ID (the token's `sub` claim).

Example:
    from common.auth import JWTAuth, create_auth_dependency

    auth = JWTAuth(secret="your-secret")
    require_user_id = create_auth_dependency(lambda: auth)

    @router.get("/applications/mine")
    async def my_applications(user_id: Annotated[str, Depends(require_user_id)]):
        ...
"""

from typing import Callable, Optional, Tuple
from fastapi import Header

from common.auth.base import AuthProvider
from common.utils.exceptions import UnauthorizedException


def _split_header(authorization: Optional[str], scheme: str) -> Tuple[Optional[str], Optional[str]]:
    """Return (token, error_code); exactly one of them is set."""
    if not authorization:
        return None, "UNAUTHENTICATED"

    prefix = f"{scheme} "
    if not authorization.startswith(prefix):
        return None, "INVALID_AUTH_SCHEME"

    token = authorization[len(prefix):].strip()
    if not token:
        return None, "EMPTY_TOKEN"

    return token, None


def create_auth_dependency(
    get_auth_provider: Callable[[], AuthProvider],
    header_name: str = "Authorization",
    scheme: str = "Bearer",
):
    """
    Build a dependency that requires a valid bearer token.

    Args:
        get_auth_provider: Callable that returns the AuthProvider instance
        header_name: Header carrying the token
        scheme: Auth scheme prefix

    Returns:
        Dependency returning the user ID, raising UnauthorizedException otherwise
    """

    async def get_current_user_id(
        authorization: Optional[str] = Header(None, alias=header_name),
    ) -> str:
        token, error_code = _split_header(authorization, scheme)
        if error_code:
            raise UnauthorizedException(
                message=f"Missing or malformed {header_name} header",
                code=error_code,
            )

        try:
            payload = await get_auth_provider().verify_token(token)
        except ValueError as e:
            raise UnauthorizedException(message=str(e), code="INVALID_TOKEN")

        user_id = payload.get("sub")
        if not user_id:
            raise UnauthorizedException(message="Token missing user ID", code="INVALID_TOKEN")

        return user_id

    return get_current_user_id


def create_optional_auth_dependency(
    get_auth_provider: Callable[[], AuthProvider],
    header_name: str = "Authorization",
    scheme: str = "Bearer",
):
    """
    Build a dependency that yields None instead of raising.

    The circle access guard decides whether an anonymous caller is acceptable.
    """

    async def get_optional_user_id(
        authorization: Optional[str] = Header(None, alias=header_name),
    ) -> Optional[str]:
        token, error_code = _split_header(authorization, scheme)
        if error_code:
            return None

        try:
            payload = await get_auth_provider().verify_token(token)
        except ValueError:
            return None
        return payload.get("sub")

    return get_optional_user_id
