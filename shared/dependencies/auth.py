"""FastAPI authentication dependency."""

from fastapi import Request

from shared.exceptions import AuthError


async def verify_bearer_token(request: Request) -> str:
    """Verify the bearer token of the request and resolve it to a user id.

    The token is opaque to this service; the store's auth endpoint decides
    whether it is valid.

    Args:
        request (Request): The incoming FastAPI request.

    Returns:
        str: The id of the authenticated user.

    Raises:
        AuthError: If the header is missing, malformed or the token is rejected (401).
        DatabaseError: If the auth backend fails (500).
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise AuthError("Missing Authorization header")

    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError("Invalid or missing user")

    db_client = request.app.state.db_client
    return await db_client.do_fetch_user_id(token.strip())
