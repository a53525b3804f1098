"""Auth dependency backed by Supabase.

The bearer token is the Supabase session access token. It is validated by
asking Supabase for the token's user; anything else is rejected.
"""

import asyncio
import logging
from functools import lru_cache
from typing import Annotated

import httpx
from fastapi import Header
from supabase import AuthError, Client, create_client

from backend.app.config import get_settings
from backend.app.db.context import RequestContext
from backend.app.errors import AuthenticationError

logger = logging.getLogger(__name__)

AUTH_REQUIRED = "Authentication required."


@lru_cache
def get_supabase_client() -> Client:
    """Get cached Supabase client.

    Raises:
        AuthenticationError: If Supabase is not configured
    """
    settings = get_settings()
    if not settings.supabase_url or settings.supabase_anon_key is None:
        logger.error("Supabase is not configured (SUPABASE_URL / SUPABASE_ANON_KEY)")
        raise AuthenticationError(AUTH_REQUIRED)
    return create_client(settings.supabase_url, settings.supabase_anon_key.get_secret_value())


def parse_bearer_token(authorization: str | None) -> str:
    """Return the token of a ``Bearer <token>`` header.

    Raises:
        AuthenticationError: If the header is missing or malformed
    """
    if not authorization:
        raise AuthenticationError(AUTH_REQUIRED)

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError(AUTH_REQUIRED)
    return token.strip()


async def get_current_context(
    authorization: Annotated[str | None, Header()] = None,
) -> RequestContext:
    """Resolve the caller from the authorization header.

    Args:
        authorization: Authorization header (e.g., "Bearer <access token>")

    Returns:
        RequestContext for the session's user

    Raises:
        AuthenticationError: If there is no valid session or Supabase is unreachable
    """
    token = parse_bearer_token(authorization)
    client = get_supabase_client()

    try:
        response = await asyncio.to_thread(client.auth.get_user, token)
    except AuthError as e:
        logger.info(f"Rejected bearer token: {e}")
        raise AuthenticationError(AUTH_REQUIRED) from e
    except httpx.HTTPError as e:
        logger.warning(f"Could not reach Supabase to verify session: {e!r}")
        raise AuthenticationError(AUTH_REQUIRED) from e

    if response is None or response.user is None:
        raise AuthenticationError(AUTH_REQUIRED)

    return RequestContext(
        user_id=str(response.user.id),
        email=response.user.email,
        access_token=token,
    )
