"""Optional bearer-token identification for storefront shoppers.

Search endpoints are public; a valid token only lets analytics attribute a
search to a user id. Invalid or missing tokens are treated as anonymous.

Verification may fetch keys from the auth service, so it never runs on the
request path: routes take the raw token and resolve it in the analytics
background task.
"""

import asyncio
import logging
from typing import Annotated, Any

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import PyJWKClient, PyJWKClientError

from storefront.core.config import settings

logger = logging.getLogger(__name__)

# HTTP Bearer token security scheme
bearer_scheme = HTTPBearer(auto_error=False)

# JWKS client for fetching public keys from the auth service
_jwks_client: PyJWKClient | None = None
_jwks_lock = asyncio.Lock()


def get_jwks_client() -> PyJWKClient:
    """Get or create JWKS client."""
    global _jwks_client  # noqa: PLW0603
    if _jwks_client is None:
        if settings.auth_jwks_url:
            jwks_url = settings.auth_jwks_url
        else:
            jwks_url = f"{settings.auth_url}/api/auth/jwks"
        _jwks_client = PyJWKClient(
            jwks_url,
            cache_keys=True,
            timeout=max(1, int(settings.auth_timeout_seconds)),
        )
    return _jwks_client


async def _reset_jwks_client() -> None:
    global _jwks_client  # noqa: PLW0603
    async with _jwks_lock:
        _jwks_client = None


async def verify_token(token: str) -> dict[str, Any] | None:
    """Verify a JWT against the auth service JWKS.

    The key lookup is blocking HTTP, so it runs in a worker thread and is
    abandoned after ``settings.auth_timeout_seconds``.

    Returns:
        The decoded payload, or None when the token cannot be verified
    """
    try:
        jwks_client = get_jwks_client()
        signing_key = await asyncio.wait_for(
            asyncio.to_thread(jwks_client.get_signing_key_from_jwt, token),
            timeout=settings.auth_timeout_seconds,
        )

        payload: dict[str, Any] = jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            audience=settings.auth_url,
            issuer=settings.auth_url,
            options={
                "verify_exp": True,
                "verify_iat": True,
                "verify_aud": True,
                "verify_iss": True,
            },
        )
        return payload
    except jwt.InvalidTokenError as e:
        logger.debug("Ignoring invalid bearer token: %s", e)
        return None
    except PyJWKClientError as e:
        # Reset cached client so next request retries fresh
        await _reset_jwks_client()
        logger.warning("JWKS unavailable, treating request as anonymous: %s", e)
        return None
    except TimeoutError:
        logger.warning(
            "JWKS lookup exceeded %.1fs, treating request as anonymous",
            settings.auth_timeout_seconds,
        )
        return None


def get_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str | None:
    """Raw bearer token from the Authorization header, unverified."""
    if credentials is None:
        return None
    return credentials.credentials


def user_id_of(user: dict[str, Any] | None) -> str | None:
    """Subject claim of a decoded token, if any."""
    if not user:
        return None
    sub = user.get("sub")
    return str(sub) if sub else None


async def user_id_from_token(token: str | None) -> str | None:
    """Verify ``token`` and return its subject; None for anonymous requests."""
    if not token:
        return None
    return user_id_of(await verify_token(token))


# Type alias for dependency injection
BearerToken = Annotated[str | None, Depends(get_bearer_token)]
