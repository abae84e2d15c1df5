"""
User authentication for the Mission Control admin API.

Admin users sign in with the external auth provider (Supabase-compatible).
The access token arrives either as ``Authorization: Bearer <token>`` or in the
provider's session cookie; it is verified against ``{AUTH_URL}/auth/v1/user``
and the resulting identity is cached for a few minutes.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx
from cachetools import TTLCache
from fastapi import Request

from mission_control.config import (
    AUTH_API_KEY,
    AUTH_CACHE_MAX_SIZE,
    AUTH_CACHE_TTL_SECONDS,
    AUTH_COOKIE_NAME,
    AUTH_DISABLED,
    AUTH_TIMEOUT_SECONDS,
    AUTH_URL,
    is_production,
)
from mission_control.errors import ServiceUnavailableError, UnauthorizedError
from mission_control.observability.logging import get_logger
from mission_control.observability.telemetry import counter
from mission_control.utils.redaction import redact

logger = get_logger(__name__)

DEV_USER_ID = "dev-user"
DEV_USER_EMAIL = "dev@localhost"


@dataclass
class AuthenticatedUser:
    """An admin user as reported by the auth provider."""

    id: str
    email: str

    def __str__(self) -> str:
        return f"User({self.id}, {self.email})"


class AuthProviderClient:
    """
    Verifies access tokens against the auth provider.

    Created once at startup. Pass ``transport`` to route requests somewhere
    other than the network (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str = AUTH_URL,
        api_key: str = AUTH_API_KEY,
        disabled: bool = AUTH_DISABLED,
        transport: httpx.AsyncBaseTransport | None = None,
        cache_ttl: int = AUTH_CACHE_TTL_SECONDS,
    ) -> None:
        if disabled and is_production():
            raise RuntimeError("MC_AUTH_DISABLED cannot be used in production")
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.disabled = disabled
        self._transport = transport
        self._cache: TTLCache[str, AuthenticatedUser] = TTLCache(
            maxsize=AUTH_CACHE_MAX_SIZE, ttl=cache_ttl
        )
        if disabled:
            logger.warning("Admin authentication is DISABLED (development mode)")

    async def verify_token(self, token: str) -> AuthenticatedUser:
        """
        Verify an access token and return the user it belongs to.

        Raises:
            UnauthorizedError: Token rejected by the provider
            ServiceUnavailableError: Provider unreachable or not configured
        """
        if token in self._cache:
            return self._cache[token]

        if not self.base_url:
            logger.error("MC_AUTH_URL is not configured")
            raise ServiceUnavailableError("Authentication service unavailable")

        async with httpx.AsyncClient(
            transport=self._transport, timeout=AUTH_TIMEOUT_SECONDS
        ) as client:
            try:
                response = await client.get(
                    f"{self.base_url}/auth/v1/user",
                    headers={"Authorization": f"Bearer {token}", "apikey": self.api_key},
                )
            except httpx.TimeoutException:
                logger.warning("Token validation timed out")
                raise ServiceUnavailableError("Authentication service unavailable") from None
            except httpx.RequestError as e:
                logger.error("Token validation request failed: %s", e)
                raise ServiceUnavailableError("Authentication service unavailable") from e

        if response.status_code != 200:
            counter("auth.token_rejected")
            logger.warning(
                "Auth provider rejected token %s: status=%s", redact(token), response.status_code
            )
            raise UnauthorizedError("Unauthorized")

        payload = response.json()
        user_id = payload.get("id")
        if not user_id:
            raise UnauthorizedError("Unauthorized")

        user = AuthenticatedUser(id=user_id, email=payload.get("email") or "")
        self._cache[token] = user
        logger.info("Authenticated user: %s (cache size: %d)", user, len(self._cache))
        return user

    async def authenticate(self, request: Request) -> AuthenticatedUser:
        if self.disabled:
            return AuthenticatedUser(id=DEV_USER_ID, email=DEV_USER_EMAIL)
        return await self.verify_token(extract_token(request))

    def clear_cache(self) -> None:
        self._cache.clear()


def _extract_bearer_token(authorization: str) -> str:
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise UnauthorizedError("Invalid authorization header format. Expected: Bearer <token>")
    return parts[1]


def extract_token(request: Request) -> str:
    """Bearer header first, then the provider's session cookie."""
    authorization = request.headers.get("Authorization")
    if authorization:
        return _extract_bearer_token(authorization)

    token = request.cookies.get(AUTH_COOKIE_NAME)
    if token:
        return token
    raise UnauthorizedError("Unauthorized")


async def get_current_user(request: Request) -> AuthenticatedUser:
    """
    FastAPI dependency to get the current authenticated admin user.

    Usage:
        @router.get("/endpoint")
        async def endpoint(user: AuthenticatedUser = Depends(get_current_user)):
            ...
    """
    auth: AuthProviderClient = request.app.state.auth
    return await auth.authenticate(request)


async def get_optional_user(request: Request) -> AuthenticatedUser | None:
    """
    FastAPI dependency for optional authentication.

    Returns None when no credentials are present or they are rejected.
    """
    auth: AuthProviderClient = request.app.state.auth
    if not auth.disabled and not (
        request.headers.get("Authorization") or request.cookies.get(AUTH_COOKIE_NAME)
    ):
        return None

    try:
        return await auth.authenticate(request)
    except UnauthorizedError:
        return None
