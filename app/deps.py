"""
Dependencies module - reusable FastAPI dependencies for route handlers.
The main dependency here is get_google_token which validates the caller's
Google access token before any calendar call is made.
"""

import logging
import time
from typing import Any, Callable, Dict, Optional

import httpx
from fastapi import Depends, Header, HTTPException, status

from app.core.config import settings
from app.environments.base import AuthenticationError, CalendarBackend, TokenExpiredError
from app.environments.google.calendar import GoogleCalendarClient


logger = logging.getLogger("calendar_assistant.deps")


# ---------------------------------------------------------------------------
# TOKEN INFO CACHE
# ---------------------------------------------------------------------------
# Validating a token costs a round trip to Google's tokeninfo endpoint.
# Validated tokens are remembered until shortly before they expire.

class TokenInfoCache:
    """
    Expiry times of tokens already validated against Google.

    A cached token counts as valid until ``skew_seconds`` before its expiry.

    Args:
        ttl_seconds: Lifetime used when Google reports no expiry
        skew_seconds: Safety margin before the real expiry
        clock: Returns "now" as epoch seconds
    """

    def __init__(
        self,
        ttl_seconds: int = settings.TOKEN_CACHE_TTL_SECONDS,
        skew_seconds: int = settings.TOKEN_EXPIRY_SKEW_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self.skew_seconds = skew_seconds
        self.clock = clock
        self._expiries: Dict[str, float] = {}

    def is_valid(self, token: str) -> bool:
        expiry = self._expiries.get(token)
        if expiry is None:
            return False
        if self.clock() < expiry - self.skew_seconds:
            return True
        self._expiries.pop(token, None)
        return False

    def expiry_from_info(self, info: Dict[str, Any]) -> float:
        """Epoch expiry from a tokeninfo payload (``expires_in`` wins over ``exp``)."""
        now = self.clock()
        expires_in = info.get("expires_in")
        if expires_in is not None and str(expires_in).isdigit():
            return now + int(expires_in)
        exp = info.get("exp")
        if exp is not None and str(exp).isdigit():
            return float(exp)
        return now + self.ttl_seconds

    def store(self, token: str, expiry: float) -> None:
        """Remember a validated token, dropping entries that can no longer be used."""
        cutoff = self.clock() + self.skew_seconds
        self._expiries = {t: e for t, e in self._expiries.items() if e > cutoff}
        self._expiries[token] = expiry

    def clear(self) -> None:
        self._expiries.clear()

    def __len__(self) -> int:
        return len(self._expiries)


async def validate_google_token(token: str, cache: TokenInfoCache) -> None:
    """
    Check a Google access token, consulting the cache first.

    Raises:
        AuthenticationError: Google rejected the token
        TokenExpiredError: The token is already expired
    """
    if cache.is_valid(token):
        return

    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(
                settings.GOOGLE_TOKENINFO_URL,
                params={"access_token": token},
                timeout=10.0,
            )
    except httpx.RequestError as e:
        raise AuthenticationError(f"Token validation failed: {e}")

    if response.status_code != 200:
        raise AuthenticationError("Invalid or expired token")

    expiry = cache.expiry_from_info(response.json())
    if expiry <= cache.clock():
        raise TokenExpiredError("Token expired")

    cache.store(token, expiry)


# ---------------------------------------------------------------------------
# DEPENDENCIES
# ---------------------------------------------------------------------------

token_info_cache = TokenInfoCache()


def get_token_cache() -> TokenInfoCache:
    """The token cache; override in tests for an isolated one."""
    return token_info_cache


async def get_google_token(
    token: Optional[str] = Header(None),
    authorization: Optional[str] = Header(None),
    cache: TokenInfoCache = Depends(get_token_cache),
) -> str:
    """
    Return the caller's validated Google access token.

    The token comes from the ``token`` header or from
    ``Authorization: Bearer <token>``.

    Raises:
        401 Unauthorized: If the token is missing, invalid or expired
    """
    access_token = token
    if not access_token and authorization and authorization.lower().startswith("bearer "):
        access_token = authorization[7:].strip()

    if not access_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing token header",
        )

    try:
        await validate_google_token(access_token, cache)
    except TokenExpiredError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except AuthenticationError as e:
        logger.info(f"Rejected Google token: {e}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

    return access_token


def get_calendar_backend(token: str = Depends(get_google_token)) -> CalendarBackend:
    """Google Calendar backend acting with the caller's token."""
    return GoogleCalendarClient(access_token=token)
