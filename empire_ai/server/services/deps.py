"""
Platform Dependencies.

Provides the ``A2APlatform`` built at application startup, the optional API
key check and the per-client rate limit to API endpoints.
"""

import secrets
from typing import Annotated, Optional

from fastapi import Depends, Header, Request, Response

from empire_ai.agent_core.errors import AuthenticationError, RateLimitExceededError
from empire_ai.agent_core.factory import A2APlatform
from empire_ai.server.core.config import Settings

from .rate_limit import FixedWindowRateLimiter, client_key


def get_platform(request: Request) -> A2APlatform:
    return request.app.state.platform


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def verify_api_key(
    request: Request,
    x_api_key: Annotated[Optional[str], Header(alias="X-API-Key")] = None,
) -> None:
    """
    Require ``X-API-Key`` to match ``A2A_API_KEY`` when one is configured.

    Raises:
        AuthenticationError: The header is missing or does not match.
    """
    expected = get_settings(request).a2a_api_key
    if expected is None or not expected.get_secret_value():
        return
    if x_api_key is None or not secrets.compare_digest(x_api_key, expected.get_secret_value()):
        raise AuthenticationError("Invalid or missing API key")


async def enforce_rate_limit(request: Request, response: Response) -> None:
    """
    Count the request against its client's window when rate limiting is enabled.

    Sets the ``X-RateLimit-*`` headers on the response.

    Raises:
        RateLimitExceededError: The client has used up its current window.
    """
    limiter: Optional[FixedWindowRateLimiter] = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        return
    decision = limiter.hit(client_key(request))
    if not decision.allowed:
        raise RateLimitExceededError(
            limit=decision.limit,
            window_seconds=limiter.window_seconds,
            retry_after=decision.retry_after,
            headers=decision.headers,
        )
    response.headers.update(decision.headers)


PlatformDep = Annotated[A2APlatform, Depends(get_platform)]