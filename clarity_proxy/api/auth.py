"""Clarity Proxy — API key and service dependencies."""

from typing import Annotated

from fastapi import HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader

from clarity_proxy.analyzer.pipeline import InsightsService
from clarity_proxy.config import settings

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def require_api_key(
    api_key: Annotated[str | None, Security(api_key_header)] = None
) -> str | None:
    """Validate the X-API-Key header against the shared secret.

    When no shared secret is configured every request is allowed.

    Raises:
        HTTPException: 401 if the key is missing or wrong
    """
    expected_key = settings.shared_secret
    if not expected_key:
        return None

    if not api_key or api_key != expected_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "API-Key"},
        )
    return api_key


def get_service(request: Request) -> InsightsService:
    """Dependency — the InsightsService built at startup."""
    return request.app.state.insights
