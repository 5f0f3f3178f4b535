"""Clarity Proxy — Clarity Export API Client.

One bounded GET against the project-live-insights export. Failures are raised
as UpstreamError and never retried here; the export quota is too small to
spend on automatic retries.
"""

import time
from typing import Any, Dict, List, Optional

import httpx

from clarity_proxy.cache.quota_cache import QuerySignature
from clarity_proxy.config import settings
from clarity_proxy.connectors.clarity.transformer import parse_blocks
from clarity_proxy.core.logging import get_logger
from clarity_proxy.models.raw_models import MetricBlock

logger = get_logger("clarity.client")

BODY_PREVIEW_CHARS = 300


class UpstreamError(Exception):
    """Raised when the Clarity export fails or returns an unusable body."""

    def __init__(self, message: str, status_code: int = 0, body: str = ""):
        self.status_code = status_code
        self.body = body[:BODY_PREVIEW_CHARS]
        super().__init__(message)


class ClarityClient:
    """Async HTTP client for the Clarity data export API."""

    def __init__(
        self,
        token: str | None = None,
        export_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.token = token if token is not None else settings.clarity_api_token
        self.export_url = export_url or settings.clarity_export_url
        self.timeout = timeout or settings.clarity_timeout_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    @staticmethod
    def _params(signature: QuerySignature) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "numOfDays": str(signature.days),
            "dimension1": signature.dimension1,
        }
        if signature.dimension2:
            params["dimension2"] = signature.dimension2
        if signature.dimension3:
            params["dimension3"] = signature.dimension3
        return params

    async def fetch_live_insights(self, signature: QuerySignature) -> List[MetricBlock]:
        """Fetch and parse the export for one query shape."""
        client = await self._get_client()
        headers = {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }
        started = time.perf_counter()

        try:
            resp = await client.get(
                self.export_url, params=self._params(signature), headers=headers
            )
        except httpx.RequestError as e:
            logger.error(f"Clarity request failed: {e}", extra={"signature": str(signature)})
            raise UpstreamError(f"Clarity request failed: {e}") from e

        duration_ms = round((time.perf_counter() - started) * 1000)
        logger.info(
            f"Clarity export {signature} -> {resp.status_code}",
            extra={
                "signature": str(signature),
                "status_code": resp.status_code,
                "duration_ms": duration_ms,
            },
        )

        if not resp.is_success:
            body = resp.text
            raise UpstreamError(
                f"Clarity API error {resp.status_code}: {body[:BODY_PREVIEW_CHARS]}",
                status_code=resp.status_code,
                body=body,
            )

        try:
            payload = resp.json()
        except ValueError as e:
            raise UpstreamError(
                "Clarity API returned a non-JSON body",
                status_code=resp.status_code,
                body=resp.text,
            ) from e

        blocks = parse_blocks(payload)
        if blocks is None:
            raise UpstreamError(
                "Clarity API returned an unexpected payload shape",
                status_code=resp.status_code,
                body=resp.text,
            )
        return blocks

    def token_status(self) -> Dict[str, Any]:
        """Whether a token is configured, without revealing it."""
        return {"has_token": bool(self.token), "token_length": len(self.token or "")}
