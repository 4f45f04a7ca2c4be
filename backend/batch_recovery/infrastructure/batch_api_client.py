"""Resilient Batch API Client — wraps httpx.AsyncClient with retry, backoff, and error mapping.

Invariants:
    - Rate limits (429): exponential backoff with jitter, respects Retry-After header
    - Transient errors (5xx, connection, timeout): max `max_retries` retries with backoff
    - Client errors (4xx except 429): returned immediately, no retry (caller reads .ok)
    - Exhausted retries and transport failures mapped to RemoteApiError (core/errors.py)

Design Decisions:
    - Wrapper over raw client: retry policy lives with the transport, never in the
      recovery core (retry_attempts / retry_delay_ms come from settings)
    - ±25% jitter on backoff: prevents thundering herd after a server outage
    - Responses exposed through HttpApiResponse (ok / status_code / json()),
      the shape the BatchApi protocol consumes
"""

import asyncio
import logging
import random

import httpx

from batch_recovery.core.errors import ErrorContext, RemoteApiError

logger = logging.getLogger(__name__)

_RATE_LIMITED = 429


def _is_transient(status_code: int) -> bool:
    return status_code >= 500


class HttpApiResponse:
    """Adapter from httpx.Response to the BatchApi response shape."""

    def __init__(self, response: httpx.Response):
        self._response = response

    @property
    def ok(self) -> bool:
        return self._response.is_success

    @property
    def status_code(self) -> int:
        return self._response.status_code

    def json(self):
        return self._response.json()


class ResilientBatchApiClient:
    """Remote batch API client with retry logic, timeouts, and error mapping."""

    def __init__(
        self,
        base_url: str,
        max_retries: int = 3,
        base_delay_ms: int = 1000,
        max_delay_ms: int = 30_000,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client = httpx.AsyncClient(
            base_url=base_url, timeout=timeout_seconds, transport=transport,
        )
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms

    async def request(self, method: str, path: str) -> HttpApiResponse:
        """Send a request, retrying rate limits and transient failures."""
        context = ErrorContext(debug_info={"method": method, "path": path})
        for attempt in range(self.max_retries + 1):
            try:
                response = await self.client.request(method, path)
            except httpx.TransportError as e:
                await self._handle_transient_error(e, attempt, context)
                continue

            if response.status_code == _RATE_LIMITED:
                await self._handle_rate_limit(response, attempt, context)
                continue
            if _is_transient(response.status_code) and attempt < self.max_retries:
                await self._handle_transient_error(
                    f"HTTP {response.status_code}", attempt, context,
                )
                continue

            self._log_result(method, path, response, attempt)
            return HttpApiResponse(response)
        raise RemoteApiError("retries exhausted", context=context)

    async def aclose(self) -> None:
        await self.client.aclose()

    def _log_result(
        self, method: str, path: str, response: httpx.Response, attempt: int,
    ) -> None:
        logger.info(
            f"Batch API {method} {response.status_code}",
            extra={"attempt": attempt + 1, "path": path},
        )

    async def _handle_rate_limit(
        self, response: httpx.Response, attempt: int, context: ErrorContext,
    ) -> None:
        """Sleep before the next attempt, or raise once retries are spent."""
        retry_after_ms = self._extract_retry_after(response)
        if attempt >= self.max_retries:
            raise RemoteApiError(
                "Rate limit exceeded after retries",
                status_code=_RATE_LIMITED,
                retry_after_ms=retry_after_ms,
                context=context,
            )
        delay = retry_after_ms or self._backoff(attempt)
        logger.warning(
            f"Rate limit hit, retry after {delay}ms (attempt {attempt + 1})",
        )
        await asyncio.sleep(delay / 1000)

    async def _handle_transient_error(
        self, e: object, attempt: int, context: ErrorContext,
    ) -> None:
        """Sleep before the next attempt, or raise once retries are spent."""
        if attempt >= self.max_retries:
            raise RemoteApiError(
                f"Transient failure after {self.max_retries} retries: {e}",
                context=context,
            )
        delay = self._backoff(attempt)
        logger.warning(f"Transient error, retry after {delay}ms: {e}")
        await asyncio.sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    def _extract_retry_after(self, response: httpx.Response) -> int | None:
        """Extract Retry-After header (returns milliseconds)."""
        val = response.headers.get("retry-after")
        if val and val.isdigit():
            return int(val) * 1000
        return None
