"""Retry logic and the resilient request client.

A single outbound HTTP call is retried with exponential backoff on rate
limiting (429) and transport failures. Any other non-2xx status fails
immediately. Failures are returned as outcome objects, not raised.

Usage:
    async with ResilientClient() as client:
        outcome = await client.send(url, body=payload, policy=RetryPolicy())
        if outcome.ok:
            print(outcome.body)
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

import httpx
import structlog

from portfolio_critic.core.exceptions import (
    FailureReason,
    NetworkError,
    NonSuccessStatus,
    RateLimitExhausted,
    RequestError,
)

log = structlog.get_logger()

RATE_LIMITED_STATUS = 429


@dataclass(frozen=True)
class RetryPolicy:
    """Configuration for retry behavior.

    Delay before retry n (1-based) is base_delay * 2 ** (n - 1),
    so the default policy waits 1s then 2s.
    """

    max_attempts: int = 3
    base_delay: float = 1.0

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay <= 0:
            raise ValueError("base_delay must be > 0")

    def delay_for(self, attempt_index: int) -> float:
        """Backoff to wait after the failed attempt at attempt_index (0-based)."""
        return self.base_delay * (2 ** attempt_index)


@dataclass(frozen=True)
class Success:
    """Settled request with a 2xx response.

    Attributes:
        body: Parsed JSON body, or the raw text when the body is not JSON.
        status_code: HTTP status of the final response.
        attempts: Attempts made, including the successful one.
    """

    body: Any
    status_code: int = 200
    attempts: int = 1

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """Settled request that could not produce a 2xx response."""

    error: RequestError
    attempts: int = 1

    @property
    def ok(self) -> bool:
        return False

    @property
    def reason(self) -> FailureReason:
        return self.error.reason


RequestOutcome = Union[Success, Failure]


def _redact(url: str) -> str:
    """Drop the query string so API keys never reach the logs."""
    return url.split("?", 1)[0]


def _parse_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class ResilientClient:
    """HTTP client that retries one request with exponential backoff.

    The client may be handed an existing httpx.AsyncClient; otherwise it
    creates one lazily and owns it until aclose().
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 60.0,
        default_policy: Optional[RetryPolicy] = None,
    ) -> None:
        self._http_client = http_client
        self._owns_client = http_client is None
        self._timeout = timeout
        self._default_policy = default_policy or RetryPolicy()

    async def __aenter__(self) -> "ResilientClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying httpx client if this instance created it."""
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    async def send(
        self,
        url: str,
        method: str = "POST",
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[Dict[str, Any]] = None,
        policy: Optional[RetryPolicy] = None,
    ) -> RequestOutcome:
        """Send a request, retrying 429s and transport errors.

        Args:
            url: Target URL.
            method: HTTP method.
            headers: Request headers. Content-Type defaults to JSON.
            body: JSON-serializable request body.
            policy: Retry policy. Defaults to the client's policy.

        Returns:
            Success with the parsed body, or Failure carrying a RequestError.
        """
        policy = policy or self._default_policy
        # Case-insensitive, so a caller's content-type replaces the default
        request_headers = httpx.Headers({"Content-Type": "application/json"})
        request_headers.update(headers or {})
        safe_url = _redact(url)
        last_cause: Optional[BaseException] = None

        for attempt in range(policy.max_attempts):
            attempts_made = attempt + 1
            is_last = attempts_made == policy.max_attempts

            try:
                response = await self._client().request(
                    method, url, headers=request_headers, json=body
                )
            except httpx.TransportError as e:
                last_cause = e
                if is_last:
                    break
                delay = policy.delay_for(attempt)
                log.warning(
                    "request_retry_scheduled",
                    url=safe_url,
                    attempt=attempts_made,
                    max_attempts=policy.max_attempts,
                    delay=delay,
                    error=f"{type(e).__name__}: {e}",
                )
                await asyncio.sleep(delay)
                continue

            if response.status_code == RATE_LIMITED_STATUS:
                if is_last:
                    error = RateLimitExhausted(url=safe_url, attempts=attempts_made)
                    log.error("request_failed", **error.context)
                    return Failure(error=error, attempts=attempts_made)
                delay = policy.delay_for(attempt)
                log.warning(
                    "request_retry_scheduled",
                    url=safe_url,
                    attempt=attempts_made,
                    max_attempts=policy.max_attempts,
                    delay=delay,
                    status_code=response.status_code,
                )
                await asyncio.sleep(delay)
                continue

            if not response.is_success:
                error = NonSuccessStatus(
                    status_code=response.status_code,
                    reason_phrase=response.reason_phrase,
                    url=safe_url,
                    attempts=attempts_made,
                )
                log.error("request_failed", **error.context)
                return Failure(error=error, attempts=attempts_made)

            log.debug("request_succeeded", url=safe_url, attempts=attempts_made)
            return Success(
                body=_parse_body(response),
                status_code=response.status_code,
                attempts=attempts_made,
            )

        error = NetworkError(cause=last_cause, url=safe_url, attempts=policy.max_attempts)
        log.error("request_failed", **error.context)
        return Failure(error=error, attempts=policy.max_attempts)
