import asyncio
import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional

import aiohttp

from nearby_search.core.config import settings
from nearby_search.core.errors import (
    FetchExhausted,
    ProviderPayloadError,
    ProviderTransientError,
)

logger = logging.getLogger(__name__)


def linear_backoff(attempt: int) -> float:
    """Seconds to wait after the given (0-based) failed attempt: 1s, 2s, ..."""
    return settings.FETCH_BACKOFF_SECONDS * (attempt + 1)


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = settings.FETCH_MAX_RETRIES
    timeout_ms: int = settings.FETCH_DEFAULT_TIMEOUT_MS
    backoff: Callable[[int], float] = linear_backoff

    @property
    def attempts(self) -> int:
        return self.max_retries + 1

    def delay(self, attempt: int) -> float:
        return self.backoff(attempt)

    def with_timeout(self, timeout_ms: int) -> "RetryPolicy":
        return dataclasses.replace(self, timeout_ms=timeout_ms)


@dataclass(frozen=True)
class ProviderRequest:
    url: str
    method: str = "GET"
    params: Dict[str, str] = field(default_factory=dict)
    data: Optional[Dict[str, str]] = None


@dataclass(frozen=True)
class ProviderResponse:
    status: int
    payload: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status < 500


class RetryingFetcher:
    """
    Issues one provider call with bounded retries.

    Success and 4xx responses are returned straight away. 5xx responses,
    network errors and timeouts are retried after the policy's backoff; once
    every attempt has failed, FetchExhausted is raised.
    """

    def __init__(self, sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self._sleep = sleep

    async def fetch(
        self,
        session: aiohttp.ClientSession,
        request: ProviderRequest,
        policy: Optional[RetryPolicy] = None,
    ) -> ProviderResponse:
        if policy is None:
            policy = RetryPolicy()

        last_error: Optional[Exception] = None

        for attempt in range(policy.attempts):
            try:
                response = await self._attempt(session, request, policy.timeout_ms)
            except asyncio.TimeoutError:
                last_error = ProviderTransientError(
                    f"timed out after {policy.timeout_ms}ms"
                )
            except aiohttp.ClientError as e:
                last_error = ProviderTransientError(f"network error: {e}")
            else:
                if response.ok or response.is_client_error:
                    return response
                last_error = ProviderTransientError(
                    f"server error {response.status}", status=response.status
                )

            if attempt < policy.max_retries:
                delay = policy.delay(attempt)
                logger.warning(
                    f"Provider attempt {attempt + 1}/{policy.attempts} failed "
                    f"({last_error}), retrying in {delay:.1f}s..."
                )
                await self._sleep(delay)

        raise FetchExhausted(policy.attempts, last_error) from last_error

    async def _attempt(
        self, session: aiohttp.ClientSession, request: ProviderRequest, timeout_ms: int
    ) -> ProviderResponse:
        timeout = aiohttp.ClientTimeout(total=timeout_ms / 1000)
        async with session.request(
            request.method,
            request.url,
            params=request.params or None,
            data=request.data,
            timeout=timeout,
        ) as resp:
            if 200 <= resp.status < 300:
                try:
                    payload = await resp.json(content_type=None)
                except ValueError as e:
                    raise ProviderPayloadError(
                        f"invalid JSON body: {e}", status=resp.status
                    ) from e
            else:
                payload = await resp.text()
            return ProviderResponse(status=resp.status, payload=payload)
