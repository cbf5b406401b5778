"""Bounded retry / backoff around a single Jira HTTP request.

Retries transport failures, 429 and 5xx responses. A server ``Retry-After``
hint (seconds) wins over the ``2**attempt`` fallback.

The final outcome is asymmetric: an exhausted transport error is
re-raised, while an exhausted HTTP error response is returned so the caller
can classify it from the status code.
"""

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

TOO_MANY_REQUESTS = 429

# Upper bound on a server-provided Retry-After wait, in seconds
MAX_RETRY_AFTER = 300.0


def _is_success(status: int) -> bool:
    return 200 <= status < 300


def _is_terminal_client_error(status: int) -> bool:
    return 400 <= status < 500 and status != TOO_MANY_REQUESTS


def retry_after_seconds(headers: httpx.Headers) -> float | None:
    """Return the Retry-After hint in seconds, or None if absent or unusable."""
    raw = headers.get("retry-after")
    if raw is None:
        return None
    try:
        value = float(raw.strip())
    except ValueError:
        return None
    if value < 0 or not math.isfinite(value):
        return None
    return min(value, MAX_RETRY_AFTER)


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 4
    sleep: Sleep = asyncio.sleep

    @property
    def attempts(self) -> int:
        return max(1, self.max_retries)

    async def send(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        *,
        json: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        attempts = self.attempts
        for attempt in range(1, attempts + 1):
            try:
                response = await client.request(method, url, json=json, headers=headers)
            except httpx.RequestError as exc:
                if attempt >= attempts:
                    raise
                backoff = float(2**attempt)
                logger.info(
                    "Request error: %s. Backing off %.0fs (attempt %d/%d)",
                    str(exc) or type(exc).__name__,
                    backoff,
                    attempt,
                    attempts,
                )
                await self.sleep(backoff)
                continue

            status = response.status_code
            if _is_success(status) or _is_terminal_client_error(status):
                return response
            if attempt >= attempts:
                return response

            hint = retry_after_seconds(response.headers)
            wait = hint if hint is not None else float(2**attempt)
            logger.info(
                "Request to %s got %d, retrying after %ss (attempt %d/%d)",
                url,
                status,
                f"{wait:g}",
                attempt,
                attempts,
            )
            await self.sleep(wait)

        raise RuntimeError("retry loop exited unexpectedly")  # pragma: no cover
