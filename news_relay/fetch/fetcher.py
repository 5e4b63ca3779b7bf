"""
HTTP fetching with bounded retries on timeouts.

Only timeout-class failures are retried. Each retry waits a fixed delay
and grows the per-attempt timeout by half, capped by the policy's maximum.
Any other failure (connection refused, HTTP error status, invalid URL)
fails immediately.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

import httpx

from ..core.types import RequestPolicy
from ..utils.logging import log_event

logger = logging.getLogger(__name__)

TIMEOUT_GROWTH = 1.5


class FetchError(Exception):
    """A fetch failed without a usable response.

    Attributes:
        url: The URL that was requested
        status_code: HTTP status code when the server answered with an error
    """

    def __init__(self, url: str, message: str, status_code: int | None = None):
        super().__init__(f"{message} ({url})")
        self.url = url
        self.status_code = status_code


class FetchTimeoutError(FetchError):
    """Every attempt timed out.

    Attributes:
        attempts: Number of attempts made
    """

    def __init__(self, url: str, message: str, attempts: int):
        super().__init__(url, message)
        self.attempts = attempts


def next_timeout(current: float, policy: RequestPolicy) -> float:
    """Timeout for the attempt following a timed-out one."""
    return min(current * TIMEOUT_GROWTH, policy.max_timeout)


class RetryFetcher:
    """Issues HTTP GETs following a RequestPolicy.

    Attributes:
        user_agent: User-Agent header sent with every request
        trust_env: Whether to respect system proxy settings
    """

    def __init__(
        self,
        user_agent: str = "Mozilla/5.0",
        trust_env: bool = True,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.user_agent = user_agent
        self.trust_env = trust_env
        self._transport = transport
        self._sleep = sleep

    def fetch(self, url: str, policy: RequestPolicy) -> str:
        """Fetch a URL and return the response body.

        Makes at most ``policy.max_retries + 1`` attempts. The next attempt
        is issued only after the previous one has been observed to time out.

        Args:
            url: The URL to fetch
            policy: Retry and timeout settings

        Returns:
            The response body text

        Raises:
            FetchTimeoutError: All attempts timed out
            FetchError: A non-timeout failure occurred
        """
        timeout = policy.initial_timeout
        attempts = policy.max_retries + 1
        last_error: httpx.TimeoutException | None = None

        with httpx.Client(
            headers={"User-Agent": self.user_agent},
            follow_redirects=True,
            trust_env=self.trust_env,
            transport=self._transport,
        ) as client:
            for attempt in range(1, attempts + 1):
                try:
                    resp = client.get(url, timeout=timeout)
                    resp.raise_for_status()
                    return resp.text
                except httpx.TimeoutException as exc:
                    last_error = exc
                    logger.debug("Timeout on attempt %d/%d for %s: %s", attempt, attempts, url, exc)
                    if attempt < attempts:
                        self._sleep(policy.retry_delay)
                        timeout = next_timeout(timeout, policy)
                except httpx.HTTPStatusError as exc:
                    status = exc.response.status_code
                    log_event(
                        logger,
                        "Fetch failed",
                        logging.ERROR,
                        event="fetch_failed",
                        url=url,
                        status_code=status,
                    )
                    raise FetchError(url, f"HTTP {status}", status_code=status) from exc
                except (httpx.HTTPError, httpx.InvalidURL) as exc:
                    log_event(
                        logger,
                        "Fetch failed",
                        logging.ERROR,
                        event="fetch_failed",
                        url=url,
                        error=f"{type(exc).__name__}: {exc}",
                    )
                    raise FetchError(url, f"{type(exc).__name__}: {exc}") from exc

        log_event(
            logger,
            "Fetch retries exhausted",
            logging.WARNING,
            event="fetch_retries_exhausted",
            url=url,
            attempts=attempts,
        )
        raise FetchTimeoutError(url, f"Timed out after {attempts} attempts", attempts) from last_error
