"""
Async HTTP key-value store adapter for AgentWar.

Same wire protocol and retry policy as HTTPStore, using httpx's async client.
"""

import asyncio
import time
from collections.abc import Callable, Coroutine
from typing import Any

import httpx

from agentwar.exceptions import AgentWarError, NotFoundError, ServerError
from agentwar.logging import get_logger, log_store_request, log_store_response
from agentwar.store import AsyncKeyValueStore
from agentwar.transport import (
    RetryConfig,
    backoff_time,
    data_path,
    decode_value,
    encode_value,
    parse_body,
    parse_error_response,
    response_data,
    should_retry,
)

logger = get_logger("store")


class AsyncHTTPStore(AsyncKeyValueStore):
    """Async remote key-value store reached over HTTP."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        retry_config: RetryConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the async HTTP store.

        Args:
            base_url: Base URL of the store
            timeout: Request timeout in seconds
            retry_config: Configuration for retry behavior
            transport: Optional httpx async transport (e.g., httpx.MockTransport in tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_config = retry_config or RetryConfig()

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncHTTPStore":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def available(self) -> bool:
        """Ask the store whether it is ready. Failures report False rather than raising."""
        log_store_request("available")
        try:
            payload = await self._execute_with_retry(lambda: self._client.get("/v1/status"))
            return bool(response_data(payload).get("available", False))
        except AgentWarError as e:
            logger.warning("Store status check failed: %s", e)
            return False

    async def get(self, key: str) -> bytes | None:
        """Read a key, returning None when the store answers 404."""
        log_store_request("get", key)
        try:
            payload = await self._execute_with_retry(
                lambda: self._client.get(data_path(key))
            )
        except NotFoundError:
            return None
        return decode_value(payload)

    async def set(self, key: str, value: bytes) -> bool:
        """Write a key, returning True once acknowledged."""
        log_store_request("set", key, len(value))
        await self._execute_with_retry(
            lambda: self._client.put(data_path(key), json=encode_value(value))
        )
        return True

    async def _execute_with_retry(
        self, request_fn: Callable[[], Coroutine[Any, Any, httpx.Response]]
    ) -> dict[str, Any]:
        """
        Execute a request with automatic retry on retryable errors.

        Args:
            request_fn: Async function that makes the HTTP request

        Returns:
            Parsed JSON response

        Raises:
            AgentWarError: On non-retryable errors or after max retries
        """
        last_error: Exception | None = None

        for attempt in range(self.retry_config.max_retries + 1):
            try:
                started = time.monotonic()
                response = await request_fn()
                log_store_response(
                    response.status_code,
                    str(response.request.url),
                    (time.monotonic() - started) * 1000,
                )

                if response.status_code < 400:
                    return parse_body(response)

                error = parse_error_response(response)

                if not should_retry(self.retry_config, response.status_code, attempt):
                    raise error

                last_error = error

                retry_after = response.headers.get("Retry-After")
                await asyncio.sleep(backoff_time(self.retry_config, attempt, retry_after))

            except httpx.RequestError as e:
                if attempt >= self.retry_config.max_retries:
                    raise ServerError("CONNECTION_ERROR", str(e)) from e

                last_error = e
                await asyncio.sleep(backoff_time(self.retry_config, attempt, None))

        if isinstance(last_error, AgentWarError):
            raise last_error
        raise ServerError("MAX_RETRIES_EXCEEDED", str(last_error))
