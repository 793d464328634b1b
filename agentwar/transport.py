"""
HTTP key-value store adapter for AgentWar.

Talks to a remote store exposing ``/v1/status`` and ``/v1/data/{key}``, with
automatic retry and typed error handling.
"""

import base64
import binascii
import random
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

import httpx

from agentwar.exceptions import (
    AgentWarError,
    AuthorizationDeniedError,
    NotFoundError,
    RateLimitedError,
    ServerError,
    StoreError,
    ValidationError,
)
from agentwar.logging import get_logger, log_store_request, log_store_response
from agentwar.store import KeyValueStore

logger = get_logger("store")


@dataclass
class RetryConfig:
    """Configuration for automatic retry behavior."""

    max_retries: int = 3
    backoff_factor: float = 2.0
    retry_on: list[int] = field(default_factory=lambda: [429, 500, 502, 503])
    respect_retry_after: bool = True
    max_backoff: float = 60.0  # seconds
    jitter: float = 0.1  # 0.1 = ±10%


def data_path(key: str) -> str:
    """Return the URL path for a store key."""
    return f"/v1/data/{quote(key, safe='')}"


def backoff_time(config: RetryConfig, attempt: int, retry_after: str | None) -> float:
    """
    Calculate backoff time for a retry.

    Uses exponential backoff with jitter, respecting Retry-After if present.

    Args:
        config: Retry configuration
        attempt: Current attempt number (0-indexed)
        retry_after: Value of Retry-After header (if present)

    Returns:
        Time to wait in seconds
    """
    if retry_after and config.respect_retry_after:
        try:
            return float(retry_after)
        except ValueError:
            pass  # Fall through to exponential backoff

    base_wait = config.backoff_factor ** attempt

    jitter_range = base_wait * config.jitter
    wait_time = base_wait + random.uniform(-jitter_range, jitter_range)

    return min(wait_time, config.max_backoff)


def should_retry(config: RetryConfig, status_code: int, attempt: int) -> bool:
    """Return True if a response with status_code should be retried."""
    if attempt >= config.max_retries:
        return False
    return status_code in config.retry_on


def parse_error_response(response: httpx.Response) -> AgentWarError:
    """
    Parse an error response into a typed exception.

    Args:
        response: HTTP response with error status

    Returns:
        Appropriate AgentWarError subclass
    """
    try:
        data = response.json()
    except ValueError:
        data = {}
    if not isinstance(data, dict):
        data = {}

    error = data.get("error")
    if not isinstance(error, dict):
        error = {}
    code = error.get("code", "UNKNOWN_ERROR")
    message = error.get("message", f"HTTP {response.status_code}")
    meta = data.get("meta")
    request_id = meta.get("requestId") if isinstance(meta, dict) else None

    status_code = response.status_code

    if status_code in (401, 403):
        return AuthorizationDeniedError(code, message, request_id)
    elif status_code == 404:
        return NotFoundError(code, message, request_id)
    elif status_code == 429:
        retry_after_str = response.headers.get("Retry-After", "60")
        try:
            retry_after = int(retry_after_str)
        except ValueError:
            retry_after = 60
        return RateLimitedError(code, message, retry_after, request_id)
    elif status_code >= 500:
        return ServerError(code, message, request_id)
    else:
        return ValidationError(code, message, request_id)


def parse_body(response: httpx.Response) -> dict[str, Any]:
    """
    Parse a successful response body.

    Raises:
        StoreError: If the body is not a JSON object
    """
    if not response.content:
        return {}
    try:
        payload = response.json()
    except ValueError as e:
        raise StoreError("INVALID_RESPONSE", "Store reply is not valid JSON") from e
    if not isinstance(payload, dict):
        raise StoreError("INVALID_RESPONSE", "Store reply must be a JSON object")
    return payload


def response_data(payload: dict[str, Any]) -> dict[str, Any]:
    """Return the ``data`` object of a reply, raising StoreError if it is not an object."""
    data = payload.get("data")
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise StoreError("INVALID_RESPONSE", "Store reply data must be a JSON object")
    return data


def decode_value(payload: dict[str, Any]) -> bytes | None:
    """
    Extract the stored bytes from a GET response body.

    Raises:
        StoreError: If the body does not carry a base64 value
    """
    value = response_data(payload).get("value")
    if value is None:
        return None
    if not isinstance(value, str):
        raise StoreError("INVALID_RESPONSE", "Store value must be a base64 string")
    try:
        return base64.b64decode(value, validate=True)
    except binascii.Error as e:
        raise StoreError("INVALID_RESPONSE", "Store value is not valid base64") from e


def encode_value(value: bytes) -> dict[str, str]:
    """Build a PUT request body for value."""
    return {"value": base64.b64encode(value).decode("ascii")}


class HTTPStore(KeyValueStore):
    """
    Remote key-value store reached over HTTP.

    Handles:
    - Exponential backoff with jitter for retries
    - Retry-After header respect for rate limiting
    - Error response parsing into typed exceptions
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        retry_config: RetryConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize the HTTP store.

        Args:
            base_url: Base URL of the store (e.g., "https://store.agentwar.dev")
            timeout: Request timeout in seconds
            retry_config: Configuration for retry behavior
            transport: Optional httpx transport (e.g., httpx.MockTransport in tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_config = retry_config or RetryConfig()

        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> "HTTPStore":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def available(self) -> bool:
        """
        Ask the store whether it is ready.

        Connection failures and error statuses report False rather than raising.
        """
        log_store_request("available")
        try:
            payload = self._execute_with_retry(lambda: self._client.get("/v1/status"))
            return bool(response_data(payload).get("available", False))
        except AgentWarError as e:
            logger.warning("Store status check failed: %s", e)
            return False

    def get(self, key: str) -> bytes | None:
        """
        Read a key.

        Returns:
            Stored bytes, or None when the store answers 404

        Raises:
            StoreError: On transport or server failures
        """
        log_store_request("get", key)
        try:
            payload = self._execute_with_retry(lambda: self._client.get(data_path(key)))
        except NotFoundError:
            return None
        return decode_value(payload)

    def set(self, key: str, value: bytes) -> bool:
        """
        Write a key.

        Returns:
            True once the store acknowledges the write

        Raises:
            StoreError: On transport or server failures
        """
        log_store_request("set", key, len(value))
        self._execute_with_retry(
            lambda: self._client.put(data_path(key), json=encode_value(value))
        )
        return True

    def _execute_with_retry(
        self, request_fn: Callable[[], httpx.Response]
    ) -> dict[str, Any]:
        """
        Execute a request with automatic retry on retryable errors.

        Args:
            request_fn: Function that makes the HTTP request

        Returns:
            Parsed JSON response

        Raises:
            AgentWarError: On non-retryable errors or after max retries
        """
        last_error: Exception | None = None

        for attempt in range(self.retry_config.max_retries + 1):
            try:
                started = time.monotonic()
                response = request_fn()
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
                time.sleep(backoff_time(self.retry_config, attempt, retry_after))

            except httpx.RequestError as e:
                # Network errors are retryable
                if attempt >= self.retry_config.max_retries:
                    raise ServerError("CONNECTION_ERROR", str(e)) from e

                last_error = e
                time.sleep(backoff_time(self.retry_config, attempt, None))

        if isinstance(last_error, AgentWarError):
            raise last_error
        raise ServerError("MAX_RETRIES_EXCEEDED", str(last_error))
