"""AgentWar exception classes."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from agentwar.types.agents import AgentRecord


class AgentWarError(Exception):
    """Base exception for all AgentWar errors."""

    def __init__(
        self, code: str, message: str, request_id: str | None = None
    ) -> None:
        self.code = code
        self.message = message
        self.request_id = request_id
        super().__init__(f"[{code}] {message}")


class ConfigurationError(AgentWarError):
    """Raised when client configuration is invalid or missing."""

    def __init__(self, message: str) -> None:
        super().__init__("CONFIGURATION_ERROR", message)


class ValidationError(AgentWarError):
    """Raised when caller-supplied input is rejected."""

    pass


class StoreError(AgentWarError):
    """Base class for key-value store failures."""

    pass


class StoreUnavailableError(StoreError):
    """Raised on write paths when the store reports not ready."""

    def __init__(self, message: str = "Key-value store is not available") -> None:
        super().__init__("STORE_UNAVAILABLE", message)


class StoreWriteError(StoreError):
    """Raised when the store refuses a write."""

    def __init__(self, key: str, message: str | None = None) -> None:
        self.key = key
        super().__init__("STORE_WRITE_FAILED", message or f"Write to {key!r} failed")


class NotFoundError(StoreError):
    """Raised when a key or agent is not found."""

    pass


class RateLimitedError(StoreError):
    """Raised when the remote store rate limits the caller."""

    def __init__(
        self,
        code: str,
        message: str,
        retry_after: int,
        request_id: str | None = None,
    ) -> None:
        super().__init__(code, message, request_id)
        self.retry_after = retry_after


class ServerError(StoreError):
    """Raised on remote store errors (5xx) and connection failures."""

    pass


class MalformedRecordError(AgentWarError):
    """Raised when a stored agent record cannot be parsed."""

    def __init__(self, agent_id: str, reason: str) -> None:
        self.agent_id = agent_id
        self.reason = reason
        super().__init__("MALFORMED_RECORD", f"Agent {agent_id!r}: {reason}")


class MalformedIndexError(AgentWarError):
    """Raised when the index key does not hold a JSON array of identifiers."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__("MALFORMED_INDEX", reason)


class MalformedCiphertextError(AgentWarError):
    """Raised when a ciphertext token does not match the expected framing."""

    def __init__(self, message: str) -> None:
        super().__init__("MALFORMED_CIPHERTEXT", message)


class AuthorizationDeniedError(AgentWarError):
    """Raised when a signature request is rejected or ownership is missing."""

    pass


class IndexWriteLostError(AgentWarError):
    """
    Raised in strict mode when a record was written but the index was not.

    The record stays in the store as an orphan: it is unreachable through
    listing but its key is still readable.
    """

    def __init__(self, record: AgentRecord, message: str | None = None) -> None:
        self.record = record
        super().__init__(
            "INDEX_WRITE_LOST",
            message or f"Agent {record.id!r} was stored but not added to the index",
        )
