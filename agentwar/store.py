"""
Key-value store adapter interfaces.

The registry treats the store as its sole source of truth. Implementations
are external collaborators; HTTPStore and AsyncHTTPStore talk to a remote
store over HTTP, and agentwar.testing provides in-memory doubles.
"""

from abc import ABC, abstractmethod

# Well-known keys
INDEX_KEY = "agent_keys"
RECORD_KEY_PREFIX = "agent_"


def record_key(agent_id: str) -> str:
    """Return the store key holding an agent's record."""
    return f"{RECORD_KEY_PREFIX}{agent_id}"


class KeyValueStore(ABC):
    """Blocking key-value store capability."""

    @abstractmethod
    def available(self) -> bool:
        """Liveness check. False means no data is readable."""
        pass

    @abstractmethod
    def get(self, key: str) -> bytes | None:
        """Return the bytes stored under key, or None if absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: bytes) -> bool:
        """Store value under key. Returns True on success."""
        pass


class AsyncKeyValueStore(ABC):
    """Async key-value store capability."""

    @abstractmethod
    async def available(self) -> bool:
        """Liveness check. False means no data is readable."""
        pass

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Return the bytes stored under key, or None if absent."""
        pass

    @abstractmethod
    async def set(self, key: str, value: bytes) -> bool:
        """Store value under key. Returns True on success."""
        pass
