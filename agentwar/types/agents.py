"""Agent record data models and their stored JSON form."""

import json
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

# Field names inside the stored JSON blob
_STRING_FIELDS = ("name", "balance", "score", "owner", "strategyHash")


@dataclass(frozen=True)
class AgentRecord:
    """One registered trading agent."""

    id: str
    name: str
    encrypted_score: str
    encrypted_balance: str
    owner: str
    timestamp: int  # seconds since epoch
    strategy_hash: str

    def to_store_dict(self) -> dict[str, Any]:
        """
        Convert to the JSON object stored under the agent's key.

        The id is not part of the blob; it is the key suffix.
        """
        return {
            "name": self.name,
            "balance": self.encrypted_balance,
            "score": self.encrypted_score,
            "owner": self.owner,
            "timestamp": self.timestamp,
            "strategyHash": self.strategy_hash,
        }

    def to_bytes(self) -> bytes:
        """Serialize the stored form as UTF-8 JSON."""
        return json.dumps(self.to_store_dict()).encode("utf-8")


@dataclass(frozen=True)
class RecordParseError:
    """A stored blob that could not be turned into an AgentRecord."""

    agent_id: str
    reason: str


def parse_record(agent_id: str, raw: bytes) -> AgentRecord | RecordParseError:
    """
    Parse the stored bytes for one agent.

    Args:
        agent_id: Identifier the bytes were stored under
        raw: UTF-8 JSON object bytes

    Returns:
        AgentRecord on success, RecordParseError describing the first problem otherwise
    """
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        return RecordParseError(agent_id, f"invalid JSON: {e}")

    if not isinstance(data, dict):
        return RecordParseError(agent_id, f"expected object, got {type(data).__name__}")

    for name in _STRING_FIELDS:
        if not isinstance(data.get(name), str):
            return RecordParseError(agent_id, f"field {name!r} missing or not a string")

    timestamp = data.get("timestamp")
    if isinstance(timestamp, bool):
        return RecordParseError(agent_id, "field 'timestamp' is not a number")
    if isinstance(timestamp, float) and timestamp.is_integer():
        timestamp = int(timestamp)
    if not isinstance(timestamp, int):
        return RecordParseError(agent_id, "field 'timestamp' missing or not an integer")

    return AgentRecord(
        id=agent_id,
        name=data["name"],
        encrypted_score=data["score"],
        encrypted_balance=data["balance"],
        owner=data["owner"],
        timestamp=timestamp,
        strategy_hash=data["strategyHash"],
    )


@dataclass
class RegistryIndex:
    """
    Ordered identifiers of every known agent, stored as one JSON array.

    Only grows. Order is whatever the last read-modify-write produced.
    """

    ids: list[str] = field(default_factory=list)

    @classmethod
    def from_bytes(cls, raw: bytes | None) -> "RegistryIndex":
        """
        Parse the index blob.

        Absent or blank bytes mean an empty index.

        Raises:
            ValueError: If the blob is not a JSON array of strings
        """
        if raw is None:
            return cls()
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ValueError(f"index is not valid UTF-8: {e}") from e
        if text.strip() == "":
            return cls()

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError(f"index is not valid JSON: {e}") from e

        if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
            raise ValueError("index must be a JSON array of strings")
        return cls(ids=data)

    def to_bytes(self) -> bytes:
        return json.dumps(self.ids).encode("utf-8")

    def append(self, agent_id: str) -> None:
        self.ids.append(agent_id)

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self.ids

    def __iter__(self) -> Iterator[str]:
        return iter(self.ids)

    def __len__(self) -> int:
        return len(self.ids)
