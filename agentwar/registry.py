"""
Agent registry over a flat key-value store.

Records live under ``agent_<id>``; the ``agent_keys`` index lists every id in
creation order. Creation writes the record first and the index second, with
no transaction between them. Two creators racing on the index can drop each
other's append (lost update); such records and records whose index write
failed stay in the store as orphans.
"""

from __future__ import annotations

import hashlib
import math
import secrets
import string
import time
from collections.abc import Callable, Iterable

from agentwar.codec import CiphertextCodec, Number, default_codec
from agentwar.exceptions import (
    AgentWarError,
    AuthorizationDeniedError,
    IndexWriteLostError,
    MalformedIndexError,
    MalformedRecordError,
    NotFoundError,
    StoreError,
    StoreUnavailableError,
    StoreWriteError,
    ValidationError,
)
from agentwar.logging import get_logger
from agentwar.store import INDEX_KEY, KeyValueStore, record_key
from agentwar.types.agents import AgentRecord, RecordParseError, RegistryIndex, parse_record

logger = get_logger("registry")

_ID_ALPHABET = string.digits + string.ascii_lowercase
_ID_RANDOM_CHARS = 8
_MAX_ID_ATTEMPTS = 16


def new_agent_id(clock: Callable[[], float] = time.time) -> str:
    """
    Generate an agent identifier.

    Format: ``agent-<epoch milliseconds>-<8 random base36 chars>``.
    """
    millis = int(clock() * 1000)
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_RANDOM_CHARS))
    return f"agent-{millis}-{suffix}"


def compute_strategy_hash(strategy: str) -> str:
    """Return the 0x-prefixed SHA-256 hex digest of a strategy text."""
    return "0x" + hashlib.sha256(strategy.encode("utf-8")).hexdigest()


def is_owner(record: AgentRecord, candidate: str | None) -> bool:
    """Case-insensitive comparison of a record's owner with a candidate account."""
    if not candidate:
        return False
    return record.owner.lower() == candidate.lower()


def sort_newest_first(records: Iterable[AgentRecord]) -> list[AgentRecord]:
    """Sort by timestamp descending; equal timestamps keep their input order."""
    return sorted(records, key=lambda r: r.timestamp, reverse=True)


def validate_new_agent(name: str, initial_balance: Number, owner: str) -> None:
    """
    Check creation arguments.

    Raises:
        ValidationError: If any argument is unacceptable
    """
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("INVALID_NAME", "Agent name must not be empty")
    if isinstance(initial_balance, bool) or not isinstance(initial_balance, (int, float)):
        raise ValidationError("INVALID_BALANCE", "Initial balance must be a number")
    if not math.isfinite(initial_balance) or initial_balance < 0:
        raise ValidationError(
            "INVALID_BALANCE", f"Initial balance must be finite and >= 0, got {initial_balance}"
        )
    if not isinstance(owner, str) or not owner:
        raise ValidationError("INVALID_OWNER", "Owner account must not be empty")


def load_index(raw: bytes | None) -> RegistryIndex:
    """Parse index bytes, raising MalformedIndexError."""
    try:
        return RegistryIndex.from_bytes(raw)
    except ValueError as e:
        raise MalformedIndexError(str(e)) from e


def unique_agent_id(index: RegistryIndex, clock: Callable[[], float]) -> str:
    """Generate an id not already present in index."""
    for _ in range(_MAX_ID_ATTEMPTS):
        agent_id = new_agent_id(clock)
        if agent_id not in index:
            return agent_id
    raise AgentWarError("ID_EXHAUSTED", "Could not generate a unique agent id")


def parsed_or_skip(agent_id: str, raw: bytes | None) -> AgentRecord | None:
    """Turn one listing read into a record, logging and dropping failures."""
    if raw is None or len(raw) == 0:
        logger.warning("Skipping agent %s: no record stored under its key", agent_id)
        return None
    parsed = parse_record(agent_id, raw)
    if isinstance(parsed, RecordParseError):
        logger.warning("Skipping agent %s: %s", parsed.agent_id, parsed.reason)
        return None
    return parsed


def rewritten(stored: AgentRecord, record: AgentRecord) -> AgentRecord:
    """Apply a full rewrite, keeping the immutable fields of the stored record."""
    if not record.name.strip():
        raise ValidationError("INVALID_NAME", "Agent name must not be empty")
    return AgentRecord(
        id=stored.id,
        name=record.name,
        encrypted_score=record.encrypted_score,
        encrypted_balance=record.encrypted_balance,
        owner=stored.owner,
        timestamp=stored.timestamp,
        strategy_hash=record.strategy_hash,
    )


class _RegistryBase:
    """State and record construction shared by the sync and async registries."""

    def __init__(
        self,
        codec: CiphertextCodec | None,
        clock: Callable[[], float],
        strict_index: bool,
    ) -> None:
        self.codec = codec or default_codec()
        self.clock = clock
        self.strict_index = strict_index
        self.orphaned_ids: list[str] = []

    def _new_record(
        self,
        known: RegistryIndex,
        name: str,
        initial_balance: Number,
        strategy_hash: str,
        owner: str,
    ) -> AgentRecord:
        return AgentRecord(
            id=unique_agent_id(known, self.clock),
            name=name,
            encrypted_score=self.codec.encode(0),
            encrypted_balance=self.codec.encode(initial_balance),
            owner=owner,
            timestamp=int(self.clock()),
            strategy_hash=strategy_hash,
        )

    def _note_orphan(self, record: AgentRecord, reason: str) -> None:
        self.orphaned_ids.append(record.id)
        logger.warning(
            "Agent %s was stored but is missing from the index (%s); it will not be listed",
            record.id,
            reason,
        )

    def _orphaned(self, record: AgentRecord) -> AgentRecord:
        self._note_orphan(record, "index write failed")
        if self.strict_index:
            raise IndexWriteLostError(record)
        return record


class AgentRegistry(_RegistryBase):
    """
    Agent records stored in a KeyValueStore.

    Read operations return "no data" while the store is unavailable.

    Example:
        ```python
        registry = AgentRegistry(store)
        record = registry.create(
            name="Momentum-7",
            initial_balance=1000,
            strategy_hash=compute_strategy_hash("buy high, sell higher"),
            owner=signer.address,
        )
        newest_first = registry.list()
        ```
    """

    def __init__(
        self,
        store: KeyValueStore,
        codec: CiphertextCodec | None = None,
        clock: Callable[[], float] = time.time,
        strict_index: bool = False,
    ) -> None:
        """
        Initialize the registry.

        Args:
            store: Backing key-value store
            codec: Codec for the encrypted fields (default: reference codec)
            clock: Time source for ids and creation timestamps
            strict_index: Raise IndexWriteLostError instead of returning an
                orphaned record when the index write fails
        """
        super().__init__(codec, clock, strict_index)
        self.store = store

    def available(self) -> bool:
        return self.store.available()

    def list(self) -> list[AgentRecord]:
        """
        Return every readable indexed record, newest first.

        Records that are absent, unparsable or fail to load are logged and skipped.

        Raises:
            StoreError: If the index itself cannot be read
        """
        if not self.store.available():
            logger.info("Store unavailable; listing no agents")
            return []

        try:
            index = load_index(self.store.get(INDEX_KEY))
        except MalformedIndexError as e:
            logger.error("Cannot list agents: %s", e.message)
            return []

        records: list[AgentRecord] = []
        for agent_id in index:
            try:
                raw = self.store.get(record_key(agent_id))
            except StoreError as e:
                logger.warning("Skipping agent %s: %s", agent_id, e)
                continue
            record = parsed_or_skip(agent_id, raw)
            if record is not None:
                records.append(record)

        return sort_newest_first(records)

    def get(self, agent_id: str) -> AgentRecord:
        """
        Load one record by id.

        Raises:
            StoreUnavailableError: If the store is unavailable
            NotFoundError: If nothing is stored for agent_id
            MalformedRecordError: If the stored bytes do not parse
        """
        if not self.store.available():
            raise StoreUnavailableError()
        raw = self.store.get(record_key(agent_id))
        if not raw:
            raise NotFoundError("AGENT_NOT_FOUND", f"Agent {agent_id!r} not found")
        parsed = parse_record(agent_id, raw)
        if isinstance(parsed, RecordParseError):
            raise MalformedRecordError(parsed.agent_id, parsed.reason)
        return parsed

    def owned_by(self, owner: str | None) -> list[AgentRecord]:
        """List the records owned by an account, newest first."""
        return [record for record in self.list() if is_owner(record, owner)]

    def create(
        self,
        name: str,
        initial_balance: Number,
        strategy_hash: str,
        owner: str,
    ) -> AgentRecord:
        """
        Register a new agent.

        Args:
            name: Display name (must not be blank)
            initial_balance: Starting balance, >= 0
            strategy_hash: Content hash of the strategy text
            owner: Account that owns the agent

        Returns:
            The created record. If the index write failed, the record is an
            orphan and its id is appended to ``orphaned_ids``.

        Raises:
            ValidationError: If an argument is rejected
            StoreUnavailableError: If the store is unavailable
            StoreWriteError: If the record write fails (nothing was stored)
            MalformedIndexError: If the index is corrupt (the record is orphaned)
            IndexWriteLostError: In strict mode, if the index write fails
        """
        validate_new_agent(name, initial_balance, owner)
        if not self.store.available():
            raise StoreUnavailableError()

        known = load_index(self.store.get(INDEX_KEY))
        record = self._new_record(known, name, initial_balance, strategy_hash, owner)

        key = record_key(record.id)
        if not self.store.set(key, record.to_bytes()):
            raise StoreWriteError(key)

        try:
            # Re-read so appends made since the id check are kept
            index = load_index(self.store.get(INDEX_KEY))
            index.append(record.id)
            written = self.store.set(INDEX_KEY, index.to_bytes())
        except MalformedIndexError as e:
            self._note_orphan(record, e.message)
            raise
        except StoreError as e:
            logger.warning("Index update for agent %s failed: %s", record.id, e)
            written = False

        if not written:
            return self._orphaned(record)

        logger.info("Created agent %s (%s)", record.id, record.name)
        return record

    def update(self, record: AgentRecord, caller: str | None) -> AgentRecord:
        """
        Fully rewrite a record on behalf of its owner.

        id, owner and timestamp are taken from the stored record.

        Raises:
            AuthorizationDeniedError: If caller does not own the record
            NotFoundError, MalformedRecordError, StoreUnavailableError: As for get()
            StoreWriteError: If the write fails
        """
        stored = self.get(record.id)
        if not is_owner(stored, caller):
            raise AuthorizationDeniedError(
                "NOT_OWNER", f"Account {caller!r} does not own agent {record.id!r}"
            )

        updated = rewritten(stored, record)
        key = record_key(updated.id)
        if not self.store.set(key, updated.to_bytes()):
            raise StoreWriteError(key)
        return updated
