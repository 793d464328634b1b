"""
Async agent registry.

Same storage protocol as AgentRegistry. Listing reads every indexed record
concurrently and isolates failures per record.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable

from agentwar.codec import CiphertextCodec, Number
from agentwar.exceptions import (
    AuthorizationDeniedError,
    MalformedIndexError,
    MalformedRecordError,
    NotFoundError,
    StoreError,
    StoreUnavailableError,
    StoreWriteError,
)
from agentwar.logging import get_logger
from agentwar.registry import (
    _RegistryBase,
    is_owner,
    load_index,
    parsed_or_skip,
    rewritten,
    sort_newest_first,
    validate_new_agent,
)
from agentwar.store import INDEX_KEY, AsyncKeyValueStore, record_key
from agentwar.types.agents import AgentRecord, RecordParseError, parse_record

logger = get_logger("registry")


class AsyncAgentRegistry(_RegistryBase):
    """Agent records stored in an AsyncKeyValueStore."""

    def __init__(
        self,
        store: AsyncKeyValueStore,
        codec: CiphertextCodec | None = None,
        clock: Callable[[], float] = time.time,
        strict_index: bool = False,
    ) -> None:
        super().__init__(codec, clock, strict_index)
        self.store = store

    async def available(self) -> bool:
        return await self.store.available()

    async def list(self) -> list[AgentRecord]:
        """
        Return every readable indexed record, newest first.

        Record reads are issued concurrently; each failure only drops its own record.
        """
        if not await self.store.available():
            logger.info("Store unavailable; listing no agents")
            return []

        try:
            index = load_index(await self.store.get(INDEX_KEY))
        except MalformedIndexError as e:
            logger.error("Cannot list agents: %s", e.message)
            return []

        ids = list(index)
        results = await asyncio.gather(
            *(self.store.get(record_key(agent_id)) for agent_id in ids),
            return_exceptions=True,
        )

        records: list[AgentRecord] = []
        for agent_id, result in zip(ids, results):
            if isinstance(result, StoreError):
                logger.warning("Skipping agent %s: %s", agent_id, result)
                continue
            if isinstance(result, BaseException):
                raise result
            record = parsed_or_skip(agent_id, result)
            if record is not None:
                records.append(record)

        return sort_newest_first(records)

    async def get(self, agent_id: str) -> AgentRecord:
        """
        Load one record by id.

        Raises:
            StoreUnavailableError, NotFoundError, MalformedRecordError
        """
        if not await self.store.available():
            raise StoreUnavailableError()
        raw = await self.store.get(record_key(agent_id))
        if not raw:
            raise NotFoundError("AGENT_NOT_FOUND", f"Agent {agent_id!r} not found")
        parsed = parse_record(agent_id, raw)
        if isinstance(parsed, RecordParseError):
            raise MalformedRecordError(parsed.agent_id, parsed.reason)
        return parsed

    async def owned_by(self, owner: str | None) -> list[AgentRecord]:
        return [record for record in await self.list() if is_owner(record, owner)]

    async def create(
        self,
        name: str,
        initial_balance: Number,
        strategy_hash: str,
        owner: str,
    ) -> AgentRecord:
        """Register a new agent. Semantics match AgentRegistry.create()."""
        validate_new_agent(name, initial_balance, owner)
        if not await self.store.available():
            raise StoreUnavailableError()

        known = load_index(await self.store.get(INDEX_KEY))
        record = self._new_record(known, name, initial_balance, strategy_hash, owner)

        key = record_key(record.id)
        if not await self.store.set(key, record.to_bytes()):
            raise StoreWriteError(key)

        try:
            index = load_index(await self.store.get(INDEX_KEY))
            index.append(record.id)
            written = await self.store.set(INDEX_KEY, index.to_bytes())
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

    async def update(self, record: AgentRecord, caller: str | None) -> AgentRecord:
        """Fully rewrite a record on behalf of its owner."""
        stored = await self.get(record.id)
        if not is_owner(stored, caller):
            raise AuthorizationDeniedError(
                "NOT_OWNER", f"Account {caller!r} does not own agent {record.id!r}"
            )

        updated = rewritten(stored, record)
        key = record_key(updated.id)
        if not await self.store.set(key, updated.to_bytes()):
            raise StoreWriteError(key)
        return updated
