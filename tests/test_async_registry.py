"""
Tests for the async agent registry.

Feature: agentwar
"""

import asyncio
import logging

import pytest

from agentwar.async_registry import AsyncAgentRegistry
from agentwar.exceptions import (
    AuthorizationDeniedError,
    IndexWriteLostError,
    MalformedIndexError,
    NotFoundError,
    ServerError,
    StoreUnavailableError,
)
from agentwar.store import INDEX_KEY, AsyncKeyValueStore, record_key
from agentwar.testing import AsyncMockStore, MockStore, create_mock_record, seed_store

OWNER = "0xA11cE00000000000000000000000000000000001"


class OverlapCountingStore(AsyncKeyValueStore):
    """Yields on every read and records how many reads overlap."""

    def __init__(self, backend: MockStore) -> None:
        self.backend = backend
        self.in_flight = 0
        self.max_in_flight = 0

    async def available(self) -> bool:
        return True

    async def get(self, key: str) -> bytes | None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(0)
        self.in_flight -= 1
        return self.backend.get(key)

    async def set(self, key: str, value: bytes) -> bool:
        return self.backend.set(key, value)


class CorruptingStore(AsyncMockStore):
    """Corrupts the index right after any record write."""

    async def set(self, key: str, value: bytes) -> bool:
        written = await super().set(key, value)
        if key != INDEX_KEY:
            self.backend.put_raw(INDEX_KEY, b"{corrupt")
        return written


@pytest.mark.asyncio
async def test_list_newest_first_and_skips_corrupt(populated_store: MockStore) -> None:
    populated_store.put_raw(record_key("agent-c"), b"garbage")
    registry = AsyncAgentRegistry(AsyncMockStore(populated_store))

    records = await registry.list()

    assert [r.id for r in records] == ["agent-b", "agent-a"]


@pytest.mark.asyncio
async def test_list_unavailable_is_empty(populated_store: MockStore) -> None:
    populated_store.is_available = False
    registry = AsyncAgentRegistry(AsyncMockStore(populated_store))

    assert await registry.list() == []


@pytest.mark.asyncio
async def test_list_reads_records_concurrently(mock_store: MockStore) -> None:
    seed_store(mock_store, [
        create_mock_record(agent_id=f"agent-{i}", timestamp=i) for i in range(5)
    ])
    store = OverlapCountingStore(mock_store)

    records = await AsyncAgentRegistry(store).list()

    assert len(records) == 5
    assert store.max_in_flight == 5


@pytest.mark.asyncio
async def test_list_isolates_read_errors(populated_store: MockStore) -> None:
    populated_store.raise_on_read(record_key("agent-b"), ServerError("BOOM", "down"))
    registry = AsyncAgentRegistry(AsyncMockStore(populated_store))

    records = await registry.list()

    assert [r.id for r in records] == ["agent-c", "agent-a"]


@pytest.mark.asyncio
async def test_create_and_list(mock_store: MockStore) -> None:
    registry = AsyncAgentRegistry(AsyncMockStore(mock_store))

    created = await registry.create("Async", 250, "0x00", OWNER)

    assert await registry.list() == [created]


@pytest.mark.asyncio
async def test_create_unavailable_raises(mock_store: MockStore) -> None:
    mock_store.is_available = False
    registry = AsyncAgentRegistry(AsyncMockStore(mock_store))

    with pytest.raises(StoreUnavailableError):
        await registry.create("A", 1, "0x00", OWNER)


@pytest.mark.asyncio
async def test_orphan_on_failed_index_write(
    mock_store: MockStore, caplog: pytest.LogCaptureFixture
) -> None:
    mock_store.fail_writes_for(INDEX_KEY)
    registry = AsyncAgentRegistry(AsyncMockStore(mock_store))

    with caplog.at_level(logging.WARNING, logger="agentwar.registry"):
        record = await registry.create("Orphan", 1, "0x00", OWNER)

    assert mock_store.get(record_key(record.id)) is not None
    assert await registry.list() == []
    assert registry.orphaned_ids == [record.id]
    assert record.id in caplog.text


@pytest.mark.asyncio
async def test_orphan_strict_mode(mock_store: MockStore) -> None:
    mock_store.fail_writes_for(INDEX_KEY)
    registry = AsyncAgentRegistry(AsyncMockStore(mock_store), strict_index=True)

    with pytest.raises(IndexWriteLostError):
        await registry.create("Orphan", 1, "0x00", OWNER)


@pytest.mark.asyncio
async def test_index_corrupted_after_record_write_is_logged(
    mock_store: MockStore, caplog: pytest.LogCaptureFixture
) -> None:
    registry = AsyncAgentRegistry(CorruptingStore(mock_store))

    with caplog.at_level(logging.WARNING, logger="agentwar.registry"):
        with pytest.raises(MalformedIndexError):
            await registry.create("Orphan", 1, "0x00", OWNER)

    assert len(registry.orphaned_ids) == 1
    assert registry.orphaned_ids[0] in caplog.text
    assert mock_store.data[INDEX_KEY] == b"{corrupt"


@pytest.mark.asyncio
async def test_get_and_update(mock_store: MockStore) -> None:
    registry = AsyncAgentRegistry(AsyncMockStore(mock_store))
    created = await registry.create("Before", 1, "0x00", OWNER)
    changed = create_mock_record(agent_id=created.id, name="After")

    with pytest.raises(AuthorizationDeniedError):
        await registry.update(changed, "0xB0B")

    updated = await registry.update(changed, OWNER)
    assert await registry.get(created.id) == updated
    assert updated.name == "After"

    with pytest.raises(NotFoundError):
        await registry.get("agent-missing")


@pytest.mark.asyncio
async def test_owned_by(mock_store: MockStore) -> None:
    seed_store(mock_store, [
        create_mock_record(agent_id="agent-1", owner=OWNER),
        create_mock_record(agent_id="agent-2", owner="0xB0B"),
    ])
    registry = AsyncAgentRegistry(AsyncMockStore(mock_store))

    assert [r.id for r in await registry.owned_by("0xb0b")] == ["agent-2"]
