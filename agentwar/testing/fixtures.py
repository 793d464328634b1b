"""
Pytest fixtures for AgentWar testing.

Provides stores, signers, sessions and sample records for tests of code that
uses AgentWar.
"""

from collections.abc import Generator

import pytest

from agentwar.challenge import SessionContext
from agentwar.codec import Number, encode
from agentwar.registry import AgentRegistry, compute_strategy_hash
from agentwar.signers import Ed25519Signer
from agentwar.store import INDEX_KEY, record_key
from agentwar.testing.mock import MockSigner, MockStore
from agentwar.types.agents import AgentRecord, RegistryIndex

OWNER = "0xA11cE00000000000000000000000000000000001"
CONTRACT_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
CHAIN_ID = 11155111


# ============================================================================
# Helper Functions
# ============================================================================


def create_mock_record(
    agent_id: str = "agent-1700000000000-abcd1234",
    name: str = "Momentum-7",
    score: Number = 0,
    balance: Number = 1000,
    owner: str = OWNER,
    timestamp: int = 1_700_000_000,
    strategy: str = "buy the dip",
) -> AgentRecord:
    """
    Create an AgentRecord with plaintext score and balance encoded for you.

    Example:
        ```python
        record = create_mock_record(score=42, balance=500)
        ```
    """
    return AgentRecord(
        id=agent_id,
        name=name,
        encrypted_score=encode(score),
        encrypted_balance=encode(balance),
        owner=owner,
        timestamp=timestamp,
        strategy_hash=compute_strategy_hash(strategy),
    )


def seed_store(store: MockStore, records: list[AgentRecord]) -> None:
    """Write records and an index listing them, in the given order."""
    index = RegistryIndex()
    for record in records:
        store.put_raw(record_key(record.id), record.to_bytes())
        index.append(record.id)
    store.put_raw(INDEX_KEY, index.to_bytes())


# ============================================================================
# Store and Registry Fixtures
# ============================================================================


@pytest.fixture
def mock_store() -> Generator[MockStore, None, None]:
    """Provide an empty, available MockStore."""
    store = MockStore()
    yield store
    store.reset()


@pytest.fixture
def registry(mock_store: MockStore) -> AgentRegistry:
    """Provide an AgentRegistry over mock_store."""
    return AgentRegistry(mock_store)


@pytest.fixture
def sample_record() -> AgentRecord:
    """Provide a sample AgentRecord."""
    return create_mock_record()


@pytest.fixture
def populated_store(mock_store: MockStore) -> MockStore:
    """Provide a MockStore holding three agents with distinct scores and timestamps."""
    seed_store(mock_store, [
        create_mock_record(agent_id="agent-a", name="Alpha", score=5, timestamp=100),
        create_mock_record(agent_id="agent-b", name="Bravo", score=9, timestamp=300),
        create_mock_record(agent_id="agent-c", name="Charlie", score=7, timestamp=200),
    ])
    return mock_store


# ============================================================================
# Signer and Session Fixtures
# ============================================================================


@pytest.fixture
def mock_signer() -> MockSigner:
    """Provide a MockSigner that accepts signature requests."""
    return MockSigner(address=OWNER)


@pytest.fixture
def ed25519_signer() -> Ed25519Signer:
    """Provide a generated Ed25519 signer."""
    signer, _ = Ed25519Signer.generate()
    return signer


@pytest.fixture
def session() -> SessionContext:
    """Provide a decryption session started now."""
    return SessionContext.start(CONTRACT_ADDRESS, CHAIN_ID)
