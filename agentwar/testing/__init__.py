"""AgentWar testing utilities.

Provides in-memory stores, a scriptable signer, record factories and pytest
fixtures.
"""

from agentwar.testing.fixtures import create_mock_record, seed_store
from agentwar.testing.mock import AsyncMockStore, MockCall, MockSigner, MockStore

__all__ = [
    # Doubles
    "MockStore",
    "AsyncMockStore",
    "MockSigner",
    "MockCall",
    # Helper functions
    "create_mock_record",
    "seed_store",
]
