"""
Pytest plugin for AgentWar testing fixtures.

Re-exports all fixtures from fixtures.py so pytest discovers them. Add this
to your conftest.py:

    pytest_plugins = ["agentwar.testing.conftest"]
"""

from agentwar.testing.fixtures import (
    ed25519_signer,
    mock_signer,
    mock_store,
    populated_store,
    registry,
    sample_record,
    session,
)

__all__ = [
    "mock_store",
    "registry",
    "sample_record",
    "populated_store",
    "mock_signer",
    "ed25519_signer",
    "session",
]
