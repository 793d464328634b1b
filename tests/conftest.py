"""Shared fixtures for the AgentWar test suite."""

from agentwar.testing.conftest import (  # noqa: F401
    ed25519_signer,
    mock_signer,
    mock_store,
    populated_store,
    registry,
    sample_record,
    session,
)
