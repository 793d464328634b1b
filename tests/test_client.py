"""
Tests for AgentWarClient and AsyncAgentWarClient.

Feature: agentwar
"""

import pytest

from agentwar import AgentWarClient, AsyncAgentWarClient
from agentwar.async_transport import AsyncHTTPStore
from agentwar.codec import decode
from agentwar.exceptions import AuthorizationDeniedError, ConfigurationError
from agentwar.registry import compute_strategy_hash
from agentwar.signers import EcdsaSigner, Ed25519Signer
from agentwar.testing import AsyncMockStore, MockSigner, MockStore
from agentwar.testing.fixtures import CHAIN_ID, CONTRACT_ADDRESS, OWNER
from agentwar.transport import HTTPStore

ENV_VARS = [
    "AGENTWAR_STORE_URL",
    "AGENTWAR_PRIVATE_KEY_PATH",
    "AGENTWAR_CONTRACT_ADDRESS",
    "AGENTWAR_CHAIN_ID",
    "AGENTWAR_KEY_TYPE",
    "AGENTWAR_SESSION_DAYS",
]


@pytest.fixture
def client(mock_store: MockStore, mock_signer: MockSigner) -> AgentWarClient:
    return AgentWarClient(
        store=mock_store,
        signer=mock_signer,
        contract_address=CONTRACT_ADDRESS,
        chain_id=CHAIN_ID,
    )


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def key_file(tmp_path):
    signer, _ = Ed25519Signer.generate()
    path = tmp_path / "agent.pem"
    path.write_text(signer.private_key_pem())
    return path, signer


class TestAgentWarClient:
    """Tests for AgentWarClient."""

    def test_create_agent_is_owned_by_signer(self, client: AgentWarClient, mock_store: MockStore) -> None:
        record = client.create_agent("Momentum-7", 1000, "buy the dip")

        assert record.owner == OWNER
        assert record.strategy_hash == compute_strategy_hash("buy the dip")
        assert decode(record.encrypted_score) == 0
        assert client.list_agents() == [record]
        assert client.my_agents() == [record]

    def test_session_bound_to_contract(self, client: AgentWarClient) -> None:
        assert client.session.contract_address == CONTRACT_ADDRESS
        assert client.session.chain_id == CHAIN_ID
        assert client.session.duration_days == 30

    def test_new_session_replaces_current(self, client: AgentWarClient) -> None:
        previous = client.session

        fresh = client.new_session()

        assert client.session is fresh
        assert fresh.public_key != previous.public_key

    def test_leaderboard_and_stats(self, populated_store: MockStore, mock_signer: MockSigner) -> None:
        client = AgentWarClient(populated_store, mock_signer, CONTRACT_ADDRESS, CHAIN_ID, leaderboard_size=2)

        entries = client.leaderboard()
        stats = client.stats()

        assert [(e.rank, e.record.id, e.score) for e in entries] == [(1, "agent-b", 9), (2, "agent-c", 7)]
        assert [r.id for r in client.top_agents(limit=3)] == ["agent-b", "agent-c", "agent-a"]
        assert stats.total_agents == 3
        assert stats.average_score == pytest.approx(7.0)
        assert stats.owned_agents == 3

    def test_decrypt_score_never_signs(self, client: AgentWarClient, mock_signer: MockSigner) -> None:
        record = client.create_agent("A", 10, "s")

        assert client.decrypt_score(record) == 0
        assert not mock_signer.was_called("sign_message")

    def test_decrypt_balance_signs_current_session(self, client: AgentWarClient, mock_signer: MockSigner) -> None:
        record = client.create_agent("A", 250, "s")

        assert client.decrypt_balance(record) == 250
        assert mock_signer.messages == [client.session.challenge_message()]

    def test_decrypt_balance_denied(self, client: AgentWarClient, mock_signer: MockSigner) -> None:
        record = client.create_agent("A", 250, "s")
        mock_signer.configure_rejection()

        with pytest.raises(AuthorizationDeniedError):
            client.decrypt_balance(record)

    def test_update_agent_requires_owner(self, mock_store: MockStore) -> None:
        owner_client = AgentWarClient(mock_store, MockSigner(address=OWNER), CONTRACT_ADDRESS, CHAIN_ID)
        other_client = AgentWarClient(mock_store, MockSigner(address="0xB0B"), CONTRACT_ADDRESS, CHAIN_ID)
        record = owner_client.create_agent("A", 1, "s")
        renamed = record.__class__(**{**record.__dict__, "name": "Renamed"})

        with pytest.raises(AuthorizationDeniedError):
            other_client.update_agent(renamed)
        assert owner_client.update_agent(renamed).name == "Renamed"

    def test_unavailable_store(self, mock_store: MockStore, client: AgentWarClient) -> None:
        mock_store.is_available = False

        assert client.available() is False
        assert client.list_agents() == []
        assert client.leaderboard() == []

    def test_context_manager_closes_store(self, mock_signer: MockSigner) -> None:
        class ClosingStore(MockStore):
            closed = False

            def close(self) -> None:
                self.closed = True

        store = ClosingStore()
        with AgentWarClient(store, mock_signer, CONTRACT_ADDRESS, CHAIN_ID):
            pass

        assert store.closed


class TestFromEnv:
    """Tests for environment configuration."""

    def test_missing_variables(self, clean_env: pytest.MonkeyPatch) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            AgentWarClient.from_env()
        assert "AGENTWAR_STORE_URL" in exc_info.value.message

    def test_valid_environment(self, clean_env: pytest.MonkeyPatch, key_file) -> None:
        path, signer = key_file
        clean_env.setenv("AGENTWAR_STORE_URL", "https://store.test")
        clean_env.setenv("AGENTWAR_PRIVATE_KEY_PATH", str(path))
        clean_env.setenv("AGENTWAR_CONTRACT_ADDRESS", CONTRACT_ADDRESS)
        clean_env.setenv("AGENTWAR_CHAIN_ID", "0xaa36a7")
        clean_env.setenv("AGENTWAR_SESSION_DAYS", "7")

        with AgentWarClient.from_env() as client:
            assert isinstance(client.store, HTTPStore)
            assert client.account == signer.address
            assert client.chain_id == 11155111
            assert client.session.duration_days == 7

    def test_ecdsa_key_type(self, clean_env: pytest.MonkeyPatch, tmp_path) -> None:
        signer, address = EcdsaSigner.generate()
        path = tmp_path / "ecdsa.pem"
        path.write_text(signer.private_key_pem())
        clean_env.setenv("AGENTWAR_STORE_URL", "https://store.test")
        clean_env.setenv("AGENTWAR_PRIVATE_KEY_PATH", str(path))
        clean_env.setenv("AGENTWAR_CONTRACT_ADDRESS", CONTRACT_ADDRESS)
        clean_env.setenv("AGENTWAR_CHAIN_ID", "1")
        clean_env.setenv("AGENTWAR_KEY_TYPE", "ECDSA")

        with AgentWarClient.from_env() as client:
            assert client.account == address

    @pytest.mark.parametrize(
        "name,value",
        [
            ("AGENTWAR_CHAIN_ID", "mainnet"),
            ("AGENTWAR_SESSION_DAYS", "0"),
            ("AGENTWAR_KEY_TYPE", "rsa"),
            ("AGENTWAR_KEY_TYPE", "ecdsa"),
            ("AGENTWAR_PRIVATE_KEY_PATH", "/nonexistent/key.pem"),
        ],
    )
    def test_invalid_values(self, clean_env: pytest.MonkeyPatch, key_file, name: str, value: str) -> None:
        path, _ = key_file
        clean_env.setenv("AGENTWAR_STORE_URL", "https://store.test")
        clean_env.setenv("AGENTWAR_PRIVATE_KEY_PATH", str(path))
        clean_env.setenv("AGENTWAR_CONTRACT_ADDRESS", CONTRACT_ADDRESS)
        clean_env.setenv("AGENTWAR_CHAIN_ID", "1")
        clean_env.setenv(name, value)

        with pytest.raises(ConfigurationError):
            AgentWarClient.from_env()

    @pytest.mark.asyncio
    async def test_async_from_env(self, clean_env: pytest.MonkeyPatch, key_file) -> None:
        path, signer = key_file
        clean_env.setenv("AGENTWAR_STORE_URL", "https://store.test")
        clean_env.setenv("AGENTWAR_PRIVATE_KEY_PATH", str(path))
        clean_env.setenv("AGENTWAR_CONTRACT_ADDRESS", CONTRACT_ADDRESS)
        clean_env.setenv("AGENTWAR_CHAIN_ID", "1")

        async with AsyncAgentWarClient.from_env() as client:
            pass

        assert isinstance(client.store, AsyncHTTPStore)
        assert client.account == signer.address


class TestAsyncAgentWarClient:
    """Tests for AsyncAgentWarClient."""

    @pytest.mark.asyncio
    async def test_create_list_and_reveal(self, mock_store: MockStore, mock_signer: MockSigner) -> None:
        client = AsyncAgentWarClient(
            AsyncMockStore(mock_store), mock_signer, OWNER, CONTRACT_ADDRESS, CHAIN_ID
        )

        record = await client.create_agent("Async", 42, "hold")

        assert await client.my_agents() == [record]
        assert await client.decrypt_balance(record) == 42
        assert client.decrypt_score(record) == 0
        assert mock_signer.call_count("sign_message") == 1

    @pytest.mark.asyncio
    async def test_leaderboard_and_stats(self, populated_store: MockStore, mock_signer: MockSigner) -> None:
        client = AsyncAgentWarClient(
            AsyncMockStore(populated_store), mock_signer, "0xB0B", CONTRACT_ADDRESS, CHAIN_ID
        )

        entries = await client.leaderboard(limit=1)
        stats = await client.stats()

        assert [e.record.id for e in entries] == ["agent-b"]
        assert stats.total_agents == 3
        assert stats.owned_agents == 0
