"""
AgentWar async client.

Async counterpart of AgentWarClient. The signer may be a local Signer or an
AsyncMessageSigner backed by a wallet.
"""

import inspect
import os
from typing import Any

from agentwar.async_registry import AsyncAgentRegistry
from agentwar.async_transport import AsyncHTTPStore
from agentwar.challenge import DEFAULT_DURATION_DAYS, SessionContext
from agentwar.client import int_env, load_signer, require_env
from agentwar.codec import CiphertextCodec, Number, default_codec
from agentwar.exceptions import ConfigurationError
from agentwar.gate import AsyncDecryptionGate, AsyncMessageSigner
from agentwar.leaderboard import DEFAULT_LIMIT, leaderboard, summarize
from agentwar.registry import compute_strategy_hash
from agentwar.signers import Signer
from agentwar.store import AsyncKeyValueStore
from agentwar.transport import RetryConfig
from agentwar.types.agents import AgentRecord
from agentwar.types.leaderboard import LeaderboardEntry, RegistryStats


class AsyncAgentWarClient:
    """
    Async client for the encrypted agent registry.

    Example:
        ```python
        import asyncio
        from agentwar import AsyncAgentWarClient

        async def main():
            async with AsyncAgentWarClient.from_env() as client:
                for entry in await client.leaderboard():
                    print(entry.rank, entry.record.name, entry.score)

        asyncio.run(main())
        ```
    """

    def __init__(
        self,
        store: AsyncKeyValueStore,
        signer: Signer | AsyncMessageSigner,
        account: str,
        contract_address: str,
        chain_id: int,
        codec: CiphertextCodec | None = None,
        session_days: int = DEFAULT_DURATION_DAYS,
        leaderboard_size: int = DEFAULT_LIMIT,
    ) -> None:
        """
        Initialize the async client.

        Args:
            store: Backing async key-value store
            signer: Answers decryption challenges
            account: Account identifier of the connected wallet (owner of new agents)
            contract_address: Registry address bound into challenges
            chain_id: Network identifier bound into challenges
            codec: Ciphertext codec (default: reference codec)
            session_days: Validity window of decryption sessions
            leaderboard_size: Default number of leaderboard entries
        """
        self.store = store
        self.signer = signer
        self.account = account
        self.contract_address = contract_address
        self.chain_id = chain_id
        self.codec = codec or default_codec()
        self.session_days = session_days
        self.leaderboard_size = leaderboard_size

        self.registry = AsyncAgentRegistry(store, codec=self.codec)
        self.gate = AsyncDecryptionGate(signer, codec=self.codec)
        self.session = SessionContext.start(
            contract_address, chain_id, duration_days=session_days
        )

    @classmethod
    def from_env(
        cls,
        timeout: float = 30.0,
        retry_config: RetryConfig | None = None,
    ) -> "AsyncAgentWarClient":
        """
        Create a client from the same environment variables as AgentWarClient.from_env().

        Raises:
            ConfigurationError: If required variables are missing or invalid
        """
        store_url = require_env("AGENTWAR_STORE_URL")
        key_path = require_env("AGENTWAR_PRIVATE_KEY_PATH")
        contract_address = require_env("AGENTWAR_CONTRACT_ADDRESS")
        chain_id = int_env("AGENTWAR_CHAIN_ID")
        session_days = int_env("AGENTWAR_SESSION_DAYS", DEFAULT_DURATION_DAYS)
        if session_days <= 0:
            raise ConfigurationError("AGENTWAR_SESSION_DAYS must be positive")
        signer = load_signer(key_path, os.environ.get("AGENTWAR_KEY_TYPE", "ed25519"))

        return cls(
            store=AsyncHTTPStore(store_url, timeout=timeout, retry_config=retry_config),
            signer=signer,
            account=signer.address,
            contract_address=contract_address,
            chain_id=chain_id,
            session_days=session_days,
        )

    def new_session(self) -> SessionContext:
        """Start a fresh decryption session and make it current."""
        self.session = SessionContext.start(
            self.contract_address, self.chain_id, duration_days=self.session_days
        )
        return self.session

    async def available(self) -> bool:
        return await self.registry.available()

    async def list_agents(self) -> list[AgentRecord]:
        return await self.registry.list()

    async def my_agents(self) -> list[AgentRecord]:
        return await self.registry.owned_by(self.account)

    async def create_agent(
        self, name: str, initial_balance: Number, strategy: str
    ) -> AgentRecord:
        """Register an agent owned by the connected account."""
        return await self.registry.create(
            name=name,
            initial_balance=initial_balance,
            strategy_hash=compute_strategy_hash(strategy),
            owner=self.account,
        )

    async def update_agent(self, record: AgentRecord) -> AgentRecord:
        return await self.registry.update(record, self.account)

    async def leaderboard(self, limit: int | None = None) -> list[LeaderboardEntry]:
        size = self.leaderboard_size if limit is None else limit
        return leaderboard(await self.registry.list(), size, self.codec)

    async def stats(self) -> RegistryStats:
        return summarize(await self.registry.list(), viewer=self.account, codec=self.codec)

    def decrypt_score(self, record: AgentRecord) -> Number:
        """Decode a score. Scores are public, so no signature is requested."""
        return self.codec.decode(record.encrypted_score)

    async def decrypt_balance(self, record: AgentRecord) -> Number:
        """Reveal a balance after signing the current session's challenge."""
        return await self.gate.reveal_balance(record, self.session)

    async def close(self) -> None:
        """Close the underlying store if it holds resources."""
        close = getattr(self.store, "close", None)
        if callable(close):
            result = close()
            if inspect.isawaitable(result):
                await result

    async def __aenter__(self) -> "AsyncAgentWarClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
