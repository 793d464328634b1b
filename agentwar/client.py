"""
AgentWar main client.

Wires a key-value store, a credential signer, the codec, a decryption session
and the registry into one object an application can hold.
"""

import os
from pathlib import Path
from typing import Any

from agentwar.challenge import DEFAULT_DURATION_DAYS, SessionContext
from agentwar.codec import CiphertextCodec, Number, default_codec
from agentwar.exceptions import ConfigurationError
from agentwar.gate import DecryptionGate
from agentwar.leaderboard import DEFAULT_LIMIT, leaderboard, rank, summarize
from agentwar.registry import AgentRegistry, compute_strategy_hash
from agentwar.signers import EcdsaSigner, Ed25519Signer, Signer
from agentwar.store import KeyValueStore
from agentwar.transport import HTTPStore, RetryConfig
from agentwar.types.agents import AgentRecord
from agentwar.types.leaderboard import LeaderboardEntry, RegistryStats


def load_signer(key_path: str, key_type: str) -> Signer:
    """
    Load a signer of the given type from a PEM file.

    Raises:
        ConfigurationError: If key_type is unknown or the file cannot be used
    """
    key_type = key_type.lower()
    if key_type == "ed25519":
        signer_cls: type[Signer] = Ed25519Signer
    elif key_type == "ecdsa":
        signer_cls = EcdsaSigner
    else:
        raise ConfigurationError(
            f"Invalid key type: {key_type}. Must be 'ed25519' or 'ecdsa'"
        )

    try:
        return signer_cls.from_pem(Path(key_path).read_text())
    except OSError as e:
        raise ConfigurationError(f"Cannot read private key {key_path}: {e}") from e
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid {key_type} private key in {key_path}: {e}") from e


def int_env(name: str, default: int | None = None) -> int:
    """
    Read an integer environment variable.

    Raises:
        ConfigurationError: If the variable is missing (and has no default) or not an integer
    """
    raw = os.environ.get(name)
    if raw is None or raw == "":
        if default is None:
            raise ConfigurationError(f"{name} environment variable not set")
        return default
    try:
        return int(raw, 0)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


def require_env(name: str) -> str:
    value = os.environ.get(name)
    if not value:
        raise ConfigurationError(f"{name} environment variable not set")
    return value


class AgentWarClient:
    """
    Main client for the encrypted agent registry.

    Example:
        ```python
        from agentwar import AgentWarClient
        from agentwar.signers import Ed25519Signer
        from agentwar.transport import HTTPStore

        signer = Ed25519Signer.from_pem_file("private_key.pem")
        with AgentWarClient(
            store=HTTPStore("https://store.agentwar.dev"),
            signer=signer,
            contract_address="0x5FbDB2315678afecb367f032d93F642f64180aa3",
            chain_id=11155111,
        ) as client:
            agent = client.create_agent("Momentum-7", 1000, "buy the dip")
            top = client.leaderboard()
            balance = client.decrypt_balance(agent)
        ```
    """

    def __init__(
        self,
        store: KeyValueStore,
        signer: Signer,
        contract_address: str,
        chain_id: int,
        codec: CiphertextCodec | None = None,
        session_days: int = DEFAULT_DURATION_DAYS,
        leaderboard_size: int = DEFAULT_LIMIT,
    ) -> None:
        """
        Initialize the client.

        Args:
            store: Backing key-value store
            signer: Credential of the connected account
            contract_address: Registry address bound into decryption challenges
            chain_id: Network identifier bound into decryption challenges
            codec: Ciphertext codec (default: reference codec)
            session_days: Validity window of decryption sessions
            leaderboard_size: Default number of leaderboard entries
        """
        self.store = store
        self.signer = signer
        self.contract_address = contract_address
        self.chain_id = chain_id
        self.codec = codec or default_codec()
        self.session_days = session_days
        self.leaderboard_size = leaderboard_size

        self.registry = AgentRegistry(store, codec=self.codec)
        self.gate = DecryptionGate(signer, codec=self.codec)
        self.session = SessionContext.start(
            contract_address, chain_id, duration_days=session_days
        )

    @classmethod
    def from_env(
        cls,
        timeout: float = 30.0,
        retry_config: RetryConfig | None = None,
    ) -> "AgentWarClient":
        """
        Create a client from environment variables.

        Environment variables:
            AGENTWAR_STORE_URL: Base URL of the remote store (required)
            AGENTWAR_PRIVATE_KEY_PATH: PEM file with the account's private key (required)
            AGENTWAR_CONTRACT_ADDRESS: Registry address for challenges (required)
            AGENTWAR_CHAIN_ID: Network identifier, decimal or 0x-hex (required)
            AGENTWAR_KEY_TYPE: "ed25519" or "ecdsa" (optional, default: ed25519)
            AGENTWAR_SESSION_DAYS: Session validity in days (optional, default: 30)

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
            store=HTTPStore(store_url, timeout=timeout, retry_config=retry_config),
            signer=signer,
            contract_address=contract_address,
            chain_id=chain_id,
            session_days=session_days,
        )

    @property
    def account(self) -> str:
        """Account identifier of the connected signer."""
        return self.signer.address

    def new_session(self) -> SessionContext:
        """Start a fresh decryption session and make it current."""
        self.session = SessionContext.start(
            self.contract_address, self.chain_id, duration_days=self.session_days
        )
        return self.session

    def available(self) -> bool:
        return self.registry.available()

    def list_agents(self) -> list[AgentRecord]:
        """All readable agents, newest first."""
        return self.registry.list()

    def my_agents(self) -> list[AgentRecord]:
        """Agents owned by the connected account."""
        return self.registry.owned_by(self.account)

    def create_agent(self, name: str, initial_balance: Number, strategy: str) -> AgentRecord:
        """
        Register an agent owned by the connected account.

        Args:
            name: Display name
            initial_balance: Starting balance, >= 0
            strategy: Strategy text; only its hash is stored
        """
        return self.registry.create(
            name=name,
            initial_balance=initial_balance,
            strategy_hash=compute_strategy_hash(strategy),
            owner=self.account,
        )

    def update_agent(self, record: AgentRecord) -> AgentRecord:
        """Rewrite an agent owned by the connected account."""
        return self.registry.update(record, self.account)

    def leaderboard(self, limit: int | None = None) -> list[LeaderboardEntry]:
        """Top agents by score with ranks."""
        size = self.leaderboard_size if limit is None else limit
        return leaderboard(self.registry.list(), size, self.codec)

    def top_agents(self, limit: int | None = None) -> list[AgentRecord]:
        size = self.leaderboard_size if limit is None else limit
        return rank(self.registry.list(), size, self.codec)

    def stats(self) -> RegistryStats:
        return summarize(self.registry.list(), viewer=self.account, codec=self.codec)

    def decrypt_score(self, record: AgentRecord) -> Number:
        """Decode a score. Scores are public, so no signature is requested."""
        return self.codec.decode(record.encrypted_score)

    def decrypt_balance(self, record: AgentRecord) -> Number:
        """
        Reveal a balance after signing the current session's challenge.

        A signature is requested on every call.

        Raises:
            AuthorizationDeniedError: If signing fails or the session expired
            MalformedCiphertextError: If the balance token is malformed
        """
        return self.gate.reveal_balance(record, self.session)

    def close(self) -> None:
        """Close the underlying store if it holds resources."""
        close = getattr(self.store, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> "AgentWarClient":
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit - closes the client."""
        self.close()
