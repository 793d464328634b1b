"""AgentWar - encrypted agent registry and leaderboard engine."""

from agentwar.async_client import AsyncAgentWarClient
from agentwar.async_registry import AsyncAgentRegistry
from agentwar.async_transport import AsyncHTTPStore
from agentwar.challenge import SessionContext, parse_challenge
from agentwar.client import AgentWarClient
from agentwar.codec import CiphertextCodec, PlaceholderCodec, decode, encode, scheme_of
from agentwar.exceptions import (
    AgentWarError,
    AuthorizationDeniedError,
    ConfigurationError,
    IndexWriteLostError,
    MalformedCiphertextError,
    MalformedIndexError,
    MalformedRecordError,
    NotFoundError,
    RateLimitedError,
    ServerError,
    StoreError,
    StoreUnavailableError,
    StoreWriteError,
    ValidationError,
)
from agentwar.gate import AsyncDecryptionGate, AsyncMessageSigner, DecryptionGate
from agentwar.leaderboard import leaderboard, rank, summarize
from agentwar.logging import configure_logging, get_logger
from agentwar.registry import AgentRegistry, compute_strategy_hash, is_owner
from agentwar.signers import EcdsaSigner, Ed25519Signer, Signer
from agentwar.store import AsyncKeyValueStore, KeyValueStore
from agentwar.transport import HTTPStore, RetryConfig
from agentwar.types import AgentRecord, LeaderboardEntry, RegistryIndex, RegistryStats

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Main Clients
    "AgentWarClient",
    "AsyncAgentWarClient",
    # Registry
    "AgentRegistry",
    "AsyncAgentRegistry",
    "compute_strategy_hash",
    "is_owner",
    # Types
    "AgentRecord",
    "RegistryIndex",
    "LeaderboardEntry",
    "RegistryStats",
    # Codec
    "CiphertextCodec",
    "PlaceholderCodec",
    "encode",
    "decode",
    "scheme_of",
    # Decryption gate
    "SessionContext",
    "parse_challenge",
    "DecryptionGate",
    "AsyncDecryptionGate",
    "AsyncMessageSigner",
    # Leaderboard
    "rank",
    "leaderboard",
    "summarize",
    # Stores
    "KeyValueStore",
    "AsyncKeyValueStore",
    "HTTPStore",
    "AsyncHTTPStore",
    "RetryConfig",
    # Signers
    "Signer",
    "Ed25519Signer",
    "EcdsaSigner",
    # Exceptions
    "AgentWarError",
    "ConfigurationError",
    "ValidationError",
    "StoreError",
    "StoreUnavailableError",
    "StoreWriteError",
    "NotFoundError",
    "RateLimitedError",
    "ServerError",
    "MalformedRecordError",
    "MalformedIndexError",
    "MalformedCiphertextError",
    "AuthorizationDeniedError",
    "IndexWriteLostError",
    # Logging
    "configure_logging",
    "get_logger",
]
