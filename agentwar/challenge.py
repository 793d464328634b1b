"""
Signature challenge session context.

A session binds per-session public key material, the registry address, the
network, a start time and a validity window into the text a caller signs
before a private field is decoded.
"""

import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass

DEFAULT_DURATION_DAYS = 30
SESSION_KEY_HEX_CHARS = 2000
SECONDS_PER_DAY = 86_400

# Challenge lines, in order
_FIELDS = (
    "publickey",
    "contractAddresses",
    "contractsChainId",
    "startTimestamp",
    "durationDays",
)


def generate_session_key() -> str:
    """Return fresh session public key material as 0x-prefixed hex."""
    return "0x" + secrets.token_hex(SESSION_KEY_HEX_CHARS // 2)


@dataclass(frozen=True)
class SessionContext:
    """Explicit challenge parameters for one decryption session."""

    public_key: str
    contract_address: str
    chain_id: int
    start_timestamp: int
    duration_days: int = DEFAULT_DURATION_DAYS

    @classmethod
    def start(
        cls,
        contract_address: str,
        chain_id: int,
        duration_days: int = DEFAULT_DURATION_DAYS,
        clock: Callable[[], float] = time.time,
    ) -> "SessionContext":
        """
        Open a new session starting now.

        Args:
            contract_address: Address of the registry the session is bound to
            chain_id: Network identifier
            duration_days: Validity window in days
            clock: Time source returning seconds since epoch

        Returns:
            SessionContext with freshly generated key material
        """
        if duration_days <= 0:
            raise ValueError(f"duration_days must be positive, got {duration_days}")
        return cls(
            public_key=generate_session_key(),
            contract_address=contract_address,
            chain_id=chain_id,
            start_timestamp=int(clock()),
            duration_days=duration_days,
        )

    @property
    def expires_at(self) -> int:
        """Epoch second at which the session stops being valid."""
        return self.start_timestamp + self.duration_days * SECONDS_PER_DAY

    def is_expired(self, now: float | None = None) -> bool:
        if now is None:
            now = time.time()
        return now >= self.expires_at

    def challenge_message(self) -> str:
        """
        Build the canonical challenge text.

        Returns:
            Five newline-separated ``key:value`` lines
        """
        values = (
            self.public_key,
            self.contract_address,
            self.chain_id,
            self.start_timestamp,
            self.duration_days,
        )
        return "\n".join(f"{name}:{value}" for name, value in zip(_FIELDS, values))


def parse_challenge(message: str) -> SessionContext:
    """
    Rebuild a SessionContext from challenge text.

    Used by verifiers that receive the signed message.

    Raises:
        ValueError: If the text is not a well-formed challenge
    """
    lines = message.split("\n")
    if len(lines) != len(_FIELDS):
        raise ValueError(f"Challenge must have {len(_FIELDS)} lines, got {len(lines)}")

    values: list[str] = []
    for expected, line in zip(_FIELDS, lines):
        name, sep, value = line.partition(":")
        if not sep or name != expected:
            raise ValueError(f"Expected {expected!r} line, got {line[:40]!r}")
        values.append(value)

    return SessionContext(
        public_key=values[0],
        contract_address=values[1],
        chain_id=int(values[2]),
        start_timestamp=int(values[3]),
        duration_days=int(values[4]),
    )
