"""
Decryption access gate.

Every reveal of a private field issues a fresh signature request over the
session challenge. Only after the caller's signer answers is the ciphertext
decoded; a rejected or failed request never reaches the codec.
"""

import inspect
import time
from abc import ABC, abstractmethod
from collections.abc import Callable

from agentwar.challenge import SessionContext
from agentwar.codec import CiphertextCodec, Number, default_codec
from agentwar.exceptions import AuthorizationDeniedError
from agentwar.logging import get_logger, log_challenge_signing
from agentwar.signers import Signer
from agentwar.types.agents import AgentRecord

logger = get_logger("gate")


class AsyncMessageSigner(ABC):
    """A signer whose signature request completes asynchronously (e.g. a wallet)."""

    @abstractmethod
    async def sign_message(self, message: str) -> bytes | str:
        """Return a signature over message, or raise if the request is rejected."""
        pass


def _check_session(session: SessionContext, now: float) -> None:
    if session.is_expired(now):
        logger.warning(
            "Refusing decryption: session started at %d expired at %d",
            session.start_timestamp,
            session.expires_at,
        )
        raise AuthorizationDeniedError(
            "SESSION_EXPIRED", "Decryption session has expired; start a new session"
        )


def _check_signature(signature: object, session: SessionContext) -> bytes | str:
    if not signature:
        logger.warning("Signature request returned no signature")
        raise AuthorizationDeniedError(
            "SIGNATURE_MISSING", "Signature request returned an empty signature"
        )
    if isinstance(signature, (bytes, bytearray)):
        printable = bytes(signature).hex()
    elif isinstance(signature, str):
        printable = signature
    else:
        logger.warning("Signature request returned a %s", type(signature).__name__)
        raise AuthorizationDeniedError(
            "SIGNATURE_INVALID",
            f"Signature must be bytes or a string, got {type(signature).__name__}",
        )
    log_challenge_signing(
        "challenge_signed",
        session.contract_address,
        session.chain_id,
        public_key=session.public_key,
        signature=printable,
    )
    return signature


def _denied(error: Exception) -> AuthorizationDeniedError:
    logger.warning("Signature request failed: %s", error)
    return AuthorizationDeniedError("SIGNATURE_REJECTED", f"Signature request failed: {error}")


class DecryptionGate:
    """
    Signature-gated decode of private fields.

    Example:
        ```python
        gate = DecryptionGate(signer)
        session = SessionContext.start(contract_address="0xabc...", chain_id=11155111)
        balance = gate.reveal_balance(record, session)
        ```
    """

    def __init__(
        self,
        signer: Signer,
        codec: CiphertextCodec | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the gate.

        Args:
            signer: Credential that answers signature requests
            codec: Codec used once authorization succeeds (default: reference codec)
            clock: Time source used for session expiry
        """
        self.signer = signer
        self.codec = codec or default_codec()
        self.clock = clock

    def request_signature(self, session: SessionContext) -> bytes | str:
        """
        Issue the signature request for a session and wait for the answer.

        Raises:
            AuthorizationDeniedError: If the session has expired, or the
                request is rejected or fails
        """
        _check_session(session, self.clock())
        message = session.challenge_message()
        log_challenge_signing(
            "challenge_issued", session.contract_address, session.chain_id, public_key=session.public_key
        )
        try:
            signature = self.signer.sign_message(message)
        except Exception as e:
            raise _denied(e) from e
        return _check_signature(signature, session)

    def reveal(self, token: str, session: SessionContext) -> Number:
        """
        Decode a private ciphertext after a successful signature request.

        Args:
            token: Ciphertext token to reveal
            session: Challenge parameters to sign

        Returns:
            Decoded plaintext

        Raises:
            AuthorizationDeniedError: If authorization fails (the codec is not called)
            MalformedCiphertextError: If the token cannot be decoded
        """
        self.request_signature(session)
        return self.codec.decode(token)

    def reveal_balance(self, record: AgentRecord, session: SessionContext) -> Number:
        """Reveal an agent's encrypted balance."""
        return self.reveal(record.encrypted_balance, session)


class AsyncDecryptionGate:
    """Async variant of DecryptionGate; awaits the signer when it is async."""

    def __init__(
        self,
        signer: Signer | AsyncMessageSigner,
        codec: CiphertextCodec | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.signer = signer
        self.codec = codec or default_codec()
        self.clock = clock

    async def request_signature(self, session: SessionContext) -> bytes | str:
        """Issue and await the signature request for a session."""
        _check_session(session, self.clock())
        message = session.challenge_message()
        log_challenge_signing(
            "challenge_issued", session.contract_address, session.chain_id, public_key=session.public_key
        )
        try:
            signature = self.signer.sign_message(message)
            if inspect.isawaitable(signature):
                signature = await signature
        except Exception as e:
            raise _denied(e) from e
        return _check_signature(signature, session)

    async def reveal(self, token: str, session: SessionContext) -> Number:
        """Decode a private ciphertext after a successful signature request."""
        await self.request_signature(session)
        return self.codec.decode(token)

    async def reveal_balance(self, record: AgentRecord, session: SessionContext) -> Number:
        """Reveal an agent's encrypted balance."""
        return await self.reveal(record.encrypted_balance, session)
