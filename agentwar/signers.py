"""
Credential signers for AgentWar.

A signer answers the decryption gate's challenge and names the account that
owns agents it creates. Supports Ed25519 and ECDSA secp256k1.
"""

import base64
import hashlib
from abc import ABC, abstractmethod
from pathlib import Path

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519

MESSAGE_PREFIX = "\x19Signed Message:\n"


def personal_message(message: str) -> bytes:
    """Frame a text challenge the way wallets do before signing it."""
    body = message.encode("utf-8")
    return f"{MESSAGE_PREFIX}{len(body)}".encode("utf-8") + body


def address_from_public_key(public_bytes: bytes) -> str:
    """Derive a 20-byte hex account identifier from raw public key bytes."""
    return "0x" + hashlib.sha256(public_bytes).digest()[-20:].hex()


class Signer(ABC):
    """Abstract base class for credential signers."""

    @abstractmethod
    def sign(self, message: bytes) -> bytes:
        """Sign raw bytes and return the signature."""
        pass

    @abstractmethod
    def verify(self, signature: bytes, message: bytes) -> bool:
        """Return True if signature is valid for message."""
        pass

    @abstractmethod
    def public_key_bytes(self) -> bytes:
        """Return the raw public key bytes."""
        pass

    @abstractmethod
    def public_key(self) -> str:
        """Return the public key in base64 format with type prefix."""
        pass

    @property
    def address(self) -> str:
        """Account identifier recorded as the owner of created agents."""
        return address_from_public_key(self.public_key_bytes())

    def sign_message(self, message: str) -> bytes:
        """
        Sign a text challenge.

        Args:
            message: UTF-8 challenge text

        Returns:
            Signature over the framed message
        """
        return self.sign(personal_message(message))

    def verify_message(self, signature: bytes, message: str) -> bool:
        """Verify a signature produced by sign_message()."""
        return self.verify(signature, personal_message(message))

    @classmethod
    def from_pem_file(cls, path: str | Path) -> "Signer":
        """Load a signer from a PEM file."""
        return cls.from_pem(Path(path).read_text())

    @classmethod
    @abstractmethod
    def from_pem(cls, pem_string: str) -> "Signer":
        """Load a signer from a PEM string."""
        pass

    @classmethod
    @abstractmethod
    def generate(cls) -> tuple["Signer", str]:
        """Generate a new keypair, returning (signer, address)."""
        pass


class Ed25519Signer(Signer):
    """Ed25519 credential."""

    def __init__(self, private_key: ed25519.Ed25519PrivateKey) -> None:
        self._private_key = private_key
        self._public_key = private_key.public_key()

    def sign(self, message: bytes) -> bytes:
        """Sign with Ed25519, returning a 64-byte signature."""
        return self._private_key.sign(message)

    def verify(self, signature: bytes, message: bytes) -> bool:
        try:
            self._public_key.verify(signature, message)
        except InvalidSignature:
            return False
        return True

    def public_key_bytes(self) -> bytes:
        """Return the raw 32-byte public key."""
        return self._public_key.public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )

    def public_key(self) -> str:
        """
        Return the public key as base64 with ed25519: prefix.

        Returns:
            String in format "ed25519:<base64_public_key>"
        """
        return f"ed25519:{base64.b64encode(self.public_key_bytes()).decode()}"

    def private_key_pem(self) -> str:
        """Return the private key in PEM format (for storage)."""
        return self._private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ).decode()

    @classmethod
    def from_pem(cls, pem_string: str) -> "Ed25519Signer":
        """
        Load an Ed25519 signer from a PEM string.

        Raises:
            TypeError: If the PEM holds a different key type
        """
        private_key = serialization.load_pem_private_key(
            pem_string.encode(), password=None
        )

        if not isinstance(private_key, ed25519.Ed25519PrivateKey):
            raise TypeError(f"Expected Ed25519 private key, got {type(private_key).__name__}")

        return cls(private_key)

    @classmethod
    def from_bytes(cls, key_bytes: bytes) -> "Ed25519Signer":
        """Load an Ed25519 signer from a raw 32-byte seed."""
        if len(key_bytes) != 32:
            raise ValueError(f"Ed25519 private key must be 32 bytes, got {len(key_bytes)}")

        return cls(ed25519.Ed25519PrivateKey.from_private_bytes(key_bytes))

    @classmethod
    def generate(cls) -> tuple["Ed25519Signer", str]:
        """Generate a new Ed25519 keypair, returning (signer, address)."""
        signer = cls(ed25519.Ed25519PrivateKey.generate())
        return signer, signer.address


class EcdsaSigner(Signer):
    """ECDSA secp256k1 credential, signing with SHA-256."""

    def __init__(self, private_key: ec.EllipticCurvePrivateKey) -> None:
        if not isinstance(private_key.curve, ec.SECP256K1):
            raise TypeError(
                f"Expected secp256k1 curve, got {type(private_key.curve).__name__}"
            )
        self._private_key = private_key
        self._public_key = private_key.public_key()

    def sign(self, message: bytes) -> bytes:
        """Sign with ECDSA, returning a DER-encoded signature."""
        return self._private_key.sign(message, ec.ECDSA(hashes.SHA256()))

    def verify(self, signature: bytes, message: bytes) -> bool:
        try:
            self._public_key.verify(signature, message, ec.ECDSA(hashes.SHA256()))
        except InvalidSignature:
            return False
        return True

    def public_key_bytes(self) -> bytes:
        """Return the uncompressed 65-byte public point."""
        return self._public_key.public_bytes(
            encoding=serialization.Encoding.X962,
            format=serialization.PublicFormat.UncompressedPoint,
        )

    def public_key(self) -> str:
        """
        Return the public key as base64 with ecdsa: prefix.

        Returns:
            String in format "ecdsa:<base64_uncompressed_point>"
        """
        return f"ecdsa:{base64.b64encode(self.public_key_bytes()).decode()}"

    def private_key_pem(self) -> str:
        """Return the private key in PEM format (for storage)."""
        return self._private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ).decode()

    @classmethod
    def from_pem(cls, pem_string: str) -> "EcdsaSigner":
        """
        Load an ECDSA signer from a PEM string.

        Raises:
            TypeError: If the PEM holds a non-EC key or another curve
        """
        private_key = serialization.load_pem_private_key(
            pem_string.encode(), password=None
        )

        if not isinstance(private_key, ec.EllipticCurvePrivateKey):
            raise TypeError(
                f"Expected ECDSA private key, got {type(private_key).__name__}"
            )

        return cls(private_key)

    @classmethod
    def generate(cls) -> tuple["EcdsaSigner", str]:
        """Generate a new secp256k1 keypair, returning (signer, address)."""
        signer = cls(ec.generate_private_key(ec.SECP256K1()))
        return signer, signer.address
