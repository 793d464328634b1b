"""
Ciphertext codec for AgentWar.

Encodes plaintext numbers into tagged, opaque tokens and back. The reference
scheme only frames the value; it is not a security primitive. A real
homomorphic backend can be substituted by implementing CiphertextCodec with
its own scheme tag.
"""

import base64
import binascii
import math
import re
from abc import ABC, abstractmethod

from agentwar.exceptions import MalformedCiphertextError

Number = int | float

# Canonical decimal forms produced by str(int) and str(float)
_INTEGER_RE = re.compile(r"-?(0|[1-9][0-9]*)")
_FLOAT_RE = re.compile(r"-?[0-9]+\.[0-9]+(e[+-][0-9]+)?|-?[0-9](\.[0-9]+)?e[+-][0-9]+")


class CiphertextCodec(ABC):
    """Abstract base class for ciphertext schemes."""

    scheme_tag: str

    @abstractmethod
    def encode(self, value: Number) -> str:
        """Encode a plaintext number into a ciphertext token."""
        pass

    @abstractmethod
    def decode(self, token: str | bytes) -> Number:
        """Decode a ciphertext token, raising MalformedCiphertextError."""
        pass

    def owns(self, token: str) -> bool:
        """Return True if the token carries this codec's scheme tag."""
        return token.startswith(self.scheme_tag)


class PlaceholderCodec(CiphertextCodec):
    """
    Reference scheme: ``FHE-`` followed by base64 of the decimal value.

    Integers decode as ``int`` and floats as ``float``, so a value always
    comes back with the type it was encoded with.
    """

    scheme_tag = "FHE-"

    def encode(self, value: Number) -> str:
        """
        Encode a finite int or float.

        Args:
            value: Plaintext number

        Returns:
            Token in format "FHE-<base64 decimal>"

        Raises:
            TypeError: If value is not an int or float (bool is rejected)
            ValueError: If value is NaN or infinite
        """
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"Cannot encode type: {type(value).__name__}")
        if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
            raise ValueError(f"Cannot encode {value}: not a finite number")

        payload = base64.b64encode(str(value).encode("ascii")).decode("ascii")
        return f"{self.scheme_tag}{payload}"

    def decode(self, token: str | bytes) -> Number:
        """
        Decode a token produced by encode().

        Args:
            token: Ciphertext token as str or UTF-8 bytes

        Returns:
            The exact value that was encoded

        Raises:
            MalformedCiphertextError: If the token framing is wrong
        """
        if isinstance(token, bytes):
            try:
                token = token.decode("utf-8")
            except UnicodeDecodeError as e:
                raise MalformedCiphertextError("Token is not valid UTF-8") from e
        if not isinstance(token, str):
            raise MalformedCiphertextError(
                f"Token must be str or bytes, got {type(token).__name__}"
            )
        if not self.owns(token):
            raise MalformedCiphertextError(
                f"Token does not carry scheme tag {self.scheme_tag!r}"
            )

        try:
            text = base64.b64decode(token[len(self.scheme_tag):], validate=True).decode("ascii")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise MalformedCiphertextError("Token payload is not valid base64") from e

        value: Number
        if _INTEGER_RE.fullmatch(text):
            value = int(text)
        elif _FLOAT_RE.fullmatch(text):
            value = float(text)
        else:
            raise MalformedCiphertextError("Token payload is not a decimal number")

        # Only accept the exact framing encode() would have produced
        if self.encode(value) != token:
            raise MalformedCiphertextError("Token payload is not in canonical form")
        return value


_default_codec = PlaceholderCodec()
_known_schemes: tuple[CiphertextCodec, ...] = (_default_codec,)


def default_codec() -> CiphertextCodec:
    """Return the module-level reference codec."""
    return _default_codec


def encode(value: Number) -> str:
    """Encode a value with the default codec."""
    return _default_codec.encode(value)


def decode(token: str | bytes) -> Number:
    """Decode a token with the default codec."""
    return _default_codec.decode(token)


def scheme_of(token: str) -> str | None:
    """
    Identify the scheme a token was produced with.

    Args:
        token: Ciphertext token

    Returns:
        The scheme tag, or None if no known scheme claims the token
    """
    for codec in _known_schemes:
        if codec.owns(token):
            return codec.scheme_tag
    return None
