"""
AgentWar logging utilities.

Provides configurable logging for store traffic and signature challenges.
Ensures no sensitive data (private keys, full signatures, session key
material) is logged.
"""

import logging
import re
from typing import Any

# Package loggers
_pkg_logger = logging.getLogger("agentwar")
_store_logger = logging.getLogger("agentwar.store")
_gate_logger = logging.getLogger("agentwar.gate")

# Patterns for sensitive data that should be masked
_SENSITIVE_PATTERNS = [
    # Private key patterns (PEM format)
    (re.compile(r"-----BEGIN[^-]*PRIVATE KEY-----.*?-----END[^-]*PRIVATE KEY-----", re.DOTALL), "[PRIVATE_KEY_REDACTED]"),
    # Base64 signatures
    (re.compile(r'"signature"\s*:\s*"[A-Za-z0-9+/=]{64,}"'), '"signature": "[SIGNATURE_REDACTED]"'),
    # Hex signatures
    (re.compile(r"signature['\"]?\s*[:=]\s*['\"]?(0x)?[a-fA-F0-9]{128,}['\"]?"), "signature: [SIGNATURE_REDACTED]"),
    # Session public key material inside a challenge
    (re.compile(r"publickey:0x[a-fA-F0-9]{16,}"), "publickey:[SESSION_KEY_REDACTED]"),
    # Secret/token patterns
    (re.compile(r"(secret|token|password|api_key)['\"]?\s*[:=]\s*['\"][^'\"]+['\"]", re.IGNORECASE), r"\1: [REDACTED]"),
]

_SIGNATURE_PREVIEW_LENGTH = 8
_KEY_PREVIEW_LENGTH = 10


def configure_logging(
    level: int = logging.INFO,
    store_level: int | None = None,
    gate_level: int | None = None,
    handler: logging.Handler | None = None,
    format_string: str | None = None,
) -> None:
    """
    Configure AgentWar logging.

    Args:
        level: Default log level for all package loggers (default: INFO)
        store_level: Log level for key-value store traffic (default: same as level)
        gate_level: Log level for decryption gate activity (default: same as level)
        handler: Custom handler to use (default: StreamHandler to stderr)
        format_string: Custom format string (default: includes timestamp, level, logger name)

    Example:
        ```python
        import logging
        from agentwar.logging import configure_logging

        # Trace every store read and write
        configure_logging(level=logging.INFO, store_level=logging.DEBUG)
        ```
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    formatter = logging.Formatter(format_string)

    if handler is None:
        handler = logging.StreamHandler()

    handler.setFormatter(formatter)

    _pkg_logger.setLevel(level)
    _pkg_logger.addHandler(handler)

    _store_logger.setLevel(store_level if store_level is not None else level)
    _gate_logger.setLevel(gate_level if gate_level is not None else level)


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Get an AgentWar logger.

    Args:
        name: Logger name suffix (e.g., "store", "gate", "registry").
            If None, returns the package logger.

    Returns:
        Logger instance
    """
    if name is None:
        return _pkg_logger
    return logging.getLogger(f"agentwar.{name}")


def mask_sensitive_data(text: str) -> str:
    """
    Mask sensitive data in a string.

    Args:
        text: Text that may contain sensitive data

    Returns:
        Text with private keys, signatures and secrets replaced by placeholders
    """
    result = text
    for pattern, replacement in _SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def truncate_signature(signature: str) -> str:
    """
    Truncate a signature for safe logging.

    Returns:
        Truncated signature like "abcdefgh...stuvwxyz", or a placeholder for short values
    """
    if len(signature) <= _SIGNATURE_PREVIEW_LENGTH * 2:
        return "[SIGNATURE_REDACTED]"

    return f"{signature[:_SIGNATURE_PREVIEW_LENGTH]}...{signature[-_SIGNATURE_PREVIEW_LENGTH:]}"


def abbreviate_key(key_material: str) -> str:
    """Shorten session public key material to a recognisable prefix."""
    if len(key_material) <= _KEY_PREVIEW_LENGTH:
        return key_material
    return f"{key_material[:_KEY_PREVIEW_LENGTH]}..."


def safe_log_dict(data: dict[str, Any], sensitive_keys: set[str] | None = None) -> dict[str, Any]:
    """
    Create a copy of a dictionary with sensitive values masked.

    Args:
        data: Dictionary that may contain sensitive values
        sensitive_keys: Set of keys to mask (default: signature, private_key, secret, token, password)

    Returns:
        Dictionary with sensitive values replaced with "[REDACTED]"
    """
    if sensitive_keys is None:
        sensitive_keys = {"signature", "private_key", "secret", "token", "password", "api_key"}

    result: dict[str, Any] = {}
    for key, value in data.items():
        key_lower = key.lower()
        if key_lower in sensitive_keys or any(sk in key_lower for sk in sensitive_keys):
            if isinstance(value, str) and key_lower == "signature":
                result[key] = truncate_signature(value)
            else:
                result[key] = "[REDACTED]"
        elif isinstance(value, dict):
            result[key] = safe_log_dict(value, sensitive_keys)
        elif isinstance(value, list):
            result[key] = [
                safe_log_dict(item, sensitive_keys) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            result[key] = value

    return result


def log_store_request(operation: str, key: str | None = None, size: int | None = None) -> None:
    """
    Log a store call at DEBUG level.

    Values are never logged, only their size.

    Args:
        operation: "available", "get" or "set"
        key: Store key (optional)
        size: Size of the value being written (optional)
    """
    if not _store_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [operation.upper()]
    if key is not None:
        log_parts.append(f"key={key}")
    if size is not None:
        log_parts.append(f"bytes={size}")

    _store_logger.debug(" | ".join(log_parts))


def log_store_response(
    status_code: int,
    url: str,
    elapsed_ms: float | None = None,
) -> None:
    """
    Log a remote store response at DEBUG level.

    Args:
        status_code: HTTP status code
        url: Request URL
        elapsed_ms: Request duration in milliseconds (optional)
    """
    if not _store_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"Response {status_code} from {url}"]
    if elapsed_ms is not None:
        log_parts.append(f"elapsed={elapsed_ms:.2f}ms")

    _store_logger.debug(" | ".join(log_parts))


def log_challenge_signing(
    operation: str,
    contract_address: str,
    chain_id: int,
    public_key: str | None = None,
    signature: str | None = None,
) -> None:
    """
    Log a signature challenge step at DEBUG level.

    Args:
        operation: Step name (e.g., "challenge_issued", "challenge_signed")
        contract_address: Registry address bound into the challenge
        chain_id: Network identifier bound into the challenge
        public_key: Session key material (abbreviated in output)
        signature: Signature as hex or base64 (truncated in output)
    """
    if not _gate_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"{operation}: contract={contract_address}, chain_id={chain_id}"]

    if public_key:
        log_parts.append(f"session_key={abbreviate_key(public_key)}")
    if signature:
        log_parts.append(f"signature={truncate_signature(signature)}")

    _gate_logger.debug(" | ".join(log_parts))


__all__ = [
    "configure_logging",
    "get_logger",
    "mask_sensitive_data",
    "truncate_signature",
    "abbreviate_key",
    "safe_log_dict",
    "log_store_request",
    "log_store_response",
    "log_challenge_signing",
]
