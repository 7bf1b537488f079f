"""
Utility functions for URL signing

This module provides the digest primitives, token comparison, option-list
handling and timing helpers shared by the signer and verifier.
"""

import base64
import re
import time
from typing import Iterable, Optional, Tuple, Union

from cryptography.hazmat.primitives import constant_time, hashes, hmac

from .types import (
    DigestAlgorithm,
    OptionFlag,
    SigningError,
    SigningErrorCodes,
    LIST_DELIMITER,
    TOKEN_LENGTHS,
    option_value,
)


_HEX_TOKEN_PATTERN = re.compile(r'^[0-9a-f]+$')


def to_hex(data: bytes) -> str:
    """
    Convert bytes to lowercase hex string.

    Args:
        data: Bytes to convert

    Returns:
        str: Lowercase hex string
    """
    return data.hex().lower()


def secret_to_bytes(secret: Union[str, bytes]) -> bytes:
    """
    Coerce a secret to bytes.

    Raises:
        SigningError: If the secret is empty or of the wrong type
    """
    if isinstance(secret, str):
        secret = secret.encode('utf-8')

    if not isinstance(secret, bytes):
        raise SigningError(
            f"Secret must be str or bytes, got {type(secret)}",
            SigningErrorCodes.INVALID_SECRET
        )

    if not secret:
        raise SigningError(
            "Secret cannot be empty",
            SigningErrorCodes.INVALID_SECRET
        )

    return secret


def legacy_secret_param(secret: bytes) -> str:
    """
    Format a secret the way the legacy digest embeds it in the query string.

    Args:
        secret: Raw secret bytes

    Returns:
        str: Base64 text (percent-encoded later by the query serializer)
    """
    return base64.b64encode(secret).decode('ascii')


def compute_digest(algorithm: DigestAlgorithm, secret: bytes, message: str) -> str:
    """
    Compute the hex token for a canonical string.

    HMAC algorithms key the digest with the secret. ``LEGACY_MD5`` is an unkeyed
    hash; callers must have embedded the secret in ``message`` already.

    Args:
        algorithm: Digest algorithm
        secret: Secret bytes
        message: Canonical string

    Returns:
        str: Lowercase hex digest

    Raises:
        SigningError: If the algorithm is not supported
    """
    data = message.encode('utf-8')

    if algorithm == DigestAlgorithm.HMAC_SHA256:
        mac = hmac.HMAC(secret, hashes.SHA256())
        mac.update(data)
        return to_hex(mac.finalize())

    if algorithm == DigestAlgorithm.HMAC_SHA512:
        mac = hmac.HMAC(secret, hashes.SHA512())
        mac.update(data)
        return to_hex(mac.finalize())

    if algorithm == DigestAlgorithm.LEGACY_MD5:
        digest = hashes.Hash(hashes.MD5())
        digest.update(data)
        return to_hex(digest.finalize())

    raise SigningError(
        f"Unsupported digest algorithm: {algorithm}",
        SigningErrorCodes.UNSUPPORTED_ALGORITHM,
        {"algorithm": str(algorithm)}
    )


def is_well_formed_token(token: Optional[str], algorithm: DigestAlgorithm) -> bool:
    """
    Check that a presented token has the length and alphabet of ``algorithm``.

    Args:
        token: Presented token
        algorithm: Expected digest algorithm

    Returns:
        bool: True if the token could have been produced by ``algorithm``
    """
    if not isinstance(token, str):
        return False

    if len(token) != TOKEN_LENGTHS.get(algorithm, -1):
        return False

    return bool(_HEX_TOKEN_PATTERN.match(token))


def tokens_equal(presented: str, expected: str) -> bool:
    """
    Compare two tokens in constant time.

    Args:
        presented: Token supplied by the client
        expected: Token recomputed by the server

    Returns:
        bool: True on exact match
    """
    return constant_time.bytes_eq(presented.encode('utf-8'), expected.encode('utf-8'))


def parse_options(value: Optional[str]) -> Tuple[str, ...]:
    """
    Split the ``o`` parameter into option flags.

    Empty entries are dropped and duplicates collapsed, keeping first
    occurrence.

    Args:
        value: Decoded ``o`` parameter value

    Returns:
        tuple: Option flag strings
    """
    if not value:
        return ()

    flags = []
    for flag in value.split(LIST_DELIMITER):
        flag = flag.strip()
        if flag and flag not in flags:
            flags.append(flag)
    return tuple(flags)


def format_options(options: Iterable[Union[OptionFlag, str]]) -> str:
    """
    Join option flags for the ``o`` parameter.

    Raises:
        SigningError: If a flag is empty or contains the delimiter
    """
    values = []
    for flag in options:
        value = option_value(flag)
        if not value or LIST_DELIMITER in value:
            raise SigningError(
                f"Invalid option flag: {flag!r}",
                SigningErrorCodes.INVALID_OPTIONS,
                {"flag": str(flag)}
            )
        if value not in values:
            values.append(value)
    return LIST_DELIMITER.join(values)


class PerformanceTimer:
    """Simple performance timer for monitoring signing operations."""

    def __init__(self):
        self.start_time = time.perf_counter()

    def elapsed_ms(self) -> float:
        """Get elapsed time in milliseconds."""
        return (time.perf_counter() - self.start_time) * 1000

    def reset(self) -> None:
        """Reset the timer."""
        self.start_time = time.perf_counter()
