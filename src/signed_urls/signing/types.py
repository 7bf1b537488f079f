"""
Type definitions for URL signing functionality

This module provides the value types shared by the canonicalizer, signer and
verifier: option flags, signing requests, signing results and error codes.
"""

from typing import Dict, List, Optional, Sequence, Tuple, Union, Any
from dataclasses import dataclass, field
from enum import Enum

from ..exceptions import SignedUrlError


# Reserved query parameter names
TOKEN_PARAM = "token"
OPTIONS_PARAM = "o"
DESCRIPTOR_PARAM = "eddfile"
TTL_PARAM = "ttl"
SECRET_PARAM = "secret"

# Separator for packed values carried in a single query parameter
LIST_DELIMITER = ":"


class OptionFlag(str, Enum):
    """Contextual attributes that can be bound into a signature"""
    CLIENT_IP = "ip"
    USER_AGENT = "ua"


class DigestAlgorithm(str, Enum):
    """Token digest algorithms"""
    HMAC_SHA256 = "hmac-sha256"
    HMAC_SHA512 = "hmac-sha512"
    LEGACY_MD5 = "md5"


class CanonicalOrder(str, Enum):
    """Parameter ordering used when building the canonical string"""
    SORTED = "sorted"
    PRESERVE = "preserve"


# Expected hex token length per algorithm
TOKEN_LENGTHS: Dict[DigestAlgorithm, int] = {
    DigestAlgorithm.HMAC_SHA256: 64,
    DigestAlgorithm.HMAC_SHA512: 128,
    DigestAlgorithm.LEGACY_MD5: 32,
}


def option_value(flag: Union[OptionFlag, str]) -> str:
    """Return the wire value of an option flag."""
    if isinstance(flag, OptionFlag):
        return flag.value
    return str(flag)


@dataclass
class SigningRequest:
    """
    URL pending signature

    Attributes:
        base_url: URL the parameters are attached to (may already carry a query)
        query_params: Ordered parameter name to value mapping
        options: Option flags whose contextual attributes are bound into the token
    """
    base_url: str
    query_params: Dict[str, str] = field(default_factory=dict)
    options: Sequence[Union[OptionFlag, str]] = field(default_factory=tuple)

    def __post_init__(self):
        """Validate request after initialization"""
        if not self.base_url:
            raise ValueError("Request URL cannot be empty")

        if not isinstance(self.query_params, dict):
            raise ValueError("Query parameters must be a dictionary")

        self.query_params = {str(k): str(v) for k, v in self.query_params.items()}

        # De-duplicate flags, keeping first occurrence
        seen: List[str] = []
        for flag in self.options:
            value = option_value(flag)
            if not value or LIST_DELIMITER in value:
                raise ValueError(f"Invalid option flag: {flag!r}")
            if value not in seen:
                seen.append(value)
        self.options = tuple(seen)


@dataclass
class SignedUrl:
    """
    Result of signing a URL

    Attributes:
        url: Visible URL with the token appended as the last parameter
        unsigned_url: Visible URL without the token
        token: Hex digest over the canonical string
        params: Visible parameters in order, token last
    """
    url: str
    unsigned_url: str
    token: str
    params: List[Tuple[str, str]]

    def __post_init__(self):
        """Validate signing result"""
        if not self.token:
            raise ValueError("Token cannot be empty")

        if not self.url:
            raise ValueError("Signed URL cannot be empty")

    def __str__(self) -> str:
        return self.url


class SigningError(SignedUrlError):
    """
    Error class for signing operations

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Optional additional error details
    """

    def __init__(
        self,
        message: str,
        code: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, code, details)
        self.code = code

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (code: {self.code}, details: {self.details})"
        return f"{self.message} (code: {self.code})"

    def __repr__(self) -> str:
        return f"SigningError(message='{self.message}', code='{self.code}', details={self.details})"


class SigningErrorCodes:
    """Standard error codes for signing operations"""

    # Request errors
    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_URL = "INVALID_URL"
    INVALID_OPTIONS = "INVALID_OPTIONS"

    # Context errors
    MISSING_CONTEXT = "MISSING_CONTEXT"
    BINDER_FAILED = "BINDER_FAILED"

    # Signing errors
    SIGNING_FAILED = "SIGNING_FAILED"
    CANONICAL_STRING_FAILED = "CANONICAL_STRING_FAILED"
    UNSUPPORTED_ALGORITHM = "UNSUPPORTED_ALGORITHM"

    # Secret errors
    INVALID_SECRET = "INVALID_SECRET"


# Type aliases for convenience
QueryPairs = List[Tuple[str, str]]
ParamsLike = Union[Dict[str, str], Sequence[Tuple[str, str]]]
