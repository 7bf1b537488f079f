"""
Signed URLs - Verification Module

Token verification for signed download URLs.
"""

from .verifier import (
    UrlVerifier,
    VerificationError,
    VerificationErrorCodes,
    create_verifier,
    verify_url,
)

__all__ = [
    'UrlVerifier',
    'VerificationError',
    'VerificationErrorCodes',
    'create_verifier',
    'verify_url',
]
