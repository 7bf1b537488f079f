"""
Token verification for signed URLs

This module recomputes a URL's token with the same procedure the signer uses
and compares it against the presented one. Every failure collapses to a plain
``False`` so callers cannot learn which part of the check failed.
"""

import logging
from typing import Optional, Union

from ..exceptions import SignedUrlError
from ..signing.binders import BinderRegistry
from ..signing.canonical import get_param, split_url
from ..signing.providers import ContextProvider, SecretProvider, StaticSecretProvider
from ..signing.signer import UrlSigner
from ..signing.types import CanonicalOrder, DigestAlgorithm, TOKEN_PARAM
from ..signing.utils import is_well_formed_token, tokens_equal

logger = logging.getLogger(__name__)


class VerificationError(SignedUrlError):
    """Raised internally when a URL fails verification"""
    pass


class VerificationErrorCodes:
    """Reasons recorded in logs for rejected URLs"""

    MISSING_QUERY = "MISSING_QUERY"
    MISSING_TOKEN = "MISSING_TOKEN"
    MALFORMED_TOKEN = "MALFORMED_TOKEN"
    TOKEN_MISMATCH = "TOKEN_MISMATCH"


class UrlVerifier:
    """
    Verifier for tamper-evident download URLs

    Uses a ``UrlSigner`` with identical settings to recompute tokens, so the
    two sides cannot drift apart.
    """

    def __init__(
        self,
        secret_provider: SecretProvider,
        context_provider: Optional[ContextProvider] = None,
        binders: Optional[BinderRegistry] = None,
        algorithm: DigestAlgorithm = DigestAlgorithm.HMAC_SHA256,
        order: CanonicalOrder = CanonicalOrder.SORTED
    ):
        """
        Initialize the verifier.

        Args:
            secret_provider: Source of the shared secret
            context_provider: Default request context for option bindings
            binders: Attribute binders; must match the signer's
            algorithm: Digest algorithm
            order: Canonical parameter ordering
        """
        self.signer = UrlSigner(
            secret_provider,
            context_provider=context_provider,
            binders=binders,
            algorithm=algorithm,
            order=order
        )

    @property
    def algorithm(self) -> DigestAlgorithm:
        return self.signer.algorithm

    def verify(self, url: str, context_provider: Optional[ContextProvider] = None) -> bool:
        """
        Check that a URL carries a valid token.

        Args:
            url: URL as received, including its ``token`` parameter
            context_provider: Request context overriding the verifier default

        Returns:
            bool: True only if the presented token matches exactly
        """
        try:
            self._check(url, context_provider)
            return True
        except VerificationError as e:
            logger.info(f"Rejected signed URL: {e.error_code}")
        except SignedUrlError as e:
            logger.info(f"Rejected signed URL: {e.error_code}")
            logger.debug(f"Verification failure detail: {e}")
        except (TypeError, ValueError) as e:
            logger.info("Rejected signed URL: MALFORMED_INPUT")
            logger.debug(f"Verification failure detail: {e}")

        return False

    def _check(self, url: str, context_provider: Optional[ContextProvider]) -> None:
        """Raise VerificationError or SignedUrlError unless the token matches."""
        _, pairs = split_url(url)
        if not pairs:
            raise VerificationError("URL has no query string", VerificationErrorCodes.MISSING_QUERY)

        presented = get_param(pairs, TOKEN_PARAM)
        if not presented:
            raise VerificationError("URL has no token", VerificationErrorCodes.MISSING_TOKEN)

        if sum(1 for name, _ in pairs if name == TOKEN_PARAM) > 1:
            raise VerificationError("URL has more than one token", VerificationErrorCodes.MALFORMED_TOKEN)

        if not is_well_formed_token(presented, self.algorithm):
            raise VerificationError("Token is malformed", VerificationErrorCodes.MALFORMED_TOKEN)

        expected = self.signer.compute_token(url, context_provider)

        if not tokens_equal(presented, expected):
            raise VerificationError("Token does not match", VerificationErrorCodes.TOKEN_MISMATCH)


def create_verifier(
    secret: Union[str, bytes, SecretProvider],
    context_provider: Optional[ContextProvider] = None,
    binders: Optional[BinderRegistry] = None,
    algorithm: DigestAlgorithm = DigestAlgorithm.HMAC_SHA256,
    order: CanonicalOrder = CanonicalOrder.SORTED
) -> UrlVerifier:
    """
    Create a verifier from a secret value or provider.

    Returns:
        UrlVerifier: Configured verifier
    """
    provider = secret if isinstance(secret, SecretProvider) else StaticSecretProvider(secret)
    return UrlVerifier(provider, context_provider, binders, algorithm, order)


def verify_url(
    url: str,
    secret: Union[str, bytes, SecretProvider],
    context_provider: Optional[ContextProvider] = None,
    algorithm: DigestAlgorithm = DigestAlgorithm.HMAC_SHA256,
    order: CanonicalOrder = CanonicalOrder.SORTED
) -> bool:
    """
    Verify a URL in one call.

    Args:
        url: URL to verify
        secret: Secret bytes/text or a SecretProvider
        context_provider: Request context for option bindings
        algorithm: Digest algorithm
        order: Canonical parameter ordering

    Returns:
        bool: True if the URL is unmodified
    """
    try:
        verifier = create_verifier(secret, context_provider, algorithm=algorithm, order=order)
    except SignedUrlError as e:
        logger.warning(f"Cannot verify signed URL: {e.error_code}")
        return False
    return verifier.verify(url)
