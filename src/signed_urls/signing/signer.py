"""
URL signer

This module provides the signer that binds a URL's path and query parameters,
plus any hidden contextual attributes, to a keyed digest carried in the
``token`` parameter.
"""

import logging
from typing import Optional, Sequence, Union

from ..exceptions import SignedUrlError
from .binders import BinderRegistry, BindingContext, default_binders
from .canonical import (
    canonicalize,
    get_param,
    join_url,
    merge_params,
    split_url,
    strip_token,
    url_path,
)
from .providers import ContextProvider, SecretProvider, StaticSecretProvider
from .types import (
    CanonicalOrder,
    DigestAlgorithm,
    OptionFlag,
    ParamsLike,
    QueryPairs,
    SignedUrl,
    SigningError,
    SigningErrorCodes,
    SigningRequest,
    OPTIONS_PARAM,
    SECRET_PARAM,
    TOKEN_PARAM,
    option_value,
)
from .utils import (
    PerformanceTimer,
    compute_digest,
    format_options,
    legacy_secret_param,
    parse_options,
    secret_to_bytes,
)

logger = logging.getLogger(__name__)

# Signing a URL should stay well under this budget
SLOW_SIGNING_THRESHOLD_MS = 10


class UrlSigner:
    """
    Signer for tamper-evident download URLs

    The token is an HMAC over ``path + "?" + query`` where the query holds the
    visible parameters followed by any hidden pairs produced by the registered
    binders. ``DigestAlgorithm.LEGACY_MD5`` instead appends the secret as a
    ``secret`` parameter and hashes the result with MD5, matching legacy
    download links.
    """

    def __init__(
        self,
        secret_provider: SecretProvider,
        context_provider: Optional[ContextProvider] = None,
        binders: Optional[BinderRegistry] = None,
        algorithm: DigestAlgorithm = DigestAlgorithm.HMAC_SHA256,
        order: CanonicalOrder = CanonicalOrder.SORTED,
        log_canonical_strings: bool = False
    ):
        """
        Initialize the signer.

        Args:
            secret_provider: Source of the shared secret
            context_provider: Default request context for option bindings
            binders: Attribute binders; defaults to client address and user agent
            algorithm: Digest algorithm
            order: Canonical parameter ordering
            log_canonical_strings: Log canonical strings at DEBUG level.
                Ignored for the legacy algorithm, whose canonical string
                contains the secret.
        """
        if not isinstance(secret_provider, SecretProvider):
            raise SigningError(
                "Secret provider must implement get_secret()",
                SigningErrorCodes.INVALID_SECRET
            )

        self.secret_provider = secret_provider
        self.context_provider = context_provider
        self.binders = binders if binders is not None else default_binders()
        self.algorithm = DigestAlgorithm(algorithm)
        self.order = CanonicalOrder(order)
        self.log_canonical_strings = log_canonical_strings

    def sign(
        self,
        request: SigningRequest,
        context_provider: Optional[ContextProvider] = None
    ) -> SignedUrl:
        """
        Sign a URL.

        Args:
            request: URL, parameters and option flags to sign
            context_provider: Request context overriding the signer default

        Returns:
            SignedUrl: Visible URL with token, the token and visible parameters

        Raises:
            SigningError: If the URL is invalid or a binding cannot be resolved
            SecretUnavailableError: If the secret cannot be read
        """
        timer = PerformanceTimer()

        base, pairs = split_url(request.base_url)
        pairs = strip_token(merge_params(pairs, request.query_params))

        options = list(parse_options(get_param(pairs, OPTIONS_PARAM)))
        for flag in request.options:
            value = option_value(flag)
            if value not in options:
                options.append(value)

        if options:
            pairs = merge_params(pairs, [(OPTIONS_PARAM, format_options(options))])

        token = self._compute(url_path(base), pairs, tuple(options), context_provider)

        unsigned_url = join_url(base, pairs)
        visible = pairs + [(TOKEN_PARAM, token)]

        elapsed_ms = timer.elapsed_ms()
        if elapsed_ms > SLOW_SIGNING_THRESHOLD_MS:
            logger.warning(f"Signing operation took {elapsed_ms:.2f}ms (target: <{SLOW_SIGNING_THRESHOLD_MS}ms)")

        return SignedUrl(
            url=join_url(base, visible),
            unsigned_url=unsigned_url,
            token=token,
            params=visible
        )

    def sign_url(
        self,
        url: str,
        args: Optional[ParamsLike] = None,
        context_provider: Optional[ContextProvider] = None
    ) -> str:
        """
        Merge ``args`` into ``url`` and return it with a fresh token appended.

        Any token already present is discarded first.
        """
        base, pairs = split_url(url)
        merged = dict(merge_params(pairs, args))
        return self.sign(SigningRequest(base_url=base, query_params=merged), context_provider).url

    def compute_token(
        self,
        url: str,
        context_provider: Optional[ContextProvider] = None,
        options: Optional[Sequence[Union[OptionFlag, str]]] = None
    ) -> str:
        """
        Compute the token for a URL as it stands.

        Args:
            url: URL whose path and parameters are digested; a ``token``
                parameter is ignored
            context_provider: Request context overriding the signer default
            options: Option flags; recovered from the ``o`` parameter when None

        Returns:
            str: Hex token
        """
        base, pairs = split_url(url)
        pairs = strip_token(pairs)

        if options is None:
            flags = parse_options(get_param(pairs, OPTIONS_PARAM))
        else:
            flags = tuple(option_value(flag) for flag in options)

        return self._compute(url_path(base), pairs, flags, context_provider)

    def _compute(
        self,
        path: str,
        visible: QueryPairs,
        options: tuple,
        context_provider: Optional[ContextProvider]
    ) -> str:
        """Run binders, mix in the secret and digest the canonical string."""
        names = [name for name, _ in visible]
        if len(names) != len(set(names)):
            raise SigningError(
                "URL contains duplicate query parameters",
                SigningErrorCodes.INVALID_REQUEST,
                {"params": names}
            )

        request_context = context_provider or self.context_provider
        binding_context = BindingContext(
            path=path,
            params=tuple(visible),
            options=tuple(options),
            request=request_context
        )
        hidden = self.binders.collect(binding_context)

        reserved = {name for name, _ in hidden}
        if self.algorithm == DigestAlgorithm.LEGACY_MD5:
            reserved.add(SECRET_PARAM)

        clashes = reserved.intersection(names)
        if clashes:
            raise SigningError(
                "Visible parameters collide with bound parameter names",
                SigningErrorCodes.INVALID_REQUEST,
                {"params": sorted(clashes)}
            )

        try:
            secret = secret_to_bytes(self.secret_provider.get_secret())
        except SignedUrlError:
            raise
        except Exception as e:
            raise SigningError(
                f"Failed to read signing secret: {e}",
                SigningErrorCodes.INVALID_SECRET,
                {"original_error": str(e)}
            )

        digest_input = merge_params(visible, hidden)
        if self.algorithm == DigestAlgorithm.LEGACY_MD5:
            digest_input = merge_params(digest_input, [(SECRET_PARAM, legacy_secret_param(secret))])

        canonical = canonicalize(path, digest_input, self.order)

        if self.log_canonical_strings and self.algorithm != DigestAlgorithm.LEGACY_MD5:
            logger.debug(f"Canonical string: {canonical}")

        token = compute_digest(self.algorithm, secret, canonical)
        logger.debug(
            f"Computed {self.algorithm.value} token for {path} "
            f"(options={list(options)}, hidden={len(hidden)})"
        )
        return token


def create_signer(
    secret: Union[str, bytes, SecretProvider],
    context_provider: Optional[ContextProvider] = None,
    binders: Optional[BinderRegistry] = None,
    algorithm: DigestAlgorithm = DigestAlgorithm.HMAC_SHA256,
    order: CanonicalOrder = CanonicalOrder.SORTED
) -> UrlSigner:
    """
    Create a signer from a secret value or provider.

    Args:
        secret: Secret bytes/text or a SecretProvider
        context_provider: Default request context
        binders: Attribute binders
        algorithm: Digest algorithm
        order: Canonical parameter ordering

    Returns:
        UrlSigner: Configured signer
    """
    provider = secret if isinstance(secret, SecretProvider) else StaticSecretProvider(secret)
    return UrlSigner(provider, context_provider, binders, algorithm, order)


def sign_url(
    url: str,
    secret: Union[str, bytes, SecretProvider],
    args: Optional[ParamsLike] = None,
    options: Optional[Sequence[Union[OptionFlag, str]]] = None,
    context_provider: Optional[ContextProvider] = None,
    algorithm: DigestAlgorithm = DigestAlgorithm.HMAC_SHA256,
    order: CanonicalOrder = CanonicalOrder.SORTED
) -> SignedUrl:
    """
    Sign a URL in one call.

    Args:
        url: URL to sign
        secret: Secret bytes/text or a SecretProvider
        args: Extra query parameters to merge into the URL
        options: Option flags to bind
        context_provider: Request context for option bindings
        algorithm: Digest algorithm
        order: Canonical parameter ordering

    Returns:
        SignedUrl: Signing result
    """
    signer = create_signer(secret, context_provider, algorithm=algorithm, order=order)
    base, pairs = split_url(url)
    request = SigningRequest(
        base_url=base,
        query_params=dict(merge_params(pairs, args)),
        options=tuple(options or ())
    )
    return signer.sign(request)
