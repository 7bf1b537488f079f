"""
Signed URLs - URL Signing Module

Canonicalization, keyed digests and attribute binding for tamper-evident
download URLs.
"""

from .types import (
    OptionFlag,
    DigestAlgorithm,
    CanonicalOrder,
    SigningRequest,
    SignedUrl,
    SigningError,
    SigningErrorCodes,
    TOKEN_PARAM,
    OPTIONS_PARAM,
    DESCRIPTOR_PARAM,
    TTL_PARAM,
    TOKEN_LENGTHS,
)

from .canonical import (
    canonicalize,
    parse_query,
    build_query,
    merge_params,
    split_url,
    join_url,
)

from .binders import (
    AttributeBinder,
    OptionBinder,
    ClientIPBinder,
    UserAgentBinder,
    CallableBinder,
    BinderRegistry,
    BindingContext,
    default_binders,
)

from .providers import (
    SecretProvider,
    ContextProvider,
    StaticSecretProvider,
    EnvironmentSecretProvider,
    KeyringSecretProvider,
    RequestContext,
    decode_secret,
)

from .signer import (
    UrlSigner,
    create_signer,
    sign_url,
)

from .descriptor import (
    DownloadDescriptor,
    pack as pack_descriptor,
    encode as encode_descriptor,
    decode as decode_descriptor,
)

from .utils import (
    compute_digest,
    tokens_equal,
    parse_options,
    format_options,
)

# Public API exports
__all__ = [
    # Types
    'OptionFlag',
    'DigestAlgorithm',
    'CanonicalOrder',
    'SigningRequest',
    'SignedUrl',
    'SigningError',
    'SigningErrorCodes',
    'TOKEN_PARAM',
    'OPTIONS_PARAM',
    'DESCRIPTOR_PARAM',
    'TTL_PARAM',
    'TOKEN_LENGTHS',
    # Canonicalization
    'canonicalize',
    'parse_query',
    'build_query',
    'merge_params',
    'split_url',
    'join_url',
    # Binders
    'AttributeBinder',
    'OptionBinder',
    'ClientIPBinder',
    'UserAgentBinder',
    'CallableBinder',
    'BinderRegistry',
    'BindingContext',
    'default_binders',
    # Providers
    'SecretProvider',
    'ContextProvider',
    'StaticSecretProvider',
    'EnvironmentSecretProvider',
    'KeyringSecretProvider',
    'RequestContext',
    'decode_secret',
    # Signing
    'UrlSigner',
    'create_signer',
    'sign_url',
    # Descriptor codec
    'DownloadDescriptor',
    'pack_descriptor',
    'encode_descriptor',
    'decode_descriptor',
    # Utilities
    'compute_digest',
    'tokens_equal',
    'parse_options',
    'format_options',
]
