"""
Signed URLs
Tamper-evident, time-bounded download URLs for digital-goods storefronts
"""

from .version import __version__
from .exceptions import (
    SignedUrlError,
    MalformedInputError,
    FormatError,
    LookupMissError,
    SecretUnavailableError,
    ConfigurationError,
    PaymentLookupError,
)
from .signing import (
    OptionFlag,
    DigestAlgorithm,
    CanonicalOrder,
    SigningRequest,
    SignedUrl,
    SigningError,
    SigningErrorCodes,
    canonicalize,
    AttributeBinder,
    OptionBinder,
    ClientIPBinder,
    UserAgentBinder,
    CallableBinder,
    BinderRegistry,
    BindingContext,
    default_binders,
    SecretProvider,
    ContextProvider,
    StaticSecretProvider,
    EnvironmentSecretProvider,
    KeyringSecretProvider,
    RequestContext,
    UrlSigner,
    create_signer,
    sign_url,
    DownloadDescriptor,
    pack_descriptor,
    encode_descriptor,
    decode_descriptor,
)
from .verification import (
    UrlVerifier,
    create_verifier,
    verify_url,
)
from .dispatch import (
    PaymentMeta,
    PaymentStore,
    InMemoryPaymentStore,
    HttpPaymentStore,
    PaymentServiceConfig,
    DownloadUrlBuilder,
    DownloadRequestProcessor,
    DownloadRequestStatus,
    ProcessedDownload,
)
from .config import (
    SignedUrlConfig,
    LoggingConfig,
    DebugConfig,
    load_config_from_json,
    load_config_from_file,
    load_config_from_env,
    load_default_config,
)

__all__ = [
    '__version__',
    # Exceptions
    'SignedUrlError',
    'MalformedInputError',
    'FormatError',
    'LookupMissError',
    'SecretUnavailableError',
    'ConfigurationError',
    'PaymentLookupError',
    'SigningError',
    'SigningErrorCodes',
    # Types
    'OptionFlag',
    'DigestAlgorithm',
    'CanonicalOrder',
    'SigningRequest',
    'SignedUrl',
    # Core
    'canonicalize',
    'UrlSigner',
    'create_signer',
    'sign_url',
    'UrlVerifier',
    'create_verifier',
    'verify_url',
    # Binders and providers
    'AttributeBinder',
    'OptionBinder',
    'ClientIPBinder',
    'UserAgentBinder',
    'CallableBinder',
    'BinderRegistry',
    'BindingContext',
    'default_binders',
    'SecretProvider',
    'ContextProvider',
    'StaticSecretProvider',
    'EnvironmentSecretProvider',
    'KeyringSecretProvider',
    'RequestContext',
    # Descriptor codec
    'DownloadDescriptor',
    'pack_descriptor',
    'encode_descriptor',
    'decode_descriptor',
    # Dispatch
    'PaymentMeta',
    'PaymentStore',
    'InMemoryPaymentStore',
    'HttpPaymentStore',
    'PaymentServiceConfig',
    'DownloadUrlBuilder',
    'DownloadRequestProcessor',
    'DownloadRequestStatus',
    'ProcessedDownload',
    # Configuration
    'SignedUrlConfig',
    'LoggingConfig',
    'DebugConfig',
    'load_config_from_json',
    'load_config_from_file',
    'load_config_from_env',
    'load_default_config',
]
