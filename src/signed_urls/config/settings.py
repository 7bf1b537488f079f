"""
Configuration management for signed URLs

Loads signer/verifier settings from JSON, files or ``SIGNED_URLS_*``
environment variables and builds configured signers, verifiers, secret
providers, request contexts and dispatch hooks from them.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from ..dispatch.hooks import DownloadRequestProcessor, DownloadUrlBuilder
from ..dispatch.payments import PaymentStore
from ..exceptions import ConfigurationError
from ..signing.binders import BinderRegistry
from ..signing.providers import (
    ContextProvider,
    EnvironmentSecretProvider,
    RequestContext,
    SecretProvider,
    DEFAULT_SECRET_ENV_VAR,
    SECRET_ENCODINGS,
)
from ..signing.signer import UrlSigner
from ..signing.types import CanonicalOrder, DigestAlgorithm, LIST_DELIMITER
from ..verification.verifier import UrlVerifier

ENV_PREFIX = "SIGNED_URLS_"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "WARNING"
    structured: bool = False


@dataclass
class DebugConfig:
    """Debug configuration"""
    log_canonical_strings: bool = False


@dataclass
class SignedUrlConfig:
    """Signed URL configuration"""
    home_url: str = "http://localhost/"
    digest_algorithm: DigestAlgorithm = DigestAlgorithm.HMAC_SHA256
    canonical_order: CanonicalOrder = CanonicalOrder.SORTED
    secret_env_var: str = DEFAULT_SECRET_ENV_VAR
    secret_encoding: str = "raw"
    default_options: List[str] = field(default_factory=list)
    trust_proxy_headers: bool = False
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    debug: DebugConfig = field(default_factory=DebugConfig)

    def __post_init__(self):
        """Coerce enums and validate values"""
        try:
            self.digest_algorithm = DigestAlgorithm(self.digest_algorithm)
        except ValueError:
            raise ConfigurationError(
                f"Unknown digest algorithm: {self.digest_algorithm}",
                "INVALID_ALGORITHM",
                {"supported": [a.value for a in DigestAlgorithm]}
            )

        try:
            self.canonical_order = CanonicalOrder(self.canonical_order)
        except ValueError:
            raise ConfigurationError(
                f"Unknown canonical order: {self.canonical_order}",
                "INVALID_CANONICAL_ORDER",
                {"supported": [o.value for o in CanonicalOrder]}
            )

        if not self.home_url:
            raise ConfigurationError("home_url cannot be empty", "INVALID_HOME_URL")

        if self.secret_encoding not in SECRET_ENCODINGS:
            raise ConfigurationError(
                f"Unknown secret encoding: {self.secret_encoding}",
                "INVALID_SECRET_ENCODING",
                {"supported": list(SECRET_ENCODINGS)}
            )

        for flag in self.default_options:
            if not flag or LIST_DELIMITER in flag:
                raise ConfigurationError(f"Invalid option flag: {flag!r}", "INVALID_OPTIONS")

        if self.logging.level.upper() not in LOG_LEVELS:
            raise ConfigurationError(f"Invalid log level: {self.logging.level}", "INVALID_LOG_LEVEL")

    def secret_provider(self, environ: Optional[Mapping[str, str]] = None) -> SecretProvider:
        """Secret provider reading the configured environment variable"""
        return EnvironmentSecretProvider(self.secret_env_var, self.secret_encoding, environ)

    def create_signer(
        self,
        secret_provider: Optional[SecretProvider] = None,
        context_provider: Optional[ContextProvider] = None,
        binders: Optional[BinderRegistry] = None
    ) -> UrlSigner:
        """Build a signer from this configuration"""
        return UrlSigner(
            secret_provider or self.secret_provider(),
            context_provider=context_provider,
            binders=binders,
            algorithm=self.digest_algorithm,
            order=self.canonical_order,
            log_canonical_strings=self.debug.log_canonical_strings
        )

    def create_verifier(
        self,
        secret_provider: Optional[SecretProvider] = None,
        context_provider: Optional[ContextProvider] = None,
        binders: Optional[BinderRegistry] = None
    ) -> UrlVerifier:
        """Build a verifier from this configuration"""
        return UrlVerifier(
            secret_provider or self.secret_provider(),
            context_provider=context_provider,
            binders=binders,
            algorithm=self.digest_algorithm,
            order=self.canonical_order
        )

    def request_context(self, environ: Mapping[str, Any]) -> RequestContext:
        """Request context for a WSGI environ, honoring trust_proxy_headers"""
        return RequestContext.from_wsgi_environ(environ, trust_proxy_headers=self.trust_proxy_headers)

    def create_url_builder(
        self,
        payments: PaymentStore,
        secret_provider: Optional[SecretProvider] = None,
        context_provider: Optional[ContextProvider] = None,
        binders: Optional[BinderRegistry] = None
    ) -> DownloadUrlBuilder:
        """Build the URL-construction hook for home_url with the default options"""
        return DownloadUrlBuilder(
            self.create_signer(secret_provider, binders=binders),
            payments,
            self.home_url,
            default_options=self.default_options,
            context_provider=context_provider
        )

    def create_request_processor(
        self,
        payments: PaymentStore,
        secret_provider: Optional[SecretProvider] = None,
        context_provider: Optional[ContextProvider] = None,
        binders: Optional[BinderRegistry] = None
    ) -> DownloadRequestProcessor:
        """Build the pre-dispatch hook for home_url"""
        return DownloadRequestProcessor(
            self.create_verifier(secret_provider, binders=binders),
            payments,
            self.home_url,
            context_provider=context_provider
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'home_url': self.home_url,
            'digest_algorithm': self.digest_algorithm.value,
            'canonical_order': self.canonical_order.value,
            'secret_env_var': self.secret_env_var,
            'secret_encoding': self.secret_encoding,
            'default_options': list(self.default_options),
            'trust_proxy_headers': self.trust_proxy_headers,
            'logging': {'level': self.logging.level, 'structured': self.logging.structured},
            'debug': {'log_canonical_strings': self.debug.log_canonical_strings},
        }


def _parse_config_dict(data: Dict[str, Any]) -> SignedUrlConfig:
    """Parse configuration dictionary into structured objects"""
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration must be a JSON object", "INVALID_FORMAT")

    values = dict(data)
    try:
        if 'logging' in values:
            values['logging'] = LoggingConfig(**values['logging'])
        if 'debug' in values:
            values['debug'] = DebugConfig(**values['debug'])
        return SignedUrlConfig(**values)
    except TypeError as e:
        raise ConfigurationError(f"Invalid configuration format: {e}", "INVALID_FORMAT")


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ('1', 'true', 'yes', 'on'):
        return True
    if lowered in ('0', 'false', 'no', 'off', ''):
        return False
    raise ConfigurationError(f"Invalid boolean for {name}: {value!r}", "INVALID_FORMAT")


def load_config_from_json(json_string: str) -> SignedUrlConfig:
    """Load configuration from JSON string"""
    try:
        data = json.loads(json_string)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Failed to parse configuration JSON: {e}", "PARSE_ERROR")
    return _parse_config_dict(data)


def load_config_from_file(file_path: Union[str, Path]) -> SignedUrlConfig:
    """Load configuration from a JSON file"""
    try:
        with open(Path(file_path), 'r', encoding='utf-8') as f:
            json_string = f.read()
    except OSError as e:
        raise ConfigurationError(f"Failed to read configuration file: {e}", "FILE_ERROR")
    return load_config_from_json(json_string)


def load_config_from_env(
    environ: Optional[Mapping[str, str]] = None,
    base: Optional[SignedUrlConfig] = None
) -> SignedUrlConfig:
    """
    Load configuration from ``SIGNED_URLS_*`` environment variables.

    Recognized: ``HOME_URL``, ``DIGEST_ALGORITHM``, ``CANONICAL_ORDER``,
    ``SECRET_ENV_VAR``, ``SECRET_ENCODING``, ``DEFAULT_OPTIONS`` (colon
    separated), ``TRUST_PROXY_HEADERS``, ``LOG_LEVEL``, ``LOG_STRUCTURED``,
    ``LOG_CANONICAL_STRINGS``. Unset variables keep the values of ``base``.
    """
    env = environ if environ is not None else os.environ
    values = (base or SignedUrlConfig()).to_dict()

    def get(name: str) -> Optional[str]:
        return env.get(ENV_PREFIX + name)

    for name, key in (
        ('HOME_URL', 'home_url'),
        ('DIGEST_ALGORITHM', 'digest_algorithm'),
        ('CANONICAL_ORDER', 'canonical_order'),
        ('SECRET_ENV_VAR', 'secret_env_var'),
        ('SECRET_ENCODING', 'secret_encoding'),
    ):
        value = get(name)
        if value is not None:
            values[key] = value

    options = get('DEFAULT_OPTIONS')
    if options is not None:
        values['default_options'] = [flag for flag in options.split(LIST_DELIMITER) if flag]

    trust = get('TRUST_PROXY_HEADERS')
    if trust is not None:
        values['trust_proxy_headers'] = _parse_bool('TRUST_PROXY_HEADERS', trust)

    level = get('LOG_LEVEL')
    if level is not None:
        values['logging']['level'] = level.upper()

    structured = get('LOG_STRUCTURED')
    if structured is not None:
        values['logging']['structured'] = _parse_bool('LOG_STRUCTURED', structured)

    canonical = get('LOG_CANONICAL_STRINGS')
    if canonical is not None:
        values['debug']['log_canonical_strings'] = _parse_bool('LOG_CANONICAL_STRINGS', canonical)

    return _parse_config_dict(values)


def load_default_config(environ: Optional[Mapping[str, str]] = None) -> SignedUrlConfig:
    """
    Load the default configuration.

    Uses the file named by ``SIGNED_URLS_CONFIG`` or ``config/signed-urls.json``
    when present, then applies environment overrides.
    """
    env = environ if environ is not None else os.environ

    path = env.get(ENV_PREFIX + "CONFIG")
    candidates = [Path(path)] if path else [Path("config/signed-urls.json")]

    base = None
    for candidate in candidates:
        if candidate.exists():
            base = load_config_from_file(candidate)
            break
    else:
        if path:
            raise ConfigurationError(f"Configuration file not found: {path}", "FILE_NOT_FOUND")

    return load_config_from_env(env, base)


def configure_logging(config: LoggingConfig) -> None:
    """Configure root logging from a LoggingConfig"""
    if config.structured:
        fmt = '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}'
    else:
        fmt = '%(asctime)s %(levelname)s %(name)s: %(message)s'

    logging.basicConfig(level=config.level.upper(), format=fmt)
