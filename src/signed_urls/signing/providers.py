"""
Secret and request-context providers

The signer and verifier never read globals. The shared secret comes from a
``SecretProvider`` and the requesting client's address and user agent come
from a ``ContextProvider``; both are passed in explicitly.
"""

import base64
import binascii
import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol, Union, runtime_checkable

import keyring
from keyring.errors import KeyringError

from ..exceptions import SecretUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_SECRET_ENV_VAR = "SIGNED_URLS_SECRET"
KEYRING_SERVICE_NAME = "signed-urls"
SECRET_ENCODINGS = ("raw", "base64", "hex")


@runtime_checkable
class SecretProvider(Protocol):
    """Protocol for shared-secret sources"""

    def get_secret(self) -> bytes:
        """Return the current shared secret"""
        ...


@runtime_checkable
class ContextProvider(Protocol):
    """Protocol for request-context accessors"""

    def current_client_address(self) -> Optional[str]:
        """Return the requesting client's network address"""
        ...

    def current_user_agent(self) -> Optional[str]:
        """Return the requesting client's raw user-agent string"""
        ...


def decode_secret(value: str, encoding: str = "raw") -> bytes:
    """
    Decode a secret read from text storage.

    Args:
        value: Stored text
        encoding: One of ``raw``, ``base64`` or ``hex``

    Returns:
        bytes: Secret bytes

    Raises:
        SecretUnavailableError: If the value is empty or cannot be decoded
    """
    if not value:
        raise SecretUnavailableError("Secret is empty", "EMPTY_SECRET")

    try:
        if encoding == "raw":
            return value.encode('utf-8')
        if encoding == "base64":
            return base64.b64decode(value, validate=True)
        if encoding == "hex":
            return bytes.fromhex(value)
    except (binascii.Error, ValueError) as e:
        raise SecretUnavailableError(
            f"Secret is not valid {encoding}: {e}",
            "INVALID_SECRET_ENCODING",
            {"encoding": encoding}
        )

    raise SecretUnavailableError(
        f"Unknown secret encoding: {encoding}",
        "INVALID_SECRET_ENCODING",
        {"encoding": encoding, "supported": list(SECRET_ENCODINGS)}
    )


class StaticSecretProvider:
    """Secret provider holding a fixed value, mainly for tests and tooling"""

    def __init__(self, secret: Union[str, bytes]):
        if isinstance(secret, str):
            secret = secret.encode('utf-8')
        if not secret:
            raise SecretUnavailableError("Secret is empty", "EMPTY_SECRET")
        self._secret = bytes(secret)

    def get_secret(self) -> bytes:
        return self._secret

    def __repr__(self) -> str:
        return "StaticSecretProvider(<redacted>)"


class EnvironmentSecretProvider:
    """
    Secret provider reading an environment variable on every call.

    Reading per call means a rotated secret is picked up without restarting,
    and every token issued under the old value stops verifying.
    """

    def __init__(
        self,
        variable: str = DEFAULT_SECRET_ENV_VAR,
        encoding: str = "raw",
        environ: Optional[Mapping[str, str]] = None
    ):
        if encoding not in SECRET_ENCODINGS:
            raise SecretUnavailableError(
                f"Unknown secret encoding: {encoding}",
                "INVALID_SECRET_ENCODING",
                {"encoding": encoding}
            )
        self.variable = variable
        self.encoding = encoding
        self._environ = environ

    def get_secret(self) -> bytes:
        environ = self._environ if self._environ is not None else os.environ
        value = environ.get(self.variable)
        if value is None:
            raise SecretUnavailableError(
                f"Environment variable {self.variable} is not set",
                "SECRET_NOT_SET",
                {"variable": self.variable}
            )
        return decode_secret(value, self.encoding)


class KeyringSecretProvider:
    """Secret provider backed by the OS keychain through ``keyring``"""

    def __init__(
        self,
        username: str,
        service: str = KEYRING_SERVICE_NAME,
        encoding: str = "base64"
    ):
        self.username = username
        self.service = service
        self.encoding = encoding

    def get_secret(self) -> bytes:
        try:
            value = keyring.get_password(self.service, self.username)
        except KeyringError as e:
            logger.warning(f"Keyring lookup failed for {self.service}/{self.username}: {e}")
            raise SecretUnavailableError(
                f"Failed to read secret from keyring: {e}",
                "KEYRING_ERROR",
                {"service": self.service, "username": self.username}
            )

        if value is None:
            raise SecretUnavailableError(
                f"No secret stored in keyring for {self.service}/{self.username}",
                "SECRET_NOT_SET",
                {"service": self.service, "username": self.username}
            )

        return decode_secret(value, self.encoding)

    def store_secret(self, secret: bytes) -> None:
        """
        Store a secret in the keychain.

        Replacing the stored value rotates the secret.
        """
        if self.encoding == "base64":
            value = base64.b64encode(secret).decode('ascii')
        elif self.encoding == "hex":
            value = secret.hex()
        else:
            value = secret.decode('utf-8')

        try:
            keyring.set_password(self.service, self.username, value)
        except KeyringError as e:
            raise SecretUnavailableError(
                f"Failed to store secret in keyring: {e}",
                "KEYRING_ERROR",
                {"service": self.service, "username": self.username}
            )


@dataclass(frozen=True)
class RequestContext:
    """
    Static request context

    Attributes:
        client_address: Requesting client's network address
        user_agent: Raw User-Agent header value
    """
    client_address: Optional[str] = None
    user_agent: Optional[str] = None

    def current_client_address(self) -> Optional[str]:
        return self.client_address

    def current_user_agent(self) -> Optional[str]:
        return self.user_agent

    @classmethod
    def from_wsgi_environ(
        cls,
        environ: Mapping[str, Any],
        trust_proxy_headers: bool = False
    ) -> 'RequestContext':
        """
        Build a context from a WSGI environ.

        Args:
            environ: WSGI environ mapping
            trust_proxy_headers: Prefer ``Client-IP`` and the first
                ``X-Forwarded-For`` hop over ``REMOTE_ADDR``. Only enable this
                behind a proxy that overwrites those headers.

        Returns:
            RequestContext: Context for the request
        """
        address = None

        if trust_proxy_headers:
            client_ip = environ.get('HTTP_CLIENT_IP')
            forwarded = environ.get('HTTP_X_FORWARDED_FOR')
            if client_ip:
                address = client_ip.strip()
            elif forwarded:
                address = forwarded.split(',')[0].strip()

        if not address:
            address = environ.get('REMOTE_ADDR') or None

        return cls(
            client_address=address,
            user_agent=environ.get('HTTP_USER_AGENT')
        )
