"""
Payment store collaborators

The dispatch hooks resolve purchase keys to payment IDs and payment IDs to the
customer e-mail and purchase key through a ``PaymentStore``. This module
provides the interface, an in-memory store and a JSON-over-HTTP store.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, runtime_checkable
from urllib.parse import urljoin, urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..exceptions import ConfigurationError, LookupMissError, PaymentLookupError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentMeta:
    """Payment metadata needed to release a download."""
    payment_id: int
    email: str
    purchase_key: str


@runtime_checkable
class PaymentStore(Protocol):
    """Protocol for payment lookups"""

    def find_payment_id(self, purchase_key: str) -> Optional[int]:
        """Return the payment ID for a purchase key, or None"""
        ...

    def get_payment_meta(self, payment_id: int) -> Optional[PaymentMeta]:
        """Return e-mail and purchase key for a payment, or None"""
        ...


class InMemoryPaymentStore:
    """Payment store backed by a dict, for tests and small deployments"""

    def __init__(self):
        self._payments: Dict[int, PaymentMeta] = {}

    def add_payment(self, payment_id: int, email: str, purchase_key: str) -> PaymentMeta:
        meta = PaymentMeta(payment_id=payment_id, email=email, purchase_key=purchase_key)
        self._payments[payment_id] = meta
        return meta

    def find_payment_id(self, purchase_key: str) -> Optional[int]:
        for payment_id, meta in self._payments.items():
            if meta.purchase_key == purchase_key:
                return payment_id
        return None

    def get_payment_meta(self, payment_id: int) -> Optional[PaymentMeta]:
        return self._payments.get(payment_id)



def resolve_payment_id(payments: PaymentStore, purchase_key: str) -> int:
    """
    Look up the payment for a purchase key, treating a miss as an error.

    Raises:
        LookupMissError: If no payment matches the purchase key
        PaymentLookupError: If the store cannot be reached
    """
    payment_id = payments.find_payment_id(purchase_key)
    if payment_id is None:
        raise LookupMissError("No payment found for purchase key", "PAYMENT_NOT_FOUND")
    return payment_id


@dataclass
class PaymentServiceConfig:
    """Configuration for the HTTP payment store."""
    base_url: str
    api_key: Optional[str] = None
    timeout: float = 10.0
    verify_ssl: bool = True
    retry_attempts: int = 3
    retry_backoff_factor: float = 0.3

    def __post_init__(self):
        """Validate payment service configuration."""
        if not self.base_url:
            raise ConfigurationError("Payment service base_url cannot be empty")

        if not self.base_url.endswith('/'):
            self.base_url += '/'

        parsed = urlparse(self.base_url)
        if not parsed.scheme or not parsed.netloc:
            raise ConfigurationError(f"Invalid payment service URL format: {self.base_url}")

        if self.timeout <= 0:
            raise ConfigurationError("Timeout must be positive")

        if self.retry_attempts < 0:
            raise ConfigurationError("Retry attempts must be non-negative")


class HttpPaymentStore:
    """
    Payment store querying a storefront's JSON API.

    Endpoints:
        ``GET payments?purchase_key=<key>`` returns ``{"payment_id": <int>}``
        ``GET payments/<id>`` returns ``{"id", "email", "purchase_key"}``

    A 404 from either endpoint is a lookup miss and yields None.
    """

    def __init__(self, config: PaymentServiceConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or self._create_session()
        logger.info(f"Initialized payment store client for: {config.base_url}")

    def _create_session(self) -> requests.Session:
        """Create HTTP session with retry logic."""
        session = requests.Session()

        retry_strategy = Retry(
            total=self.config.retry_attempts,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"],
            backoff_factor=self.config.retry_backoff_factor,
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update({
            'Accept': 'application/json',
            'User-Agent': 'signed-urls/0.1.0',
        })
        if self.config.api_key:
            session.headers['Authorization'] = f"Bearer {self.config.api_key}"

        return session

    def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """GET an endpoint; None on 404."""
        url = urljoin(self.config.base_url, endpoint)

        try:
            response = self.session.get(
                url,
                params=params,
                timeout=self.config.timeout,
                verify=self.config.verify_ssl
            )
        except requests.exceptions.RequestException as e:
            logger.warning(f"Payment store request to {url} failed: {e}")
            raise PaymentLookupError(
                f"Payment store request failed: {e}",
                "NETWORK_ERROR",
                details={"url": url}
            )

        if response.status_code == 404:
            return None

        if not response.ok:
            raise PaymentLookupError(
                f"Payment store returned HTTP {response.status_code}",
                "HTTP_ERROR",
                http_status=response.status_code,
                details={"url": url}
            )

        try:
            data = response.json()
        except ValueError as e:
            raise PaymentLookupError(
                f"Payment store returned invalid JSON: {e}",
                "INVALID_RESPONSE",
                http_status=response.status_code,
                details={"url": url}
            )

        if not isinstance(data, dict):
            raise PaymentLookupError(
                "Payment store response must be a JSON object",
                "INVALID_RESPONSE",
                http_status=response.status_code,
                details={"url": url}
            )

        return data

    def find_payment_id(self, purchase_key: str) -> Optional[int]:
        data = self._get('payments', params={'purchase_key': purchase_key})
        if not data or data.get('payment_id') is None:
            return None

        try:
            return int(data['payment_id'])
        except (TypeError, ValueError):
            raise PaymentLookupError(
                f"Invalid payment_id in response: {data.get('payment_id')!r}",
                "INVALID_RESPONSE"
            )

    def get_payment_meta(self, payment_id: int) -> Optional[PaymentMeta]:
        data = self._get(f'payments/{int(payment_id)}')
        if not data:
            return None

        return PaymentMeta(
            payment_id=int(payment_id),
            email=str(data.get('email') or ''),
            purchase_key=str(data.get('purchase_key') or ''),
        )

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> 'HttpPaymentStore':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
