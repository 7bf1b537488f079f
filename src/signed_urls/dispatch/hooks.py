"""
Download dispatch hooks

Two hooks connect the signer and verifier to a storefront's download pipeline:

``DownloadUrlBuilder`` runs where the storefront would build its verbose
download URL and replaces the arguments with the compact signed form.

``DownloadRequestProcessor`` runs before a download is dispatched. When the
request carries the signed parameters it verifies the token and, only on
success, rewrites the dispatch arguments from the verified descriptor.
Expiration is left to the dispatcher, which compares ``expire`` against the
clock after this hook returns.
"""

import base64
import binascii
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from ..exceptions import FormatError, LookupMissError, PaymentLookupError, SignedUrlError
from ..signing.canonical import (
    as_pairs,
    decode_component,
    get_param,
    join_url,
    merge_params,
    parse_query,
    split_url,
)
from ..signing.descriptor import decode as decode_descriptor, pack as pack_descriptor
from ..signing.providers import ContextProvider
from ..signing.signer import UrlSigner
from ..signing.types import (
    OptionFlag,
    ParamsLike,
    SigningRequest,
    DESCRIPTOR_PARAM,
    LIST_DELIMITER,
    OPTIONS_PARAM,
    TOKEN_PARAM,
    TTL_PARAM,
)
from ..signing.utils import format_options
from ..verification.verifier import UrlVerifier
from .payments import PaymentStore, resolve_payment_id

logger = logging.getLogger(__name__)

# Parameters that mark a request as a signed download
SECURE_PARAMS = (DESCRIPTOR_PARAM, TTL_PARAM, TOKEN_PARAM)

ArgFilter = Callable[[Dict[str, str], int, Dict[str, Any]], Dict[str, str]]
RequestListener = Callable[[str, Dict[str, Any]], None]


class DownloadRequestStatus(str, Enum):
    """Outcome of the pre-dispatch hook"""
    PASSTHROUGH = "passthrough"
    VALID = "valid"
    INVALID = "invalid"


@dataclass
class ProcessedDownload:
    """
    Result of processing download arguments

    Attributes:
        args: Arguments to hand to the dispatcher
        status: Whether the request was signed, and if so whether it verified
        url: URL reconstructed for verification, if the request was signed
    """
    args: Dict[str, Any]
    status: DownloadRequestStatus
    url: Optional[str] = None

    @property
    def is_invalid(self) -> bool:
        return self.status == DownloadRequestStatus.INVALID


def decode_expire(expire: str) -> str:
    """
    Turn the storefront's ``expire`` argument into a ``ttl`` value.

    The storefront passes a URL-encoded base64 timestamp.

    Raises:
        FormatError: If the value is not valid base64 text
    """
    try:
        return base64.b64decode(decode_component(expire), validate=True).decode('utf-8')
    except (binascii.Error, UnicodeDecodeError) as e:
        raise FormatError(
            f"Invalid expire value: {e}",
            "INVALID_EXPIRE",
            {"expire": expire}
        )


class DownloadUrlBuilder:
    """URL-construction hook producing compact signed download arguments"""

    def __init__(
        self,
        signer: UrlSigner,
        payments: PaymentStore,
        home_url: str,
        default_options: Sequence[Union[OptionFlag, str]] = (),
        context_provider: Optional[ContextProvider] = None
    ):
        """
        Initialize the builder.

        Args:
            signer: Signer for the compact arguments
            payments: Payment store resolving purchase keys
            home_url: Site URL the arguments are attached to
            default_options: Option flags written to ``o`` on every URL
            context_provider: Request context for option bindings
        """
        self.signer = signer
        self.payments = payments
        self.home_url = home_url
        self.default_options = tuple(default_options)
        self.context_provider = context_provider
        self._arg_filters: List[ArgFilter] = []

    def add_arg_filter(self, arg_filter: ArgFilter) -> None:
        """
        Register a filter run on the compact arguments before signing.

        Filters receive ``(args, payment_id, original_args)`` and return the
        arguments to sign.
        """
        self._arg_filters.append(arg_filter)

    def build(
        self,
        args: Mapping[str, Any],
        context_provider: Optional[ContextProvider] = None
    ) -> Dict[str, Any]:
        """
        Replace verbose download arguments with the signed compact form.

        Expects ``download_key``, ``download`` and ``file`` and optionally
        ``expire``. Returns the arguments unchanged when there is no purchase
        key, the payment cannot be found, or signing fails.

        Args:
            args: Storefront download URL arguments
            context_provider: Request context overriding the builder default

        Returns:
            dict: ``eddfile``, ``ttl``, ``o`` and ``token``, or the original arguments
        """
        original = dict(args)

        purchase_key = original.get('download_key')
        if not purchase_key:
            return original

        try:
            payment_id = resolve_payment_id(self.payments, str(purchase_key))
        except LookupMissError:
            logger.info("No payment found for purchase key, leaving download URL unsigned")
            return original
        except PaymentLookupError as e:
            logger.warning(f"Payment lookup failed, leaving download URL unsigned: {e}")
            return original

        try:
            compact: Dict[str, str] = {
                DESCRIPTOR_PARAM: pack_descriptor(payment_id, original['download'], original['file'])
            }
            if original.get('expire'):
                compact[TTL_PARAM] = decode_expire(str(original['expire']))
        except KeyError as e:
            logger.warning(f"Download arguments missing {e}, leaving download URL unsigned")
            return original
        except FormatError as e:
            logger.warning(f"Invalid download arguments, leaving download URL unsigned: {e}")
            return original

        for arg_filter in self._arg_filters:
            compact = arg_filter(compact, payment_id, original)

        try:
            signed = self.signer.sign(
                SigningRequest(
                    base_url=self.home_url,
                    query_params=compact,
                    options=self.default_options
                ),
                context_provider or self.context_provider
            )
        except (SignedUrlError, ValueError) as e:
            logger.warning(f"Signing failed, leaving download URL unsigned: {e}")
            return original

        _, home_pairs = split_url(self.home_url)
        home_names = {name for name, _ in home_pairs}
        return {name: value for name, value in signed.params if name not in home_names}

    def build_url(
        self,
        args: Mapping[str, Any],
        context_provider: Optional[ContextProvider] = None
    ) -> str:
        """Return ``home_url`` with the built arguments attached."""
        base, home_pairs = split_url(self.home_url)
        built = self.build(args, context_provider)
        return join_url(base, merge_params(home_pairs, built))


class DownloadRequestProcessor:
    """Pre-dispatch hook verifying signed download requests"""

    def __init__(
        self,
        verifier: UrlVerifier,
        payments: PaymentStore,
        home_url: str,
        context_provider: Optional[ContextProvider] = None
    ):
        """
        Initialize the processor.

        Args:
            verifier: Verifier configured like the builder's signer
            payments: Payment store for e-mail and purchase key lookups
            home_url: Site URL the signed arguments were attached to
            context_provider: Request context for option bindings
        """
        self.verifier = verifier
        self.payments = payments
        self.home_url = home_url
        self.context_provider = context_provider
        self._invalid_listeners: List[RequestListener] = []
        self._valid_listeners: List[RequestListener] = []

    def on_invalid(self, listener: RequestListener) -> None:
        """Register a listener called with ``(url, args)`` for rejected requests."""
        self._invalid_listeners.append(listener)

    def on_valid(self, listener: RequestListener) -> None:
        """Register a listener called with ``(url, args)`` for verified requests."""
        self._valid_listeners.append(listener)

    def process(
        self,
        args: Mapping[str, Any],
        query: Union[str, ParamsLike],
        context_provider: Optional[ContextProvider] = None
    ) -> ProcessedDownload:
        """
        Verify a download request and rewrite its dispatch arguments.

        Args:
            args: Dispatch arguments the storefront collected
            query: Incoming query string or decoded pairs
            context_provider: Request context overriding the processor default

        Returns:
            ProcessedDownload: Arguments and outcome. Invalid requests keep
            their original arguments.
        """
        original = dict(args)
        pairs = parse_query(query) if isinstance(query, str) else as_pairs(query)

        names = [name for name, _ in pairs]
        if not all(name in names for name in SECURE_PARAMS):
            return ProcessedDownload(original, DownloadRequestStatus.PASSTHROUGH)

        base, home_pairs = split_url(self.home_url)
        url = join_url(base, merge_params(home_pairs, pairs))

        if len(names) != len(set(names)):
            logger.info("Rejected signed download request: duplicate query parameters")
            return self._reject(url, original)

        if not self.verifier.verify(url, context_provider or self.context_provider):
            return self._reject(url, original)

        try:
            descriptor = decode_descriptor(get_param(pairs, DESCRIPTOR_PARAM) or '', encoded=False)
        except FormatError as e:
            logger.info(f"Rejected signed download request: {e.error_code}")
            return self._reject(url, original)

        try:
            meta = self.payments.get_payment_meta(descriptor.payment_id)
        except PaymentLookupError as e:
            logger.warning(f"Payment lookup failed for verified download request: {e}")
            return self._reject(url, original)

        if meta is None:
            logger.warning(f"No payment metadata for payment {descriptor.payment_id}")

        rewritten = dict(original)
        rewritten.update({
            'download': descriptor.download_id,
            'email': meta.email if meta else '',
            'expire': get_param(pairs, TTL_PARAM),
            'file_key': descriptor.file_key,
            'key': meta.purchase_key if meta else '',
        })

        for listener in self._valid_listeners:
            listener(url, rewritten)

        return ProcessedDownload(rewritten, DownloadRequestStatus.VALID, url)

    def _reject(self, url: str, args: Dict[str, Any]) -> ProcessedDownload:
        for listener in self._invalid_listeners:
            listener(url, args)
        return ProcessedDownload(args, DownloadRequestStatus.INVALID, url)


def with_options(options: Sequence[Union[OptionFlag, str]]) -> ArgFilter:
    """
    Arg filter adding option flags to ``o`` for a single builder.

    Useful when only some URLs should be bound to the client.
    """
    value = format_options(options)

    def add_options(args: Dict[str, str], payment_id: int, original: Dict[str, Any]) -> Dict[str, str]:
        existing = args.get(OPTIONS_PARAM)
        args = dict(args)
        args[OPTIONS_PARAM] = f"{existing}{LIST_DELIMITER}{value}" if existing else value
        return args

    return add_options
