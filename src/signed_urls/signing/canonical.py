"""
Canonical string construction for signed URLs

This module turns a URL path and its query parameters into the deterministic
string that tokens are computed over, and provides the query-string helpers the
signer and verifier share so both sides serialize parameters identically.
"""

from typing import Iterable, Optional, Tuple
from urllib.parse import quote, unquote, urlsplit, urlunsplit, parse_qsl

from .types import (
    CanonicalOrder,
    ParamsLike,
    QueryPairs,
    SigningError,
    SigningErrorCodes,
    TOKEN_PARAM,
)


def encode_component(value: str) -> str:
    """
    Percent-encode a query name or value.

    Every character outside the RFC 3986 unreserved set is escaped, so a
    colon-packed value such as ``42:7:3`` becomes ``42%3A7%3A3``.

    Args:
        value: Raw (decoded) string

    Returns:
        str: Encoded string
    """
    return quote(value, safe='')


def as_pairs(params: Optional[ParamsLike]) -> QueryPairs:
    """
    Normalize a mapping or a sequence of pairs into a list of string pairs.

    Args:
        params: Dict or iterable of (name, value) tuples

    Returns:
        list: Ordered (name, value) pairs
    """
    if params is None:
        return []

    items: Iterable[Tuple[str, str]]
    if isinstance(params, dict):
        items = params.items()
    else:
        items = params

    return [(str(name), str(value)) for name, value in items]


def parse_query(query: str) -> QueryPairs:
    """
    Parse a raw query string into decoded pairs.

    Order and blank values are kept. A leading ``?`` is ignored.

    Args:
        query: Raw query string

    Returns:
        list: Decoded (name, value) pairs in wire order
    """
    if query.startswith('?'):
        query = query[1:]

    if not query:
        return []

    return parse_qsl(query, keep_blank_values=True)


def build_query(params: ParamsLike) -> str:
    """
    Serialize pairs into a query string (without the leading ``?``).

    Args:
        params: Decoded parameters

    Returns:
        str: Encoded query string
    """
    return '&'.join(
        f"{encode_component(name)}={encode_component(value)}"
        for name, value in as_pairs(params)
    )


def merge_params(base: ParamsLike, extra: Optional[ParamsLike]) -> QueryPairs:
    """
    Merge parameters the way a host URL builder adds query args.

    A name that already exists keeps its position and takes the new value;
    new names are appended in the order given. Duplicate names in ``base`` are
    collapsed to the last value.

    Args:
        base: Existing parameters
        extra: Parameters to add or replace

    Returns:
        list: Merged pairs
    """
    merged = {}
    for name, value in as_pairs(base):
        merged[name] = value
    for name, value in as_pairs(extra):
        merged[name] = value
    return list(merged.items())


def strip_param(params: ParamsLike, name: str) -> QueryPairs:
    """Return ``params`` without any pair named ``name``."""
    return [(key, value) for key, value in as_pairs(params) if key != name]


def strip_token(params: ParamsLike) -> QueryPairs:
    """Return ``params`` without any ``token`` pair."""
    return strip_param(params, TOKEN_PARAM)


def get_param(params: ParamsLike, name: str) -> Optional[str]:
    """
    Get the last value of a parameter.

    Returns:
        str or None: Value if the parameter is present
    """
    found = None
    for key, value in as_pairs(params):
        if key == name:
            found = value
    return found


def normalize_path(path: str) -> str:
    """Normalize an empty path to ``/``."""
    return path or '/'


def split_url(url: str) -> Tuple[str, QueryPairs]:
    """
    Split a URL into its query-less form and decoded query pairs.

    Args:
        url: Absolute or path-relative URL

    Returns:
        tuple: (url without query or fragment, decoded pairs)

    Raises:
        SigningError: If the URL is empty or cannot be parsed
    """
    if not url or not isinstance(url, str):
        raise SigningError(
            "URL cannot be empty",
            SigningErrorCodes.INVALID_URL,
            {"url": url}
        )

    try:
        parts = urlsplit(url)
    except ValueError as e:
        raise SigningError(
            f"Failed to parse URL: {e}",
            SigningErrorCodes.INVALID_URL,
            {"url": url, "original_error": str(e)}
        )

    base = urlunsplit((parts.scheme, parts.netloc, parts.path, '', ''))
    return base, parse_query(parts.query)


def url_path(url: str) -> str:
    """
    Extract the normalized path of a URL.

    Raises:
        SigningError: If the URL cannot be parsed
    """
    try:
        return normalize_path(urlsplit(url).path)
    except ValueError as e:
        raise SigningError(
            f"Failed to parse URL: {e}",
            SigningErrorCodes.INVALID_URL,
            {"url": url, "original_error": str(e)}
        )


def join_url(base: str, params: ParamsLike) -> str:
    """
    Attach parameters to a query-less URL.

    Args:
        base: URL without query string
        params: Decoded parameters

    Returns:
        str: URL with encoded query string, or ``base`` when there are no params
    """
    query = build_query(params)
    if not query:
        return base
    return f"{base}?{query}"


def canonicalize(
    path: str,
    params: ParamsLike,
    order: CanonicalOrder = CanonicalOrder.SORTED
) -> str:
    """
    Build the canonical string a token is computed over.

    Any ``token`` parameter is dropped first, so canonicalizing an already
    signed URL gives the same result as canonicalizing the unsigned one.

    Args:
        path: URL path
        params: Decoded parameters
        order: ``SORTED`` sorts pairs by name then value; ``PRESERVE`` keeps
            the order supplied by the caller

    Returns:
        str: ``path + "?" + query_string``

    Raises:
        SigningError: If the ordering mode is unknown
    """
    pairs = strip_token(params)

    if order == CanonicalOrder.SORTED:
        pairs = sorted(pairs)
    elif order != CanonicalOrder.PRESERVE:
        raise SigningError(
            f"Unsupported canonical order: {order}",
            SigningErrorCodes.CANONICAL_STRING_FAILED,
            {"order": str(order)}
        )

    return f"{normalize_path(path)}?{build_query(pairs)}"


def decode_component(value: str) -> str:
    """Percent-decode a single value."""
    return unquote(value)

