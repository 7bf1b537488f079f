"""
Download descriptor codec

Packs (payment ID, download ID, file key) into the compact ``eddfile`` value
``payment:download:file`` and back.
"""

from dataclasses import dataclass
from typing import Union

from ..exceptions import FormatError
from .canonical import decode_component, encode_component
from .types import LIST_DELIMITER


@dataclass(frozen=True)
class DownloadDescriptor:
    """
    Identifiers of one purchased file

    Attributes:
        payment_id: Payment record ID
        download_id: Download (product) ID
        file_key: Key of the file within the download
    """
    payment_id: int
    download_id: int
    file_key: str

    def pack(self) -> str:
        """Return the raw ``payment:download:file`` form."""
        return pack(self.payment_id, self.download_id, self.file_key)

    def encode(self) -> str:
        """Return the URL-encoded form."""
        return encode(self.payment_id, self.download_id, self.file_key)


def _check_id(value: Union[int, str], field_name: str) -> int:
    if isinstance(value, bool):
        raise FormatError(f"{field_name} must be an integer", "INVALID_DESCRIPTOR", {"field": field_name})

    if isinstance(value, str):
        if not (value.isascii() and value.isdigit()):
            raise FormatError(
                f"{field_name} must be a non-negative integer, got {value!r}",
                "INVALID_DESCRIPTOR",
                {"field": field_name, "value": value}
            )
        value = int(value)

    if not isinstance(value, int) or value < 0:
        raise FormatError(
            f"{field_name} must be a non-negative integer, got {value!r}",
            "INVALID_DESCRIPTOR",
            {"field": field_name, "value": repr(value)}
        )

    return value


def _check_file_key(file_key: Union[int, str]) -> str:
    if isinstance(file_key, bool):
        raise FormatError("file_key must be a string or integer", "INVALID_DESCRIPTOR", {"field": "file_key"})

    file_key = str(file_key)
    if not file_key or LIST_DELIMITER in file_key:
        raise FormatError(
            f"file_key must be non-empty and cannot contain '{LIST_DELIMITER}'",
            "INVALID_DESCRIPTOR",
            {"field": "file_key", "value": file_key}
        )
    return file_key


def pack(payment_id: int, download_id: int, file_key: Union[int, str]) -> str:
    """
    Pack identifiers into ``payment:download:file``.

    Raises:
        FormatError: If an ID is negative or the file key is empty or contains ``:``
    """
    return LIST_DELIMITER.join([
        str(_check_id(payment_id, "payment_id")),
        str(_check_id(download_id, "download_id")),
        _check_file_key(file_key),
    ])


def encode(payment_id: int, download_id: int, file_key: Union[int, str]) -> str:
    """
    Pack and URL-encode identifiers, e.g. ``42%3A7%3A3``.

    Raises:
        FormatError: If the identifiers are invalid
    """
    return encode_component(pack(payment_id, download_id, file_key))


def decode(value: str, encoded: bool = True) -> DownloadDescriptor:
    """
    Decode an ``eddfile`` value, URL-encoded or raw.

    Args:
        value: Descriptor string
        encoded: Percent-decode ``value`` before splitting. Pass False for
            values already decoded by a query parser, so a file key such as
            ``a%41`` is not decoded twice.

    Returns:
        DownloadDescriptor: Decoded identifiers

    Raises:
        FormatError: If the value does not split into exactly three valid parts
    """
    if not isinstance(value, str) or not value:
        raise FormatError("Descriptor is empty", "INVALID_DESCRIPTOR")

    raw = decode_component(value) if encoded else value
    parts = raw.split(LIST_DELIMITER)
    if len(parts) != 3:
        raise FormatError(
            f"Descriptor must have 3 parts, got {len(parts)}",
            "INVALID_DESCRIPTOR",
            {"value": value}
        )

    return DownloadDescriptor(
        payment_id=_check_id(parts[0], "payment_id"),
        download_id=_check_id(parts[1], "download_id"),
        file_key=_check_file_key(parts[2]),
    )
