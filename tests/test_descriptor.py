"""
Test suite for the download descriptor codec
"""

import pytest

from signed_urls.exceptions import FormatError, MalformedInputError
from signed_urls.signing import (
    DownloadDescriptor,
    decode_descriptor,
    encode_descriptor,
    pack_descriptor,
)


class TestDescriptorEncoding:
    """Test packing and encoding"""

    def test_pack(self):
        """Test raw packing"""
        assert pack_descriptor(42, 7, 3) == "42:7:3"
        assert pack_descriptor(0, 0, "main") == "0:0:main"

    def test_encode(self):
        """Test URL encoding"""
        assert encode_descriptor(42, 7, 3) == "42%3A7%3A3"

    def test_numeric_strings_accepted(self):
        """Test IDs given as digit strings"""
        assert pack_descriptor("42", "7", "3") == "42:7:3"

    def test_invalid_values(self):
        """Test invalid identifiers are rejected"""
        with pytest.raises(FormatError):
            pack_descriptor(-1, 7, 3)

        with pytest.raises(FormatError):
            pack_descriptor(42, "x", 3)

        with pytest.raises(FormatError):
            pack_descriptor(True, 7, 3)

        with pytest.raises(FormatError):
            pack_descriptor(42, 7, "")

        with pytest.raises(FormatError):
            pack_descriptor(42, 7, "a:b")

    def test_dataclass_helpers(self):
        """Test DownloadDescriptor pack and encode"""
        descriptor = DownloadDescriptor(42, 7, "3")
        assert descriptor.pack() == "42:7:3"
        assert descriptor.encode() == "42%3A7%3A3"


class TestDescriptorDecoding:
    """Test decoding"""

    def test_decode_encoded(self):
        """Test decoding the URL-encoded form"""
        assert decode_descriptor("42%3A7%3A3") == DownloadDescriptor(42, 7, "3")

    def test_decode_raw(self):
        """Test decoding the raw form"""
        descriptor = decode_descriptor("42:7:3")
        assert descriptor.payment_id == 42
        assert descriptor.download_id == 7
        assert descriptor.file_key == "3"

    @pytest.mark.parametrize("value", [
        "",
        "42",
        "42:7",
        "42:7:3:9",
        "42%3A7",
        "x:7:3",
        "42:-7:3",
        "42:7:",
        "4²:7:3",
    ])
    def test_decode_invalid(self, value):
        """Test malformed descriptors raise FormatError"""
        with pytest.raises(FormatError) as exc_info:
            decode_descriptor(value)
        assert exc_info.value.error_code == "INVALID_DESCRIPTOR"

    def test_decode_non_string(self):
        """Test non-string input"""
        with pytest.raises(FormatError):
            decode_descriptor(None)

    def test_format_error_is_malformed_input(self):
        """Test FormatError belongs to the malformed-input family"""
        with pytest.raises(MalformedInputError):
            decode_descriptor("bad")

    @pytest.mark.parametrize("triple", [(42, 7, "3"), (0, 1, "file-name"), (123456, 99, "a b")])
    def test_round_trip(self, triple):
        """Test encode then decode returns the inputs"""
        assert decode_descriptor(encode_descriptor(*triple)) == DownloadDescriptor(*triple)

    def test_decode_already_decoded(self):
        """Test decoding a value a query parser has already decoded"""
        assert decode_descriptor("42:7:a%41", encoded=False) == DownloadDescriptor(42, 7, "a%41")
        assert decode_descriptor("42:7:a%3Ab", encoded=False).file_key == "a%3Ab"

        with pytest.raises(FormatError):
            decode_descriptor("42%3A7%3A3", encoded=False)
