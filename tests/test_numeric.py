"""Tests for numeric QR decoding and token splitting."""

import pytest

from shc_decoder.errors import MalformedEncoding, MalformedToken
from shc_decoder.numeric import decode_numeric, strip_scanned_text
from shc_decoder.token import CompactToken, split_token


class TestDecodeNumeric:
    """Tests for digit-pair decoding."""

    def test_known_fixture(self):
        """Test decoding a precomputed digit string."""
        assert decode_numeric("5676290152535401005012") == "eyJ.abc.-_9"

    def test_shc_prefix_is_stripped(self):
        """Test that the shc:/ scheme prefix is accepted."""
        assert decode_numeric("shc:/5676290152535401005012") == "eyJ.abc.-_9"

    def test_whitespace_and_control_bytes_ignored(self):
        """Test that whitespace and control characters are excluded."""
        assert decode_numeric(" 56 76 29\n01 52 53 54 01 00 50 12\x00") == "eyJ.abc.-_9"

    def test_deterministic(self):
        """Test that identical input yields identical tokens."""
        scanned = "shc:/5676290152535401005012"
        assert decode_numeric(scanned) == decode_numeric(scanned)

    def test_round_trip_with_minted_token(self, claims_dict, mint, to_numeric):
        """Test decoding a numeric encoding of a real token."""
        token = mint(claims_dict)
        assert decode_numeric(to_numeric(token)) == token

    def test_odd_length(self):
        """Test that odd length is rejected, not truncated."""
        with pytest.raises(MalformedEncoding, match="odd length"):
            decode_numeric("56762")

    def test_non_digit(self):
        """Test that non-digit characters are rejected."""
        with pytest.raises(MalformedEncoding, match="Non-digit"):
            decode_numeric("5676a9")

    def test_empty(self):
        with pytest.raises(MalformedEncoding):
            decode_numeric("shc:/")

    @pytest.mark.parametrize("pair", ["99", "02", "78", "14"])
    def test_pair_outside_alphabet(self, pair):
        """Test pairs decoding to characters outside base64url plus '.'."""
        with pytest.raises(MalformedEncoding, match="outside the token alphabet"):
            decode_numeric("5676" + pair)

    def test_strip_scanned_text(self):
        assert strip_scanned_text("SHC:/0102 ") == "0102"


class TestSplitToken:
    """Tests for compact token splitting."""

    def test_split(self):
        token = split_token("aaa.bbb.ccc")
        assert token == CompactToken(header="aaa", payload="bbb", signature="ccc")

    def test_rejoin_reproduces_token(self, claims_dict, mint):
        """Test that splitting then rejoining is lossless."""
        text = mint(claims_dict)
        token = split_token(text)
        assert str(token) == text
        assert ".".join([token.header, token.payload, token.signature]) == text

    def test_signing_input(self):
        assert split_token("aaa.bbb.ccc").signing_input == b"aaa.bbb"

    @pytest.mark.parametrize("text", ["aaa.bbb", "aaa", "a.b.c.d", ""])
    def test_wrong_segment_count(self, text):
        with pytest.raises(MalformedToken, match="exactly three segments"):
            split_token(text)

    def test_token_is_immutable(self):
        token = split_token("aaa.bbb.ccc")
        with pytest.raises(AttributeError):
            token.header = "xxx"
