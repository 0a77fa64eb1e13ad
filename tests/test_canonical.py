"""
Test suite for canonical request components

Covers path, query string and header canonicalization and body hashing.
"""

import random

import pytest

from payapi_sdk.signing import (
    CanonicalBuilder,
    HeaderMap,
    canonicalize_headers,
    canonicalize_query,
    canonicalize_uri,
    hash_then_hex_encode,
    signed_header_names,
)

EMPTY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


class TestCanonicalizeUri:
    """Test path canonicalization"""

    def test_empty_path(self):
        """Empty path encodes to a single slash"""
        assert canonicalize_uri("") == "/"
        assert canonicalize_uri(None) == "/"

    def test_plain_path_unchanged(self):
        assert canonicalize_uri("/sandbox/v2/checkoutSessions") == "/sandbox/v2/checkoutSessions"

    def test_leading_slash_added(self):
        assert canonicalize_uri("v2/charges") == "/v2/charges"

    def test_reserved_characters_encoded(self):
        """Everything except unreserved characters and separators is encoded"""
        assert canonicalize_uri("/v2/check outs/ä") == "/v2/check%20outs/%C3%A4"
        assert canonicalize_uri("/a*b+c") == "/a%2Ab%2Bc"
        assert canonicalize_uri("/keep-this_.~") == "/keep-this_.~"

    def test_percent_sign_encoded(self):
        assert canonicalize_uri("/a%2Fb") == "/a%252Fb"


class TestCanonicalizeQuery:
    """Test query string canonicalization"""

    def test_no_parameters_is_empty_string(self):
        """Absent parameters yield an empty string, never None"""
        assert canonicalize_query(None) == ""
        assert canonicalize_query([]) == ""
        assert canonicalize_query({}) == ""

    def test_sorted_by_key_then_value(self):
        params = [("b", "2"), ("a", "x y"), ("a", "1")]
        assert canonicalize_query(params) == "a=1&a=x%20y&b=2"

    def test_order_independent(self):
        """Re-ordering the input yields an identical canonical string"""
        params = [("limit", "10"), ("b", "2"), ("a", "3"), ("a", "1"), ("z", ""), ("A", "0")]
        expected = canonicalize_query(params)

        rng = random.Random(7)
        for _ in range(20):
            shuffled = params[:]
            rng.shuffle(shuffled)
            assert canonicalize_query(shuffled) == expected

    def test_byte_order_comparison(self):
        """Upper-case letters sort before lower-case ones"""
        assert canonicalize_query([("a", "1"), ("B", "2")]) == "B=2&a=1"

    def test_keys_and_values_encoded_independently(self):
        assert canonicalize_query([("a/b", "c=d&e"), ("star", "*")]) == "a%2Fb=c%3Dd%26e&star=%2A"

    def test_mapping_with_list_values(self):
        assert canonicalize_query({"b": "1", "a": ["2", "1"]}) == "a=1&a=2&b=1"

    def test_blank_value_kept(self):
        assert canonicalize_query([("flag", "")]) == "flag="


class TestCanonicalizeHeaders:
    """Test header canonicalization"""

    def setup_method(self):
        self.headers = {
            "X-Amz-Pay-Region": "  eu  ",
            "Accept": "application/json",
            "x-custom": "a   b\tc",
        }

    def test_header_block(self):
        assert canonicalize_headers(self.headers) == (
            "accept:application/json\n"
            "x-amz-pay-region:eu\n"
            "x-custom:a b c\n"
        )

    def test_signed_header_names(self):
        assert signed_header_names(self.headers) == "accept;x-amz-pay-region;x-custom"

    def test_names_agree_with_header_block(self):
        """signed_header_names lists exactly the names in the header block, in order"""
        headers = HeaderMap([
            ("x-amz-pay-region", "na"),
            ("Content-Type", "application/json"),
            ("x-amz-pay-idempotency-key", "abc"),
            ("accept", "application/json"),
            ("X-Amz-Pay-Date", "20231114T221320Z"),
        ])
        block_names = [line.split(":", 1)[0] for line in canonicalize_headers(headers).splitlines()]
        assert signed_header_names(headers).split(";") == block_names

    def test_empty_headers(self):
        assert canonicalize_headers({}) == ""
        assert signed_header_names({}) == ""


class TestHashThenHexEncode:
    """Test body hashing"""

    def test_empty_and_absent_body_hash_identically(self):
        assert hash_then_hex_encode("") == EMPTY_SHA256
        assert hash_then_hex_encode(None) == EMPTY_SHA256
        assert hash_then_hex_encode(b"") == EMPTY_SHA256

    def test_known_digest(self):
        assert hash_then_hex_encode("abc") == (
            "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
        )

    def test_text_is_utf8_encoded(self):
        assert hash_then_hex_encode("ä") == hash_then_hex_encode("ä".encode("utf-8"))

    def test_lowercase_hex(self):
        digest = hash_then_hex_encode('{"amount": "10.00"}')
        assert digest == digest.lower()
        assert len(digest) == 64


class TestCanonicalBuilder:
    """The builder delegates to the module functions"""

    @pytest.mark.parametrize("method,argument", [
        ("canonicalize_uri", "/a b"),
        ("canonicalize_query", [("b", "1"), ("a", "2")]),
        ("canonicalize_headers", {"B": "1", "a": "2"}),
        ("signed_header_names", {"B": "1", "a": "2"}),
        ("hash_then_hex_encode", "payload"),
    ])
    def test_delegation(self, method, argument):
        module_functions = {
            "canonicalize_uri": canonicalize_uri,
            "canonicalize_query": canonicalize_query,
            "canonicalize_headers": canonicalize_headers,
            "signed_header_names": signed_header_names,
            "hash_then_hex_encode": hash_then_hex_encode,
        }
        builder = CanonicalBuilder()
        assert getattr(builder, method)(argument) == module_functions[method](argument)
