"""
Unit Tests for Request Signing

Covers the canonical string (insertion order, form-urlencoding), the HMAC
signature against Binance's documented example, and the checks done before
signing.

Run with:
    pytest tests/unit/test_signer.py -v
"""

import hashlib
import hmac

import pytest

from exchanges.binance.exceptions import ValidationError
from exchanges.binance.signer import RequestSigner

# Example key pair and request from the Binance API documentation
DOC_SECRET = "NhqPtmdSJYdKjVHjA7PZj4Mge3R5YNiP1e3UZjInClVN65XAbvqqM6A7H5fATj0j"
DOC_PARAMS = [
    ("symbol", "LTCBTC"),
    ("side", "BUY"),
    ("type", "LIMIT"),
    ("timeInForce", "GTC"),
    ("quantity", "1"),
    ("price", "0.1"),
    ("recvWindow", "5000"),
    ("timestamp", "1499827319559"),
]
DOC_SIGNATURE = "c8db56825ae71d6d79447849e617115f4a920fa2acdcab2b053c4b2838bd6b71"


class TestCanonicalString:
    """Test serialization of the signed payload"""

    def test_keeps_insertion_order(self):
        """Verify parameters are never sorted"""
        params = [("symbol", "ETHBTC"), ("side", "BUY"), ("timestamp", 1000), ("recvWindow", 5000)]
        assert RequestSigner.canonical_string(params) == "symbol=ETHBTC&side=BUY&timestamp=1000&recvWindow=5000"

    def test_form_urlencodes_values(self):
        """Verify spaces and reserved characters are encoded"""
        params = [("note", "a b"), ("pair", "x&y=z")]
        assert RequestSigner.canonical_string(params) == "note=a+b&pair=x%26y%3Dz"

    def test_empty_params(self):
        """Verify an empty parameter list gives an empty string"""
        assert RequestSigner.canonical_string([]) == ""


class TestSignature:
    """Test HMAC-SHA256 signatures"""

    def test_documented_example(self):
        """Verify the signature matches the exchange's documented example"""
        assert RequestSigner(DOC_SECRET).sign(DOC_PARAMS) == DOC_SIGNATURE

    def test_signature_is_lowercase_hex(self):
        """Verify the digest is 64 lowercase hex characters"""
        signature = RequestSigner("secret").sign([("timestamp", 1), ("recvWindow", 2)])
        assert len(signature) == 64
        assert signature == signature.lower()
        int(signature, 16)

    def test_matches_reference_hmac(self):
        """Verify signature equals HMAC-SHA256 of the canonical string"""
        params = [("symbol", "ETHBTC"), ("side", "BUY"), ("timestamp", 1000), ("recvWindow", 5000)]
        expected = hmac.new(
            b"secret",
            b"symbol=ETHBTC&side=BUY&timestamp=1000&recvWindow=5000",
            hashlib.sha256,
        ).hexdigest()
        assert RequestSigner("secret").sign(params) == expected

    def test_deterministic(self):
        """Verify the same input always gives the same signature"""
        signer = RequestSigner("secret")
        params = [("timestamp", 1000), ("recvWindow", 5000)]
        assert signer.sign(params) == signer.sign(list(params))

    def test_order_changes_signature(self):
        """Verify reordering parameters changes the signature"""
        signer = RequestSigner("secret")
        first = signer.sign([("timestamp", 1000), ("recvWindow", 5000)])
        second = signer.sign([("recvWindow", 5000), ("timestamp", 1000)])
        assert first != second

    def test_signed_query_appends_signature_last(self):
        """Verify the signature is the final query parameter"""
        query = RequestSigner(DOC_SECRET).signed_query(DOC_PARAMS)
        assert query.startswith("symbol=LTCBTC&side=BUY")
        assert query.endswith(f"&signature={DOC_SIGNATURE}")


class TestSigningPreconditions:
    """Test checks done before a request is signed"""

    def test_missing_timestamp(self):
        """Verify signing without timestamp is rejected"""
        with pytest.raises(ValidationError, match="timestamp"):
            RequestSigner("secret").sign([("recvWindow", 5000)])

    def test_missing_recv_window(self):
        """Verify signing without recvWindow is rejected"""
        with pytest.raises(ValidationError, match="recvWindow"):
            RequestSigner("secret").sign([("timestamp", 1000)])

    def test_already_signed(self):
        """Verify a request carrying a signature is not signed again"""
        params = [("timestamp", 1000), ("recvWindow", 5000), ("signature", "abc")]
        with pytest.raises(ValidationError):
            RequestSigner("secret").sign(params)

    def test_empty_secret(self):
        """Verify a signer cannot be built without a secret"""
        with pytest.raises(ValidationError):
            RequestSigner("")

    def test_repr_hides_secret(self):
        """Verify the secret never appears in repr"""
        assert "super-secret" not in repr(RequestSigner("super-secret"))
