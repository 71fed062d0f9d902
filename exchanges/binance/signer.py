"""
Request Signing for SIGNED Endpoints

Binance authenticates SIGNED requests with an HMAC-SHA256 signature computed
over the exact query string the server will see.

Canonical string:
    - parameters in insertion order (never sorted)
    - `key=value` pairs joined with `&`
    - keys and values form-urlencoded (space -> `+`, reserved chars -> %XX)

Signature:
    hex(HMAC_SHA256(key=secret, msg=canonical_string)), lowercase, sent as the
    final `signature` parameter.

The signer is a pure function of (secret, parameters): no state, safe to share
across threads.

Example:
    >>> signer = RequestSigner("NhqPtmdSJYdKjVHjA7PZj4Mge3R5YNiP1e3UZjInClVN65XAbvqqM6A7H5fATj0j")
    >>> params = [("symbol", "LTCBTC"), ("side", "BUY"), ("timestamp", 1499827319559), ("recvWindow", 5000)]
    >>> signer.canonical_string(params)
    'symbol=LTCBTC&side=BUY&timestamp=1499827319559&recvWindow=5000'
"""

import hashlib
import hmac
from typing import Any, Sequence, Tuple
from urllib.parse import urlencode

from exchanges.binance.exceptions import ValidationError

TIMESTAMP_PARAM = "timestamp"
RECV_WINDOW_PARAM = "recvWindow"
SIGNATURE_PARAM = "signature"

Params = Sequence[Tuple[str, Any]]


class RequestSigner:
    """
    HMAC-SHA256 signer bound to one secret.

    Attributes:
        secret: API secret used as the HMAC key (never logged)
    """

    __slots__ = ("_secret",)

    def __init__(self, secret: str):
        if not secret:
            raise ValidationError("Cannot sign requests without an API secret")
        self._secret = secret.encode("utf-8")

    def __repr__(self) -> str:
        return "RequestSigner(secret=***)"

    @staticmethod
    def canonical_string(params: Params) -> str:
        """
        Serialize parameters into the string that is signed and sent.

        Args:
            params: Ordered (name, value) pairs, without `signature`

        Returns:
            str: `&`-joined, form-urlencoded `key=value` pairs
        """
        return urlencode([(str(key), str(value)) for key, value in params])

    def sign(self, params: Params) -> str:
        """
        Compute the signature for a parameter set.

        Args:
            params: Ordered (name, value) pairs, including timestamp and recvWindow

        Returns:
            str: Lowercase hex HMAC-SHA256 digest

        Raises:
            ValidationError: If timestamp or recvWindow is missing, or if
                a signature is already present
        """
        names = {key for key, _ in params}
        missing = [name for name in (TIMESTAMP_PARAM, RECV_WINDOW_PARAM) if name not in names]
        if missing:
            raise ValidationError(f"Signed request is missing required parameter(s): {', '.join(missing)}")
        if SIGNATURE_PARAM in names:
            raise ValidationError("Request is already signed")

        payload = self.canonical_string(params)
        return hmac.new(self._secret, payload.encode("utf-8"), hashlib.sha256).hexdigest()

    def signed_query(self, params: Params) -> str:
        """
        Build the complete query string: canonical string plus signature.

        Example:
            >>> signer.signed_query([("timestamp", 1000), ("recvWindow", 5000)])
            'timestamp=1000&recvWindow=5000&signature=...'
        """
        signature = self.sign(params)
        return f"{self.canonical_string(params)}&{SIGNATURE_PARAM}={signature}"
