"""
Binance REST Endpoint Table

Each remote operation is described once, declaratively, by an EndpointSpec:
HTTP method, path template, security class and the ordered list of parameter
names. The dispatcher consumes these descriptions; it never hard-codes a path.

Security classes:
    NONE     - public endpoint, sent exactly as prepared
    API_KEY  - requires the X-MBX-APIKEY header
    SIGNED   - requires the header plus an HMAC-SHA256 `signature` parameter,
               and the request must carry `timestamp` and `recvWindow`

API Documentation:
    https://developers.binance.com/docs/binance-spot-api-docs/rest-api
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class SecurityClass(str, Enum):
    """Authentication requirement of an endpoint"""
    NONE = "NONE"
    API_KEY = "API_KEY"
    SIGNED = "SIGNED"

    @property
    def requires_api_key(self) -> bool:
        return self in (SecurityClass.API_KEY, SecurityClass.SIGNED)


_PLACEHOLDER = re.compile(r"\{(\w+)\}")


@dataclass(frozen=True)
class EndpointSpec:
    """
    Declarative description of one remote operation.

    Attributes:
        method: HTTP verb
        path: Path template, may contain {name} placeholders
        security: Authentication requirement (NONE when not given)
        params: Query parameter names in the order they are sent
    """

    method: str
    path: str
    security: SecurityClass = SecurityClass.NONE
    params: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "method", self.method.upper())
        if self.security is None:
            object.__setattr__(self, "security", SecurityClass.NONE)

    @property
    def path_params(self) -> Tuple[str, ...]:
        """Names of the {placeholders} in the path template"""
        return tuple(_PLACEHOLDER.findall(self.path))

    def __str__(self) -> str:
        return f"{self.method} {self.path}"


_SIGNED_TAIL = ("recvWindow", "timestamp")


# ============================================
# General Endpoints
# ============================================

PING = EndpointSpec("GET", "/api/v3/ping")
SERVER_TIME = EndpointSpec("GET", "/api/v3/time")
EXCHANGE_INFO = EndpointSpec("GET", "/api/v3/exchangeInfo", params=("symbol",))

# ============================================
# Market Data Endpoints
# ============================================

ORDER_BOOK = EndpointSpec("GET", "/api/v3/depth", params=("symbol", "limit"))
TRADES = EndpointSpec("GET", "/api/v3/trades", params=("symbol", "limit"))
HISTORICAL_TRADES = EndpointSpec(
    "GET", "/api/v3/historicalTrades", SecurityClass.API_KEY,
    ("symbol", "limit", "fromId"),
)
AGG_TRADES = EndpointSpec(
    "GET", "/api/v3/aggTrades",
    params=("symbol", "fromId", "limit", "startTime", "endTime"),
)
KLINES = EndpointSpec(
    "GET", "/api/v3/klines",
    params=("symbol", "interval", "limit", "startTime", "endTime"),
)
TICKER_24HR = EndpointSpec("GET", "/api/v3/ticker/24hr", params=("symbol",))
TICKER_PRICE = EndpointSpec("GET", "/api/v3/ticker/price", params=("symbol",))
BOOK_TICKER = EndpointSpec("GET", "/api/v3/ticker/bookTicker", params=("symbol",))

# ============================================
# Trading Endpoints
# ============================================

_NEW_ORDER_PARAMS = (
    "symbol", "side", "type", "timeInForce", "quantity", "quoteOrderQty", "price",
    "newClientOrderId", "stopPrice", "icebergQty", "newOrderRespType",
) + _SIGNED_TAIL

NEW_ORDER = EndpointSpec("POST", "/api/v3/order", SecurityClass.SIGNED, _NEW_ORDER_PARAMS)
NEW_ORDER_TEST = EndpointSpec("POST", "/api/v3/order/test", SecurityClass.SIGNED, _NEW_ORDER_PARAMS)
ORDER_STATUS = EndpointSpec(
    "GET", "/api/v3/order", SecurityClass.SIGNED,
    ("symbol", "orderId", "origClientOrderId") + _SIGNED_TAIL,
)
CANCEL_ORDER = EndpointSpec(
    "DELETE", "/api/v3/order", SecurityClass.SIGNED,
    ("symbol", "orderId", "origClientOrderId", "newClientOrderId") + _SIGNED_TAIL,
)
OPEN_ORDERS = EndpointSpec("GET", "/api/v3/openOrders", SecurityClass.SIGNED, ("symbol",) + _SIGNED_TAIL)
ALL_ORDERS = EndpointSpec(
    "GET", "/api/v3/allOrders", SecurityClass.SIGNED,
    ("symbol", "orderId", "limit") + _SIGNED_TAIL,
)

# ============================================
# Order List (OCO) Endpoints
# ============================================

NEW_OCO = EndpointSpec(
    "POST", "/api/v3/order/oco", SecurityClass.SIGNED,
    ("symbol", "listClientOrderId", "side", "quantity", "limitClientOrderId", "price",
     "limitIcebergQty", "stopClientOrderId", "stopPrice", "stopLimitPrice", "stopIcebergQty",
     "stopLimitTimeInForce", "newOrderRespType") + _SIGNED_TAIL,
)
CANCEL_ORDER_LIST = EndpointSpec(
    "DELETE", "/api/v3/orderList", SecurityClass.SIGNED,
    ("symbol", "orderListId", "listClientOrderId", "newClientOrderId") + _SIGNED_TAIL,
)
ORDER_LIST_STATUS = EndpointSpec(
    "GET", "/api/v3/orderList", SecurityClass.SIGNED,
    ("orderListId", "origClientOrderId") + _SIGNED_TAIL,
)
ALL_ORDER_LISTS = EndpointSpec(
    "GET", "/api/v3/allOrderList", SecurityClass.SIGNED,
    ("fromId", "startTime", "endTime", "limit") + _SIGNED_TAIL,
)

# ============================================
# Account Endpoints
# ============================================

ACCOUNT = EndpointSpec("GET", "/api/v3/account", SecurityClass.SIGNED, _SIGNED_TAIL)
MY_TRADES = EndpointSpec(
    "GET", "/api/v3/myTrades", SecurityClass.SIGNED,
    ("symbol", "limit", "fromId") + _SIGNED_TAIL,
)

# ============================================
# Wallet Endpoints
# ============================================

WITHDRAW = EndpointSpec(
    "POST", "/sapi/v1/capital/withdraw/apply", SecurityClass.SIGNED,
    ("coin", "withdrawOrderId", "network", "address", "addressTag", "amount",
     "transactionFeeFlag", "name") + _SIGNED_TAIL,
)
DEPOSIT_HISTORY = EndpointSpec(
    "GET", "/sapi/v1/capital/deposit/hisrec", SecurityClass.SIGNED,
    ("coin", "status", "startTime", "endTime", "offset", "limit") + _SIGNED_TAIL,
)
WITHDRAW_HISTORY = EndpointSpec(
    "GET", "/sapi/v1/capital/withdraw/history", SecurityClass.SIGNED,
    ("coin", "withdrawOrderId", "status", "startTime", "endTime", "offset", "limit") + _SIGNED_TAIL,
)
DEPOSIT_ADDRESS = EndpointSpec(
    "GET", "/sapi/v1/capital/deposit/address", SecurityClass.SIGNED,
    ("coin", "network") + _SIGNED_TAIL,
)
COINS_AVAILABLE = EndpointSpec("GET", "/sapi/v1/capital/config/getall", SecurityClass.SIGNED, _SIGNED_TAIL)
DUST_TRANSFER = EndpointSpec("POST", "/sapi/v1/asset/dust", SecurityClass.SIGNED, ("asset",) + _SIGNED_TAIL)
SUB_ACCOUNT_TRANSFERS = EndpointSpec(
    "GET", "/sapi/v1/sub-account/transfer/subUserHistory", SecurityClass.SIGNED,
    ("asset", "type", "startTime", "endTime", "limit") + _SIGNED_TAIL,
)

# ============================================
# User Data Stream Endpoints
# ============================================

START_USER_DATA_STREAM = EndpointSpec("POST", "/api/v3/userDataStream", SecurityClass.API_KEY)
KEEP_ALIVE_USER_DATA_STREAM = EndpointSpec("PUT", "/api/v3/userDataStream", SecurityClass.API_KEY, ("listenKey",))
CLOSE_USER_DATA_STREAM = EndpointSpec("DELETE", "/api/v3/userDataStream", SecurityClass.API_KEY, ("listenKey",))
