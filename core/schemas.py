"""
Binance REST Data Schemas

This module defines Pydantic models for the payloads exchanged with the
Binance spot REST API: request enums, the order request object, and the
decoded response value objects.

Key Principle:
    The wire format uses camelCase keys and string-encoded decimals. The models
    map camelCase to snake_case attributes, parse amounts into Decimal, and
    ignore keys they do not know so that new exchange fields never break decoding.

Models:
    - General: ServerTime, ExchangeInfo
    - Market data: OrderBook, TradeHistoryItem, AggTrade, Candlestick,
      TickerStatistics, TickerPrice, BookTicker
    - Trading: NewOrder, NewOrderResponse, Order, CancelOrderResponse
    - Order lists: NewOCO, NewOCOResponse, CancelOrderListResponse, OrderList
    - Account: Account, AssetBalance, Trade
    - Wallet: WithdrawResult, Deposit, Withdraw, DepositAddress,
      CoinInformation, CoinInformationNetwork, DustTransferResponse,
      SubAccountTransfer
    - User data stream: ListenKey
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from core.utils.time import to_utc_datetime


# ============================================
# Request Enums
# ============================================

class OrderSide(str, Enum):
    """Buy/sell direction of an order"""
    BUY = "BUY"
    SELL = "SELL"


class OrderType(str, Enum):
    """Order types accepted by the spot matching engine"""
    LIMIT = "LIMIT"
    MARKET = "MARKET"
    STOP_LOSS = "STOP_LOSS"
    STOP_LOSS_LIMIT = "STOP_LOSS_LIMIT"
    TAKE_PROFIT = "TAKE_PROFIT"
    TAKE_PROFIT_LIMIT = "TAKE_PROFIT_LIMIT"
    LIMIT_MAKER = "LIMIT_MAKER"


class TimeInForce(str, Enum):
    """How long an order remains active"""
    GTC = "GTC"
    IOC = "IOC"
    FOK = "FOK"


class NewOrderResponseType(str, Enum):
    """Detail level of the new-order acknowledgement"""
    ACK = "ACK"
    RESULT = "RESULT"
    FULL = "FULL"


class CandlestickInterval(str, Enum):
    """Kline intervals supported by /api/v3/klines"""
    ONE_MINUTE = "1m"
    THREE_MINUTES = "3m"
    FIVE_MINUTES = "5m"
    FIFTEEN_MINUTES = "15m"
    HALF_HOURLY = "30m"
    HOURLY = "1h"
    TWO_HOURLY = "2h"
    FOUR_HOURLY = "4h"
    SIX_HOURLY = "6h"
    EIGHT_HOURLY = "8h"
    TWELVE_HOURLY = "12h"
    DAILY = "1d"
    THREE_DAILY = "3d"
    WEEKLY = "1w"
    MONTHLY = "1M"


# ============================================
# Base Model
# ============================================

class BinanceModel(BaseModel):
    """
    Base model for every Binance payload.

    - camelCase wire keys map to snake_case attributes (populate by either)
    - unknown keys are ignored
    - instances are immutable once decoded
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True
    )


# ============================================
# General
# ============================================

class ServerTime(BinanceModel):
    """Server clock reading from /api/v3/time"""

    server_time: int = Field(..., description="Server time in milliseconds since epoch")

    @property
    def as_datetime(self) -> datetime:
        return to_utc_datetime(self.server_time)


class ExchangeInfo(BinanceModel):
    """
    Trading rules and symbol information.

    Symbol and filter definitions change frequently on the exchange side, so
    they are kept as plain dictionaries.
    """

    timezone: str
    server_time: int
    rate_limits: List[Dict[str, Any]] = Field(default_factory=list)
    symbols: List[Dict[str, Any]] = Field(default_factory=list)

    def get_symbol_info(self, symbol: str) -> Optional[Dict[str, Any]]:
        """Return the definition of a single symbol, or None if unknown."""
        symbol = symbol.upper()
        for info in self.symbols:
            if info.get("symbol") == symbol:
                return info
        return None


# ============================================
# Market Data
# ============================================

class OrderBookEntry(BinanceModel):
    """One [price, quantity] level of the order book"""

    price: Decimal
    qty: Decimal

    @model_validator(mode="before")
    @classmethod
    def from_pair(cls, data: Any) -> Any:
        if isinstance(data, (list, tuple)):
            return {"price": data[0], "qty": data[1]}
        return data


class OrderBook(BinanceModel):
    """Order book snapshot from /api/v3/depth"""

    last_update_id: int
    bids: List[OrderBookEntry]
    asks: List[OrderBookEntry]


class TradeHistoryItem(BinanceModel):
    """Public trade from /api/v3/trades and /api/v3/historicalTrades"""

    id: int
    price: Decimal
    qty: Decimal
    quote_qty: Optional[Decimal] = None
    time: int
    is_buyer_maker: bool
    is_best_match: bool = False


class AggTrade(BinanceModel):
    """Compressed/aggregate trade from /api/v3/aggTrades"""

    aggregated_trade_id: int = Field(..., alias="a")
    price: Decimal = Field(..., alias="p")
    quantity: Decimal = Field(..., alias="q")
    first_breakdown_trade_id: int = Field(..., alias="f")
    last_breakdown_trade_id: int = Field(..., alias="l")
    trade_time: int = Field(..., alias="T")
    is_buyer_maker: bool = Field(..., alias="m")


class Candlestick(BinanceModel):
    """
    Kline bar from /api/v3/klines.

    The exchange returns each bar as a positional array:
        [open time, open, high, low, close, volume, close time,
         quote asset volume, number of trades, taker buy base volume,
         taker buy quote volume, ignore]
    """

    open_time: int
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal
    close_time: int
    quote_asset_volume: Decimal
    number_of_trades: int
    taker_buy_base_asset_volume: Decimal
    taker_buy_quote_asset_volume: Decimal

    @model_validator(mode="before")
    @classmethod
    def from_array(cls, data: Any) -> Any:
        if isinstance(data, (list, tuple)):
            names = (
                "open_time", "open", "high", "low", "close", "volume", "close_time",
                "quote_asset_volume", "number_of_trades",
                "taker_buy_base_asset_volume", "taker_buy_quote_asset_volume",
            )
            if len(data) < len(names):
                raise ValueError(f"Candlestick array needs {len(names)} fields, got {len(data)}")
            return dict(zip(names, data))
        return data


class TickerStatistics(BinanceModel):
    """24 hour rolling window statistics from /api/v3/ticker/24hr"""

    symbol: str
    price_change: Decimal
    price_change_percent: Decimal
    weighted_avg_price: Decimal
    prev_close_price: Optional[Decimal] = None
    last_price: Decimal
    bid_price: Optional[Decimal] = None
    ask_price: Optional[Decimal] = None
    open_price: Decimal
    high_price: Decimal
    low_price: Decimal
    volume: Decimal
    quote_volume: Optional[Decimal] = None
    open_time: int
    close_time: int
    first_id: int
    last_id: int
    count: int


class TickerPrice(BinanceModel):
    """Latest price for a symbol"""

    symbol: str
    price: Decimal


class BookTicker(BinanceModel):
    """Best bid/ask on the order book"""

    symbol: str
    bid_price: Decimal
    bid_qty: Decimal
    ask_price: Decimal
    ask_qty: Decimal


# ============================================
# Trading
# ============================================

class NewOrder(BinanceModel):
    """
    A new order request.

    Only symbol, side and type are always sent; every other field is omitted
    from the request when left as None. `timestamp` and `recv_window` are
    filled by the client when not supplied.

    Example:
        >>> order = NewOrder.limit_buy("ETHBTC", TimeInForce.GTC, "1.5", "0.065")
        >>> order = NewOrder.market_sell("ETHBTC", "0.5")
    """

    model_config = ConfigDict(frozen=False)

    symbol: str
    side: OrderSide
    type: OrderType
    time_in_force: Optional[TimeInForce] = None
    quantity: Optional[str] = None
    quote_order_qty: Optional[str] = None
    price: Optional[str] = None
    new_client_order_id: Optional[str] = None
    stop_price: Optional[str] = None
    iceberg_qty: Optional[str] = None
    new_order_resp_type: NewOrderResponseType = NewOrderResponseType.RESULT
    recv_window: Optional[int] = None
    timestamp: Optional[int] = None

    @classmethod
    def limit_buy(cls, symbol: str, time_in_force: TimeInForce, quantity: str, price: str) -> "NewOrder":
        return cls(symbol=symbol, side=OrderSide.BUY, type=OrderType.LIMIT,
                   time_in_force=time_in_force, quantity=quantity, price=price)

    @classmethod
    def limit_sell(cls, symbol: str, time_in_force: TimeInForce, quantity: str, price: str) -> "NewOrder":
        return cls(symbol=symbol, side=OrderSide.SELL, type=OrderType.LIMIT,
                   time_in_force=time_in_force, quantity=quantity, price=price)

    @classmethod
    def market_buy(cls, symbol: str, quantity: str) -> "NewOrder":
        return cls(symbol=symbol, side=OrderSide.BUY, type=OrderType.MARKET, quantity=quantity)

    @classmethod
    def market_sell(cls, symbol: str, quantity: str) -> "NewOrder":
        return cls(symbol=symbol, side=OrderSide.SELL, type=OrderType.MARKET, quantity=quantity)


class Fill(BinanceModel):
    """Partial execution reported in a FULL new-order response"""

    price: Decimal
    qty: Decimal
    commission: Decimal
    commission_asset: str
    trade_id: Optional[int] = None


class NewOrderResponse(BinanceModel):
    """Acknowledgement of POST /api/v3/order"""

    symbol: str
    order_id: int
    order_list_id: Optional[int] = None
    client_order_id: str
    transact_time: int
    price: Optional[Decimal] = None
    orig_qty: Optional[Decimal] = None
    executed_qty: Optional[Decimal] = None
    cummulative_quote_qty: Optional[Decimal] = None
    status: Optional[str] = None
    time_in_force: Optional[str] = None
    type: Optional[str] = None
    side: Optional[str] = None
    fills: List[Fill] = Field(default_factory=list)


class Order(BinanceModel):
    """Order status from /api/v3/order, /api/v3/openOrders and /api/v3/allOrders"""

    symbol: str
    order_id: int
    order_list_id: Optional[int] = None
    client_order_id: str
    price: Decimal
    orig_qty: Decimal
    executed_qty: Decimal
    cummulative_quote_qty: Optional[Decimal] = None
    status: str
    time_in_force: str
    type: str
    side: str
    stop_price: Optional[Decimal] = None
    iceberg_qty: Optional[Decimal] = None
    time: int
    update_time: Optional[int] = None
    is_working: bool = True
    orig_quote_order_qty: Optional[Decimal] = None


class CancelOrderResponse(BinanceModel):
    """Acknowledgement of DELETE /api/v3/order"""

    symbol: str
    orig_client_order_id: Optional[str] = None
    order_id: int
    client_order_id: Optional[str] = None
    status: Optional[str] = None
    executed_qty: Optional[Decimal] = None


# ============================================
# Order Lists (OCO)
# ============================================

class NewOCO(BinanceModel):
    """
    A new one-cancels-the-other order list.

    A limit leg at `price` is paired with a stop-loss leg triggered at
    `stop_price`; when either leg fills or triggers, the exchange cancels the
    other. Setting `stop_limit_price` turns the stop leg into a stop-limit
    order, which then also needs `stop_limit_time_in_force`.

    Example:
        >>> oco = NewOCO.sell("BTCUSDT", "0.1", price="70000", stop_price="60000", stop_limit_price="59900")
    """

    model_config = ConfigDict(frozen=False)

    symbol: str
    side: OrderSide
    quantity: str
    price: str
    stop_price: str
    list_client_order_id: Optional[str] = None
    limit_client_order_id: Optional[str] = None
    limit_iceberg_qty: Optional[str] = None
    stop_client_order_id: Optional[str] = None
    stop_limit_price: Optional[str] = None
    stop_iceberg_qty: Optional[str] = None
    stop_limit_time_in_force: Optional[TimeInForce] = None
    new_order_resp_type: NewOrderResponseType = NewOrderResponseType.RESULT
    recv_window: Optional[int] = None
    timestamp: Optional[int] = None

    @model_validator(mode="after")
    def check_stop_limit(self) -> "NewOCO":
        if self.stop_limit_price is not None and self.stop_limit_time_in_force is None:
            raise ValueError("stop_limit_time_in_force is required when stop_limit_price is set")
        return self

    @classmethod
    def buy(cls, symbol: str, quantity: str, price: str, stop_price: str,
            stop_limit_price: Optional[str] = None) -> "NewOCO":
        return cls._of(OrderSide.BUY, symbol, quantity, price, stop_price, stop_limit_price)

    @classmethod
    def sell(cls, symbol: str, quantity: str, price: str, stop_price: str,
             stop_limit_price: Optional[str] = None) -> "NewOCO":
        return cls._of(OrderSide.SELL, symbol, quantity, price, stop_price, stop_limit_price)

    @classmethod
    def _of(cls, side: OrderSide, symbol: str, quantity: str, price: str, stop_price: str,
            stop_limit_price: Optional[str]) -> "NewOCO":
        return cls(
            symbol=symbol, side=side, quantity=quantity, price=price, stop_price=stop_price,
            stop_limit_price=stop_limit_price,
            stop_limit_time_in_force=TimeInForce.GTC if stop_limit_price is not None else None,
        )


class OrderListOrder(BinanceModel):
    """Reference to one order of an order list"""

    symbol: str
    order_id: int
    client_order_id: str


class OrderReport(BinanceModel):
    """State of one order of an order list at the time of the request"""

    symbol: str
    order_id: int
    order_list_id: Optional[int] = None
    client_order_id: str
    orig_client_order_id: Optional[str] = None
    transact_time: Optional[int] = None
    price: Decimal
    orig_qty: Decimal
    executed_qty: Decimal
    cummulative_quote_qty: Optional[Decimal] = None
    status: str
    time_in_force: str
    type: str
    side: str
    stop_price: Optional[Decimal] = None


class OrderList(BinanceModel):
    """Order list status from /api/v3/orderList and /api/v3/allOrderList"""

    order_list_id: int
    contingency_type: str
    list_status_type: str
    list_order_status: str
    list_client_order_id: str
    transaction_time: int
    symbol: str
    orders: List[OrderListOrder] = Field(default_factory=list)


class NewOCOResponse(OrderList):
    """Acknowledgement of POST /api/v3/order/oco"""

    order_reports: List[OrderReport] = Field(default_factory=list)


class CancelOrderListResponse(OrderList):
    """Acknowledgement of DELETE /api/v3/orderList"""

    order_reports: List[OrderReport] = Field(default_factory=list)


# ============================================
# Account
# ============================================

class AssetBalance(BinanceModel):
    """Free and locked balance of one asset"""

    asset: str
    free: Decimal
    locked: Decimal


class Account(BinanceModel):
    """Account information from /api/v3/account"""

    maker_commission: int
    taker_commission: int
    buyer_commission: int
    seller_commission: int
    can_trade: bool
    can_withdraw: bool
    can_deposit: bool
    update_time: int
    account_type: Optional[str] = None
    balances: List[AssetBalance] = Field(default_factory=list)

    def get_asset_balance(self, symbol: str) -> AssetBalance:
        """
        Balance of a single asset.

        Assets the account never held are reported as zero.
        """
        for balance in self.balances:
            if balance.asset == symbol:
                return balance
        return AssetBalance(asset=symbol, free=Decimal("0"), locked=Decimal("0"))


class Trade(BinanceModel):
    """Account trade from /api/v3/myTrades"""

    id: int
    symbol: Optional[str] = None
    order_id: int
    price: Decimal
    qty: Decimal
    quote_qty: Optional[Decimal] = None
    commission: Decimal
    commission_asset: str
    time: int
    is_buyer: bool
    is_maker: bool
    is_best_match: bool = False


# ============================================
# Wallet
# ============================================

class WithdrawResult(BinanceModel):
    """Withdrawal request acknowledgement"""

    id: str


class Deposit(BinanceModel):
    """Deposit history record"""

    amount: Decimal
    coin: str
    network: Optional[str] = None
    status: int
    address: Optional[str] = None
    address_tag: Optional[str] = None
    tx_id: Optional[str] = None
    insert_time: int


class Withdraw(BinanceModel):
    """Withdrawal history record"""

    id: str
    amount: Decimal
    transaction_fee: Optional[Decimal] = None
    coin: str
    status: int
    address: str
    tx_id: Optional[str] = None
    apply_time: Optional[str] = None
    network: Optional[str] = None
    withdraw_order_id: Optional[str] = None


class DepositAddress(BinanceModel):
    """Deposit address for a coin/network"""

    address: str
    coin: str
    tag: Optional[str] = None
    url: Optional[str] = None


class CoinInformationNetwork(BinanceModel):
    """Deposit/withdrawal capabilities of a coin on one network"""

    address_regex: Optional[str] = None
    coin: str
    deposit_desc: Optional[str] = None
    deposit_enable: bool
    is_default: bool
    memo_regex: Optional[str] = None
    min_confirm: int
    name: str
    network: str
    withdraw_desc: Optional[str] = None
    withdraw_enable: bool
    withdraw_fee: Decimal
    withdraw_max: Decimal
    withdraw_min: Decimal
    same_address: bool = False
    estimated_arrival_time: Optional[int] = None
    busy: bool = False


class CoinInformation(BinanceModel):
    """Per-coin wallet information from /sapi/v1/capital/config/getall"""

    coin: str
    deposit_all_enable: bool
    free: Decimal
    freeze: Decimal
    locked: Decimal
    network_list: List[CoinInformationNetwork] = Field(default_factory=list)
    storage: Decimal
    trading: bool
    withdraw_all_enable: bool
    withdrawing: Decimal


class DustTransferResult(BinanceModel):
    """Conversion of one small balance into BNB"""

    amount: Decimal
    from_asset: str
    operate_time: int
    service_charge_amount: Decimal
    tran_id: int
    transfered_amount: Decimal


class DustTransferResponse(BinanceModel):
    """Result of POST /sapi/v1/asset/dust (exchange spelling of 'transferred' kept)"""

    total_service_charge: Decimal
    total_transfered: Decimal
    transfer_result: List[DustTransferResult] = Field(default_factory=list)


class SubAccountTransfer(BinanceModel):
    """Transfer between a sub-account and its master account"""

    counter_party: Optional[str] = None
    email: Optional[str] = None
    type: int
    asset: str
    qty: Decimal
    from_account_type: Optional[str] = None
    to_account_type: Optional[str] = None
    status: str
    tran_id: int
    time: int


# ============================================
# User Data Stream
# ============================================

class ListenKey(BinanceModel):
    """Key identifying a user data stream"""

    listen_key: str

    def __str__(self) -> str:
        return self.listen_key
