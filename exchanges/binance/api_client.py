"""
Binance REST API Client (blocking)

This module provides the synchronous facade over the dispatch layer. Each
method maps its arguments onto one endpoint of the endpoint table and blocks
until the decoded result (or an exception) is available.

It handles:
- Binding credentials to the shared transport once, at construction
- Default timestamp / receive window for SIGNED endpoints
- Typed decoding into core.schemas models

API Documentation:
    https://developers.binance.com/docs/binance-spot-api-docs/rest-api

Usage:
    client = BinanceApiRestClient(api_key, secret)
    book = client.get_order_book("ETHBTC", limit=10)
    response = client.new_order(NewOrder.market_buy("ETHBTC", "0.1"))
"""

from typing import Any, Dict, List, Optional, Union

from core.config import settings
from core.logging import get_logger
from core.schemas import (
    Account,
    AggTrade,
    BookTicker,
    CancelOrderListResponse,
    CancelOrderResponse,
    Candlestick,
    CandlestickInterval,
    CoinInformation,
    Deposit,
    DepositAddress,
    DustTransferResponse,
    ExchangeInfo,
    ListenKey,
    NewOCO,
    NewOCOResponse,
    NewOrder,
    NewOrderResponse,
    Order,
    OrderBook,
    OrderList,
    ServerTime,
    SubAccountTransfer,
    TickerPrice,
    TickerStatistics,
    Trade,
    TradeHistoryItem,
    Withdraw,
    WithdrawResult,
)
from core.utils.time import current_timestamp_ms
from exchanges.binance import endpoints
from exchanges.binance.auth import CredentialBinder, Credentials
from exchanges.binance.connection import ConnectionManager, ProxySetting, connection_manager
from exchanges.binance.dispatcher import Dispatcher


class BinanceApiClientBase:
    """
    Shared construction for the blocking and callback clients.

    Attributes:
        credentials: Bound credentials, or None for anonymous access
        transport: Transport derived for this client (never changes)
        dispatcher: Dispatcher executing calls on that transport

    Notes:
        - Supplying `proxy` reconfigures the process-wide shared transport
          before this client derives its own
        - Clients built earlier keep the transport they were built with
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        secret: Optional[str] = None,
        proxy: ProxySetting = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        manager: ConnectionManager = connection_manager,
    ):
        self.logger = get_logger(__name__)
        self.credentials = Credentials.of(api_key, secret)

        if proxy is not None:
            manager.reconfigure(proxy)

        self.transport = CredentialBinder(manager).bind(self.credentials)
        self.dispatcher = Dispatcher(self.transport, base_url=base_url, timeout=timeout, manager=manager)

        mode = "authenticated" if self.credentials else "anonymous"
        self.logger.debug(f"{type(self).__name__} created ({mode}, {self.dispatcher.base_url})")

    @property
    def is_authenticated(self) -> bool:
        return self.credentials is not None

    @staticmethod
    def _signed(recv_window: Optional[int] = None, timestamp: Optional[int] = None) -> Dict[str, int]:
        """Timestamp and receive window for a SIGNED call, defaulted when absent."""
        return {
            "recvWindow": recv_window if recv_window is not None else settings.default_recv_window,
            "timestamp": timestamp if timestamp is not None else current_timestamp_ms(),
        }

    @classmethod
    def _order_arguments(cls, order: Union[NewOrder, NewOCO]) -> Dict[str, Any]:
        arguments = order.model_dump(by_alias=True, exclude={"recv_window", "timestamp"})
        arguments.update(cls._signed(order.recv_window, order.timestamp))
        return arguments

    def close(self) -> None:
        """
        No-op kept so clients can be used as context managers.

        A client owns no connections: they belong to the shared pool of the
        ConnectionManager, which outlives every client. Use
        ConnectionManager.reset() to drop the pool itself.
        """

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class BinanceApiRestClient(BinanceApiClientBase):
    """
    Blocking client for the Binance spot REST API.

    All methods raise BinanceApiException subclasses on failure.

    Example:
        >>> client = BinanceApiRestClient()
        >>> client.ping()
        >>> client.get_price("ETHBTC").price
        Decimal('0.05123000')
    """

    # ============================================
    # General Endpoints
    # ============================================

    def ping(self) -> None:
        """Test connectivity to the REST API."""
        self.dispatcher.execute(endpoints.PING, None)

    def get_server_time(self) -> int:
        """Current server time in milliseconds."""
        return self.dispatcher.execute(endpoints.SERVER_TIME, ServerTime).server_time

    def get_exchange_info(self, symbol: Optional[str] = None) -> ExchangeInfo:
        """Trading rules and symbol information."""
        return self.dispatcher.execute(endpoints.EXCHANGE_INFO, ExchangeInfo, symbol=symbol)

    # ============================================
    # Market Data Endpoints
    # ============================================

    def get_order_book(self, symbol: str, limit: Optional[int] = None) -> OrderBook:
        """
        Order book of a symbol.

        Args:
            symbol: Trading pair (e.g., "ETHBTC")
            limit: Depth (5, 10, 20, 50, 100, 500, 1000, 5000)
        """
        return self.dispatcher.execute(endpoints.ORDER_BOOK, OrderBook, symbol=symbol.upper(), limit=limit)

    def get_trades(self, symbol: str, limit: Optional[int] = None) -> List[TradeHistoryItem]:
        """Recent trades (up to the last 1000)."""
        return self.dispatcher.execute(endpoints.TRADES, List[TradeHistoryItem], symbol=symbol.upper(), limit=limit)

    def get_historical_trades(
        self,
        symbol: str,
        limit: Optional[int] = None,
        from_id: Optional[int] = None
    ) -> List[TradeHistoryItem]:
        """Older trades. Requires an API key."""
        return self.dispatcher.execute(
            endpoints.HISTORICAL_TRADES, List[TradeHistoryItem],
            symbol=symbol.upper(), limit=limit, fromId=from_id,
        )

    def get_agg_trades(
        self,
        symbol: str,
        from_id: Optional[int] = None,
        limit: Optional[int] = None,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None
    ) -> List[AggTrade]:
        """
        Compressed, aggregate trades.

        If both start_time and end_time are sent, the window must be less
        than one hour.
        """
        return self.dispatcher.execute(
            endpoints.AGG_TRADES, List[AggTrade],
            symbol=symbol.upper(), fromId=from_id, limit=limit, startTime=start_time, endTime=end_time,
        )

    def get_candlestick_bars(
        self,
        symbol: str,
        interval: CandlestickInterval,
        limit: Optional[int] = None,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None
    ) -> List[Candlestick]:
        """Kline/candlestick bars for a symbol, oldest first."""
        return self.dispatcher.execute(
            endpoints.KLINES, List[Candlestick],
            symbol=symbol.upper(), interval=interval, limit=limit, startTime=start_time, endTime=end_time,
        )

    def get_24hr_price_statistics(self, symbol: str) -> TickerStatistics:
        """24 hour price change statistics for one symbol."""
        return self.dispatcher.execute(endpoints.TICKER_24HR, TickerStatistics, symbol=symbol.upper())

    def get_all_24hr_price_statistics(self) -> List[TickerStatistics]:
        """24 hour price change statistics for all symbols."""
        return self.dispatcher.execute(endpoints.TICKER_24HR, List[TickerStatistics])

    def get_price(self, symbol: str) -> TickerPrice:
        """Latest price for a symbol."""
        return self.dispatcher.execute(endpoints.TICKER_PRICE, TickerPrice, symbol=symbol.upper())

    def get_all_prices(self) -> List[TickerPrice]:
        """Latest price for all symbols."""
        return self.dispatcher.execute(endpoints.TICKER_PRICE, List[TickerPrice])

    def get_book_tickers(self) -> List[BookTicker]:
        """Best price/qty on the order book for all symbols."""
        return self.dispatcher.execute(endpoints.BOOK_TICKER, List[BookTicker])

    # ============================================
    # Trading Endpoints
    # ============================================

    def new_order(self, order: NewOrder) -> NewOrderResponse:
        """
        Send in a new order.

        Example:
            >>> client.new_order(NewOrder.limit_buy("ETHBTC", TimeInForce.GTC, "1", "0.05"))
        """
        return self.dispatcher.execute(endpoints.NEW_ORDER, NewOrderResponse, **self._order_arguments(order))

    def new_order_test(self, order: NewOrder) -> None:
        """Validate a new order without sending it to the matching engine."""
        self.dispatcher.execute(endpoints.NEW_ORDER_TEST, None, **self._order_arguments(order))

    def get_order_status(
        self,
        symbol: str,
        order_id: Optional[int] = None,
        orig_client_order_id: Optional[str] = None,
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None
    ) -> Order:
        """Check an order's status. Either order_id or orig_client_order_id must be sent."""
        return self.dispatcher.execute(
            endpoints.ORDER_STATUS, Order,
            symbol=symbol.upper(), orderId=order_id, origClientOrderId=orig_client_order_id,
            **self._signed(recv_window, timestamp),
        )

    def cancel_order(
        self,
        symbol: str,
        order_id: Optional[int] = None,
        orig_client_order_id: Optional[str] = None,
        new_client_order_id: Optional[str] = None,
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None
    ) -> CancelOrderResponse:
        """Cancel an active order."""
        return self.dispatcher.execute(
            endpoints.CANCEL_ORDER, CancelOrderResponse,
            symbol=symbol.upper(), orderId=order_id, origClientOrderId=orig_client_order_id,
            newClientOrderId=new_client_order_id, **self._signed(recv_window, timestamp),
        )

    def get_open_orders(
        self,
        symbol: Optional[str] = None,
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None
    ) -> List[Order]:
        """Open orders of a symbol, or of every symbol when symbol is None."""
        return self.dispatcher.execute(
            endpoints.OPEN_ORDERS, List[Order],
            symbol=symbol.upper() if symbol else None, **self._signed(recv_window, timestamp),
        )

    def get_all_orders(
        self,
        symbol: str,
        order_id: Optional[int] = None,
        limit: Optional[int] = None,
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None
    ) -> List[Order]:
        """All account orders of a symbol: active, canceled, or filled."""
        return self.dispatcher.execute(
            endpoints.ALL_ORDERS, List[Order],
            symbol=symbol.upper(), orderId=order_id, limit=limit, **self._signed(recv_window, timestamp),
        )

    # ============================================
    # Order List (OCO) Endpoints
    # ============================================

    def new_oco(self, oco: NewOCO) -> NewOCOResponse:
        """
        Send in a new one-cancels-the-other order list.

        Example:
            >>> client.new_oco(NewOCO.sell("BTCUSDT", "0.1", "70000", "60000", stop_limit_price="59900"))
        """
        return self.dispatcher.execute(endpoints.NEW_OCO, NewOCOResponse, **self._order_arguments(oco))

    def cancel_order_list(
        self,
        symbol: str,
        order_list_id: Optional[int] = None,
        list_client_order_id: Optional[str] = None,
        new_client_order_id: Optional[str] = None,
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None
    ) -> CancelOrderListResponse:
        """Cancel an entire order list. Either order_list_id or list_client_order_id must be sent."""
        return self.dispatcher.execute(
            endpoints.CANCEL_ORDER_LIST, CancelOrderListResponse,
            symbol=symbol.upper(), orderListId=order_list_id, listClientOrderId=list_client_order_id,
            newClientOrderId=new_client_order_id, **self._signed(recv_window, timestamp),
        )

    def get_order_list_status(
        self,
        order_list_id: Optional[int] = None,
        orig_client_order_id: Optional[str] = None,
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None
    ) -> OrderList:
        """Check an order list's status. Either order_list_id or orig_client_order_id must be sent."""
        return self.dispatcher.execute(
            endpoints.ORDER_LIST_STATUS, OrderList,
            orderListId=order_list_id, origClientOrderId=orig_client_order_id,
            **self._signed(recv_window, timestamp),
        )

    def get_all_order_lists(
        self,
        from_id: Optional[int] = None,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None,
        limit: Optional[int] = None,
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None
    ) -> List[OrderList]:
        """
        Order lists of the account.

        Args:
            from_id: Return lists from this order list id on; start_time and
                     end_time cannot be combined with it
            start_time: Start of the time range in ms
            end_time: End of the time range in ms
            limit: Maximum number of lists (exchange default 500)
        """
        return self.dispatcher.execute(
            endpoints.ALL_ORDER_LISTS, List[OrderList],
            fromId=from_id, startTime=start_time, endTime=end_time, limit=limit,
            **self._signed(recv_window, timestamp),
        )

    # ============================================
    # Account Endpoints
    # ============================================

    def get_account(self, recv_window: Optional[int] = None, timestamp: Optional[int] = None) -> Account:
        """Current account information."""
        return self.dispatcher.execute(endpoints.ACCOUNT, Account, **self._signed(recv_window, timestamp))

    def get_my_trades(
        self,
        symbol: str,
        limit: Optional[int] = None,
        from_id: Optional[int] = None,
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None
    ) -> List[Trade]:
        """Trades for a specific account and symbol."""
        return self.dispatcher.execute(
            endpoints.MY_TRADES, List[Trade],
            symbol=symbol.upper(), limit=limit, fromId=from_id, **self._signed(recv_window, timestamp),
        )

    # ============================================
    # Wallet Endpoints
    # ============================================

    def withdraw(
        self,
        coin: str,
        address: str,
        amount: str,
        network: Optional[str] = None,
        withdraw_order_id: Optional[str] = None,
        address_tag: Optional[str] = None,
        transaction_fee_flag: Optional[bool] = None,
        name: Optional[str] = None
    ) -> WithdrawResult:
        """Submit a withdraw request."""
        return self.dispatcher.execute(
            endpoints.WITHDRAW, WithdrawResult,
            coin=coin, withdrawOrderId=withdraw_order_id, network=network, address=address,
            addressTag=address_tag, amount=amount, transactionFeeFlag=transaction_fee_flag, name=name,
            **self._signed(),
        )

    def get_deposit_history(
        self,
        coin: Optional[str] = None,
        status: Optional[int] = None,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None,
        offset: Optional[int] = None,
        limit: Optional[int] = None
    ) -> List[Deposit]:
        """Deposit history."""
        return self.dispatcher.execute(
            endpoints.DEPOSIT_HISTORY, List[Deposit],
            coin=coin, status=status, startTime=start_time, endTime=end_time, offset=offset, limit=limit,
            **self._signed(),
        )

    def get_withdraw_history(
        self,
        coin: Optional[str] = None,
        withdraw_order_id: Optional[str] = None,
        status: Optional[int] = None,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None,
        offset: Optional[int] = None,
        limit: Optional[int] = None
    ) -> List[Withdraw]:
        """Withdraw history."""
        return self.dispatcher.execute(
            endpoints.WITHDRAW_HISTORY, List[Withdraw],
            coin=coin, withdrawOrderId=withdraw_order_id, status=status, startTime=start_time,
            endTime=end_time, offset=offset, limit=limit, **self._signed(),
        )

    def get_deposit_address(self, coin: str, network: Optional[str] = None) -> DepositAddress:
        """Deposit address for a coin, optionally on a specific network."""
        return self.dispatcher.execute(
            endpoints.DEPOSIT_ADDRESS, DepositAddress, coin=coin, network=network, **self._signed(),
        )

    def coins_available(self) -> List[CoinInformation]:
        """Wallet information for every coin available for deposit and withdrawal."""
        return self.dispatcher.execute(endpoints.COINS_AVAILABLE, List[CoinInformation], **self._signed())

    def dust_transfer(self, assets: List[str]) -> DustTransferResponse:
        """
        Convert small balances of the given assets into BNB.

        Args:
            assets: Asset names, e.g. ["BTC", "USDT"]; sent as repeated `asset` parameters
        """
        return self.dispatcher.execute(
            endpoints.DUST_TRANSFER, DustTransferResponse,
            asset=[asset.upper() for asset in assets], **self._signed(),
        )

    def get_sub_account_transfers(
        self,
        asset: Optional[str] = None,
        transfer_type: Optional[int] = None,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None,
        limit: Optional[int] = None
    ) -> List[SubAccountTransfer]:
        """
        Transfer history of a sub-account (call with the sub-account's keys).

        Args:
            transfer_type: 1 for transfers in, 2 for transfers out (exchange default: in)
        """
        return self.dispatcher.execute(
            endpoints.SUB_ACCOUNT_TRANSFERS, List[SubAccountTransfer],
            asset=asset, type=transfer_type, startTime=start_time, endTime=end_time, limit=limit,
            **self._signed(),
        )

    # ============================================
    # User Data Stream Endpoints
    # ============================================

    def start_user_data_stream(self) -> str:
        """Start a new user data stream and return its listen key."""
        return str(self.dispatcher.execute(endpoints.START_USER_DATA_STREAM, ListenKey))

    def keep_alive_user_data_stream(self, listen_key: str) -> None:
        """Keep a user data stream alive for another 60 minutes."""
        self.dispatcher.execute(endpoints.KEEP_ALIVE_USER_DATA_STREAM, None, listenKey=listen_key)

    def close_user_data_stream(self, listen_key: str) -> None:
        """Close out a user data stream."""
        self.dispatcher.execute(endpoints.CLOSE_USER_DATA_STREAM, None, listenKey=listen_key)
