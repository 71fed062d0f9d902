"""
Binance REST API Client (callback)

Non-blocking facade over the dispatch layer. Every method returns at once and
reports through an ApiCallback on a worker thread of the shared callback pool:
exactly one of `on_response(result)` / `on_failure(error)` is invoked, once.

The requests, decoding and errors are the same as BinanceApiRestClient; only
the delivery differs. Failures are never raised on the calling thread.

Usage:
    def show(book):
        print(book.bids[0])

    client = BinanceApiAsyncRestClient()
    client.get_order_book("ETHBTC", 5, FunctionCallback(show, print))

Each method also returns a concurrent.futures.Future that completes once the
callback has run, for callers that need to wait.
"""

from concurrent.futures import Future
from typing import List, Optional

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
from exchanges.binance import endpoints
from exchanges.binance.api_client import BinanceApiClientBase
from exchanges.binance.dispatcher import ApiCallback


class BinanceApiAsyncRestClient(BinanceApiClientBase):
    """
    Callback-based client for the Binance spot REST API.

    Example:
        >>> client = BinanceApiAsyncRestClient(api_key, secret)
        >>> client.get_account(callback=FunctionCallback(print, print))
    """

    # ============================================
    # General Endpoints
    # ============================================

    def ping(self, callback: ApiCallback[None]) -> Future:
        return self.dispatcher.execute_async(endpoints.PING, None, callback)

    def get_server_time(self, callback: ApiCallback[ServerTime]) -> Future:
        return self.dispatcher.execute_async(endpoints.SERVER_TIME, ServerTime, callback)

    def get_exchange_info(self, callback: ApiCallback[ExchangeInfo], symbol: Optional[str] = None) -> Future:
        return self.dispatcher.execute_async(endpoints.EXCHANGE_INFO, ExchangeInfo, callback, symbol=symbol)

    # ============================================
    # Market Data Endpoints
    # ============================================

    def get_order_book(self, symbol: str, limit: Optional[int], callback: ApiCallback[OrderBook]) -> Future:
        return self.dispatcher.execute_async(
            endpoints.ORDER_BOOK, OrderBook, callback, symbol=symbol.upper(), limit=limit,
        )

    def get_trades(self, symbol: str, limit: Optional[int], callback: ApiCallback[List[TradeHistoryItem]]) -> Future:
        return self.dispatcher.execute_async(
            endpoints.TRADES, List[TradeHistoryItem], callback, symbol=symbol.upper(), limit=limit,
        )

    def get_historical_trades(
        self,
        symbol: str,
        limit: Optional[int],
        from_id: Optional[int],
        callback: ApiCallback[List[TradeHistoryItem]]
    ) -> Future:
        return self.dispatcher.execute_async(
            endpoints.HISTORICAL_TRADES, List[TradeHistoryItem], callback,
            symbol=symbol.upper(), limit=limit, fromId=from_id,
        )

    def get_agg_trades(
        self,
        symbol: str,
        callback: ApiCallback[List[AggTrade]],
        from_id: Optional[int] = None,
        limit: Optional[int] = None,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None
    ) -> Future:
        return self.dispatcher.execute_async(
            endpoints.AGG_TRADES, List[AggTrade], callback,
            symbol=symbol.upper(), fromId=from_id, limit=limit, startTime=start_time, endTime=end_time,
        )

    def get_candlestick_bars(
        self,
        symbol: str,
        interval: CandlestickInterval,
        callback: ApiCallback[List[Candlestick]],
        limit: Optional[int] = None,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None
    ) -> Future:
        return self.dispatcher.execute_async(
            endpoints.KLINES, List[Candlestick], callback,
            symbol=symbol.upper(), interval=interval, limit=limit, startTime=start_time, endTime=end_time,
        )

    def get_24hr_price_statistics(self, symbol: str, callback: ApiCallback[TickerStatistics]) -> Future:
        return self.dispatcher.execute_async(
            endpoints.TICKER_24HR, TickerStatistics, callback, symbol=symbol.upper(),
        )

    def get_all_24hr_price_statistics(self, callback: ApiCallback[List[TickerStatistics]]) -> Future:
        return self.dispatcher.execute_async(endpoints.TICKER_24HR, List[TickerStatistics], callback)

    def get_price(self, symbol: str, callback: ApiCallback[TickerPrice]) -> Future:
        return self.dispatcher.execute_async(endpoints.TICKER_PRICE, TickerPrice, callback, symbol=symbol.upper())

    def get_all_prices(self, callback: ApiCallback[List[TickerPrice]]) -> Future:
        return self.dispatcher.execute_async(endpoints.TICKER_PRICE, List[TickerPrice], callback)

    def get_book_tickers(self, callback: ApiCallback[List[BookTicker]]) -> Future:
        return self.dispatcher.execute_async(endpoints.BOOK_TICKER, List[BookTicker], callback)

    # ============================================
    # Trading Endpoints
    # ============================================

    def new_order(self, order: NewOrder, callback: ApiCallback[NewOrderResponse]) -> Future:
        return self.dispatcher.execute_async(
            endpoints.NEW_ORDER, NewOrderResponse, callback, **self._order_arguments(order),
        )

    def new_order_test(self, order: NewOrder, callback: ApiCallback[None]) -> Future:
        return self.dispatcher.execute_async(
            endpoints.NEW_ORDER_TEST, None, callback, **self._order_arguments(order),
        )

    def get_order_status(
        self,
        symbol: str,
        callback: ApiCallback[Order],
        order_id: Optional[int] = None,
        orig_client_order_id: Optional[str] = None,
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None
    ) -> Future:
        return self.dispatcher.execute_async(
            endpoints.ORDER_STATUS, Order, callback,
            symbol=symbol.upper(), orderId=order_id, origClientOrderId=orig_client_order_id,
            **self._signed(recv_window, timestamp),
        )

    def cancel_order(
        self,
        symbol: str,
        callback: ApiCallback[CancelOrderResponse],
        order_id: Optional[int] = None,
        orig_client_order_id: Optional[str] = None,
        new_client_order_id: Optional[str] = None,
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None
    ) -> Future:
        return self.dispatcher.execute_async(
            endpoints.CANCEL_ORDER, CancelOrderResponse, callback,
            symbol=symbol.upper(), orderId=order_id, origClientOrderId=orig_client_order_id,
            newClientOrderId=new_client_order_id, **self._signed(recv_window, timestamp),
        )

    def get_open_orders(
        self,
        callback: ApiCallback[List[Order]],
        symbol: Optional[str] = None,
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None
    ) -> Future:
        return self.dispatcher.execute_async(
            endpoints.OPEN_ORDERS, List[Order], callback,
            symbol=symbol.upper() if symbol else None, **self._signed(recv_window, timestamp),
        )

    def get_all_orders(
        self,
        symbol: str,
        callback: ApiCallback[List[Order]],
        order_id: Optional[int] = None,
        limit: Optional[int] = None,
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None
    ) -> Future:
        return self.dispatcher.execute_async(
            endpoints.ALL_ORDERS, List[Order], callback,
            symbol=symbol.upper(), orderId=order_id, limit=limit, **self._signed(recv_window, timestamp),
        )

    # ============================================
    # Order List (OCO) Endpoints
    # ============================================

    def new_oco(self, oco: NewOCO, callback: ApiCallback[NewOCOResponse]) -> Future:
        return self.dispatcher.execute_async(
            endpoints.NEW_OCO, NewOCOResponse, callback, **self._order_arguments(oco),
        )

    def cancel_order_list(
        self,
        symbol: str,
        callback: ApiCallback[CancelOrderListResponse],
        order_list_id: Optional[int] = None,
        list_client_order_id: Optional[str] = None,
        new_client_order_id: Optional[str] = None,
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None
    ) -> Future:
        return self.dispatcher.execute_async(
            endpoints.CANCEL_ORDER_LIST, CancelOrderListResponse, callback,
            symbol=symbol.upper(), orderListId=order_list_id, listClientOrderId=list_client_order_id,
            newClientOrderId=new_client_order_id, **self._signed(recv_window, timestamp),
        )

    def get_order_list_status(
        self,
        callback: ApiCallback[OrderList],
        order_list_id: Optional[int] = None,
        orig_client_order_id: Optional[str] = None,
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None
    ) -> Future:
        return self.dispatcher.execute_async(
            endpoints.ORDER_LIST_STATUS, OrderList, callback,
            orderListId=order_list_id, origClientOrderId=orig_client_order_id,
            **self._signed(recv_window, timestamp),
        )

    def get_all_order_lists(
        self,
        callback: ApiCallback[List[OrderList]],
        from_id: Optional[int] = None,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None,
        limit: Optional[int] = None,
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None
    ) -> Future:
        return self.dispatcher.execute_async(
            endpoints.ALL_ORDER_LISTS, List[OrderList], callback,
            fromId=from_id, startTime=start_time, endTime=end_time, limit=limit,
            **self._signed(recv_window, timestamp),
        )

    # ============================================
    # Account Endpoints
    # ============================================

    def get_account(
        self,
        callback: ApiCallback[Account],
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None
    ) -> Future:
        return self.dispatcher.execute_async(
            endpoints.ACCOUNT, Account, callback, **self._signed(recv_window, timestamp),
        )

    def get_my_trades(
        self,
        symbol: str,
        callback: ApiCallback[List[Trade]],
        limit: Optional[int] = None,
        from_id: Optional[int] = None,
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None
    ) -> Future:
        return self.dispatcher.execute_async(
            endpoints.MY_TRADES, List[Trade], callback,
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
        callback: ApiCallback[WithdrawResult],
        network: Optional[str] = None,
        withdraw_order_id: Optional[str] = None,
        address_tag: Optional[str] = None,
        transaction_fee_flag: Optional[bool] = None,
        name: Optional[str] = None
    ) -> Future:
        return self.dispatcher.execute_async(
            endpoints.WITHDRAW, WithdrawResult, callback,
            coin=coin, withdrawOrderId=withdraw_order_id, network=network, address=address,
            addressTag=address_tag, amount=amount, transactionFeeFlag=transaction_fee_flag, name=name,
            **self._signed(),
        )

    def get_deposit_history(self, coin: Optional[str], callback: ApiCallback[List[Deposit]]) -> Future:
        return self.dispatcher.execute_async(
            endpoints.DEPOSIT_HISTORY, List[Deposit], callback, coin=coin, **self._signed(),
        )

    def get_withdraw_history(self, coin: Optional[str], callback: ApiCallback[List[Withdraw]]) -> Future:
        return self.dispatcher.execute_async(
            endpoints.WITHDRAW_HISTORY, List[Withdraw], callback, coin=coin, **self._signed(),
        )

    def get_deposit_address(
        self,
        coin: str,
        callback: ApiCallback[DepositAddress],
        network: Optional[str] = None
    ) -> Future:
        return self.dispatcher.execute_async(
            endpoints.DEPOSIT_ADDRESS, DepositAddress, callback, coin=coin, network=network, **self._signed(),
        )

    def coins_available(self, callback: ApiCallback[List[CoinInformation]]) -> Future:
        return self.dispatcher.execute_async(
            endpoints.COINS_AVAILABLE, List[CoinInformation], callback, **self._signed(),
        )

    def dust_transfer(self, assets: List[str], callback: ApiCallback[DustTransferResponse]) -> Future:
        return self.dispatcher.execute_async(
            endpoints.DUST_TRANSFER, DustTransferResponse, callback,
            asset=[asset.upper() for asset in assets], **self._signed(),
        )

    def get_sub_account_transfers(
        self,
        callback: ApiCallback[List[SubAccountTransfer]],
        asset: Optional[str] = None,
        transfer_type: Optional[int] = None,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None,
        limit: Optional[int] = None
    ) -> Future:
        return self.dispatcher.execute_async(
            endpoints.SUB_ACCOUNT_TRANSFERS, List[SubAccountTransfer], callback,
            asset=asset, type=transfer_type, startTime=start_time, endTime=end_time, limit=limit,
            **self._signed(),
        )

    # ============================================
    # User Data Stream Endpoints
    # ============================================

    def start_user_data_stream(self, callback: ApiCallback[ListenKey]) -> Future:
        return self.dispatcher.execute_async(endpoints.START_USER_DATA_STREAM, ListenKey, callback)

    def keep_alive_user_data_stream(self, listen_key: str, callback: ApiCallback[None]) -> Future:
        return self.dispatcher.execute_async(
            endpoints.KEEP_ALIVE_USER_DATA_STREAM, None, callback, listenKey=listen_key,
        )

    def close_user_data_stream(self, listen_key: str, callback: ApiCallback[None]) -> Future:
        return self.dispatcher.execute_async(
            endpoints.CLOSE_USER_DATA_STREAM, None, callback, listenKey=listen_key,
        )
