"""
Unit Tests for the Request Dispatcher

These tests verify:
- Request preparation (parameter order, absent values, path templates)
- Decoding of 2xx bodies and translation of failures
- Blocking and callback modes report identical errors
- Callback mode invokes exactly one callback, exactly once

Run with:
    pytest tests/unit/test_dispatcher.py -v
"""

import threading
from decimal import Decimal
from typing import List

import httpx
import pytest

from core.schemas import OrderBook, OrderSide, TickerPrice
from exchanges.binance import endpoints
from exchanges.binance.dispatcher import Dispatcher, FunctionCallback, render_value
from exchanges.binance.endpoints import EndpointSpec, SecurityClass
from exchanges.binance.exceptions import (
    ApiError,
    BinanceApiException,
    NetworkError,
    SerializationError,
    ValidationError,
)


class CollectingCallback:
    """Records every callback invocation"""

    def __init__(self):
        self.lock = threading.Lock()
        self.responses = []
        self.failures: List[BinanceApiException] = []

    def on_response(self, response):
        with self.lock:
            self.responses.append(response)

    def on_failure(self, error):
        with self.lock:
            self.failures.append(error)

    @property
    def invocations(self) -> int:
        return len(self.responses) + len(self.failures)


class FailingStream(httpx.SyncByteStream):
    """Response body that breaks after the headers were received"""

    def __iter__(self):
        yield b'{"symbol": '
        raise httpx.ReadError("connection reset while reading body")


def corrupt_gzip_response(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, headers={"Content-Encoding": "gzip"}, stream=httpx.ByteStream(b"not gzip"))


def truncated_body_response(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, stream=FailingStream())


# ============================================
# Preparation
# ============================================

class TestRenderValue:
    """Test rendering of parameter values"""

    @pytest.mark.parametrize("value, rendered", [
        (True, "true"),
        (False, "false"),
        (OrderSide.BUY, "BUY"),
        (Decimal("0.00000100"), "0.00000100"),
        (Decimal("1E-7"), "0.0000001"),
        (["BTCUSDT", "ETHBTC"], "BTCUSDT,ETHBTC"),
        (5, "5"),
        ("ETHBTC", "ETHBTC"),
    ])
    def test_render(self, value, rendered):
        """Verify values are rendered in exchange notation"""
        assert render_value(value) == rendered


class TestPrepare:
    """Test resolution of endpoint + arguments"""

    def test_params_follow_declared_order(self, anonymous_dispatcher):
        """Verify parameters are ordered by the endpoint declaration, not the call"""
        prepared = anonymous_dispatcher.prepare(endpoints.KLINES, limit=5, interval="1m", symbol="ETHBTC")
        assert prepared.params == [("symbol", "ETHBTC"), ("interval", "1m"), ("limit", "5")]

    def test_absent_values_dropped(self, anonymous_dispatcher):
        """Verify None values are not sent"""
        prepared = anonymous_dispatcher.prepare(endpoints.ORDER_BOOK, symbol="ETHBTC", limit=None)
        assert prepared.params == [("symbol", "ETHBTC")]
        assert prepared.param("limit") is None

    def test_list_values_repeat_the_name(self, anonymous_dispatcher):
        """Verify a list argument becomes one pair per item, in order"""
        prepared = anonymous_dispatcher.prepare(
            endpoints.DUST_TRANSFER, asset=["BTC", "USDT"], recvWindow=5000, timestamp=1000,
        )
        assert prepared.params == [
            ("asset", "BTC"), ("asset", "USDT"), ("recvWindow", "5000"), ("timestamp", "1000"),
        ]

    def test_url_joins_base_and_path(self, anonymous_dispatcher):
        """Verify the absolute URL is base URL + endpoint path"""
        prepared = anonymous_dispatcher.prepare(endpoints.PING)
        assert prepared.url == "https://api.test.binance/api/v3/ping"
        assert prepared.method == "GET"

    def test_unknown_argument_rejected(self, anonymous_dispatcher):
        """Verify misspelled parameters are rejected"""
        with pytest.raises(ValidationError, match="unknown"):
            anonymous_dispatcher.prepare(endpoints.ORDER_BOOK, symbol="ETHBTC", limt=5)

    def test_path_template_resolved(self, anonymous_dispatcher):
        """Verify {name} placeholders are filled and percent-encoded"""
        endpoint = EndpointSpec("GET", "/api/v3/items/{itemId}", params=("limit",))
        prepared = anonymous_dispatcher.prepare(endpoint, itemId="a/b c", limit=1)
        assert prepared.url == "https://api.test.binance/api/v3/items/a%2Fb%20c"
        assert prepared.params == [("limit", "1")]

    def test_missing_path_argument(self, anonymous_dispatcher):
        """Verify a missing placeholder value is rejected"""
        endpoint = EndpointSpec("GET", "/api/v3/items/{itemId}")
        with pytest.raises(ValidationError, match="itemId"):
            anonymous_dispatcher.prepare(endpoint)

    @pytest.mark.parametrize("arguments", [
        {"recvWindow": 5000},
        {"timestamp": 1000},
        {},
    ])
    def test_signed_without_timestamp_or_recv_window(self, signed_dispatcher, recorder, arguments):
        """Verify SIGNED calls missing fields fail before any request is sent"""
        with pytest.raises(ValidationError):
            signed_dispatcher.execute(endpoints.ACCOUNT, None, **arguments)
        assert recorder.requests == []


# ============================================
# Blocking Mode
# ============================================

class TestBlockingExecution:
    """Test execute()"""

    def test_decodes_typed_response(self, anonymous_dispatcher, recorder):
        """Verify a 2xx body is decoded into the requested model"""
        recorder.respond_with(200, json={"symbol": "ETHBTC", "price": "0.05310000"})
        result = anonymous_dispatcher.execute(endpoints.TICKER_PRICE, TickerPrice, symbol="ETHBTC")
        assert result == TickerPrice(symbol="ETHBTC", price=Decimal("0.05310000"))

    def test_decodes_list_response(self, anonymous_dispatcher, recorder):
        """Verify list response types are supported"""
        recorder.respond_with(200, json=[{"symbol": "ETHBTC", "price": "0.05"}, {"symbol": "LTCBTC", "price": "0.002"}])
        result = anonymous_dispatcher.execute(endpoints.TICKER_PRICE, List[TickerPrice])
        assert [ticker.symbol for ticker in result] == ["ETHBTC", "LTCBTC"]

    def test_order_book_response(self, anonymous_dispatcher, recorder):
        """Verify nested price levels decode from arrays"""
        recorder.respond_with(200, json={
            "lastUpdateId": 1027024,
            "bids": [["4.00000000", "431.00000000"]],
            "asks": [["4.00000200", "12.00000000"]],
        })
        book = anonymous_dispatcher.execute(endpoints.ORDER_BOOK, OrderBook, symbol="ETHBTC", limit=5)
        assert book.last_update_id == 1027024
        assert book.bids[0].price == Decimal("4.00000000")
        assert book.asks[0].qty == Decimal("12.00000000")

    def test_none_response_type_ignores_body(self, anonymous_dispatcher, recorder):
        """Verify calls with no result type return None"""
        recorder.respond_with(200, json={})
        assert anonymous_dispatcher.execute(endpoints.PING, None) is None

    def test_request_method_and_query(self, anonymous_dispatcher, recorder):
        """Verify the recorded request matches the endpoint"""
        anonymous_dispatcher.execute(endpoints.ORDER_BOOK, None, symbol="ETHBTC", limit=5)
        request = recorder.last
        assert request.method == "GET"
        assert request.url.path == "/api/v3/depth"
        assert request.url.query == b"symbol=ETHBTC&limit=5"

    def test_timeout_extension_set(self, recorder, manager):
        """Verify the configured timeout travels with the request"""
        transport = manager.current_transport()
        dispatcher = Dispatcher(transport, base_url="https://api.test.binance", timeout=2.5, manager=manager)
        dispatcher.execute(endpoints.PING, None)
        assert recorder.last.extensions["timeout"]["read"] == 2.5

    def test_api_error(self, anonymous_dispatcher, recorder):
        """Verify a non-2xx {code, msg} body raises ApiError"""
        recorder.respond_with(400, json={"code": -1121, "msg": "Invalid symbol."})
        with pytest.raises(ApiError) as exc_info:
            anonymous_dispatcher.execute(endpoints.TICKER_PRICE, TickerPrice, symbol="NOPE")
        assert exc_info.value.code == -1121
        assert exc_info.value.status_code == 400

    def test_api_error_with_html_body(self, anonymous_dispatcher, recorder):
        """Verify a non-JSON error body still raises ApiError with the status"""
        recorder.respond_with(403, content=b"<html>WAF</html>")
        with pytest.raises(ApiError) as exc_info:
            anonymous_dispatcher.execute(endpoints.PING, None)
        assert exc_info.value.status_code == 403
        assert exc_info.value.error is None

    def test_malformed_success_body(self, anonymous_dispatcher, recorder):
        """Verify a 2xx body that does not match the type raises SerializationError"""
        recorder.respond_with(200, content=b"not json at all")
        with pytest.raises(SerializationError) as exc_info:
            anonymous_dispatcher.execute(endpoints.TICKER_PRICE, TickerPrice, symbol="ETHBTC")
        assert exc_info.value.body == "not json at all"

    def test_missing_field_in_success_body(self, anonymous_dispatcher, recorder):
        """Verify a 2xx JSON body missing required fields raises SerializationError"""
        recorder.respond_with(200, json={"symbol": "ETHBTC"})
        with pytest.raises(SerializationError):
            anonymous_dispatcher.execute(endpoints.TICKER_PRICE, TickerPrice, symbol="ETHBTC")

    def test_timeout_raises_network_error(self, anonymous_dispatcher, recorder):
        """Verify a timeout raises NetworkError"""
        recorder.fail_with(httpx.ReadTimeout("timed out"))
        with pytest.raises(NetworkError) as exc_info:
            anonymous_dispatcher.execute(endpoints.PING, None)
        assert "timeout" in exc_info.value.reason

    def test_connection_refused_raises_network_error(self, anonymous_dispatcher, recorder):
        """Verify a refused connection raises NetworkError"""
        recorder.fail_with(httpx.ConnectError("Connection refused"))
        with pytest.raises(NetworkError):
            anonymous_dispatcher.execute(endpoints.PING, None)

    def test_corrupt_compressed_body_raises_serialization_error(self, anonymous_dispatcher, recorder):
        """Verify a body that fails content decoding raises SerializationError"""
        recorder.responder = corrupt_gzip_response
        with pytest.raises(SerializationError) as exc_info:
            anonymous_dispatcher.execute(endpoints.TICKER_PRICE, TickerPrice, symbol="ETHBTC")
        assert isinstance(exc_info.value.__cause__, httpx.DecodingError)

    def test_body_read_failure_raises_network_error(self, anonymous_dispatcher, recorder):
        """Verify a connection lost while reading the body raises NetworkError"""
        recorder.responder = truncated_body_response
        with pytest.raises(NetworkError) as exc_info:
            anonymous_dispatcher.execute(endpoints.TICKER_PRICE, TickerPrice, symbol="ETHBTC")
        assert "ReadError" in exc_info.value.reason

    def test_unexpected_error_is_wrapped(self, anonymous_dispatcher, recorder):
        """Verify a non-client exception is raised as BinanceApiException"""
        recorder.fail_with(RuntimeError("boom"))
        with pytest.raises(BinanceApiException) as exc_info:
            anonymous_dispatcher.execute(endpoints.PING, None)
        assert type(exc_info.value) is BinanceApiException
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert "boom" in str(exc_info.value)


# ============================================
# Callback Mode
# ============================================

class TestCallbackExecution:
    """Test execute_async()"""

    def test_success_invokes_on_response(self, anonymous_dispatcher, recorder):
        """Verify a successful call invokes only on_response"""
        recorder.respond_with(200, json={"symbol": "ETHBTC", "price": "0.05"})
        callback = CollectingCallback()
        anonymous_dispatcher.execute_async(endpoints.TICKER_PRICE, TickerPrice, callback, symbol="ETHBTC").result(timeout=5)
        assert callback.responses == [TickerPrice(symbol="ETHBTC", price=Decimal("0.05"))]
        assert callback.failures == []

    def test_failure_invokes_on_failure(self, anonymous_dispatcher, recorder):
        """Verify a failed call invokes only on_failure"""
        recorder.respond_with(400, json={"code": -1121, "msg": "Invalid symbol."})
        callback = CollectingCallback()
        anonymous_dispatcher.execute_async(endpoints.TICKER_PRICE, TickerPrice, callback, symbol="NOPE").result(timeout=5)
        assert callback.responses == []
        assert len(callback.failures) == 1
        assert isinstance(callback.failures[0], ApiError)

    def test_validation_error_goes_to_callback(self, signed_dispatcher, recorder):
        """Verify pre-send validation errors are delivered, not raised"""
        callback = CollectingCallback()
        future = signed_dispatcher.execute_async(endpoints.ACCOUNT, None, callback, recvWindow=5000)
        future.result(timeout=5)
        assert isinstance(callback.failures[0], ValidationError)
        assert recorder.requests == []

    @pytest.mark.parametrize("configure", [
        lambda recorder: recorder.respond_with(400, json={"code": -1121, "msg": "Invalid symbol."}),
        lambda recorder: recorder.respond_with(503, content=b"<html>unavailable</html>"),
        lambda recorder: recorder.respond_with(200, content=b"garbage"),
        lambda recorder: recorder.fail_with(httpx.ConnectTimeout("connect timed out")),
        lambda recorder: setattr(recorder, "responder", corrupt_gzip_response),
        lambda recorder: setattr(recorder, "responder", truncated_body_response),
        lambda recorder: recorder.fail_with(RuntimeError("boom")),
    ])
    def test_modes_report_identical_errors(self, anonymous_dispatcher, recorder, configure):
        """Verify blocking and callback modes produce the same error"""
        configure(recorder)

        with pytest.raises(BinanceApiException) as exc_info:
            anonymous_dispatcher.execute(endpoints.TICKER_PRICE, TickerPrice, symbol="ETHBTC")
        blocking = exc_info.value

        callback = CollectingCallback()
        anonymous_dispatcher.execute_async(endpoints.TICKER_PRICE, TickerPrice, callback, symbol="ETHBTC").result(timeout=5)
        asynchronous = callback.failures[0]

        assert type(blocking) is type(asynchronous)
        assert str(blocking) == str(asynchronous)
        assert getattr(blocking, "status_code", None) == getattr(asynchronous, "status_code", None)
        assert getattr(blocking, "code", None) == getattr(asynchronous, "code", None)

    def test_unexpected_error_is_wrapped(self, anonymous_dispatcher, recorder):
        """Verify a non-client exception still reaches on_failure as BinanceApiException"""
        recorder.fail_with(RuntimeError("boom"))
        callback = CollectingCallback()
        anonymous_dispatcher.execute_async(endpoints.PING, None, callback).result(timeout=5)
        assert len(callback.failures) == 1
        assert isinstance(callback.failures[0].__cause__, RuntimeError)

    def test_raising_response_handler_does_not_trigger_failure(self, anonymous_dispatcher, recorder):
        """Verify an exception in on_response never leads to on_failure"""
        failures = []

        def explode(response):
            raise RuntimeError("handler bug")

        callback = FunctionCallback(explode, failures.append)
        anonymous_dispatcher.execute_async(endpoints.PING, None, callback).result(timeout=5)
        assert failures == []

    def test_returns_before_completion(self, anonymous_dispatcher, recorder):
        """Verify the caller is not blocked while the request is in flight"""
        release = threading.Event()

        def slow(request):
            release.wait(5)
            return httpx.Response(200, json={})

        recorder.responder = slow
        callback = CollectingCallback()
        future = anonymous_dispatcher.execute_async(endpoints.PING, None, callback)
        assert not future.done()
        release.set()
        future.result(timeout=5)
        assert callback.responses == [None]

    def test_exactly_one_callback_per_call_under_load(self, anonymous_dispatcher, recorder):
        """Verify 100 concurrent calls with 50% failures give exactly 100 invocations"""
        counter = {"n": 0}
        lock = threading.Lock()

        def alternate(request):
            with lock:
                counter["n"] += 1
                fail = counter["n"] % 2 == 0
            if fail:
                return httpx.Response(500, json={"code": -1000, "msg": "Unknown error."})
            return httpx.Response(200, json={"symbol": "ETHBTC", "price": "0.05"})

        recorder.responder = alternate
        callback = CollectingCallback()
        futures = [
            anonymous_dispatcher.execute_async(endpoints.TICKER_PRICE, TickerPrice, callback, symbol="ETHBTC")
            for _ in range(100)
        ]
        for future in futures:
            future.result(timeout=10)

        assert callback.invocations == 100
        assert len(callback.responses) == 50
        assert len(callback.failures) == 50
        assert all(isinstance(error, ApiError) for error in callback.failures)


class TestEndpointSpec:
    """Test endpoint descriptors"""

    def test_method_uppercased(self):
        """Verify the method is normalized"""
        assert EndpointSpec("get", "/x").method == "GET"

    def test_default_security_is_none(self):
        """Verify endpoints are public unless declared otherwise"""
        assert EndpointSpec("GET", "/x").security is SecurityClass.NONE

    def test_requires_api_key(self):
        """Verify API_KEY and SIGNED endpoints need the header"""
        assert not SecurityClass.NONE.requires_api_key
        assert SecurityClass.API_KEY.requires_api_key
        assert SecurityClass.SIGNED.requires_api_key

    def test_signed_endpoints_declare_timing_params(self):
        """Verify every SIGNED endpoint accepts recvWindow and timestamp"""
        signed = [
            value for value in vars(endpoints).values()
            if isinstance(value, EndpointSpec) and value.security is SecurityClass.SIGNED
        ]
        assert signed
        for endpoint in signed:
            assert "recvWindow" in endpoint.params
            assert "timestamp" in endpoint.params
