"""
Shared fixtures for the dispatch layer tests.

The network is replaced by httpx.MockTransport: every ConnectionManager built
here hands out mock transports that route requests to a Recorder, which keeps
the final (post-signing) requests and answers with a configurable response.
"""

import threading
from typing import Callable, List

import httpx
import pytest

from exchanges.binance.auth import CredentialBinder, Credentials
from exchanges.binance.connection import ConnectionManager
from exchanges.binance.dispatcher import Dispatcher

BASE_URL = "https://api.test.binance"
API_KEY = "test-api-key"
SECRET = "test-secret"


class Recorder:
    """Mock transport handler recording every request it receives"""

    def __init__(self):
        self._lock = threading.Lock()
        self.requests: List[httpx.Request] = []
        self.responder: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(200, json={})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
        return self.responder(request)

    def respond_with(self, status_code: int = 200, json=None, content: bytes = None) -> None:
        if content is not None:
            self.responder = lambda request: httpx.Response(status_code, content=content)
        else:
            self.responder = lambda request: httpx.Response(status_code, json=json)

    def fail_with(self, exc: Exception) -> None:
        def raise_exc(request):
            raise exc
        self.responder = raise_exc

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def recorder():
    """Request recorder shared by every transport of the test"""
    return Recorder()


@pytest.fixture
def manager(recorder):
    """ConnectionManager whose transports are mock transports feeding the recorder"""
    manager = ConnectionManager(transport_factory=lambda proxy: httpx.MockTransport(recorder))
    yield manager
    manager.reset()


@pytest.fixture
def anonymous_dispatcher(manager):
    """Dispatcher bound to the shared transport (no credentials)"""
    transport = CredentialBinder(manager).bind(None)
    return Dispatcher(transport, base_url=BASE_URL, manager=manager)


@pytest.fixture
def signed_dispatcher(manager):
    """Dispatcher bound to a credential-bound transport"""
    transport = CredentialBinder(manager).bind(Credentials(api_key=API_KEY, secret=SECRET))
    return Dispatcher(transport, base_url=BASE_URL, manager=manager)
