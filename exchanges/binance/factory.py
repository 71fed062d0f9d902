"""
Client Factory

Convenience construction of REST clients from one set of credentials.

Usage:
    factory = BinanceApiClientFactory.new_instance(api_key, secret)
    rest = factory.new_rest_client()
    callbacks = factory.new_async_rest_client()

    # Public data only, against the spot test network
    factory = BinanceApiClientFactory.new_instance(use_testnet=True)
"""

from typing import Optional

from core.config import settings
from exchanges.binance.api_client import BinanceApiRestClient
from exchanges.binance.async_client import BinanceApiAsyncRestClient
from exchanges.binance.auth import Credentials
from exchanges.binance.connection import ConnectionManager, ProxySetting, connection_manager


class BinanceApiClientFactory:
    """
    Creates blocking and callback REST clients sharing one configuration.

    Attributes:
        api_key: API key, or None for anonymous clients
        secret: API secret, or None for anonymous clients
        base_url: Production or test network URL
        manager: Connection manager owning the shared transport
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        secret: Optional[str] = None,
        use_testnet: bool = False,
        manager: ConnectionManager = connection_manager
    ):
        # Fail on half-filled credentials here rather than on the first client
        Credentials.of(api_key, secret)
        self.api_key = api_key
        self.secret = secret
        self.base_url = settings.binance_testnet_url if use_testnet else settings.binance_base_url
        self.manager = manager

    @classmethod
    def new_instance(
        cls,
        api_key: Optional[str] = None,
        secret: Optional[str] = None,
        use_testnet: bool = False
    ) -> "BinanceApiClientFactory":
        return cls(api_key, secret, use_testnet)

    @classmethod
    def from_settings(cls) -> "BinanceApiClientFactory":
        """Factory configured from BINANCE_API_KEY / BINANCE_SECRET_KEY / USE_TESTNET."""
        return cls(settings.binance_api_key or None, settings.binance_secret_key or None, settings.use_testnet)

    def new_rest_client(self, proxy: ProxySetting = None) -> BinanceApiRestClient:
        """Create a new blocking REST client, optionally switching the shared proxy first."""
        return BinanceApiRestClient(
            self.api_key, self.secret, proxy=proxy, base_url=self.base_url, manager=self.manager,
        )

    def new_async_rest_client(self, proxy: ProxySetting = None) -> BinanceApiAsyncRestClient:
        """Create a new callback REST client, optionally switching the shared proxy first."""
        return BinanceApiAsyncRestClient(
            self.api_key, self.secret, proxy=proxy, base_url=self.base_url, manager=self.manager,
        )
