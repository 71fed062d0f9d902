"""
Exchange Connectors Package

Each exchange has its own subfolder. The Binance connector provides the
authenticated REST dispatch layer:
- connection.py: shared pooled transport
- auth.py / signer.py: credential binding and request signing
- dispatcher.py: blocking and callback execution
- api_client.py / async_client.py: typed facades over the endpoint table
"""
