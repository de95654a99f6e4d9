"""storeapi: user accounts and a product catalog behind token authentication."""

__version__ = "0.1.0"
