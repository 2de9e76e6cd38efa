"""
Periodman Adapters.

Implementations of protocols for external systems.
"""

from periodman.adapters.memory import InMemoryMetafieldBackend
from periodman.adapters.registry import get_metafield_backend, reset_metafield_backend
from periodman.adapters.shopify import ShopifyMetafieldBackend

__all__ = [
    "InMemoryMetafieldBackend",
    "ShopifyMetafieldBackend",
    "get_metafield_backend",
    "reset_metafield_backend",
]
