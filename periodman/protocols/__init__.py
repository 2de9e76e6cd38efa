"""
Periodman Protocols.

Defines interfaces for external system integration.
"""

from periodman.protocols.catalog import (
    MetafieldBackend,
    MetafieldDeleteResult,
    MetafieldReadResult,
    MetafieldWriteResult,
)

__all__ = [
    "MetafieldBackend",
    "MetafieldDeleteResult",
    "MetafieldReadResult",
    "MetafieldWriteResult",
]
