"""
Catalog Metafield Protocol — Interface to the external catalog system.

Periodman defines this protocol; the Shopify adapter (or any other catalog)
implements it. Backends report failures through the result objects instead
of raising, so the publisher decides how a failure surfaces.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class MetafieldWriteResult:
    """Result of writing a metafield."""

    success: bool
    value: str | None = None  # Value echoed back by the catalog
    message: str | None = None
    error_code: str | None = None  # "unreachable", "rejected", ...


@dataclass(frozen=True)
class MetafieldDeleteResult:
    """Result of deleting a metafield."""

    success: bool
    deleted: bool = False  # False when there was nothing to delete
    message: str | None = None
    error_code: str | None = None


@dataclass(frozen=True)
class MetafieldReadResult:
    """Result of reading a metafield."""

    success: bool
    value: str | None = None  # None = field absent
    message: str | None = None


@runtime_checkable
class MetafieldBackend(Protocol):
    """
    Protocol for the catalog's per-item metadata field.

    Implementations should provide methods to:
    - Write (fully overwrite) a JSON metafield on a catalog item
    - Delete it
    - Read it back (reconciliation)
    - Report the shop's timezone
    """

    def write_metafield(
        self, owner_id: str, namespace: str, key: str, value: str,
    ) -> MetafieldWriteResult:
        """
        Overwrite the metafield on the catalog item.

        Args:
            owner_id: Catalog item id
            namespace: Metafield namespace
            key: Metafield key
            value: Serialized JSON document

        Returns:
            MetafieldWriteResult with the stored value on success
        """
        ...

    def delete_metafield(
        self, owner_id: str, namespace: str, key: str,
    ) -> MetafieldDeleteResult:
        """Remove the metafield from the catalog item."""
        ...

    def read_metafield(
        self, owner_id: str, namespace: str, key: str,
    ) -> MetafieldReadResult:
        """Read the current metafield value."""
        ...

    def get_shop_timezone(self) -> str | None:
        """IANA timezone configured for the shop, if known."""
        ...
