"""
In-memory Metafield Backend — adapter for development and testing.

Stores metafields in a process-local dict. Every write succeeds and echoes
the value back, deletes report whether something was removed.

Usage in settings.py:
    PERIODMAN = {
        "METAFIELD_BACKEND": "periodman.adapters.memory.InMemoryMetafieldBackend",
    }

WARNING: Do NOT use in production. Nothing reaches the real catalog, so
checkout never sees the published documents.
"""

from __future__ import annotations

from periodman.protocols.catalog import (
    MetafieldDeleteResult,
    MetafieldReadResult,
    MetafieldWriteResult,
)


class InMemoryMetafieldBackend:
    """
    Dict-backed MetafieldBackend.

    Suitable for:
    - Local development without a shop
    - Tests that need to inspect what was published
    """

    def __init__(self, timezone: str | None = None):
        self.fields: dict[tuple[str, str, str], str] = {}
        self.timezone = timezone

    def write_metafield(self, owner_id, namespace, key, value) -> MetafieldWriteResult:
        self.fields[(owner_id, namespace, key)] = value
        return MetafieldWriteResult(success=True, value=value)

    def delete_metafield(self, owner_id, namespace, key) -> MetafieldDeleteResult:
        existed = self.fields.pop((owner_id, namespace, key), None) is not None
        return MetafieldDeleteResult(success=True, deleted=existed)

    def read_metafield(self, owner_id, namespace, key) -> MetafieldReadResult:
        return MetafieldReadResult(success=True, value=self.fields.get((owner_id, namespace, key)))

    def get_shop_timezone(self) -> str | None:
        return self.timezone
