"""
Periodman configuration.

Usage in settings.py:
    PERIODMAN = {
        "METAFIELD_BACKEND": "periodman.adapters.shopify.ShopifyMetafieldBackend",
        "WRITE_POLICY": "strict",
        "SHOP_TIMEZONE": "America/Sao_Paulo",
        "SHOPIFY_SHOP_DOMAIN": "padaria.myshopify.com",
        "SHOPIFY_ACCESS_TOKEN": "shpat_...",
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings

from periodman.documents import METAFIELD_KEY, METAFIELD_NAMESPACE

WRITE_POLICY_STRICT = "strict"
WRITE_POLICY_BEST_EFFORT = "best_effort"


@dataclass
class PeriodmanSettings:
    """Periodman configuration settings."""

    # Metafield backend for the external catalog (dotted path)
    METAFIELD_BACKEND: str = ""

    # Metafield address (namespace + key) on the catalog item
    METAFIELD_NAMESPACE: str = METAFIELD_NAMESPACE
    METAFIELD_KEY: str = METAFIELD_KEY

    # "strict" aborts on publish/retract failure, "best_effort" commits anyway
    WRITE_POLICY: str = WRITE_POLICY_STRICT

    # Default window length for newly attached variants (today .. today+N)
    DEFAULT_WINDOW_DAYS: int = 10

    # IANA zone of the merchant's calendar ("" = Django TIME_ZONE)
    SHOP_TIMEZONE: str = ""

    # Shopify admin API
    SHOPIFY_SHOP_DOMAIN: str = ""
    SHOPIFY_ACCESS_TOKEN: str = ""
    SHOPIFY_API_VERSION: str = "2024-10"
    SHOPIFY_TIMEOUT: float = 10.0


def get_periodman_settings() -> PeriodmanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "PERIODMAN", {})
    return PeriodmanSettings(**{
        k: v for k, v in user_settings.items()
        if k in PeriodmanSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_periodman_settings(), name)


periodman_settings = _LazySettings()
