"""
Metafield backend loader.

Loads the configured MetafieldBackend from settings.

Usage:
    from periodman.adapters import get_metafield_backend

    backend = get_metafield_backend()
    result = backend.write_metafield(product_id, "sales_period", "sales_period", value)

Settings:
    PERIODMAN = {
        "METAFIELD_BACKEND": "periodman.adapters.shopify.ShopifyMetafieldBackend",
    }

If METAFIELD_BACKEND is not configured, get_metafield_backend() raises ImproperlyConfigured.
"""

from __future__ import annotations

import logging
import threading

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from periodman.conf import periodman_settings
from periodman.protocols.catalog import MetafieldBackend

logger = logging.getLogger(__name__)


# Cached backend instance
_lock = threading.Lock()
_metafield_backend: MetafieldBackend | None = None


def get_metafield_backend() -> MetafieldBackend:
    """
    Return the configured metafield backend.

    Returns:
        MetafieldBackend instance

    Raises:
        ImproperlyConfigured: If METAFIELD_BACKEND is not configured or import fails
    """
    global _metafield_backend

    if _metafield_backend is None:
        with _lock:
            if _metafield_backend is None:  # double-checked
                backend_path = periodman_settings.METAFIELD_BACKEND

                if not backend_path:
                    raise ImproperlyConfigured(
                        "PERIODMAN['METAFIELD_BACKEND'] must be configured. "
                        "Example: 'periodman.adapters.shopify.ShopifyMetafieldBackend'"
                    )

                try:
                    backend_class = import_string(backend_path)
                except ImportError as e:
                    raise ImproperlyConfigured(
                        f"Failed to import metafield backend '{backend_path}': {e}"
                    ) from e
                _metafield_backend = backend_class()
                logger.debug("Loaded metafield backend: %s", backend_path)

    return _metafield_backend


def reset_metafield_backend() -> None:
    """Reset the cached backend. Useful for testing."""
    global _metafield_backend
    _metafield_backend = None
