"""
Pytest fixtures for Periodman tests.
"""

from datetime import date, timedelta

import pytest

from periodman.adapters.memory import InMemoryMetafieldBackend
from periodman.adapters.registry import reset_metafield_backend
from periodman.documents import WindowSpec
from periodman.publisher import CatalogPublisher
from periodman.tests.factories import VARIANT_LARGE, VARIANT_SMALL, UnreachableBackend


@pytest.fixture(autouse=True)
def periodman_settings(settings):
    """Memory backend, UTC shop calendar, fresh backend cache per test."""
    settings.PERIODMAN = {
        'METAFIELD_BACKEND': 'periodman.adapters.memory.InMemoryMetafieldBackend',
        'SHOP_TIMEZONE': 'UTC',
    }
    reset_metafield_backend()
    yield settings.PERIODMAN
    reset_metafield_backend()


@pytest.fixture
def backend():
    """In-memory catalog."""
    return InMemoryMetafieldBackend()


@pytest.fixture
def publisher(backend):
    """Publisher writing to the in-memory catalog."""
    return CatalogPublisher(backend)


@pytest.fixture
def unreachable_publisher():
    """Publisher whose catalog is down."""
    return CatalogPublisher(UnreachableBackend())


@pytest.fixture
def today():
    """Fixed shop-local date."""
    return date(2024, 5, 15)


@pytest.fixture
def windows(today):
    """Two variants: small active now, large starting tomorrow."""
    return [
        WindowSpec(VARIANT_SMALL, '500g', today, today + timedelta(days=10)),
        WindowSpec(VARIANT_LARGE, '1kg', today + timedelta(days=1), today + timedelta(days=10)),
    ]
