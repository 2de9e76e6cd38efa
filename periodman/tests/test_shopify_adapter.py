"""
Tests for the Shopify metafield backend (httpx MockTransport, no network).
"""

import json

import httpx
import pytest

from periodman.adapters.shopify import ShopifyMetafieldBackend
from periodman.tests.factories import PRODUCT_ID


def make_backend(handler):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return ShopifyMetafieldBackend(
        shop_domain='padaria.myshopify.com',
        access_token='shpat_test',
        api_version='2024-10',
        client=client,
    )


def graphql(data=None, errors=None, status=200):
    def handler(request):
        handler.requests.append(request)
        body = {}
        if data is not None:
            body['data'] = data
        if errors is not None:
            body['errors'] = errors
        return httpx.Response(status, json=body)

    handler.requests = []
    return handler


class TestWriteMetafield:
    """metafieldsSet."""

    def test_success_echoes_value(self):
        handler = graphql({'metafieldsSet': {
            'metafields': [{'namespace': 'sales_period', 'key': 'sales_period', 'value': '{"a":1}'}],
            'userErrors': [],
        }})

        result = make_backend(handler).write_metafield(PRODUCT_ID, 'sales_period', 'sales_period', '{"a":1}')

        assert result.success
        assert result.value == '{"a":1}'

        request = handler.requests[0]
        assert request.url == 'https://padaria.myshopify.com/admin/api/2024-10/graphql.json'
        assert request.headers['X-Shopify-Access-Token'] == 'shpat_test'
        variables = json.loads(request.content)['variables']
        assert variables['metafields'][0] == {
            'ownerId': PRODUCT_ID, 'namespace': 'sales_period', 'key': 'sales_period',
            'type': 'json', 'value': '{"a":1}',
        }

    def test_user_errors_rejected(self):
        handler = graphql({'metafieldsSet': {
            'metafields': [], 'userErrors': [{'field': ['value'], 'message': 'Value is invalid'}],
        }})

        result = make_backend(handler).write_metafield(PRODUCT_ID, 'ns', 'key', '{}')

        assert not result.success
        assert result.error_code == 'rejected'
        assert result.message == 'Value is invalid'

    def test_missing_value_is_unconfirmed(self):
        handler = graphql({'metafieldsSet': {'metafields': [], 'userErrors': []}})

        result = make_backend(handler).write_metafield(PRODUCT_ID, 'ns', 'key', '{}')

        assert result.success
        assert result.value is None

    def test_http_error(self):
        result = make_backend(graphql(status=502)).write_metafield(PRODUCT_ID, 'ns', 'key', '{}')

        assert not result.success
        assert result.error_code == 'unreachable'

    def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError('connection refused', request=request)

        result = make_backend(handler).write_metafield(PRODUCT_ID, 'ns', 'key', '{}')

        assert not result.success
        assert 'connection refused' in result.message

    def test_top_level_graphql_errors(self):
        handler = graphql(errors=[{'message': 'Throttled'}])

        result = make_backend(handler).write_metafield(PRODUCT_ID, 'ns', 'key', '{}')

        assert not result.success
        assert result.message == 'Throttled'


class TestDeleteMetafield:
    """metafieldsDelete."""

    def test_deleted(self):
        handler = graphql({'metafieldsDelete': {
            'deletedMetafields': [{'key': 'sales_period', 'namespace': 'sales_period', 'ownerId': PRODUCT_ID}],
            'userErrors': [],
        }})

        result = make_backend(handler).delete_metafield(PRODUCT_ID, 'sales_period', 'sales_period')

        assert result.success
        assert result.deleted

    def test_nothing_to_delete(self):
        handler = graphql({'metafieldsDelete': {'deletedMetafields': [None], 'userErrors': []}})

        result = make_backend(handler).delete_metafield(PRODUCT_ID, 'ns', 'key')

        assert result.success
        assert not result.deleted

    def test_user_errors(self):
        handler = graphql({'metafieldsDelete': {
            'deletedMetafields': [], 'userErrors': [{'field': None, 'message': 'Access denied'}],
        }})

        result = make_backend(handler).delete_metafield(PRODUCT_ID, 'ns', 'key')

        assert not result.success
        assert result.error_code == 'rejected'

    def test_missing_payload(self):
        result = make_backend(graphql({})).delete_metafield(PRODUCT_ID, 'ns', 'key')

        assert not result.success


class TestReads:
    """product metafield and shop timezone queries."""

    def test_read_metafield(self):
        handler = graphql({'product': {'metafield': {'value': '{"variants":[]}'}}})

        result = make_backend(handler).read_metafield(PRODUCT_ID, 'ns', 'key')

        assert result.success
        assert result.value == '{"variants":[]}'

    def test_read_absent_metafield(self):
        result = make_backend(graphql({'product': {'metafield': None}})).read_metafield(PRODUCT_ID, 'ns', 'key')

        assert result.success
        assert result.value is None

    def test_read_unknown_product(self):
        result = make_backend(graphql({'product': None})).read_metafield(PRODUCT_ID, 'ns', 'key')

        assert not result.success

    def test_shop_timezone(self):
        backend = make_backend(graphql({'shop': {'ianaTimezone': 'America/Sao_Paulo'}}))

        assert backend.get_shop_timezone() == 'America/Sao_Paulo'

    def test_shop_timezone_looked_up_once(self):
        handler = graphql({'shop': {'ianaTimezone': 'America/Sao_Paulo'}})
        backend = make_backend(handler)

        backend.get_shop_timezone()
        backend.get_shop_timezone()

        assert len(handler.requests) == 1

    def test_shop_timezone_unreachable(self):
        assert make_backend(graphql(status=500)).get_shop_timezone() is None


class TestSettings:
    """Credentials come from PERIODMAN when not passed."""

    def test_reads_settings(self, settings):
        settings.PERIODMAN = {
            'SHOPIFY_SHOP_DOMAIN': 'loja.myshopify.com',
            'SHOPIFY_ACCESS_TOKEN': 'shpat_x',
            'SHOPIFY_API_VERSION': '2025-01',
        }

        backend = ShopifyMetafieldBackend()

        assert backend.endpoint == 'https://loja.myshopify.com/admin/api/2025-01/graphql.json'
        assert backend.access_token == 'shpat_x'
        assert backend.timeout == 10.0
