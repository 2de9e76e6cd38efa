"""
Tests for reconciliation, management commands and the admin republish action.
"""

import json
from io import StringIO

import pytest
from django.contrib import admin, messages
from django.core.management import CommandError, call_command
from django.test import RequestFactory

from periodman.adapters import get_metafield_backend
from periodman.admin import ScheduledItemAdmin, WindowInline
from periodman.documents import serialize, project
from periodman.exceptions import PublishError, StorageError
from periodman.models import ScheduledItem
from periodman.services.reconciliation import find_drift, reconcile, retract_orphans
from periodman.services.schedules import ScheduleService
from periodman.store import ScheduleStore
from periodman.tests.factories import OTHER_SHOP, PRODUCT_ID, SHOP, VARIANT_SMALL, stored_value


pytestmark = pytest.mark.django_db

OTHER_PRODUCT_ID = 'gid://shopify/Product/1002'
ORPHAN_ID = 'gid://shopify/Product/9999'


def storage_failure(*args, **kwargs):
    raise StorageError('STORAGE_FAILURE', reason='database is locked')


@pytest.fixture
def pending_item(unreachable_publisher, windows):
    """Schedule whose publish was deferred."""
    return ScheduleService.create(SHOP, PRODUCT_ID, 'Panettone', windows,
                                  publisher=unreachable_publisher, policy='best_effort')


@pytest.fixture
def synced_item(publisher, windows):
    return ScheduleService.create(OTHER_SHOP, PRODUCT_ID, 'Panettone', windows,
                                  publisher=publisher)


class TestReconcile:
    """reconcile()."""

    def test_republishes_pending(self, pending_item, publisher, backend):
        report = reconcile(publisher=publisher)

        assert report.ok
        assert report.done == [PRODUCT_ID]
        pending_item.refresh_from_db()
        assert pending_item.needs_sync is False
        assert pending_item.last_sync_error == ''
        assert stored_value(backend) == serialize(project(pending_item))

    def test_skips_synced_by_default(self, synced_item, publisher):
        assert reconcile(publisher=publisher).done == []

    def test_all(self, pending_item, synced_item, publisher):
        report = reconcile(pending_only=False, publisher=publisher)

        assert len(report.done) == 2

    def test_owner_scope(self, pending_item, synced_item, publisher):
        report = reconcile(owner_scope=OTHER_SHOP, pending_only=False, publisher=publisher)

        assert report.done == [PRODUCT_ID]
        pending_item.refresh_from_db()
        assert pending_item.needs_sync is True

    def test_failure_keeps_item_pending(self, pending_item, unreachable_publisher):
        report = reconcile(publisher=unreachable_publisher)

        assert not report.ok
        assert PRODUCT_ID in report.failed
        pending_item.refresh_from_db()
        assert pending_item.needs_sync is True
        assert 'PUBLISH_FAILED' in pending_item.last_sync_error

    def test_dry_run_writes_nothing(self, pending_item, publisher, backend):
        report = reconcile(publisher=publisher, dry_run=True)

        assert report.done == [PRODUCT_ID]
        assert stored_value(backend) is None
        pending_item.refresh_from_db()
        assert pending_item.needs_sync is True

    def test_record_store_failure_does_not_abort_run(self, monkeypatch, unreachable_publisher,
                                                      windows):
        """Both items are reported even when flagging them fails."""
        for catalog_item_id in (PRODUCT_ID, OTHER_PRODUCT_ID):
            ScheduleService.create(SHOP, catalog_item_id, 'Panettone', windows,
                                   publisher=unreachable_publisher, policy='best_effort')
        monkeypatch.setattr(ScheduleStore, 'mark_pending', storage_failure)

        report = reconcile(publisher=unreachable_publisher)

        assert set(report.failed) == {PRODUCT_ID, OTHER_PRODUCT_ID}

    def test_mark_synced_failure_reported(self, monkeypatch, pending_item, publisher):
        monkeypatch.setattr(ScheduleStore, 'mark_synced', storage_failure)

        report = reconcile(publisher=publisher)

        assert report.done == []
        assert 'STORAGE_FAILURE' in report.failed[PRODUCT_ID]


class TestFindDrift:
    """find_drift()."""

    def test_no_drift_after_create(self, synced_item, publisher):
        assert find_drift(synced_item, publisher) is False

    def test_edited_in_catalog(self, synced_item, publisher, backend):
        backend.fields[(PRODUCT_ID, 'sales_period', 'sales_period')] = '{"variants":[]}'

        assert find_drift(synced_item, publisher) is True

    def test_missing_document(self, pending_item, publisher):
        assert find_drift(pending_item, publisher) is True

    def test_unreachable(self, synced_item, unreachable_publisher):
        with pytest.raises(PublishError):
            find_drift(synced_item, unreachable_publisher)


class TestRetractOrphans:
    """retract_orphans()."""

    def test_retracts_orphans_and_skips_live(self, synced_item, publisher, backend):
        backend.write_metafield(ORPHAN_ID, 'sales_period', 'sales_period', '{"variants":[]}')

        report = retract_orphans([ORPHAN_ID, PRODUCT_ID], publisher=publisher)

        assert report.done == [ORPHAN_ID]
        assert report.skipped == [PRODUCT_ID]
        assert stored_value(backend, ORPHAN_ID) is None
        assert stored_value(backend) is not None

    def test_scope_limits_liveness(self, synced_item, publisher):
        report = retract_orphans([PRODUCT_ID], owner_scope=SHOP, publisher=publisher)

        assert report.done == [PRODUCT_ID]

    def test_failure_reported(self, unreachable_publisher):
        report = retract_orphans([ORPHAN_ID], publisher=unreachable_publisher)

        assert ORPHAN_ID in report.failed


class TestReconcileCommand:
    """reconcile_sales_periods management command."""

    def test_republishes_pending(self, pending_item):
        out = StringIO()

        call_command('reconcile_sales_periods', stdout=out)

        assert '1 período(s) republicado(s)' in out.getvalue()
        assert stored_value(get_metafield_backend()) is not None

    def test_dry_run(self, pending_item):
        out = StringIO()

        call_command('reconcile_sales_periods', '--dry-run', stdout=out)

        assert 'seria(m) republicado(s)' in out.getvalue()
        assert stored_value(get_metafield_backend()) is None

    def test_retract(self, synced_item):
        get_metafield_backend().write_metafield(ORPHAN_ID, 'sales_period', 'sales_period', '{}')
        out = StringIO()

        call_command('reconcile_sales_periods', '--retract', ORPHAN_ID, PRODUCT_ID, stdout=out)

        assert '1 documento(s) removido(s)' in out.getvalue()
        assert f'{PRODUCT_ID}: ainda possui período' in out.getvalue()


class TestCheckoutCommand:
    """run_checkout_validation management command."""

    def function_input(self, tmp_path):
        document = {
            'catalogItemId': PRODUCT_ID,
            'title': 'Panettone',
            'variants': [{'variantId': VARIANT_SMALL, 'title': '500g',
                          'start': '2024-05-10', 'end': '2024-05-20'}],
        }
        payload = {
            'cart': {'lines': [{'merchandise': {
                '__typename': 'ProductVariant',
                'id': VARIANT_SMALL,
                'product': {'id': PRODUCT_ID, 'title': 'Panettone',
                            'metafield': {'jsonValue': document}},
            }}]},
            'shop': {'localTime': {'date': '2024-05-15'}},
        }
        path = tmp_path / 'input.json'
        path.write_text(json.dumps(payload), encoding='utf-8')
        return path

    def run_command(self, *args, **options):
        out = StringIO()
        call_command('run_checkout_validation', *args, stdout=out, **options)
        return json.loads(out.getvalue())

    def test_active_window(self, tmp_path):
        result = self.run_command(input=str(self.function_input(tmp_path)))

        assert result == {'errors': []}

    def test_date_override(self, tmp_path):
        result = self.run_command(input=str(self.function_input(tmp_path)), date='2024-05-21')

        assert result == {'errors': [{
            'localizedMessage': 'The sales period for "Panettone" has ended.',
            'target': 'cart',
        }]}

    def test_invalid_date(self, tmp_path):
        with pytest.raises(CommandError):
            self.run_command(input=str(self.function_input(tmp_path)), date='2024-02-30')

    def test_invalid_input(self, tmp_path):
        path = tmp_path / 'broken.json'
        path.write_text('{not json', encoding='utf-8')

        with pytest.raises(CommandError):
            self.run_command(input=str(path))


class TestAdmin:
    """Read-only admin and republish action."""

    @pytest.fixture
    def model_admin(self):
        return ScheduledItemAdmin(ScheduledItem, admin.site)

    @pytest.fixture
    def request_(self):
        return RequestFactory().get('/admin/periodman/scheduleditem/')

    def test_republish_action(self, monkeypatch, model_admin, request_, pending_item):
        sent = []
        monkeypatch.setattr(model_admin, 'message_user',
                            lambda request, msg, level=messages.INFO: sent.append(str(msg)))

        model_admin.republish(request_, ScheduledItem.objects.all())

        pending_item.refresh_from_db()
        assert pending_item.needs_sync is False
        assert stored_value(get_metafield_backend()) is not None
        assert sent == ['1 período(s) republicado(s).']

    def test_republish_action_reports_failures(self, monkeypatch, settings, model_admin,
                                               request_, pending_item):
        settings.PERIODMAN = {
            **settings.PERIODMAN,
            'METAFIELD_BACKEND': 'periodman.tests.factories.UnreachableBackend',
        }
        sent = []
        monkeypatch.setattr(model_admin, 'message_user',
                            lambda request, msg, level=messages.INFO: sent.append((str(msg), level)))

        model_admin.republish(request_, ScheduledItem.objects.all())

        assert sent == [
            ('0 período(s) republicado(s).', messages.INFO),
            (f'Falha ao republicar: {PRODUCT_ID}', messages.WARNING),
        ]
        pending_item.refresh_from_db()
        assert pending_item.needs_sync is True

    def test_read_only(self, model_admin, request_):
        assert not model_admin.has_add_permission(request_)
        assert not model_admin.has_change_permission(request_)
        assert not model_admin.has_delete_permission(request_)

    def test_window_count(self, model_admin, synced_item):
        assert model_admin.window_count(synced_item) == 2

    def test_inline_status(self, synced_item):
        inline = WindowInline(ScheduledItem, admin.site)
        window = synced_item.windows.first()

        assert inline.status_display(window) == window.status(ScheduleService.today()).value
