"""
Reconciliation — re-derive published documents from the record store.

The record store is canonical. Documents in the catalog drift when a
best-effort write failed, when a compensating restore failed, or when the
catalog was edited by hand. Republishing is idempotent, so reconciling an
item that never drifted is harmless.

Usage:
    from periodman.services.reconciliation import reconcile

    # Run periodically (cron) or on demand (admin action, management command)
    report = reconcile()                      # items flagged needs_sync
    report = reconcile(pending_only=False)    # everything
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable

from periodman.documents import serialize
from periodman.exceptions import ScheduleError, StorageError
from periodman.models import ScheduledItem
from periodman.publisher import CatalogPublisher
from periodman.store import ScheduleStore

logger = logging.getLogger('periodman')


@dataclass
class ReconcileReport:
    """Outcome of a reconciliation run, keyed by catalog item id."""

    done: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


def reconcile(owner_scope: str | None = None, pending_only: bool = True,
              publisher: CatalogPublisher | None = None,
              dry_run: bool = False) -> ReconcileReport:
    """
    Republish schedules from the record store.

    Args:
        owner_scope: Limit to one shop (None = all)
        pending_only: Only items flagged needs_sync
        publisher: CatalogPublisher (None = configured backend)
        dry_run: List what would be republished without writing

    Returns:
        ReconcileReport (done = republished or would be, failed = errors)
    """
    items = ScheduleStore.list(owner_scope, pending_only=pending_only)

    if dry_run:
        report = ReconcileReport()
        report.done.extend(item.catalog_item_id for item in items)
        return report

    report = republish(items, publisher)
    logger.info(
        "schedule.reconcile.done",
        extra={
            "owner_scope": owner_scope or "all",
            "republished": len(report.done),
            "failed": len(report.failed),
        },
    )
    return report


def republish(items: Iterable[ScheduledItem],
              publisher: CatalogPublisher | None = None) -> ReconcileReport:
    """
    Publish each item's stored state and record the outcome on the item.

    A failure on one item (catalog or record store) is reported and the
    run moves on to the next.
    """
    publisher = publisher or CatalogPublisher()
    report = ReconcileReport()

    for item in items:
        try:
            publisher.publish(item)
        except ScheduleError as e:
            report.failed[item.catalog_item_id] = str(e)
            logger.warning(
                "schedule.reconcile.failed",
                extra={"catalog_item_id": item.catalog_item_id, "reason": str(e)},
            )
            try:
                ScheduleStore.mark_pending(item, str(e))
            except StorageError as storage_error:
                logger.error(
                    "schedule.reconcile.mark_failed",
                    extra={"catalog_item_id": item.catalog_item_id, "reason": str(storage_error)},
                )
            continue

        try:
            ScheduleStore.mark_synced(item)
        except StorageError as e:
            report.failed[item.catalog_item_id] = str(e)
            logger.error(
                "schedule.reconcile.mark_failed",
                extra={"catalog_item_id": item.catalog_item_id, "reason": str(e)},
            )
            continue
        report.done.append(item.catalog_item_id)

    return report


def find_drift(item: ScheduledItem, publisher: CatalogPublisher | None = None) -> bool:
    """
    Does the stored catalog value differ from the canonical projection?

    Raises:
        PublishError('PUBLISH_FAILED'): Catalog unreachable
    """
    publisher = publisher or CatalogPublisher()
    stored = publisher.fetch_raw(item.catalog_item_id)
    return stored != serialize(ScheduleStore.snapshot(item))


def retract_orphans(catalog_item_ids: Iterable[str], owner_scope: str | None = None,
                    publisher: CatalogPublisher | None = None) -> ReconcileReport:
    """
    Retract documents whose schedule no longer exists.

    Ids that still have a schedule (in owner_scope, or anywhere when None)
    are skipped: their document is live.
    """
    publisher = publisher or CatalogPublisher()
    report = ReconcileReport()

    for catalog_item_id in catalog_item_ids:
        live = ScheduledItem.objects.filter(catalog_item_id=catalog_item_id)
        if owner_scope is not None:
            live = live.for_owner(owner_scope)
        if live.exists():
            report.skipped.append(catalog_item_id)
            continue
        try:
            publisher.retract(catalog_item_id)
        except ScheduleError as e:
            report.failed[catalog_item_id] = str(e)
            continue
        report.done.append(catalog_item_id)

    return report
