"""
Schedule service — dual-write of schedules to the record store and the catalog.

Every mutation (create, replace, title resync, delete) touches both stores.
There is no cross-store transaction, so ordering and failure policy live
here:

    create / replace / resync:  publish → commit
    delete:                     retract → delete

WRITE_POLICY "strict" (default): an external failure aborts the operation
and nothing is written to the record store. If the record store fails after
a successful external write, the previous document is put back (or the new
one retracted).

WRITE_POLICY "best_effort": the record store is written regardless; the
record is flagged needs_sync with the error and left for reconciliation.
"""

import logging
from datetime import date, timedelta
from typing import Any, Callable, Iterable

from django.core.exceptions import ImproperlyConfigured
from django.db import DatabaseError
from django.utils import timezone

from periodman.classifier import WindowStatus, shop_local_date
from periodman.conf import (
    WRITE_POLICY_BEST_EFFORT,
    WRITE_POLICY_STRICT,
    periodman_settings,
)
from periodman.documents import (
    PublishedDocument,
    WindowSpec,
    build_document,
    resolve_window,
)
from periodman.exceptions import (
    ConflictError,
    DocumentError,
    PublishError,
    RetractError,
    ScheduleError,
    ValidationError,
)
from periodman.models import ScheduledItem, Window
from periodman.publisher import CatalogPublisher
from periodman.store import ScheduleStore

logger = logging.getLogger('periodman')


def _get_policy(policy: str | None) -> str:
    policy = policy or periodman_settings.WRITE_POLICY
    if policy not in (WRITE_POLICY_STRICT, WRITE_POLICY_BEST_EFFORT):
        raise ImproperlyConfigured(
            f"PERIODMAN['WRITE_POLICY'] must be 'strict' or 'best_effort', got {policy!r}"
        )
    return policy


class ScheduleService:
    """
    Single interface for schedule mutations and previews.

    Parameter convention: (owner_scope, id, ...). The owner scope is always
    explicit; there is no ambient "current shop".
    """

    # ══════════════════════════════════════════════════════════════
    # INPUT
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def validate_windows(cls, windows: Iterable[Any],
                         tz_name: str | None = None) -> tuple[WindowSpec, ...]:
        """
        Normalize and validate merchant input.

        Accepts WindowSpec or dicts (calendar dates, or legacy timestamps,
        which are upgraded in tz_name, default: the shop timezone).

        Raises:
            ValidationError('INVALID_MERCHANDISE'): Missing variant id
            ValidationError('INVALID_WINDOW'): Unparseable dates or start > end
            ValidationError('DUPLICATE_MERCHANDISE'): Same variant twice
        """
        if tz_name is None:
            tz_name = cls.shop_timezone()
        specs = []
        seen = set()
        for entry in windows:
            try:
                spec = resolve_window(entry, tz_name)
            except DocumentError as e:
                raise ValidationError(e.code, reason=str(e)) from e

            if not spec.merchandise_id:
                raise ValidationError('INVALID_MERCHANDISE', label=spec.label)

            if spec.start > spec.end:
                raise ValidationError(
                    'INVALID_WINDOW',
                    merchandise_id=spec.merchandise_id,
                    start=spec.start,
                    end=spec.end,
                )
            if spec.merchandise_id in seen:
                raise ValidationError('DUPLICATE_MERCHANDISE', merchandise_id=spec.merchandise_id)
            seen.add(spec.merchandise_id)
            specs.append(spec)
        return tuple(specs)

    @classmethod
    def shop_timezone(cls, publisher: CatalogPublisher | None = None) -> str:
        """
        IANA zone of the merchant's calendar.

        SHOP_TIMEZONE when set, else the zone the catalog reports for the
        shop ("" = Django's current timezone).
        """
        if periodman_settings.SHOP_TIMEZONE:
            return periodman_settings.SHOP_TIMEZONE
        publisher = publisher or CatalogPublisher()
        return publisher.shop_timezone() or ""

    @classmethod
    def today(cls, publisher: CatalogPublisher | None = None) -> date:
        """Shop-local calendar date."""
        return shop_local_date(tz_name=cls.shop_timezone(publisher))

    @classmethod
    def default_windows(cls, variants: Iterable[tuple[str, str]],
                        today: date | None = None) -> tuple[WindowSpec, ...]:
        """
        Default windows for newly attached variants: today .. today+N days.

        Args:
            variants: (merchandise_id, label) pairs
            today: Shop-local date (None = today in the shop timezone)
        """
        start = today or cls.today()
        end = start + timedelta(days=periodman_settings.DEFAULT_WINDOW_DAYS)
        return tuple(WindowSpec(vid, label, start, end) for vid, label in variants)

    # ══════════════════════════════════════════════════════════════
    # MUTATIONS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def create(cls, owner_scope: str, catalog_item_id: str, title: str,
               windows: Iterable[Any], publisher: CatalogPublisher | None = None,
               policy: str | None = None) -> ScheduledItem:
        """
        Attach a schedule to a catalog item.

        Raises:
            ConflictError('ALREADY_SCHEDULED'): Item already scheduled in this scope
            ValidationError: Bad windows
            PublishError: Catalog write failed (strict policy)
            StorageError: Record store failed
        """
        policy = _get_policy(policy)
        if ScheduleStore.find(owner_scope, catalog_item_id) is not None:
            raise ConflictError('ALREADY_SCHEDULED', catalog_item_id=catalog_item_id)

        publisher = publisher or CatalogPublisher()
        specs = cls.validate_windows(windows, cls.shop_timezone(publisher))
        document = build_document(catalog_item_id, title, specs)

        def previous(error: ScheduleError) -> PublishedDocument | None:
            # No record existed before this call; a conflict means a
            # concurrent create won and its record is canonical.
            if isinstance(error, ConflictError):
                return cls._stored_document(owner_scope, catalog_item_id)
            return None

        item = cls._dual_write(
            publisher,
            policy,
            document,
            commit=lambda **sync: ScheduleStore.create(
                owner_scope, catalog_item_id, title, specs, **sync,
            ),
            previous=previous,
        )
        logger.info(
            "schedule.create.done",
            extra={
                "owner_scope": owner_scope,
                "catalog_item_id": catalog_item_id,
                "windows": len(specs),
                "needs_sync": item.needs_sync,
            },
        )
        return item

    @classmethod
    def replace_windows(cls, owner_scope: str, internal_id: int, windows: Iterable[Any],
                        publisher: CatalogPublisher | None = None,
                        policy: str | None = None) -> ScheduledItem:
        """
        Replace the whole window sequence of a schedule.

        Raises:
            NotFoundError('SCHEDULE_NOT_FOUND'): No such schedule in scope
            ValidationError: Bad windows
            PublishError: Catalog write failed (strict policy)
            StorageError: Record store failed
        """
        policy = _get_policy(policy)
        item = ScheduleStore.get(owner_scope, internal_id)
        publisher = publisher or CatalogPublisher()
        specs = cls.validate_windows(windows, cls.shop_timezone(publisher))
        before = ScheduleStore.snapshot(item)

        cls._dual_write(
            publisher,
            policy,
            build_document(item.catalog_item_id, item.title, specs),
            commit=lambda **sync: ScheduleStore.replace_windows(item, specs, **sync),
            previous=lambda error: before,
        )
        logger.info(
            "schedule.replace.done",
            extra={
                "owner_scope": owner_scope,
                "catalog_item_id": item.catalog_item_id,
                "windows": len(specs),
                "needs_sync": item.needs_sync,
            },
        )
        return item

    @classmethod
    def apply_bulk_window(cls, owner_scope: str, internal_id: int, start: date, end: date,
                          publisher: CatalogPublisher | None = None,
                          policy: str | None = None) -> ScheduledItem:
        """Give every window of the schedule the same dates (full replacement)."""
        item = ScheduleStore.get(owner_scope, internal_id)
        windows = [
            WindowSpec(window.merchandise_id, window.label, start, end)
            for window in item.windows.all()
        ]
        return cls.replace_windows(owner_scope, internal_id, windows,
                                   publisher=publisher, policy=policy)

    @classmethod
    def resync_title(cls, owner_scope: str, internal_id: int, title: str,
                     publisher: CatalogPublisher | None = None,
                     policy: str | None = None) -> ScheduledItem:
        """Refresh the denormalized catalog title and republish."""
        policy = _get_policy(policy)
        item = ScheduleStore.get(owner_scope, internal_id)
        publisher = publisher or CatalogPublisher()
        before = ScheduleStore.snapshot(item)
        document = PublishedDocument(item.catalog_item_id, title, before.variants)

        return cls._dual_write(
            publisher,
            policy,
            document,
            commit=lambda **sync: ScheduleStore.update(item, title=title, **sync),
            previous=lambda error: before,
        )

    @classmethod
    def delete(cls, owner_scope: str, internal_id: int,
               publisher: CatalogPublisher | None = None,
               policy: str | None = None) -> None:
        """
        Remove a schedule and its published document.

        Raises:
            NotFoundError('SCHEDULE_NOT_FOUND'): No such schedule in scope
            RetractError: Catalog delete failed (strict policy)
            StorageError: Record store failed
        """
        policy = _get_policy(policy)
        item = ScheduleStore.get(owner_scope, internal_id)
        publisher = publisher or CatalogPublisher()
        catalog_item_id = item.catalog_item_id
        before = ScheduleStore.snapshot(item)

        retracted = False
        try:
            publisher.retract(catalog_item_id)
            retracted = True
        except RetractError as e:
            if policy == WRITE_POLICY_STRICT:
                raise
            logger.warning(
                "schedule.delete.retract_failed",
                extra={
                    "owner_scope": owner_scope,
                    "catalog_item_id": catalog_item_id,
                    "reason": str(e),
                },
            )

        try:
            ScheduleStore.delete(item)
        except ScheduleError:
            if retracted:
                cls._restore(publisher, catalog_item_id, lambda: before)
            raise

        logger.info(
            "schedule.delete.done",
            extra={
                "owner_scope": owner_scope,
                "catalog_item_id": catalog_item_id,
                "retracted": retracted,
            },
        )

    # ══════════════════════════════════════════════════════════════
    # PREVIEW
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def preview(cls, item: ScheduledItem,
                today: date | None = None) -> list[tuple[Window, WindowStatus]]:
        """
        Status of each window as checkout would see it today.

        Uses the same classifier as the checkout engine.
        """
        today = today or cls.today()
        return [(window, window.status(today)) for window in item.windows.all()]

    # ══════════════════════════════════════════════════════════════
    # INTERNALS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _dual_write(cls, publisher: CatalogPublisher, policy: str,
                    document: PublishedDocument,
                    commit: Callable[..., ScheduledItem],
                    previous: Callable[[ScheduleError], PublishedDocument | None]) -> ScheduledItem:
        """
        Publish, then commit. See module docstring for the failure policy.

        previous maps the commit error to the document the catalog must hold
        afterwards (None = retract).
        """
        try:
            publisher.publish_document(document)
        except PublishError as e:
            if policy == WRITE_POLICY_STRICT:
                raise
            logger.warning(
                "schedule.publish.deferred",
                extra={
                    "catalog_item_id": document.catalog_item_id,
                    "reason": str(e),
                },
            )
            return commit(needs_sync=True, last_sync_error=str(e))

        try:
            return commit(needs_sync=False, last_sync_error='', synced_at=timezone.now())
        except ScheduleError as e:
            cls._restore(publisher, document.catalog_item_id, lambda: previous(e))
            raise

    @classmethod
    def _restore(cls, publisher: CatalogPublisher, catalog_item_id: str,
                 previous: Callable[[], PublishedDocument | None]) -> None:
        """Put the catalog back to the record store's state after a failed commit."""
        try:
            document = previous()
            if document is None:
                publisher.retract(catalog_item_id)
            else:
                publisher.publish_document(document)
        except (ScheduleError, DatabaseError) as e:
            logger.error(
                "schedule.restore.failed",
                extra={"catalog_item_id": catalog_item_id, "reason": str(e)},
            )

    @staticmethod
    def _stored_document(owner_scope: str, catalog_item_id: str) -> PublishedDocument | None:
        item = ScheduleStore.find(owner_scope, catalog_item_id)
        return ScheduleStore.snapshot(item) if item is not None else None
