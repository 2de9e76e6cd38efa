"""
Schedule record store — the canonical ScheduledItem records.

Thin boundary over the ORM. Every read and write is scoped by owner_scope;
database failures surface as StorageError, missing rows as NotFoundError.
Windows are always replaced as a whole (no patch semantics).
"""

from __future__ import annotations

from typing import Iterable

from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from periodman.documents import PublishedDocument, WindowSpec, project
from periodman.exceptions import ConflictError, NotFoundError, StorageError
from periodman.models import ScheduledItem, Window


def _storage_error(exc: Exception, **data) -> StorageError:
    return StorageError('STORAGE_FAILURE', reason=str(exc), **data)


class ScheduleStore:
    """Record store operations for ScheduledItem."""

    @classmethod
    def find(cls, owner_scope: str, catalog_item_id: str) -> ScheduledItem | None:
        """Schedule for a catalog item in this scope, or None."""
        try:
            return (
                ScheduledItem.objects.for_owner(owner_scope)
                .filter(catalog_item_id=catalog_item_id)
                .first()
            )
        except DatabaseError as e:
            raise _storage_error(e, catalog_item_id=catalog_item_id) from e

    @classmethod
    def get(cls, owner_scope: str, internal_id: int) -> ScheduledItem:
        """
        Schedule by internal id.

        Raises:
            NotFoundError('SCHEDULE_NOT_FOUND'): No such id in this scope
        """
        try:
            return ScheduledItem.objects.for_owner(owner_scope).get(pk=internal_id)
        except ScheduledItem.DoesNotExist:
            raise NotFoundError('SCHEDULE_NOT_FOUND', internal_id=internal_id)
        except DatabaseError as e:
            raise _storage_error(e, internal_id=internal_id) from e

    @classmethod
    def list(cls, owner_scope: str | None = None, pending_only: bool = False):
        """Schedules, newest first, with their windows prefetched."""
        qs = ScheduledItem.objects.all()
        if owner_scope is not None:
            qs = qs.for_owner(owner_scope)
        if pending_only:
            qs = qs.pending_sync()
        return qs.prefetch_related('windows')

    @classmethod
    def snapshot(cls, item: ScheduledItem) -> PublishedDocument:
        """Published document for the stored state of a schedule."""
        try:
            return project(item)
        except DatabaseError as e:
            raise _storage_error(e, internal_id=item.pk) from e

    @classmethod
    def create(cls, owner_scope: str, catalog_item_id: str, title: str,
               windows: Iterable[WindowSpec], **fields) -> ScheduledItem:
        """
        Create a schedule with its windows.

        Raises:
            ConflictError('ALREADY_SCHEDULED'): Catalog item already scheduled in scope
            StorageError('STORAGE_FAILURE'): Database failure
        """
        try:
            with transaction.atomic():
                item = ScheduledItem.objects.create(
                    owner_scope=owner_scope,
                    catalog_item_id=catalog_item_id,
                    title=title,
                    **fields,
                )
                cls._write_windows(item, windows)
        except IntegrityError as e:
            if ScheduledItem.objects.for_owner(owner_scope).filter(
                catalog_item_id=catalog_item_id,
            ).exists():
                raise ConflictError('ALREADY_SCHEDULED', catalog_item_id=catalog_item_id) from e
            raise _storage_error(e, catalog_item_id=catalog_item_id) from e
        except DatabaseError as e:
            raise _storage_error(e, catalog_item_id=catalog_item_id) from e
        return item

    @classmethod
    def replace_windows(cls, item: ScheduledItem, windows: Iterable[WindowSpec],
                        **fields) -> ScheduledItem:
        """Replace all windows of a schedule (and bump updated_at)."""
        try:
            with transaction.atomic():
                item.windows.all().delete()
                cls._write_windows(item, windows)
                cls._touch(item, **fields)
            getattr(item, "_prefetched_objects_cache", {}).pop("windows", None)
        except DatabaseError as e:
            raise _storage_error(e, internal_id=item.pk) from e
        return item

    @classmethod
    def update(cls, item: ScheduledItem, **fields) -> ScheduledItem:
        """Update scalar fields (title, sync state) and bump updated_at."""
        try:
            cls._touch(item, **fields)
        except DatabaseError as e:
            raise _storage_error(e, internal_id=item.pk) from e
        return item

    @classmethod
    def mark_synced(cls, item: ScheduledItem) -> ScheduledItem:
        return cls.update(item, needs_sync=False, last_sync_error='', synced_at=timezone.now())

    @classmethod
    def mark_pending(cls, item: ScheduledItem, error: str) -> ScheduledItem:
        return cls.update(item, needs_sync=True, last_sync_error=error)

    @classmethod
    def delete(cls, item: ScheduledItem) -> None:
        try:
            item.delete()
        except DatabaseError as e:
            raise _storage_error(e, internal_id=item.pk) from e

    @staticmethod
    def _write_windows(item: ScheduledItem, windows: Iterable[WindowSpec]) -> None:
        Window.objects.bulk_create([
            Window(
                item=item,
                merchandise_id=spec.merchandise_id,
                label=spec.label,
                start=spec.start,
                end=spec.end,
                sort_order=index,
            )
            for index, spec in enumerate(windows)
        ])

    @staticmethod
    def _touch(item: ScheduledItem, **fields) -> None:
        for name, value in fields.items():
            setattr(item, name, value)
        item.save(update_fields=[*fields, 'updated_at'])
