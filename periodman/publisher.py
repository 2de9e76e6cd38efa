"""
Catalog Metadata Publisher — keeps the checkout-readable document aligned.

publish() projects a schedule, serializes it and fully overwrites the
catalog item's metafield. retract() removes the metafield. A missing
confirmation from the catalog is a failure, never a success.

Usage:
    from periodman.publisher import CatalogPublisher

    publisher = CatalogPublisher()
    document = publisher.publish(item)
    publisher.retract(item.catalog_item_id)
"""

import logging

from periodman.conf import periodman_settings
from periodman.documents import PublishedDocument, parse_document, project, serialize
from periodman.exceptions import PublishError, RetractError
from periodman.protocols.catalog import MetafieldBackend

logger = logging.getLogger('periodman')


class CatalogPublisher:
    """Writes and removes published documents through a MetafieldBackend."""

    def __init__(self, backend: MetafieldBackend | None = None,
                 namespace: str | None = None, key: str | None = None):
        if backend is None:
            from periodman.adapters.registry import get_metafield_backend
            backend = get_metafield_backend()
        self.backend = backend
        self.namespace = namespace or periodman_settings.METAFIELD_NAMESPACE
        self.key = key or periodman_settings.METAFIELD_KEY

    def publish(self, item) -> PublishedDocument:
        """Project a stored ScheduledItem and publish it."""
        return self.publish_document(project(item))

    def publish_document(self, document: PublishedDocument) -> PublishedDocument:
        """
        Publish a document, overwriting any prior value.

        Raises:
            PublishError('PUBLISH_FAILED'): Catalog unreachable
            PublishError('PUBLISH_REJECTED'): Catalog refused the write
            PublishError('PUBLISH_UNCONFIRMED'): Response did not echo a value
        """
        value = serialize(document)
        result = self.backend.write_metafield(
            document.catalog_item_id, self.namespace, self.key, value,
        )

        if not result.success:
            code = 'PUBLISH_REJECTED' if result.error_code == 'rejected' else 'PUBLISH_FAILED'
            logger.warning(
                "schedule.publish.failed",
                extra={
                    "catalog_item_id": document.catalog_item_id,
                    "code": code,
                    "reason": result.message,
                },
            )
            raise PublishError(
                code,
                catalog_item_id=document.catalog_item_id,
                reason=result.message or '',
            )

        if not result.value:
            logger.warning(
                "schedule.publish.unconfirmed",
                extra={"catalog_item_id": document.catalog_item_id},
            )
            raise PublishError('PUBLISH_UNCONFIRMED', catalog_item_id=document.catalog_item_id)

        logger.info(
            "schedule.publish.done",
            extra={
                "catalog_item_id": document.catalog_item_id,
                "variants": len(document.variants),
            },
        )
        return document

    def retract(self, catalog_item_id: str) -> bool:
        """
        Remove the published document.

        Returns:
            True if a document was removed, False if there was none

        Raises:
            RetractError('RETRACT_FAILED'): Catalog unreachable or unconfirmed
            RetractError('RETRACT_REJECTED'): Catalog refused the delete
        """
        result = self.backend.delete_metafield(catalog_item_id, self.namespace, self.key)

        if not result.success:
            code = 'RETRACT_REJECTED' if result.error_code == 'rejected' else 'RETRACT_FAILED'
            logger.warning(
                "schedule.retract.failed",
                extra={
                    "catalog_item_id": catalog_item_id,
                    "code": code,
                    "reason": result.message,
                },
            )
            raise RetractError(code, catalog_item_id=catalog_item_id, reason=result.message or '')

        logger.info(
            "schedule.retract.done",
            extra={"catalog_item_id": catalog_item_id, "deleted": result.deleted},
        )
        return result.deleted

    def fetch_raw(self, catalog_item_id: str) -> str | None:
        """
        Currently stored metafield value (None = absent).

        Raises:
            PublishError('PUBLISH_FAILED'): Catalog unreachable
        """
        result = self.backend.read_metafield(catalog_item_id, self.namespace, self.key)
        if not result.success:
            raise PublishError(
                'PUBLISH_FAILED',
                catalog_item_id=catalog_item_id,
                reason=result.message or '',
            )
        return result.value

    def fetch(self, catalog_item_id: str, tz_name: str = "") -> PublishedDocument | None:
        """Currently stored document, parsed (legacy windows upgraded)."""
        return parse_document(self.fetch_raw(catalog_item_id), tz_name)

    def shop_timezone(self) -> str | None:
        """IANA zone the catalog reports for the shop, if known."""
        return self.backend.get_shop_timezone()
