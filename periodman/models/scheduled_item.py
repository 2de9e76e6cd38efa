"""
ScheduledItem model — Sales period schedule for one catalog item.
"""

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class ScheduledItemQuerySet(models.QuerySet):
    """QuerySet with helpers for owner scoping and sync state."""

    def for_owner(self, owner_scope: str):
        """Every read is scoped by the owning shop/session."""
        return self.filter(owner_scope=owner_scope)

    def pending_sync(self):
        """Items whose published document may differ from the record."""
        return self.filter(needs_sync=True)


class ScheduledItem(models.Model):
    """
    Sales period schedule attached to one catalog item (product).

    The record here is canonical. The catalog holds a derived copy (the
    published document) kept aligned by the dual-write in
    periodman.services.schedules.

    catalog_item_id is immutable: retargeting a schedule is delete + create.
    """

    owner_scope = models.CharField(
        max_length=255,
        db_index=True,
        verbose_name=_('Loja'),
        help_text=_('Loja/sessão dona deste registro'),
    )
    catalog_item_id = models.CharField(
        max_length=255,
        verbose_name=_('ID do Produto no Catálogo'),
    )
    title = models.CharField(
        max_length=255,
        blank=True,
        verbose_name=_('Título'),
        help_text=_('Cópia do título do produto na última sincronização'),
    )

    # Sync state with the published document
    needs_sync = models.BooleanField(
        default=False,
        db_index=True,
        verbose_name=_('Pendente de sincronização'),
    )
    last_sync_error = models.TextField(
        blank=True,
        default='',
        verbose_name=_('Último erro de sincronização'),
    )
    synced_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name=_('Sincronizado em'),
    )

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ScheduledItemQuerySet.as_manager()

    class Meta:
        verbose_name = _('Período de Venda')
        verbose_name_plural = _('Períodos de Venda')
        ordering = ['-updated_at']
        constraints = [
            models.UniqueConstraint(
                fields=['owner_scope', 'catalog_item_id'],
                name='unique_schedule_per_catalog_item',
            ),
        ]

    def __str__(self) -> str:
        return self.title or self.catalog_item_id
