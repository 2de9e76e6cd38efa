"""
Window model — Calendar-date availability window for one variant.
"""

from datetime import date

from django.db import models
from django.db.models import F, Q
from django.utils.translation import gettext_lazy as _

from periodman.classifier import WindowStatus, classify
from periodman.documents import WindowSpec


class Window(models.Model):
    """
    Closed interval of calendar days during which one variant is purchasable.

    start and end are both inclusive, in the merchant's local calendar.
    No time of day, no offset.
    """

    item = models.ForeignKey(
        'periodman.ScheduledItem',
        on_delete=models.CASCADE,
        related_name='windows',
        verbose_name=_('Período de Venda'),
    )
    merchandise_id = models.CharField(
        max_length=255,
        verbose_name=_('ID da Variante'),
    )
    label = models.CharField(
        max_length=255,
        blank=True,
        verbose_name=_('Variante'),
    )
    start = models.DateField(verbose_name=_('Início'))
    end = models.DateField(verbose_name=_('Fim'))
    sort_order = models.PositiveIntegerField(
        default=0,
        verbose_name=_('Ordem'),
    )

    class Meta:
        verbose_name = _('Janela de Venda')
        verbose_name_plural = _('Janelas de Venda')
        ordering = ['sort_order', 'pk']
        constraints = [
            models.UniqueConstraint(
                fields=['item', 'merchandise_id'],
                name='unique_window_merchandise_per_item',
            ),
            models.CheckConstraint(
                condition=Q(start__lte=F('end')),
                name='window_start_not_after_end',
            ),
        ]

    def status(self, today: date) -> WindowStatus:
        """Status of this window on the shop's calendar date."""
        return classify(today, self)

    def as_spec(self) -> WindowSpec:
        return WindowSpec(
            merchandise_id=self.merchandise_id,
            label=self.label,
            start=self.start,
            end=self.end,
        )

    def __str__(self) -> str:
        return f"{self.label or self.merchandise_id} ({self.start} → {self.end})"
