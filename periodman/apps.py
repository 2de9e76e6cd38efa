"""Django app configuration for Periodman."""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class PeriodmanConfig(AppConfig):
    """Configuration for Periodman app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "periodman"
    verbose_name = _("Períodos de Venda")
