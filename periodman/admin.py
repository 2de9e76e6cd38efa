"""
Periodman Admin — read-only operational views.

Schedules change only through periodman.services.schedules (dual write), so
nothing here edits records. Provides:
- ScheduledItem: list with sync state, windows inline with today's status
- "Republicar" action: reconcile the selected schedules with the catalog
"""

from django.contrib import admin, messages
from django.utils.translation import gettext_lazy as _

from periodman.models import ScheduledItem, Window


class WindowInline(admin.TabularInline):
    """Windows of a schedule — read-only, with today's status."""

    model = Window
    extra = 0
    can_delete = False
    fields = ['merchandise_id', 'label', 'start', 'end', 'status_display']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    @admin.display(description=_('Situação hoje'))
    def status_display(self, obj):
        from periodman.services.schedules import ScheduleService

        return obj.status(ScheduleService.today()).value


@admin.register(ScheduledItem)
class ScheduledItemAdmin(admin.ModelAdmin):
    """ScheduledItem admin — read-only with republish action."""

    list_display = ['__str__', 'catalog_item_id', 'owner_scope', 'window_count',
                    'needs_sync', 'synced_at', 'updated_at']
    list_filter = ['needs_sync', 'owner_scope']
    search_fields = ['title', 'catalog_item_id']
    readonly_fields = ['owner_scope', 'catalog_item_id', 'title', 'needs_sync',
                       'last_sync_error', 'synced_at', 'created_at', 'updated_at']
    inlines = [WindowInline]
    actions = ['republish']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.display(description=_('Janelas'))
    def window_count(self, obj):
        return obj.windows.count()

    @admin.action(description=_('Republicar na loja'))
    def republish(self, request, queryset):
        from periodman.services.reconciliation import republish as republish_items

        report = republish_items(queryset.prefetch_related('windows'))
        self.message_user(
            request, _('{count} período(s) republicado(s).').format(count=len(report.done)),
        )
        if report.failed:
            self.message_user(
                request,
                _('Falha ao republicar: {ids}').format(ids=', '.join(report.failed)),
                level=messages.WARNING,
            )
