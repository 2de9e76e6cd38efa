"""
Django Periodman — Sales periods for catalog variants.

Merchants attach availability windows to product variants; the windows are
published to the catalog as a metafield and enforced at checkout.

Uso:
    from periodman import schedule, ScheduleError

    item = schedule.create("shop-1", "gid://shopify/Product/1", "Panettone", windows)
    schedule.replace_windows("shop-1", item.pk, new_windows)
    schedule.delete("shop-1", item.pk)

Checkout (sandboxed, no database):
    from periodman.checkout import run
    run(function_input)  # {"errors": [...]}
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'schedule':
        from periodman.services.schedules import ScheduleService
        return ScheduleService
    elif name == 'ScheduleError':
        from periodman.exceptions import ScheduleError
        return ScheduleError
    elif name == 'ScheduledItem':
        from periodman.models.scheduled_item import ScheduledItem
        return ScheduledItem
    elif name == 'Window':
        from periodman.models.window import Window
        return Window
    elif name == 'WindowStatus':
        from periodman.classifier import WindowStatus
        return WindowStatus
    elif name == 'classify':
        from periodman.classifier import classify
        return classify
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'schedule',
    'ScheduleError',
    'ScheduledItem',
    'Window',
    'WindowStatus',
    'classify',
]

__version__ = '0.1.0'
