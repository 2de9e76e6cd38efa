"""
Periodman Models.

Schedule record store:
- ScheduledItem: Merchant-owned set of windows for one catalog item
- Window: Calendar-date availability window for one variant
"""

from periodman.models.scheduled_item import ScheduledItem
from periodman.models.window import Window

__all__ = [
    'ScheduledItem',
    'Window',
]
