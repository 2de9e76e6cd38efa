"""
Schedule services.

    from periodman.services import ScheduleService, reconcile
"""

from periodman.services.reconciliation import (
    ReconcileReport,
    find_drift,
    reconcile,
    republish,
    retract_orphans,
)
from periodman.services.schedules import ScheduleService

__all__ = [
    'ScheduleService',
    'ReconcileReport',
    'reconcile',
    'republish',
    'find_drift',
    'retract_orphans',
]
