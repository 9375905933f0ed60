"""
Task reminder -> recurring schedule task synchronization.
"""
from planwise.core.reminders.cron_deriver import derive_reminder_cron
from planwise.core.reminders.metrics import SyncMetrics
from planwise.core.reminders.serializer import PerEntitySerializer
from planwise.core.reminders.service import ReminderSyncService
from planwise.core.reminders.sync_handler import ReminderSyncHandler, SyncOutcome

__all__ = [
    "derive_reminder_cron",
    "SyncMetrics",
    "PerEntitySerializer",
    "ReminderSyncService",
    "ReminderSyncHandler",
    "SyncOutcome",
]
