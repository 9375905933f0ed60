"""
Composition root for the reminder synchronizer.

Construct once at process start, pass `container.service` to the message
consumer, call `close()` on shutdown.
"""
import logging
from typing import Optional

from planwise.core.config import Settings
from planwise.core.memory.db import Database, open_database
from planwise.core.reminders.metrics import SyncMetrics
from planwise.core.reminders.serializer import PerEntitySerializer
from planwise.core.reminders.service import ReminderSyncService
from planwise.core.reminders.sync_handler import ReminderSyncHandler
from planwise.core.schedule.memory_repository import InMemoryScheduleRepository
from planwise.core.schedule.port import ScheduleRepositoryPort
from planwise.core.schedule.sql_repository import SqlScheduleRepository

logger = logging.getLogger(__name__)


class ReminderSyncContainer:
    """Holds the explicitly constructed synchronizer components."""

    def __init__(
        self,
        repository: ScheduleRepositoryPort,
        source_module: str = "task",
        database: Optional[Database] = None,
    ) -> None:
        self.database = database
        self.repository = repository
        self.metrics = SyncMetrics()
        self.serializer = PerEntitySerializer()
        self.handler = ReminderSyncHandler(repository, source_module=source_module, metrics=self.metrics)
        self.service = ReminderSyncService(self.handler, self.serializer)

    @classmethod
    def build(cls, cfg: Settings, in_memory: bool = False, database_url: Optional[str] = None) -> "ReminderSyncContainer":
        if in_memory:
            logger.info("Reminder sync using in-memory schedule store")
            return cls(InMemoryScheduleRepository(), source_module=cfg.reminder_source_module)
        database = open_database(cfg, url=database_url)
        repository = SqlScheduleRepository(database, timezone_name=cfg.schedule_timezone)
        return cls(repository, source_module=cfg.reminder_source_module, database=database)

    def close(self) -> None:
        if self.database is not None:
            self.database.dispose()
            self.database = None
