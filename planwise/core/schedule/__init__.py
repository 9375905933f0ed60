"""
Schedule bounded context: recurring cron tasks derived from other modules.

Persistence: SQLite (recurring_schedule_tasks table) or in-memory.
"""
from planwise.core.schedule.errors import (
    DuplicateScheduleTaskError,
    ScheduleRepositoryError,
    ScheduleTaskNotFoundError,
    ScheduleValidationError,
)
from planwise.core.schedule.models import (
    CreateScheduleTaskSpec,
    ScheduleTaskPatch,
    ScheduleTaskRef,
    ScheduleTaskStatus,
    TriggerType,
    status_for,
)
from planwise.core.schedule.port import ScheduleRepositoryPort
from planwise.core.schedule.memory_repository import InMemoryScheduleRepository
from planwise.core.schedule.sql_repository import SqlScheduleRepository

__all__ = [
    "DuplicateScheduleTaskError",
    "ScheduleRepositoryError",
    "ScheduleTaskNotFoundError",
    "ScheduleValidationError",
    "CreateScheduleTaskSpec",
    "ScheduleTaskPatch",
    "ScheduleTaskRef",
    "ScheduleTaskStatus",
    "TriggerType",
    "status_for",
    "ScheduleRepositoryPort",
    "InMemoryScheduleRepository",
    "SqlScheduleRepository",
]
