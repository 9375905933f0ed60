"""
Repository port the Schedule module exposes to other modules.
"""
from abc import ABC, abstractmethod
from typing import List

from planwise.core.schedule.models import (
    CreateScheduleTaskSpec,
    ScheduleTaskPatch,
    ScheduleTaskRef,
)


class ScheduleRepositoryPort(ABC):
    """
    Abstract interface for recurring schedule task storage.

    Every call either fully succeeds or fully fails; failures are raised as
    ScheduleRepositoryError subclasses (or ScheduleValidationError).
    """

    @abstractmethod
    async def create_task(self, spec: CreateScheduleTaskSpec) -> ScheduleTaskRef:
        """
        Create a schedule task.

        Raises:
            DuplicateScheduleTaskError: the source entity already owns a task
            ScheduleValidationError: malformed cron expression or spec
        """
        pass

    @abstractmethod
    async def update_task(self, uuid: str, patch: ScheduleTaskPatch) -> ScheduleTaskRef:
        """
        Apply a partial update. Patching `enabled` also updates `status`.

        Raises:
            ScheduleTaskNotFoundError: unknown uuid
        """
        pass

    @abstractmethod
    async def delete_task(self, uuid: str) -> None:
        """
        Delete a schedule task.

        Raises:
            ScheduleTaskNotFoundError: unknown uuid
        """
        pass

    @abstractmethod
    async def find_by_source(self, source_module: str, source_entity_id: str) -> List[ScheduleTaskRef]:
        """Return the tasks owned by a source entity, oldest first (index 0 is authoritative)."""
        pass
