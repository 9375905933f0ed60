"""
In-memory ScheduleRepositoryPort for tests, dry runs and replay without a database.
"""
import asyncio
import uuid as uuid_lib
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from planwise.core.schedule.errors import (
    DuplicateScheduleTaskError,
    ScheduleTaskNotFoundError,
)
from planwise.core.schedule.models import (
    CreateScheduleTaskSpec,
    ScheduleTaskPatch,
    ScheduleTaskRef,
    status_for,
)
from planwise.core.schedule.port import ScheduleRepositoryPort
from planwise.core.schedule.validation import validate_create_spec, validate_cron_expression


class InMemoryScheduleRepository(ScheduleRepositoryPort):
    """
    Dict-backed schedule tasks with the same rules as the SQL adapter.

    latency: seconds to sleep before each call, so concurrent callers interleave
    the way they would against a real store.
    calls: (operation, argument) log of every port call, in order.
    """

    def __init__(self, latency: float = 0.0) -> None:
        self._tasks: Dict[str, ScheduleTaskRef] = {}
        self._latency = latency
        self.calls: List[Tuple[str, object]] = []

    async def _io(self, operation: str, argument: object) -> None:
        self.calls.append((operation, argument))
        await asyncio.sleep(self._latency)

    def _owner(self, source_module: str, source_entity_id: str) -> Optional[ScheduleTaskRef]:
        return next(
            (
                t for t in self._tasks.values()
                if t.source_module == source_module and t.source_entity_id == source_entity_id
            ),
            None,
        )

    async def create_task(self, spec: CreateScheduleTaskSpec) -> ScheduleTaskRef:
        await self._io("create_task", spec.source_entity_id)
        validate_create_spec(spec)
        if self._owner(spec.source_module, spec.source_entity_id) is not None:
            raise DuplicateScheduleTaskError(spec.source_module, spec.source_entity_id)
        now = datetime.now(timezone.utc)
        ref = ScheduleTaskRef(
            uuid=str(uuid_lib.uuid4()),
            name=spec.name,
            description=spec.description,
            trigger_type=spec.trigger_type,
            cron_expression=spec.cron_expression,
            enabled=spec.enabled,
            status=status_for(spec.enabled),
            source_module=spec.source_module,
            source_entity_id=spec.source_entity_id,
            metadata=dict(spec.metadata),
            created_at=now,
            updated_at=now,
        )
        self._tasks[ref.uuid] = ref
        return ref

    async def update_task(self, uuid: str, patch: ScheduleTaskPatch) -> ScheduleTaskRef:
        await self._io("update_task", uuid)
        current = self._tasks.get(uuid)
        if current is None:
            raise ScheduleTaskNotFoundError(uuid)
        changes = patch.changes()
        if "cron_expression" in changes:
            validate_cron_expression(changes["cron_expression"])
        changes["updated_at"] = datetime.now(timezone.utc)
        changes["version"] = current.version + 1
        updated = current.model_copy(update=changes)
        self._tasks[uuid] = updated
        return updated

    async def delete_task(self, uuid: str) -> None:
        await self._io("delete_task", uuid)
        if self._tasks.pop(uuid, None) is None:
            raise ScheduleTaskNotFoundError(uuid)

    async def find_by_source(self, source_module: str, source_entity_id: str) -> List[ScheduleTaskRef]:
        await self._io("find_by_source", source_entity_id)
        found = [
            t for t in self._tasks.values()
            if t.source_module == source_module and t.source_entity_id == source_entity_id
        ]
        return sorted(found, key=lambda t: t.created_at)

    def all(self) -> List[ScheduleTaskRef]:
        return list(self._tasks.values())

    def seed(self, ref: ScheduleTaskRef) -> None:
        """Insert a task as-is, bypassing the uniqueness rule (for legacy-data scenarios)."""
        self._tasks[ref.uuid] = ref
