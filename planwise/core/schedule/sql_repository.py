"""
SQLite-backed ScheduleRepositoryPort.

Blocking session work runs in the default executor; each call opens its own
session in the worker thread and commits before returning.
"""
import asyncio
import logging
import uuid as uuid_lib
from datetime import datetime, timezone
from functools import partial
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from planwise.core.memory.db import Database
from planwise.core.memory.models import ScheduleTaskRecord
from planwise.core.memory.repository import ScheduleTaskRepository
from planwise.core.schedule.errors import (
    DuplicateScheduleTaskError,
    ScheduleTaskNotFoundError,
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
from planwise.core.schedule.scheduler import from_naive_utc, next_run_at, to_naive_utc
from planwise.core.schedule.validation import validate_create_spec, validate_cron_expression

logger = logging.getLogger(__name__)


def record_to_ref(record: ScheduleTaskRecord) -> ScheduleTaskRef:
    """Map a record to the port model. Call inside the owning session."""
    return ScheduleTaskRef(
        uuid=record.uuid,
        name=record.name,
        description=record.description,
        trigger_type=TriggerType(record.trigger_type),
        cron_expression=record.cron_expression,
        enabled=record.enabled,
        status=ScheduleTaskStatus(record.status),
        source_module=record.source_module,
        source_entity_id=record.source_entity_id,
        metadata=dict(record.metadata_json or {}),
        next_run_at=from_naive_utc(record.next_run_at),
        created_at=from_naive_utc(record.created_at),
        updated_at=from_naive_utc(record.updated_at),
        version=record.version,
    )


class SqlScheduleRepository(ScheduleRepositoryPort):
    """Schedule task storage on the Database; uniqueness of the source pair is a table constraint."""

    def __init__(self, database: Database, timezone_name: str = "UTC") -> None:
        self._database = database
        self._timezone = timezone_name

    async def _run(self, fn, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(fn, *args))

    def _next_run(self, cron_expression: str, enabled: bool) -> Optional[datetime]:
        if not enabled:
            return None
        return to_naive_utc(next_run_at(cron_expression, datetime.now(timezone.utc), self._timezone))

    # --- port ---

    async def create_task(self, spec: CreateScheduleTaskSpec) -> ScheduleTaskRef:
        return await self._run(self._create_sync, spec)

    async def update_task(self, uuid: str, patch: ScheduleTaskPatch) -> ScheduleTaskRef:
        return await self._run(self._update_sync, uuid, patch)

    async def delete_task(self, uuid: str) -> None:
        await self._run(self._delete_sync, uuid)

    async def find_by_source(self, source_module: str, source_entity_id: str) -> List[ScheduleTaskRef]:
        return await self._run(self._find_by_source_sync, source_module, source_entity_id)

    # --- extras used by the CLI ---

    async def list_by_module(self, source_module: str) -> List[ScheduleTaskRef]:
        return await self._run(self._list_by_module_sync, source_module)

    async def delete_by_source(self, source_module: str, source_entity_id: str) -> int:
        return await self._run(self._delete_by_source_sync, source_module, source_entity_id)

    # --- blocking implementations ---

    def _create_sync(self, spec: CreateScheduleTaskSpec) -> ScheduleTaskRef:
        validate_create_spec(spec)
        try:
            with self._database.session() as db:
                record = ScheduleTaskRepository.create(
                    db,
                    uuid=str(uuid_lib.uuid4()),
                    name=spec.name,
                    description=spec.description,
                    trigger_type=spec.trigger_type.value,
                    cron_expression=spec.cron_expression,
                    enabled=spec.enabled,
                    status=status_for(spec.enabled).value,
                    source_module=spec.source_module,
                    source_entity_id=spec.source_entity_id,
                    metadata_json=spec.metadata,
                    next_run_at=self._next_run(spec.cron_expression, spec.enabled),
                )
                ref = record_to_ref(record)
        except IntegrityError as e:
            raise DuplicateScheduleTaskError(spec.source_module, spec.source_entity_id) from e
        logger.debug("Stored schedule task %s for %s/%s", ref.uuid, ref.source_module, ref.source_entity_id)
        return ref

    def _update_sync(self, uuid: str, patch: ScheduleTaskPatch) -> ScheduleTaskRef:
        changes = patch.changes()
        if "cron_expression" in changes:
            validate_cron_expression(changes["cron_expression"])
        with self._database.session() as db:
            record = ScheduleTaskRepository.get_by_uuid(db, uuid)
            if record is None:
                raise ScheduleTaskNotFoundError(uuid)
            values: Dict[str, Any] = {}
            for key, value in changes.items():
                if key == "metadata":
                    values["metadata_json"] = value
                elif key == "status":
                    values["status"] = value.value
                else:
                    values[key] = value
            enabled = values.get("enabled", record.enabled)
            cron_expression = values.get("cron_expression", record.cron_expression)
            if "enabled" in values or "cron_expression" in values:
                values["next_run_at"] = self._next_run(cron_expression, enabled)
            record = ScheduleTaskRepository.update(db, uuid, values)
            return record_to_ref(record)

    def _delete_sync(self, uuid: str) -> None:
        with self._database.session() as db:
            if not ScheduleTaskRepository.delete(db, uuid):
                raise ScheduleTaskNotFoundError(uuid)

    def _find_by_source_sync(self, source_module: str, source_entity_id: str) -> List[ScheduleTaskRef]:
        with self._database.session() as db:
            records = ScheduleTaskRepository.list_by_source(db, source_module, source_entity_id)
            return [record_to_ref(r) for r in records]

    def _list_by_module_sync(self, source_module: str) -> List[ScheduleTaskRef]:
        with self._database.session() as db:
            return [record_to_ref(r) for r in ScheduleTaskRepository.list_by_module(db, source_module)]

    def _delete_by_source_sync(self, source_module: str, source_entity_id: str) -> int:
        with self._database.session() as db:
            return ScheduleTaskRepository.delete_by_source(db, source_module, source_entity_id)
