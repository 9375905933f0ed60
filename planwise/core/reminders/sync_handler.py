"""
Keeps the Schedule module's recurring task in line with a task template's reminder.

Per template the derived schedule task moves between three states:
NoSchedule, Scheduled(enabled) and Scheduled(disabled).

- Created: reminder enabled and cron derivable -> create; a task already exists -> skip
- Updated: no task -> behave like Created; reminder disabled -> disable; else refresh
- Deleted: delete every task for the template

Every handler reads current state from the repository before writing, so a
redelivered or reordered event converges instead of duplicating. Repository
errors are logged and re-raised; the caller decides on redelivery.
"""
import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from planwise.core.reminders.cron_deriver import derive_reminder_cron
from planwise.core.reminders.metrics import SyncMetrics
from planwise.core.schedule.errors import ScheduleTaskNotFoundError
from planwise.core.schedule.models import (
    CreateScheduleTaskSpec,
    ScheduleTaskPatch,
    ScheduleTaskRef,
    TriggerType,
)
from planwise.core.schedule.port import ScheduleRepositoryPort
from planwise.core.task.events import (
    TemplateCreated,
    TemplateDeleted,
    TemplateUpdated,
    event_entity_id,
)
from planwise.core.task.models import TaskTemplateSnapshot, config_to_wire

logger = logging.getLogger(__name__)

TASK_SOURCE_MODULE = "task"


class SyncOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DISABLED = "disabled"
    DELETED = "deleted"
    SKIPPED = "skipped"


def schedule_task_name(title: str) -> str:
    return f"[Task reminder] {title}"


def schedule_task_description(title: str) -> str:
    return f'Reminder for task "{title}"'


def schedule_task_metadata(account_uuid: str, template: TaskTemplateSnapshot) -> Dict[str, Any]:
    return {
        "accountUuid": account_uuid,
        "templateTitle": template.title,
        "reminderConfig": config_to_wire(template.reminder_config),
        "timeConfig": config_to_wire(template.time_config),
    }


class ReminderSyncHandler:
    """Applies task template lifecycle events to the schedule repository."""

    def __init__(
        self,
        repository: ScheduleRepositoryPort,
        source_module: str = TASK_SOURCE_MODULE,
        metrics: Optional[SyncMetrics] = None,
    ) -> None:
        self._repository = repository
        self._source_module = source_module
        self._metrics = metrics or SyncMetrics()

    @property
    def source_module(self) -> str:
        return self._source_module

    @property
    def metrics(self) -> SyncMetrics:
        return self._metrics

    async def handle(self, event: Union[TemplateCreated, TemplateUpdated, TemplateDeleted]) -> SyncOutcome:
        """Dispatch one lifecycle event; raises whatever the repository raised."""
        if isinstance(event, TemplateCreated):
            handler = self.on_created
        elif isinstance(event, TemplateUpdated):
            handler = self.on_updated
        elif isinstance(event, TemplateDeleted):
            handler = self.on_deleted
        else:
            raise TypeError(f"Unsupported template lifecycle event: {type(event).__name__}")

        try:
            outcome = await handler(event)
        except Exception:
            logger.error(
                "Reminder sync failed for %s (template %s)",
                event.kind,
                event_entity_id(event),
                exc_info=True,
            )
            self._metrics.record_failure(event.kind)
            raise
        self._metrics.record_event(event.kind, outcome.value)
        return outcome

    async def on_created(self, event: TemplateCreated) -> SyncOutcome:
        template = event.template
        if not template.reminder_enabled:
            logger.debug("Template %s has no enabled reminder; no schedule task", template.uuid)
            return SyncOutcome.SKIPPED
        cron_expression = self._derive(template)
        if cron_expression is None:
            return SyncOutcome.SKIPPED

        refs = await self._find(template.uuid)
        if refs:
            # Redelivered Created, or Updated got here first: the snapshot is stale.
            ref = self._authoritative(refs, template.uuid)
            logger.debug("Template %s already has schedule task %s; ignoring Created", template.uuid, ref.uuid)
            return SyncOutcome.SKIPPED

        await self._create(event.account_uuid, template, cron_expression)
        return SyncOutcome.CREATED

    async def on_updated(self, event: TemplateUpdated) -> SyncOutcome:
        template = event.template
        refs = await self._find(template.uuid)

        if not refs:
            if not template.reminder_enabled:
                logger.debug("Template %s updated without reminder and no schedule task", template.uuid)
                return SyncOutcome.SKIPPED
            cron_expression = self._derive(template)
            if cron_expression is None:
                return SyncOutcome.SKIPPED
            logger.warning("No schedule task found for template %s; creating it", template.uuid)
            await self._create(event.account_uuid, template, cron_expression)
            return SyncOutcome.CREATED

        ref = self._authoritative(refs, template.uuid)
        if not template.reminder_enabled:
            await self._repository.update_task(ref.uuid, ScheduleTaskPatch(enabled=False))
            logger.info("Disabled schedule task %s for template %s", ref.uuid, template.uuid)
            return SyncOutcome.DISABLED

        return await self._refresh(ref, event.account_uuid, template, self._derive(template))

    async def on_deleted(self, event: TemplateDeleted) -> SyncOutcome:
        refs = await self._find(event.template_uuid)
        if not refs:
            logger.debug("No schedule tasks to delete for template %s", event.template_uuid)
            return SyncOutcome.SKIPPED
        for ref in refs:
            try:
                await self._repository.delete_task(ref.uuid)
            except ScheduleTaskNotFoundError:
                logger.debug("Schedule task %s already gone", ref.uuid)
        logger.info(
            "Deleted %s schedule task(s) for template %s",
            len(refs),
            event.template_title or event.template_uuid,
        )
        return SyncOutcome.DELETED

    # --- helpers ---

    def _derive(self, template: TaskTemplateSnapshot) -> Optional[str]:
        cron_expression = derive_reminder_cron(template.time_config, template.reminder_config)
        if cron_expression is None and template.reminder_enabled:
            logger.warning(
                "Cannot derive reminder cron for template %s (%s), timeConfig: %s",
                template.uuid,
                template.title,
                config_to_wire(template.time_config),
            )
        return cron_expression

    async def _find(self, template_uuid: str) -> List[ScheduleTaskRef]:
        return await self._repository.find_by_source(self._source_module, template_uuid)

    def _authoritative(self, refs: List[ScheduleTaskRef], template_uuid: str) -> ScheduleTaskRef:
        if len(refs) > 1:
            logger.warning(
                "Template %s has %s schedule tasks; using %s",
                template_uuid,
                len(refs),
                refs[0].uuid,
            )
            self._metrics.record_duplicate_refs(template_uuid, len(refs))
        return refs[0]

    async def _create(self, account_uuid: str, template: TaskTemplateSnapshot, cron_expression: str) -> ScheduleTaskRef:
        ref = await self._repository.create_task(
            CreateScheduleTaskSpec(
                name=schedule_task_name(template.title),
                description=schedule_task_description(template.title),
                trigger_type=TriggerType.CRON,
                cron_expression=cron_expression,
                enabled=True,
                source_module=self._source_module,
                source_entity_id=template.uuid,
                metadata=schedule_task_metadata(account_uuid, template),
            )
        )
        logger.info("Created schedule task %s for template %s, cron: %s", ref.uuid, template.title, cron_expression)
        return ref

    async def _refresh(
        self,
        ref: ScheduleTaskRef,
        account_uuid: str,
        template: TaskTemplateSnapshot,
        cron_expression: Optional[str],
    ) -> SyncOutcome:
        fields: Dict[str, Any] = {
            "name": schedule_task_name(template.title),
            "description": schedule_task_description(template.title),
            "enabled": True,
            "metadata": schedule_task_metadata(account_uuid, template),
        }
        # An underivable cron leaves the stored trigger untouched.
        if cron_expression is not None:
            fields["cron_expression"] = cron_expression
        await self._repository.update_task(ref.uuid, ScheduleTaskPatch(**fields))
        logger.info(
            "Updated schedule task %s for template %s%s",
            ref.uuid,
            template.title,
            f", cron: {cron_expression}" if cron_expression else "",
        )
        return SyncOutcome.UPDATED
