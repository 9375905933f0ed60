"""
Task bounded context: template snapshots and lifecycle events consumed by other modules.
"""
from planwise.core.task.models import ReminderConfig, TaskTemplateSnapshot, TimeConfig
from planwise.core.task.events import (
    TemplateCreated,
    TemplateDeleted,
    TemplateLifecycleEvent,
    TemplateUpdated,
    event_entity_id,
    parse_event,
)

__all__ = [
    "ReminderConfig",
    "TaskTemplateSnapshot",
    "TimeConfig",
    "TemplateCreated",
    "TemplateDeleted",
    "TemplateLifecycleEvent",
    "TemplateUpdated",
    "event_entity_id",
    "parse_event",
]
