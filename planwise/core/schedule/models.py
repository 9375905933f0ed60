"""
Schedule task models.

Contract:
- triggerType: cron (6-field: second minute hour day-of-month month day-of-week)
- status mirrors enabled: enabled=False -> paused, enabled=True -> active
- (sourceModule, sourceEntityId) identifies the owning entity; at most one live task per pair
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class TriggerType(str, Enum):
    CRON = "cron"


class ScheduleTaskStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"


def status_for(enabled: bool) -> ScheduleTaskStatus:
    """Status is a materialized view of enabled."""
    return ScheduleTaskStatus.ACTIVE if enabled else ScheduleTaskStatus.PAUSED


class ScheduleTaskRef(BaseModel):
    """A recurring schedule task as seen by other modules."""
    uuid: str
    name: str
    description: Optional[str] = None
    trigger_type: TriggerType = TriggerType.CRON
    cron_expression: str
    enabled: bool
    status: ScheduleTaskStatus
    source_module: str
    source_entity_id: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
    next_run_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    version: int = 1


class CreateScheduleTaskSpec(BaseModel):
    """Input to ScheduleRepositoryPort.create_task."""
    name: str
    description: Optional[str] = None
    trigger_type: TriggerType = TriggerType.CRON
    cron_expression: str
    enabled: bool = True
    source_module: str
    source_entity_id: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ScheduleTaskPatch(BaseModel):
    """Partial update; only fields explicitly set are applied."""
    name: Optional[str] = None
    description: Optional[str] = None
    enabled: Optional[bool] = None
    cron_expression: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    def changes(self) -> Dict[str, Any]:
        """Explicitly set fields, with status derived whenever enabled is patched."""
        values = self.model_dump(exclude_unset=True)
        # description is the only field that may be cleared
        values = {k: v for k, v in values.items() if v is not None or k == "description"}
        if "enabled" in values:
            values["status"] = status_for(values["enabled"])
        return values
