"""
Task template snapshot models, as carried by template lifecycle events.

Contract:
- timeConfig: type daily|weekly|monthly, times ["HH:MM", ...], weekdays 0-6, monthDays 1-31
- reminderConfig: enabled, minutesBefore, methods
Field names are snake_case; the camelCase wire names are accepted as aliases.
"""
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

Weekday = Annotated[int, Field(ge=0, le=6)]
MonthDay = Annotated[int, Field(ge=1, le=31)]


class TimeConfig(BaseModel):
    """When a recurring task is due. Only times[0] drives the reminder schedule."""
    model_config = ConfigDict(populate_by_name=True)

    # Free string: unknown kinds must reach the deriver, which skips them.
    type: str
    times: Optional[List[str]] = None
    weekdays: Optional[List[Weekday]] = None
    month_days: Optional[List[MonthDay]] = Field(default=None, alias="monthDays")


class ReminderConfig(BaseModel):
    """Remind N minutes before the task's nominal time."""
    model_config = ConfigDict(populate_by_name=True)

    enabled: bool = False
    minutes_before: Optional[int] = Field(default=None, alias="minutesBefore")
    methods: List[str] = Field(default_factory=list)


class TaskTemplateSnapshot(BaseModel):
    """The parts of a task template the reminder synchronizer reads."""
    model_config = ConfigDict(populate_by_name=True)

    uuid: str
    title: str
    description: Optional[str] = None
    time_config: Optional[TimeConfig] = Field(default=None, alias="timeConfig")
    reminder_config: Optional[ReminderConfig] = Field(default=None, alias="reminderConfig")

    @property
    def reminder_enabled(self) -> bool:
        return bool(self.reminder_config and self.reminder_config.enabled)


def config_to_wire(config: Optional[BaseModel]) -> Optional[Dict[str, Any]]:
    """Serialize a config model with its camelCase names (for schedule task metadata)."""
    if config is None:
        return None
    return config.model_dump(mode="json", by_alias=True)
