"""
Task template lifecycle events.

The three events form a tagged union on `kind`; consumers dispatch on the
event type instead of on free-form event name strings.
"""
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from planwise.core.task.models import TaskTemplateSnapshot


class TemplateCreated(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["template.created"] = "template.created"
    account_uuid: str = Field(alias="accountUuid")
    template: TaskTemplateSnapshot


class TemplateUpdated(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["template.updated"] = "template.updated"
    account_uuid: str = Field(alias="accountUuid")
    template: TaskTemplateSnapshot


class TemplateDeleted(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["template.deleted"] = "template.deleted"
    template_uuid: str = Field(alias="templateUuid")
    template_title: Optional[str] = Field(default=None, alias="templateTitle")


TemplateLifecycleEvent = Annotated[
    Union[TemplateCreated, TemplateUpdated, TemplateDeleted],
    Field(discriminator="kind"),
]

_event_adapter = TypeAdapter(TemplateLifecycleEvent)


def parse_event(data: Dict[str, Any]) -> Union[TemplateCreated, TemplateUpdated, TemplateDeleted]:
    """Validate a raw event dict (camelCase or snake_case) into its event type."""
    return _event_adapter.validate_python(data)


def event_entity_id(event: Union[TemplateCreated, TemplateUpdated, TemplateDeleted]) -> str:
    """Template uuid the event is about."""
    if isinstance(event, TemplateDeleted):
        return event.template_uuid
    return event.template.uuid


def event_to_dict(event: Union[TemplateCreated, TemplateUpdated, TemplateDeleted]) -> Dict[str, Any]:
    """Serialize an event for JSON transport."""
    return event.model_dump(mode="json", by_alias=True)
