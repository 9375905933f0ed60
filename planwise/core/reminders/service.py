"""
Entry point for the message-processing layer: parse, serialize per template, reconcile.

Callers await `process` before acknowledging the source event; an exception
means the event was not applied and should be redelivered.
"""
import asyncio
import logging
from typing import Any, Dict, Iterable, List, Tuple, Union

from planwise.core.reminders.serializer import PerEntitySerializer
from planwise.core.reminders.sync_handler import ReminderSyncHandler, SyncOutcome
from planwise.core.task.events import (
    TemplateCreated,
    TemplateDeleted,
    TemplateUpdated,
    event_entity_id,
    parse_event,
)

logger = logging.getLogger(__name__)

LifecycleEvent = Union[TemplateCreated, TemplateUpdated, TemplateDeleted]


class ReminderSyncService:
    """Runs ReminderSyncHandler under per-template serialization."""

    def __init__(self, handler: ReminderSyncHandler, serializer: PerEntitySerializer) -> None:
        self._handler = handler
        self._serializer = serializer

    def entity_key(self, event: LifecycleEvent) -> Tuple[str, str]:
        """(sourceModule, sourceEntityId) the event reconciles."""
        return (self._handler.source_module, event_entity_id(event))

    async def process(self, event: Union[LifecycleEvent, Dict[str, Any]]) -> SyncOutcome:
        if isinstance(event, dict):
            event = parse_event(event)
        key = self.entity_key(event)
        logger.debug("Processing %s for %s", event.kind, key)
        return await self._serializer.run_exclusive(key, lambda: self._handler.handle(event))

    async def process_many(self, events: Iterable[Union[LifecycleEvent, Dict[str, Any]]]) -> List[SyncOutcome]:
        """
        Process a batch: ordered per template, concurrent across templates.

        Outcomes are returned in input order. If any event fails, the first
        failure is raised once the whole batch has settled.
        """
        parsed = [parse_event(e) if isinstance(e, dict) else e for e in events]
        # Tasks are created in input order, so per-key lock acquisition follows it.
        tasks = [asyncio.ensure_future(self.process(e)) for e in parsed]
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return list(results)
