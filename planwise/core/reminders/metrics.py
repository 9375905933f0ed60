"""
Simple in-memory metrics for reminder synchronization: events per kind, outcomes, anomalies.
"""
import logging
from typing import Dict, Optional

logger = logging.getLogger("planwise.reminders.metrics")


class SyncMetrics:
    """In-memory counters for handled lifecycle events."""

    def __init__(self) -> None:
        self._events_total: Dict[str, int] = {}
        self._outcomes_total: Dict[str, int] = {}
        self._failures_total: Dict[str, int] = {}
        self._duplicate_refs_total = 0

    def record_event(self, kind: str, outcome: str) -> None:
        self._events_total[kind] = self._events_total.get(kind, 0) + 1
        self._outcomes_total[outcome] = self._outcomes_total.get(outcome, 0) + 1

    def record_failure(self, kind: str) -> None:
        self._events_total[kind] = self._events_total.get(kind, 0) + 1
        self._failures_total[kind] = self._failures_total.get(kind, 0) + 1
        self._outcomes_total["failed"] = self._outcomes_total.get("failed", 0) + 1

    def record_duplicate_refs(self, source_entity_id: str, count: int) -> None:
        self._duplicate_refs_total += 1
        logger.debug("duplicate refs for %s: %s", source_entity_id, count)

    def get_stats(self) -> Dict[str, object]:
        return {
            "events": dict(self._events_total),
            "outcomes": dict(self._outcomes_total),
            "failures": dict(self._failures_total),
            "duplicate_refs": self._duplicate_refs_total,
        }

    def get_failure_rate(self) -> Optional[float]:
        total = sum(self._events_total.values())
        if total == 0:
            return None
        return sum(self._failures_total.values()) / total
