"""
Validation rules for schedule tasks.

- cron expression must be 6-field: second minute hour day-of-month month day-of-week
- seconds field is a plain number 0-59 or *
- the remaining 5 fields must be a valid standard cron expression
- name, sourceModule and sourceEntityId must be non-empty
"""
from croniter import croniter

from planwise.core.schedule.errors import ScheduleValidationError
from planwise.core.schedule.models import CreateScheduleTaskSpec


def split_cron_expression(expr: str) -> tuple:
    """Return (seconds, five_field_expr) for a 6-field expression."""
    parts = (expr or "").strip().split()
    if len(parts) != 6:
        raise ScheduleValidationError(
            "cron expr must be 6-field: second minute hour day month weekday"
        )
    return parts[0], " ".join(parts[1:])


def validate_cron_expression(expr: str) -> None:
    """Reject anything the cron execution engine could not evaluate."""
    seconds, rest = split_cron_expression(expr)
    if seconds != "*":
        if not seconds.isdigit() or not 0 <= int(seconds) <= 59:
            raise ScheduleValidationError(f"cron seconds field must be 0-59 or *, got {seconds!r}")
    if not croniter.is_valid(rest):
        raise ScheduleValidationError(f"invalid cron expression: {expr!r}")


def validate_create_spec(spec: CreateScheduleTaskSpec) -> None:
    if not spec.name.strip():
        raise ScheduleValidationError("name must be non-empty")
    if not spec.source_module.strip() or not spec.source_entity_id.strip():
        raise ScheduleValidationError("sourceModule and sourceEntityId are required")
    validate_cron_expression(spec.cron_expression)
