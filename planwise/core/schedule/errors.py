"""
Errors raised by the Schedule module and its repository adapters.
"""


class ScheduleRepositoryError(Exception):
    """Base class for schedule repository failures."""
    pass


class ScheduleTaskNotFoundError(ScheduleRepositoryError, LookupError):
    """Raised when a schedule task uuid does not exist."""

    def __init__(self, uuid: str) -> None:
        super().__init__(f"Schedule task not found: {uuid}")
        self.uuid = uuid


class DuplicateScheduleTaskError(ScheduleRepositoryError):
    """Raised when a source entity already owns a schedule task."""

    def __init__(self, source_module: str, source_entity_id: str) -> None:
        super().__init__(
            f"Schedule task already exists for source {source_module}/{source_entity_id}"
        )
        self.source_module = source_module
        self.source_entity_id = source_entity_id


class ScheduleValidationError(ValueError):
    """Raised when a schedule task spec or cron expression is invalid."""
    pass
