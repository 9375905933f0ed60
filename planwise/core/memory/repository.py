"""
Repository layer for database operations.

Provides CRUD helpers for schedule task records. Helpers flush but do not
commit; the owning `Database.session()` block commits the unit of work.
"""
from typing import Optional, List, Dict, Any
from datetime import datetime
import logging

from sqlalchemy.orm import Session

from planwise.core.memory.models import ScheduleTaskRecord


logger = logging.getLogger(__name__)


def require_active_session(db: Session) -> None:
    """Raise if session is closed; prevents use-after-close."""
    if not db.is_active:
        raise RuntimeError(
            "Session already closed; do not use a session outside its scope "
            "or from another thread."
        )


class ScheduleTaskRepository:
    """Repository for recurring schedule task records."""

    @staticmethod
    def create(
        db: Session,
        uuid: str,
        name: str,
        cron_expression: str,
        source_module: str,
        source_entity_id: str,
        enabled: bool,
        status: str,
        description: Optional[str] = None,
        trigger_type: str = "cron",
        metadata_json: Optional[Dict[str, Any]] = None,
        next_run_at: Optional[datetime] = None,
    ) -> ScheduleTaskRecord:
        """Insert a schedule task. Raises IntegrityError if the source already has one."""
        require_active_session(db)
        record = ScheduleTaskRecord(
            uuid=uuid,
            name=name,
            description=description,
            trigger_type=trigger_type,
            cron_expression=cron_expression,
            enabled=enabled,
            status=status,
            source_module=source_module,
            source_entity_id=source_entity_id,
            metadata_json=metadata_json,
            next_run_at=next_run_at,
            version=1,
        )
        db.add(record)
        db.flush()
        db.refresh(record)
        return record

    @staticmethod
    def get_by_uuid(db: Session, uuid: str) -> Optional[ScheduleTaskRecord]:
        """Return a schedule task by uuid."""
        return db.query(ScheduleTaskRecord).filter(ScheduleTaskRecord.uuid == uuid).first()

    @staticmethod
    def list_by_source(db: Session, source_module: str, source_entity_id: str) -> List[ScheduleTaskRecord]:
        """Return schedule tasks for a source entity, oldest first."""
        return (
            db.query(ScheduleTaskRecord)
            .filter(
                ScheduleTaskRecord.source_module == source_module,
                ScheduleTaskRecord.source_entity_id == source_entity_id,
            )
            .order_by(ScheduleTaskRecord.created_at.asc())
            .all()
        )

    @staticmethod
    def list_by_module(db: Session, source_module: str) -> List[ScheduleTaskRecord]:
        """Return all schedule tasks owned by a source module."""
        return (
            db.query(ScheduleTaskRecord)
            .filter(ScheduleTaskRecord.source_module == source_module)
            .order_by(ScheduleTaskRecord.created_at.asc())
            .all()
        )

    @staticmethod
    def update(db: Session, uuid: str, values: Dict[str, Any]) -> Optional[ScheduleTaskRecord]:
        """Apply column values to a schedule task and bump its version. Returns None if missing."""
        require_active_session(db)
        record = ScheduleTaskRepository.get_by_uuid(db, uuid)
        if not record:
            return None
        for key, value in values.items():
            setattr(record, key, value)
        record.version = (record.version or 0) + 1
        db.flush()
        db.refresh(record)
        return record

    @staticmethod
    def delete(db: Session, uuid: str) -> bool:
        """Delete a schedule task. Returns False if it did not exist."""
        require_active_session(db)
        record = ScheduleTaskRepository.get_by_uuid(db, uuid)
        if not record:
            return False
        db.delete(record)
        db.flush()
        return True

    @staticmethod
    def delete_by_source(db: Session, source_module: str, source_entity_id: str) -> int:
        """Delete every schedule task for a source entity. Returns number deleted."""
        require_active_session(db)
        deleted = (
            db.query(ScheduleTaskRecord)
            .filter(
                ScheduleTaskRecord.source_module == source_module,
                ScheduleTaskRecord.source_entity_id == source_entity_id,
            )
            .delete(synchronize_session=False)
        )
        db.flush()
        return deleted or 0
