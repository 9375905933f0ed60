"""
SQLAlchemy models for the Planwise schedule store.

Defines the schema for recurring schedule tasks derived from other modules.
"""
from sqlalchemy import (
    Column, Integer, String, Text, Boolean,
    DateTime, JSON, Index, UniqueConstraint
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class ScheduleTaskRecord(Base):
    """Persisted recurring schedule task (cron trigger) traced back to its source entity."""
    __tablename__ = "recurring_schedule_tasks"

    uuid = Column(String(64), primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    trigger_type = Column(String(20), nullable=False, default="cron")
    cron_expression = Column(String(255), nullable=False)
    enabled = Column(Boolean, nullable=False, default=True)
    status = Column(String(20), nullable=False, default="active", index=True)  # active, paused

    # Foreign-key pair back to the owning entity in another module
    source_module = Column(String(50), nullable=False)
    source_entity_id = Column(String(64), nullable=False)

    metadata_json = Column(JSON, nullable=True)
    next_run_at = Column(DateTime, nullable=True, index=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("source_module", "source_entity_id", name="uq_schedule_task_source"),
        Index("idx_schedule_task_status_next_run", "status", "next_run_at"),
    )
