# taskcycle/models.py
from sqlalchemy import Column, String, Integer, Float, ForeignKey, Text, Date, DateTime, Enum, Boolean, JSON, Index
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from .db import Base
from .engine.dates import NO_DUE_DATE


class PatternEnum(str, enum.Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class TaskTypeEnum(str, enum.Enum):
    NORMAL = "NORMAL"
    RECURRING = "RECURRING"
    IDEA = "IDEA"
    INBOX = "INBOX"


class RecurringTemplate(Base):
    __tablename__ = "recurring_templates"

    id = Column(String, primary_key=True)
    title = Column(Text, nullable=False)
    memo = Column(Text, nullable=True)
    category = Column(String, nullable=True)
    importance = Column(Integer, nullable=False, default=3)

    # Recurrence rule
    pattern = Column(Enum(PatternEnum), nullable=False)
    interval = Column(Integer, nullable=False, default=1)
    weekdays = Column(JSON, nullable=True)  # WEEKLY only, 0=Mon..6=Sun
    day_of_month = Column(Integer, nullable=True)  # MONTHLY / YEARLY
    month_of_year = Column(Integer, nullable=True)  # YEARLY
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)

    active = Column(Boolean, nullable=False, default=True)
    user_id = Column(String, nullable=False, index=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("ix_templates_user_active_pattern", "user_id", "active", "pattern"),
    )


class Task(Base):
    __tablename__ = "tasks"

    # Primary key and basic info
    id = Column(String, primary_key=True)
    display_number = Column(String(13), nullable=False, index=True)
    title = Column(Text, nullable=False)
    memo = Column(Text, nullable=True)
    category = Column(String, nullable=True)
    importance = Column(Integer, nullable=False, default=3)

    # Scheduling and completion
    due_date = Column(Date, nullable=False, default=NO_DUE_DATE)
    completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime, nullable=True)  # local civil wall clock
    task_type = Column(Enum(TaskTypeEnum), nullable=False, default=TaskTypeEnum.NORMAL)
    archived = Column(Boolean, nullable=False, default=False)
    sort_order = Column(Float, nullable=False, default=0.0)

    # Generated occurrences: back-reference only, no cascade from the template
    recurring_template_id = Column(String, nullable=True)
    recurring_pattern = Column(Enum(PatternEnum), nullable=True)

    # Rollover provenance
    carried_from_task_id = Column(String, nullable=True, index=True)
    carried_from_template_id = Column(String, nullable=True)
    carried_through = Column(Date, nullable=True)
    rollover_count = Column(Integer, nullable=False, default=0)

    user_id = Column(String, nullable=False, index=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    subtasks = relationship(
        "SubTask",
        back_populates="parent",
        cascade="all, delete-orphan",
        order_by="SubTask.sort_order",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_tasks_user_template_due", "user_id", "recurring_template_id", "due_date"),
        Index("ix_tasks_user_completed_due", "user_id", "completed", "due_date"),
        Index("ix_tasks_user_category_completed", "user_id", "category", "completed"),
    )


class SubTask(Base):
    __tablename__ = "subtasks"

    id = Column(String, primary_key=True)
    parent_task_id = Column(String, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(Text, nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    sort_order = Column(Integer, nullable=False, default=0)
    user_id = Column(String, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    parent = relationship("Task", back_populates="subtasks")


class CompletionRecord(Base):
    """Append/delete ledger of completions; streaks are derived from it."""
    __tablename__ = "completions"

    id = Column(String, primary_key=True)
    original_task_id = Column(String, nullable=False, index=True)
    template_id = Column(String, nullable=True, index=True)
    task_title = Column(Text, nullable=False)
    completion_date = Column(Date, nullable=False)
    completion_time = Column(DateTime, nullable=False)
    user_id = Column(String, nullable=False, index=True)

    __table_args__ = (
        Index("ix_completions_user_task_date", "user_id", "original_task_id", "completion_date"),
        Index("ix_completions_user_date", "user_id", "completion_date"),
    )


class GenerationMetadata(Base):
    __tablename__ = "generation_metadata"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False)
    key = Column(String, nullable=False)
    value = Column(String, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("ix_metadata_user_key", "user_id", "key"),
    )
