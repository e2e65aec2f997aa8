"""Task model. Every task belongs to exactly one user."""

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON, Column, Index
from sqlmodel import Field, SQLModel

from taskflow.core.timeutils import utcnow
from taskflow.models.types import UTCDateTime


class TaskCategory(str, Enum):
    """Closed set of task categories."""

    WORK = "Work"
    PERSONAL = "Personal"
    HEALTH = "Health"
    EDUCATION = "Education"
    SHOPPING = "Shopping"
    FINANCE = "Finance"
    TRAVEL = "Travel"
    OTHER = "Other"


class TaskStatus(str, Enum):
    """Task status. OVERDUE is derived from the due date at read time."""

    PENDING = "pending"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class TaskPriority(str, Enum):
    """Task priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Task(SQLModel, table=True):
    """Task database model."""

    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_user_id_due_date", "user_id", "due_date"),
        Index("ix_tasks_status_due_date", "status", "due_date"),
    )

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    title: str
    description: str | None = Field(default=None)
    category: TaskCategory
    due_date: datetime = Field(sa_type=UTCDateTime)
    status: TaskStatus = Field(default=TaskStatus.PENDING)
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM)
    completed_at: datetime | None = Field(default=None, sa_type=UTCDateTime)
    tags: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    attachments: list[dict[str, Any]] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


# Columns a task listing may be sorted by, keyed by their wire (camelCase) name.
SORTABLE_TASK_FIELDS: dict[str, str] = {
    "id": "id",
    "title": "title",
    "description": "description",
    "category": "category",
    "dueDate": "due_date",
    "status": "status",
    "priority": "priority",
    "completedAt": "completed_at",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}
