"""Task request/response schemas."""

from datetime import datetime

from pydantic import Field, field_validator

from taskflow.models import TaskCategory, TaskPriority, TaskStatus
from taskflow.schemas.common import ApiModel, Pagination
from taskflow.services.tasks import ensure_due_date_not_past


def _validate_title(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Title is required")
    return value


class Attachment(ApiModel):
    """Attachment metadata. File contents are stored elsewhere."""

    filename: str
    url: str
    size: int | None = None


class TaskCreate(ApiModel):
    """Schema for creating a task."""

    title: str
    description: str | None = None
    category: TaskCategory
    due_date: datetime
    priority: TaskPriority = TaskPriority.MEDIUM
    tags: list[str] = Field(default_factory=list)
    attachments: list[Attachment] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def check_title(cls, value: str) -> str:
        return _validate_title(value)

    @field_validator("due_date")
    @classmethod
    def check_due_date(cls, value: datetime) -> datetime:
        return ensure_due_date_not_past(value)

    @field_validator("tags")
    @classmethod
    def strip_tags(cls, value: list[str]) -> list[str]:
        return [tag.strip() for tag in value if tag.strip()]


class TaskUpdate(ApiModel):
    """Schema for a partial task update. Only fields sent are applied."""

    title: str | None = None
    description: str | None = None
    category: TaskCategory | None = None
    due_date: datetime | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    tags: list[str] | None = None
    attachments: list[Attachment] | None = None

    @field_validator("title", "category", "due_date", "status", "priority", "tags", "attachments")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("Field cannot be null")
        return value

    @field_validator("title")
    @classmethod
    def check_title(cls, value: str | None) -> str | None:
        return None if value is None else _validate_title(value)

    @field_validator("due_date")
    @classmethod
    def check_due_date(cls, value: datetime | None) -> datetime | None:
        return None if value is None else ensure_due_date_not_past(value)


class TaskRead(ApiModel):
    """Task as returned to clients."""

    id: int
    user_id: int
    title: str
    description: str | None = None
    category: TaskCategory
    due_date: datetime
    status: TaskStatus
    priority: TaskPriority
    completed_at: datetime | None = None
    tags: list[str] = Field(default_factory=list)
    attachments: list[Attachment] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class TaskResponse(ApiModel):
    """Single task envelope."""

    success: bool = True
    message: str | None = None
    task: TaskRead


class TaskListResponse(ApiModel):
    """Paginated task list envelope."""

    success: bool = True
    tasks: list[TaskRead]
    pagination: Pagination


class TaskStatsResponse(ApiModel):
    """Per-user task counts by status."""

    success: bool = True
    total: int
    completed: int
    pending: int
    overdue: int
