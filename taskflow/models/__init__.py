"""SQLModel database models."""

from taskflow.models.user import User, UserRole, UserStatus
from taskflow.models.task import (
    SORTABLE_TASK_FIELDS,
    Task,
    TaskCategory,
    TaskPriority,
    TaskStatus,
)
from taskflow.models.audit import AuditAction, AuditLog

__all__ = [
    # User
    "User",
    "UserRole",
    "UserStatus",
    # Task
    "Task",
    "TaskCategory",
    "TaskPriority",
    "TaskStatus",
    "SORTABLE_TASK_FIELDS",
    # Audit
    "AuditAction",
    "AuditLog",
]
