"""Admin request/response schemas."""

from datetime import datetime

from pydantic import Field, field_validator

from taskflow.models import AuditAction, UserRole, UserStatus
from taskflow.schemas.auth import NormalizedEmail, UserRead
from taskflow.schemas.common import ApiModel, Pagination
from taskflow.schemas.task import TaskRead
from taskflow.services.email import EmailDeliveryStatus


class AdminUserCreate(ApiModel):
    """Schema for provisioning a user. The password is generated server-side."""

    name: str = Field(min_length=1, max_length=100)
    email: NormalizedEmail
    role: UserRole = UserRole.USER

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value


class UserStatusUpdate(ApiModel):
    status: UserStatus


class UserRoleUpdate(ApiModel):
    role: UserRole


class UserSummary(ApiModel):
    """Compact user view returned by admin mutations."""

    id: int
    name: str
    email: str
    role: UserRole
    status: UserStatus
    created_at: datetime | None = None


class UserBrief(ApiModel):
    """Minimal user projection joined onto tasks and audit entries."""

    id: int
    name: str
    email: str


class UserCreatedResponse(ApiModel):
    """Result of provisioning a user.

    ``temp_password`` is only populated outside production.
    """

    success: bool = True
    message: str
    user: UserSummary
    email_status: EmailDeliveryStatus
    temp_password: str | None = None


class UserUpdatedResponse(ApiModel):
    success: bool = True
    message: str
    user: UserSummary


class UserListResponse(ApiModel):
    success: bool = True
    users: list[UserRead]
    pagination: Pagination


class AdminTaskRead(TaskRead):
    """Task with its owner's projection; ``user`` is None if the owner is gone."""

    user: UserBrief | None = None


class AdminTaskListResponse(ApiModel):
    success: bool = True
    tasks: list[AdminTaskRead]
    pagination: Pagination


class AuditLogRead(ApiModel):
    """Audit entry as returned to administrators."""

    id: int
    timestamp: datetime
    user_id: int | None = None
    action: AuditAction
    resource: str
    resource_id: str | None = None
    details: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    user: UserBrief | None = None


class AuditLogListResponse(ApiModel):
    success: bool = True
    logs: list[AuditLogRead]
    pagination: Pagination


class AdminStatsResponse(ApiModel):
    """System-wide user and task counts."""

    success: bool = True
    total_users: int
    active_users: int
    inactive_users: int
    total_tasks: int
    completed_tasks: int
    pending_tasks: int
    overdue_tasks: int
