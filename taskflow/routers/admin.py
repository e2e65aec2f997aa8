"""Admin endpoints: user provisioning and cross-user visibility.

Every route requires the ``admin`` role.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import func, select

from taskflow.core.config import get_settings
from taskflow.core.deps import AdminUser, DbSession, require_admin
from taskflow.core.security import generate_temp_password, get_password_hash
from taskflow.core.timeutils import utcnow
from taskflow.models import (
    AuditAction,
    AuditLog,
    Task,
    TaskCategory,
    TaskStatus,
    User,
    UserRole,
    UserStatus,
)
from taskflow.routers.filters import parse_enum_filter
from taskflow.schemas.admin import (
    AdminStatsResponse,
    AdminTaskListResponse,
    AdminTaskRead,
    AdminUserCreate,
    AuditLogListResponse,
    AuditLogRead,
    UserBrief,
    UserCreatedResponse,
    UserListResponse,
    UserRoleUpdate,
    UserStatusUpdate,
    UserSummary,
    UserUpdatedResponse,
)
from taskflow.schemas.auth import UserRead
from taskflow.schemas.common import MessageResponse, Pagination
from taskflow.services.email import EmailDeliveryStatus, send_welcome_email
from taskflow.services.tasks import count_tasks, refresh_overdue

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])

_USER_NOT_FOUND = "User not found"


async def _count(session: AsyncSession, model, *criteria) -> int:
    result = await session.execute(select(func.count()).select_from(model).where(*criteria))
    return result.scalar_one()


async def _get_user_or_404(session: AsyncSession, user_id: int) -> User:
    user = await session.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail=_USER_NOT_FOUND)
    return user


def _brief(user: User | None) -> UserBrief | None:
    if user is None:
        return None
    return UserBrief(id=user.id, name=user.name, email=user.email)


@router.post("/users", response_model=UserCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: AdminUserCreate,
    current_user: AdminUser,
    session: DbSession,
) -> UserCreatedResponse:
    """Provision a user with a generated password and send a welcome email.

    Email delivery is best effort: the user is created either way and the
    outcome is reported in ``emailStatus``.
    """
    settings = get_settings()

    result = await session.execute(select(User).where(User.email == user_data.email))
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User with this email already exists",
        )

    temp_password = generate_temp_password(settings.temp_password_length)
    user = User(
        name=user_data.name,
        email=user_data.email,
        hashed_password=get_password_hash(temp_password),
        role=user_data.role,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)

    email_status = await send_welcome_email(settings, user.email, user.name, temp_password)
    logger.info(
        "Admin %s created user %s (role=%s, email=%s)",
        current_user.id,
        user.email,
        user.role.value,
        email_status.value,
    )

    if email_status == EmailDeliveryStatus.SENT:
        message = "User created successfully and welcome email sent"
    elif email_status == EmailDeliveryStatus.NOT_CONFIGURED:
        message = "User created successfully (email not configured)"
    else:
        message = "User created successfully but the welcome email could not be sent"

    return UserCreatedResponse(
        message=message,
        user=UserSummary.model_validate(user),
        email_status=email_status,
        temp_password=None if settings.is_production else temp_password,
    )


@router.get("/users", response_model=UserListResponse)
async def list_users(
    session: DbSession,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=1000),
    status_filter: str | None = Query(None, alias="status"),
    role: str | None = None,
) -> UserListResponse:
    """List users, newest first."""
    criteria = []
    user_status = parse_enum_filter(status_filter, UserStatus, "status")
    if user_status is not None:
        criteria.append(User.status == user_status)
    user_role = parse_enum_filter(role, UserRole, "role")
    if user_role is not None:
        criteria.append(User.role == user_role)

    query = (
        select(User)
        .where(*criteria)
        .order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await session.execute(query)
    users = list(result.scalars().all())
    total = await _count(session, User, *criteria)

    return UserListResponse(
        users=[UserRead.model_validate(u) for u in users],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/tasks", response_model=AdminTaskListResponse)
async def list_all_tasks(
    session: DbSession,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=1000),
    status_filter: str | None = Query(None, alias="status"),
    category: str | None = None,
    user_id: int | None = Query(None, alias="userId"),
) -> AdminTaskListResponse:
    """List tasks across all users with the owner's name and email."""
    await refresh_overdue(session)
    criteria = []
    task_status = parse_enum_filter(status_filter, TaskStatus, "status")
    if task_status is not None:
        criteria.append(Task.status == task_status)
    task_category = parse_enum_filter(category, TaskCategory, "category")
    if task_category is not None:
        criteria.append(Task.category == task_category)
    if user_id is not None:
        criteria.append(Task.user_id == user_id)

    query = (
        select(Task, User)
        .outerjoin(User, Task.user_id == User.id)
        .where(*criteria)
        .order_by(Task.created_at.desc(), Task.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await session.execute(query)
    tasks = []
    for task, owner in result.all():
        item = AdminTaskRead.model_validate(task)
        item.user = _brief(owner)
        tasks.append(item)
    total = await count_tasks(session, *criteria)

    return AdminTaskListResponse(tasks=tasks, pagination=Pagination.build(page, limit, total))


@router.get("/audit-logs", response_model=AuditLogListResponse)
async def list_audit_logs(
    session: DbSession,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=1000),
    action: str | None = None,
    resource: str | None = None,
    user_id: int | None = Query(None, alias="userId"),
) -> AuditLogListResponse:
    """List audit entries, newest first, with the actor's name and email."""
    criteria = []
    audit_action = parse_enum_filter(action, AuditAction, "action")
    if audit_action is not None:
        criteria.append(AuditLog.action == audit_action)
    if resource and resource != "all":
        criteria.append(AuditLog.resource == resource)
    if user_id is not None:
        criteria.append(AuditLog.user_id == user_id)

    query = (
        select(AuditLog, User)
        .outerjoin(User, AuditLog.user_id == User.id)
        .where(*criteria)
        .order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await session.execute(query)
    logs = []
    for entry, actor in result.all():
        item = AuditLogRead.model_validate(entry)
        item.user = _brief(actor)
        logs.append(item)
    total = await _count(session, AuditLog, *criteria)

    return AuditLogListResponse(logs=logs, pagination=Pagination.build(page, limit, total))


@router.get("/stats", response_model=AdminStatsResponse)
async def get_admin_stats(session: DbSession) -> AdminStatsResponse:
    """System-wide counts of users by status and tasks by status."""
    await refresh_overdue(session)
    return AdminStatsResponse(
        total_users=await _count(session, User),
        active_users=await _count(session, User, User.status == UserStatus.ACTIVE),
        inactive_users=await _count(session, User, User.status == UserStatus.INACTIVE),
        total_tasks=await count_tasks(session),
        completed_tasks=await count_tasks(session, Task.status == TaskStatus.COMPLETED),
        pending_tasks=await count_tasks(session, Task.status == TaskStatus.PENDING),
        overdue_tasks=await count_tasks(session, Task.status == TaskStatus.OVERDUE),
    )


@router.put("/users/{id}/status", response_model=UserUpdatedResponse)
async def update_user_status(
    id: int,
    update: UserStatusUpdate,
    current_user: AdminUser,
    session: DbSession,
) -> UserUpdatedResponse:
    """Activate or deactivate another user's account."""
    user = await _get_user_or_404(session, id)
    if user.id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot modify your own account status",
        )

    user.status = update.status
    user.updated_at = utcnow()
    session.add(user)
    await session.commit()
    await session.refresh(user)

    return UserUpdatedResponse(
        message="User status updated successfully",
        user=UserSummary.model_validate(user),
    )


@router.put("/users/{id}/role", response_model=UserUpdatedResponse)
async def update_user_role(
    id: int,
    update: UserRoleUpdate,
    current_user: AdminUser,
    session: DbSession,
) -> UserUpdatedResponse:
    """Change another user's role."""
    user = await _get_user_or_404(session, id)
    if user.id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot modify your own role",
        )

    user.role = update.role
    user.updated_at = utcnow()
    session.add(user)
    await session.commit()
    await session.refresh(user)

    return UserUpdatedResponse(
        message="User role updated successfully",
        user=UserSummary.model_validate(user),
    )


@router.delete("/users/{id}", response_model=MessageResponse)
async def delete_user(id: int, current_user: AdminUser, session: DbSession) -> MessageResponse:
    """Delete a user and every task they own in one transaction."""
    user = await _get_user_or_404(session, id)
    if user.id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete your own account",
        )

    await session.execute(delete(Task).where(Task.user_id == user.id))
    await session.delete(user)
    await session.commit()

    logger.info("Admin %s deleted user %s and their tasks", current_user.id, id)
    return MessageResponse(message="User deleted successfully")
