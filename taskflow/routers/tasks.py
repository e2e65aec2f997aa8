"""Task endpoints. Every query is scoped to the caller's own tasks."""

from typing import Literal

from fastapi import APIRouter, HTTPException, Query, status
from sqlmodel import select

from taskflow.core.deps import CurrentUser, DbSession
from taskflow.core.timeutils import utcnow
from taskflow.models import SORTABLE_TASK_FIELDS, Task, TaskCategory, TaskStatus
from taskflow.routers.filters import parse_enum_filter
from taskflow.schemas.common import MessageResponse, Pagination
from taskflow.schemas.task import (
    TaskCreate,
    TaskListResponse,
    TaskRead,
    TaskResponse,
    TaskStatsResponse,
    TaskUpdate,
)
from taskflow.services.tasks import apply_task_changes, count_tasks, get_owned_task, refresh_overdue

router = APIRouter(prefix="/tasks")

_TASK_NOT_FOUND = "Task not found"


def _sort_column(sort_by: str):
    column_name = SORTABLE_TASK_FIELDS.get(sort_by)
    if column_name is None and sort_by in SORTABLE_TASK_FIELDS.values():
        column_name = sort_by
    if column_name is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Cannot sort by '{sort_by}'")
    return getattr(Task, column_name)


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    current_user: CurrentUser,
    session: DbSession,
    page: int = Query(1, ge=1),
    limit: int = Query(1000, ge=1, le=1000),
    status_filter: str | None = Query(None, alias="status"),
    category: str | None = None,
    sort_by: str = Query("dueDate", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("asc", alias="sortOrder"),
) -> TaskListResponse:
    """List the caller's tasks with filtering, sorting and pagination."""
    await refresh_overdue(session, current_user.id)

    criteria = [Task.user_id == current_user.id]
    task_status = parse_enum_filter(status_filter, TaskStatus, "status")
    if task_status is not None:
        criteria.append(Task.status == task_status)
    task_category = parse_enum_filter(category, TaskCategory, "category")
    if task_category is not None:
        criteria.append(Task.category == task_category)

    column = _sort_column(sort_by)
    order = column.desc() if sort_order == "desc" else column.asc()

    query = (
        select(Task)
        .where(*criteria)
        .order_by(order, Task.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await session.execute(query)
    tasks = list(result.scalars().all())
    total = await count_tasks(session, *criteria)

    return TaskListResponse(
        tasks=[TaskRead.model_validate(task) for task in tasks],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/stats", response_model=TaskStatsResponse)
async def get_task_stats(current_user: CurrentUser, session: DbSession) -> TaskStatsResponse:
    """Count the caller's tasks by status."""
    await refresh_overdue(session, current_user.id)

    owned = Task.user_id == current_user.id
    return TaskStatsResponse(
        total=await count_tasks(session, owned),
        completed=await count_tasks(session, owned, Task.status == TaskStatus.COMPLETED),
        pending=await count_tasks(session, owned, Task.status == TaskStatus.PENDING),
        overdue=await count_tasks(session, owned, Task.status == TaskStatus.OVERDUE),
    )


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate,
    current_user: CurrentUser,
    session: DbSession,
) -> TaskResponse:
    """Create a task owned by the caller."""
    task = Task(
        **task_data.model_dump(exclude={"attachments"}),
        attachments=[a.model_dump() for a in task_data.attachments],
        user_id=current_user.id,
        status=TaskStatus.PENDING,
    )
    session.add(task)
    await session.commit()
    await session.refresh(task)

    return TaskResponse(message="Task created successfully", task=TaskRead.model_validate(task))


@router.get("/{id}", response_model=TaskResponse)
async def get_task(id: int, current_user: CurrentUser, session: DbSession) -> TaskResponse:
    """Get one of the caller's tasks."""
    task = await get_owned_task(session, id, current_user.id)
    if not task:
        raise HTTPException(status_code=404, detail=_TASK_NOT_FOUND)
    return TaskResponse(task=TaskRead.model_validate(task))


@router.put("/{id}", response_model=TaskResponse)
async def update_task(
    id: int,
    task_data: TaskUpdate,
    current_user: CurrentUser,
    session: DbSession,
) -> TaskResponse:
    """Apply a partial update to one of the caller's tasks."""
    task = await get_owned_task(session, id, current_user.id)
    if not task:
        raise HTTPException(status_code=404, detail=_TASK_NOT_FOUND)

    changes = task_data.model_dump(exclude_unset=True)
    if "attachments" in changes:
        changes["attachments"] = [a.model_dump() for a in task_data.attachments]

    apply_task_changes(task, changes, utcnow())
    session.add(task)
    await session.commit()
    await session.refresh(task)

    return TaskResponse(message="Task updated successfully", task=TaskRead.model_validate(task))


@router.delete("/{id}", response_model=MessageResponse)
async def delete_task(id: int, current_user: CurrentUser, session: DbSession) -> MessageResponse:
    """Delete one of the caller's tasks."""
    task = await get_owned_task(session, id, current_user.id)
    if not task:
        raise HTTPException(status_code=404, detail=_TASK_NOT_FOUND)

    await session.delete(task)
    await session.commit()

    return MessageResponse(message="Task deleted successfully")
