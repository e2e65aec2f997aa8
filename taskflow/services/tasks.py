"""Task domain helpers: overdue transition, status bookkeeping, counts."""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import func, select

from taskflow.core.timeutils import ensure_utc, start_of_day, utcnow
from taskflow.models import Task, TaskStatus

logger = logging.getLogger(__name__)

PAST_DUE_DATE_MESSAGE = "Due date cannot be in the past"


def ensure_due_date_not_past(due_date: datetime, now: datetime | None = None) -> datetime:
    """Return ``due_date`` in UTC, rejecting anything before today's start.

    Raises:
        ValueError: If the due date falls before midnight UTC of ``now``
    """
    due_date = ensure_utc(due_date)
    if due_date < start_of_day(now):
        raise ValueError(PAST_DUE_DATE_MESSAGE)
    return due_date


def is_overdue(task: Task, now: datetime) -> bool:
    """A task is overdue when it is still pending and its due date has passed."""
    return task.status == TaskStatus.PENDING and task.due_date < now


def apply_task_changes(task: Task, changes: dict[str, Any], now: datetime) -> Task:
    """Apply a partial update and keep ``completed_at`` in step with status.

    ``completed_at`` is stamped when the task becomes completed, kept while
    it stays completed, and cleared whenever the resulting status is anything
    else.
    """
    was_completed = task.status == TaskStatus.COMPLETED

    for key, value in changes.items():
        setattr(task, key, value)

    if task.status == TaskStatus.COMPLETED:
        if not was_completed or task.completed_at is None:
            task.completed_at = now
    else:
        task.completed_at = None

    task.updated_at = now
    return task


async def refresh_overdue(
    session: AsyncSession,
    user_id: int | None = None,
    now: datetime | None = None,
) -> int:
    """Mark pending tasks past their due date as overdue.

    Scoped to one user when ``user_id`` is given. Returns the number of rows
    changed.
    """
    now = now or utcnow()
    statement = (
        update(Task)
        .where(Task.status == TaskStatus.PENDING, Task.due_date < now)
        .values(status=TaskStatus.OVERDUE, updated_at=now)
    )
    if user_id is not None:
        statement = statement.where(Task.user_id == user_id)

    result = await session.execute(statement)
    await session.commit()
    if result.rowcount:
        logger.info("Marked %d task(s) overdue for user %s", result.rowcount, user_id)
    return result.rowcount


async def count_tasks(session: AsyncSession, *criteria: Any) -> int:
    """Count tasks matching the given where-clauses."""
    result = await session.execute(select(func.count()).select_from(Task).where(*criteria))
    return result.scalar_one()


async def get_owned_task(session: AsyncSession, task_id: int, user_id: int) -> Task | None:
    """Fetch a task only if ``user_id`` owns it."""
    result = await session.execute(
        select(Task).where(Task.id == task_id, Task.user_id == user_id)
    )
    return result.scalar_one_or_none()
