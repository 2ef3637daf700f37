"""
Task timing engine.

Completing a task stamps task_end_date with the current time. The elapsed
time (time_delta) is then computed from the stored start and end
timestamps and written back in whole seconds.

Unknown task ids are reported through the return value (False / None).
A missing or malformed timestamp is an error: it raises
TimestampParseError rather than storing a wrong number.
"""

from typing import Optional

from sqlalchemy import delete, insert, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.exceptions import StorageError, TimestampParseError, TimingError
from app.logging_config import get_logger
from app.models import ProjectTask
from app.timestamps import now_timestamp, parse_timestamp, seconds_between

logger = get_logger(__name__)


async def load_task(session: AsyncSession, task_id: int) -> Optional[ProjectTask]:
    try:
        return await session.get(ProjectTask, task_id)
    except SQLAlchemyError as exc:
        logger.exception(f"Failed to load task {task_id}")
        raise StorageError("load task") from exc


async def complete_task(session: AsyncSession, task_id: int) -> bool:
    """
    Set the task's end date to now.

    Returns:
        True if exactly one task was updated, False if task_id does not exist.

    Raises:
        TimingError: if the update fails.
    """
    statement = (
        update(ProjectTask)
        .where(ProjectTask.id == task_id)
        .values(task_end_date=now_timestamp())
    )
    try:
        result = await session.execute(statement)
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception(f"Failed to complete task {task_id}")
        raise TimingError("complete task", task_id=task_id) from exc

    completed = result.rowcount == 1
    if completed:
        logger.info(f"Completed task {task_id}")
    else:
        logger.debug(f"Complete requested for unknown task {task_id}")
    return completed


async def compute_time_delta(session: AsyncSession, task_id: int) -> Optional[int]:
    """
    Compute and store time_delta = task_end_date - task_start_date.

    The result is in whole seconds and may be negative if the stored
    timestamps are out of order.

    Returns:
        The stored number of seconds, or None if task_id does not exist.

    Raises:
        TimestampParseError: if either timestamp is missing or malformed.
        TimingError: if reading or writing the task fails.
    """
    query = select(ProjectTask.task_start_date, ProjectTask.task_end_date).where(
        ProjectTask.id == task_id
    )
    try:
        result = await session.execute(query)
        row = result.first()
    except SQLAlchemyError as exc:
        logger.exception(f"Failed to read timestamps of task {task_id}")
        raise TimingError("read task timestamps", task_id=task_id) from exc

    if row is None:
        return None

    start_raw, end_raw = row
    try:
        start = parse_timestamp(start_raw)
    except ValueError as exc:
        raise TimestampParseError(task_id, "task_start_date", start_raw) from exc
    try:
        end = parse_timestamp(end_raw)
    except ValueError as exc:
        raise TimestampParseError(task_id, "task_end_date", end_raw) from exc

    delta = seconds_between(start, end)
    statement = (
        update(ProjectTask)
        .where(ProjectTask.id == task_id)
        .values(time_delta=delta)
    )
    try:
        await session.execute(statement)
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception(f"Failed to store time_delta for task {task_id}")
        raise TimingError("store time delta", task_id=task_id) from exc

    if delta < 0:
        logger.warning(f"Task {task_id} ends before it starts ({delta}s)")
    logger.debug(f"Task {task_id} took {delta}s")
    return delta


async def finish_task(session: AsyncSession, task_id: int) -> Optional[int]:
    """Complete a task and record how long it took. None if task_id does not exist."""
    if not await complete_task(session, task_id):
        return None
    return await compute_time_delta(session, task_id)


async def create_task(session: AsyncSession, description: str, project_id: int) -> int:
    """Insert a task starting now and return its id (read back with RETURNING)."""
    statement = (
        insert(ProjectTask)
        .values(
            description=description,
            owner_proj=project_id,
            task_start_date=now_timestamp(),
            task_end_date=None,
            time_delta=None,
        )
        .returning(ProjectTask.id)
    )
    try:
        result = await session.execute(statement)
        task_id = result.scalar_one()
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception(f"Failed to add task to project {project_id}")
        raise StorageError("add task") from exc

    logger.info(f"Created task: id={task_id} project={project_id}")
    return task_id


async def delete_task(session: AsyncSession, task_id: int) -> bool:
    """Delete a task. False if it does not exist."""
    try:
        result = await session.execute(delete(ProjectTask).where(ProjectTask.id == task_id))
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception(f"Failed to delete task {task_id}")
        raise StorageError("delete task") from exc

    deleted = result.rowcount == 1
    if deleted:
        logger.info(f"Deleted task {task_id}")
    return deleted
