"""
Project aggregation and project storage operations.

The main entry point, load_projects_with_recent_tasks, builds a user's
project list in a single query:

1. Tasks are ranked per project by start date (newest first) with a
   row_number() window, and only the top RECENT_TASK_LIMIT are kept.
2. The user's projects are LEFT OUTER JOINed to those ranked tasks, so a
   project without tasks still yields exactly one row (with no task).
3. Rows are grouped by project id into ProjectWithTasks aggregates.

Any storage failure raises AggregationError; callers never see a partial
aggregate.
"""

from typing import Iterable, Optional

from sqlalchemy import and_, delete, func, insert, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased
from sqlmodel import select

from app.exceptions import AggregationError, StorageError
from app.logging_config import get_logger
from app.models import Project, ProjectTask, User
from app.models.project import format_participants
from app.schemas import ProjectRead, ProjectWithTasks, TaskRead
from app.timestamps import now_timestamp

logger = get_logger(__name__)

# Tasks shown per project in the aggregate view. Fixed on purpose.
RECENT_TASK_LIMIT = 3


# =============================================================================
# Reads
# =============================================================================

def _recent_tasks_statement(user_id: int):
    recency_rank = func.row_number().over(
        partition_by=ProjectTask.owner_proj,
        order_by=(ProjectTask.task_start_date.desc(), ProjectTask.id.desc()),
    ).label("recency_rank")
    ranked = select(ProjectTask, recency_rank).subquery("ranked_tasks")
    recent_task = aliased(ProjectTask, ranked)

    return (
        select(Project, recent_task)
        .outerjoin(
            recent_task,
            and_(
                recent_task.owner_proj == Project.id,
                ranked.c.recency_rank <= RECENT_TASK_LIMIT,
            ),
        )
        .where(Project.owner == user_id)
        .order_by(
            Project.proj_start_date.desc(),
            Project.id.desc(),
            recent_task.task_start_date.desc(),
            recent_task.id.desc(),
        )
    )


def group_rows(
    rows: Iterable[tuple[Project, Optional[ProjectTask]]],
) -> list[ProjectWithTasks]:
    """
    Fold (project, task-or-None) rows into one aggregate per project.

    Projects keep the order of their first row; tasks keep row order within
    their project. Rows for one project need not be adjacent.
    """
    grouped: dict[int, tuple[Project, list[ProjectTask]]] = {}
    for project, task in rows:
        _, tasks = grouped.setdefault(project.id, (project, []))
        if task is not None:
            tasks.append(task)

    return [
        ProjectWithTasks(
            project=ProjectRead.model_validate(project),
            tasks=[TaskRead.model_validate(task) for task in tasks] if tasks else None,
        )
        for project, tasks in grouped.values()
    ]


async def load_projects_with_recent_tasks(
    session: AsyncSession,
    user_id: int,
) -> list[ProjectWithTasks]:
    """
    Load every project owned by user_id with up to three of its newest tasks.

    Projects come newest first (by proj_start_date). A project with no
    tasks has tasks=None.

    Raises:
        AggregationError: if the query fails.
    """
    try:
        result = await session.execute(_recent_tasks_statement(user_id))
        rows = result.all()
    except SQLAlchemyError as exc:
        logger.exception(f"Failed to aggregate projects for user {user_id}")
        raise AggregationError("load projects with recent tasks") from exc

    projects = group_rows((row[0], row[1]) for row in rows)
    logger.debug(f"Aggregated {len(projects)} projects for user {user_id}")
    return projects


async def load_project(session: AsyncSession, project_id: int) -> Optional[Project]:
    try:
        return await session.get(Project, project_id)
    except SQLAlchemyError as exc:
        logger.exception(f"Failed to load project {project_id}")
        raise AggregationError("load project") from exc


async def load_tasks_for_project(session: AsyncSession, project_id: int) -> list[ProjectTask]:
    """All tasks of a project, newest first."""
    query = (
        select(ProjectTask)
        .where(ProjectTask.owner_proj == project_id)
        .order_by(ProjectTask.task_start_date.desc(), ProjectTask.id.desc())
    )
    try:
        result = await session.execute(query)
    except SQLAlchemyError as exc:
        logger.exception(f"Failed to load tasks for project {project_id}")
        raise AggregationError("load tasks") from exc
    return list(result.scalars().all())


async def load_projects_for_user(session: AsyncSession, user_id: int) -> list[Project]:
    """All projects owned by a user, newest first, without tasks."""
    query = (
        select(Project)
        .where(Project.owner == user_id)
        .order_by(Project.proj_start_date.desc(), Project.id.desc())
    )
    try:
        result = await session.execute(query)
    except SQLAlchemyError as exc:
        logger.exception(f"Failed to load projects for user {user_id}")
        raise AggregationError("load projects") from exc
    return list(result.scalars().all())


def can_access(project: Project, user: User) -> bool:
    """Owners and participants may see a project."""
    return project.owner == user.id or user.id in project.participant_ids


# =============================================================================
# Writes
# =============================================================================

async def _run_write(session: AsyncSession, statement, operation: str):
    try:
        result = await session.execute(statement)
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception(f"Failed to {operation}")
        raise StorageError(operation) from exc
    return result


async def create_project(session: AsyncSession, name: str, owner_id: int) -> int:
    """Insert a project and return its id (read back with RETURNING)."""
    statement = (
        insert(Project)
        .values(
            name=name,
            owner=owner_id,
            proj_start_date=now_timestamp(),
            proj_end_date=None,
            participants="",
        )
        .returning(Project.id)
    )
    try:
        result = await session.execute(statement)
        project_id = result.scalar_one()
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception("Failed to add project")
        raise StorageError("add project") from exc

    logger.info(f"Created project: id={project_id} name='{name}' owner={owner_id}")
    return project_id


async def edit_project(
    session: AsyncSession,
    project_id: int,
    name: str,
    proj_end_date: str,
) -> bool:
    """Rename a project and set its end date. False if it does not exist."""
    statement = (
        update(Project)
        .where(Project.id == project_id)
        .values(name=name, proj_end_date=proj_end_date)
    )
    result = await _run_write(session, statement, "edit project")
    edited = result.rowcount == 1
    if edited:
        logger.info(f"Edited project {project_id}: name='{name}' end={proj_end_date}")
    return edited


async def add_participant(session: AsyncSession, project_id: int, user_id: int) -> bool:
    """Append user_id to the project's participants. False if the project does not exist."""
    project = await load_project(session, project_id)
    if project is None:
        return False
    if user_id == project.owner or user_id in project.participant_ids:
        return True

    participants = format_participants([*project.participant_ids, user_id])
    statement = (
        update(Project)
        .where(Project.id == project_id)
        .values(participants=participants)
    )
    await _run_write(session, statement, "add participant")
    logger.info(f"Added participant {user_id} to project {project_id}")
    return True


async def delete_project(session: AsyncSession, project_id: int) -> bool:
    """Delete a project and its tasks. False if the project does not exist."""
    try:
        await session.execute(delete(ProjectTask).where(ProjectTask.owner_proj == project_id))
        result = await session.execute(delete(Project).where(Project.id == project_id))
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception(f"Failed to delete project {project_id}")
        raise StorageError("delete project") from exc

    deleted = result.rowcount == 1
    if deleted:
        logger.info(f"Deleted project {project_id}")
    return deleted
