"""
Task routes for the Taskline API.

Tasks live under their project: /projects/{project_id}/tasks/...
A task that belongs to another project answers 404.
"""

from fastapi import APIRouter, Depends, status

from app.exceptions import NotFoundError
from app.guards import GuardChain, require_user
from app.logging_config import get_logger
from app.models import ProjectTask
from app.routes.projects import get_accessible_project
from app.schemas import TaskCreate, TaskRead
from app.services import timing
from app.session import RequestContext, get_request_context

logger = get_logger(__name__)

router = APIRouter()


async def get_project_task(ctx: RequestContext, project_id: int, task_id: int) -> ProjectTask:
    task = await timing.load_task(ctx.session, task_id)
    if task is None or task.owner_proj != project_id:
        raise NotFoundError("Task", task_id)
    return task


# =============================================================================
# POST /projects/{project_id}/tasks
# =============================================================================

create_chain = GuardChain("create task")


@create_chain.alternative(rank=1, user=require_user)
async def create_task_handler(ctx: RequestContext, user, task_in: TaskCreate):
    project = await get_accessible_project(ctx, user)
    task_id = await timing.create_task(ctx.session, task_in.description, project.id)
    task = await timing.load_task(ctx.session, task_id)
    if task is None:
        raise NotFoundError("Task", task_id)
    return task


@router.post("/", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
async def create_task(
    project_id: int,
    task_in: TaskCreate,
    ctx: RequestContext = Depends(get_request_context),
):
    """Add a task to a project. Its start date is now."""
    return await create_chain.dispatch(ctx, task_in=task_in)


# =============================================================================
# POST /projects/{project_id}/tasks/{task_id}/complete
# =============================================================================

complete_chain = GuardChain("complete task")


@complete_chain.alternative(rank=1, user=require_user)
async def complete_task_handler(ctx: RequestContext, user, task_id: int):
    project = await get_accessible_project(ctx, user)
    task = await get_project_task(ctx, project.id, task_id)

    elapsed = await timing.finish_task(ctx.session, task.id)
    if elapsed is None:
        # Deleted between the lookup and the update.
        raise NotFoundError("Task", task_id)

    await ctx.session.refresh(task)
    return task


@router.post("/{task_id}/complete", response_model=TaskRead)
async def complete_task(
    project_id: int,
    task_id: int,
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Mark a task as done.

    Sets the end date to now and stores the elapsed seconds in time_delta.
    """
    return await complete_chain.dispatch(ctx, task_id=task_id)


# =============================================================================
# DELETE /projects/{project_id}/tasks/{task_id}
# =============================================================================

delete_chain = GuardChain("delete task")


@delete_chain.alternative(rank=1, user=require_user)
async def delete_task_handler(ctx: RequestContext, user, task_id: int):
    project = await get_accessible_project(ctx, user)
    task = await get_project_task(ctx, project.id, task_id)
    if not await timing.delete_task(ctx.session, task.id):
        raise NotFoundError("Task", task_id)
    return {"deleted": True}


@router.delete("/{task_id}")
async def delete_task(
    project_id: int,
    task_id: int,
    ctx: RequestContext = Depends(get_request_context),
):
    """Delete a task."""
    return await delete_chain.dispatch(ctx, task_id=task_id)
