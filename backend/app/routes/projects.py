"""
Project routes for the Taskline API.

Every route requires a signed-in user; anonymous callers are redirected to
/login by the guard chain fallback. Projects the user cannot see answer
404, the same as projects that do not exist.
"""

from fastapi import APIRouter, Depends, status

from app.exceptions import AggregationError, NotFoundError
from app.guards import (
    GuardChain,
    load_project_tasks,
    load_projects,
    project_id_param,
    require_user,
)
from app.logging_config import get_logger
from app.models import Project, User
from app.schemas import (
    ParticipantAdd,
    ProjectCreate,
    ProjectDetail,
    ProjectRead,
    ProjectUpdate,
    ProjectWithTasks,
    TaskRead,
)
from app.services import projects as project_service
from app.services import users as user_service
from app.session import RequestContext, get_request_context

logger = get_logger(__name__)

router = APIRouter()


async def get_accessible_project(
    ctx: RequestContext,
    user: User,
    owner_only: bool = False,
) -> Project:
    """
    Load the project named in the path if the user may see it.

    Raises:
        NotFoundError: if it does not exist, or the user is not allowed.
    """
    project_id = project_id_param(ctx)
    project = None
    if project_id is not None:
        project = await project_service.load_project(ctx.session, project_id)

    if project is None or not project_service.can_access(project, user):
        raise NotFoundError("Project", ctx.path_params.get("project_id"))
    if owner_only and project.owner != user.id:
        raise NotFoundError("Project", project.id)
    return project


# =============================================================================
# GET /projects
# =============================================================================

list_chain = GuardChain("list projects")


@list_chain.alternative(rank=1, user=require_user, projects=load_projects)
async def list_projects_handler(ctx: RequestContext, user, projects):
    logger.debug(f"Listed {len(projects)} projects for user {user.id}")
    return projects


@router.get("/", response_model=list[ProjectWithTasks])
async def list_projects(ctx: RequestContext = Depends(get_request_context)):
    """List the user's projects, newest first, each with its three latest tasks."""
    return await list_chain.dispatch(ctx)


# =============================================================================
# POST /projects
# =============================================================================

create_chain = GuardChain("create project")


@create_chain.alternative(rank=1, user=require_user)
async def create_project_handler(ctx: RequestContext, user, project_in: ProjectCreate):
    project_id = await project_service.create_project(ctx.session, project_in.name, user.id)
    project = await project_service.load_project(ctx.session, project_id)
    if project is None:
        raise NotFoundError("Project", project_id)
    return project


@router.post("/", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_in: ProjectCreate,
    ctx: RequestContext = Depends(get_request_context),
):
    """Create a project owned by the signed-in user."""
    return await create_chain.dispatch(ctx, project_in=project_in)


# =============================================================================
# GET /projects/{project_id}
# =============================================================================

detail_chain = GuardChain("project detail")


@detail_chain.alternative(rank=1, user=require_user, tasks=load_project_tasks)
async def project_detail_handler(ctx: RequestContext, user, tasks):
    project = await get_accessible_project(ctx, user)
    return ProjectDetail(
        project=ProjectRead.model_validate(project),
        tasks=[TaskRead.model_validate(task) for task in tasks],
    )


@detail_chain.alternative(rank=2, user=require_user)
async def project_detail_without_tasks(ctx: RequestContext, user):
    # Rank 1 forwarded: either the path id is not a project id, or the
    # tasks could not be loaded.
    if project_id_param(ctx) is None:
        raise NotFoundError("Project", ctx.path_params.get("project_id"))
    raise AggregationError("load project tasks")


@router.get("/{project_id}", response_model=ProjectDetail)
async def get_project(
    project_id: int,
    ctx: RequestContext = Depends(get_request_context),
):
    """Get a project with all of its tasks, newest first."""
    return await detail_chain.dispatch(ctx)


# =============================================================================
# PATCH /projects/{project_id}
# =============================================================================

edit_chain = GuardChain("edit project")


@edit_chain.alternative(rank=1, user=require_user)
async def edit_project_handler(ctx: RequestContext, user, project_in: ProjectUpdate):
    project = await get_accessible_project(ctx, user, owner_only=True)
    edited = await project_service.edit_project(
        ctx.session, project.id, project_in.name, project_in.end_date
    )
    if not edited:
        raise NotFoundError("Project", project.id)
    await ctx.session.refresh(project)
    return project


@router.patch("/{project_id}", response_model=ProjectRead)
async def update_project(
    project_id: int,
    project_in: ProjectUpdate,
    ctx: RequestContext = Depends(get_request_context),
):
    """Rename a project and set its end date. Owner only."""
    return await edit_chain.dispatch(ctx, project_in=project_in)


# =============================================================================
# DELETE /projects/{project_id}
# =============================================================================

delete_chain = GuardChain("delete project")


@delete_chain.alternative(rank=1, user=require_user)
async def delete_project_handler(ctx: RequestContext, user):
    project = await get_accessible_project(ctx, user, owner_only=True)
    deleted = await project_service.delete_project(ctx.session, project.id)
    if not deleted:
        raise NotFoundError("Project", project.id)
    return {"deleted": True}


@router.delete("/{project_id}")
async def delete_project(
    project_id: int,
    ctx: RequestContext = Depends(get_request_context),
):
    """Delete a project and all its tasks. Owner only."""
    return await delete_chain.dispatch(ctx)


# =============================================================================
# POST /projects/{project_id}/participants
# =============================================================================

participant_chain = GuardChain("add participant")


@participant_chain.alternative(rank=1, user=require_user)
async def add_participant_handler(ctx: RequestContext, user, participant: ParticipantAdd):
    project = await get_accessible_project(ctx, user, owner_only=True)
    if await user_service.get_user_by_id(ctx.session, participant.user_id) is None:
        raise NotFoundError("User", participant.user_id)

    await project_service.add_participant(ctx.session, project.id, participant.user_id)
    await ctx.session.refresh(project)
    return project


@router.post("/{project_id}/participants", response_model=ProjectRead)
async def add_participant(
    project_id: int,
    participant: ParticipantAdd,
    ctx: RequestContext = Depends(get_request_context),
):
    """Share a project with another user. Owner only."""
    return await participant_chain.dispatch(ctx, participant=participant)
