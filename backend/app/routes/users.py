"""
Index, profile and admin user lookup.

Each path is served by a GuardChain; see app.guards for how ranked
alternatives are chosen.
"""

from fastapi import APIRouter, Depends

from app.exceptions import NotFoundError
from app.guards import GuardChain, load_projects, maybe_user, require_admin, require_user
from app.logging_config import get_logger
from app.schemas import ProfileRead, UserRead
from app.services import users as user_service
from app.session import RequestContext, get_request_context

logger = get_logger(__name__)

router = APIRouter()


# =============================================================================
# GET /
# =============================================================================

index_chain = GuardChain("index")


@index_chain.alternative(rank=1, user=require_user)
async def index_signed_in(ctx: RequestContext, user):
    return {"user": UserRead.model_validate(user)}


@index_chain.alternative(rank=2, user=maybe_user)
async def index_anonymous(ctx: RequestContext, user):
    return {"user": None}


@router.get("/")
async def index(ctx: RequestContext = Depends(get_request_context)):
    """Landing view; shows the user when signed in."""
    return await index_chain.dispatch(ctx)


# =============================================================================
# GET /login
# =============================================================================

LOGIN_ENDPOINT = "/auth/login"

login_chain = GuardChain("login page")


@login_chain.alternative(rank=1, user=require_user)
async def login_page_signed_in(ctx: RequestContext, user):
    return {"user": UserRead.model_validate(user)}


@login_chain.alternative(rank=2, user=maybe_user)
async def login_page(ctx: RequestContext, user):
    return {"user": None, "login": {"method": "POST", "path": LOGIN_ENDPOINT}}


@router.get("/login")
async def login_view(ctx: RequestContext = Depends(get_request_context)):
    """
    Where guard chains send anonymous callers.

    Signed-in users get the index view; everyone else is told where to
    post their credentials.
    """
    return await login_chain.dispatch(ctx)


# =============================================================================
# GET /profile
# =============================================================================

profile_chain = GuardChain("profile", fallback_url="/login")


@profile_chain.alternative(rank=1, user=require_user, projects=load_projects)
async def profile_full(ctx: RequestContext, user, projects):
    return ProfileRead(user=UserRead.model_validate(user), projects=projects)


@profile_chain.alternative(rank=2, user=require_user)
async def profile_degraded(ctx: RequestContext, user):
    logger.info(f"Serving profile of user {user.id} without projects")
    return ProfileRead(user=UserRead.model_validate(user), projects=None)


@router.get("/profile", response_model=ProfileRead)
async def profile(ctx: RequestContext = Depends(get_request_context)):
    """
    The signed-in user with their projects and each project's latest tasks.

    If the projects cannot be loaded the user is still shown, with
    projects=null. Anonymous callers are redirected to /login.
    """
    return await profile_chain.dispatch(ctx)


# =============================================================================
# GET /users/{user_id}
# =============================================================================

user_lookup_chain = GuardChain("user lookup", fallback_url="/")


@user_lookup_chain.alternative(rank=1, admin=require_admin)
async def user_lookup(ctx: RequestContext, admin, user_id: int):
    user = await user_service.get_user_by_id(ctx.session, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    logger.info(f"Admin {admin.id} looked up user {user_id}")
    return user


@router.get("/users/{user_id}", response_model=UserRead)
async def get_user(
    user_id: int,
    ctx: RequestContext = Depends(get_request_context),
):
    """Admin-only user lookup. Everyone else is redirected to /."""
    return await user_lookup_chain.dispatch(ctx, user_id=user_id)
