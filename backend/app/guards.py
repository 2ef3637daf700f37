"""
Ranked authorization guards.

A GuardChain serves one route. It holds alternatives, each pairing a
handler with the named guards it needs, and a rank. dispatch() tries the
alternatives in ascending rank:

- guards of an alternative run left to right; the first one that forwards
  skips the rest and moves on to the next alternative
- the first alternative whose guards all succeed handles the request,
  receiving each guard's value as a keyword argument
- if every alternative forwards, the chain redirects to its fallback URL

Forwarding is how a route says "not for this caller", not an error. This
lets one path serve an authorized view, a degraded view and a redirect
without branching inside a single handler.

Guards only read from storage. They never write.

Example:
    profile_chain = GuardChain("profile")

    @profile_chain.alternative(rank=1, user=require_user, projects=load_projects)
    async def profile(ctx, user, projects): ...

    @profile_chain.alternative(rank=2, user=require_user)
    async def profile_degraded(ctx, user): ...
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from fastapi import status
from fastapi.responses import RedirectResponse

from app.exceptions import AggregationError
from app.logging_config import get_logger
from app.services import projects as project_service
from app.session import RequestContext, resolve_user

logger = get_logger(__name__)


@dataclass(frozen=True)
class Outcome:
    """Result of one guard: a value to hand to the handler, or a forward."""

    succeeded: bool
    value: Any = None

    @classmethod
    def success(cls, value: Any = None) -> "Outcome":
        return cls(succeeded=True, value=value)


FORWARD = Outcome(succeeded=False)

Guard = Callable[[RequestContext], Awaitable[Outcome]]
Handler = Callable[..., Awaitable[Any]]


# =============================================================================
# Guards, in increasing strictness
# =============================================================================

async def maybe_user(ctx: RequestContext) -> Outcome:
    """Always succeeds, with the signed-in user or None."""
    return Outcome.success(await resolve_user(ctx))


async def require_user(ctx: RequestContext) -> Outcome:
    user = await resolve_user(ctx)
    return Outcome.success(user) if user is not None else FORWARD


async def require_admin(ctx: RequestContext) -> Outcome:
    user = await resolve_user(ctx)
    if user is None or not user.admin:
        return FORWARD
    return Outcome.success(user)


async def load_projects(ctx: RequestContext) -> Outcome:
    """The user's projects with their recent tasks. An empty list is a success."""
    user = await resolve_user(ctx)
    if user is None:
        return FORWARD
    try:
        projects = await project_service.load_projects_with_recent_tasks(ctx.session, user.id)
    except AggregationError:
        logger.warning(f"Projects guard forwarding: aggregation failed for user {user.id}")
        return FORWARD
    return Outcome.success(projects)


def project_id_param(ctx: RequestContext) -> Optional[int]:
    """The positive integer project_id path parameter, or None."""
    raw = ctx.path_params.get("project_id")
    try:
        project_id = int(raw)
    except (TypeError, ValueError):
        return None
    return project_id if project_id > 0 else None


async def load_project_tasks(ctx: RequestContext) -> Outcome:
    """All tasks of the project named by the project_id path parameter."""
    project_id = project_id_param(ctx)
    if project_id is None:
        return FORWARD
    try:
        tasks = await project_service.load_tasks_for_project(ctx.session, project_id)
    except AggregationError:
        logger.warning(f"Project tasks guard forwarding: load failed for project {project_id}")
        return FORWARD
    return Outcome.success(tasks)


# =============================================================================
# Dispatcher
# =============================================================================

@dataclass(frozen=True)
class Alternative:
    rank: int
    handler: Handler
    guards: tuple[tuple[str, Guard], ...]


class GuardChain:
    """Ranked alternatives for one route."""

    def __init__(self, name: str, fallback_url: str = "/login"):
        self.name = name
        self.fallback_url = fallback_url
        self._alternatives: list[Alternative] = []

    @property
    def alternatives(self) -> list[Alternative]:
        return list(self._alternatives)

    def alternative(self, rank: int = 1, **guards: Guard) -> Callable[[Handler], Handler]:
        """
        Register the decorated handler at the given rank.

        Guards run in keyword order; their values are passed to the handler
        under the same names.
        """
        def decorator(handler: Handler) -> Handler:
            if any(existing.rank == rank for existing in self._alternatives):
                raise ValueError(f"{self.name}: rank {rank} is already registered")
            self._alternatives.append(
                Alternative(rank=rank, handler=handler, guards=tuple(guards.items()))
            )
            self._alternatives.sort(key=lambda alt: alt.rank)
            return handler

        return decorator

    async def _evaluate(self, alternative: Alternative, ctx: RequestContext) -> Optional[dict]:
        values: dict[str, Any] = {}
        for name, guard in alternative.guards:
            outcome = await guard(ctx)
            if not outcome.succeeded:
                logger.debug(
                    f"{self.name}: rank {alternative.rank} forwarded at guard '{name}'"
                )
                return None
            values[name] = outcome.value
        return values

    async def dispatch(self, ctx: RequestContext, **extra: Any) -> Any:
        """Run the first alternative whose guards all succeed."""
        for alternative in self._alternatives:
            values = await self._evaluate(alternative, ctx)
            if values is not None:
                return await alternative.handler(ctx, **values, **extra)
        return self.fallback()

    def fallback(self) -> RedirectResponse:
        logger.debug(f"{self.name}: no alternative matched, redirecting to {self.fallback_url}")
        return RedirectResponse(self.fallback_url, status_code=status.HTTP_303_SEE_OTHER)
