"""
Session cookies and per-request identity resolution.

The session cookie carries a user id signed with itsdangerous. Resolving
it to a User costs one database read, and that read happens at most once
per request: the result is cached on the RequestContext that every guard
and handler of the request shares.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from fastapi import Depends, Request, Response
from itsdangerous import BadSignature, URLSafeTimedSerializer
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import get_session
from app.exceptions import StorageError
from app.logging_config import get_logger
from app.models import User
from app.services import users

logger = get_logger(__name__)

_SALT = "taskline.session"
_UNRESOLVED = object()


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(get_settings().secret_key, salt=_SALT)


def sign_session(user_id: int) -> str:
    """Signed cookie value binding the session to user_id."""
    return _serializer().dumps(str(user_id))


def read_session(cookie_value: Optional[str]) -> Optional[int]:
    """
    Recover the user id from a signed cookie value.

    Returns None when the cookie is absent, tampered with, expired, or its
    payload is not a positive integer.
    """
    if not cookie_value:
        return None
    try:
        payload = _serializer().loads(cookie_value, max_age=get_settings().session_max_age)
    except BadSignature:
        # SignatureExpired is a BadSignature too
        logger.debug("Rejected session cookie with bad or expired signature")
        return None
    try:
        user_id = int(payload)
    except (TypeError, ValueError):
        logger.debug(f"Rejected session cookie payload {payload!r}")
        return None
    return user_id if user_id > 0 else None


def set_session_cookie(response: Response, user_id: int) -> None:
    settings = get_settings()
    response.set_cookie(
        settings.session_cookie_name,
        sign_session(user_id),
        max_age=settings.session_max_age,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(get_settings().session_cookie_name)


@dataclass
class RequestContext:
    """Everything a guard chain needs to know about one request."""

    session: AsyncSession
    cookies: Mapping[str, str] = field(default_factory=dict)
    path_params: Mapping[str, Any] = field(default_factory=dict)
    _user: Any = field(default=_UNRESOLVED, repr=False)

    @classmethod
    def from_request(cls, request: Request, session: AsyncSession) -> "RequestContext":
        return cls(
            session=session,
            cookies=dict(request.cookies),
            path_params=dict(request.path_params),
        )

    @property
    def user_resolved(self) -> bool:
        return self._user is not _UNRESOLVED


async def resolve_user(ctx: RequestContext) -> Optional[User]:
    """
    Return the signed-in user for this request, or None.

    The first call reads the cookie and looks the user up; later calls on
    the same context return the cached result, including a cached None.
    """
    if ctx.user_resolved:
        return ctx._user

    user: Optional[User] = None
    user_id = read_session(ctx.cookies.get(get_settings().session_cookie_name))
    if user_id is not None:
        try:
            user = await users.get_user_by_id(ctx.session, user_id)
        except StorageError:
            logger.warning(f"Session lookup for user {user_id} failed; treating request as anonymous")
            user = None
        if user is None:
            logger.debug(f"Session refers to unknown user {user_id}")

    ctx._user = user
    return user


async def get_request_context(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> RequestContext:
    """Dependency building the per-request context for guard chains."""
    return RequestContext.from_request(request, session)
