"""
Registration, login and logout.

These routes are open to everyone; they create or drop the session cookie
the guard chains read.
"""

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.exceptions import InvalidCredentialsError, NotFoundError, ValidationError
from app.logging_config import get_logger
from app.schemas import LoginRequest, UserCreate, UserRead
from app.services import users as user_service
from app.session import clear_session_cookie, set_session_cookie

logger = get_logger(__name__)

router = APIRouter()


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register(
    user_in: UserCreate,
    session: AsyncSession = Depends(get_session),
):
    """Create an account. The two password fields must match."""
    if user_in.password != user_in.password_check:
        raise ValidationError(
            "Passwords do not match",
            details=[{
                "loc": ["body", "password_check"],
                "msg": "Passwords do not match",
                "type": "value_error",
            }],
        )

    user_id = await user_service.register_user(
        session, user_in.name, user_in.email, user_in.password
    )
    user = await user_service.get_user_by_id(session, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


@router.post("/login", response_model=UserRead)
async def login(
    credentials: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Check email and password, then start a session."""
    user = await user_service.authenticate(session, credentials.email, credentials.password)
    if user is None:
        raise InvalidCredentialsError()

    set_session_cookie(response, user.id)
    logger.info(f"User {user.id} logged in")
    return user


@router.post("/logout")
async def logout():
    """End the session and go back to the index."""
    response = RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)
    clear_session_cookie(response)
    return response
