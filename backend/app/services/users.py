"""
User storage operations: lookups, registration and password login.
"""

from typing import Optional

from sqlalchemy import insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.exceptions import ConflictError, StorageError
from app.logging_config import get_logger
from app.models import User
from app.security import hash_password, verify_password
from app.timestamps import now_timestamp

logger = get_logger(__name__)


async def get_user_by_id(session: AsyncSession, user_id: int) -> Optional[User]:
    try:
        return await session.get(User, user_id)
    except SQLAlchemyError as exc:
        logger.exception(f"Failed to load user {user_id}")
        raise StorageError("load user") from exc


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    try:
        result = await session.execute(select(User).where(User.email == email))
    except SQLAlchemyError as exc:
        logger.exception("Failed to load user by email")
        raise StorageError("load user") from exc
    return result.scalars().first()


async def register_user(session: AsyncSession, name: str, email: str, password: str) -> int:
    """
    Create a user and return the id storage assigned to it.

    Raises:
        ConflictError: if the email is already registered.
        StorageError: if the insert fails for any other reason.
    """
    password_hash = hash_password(password)
    statement = (
        insert(User)
        .values(
            email=email,
            name=name,
            password_hash=password_hash,
            created=now_timestamp(),
            profile_pic="",
            admin=False,
            premium=False,
        )
        .returning(User.id)
    )
    try:
        result = await session.execute(statement)
        user_id = result.scalar_one()
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        logger.info(f"Registration rejected, email already in use: {email}")
        raise ConflictError("Email already registered") from exc
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception("Failed to add user")
        raise StorageError("add user") from exc

    logger.info(f"Registered user: id={user_id}")
    return user_id


async def authenticate(session: AsyncSession, email: str, password: str) -> Optional[User]:
    """Return the user when email and password match, otherwise None."""
    user = await get_user_by_email(session, email)
    if user is None:
        return None
    if not verify_password(password, user.password_hash):
        logger.debug(f"Wrong password for user {user.id}")
        return None
    return user
