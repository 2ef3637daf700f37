"""Password hashing and verification."""

from passlib.context import CryptContext

from app.exceptions import CredentialError
from app.logging_config import get_logger

logger = get_logger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    try:
        return pwd_context.hash(password)
    except (ValueError, TypeError) as exc:
        logger.error(f"Password hashing failed: {exc}")
        raise CredentialError("hash") from exc


def verify_password(password: str, hashed_password: str) -> bool:
    """
    Check a plaintext password against a stored hash.

    Raises:
        CredentialError: if the stored hash is malformed or of an unknown scheme.
    """
    try:
        return pwd_context.verify(password, hashed_password)
    except (ValueError, TypeError) as exc:
        logger.error(f"Password verification failed: {exc}")
        raise CredentialError("verify") from exc
