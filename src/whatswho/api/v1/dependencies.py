"""Shared API dependencies for authentication and common functionality."""

from datetime import UTC, datetime, timedelta
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.orm import Session

from whatswho.core.settings import settings
from whatswho.db.session import get_db
from whatswho.models import User
from whatswho.services.presence import PresenceDirectory, get_presence_directory
from whatswho.services.relay import MessageRelay

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_presence_directory_dep() -> PresenceDirectory:
    return get_presence_directory()


PresenceDep = Annotated[PresenceDirectory, Depends(get_presence_directory_dep)]


def get_relay_dep(directory: PresenceDep) -> MessageRelay:
    """Return a relay reading the same directory the request sees."""
    return MessageRelay(directory)


RelayDep = Annotated[MessageRelay, Depends(get_relay_dep)]


def create_access_token(email: str, extra_claims: dict[str, object] | None = None) -> str:
    """Create a JWT access token whose subject is the user's email."""
    to_encode: dict[str, object] = {"sub": email.lower()}
    if extra_claims:
        to_encode.update(extra_claims)
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode["exp"] = expire
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer token credentials
        db: Database session

    Returns:
        User object for the authenticated user

    Raises:
        HTTPException: If token is invalid or user not found
    """
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )

    user = db.scalars(select(User).where(User.email == subject.lower())).first()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]
