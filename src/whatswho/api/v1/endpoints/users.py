# src/whatswho/api/v1/endpoints/users.py
"""User profile and presence endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Query
from sqlalchemy import select

from whatswho.models import User
from whatswho.schemas.user import OnlineUsersResponse, ProfileUpdate, UserInfo

from ..dependencies import CurrentUserDep, PresenceDep, SessionDep

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/info", response_model=list[UserInfo])
async def get_users_info(
    _: CurrentUserDep,
    db: SessionDep,
    emails: str | None = Query(None, description="Comma separated email addresses"),
) -> list[User]:
    """Return public profile fields for the requested emails."""
    if not emails:
        return []
    wanted = {email.strip().lower() for email in emails.split(",") if email.strip()}
    if not wanted:
        return []
    stmt = select(User).where(User.email.in_(wanted)).order_by(User.email)
    return list(db.scalars(stmt).all())


@router.put("/profile", response_model=UserInfo)
async def update_profile(
    payload: ProfileUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> User:
    """Apply a partial update to the caller's nickname and avatar."""
    update_dict = payload.model_dump(exclude_unset=True, exclude_none=True)
    for key, value in update_dict.items():
        setattr(current_user, key, value)

    db.add(current_user)
    db.commit()
    db.refresh(current_user)
    return current_user


@router.get("/online", response_model=OnlineUsersResponse)
async def get_online_users(_: CurrentUserDep, directory: PresenceDep) -> OnlineUsersResponse:
    """Return the identities that currently have at least one live connection."""
    online = await directory.online_identities()
    return OnlineUsersResponse(online=sorted(online))
