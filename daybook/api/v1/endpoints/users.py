"""Profile endpoints: identity and reminder preferences."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from daybook.api import deps
from daybook.db.models.user import User
from daybook.schemas import UserRead, UserUpdate
from daybook.services.users import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserRead)
def read_current_user(current_user: User = Depends(deps.get_current_user)) -> User:
    """Return the authenticated user's profile, including ``push_opt_in``."""

    return current_user


@router.patch("/me", response_model=UserRead)
def update_current_user(
    payload: UserUpdate,
    current_user: User = Depends(deps.get_current_user),
    db: Session = Depends(deps.get_db),
) -> User:
    """Update name, timezone, reminder time or push opt-in."""

    return UserService(db).update(current_user, payload)
