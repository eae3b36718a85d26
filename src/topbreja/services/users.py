"""Profile helpers for the signed-in user."""
from __future__ import annotations

from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from topbreja.core.errors import ConflictOrTransient, NotFound
from topbreja.models.user import Usuario
from topbreja.schemas.user import ProfileUpdate

__all__ = [
    "get_profile",
    "update_profile",
]


def get_profile(db: Session, user_id: UUID) -> Usuario:
    """Return the user's profile row."""
    user = db.query(Usuario).filter(Usuario.uuid == user_id).first()
    if user is None:
        raise NotFound("User not found")
    return user


def update_profile(db: Session, user_id: UUID, update_data: ProfileUpdate) -> Usuario:
    """Apply partial updates to the user's own profile.

    The role is never writable here; only the display name and picture are.
    """
    user = get_profile(db, user_id)
    update_dict = update_data.model_dump(exclude_unset=True)
    if update_dict.get("nome") is None:
        update_dict.pop("nome", None)
    for key, value in update_dict.items():
        setattr(user, key, value)

    try:
        db.add(user)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise ConflictOrTransient() from exc
    db.refresh(user)
    return user
