from __future__ import annotations

import logging
from typing import Any, Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.errors import (
    AccountDeactivatedError,
    ConflictError,
    DuplicateEmailError,
    InvalidCredentialsError,
    NotFoundError,
    StoreError,
)
from ..core.ids import IdFactory, new_id
from ..models.user import ROLE_ADMIN, User

logger = logging.getLogger(__name__)

USER_FIELDS = ("email", "password", "name", "role", "remarks", "is_active")


def list_users(db: Session) -> Sequence[User]:
    return db.execute(select(User).order_by(User.email)).scalars().all()


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.execute(select(User).where(User.email == email)).scalars().first()


def authenticate(db: Session, email: str, password: str) -> User:
    """Plain credential check. Deactivated accounts are refused even when the password matches."""

    user = get_user_by_email(db, email)
    if user is None or user.password != password:
        logger.info("login.failed", extra={"extra_data": {"email": email, "reason": "invalid_credentials"}})
        raise InvalidCredentialsError()
    if not user.is_active:
        logger.info("login.failed", extra={"extra_data": {"email": email, "reason": "deactivated"}})
        raise AccountDeactivatedError()
    logger.info("login.succeeded", extra={"extra_data": {"email": email}})
    return user


def _commit(db: Session, action: str, user_id: str) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        # primary key clashes are caught before commit, so this is the email index
        db.rollback()
        logger.info("user.%s_rejected", action, extra={"extra_data": {"user_id": user_id}})
        raise DuplicateEmailError() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("user.%s_failed", action, extra={"extra_data": {"user_id": user_id}})
        raise StoreError(f"Failed to {action} user") from exc

def create_user(db: Session, payload: dict[str, Any], *, new_id: IdFactory = new_id) -> User:
    user_id = payload.get("id") or new_id()
    if db.get(User, user_id) is not None:
        raise ConflictError(f"User {user_id} already exists")
    user = User(
        id=user_id,
        email=payload["email"],
        password=payload["password"],
        name=payload.get("name"),
        role=payload.get("role") or "staff",
        remarks=payload.get("remarks"),
        is_active=True,
    )
    db.add(user)
    _commit(db, "create", user.id)
    return user


def update_user(db: Session, user_id: str, changes: dict[str, Any]) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    for field in USER_FIELDS:
        if field in changes and changes[field] is not None:
            setattr(user, field, changes[field])
    _commit(db, "update", user_id)
    return user


def delete_user(db: Session, user_id: str) -> None:
    db.execute(delete(User).where(User.id == user_id))
    _commit(db, "delete", user_id)


def ensure_admin(
    db: Session, *, email: str, password: str, name: str, new_id: IdFactory = new_id
) -> User:
    """Seed the first administrator when no account uses ``email`` yet."""

    existing = get_user_by_email(db, email)
    if existing is not None:
        return existing
    user_id = "1" if db.get(User, "1") is None else new_id()
    user = User(id=user_id, email=email, password=password, name=name, role=ROLE_ADMIN, is_active=True)
    db.add(user)
    _commit(db, "seed", user.id)
    logger.info("user.admin_seeded", extra={"extra_data": {"email": email}})
    return user
