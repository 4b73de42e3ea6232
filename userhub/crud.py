import logging
import math
from dataclasses import dataclass
from typing import List, Mapping, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import models
from .config import settings
from .schemas import ValidationResult, normalize_email
from .security import digest_token, hash_password, new_remember_token

logger = logging.getLogger(__name__)


@dataclass
class Page:
    items: List[models.User]
    page: int
    per_page: int
    total: int

    @property
    def pages(self) -> int:
        return max(1, math.ceil(self.total / self.per_page))

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.pages


def get_user(db: Session, user_id: int) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def find_by_email(db: Session, email: str) -> Optional[models.User]:
    return (
        db.query(models.User)
        .filter(models.User.email == normalize_email(email))
        .first()
    )


def count_users(db: Session) -> int:
    return db.query(func.count(models.User.id)).scalar()


def paginate_users(db: Session, page: int = 1, per_page: Optional[int] = None) -> Page:
    """Return one page of users ordered by id.

    Out-of-range page numbers are clamped to the first or last page.
    """
    per_page = per_page or settings.per_page
    total = count_users(db)
    last_page = max(1, math.ceil(total / per_page))
    page = min(max(page, 1), last_page)
    items = (
        db.query(models.User)
        .order_by(models.User.id)
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return Page(items=items, page=page, per_page=per_page, total=total)


def save_user(db: Session, user: models.User) -> List[ValidationResult]:
    """Validate and persist ``user``.

    Returns the validation errors, empty on success. A unique index
    violation at commit time is reported as an email error.

    Raises:
        SQLAlchemyError: for any other database failure, after rolling back.
    """
    if not user.valid(db):
        return user.errors

    if user.password is not None:
        user.password_digest = hash_password(user.password)
    if user.remember_token is None:
        user.remember_token = digest_token(new_remember_token())

    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Email uniqueness violated on commit for user id=%s", user.id)
        user.errors = [ValidationResult(loc="email", msg="Email has already been taken")]
        return user.errors
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(user)
    user.password = user.password_confirmation = None
    return []


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    return value


def create_user(db: Session, values: Mapping[str, str]) -> Tuple[models.User, List[ValidationResult]]:
    user = models.User(
        name=values.get("name") or "",
        email=values.get("email") or "",
        password=values.get("password") or "",
        password_confirmation=values.get("password_confirmation") or "",
    )
    errors = save_user(db, user)
    if not errors:
        logger.info("Created user id=%s", user.id)
    return user, errors


def update_user(db: Session, user: models.User, values: Mapping[str, str]) -> List[ValidationResult]:
    """Apply profile changes; on failure the stored row is left as it was.

    Leaving both password fields empty keeps the current password.
    """
    user.name = values.get("name") or ""
    user.email = values.get("email") or ""
    password = _blank_to_none(values.get("password"))
    confirmation = _blank_to_none(values.get("password_confirmation"))
    if password is not None or confirmation is not None:
        user.password = password or ""
        user.password_confirmation = confirmation or ""

    errors = save_user(db, user)
    if errors:
        user.password = user.password_confirmation = None
        db.refresh(user)
        return errors

    logger.info("Updated user id=%s", user.id)
    return []


def toggle_admin(db: Session, user: models.User) -> models.User:
    """Flip the admin flag and persist it immediately, skipping validation."""
    user.admin = not user.admin
    db.add(user)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(user)
    logger.info("User id=%s admin=%s", user.id, user.admin)
    return user


def delete_user(db: Session, user: models.User) -> None:
    user_id = user.id
    db.delete(user)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    logger.info("Deleted user id=%s", user_id)
