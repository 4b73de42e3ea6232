from datetime import datetime
from typing import List

from pydantic import ValidationError
from sqlalchemy import Boolean, Column, DateTime, Integer, String, func
from sqlalchemy.orm import Session

from .database import Base
from .schemas import UserForm, ValidationResult, format_errors, normalize_email
from .security import verify_password


class TimestampMixin:
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    # Always stored lower-cased, so the unique index is case-insensitive in effect.
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_digest = Column(String, nullable=False)
    remember_token = Column(String, index=True)
    admin = Column(Boolean, default=False, nullable=False)

    # Transient: only the digest is persisted.
    password = None
    password_confirmation = None

    def __init__(self, **kwargs):
        kwargs.setdefault("admin", False)
        super().__init__(**kwargs)

    @property
    def errors(self) -> List[ValidationResult]:
        return getattr(self, "_errors", [])

    @errors.setter
    def errors(self, value: List[ValidationResult]) -> None:
        self._errors = list(value)

    @property
    def is_admin(self) -> bool:
        return bool(self.admin)

    def errors_on(self, field: str) -> List[str]:
        return [error.msg for error in self.errors if error.loc == field]

    def normalize(self) -> None:
        if self.email is not None:
            self.email = normalize_email(self.email)

    def valid(self, db: Session) -> bool:
        """Normalize, then validate field rules and email uniqueness.

        The outcome is kept on ``errors``; nothing is written to the database.
        """
        self.normalize()
        errors: List[ValidationResult] = []
        try:
            UserForm(
                require_password=self.id is None,
                name=self.name,
                email=self.email,
                password=self.password,
                password_confirmation=self.password_confirmation,
            )
        except ValidationError as exc:
            errors = format_errors(exc)

        if not any(error.loc == "email" for error in errors) and self.email_taken(db):
            errors.append(ValidationResult(loc="email", msg="Email has already been taken"))

        self.errors = errors
        return not errors

    def email_taken(self, db: Session) -> bool:
        query = db.query(User.id).filter(func.lower(User.email) == normalize_email(self.email))
        if self.id is not None:
            query = query.filter(User.id != self.id)
        return query.first() is not None

    def authenticate(self, candidate: str):
        """Return this user when ``candidate`` matches the stored digest, else False."""
        if not candidate or not self.password_digest:
            return False
        if verify_password(candidate, self.password_digest):
            return self
        return False

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r}>"
