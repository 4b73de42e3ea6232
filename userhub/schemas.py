import re
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

NAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 6
EMAIL_REGEX = re.compile(r"^[\w+\-.]+@[a-z\d\-.]+\.[a-z]+$", re.IGNORECASE | re.ASCII)


class ValidationResult(BaseModel):
    loc: str
    msg: str


def normalize_email(value: Optional[str]) -> str:
    return (value or "").strip().lower()


class UserForm(BaseModel):
    """Candidate values for a user, checked before anything is persisted.

    New records always need a password. Existing records only validate the
    password when one was supplied, so a profile edit may leave it out.
    Field order matters: later validators read earlier values from
    ``info.data``.
    """

    model_config = ConfigDict(validate_default=True)

    require_password: bool = True
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    password_confirmation: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: Optional[str]) -> str:
        if not value or not value.strip():
            raise PydanticCustomError("blank", "Name can't be blank")
        if len(value) > NAME_MAX_LENGTH:
            raise PydanticCustomError(
                "too_long",
                f"Name is too long (maximum is {NAME_MAX_LENGTH} characters)",
            )
        return value

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: Optional[str]) -> str:
        email = normalize_email(value)
        if not email:
            raise PydanticCustomError("blank", "Email can't be blank")
        if not EMAIL_REGEX.match(email):
            raise PydanticCustomError("invalid", "Email is invalid")
        return email

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: Optional[str], info: ValidationInfo) -> Optional[str]:
        if value is None and not info.data.get("require_password"):
            return value
        if not value or not value.strip():
            raise PydanticCustomError("blank", "Password can't be blank")
        if len(value) < PASSWORD_MIN_LENGTH:
            raise PydanticCustomError(
                "too_short",
                f"Password is too short (minimum is {PASSWORD_MIN_LENGTH} characters)",
            )
        return value

    @field_validator("password_confirmation")
    @classmethod
    def validate_confirmation(cls, value: Optional[str], info: ValidationInfo) -> Optional[str]:
        # Missing when the password itself failed, None when it was not supplied.
        password = info.data.get("password")
        if password is None:
            return value
        if value != password:
            raise PydanticCustomError(
                "confirmation", "Password confirmation doesn't match Password"
            )
        return value


def format_errors(exc: ValidationError) -> List[ValidationResult]:
    return [
        ValidationResult(loc=".".join(str(p) for p in error["loc"]), msg=error["msg"])
        for error in exc.errors()
    ]
