import logging
from typing import List, Optional, Tuple

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from . import crud
from .database import get_db
from .models import User

logger = logging.getLogger(__name__)

FLASH_KEY = "_flashes"


def sign_in(request: Request, user: User) -> None:
    request.session["user_id"] = user.id


def sign_out(request: Request) -> None:
    request.session.clear()


def authenticate(db: Session, email: str, password: str) -> Optional[User]:
    user = crud.find_by_email(db, email)
    if user and user.authenticate(password):
        return user
    logger.warning("Failed sign-in attempt")
    return None


def flash(request: Request, message: str, category: str = "success") -> None:
    messages = request.session.get(FLASH_KEY, [])
    messages.append([category, message])
    request.session[FLASH_KEY] = messages


def get_flashed_messages(request: Request) -> List[Tuple[str, str]]:
    return [tuple(item) for item in request.session.pop(FLASH_KEY, [])]


def get_current_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    user_id = request.session.get("user_id")
    user = crud.get_user(db, user_id) if user_id else None
    # Error pages render after the session closes, so they only get the id.
    request.state.current_user_id = user.id if user else None
    return user


def require_user(current_user: Optional[User] = Depends(get_current_user)) -> User:
    if not current_user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Please sign in.",
        )
    return current_user


def require_admin(current_user: User = Depends(require_user)) -> User:
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin permissions are required.",
        )
    return current_user
