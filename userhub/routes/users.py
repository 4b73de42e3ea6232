from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from .. import crud, models
from ..auth import flash, get_current_user, require_admin, require_user, sign_in
from ..config import settings
from ..database import get_db
from ..templating import render

router = APIRouter(tags=["users"])

PASSWORD_FIELDS = ("password", "password_confirmation")


def _extract_form_values(form_data) -> dict:
    if hasattr(form_data, "multi_items"):
        return {key: value for key, value in form_data.multi_items()}
    return dict(form_data)


def _redisplay_values(values: dict) -> dict:
    """Form values safe to echo back into a re-rendered form."""
    return {key: value for key, value in values.items() if key not in PASSWORD_FIELDS}


def _load_user(db: Session, user_id: int) -> models.User:
    user = crud.get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    return user


def _parse_page(raw: Optional[str]) -> int:
    """Page number from the query string; anything unparseable means page 1."""
    try:
        return int(raw)
    except (TypeError, ValueError):
        return 1


def _require_same_user(user: models.User, current_user: models.User) -> None:
    if user.id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only edit your own profile.",
        )


@router.get("/users", response_class=HTMLResponse)
def index(
    request: Request,
    page: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_user),
):
    users_page = crud.paginate_users(db, page=_parse_page(page), per_page=settings.per_page)
    return render(
        request,
        "users/index.html",
        {"users_page": users_page, "page_title": "All users"},
        current_user=current_user,
    )


@router.get("/signup", response_class=HTMLResponse)
def new(request: Request, current_user=Depends(get_current_user)):
    return render(
        request,
        "users/new.html",
        {
            "errors": [],
            "form_values": {},
            "confirmation_label": "Confirmation",
            "page_title": "Sign up",
        },
        current_user=current_user,
    )


@router.post("/users", response_class=HTMLResponse)
async def create(request: Request, db: Session = Depends(get_db), current_user=Depends(get_current_user)):
    form = await request.form()
    values = _extract_form_values(form)
    user, errors = crud.create_user(db, values)
    if errors:
        return render(
            request,
            "users/new.html",
            {
                "errors": errors,
                "form_values": _redisplay_values(values),
                "page_title": "Sign up",
                "confirmation_label": "Confirmation",
            },
            current_user=current_user,
        )

    sign_in(request, user)
    flash(request, f"Welcome to {settings.app_name}!")
    return RedirectResponse(url=f"/users/{user.id}", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/users/{user_id}", response_class=HTMLResponse)
def show(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    user = _load_user(db, user_id)
    return render(
        request,
        "users/show.html",
        {"user": user, "page_title": user.name},
        current_user=current_user,
    )


@router.get("/users/{user_id}/edit", response_class=HTMLResponse)
def edit(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_user),
):
    user = _load_user(db, user_id)
    _require_same_user(user, current_user)
    return render(
        request,
        "users/edit.html",
        {
            "user": user,
            "errors": [],
            "form_values": {"name": user.name, "email": user.email},
            "confirmation_label": "Confirm Password",
            "page_title": "Edit user",
        },
        current_user=current_user,
    )


@router.api_route("/users/{user_id}", methods=["POST", "PATCH"], response_class=HTMLResponse)
async def update(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_user),
):
    user = _load_user(db, user_id)
    _require_same_user(user, current_user)
    form = await request.form()
    values = _extract_form_values(form)

    errors = crud.update_user(db, user, values)
    if errors:
        return render(
            request,
            "users/edit.html",
            {
                "user": user,
                "errors": errors,
                "form_values": _redisplay_values(values),
                "page_title": "Edit user",
                "confirmation_label": "Confirm Password",
            },
            current_user=current_user,
        )

    flash(request, "Profile updated")
    sign_in(request, user)
    return RedirectResponse(url=f"/users/{user.id}", status_code=status.HTTP_303_SEE_OTHER)


@router.delete("/users/{user_id}")
@router.post("/users/{user_id}/delete")
def destroy(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(require_admin),
):
    user = _load_user(db, user_id)
    if user.id == current_admin.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admins cannot delete themselves.",
        )
    crud.delete_user(db, user)
    flash(request, "User deleted.")
    return RedirectResponse(url="/users", status_code=status.HTTP_303_SEE_OTHER)
