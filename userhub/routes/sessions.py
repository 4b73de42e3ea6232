from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from ..auth import authenticate, get_current_user, sign_in, sign_out
from ..database import get_db
from ..schemas import ValidationResult
from ..templating import render

router = APIRouter(tags=["sessions"])


@router.get("/signin", response_class=HTMLResponse)
def new(request: Request, current_user=Depends(get_current_user)):
    return render(
        request,
        "sessions/new.html",
        {"errors": [], "form_values": {}, "page_title": "Sign in"},
        current_user=current_user,
    )


@router.post("/signin", response_class=HTMLResponse)
async def create(request: Request, db: Session = Depends(get_db)):
    form = await request.form()
    email = form.get("email") or ""
    password = form.get("password") or ""

    user = authenticate(db, email, password)
    if not user:
        return render(
            request,
            "sessions/new.html",
            {
                "errors": [ValidationResult(loc="base", msg="Invalid email/password combination")],
                "form_values": {"email": email},
                "page_title": "Sign in",
            },
        )

    sign_in(request, user)
    return RedirectResponse(url=f"/users/{user.id}", status_code=status.HTTP_303_SEE_OTHER)


@router.post("/signout")
def destroy(request: Request):
    sign_out(request)
    return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)
