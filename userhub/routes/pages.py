from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse

from ..auth import get_current_user

router = APIRouter(tags=["pages"])


@router.get("/")
def home(current_user=Depends(get_current_user)) -> RedirectResponse:
    target = "/users" if current_user else "/signup"
    return RedirectResponse(url=target, status_code=status.HTTP_303_SEE_OTHER)
