from pathlib import Path

from fastapi import Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from .auth import get_flashed_messages
from .config import settings
from .security import gravatar_url


def full_title(page_title: str = "") -> str:
    if not page_title:
        return settings.app_name
    return f"{settings.app_name} | {page_title}"


templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))
templates.env.globals["app_name"] = settings.app_name
templates.env.globals["full_title"] = full_title
templates.env.globals["gravatar_url"] = gravatar_url
templates.env.globals["get_flashed_messages"] = get_flashed_messages


def render(
    request: Request,
    template: str,
    context: dict,
    current_user=None,
    status_code: int = 200,
) -> HTMLResponse:
    base_context = {"current_user": current_user}
    base_context.update(context)
    return templates.TemplateResponse(request, template, base_context, status_code=status_code)
