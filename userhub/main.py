from pathlib import Path
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import HTTPException as FastAPIHTTPException
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.middleware.sessions import SessionMiddleware

from . import crud, models
from .config import settings
from .database import Base, SessionLocal, engine
from .routes import pages as pages_routes
from .routes import sessions as sessions_routes
from .routes import users as users_routes
from .templating import templates

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.secret_key,
    session_cookie=settings.session_cookie,
)

static_dir = Path(__file__).resolve().parent / "static"
app.mount("/static", StaticFiles(directory=static_dir), name="static")


def _seed_admin(db: Session) -> None:
    if crud.find_by_email(db, settings.default_admin_email):
        return
    admin = models.User(
        name=settings.default_admin_name,
        email=settings.default_admin_email,
        password=settings.default_admin_password,
        password_confirmation=settings.default_admin_password,
        admin=True,
    )
    errors = crud.save_user(db, admin)
    if errors:
        logger.error(
            "Default admin is invalid: %s", "; ".join(error.msg for error in errors)
        )
    else:
        logger.info("Seeded default admin id=%s", admin.id)


@app.on_event("startup")
def on_startup() -> None:
    Base.metadata.create_all(bind=engine)
    if not settings.seed_admin:
        return
    db = SessionLocal()
    try:
        _seed_admin(db)
    except SQLAlchemyError:
        db.rollback()
        raise
    finally:
        db.close()


def _wants_html(request: Request) -> bool:
    accept = request.headers.get("accept", "")
    return "text/html" in accept or "*/*" in accept


def _error_context(request: Request, detail, status_code: int) -> dict:
    # Set by get_current_user when the failing route resolved a session.
    user_id = getattr(request.state, "current_user_id", None)
    current_user = {"id": user_id} if user_id else None
    return {"detail": detail, "status_code": status_code, "current_user": current_user}


@app.exception_handler(FastAPIHTTPException)
async def http_exception_handler(request: Request, exc: FastAPIHTTPException):
    if _wants_html(request):
        template_name = "errors/404.html" if exc.status_code == 404 else "errors/generic.html"
        return templates.TemplateResponse(
            request,
            template_name,
            _error_context(request, exc.detail, exc.status_code),
            status_code=exc.status_code,
        )
    return JSONResponse({"detail": exc.detail}, status_code=exc.status_code)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled application error", exc_info=exc)
    if _wants_html(request):
        return templates.TemplateResponse(
            request,
            "errors/generic.html",
            _error_context(request, "Internal server error", 500),
            status_code=500,
        )
    return JSONResponse({"detail": "Internal server error"}, status_code=500)


app.include_router(pages_routes.router)
app.include_router(sessions_routes.router)
app.include_router(users_routes.router)
