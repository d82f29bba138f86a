"""FastAPI application entrypoint and HTTP controllers.

This module defines the HTTP endpoints of the learning-management
backend. Controllers are intentionally thin: they accept requests,
delegate to services, and turn the results into responses. Errors raised
by services (see `lms.errors`) are rendered by the exception handlers
registered in `create_app`.

Endpoints implemented:
- POST /register
- POST /login
- POST /logout
- GET /dashboard
- GET /course/{course_id}
- GET /
- GET /health
"""

from fastapi import FastAPI, APIRouter, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from typing import Optional
import json
import logging
import time
import uuid
from pathlib import Path
from . import models, services
from .auth import (
    get_auth_service,
    get_course_service,
    get_current_user,
    get_login_limiter,
    get_registration_service,
    get_session_id,
    get_settings,
)
from .config import Settings
from .database import build_engine, create_db_and_tables
from .errors import RateLimited, ServerError, Unauthorized, ValidationError
from .schemas import DashboardOut, LoginIn, RegisterIn, UserOut
from .security import PasswordHasher
from .utils.rate_limit import InMemoryRateLimiter

logger = logging.getLogger("lms.api")

# Serve static files (the entry page lives here)
static_dir = Path(__file__).resolve().parent.parent / "static"

router = APIRouter()


@router.post('/register', status_code=201, response_model=UserOut)
def register(payload: RegisterIn, svc: services.RegistrationService = Depends(get_registration_service)):
    """Register a new user.

    Returns the created user without its password hash. Field-level
    problems (bad format, email/username already taken) come back as a
    400 with an `errors` array.
    """
    user = svc.register(payload.email, payload.username, payload.password, payload.full_name)
    return services.sanitize_user(user)


@router.post('/login')
def login(
    payload: LoginIn,
    request: Request,
    session_id: Optional[str] = Depends(get_session_id),
    auth: services.AuthService = Depends(get_auth_service),
    limiter: InMemoryRateLimiter = Depends(get_login_limiter),
    settings: Settings = Depends(get_settings),
):
    """Authenticate a user and establish a cookie-backed session.

    A successful login always issues a fresh identifier and destroys the
    session the request came in with. Failed attempts leave it untouched.
    """
    client = request.client.host if request.client else 'unknown'
    limiter.check(f"{client}:{request.url.path}", settings.LOGIN_RATE_LIMIT_PER_MIN, settings.LOGIN_RATE_LIMIT_WINDOW_SECONDS)
    record = auth.login(payload.username, payload.password)
    if session_id and session_id != record.session_id:
        auth.logout(session_id)
    response = PlainTextResponse('Login successful')
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=record.session_id,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite='lax',
        path='/',
    )
    return response


@router.post('/logout')
def logout(
    session_id: Optional[str] = Depends(get_session_id),
    auth: services.AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    """Destroy the current session. Succeeds even without one."""
    auth.logout(session_id)
    response = PlainTextResponse('Logout successful')
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path='/', secure=settings.COOKIE_SECURE, httponly=True, samesite='lax')
    return response


@router.get('/dashboard', response_model=DashboardOut)
def dashboard(user: models.LoginSession = Depends(get_current_user)):
    """Data for the dashboard view of the logged-in user."""
    return {'full_name': user.full_name, 'username': user.username}


@router.get('/course/{course_id}')
def get_course(course_id: str, svc: services.CourseService = Depends(get_course_service)):
    """Return the matching course as a one-element array, or `[]`.

    Ids that cannot name a course (e.g. non-numeric) also yield `[]`.
    """
    return svc.lookup(course_id)


@router.get('/')
def home():
    index = static_dir / "index.html"
    if index.exists():
        return FileResponse(index)
    return {'status': 'Learning Management API Running'}


@router.get('/health')
def health():
    return {'status': 'ok'}


async def _validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=exc.status_code, content={'errors': exc.errors})


async def _request_validation_handler(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        loc = [str(p) for p in err.get('loc', ())]
        location = loc[0] if loc else 'body'
        path = '.'.join(loc[1:]) or location
        errors.append(ValidationError.field(path, err.get('msg', 'Invalid value'), location))
    return JSONResponse(status_code=400, content={'errors': errors})


async def _unauthorized_handler(request: Request, exc: Unauthorized):
    return PlainTextResponse(exc.message, status_code=exc.status_code)


async def _server_error_handler(request: Request, exc: ServerError):
    return JSONResponse(status_code=exc.status_code, content={'error': exc.message})


async def _rate_limited_handler(request: Request, exc: RateLimited):
    return JSONResponse(
        status_code=exc.status_code,
        content={'error': exc.message},
        headers={'Retry-After': str(exc.retry_after)},
    )


async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    response: Response
    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        logger.exception(
            "request_failed %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "duration_ms": elapsed_ms,
                    "client": request.client.host if request.client else "unknown",
                },
                ensure_ascii=True,
            ),
        )
        raise
    response.headers["X-Request-ID"] = req_id
    elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
    logger.info(
        "request_done %s",
        json.dumps(
            {
                "request_id": req_id,
                "path": request.url.path,
                "method": request.method,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
                "client": request.client.host if request.client else "unknown",
            },
            ensure_ascii=True,
        ),
    )
    return response


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application and its collaborators.

    The database engine, password hasher and login limiter are created
    here and stored on `app.state`; request handlers get them through the
    dependencies in `lms.auth`.
    """
    settings = settings or Settings()
    if not logging.getLogger().handlers:
        logging.basicConfig(level=settings.LOG_LEVEL)

    app = FastAPI(title="Learning Management API")
    app.state.settings = settings
    app.state.engine = build_engine(settings)
    app.state.hasher = PasswordHasher(settings.PASSWORD_HASH_ROUNDS)
    app.state.login_limiter = InMemoryRateLimiter()
    create_db_and_tables(app.state.engine)

    # Wide-open CORS keeps local HTML testers working without extra config in dev.
    if settings.ALLOW_DEV_CORS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    app.middleware("http")(request_context_middleware)

    app.add_exception_handler(ValidationError, _validation_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Unauthorized, _unauthorized_handler)
    app.add_exception_handler(ServerError, _server_error_handler)
    app.add_exception_handler(RateLimited, _rate_limited_handler)

    if static_dir.exists():
        app.mount("/static", StaticFiles(directory=static_dir), name="static")
    app.include_router(router)
    logger.info("application ready (env=%s)", settings.ENV)
    return app


app = create_app()


if __name__ == "__main__":
    import os
    import uvicorn
    uvicorn.run("lms.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "3000")))
