"""Request-scoped service wiring and the session security dependency.

Handlers never reach for globals: the engine, settings, password hasher
and login limiter hang off `app.state` (built by `create_app`) and the
helpers below assemble per-request services from them. The dependency
`get_current_user` resolves the session cookie to the stored user
snapshot and raises `Unauthorized` for anonymous requests.
"""

from typing import Optional

from fastapi import Depends, Request
from sqlmodel import Session

from . import models, services
from .config import Settings
from .database import get_session
from .security import PasswordHasher
from .utils.rate_limit import InMemoryRateLimiter


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_hasher(request: Request) -> PasswordHasher:
    return request.app.state.hasher


def get_login_limiter(request: Request) -> InMemoryRateLimiter:
    return request.app.state.login_limiter


def get_session_id(request: Request, settings: Settings = Depends(get_settings)) -> Optional[str]:
    """Return the session id carried by the request cookie, if any."""
    return request.cookies.get(settings.SESSION_COOKIE_NAME) or None


def get_registration_service(
    db: Session = Depends(get_session),
    hasher: PasswordHasher = Depends(get_hasher),
) -> services.RegistrationService:
    return services.RegistrationService(db, hasher)


def get_auth_service(
    db: Session = Depends(get_session),
    hasher: PasswordHasher = Depends(get_hasher),
) -> services.AuthService:
    return services.AuthService(db, hasher)


def get_course_service(db: Session = Depends(get_session)) -> services.CourseService:
    return services.CourseService(db)


def get_current_user(
    session_id: Optional[str] = Depends(get_session_id),
    auth: services.AuthService = Depends(get_auth_service),
) -> models.LoginSession:
    """FastAPI dependency that returns the authenticated session snapshot.

    Raises `Unauthorized` (401) when the cookie is missing or refers to a
    session that no longer exists.
    """
    return auth.current_user(session_id)
