"""Business logic services used by HTTP controllers.

This module holds small service classes that coordinate repositories and
the password hasher. Services perform validation, execute domain logic
and persist aggregates via repositories. Failures are raised as the
exceptions from `lms.errors`; store and hashing errors are logged here and
surfaced as `ServerError` so details never reach clients.
"""

import logging
import re
from typing import Dict, List, Optional, Tuple, Union
from email_validator import EmailNotValidError, validate_email
from passlib.exc import PasswordSizeError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session
from . import models, repositories
from .errors import ServerError, Unauthorized, ValidationError
from .security import PasswordHasher

logger = logging.getLogger(__name__)

USERNAME_RE = re.compile(r"^[A-Za-z0-9]+$")
INVALID_CREDENTIALS = "Invalid username or password"
REGISTRATION_FAILED = "Registration failed due to server error."


def sanitize_user(user: models.User) -> Dict:
    """Public representation of a user; never includes the password hash."""
    return {
        'id': user.id,
        'email': user.email,
        'username': user.username,
        'full_name': user.full_name,
    }


class RegistrationService:
    """Validate, de-duplicate and persist new users."""
    def __init__(self, session: Session, hasher: PasswordHasher):
        self.session = session
        self.hasher = hasher
        self.user_repo = repositories.UserRepository(session)

    def register(self, email: str, username: str, password: str, full_name: Optional[str] = None) -> models.User:
        """Create a new user with a hashed password.

        Raises `ValidationError` with one item per offending field, or
        `ServerError` when the store or the hasher fails. Returns the
        persisted `User` instance.
        """
        email, errors = self._validate_format(email, username)
        bad_fields = {e['path'] for e in errors}
        errors.extend(self._check_unique(
            None if 'email' in bad_fields else email,
            None if 'username' in bad_fields else username,
        ))
        if errors:
            logger.info("registration rejected: %s", [e['msg'] for e in errors])
            raise ValidationError(errors)

        try:
            hashed = self.hasher.hash(password)
        except PasswordSizeError:
            raise ValidationError([ValidationError.field('password', 'Password is too long')])
        except (ValueError, TypeError):
            logger.exception("password hashing failed")
            raise ServerError(REGISTRATION_FAILED)

        user = models.User(email=email, username=username, password=hashed, full_name=full_name)
        try:
            created = self.user_repo.create(user)
        except IntegrityError:
            # lost a race with a concurrent registration; report it per field
            conflicts = self._check_unique(email, username)
            if conflicts:
                raise ValidationError(conflicts)
            logger.exception("inserting user failed")
            raise ServerError(REGISTRATION_FAILED)
        except SQLAlchemyError:
            logger.exception("inserting user failed")
            raise ServerError(REGISTRATION_FAILED)
        logger.info("registered user id=%s username=%s", created.id, created.username)
        return created

    def _validate_format(self, email: str, username: str) -> Tuple[str, List[Dict[str, str]]]:
        """Check field formats; returns the normalized (lowercased) email and errors."""
        errors = []
        try:
            email = validate_email(email or "", check_deliverability=False).normalized.lower()
        except EmailNotValidError:
            errors.append(ValidationError.field('email', 'Invalid email format'))
        if not username or not USERNAME_RE.match(username):
            errors.append(ValidationError.field('username', 'Username must be alphanumeric'))
        return email, errors

    def _check_unique(self, email: Optional[str], username: Optional[str]) -> List[Dict[str, str]]:
        """Return 'already exists' items for taken values; skips `None`."""
        errors = []
        try:
            if email is not None and self.user_repo.get_by_email(email):
                errors.append(ValidationError.field('email', 'Email already exists'))
            if username is not None and self.user_repo.get_by_username(username):
                errors.append(ValidationError.field('username', 'Username already exists'))
        except SQLAlchemyError:
            logger.exception("uniqueness check failed")
            raise ServerError()
        return errors


class AuthService:
    """Credential checks and login session lifecycle."""
    def __init__(self, session: Session, hasher: PasswordHasher):
        self.session = session
        self.hasher = hasher
        self.user_repo = repositories.UserRepository(session)
        self.sessions = repositories.SessionStore(session)

    def login(self, username: str, password: str) -> models.LoginSession:
        """Verify credentials and open a new session.

        Unknown users and wrong passwords raise the same `Unauthorized`
        error so responses do not reveal which accounts exist.
        """
        try:
            user = self.user_repo.get_by_username(username)
            if not user:
                self.hasher.dummy_verify()
                logger.info("login failed: unknown username")
                raise Unauthorized(INVALID_CREDENTIALS)
            if not self.hasher.verify(password, user.password):
                logger.info("login failed: bad password for user id=%s", user.id)
                raise Unauthorized(INVALID_CREDENTIALS)
            if self.hasher.needs_update(user.password):
                self.user_repo.update_password(user, self.hasher.hash(password))
            record = self.sessions.create(user)
        except PasswordSizeError:
            # oversized input can never match a stored hash
            logger.info("login failed: oversized password")
            raise Unauthorized(INVALID_CREDENTIALS)
        except (SQLAlchemyError, ValueError, TypeError):
            logger.exception("login failed with a server error")
            raise ServerError()
        logger.info("login ok: user id=%s", user.id)
        return record

    def logout(self, session_id: Optional[str]) -> bool:
        """Destroy the session if present. Never fails for absent sessions."""
        if not session_id:
            return False
        try:
            return self.sessions.destroy(session_id)
        except SQLAlchemyError:
            logger.exception("destroying session failed")
            raise ServerError()

    def current_user(self, session_id: Optional[str]) -> models.LoginSession:
        """Return the session snapshot for `session_id` or raise `Unauthorized`."""
        if not session_id:
            raise Unauthorized("Not authenticated")
        try:
            record = self.sessions.get(session_id)
        except SQLAlchemyError:
            logger.exception("session lookup failed")
            raise ServerError()
        if record is None:
            raise Unauthorized("Not authenticated")
        return record


class CourseService:
    """Read-only course lookup."""
    def __init__(self, session: Session):
        self.session = session
        self.course_repo = repositories.CourseRepository(session)

    def lookup(self, course_id: Union[int, str]) -> List[Dict]:
        """Return the matching course rows as plain dicts (possibly empty).

        An id that is not an integer matches nothing.
        """
        try:
            course_id = int(course_id)
        except (TypeError, ValueError):
            return []
        try:
            rows = self.course_repo.find(course_id)
        except SQLAlchemyError:
            logger.exception("course lookup failed for id=%s", course_id)
            raise ServerError()
        return [row.model_dump() for row in rows]
