"""Repository classes encapsulating database operations.

Each repository is small and focused on a single aggregate (users,
courses, login sessions). Repositories return SQLModel objects and
perform commits/refreshes where appropriate. Database errors propagate
as `SQLAlchemyError`; services decide how to report them.
"""

import secrets
from typing import List, Optional
from sqlmodel import Session, select
from sqlalchemy import func
from . import models


class UserRepository:
    """CRUD operations for `User` objects."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, user: models.User) -> models.User:
        """Persist a new user and return the managed instance.

        Rolls the session back if the insert fails so the session stays
        usable for follow-up queries.
        """
        self.session.add(user)
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(user)
        return user

    def get_by_email(self, email: str) -> Optional[models.User]:
        """Return a `User` by email (case-insensitive) or `None` if not found."""
        stmt = select(models.User).where(func.lower(models.User.email) == email.lower())
        return self.session.exec(stmt).first()

    def get_by_username(self, username: str) -> Optional[models.User]:
        """Return a `User` by username (case-insensitive) or `None` if not found."""
        stmt = select(models.User).where(func.lower(models.User.username) == username.lower())
        return self.session.exec(stmt).first()

    def get(self, user_id: int) -> Optional[models.User]:
        """Get a `User` by primary key."""
        return self.session.get(models.User, user_id)

    def update_password(self, user: models.User, password_hash: str) -> models.User:
        """Replace the stored hash, e.g. after a work factor change."""
        user.password = password_hash
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user


class CourseRepository:
    """Read access to `Course` rows."""
    def __init__(self, session: Session):
        self.session = session

    def get(self, course_id: int) -> Optional[models.Course]:
        return self.session.get(models.Course, course_id)

    def find(self, course_id: int) -> List[models.Course]:
        """Return the rows matching `course_id` (zero or one)."""
        stmt = select(models.Course).where(models.Course.id == course_id)
        return list(self.session.exec(stmt).all())

    def create(self, course: models.Course) -> models.Course:
        """Insert a course; used by the import script and tests."""
        self.session.add(course)
        self.session.commit()
        self.session.refresh(course)
        return course


class SessionStore:
    """Server-side login sessions keyed by an opaque identifier."""
    def __init__(self, session: Session):
        self.session = session

    @staticmethod
    def new_session_id() -> str:
        """Return a fresh 256-bit hex token."""
        return secrets.token_hex(32)

    def create(self, user: models.User) -> models.LoginSession:
        """Store a snapshot of `user` under a new session id."""
        record = models.LoginSession(
            session_id=self.new_session_id(),
            user_id=user.id,
            username=user.username,
            email=user.email,
            full_name=user.full_name,
        )
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return record

    def get(self, session_id: str) -> Optional[models.LoginSession]:
        return self.session.get(models.LoginSession, session_id)

    def destroy(self, session_id: str) -> bool:
        """Delete a session. Returns False when it did not exist."""
        record = self.get(session_id)
        if record is None:
            return False
        self.session.delete(record)
        self.session.commit()
        return True
