from pathlib import Path
import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from lms.config import Settings
from lms.main import create_app


@pytest.fixture(scope="session", autouse=True)
def reset_db():
    """Remove the default SQLite file left behind by importing `lms.main`."""
    yield
    db_path = Path(__file__).resolve().parents[1] / "app.db"
    if db_path.exists():
        try:
            db_path.unlink()
        except OSError:
            pass


@pytest.fixture
def settings(tmp_path):
    return Settings(
        ENV="dev",
        DATABASE_URL=f"sqlite:///{tmp_path / 'test.db'}",
        PASSWORD_HASH_ROUNDS=1000,
        ALLOW_DEV_CORS=False,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db(app):
    """A session on the same database the app under test uses."""
    with Session(app.state.engine) as session:
        yield session


@pytest.fixture
def new_user():
    return {'email': 'a@b.com', 'username': 'abc123', 'password': 'pw', 'full_name': 'A B'}
