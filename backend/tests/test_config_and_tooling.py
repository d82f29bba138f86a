import importlib.util
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

import run_migrations
from lms.config import Settings
from lms.errors import RateLimited
from lms.main import create_app
from lms.repositories import CourseRepository
from lms.utils.rate_limit import InMemoryRateLimiter

BACKEND = Path(__file__).resolve().parents[1]


def _load_import_courses():
    spec = importlib.util.spec_from_file_location('import_courses', BACKEND / 'scripts' / 'import_courses.py')
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_insecure_cookies_rejected_outside_dev():
    with pytest.raises(RuntimeError):
        Settings(ENV='prod', COOKIE_SECURE=False, ALLOW_INSECURE_COOKIES=False)
    assert Settings(ENV='prod', COOKIE_SECURE=True).COOKIE_SECURE
    assert Settings(ENV='prod', COOKIE_SECURE=False, ALLOW_INSECURE_COOKIES=True).ENV == 'prod'


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv('SESSION_COOKIE_NAME', 'lms_sid')
    monkeypatch.setenv('PASSWORD_HASH_ROUNDS', '5000')
    s = Settings()
    assert s.SESSION_COOKIE_NAME == 'lms_sid'
    assert s.PASSWORD_HASH_ROUNDS == 5000


def test_unknown_override_is_an_error():
    with pytest.raises(TypeError):
        Settings(NOT_A_SETTING=1)


def test_custom_cookie_name_is_used(tmp_path):
    settings = Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'c.db'}",
        PASSWORD_HASH_ROUNDS=1000,
        SESSION_COOKIE_NAME='lms_sid',
    )
    with TestClient(create_app(settings)) as client:
        client.post('/register', json={'email': 'c@d.com', 'username': 'cd', 'password': 'pw'})
        assert client.post('/login', json={'username': 'cd', 'password': 'pw'}).status_code == 200
        assert client.cookies.get('lms_sid')
        assert client.get('/dashboard').json()['username'] == 'cd'


def test_rate_limiter_window_expires():
    now = [100.0]
    limiter = InMemoryRateLimiter(clock=lambda: now[0])
    assert limiter.allow('k', 2, 10) == (True, 0)
    assert limiter.allow('k', 2, 10) == (True, 0)
    allowed, retry_after = limiter.allow('k', 2, 10)
    assert not allowed and retry_after == 10
    assert limiter.allow('other', 2, 10)[0]
    now[0] += 10
    assert limiter.allow('k', 2, 10)[0]


def test_rate_limiter_check_and_reset():
    limiter = InMemoryRateLimiter()
    limiter.check('k', 1, 60)
    with pytest.raises(RateLimited) as info:
        limiter.check('k', 1, 60)
    assert info.value.retry_after >= 1
    limiter.reset('k')
    limiter.check('k', 1, 60)


def test_request_id_header(client):
    r = client.get('/health')
    assert r.status_code == 200
    assert r.json() == {'status': 'ok'}
    assert 'X-Request-ID' in r.headers
    echoed = client.get('/health', headers={'X-Request-ID': 'abc'})
    assert echoed.headers['X-Request-ID'] == 'abc'


def test_root_serves_entry_page(client):
    r = client.get('/')
    assert r.status_code == 200
    assert 'Learning Management' in r.text


def test_migrations_bootstrap_schema_used_by_app(tmp_path):
    db_file = tmp_path / 'migrated.db'
    applied = run_migrations.run(db_file)
    assert applied == ['001_init.sql', '002_seed_courses.sql']
    # idempotent
    run_migrations.run(db_file)
    settings = Settings(DATABASE_URL=f"sqlite:///{db_file}", PASSWORD_HASH_ROUNDS=1000)
    with TestClient(create_app(settings)) as client:
        assert client.get('/course/1').json()[0]['title'] == 'Introduction to Programming'
        r = client.post('/register', json={'email': 'm@n.com', 'username': 'mn', 'password': 'pw'})
        assert r.status_code == 201
        assert client.post('/login', json={'username': 'mn', 'password': 'pw'}).status_code == 200


def test_sqlite_path_from_url():
    assert run_migrations.sqlite_path_from_url('sqlite:///tmp/x.db') == Path('tmp/x.db')
    with pytest.raises(ValueError):
        run_migrations.sqlite_path_from_url('postgresql://localhost/lms')


def test_import_courses_skips_existing_ids(app):
    import_courses = _load_import_courses()
    items = [
        {'id': 1, 'title': 'Intro'},
        {'id': 1, 'title': 'Intro again'},
        {'title': 'Untitled id'},
        {'description': 'no title'},
    ]
    with Session(app.state.engine) as session:
        result = import_courses.import_courses(session, items)
        assert result['created'] == 2
        assert result['skipped'] == 1
        assert result['errors'] == [{'index': 3, 'error': 'course needs a title'}]
        assert CourseRepository(session).get(1).title == 'Intro'
