import pytest
from fastapi.testclient import TestClient

from meno.api.main import create_app
from meno.config import Settings


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'meno.db'}",
        secret_key="test-secret",
        bcrypt_rounds=4,
        log_level="WARNING",
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
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


def signup(client, email="ada@example.com", password="s3cret!", fullname="Ada Lovelace", role="student"):
    return client.post(
        "/api/signup",
        json={"fullname": fullname, "email": email, "password": password, "role": role},
    )


def login_headers(client, email="ada@example.com", password="s3cret!"):
    resp = client.post("/api/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


@pytest.fixture
def register(client):
    """Sign up a user and return auth headers for them."""
    def _register(email="ada@example.com", password="s3cret!", **kwargs):
        resp = signup(client, email=email, password=password, **kwargs)
        assert resp.status_code == 201, resp.text
        return login_headers(client, email=email, password=password)
    return _register
