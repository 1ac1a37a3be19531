import datetime

from jose import jwt

from meno.api.auth import TokenClaims, TokenService
from meno.db.models import User

from conftest import signup


def test_signup_then_login_returns_matching_claims(client, settings):
    resp = signup(client, role="editor")
    assert resp.status_code == 201
    user_id = resp.json()["id"]

    resp = client.post("/api/login", json={"email": "ada@example.com", "password": "s3cret!"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Login successful"
    assert body["user"] == {
        "id": user_id,
        "fullname": "Ada Lovelace",
        "email": "ada@example.com",
        "role": "editor",
    }

    payload = jwt.decode(body["token"], settings.secret_key, algorithms=[settings.algorithm])
    assert payload["id"] == user_id
    assert payload["email"] == "ada@example.com"
    assert payload["role"] == "editor"
    assert payload["exp"] - payload["iat"] == 3600


def test_password_is_stored_hashed(client, db):
    signup(client)
    user = db.query(User).filter(User.email == "ada@example.com").one()
    assert user.password != "s3cret!"
    assert user.password.startswith("$2")


def test_duplicate_email_conflicts_and_keeps_first_user(client, db):
    first = signup(client, fullname="First")
    second = signup(client, fullname="Second", password="other")
    assert second.status_code == 409
    assert second.json() == {"error": "Email already exists."}

    users = db.query(User).all()
    assert len(users) == 1
    assert users[0].id == first.json()["id"]
    assert users[0].fullname == "First"
    assert client.post("/api/login", json={"email": "ada@example.com", "password": "s3cret!"}).status_code == 200


def test_signup_missing_field_is_rejected(client):
    resp = client.post("/api/signup", json={"fullname": "Ada", "email": "ada@example.com", "password": "x"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "All fields are required."}

    resp = client.post(
        "/api/signup", json={"fullname": "", "email": "ada@example.com", "password": "x", "role": "student"}
    )
    assert resp.status_code == 400


def test_login_with_wrong_password(client):
    signup(client)
    resp = client.post("/api/login", json={"email": "ada@example.com", "password": "nope"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid credentials"}


def test_login_with_unknown_email_or_missing_fields(client):
    resp = client.post("/api/login", json={"email": "ghost@example.com", "password": "x"})
    assert resp.status_code == 401
    resp = client.post("/api/login", json={})
    assert resp.status_code == 401


def test_missing_authorization_header_is_401(client):
    resp = client.get("/api/notes")
    assert resp.status_code == 401
    assert resp.json() == {"error": "Authorization header missing or malformed"}


def test_malformed_authorization_header_is_401(client, register):
    headers = register()
    token = headers["Authorization"].split(" ", 1)[1]
    for value in (token, f"Token {token}", f"bearer {token}"):
        resp = client.get("/api/notes", headers={"Authorization": value})
        assert resp.status_code == 401


def test_bad_token_is_403(client):
    resp = client.get("/api/notes", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 403
    assert resp.json() == {"error": "Invalid or expired token"}


def test_token_signed_with_other_secret_is_403(client):
    forged = TokenService("someone-else").issue(TokenClaims(id=1, email="a@b.c", role="admin"))
    resp = client.get("/api/notes", headers={"Authorization": f"Bearer {forged}"})
    assert resp.status_code == 403


def test_token_lifetime_is_one_hour(client, app):
    tokens = app.state.token_service
    claims = TokenClaims(id=1, email="ada@example.com", role="student")
    now = datetime.datetime.now(datetime.timezone.utc)

    fresh = tokens.issue(claims, now=now - datetime.timedelta(minutes=59))
    assert client.get("/api/notes", headers={"Authorization": f"Bearer {fresh}"}).status_code == 200

    stale = tokens.issue(claims, now=now - datetime.timedelta(minutes=61))
    assert client.get("/api/notes", headers={"Authorization": f"Bearer {stale}"}).status_code == 403


def test_verify_returns_claims_without_user_lookup():
    tokens = TokenService("k")
    claims = TokenClaims(id=42, email="gone@example.com", role="admin")
    assert tokens.verify(tokens.issue(claims)) == claims


def test_token_without_identity_claims_is_rejected(client, settings):
    token = jwt.encode({"sub": "ada"}, settings.secret_key, algorithm=settings.algorithm)
    resp = client.get("/api/notes", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 403
