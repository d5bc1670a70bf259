from sqlmodel import Session

from models.models import User, UserStatus


def test_register_assigns_free_plan(client):
    response = client.post(
        "/auth/register",
        json={"name": "Alice", "email": "alice@example.com", "password": "secret123", "contact_phone": "555-0100"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["error"] is None
    assert body["data"]["token"]

    user = body["data"]["user"]
    assert user["email"] == "alice@example.com"
    assert user["status"] == "active"
    assert user["subscription"]["subscription_type"]["name"] == "free"
    assert "password_hash" not in user


def test_register_duplicate_email(client, register_user):
    register_user("dup@example.com")

    response = client.post(
        "/auth/register",
        json={"name": "Again", "email": "dup@example.com", "password": "secret123"},
    )
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CONFLICT"


def test_register_validation_error_envelope(client):
    response = client.post("/auth/register", json={"name": "Short", "email": "short@example.com", "password": "123"})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "VALIDATION_ERROR"


def test_login_and_me(client, register_user):
    register_user("bob@example.com", name="Bob")

    response = client.post("/auth/login", json={"email": "bob@example.com", "password": "secret123"})
    assert response.status_code == 200
    token = response.json()["data"]["token"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["data"]["name"] == "Bob"
    assert me.json()["data"]["subscription"]["status"] == "active"


def test_login_wrong_password(client, register_user):
    register_user("carol@example.com")

    response = client.post("/auth/login", json={"email": "carol@example.com", "password": "nope-nope"})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


def test_login_unknown_email(client):
    response = client.post("/auth/login", json={"email": "ghost@example.com", "password": "secret123"})
    assert response.status_code == 401


def test_login_suspended_user(client, engine, register_user):
    _, user = register_user("suspended@example.com")
    with Session(engine) as session:
        row = session.get(User, user["id"])
        row.status = UserStatus.SUSPENDED.value
        session.add(row)
        session.commit()

    response = client.post("/auth/login", json={"email": "suspended@example.com", "password": "secret123"})
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"


def test_suspended_user_with_wrong_password_gets_generic_error(client, engine, register_user):
    _, user = register_user("hidden@example.com")
    with Session(engine) as session:
        row = session.get(User, user["id"])
        row.status = UserStatus.DELETED.value
        session.add(row)
        session.commit()

    response = client.post("/auth/login", json={"email": "hidden@example.com", "password": "wrong-pass"})
    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Invalid email or password"


def test_me_requires_token(client):
    response = client.get("/auth/me")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


def test_me_rejects_garbage_token(client):
    response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Invalid token"


def test_logout_invalidates_token(client, register_user):
    headers, _ = register_user("leaver@example.com")

    assert client.post("/auth/logout", headers=headers).status_code == 200
    assert client.get("/auth/me", headers=headers).status_code == 401

    # A later login must not bring the revoked token back
    login = client.post("/auth/login", json={"email": "leaver@example.com", "password": "secret123"})
    fresh = {"Authorization": f"Bearer {login.json()['data']['token']}"}
    assert fresh != headers

    assert client.get("/auth/me", headers=headers).status_code == 401
    assert client.get("/auth/me", headers=fresh).status_code == 200


def test_login_replaces_previous_token(client, register_user):
    headers, _ = register_user("twice@example.com")

    login = client.post("/auth/login", json={"email": "twice@example.com", "password": "secret123"})
    assert login.status_code == 200

    assert client.get("/auth/me", headers=headers).status_code == 401


def test_health_and_root(client):
    health = client.get("/health")
    assert health.status_code == 200
    assert health.json()["data"]["status"] == "healthy"

    root = client.get("/")
    assert root.json()["data"]["endpoints"]["riders"] == "/riders"
