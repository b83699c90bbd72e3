"""Unit tests for user API endpoints."""

from fastapi.testclient import TestClient


def _register(client: TestClient, email: str, phone: str | None = None, password: str = "pwd12345"):
    body = {"email": email, "password": password, "name": "Test User"}
    if phone:
        body["phone"] = phone
    return client.post("/api/users/register", json=body)


def test_register_user(client: TestClient):
    """Test user registration."""
    response = _register(client, "u1@ex.com", phone="+923001234567")
    assert response.status_code == 201
    data = response.json()
    assert data["user"]["email"] == "u1@ex.com"
    assert data["user"]["name"] == "Test User"
    assert data["user"]["phone"] == "03001234567"
    assert data["user"]["role"] == "user"
    assert data["user"]["points"] == 0
    assert "access_token" in data


def test_register_duplicate_email(client: TestClient):
    """Test registering with duplicate email."""
    _register(client, "u2@ex.com")
    response = _register(client, "U2@ex.com")
    assert response.status_code == 409
    assert "already registered" in response.json()["detail"].lower()


def test_register_duplicate_phone(client: TestClient):
    _register(client, "a@ex.com", phone="03001112222")
    response = _register(client, "b@ex.com", phone="+923001112222")
    assert response.status_code == 409


def test_register_rejects_bad_phone(client: TestClient):
    response = _register(client, "u5@ex.com", phone="12345")
    assert response.status_code == 422


def test_login_user(client: TestClient):
    """Test user login."""
    _register(client, "u3@ex.com")
    response = client.post("/api/users/login", json={"email": "u3@ex.com", "password": "pwd12345"})
    assert response.status_code == 200
    assert "access_token" in response.json()


def test_login_invalid_credentials(client: TestClient):
    """Test login with invalid credentials."""
    _register(client, "u4@ex.com")
    response = client.post("/api/users/login", json={"email": "u4@ex.com", "password": "wrong-pwd"})
    assert response.status_code == 401


def test_me(client: TestClient):
    token = _register(client, "me@ex.com").json()["access_token"]
    response = client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["email"] == "me@ex.com"


def test_me_rejects_bad_token(client: TestClient):
    response = client.get("/api/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_forgot_email_returns_masked_address(client: TestClient):
    _register(client, "alan@example.com", phone="03009998888")
    response = client.post("/api/users/forgot-email", json={"phone": "+923009998888"})
    assert response.status_code == 200
    assert response.json()["masked_email"] == "a***n@example.com"


def test_forgot_email_unknown_phone(client: TestClient):
    response = client.post("/api/users/forgot-email", json={"phone": "03000000000"})
    assert response.status_code == 404


def _bearer(response) -> dict[str, str]:
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def test_update_profile(client: TestClient):
    headers = _bearer(_register(client, "old@ex.com"))
    response = client.patch(
        "/api/users/me",
        json={"name": "New Name", "email": "New@Ex.com", "phone": "+923004445555"},
        headers=headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert (data["name"], data["email"], data["phone"]) == ("New Name", "new@ex.com", "03004445555")


def test_update_profile_email_taken(client: TestClient):
    _register(client, "taken@ex.com")
    headers = _bearer(_register(client, "mine@ex.com"))
    response = client.patch("/api/users/me", json={"email": "taken@ex.com"}, headers=headers)
    assert response.status_code == 409


def test_update_profile_rejects_null_name(client: TestClient):
    headers = _bearer(_register(client, "nul@ex.com"))
    response = client.patch("/api/users/me", json={"name": None}, headers=headers)
    assert response.status_code == 422


def test_change_password(client: TestClient):
    headers = _bearer(_register(client, "pw@ex.com"))
    response = client.put(
        "/api/users/me/password",
        json={"current_password": "pwd12345", "new_password": "fresh-pass-9"},
        headers=headers,
    )
    assert response.status_code == 200
    old = client.post("/api/users/login", json={"email": "pw@ex.com", "password": "pwd12345"})
    new = client.post("/api/users/login", json={"email": "pw@ex.com", "password": "fresh-pass-9"})
    assert (old.status_code, new.status_code) == (401, 200)


def test_change_password_wrong_current(client: TestClient):
    headers = _bearer(_register(client, "pw2@ex.com"))
    response = client.put(
        "/api/users/me/password",
        json={"current_password": "nope", "new_password": "fresh-pass-9"},
        headers=headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Current password is incorrect"


def test_change_password_must_differ(client: TestClient):
    headers = _bearer(_register(client, "pw3@ex.com"))
    response = client.put(
        "/api/users/me/password",
        json={"current_password": "pwd12345", "new_password": "pwd12345"},
        headers=headers,
    )
    assert response.status_code == 400
