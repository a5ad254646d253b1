from conftest import PASSWORD, register, unique


def test_register_returns_token_and_default_role(client):
    email = f"{unique('new')}@example.com"
    response = client.post(
        "/api/auth/register",
        json={"name": "New User", "email": email, "password": PASSWORD, "password_confirmation": PASSWORD},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["user"]["email"] == email
    assert body["data"]["roles"] == ["usuario_final"]
    assert body["data"]["token_type"] == "Bearer"
    assert body["data"]["access_token"]


def test_register_rejects_taken_email(client):
    user, _ = register(client)
    response = client.post(
        "/api/auth/register",
        json={"name": "Copy", "email": user["email"].upper(), "password": PASSWORD},
    )

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert "email" in body["errors"]


def test_register_requires_matching_confirmation(client):
    response = client.post(
        "/api/auth/register",
        json={
            "name": "Mismatch",
            "email": f"{unique('mismatch')}@example.com",
            "password": PASSWORD,
            "password_confirmation": "something-else",
        },
    )

    assert response.status_code == 422
    assert response.json()["success"] is False


def test_login_and_me(client):
    user, _ = register(client, name="Grace Hopper")
    response = client.post("/api/auth/login", json={"email": user["email"], "password": PASSWORD})
    assert response.status_code == 200
    token = response.json()["data"]["access_token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    data = me.json()["data"]
    assert data["user"]["name"] == "Grace Hopper"
    assert "usuario_final" in data["roles"]
    assert "certificates.read" in data["permissions"]


def test_login_with_wrong_password(client):
    user, _ = register(client)
    response = client.post("/api/auth/login", json={"email": user["email"], "password": "wrong-password"})

    assert response.status_code == 401
    assert response.json()["success"] is False


def test_logout_revokes_token(client):
    _, headers = register(client)
    assert client.post("/api/auth/logout", headers=headers).status_code == 200

    response = client.get("/api/auth/me", headers=headers)
    assert response.status_code == 401


def test_logout_all_revokes_every_token(client):
    user, first = register(client)
    login = client.post("/api/auth/login", json={"email": user["email"], "password": PASSWORD})
    second = {"Authorization": f"Bearer {login.json()['data']['access_token']}"}

    response = client.post("/api/auth/logout-all", headers=first)
    assert response.status_code == 200
    assert response.json()["data"]["revoked_tokens"] == 2
    assert client.get("/api/auth/me", headers=second).status_code == 401


def test_invalid_token_is_rejected(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_profile_password_change_needs_current_password(client):
    user, headers = register(client)

    missing = client.put("/api/auth/profile", json={"password": "another-pass-456"}, headers=headers)
    assert missing.status_code == 422
    assert "current_password" in missing.json()["errors"]

    changed = client.put(
        "/api/auth/profile",
        json={"name": "Renamed", "password": "another-pass-456", "current_password": PASSWORD},
        headers=headers,
    )
    assert changed.status_code == 200
    assert changed.json()["data"]["user"]["name"] == "Renamed"

    login = client.post("/api/auth/login", json={"email": user["email"], "password": "another-pass-456"})
    assert login.status_code == 200
