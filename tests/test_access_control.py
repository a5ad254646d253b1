from conftest import register, unique


def test_protected_route_requires_token(client):
    response = client.get("/api/certificates")

    assert response.status_code in (401, 403)
    assert response.json()["success"] is False


def test_end_user_cannot_issue_certificates(client):
    _, headers = register(client)
    response = client.post("/api/certificates", json={}, headers=headers)

    assert response.status_code == 403
    assert response.json()["success"] is False


def test_super_admin_passes_every_permission(client, admin_headers):
    assert client.get("/api/roles", headers=admin_headers).status_code == 200
    assert client.get("/api/permissions", headers=admin_headers).status_code == 200
    assert client.get("/api/dashboard/stats", headers=admin_headers).status_code == 200


def test_issuer_role_permissions(client):
    _, headers = register(client, role="emisor")

    assert client.get("/api/activities", headers=headers).status_code == 200
    assert client.post("/api/roles", json={"name": unique("role")}, headers=headers).status_code == 403


def test_role_lifecycle(client, admin_headers):
    name = unique("reviewer")
    created = client.post(
        "/api/roles",
        json={"name": name, "description": "Reviews certificates", "permissions": ["certificates.read"]},
        headers=admin_headers,
    )
    assert created.status_code == 201
    role = created.json()["data"]["role"]
    assert role["permissions"] == ["certificates.read"]
    assert role["is_system"] is False

    added = client.post(
        f"/api/roles/{role['id']}/assign-permissions",
        json={"permissions": ["validations.read"], "sync": False},
        headers=admin_headers,
    )
    assert sorted(added.json()["data"]["role"]["permissions"]) == ["certificates.read", "validations.read"]

    synced = client.post(
        f"/api/roles/{role['id']}/assign-permissions",
        json={"permissions": ["activities.read"]},
        headers=admin_headers,
    )
    assert synced.json()["data"]["role"]["permissions"] == ["activities.read"]

    removed = client.request(
        "DELETE",
        f"/api/roles/{role['id']}/remove-permissions",
        json={"permissions": ["activities.read"]},
        headers=admin_headers,
    )
    assert removed.json()["data"]["role"]["permissions"] == []

    cloned = client.post(f"/api/roles/{role['id']}/clone", json={"name": unique("copy")}, headers=admin_headers)
    assert cloned.status_code == 201

    assert client.delete(f"/api/roles/{role['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/roles/{role['id']}", headers=admin_headers).status_code == 404


def test_duplicate_role_name(client, admin_headers):
    name = unique("dup")
    assert client.post("/api/roles", json={"name": name}, headers=admin_headers).status_code == 201

    response = client.post("/api/roles", json={"name": name}, headers=admin_headers)
    assert response.status_code == 422
    assert "name" in response.json()["errors"]


def test_system_role_cannot_be_deleted(client, admin_headers):
    roles = client.get("/api/roles", params={"search": "validador"}, headers=admin_headers).json()["data"]["roles"]
    role = next(r for r in roles if r["name"] == "validador")

    response = client.delete(f"/api/roles/{role['id']}", headers=admin_headers)
    assert response.status_code == 400


def test_unknown_permission_is_rejected(client, admin_headers):
    response = client.post(
        "/api/roles",
        json={"name": unique("bad"), "permissions": ["nothing.here"]},
        headers=admin_headers,
    )
    assert response.status_code == 422
    assert "permissions" in response.json()["errors"]


def test_permission_crud(client, admin_headers):
    created = client.post("/api/permissions", json={"name": "badges.print"}, headers=admin_headers)
    assert created.status_code == 201
    permission = created.json()["data"]["permission"]

    invalid = client.post("/api/permissions", json={"name": "Not A Permission"}, headers=admin_headers)
    assert invalid.status_code == 422

    grouped = client.get("/api/permissions/by-module", headers=admin_headers)
    assert grouped.status_code == 200

    assert client.delete(f"/api/permissions/{permission['id']}", headers=admin_headers).status_code == 200


def test_user_management(client, admin, admin_headers):
    email = f"{unique('managed')}@example.com"
    created = client.post(
        "/api/users",
        json={"name": "Managed", "email": email, "password": "managed-pass-1", "roles": ["validador"]},
        headers=admin_headers,
    )
    assert created.status_code == 201
    user = created.json()["data"]["user"]
    assert user["roles"] == ["validador"]

    assigned = client.post(
        f"/api/users/{user['id']}/assign-roles",
        json={"roles": ["emisor"]},
        headers=admin_headers,
    )
    assert assigned.json()["data"]["user"]["roles"] == ["emisor"]

    login = client.post("/api/auth/login", json={"email": email, "password": "managed-pass-1"})
    assert login.status_code == 200

    assert client.delete(f"/api/users/{user['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/users/{user['id']}", headers=admin_headers).status_code == 404


def test_user_cannot_delete_themselves(client, admin, admin_headers):
    response = client.delete(f"/api/users/{admin[0]['id']}", headers=admin_headers)
    assert response.status_code == 400


def test_user_management_is_reserved_to_super_admins(client):
    _, headers = register(client, role="administrador")

    assert client.get("/api/users", headers=headers).status_code == 403
    assert client.get("/api/activities", headers=headers).status_code == 200


def test_adding_permissions_with_an_unknown_name_changes_nothing(client, admin_headers):
    role = client.post(
        "/api/roles",
        json={"name": unique("auditor"), "permissions": ["certificates.read"]},
        headers=admin_headers,
    ).json()["data"]["role"]

    response = client.post(
        f"/api/roles/{role['id']}/assign-permissions",
        json={"permissions": ["validations.read", "nothing.here"], "sync": False},
        headers=admin_headers,
    )
    assert response.status_code == 422

    current = client.get(f"/api/roles/{role['id']}", headers=admin_headers).json()["data"]["role"]
    assert current["permissions"] == ["certificates.read"]


def test_bulk_create_permissions(client, admin_headers):
    names = ["badges.design", "badges.archive"]
    response = client.post(
        "/api/permissions/bulk",
        json={"permissions": [{"name": name} for name in names]},
        headers=admin_headers,
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["count"] == 2
    assert sorted(p["name"] for p in data["permissions"]) == sorted(names)

    repeated = client.post(
        "/api/permissions/bulk",
        json={"permissions": [{"name": "badges.export"}, {"name": "badges.design"}]},
        headers=admin_headers,
    )
    assert repeated.status_code == 422
    assert "name" in repeated.json()["errors"]

    listed = client.get("/api/permissions", params={"search": "badges.export"}, headers=admin_headers)
    assert listed.json()["data"]["permissions"] == []
