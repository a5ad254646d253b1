def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_unknown_route(client):
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Resource not found"}


def test_missing_resource(client, admin_headers):
    response = client.get("/api/activities/00000000-0000-0000-0000-000000000000", headers=admin_headers)

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Activity not found"}


def test_validation_errors_are_keyed_by_field(client):
    response = client.post("/api/auth/register", json={"name": "", "email": "not-an-email", "password": "short"})

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation errors"
    assert set(body["errors"]) == {"name", "email", "password"}
    assert all(isinstance(messages, list) for messages in body["errors"].values())


def test_invalid_path_id(client, admin_headers):
    response = client.get("/api/certificates/not-a-uuid", headers=admin_headers)

    assert response.status_code == 422
    assert "certificate_id" in response.json()["errors"]
