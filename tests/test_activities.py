from conftest import create_activity, create_certificate, unique


def test_create_and_get_activity(client, admin_headers):
    activity = create_activity(client, admin_headers, name="Python Basics", duration_hours=12)

    assert activity["name"] == "Python Basics"
    assert activity["type"] == "course"
    assert activity["is_active"] is True
    assert activity["certificates_count"] == 0

    response = client.get(f"/api/activities/{activity['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["activity"]["duration_hours"] == 12


def test_end_date_before_start_date(client, admin_headers):
    response = client.post(
        "/api/activities",
        json={"name": unique("Bad dates"), "start_date": "2026-03-10", "end_date": "2026-03-01"},
        headers=admin_headers,
    )

    assert response.status_code == 422
    assert response.json()["success"] is False


def test_update_activity(client, admin_headers, activity):
    response = client.put(
        f"/api/activities/{activity['id']}",
        json={"name": "Renamed activity", "type": "event", "description": None},
        headers=admin_headers,
    )

    assert response.status_code == 200
    updated = response.json()["data"]["activity"]
    assert updated["name"] == "Renamed activity"
    assert updated["type"] == "event"
    assert updated["description"] is None
    assert updated["duration_hours"] == activity["duration_hours"]


def test_toggle_status(client, admin_headers, activity):
    flipped = client.patch(f"/api/activities/{activity['id']}/toggle-status", headers=admin_headers)
    assert flipped.json()["data"]["activity"]["is_active"] is False

    forced = client.patch(
        f"/api/activities/{activity['id']}/toggle-status",
        json={"is_active": True},
        headers=admin_headers,
    )
    assert forced.json()["data"]["activity"]["is_active"] is True


def test_list_activities_with_search(client, admin_headers):
    marker = unique("Searchable")
    create_activity(client, admin_headers, name=f"{marker} workshop", type="event")

    response = client.get("/api/activities", params={"search": marker.lower()}, headers=admin_headers)
    data = response.json()["data"]
    assert data["pagination"]["total"] == 1
    assert data["activities"][0]["type"] == "event"


def test_delete_activity(client, admin_headers):
    activity = create_activity(client, admin_headers)

    assert client.delete(f"/api/activities/{activity['id']}", headers=admin_headers).status_code == 200
    missing = client.get(f"/api/activities/{activity['id']}", headers=admin_headers)
    assert missing.status_code == 404
    assert missing.json()["message"] == "Activity not found"


def test_activity_with_certificates_cannot_be_deleted(client, admin_headers, recipient, activity, template):
    create_certificate(client, admin_headers, recipient["id"], activity["id"], template["id"])

    response = client.delete(f"/api/activities/{activity['id']}", headers=admin_headers)
    assert response.status_code == 400

    listed = client.get(f"/api/activities/{activity['id']}/certificates", headers=admin_headers)
    assert listed.json()["data"]["pagination"]["total"] == 1
