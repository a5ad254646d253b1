import json

from conftest import create_certificate, create_template, png_bytes, unique


def test_create_template_with_fields(client, admin_headers):
    fields = [
        {"field_type": "recipient", "x": 600, "y": 380, "font_size": 56, "font_color": "#1a1a1a"},
        {"field_type": "code", "x": 40, "y": 800, "font_size": 18, "align": "left"},
    ]
    template = create_template(client, admin_headers, text_fields=json.dumps(fields))

    assert template["status"] == "active"
    assert template["is_active"] is True
    assert template["file_path"] is None
    assert [f["field_type"] for f in template["text_fields"]] == ["recipient", "code"]


def test_create_template_with_background(client, admin_headers):
    template = create_template(
        client,
        admin_headers,
        files={"template_file": ("background.png", png_bytes(), "image/png")},
    )

    assert template["file_path"].startswith("templates/")
    assert template["file_url"].endswith(template["file_path"])

    preview = client.get(f"/api/certificate-templates/{template['id']}/preview", headers=admin_headers)
    assert preview.status_code == 200
    assert preview.content[:2] == b"\xff\xd8"


def test_rejects_unsupported_file_type(client, admin_headers):
    response = client.post(
        "/api/certificate-templates",
        data={"name": unique("Template"), "activity_type": "course"},
        files={"template_file": ("background.gif", b"GIF89a", "image/gif")},
        headers=admin_headers,
    )

    assert response.status_code == 422
    assert "template_file" in response.json()["errors"]


def test_rejects_invalid_text_fields(client, admin_headers):
    response = client.post(
        "/api/certificate-templates",
        data={"name": unique("Template"), "activity_type": "course", "text_fields": "{not json"},
        headers=admin_headers,
    )

    assert response.status_code == 422
    assert "text_fields" in response.json()["errors"]


def test_rejects_unknown_activity_type(client, admin_headers):
    response = client.post(
        "/api/certificate-templates",
        data={"name": unique("Template"), "activity_type": "webinar"},
        headers=admin_headers,
    )

    assert response.status_code == 422
    assert "activity_type" in response.json()["errors"]


def test_duplicate_template_name(client, admin_headers, template):
    response = client.post(
        "/api/certificate-templates",
        data={"name": template["name"], "activity_type": "course"},
        headers=admin_headers,
    )

    assert response.status_code == 409
    assert response.json()["success"] is False


def test_update_template(client, admin_headers, template):
    response = client.put(
        f"/api/certificate-templates/{template['id']}",
        data={"description": "Updated", "activity_type": "event"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    updated = response.json()["data"]["template"]
    assert updated["description"] == "Updated"
    assert updated["activity_type"] == "event"
    assert updated["name"] == template["name"]


def test_toggle_template_status(client, admin_headers, template):
    response = client.patch(f"/api/certificate-templates/{template['id']}/toggle-status", headers=admin_headers)

    assert response.json()["data"]["template"]["status"] == "inactive"

    active = client.get("/api/certificate-templates/list", headers=admin_headers).json()["data"]["templates"]
    assert template["id"] not in [t["id"] for t in active]


def test_clone_template_names(client, admin_headers, template):
    first = client.post(f"/api/certificate-templates/{template['id']}/clone", headers=admin_headers)
    second = client.post(f"/api/certificate-templates/{template['id']}/clone", headers=admin_headers)

    assert first.status_code == 201
    assert first.json()["data"]["template"]["name"] == f"{template['name']} (Copy)"
    assert second.json()["data"]["template"]["name"] == f"{template['name']} (Copy 2)"


def test_template_in_use_cannot_be_deleted(client, admin_headers, recipient, activity, template):
    create_certificate(client, admin_headers, recipient["id"], activity["id"], template["id"])

    response = client.delete(f"/api/certificate-templates/{template['id']}", headers=admin_headers)
    assert response.status_code == 400


def test_delete_template(client, admin_headers):
    template = create_template(client, admin_headers)

    assert client.delete(f"/api/certificate-templates/{template['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/certificate-templates/{template['id']}", headers=admin_headers).status_code == 404
