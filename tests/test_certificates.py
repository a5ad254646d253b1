import re
import uuid
from datetime import date
from pathlib import Path

from conftest import create_certificate, create_template, png_bytes, register

from certi.config import settings
from certi.services.email_service import EmailService

CODE_PATTERN = re.compile(r"^CERT-[A-Z0-9]{8}$")


def test_create_certificate(client, admin_headers, recipient, activity, template, certificate):
    assert CODE_PATTERN.match(certificate["unique_code"])
    assert certificate["status"] == "issued"
    assert certificate["issue_date"] == date.today().isoformat()
    assert certificate["user"]["name"] == recipient["name"]
    assert certificate["activity"]["id"] == activity["id"]
    assert certificate["template"]["id"] == template["id"]
    assert certificate["documents"] == []
    assert certificate["validations"] == []


def test_codes_are_unique(client, admin_headers, recipient, activity, template):
    codes = {
        create_certificate(client, admin_headers, recipient["id"], activity["id"], template["id"])["unique_code"]
        for _ in range(5)
    }
    assert len(codes) == 5


def test_issue_date_defaults_to_today(client, admin_headers, recipient, activity, template):
    response = client.post(
        "/api/certificates",
        json={
            "user_id": recipient["id"],
            "activity_id": activity["id"],
            "id_template": template["id"],
            "name": "Attendance",
        },
        headers=admin_headers,
    )

    assert response.status_code == 201
    assert response.json()["data"]["certificate"]["issue_date"] == date.today().isoformat()


def test_unknown_references_are_rejected(client, admin_headers, recipient, template):
    response = client.post(
        "/api/certificates",
        json={
            "user_id": recipient["id"],
            "activity_id": str(uuid.uuid4()),
            "template_id": template["id"],
            "name": "Orphan",
        },
        headers=admin_headers,
    )

    assert response.status_code == 422
    assert "activity_id" in response.json()["errors"]


def test_expiry_must_follow_issue_date(client, admin_headers, recipient, activity, template):
    response = client.post(
        "/api/certificates",
        json={
            "user_id": recipient["id"],
            "activity_id": activity["id"],
            "template_id": template["id"],
            "name": "Backwards",
            "issue_date": "2026-05-01",
            "expiry_date": "2026-04-01",
        },
        headers=admin_headers,
    )

    assert response.status_code == 422
    assert "non_field_errors" in response.json()["errors"]


def test_update_certificate(client, admin_headers, certificate):
    response = client.put(
        f"/api/certificates/{certificate['id']}",
        json={"name": "Certificate of Excellence", "expiry_date": "2099-12-31"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    updated = response.json()["data"]["certificate"]
    assert updated["name"] == "Certificate of Excellence"
    assert updated["expiry_date"] == "2099-12-31"
    assert updated["unique_code"] == certificate["unique_code"]


def test_change_status(client, admin_headers, certificate):
    response = client.patch(
        f"/api/certificates/{certificate['id']}/change-status",
        json={"status": "revoked"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["certificate"]["status"] == "revoked"

    invalid = client.patch(
        f"/api/certificates/{certificate['id']}/change-status",
        json={"status": "lost"},
        headers=admin_headers,
    )
    assert invalid.status_code == 422


def test_download_pdf(client, admin_headers, certificate):
    response = client.get(f"/api/certificates/{certificate['id']}/download", headers=admin_headers)

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")
    assert response.headers["content-disposition"] == (
        f'attachment; filename="certificate-{certificate["unique_code"]}.pdf"'
    )


def test_download_jpg(client, admin_headers, certificate):
    response = client.get(
        f"/api/certificates/{certificate['id']}/download",
        params={"format": "jpg"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/jpeg"
    assert response.content[:2] == b"\xff\xd8"


def test_download_unknown_format(client, admin_headers, certificate):
    response = client.get(
        f"/api/certificates/{certificate['id']}/download",
        params={"format": "png"},
        headers=admin_headers,
    )
    assert response.status_code == 422


def test_generate_document(client, admin_headers, certificate):
    response = client.post(
        f"/api/certificates/{certificate['id']}/generate-document",
        json={"format": "jpg"},
        headers=admin_headers,
    )

    assert response.status_code == 201
    document = response.json()["data"]["document"]
    assert document["document_type"] == "image"
    assert document["file_name"] == f"certificate-{certificate['unique_code']}.jpg"

    detail = client.get(f"/api/certificates/{certificate['id']}", headers=admin_headers).json()["data"]
    assert detail["certificate"]["documents_count"] == 1
    assert len(detail["certificate"]["documents"]) == 1


def test_send_email_without_smtp_is_logged_as_failed(client, admin_headers, certificate):
    response = client.post(f"/api/certificates/{certificate['id']}/send-email", headers=admin_headers)

    assert response.status_code == 200
    email = response.json()["data"]["email"]
    assert email["status"] == "failed"
    assert email["error_message"] == "SMTP not configured"


def test_send_email_with_missing_background_is_logged_as_failed(
    client, admin_headers, recipient, activity, monkeypatch
):
    template = create_template(
        client,
        admin_headers,
        files={"template_file": ("background.png", png_bytes(), "image/png")},
    )
    certificate = create_certificate(client, admin_headers, recipient["id"], activity["id"], template["id"])
    (Path(settings.STORAGE_DIR) / template["file_path"]).unlink()
    monkeypatch.setattr(settings, "APP_ENV", "production")

    response = client.post(f"/api/certificates/{certificate['id']}/send-email", headers=admin_headers)

    assert response.status_code == 200
    email = response.json()["data"]["email"]
    assert email["status"] == "failed"
    assert "Stored file not found" in email["error_message"]


def test_email_html_escapes_user_text():
    body = EmailService.html_body(
        "<b>Well done</b>",
        {"name": "R&D <Workshop>", "unique_code": "CERT-AB12CD34"},
        "https://certs.example.com/api/public/certificate/CERT-AB12CD34",
    )

    assert "&lt;b&gt;Well done&lt;/b&gt;" in body
    assert "R&amp;D &lt;Workshop&gt;" in body
    assert "<b>" not in body


def test_search_and_filters(client, admin_headers, recipient, certificate):
    by_code = client.get(
        "/api/certificates/search",
        params={"q": certificate["unique_code"].lower()},
        headers=admin_headers,
    ).json()["data"]
    assert [c["id"] for c in by_code["certificates"]] == [certificate["id"]]

    by_user = client.get("/api/certificates", params={"user_id": recipient["id"]}, headers=admin_headers)
    assert by_user.json()["data"]["pagination"]["total"] == 1


def test_my_certificates(client, admin_headers, activity, template):
    user, headers = register(client, name="Owner")
    create_certificate(client, admin_headers, user["id"], activity["id"], template["id"])

    response = client.get("/api/certificates/my-certificates", headers=headers)
    assert response.status_code == 200
    certificates = response.json()["data"]["certificates"]
    assert len(certificates) == 1
    assert certificates[0]["user"]["id"] == user["id"]


def test_statistics(client, admin_headers, certificate):
    overview = client.get("/api/certificates/statistics/overview", headers=admin_headers).json()["data"]
    assert overview["total"] >= 1
    assert overview["by_status"]["issued"] >= 1

    by_activity = client.get("/api/certificates/statistics/by-activity", headers=admin_headers).json()["data"]
    totals = {row["activity_id"]: row["total"] for row in by_activity["activities"]}
    assert totals[certificate["activity_id"]] == 1


def test_delete_certificate(client, admin_headers, certificate):
    client.post("/api/public/validate-certificate", json={"certificate_code": certificate["unique_code"]})

    assert client.delete(f"/api/certificates/{certificate['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/certificates/{certificate['id']}", headers=admin_headers).status_code == 404


def test_user_with_certificates_cannot_be_deleted(client, admin_headers, recipient, certificate):
    response = client.delete(f"/api/users/{recipient['id']}", headers=admin_headers)
    assert response.status_code == 400
