import re
from datetime import date, timedelta

from conftest import create_certificate, register

VALIDATION_CODE = re.compile(r"^VAL-[A-Z0-9]{10}$")


def validation_count(client, headers, certificate_id):
    response = client.get(f"/api/validations/certificate/{certificate_id}", headers=headers)
    assert response.status_code == 200
    return response.json()["data"]["pagination"]["total"]


def test_public_validation_records_one_row(client, admin_headers, recipient, certificate):
    response = client.post(
        "/api/public/validate-certificate",
        json={"certificate_code": certificate["unique_code"]},
        headers={"User-Agent": "pytest-browser"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Certificate is valid"

    data = body["data"]
    assert data["certificate"]["unique_code"] == certificate["unique_code"]
    assert data["certificate"]["recipient_name"] == recipient["name"]
    assert data["certificate"]["activity"]["id"] == certificate["activity_id"]
    assert VALIDATION_CODE.match(data["validation"]["validation_code"])
    assert data["validation"]["validator_ip"] == "testclient"
    assert data["validation"]["validator_user_agent"] == "pytest-browser"
    assert data["validation"]["user_id"] is None

    assert validation_count(client, admin_headers, certificate["id"]) == 1


def test_code_alias_is_accepted(client, certificate):
    response = client.post("/api/public/validate-certificate", json={"code": certificate["unique_code"]})
    assert response.status_code == 200


def test_each_validation_gets_its_own_code(client, admin_headers, certificate):
    first = client.post("/api/public/validate-certificate", json={"certificate_code": certificate["unique_code"]})
    second = client.post("/api/public/validate-certificate", json={"certificate_code": certificate["unique_code"]})

    codes = {
        first.json()["data"]["validation"]["validation_code"],
        second.json()["data"]["validation"]["validation_code"],
    }
    assert len(codes) == 2
    assert validation_count(client, admin_headers, certificate["id"]) == 2


def test_unknown_code(client):
    response = client.post("/api/public/validate-certificate", json={"certificate_code": "CERT-NOPE0000"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Certificate not found"}


def test_revoked_certificate_is_not_valid(client, admin_headers, certificate):
    client.patch(
        f"/api/certificates/{certificate['id']}/change-status",
        json={"status": "revoked"},
        headers=admin_headers,
    )

    response = client.post("/api/public/validate-certificate", json={"certificate_code": certificate["unique_code"]})
    assert response.status_code == 400
    assert response.json()["message"] == "Certificate is not active or has been revoked"
    assert validation_count(client, admin_headers, certificate["id"]) == 0


def test_only_issued_status_validates(client, admin_headers, certificate):
    client.patch(
        f"/api/certificates/{certificate['id']}/change-status",
        json={"status": "active"},
        headers=admin_headers,
    )

    response = client.post("/api/public/validate-certificate", json={"certificate_code": certificate["unique_code"]})
    assert response.status_code == 400


def test_expired_certificate_is_not_valid(client, admin_headers, recipient, activity, template):
    certificate = create_certificate(
        client,
        admin_headers,
        recipient["id"],
        activity["id"],
        template["id"],
        issue_date="2020-01-01",
        expiry_date="2020-06-01",
    )

    response = client.post("/api/public/validate-certificate", json={"certificate_code": certificate["unique_code"]})
    assert response.status_code == 400
    assert response.json()["message"] == "Certificate has expired"
    assert validation_count(client, admin_headers, certificate["id"]) == 0


def test_certificate_expiring_today_is_still_valid(client, admin_headers, recipient, activity, template):
    today = date.today()
    certificate = create_certificate(
        client,
        admin_headers,
        recipient["id"],
        activity["id"],
        template["id"],
        issue_date=(today - timedelta(days=30)).isoformat(),
        expiry_date=today.isoformat(),
    )

    response = client.post("/api/public/validate-certificate", json={"certificate_code": certificate["unique_code"]})
    assert response.status_code == 200
    assert response.json()["message"] == "Certificate is valid"
    assert validation_count(client, admin_headers, certificate["id"]) == 1


def test_public_lookups_do_not_record_validations(client, admin_headers, recipient, certificate):
    response = client.get(f"/api/public/certificate/{certificate['unique_code']}")
    assert response.status_code == 200
    public = response.json()["data"]["certificate"]
    assert public["recipient_name"] == recipient["name"]
    assert "id" not in public

    client.get(f"/api/certificates/{certificate['id']}", headers=admin_headers)
    assert validation_count(client, admin_headers, certificate["id"]) == 0


def test_public_certificate_not_found(client):
    response = client.get("/api/public/certificate/CERT-MISSING0")
    assert response.status_code == 404
    assert response.json()["success"] is False


def test_validation_lookup_by_code(client, certificate):
    validated = client.post("/api/public/validate-certificate", json={"certificate_code": certificate["unique_code"]})
    code = validated.json()["data"]["validation"]["validation_code"]

    response = client.get(f"/api/public/validation/{code}")
    assert response.status_code == 200
    validation = response.json()["data"]["validation"]
    assert validation["certificate"]["unique_code"] == certificate["unique_code"]


def test_validator_records_notes(client, certificate):
    validator, headers = register(client, role="validador")
    response = client.post(
        "/api/validations",
        json={"certificate_code": certificate["unique_code"], "notes": "Checked at the front desk"},
        headers=headers,
    )

    assert response.status_code == 201
    validation = response.json()["data"]["validation"]
    assert validation["user_id"] == validator["id"]
    assert validation["notes"] == "Checked at the front desk"


def test_end_user_cannot_create_validations(client, certificate):
    _, headers = register(client)
    response = client.post("/api/validations", json={"certificate_code": certificate["unique_code"]}, headers=headers)
    assert response.status_code == 403


def test_list_and_statistics(client, admin_headers, certificate):
    client.post("/api/public/validate-certificate", json={"certificate_code": certificate["unique_code"]})

    listed = client.get(
        "/api/validations",
        params={"certificate_code": certificate["unique_code"]},
        headers=admin_headers,
    ).json()["data"]
    assert listed["pagination"]["total"] == 1
    assert listed["validations"][0]["certificate"]["unique_code"] == certificate["unique_code"]

    stats = client.get("/api/validations/statistics/overview", headers=admin_headers).json()["data"]
    assert stats["total"] >= 1
    assert stats["today"] >= 1
    assert stats["daily_validations"]
