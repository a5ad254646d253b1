"""
Shared fixtures: a throwaway SQLite database, a running app and
authenticated users with seeded roles.
"""

import os
import shutil
import tempfile
import uuid
from datetime import date
from io import BytesIO

import pytest
from PIL import Image

_TMP_DIR = tempfile.mkdtemp(prefix="certi-tests-")

os.environ["APP_ENV"] = "testing"
os.environ["DEBUG"] = "false"
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["STORAGE_DIR"] = os.path.join(_TMP_DIR, "storage")
os.environ["SMTP_USER"] = ""
os.environ["SMTP_PASSWORD"] = ""
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_KEY"] = ""
os.environ["JWT_SECRET_KEY"] = "test-secret"

from fastapi.testclient import TestClient  # noqa: E402

import certi.models  # noqa: E402,F401
from certi.database import Base, engine  # noqa: E402
from certi.main import app  # noqa: E402
from certi.services.role_service import RoleService  # noqa: E402
from certi.services.seed_service import seed_roles_and_permissions  # noqa: E402

PASSWORD = "secret-pass-123"


def unique(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


@pytest.fixture(scope="session")
def client():
    Base.metadata.create_all(engine)
    with TestClient(app) as test_client:
        test_client.portal.call(seed_roles_and_permissions)
        yield test_client
    engine.dispose()
    shutil.rmtree(_TMP_DIR, ignore_errors=True)


def register(client, role=None, name="Test User"):
    """Register a fresh account, optionally granting it a role. Returns (user, headers)"""
    email = f"{unique('user')}@example.com"
    response = client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": PASSWORD, "password_confirmation": PASSWORD},
    )
    assert response.status_code == 201, response.text
    data = response.json()["data"]
    if role:
        client.portal.call(RoleService.assign_roles, data["user"]["id"], [role])
    headers = {"Authorization": f"Bearer {data['access_token']}"}
    return {**data["user"], "password": PASSWORD}, headers


@pytest.fixture(scope="session")
def admin(client):
    return register(client, role="super_admin", name="Admin")


@pytest.fixture(scope="session")
def admin_headers(admin):
    return admin[1]


@pytest.fixture
def recipient(client):
    user, _ = register(client, name="Ada Lovelace")
    return user


def png_bytes(size=(400, 300), color=(240, 235, 220)):
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def create_activity(client, headers, **overrides):
    payload = {
        "name": unique("Activity"),
        "description": "Introductory course",
        "type": "course",
        "duration_hours": 20,
        "start_date": "2026-01-10",
        "end_date": "2026-02-10",
    }
    payload.update(overrides)
    response = client.post("/api/activities", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]["activity"]


def create_template(client, headers, files=None, **overrides):
    form = {"name": unique("Template"), "activity_type": "course", "status": "active"}
    form.update(overrides)
    response = client.post("/api/certificate-templates", data=form, files=files, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]["template"]


def create_certificate(client, headers, user_id, activity_id, template_id, **overrides):
    payload = {
        "user_id": user_id,
        "activity_id": activity_id,
        "template_id": template_id,
        "name": "Certificate of Completion",
        "issue_date": date.today().isoformat(),
    }
    payload.update(overrides)
    response = client.post("/api/certificates", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]["certificate"]


@pytest.fixture
def activity(client, admin_headers):
    return create_activity(client, admin_headers)


@pytest.fixture
def template(client, admin_headers):
    return create_template(client, admin_headers)


@pytest.fixture
def certificate(client, admin_headers, recipient, activity, template):
    return create_certificate(client, admin_headers, recipient["id"], activity["id"], template["id"])
