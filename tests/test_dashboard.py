def test_stats(client, admin_headers, certificate):
    response = client.get("/api/dashboard/stats", headers=admin_headers)

    assert response.status_code == 200
    stats = response.json()["data"]
    assert set(stats) == {
        "totalUsers",
        "totalCertificates",
        "activeCertificates",
        "revokedCertificates",
        "thisMonthCertificates",
        "totalValidations",
    }
    assert stats["totalCertificates"] >= 1
    assert stats["activeCertificates"] >= 1


def test_recent_certificates(client, admin_headers, certificate):
    response = client.get("/api/dashboard/recent-certificates", params={"limit": 50}, headers=admin_headers)

    assert response.status_code == 200
    assert certificate["id"] in [c["id"] for c in response.json()["data"]]


def test_dashboard_data(client, admin_headers, certificate):
    data = client.get("/api/dashboard/data", params={"limit": 3}, headers=admin_headers).json()["data"]

    assert set(data) == {"stats", "recentCertificates"}
    assert len(data["recentCertificates"]) <= 3
