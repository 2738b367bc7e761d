"""Integration tests for the /statistics routes (dashboard, activity, export)."""

import io
from datetime import timedelta

from openpyxl import load_workbook

from core.timeutil import utcnow
from services.audit import record
from stats.router import EXPORT_HEADERS


def _add_credential(client, division_id, headers, **overrides):
    body = {
        "title": "Server root",
        "category": "Server",
        "url": "ssh://10.0.0.1",
        "username": "root",
        "password": "pw-123456",
        **overrides,
    }
    resp = client.post(f"/repositories/{division_id}/credentials", json=body, headers=headers)
    assert resp.status_code == 201
    return resp.json()["credential"]


class TestDashboard:
    def test_counts(self, client, org, make_user, headers_for):
        admin = make_user("root", role="admin")
        make_user("bob")
        make_user("old", is_active=False)
        headers = headers_for(admin)

        _add_credential(client, org["news_it"], headers)
        _add_credential(client, org["news_it"], headers, category="API", title="Stripe key")
        soon = (utcnow() + timedelta(days=5)).isoformat()
        expiring = _add_credential(client, org["soft_dev"], headers, expiresAt=soon)
        doomed = _add_credential(client, org["soft_dev"], headers, title="Old box")
        client.delete(f"/repositories/credentials/{doomed['id']}", headers=headers)

        resp = client.get("/statistics/dashboard", headers=headers)
        assert resp.status_code == 200
        stats = resp.json()["statistics"]

        assert stats["users"] == {
            "total": 3,
            "active": 2,
            "inactive": 1,
            "byRole": [{"key": "user", "count": 2}, {"key": "admin", "count": 1}],
        }
        creds = stats["credentials"]
        assert (creds["total"], creds["active"], creds["inactive"]) == (4, 3, 1)
        assert creds["expiring"] == 1
        assert creds["byCategory"] == [{"key": "Server", "count": 2}, {"key": "API", "count": 1}]
        assert stats["structure"] == {"organizationalUnits": 2, "divisions": 3}
        assert stats["recentActivity"][0]["action"] == "credential_delete"
        assert expiring["expiresAt"] is not None

    def test_admin_only(self, client, make_user, headers_for):
        manager = make_user("mgr", role="management")
        assert client.get("/statistics/dashboard", headers=headers_for(manager)).status_code == 403


class TestActivity:
    def test_filters_and_pagination(self, client, make_user, headers_for):
        admin = make_user("root", role="admin")
        bob = make_user("bob")
        for _ in range(3):
            record(bob.id, "login", "user", bob.id)
        record(admin.id, "logout", "user", admin.id)

        headers = headers_for(admin)
        body = client.get("/statistics/activity", params={"userId": bob.id, "limit": 2}, headers=headers).json()
        assert body["pagination"]["total"] == 3
        assert len(body["logs"]) == 2
        assert body["logs"][0]["username"] == "bob"

        body = client.get("/statistics/activity", params={"action": "logout"}, headers=headers).json()
        assert [log["userId"] for log in body["logs"]] == [admin.id]

    def test_export_workbook(self, client, make_user, headers_for):
        admin = make_user("root", role="admin")
        record(admin.id, "login", "user", admin.id, {"note": "x"}, "10.0.0.9")

        resp = client.get("/statistics/activity/export", headers=headers_for(admin))
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )

        ws = load_workbook(io.BytesIO(resp.content)).active
        rows = list(ws.iter_rows(values_only=True))
        assert list(rows[0]) == EXPORT_HEADERS
        assert rows[1][2] == "root"
        assert rows[1][3] == "login"
        assert rows[1][6] == "10.0.0.9"
