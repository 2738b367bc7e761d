"""Integration tests for the /repositories routes.

Covers:
- accessible divisions and repository views with 403 / 404 ordering
- credential create / update / soft delete through HTTP with role checks
- the access endpoint is the only one returning plaintext
- search floor and response shape
- a corrupt stored password yields a generic 500
"""

import pytest

from models.activity_log import ActivityLog
from models.credential import Credential

NEW_CREDENTIAL = {
    "title": "Marketing WordPress",
    "category": "WordPress",
    "url": "https://blog.example.com/wp-admin",
    "username": "editor",
    "password": "wp-pass-123",
    "notes": "shared login",
    "tags": ["cms", "blog"],
}


@pytest.fixture
def people(make_user, org):
    return {
        "admin": make_user("root", role="admin"),
        "manager": make_user("mgr", role="management", divisions=[org["news_it"]]),
        "user": make_user("bob", role="user", divisions=[org["news_it"]]),
        "outsider": make_user("eve", role="user", divisions=[org["soft_dev"]]),
    }


@pytest.fixture
def created(client, org, people, headers_for):
    resp = client.post(
        f"/repositories/{org['news_it']}/credentials",
        json=NEW_CREDENTIAL,
        headers=headers_for(people["user"]),
    )
    assert resp.status_code == 201
    return resp.json()["credential"]


class TestRepositoryViews:
    def test_accessible_lists_memberships(self, client, org, people, headers_for):
        resp = client.get("/repositories/accessible", headers=headers_for(people["user"]))
        assert resp.status_code == 200
        assert [d["id"] for d in resp.json()["divisions"]] == [org["news_it"]]

    def test_admin_sees_every_division(self, client, org, people, headers_for):
        resp = client.get("/repositories/accessible", headers=headers_for(people["admin"]))
        assert len(resp.json()["divisions"]) == 3

    def test_non_member_forbidden(self, client, org, people, headers_for):
        resp = client.get(f"/repositories/{org['news_it']}", headers=headers_for(people["outsider"]))
        assert resp.status_code == 403

    def test_unknown_division(self, client, people, headers_for):
        assert client.get("/repositories/9999", headers=headers_for(people["admin"])).status_code == 404
        assert client.get("/repositories/9999", headers=headers_for(people["user"])).status_code == 403

    def test_lazy_repository_keeps_its_id(self, client, org, people, headers_for):
        headers = headers_for(people["user"])
        first = client.get(f"/repositories/{org['news_it']}", headers=headers).json()["repository"]
        second = client.get(f"/repositories/{org['news_it']}", headers=headers).json()["repository"]
        assert first["id"] == second["id"]
        assert first["division"]["code"] == "NEWS-IT"
        assert first["credentials"] == []

    def test_requires_token(self, client, org):
        assert client.get(f"/repositories/{org['news_it']}").status_code == 401


class TestCredentialWrites:
    def test_create_returns_sealed_camel_case(self, created, org, people):
        assert created["password"].startswith("encrypted:")
        assert created["divisionId"] == org["news_it"]
        assert created["accessCount"] == 0
        assert created["createdBy"] == people["user"].id
        assert created["tags"] == ["cms", "blog"]

    def test_create_validation_errors(self, client, org, people, headers_for):
        resp = client.post(
            f"/repositories/{org['news_it']}/credentials",
            json={**NEW_CREDENTIAL, "title": " ", "category": "Email"},
            headers=headers_for(people["user"]),
        )
        assert resp.status_code == 400
        assert set(resp.json()["errors"]) == {"title", "category"}

    def test_tags_must_be_strings(self, client, org, people, headers_for):
        resp = client.post(
            f"/repositories/{org['news_it']}/credentials",
            json={**NEW_CREDENTIAL, "tags": [{"nested": True}]},
            headers=headers_for(people["user"]),
        )
        assert resp.status_code == 400

    def test_user_cannot_update(self, client, created, people, headers_for):
        resp = client.put(
            f"/repositories/credentials/{created['id']}",
            json={"title": "Hijacked"},
            headers=headers_for(people["user"]),
        )
        assert resp.status_code == 403

    def test_manager_updates_only_given_fields(self, client, created, people, headers_for):
        resp = client.put(
            f"/repositories/credentials/{created['id']}",
            json={"title": "Renamed"},
            headers=headers_for(people["manager"]),
        )
        assert resp.status_code == 200
        body = resp.json()["credential"]
        assert body["title"] == "Renamed"
        assert body["url"] == NEW_CREDENTIAL["url"]
        assert body["password"] == created["password"]
        assert body["lastUpdatedBy"] == people["manager"].id

    def test_null_category_rejected_on_update(self, client, created, people, headers_for):
        resp = client.put(
            f"/repositories/credentials/{created['id']}",
            json={"category": None, "tags": None},
            headers=headers_for(people["manager"]),
        )
        assert resp.status_code == 400
        assert set(resp.json()["errors"]) == {"category", "tags"}

    def test_soft_delete(self, client, org, created, people, headers_for):
        manager = headers_for(people["manager"])
        assert client.delete(f"/repositories/credentials/{created['id']}", headers=manager).status_code == 200

        view = client.get(f"/repositories/{org['news_it']}", headers=manager).json()["repository"]
        assert view["credentials"] == []

        direct = client.get(f"/repositories/credentials/{created['id']}", headers=manager)
        assert direct.status_code == 200
        assert direct.json()["credential"]["isActive"] is False

        assert client.get(f"/repositories/credentials/{created['id']}/access", headers=manager).status_code == 404

    def test_user_cannot_delete(self, client, created, people, headers_for):
        resp = client.delete(f"/repositories/credentials/{created['id']}", headers=headers_for(people["user"]))
        assert resp.status_code == 403


class TestAccess:
    def test_access_returns_plaintext_and_counts(self, client, db, created, people, headers_for):
        headers = headers_for(people["user"])
        for expected in (1, 2, 3):
            resp = client.get(f"/repositories/credentials/{created['id']}/access", headers=headers)
            assert resp.status_code == 200
            body = resp.json()["credential"]
            assert body["password"] == "wp-pass-123"
            assert body["accessCount"] == expected

        views = db.query(ActivityLog).filter(ActivityLog.action == "credential_view").all()
        assert len(views) == 3
        assert {v.resource_id for v in views} == {created["id"]}

    def test_outsider_gets_403_and_no_audit(self, client, db, created, people, headers_for):
        resp = client.get(
            f"/repositories/credentials/{created['id']}/access",
            headers=headers_for(people["outsider"]),
        )
        assert resp.status_code == 403
        assert db.query(ActivityLog).filter(ActivityLog.action == "credential_view").count() == 0

    def test_direct_get_stays_sealed(self, client, created, people, headers_for):
        resp = client.get(f"/repositories/credentials/{created['id']}", headers=headers_for(people["user"]))
        assert resp.json()["credential"]["password"].startswith("encrypted:")

    def test_corrupt_ciphertext_is_generic_500(self, client, db, created, people, headers_for):
        db.get(Credential, created["id"]).password = "encrypted:zz:zz"
        db.commit()

        resp = client.get(
            f"/repositories/credentials/{created['id']}/access",
            headers=headers_for(people["user"]),
        )
        assert resp.status_code == 500
        assert resp.json() == {"detail": "Internal server error"}

        db.expire_all()
        assert db.get(Credential, created["id"]).access_count == 0
        assert db.query(ActivityLog).filter(ActivityLog.action == "credential_view").count() == 0

    def test_sentinel_prefixed_password_round_trips(self, client, db, org, people, headers_for):
        headers = headers_for(people["user"])
        resp = client.post(
            f"/repositories/{org['news_it']}/credentials",
            json={**NEW_CREDENTIAL, "password": "encrypted:hunter2"},
            headers=headers,
        )
        assert resp.status_code == 201
        credential_id = resp.json()["credential"]["id"]
        assert db.get(Credential, credential_id).password != "encrypted:hunter2"

        resp = client.get(f"/repositories/credentials/{credential_id}/access", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["credential"]["password"] == "encrypted:hunter2"


class TestSearch:
    def test_short_query_is_empty(self, client, created, people, headers_for):
        resp = client.get("/repositories/search", params={"q": "w"}, headers=headers_for(people["user"]))
        assert resp.json() == {"credentials": [], "total": 0}

    def test_hit_shape(self, client, org, created, people, headers_for):
        resp = client.get("/repositories/search", params={"q": "BLOG"}, headers=headers_for(people["user"]))
        body = resp.json()
        assert body["total"] == 1
        hit = body["credentials"][0]
        assert hit["id"] == created["id"]
        assert hit["divisionName"] == "IT"
        assert "password" not in hit

    def test_outsider_sees_nothing(self, client, created, people, headers_for):
        resp = client.get("/repositories/search", params={"q": "blog"}, headers=headers_for(people["outsider"]))
        assert resp.json()["total"] == 0
