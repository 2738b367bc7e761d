"""Integration tests for the /auth routes.

Covers:
- register forces the user role and answers 400 on duplicates / bad input
- login success, generic failure, lockout after five failures
- refresh exchanges only refresh tokens
- protected routes reject missing, wrong-type and deactivated-user tokens
- forgot/reset password flow with a single-use token
- change-password and profile updates
"""

from conftest import TEST_PASSWORD
from core.config import settings
from core.security import issue_refresh_token
from models.activity_log import ActivityLog


def _login(client, email, password=TEST_PASSWORD):
    return client.post("/auth/login", json={"email": email, "password": password})


class TestRegister:
    def test_register_returns_tokens_and_user_role(self, client):
        resp = client.post(
            "/auth/register",
            json={"username": "alice", "email": "alice@example.com", "password": "longenough", "role": "admin"},
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["token"] and body["refreshToken"]
        assert body["user"]["role"] == "user"
        assert body["user"]["email"] == "alice@example.com"

    def test_duplicate(self, client, make_user):
        make_user("alice")
        resp = client.post(
            "/auth/register",
            json={"username": "alice", "email": "new@example.com", "password": "longenough"},
        )
        assert resp.status_code == 400

    def test_field_errors(self, client):
        resp = client.post("/auth/register", json={"username": "a", "email": "x", "password": "1"})
        assert resp.status_code == 400
        assert set(resp.json()["errors"]) == {"username", "email", "password"}

    def test_missing_body_fields_are_400(self, client):
        resp = client.post("/auth/register", json={"username": "alice"})
        assert resp.status_code == 400
        assert "email" in resp.json()["errors"]


class TestLogin:
    def test_success_includes_memberships(self, client, make_user, org):
        make_user("bob", divisions=[org["news_it"]])
        resp = _login(client, "bob@example.com")
        assert resp.status_code == 200
        user = resp.json()["user"]
        assert [d["code"] for d in user["divisions"]] == ["NEWS-IT"]
        assert user["organizationalUnits"] == []

    def test_wrong_password_and_unknown_email_look_the_same(self, client, make_user):
        make_user("bob")
        wrong = _login(client, "bob@example.com", "nope-nope")
        unknown = _login(client, "ghost@example.com")
        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json() == {"detail": "Invalid credentials"}

    def test_lockout_after_five_failures(self, client, make_user):
        make_user("bob")
        for _ in range(5):
            assert _login(client, "bob@example.com", "nope-nope").status_code == 401

        resp = _login(client, "bob@example.com")
        assert resp.status_code == 401
        assert "locked" in resp.json()["detail"]

    def test_login_writes_audit_entry(self, client, db, make_user):
        user = make_user("bob")
        _login(client, "bob@example.com")
        rows = db.query(ActivityLog).filter(ActivityLog.user_id == user.id).all()
        assert [r.action for r in rows] == ["login"]


class TestTokens:
    def test_me_requires_token(self, client):
        resp = client.get("/auth/me")
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Not authorized to access this route"

    def test_refresh_token_is_not_an_access_token(self, client, make_user):
        user = make_user("bob")
        resp = client.get("/auth/me", headers={"Authorization": f"Bearer {issue_refresh_token(user.id)}"})
        assert resp.status_code == 401

    def test_refresh_issues_new_pair(self, client, make_user):
        make_user("bob")
        refresh_token = _login(client, "bob@example.com").json()["refreshToken"]

        resp = client.post("/auth/refresh", json={"refreshToken": refresh_token})
        assert resp.status_code == 200
        token = resp.json()["token"]
        assert client.get("/auth/me", headers={"Authorization": f"Bearer {token}"}).status_code == 200

    def test_refresh_rejects_access_token(self, client, make_user):
        make_user("bob")
        access = _login(client, "bob@example.com").json()["token"]
        assert client.post("/auth/refresh", json={"refreshToken": access}).status_code == 401

    def test_deactivated_user_token_rejected(self, client, db, make_user, headers_for):
        user = make_user("bob")
        headers = headers_for(user)
        user.is_active = False
        db.commit()
        assert client.get("/auth/me", headers=headers).status_code == 401

    def test_logout_records_entry(self, client, db, make_user, headers_for):
        user = make_user("bob")
        assert client.post("/auth/logout", headers=headers_for(user)).status_code == 200
        assert db.query(ActivityLog).filter(ActivityLog.action == "logout").count() == 1


class TestPasswordReset:
    def test_forgot_password_reveals_token_outside_production(self, client, make_user):
        make_user("bob")
        resp = client.post("/auth/forgot-password", json={"email": "bob@example.com"})
        assert resp.status_code == 200
        body = resp.json()
        assert len(body["token"]) == 64
        assert body["resetUrl"].endswith(body["token"])

    def test_forgot_password_same_answer_for_unknown_email(self, client):
        resp = client.post("/auth/forgot-password", json={"email": "ghost@example.com"})
        assert resp.status_code == 200
        assert "token" not in resp.json()

    def test_production_hides_token(self, client, make_user, monkeypatch):
        make_user("bob")
        monkeypatch.setattr(settings, "environment", "production")
        body = client.post("/auth/forgot-password", json={"email": "bob@example.com"}).json()
        assert "token" not in body
        assert "resetUrl" not in body

    def test_reset_is_single_use(self, client, make_user):
        make_user("bob")
        token = client.post("/auth/forgot-password", json={"email": "bob@example.com"}).json()["token"]

        first = client.post("/auth/reset-password", json={"token": token, "password": "brand-new-pw"})
        assert first.status_code == 200
        second = client.post("/auth/reset-password", json={"token": token, "password": "other-new-pw"})
        assert second.status_code == 400

        assert _login(client, "bob@example.com", "brand-new-pw").status_code == 200


class TestSelfService:
    def test_change_password_wrong_current(self, client, make_user, headers_for):
        user = make_user("bob")
        resp = client.put(
            "/auth/change-password",
            json={"currentPassword": "nope-nope", "newPassword": "brand-new-pw"},
            headers=headers_for(user),
        )
        assert resp.status_code == 401

    def test_change_password_too_short(self, client, make_user, headers_for):
        user = make_user("bob")
        resp = client.put(
            "/auth/change-password",
            json={"currentPassword": TEST_PASSWORD, "newPassword": "short"},
            headers=headers_for(user),
        )
        assert resp.status_code == 400

    def test_change_password_success(self, client, make_user, headers_for):
        user = make_user("bob")
        resp = client.put(
            "/auth/change-password",
            json={"currentPassword": TEST_PASSWORD, "newPassword": "brand-new-pw"},
            headers=headers_for(user),
        )
        assert resp.status_code == 200
        assert _login(client, "bob@example.com", "brand-new-pw").status_code == 200

    def test_update_profile(self, client, make_user, headers_for):
        user = make_user("bob")
        resp = client.put(
            "/auth/profile",
            json={"firstName": "Bob", "department": "Ops"},
            headers=headers_for(user),
        )
        assert resp.status_code == 200
        body = resp.json()["user"]
        assert body["firstName"] == "Bob"
        assert body["department"] == "Ops"
        assert body["lastName"] is None
