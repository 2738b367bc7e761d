"""Tests for services/password_tools.py and the /utils routes."""

import string

import pytest

from core.exceptions import ValidationError
from services.password_tools import check_strength, generate_password


class TestGenerator:
    def test_default_has_every_class(self):
        pw = generate_password()
        assert len(pw) == 16
        assert any(c in string.ascii_uppercase for c in pw)
        assert any(c in string.ascii_lowercase for c in pw)
        assert any(c in string.digits for c in pw)
        assert any(c not in string.ascii_letters + string.digits for c in pw)

    def test_digits_only(self):
        pw = generate_password(
            length=8, include_uppercase=False, include_lowercase=False, include_symbols=False
        )
        assert pw.isdigit()

    def test_exclude_similar(self):
        for _ in range(20):
            pw = generate_password(length=32, include_symbols=False, exclude_similar=True)
            assert not set(pw) & set("il1Lo0O")

    @pytest.mark.parametrize("length", [7, 33])
    def test_length_bounds(self, length):
        with pytest.raises(ValidationError):
            generate_password(length=length)

    def test_needs_a_character_class(self):
        with pytest.raises(ValidationError):
            generate_password(
                include_uppercase=False, include_lowercase=False, include_numbers=False, include_symbols=False
            )


class TestStrength:
    def test_weak(self):
        result = check_strength("abc")
        assert result["strength"] == 1
        assert result["strength_label"] == "Very Weak"
        assert "Use at least 8 characters" in result["feedback"]

    def test_very_strong(self):
        result = check_strength("Abcdefgh1234567!")
        assert result["strength"] == 7
        assert result["strength_label"] == "Very Strong"
        assert result["feedback"] == ["Strong password!"]

    def test_medium(self):
        assert check_strength("abcdefgh12")["strength_label"] == "Weak"
        assert check_strength("Abcdefgh12")["strength_label"] == "Medium"


class TestRoutes:
    def test_generate(self, client, make_user, headers_for):
        user = make_user("bob")
        resp = client.post("/utils/generate-password", json={"length": 20}, headers=headers_for(user))
        assert resp.status_code == 200
        body = resp.json()
        assert len(body["password"]) == 20
        assert "strengthLabel" in body["strength"]

    def test_generate_bad_length(self, client, make_user, headers_for):
        user = make_user("bob")
        resp = client.post("/utils/generate-password", json={"length": 4}, headers=headers_for(user))
        assert resp.status_code == 400

    def test_check_strength_requires_password(self, client, make_user, headers_for):
        user = make_user("bob")
        resp = client.post("/utils/check-password-strength", json={}, headers=headers_for(user))
        assert resp.status_code == 400

    def test_requires_login(self, client):
        assert client.post("/utils/generate-password", json={}).status_code == 401
