"""
Auth Router Tests - club sign-up, login and session
"""
from datetime import timedelta

import pytest
from jose import jwt

from app.auth.config import get_auth_settings
from app.auth.router import auth_error_key, create_access_token

REGISTRATION = {
    "club_name": "CF Nuevo",
    "sport": "Fútbol",
    "admin_name": "Marta",
    "email": "marta@nuevo.es",
    "password": "secreta123",
    "theme_color": "#FACC15",
}


class TestAuthSettings:
    """Auth settings"""

    def test_settings_defaults(self):
        settings = get_auth_settings()
        assert settings.JWT_ALGORITHM == "HS256"
        assert settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES > 0
        assert settings.MIN_PASSWORD_LENGTH == 6


class TestTokens:
    """Session JWT"""

    def test_create_access_token(self):
        settings = get_auth_settings()
        token = create_access_token({"sub": "u1", "club_id": "c1", "role": "Admin"})
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        assert payload["sub"] == "u1"
        assert payload["club_id"] == "c1"
        assert "exp" in payload

    @pytest.mark.parametrize("message,key", [
        ("User already registered", "auth.email_in_use"),
        ("A user with this email address has already been registered", "auth.email_in_use"),
        ("Password should be at least 6 characters", "auth.weak_password"),
        ("Unable to validate email address: invalid format", "auth.invalid_email"),
        ("Database error", None),
    ])
    def test_auth_error_key(self, message, key):
        assert auth_error_key(Exception(message)) == key


class TestRegister:
    """POST /api/auth/register"""

    def test_register_creates_club(self, api, fake_db):
        response = api.post("/api/auth/register", json=REGISTRATION)

        assert response.status_code == 201
        body = response.json()
        assert body["user"]["role"] == "super-admin"
        assert body["user"]["club_name"] == "CF Nuevo"
        assert response.cookies.get("access_token") == body["access_token"]

        club = fake_db.rows("clubs")[0]
        assert fake_db.rows("app_users")[0]["club_id"] == club["id"]
        club_user = fake_db.rows("club_users")[0]
        assert club_user["role"] == "super-admin"
        assert club_user["id"] == body["user"]["user_id"]
        settings = fake_db.rows("club_settings")[0]
        assert settings["theme_color"] == "#facc15"
        assert settings["theme_color_foreground"] == "#000000"

    def test_email_in_use(self, api, fake_db):
        api.post("/api/auth/register", json=REGISTRATION)
        response = api.post("/api/auth/register", json=REGISTRATION)

        assert response.status_code == 400
        assert response.json()["code"] == "auth.email_in_use"
        assert len(fake_db.rows("clubs")) == 1

    def test_weak_password(self, api, fake_db):
        response = api.post("/api/auth/register", json={**REGISTRATION, "password": "123"})
        assert response.status_code == 400
        assert response.json()["code"] == "auth.weak_password"
        assert fake_db.rows("clubs") == []

    def test_invalid_body(self, api, fake_db):
        response = api.post("/api/auth/register", json={**REGISTRATION, "email": "no-email"})
        assert response.status_code == 422


class TestLogin:
    """POST /api/auth/login"""

    def test_login(self, api, fake_db):
        api.post("/api/auth/register", json=REGISTRATION)
        response = api.post("/api/auth/login", json={"email": REGISTRATION["email"], "password": "secreta123"})

        assert response.status_code == 200
        assert response.json()["user"]["name"] == "Marta"
        assert "access_token" in response.cookies

    def test_wrong_password_localized(self, api, fake_db):
        """Error messages follow Accept-Language"""
        api.post("/api/auth/register", json=REGISTRATION)
        response = api.post(
            "/api/auth/login",
            json={"email": REGISTRATION["email"], "password": "otra-clave"},
            headers={"Accept-Language": "en-GB,en;q=0.9"},
        )
        assert response.status_code == 401
        assert response.json() == {"detail": "Wrong email or password", "code": "auth.invalid_credentials"}

    def test_login_falls_back_to_email(self, api, fake_db, club):
        """Club users created by an admin are found by email"""
        auth_user = fake_db.auth.sign_up({"email": "coach@demo.es", "password": "entrena1"}).user
        fake_db.add("app_users", id=auth_user.id, club_id=club, email="coach@demo.es")
        fake_db.add("club_users", club_id=club, name="Coach", email="coach@demo.es", role="Coach")

        response = api.post("/api/auth/login", json={"email": "coach@demo.es", "password": "entrena1"})
        assert response.status_code == 200
        assert response.json()["user"]["role"] == "Coach"
        assert response.json()["user"]["club_name"] == "CF Demo"

    def test_login_without_club(self, api, fake_db):
        fake_db.auth.sign_up({"email": "solo@demo.es", "password": "solo1234"})
        response = api.post("/api/auth/login", json={"email": "solo@demo.es", "password": "solo1234"})
        assert response.status_code == 403
        assert response.json()["code"] == "auth.no_club"


class TestSession:
    """GET /api/auth/me, POST /api/auth/logout and role checks"""

    def test_me(self, api, club, admin_headers):
        response = api.get("/api/auth/me", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["club_name"] == "CF Demo"
        assert response.json()["role"] == "super-admin"

    def test_me_with_cookie(self, api, club, make_token):
        api.cookies.set("access_token", make_token(role="Coach", name="Coach"))
        response = api.get("/api/auth/me")
        assert response.status_code == 200
        assert response.json()["name"] == "Coach"

    def test_missing_token(self, api, fake_db):
        response = api.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json()["code"] == "auth.required"

    def test_expired_or_bad_token(self, api, fake_db):
        expired = create_access_token(
            {"sub": "u1", "club_id": "c1", "role": "Admin"}, expires_delta=timedelta(minutes=-5)
        )
        for token in (expired, "not-a-jwt"):
            response = api.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
            assert response.status_code == 401
            assert response.json()["code"] == "auth.invalid_token"

    def test_unknown_role(self, api, fake_db, make_token):
        response = api.get("/api/auth/me", headers={"Authorization": f"Bearer {make_token(role='Owner')}"})
        assert response.status_code == 401

    def test_family_cannot_use_admin_routes(self, api, club, make_token):
        headers = {"Authorization": f"Bearer {make_token(role='Family')}"}
        assert api.get("/api/club/users", headers=headers).json()["code"] == "auth.admin_required"
        response = api.get("/api/club/dashboard", headers=headers)
        assert response.status_code == 403
        assert response.json()["code"] == "auth.staff_required"

    def test_deleted_user_token_rejected(self, api, fake_db, club, make_token, admin_headers):
        """Tokens of removed users stop working straight away"""
        admin = fake_db.add("club_users", club_id=club, name="Second", email="b@demo.es", role="Admin")
        headers = {"Authorization": f"Bearer {make_token(role='Admin', user_id=admin['id'])}"}
        assert api.get("/api/club/treasury/summary", headers=headers).status_code == 200

        api.delete(f"/api/club/users/{admin['id']}", headers=admin_headers)

        response = api.get("/api/club/treasury/summary", headers=headers)
        assert response.status_code == 401
        assert response.json()["code"] == "auth.invalid_token"

    def test_role_read_from_club_user(self, api, fake_db, club, make_token, admin_headers):
        """A demoted admin loses admin routes even with an Admin token"""
        admin = fake_db.add("club_users", club_id=club, name="Second", email="b@demo.es", role="Admin")
        headers = {"Authorization": f"Bearer {make_token(role='Admin', user_id=admin['id'])}"}

        api.patch(f"/api/club/users/{admin['id']}", json={"role": "Coach"}, headers=admin_headers)

        response = api.get("/api/club/treasury/summary", headers=headers)
        assert response.status_code == 403
        assert response.json()["code"] == "auth.admin_required"
        assert api.get("/api/auth/me", headers=headers).json()["role"] == "Coach"

    def test_logout_clears_cookie(self, api, fake_db):
        response = api.post("/api/auth/logout")
        assert response.status_code == 200
        assert 'access_token=""' in response.headers["set-cookie"]
