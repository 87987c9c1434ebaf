"""Tests for registration, login, logout and the session guards."""

from auth import hash_password, verify_password
from conftest import ADMIN_PASSWORD, ADMIN_USERNAME, login, register


class TestRegister:
    def test_register_redirects_to_login(self, client):
        response = register(client, "amina", "pass1234", "Amina A")

        assert response.status_code == 303
        assert response.headers["location"] == "/login.html"

    def test_register_then_login_establishes_session(self, client):
        register(client, "amina", "pass1234", "Amina A")

        response = login(client, "amina", "pass1234")
        assert response.status_code == 303
        assert response.headers["location"] == "/"

        info = client.get("/api/user-info").json()
        assert info["username"] == "amina"
        assert info["name"] == "Amina A"
        assert info["is_admin"] is False
        assert info["profile_image"] == "images/default-profile.png"
        assert "password" not in info

    def test_username_is_case_folded(self, client, db):
        register(client, "  AmInA ", "pass1234", "Amina A")

        assert login(client, "AMINA", "pass1234").status_code == 303
        assert client.get("/api/user-info").json()["username"] == "amina"

    def test_duplicate_username_rejected_case_insensitively(self, client, db):
        assert register(client, "amina").status_code == 303

        response = register(client, "AMINA")

        assert response.status_code == 409
        assert response.json()["error"]["kind"] == "duplicate_username"
        with db.get_db() as conn:
            count = conn.execute("SELECT COUNT(*) FROM users WHERE username = 'amina'").fetchone()[0]
        assert count == 1

    def test_missing_fields_rejected(self, client):
        response = client.post("/register", data={"username": "amina", "password": ""}, follow_redirects=False)

        assert response.status_code == 400
        assert response.json()["error"]["kind"] == "validation_error"

    def test_password_is_stored_hashed(self, client, db):
        register(client, "amina", "pass1234")

        with db.get_db() as conn:
            stored = conn.execute("SELECT password FROM users WHERE username = 'amina'").fetchone()[0]
        assert stored != "pass1234"
        assert stored.startswith("$2")

    def test_profile_image_upload_is_stored(self, client, test_settings):
        response = register(client, "amina", profileImage=("me.png", b"\x89PNG fake", "image/png"))
        assert response.status_code == 303

        login(client, "amina")
        image = client.get("/api/user-info").json()["profile_image"]
        assert image.startswith("uploads/")
        assert image.endswith(".png")


class TestLogin:
    def test_wrong_password(self, client):
        register(client, "amina", "pass1234")

        response = login(client, "amina", "wrong-pass")

        assert response.status_code == 401
        assert response.json()["error"]["kind"] == "invalid_credentials"
        assert client.get("/api/user-info").status_code == 401

    def test_unknown_user(self, client):
        response = login(client, "nobody", "pass1234")

        assert response.status_code == 401
        assert response.json()["error"]["kind"] == "invalid_credentials"

    def test_missing_credentials(self, client):
        response = client.post("/login", data={"username": "amina"}, follow_redirects=False)

        assert response.status_code == 400

    def test_blocked_user_cannot_login(self, client, admin_client):
        register(client, "amina", "pass1234")
        user_id = next(u["id"] for u in admin_client.get("/api/admin/users").json() if u["username"] == "amina")

        assert admin_client.post(f"/api/admin/users/{user_id}/block").status_code == 200

        response = login(client, "amina", "pass1234")
        assert response.status_code == 401
        assert response.json()["error"]["kind"] == "invalid_credentials"

    def test_default_admin_is_bootstrapped(self, client):
        assert login(client, ADMIN_USERNAME, ADMIN_PASSWORD).status_code == 303
        assert client.get("/api/user-info").json()["is_admin"] is True


class TestLogout:
    def test_logout_clears_session(self, make_user):
        amina = make_user("amina")
        assert amina.get("/api/user-info").status_code == 200

        response = amina.get("/logout", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/login.html"
        assert amina.get("/api/user-info").status_code == 401


class TestGuards:
    def test_api_without_session_returns_401_json(self, client):
        response = client.get("/api/posts")

        assert response.status_code == 401
        assert response.json() == {
            "error": {"kind": "authentication_required", "message": "Authentication required"}
        }

    def test_browser_without_session_is_redirected(self, client):
        response = client.post("/create-post", data={"content": "hi"}, follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/login.html"

    def test_json_accept_header_gets_401_outside_api(self, client):
        response = client.post(
            "/create-post",
            data={"content": "hi"},
            headers={"Accept": "application/json"},
            follow_redirects=False,
        )

        assert response.status_code == 401

    def test_admin_routes_reject_regular_users(self, make_user):
        amina = make_user("amina")

        response = amina.get("/api/admin/stats")

        assert response.status_code == 403
        assert response.json()["error"]["kind"] == "forbidden"

    def test_admin_routes_reject_anonymous(self, client):
        assert client.get("/api/admin/users").status_code == 403


class TestForgotPassword:
    def test_acknowledges_without_revealing_accounts(self, client):
        register(client, "amina")

        known = client.post("/forgot-password", data={"username": "amina"})
        unknown = client.post("/forgot-password", data={"username": "ghost"})

        assert known.status_code == 200
        assert known.json() == unknown.json()

    def test_requires_username(self, client):
        assert client.post("/forgot-password", data={}).status_code == 400


class TestPasswordHashing:
    def test_configured_cost_is_used(self):
        hashed = hash_password("pass1234", rounds=4)

        assert hashed.startswith("$2b$04$")
        assert verify_password("pass1234", hashed)
        assert not verify_password("wrong", hashed)

    def test_default_cost(self):
        assert verify_password("pass1234", hash_password("pass1234"))
