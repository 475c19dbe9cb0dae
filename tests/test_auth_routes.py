from conftest import DEFAULT_PASSWORD, register


class TestRegistration:
    """Account creation and sign-in."""

    def test_register_starts_session(self, client):
        user = register(client)
        assert user["email"] == "ada@example.com"
        assert "passwordHash" not in user

        session = client.get("/api/session").json()
        assert session["authenticated"] is True
        assert session["session"]["user"]["id"] == user["id"]

    def test_duplicate_email_conflicts(self, client, make_client):
        register(client)
        response = make_client().post("/api/auth/register", json={
            "name": "Imposter", "email": "ADA@example.com", "password": DEFAULT_PASSWORD})
        assert response.status_code == 409

    def test_invalid_body_is_400(self, client):
        response = client.post("/api/auth/register", json={"name": "Ada", "email": "not-an-email",
                                                           "password": DEFAULT_PASSWORD})
        assert response.status_code == 400
        assert "email" in response.json()["detail"]

    def test_short_password_rejected(self, client):
        response = client.post("/api/auth/register", json={"name": "Ada", "email": "ada@example.com",
                                                           "password": "short"})
        assert response.status_code == 400


def test_login_and_logout(client, make_client):
    register(client)

    other = make_client()
    bad = other.post("/api/auth/login", json={"email": "ada@example.com", "password": "wrong-password"})
    assert bad.status_code == 401

    good = other.post("/api/auth/login", json={"email": "Ada@Example.com", "password": DEFAULT_PASSWORD})
    assert good.status_code == 200
    assert other.get("/api/user/me").status_code == 200

    assert other.post("/api/auth/logout").json() == {"success": True}
    assert other.get("/api/user/me").status_code == 401


def test_anonymous_session(client):
    assert client.get("/api/session").json() == {"authenticated": False, "session": None}
    assert client.get("/api/user/me").status_code == 401
    assert client.get("/api/projects").status_code == 401
