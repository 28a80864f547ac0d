import pytest

from conftest import EMAIL_CONFIRM_TOKEN, PASSWORD, PASSWORD_RESET_TOKEN
from todo_api.core.security import new_user_token
from todo_api.models.user import User


async def login(client, username: str, password: str = PASSWORD):
    return await client.post(
        "/api/v1/login", json={"username": username, "password": password}
    )


class TestRegister:
    """Test creating accounts"""

    @pytest.mark.asyncio
    async def test_register(self, client):
        response = await client.post(
            "/api/v1/register",
            json={"username": "newuser", "email": "new@example.com", "password": "pw"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["username"] == "newuser"
        assert "password" not in data
        assert "email" not in data

        response = await login(client, "newuser", "pw")
        assert response.status_code == 200

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload, code",
        [
            ({"username": "user1", "email": "other@example.com", "password": "pw"}, 1001),
            ({"username": "other", "email": "user1@example.com", "password": "pw"}, 1002),
        ],
    )
    async def test_register_taken(self, client, payload, code):
        response = await client.post("/api/v1/register", json=payload)

        assert response.status_code == 400
        assert response.json()["code"] == code

    @pytest.mark.asyncio
    async def test_register_missing_fields(self, client):
        response = await client.post("/api/v1/register", json={"username": "lonely"})

        assert response.status_code == 412
        assert response.json()["code"] == 1004

    @pytest.mark.asyncio
    async def test_registration_disabled(self, client, settings):
        settings.enable_registration = False

        response = await client.post(
            "/api/v1/register",
            json={"username": "newuser", "email": "new@example.com", "password": "pw"},
        )

        assert response.status_code == 403
        assert response.json()["code"] == 1014

    @pytest.mark.asyncio
    async def test_register_with_mailer_needs_confirmation(self, client, settings):
        settings.mailer_enabled = True

        response = await client.post(
            "/api/v1/register",
            json={"username": "newuser", "email": "new@example.com", "password": "pw"},
        )
        assert response.status_code == 201

        response = await login(client, "newuser", "pw")
        assert response.status_code == 412
        assert response.json()["code"] == 1012


class TestLogin:
    """Test logging in and confirming email addresses"""

    @pytest.mark.asyncio
    async def test_login(self, client):
        response = await login(client, "user1")

        assert response.status_code == 200
        token = response.json()["token"]
        response = await client.get(
            "/api/v1/user", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.json()["username"] == "user1"

    @pytest.mark.asyncio
    async def test_wrong_password(self, client):
        response = await login(client, "user1", "wrong")

        assert response.status_code == 412
        assert response.json()["code"] == 1011

    @pytest.mark.asyncio
    async def test_unknown_user(self, client):
        response = await login(client, "nobody")

        assert response.json()["code"] == 1011

    @pytest.mark.asyncio
    async def test_unconfirmed_email(self, client):
        response = await login(client, "user5")

        assert response.status_code == 412
        assert response.json()["code"] == 1012

    @pytest.mark.asyncio
    async def test_confirm_email(self, client):
        response = await client.post(
            "/api/v1/email/confirm", json={"token": EMAIL_CONFIRM_TOKEN}
        )
        assert response.status_code == 200

        response = await login(client, "user5")
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_confirm_email_invalid_token(self, client):
        response = await client.post("/api/v1/email/confirm", json={"token": "nope"})

        assert response.status_code == 412
        assert response.json()["code"] == 1010


class TestPasswordReset:
    """Test the password reset flow"""

    @pytest.mark.asyncio
    async def test_request_token(self, client, db):
        response = await client.post(
            "/api/v1/user/password/token", json={"email": "user1@example.com"}
        )

        assert response.status_code == 200
        user = await db.get(User, 1)
        await db.refresh(user)
        assert len(user.password_reset_token) == 400

    @pytest.mark.asyncio
    async def test_request_token_unknown_email(self, client):
        response = await client.post(
            "/api/v1/user/password/token", json={"email": "nobody@example.com"}
        )

        assert response.status_code == 404
        assert response.json()["code"] == 1005

    @pytest.mark.asyncio
    async def test_reset(self, client):
        response = await client.post(
            "/api/v1/user/password/reset",
            json={"token": PASSWORD_RESET_TOKEN, "new_password": "new"},
        )
        assert response.status_code == 200

        assert (await login(client, "user4")).status_code == 412
        assert (await login(client, "user4", "new")).status_code == 200

    @pytest.mark.asyncio
    async def test_reset_token_is_single_use(self, client):
        payload = {"token": PASSWORD_RESET_TOKEN, "new_password": "new"}
        await client.post("/api/v1/user/password/reset", json=payload)

        response = await client.post("/api/v1/user/password/reset", json=payload)

        assert response.json()["code"] == 1009

    @pytest.mark.asyncio
    async def test_reset_without_token(self, client):
        response = await client.post(
            "/api/v1/user/password/reset", json={"new_password": "new"}
        )

        assert response.status_code == 412
        assert response.json()["code"] == 1008


class TestCurrentUser:
    """Test the endpoints of the logged in user"""

    @pytest.mark.asyncio
    async def test_get_user(self, client, user1_headers):
        response = await client.get("/api/v1/user", headers=user1_headers)

        assert response.status_code == 200
        assert response.json()["email"] == "user1@example.com"

    @pytest.mark.asyncio
    async def test_without_token(self, client):
        response = await client.get("/api/v1/user")

        assert response.status_code == 401
        assert response.json()["code"] == 3

    @pytest.mark.asyncio
    async def test_expired_token(self, client, settings):
        settings.jwt_ttl_seconds = -10
        token = new_user_token(User(id=1, username="user1"))

        response = await client.get(
            "/api/v1/user", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_token_of_deleted_user(self, client, auth_headers):
        response = await client.get("/api/v1/user", headers=auth_headers(9999))

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_password(self, client, user1_headers):
        response = await client.post(
            "/api/v1/user/password",
            json={"old_password": PASSWORD, "new_password": "changed"},
            headers=user1_headers,
        )

        assert response.status_code == 200
        assert (await login(client, "user1", "changed")).status_code == 200

    @pytest.mark.asyncio
    async def test_update_password_wrong_old_password(self, client, user1_headers):
        response = await client.post(
            "/api/v1/user/password",
            json={"old_password": "wrong", "new_password": "changed"},
            headers=user1_headers,
        )

        assert response.json()["code"] == 1011

    @pytest.mark.asyncio
    async def test_update_password_empty(self, client, user1_headers):
        response = await client.post(
            "/api/v1/user/password",
            json={"old_password": PASSWORD},
            headers=user1_headers,
        )

        assert response.json()["code"] == 1013

    @pytest.mark.asyncio
    async def test_search_users(self, client, user1_headers):
        response = await client.get(
            "/api/v1/users", params={"s": "user"}, headers=user1_headers
        )

        assert [u["id"] for u in response.json()] == [1, 2, 3, 4, 5, 6]

        response = await client.get(
            "/api/v1/users", params={"s": "er3"}, headers=user1_headers
        )
        assert [u["username"] for u in response.json()] == ["user3"]

    @pytest.mark.asyncio
    async def test_renew_token(self, client, user1_headers):
        response = await client.post("/api/v1/user/token", headers=user1_headers)

        assert response.status_code == 200
        headers = {"Authorization": f"Bearer {response.json()['token']}"}
        assert (await client.get("/api/v1/user", headers=headers)).status_code == 200

    @pytest.mark.asyncio
    async def test_renew_link_share_token(self, client, share_headers):
        response = await client.post(
            "/api/v1/user/token", headers=await share_headers(1)
        )

        assert response.status_code == 200


class TestInfo:
    """Test the public instance information"""

    @pytest.mark.asyncio
    async def test_info(self, client, settings):
        settings.enable_registration = False

        response = await client.get("/api/v1/info")

        assert response.status_code == 200
        assert response.json()["registration_enabled"] is False
        assert response.json()["max_items_per_page"] == settings.max_items_per_page
