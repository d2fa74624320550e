"""
Test suite for the social auth router.

Requests go through the full app (session middleware, exception handlers)
with provider network calls patched out. One ``client`` is one browser.

Run tests:
    pytest tests/routers/test_socialauth_routes.py -v
"""

from unittest.mock import AsyncMock, patch
from urllib.parse import parse_qs, urlparse

import pytest

from socialauth.core.services.oauth import (
    Contact,
    FacebookAuthProvider,
    GitHubAuthProvider,
    Profile,
)

PROFILE = Profile(
    provider_id="facebook",
    validated_id="10001",
    first_name="Jane",
    last_name="Doe",
    email="jane@example.com",
    raw_data={"id": "10001"},
)


@pytest.fixture
def facebook_redirect():
    with patch.object(
        FacebookAuthProvider,
        "get_login_redirect_url",
        new_callable=AsyncMock,
        return_value="https://www.facebook.com/v19.0/dialog/oauth?client_id=abc",
    ) as mock:
        yield mock


@pytest.fixture
def facebook_verify():
    with patch.object(
        FacebookAuthProvider,
        "verify_response",
        new_callable=AsyncMock,
        return_value=PROFILE,
    ) as mock:
        yield mock


class TestLogin:

    async def test_redirects_to_provider(self, client, facebook_redirect):
        response = await client.get("/socialauth/login", params={"id": "facebook"})

        assert response.status_code == 307
        assert response.headers["location"] == (
            "https://www.facebook.com/v19.0/dialog/oauth?client_id=abc"
        )
        facebook_redirect.assert_awaited_once_with("http://test/socialauth/callback")

    async def test_sets_session_cookie(self, client, facebook_redirect, fresh_store):
        response = await client.get("/socialauth/login", params={"id": "facebook"})

        assert "socialauth_session" in response.cookies
        assert len(fresh_store) == 1

    async def test_custom_view_url(self, client, facebook_redirect):
        await client.get(
            "/socialauth/login",
            params={"id": "facebook", "view_url": "/callback.xhtml"},
        )

        facebook_redirect.assert_awaited_once_with("http://test/callback.xhtml")

    async def test_unknown_provider(self, client):
        response = await client.get("/socialauth/login", params={"id": "orkut"})

        assert response.status_code == 400
        assert response.json() == {"detail": "Unknown authentication provider: orkut"}

    async def test_missing_provider(self, client):
        response = await client.get("/socialauth/login")

        assert response.status_code == 400
        assert "No provider selected" in response.json()["detail"]

    async def test_no_redirect_returns_json(self, client):
        with patch.object(
            FacebookAuthProvider,
            "get_login_redirect_url",
            new_callable=AsyncMock,
            return_value=None,
        ):
            response = await client.get("/socialauth/login", params={"id": "facebook"})

        assert response.status_code == 200
        assert response.json() == {"provider_id": "facebook"}

    async def test_real_provider_url(self, client):
        response = await client.get("/socialauth/login", params={"id": "github"})

        assert response.status_code == 307
        location = urlparse(response.headers["location"])
        assert location.netloc == "github.com"
        params = parse_qs(location.query)
        assert params["redirect_uri"] == ["http://test/socialauth/callback"]
        assert "state" in params


class TestCallback:

    async def test_verify_returns_profile(
        self, client, facebook_redirect, facebook_verify
    ):
        await client.get("/socialauth/login", params={"id": "facebook"})

        response = await client.get(
            "/socialauth/callback", params={"code": "abc", "state": "xyz"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["provider_id"] == "facebook"
        assert body["validated_id"] == "10001"
        assert body["email"] == "jane@example.com"
        assert "raw_data" not in body
        facebook_verify.assert_awaited_once_with({"code": "abc", "state": "xyz"})

    async def test_callback_without_login(self, client):
        response = await client.get("/socialauth/callback", params={"code": "abc"})

        assert response.status_code == 401
        assert response.json() == {
            "detail": "No active provider. Call login before this action."
        }

    async def test_redirect_back_after_verify(
        self, client, facebook_redirect, facebook_verify
    ):
        await client.get(
            "/socialauth/login", params={"id": "facebook", "next": "/dashboard?tab=1"}
        )

        with patch(
            "socialauth.routers.socialauth.settings.SOCIALAUTH_REDIRECT_AFTER_VERIFY",
            True,
        ):
            response = await client.get(
                "/socialauth/callback", params={"code": "abc", "state": "xyz"}
            )

        assert response.status_code == 307
        assert response.headers["location"] == "/dashboard?tab=1"

    async def test_referer_is_return_point(
        self, client, facebook_redirect, facebook_verify
    ):
        await client.get(
            "/socialauth/login",
            params={"id": "facebook"},
            headers={"referer": "http://test/articles/42"},
        )

        with patch(
            "socialauth.routers.socialauth.settings.SOCIALAUTH_REDIRECT_AFTER_VERIFY",
            True,
        ):
            response = await client.get("/socialauth/callback", params={"code": "a"})

        assert response.headers["location"] == "/articles/42"

    async def test_foreign_referer_ignored(
        self, client, facebook_redirect, facebook_verify
    ):
        await client.get(
            "/socialauth/login",
            params={"id": "facebook"},
            headers={"referer": "http://evil.example.com/phish"},
        )

        with patch(
            "socialauth.routers.socialauth.settings.SOCIALAUTH_REDIRECT_AFTER_VERIFY",
            True,
        ):
            response = await client.get("/socialauth/callback", params={"code": "a"})

        assert response.status_code == 200

    async def test_backslash_next_is_not_a_return_point(
        self, client, facebook_redirect, facebook_verify
    ):
        await client.get(
            "/socialauth/login",
            params={"id": "facebook", "next": "/\\evil.example/phish"},
        )

        with patch(
            "socialauth.routers.socialauth.settings.SOCIALAUTH_REDIRECT_AFTER_VERIFY",
            True,
        ):
            response = await client.get("/socialauth/callback", params={"code": "a"})

        assert response.status_code == 200
        assert "location" not in response.headers

    async def test_provider_error_is_400(self, client):
        await client.get("/socialauth/login", params={"id": "github"})

        response = await client.get(
            "/socialauth/callback", params={"error": "access_denied"}
        )

        assert response.status_code == 400
        assert response.json()["provider"] == "github"


class TestProfileAndLogout:

    async def test_profile_empty_before_verify(self, client):
        response = await client.get("/socialauth/profile")

        assert response.status_code == 200
        assert response.json() is None

    async def test_logout_clears_profile(
        self, client, facebook_redirect, facebook_verify
    ):
        await client.get("/socialauth/login", params={"id": "facebook"})
        await client.get("/socialauth/callback", params={"code": "a", "state": "b"})
        assert (await client.get("/socialauth/profile")).json()["validated_id"] == "10001"

        response = await client.post("/socialauth/logout")

        assert response.status_code == 200
        assert response.json()["message"] == "Logged out successfully"
        assert (await client.get("/socialauth/profile")).json() is None

    async def test_user_profile_requires_login(self, client):
        response = await client.get("/socialauth/user-profile")

        assert response.status_code == 401

    async def test_user_profile_from_provider(self, client, facebook_redirect):
        await client.get("/socialauth/login", params={"id": "facebook"})

        with patch.object(
            FacebookAuthProvider,
            "get_user_profile",
            new_callable=AsyncMock,
            return_value=PROFILE,
        ):
            response = await client.get("/socialauth/user-profile")

        assert response.status_code == 200
        assert response.json()["first_name"] == "Jane"

    async def test_cookieless_reads_do_not_allocate_sessions(self, client, fresh_store):
        for _ in range(5):
            await client.get("/socialauth/profile")
            await client.get("/socialauth/status")
            await client.get("/socialauth/contacts")

        assert len(fresh_store) == 0
        assert "socialauth_session" not in client.cookies

    async def test_sessions_are_separate(self, app, client, facebook_redirect, facebook_verify):
        from httpx import ASGITransport, AsyncClient

        await client.get("/socialauth/login", params={"id": "facebook"})
        await client.get("/socialauth/callback", params={"code": "a", "state": "b"})

        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as other_browser:
            response = await other_browser.get("/socialauth/profile")

        assert response.json() is None


class TestContacts:

    async def test_contacts_require_login(self, client):
        response = await client.get("/socialauth/contacts")

        assert response.status_code == 401

    async def test_contacts(self, client, facebook_redirect):
        await client.get("/socialauth/login", params={"id": "facebook"})

        with patch.object(
            FacebookAuthProvider,
            "get_contact_list",
            new_callable=AsyncMock,
            return_value=[
                Contact(id="1", display_name="Bob", email="bob@example.com"),
                Contact(id="2", display_name="Carol"),
            ],
        ):
            response = await client.get("/socialauth/contacts")

        assert response.status_code == 200
        body = response.json()
        assert body["provider_id"] == "facebook"
        assert body["count"] == 2
        assert body["contacts"][0]["email"] == "bob@example.com"
        assert "raw_data" not in body["contacts"][0]


class TestStatus:

    async def test_status_round_trip(self, client, facebook_redirect):
        await client.get("/socialauth/login", params={"id": "facebook"})

        with patch.object(
            FacebookAuthProvider, "update_status", new_callable=AsyncMock
        ) as mock_update:
            response = await client.put(
                "/socialauth/status", json={"status": "Signed in!"}
            )

        assert response.status_code == 200
        mock_update.assert_awaited_once_with("Signed in!")
        assert (await client.get("/socialauth/status")).json() == {
            "status": "Signed in!"
        }

    async def test_status_reset_by_logout(self, client, facebook_redirect):
        await client.get("/socialauth/login", params={"id": "facebook"})
        with patch.object(FacebookAuthProvider, "update_status", new_callable=AsyncMock):
            await client.put("/socialauth/status", json={"status": "Signed in!"})

        await client.post("/socialauth/logout")

        assert (await client.get("/socialauth/status")).json() == {"status": None}

    async def test_unsupported_provider_is_501(self, client):
        with patch.object(
            GitHubAuthProvider,
            "get_login_redirect_url",
            new_callable=AsyncMock,
            return_value="https://github.com/login/oauth/authorize",
        ):
            await client.get("/socialauth/login", params={"id": "github"})

        response = await client.put("/socialauth/status", json={"status": "hi"})

        assert response.status_code == 501
        assert response.json() == {
            "detail": "Status update is not supported by github."
        }

    async def test_status_requires_login(self, client):
        response = await client.put("/socialauth/status", json={"status": "hi"})

        assert response.status_code == 401

    async def test_empty_status_rejected(self, client):
        response = await client.put("/socialauth/status", json={"status": ""})

        assert response.status_code == 422
