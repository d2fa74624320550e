"""
Test suite for the OpenID 2.0 relying party.

- Key-value form parsing
- Discovery through XRDS, X-XRDS-Location and HTML link elements
- checkid_setup request URL
- Assertion verification with check_authentication and AX/SREG attributes

Run tests:
    pytest tests/services/oauth/test_openid.py -v
"""

from unittest.mock import AsyncMock, patch
from urllib.parse import parse_qs, urlparse

import pytest

from socialauth.core.exceptions.types import InvalidStateException, OAuthException
from socialauth.core.services.oauth.openid import (
    AX_NS,
    IDENTIFIER_SELECT,
    SREG_NS,
    OpenIdEndpoint,
    OpenIdProvider,
    parse_key_value_form,
)

OP_IDENTIFIER = "https://openid.example.com/"
OP_ENDPOINT = "https://openid.example.com/server"
CALLBACK = "http://app.example.com:8080/socialauth/callback"

XRDS_SERVER = b"""<?xml version="1.0" encoding="UTF-8"?>
<xrds:XRDS xmlns:xrds="xri://$xrds" xmlns="xri://$xrd*($v*2.0)">
  <XRD>
    <Service priority="10">
      <Type>http://specs.openid.net/auth/2.0/signon</Type>
      <URI>https://openid.example.com/signon</URI>
    </Service>
    <Service priority="20">
      <Type>http://specs.openid.net/auth/2.0/server</Type>
      <Type>http://openid.net/srv/ax/1.0</Type>
      <URI>https://openid.example.com/server</URI>
    </Service>
  </XRD>
</xrds:XRDS>
"""

XRDS_SIGNON = b"""<?xml version="1.0" encoding="UTF-8"?>
<xrds:XRDS xmlns:xrds="xri://$xrds" xmlns="xri://$xrd*($v*2.0)">
  <XRD>
    <Service priority="0">
      <Type>http://specs.openid.net/auth/2.0/signon</Type>
      <URI>https://openid.example.com/server</URI>
      <LocalID>https://openid.example.com/u/alice</LocalID>
    </Service>
  </XRD>
</xrds:XRDS>
"""

HTML_LINKS = """<!DOCTYPE html>
<html><head>
<link rel="openid2.provider" href="https://openid.example.com/server">
<link rel="openid2.local_id" href="https://openid.example.com/u/alice">
</head><body>Alice</body></html>
"""


@pytest.fixture(autouse=True)
async def openid_client():
    await OpenIdProvider.init()
    yield
    await OpenIdProvider.aclose()


@pytest.fixture
def mock_request():
    with patch.object(
        OpenIdProvider._client, "request", new_callable=AsyncMock
    ) as mock:
        yield mock


def _xrds(make_response, body: bytes):
    return make_response(
        content=body, headers={"content-type": "application/xrds+xml; charset=UTF-8"}
    )


def _html(make_response, body: str, headers: dict | None = None):
    return make_response(
        text=body, headers={"content-type": "text/html", **(headers or {})}
    )


class TestKeyValueForm:

    def test_parse(self):
        body = "ns:http://specs.openid.net/auth/2.0\nis_valid:true\n\ngarbage\n"

        assert parse_key_value_form(body) == {
            "ns": "http://specs.openid.net/auth/2.0",
            "is_valid": "true",
        }


class TestDiscovery:

    async def test_xrds_prefers_server_type(self, mock_request, make_response):
        mock_request.return_value = _xrds(make_response, XRDS_SERVER)

        endpoint = await OpenIdProvider(OP_IDENTIFIER).discover()

        assert endpoint.op_endpoint == OP_ENDPOINT
        assert endpoint.claimed_id is None

    async def test_xrds_signon_keeps_claimed_id(self, mock_request, make_response):
        mock_request.return_value = _xrds(make_response, XRDS_SIGNON)

        endpoint = await OpenIdProvider("https://alice.example.com/").discover()

        assert endpoint.op_endpoint == OP_ENDPOINT
        assert endpoint.claimed_id == "https://alice.example.com/"
        assert endpoint.local_id == "https://openid.example.com/u/alice"

    async def test_xrds_location_header(self, mock_request, make_response):
        mock_request.side_effect = [
            _html(
                make_response,
                "<html></html>",
                {"X-XRDS-Location": "https://openid.example.com/xrds"},
            ),
            _xrds(make_response, XRDS_SERVER),
        ]

        endpoint = await OpenIdProvider(OP_IDENTIFIER).discover()

        assert endpoint.op_endpoint == OP_ENDPOINT
        assert mock_request.await_args_list[1].args == (
            "GET",
            "https://openid.example.com/xrds",
        )

    async def test_html_link_fallback(self, mock_request, make_response):
        mock_request.return_value = _html(make_response, HTML_LINKS)

        endpoint = await OpenIdProvider("https://alice.example.com/#me").discover()

        assert endpoint.op_endpoint == OP_ENDPOINT
        assert endpoint.claimed_id == "https://alice.example.com/"
        assert endpoint.local_id == "https://openid.example.com/u/alice"
        assert mock_request.await_args.args == ("GET", "https://alice.example.com/")

    async def test_no_endpoint_raises(self, mock_request, make_response):
        mock_request.return_value = _html(make_response, "<html><head></head></html>")

        with pytest.raises(OAuthException) as exc_info:
            await OpenIdProvider(OP_IDENTIFIER).discover()

        assert exc_info.value.provider == "openid"

    async def test_unreachable_identifier_raises(self, mock_request, make_response):
        mock_request.return_value = make_response(404, text="not found")

        with pytest.raises(OAuthException):
            await OpenIdProvider(OP_IDENTIFIER).discover()


class TestLoginRedirect:

    async def test_checkid_setup_url(self, mock_request, make_response):
        mock_request.return_value = _xrds(make_response, XRDS_SERVER)

        url = await OpenIdProvider(OP_IDENTIFIER).get_login_redirect_url(CALLBACK)

        parsed = urlparse(url)
        assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == OP_ENDPOINT
        params = {k: v[0] for k, v in parse_qs(parsed.query).items()}
        assert params["openid.mode"] == "checkid_setup"
        assert params["openid.claimed_id"] == IDENTIFIER_SELECT
        assert params["openid.identity"] == IDENTIFIER_SELECT
        assert params["openid.return_to"] == CALLBACK
        assert params["openid.realm"] == "http://app.example.com:8080/"
        assert params["openid.ns.ax"] == AX_NS
        assert params["openid.ax.required"] == "email,firstname,lastname"
        assert params["openid.ax.type.email"] == "http://axschema.org/contact/email"
        assert params["openid.ns.sreg"] == SREG_NS

    async def test_claimed_identifier_sent(self, mock_request, make_response):
        mock_request.return_value = _html(make_response, HTML_LINKS)

        url = await OpenIdProvider("https://alice.example.com/").get_login_redirect_url(
            CALLBACK
        )

        params = {k: v[0] for k, v in parse_qs(urlparse(url).query).items()}
        assert params["openid.claimed_id"] == "https://alice.example.com/"
        assert params["openid.identity"] == "https://openid.example.com/u/alice"


ALICE_CLAIMED_ID = "https://openid.example.com/id/alice"

XRDS_ALICE = b"""<?xml version="1.0" encoding="UTF-8"?>
<xrds:XRDS xmlns:xrds="xri://$xrds" xmlns="xri://$xrd*($v*2.0)">
  <XRD>
    <Service priority="0">
      <Type>http://specs.openid.net/auth/2.0/signon</Type>
      <URI>https://openid.example.com/server</URI>
    </Service>
  </XRD>
</xrds:XRDS>
"""

XRDS_OTHER_OP = b"""<?xml version="1.0" encoding="UTF-8"?>
<xrds:XRDS xmlns:xrds="xri://$xrds" xmlns="xri://$xrd*($v*2.0)">
  <XRD>
    <Service priority="0">
      <Type>http://specs.openid.net/auth/2.0/signon</Type>
      <URI>https://other-op.example.net/server</URI>
    </Service>
  </XRD>
</xrds:XRDS>
"""

IS_VALID = "ns:http://specs.openid.net/auth/2.0\nis_valid:true\n"


def _assertion(**overrides) -> dict[str, str]:
    params = {
        "openid.ns": "http://specs.openid.net/auth/2.0",
        "openid.mode": "id_res",
        "openid.op_endpoint": OP_ENDPOINT,
        "openid.claimed_id": f"{ALICE_CLAIMED_ID}#frag",
        "openid.identity": ALICE_CLAIMED_ID,
        "openid.return_to": CALLBACK,
        "openid.response_nonce": "2024-01-01T00:00:00Zabc",
        "openid.assoc_handle": "handle",
        "openid.signed": (
            "op_endpoint,claimed_id,identity,return_to,response_nonce,assoc_handle"
        ),
        "openid.sig": "c2lnbmF0dXJl",
        "openid.ns.ext1": AX_NS,
        "openid.ext1.mode": "fetch_response",
        "openid.ext1.type.email": "http://axschema.org/contact/email",
        "openid.ext1.value.email": "alice@example.com",
        "openid.ext1.type.first": "http://axschema.org/namePerson/first",
        "openid.ext1.value.first": "Alice",
        "openid.ext1.type.last": "http://axschema.org/namePerson/last",
        "openid.ext1.value.last.1": "Liddell",
        "openid.ns.sreg": SREG_NS,
        "openid.sreg.nickname": "alice",
        "openid.sreg.email": "alice-sreg@example.com",
        "openid.sreg.country": "GB",
    }
    params.update(overrides)
    return params


class TestVerifyResponse:

    @pytest.fixture
    async def logged_in(self, mock_request, make_response):
        mock_request.return_value = _xrds(make_response, XRDS_SERVER)
        provider = OpenIdProvider(OP_IDENTIFIER)
        await provider.get_login_redirect_url(CALLBACK)
        mock_request.reset_mock(return_value=True)
        return provider

    async def test_positive_assertion(self, logged_in, mock_request, make_response):
        mock_request.side_effect = [
            _xrds(make_response, XRDS_ALICE),
            make_response(text=IS_VALID),
        ]

        profile = await logged_in.verify_response(_assertion())

        assert profile.provider_id == "openid"
        assert profile.validated_id == ALICE_CLAIMED_ID
        assert profile.email == "alice@example.com"
        assert profile.first_name == "Alice"
        assert profile.last_name == "Liddell"
        assert profile.display_name == "alice"
        assert profile.country == "GB"

        discovery, verification = mock_request.await_args_list
        assert discovery.args == ("GET", ALICE_CLAIMED_ID)
        assert verification.args == ("POST", OP_ENDPOINT)
        assert verification.kwargs["data"]["openid.mode"] == "check_authentication"
        assert verification.kwargs["data"]["openid.sig"] == "c2lnbmF0dXJl"

    async def test_get_user_profile_returns_verified(
        self, logged_in, mock_request, make_response
    ):
        mock_request.side_effect = [
            _xrds(make_response, XRDS_ALICE),
            make_response(text="is_valid:true\n"),
        ]
        verified = await logged_in.verify_response(_assertion())

        assert await logged_in.get_user_profile() is verified

    async def test_assertion_not_confirmed(
        self, logged_in, mock_request, make_response
    ):
        mock_request.side_effect = [
            _xrds(make_response, XRDS_ALICE),
            make_response(text="is_valid:false\n"),
        ]

        with pytest.raises(OAuthException):
            await logged_in.verify_response(_assertion())

    async def test_identity_of_another_op_rejected(
        self, logged_in, mock_request, make_response
    ):
        victim = "https://victim.other-op.test/"
        mock_request.return_value = _xrds(make_response, XRDS_OTHER_OP)

        with pytest.raises(InvalidStateException):
            await logged_in.verify_response(
                _assertion(
                    **{"openid.claimed_id": victim, "openid.identity": victim}
                )
            )

        assert mock_request.await_args_list[0].args == ("GET", victim)
        assert all(call.args[0] == "GET" for call in mock_request.await_args_list)

    async def test_undiscoverable_claimed_id_rejected(
        self, logged_in, mock_request, make_response
    ):
        mock_request.return_value = make_response(404, text="not found")

        with pytest.raises(InvalidStateException):
            await logged_in.verify_response(_assertion())

        mock_request.assert_awaited_once()

    async def test_claimed_id_discovery_uses_signon_service_only(
        self, logged_in, mock_request, make_response
    ):
        # signon service points at /signon, not the /server endpoint used at login
        mock_request.return_value = _xrds(make_response, XRDS_SERVER)

        with pytest.raises(InvalidStateException):
            await logged_in.verify_response(_assertion())

    async def test_local_id_must_match_discovery(
        self, logged_in, mock_request, make_response
    ):
        mock_request.return_value = _xrds(make_response, XRDS_ALICE)

        with pytest.raises(InvalidStateException):
            await logged_in.verify_response(
                _assertion(**{"openid.identity": "https://openid.example.com/id/bob"})
            )

    async def test_missing_op_endpoint_rejected(self, logged_in, mock_request):
        params = _assertion()
        del params["openid.op_endpoint"]

        with pytest.raises(InvalidStateException):
            await logged_in.verify_response(params)

        mock_request.assert_not_awaited()

    @pytest.mark.parametrize(
        "signed",
        [
            "op_endpoint,identity,return_to,response_nonce,assoc_handle",
            "op_endpoint,claimed_id,identity,response_nonce,assoc_handle",
            "claimed_id,identity,return_to,response_nonce,assoc_handle",
            "",
        ],
    )
    async def test_unsigned_identifying_fields_rejected(
        self, logged_in, mock_request, signed
    ):
        with pytest.raises(InvalidStateException):
            await logged_in.verify_response(_assertion(**{"openid.signed": signed}))

        mock_request.assert_not_awaited()

    async def test_return_to_mismatch(self, logged_in, mock_request):
        with pytest.raises(InvalidStateException):
            await logged_in.verify_response(
                _assertion(**{"openid.return_to": "http://evil.example.com/cb"})
            )

        mock_request.assert_not_awaited()

    async def test_unexpected_op_endpoint(self, logged_in):
        with pytest.raises(InvalidStateException):
            await logged_in.verify_response(
                _assertion(**{"openid.op_endpoint": "https://evil.example.com/op"})
            )

    async def test_cancel(self, logged_in):
        with pytest.raises(OAuthException) as exc_info:
            await logged_in.verify_response({"openid.mode": "cancel"})

        assert "cancelled" in exc_info.value.message

    async def test_error_mode(self, logged_in):
        with pytest.raises(OAuthException) as exc_info:
            await logged_in.verify_response(
                {"openid.mode": "error", "openid.error": "bad realm"}
            )

        assert "bad realm" in exc_info.value.message

    async def test_missing_mode(self, logged_in):
        with pytest.raises(OAuthException):
            await logged_in.verify_response({})

    async def test_without_login(self):
        with pytest.raises(InvalidStateException):
            await OpenIdProvider(OP_IDENTIFIER).verify_response(_assertion())


class TestVerifyClaimedIdentifier:

    @pytest.fixture
    async def alice_logged_in(self, mock_request, make_response):
        mock_request.return_value = _html(make_response, HTML_LINKS)
        provider = OpenIdProvider("https://alice.example.com/")
        await provider.get_login_redirect_url(CALLBACK)
        mock_request.reset_mock(return_value=True)
        return provider

    async def test_positive_assertion_needs_no_second_discovery(
        self, alice_logged_in, mock_request, make_response
    ):
        mock_request.return_value = make_response(text=IS_VALID)

        profile = await alice_logged_in.verify_response(
            _assertion(
                **{
                    "openid.claimed_id": "https://alice.example.com/",
                    "openid.identity": "https://openid.example.com/u/alice",
                }
            )
        )

        assert profile.validated_id == "https://alice.example.com/"
        assert mock_request.await_args.args == ("POST", OP_ENDPOINT)
        mock_request.assert_awaited_once()

    async def test_claimed_id_must_match_discovered(self, alice_logged_in):
        with pytest.raises(InvalidStateException):
            await alice_logged_in.verify_response(
                _assertion(
                    **{
                        "openid.claimed_id": "https://mallory.example.com/",
                        "openid.identity": "https://openid.example.com/u/alice",
                    }
                )
            )

    async def test_local_id_must_match_discovered(self, alice_logged_in):
        with pytest.raises(InvalidStateException):
            await alice_logged_in.verify_response(
                _assertion(
                    **{
                        "openid.claimed_id": "https://alice.example.com/",
                        "openid.identity": "https://openid.example.com/u/mallory",
                    }
                )
            )


class TestOpenIdEndpoint:

    def test_local_id_defaults_to_claimed_id(self):
        endpoint = OpenIdEndpoint(OP_ENDPOINT, claimed_id="https://a.example.com/")

        assert endpoint.local_id == "https://a.example.com/"
