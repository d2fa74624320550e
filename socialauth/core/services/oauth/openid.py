"""
OpenID 2.0 relying party (stateless mode).

The provider id of a session can be any OpenID identifier URL, either an OP
identifier (``https://openid.example.com/``, the user picks an account at
the OP) or a claimed identifier (``https://alice.example.com/``).

Flow:
    1. Discovery: XRDS document (direct or through ``X-XRDS-Location``),
       falling back to ``<link rel="openid2.provider">`` in HTML.
    2. ``checkid_setup`` redirect requesting Attribute Exchange and Simple
       Registration fields.
    3. The positive assertion must come from the discovered OP endpoint and
       sign its identifying fields. When the OP chose the identity, discovery
       on the asserted claimed id must lead back to that same endpoint.
    4. The assertion is confirmed with the OP through a direct
       ``check_authentication`` request before any attribute is trusted.
"""

from collections.abc import Mapping
from html.parser import HTMLParser
from urllib.parse import urlencode, urldefrag, urlsplit
from xml.etree import ElementTree

from socialauth.core.config import auth_logger, settings
from socialauth.core.enums import ProviderFamily
from socialauth.core.exceptions.types import InvalidStateException, OAuthException
from socialauth.core.services.oauth.base import BaseAuthProvider, Profile


__all__ = [
    "OpenIdProvider",
    "OpenIdEndpoint",
    "parse_key_value_form",
]

OPENID2_NS = "http://specs.openid.net/auth/2.0"
IDENTIFIER_SELECT = "http://specs.openid.net/auth/2.0/identifier_select"
SERVER_TYPE = "http://specs.openid.net/auth/2.0/server"
SIGNON_TYPE = "http://specs.openid.net/auth/2.0/signon"
AX_NS = "http://openid.net/srv/ax/1.0"
SREG_NS = "http://openid.net/extensions/sreg/1.1"
XRD_NS = "xri://$xrd*($v*2.0)"

# alias -> attribute type URI
AX_ATTRIBUTES: dict[str, str] = {
    "email": "http://axschema.org/contact/email",
    "firstname": "http://axschema.org/namePerson/first",
    "lastname": "http://axschema.org/namePerson/last",
    "fullname": "http://axschema.org/namePerson",
    "nickname": "http://axschema.org/namePerson/friendly",
    "country": "http://axschema.org/contact/country/home",
    "language": "http://axschema.org/pref/language",
    "gender": "http://axschema.org/person/gender",
    "dob": "http://axschema.org/birthDate",
    "image": "http://axschema.org/media/image/default",
}
AX_REQUIRED = ("email", "firstname", "lastname")
SREG_FIELDS = ("nickname", "email", "fullname", "dob", "gender", "country", "language")
# Fields the OP signature must cover in a positive assertion
SIGNED_FIELDS = (
    "op_endpoint",
    "return_to",
    "response_nonce",
    "assoc_handle",
    "claimed_id",
    "identity",
)


def parse_key_value_form(body: str) -> dict[str, str]:
    """Parse an OpenID key-value form response (``key:value`` per line)."""
    result: dict[str, str] = {}
    for line in body.splitlines():
        key, sep, value = line.partition(":")
        if sep:
            result[key.strip()] = value.strip()
    return result


class _LinkRelParser(HTMLParser):
    """Collects ``<link rel=... href=...>`` values from the document head."""

    def __init__(self) -> None:
        super().__init__()
        self.links: dict[str, str] = {}

    def handle_starttag(self, tag, attrs):
        if tag != "link":
            return
        attr_map = {k.lower(): v for k, v in attrs if v is not None}
        href = attr_map.get("href")
        if not href:
            return
        for rel in attr_map.get("rel", "").split():
            self.links.setdefault(rel.lower(), href)


class OpenIdEndpoint:
    """Result of discovery: where to send the user and for which identifier."""

    def __init__(
        self,
        op_endpoint: str,
        claimed_id: str | None = None,
        local_id: str | None = None,
    ):
        self.op_endpoint = op_endpoint
        # None means OP identifier: the OP chooses the identity
        self.claimed_id = claimed_id
        self.local_id = local_id or claimed_id

    def __repr__(self) -> str:
        return (
            f"OpenIdEndpoint(op_endpoint={self.op_endpoint!r}, "
            f"claimed_id={self.claimed_id!r})"
        )


class OpenIdProvider(BaseAuthProvider):
    """OpenID 2.0 provider bound to one identifier URL."""

    provider_name: str = "openid"
    family = ProviderFamily.OPENID

    def __init__(self, identifier: str) -> None:
        super().__init__()
        self.identifier = identifier
        self._endpoint: OpenIdEndpoint | None = None
        self._return_to: str | None = None

    def _fail(self, message: str) -> OAuthException:
        return OAuthException(message=message, provider=self.provider_name)

    @staticmethod
    def _parse_xrds(
        document: bytes, identifier: str, claimed_only: bool = False
    ) -> OpenIdEndpoint | None:
        try:
            root = ElementTree.fromstring(document)
        except ElementTree.ParseError:
            return None

        services = []
        for service in root.iter(f"{{{XRD_NS}}}Service"):
            types = [t.text.strip() for t in service.findall(f"{{{XRD_NS}}}Type") if t.text]
            uri = service.find(f"{{{XRD_NS}}}URI")
            if uri is None or not uri.text:
                continue
            local_id = service.find(f"{{{XRD_NS}}}LocalID")
            try:
                priority = int(service.get("priority", "1000000"))
            except ValueError:
                priority = 1000000
            services.append(
                (
                    priority,
                    types,
                    uri.text.strip(),
                    local_id.text.strip() if local_id is not None and local_id.text else None,
                )
            )

        services.sort(key=lambda s: s[0])
        # OP identifier services take precedence over claimed identifier ones
        if not claimed_only:
            for _, types, uri, _ in services:
                if SERVER_TYPE in types:
                    return OpenIdEndpoint(op_endpoint=uri)
        for _, types, uri, local_id in services:
            if SIGNON_TYPE in types:
                return OpenIdEndpoint(
                    op_endpoint=uri, claimed_id=identifier, local_id=local_id
                )
        return None

    async def discover(
        self, identifier: str | None = None, claimed_only: bool = False
    ) -> OpenIdEndpoint:
        """
        Find the OP endpoint for ``identifier`` (``self.identifier`` by default).

        With ``claimed_only``, OP identifier services are ignored and only an
        endpoint that may assert ``identifier`` itself is returned.

        Returns:
            OpenIdEndpoint: The discovered endpoint.

        Raises:
            OAuthException: If the identifier cannot be fetched or exposes no
                OpenID 2.0 endpoint.
        """
        identifier, _ = urldefrag(identifier or self.identifier)
        response = await self._send(
            "GET",
            identifier,
            "discovery",
            headers={"Accept": "application/xrds+xml, text/html;q=0.9"},
        )

        endpoint = None
        content_type = response.headers.get("content-type", "")
        if "application/xrds+xml" in content_type:
            endpoint = self._parse_xrds(response.content, identifier, claimed_only)
        elif response.headers.get("x-xrds-location"):
            xrds = await self._send(
                "GET",
                response.headers["x-xrds-location"],
                "discovery",
                headers={"Accept": "application/xrds+xml"},
            )
            endpoint = self._parse_xrds(xrds.content, identifier, claimed_only)

        if endpoint is None:
            parser = _LinkRelParser()
            parser.feed(response.text)
            op_endpoint = parser.links.get("openid2.provider")
            if op_endpoint:
                endpoint = OpenIdEndpoint(
                    op_endpoint=op_endpoint,
                    claimed_id=identifier,
                    local_id=parser.links.get("openid2.local_id"),
                )

        if endpoint is None:
            auth_logger.warning(f"OpenID discovery found no endpoint for {identifier}")
            raise self._fail(f"No OpenID 2.0 endpoint found for {identifier}")

        auth_logger.info(f"OpenID discovery for {identifier}: {endpoint!r}")
        return endpoint

    def _realm(self, return_to_url: str) -> str:
        if settings.OPENID_REALM:
            return settings.OPENID_REALM
        parts = urlsplit(return_to_url)
        return f"{parts.scheme}://{parts.netloc}/"

    async def get_login_redirect_url(self, return_to_url: str) -> str | None:
        """
        Discover the OP and build the ``checkid_setup`` request URL.

        Raises:
            OAuthException: If discovery fails.
        """
        self._endpoint = await self.discover()
        self._return_to = return_to_url

        claimed_id = self._endpoint.claimed_id or IDENTIFIER_SELECT
        local_id = self._endpoint.local_id or IDENTIFIER_SELECT

        params = {
            "openid.ns": OPENID2_NS,
            "openid.mode": "checkid_setup",
            "openid.claimed_id": claimed_id,
            "openid.identity": local_id,
            "openid.return_to": return_to_url,
            "openid.realm": self._realm(return_to_url),
            "openid.ns.ax": AX_NS,
            "openid.ax.mode": "fetch_request",
            "openid.ax.required": ",".join(AX_REQUIRED),
            "openid.ax.if_available": ",".join(
                alias for alias in AX_ATTRIBUTES if alias not in AX_REQUIRED
            ),
            "openid.ns.sreg": SREG_NS,
            "openid.sreg.optional": ",".join(SREG_FIELDS),
        }
        for alias, type_uri in AX_ATTRIBUTES.items():
            params[f"openid.ax.type.{alias}"] = type_uri

        separator = "&" if "?" in self._endpoint.op_endpoint else "?"
        return f"{self._endpoint.op_endpoint}{separator}{urlencode(params)}"

    def _check_assertion(self, params: Mapping[str, str]) -> None:
        if self._return_to is None or self._endpoint is None:
            raise InvalidStateException("No OpenID login is in progress for this session.")
        expected = urlsplit(self._return_to)
        received = urlsplit(params.get("openid.return_to", ""))
        if (expected.scheme, expected.netloc, expected.path) != (
            received.scheme,
            received.netloc,
            received.path,
        ):
            raise InvalidStateException("openid.return_to does not match this login.")

        if params.get("openid.op_endpoint") != self._endpoint.op_endpoint:
            raise InvalidStateException("Assertion comes from an unexpected OP endpoint.")

        if not params.get("openid.claimed_id") or not params.get("openid.identity"):
            raise InvalidStateException("Assertion carries no identifier.")

        signed = set(params.get("openid.signed", "").split(","))
        unsigned = [name for name in SIGNED_FIELDS if name not in signed]
        if unsigned:
            raise InvalidStateException(
                "Assertion does not sign: " + ", ".join(unsigned) + "."
            )

        if self._endpoint.claimed_id is not None:
            claimed, _ = urldefrag(params["openid.claimed_id"])
            if claimed.rstrip("/") != self._endpoint.claimed_id.rstrip("/"):
                raise InvalidStateException("Asserted identifier does not match this login.")
            if params["openid.identity"] != self._endpoint.local_id:
                raise InvalidStateException(
                    "Asserted local identifier does not match this login."
                )

    async def _check_claimed_id(self, params: Mapping[str, str]) -> None:
        """
        Confirm that the OP may assert the identity it chose.

        Only needed when login started from an OP identifier: discovery on the
        asserted claimed id must lead back to the same OP endpoint and local id.
        """
        assert self._endpoint is not None
        if self._endpoint.claimed_id is not None:
            return

        claimed_id = params["openid.claimed_id"]
        try:
            endpoint = await self.discover(claimed_id, claimed_only=True)
        except OAuthException as e:
            raise InvalidStateException(
                f"Asserted identifier {claimed_id} could not be discovered."
            ) from e

        if endpoint.op_endpoint != self._endpoint.op_endpoint:
            auth_logger.warning(
                f"OpenID claimed_id {claimed_id} belongs to {endpoint.op_endpoint}, "
                f"not {self._endpoint.op_endpoint}"
            )
            raise InvalidStateException(
                "OP endpoint is not authorized to assert this identifier."
            )
        if endpoint.local_id != params["openid.identity"]:
            raise InvalidStateException(
                "Asserted local identifier does not match discovery."
            )

    async def _check_authentication(self, params: Mapping[str, str]) -> None:
        assert self._endpoint is not None
        data = {k: v for k, v in params.items() if k.startswith("openid.")}
        data["openid.mode"] = "check_authentication"

        response = await self._send(
            "POST", self._endpoint.op_endpoint, "assertion verification", data=data
        )
        result = parse_key_value_form(response.text)
        if result.get("is_valid") != "true":
            auth_logger.warning(
                f"OpenID assertion rejected by {self._endpoint.op_endpoint}"
            )
            raise self._fail("OpenID assertion could not be verified")

    @staticmethod
    def _extension_alias(params: Mapping[str, str], namespace: str) -> str | None:
        for key, value in params.items():
            if key.startswith("openid.ns.") and value == namespace:
                return key[len("openid.ns."):]
        return None

    @classmethod
    def _ax_values(cls, params: Mapping[str, str]) -> dict[str, str]:
        alias = cls._extension_alias(params, AX_NS)
        if alias is None:
            return {}
        by_type = {type_uri: name for name, type_uri in AX_ATTRIBUTES.items()}
        values: dict[str, str] = {}
        type_prefix = f"openid.{alias}.type."
        for key, type_uri in params.items():
            if not key.startswith(type_prefix) or type_uri not in by_type:
                continue
            response_alias = key[len(type_prefix):]
            value = params.get(f"openid.{alias}.value.{response_alias}")
            if value is None:
                value = params.get(f"openid.{alias}.value.{response_alias}.1")
            if value:
                values[by_type[type_uri]] = value
        return values

    @classmethod
    def _sreg_values(cls, params: Mapping[str, str]) -> dict[str, str]:
        alias = cls._extension_alias(params, SREG_NS)
        if alias is None:
            return {}
        return {
            name: params[f"openid.{alias}.{name}"]
            for name in SREG_FIELDS
            if params.get(f"openid.{alias}.{name}")
        }

    async def verify_response(self, params: Mapping[str, str]) -> Profile:
        """
        Verify a positive assertion and build the profile from AX/SREG data.

        Raises:
            OAuthException: If the user cancelled, the OP reported an error, or
                the OP does not confirm the assertion.
            InvalidStateException: If the assertion does not belong to this login.
        """
        mode = params.get("openid.mode")
        if mode == "cancel":
            raise self._fail("OpenID authentication was cancelled by the user")
        if mode == "error":
            raise self._fail(
                f"OpenID provider error: {params.get('openid.error', 'unknown error')}"
            )
        if mode != "id_res":
            raise self._fail("Missing or unexpected openid.mode in callback")

        self._check_assertion(params)
        await self._check_claimed_id(params)
        await self._check_authentication(params)

        # SREG first so AX values win when both are present
        values = {**self._sreg_values(params), **self._ax_values(params)}
        claimed_id, _ = urldefrag(
            params.get("openid.claimed_id") or params.get("openid.identity", "")
        )

        self._profile = Profile(
            provider_id=self.provider_name,
            validated_id=claimed_id,
            first_name=values.get("firstname"),
            last_name=values.get("lastname"),
            full_name=values.get("fullname"),
            display_name=values.get("nickname"),
            email=values.get("email"),
            gender=values.get("gender"),
            dob=values.get("dob"),
            country=values.get("country"),
            language=values.get("language"),
            profile_image_url=values.get("image"),
            raw_data={k: v for k, v in params.items() if k.startswith("openid.")},
        )
        auth_logger.info(f"OpenID user verified: claimed_id={claimed_id}")
        return self._profile

    async def get_user_profile(self) -> Profile:
        """OpenID has no profile API; the verified assertion is the profile."""
        return self._require_profile()
