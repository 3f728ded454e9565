"""Tests for the Keystone v2 authenticator."""

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from conftest import AUTH_URL, STORAGE_URL, FakeTransport, identity_document, make_response
from kswift.auth import AuthResult, KeystoneV2Authenticator, build_auth_payload, parse_expiry
from kswift.config import Credentials
from kswift.exceptions import (
    ContentError,
    DecodingError,
    EncodingError,
    ExpiryParseError,
    RegionNotFoundError,
    TransportError,
)


class TestAuthPayload:
    def test_payload_shape(self, credentials):
        assert build_auth_payload(credentials) == {
            "auth": {
                "passwordCredentials": {"username": "demo", "password": "s3cret"},
                "tenantName": "demo-project",
            }
        }

    def test_request_sent_to_tokens_endpoint(self, credentials, transport):
        KeystoneV2Authenticator(credentials, transport).authenticate()

        (request,) = transport.requests
        assert request.method == "POST"
        assert request.url == f"{AUTH_URL}/tokens"
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.body) == build_auth_payload(credentials)

    def test_trailing_slash_on_auth_url(self, transport):
        creds = Credentials("demo", "s3cret", "demo-project", AUTH_URL + "/")
        KeystoneV2Authenticator(creds, transport).authenticate()
        assert transport.requests[0].url == f"{AUTH_URL}/tokens"


class TestAuthenticate:
    def test_success(self, credentials, transport):
        result = KeystoneV2Authenticator(credentials, transport).authenticate()

        assert isinstance(result, AuthResult)
        assert result.token == "tok-1"
        assert result.storage_url == STORAGE_URL
        assert result.expires > datetime.now(timezone.utc)

    def test_region_selects_endpoint(self, regional_credentials, transport):
        result = KeystoneV2Authenticator(regional_credentials, transport).authenticate()
        assert result.storage_url == "https://swift2.example.com/v1/AUTH_demo"

    def test_unknown_region(self, transport):
        creds = Credentials("demo", "s3cret", "demo-project", AUTH_URL, region="Nowhere")
        with pytest.raises(RegionNotFoundError):
            KeystoneV2Authenticator(creds, transport).authenticate()

    def test_repr_hides_token(self, credentials, transport):
        result = KeystoneV2Authenticator(credentials, transport).authenticate()
        assert "tok-1" not in repr(result)

    def test_missing_service_catalog(self, credentials):
        document = identity_document()
        del document["access"]["serviceCatalog"]
        transport = FakeTransport(identity=document)

        with pytest.raises(ContentError, match="Key not found: serviceCatalog"):
            KeystoneV2Authenticator(credentials, transport).authenticate()

    @pytest.mark.parametrize("path", [("access",), ("access", "token"), ("access", "token", "id")])
    def test_missing_required_keys(self, credentials, path):
        document = identity_document()
        target = document
        for key in path[:-1]:
            target = target[key]
        del target[path[-1]]

        with pytest.raises(ContentError, match=f"Key not found: {path[-1]}"):
            KeystoneV2Authenticator(credentials, FakeTransport(identity=document)).authenticate()

    def test_token_id_must_be_string(self, credentials):
        document = identity_document()
        document["access"]["token"]["id"] = 42
        with pytest.raises(ContentError):
            KeystoneV2Authenticator(credentials, FakeTransport(identity=document)).authenticate()

    def test_no_object_store(self, credentials):
        document = identity_document(catalog=[{"type": "compute", "endpoints": []}])
        with pytest.raises(ContentError, match="object-store"):
            KeystoneV2Authenticator(credentials, FakeTransport(identity=document)).authenticate()

    def test_unparsable_expiry(self, credentials):
        document = identity_document(expires="next tuesday")
        with pytest.raises(ExpiryParseError):
            KeystoneV2Authenticator(credentials, FakeTransport(identity=document)).authenticate()

    def test_invalid_json(self, credentials):
        transport = MagicMock()
        transport.send.return_value = make_response(200, b"<html>oops</html>")

        with pytest.raises(DecodingError):
            KeystoneV2Authenticator(credentials, transport).authenticate()

    def test_http_error_with_keystone_message(self, credentials):
        transport = FakeTransport(
            identity={"error": {"code": 401, "message": "The request you have made requires authentication."}},
            identity_status=401,
        )
        with pytest.raises(ContentError, match="HTTP 401: The request you have made requires authentication"):
            KeystoneV2Authenticator(credentials, transport).authenticate()

    def test_http_error_with_non_json_body(self, credentials):
        transport = MagicMock()
        transport.send.return_value = make_response(503, b"Service Unavailable")

        with pytest.raises(ContentError, match="HTTP 503") as excinfo:
            KeystoneV2Authenticator(credentials, transport).authenticate()
        assert isinstance(excinfo.value.original, DecodingError)

    def test_transport_failure_propagates(self, credentials):
        transport = MagicMock()
        transport.send.side_effect = TransportError("connection reset")

        with pytest.raises(TransportError):
            KeystoneV2Authenticator(credentials, transport).authenticate()

    def test_unencodable_payload(self):
        transport = MagicMock()
        creds = Credentials("demo", object(), "demo-project", AUTH_URL)

        with pytest.raises(EncodingError):
            KeystoneV2Authenticator(creds, transport).authenticate()
        transport.send.assert_not_called()


class TestParseExpiry:
    def test_zulu(self):
        assert parse_expiry("2016-05-10T12:00:00Z") == datetime(2016, 5, 10, 12, tzinfo=timezone.utc)

    def test_fractional_seconds(self):
        parsed = parse_expiry("2016-05-10T12:00:00.123456Z")
        assert parsed.microsecond == 123456

    def test_offset_normalized_to_utc(self):
        parsed = parse_expiry("2016-05-10T14:00:00+02:00")
        assert parsed == datetime(2016, 5, 10, 12, tzinfo=timezone.utc)
        assert parsed.utcoffset() == timedelta(0)

    def test_naive_is_utc(self):
        assert parse_expiry("2016-05-10T12:00:00").tzinfo == timezone.utc

    @pytest.mark.parametrize("value", ["soon", "", None, 1462881600])
    def test_rejects_garbage(self, value):
        with pytest.raises(ExpiryParseError):
            parse_expiry(value)
