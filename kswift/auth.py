"""
Keystone v2 password authentication.

Posts the tenant's credentials to ``{auth_url}/tokens`` and extracts the
token, its expiry and the object-store URL from the service catalog.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from .catalog import find_key, find_object_store, find_string
from .config import Credentials
from .exceptions import ContentError, DecodingError, ExpiryParseError
from .transport import Codec, JsonCodec, Transport

logger = logging.getLogger(__name__)

JSON_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


@dataclass(frozen=True)
class AuthResult:
    """Outcome of one successful authentication."""

    token: str
    expires: datetime
    storage_url: str

    def __repr__(self) -> str:
        return f"AuthResult(storage_url={self.storage_url!r}, expires={self.expires.isoformat()!r})"


def build_auth_payload(credentials: Credentials) -> dict:
    return {
        "auth": {
            "passwordCredentials": {
                "username": credentials.username,
                "password": credentials.password,
            },
            "tenantName": credentials.tenant_name,
        }
    }


def parse_expiry(value: Any) -> datetime:
    """
    Parse an ISO-8601 expiry such as ``2016-05-10T12:00:00Z``.

    Naive timestamps are taken to be UTC.

    Raises:
        ExpiryParseError: If ``value`` is not a parseable timestamp string.
    """
    if not isinstance(value, str):
        logger.error("Failed to parse auth token expiry time")
        raise ExpiryParseError("Failed to parse auth token expiry time")
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as exc:
        logger.error("Failed to parse auth token expiry time")
        raise ExpiryParseError(f"Failed to parse auth token expiry time: {value!r}", original=exc) from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class KeystoneV2Authenticator:
    """Authenticates against a Keystone v2 identity service."""

    def __init__(
        self,
        credentials: Credentials,
        transport: Transport,
        codec: Optional[Codec] = None,
    ) -> None:
        self.credentials = credentials
        self._transport = transport
        self._codec = codec or JsonCodec()

    @property
    def tokens_url(self) -> str:
        return f"{self.credentials.auth_url.rstrip('/')}/tokens"

    def authenticate(self) -> AuthResult:
        """
        Perform the password handshake.

        Returns:
            The new token, its expiry and the storage URL.

        Raises:
            EncodingError: If the login payload cannot be encoded.
            TransportError: If the identity service cannot be reached.
            DecodingError: If the response is not JSON.
            ContentError: If the response lacks a required field.
        """
        logger.debug("Starting authentication against %s", self.tokens_url)
        body = self._codec.encode(build_auth_payload(self.credentials))
        response = self._transport.send("POST", self.tokens_url, JSON_HEADERS, body)
        with response:
            raw = response.read()

        try:
            document = self._codec.decode(raw)
        except DecodingError as exc:
            if response.status >= 400:
                raise ContentError(f"Identity service returned HTTP {response.status}", original=exc) from exc
            raise

        if response.status >= 400 and not (isinstance(document, dict) and "access" in document):
            raise ContentError(self._describe_failure(response.status, document))

        result = self._parse(document)
        logger.debug("Authenticated; storage URL %s, token expires %s", result.storage_url, result.expires)
        return result

    def _parse(self, document: Any) -> AuthResult:
        access = find_key(document, "access")
        token = find_key(access, "token")
        token_id = find_string(token, "id")
        expires = find_key(token, "expires")
        catalog = find_key(access, "serviceCatalog")

        storage_url = find_object_store(catalog, self.credentials.region)
        return AuthResult(token=token_id, expires=parse_expiry(expires), storage_url=storage_url)

    @staticmethod
    def _describe_failure(status: int, document: Any) -> str:
        message = f"Identity service returned HTTP {status}"
        error = document.get("error") if isinstance(document, dict) else None
        if isinstance(error, dict) and error.get("message"):
            message += f": {error['message']}"
        return message
