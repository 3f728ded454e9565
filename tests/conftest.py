"""Shared fixtures: a recording fake transport and canned Keystone responses."""

import json
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional

import pytest
from requests.structures import CaseInsensitiveDict

from kswift.config import Credentials
from kswift.transport import Response

AUTH_URL = "https://identity.example.com/v2.0"
STORAGE_URL = "https://swift.example.com/v1/AUTH_demo"


@dataclass
class SentRequest:
    method: str
    url: str
    headers: Mapping[str, str]
    body: Any = None


def make_response(status: int = 200, body: bytes = b"", headers: Optional[dict] = None) -> Response:
    return Response(status=status, headers=CaseInsensitiveDict(headers or {}), body=iter([body]))


def identity_document(
    token: str = "tok-1",
    expires: Optional[str] = None,
    catalog: Optional[list] = None,
) -> dict:
    if expires is None:
        expires = (datetime.now(timezone.utc) + timedelta(hours=12)).strftime("%Y-%m-%dT%H:%M:%SZ")
    if catalog is None:
        catalog = [
            {"type": "compute", "endpoints": [{"region": "RegionOne", "publicURL": "https://nova"}]},
            {
                "type": "object-store",
                "endpoints": [
                    {"region": "RegionOne", "publicURL": STORAGE_URL},
                    {"region": "RegionTwo", "publicURL": "https://swift2.example.com/v1/AUTH_demo"},
                ],
            },
        ]
    return {
        "access": {
            "token": {"id": token, "expires": expires},
            "serviceCatalog": catalog,
        }
    }


class FakeTransport:
    """Records requests; answers /tokens with an identity document and everything else with 200."""

    def __init__(self, identity: Optional[dict] = None, identity_status: int = 200):
        self.identity = identity if identity is not None else identity_document()
        self.identity_status = identity_status
        self.requests = []
        self.storage_responses = []
        self.closed = False
        self._lock = threading.Lock()

    @property
    def auth_requests(self):
        return [r for r in self.requests if r.url.endswith("/tokens")]

    @property
    def storage_requests(self):
        return [r for r in self.requests if not r.url.endswith("/tokens")]

    def send(self, method, url, headers, body=None):
        with self._lock:
            self.requests.append(SentRequest(method, url, dict(headers), body))
        if url.endswith("/tokens"):
            return make_response(self.identity_status, json.dumps(self.identity).encode())
        if self.storage_responses:
            return self.storage_responses.pop(0)
        return make_response(200)

    def close(self):
        self.closed = True


@pytest.fixture
def credentials():
    return Credentials(
        username="demo",
        password="s3cret",
        tenant_name="demo-project",
        auth_url=AUTH_URL,
    )


@pytest.fixture
def regional_credentials():
    return Credentials(
        username="demo",
        password="s3cret",
        tenant_name="demo-project",
        auth_url=AUTH_URL,
        region="RegionTwo",
    )


@pytest.fixture
def transport():
    return FakeTransport()
