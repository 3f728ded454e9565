"""
Storage operations and the executor that runs them.

Each operation is an immutable description of one Swift API call. The
executor renders it into a path, query string and headers, authorizes it
through an :class:`~kswift.session.Auth` and sends it over a transport.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Tuple, Union
from urllib.parse import quote

from .session import Auth
from .transport import Body, Response, Transport

logger = logging.getLogger(__name__)

AUTH_TOKEN_HEADER = "X-Auth-Token"
ACCOUNT_META_PREFIX = "X-Account-Meta-"
DEFAULT_LIMIT = 10000


class Format(str, Enum):
    JSON = "json"
    XML = "xml"
    PLAIN = "plain"


@dataclass(frozen=True)
class HeadAccount:
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class GetAccount:
    """List the account's containers."""

    marker: Optional[str] = None
    limit: int = DEFAULT_LIMIT
    prefix: Optional[str] = None
    end_marker: Optional[str] = None
    format: Format = Format.JSON
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PostAccount:
    """Update account metadata; keys are sent as ``X-Account-Meta-<key>``."""

    metadata: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class GetContainer:
    """List the objects in a container."""

    container: str
    marker: Optional[str] = None
    limit: int = DEFAULT_LIMIT
    prefix: Optional[str] = None
    delimiter: Optional[str] = None
    end_marker: Optional[str] = None
    path: Optional[str] = None
    format: Format = Format.JSON
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class GetObject:
    container: str
    object: str
    multipart_manifest: bool = False
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PutObject:
    container: str
    object: str
    body: Body = b""
    content_type: Optional[str] = None
    multipart_manifest: bool = False
    headers: Mapping[str, str] = field(default_factory=dict)


Operation = Union[HeadAccount, GetAccount, PostAccount, GetContainer, GetObject, PutObject]


@dataclass(frozen=True)
class RenderedRequest:
    method: str
    path: str
    query: Tuple[Tuple[str, str], ...] = ()
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Optional[Body] = None

    @property
    def query_string(self) -> str:
        return "&".join(f"{name}={quote(value, safe='')}" for name, value in self.query)

    def url(self, storage_url: str) -> str:
        query = self.query_string
        return storage_url + self.path + (f"?{query}" if query else "")


# ----------------------------------------------------------------------
# Rendering
# ----------------------------------------------------------------------


class _Query:
    """Ordered query parameter builder."""

    def __init__(self) -> None:
        self.params: List[Tuple[str, str]] = []

    def add(self, name: str, value) -> None:
        self.params.append((name, str(value)))

    def add_optional(self, name: str, value) -> None:
        if value is not None:
            self.add(name, value)

    def add_format(self, fmt: Format) -> None:
        fmt = Format(fmt)
        if fmt is not Format.PLAIN:
            self.add("format", fmt.value)

    def freeze(self) -> Tuple[Tuple[str, str], ...]:
        return tuple(self.params)


def container_path(container: str) -> str:
    return "/" + quote(container, safe="")


def object_path(container: str, obj: str) -> str:
    return container_path(container) + "/" + quote(obj, safe="/")


def _render_head_account(op: HeadAccount) -> RenderedRequest:
    return RenderedRequest("HEAD", "", headers=dict(op.headers))


def _render_get_account(op: GetAccount) -> RenderedRequest:
    query = _Query()
    query.add("limit", op.limit)
    query.add_optional("marker", op.marker)
    query.add_optional("prefix", op.prefix)
    query.add_optional("end_marker", op.end_marker)
    query.add_format(op.format)
    return RenderedRequest("GET", "", query.freeze(), dict(op.headers))


def _render_post_account(op: PostAccount) -> RenderedRequest:
    headers = dict(op.headers)
    for key, value in op.metadata.items():
        headers[ACCOUNT_META_PREFIX + key] = value
    return RenderedRequest("POST", "", headers=headers)


def _render_get_container(op: GetContainer) -> RenderedRequest:
    query = _Query()
    query.add("limit", op.limit)
    query.add_optional("marker", op.marker)
    query.add_optional("prefix", op.prefix)
    query.add_optional("delimiter", op.delimiter)
    query.add_optional("end_marker", op.end_marker)
    query.add_optional("path", op.path)
    query.add_format(op.format)
    return RenderedRequest("GET", container_path(op.container), query.freeze(), dict(op.headers))


def _render_get_object(op: GetObject) -> RenderedRequest:
    query = _Query()
    if op.multipart_manifest:
        query.add("multipart-manifest", "get")
    return RenderedRequest("GET", object_path(op.container, op.object), query.freeze(), dict(op.headers))


def _render_put_object(op: PutObject) -> RenderedRequest:
    query = _Query()
    if op.multipart_manifest:
        query.add("multipart-manifest", "put")
    headers = dict(op.headers)
    if op.content_type:
        headers["Content-Type"] = op.content_type
    return RenderedRequest("PUT", object_path(op.container, op.object), query.freeze(), headers, op.body)


_RENDERERS: Dict[type, Callable[..., RenderedRequest]] = {
    HeadAccount: _render_head_account,
    GetAccount: _render_get_account,
    PostAccount: _render_post_account,
    GetContainer: _render_get_container,
    GetObject: _render_get_object,
    PutObject: _render_put_object,
}


def render(operation: Operation) -> RenderedRequest:
    """Render an operation into method, path, query and headers (no auth)."""
    try:
        renderer = _RENDERERS[type(operation)]
    except KeyError:
        raise TypeError(f"Unsupported operation: {type(operation).__name__}") from None
    return renderer(operation)


# ----------------------------------------------------------------------
# Execution
# ----------------------------------------------------------------------


def execute(operation: Operation, auth: Auth, transport: Transport) -> Response:
    """
    Authorize and send one operation.

    Args:
        operation: The operation to run.
        auth: Source of the token and storage URL.
        transport: Transport that performs the HTTP exchange.

    Returns:
        The transport's response, unmodified.

    Raises:
        AuthError: If no token could be obtained; nothing is sent.
        TransportError: If the request fails at the transport level.
    """
    request = render(operation)
    token, storage_url = auth.acquire()

    headers = dict(request.headers)
    headers[AUTH_TOKEN_HEADER] = token
    url = request.url(storage_url)
    logger.debug("Request URL: %s %s", request.method, url)
    return transport.send(request.method, url, headers, request.body)
