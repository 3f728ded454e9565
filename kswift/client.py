"""
kswift client - High-level client for Keystone-authenticated Swift storage.
"""

from __future__ import annotations

from typing import Mapping, Optional

from .auth import KeystoneV2Authenticator
from .config import ClientConfig, Credentials
from .operations import (
    Format,
    GetAccount,
    GetContainer,
    GetObject,
    HeadAccount,
    Operation,
    PostAccount,
    PutObject,
    execute,
)
from .session import Auth, Authorization, SessionManager
from .transport import Body, Codec, JsonCodec, RequestsTransport, Response, Transport


class SwiftClient:
    """
    High-level client for an OpenStack Swift account behind Keystone v2.

    One client may be shared by many threads; they share a single token,
    which is fetched on first use and refreshed before it expires.

    Example usage::

        from kswift import SwiftClient, Credentials

        credentials = Credentials(
            username="demo",
            password="secret",
            tenant_name="demo-project",
            auth_url="https://identity.example.com/v2.0",
            region="RegionOne",
        )
        with SwiftClient(credentials) as client:
            # Account metadata
            print(client.head_account().headers)

            # List containers
            for container in client.get_account().json():
                print(container["name"])

            # Upload and download
            client.put_object("photos", "cat.jpg", open("cat.jpg", "rb"))
            data = client.get_object("photos", "cat.jpg").read()
    """

    def __init__(
        self,
        credentials: Credentials,
        config: Optional[ClientConfig] = None,
        *,
        transport: Optional[Transport] = None,
        codec: Optional[Codec] = None,
        auth: Optional[Auth] = None,
    ) -> None:
        self.credentials = credentials
        self.config = config or ClientConfig()
        self._transport = transport or RequestsTransport(
            timeout=self.config.timeout,
            user_agent=self.config.user_agent,
        )
        self.auth = auth or self._build_session(codec or JsonCodec())

    @classmethod
    def from_env(cls, config: Optional[ClientConfig] = None, **kwargs) -> "SwiftClient":
        """Create a client from the ``OS_*`` environment variables."""
        return cls(Credentials.from_env(), config, **kwargs)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _build_session(self, codec: Codec) -> SessionManager:
        authenticator = KeystoneV2Authenticator(self.credentials, self._transport, codec)
        return SessionManager(
            authenticator,
            refresh_margin=self.config.refresh_margin,
            policy=self.config.refresh_policy,
            lock_timeout=self.config.lock_timeout,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def execute(self, operation: Operation) -> Response:
        """
        Run a single operation.

        Raises:
            AuthError: If a token could not be obtained.
            TransportError: If the request failed at the transport level.
        """
        return execute(operation, self.auth, self._transport)

    def authorization(self) -> Authorization:
        """Return the current token and storage URL, authenticating if needed."""
        return self.auth.acquire()

    def head_account(self, headers: Optional[Mapping[str, str]] = None) -> Response:
        """Fetch account metadata (container count, object count, bytes used)."""
        return self.execute(HeadAccount(headers=dict(headers or {})))

    def get_account(
        self,
        *,
        marker: Optional[str] = None,
        limit: int = 10000,
        prefix: Optional[str] = None,
        end_marker: Optional[str] = None,
        format: Format = Format.JSON,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Response:
        """
        List containers in the account.

        Args:
            marker: Return containers after this name.
            limit: Maximum number of containers to return.
            prefix: Only containers whose names start with this prefix.
            end_marker: Return containers before this name.
            format: Listing format; ``Format.PLAIN`` gives one name per line.
            headers: Extra request headers.
        """
        return self.execute(
            GetAccount(
                marker=marker,
                limit=limit,
                prefix=prefix,
                end_marker=end_marker,
                format=format,
                headers=dict(headers or {}),
            )
        )

    def post_account(
        self,
        metadata: Optional[Mapping[str, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Response:
        """Set account metadata; each key becomes an ``X-Account-Meta-<key>`` header."""
        return self.execute(PostAccount(metadata=dict(metadata or {}), headers=dict(headers or {})))

    def get_container(
        self,
        container: str,
        *,
        marker: Optional[str] = None,
        limit: int = 10000,
        prefix: Optional[str] = None,
        delimiter: Optional[str] = None,
        end_marker: Optional[str] = None,
        path: Optional[str] = None,
        format: Format = Format.JSON,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Response:
        """
        List objects in a container.

        Args:
            container: Container name.
            marker: Return objects after this name.
            limit: Maximum number of objects to return.
            prefix: Only objects whose names start with this prefix.
            delimiter: Roll up names sharing a prefix up to this character.
            end_marker: Return objects before this name.
            path: Pseudo-directory to list.
            format: Listing format.
            headers: Extra request headers.
        """
        return self.execute(
            GetContainer(
                container=container,
                marker=marker,
                limit=limit,
                prefix=prefix,
                delimiter=delimiter,
                end_marker=end_marker,
                path=path,
                format=format,
                headers=dict(headers or {}),
            )
        )

    def get_object(
        self,
        container: str,
        object_name: str,
        *,
        multipart_manifest: bool = False,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Response:
        """
        Download an object.

        Args:
            container: Container name.
            object_name: Object name; ``/`` is kept as a path separator.
            multipart_manifest: Fetch a large object's manifest instead of its content.
            headers: Extra request headers (e.g. ``Range``).

        Returns:
            The response; its body is streamed until read.
        """
        return self.execute(
            GetObject(
                container=container,
                object=object_name,
                multipart_manifest=multipart_manifest,
                headers=dict(headers or {}),
            )
        )

    def put_object(
        self,
        container: str,
        object_name: str,
        data: Body,
        *,
        content_type: Optional[str] = None,
        multipart_manifest: bool = False,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Response:
        """
        Upload an object.

        Args:
            container: Container name.
            object_name: Object name.
            data: Bytes, text, a file-like object or an iterator of byte chunks.
            content_type: Value for the ``Content-Type`` header.
            multipart_manifest: Upload ``data`` as a static large object manifest.
            headers: Extra request headers (e.g. ``X-Object-Meta-*``).
        """
        return self.execute(
            PutObject(
                container=container,
                object=object_name,
                body=data,
                content_type=content_type,
                multipart_manifest=multipart_manifest,
                headers=dict(headers or {}),
            )
        )

    # ------------------------------------------------------------------
    # Context manager support
    # ------------------------------------------------------------------

    def close(self) -> None:
        self._transport.close()

    def __enter__(self) -> "SwiftClient":
        return self

    def __exit__(self, *_) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"SwiftClient(tenant={self.credentials.tenant_name!r}, "
            f"auth_url={self.credentials.auth_url!r})"
        )
