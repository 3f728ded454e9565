"""HTTP transport and JSON codec used by kswift.

Both are small collaborators behind protocols so that the session and
operation layers never touch ``requests`` or ``json`` directly.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import IO, Any, Callable, Iterable, Iterator, Mapping, Optional, Protocol, Union

import requests
from requests.structures import CaseInsensitiveDict

from .exceptions import DecodingError, EncodingError, TransportError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

Body = Union[bytes, str, IO[bytes], Iterable[bytes]]


@dataclass
class Response:
    """
    Status, headers and a lazily consumed body stream.

    Close the response (or use it as a context manager) when the body is not
    read to the end, so the underlying connection goes back to the pool.
    """

    status: int
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    body: Iterator[bytes] = field(default_factory=lambda: iter(()))
    on_close: Optional[Callable[[], None]] = field(default=None, repr=False)
    _content: Optional[bytes] = field(default=None, init=False, repr=False)

    @property
    def ok(self) -> bool:
        return self.status < 400

    def read(self) -> bytes:
        """Drain the body stream and return its bytes (cached after first call)."""
        if self._content is None:
            self._content = b"".join(self.body)
        return self._content

    def text(self, encoding: str = "utf-8") -> str:
        return self.read().decode(encoding)

    def json(self) -> Any:
        """
        Decode the body as JSON.

        Raises:
            DecodingError: If the body is not valid JSON.
        """
        return JsonCodec().decode(self.read())

    def close(self) -> None:
        close_body = getattr(self.body, "close", None)
        if close_body is not None:
            close_body()
        if self.on_close is not None:
            self.on_close()

    def __enter__(self) -> "Response":
        return self

    def __exit__(self, *_) -> None:
        self.close()


class Transport(Protocol):
    """Sends one HTTP request and returns its response."""

    def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: Optional[Body] = None,
    ) -> Response:
        """
        Send a request.

        Raises:
            TransportError: If the request could not be sent or read.
        """
        ...

    def close(self) -> None:
        ...


class Codec(Protocol):
    """Encodes payloads to text and decodes text back to structured values."""

    def encode(self, payload: Any) -> str:
        ...

    def decode(self, text: Union[str, bytes]) -> Any:
        ...


class JsonCodec:
    """Codec backed by the standard ``json`` module."""

    def encode(self, payload: Any) -> str:
        try:
            return json.dumps(payload, separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            raise EncodingError(f"Failed to encode JSON body: {exc}", original=exc) from exc

    def decode(self, text: Union[str, bytes]) -> Any:
        try:
            return json.loads(text)
        except (TypeError, ValueError) as exc:
            raise DecodingError(f"Failed to decode JSON object: {exc}", original=exc) from exc


class RequestsTransport:
    """Transport built on a pooled ``requests.Session``."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.timeout = timeout
        self._session = session or requests.Session()
        if user_agent:
            self._session.headers["User-Agent"] = user_agent

    def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: Optional[Body] = None,
    ) -> Response:
        try:
            resp = self._session.request(
                method,
                url,
                headers=dict(headers),
                data=body,
                timeout=self.timeout,
                stream=True,
            )
        except requests.RequestException as exc:
            raise TransportError(f"{method} {url} failed: {exc}", original=exc) from exc

        logger.debug("%s %s -> %s", method, url, resp.status_code)
        return Response(
            status=resp.status_code,
            headers=CaseInsensitiveDict(resp.headers),
            body=self._iter_body(resp),
            on_close=resp.close,
        )

    @staticmethod
    def _iter_body(resp: requests.Response) -> Iterator[bytes]:
        try:
            for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                if chunk:
                    yield chunk
        except requests.RequestException as exc:
            raise TransportError(f"Reading response from {resp.url} failed: {exc}", original=exc) from exc
        finally:
            resp.close()

    def close(self) -> None:
        self._session.close()
