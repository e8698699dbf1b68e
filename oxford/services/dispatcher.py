"""
HTTP dispatch (async, httpx) for every Cognitive Services call.

The dispatcher only moves bytes: it attaches the subscription key header,
serializes the query string and body, performs exactly one round trip and
hands back a ``RawResponse``. Status codes are interpreted by the classifier.
"""

from __future__ import annotations

import inspect
from enum import Enum
from typing import Any, Dict, Mapping, Optional

import httpx

from oxford.core.config import ClientConfig
from oxford.core.errors import TransportError
from oxford.core.logger import get_logger
from oxford.schemas.endpoint import BodyKind, Endpoint
from oxford.schemas.transport import RawResponse, TransportBody

log = get_logger(__name__)


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def serialize_query(query: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """Render query values: booleans as true/false, sequences comma-joined, None dropped."""
    out: Dict[str, str] = {}
    for key, value in (query or {}).items():
        if value is None:
            continue
        if isinstance(value, (list, tuple, set, frozenset)):
            out[key] = ",".join(_scalar(v) for v in value)
        else:
            out[key] = _scalar(value)
    return out


def check_body(endpoint: Endpoint, body: Optional[TransportBody]) -> None:
    """Reject a body that does not match the kind the endpoint declares.

    BINARY endpoints take raw bytes or a stream, or the JSON ``{"url": ...}``
    body used for remote images.
    """
    body = body or TransportBody.empty()
    kind = endpoint.body
    if kind is BodyKind.NONE:
        ok = body.json is None and body.content is None and body.form is None
    elif kind is BodyKind.FORM:
        ok = body.form is not None and body.json is None and body.content is None
    elif kind is BodyKind.BINARY:
        remote = isinstance(body.json, dict) and set(body.json) == {"url"}
        ok = body.form is None and (body.content is not None or remote)
    else:
        ok = body.form is None and body.content is None
    if not ok:
        raise ValueError(f"{endpoint.method} {endpoint.service}{endpoint.path} expects a {kind.value} body")


async def _write(sink: Any, chunk: bytes) -> None:
    result = sink.write(chunk)
    if inspect.isawaitable(result):
        await result


class Dispatcher:
    def __init__(
        self,
        config: ClientConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config
        self._transport = transport
        self._aclient: Optional[httpx.AsyncClient] = client
        self._owns_client = client is None

    def _get_async_client(self) -> httpx.AsyncClient:
        if self._aclient is None:
            self._aclient = httpx.AsyncClient(timeout=self.config.timeout, transport=self._transport)
            self._owns_client = True
        return self._aclient

    def _headers(self, body: TransportBody) -> Dict[str, str]:
        headers = {
            self.config.key_header: self.config.api_key,
            "User-Agent": self.config.user_agent,
        }
        if body.content_type:
            headers["Content-Type"] = body.content_type
        if body.content_length is not None:
            headers["Content-Length"] = str(body.content_length)
        return headers

    def url_for(self, endpoint: Endpoint, path_params: Optional[Mapping[str, Any]] = None) -> str:
        host = self.config.text_host if endpoint.text_host else self.config.host
        return endpoint.build_url(host, **(path_params or {}))

    def _build_request(
        self,
        method: str,
        url: str,
        body: Optional[TransportBody],
        query: Optional[Mapping[str, Any]],
    ) -> httpx.Request:
        body = body or TransportBody.empty()
        kwargs: Dict[str, Any] = {}
        if body.json is not None:
            kwargs["json"] = body.json
        elif body.form is not None:
            kwargs["data"] = body.form
        elif body.content is not None:
            kwargs["content"] = body.content
        return self._get_async_client().build_request(
            method,
            url,
            params=serialize_query(query) or None,
            headers=self._headers(body),
            **kwargs,
        )

    async def _send(self, request: httpx.Request, stream: bool = False) -> httpx.Response:
        try:
            return await self._get_async_client().send(request, stream=stream)
        except httpx.TimeoutException as e:
            log.warning("%s %s timed out", request.method, request.url)
            raise TransportError(f"{request.method} {request.url} timed out") from e
        except httpx.HTTPError as e:
            log.warning("%s %s failed: %s", request.method, request.url, e)
            raise TransportError(f"{request.method} {request.url} failed: {e}") from e

    async def request(
        self,
        method: str,
        url: str,
        body: Optional[TransportBody] = None,
        query: Optional[Mapping[str, Any]] = None,
    ) -> RawResponse:
        """Issue one authenticated request against an absolute URL."""
        request = self._build_request(method, url, body, query)
        response = await self._send(request)
        log.debug("%s %s -> %d", method, url, response.status_code)
        return RawResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            content=response.content,
        )

    async def dispatch(
        self,
        endpoint: Endpoint,
        body: Optional[TransportBody] = None,
        query: Optional[Mapping[str, Any]] = None,
        path_params: Optional[Mapping[str, Any]] = None,
    ) -> RawResponse:
        check_body(endpoint, body)
        return await self.request(endpoint.method, self.url_for(endpoint, path_params), body, query)

    async def download(
        self,
        method: str,
        url: str,
        sink: Any,
        body: Optional[TransportBody] = None,
        query: Optional[Mapping[str, Any]] = None,
    ) -> RawResponse:
        """Stream a binary response body into ``sink``.

        ``sink`` needs a ``write(bytes)`` method, sync or async. Only a 200
        body is written; anything else is read into the returned response
        so the classifier can report the error.
        """
        request = self._build_request(method, url, body, query)
        response = await self._send(request, stream=True)
        try:
            if response.status_code != 200:
                content = await response.aread()
                return RawResponse(response.status_code, dict(response.headers), content)
            written = 0
            async for chunk in response.aiter_bytes():
                await _write(sink, chunk)
                written += len(chunk)
            log.debug("%s %s -> %d (%d bytes to sink)", method, url, response.status_code, written)
            return RawResponse(response.status_code, dict(response.headers), b"")
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {url} failed while streaming: {e}") from e
        finally:
            await response.aclose()

    async def aclose(self) -> None:
        if self._aclient is not None and self._owns_client:
            await self._aclient.aclose()
        self._aclient = None
