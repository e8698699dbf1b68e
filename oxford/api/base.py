from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from oxford.core.errors import ApiError
from oxford.schemas.endpoint import BodyKind, Endpoint
from oxford.schemas.operation import OperationHandle
from oxford.schemas.source import Source
from oxford.schemas.transport import JSON_CONTENT_TYPE, TransportBody
from oxford.services.classifier import classify
from oxford.services.dispatcher import Dispatcher, check_body
from oxford.services.poller import Poller
from oxford.services.resolver import resolve


def endpoint_factory(service: str):
    """Return a shorthand for declaring endpoints under one service root."""

    def _ep(path: str, method: str = "POST", body: BodyKind = BodyKind.JSON, **extra: Any) -> Endpoint:
        return Endpoint(service=service, path=path, method=method, body=body, **extra)

    return _ep


def compact(values: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


class ServiceClient:
    """Shared plumbing for the per-service clients: resolve, dispatch, classify."""

    def __init__(self, dispatcher: Dispatcher, poller: Poller) -> None:
        self._dispatcher = dispatcher
        self._poller = poller

    async def _call(
        self,
        endpoint: Endpoint,
        body: Optional[TransportBody] = None,
        query: Optional[Mapping[str, Any]] = None,
        path: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        raw = await self._dispatcher.dispatch(endpoint, body, query, path)
        return classify(raw, expect_binary=endpoint.binary_response).unwrap()

    async def _json(
        self,
        endpoint: Endpoint,
        payload: Any = None,
        query: Optional[Mapping[str, Any]] = None,
        path: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        body = None if payload is None else TransportBody(content_type=JSON_CONTENT_TYPE, json=payload)
        return await self._call(endpoint, body, query, path)

    async def _upload(
        self,
        endpoint: Endpoint,
        source: Source,
        query: Optional[Mapping[str, Any]] = None,
        path: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        async with resolve(source) as body:
            return await self._call(endpoint, body, query, path)

    async def _upload_to_sink(
        self,
        endpoint: Endpoint,
        source: Source,
        sink: Any,
        query: Optional[Mapping[str, Any]] = None,
        path: Optional[Mapping[str, Any]] = None,
    ) -> None:
        url = self._dispatcher.url_for(endpoint, path)
        async with resolve(source) as body:
            check_body(endpoint, body)
            raw = await self._dispatcher.download(endpoint.method, url, sink, body, query)
        classify(raw, expect_binary=True).unwrap()

    async def _submit(
        self,
        endpoint: Endpoint,
        source: Source,
        query: Optional[Mapping[str, Any]] = None,
    ) -> OperationHandle:
        result = await self._upload(endpoint, source, query)
        if not isinstance(result, OperationHandle):
            raise ApiError(
                "MissingOperationLocation",
                "Expected 202 Accepted with an Operation-Location header",
                raw=result,
            )
        return result
