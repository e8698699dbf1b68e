"""
Video API client.

Every processor (face tracking, motion detection, stabilization) is a
long-running operation: submission returns an ``OperationHandle`` and the
result is fetched through ``VideoClient.result``. Stabilization produces a
video; its ``resource_location`` is downloaded with ``result.get_video``.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from oxford.api.base import ServiceClient, endpoint_factory
from oxford.schemas.endpoint import BodyKind
from oxford.schemas.operation import OperationHandle, OperationStatus
from oxford.schemas.source import Source, coerce_source
from oxford.services.classifier import classify
from oxford.services.poller import BackoffPolicy

_ep = endpoint_factory("/video/v1.0")

TRACK_FACE = _ep("/trackface", body=BodyKind.BINARY)
DETECT_MOTION = _ep("/detectmotion", body=BodyKind.BINARY)
STABILIZE = _ep("/stabilize", body=BodyKind.BINARY)


class VideoResultClient(ServiceClient):
    async def get(self, handle: OperationHandle) -> OperationStatus:
        """Check an operation once."""
        return await self._poller.poll(handle)

    async def wait(
        self,
        handle: OperationHandle,
        policy: Optional[BackoffPolicy] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> OperationStatus:
        return await self._poller.wait(handle, policy=policy, cancel=cancel)

    async def get_video(self, resource_location: str, sink: Any) -> None:
        """Download a processed video into ``sink`` with the API key attached."""
        raw = await self._dispatcher.download("GET", resource_location, sink)
        classify(raw, expect_binary=True).unwrap()


class VideoClient(ServiceClient):
    def __init__(self, dispatcher, poller) -> None:
        super().__init__(dispatcher, poller)
        self.result = VideoResultClient(dispatcher, poller)

    async def track_face(
        self,
        source: Optional[Source] = None,
        *,
        url: Optional[str] = None,
        path: Optional[str] = None,
        stream: Any = None,
    ) -> OperationHandle:
        src = coerce_source(source, url=url, path=path, stream=stream)
        return await self._submit(TRACK_FACE, src)

    async def detect_motion(
        self,
        source: Optional[Source] = None,
        *,
        url: Optional[str] = None,
        path: Optional[str] = None,
        stream: Any = None,
    ) -> OperationHandle:
        src = coerce_source(source, url=url, path=path, stream=stream)
        return await self._submit(DETECT_MOTION, src)

    async def stabilize(
        self,
        source: Optional[Source] = None,
        *,
        url: Optional[str] = None,
        path: Optional[str] = None,
        stream: Any = None,
    ) -> OperationHandle:
        src = coerce_source(source, url=url, path=path, stream=stream)
        return await self._submit(STABILIZE, src)
