"""
Computer Vision API client: image analysis, thumbnails, OCR, handwriting
recognition (long-running) and domain-specific models.
"""

from __future__ import annotations

import asyncio
from typing import Any, Iterable, Optional, Union

from oxford.api.base import ServiceClient, endpoint_factory
from oxford.schemas.endpoint import BodyKind
from oxford.schemas.operation import OperationHandle, OperationStatus
from oxford.schemas.source import Source, coerce_source
from oxford.schemas.vision import VisualFeature, visual_features_query
from oxford.services.poller import BackoffPolicy

_ep = endpoint_factory("/vision/v1.0")

ANALYZE = _ep("/analyze", body=BodyKind.BINARY)
THUMBNAIL = _ep("/generateThumbnail", body=BodyKind.BINARY, binary_response=True)
OCR = _ep("/ocr", body=BodyKind.BINARY)
RECOGNIZE_TEXT = _ep("/recognizeText", body=BodyKind.BINARY)
MODELS = _ep("/models", "GET", BodyKind.NONE)
MODEL_ANALYZE = _ep("/models/{model}/analyze", body=BodyKind.BINARY)


class VisionModelsClient(ServiceClient):
    async def list(self) -> Any:
        """List the domain-specific image analysis models."""
        return await self._call(MODELS)

    async def analyze_image(
        self,
        model: str,
        source: Optional[Source] = None,
        *,
        url: Optional[str] = None,
        path: Optional[str] = None,
        data: Optional[bytes] = None,
        stream: Any = None,
    ) -> Any:
        src = coerce_source(source, url=url, path=path, data=data, stream=stream)
        return await self._upload(MODEL_ANALYZE, src, path={"model": model})


class VisionClient(ServiceClient):
    def __init__(self, dispatcher, poller) -> None:
        super().__init__(dispatcher, poller)
        self.models = VisionModelsClient(dispatcher, poller)

    async def analyze_image(
        self,
        source: Optional[Source] = None,
        *,
        url: Optional[str] = None,
        path: Optional[str] = None,
        data: Optional[bytes] = None,
        stream: Any = None,
        features: Iterable[Union[VisualFeature, str]] = (),
    ) -> Any:
        src = coerce_source(source, url=url, path=path, data=data, stream=stream)
        return await self._upload(ANALYZE, src, {"visualFeatures": visual_features_query(features)})

    async def thumbnail(
        self,
        sink: Any,
        source: Optional[Source] = None,
        *,
        url: Optional[str] = None,
        path: Optional[str] = None,
        data: Optional[bytes] = None,
        stream: Any = None,
        width: int = 50,
        height: int = 50,
        smart_cropping: bool = False,
    ) -> None:
        """Generate a thumbnail and write the image bytes into ``sink``."""
        src = coerce_source(source, url=url, path=path, data=data, stream=stream)
        query = {"width": width, "height": height, "smartCropping": smart_cropping}
        await self._upload_to_sink(THUMBNAIL, src, sink, query)

    async def ocr(
        self,
        source: Optional[Source] = None,
        *,
        url: Optional[str] = None,
        path: Optional[str] = None,
        data: Optional[bytes] = None,
        stream: Any = None,
        language: str = "unk",
        detect_orientation: bool = True,
    ) -> Any:
        src = coerce_source(source, url=url, path=path, data=data, stream=stream)
        return await self._upload(OCR, src, {"language": language, "detectOrientation": detect_orientation})

    async def recognize_text(
        self,
        source: Optional[Source] = None,
        *,
        url: Optional[str] = None,
        path: Optional[str] = None,
        data: Optional[bytes] = None,
        stream: Any = None,
        handwriting: bool = True,
    ) -> OperationHandle:
        """Submit handwritten (or printed) text recognition; returns a handle to poll."""
        src = coerce_source(source, url=url, path=path, data=data, stream=stream)
        return await self._submit(RECOGNIZE_TEXT, src, {"handwriting": handwriting})

    async def get_text_operation_result(self, handle: OperationHandle) -> OperationStatus:
        return await self._poller.poll(handle)

    async def wait_for_text(
        self,
        handle: OperationHandle,
        policy: Optional[BackoffPolicy] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> OperationStatus:
        return await self._poller.wait(handle, policy=policy, cancel=cancel)
