from __future__ import annotations

from typing import Any, Optional, Sequence

from oxford.api.base import ServiceClient, endpoint_factory
from oxford.schemas.endpoint import BodyKind
from oxford.schemas.face import FaceRectangle
from oxford.schemas.source import Source, coerce_source

_ep = endpoint_factory("/emotion/v1.0")

RECOGNIZE = _ep("/recognize", body=BodyKind.BINARY)


class EmotionClient(ServiceClient):
    async def analyze_emotion(
        self,
        source: Optional[Source] = None,
        *,
        url: Optional[str] = None,
        path: Optional[str] = None,
        data: Optional[bytes] = None,
        stream: Any = None,
        face_rectangles: Optional[Sequence[FaceRectangle]] = None,
    ) -> Any:
        """Recognize emotions; restrict to known faces with ``face_rectangles``."""
        src = coerce_source(source, url=url, path=path, data=data, stream=stream)
        rects = ";".join(r.as_query() for r in face_rectangles) if face_rectangles else None
        return await self._upload(RECOGNIZE, src, {"faceRectangles": rects})
