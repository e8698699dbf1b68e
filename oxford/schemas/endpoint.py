from __future__ import annotations

from enum import Enum
from typing import Any
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict


class BodyKind(str, Enum):
    NONE = "none"
    JSON = "json"
    # image/video upload: raw bytes, or a {"url": ...} JSON body for remote sources
    BINARY = "binary"
    FORM = "form"


class Endpoint(BaseModel):
    """Static description of one remote operation."""

    model_config = ConfigDict(frozen=True)

    service: str  # e.g. "/face/v1.0"
    path: str = ""  # may contain {placeholders}
    method: str = "POST"
    body: BodyKind = BodyKind.JSON
    binary_response: bool = False
    # served from the separate text (Bing) host rather than the regional one
    text_host: bool = False

    def build_url(self, host: str, **params: Any) -> str:
        quoted = {k: quote(str(v), safe="") for k, v in params.items()}
        return f"{host}{self.service}{self.path.format(**quoted)}"
