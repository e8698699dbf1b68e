from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

JSON_CONTENT_TYPE = "application/json"
BINARY_CONTENT_TYPE = "application/octet-stream"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass(frozen=True)
class TransportBody:
    """Request body ready for the wire.

    Exactly one of ``json`` / ``content`` / ``form`` is set, or none for
    bodiless requests.
    """

    content_type: Optional[str] = None
    json: Any = None
    content: Any = None  # bytes, file object, or (a)sync byte iterator
    form: Optional[Dict[str, str]] = None
    content_length: Optional[int] = None  # known size of streamed content

    @classmethod
    def empty(cls) -> "TransportBody":
        return cls()


@dataclass(frozen=True)
class RawResponse:
    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    content: bytes = b""

    def header(self, name: str) -> Optional[str]:
        lname = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lname:
                return value
        return None
