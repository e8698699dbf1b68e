from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from oxford.core.errors import InvalidSource


class RemoteUrl(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["url"] = "url"
    url: str = Field(min_length=1)


class LocalPath(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["path"] = "path"
    path: Path


class BufferSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["data"] = "data"
    data: bytes = Field(min_length=1)


class StreamSource(BaseModel):
    """A readable binary stream: file object, sync or async byte iterator."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: Literal["stream"] = "stream"
    stream: Any


Source = Union[RemoteUrl, LocalPath, BufferSource, StreamSource]
SOURCE_TYPES = (RemoteUrl, LocalPath, BufferSource, StreamSource)


def source_from_options(
    url: Optional[str] = None,
    path: Optional[Union[str, Path]] = None,
    data: Optional[Union[bytes, bytearray, memoryview]] = None,
    stream: Any = None,
) -> Source:
    """Build exactly one source variant from keyword options.

    Empty strings and empty buffers count as absent. Supplying more than one
    variant is rejected instead of silently preferring one of them.
    """
    given = {
        name: value
        for name, value in (("url", url), ("path", path), ("data", data), ("stream", stream))
        if value is not None and not (isinstance(value, (str, bytes, bytearray, memoryview)) and len(value) == 0)
    }
    if not given:
        raise InvalidSource("One of url, path, data or stream must be supplied")
    if len(given) > 1:
        raise InvalidSource(f"Ambiguous source, exactly one expected but got: {', '.join(sorted(given))}")

    if "url" in given:
        return RemoteUrl(url=url)
    if "path" in given:
        return LocalPath(path=Path(path))
    if "data" in given:
        return BufferSource(data=bytes(data))
    return StreamSource(stream=stream)


def coerce_source(source: Optional[Source] = None, **options: Any) -> Source:
    """Accept either a ready-made ``Source`` or url/path/data/stream keywords."""
    extra = {k: v for k, v in options.items() if v is not None}
    if source is not None:
        if extra:
            raise InvalidSource("Pass either a Source or url/path/data/stream keywords, not both")
        if not isinstance(source, SOURCE_TYPES):
            raise InvalidSource(f"Unsupported source type: {type(source).__name__}")
        return source
    return source_from_options(**options)
