"""
Source resolution: turn a ``Source`` into a wire-ready ``TransportBody``.

``resolve`` is an async context manager so that anything it opens (the file
behind a ``LocalPath``) is closed when the request finishes, fails, or is
cancelled. Caller-supplied streams are read but never closed here.
"""

from __future__ import annotations

import asyncio
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, BinaryIO

from oxford.core.errors import InvalidSource, SourceReadError
from oxford.core.logger import get_logger
from oxford.schemas.source import BufferSource, LocalPath, RemoteUrl, Source, StreamSource
from oxford.schemas.transport import BINARY_CONTENT_TYPE, JSON_CONTENT_TYPE, TransportBody

log = get_logger(__name__)

CHUNK_SIZE = 1024 * 1024
# Files up to this size are sent as a single buffer; larger ones are streamed.
STREAM_THRESHOLD = 8 * 1024 * 1024


def _open_local(path: Path) -> tuple[BinaryIO, int]:
    try:
        fh = path.open("rb")
    except OSError as e:
        raise SourceReadError(str(path), e.strerror or type(e).__name__) from e
    try:
        size = os.fstat(fh.fileno()).st_size
    except OSError as e:
        fh.close()
        raise SourceReadError(str(path), e.strerror or type(e).__name__) from e
    return fh, size


async def _aiter_file(fh: Any) -> AsyncIterator[bytes]:
    while True:
        chunk = await asyncio.to_thread(fh.read, CHUNK_SIZE)
        if not chunk:
            break
        yield chunk


async def _aiter_sync(iterable: Any) -> AsyncIterator[bytes]:
    for chunk in iterable:
        yield bytes(chunk)


def _stream_content(stream: Any) -> Any:
    if isinstance(stream, (bytes, bytearray, memoryview)):
        return bytes(stream)
    if hasattr(stream, "__aiter__"):
        return stream
    if hasattr(stream, "read"):
        return _aiter_file(stream)
    if hasattr(stream, "__iter__"):
        return _aiter_sync(stream)
    raise InvalidSource(f"Unsupported stream type: {type(stream).__name__}")


@asynccontextmanager
async def resolve(source: Source) -> AsyncIterator[TransportBody]:
    if isinstance(source, RemoteUrl):
        yield TransportBody(content_type=JSON_CONTENT_TYPE, json={"url": source.url})
        return

    if isinstance(source, BufferSource):
        yield TransportBody(content_type=BINARY_CONTENT_TYPE, content=source.data)
        return

    if isinstance(source, StreamSource):
        yield TransportBody(content_type=BINARY_CONTENT_TYPE, content=_stream_content(source.stream))
        return

    if isinstance(source, LocalPath):
        fh, size = await asyncio.to_thread(_open_local, source.path)
        try:
            if size <= STREAM_THRESHOLD:
                try:
                    data = await asyncio.to_thread(fh.read)
                except OSError as e:
                    raise SourceReadError(str(source.path), e.strerror or type(e).__name__) from e
                yield TransportBody(content_type=BINARY_CONTENT_TYPE, content=data)
            else:
                log.debug("Streaming %s (%d bytes)", source.path, size)
                yield TransportBody(
                    content_type=BINARY_CONTENT_TYPE,
                    content=_aiter_file(fh),
                    content_length=size,
                )
        finally:
            fh.close()
        return

    raise InvalidSource(f"Unsupported source type: {type(source).__name__}")
