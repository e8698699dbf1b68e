"""
Entry point: ``Client`` wires one immutable ``ClientConfig`` into a shared
dispatcher and poller, and exposes the per-service clients.

    async with Client(key, Region.WEST_EUROPE) as client:
        faces = await client.face.detect(path="me.jpg")
"""

from __future__ import annotations

import base64
import binascii
from typing import Optional, Union

import httpx

from oxford.api.emotion import EmotionClient
from oxford.api.face import FaceClient
from oxford.api.text import TextClient
from oxford.api.video import VideoClient
from oxford.api.vision import VisionClient
from oxford.api.weblm import WebLMClient
from oxford.core.config import (
    DEFAULT_TEXT_HOST,
    ClientConfig,
    Region,
    Settings,
    get_settings,
    host_from_region,
    resolve_host,
)
from oxford.core.errors import ConfigurationError
from oxford.core.logger import get_logger
from oxford.services.dispatcher import Dispatcher
from oxford.services.poller import BackoffPolicy, Poller

log = get_logger(__name__)

__all__ = ["Client", "Region", "host_from_region", "make_buffer"]

BASE64_MARKER = ";base64,"


def make_buffer(data_url: str) -> bytes:
    """Decode a ``data:<mime>;base64,<payload>`` URL into raw bytes."""
    if BASE64_MARKER not in data_url:
        raise ValueError("non-base64-encoded data URIs are not currently supported")
    payload = data_url.split(BASE64_MARKER, 1)[1]
    try:
        return base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload in data URI: {e}") from e


class Client:
    def __init__(
        self,
        api_key: Optional[str] = None,
        host_or_region: Optional[Union[Region, str]] = None,
        *,
        config: Optional[ClientConfig] = None,
        policy: Optional[BackoffPolicy] = None,
        max_consecutive_errors: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if config is None:
            if not api_key:
                raise ConfigurationError("Tried to initialize Oxford client without API key")
            explicit_host = isinstance(host_or_region, str) and "://" in host_or_region
            host = resolve_host(host_or_region)
            config = ClientConfig(
                api_key=api_key,
                host=host,
                text_host=host if explicit_host else DEFAULT_TEXT_HOST,
            )
        elif not config.api_key:
            raise ConfigurationError("Tried to initialize Oxford client without API key")

        self.config = config
        self._dispatcher = Dispatcher(config, transport=transport, client=http_client)
        self._poller = Poller(self._dispatcher, policy=policy, max_consecutive_errors=max_consecutive_errors)

        self.emotion = EmotionClient(self._dispatcher, self._poller)
        self.face = FaceClient(self._dispatcher, self._poller)
        self.text = TextClient(self._dispatcher, self._poller)
        self.video = VideoClient(self._dispatcher, self._poller)
        self.vision = VisionClient(self._dispatcher, self._poller)
        self.weblm = WebLMClient(self._dispatcher, self._poller)
        log.debug("Oxford client ready for %s", config.host)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs) -> "Client":
        """Build a client from ``OXFORD_*`` / ``POLL_*`` environment settings."""
        s = settings or get_settings()
        kwargs.setdefault("policy", BackoffPolicy.from_settings(s))
        kwargs.setdefault("max_consecutive_errors", s.POLL_MAX_CONSECUTIVE_ERRORS)
        return cls(config=ClientConfig.from_settings(s), **kwargs)

    @property
    def poller(self) -> Poller:
        return self._poller

    async def aclose(self) -> None:
        await self._dispatcher.aclose()

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
