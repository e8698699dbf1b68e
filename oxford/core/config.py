from __future__ import annotations

import os
from enum import Enum
from functools import lru_cache
from typing import Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TEXT_HOST = "https://api.cognitive.microsoft.com"
KEY_HEADER = "Ocp-Apim-Subscription-Key"
USER_AGENT = "python-oxford/1.0.0"


class Region(str, Enum):
    """Regions hosting the Cognitive Services APIs."""

    EAST_US_2 = "eastus2"
    FREE_TRIAL = "westcentralus"
    SOUTHEAST_ASIA = "southeastasia"
    WEST_CENTRAL_US = "westcentralus"
    WEST_EUROPE = "westeurope"
    WEST_US = "westus"


def host_from_region(region: Union[Region, str]) -> str:
    value = region.value if isinstance(region, Region) else region
    return f"https://{value}.api.cognitive.microsoft.com"


def resolve_host(host_or_region: Optional[Union[Region, str]] = None) -> str:
    """Turn a region name or a full host URL into a base URL.

    Anything with a scheme is treated as a host; a bare word is a region.
    Defaults to the West US region.
    """
    if not host_or_region:
        return host_from_region(Region.WEST_US)
    if isinstance(host_or_region, Region):
        return host_from_region(host_or_region)
    if "://" in host_or_region:
        return host_or_region.rstrip("/")
    return host_from_region(host_or_region.strip())


class Settings(BaseSettings):
    # Credentials / hosts
    OXFORD_KEY: str = ""
    OXFORD_HOST: str = ""  # full host URL or a bare region name
    OXFORD_TEXT_HOST: str = ""

    # HTTP
    OXFORD_TIMEOUT: float = 30.0
    OXFORD_USER_AGENT: str = USER_AGENT

    # Long-running operation polling
    POLL_INITIAL_INTERVAL: float = 1.0
    POLL_BACKOFF_FACTOR: float = 1.8
    POLL_MAX_INTERVAL: float = 30.0
    POLL_MAX_WAIT: float = 1800.0
    POLL_MAX_CONSECUTIVE_ERRORS: int = 3

    # General
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Ensure .env is loaded once
    load_dotenv(override=False)
    return Settings()


class ClientConfig(BaseModel):
    """Immutable per-client configuration threaded through every component.

    Built once by :class:`oxford.client.Client` and never mutated afterwards;
    the dispatcher and poller only read from it.
    """

    model_config = ConfigDict(frozen=True)

    api_key: str = Field(repr=False)
    host: str
    text_host: str = DEFAULT_TEXT_HOST
    timeout: float = 30.0
    key_header: str = KEY_HEADER
    user_agent: str = USER_AGENT

    @field_validator("host", "text_host")
    @classmethod
    def _strip_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **overrides) -> "ClientConfig":
        s = settings or get_settings()
        host = resolve_host(s.OXFORD_HOST or None)
        # a full host URL serves every API, spell check included
        default_text_host = host if "://" in s.OXFORD_HOST else DEFAULT_TEXT_HOST
        values = {
            "api_key": s.OXFORD_KEY,
            "host": host,
            "text_host": s.OXFORD_TEXT_HOST or default_text_host,
            "timeout": s.OXFORD_TIMEOUT,
            "user_agent": s.OXFORD_USER_AGENT,
        }
        values.update(overrides)
        return cls(**values)
