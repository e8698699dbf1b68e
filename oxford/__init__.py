"""Project Oxford (Microsoft Cognitive Services) client package.

Subpackages:
- api: per-service clients (face, vision, emotion, text, video, weblm)
- core: configuration, logging and the error taxonomy
- services: source resolution, HTTP dispatch, response classification,
  long-running operation polling
- schemas: Pydantic models for sources, endpoints, outcomes and options
"""

from oxford.client import Client, Region, host_from_region, make_buffer

__all__ = [
    "Client",
    "Region",
    "host_from_region",
    "make_buffer",
    "api",
    "core",
    "services",
    "schemas",
]

__version__ = "1.0.0"
