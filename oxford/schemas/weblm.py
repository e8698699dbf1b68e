from __future__ import annotations

from pydantic import BaseModel


class ConditionalQuery(BaseModel):
    """Probability of ``word`` following the context ``words``."""

    words: str
    word: str
