from __future__ import annotations

from typing import Any, Optional

from oxford.api.base import ServiceClient, compact, endpoint_factory
from oxford.schemas.endpoint import BodyKind
from oxford.schemas.transport import FORM_CONTENT_TYPE, TransportBody

_ep = endpoint_factory("/bing/v5.0")

SPELLCHECK = _ep("/spellcheck", body=BodyKind.FORM, text_host=True)


class TextClient(ServiceClient):
    async def _check(
        self,
        mode: str,
        text: str,
        pre_context_text: Optional[str],
        post_context_text: Optional[str],
    ) -> Any:
        form = compact({"Text": text, "PreContextText": pre_context_text, "PostContextText": post_context_text})
        body = TransportBody(content_type=FORM_CONTENT_TYPE, form=form)
        return await self._call(SPELLCHECK, body, {"mode": mode})

    async def proof(
        self, text: str, pre_context_text: Optional[str] = None, post_context_text: Optional[str] = None
    ) -> Any:
        """Word-like proofing: longer text, casing fixes, no aggressive corrections."""
        return await self._check("proof", text, pre_context_text, post_context_text)

    async def spell_check(
        self, text: str, pre_context_text: Optional[str] = None, post_context_text: Optional[str] = None
    ) -> Any:
        """Search-engine-like spell check, optimized for short queries (up to 9 tokens)."""
        return await self._check("spell", text, pre_context_text, post_context_text)
