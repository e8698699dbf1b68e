from __future__ import annotations

from typing import Any, Dict, Optional, Sequence, Union

from oxford.api.base import ServiceClient, endpoint_factory
from oxford.schemas.endpoint import BodyKind
from oxford.schemas.transport import JSON_CONTENT_TYPE, TransportBody
from oxford.schemas.weblm import ConditionalQuery

_ep = endpoint_factory("/text/weblm/v1.0")

LIST_MODELS = _ep("/models", "GET", BodyKind.NONE)
BREAK_INTO_WORDS = _ep("/breakIntoWords")
GENERATE_NEXT_WORDS = _ep("/generateNextWords")
JOINT_PROBABILITY = _ep("/calculateJointProbability")
CONDITIONAL_PROBABILITY = _ep("/calculateConditionalProbability")


class WebLMClient(ServiceClient):
    async def list_models(self) -> Any:
        return await self._call(LIST_MODELS)

    async def _process_words(
        self,
        endpoint,
        model: str,
        query: Dict[str, Any],
        body: Any = None,
        order: Optional[int] = None,
        max_candidates: Optional[int] = None,
    ) -> Any:
        query = {**query, "model": model, "order": order or None, "maxNumOfCandidatesReturned": max_candidates or None}
        if body is None:
            # query-only POST, still declared as JSON
            return await self._call(endpoint, TransportBody(content_type=JSON_CONTENT_TYPE), query)
        return await self._json(endpoint, body, query)

    async def break_into_words(
        self, model: str, text: str, order: Optional[int] = None, max_candidates: Optional[int] = None
    ) -> Any:
        """Break run-together text (e.g. ``onetwothree``) into words."""
        return await self._process_words(BREAK_INTO_WORDS, model, {"text": text}, None, order, max_candidates)

    async def generate_words(
        self, model: str, words: str, order: Optional[int] = None, max_candidates: Optional[int] = None
    ) -> Any:
        """Candidate words likely to follow ``words``."""
        return await self._process_words(GENERATE_NEXT_WORDS, model, {"words": words}, None, order, max_candidates)

    async def get_joint_probabilities(self, model: str, phrases: Sequence[str], order: Optional[int] = None) -> Any:
        return await self._process_words(JOINT_PROBABILITY, model, {}, {"queries": list(phrases)}, order)

    async def get_conditional_probabilities(
        self,
        model: str,
        queries: Sequence[Union[ConditionalQuery, Dict[str, str]]],
        order: Optional[int] = None,
    ) -> Any:
        items = [ConditionalQuery.model_validate(q).model_dump() for q in queries]
        return await self._process_words(CONDITIONAL_PROBABILITY, model, {}, {"queries": items}, order)
