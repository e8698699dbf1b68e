"""
Fake Cognitive Services backend for end-to-end client tests.

The FastAPI app is mounted into the client's httpx.AsyncClient through
ASGITransport, so no network is used. Every request is recorded on
``FakeService.requests``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from oxford import Client
from oxford.services.poller import BackoffPolicy

HOST = "http://testserver"
API_KEY = "test-key"
THUMBNAIL_BYTES = b"\x89PNG-thumbnail-bytes"
VIDEO_BYTES = b"stabilized-video-bytes" * 100


@dataclass
class Recorded:
    method: str
    path: str
    query: Dict[str, str]
    headers: Dict[str, str]
    body: bytes


@dataclass
class FakeService:
    requests: List[Recorded] = field(default_factory=list)
    # statuses returned by successive polls of an operation
    video_statuses: List[Dict[str, Any]] = field(default_factory=list)
    text_statuses: List[Dict[str, Any]] = field(default_factory=list)
    training_statuses: List[Dict[str, Any]] = field(default_factory=list)
    # Operation-Location answered by /trackface, none when unset
    track_face_location: Optional[str] = None

    def paths(self) -> List[str]:
        return [r.path for r in self.requests]


def build_app(service: FakeService) -> FastAPI:
    app = FastAPI()

    async def record(request: Request) -> Recorded:
        rec = Recorded(
            method=request.method,
            path=request.url.path,
            query=dict(request.query_params),
            headers={k.lower(): v for k, v in request.headers.items()},
            body=await request.body(),
        )
        service.requests.append(rec)
        return rec

    def authorized(rec: Recorded) -> bool:
        return rec.headers.get("ocp-apim-subscription-key") == API_KEY

    def denied() -> JSONResponse:
        return JSONResponse(
            {"error": {"code": "Unauthorized", "message": "Access denied due to invalid subscription key."}},
            status_code=403,
        )

    @app.post("/face/v1.0/detect")
    async def detect(request: Request):
        rec = await record(request)
        if not authorized(rec):
            return denied()
        return [{"faceId": "face-1", "faceRectangle": {"left": 1, "top": 2, "width": 3, "height": 4}}]

    @app.post("/face/v1.0/verify")
    async def verify(request: Request):
        await record(request)
        return {"isIdentical": True, "confidence": 0.9}

    @app.post("/face/v1.0/findsimilars")
    async def find_similars(request: Request):
        await record(request)
        return [{"persistedFaceId": "pf-1", "confidence": 0.8}]

    @app.post("/face/v1.0/identify")
    async def identify(request: Request):
        await record(request)
        return [{"faceId": "a", "candidates": [{"personId": "p1", "confidence": 0.9}]}]

    @app.post("/face/v1.0/group")
    async def group(request: Request):
        await record(request)
        return {"groups": [["a", "b"]], "messyGroup": ["c"]}

    @app.get("/face/v1.0/facelists")
    async def face_lists(request: Request):
        await record(request)
        return [{"faceListId": "fl1", "name": "Friends"}]

    @app.api_route("/face/v1.0/facelists/{face_list_id}", methods=["PUT", "PATCH", "DELETE"])
    async def change_face_list(face_list_id: str, request: Request):
        await record(request)
        return Response(status_code=200)

    @app.get("/face/v1.0/facelists/{face_list_id}")
    async def get_face_list(face_list_id: str, request: Request):
        await record(request)
        return {"faceListId": face_list_id, "persistedFaces": []}

    @app.post("/face/v1.0/facelists/{face_list_id}/persistedFaces")
    async def add_list_face(face_list_id: str, request: Request):
        await record(request)
        return {"persistedFaceId": "lf-1"}

    @app.delete("/face/v1.0/facelists/{face_list_id}/persistedFaces/{persisted_face_id}")
    async def delete_list_face(face_list_id: str, persisted_face_id: str, request: Request):
        await record(request)
        return Response(status_code=200)

    @app.put("/face/v1.0/persongroups/{person_group_id}")
    async def create_group(person_group_id: str, request: Request):
        await record(request)
        return Response(status_code=200)

    @app.delete("/face/v1.0/persongroups/{person_group_id}")
    async def delete_group(person_group_id: str, request: Request):
        await record(request)
        return Response(status_code=200)

    @app.get("/face/v1.0/persongroups/{person_group_id}")
    async def get_group(person_group_id: str, request: Request):
        await record(request)
        if person_group_id == "missing":
            return JSONResponse(
                {"error": {"code": "PersonGroupNotFound", "message": "Person group is not found."}},
                status_code=404,
            )
        return {"personGroupId": person_group_id, "name": "Group"}

    @app.post("/face/v1.0/persongroups/{person_group_id}/train")
    async def train(person_group_id: str, request: Request):
        await record(request)
        return Response(status_code=202)

    @app.get("/face/v1.0/persongroups/{person_group_id}/training")
    async def training(person_group_id: str, request: Request):
        await record(request)
        return service.training_statuses.pop(0)

    @app.post("/face/v1.0/persongroups/{person_group_id}/persons/{person_id}/persistedFaces")
    async def add_person_face(person_group_id: str, person_id: str, request: Request):
        await record(request)
        return {"persistedFaceId": "pf-1"}

    @app.post("/face/v1.0/persongroups/{person_group_id}/persons")
    async def create_person(person_group_id: str, request: Request):
        await record(request)
        return {"personId": "p1"}

    @app.patch("/face/v1.0/persongroups/{person_group_id}/persons/{person_id}")
    async def update_person(person_group_id: str, person_id: str, request: Request):
        await record(request)
        return Response(status_code=200)

    @app.api_route(
        "/face/v1.0/persongroups/{person_group_id}/persons/{person_id}/persistedFaces/{persisted_face_id}",
        methods=["GET", "PATCH"],
    )
    async def person_face(person_group_id: str, person_id: str, persisted_face_id: str, request: Request):
        rec = await record(request)
        if rec.method == "PATCH":
            return Response(status_code=200)
        return {"persistedFaceId": persisted_face_id, "userData": "profile"}

    @app.get("/vision/v1.0/models")
    async def vision_models(request: Request):
        await record(request)
        return {"models": [{"name": "celebrities", "categories": ["people_"]}]}

    @app.post("/vision/v1.0/models/{model}/analyze")
    async def model_analyze(model: str, request: Request):
        await record(request)
        return {"result": {model: []}}

    @app.post("/vision/v1.0/analyze")
    async def analyze(request: Request):
        rec = await record(request)
        if not authorized(rec):
            return denied()
        return {"categories": [{"name": "outdoor_", "score": 0.8}], "requestId": "r-1"}

    @app.post("/vision/v1.0/generateThumbnail")
    async def thumbnail(request: Request):
        await record(request)
        return Response(content=THUMBNAIL_BYTES, media_type="image/png")

    @app.post("/vision/v1.0/ocr")
    async def ocr(request: Request):
        await record(request)
        return Response(content=b"<html>not json</html>", media_type="text/html")

    @app.post("/vision/v1.0/recognizeText")
    async def recognize_text(request: Request):
        await record(request)
        return Response(
            status_code=202,
            headers={"Operation-Location": f"{HOST}/vision/v1.0/textOperations/t-1"},
        )

    @app.get("/vision/v1.0/textOperations/{op_id}")
    async def text_operation(op_id: str, request: Request):
        await record(request)
        return service.text_statuses.pop(0)

    @app.post("/emotion/v1.0/recognize")
    async def emotion(request: Request):
        await record(request)
        return [{"scores": {"happiness": 0.99}}]

    @app.post("/bing/v5.0/spellcheck")
    async def spellcheck(request: Request):
        await record(request)
        return {"_type": "SpellCheck", "flaggedTokens": []}

    @app.post("/text/weblm/v1.0/breakIntoWords")
    async def break_into_words(request: Request):
        await record(request)
        return {"candidates": [{"words": "thanks obama", "probability": -7.0}]}

    @app.get("/text/weblm/v1.0/models")
    async def weblm_models(request: Request):
        await record(request)
        return {"models": [{"corpus": "bing-body", "model": "body", "maxOrder": 5}]}

    @app.post("/text/weblm/v1.0/generateNextWords")
    async def generate_next_words(request: Request):
        await record(request)
        return {"candidates": [{"word": "world", "probability": -1.2}]}

    @app.post("/text/weblm/v1.0/calculateJointProbability")
    async def joint(request: Request):
        await record(request)
        return {"results": [{"words": "hello world", "probability": -3.1}]}

    @app.post("/text/weblm/v1.0/calculateConditionalProbability")
    async def conditional(request: Request):
        await record(request)
        return {"results": []}

    @app.post("/video/v1.0/stabilize")
    async def stabilize(request: Request):
        await record(request)
        return Response(
            status_code=202,
            headers={"Operation-Location": f"{HOST}/video/v1.0/operations/op-1?api-version=1"},
        )

    @app.post("/video/v1.0/trackface")
    async def trackface(request: Request):
        await record(request)
        if service.track_face_location is None:
            return Response(status_code=202)
        return Response(status_code=202, headers={"Operation-Location": service.track_face_location})

    @app.post("/video/v1.0/detectmotion")
    async def detect_motion(request: Request):
        await record(request)
        return Response(
            status_code=202,
            headers={"Operation-Location": f"{HOST}/video/v1.0/operations/motion-1"},
        )

    @app.get("/video/v1.0/operations/{op_id}")
    async def operation(op_id: str, request: Request):
        await record(request)
        return service.video_statuses.pop(0)

    @app.get("/video/v1.0/operations/{op_id}/content")
    async def operation_content(op_id: str, request: Request):
        rec = await record(request)
        if not authorized(rec):
            return denied()
        return Response(content=VIDEO_BYTES, media_type="video/mp4")

    return app


@pytest.fixture
def service() -> FakeService:
    return FakeService()


@pytest.fixture
def fast_policy() -> BackoffPolicy:
    return BackoffPolicy(initial=0.001, factor=1.8, max_interval=0.005, max_wait=5.0)


@pytest_asyncio.fixture
async def client(service, fast_policy):
    transport = httpx.ASGITransport(app=build_app(service))
    c = Client(API_KEY, HOST, policy=fast_policy, transport=transport)
    try:
        yield c
    finally:
        await c.aclose()


@pytest_asyncio.fixture
async def bad_key_client(service, fast_policy):
    transport = httpx.ASGITransport(app=build_app(service))
    c = Client("wrong-key", HOST, policy=fast_policy, transport=transport)
    try:
        yield c
    finally:
        await c.aclose()
