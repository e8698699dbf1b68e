"""
Face API client: detection, similarity, grouping, identification,
verification, face lists, person groups and persons.
"""

from __future__ import annotations

import asyncio
from typing import Any, List, Optional, Sequence

from oxford.api.base import ServiceClient, compact, endpoint_factory
from oxford.core.logger import get_logger
from oxford.schemas.endpoint import BodyKind
from oxford.schemas.face import DetectOptions, FaceRectangle, NamedEntity
from oxford.schemas.operation import OperationHandle, OperationStatus
from oxford.schemas.source import Source, coerce_source
from oxford.services.poller import BackoffPolicy

log = get_logger(__name__)

_ep = endpoint_factory("/face/v1.0")

DETECT = _ep("/detect", body=BodyKind.BINARY)
FIND_SIMILARS = _ep("/findsimilars")
GROUP = _ep("/group")
IDENTIFY = _ep("/identify")
VERIFY = _ep("/verify")

FACE_LISTS = _ep("/facelists", "GET", BodyKind.NONE)
FACE_LIST_CREATE = _ep("/facelists/{face_list_id}", "PUT")
FACE_LIST_UPDATE = _ep("/facelists/{face_list_id}", "PATCH")
FACE_LIST_DELETE = _ep("/facelists/{face_list_id}", "DELETE", BodyKind.NONE)
FACE_LIST_GET = _ep("/facelists/{face_list_id}", "GET", BodyKind.NONE)
FACE_LIST_ADD_FACE = _ep("/facelists/{face_list_id}/persistedFaces", body=BodyKind.BINARY)
FACE_LIST_DELETE_FACE = _ep("/facelists/{face_list_id}/persistedFaces/{persisted_face_id}", "DELETE", BodyKind.NONE)

PERSON_GROUPS = _ep("/persongroups", "GET", BodyKind.NONE)
PERSON_GROUP_CREATE = _ep("/persongroups/{person_group_id}", "PUT")
PERSON_GROUP_UPDATE = _ep("/persongroups/{person_group_id}", "PATCH")
PERSON_GROUP_DELETE = _ep("/persongroups/{person_group_id}", "DELETE", BodyKind.NONE)
PERSON_GROUP_GET = _ep("/persongroups/{person_group_id}", "GET", BodyKind.NONE)
PERSON_GROUP_TRAINING = _ep("/persongroups/{person_group_id}/training", "GET", BodyKind.NONE)
PERSON_GROUP_TRAIN = _ep("/persongroups/{person_group_id}/train", "POST", BodyKind.NONE)

PERSONS = _ep("/persongroups/{person_group_id}/persons", "GET", BodyKind.NONE)
PERSON_CREATE = _ep("/persongroups/{person_group_id}/persons", "POST")
PERSON_UPDATE = _ep("/persongroups/{person_group_id}/persons/{person_id}", "PATCH")
PERSON_DELETE = _ep("/persongroups/{person_group_id}/persons/{person_id}", "DELETE", BodyKind.NONE)
PERSON_GET = _ep("/persongroups/{person_group_id}/persons/{person_id}", "GET", BodyKind.NONE)
PERSON_ADD_FACE = _ep("/persongroups/{person_group_id}/persons/{person_id}/persistedFaces", body=BodyKind.BINARY)
_PERSON_FACE = "/persongroups/{person_group_id}/persons/{person_id}/persistedFaces/{persisted_face_id}"
PERSON_FACE_DELETE = _ep(_PERSON_FACE, "DELETE", BodyKind.NONE)
PERSON_FACE_UPDATE = _ep(_PERSON_FACE, "PATCH")
PERSON_FACE_GET = _ep(_PERSON_FACE, "GET", BodyKind.NONE)


class FaceListClient(ServiceClient):
    async def list(self) -> Any:
        return await self._call(FACE_LISTS)

    async def create(self, face_list_id: str, name: Optional[str] = None, user_data: Optional[str] = None) -> Any:
        body = NamedEntity(name=name, user_data=user_data).to_body()
        return await self._json(FACE_LIST_CREATE, body, path={"face_list_id": face_list_id})

    async def update(self, face_list_id: str, name: Optional[str] = None, user_data: Optional[str] = None) -> Any:
        body = NamedEntity(name=name, user_data=user_data).to_body()
        return await self._json(FACE_LIST_UPDATE, body, path={"face_list_id": face_list_id})

    async def delete(self, face_list_id: str) -> Any:
        return await self._call(FACE_LIST_DELETE, path={"face_list_id": face_list_id})

    async def get(self, face_list_id: str) -> Any:
        return await self._call(FACE_LIST_GET, path={"face_list_id": face_list_id})

    async def add_face(
        self,
        face_list_id: str,
        source: Optional[Source] = None,
        *,
        url: Optional[str] = None,
        path: Optional[str] = None,
        data: Optional[bytes] = None,
        stream: Any = None,
        user_data: Optional[str] = None,
        target_face: Optional[FaceRectangle] = None,
    ) -> Any:
        src = coerce_source(source, url=url, path=path, data=data, stream=stream)
        query = {"userData": user_data, "targetFace": target_face.as_query() if target_face else None}
        return await self._upload(FACE_LIST_ADD_FACE, src, query, path={"face_list_id": face_list_id})

    async def delete_face(self, face_list_id: str, persisted_face_id: str) -> Any:
        return await self._call(
            FACE_LIST_DELETE_FACE,
            path={"face_list_id": face_list_id, "persisted_face_id": persisted_face_id},
        )


class PersonGroupClient(ServiceClient):
    async def create(self, person_group_id: str, name: str, user_data: Optional[str] = None) -> Any:
        body = NamedEntity(name=name, user_data=user_data).to_body()
        return await self._json(PERSON_GROUP_CREATE, body, path={"person_group_id": person_group_id})

    async def delete(self, person_group_id: str) -> Any:
        return await self._call(PERSON_GROUP_DELETE, path={"person_group_id": person_group_id})

    async def get(self, person_group_id: str) -> Any:
        return await self._call(PERSON_GROUP_GET, path={"person_group_id": person_group_id})

    async def list(self) -> Any:
        return await self._call(PERSON_GROUPS)

    async def update(self, person_group_id: str, name: Optional[str] = None, user_data: Optional[str] = None) -> Any:
        body = NamedEntity(name=name, user_data=user_data).to_body()
        return await self._json(PERSON_GROUP_UPDATE, body, path={"person_group_id": person_group_id})

    async def training_status(self, person_group_id: str) -> Any:
        return await self._call(PERSON_GROUP_TRAINING, path={"person_group_id": person_group_id})

    async def training_start(self, person_group_id: str) -> Any:
        """Queue training. The service answers 202 with no body."""
        return await self._call(PERSON_GROUP_TRAIN, path={"person_group_id": person_group_id})

    def training_handle(self, person_group_id: str) -> OperationHandle:
        url = self._dispatcher.url_for(PERSON_GROUP_TRAINING, {"person_group_id": person_group_id})
        return OperationHandle(poll_url=url)

    async def wait_for_training(
        self,
        person_group_id: str,
        policy: Optional[BackoffPolicy] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> OperationStatus:
        """Poll the training status until it succeeds or fails.

        Large groups can take tens of minutes; the default policy allows
        half an hour.
        """
        log.info("Waiting for training of person group %s", person_group_id)
        return await self._poller.wait(self.training_handle(person_group_id), policy=policy, cancel=cancel)


class PersonClient(ServiceClient):
    async def create(self, person_group_id: str, name: str, user_data: Optional[str] = None) -> Any:
        body = NamedEntity(name=name, user_data=user_data).to_body()
        return await self._json(PERSON_CREATE, body, path={"person_group_id": person_group_id})

    async def delete(self, person_group_id: str, person_id: str) -> Any:
        return await self._call(PERSON_DELETE, path={"person_group_id": person_group_id, "person_id": person_id})

    async def get(self, person_group_id: str, person_id: str) -> Any:
        return await self._call(PERSON_GET, path={"person_group_id": person_group_id, "person_id": person_id})

    async def update(
        self,
        person_group_id: str,
        person_id: str,
        name: Optional[str] = None,
        user_data: Optional[str] = None,
    ) -> Any:
        body = NamedEntity(name=name, user_data=user_data).to_body()
        return await self._json(
            PERSON_UPDATE, body, path={"person_group_id": person_group_id, "person_id": person_id}
        )

    async def list(self, person_group_id: str) -> Any:
        return await self._call(PERSONS, path={"person_group_id": person_group_id})

    async def add_face(
        self,
        person_group_id: str,
        person_id: str,
        source: Optional[Source] = None,
        *,
        url: Optional[str] = None,
        path: Optional[str] = None,
        data: Optional[bytes] = None,
        stream: Any = None,
        user_data: Optional[str] = None,
        target_face: Optional[FaceRectangle] = None,
    ) -> Any:
        src = coerce_source(source, url=url, path=path, data=data, stream=stream)
        query = {"userData": user_data, "targetFace": target_face.as_query() if target_face else None}
        return await self._upload(
            PERSON_ADD_FACE, src, query, path={"person_group_id": person_group_id, "person_id": person_id}
        )

    async def delete_face(self, person_group_id: str, person_id: str, persisted_face_id: str) -> Any:
        return await self._call(
            PERSON_FACE_DELETE,
            path={"person_group_id": person_group_id, "person_id": person_id, "persisted_face_id": persisted_face_id},
        )

    async def update_face(
        self, person_group_id: str, person_id: str, persisted_face_id: str, user_data: Optional[str] = None
    ) -> Any:
        return await self._json(
            PERSON_FACE_UPDATE,
            compact({"userData": user_data}),
            path={"person_group_id": person_group_id, "person_id": person_id, "persisted_face_id": persisted_face_id},
        )

    async def get_face(self, person_group_id: str, person_id: str, persisted_face_id: str) -> Any:
        return await self._call(
            PERSON_FACE_GET,
            path={"person_group_id": person_group_id, "person_id": person_id, "persisted_face_id": persisted_face_id},
        )


class FaceClient(ServiceClient):
    def __init__(self, dispatcher, poller) -> None:
        super().__init__(dispatcher, poller)
        self.face_list = FaceListClient(dispatcher, poller)
        self.person_group = PersonGroupClient(dispatcher, poller)
        self.person = PersonClient(dispatcher, poller)

    async def detect(
        self,
        source: Optional[Source] = None,
        *,
        url: Optional[str] = None,
        path: Optional[str] = None,
        data: Optional[bytes] = None,
        stream: Any = None,
        options: Optional[DetectOptions] = None,
    ) -> Any:
        """Detect faces; returns the list of detected faces.

        ``options`` selects face id, landmarks and attributes
        (age, gender, headPose, smile, facialHair).
        """
        src = coerce_source(source, url=url, path=path, data=data, stream=stream)
        return await self._upload(DETECT, src, (options or DetectOptions()).to_query())

    async def similar(
        self,
        face_id: str,
        candidate_faces: Optional[Sequence[str]] = None,
        candidate_face_list_id: Optional[str] = None,
        max_candidates: Optional[int] = None,
    ) -> Any:
        body = {"faceId": face_id}
        if candidate_face_list_id:
            body["faceListId"] = candidate_face_list_id
        else:
            body["faceIds"] = list(candidate_faces or [])
        if max_candidates:
            body["maxNumOfCandidatesReturned"] = max_candidates
        return await self._json(FIND_SIMILARS, body)

    async def grouping(self, face_ids: Sequence[str]) -> Any:
        return await self._json(GROUP, {"faceIds": list(face_ids)})

    async def identify(self, face_ids: Sequence[str], person_group_id: str, max_candidates: int = 1) -> Any:
        body = {
            "faceIds": list(face_ids),
            "personGroupId": person_group_id,
            "maxNumOfCandidatesReturned": max_candidates,
        }
        return await self._json(IDENTIFY, body)

    async def verify(self, face_ids: Sequence[str]) -> Any:
        ids: List[str] = list(face_ids or [])
        if len(ids) < 2:
            raise ValueError("Faces array must contain two face ids")
        return await self._json(VERIFY, {"faceId1": ids[0], "faceId2": ids[1]})
