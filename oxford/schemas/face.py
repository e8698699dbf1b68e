from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field


class FaceAttribute(str, Enum):
    AGE = "age"
    GENDER = "gender"
    HEAD_POSE = "headPose"
    SMILE = "smile"
    FACIAL_HAIR = "facialHair"


class FaceRectangle(BaseModel):
    left: int = Field(ge=0)
    top: int = Field(ge=0)
    width: int = Field(gt=0)
    height: int = Field(gt=0)

    def as_query(self) -> str:
        return f"{self.left},{self.top},{self.width},{self.height}"


class DetectOptions(BaseModel):
    """Flags for face detection.

    Attributes are sent in the fixed order of ``FaceAttribute`` regardless of
    how they were supplied.
    """

    return_face_id: bool = True
    return_face_landmarks: bool = False
    attributes: List[FaceAttribute] = Field(default_factory=list)

    def to_query(self) -> Dict[str, Union[bool, str]]:
        wanted = set(self.attributes)
        ordered = [a.value for a in FaceAttribute if a in wanted]
        return {
            "returnFaceId": self.return_face_id,
            "returnFaceLandmarks": self.return_face_landmarks,
            "returnFaceAttributes": ",".join(ordered),
        }


class NamedEntity(BaseModel):
    """Body for creating/updating face lists, person groups and persons."""

    name: Optional[str] = None
    user_data: Optional[str] = Field(default=None, serialization_alias="userData")

    def to_body(self) -> Dict[str, Optional[str]]:
        return self.model_dump(by_alias=True)
