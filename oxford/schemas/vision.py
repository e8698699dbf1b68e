from __future__ import annotations

from enum import Enum
from typing import Iterable, Union


class VisualFeature(str, Enum):
    IMAGE_TYPE = "ImageType"
    COLOR = "Color"
    FACES = "Faces"
    ADULT = "Adult"
    CATEGORIES = "Categories"
    TAGS = "Tags"
    DESCRIPTION = "Description"


def visual_features_query(features: Iterable[Union[VisualFeature, str]]) -> str:
    """Comma-join features in declaration order, rejecting unknown names."""
    wanted = {VisualFeature(f) for f in features}
    return ",".join(f.value for f in VisualFeature if f in wanted)
