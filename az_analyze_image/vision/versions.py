"""
API versions, visual features and the per-version mapping tables.

Each supported API version has one ``VersionProfile`` describing its URL
layout, query parameter names, feature wire strings and the response keys
each feature populates. Everything version-specific in the client is looked
up here.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Optional


class ApiVersion(str, Enum):
    """Supported Analyze Image API versions."""
    V3_2 = "3.2"
    V4_0 = "4.0"

    @classmethod
    def parse(cls, value) -> "ApiVersion":
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower().lstrip("v")
        aliases = {
            "3.2": cls.V3_2,
            "4.0": cls.V4_0,
            "4": cls.V4_0,
            "4.0-preview": cls.V4_0,
            "2023-04-01-preview": cls.V4_0,
        }
        if text not in aliases:
            raise ValueError(f"Unsupported API version: {value!r}")
        return aliases[text]


class VisualFeature(str, Enum):
    """Analysis capabilities that can be requested per call."""
    ADULT = "adult"
    BRANDS = "brands"
    CAPTION = "caption"
    CATEGORIES = "categories"
    COLOR = "color"
    DENSE_CAPTIONS = "dense_captions"
    DESCRIPTION = "description"
    FACES = "faces"
    IMAGE_TYPE = "image_type"
    OBJECTS = "objects"
    PEOPLE = "people"
    READ = "read"
    SMART_CROPS = "smart_crops"
    TAGS = "tags"

    @classmethod
    def _missing_(cls, value):
        # Accept wire spellings such as "denseCaptions", "ImageType", "smartCrops"
        if isinstance(value, str):
            key = re.sub(r"(?<!^)(?=[A-Z])", "_", value.strip()).lower().replace("-", "_")
            for member in cls:
                if member.value == key:
                    return member
        return None


class Details(str, Enum):
    """Domain-specific details (v3.2)."""
    CELEBRITIES = "Celebrities"
    LANDMARKS = "Landmarks"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.strip().lower():
                    return member
        return None


# Domain models that can be switched off when generating a description (v3.2)
DescriptionExclude = Details


@dataclass(frozen=True)
class VersionProfile:
    version: ApiVersion
    path: str
    features_param: str
    feature_wire_names: Dict[VisualFeature, str]
    response_keys: Dict[VisualFeature, str]
    max_image_size: int
    api_version_param: Optional[str] = None
    options: FrozenSet[str] = field(default_factory=frozenset)

    def supports(self, feature: VisualFeature) -> bool:
        return feature in self.feature_wire_names


V32_PROFILE = VersionProfile(
    version=ApiVersion.V3_2,
    path="vision/v3.2/{operation}",
    features_param="visualFeatures",
    feature_wire_names={
        VisualFeature.ADULT: "Adult",
        VisualFeature.BRANDS: "Brands",
        VisualFeature.CATEGORIES: "Categories",
        VisualFeature.COLOR: "Color",
        VisualFeature.DESCRIPTION: "Description",
        VisualFeature.FACES: "Faces",
        VisualFeature.IMAGE_TYPE: "ImageType",
        VisualFeature.OBJECTS: "Objects",
        VisualFeature.TAGS: "Tags",
    },
    response_keys={
        VisualFeature.ADULT: "adult",
        VisualFeature.BRANDS: "brands",
        VisualFeature.CATEGORIES: "categories",
        VisualFeature.COLOR: "color",
        VisualFeature.DESCRIPTION: "description",
        VisualFeature.FACES: "faces",
        VisualFeature.IMAGE_TYPE: "imageType",
        VisualFeature.OBJECTS: "objects",
        VisualFeature.TAGS: "tags",
    },
    max_image_size=4 * 1024 * 1024,  # 4194304 bytes
    options=frozenset({"details", "description_exclude"}),
)

V40_PROFILE = VersionProfile(
    version=ApiVersion.V4_0,
    path="computervision/imageanalysis:{operation}",
    features_param="features",
    feature_wire_names={
        VisualFeature.CAPTION: "caption",
        VisualFeature.DENSE_CAPTIONS: "denseCaptions",
        VisualFeature.OBJECTS: "objects",
        VisualFeature.PEOPLE: "people",
        VisualFeature.READ: "read",
        VisualFeature.SMART_CROPS: "smartCrops",
        VisualFeature.TAGS: "tags",
    },
    response_keys={
        VisualFeature.CAPTION: "captionResult",
        VisualFeature.DENSE_CAPTIONS: "denseCaptionsResult",
        VisualFeature.OBJECTS: "objectsResult",
        VisualFeature.PEOPLE: "peopleResult",
        VisualFeature.READ: "readResult",
        VisualFeature.SMART_CROPS: "smartCropsResult",
        VisualFeature.TAGS: "tagsResult",
    },
    max_image_size=20 * 1024 * 1024,  # 20971520 bytes
    api_version_param="2023-04-01-preview",
    options=frozenset({
        "model_name",
        "gender_neutral_caption",
        "smartcrops_aspect_ratios",
    }),
)

VERSION_PROFILES: Dict[ApiVersion, VersionProfile] = {
    ApiVersion.V3_2: V32_PROFILE,
    ApiVersion.V4_0: V40_PROFILE,
}


def get_profile(api_version) -> VersionProfile:
    """Look up the mapping table for an API version."""
    return VERSION_PROFILES[ApiVersion.parse(api_version)]
