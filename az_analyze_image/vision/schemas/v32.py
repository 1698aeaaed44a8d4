"""
Wire models for Analyze Image API v3.2.

Field names follow the service's published definitions; Python attributes
are the snake_case equivalents.
"""

from enum import Enum
from typing import Iterator, List, Optional, Tuple

from pydantic import Field, NonNegativeInt

from az_analyze_image.vision.schemas.common import (
    AnalysisResultBase,
    ApiModel,
    Confidence,
    PixelCount,
    Rect,
)


class AdultInfo(ApiModel):
    """Whether the image contains adult-oriented, gory or racy content."""
    adult_score: Confidence
    gore_score: Confidence
    is_adult_content: bool
    is_gory_content: bool
    is_racy_content: bool
    racy_score: Confidence


class BoundingRect(ApiModel):
    """A bounding box for an area inside an image."""
    h: PixelCount
    w: PixelCount
    x: PixelCount
    y: PixelCount

    def as_rect(self) -> Rect:
        return Rect(x=self.x, y=self.y, width=self.w, height=self.h)


class FaceRectangle(ApiModel):
    """A rectangle within which a face can be found."""
    height: PixelCount
    left: PixelCount
    top: PixelCount
    width: PixelCount

    def as_rect(self) -> Rect:
        return Rect(x=self.left, y=self.top, width=self.width, height=self.height)


class CelebritiesModel(ApiModel):
    """A possible celebrity identification."""
    confidence: Confidence
    face_rectangle: FaceRectangle
    name: str


class LandmarksModel(ApiModel):
    """A landmark recognized in the image."""
    confidence: Confidence
    name: str


class CategoryDetail(ApiModel):
    """Additional category details."""
    celebrities: Optional[List[CelebritiesModel]] = None
    landmarks: Optional[List[LandmarksModel]] = None


class Category(ApiModel):
    """An entry in the 86-category taxonomy."""
    detail: Optional[CategoryDetail] = None
    name: str
    score: Confidence


class ColorInfo(ApiModel):
    """Color information of the image."""
    accent_color: str
    dominant_color_background: str
    dominant_color_foreground: str
    dominant_colors: List[str]
    is_bw_img: bool = Field(alias="isBWImg")


class DetectedBrand(ApiModel):
    """A brand detected in an image."""
    confidence: Confidence
    name: str
    rectangle: BoundingRect


class ObjectHierarchy(ApiModel):
    """An object's parent, e.g. 'mammal' is the parent of 'dog'."""
    confidence: Confidence
    object: str
    parent: Optional["ObjectHierarchy"] = None


class DetectedObject(ApiModel):
    """An object detected in an image."""
    confidence: Confidence
    object: str
    parent: Optional[ObjectHierarchy] = None
    rectangle: BoundingRect


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"


class FaceDescription(ApiModel):
    """A face detected in an image."""
    age: Optional[NonNegativeInt] = None
    face_rectangle: FaceRectangle
    gender: Optional[Gender] = None


class ImageCaption(ApiModel):
    """An image caption, i.e. a brief description of what the image depicts."""
    confidence: Confidence
    text: str


class ImageDescriptionDetails(ApiModel):
    """Captions and tags describing the image."""
    captions: List[ImageCaption]
    tags: List[str]


class ImageMetadata(ApiModel):
    """Image metadata."""
    format: Optional[str] = None
    height: PixelCount
    width: PixelCount


class ImageTag(ApiModel):
    """An entity observation in the image, along with the confidence score."""
    confidence: Confidence
    hint: Optional[str] = None
    name: str


class ImageType(ApiModel):
    """
    Whether the image is clip art or a line drawing.

    ``clipart_type``: 0 non-clipart, 1 ambiguous, 2 normal-clipart,
    3 good-clipart. ``line_drawing_type``: 0 non-line-drawing, 1 line drawing.
    """
    clipart_type: NonNegativeInt = Field(alias="clipArtType")
    line_drawing_type: NonNegativeInt


class ImageUrl(ApiModel):
    url: str


class ImageAnalysis(AnalysisResultBase):
    """Result of AnalyzeImage operation (v3.2)."""
    adult: Optional[AdultInfo] = None
    brands: Optional[List[DetectedBrand]] = None
    categories: Optional[List[Category]] = None
    color: Optional[ColorInfo] = None
    description: Optional[ImageDescriptionDetails] = None
    faces: Optional[List[FaceDescription]] = None
    image_type: Optional[ImageType] = None
    metadata: Optional[ImageMetadata] = None
    model_version: Optional[str] = None
    objects: Optional[List[DetectedObject]] = None
    request_id: Optional[str] = None
    tags: Optional[List[ImageTag]] = None

    def iter_boxes(self) -> Iterator[Tuple[str, Rect]]:
        for i, brand in enumerate(self.brands or []):
            yield f"brands.{i}.rectangle", brand.rectangle.as_rect()
        for i, obj in enumerate(self.objects or []):
            yield f"objects.{i}.rectangle", obj.rectangle.as_rect()
        for i, face in enumerate(self.faces or []):
            yield f"faces.{i}.faceRectangle", face.face_rectangle.as_rect()
        for i, category in enumerate(self.categories or []):
            if category.detail is None:
                continue
            for j, celebrity in enumerate(category.detail.celebrities or []):
                yield (
                    f"categories.{i}.detail.celebrities.{j}.faceRectangle",
                    celebrity.face_rectangle.as_rect(),
                )

    def detection_counts(self) -> dict:
        return {
            "brands": len(self.brands or []),
            "faces": len(self.faces or []),
            "objects": len(self.objects or []),
            "tags": len(self.tags or []),
        }


ObjectHierarchy.model_rebuild()
