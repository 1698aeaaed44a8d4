"""
Wire models for Analyze Image API v4.0 (2023-04-01-preview).
"""

from typing import Iterator, List, Optional, Tuple

from pydantic import NonNegativeInt

from az_analyze_image.vision.schemas.common import (
    AnalysisResultBase,
    ApiModel,
    Confidence,
    PixelCount,
    Rect,
)


class BoundingBox(ApiModel):
    """A bounding box for an area inside an image."""
    h: PixelCount
    w: PixelCount
    x: PixelCount
    y: PixelCount

    def as_rect(self) -> Rect:
        return Rect(x=self.x, y=self.y, width=self.w, height=self.h)


class CaptionResult(ApiModel):
    """A brief description of what the image depicts."""
    confidence: Confidence
    text: str


class CropRegion(ApiModel):
    """A region identified for smart cropping, one per requested aspect ratio."""
    aspect_ratio: float
    bounding_box: BoundingBox


class DenseCaption(ApiModel):
    """A brief description of what a region of the image depicts."""
    bounding_box: BoundingBox
    confidence: Confidence
    text: str


class DenseCaptionsResult(ApiModel):
    values: List[DenseCaption]


class Tag(ApiModel):
    """A content entity observation, with its confidence."""
    confidence: Confidence
    name: str


class DetectedObject(ApiModel):
    """A physical object detected in an image."""
    bounding_box: BoundingBox
    id: Optional[str] = None
    tags: List[Tag]


class DetectedPerson(ApiModel):
    """A person detected in an image."""
    bounding_box: BoundingBox
    confidence: Confidence


class DocumentSpan(ApiModel):
    """A contiguous region of the concatenated content."""
    length: NonNegativeInt
    offset: NonNegativeInt


class DocumentWord(ApiModel):
    """A word in the image: one or more characters delimited by whitespace."""
    # Polygon as [x1, y1, x2, y2, ...], in pixels
    bounding_box: List[float]
    confidence: Confidence
    content: str
    span: DocumentSpan


class DocumentLine(ApiModel):
    """A content line: adjacent words and selection marks."""
    bounding_box: List[float]
    content: str
    spans: List[DocumentSpan]


class DocumentStyle(ApiModel):
    """Style of the text content."""
    confidence: Confidence
    is_handwritten: bool
    spans: List[DocumentSpan]


class DocumentPage(ApiModel):
    """Content and layout elements extracted from a page."""
    angle: float
    height: float
    lines: List[DocumentLine]
    page_number: NonNegativeInt
    spans: List[DocumentSpan]
    width: float
    words: List[DocumentWord]


class ReadResult(ApiModel):
    """Text (OCR) extracted from the image."""
    content: str
    pages: List[DocumentPage]
    string_index_type: str
    styles: List[DocumentStyle]

    @property
    def lines(self) -> List[DocumentLine]:
        return [line for page in self.pages for line in page.lines]

    @property
    def words(self) -> List[DocumentWord]:
        return [word for page in self.pages for word in page.words]


class ObjectsResult(ApiModel):
    values: List[DetectedObject]


class PeopleResult(ApiModel):
    values: List[DetectedPerson]


class SmartCropsResult(ApiModel):
    values: List[CropRegion]


class TagsResult(ApiModel):
    values: List[Tag]


class ImageMetadataApiModel(ApiModel):
    """Image width and height in pixels."""
    height: PixelCount
    width: PixelCount


class ImagePredictionResult(ApiModel):
    """Output of a custom model."""
    objects_result: ObjectsResult
    tags_result: TagsResult


class ImageUrl(ApiModel):
    url: str


class ImageAnalysisResult(AnalysisResultBase):
    """Result of the image analysis operation (v4.0)."""
    caption_result: Optional[CaptionResult] = None
    custom_model_result: Optional[ImagePredictionResult] = None
    dense_captions_result: Optional[DenseCaptionsResult] = None
    metadata: Optional[ImageMetadataApiModel] = None
    model_version: Optional[str] = None
    objects_result: Optional[ObjectsResult] = None
    people_result: Optional[PeopleResult] = None
    read_result: Optional[ReadResult] = None
    smart_crops_result: Optional[SmartCropsResult] = None
    tags_result: Optional[TagsResult] = None

    def iter_boxes(self) -> Iterator[Tuple[str, Rect]]:
        sections = [
            ("denseCaptionsResult", self.dense_captions_result),
            ("objectsResult", self.objects_result),
            ("peopleResult", self.people_result),
            ("smartCropsResult", self.smart_crops_result),
        ]
        if self.custom_model_result is not None:
            sections.append(("customModelResult.objectsResult", self.custom_model_result.objects_result))
        for prefix, section in sections:
            if section is None:
                continue
            for i, value in enumerate(section.values):
                yield f"{prefix}.values.{i}.boundingBox", value.bounding_box.as_rect()

    def detection_counts(self) -> dict:
        return {
            "dense_captions": len(self.dense_captions_result.values) if self.dense_captions_result else 0,
            "objects": len(self.objects_result.values) if self.objects_result else 0,
            "people": len(self.people_result.values) if self.people_result else 0,
            "tags": len(self.tags_result.values) if self.tags_result else 0,
        }
