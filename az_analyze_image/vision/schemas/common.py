"""
Pydantic building blocks shared by both API versions.
"""

from typing import Annotated, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt
from pydantic.alias_generators import to_camel

# Number of pixels, never negative
PixelCount = NonNegativeInt

# Service confidence score; values outside [0, 1] are rejected, not clamped
Confidence = Annotated[float, Field(ge=0.0, le=1.0)]


class ApiModel(BaseModel):
    """Base for wire models: camelCase aliases, unknown fields ignored, immutable."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    def to_dict(self) -> dict:
        """Wire representation, using the service's field names."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class Rect(ApiModel):
    """
    Axis-aligned pixel rectangle as ``(x, y, width, height)``.

    Every box-like wire type exposes ``as_rect()`` so bounds checking and
    drawing code does not need to know each version's field names.
    """
    x: PixelCount
    y: PixelCount
    width: PixelCount
    height: PixelCount

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def within(self, width: int, height: int) -> bool:
        return self.right <= width and self.bottom <= height


class ServiceError(ApiModel):
    """Details about a request error, as reported by the service."""
    code: str
    message: str
    target: Optional[str] = None
    details: Optional[List["ServiceError"]] = None
    innererror: Optional["InnerError"] = Field(default=None, alias="innererror")


class InnerError(ApiModel):
    code: Optional[str] = None
    message: Optional[str] = None
    innererror: Optional["InnerError"] = Field(default=None, alias="innererror")


class ErrorResponse(ApiModel):
    """
    The error envelope returned with non-2xx responses.

    Both versions wrap the error in ``{"error": {...}}``; v3.2 always sends an
    ``innererror`` with a more specific code, v4.0 may add ``target`` and
    ``details``.
    """
    error: ServiceError

    def __str__(self):
        inner = self.error.innererror
        if inner is not None and inner.code:
            return f"{self.error.code} ({inner.code}): {self.error.message}"
        return f"{self.error.code}: {self.error.message}"


ServiceError.model_rebuild()
InnerError.model_rebuild()


class AnalysisResultBase(ApiModel):
    """Common behaviour of the per-version result models."""

    def iter_boxes(self) -> Iterator[Tuple[str, Rect]]:
        """Yield ``(field path, rect)`` for every bounding box in the result."""
        return iter(())

    def image_size(self) -> Optional[Tuple[int, int]]:
        metadata = getattr(self, "metadata", None)
        if metadata is None:
            return None
        return metadata.width, metadata.height

    def detection_counts(self) -> dict:
        """Number of detected entities per kind, for metrics and summaries."""
        return {}
