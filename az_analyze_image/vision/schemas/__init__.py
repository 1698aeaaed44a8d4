"""Wire models for both API versions."""

from typing import Union

from az_analyze_image.vision.schemas import v32, v40
from az_analyze_image.vision.schemas.common import ErrorResponse, Rect, ServiceError

# Result of an analyze call; the concrete type depends on the API version
AnalysisResult = Union[v32.ImageAnalysis, v40.ImageAnalysisResult]

__all__ = ["v32", "v40", "AnalysisResult", "ErrorResponse", "Rect", "ServiceError"]
