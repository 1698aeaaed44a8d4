"""Analyze Image API client module."""

from az_analyze_image.vision.client import AnalyzeImageClient
from az_analyze_image.vision.credential import Credential, Secret
from az_analyze_image.vision.endpoints import Endpoint, build_url
from az_analyze_image.vision.options import AnalyzeImageOptions
from az_analyze_image.vision.response_parser import parse_response
from az_analyze_image.vision.schemas import AnalysisResult, ErrorResponse, v32, v40
from az_analyze_image.vision.versions import (
    ApiVersion,
    DescriptionExclude,
    Details,
    VisualFeature,
)

__all__ = [
    "AnalyzeImageClient",
    "AnalyzeImageOptions",
    "AnalysisResult",
    "ApiVersion",
    "Credential",
    "DescriptionExclude",
    "Details",
    "Endpoint",
    "ErrorResponse",
    "Secret",
    "VisualFeature",
    "build_url",
    "parse_response",
    "v32",
    "v40",
]
