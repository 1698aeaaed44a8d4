"""
Client library for the Azure AI Services Analyze Image (Image Analysis) APIs.

Supports API version 3.2 and 4.0 (2023-04-01-preview) side by side, with
typed request options, typed results and a uniform error hierarchy.
"""

__version__ = "0.1.2"
__author__ = "Owain Davies"

from az_analyze_image.errors import (
    AnalyzeImageError,
    CredentialError,
    DecodeError,
    HTTPError,
    TransportError,
    ValidationError,
)
from az_analyze_image.vision import (
    AnalyzeImageClient,
    AnalyzeImageOptions,
    ApiVersion,
    VisualFeature,
)

__all__ = [
    "AnalyzeImageClient",
    "AnalyzeImageError",
    "AnalyzeImageOptions",
    "ApiVersion",
    "CredentialError",
    "DecodeError",
    "HTTPError",
    "TransportError",
    "ValidationError",
    "VisualFeature",
]
