"""
Parse Analyze Image API responses into typed results or classified errors.
"""

import json
from typing import Optional

import pydantic
import structlog

from az_analyze_image.errors import DecodeError, HTTPError
from az_analyze_image.vision.options import AnalyzeImageOptions
from az_analyze_image.vision.schemas import AnalysisResult, ErrorResponse, v32, v40
from az_analyze_image.vision.versions import ApiVersion, VersionProfile, get_profile

logger = structlog.get_logger(__name__)

RESULT_MODELS = {
    ApiVersion.V3_2: v32.ImageAnalysis,
    ApiVersion.V4_0: v40.ImageAnalysisResult,
}

CUSTOM_MODEL_RESULT_KEY = "customModelResult"

# Longest raw body excerpt carried in an error message
MAX_BODY_EXCERPT = 512


def empty_result(api_version) -> AnalysisResult:
    """A result with no sub-results, for calls that requested nothing."""
    return RESULT_MODELS[ApiVersion.parse(api_version)]()


def parse_response(
    api_version,
    status_code: int,
    body: bytes,
    options: Optional[AnalyzeImageOptions] = None
) -> AnalysisResult:
    """
    Parse a raw response.

    Args:
        api_version: API version the request was made with
        status_code: HTTP status code
        body: Raw response body
        options: Options the request was made with. When given, sections of
            features that were not requested are discarded before validation.

    Returns:
        ImageAnalysis (v3.2) or ImageAnalysisResult (v4.0)

    Raises:
        HTTPError: For any status outside [200, 300)
        DecodeError: If a 2xx body does not match the version's schema
    """
    profile = get_profile(api_version)

    if 200 <= status_code < 300:
        return parse_analysis(profile, body, options)

    raise parse_error_response(status_code, body)


def parse_analysis(
    profile: VersionProfile,
    body: bytes,
    options: Optional[AnalyzeImageOptions] = None
) -> AnalysisResult:
    """Decode a successful response body."""
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(f"Response body is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise DecodeError(
            f"Expected a JSON object, got {type(payload).__name__}"
        )

    if options is not None:
        _drop_unrequested(profile, payload, options)

    model = RESULT_MODELS[profile.version]
    try:
        result = model.model_validate(payload)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        path = _format_loc(first["loc"])
        logger.warning(
            "analyze_image_decode_failed",
            api_version=profile.version.value,
            path=path,
            error=first["msg"],
            error_count=e.error_count()
        )
        raise DecodeError(f"Invalid response field '{path}': {first['msg']}", path=path) from e

    _check_bounds(result)
    return result


def parse_error_response(status_code: int, body: bytes) -> HTTPError:
    """
    Build the HTTPError for a non-2xx response.

    The vendor error envelope is decoded when possible; otherwise the raw
    status and body are surfaced.
    """
    error = None
    try:
        error = ErrorResponse.model_validate_json(body or b"")
    except pydantic.ValidationError:
        logger.debug("analyze_image_error_body_not_envelope", status_code=status_code)

    if error is not None:
        message = f"API error response (HTTP {status_code}): {error}"
    else:
        excerpt = _excerpt(body)
        message = f"HTTP {status_code}" + (f": {excerpt}" if excerpt else "")

    return HTTPError(message, status_code=status_code, error=error, body=body or b"")


def _drop_unrequested(profile: VersionProfile, payload: dict, options: AnalyzeImageOptions):
    requested = set(options.features)
    for feature, key in profile.response_keys.items():
        if feature not in requested and key in payload:
            payload.pop(key)
            logger.debug("analyze_image_unrequested_section_dropped", section=key)
    if profile.version is ApiVersion.V4_0 and not options.model_name:
        payload.pop(CUSTOM_MODEL_RESULT_KEY, None)


def _check_bounds(result: AnalysisResult):
    size = result.image_size()
    if size is None:
        return
    width, height = size
    for path, rect in result.iter_boxes():
        if not rect.within(width, height):
            raise DecodeError(
                f"Bounding box at '{path}' ({rect.x}, {rect.y}, {rect.width}, {rect.height}) "
                f"exceeds image bounds {width}x{height}",
                path=path
            )


def _format_loc(loc) -> str:
    return ".".join(str(part) for part in loc) or "<root>"


def _excerpt(body: bytes) -> str:
    if not body:
        return ""
    text = body.decode("utf-8", errors="replace").strip()
    if len(text) > MAX_BODY_EXCERPT:
        return text[:MAX_BODY_EXCERPT] + "..."
    return text
