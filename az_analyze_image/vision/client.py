"""
Async client for the Azure AI Services Analyze Image API (v3.2 and v4.0).

Image constraints imposed by the API:
- v3.2: JPEG, PNG, GIF or BMP, less than 4 MiB.
- v4.0: JPEG, PNG, GIF, BMP, WEBP, ICO, TIFF or MPO, less than 20 MiB.
- Both: dimensions greater than 50 x 50 and less than 16,000 x 16,000 pixels.
"""

import json
import time
from typing import Optional

import httpx
import structlog

from az_analyze_image.errors import (
    AnalyzeImageError,
    DecodeError,
    TransportError,
    ValidationError,
)
from az_analyze_image.observability.metrics import get_metrics
from az_analyze_image.vision.credential import Credential
from az_analyze_image.vision.endpoints import ANALYZE_OPERATION, Endpoint
from az_analyze_image.vision.options import AnalyzeImageOptions
from az_analyze_image.vision.response_parser import empty_result, parse_response
from az_analyze_image.vision.schemas import AnalysisResult
from az_analyze_image.vision.versions import ApiVersion

logger = structlog.get_logger(__name__)

CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_OCTET_STREAM = "application/octet-stream"

# Sentinel: let httpx apply its default timeout to a transport we create
USE_TRANSPORT_DEFAULT = object()


class AnalyzeImageClient:
    """
    Client for the Analyze Image API.

    The client holds only immutable state (credential, endpoint, transport),
    so one instance can serve any number of concurrent calls.

    Example:
        async with AnalyzeImageClient(key, endpoint, ApiVersion.V4_0) as client:
            result = await client.analyze_image_url(
                "https://example.com/people.jpg",
                AnalyzeImageOptions(features=[VisualFeature.PEOPLE])
            )
            for person in result.people_result.values:
                print(person.bounding_box, person.confidence)
    """

    def __init__(
        self,
        key: str,
        endpoint: str,
        api_version=ApiVersion.V4_0,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout=USE_TRANSPORT_DEFAULT,
        metrics=None
    ):
        """
        Initialize the client. No network I/O happens here.

        Args:
            key: Azure AI Services key
            endpoint: Azure AI Services Computer Vision endpoint
            api_version: ApiVersion.V3_2 or ApiVersion.V4_0
            http_client: Transport to send requests with. It is not closed
                by ``aclose``; its timeout configuration applies.
            timeout: Timeout for a transport created by this client, in
                seconds or as ``httpx.Timeout``; None disables it
            metrics: AnalyzeImageMetrics instance (defaults to the shared one)

        Raises:
            CredentialError: If the key or endpoint is invalid
        """
        self._credential = Credential(key, endpoint)
        try:
            self._endpoint = Endpoint(self._credential.base_url, ApiVersion.parse(api_version))
        except ValueError as e:
            raise ValidationError(str(e)) from e

        if http_client is None:
            if timeout is USE_TRANSPORT_DEFAULT:
                self._http = httpx.AsyncClient()
            else:
                self._http = httpx.AsyncClient(timeout=timeout)
            self._owns_http = True
        else:
            self._http = http_client
            self._owns_http = False

        self._metrics = metrics
        self._closed = False

    @property
    def api_version(self) -> ApiVersion:
        return self._endpoint.api_version

    @property
    def endpoint(self) -> Endpoint:
        return self._endpoint

    @property
    def metrics(self):
        if self._metrics is None:
            self._metrics = get_metrics()
        return self._metrics

    async def analyze_image_url(
        self,
        image_url: str,
        options: Optional[AnalyzeImageOptions] = None
    ) -> AnalysisResult:
        """
        Analyze an image referenced by a publicly reachable URL.

        Args:
            image_url: URL of the image
            options: Features and parameters for the analysis

        Returns:
            ImageAnalysis (v3.2) or ImageAnalysisResult (v4.0)

        Raises:
            ValidationError: Options or input rejected before sending
            TransportError: Network failure
            HTTPError: Non-2xx response
            DecodeError: Malformed response body
        """
        if not image_url or not image_url.strip():
            raise ValidationError("Image URL must not be empty")

        return await self._analyze(
            "url",
            options,
            content=json.dumps({"url": image_url}).encode("utf-8"),
            content_type=CONTENT_TYPE_JSON
        )

    async def analyze_image_data(
        self,
        image_data: bytes,
        options: Optional[AnalyzeImageOptions] = None
    ) -> AnalysisResult:
        """
        Analyze image bytes sent in the request body.

        Args:
            image_data: Encoded image (JPEG, PNG, ...)
            options: Features and parameters for the analysis

        Returns:
            ImageAnalysis (v3.2) or ImageAnalysisResult (v4.0)

        Raises:
            ValidationError: Options or input rejected before sending
            TransportError: Network failure
            HTTPError: Non-2xx response
            DecodeError: Malformed response body
        """
        if not image_data:
            raise ValidationError("Image data must not be empty")

        max_size = self._endpoint.profile.max_image_size
        if len(image_data) > max_size:
            raise ValidationError(
                f"Image size {len(image_data)} bytes exceeds maximum {max_size} bytes "
                f"for API version {self.api_version.value}",
                {"size_bytes": len(image_data), "max_bytes": max_size}
            )

        return await self._analyze(
            "data",
            options,
            content=bytes(image_data),
            content_type=CONTENT_TYPE_OCTET_STREAM
        )

    # Alias matching the service operation name
    analyze_image = analyze_image_data

    async def _analyze(
        self,
        source: str,
        options: Optional[AnalyzeImageOptions],
        content: bytes,
        content_type: str
    ) -> AnalysisResult:
        if self._closed:
            raise AnalyzeImageError("Client is closed")

        options = options or AnalyzeImageOptions()
        api_version = self.api_version.value
        log = logger.bind(api_version=api_version, source=source)

        try:
            options.validate(self.api_version)
        except ValidationError as e:
            log.warning("analyze_image_options_invalid", error=e.message)
            self.metrics.record_error(api_version, "ValidationError")
            raise

        if options.is_empty():
            log.info("analyze_image_nothing_requested")
            return empty_result(self.api_version)

        url = self._endpoint.url(ANALYZE_OPERATION, options.to_query_params(self.api_version))
        headers = {"Content-Type": content_type}
        headers.update(self._credential.auth_headers())

        log.info(
            "analyze_image_request",
            features=[f.value for f in options.features],
            model_name=options.model_name,
            body_size=len(content)
        )

        start_time = time.perf_counter()
        try:
            response = await self._http.post(url, content=content, headers=headers)
        except httpx.DecodingError as e:
            # Body could not be decoded per its Content-Encoding
            elapsed = time.perf_counter() - start_time
            log.error("analyze_image_body_decoding_error", error=str(e), error_type=type(e).__name__)
            self.metrics.record_request(api_version, source, "decoding_error", elapsed)
            self.metrics.record_error(api_version, "DecodeError")
            raise DecodeError(f"Response body could not be decoded: {e}") from e
        except httpx.RequestError as e:
            elapsed = time.perf_counter() - start_time
            log.error("analyze_image_transport_error", error=str(e), error_type=type(e).__name__)
            self.metrics.record_request(api_version, source, "transport_error", elapsed)
            self.metrics.record_error(api_version, "transport")
            raise TransportError(
                f"Request failed: {type(e).__name__}: {e}",
                {"error_type": type(e).__name__}
            ) from e
        elapsed = time.perf_counter() - start_time

        request_id = response.headers.get("apim-request-id")
        try:
            result = parse_response(self.api_version, response.status_code, response.content, options)
        except AnalyzeImageError as e:
            error_type = type(e).__name__
            log.error(
                "analyze_image_failed",
                status_code=response.status_code,
                request_id=request_id,
                error=e.message,
                error_type=error_type
            )
            self.metrics.record_request(api_version, source, str(response.status_code), elapsed)
            self.metrics.record_error(api_version, error_type)
            raise

        self.metrics.record_request(api_version, source, str(response.status_code), elapsed)
        counts = result.detection_counts()
        self.metrics.record_detections(api_version, counts)
        log.info(
            "analyze_image_response",
            status_code=response.status_code,
            request_id=request_id,
            elapsed_seconds=round(elapsed, 3),
            **counts
        )
        return result

    async def aclose(self):
        """Close an owned transport and wipe the key."""
        if self._closed:
            return
        self._closed = True
        if self._owns_http:
            await self._http.aclose()
        self._credential.wipe()
        logger.debug("analyze_image_client_closed")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    def __repr__(self):
        return (
            f"{type(self).__name__}(endpoint={self._credential.base_url!r}, "
            f"api_version={self.api_version.value!r})"
        )
