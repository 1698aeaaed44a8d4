"""Tests for AnalyzeImageClient against a mocked transport."""

import asyncio
import json

import httpx
import pytest

from az_analyze_image.errors import (
    AnalyzeImageError,
    CredentialError,
    DecodeError,
    HTTPError,
    TransportError,
    ValidationError,
)
from az_analyze_image.vision import AnalyzeImageClient, AnalyzeImageOptions
from az_analyze_image.vision.credential import SUBSCRIPTION_KEY_HEADER
from az_analyze_image.vision.schemas import v32, v40
from az_analyze_image.vision.versions import ApiVersion, VisualFeature

from conftest import (
    IMAGE_URL,
    TEST_ENDPOINT,
    TEST_KEY,
    RecordingHandler,
    faces_body,
    people_body,
)

PEOPLE = AnalyzeImageOptions(features=[VisualFeature.PEOPLE])
FACES = AnalyzeImageOptions(features=[VisualFeature.FACES])


async def test_analyze_url_people(make_client):
    handler = RecordingHandler(json=people_body(0.92, 0.41))
    client = make_client(handler)

    result = await client.analyze_image_url(IMAGE_URL, PEOPLE)

    assert isinstance(result, v40.ImageAnalysisResult)
    assert [p.confidence for p in result.people_result.values] == [0.92, 0.41]
    assert handler.calls == 1

    request = handler.requests[0]
    assert request.method == "POST"
    assert request.url.host == "test-resource.cognitiveservices.azure.com"
    assert request.url.path.endswith("computervision/imageanalysis:analyze")
    assert request.url.params["features"] == "people"
    assert request.url.params["api-version"] == "2023-04-01-preview"
    assert request.headers[SUBSCRIPTION_KEY_HEADER] == TEST_KEY
    assert request.headers["Content-Type"] == "application/json"
    assert json.loads(request.content) == {"url": IMAGE_URL}


async def test_analyze_url_v32_faces(make_client):
    handler = RecordingHandler(json=faces_body())
    client = make_client(handler, ApiVersion.V3_2)

    result = await client.analyze_image_url(IMAGE_URL, FACES)

    assert isinstance(result, v32.ImageAnalysis)
    assert len(result.faces) == 2
    request = handler.requests[0]
    assert request.url.path == "/vision/v3.2/analyze"
    assert request.url.params["visualFeatures"] == "Faces"
    assert "api-version" not in request.url.params


async def test_analyze_data_sends_octet_stream(make_client):
    handler = RecordingHandler(json=people_body(0.8))
    client = make_client(handler)
    image = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64

    await client.analyze_image_data(image, PEOPLE)

    request = handler.requests[0]
    assert request.headers["Content-Type"] == "application/octet-stream"
    assert request.content == image


async def test_analyze_image_alias(make_client):
    handler = RecordingHandler(json=people_body(0.8))
    client = make_client(handler)

    await client.analyze_image(b"image-bytes", PEOPLE)

    assert handler.requests[0].content == b"image-bytes"


async def test_unsupported_feature_not_sent(make_client):
    handler = RecordingHandler(json=faces_body())
    client = make_client(handler, ApiVersion.V3_2)

    with pytest.raises(ValidationError):
        await client.analyze_image_url(IMAGE_URL, PEOPLE)
    assert handler.calls == 0


async def test_option_for_other_version_not_sent(make_client):
    handler = RecordingHandler(json=faces_body())
    client = make_client(handler, ApiVersion.V3_2)
    options = AnalyzeImageOptions(features=[VisualFeature.FACES], model_name="my-model")

    with pytest.raises(ValidationError):
        await client.analyze_image_url(IMAGE_URL, options)
    assert handler.calls == 0


async def test_empty_options_return_empty_result(make_client):
    handler = RecordingHandler(json=people_body(0.8))
    client = make_client(handler)

    result = await client.analyze_image_url(IMAGE_URL)

    assert result == v40.ImageAnalysisResult()
    assert handler.calls == 0


@pytest.mark.parametrize("version,limit", [
    (ApiVersion.V3_2, 4 * 1024 * 1024),
    (ApiVersion.V4_0, 20 * 1024 * 1024),
])
async def test_oversize_image_not_sent(make_client, version, limit):
    handler = RecordingHandler(json={})
    client = make_client(handler, version)
    options = AnalyzeImageOptions(features=[VisualFeature.TAGS])

    with pytest.raises(ValidationError) as exc_info:
        await client.analyze_image_data(b"\x00" * (limit + 1), options)
    assert exc_info.value.details["max_bytes"] == limit
    assert handler.calls == 0


async def test_image_at_limit_is_sent(make_client):
    handler = RecordingHandler(json={"tags": []})
    client = make_client(handler, ApiVersion.V3_2)
    options = AnalyzeImageOptions(features=[VisualFeature.TAGS])

    await client.analyze_image_data(b"\x00" * (4 * 1024 * 1024), options)
    assert handler.calls == 1


@pytest.mark.parametrize("image_url", ["", "   "])
async def test_empty_url_rejected(make_client, image_url):
    handler = RecordingHandler(json={})
    client = make_client(handler)

    with pytest.raises(ValidationError):
        await client.analyze_image_url(image_url, PEOPLE)
    assert handler.calls == 0


async def test_empty_data_rejected(make_client):
    handler = RecordingHandler(json={})
    client = make_client(handler)

    with pytest.raises(ValidationError):
        await client.analyze_image_data(b"", PEOPLE)


async def test_http_error(make_client):
    handler = RecordingHandler(
        status_code=403,
        json={"error": {"code": "Unauthorized", "message": "Access denied due to invalid subscription key."}},
    )
    client = make_client(handler)

    with pytest.raises(HTTPError) as exc_info:
        await client.analyze_image_url(IMAGE_URL, PEOPLE)

    assert exc_info.value.status_code == 403
    assert exc_info.value.code == "Unauthorized"


async def test_server_error_raw_body(make_client):
    handler = RecordingHandler(status_code=502, content=b"<html>Bad Gateway</html>")
    client = make_client(handler)

    with pytest.raises(HTTPError) as exc_info:
        await client.analyze_image_url(IMAGE_URL, PEOPLE)
    assert exc_info.value.body == b"<html>Bad Gateway</html>"


async def test_malformed_body(make_client):
    handler = RecordingHandler(json=people_body(1.5))
    client = make_client(handler)

    with pytest.raises(DecodeError) as exc_info:
        await client.analyze_image_url(IMAGE_URL, PEOPLE)
    assert exc_info.value.path == "peopleResult.values.0.confidence"


@pytest.mark.parametrize("exc", [
    lambda request: httpx.ConnectError("Connection refused", request=request),
    lambda request: httpx.ReadTimeout("timed out", request=request),
])
async def test_transport_failure(make_client, exc):
    handler = RecordingHandler(exc=exc)
    client = make_client(handler)

    with pytest.raises(TransportError) as exc_info:
        await client.analyze_image_url(IMAGE_URL, PEOPLE)
    assert isinstance(exc_info.value.__cause__, httpx.TransportError)


async def test_concurrent_calls_share_client(make_client):
    handler = RecordingHandler(json=people_body(0.6, 0.7))
    client = make_client(handler)

    results = await asyncio.gather(*[
        client.analyze_image_url(f"{IMAGE_URL}?n={i}", PEOPLE) for i in range(8)
    ])

    assert handler.calls == 8
    assert all(len(r.people_result.values) == 2 for r in results)
    sent = sorted(json.loads(r.content)["url"] for r in handler.requests)
    assert sent == sorted(f"{IMAGE_URL}?n={i}" for i in range(8))


async def test_aclose_wipes_key_and_keeps_caller_transport(make_client):
    handler = RecordingHandler(json=people_body(0.6))
    client = make_client(handler)
    http_client = client._http

    await client.aclose()

    assert client._credential.wiped
    assert not http_client.is_closed
    with pytest.raises(AnalyzeImageError, match="closed"):
        await client.analyze_image_url(IMAGE_URL, PEOPLE)
    assert handler.calls == 0
    await http_client.aclose()


async def test_context_manager_closes_owned_transport():
    async with AnalyzeImageClient(TEST_KEY, TEST_ENDPOINT, timeout=5.0) as client:
        http_client = client._http
        assert http_client.timeout.connect == 5.0
    assert http_client.is_closed


@pytest.mark.parametrize("key,endpoint", [
    ("", TEST_ENDPOINT),
    ("mock\n_invalid_key", TEST_ENDPOINT),
    (TEST_KEY, "mock_endpoint"),
    (TEST_KEY, "https://exa mple.com/"),
    (TEST_KEY, "https://host:99999/"),
])
def test_construction_errors(key, endpoint):
    with pytest.raises(CredentialError):
        AnalyzeImageClient(key, endpoint)


def test_unknown_api_version():
    with pytest.raises(ValidationError):
        AnalyzeImageClient(TEST_KEY, TEST_ENDPOINT, "5.0")


def test_repr_hides_key():
    client = AnalyzeImageClient(TEST_KEY, TEST_ENDPOINT, http_client=httpx.AsyncClient())
    assert TEST_KEY not in repr(client)
    assert "4.0" in repr(client)


class TestMetrics:
    async def test_success_recorded(self, make_client, registry):
        handler = RecordingHandler(json=people_body(0.6, 0.7, 0.8))
        client = make_client(handler)

        await client.analyze_image_url(IMAGE_URL, PEOPLE)

        assert registry.get_sample_value(
            "analyze_image_requests_total",
            {"api_version": "4.0", "source": "url", "status": "200"},
        ) == 1.0
        assert registry.get_sample_value(
            "analyze_image_detections_total",
            {"api_version": "4.0", "kind": "people"},
        ) == 3.0

    async def test_http_error_recorded(self, make_client, registry):
        handler = RecordingHandler(status_code=429, json={"error": {"code": "429", "message": "Rate limit"}})
        client = make_client(handler)

        with pytest.raises(HTTPError):
            await client.analyze_image_data(b"img", PEOPLE)

        assert registry.get_sample_value(
            "analyze_image_requests_total",
            {"api_version": "4.0", "source": "data", "status": "429"},
        ) == 1.0
        assert registry.get_sample_value(
            "analyze_image_errors_total",
            {"api_version": "4.0", "error_type": "HTTPError"},
        ) == 1.0

    async def test_validation_error_recorded(self, make_client, registry):
        client = make_client(RecordingHandler(json={}), ApiVersion.V3_2)

        with pytest.raises(ValidationError):
            await client.analyze_image_url(IMAGE_URL, PEOPLE)

        assert registry.get_sample_value(
            "analyze_image_errors_total",
            {"api_version": "3.2", "error_type": "ValidationError"},
        ) == 1.0


async def test_undecodable_content_encoding(make_client, registry):
    def handler(request):
        return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip at all")

    client = make_client(handler)

    with pytest.raises(DecodeError) as exc_info:
        await client.analyze_image_url(IMAGE_URL, PEOPLE)

    assert isinstance(exc_info.value.__cause__, httpx.DecodingError)
    assert registry.get_sample_value(
        "analyze_image_errors_total",
        {"api_version": "4.0", "error_type": "DecodeError"},
    ) == 1.0


async def test_redirect_loop(metrics, registry):
    def handler(request):
        return httpx.Response(302, headers={"Location": str(request.url)})

    http_client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        follow_redirects=True,
        max_redirects=2,
    )
    client = AnalyzeImageClient(TEST_KEY, TEST_ENDPOINT, http_client=http_client, metrics=metrics)

    with pytest.raises(TransportError) as exc_info:
        await client.analyze_image_url(IMAGE_URL, PEOPLE)

    assert isinstance(exc_info.value.__cause__, httpx.TooManyRedirects)
    assert exc_info.value.details["error_type"] == "TooManyRedirects"
    assert registry.get_sample_value(
        "analyze_image_errors_total",
        {"api_version": "4.0", "error_type": "transport"},
    ) == 1.0
    await http_client.aclose()


async def test_cancellation_propagates(make_client, registry):
    started = asyncio.Event()
    release = asyncio.Event()

    async def handler(request):
        started.set()
        await release.wait()
        return httpx.Response(200, json=people_body(0.5))

    client = make_client(handler)
    task = asyncio.create_task(client.analyze_image_url(IMAGE_URL, PEOPLE))
    await started.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task

    assert registry.get_sample_value(
        "analyze_image_errors_total",
        {"api_version": "4.0", "error_type": "transport"},
    ) is None
    assert registry.get_sample_value(
        "analyze_image_requests_total",
        {"api_version": "4.0", "source": "url", "status": "transport_error"},
    ) is None
