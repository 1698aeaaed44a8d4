"""
Shared pytest fixtures for the Analyze Image client tests.
"""
import httpx
import pytest
from prometheus_client import CollectorRegistry

from az_analyze_image.observability.metrics import AnalyzeImageMetrics
from az_analyze_image.vision import AnalyzeImageClient, ApiVersion

TEST_KEY = "f73ff2c2addc4ab7b2480278c8c6ff90"
TEST_ENDPOINT = "https://test-resource.cognitiveservices.azure.com/"
IMAGE_URL = "https://upload.wikimedia.org/wikipedia/commons/2/2a/Human_faces.jpg"


def people_body(*confidences, width=1000, height=800):
    """A v4.0 response carrying one detected person per confidence."""
    return {
        "modelVersion": "2023-02-01-preview",
        "metadata": {"width": width, "height": height},
        "peopleResult": {
            "values": [
                {
                    "boundingBox": {"x": 10 * i, "y": 20, "w": 100, "h": 300},
                    "confidence": confidence,
                }
                for i, confidence in enumerate(confidences)
            ]
        },
    }


def faces_body():
    """A v3.2 response with two faces."""
    return {
        "faces": [
            {
                "age": 31,
                "gender": "Female",
                "faceRectangle": {"left": 118, "top": 159, "width": 94, "height": 94},
            },
            {
                "age": 52,
                "gender": "Male",
                "faceRectangle": {"left": 492, "top": 111, "width": 90, "height": 90},
            },
        ],
        "requestId": "0dbec5ad-a3d3-4f7e-96b4-dfd57efe967d",
        "metadata": {"width": 1000, "height": 600, "format": "Jpeg"},
        "modelVersion": "2021-05-01",
    }


class RecordingHandler:
    """MockTransport handler that records requests and returns a canned response."""

    def __init__(self, status_code=200, json=None, content=None, exc=None):
        self.status_code = status_code
        self.json = json
        self.content = content
        self.exc = exc
        self.requests = []

    @property
    def calls(self):
        return len(self.requests)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc(request)
        if self.content is not None:
            return httpx.Response(self.status_code, content=self.content)
        return httpx.Response(self.status_code, json=self.json)


@pytest.fixture
def registry():
    return CollectorRegistry()


@pytest.fixture
def metrics(registry):
    """Metrics bound to a private registry."""
    return AnalyzeImageMetrics(registry=registry)


@pytest.fixture
def make_client(metrics):
    """Factory building a client whose transport is a RecordingHandler."""
    def factory(handler, api_version=ApiVersion.V4_0):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = AnalyzeImageClient(
            TEST_KEY,
            TEST_ENDPOINT,
            api_version,
            http_client=http_client,
            metrics=metrics,
        )
        return client

    return factory
