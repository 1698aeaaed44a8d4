"""Tests for request URL construction."""

import pytest

from az_analyze_image.errors import DecodeError
from az_analyze_image.vision.endpoints import Endpoint, build_url
from az_analyze_image.vision.versions import ApiVersion

BASE = "https://test-resource.cognitiveservices.azure.com/"


def test_v32_url_without_params():
    assert build_url(BASE, ApiVersion.V3_2, "analyze") == BASE + "vision/v3.2/analyze"


def test_v32_url_encodes_feature_list():
    url = build_url(BASE, ApiVersion.V3_2, "analyze", [("visualFeatures", "Faces,Tags")])
    assert url == BASE + "vision/v3.2/analyze?visualFeatures=Faces%2CTags"


def test_v40_url_always_carries_api_version_first():
    url = build_url(BASE, ApiVersion.V4_0, "analyze", [("features", "people")])
    assert url == (
        BASE + "computervision/imageanalysis:analyze"
        "?api-version=2023-04-01-preview&features=people"
    )


def test_v40_api_version_cannot_be_overridden():
    url = build_url(BASE, "4.0", "analyze", {"api-version": "2099-01-01", "features": "tags"})
    assert url.count("api-version") == 1
    assert "2099" not in url


def test_default_values_are_dropped():
    url = build_url(BASE, "3.2", "analyze", {"language": None, "details": "", "model-version": "latest"})
    assert url == BASE + "vision/v3.2/analyze?model-version=latest"


def test_values_are_percent_encoded():
    url = build_url(BASE, "3.2", "analyze", [("language", "a b&c=d/é")])
    assert url.endswith("?language=a%20b%26c%3Dd%2F%C3%A9")


def test_base_without_trailing_slash():
    assert build_url(BASE.rstrip("/"), "3.2", "analyze") == BASE + "vision/v3.2/analyze"


@pytest.mark.parametrize("base", ["", "not-a-url", "/relative/path"])
def test_non_absolute_base_raises(base):
    with pytest.raises(DecodeError):
        build_url(base, ApiVersion.V4_0, "analyze")


class TestEndpoint:
    def test_parses_version_string(self):
        endpoint = Endpoint(BASE, "v3.2")
        assert endpoint.api_version is ApiVersion.V3_2
        assert endpoint.profile.features_param == "visualFeatures"

    def test_url(self):
        endpoint = Endpoint(BASE, ApiVersion.V4_0)
        assert endpoint.url(params=[("features", "read")]).endswith(
            "imageanalysis:analyze?api-version=2023-04-01-preview&features=read"
        )

    def test_immutable(self):
        endpoint = Endpoint(BASE, ApiVersion.V4_0)
        with pytest.raises(Exception):
            endpoint.base_url = "https://other/"

    def test_bad_base_raises(self):
        with pytest.raises(DecodeError):
            Endpoint("nope", ApiVersion.V4_0)

    def test_unknown_version_raises(self):
        with pytest.raises(ValueError):
            Endpoint(BASE, "5.0")
