"""Tests for Prometheus metrics."""

from az_analyze_image import __version__


def test_record_request(metrics, registry):
    metrics.record_request("4.0", "url", "200", 0.42)
    metrics.record_request("4.0", "url", "200", 0.1)

    assert registry.get_sample_value(
        "analyze_image_requests_total",
        {"api_version": "4.0", "source": "url", "status": "200"},
    ) == 2.0
    assert registry.get_sample_value(
        "analyze_image_request_duration_seconds_count",
        {"api_version": "4.0", "source": "url"},
    ) == 2.0


def test_zero_detections_not_recorded(metrics, registry):
    metrics.record_detections("3.2", {"faces": 2, "tags": 0})

    assert registry.get_sample_value(
        "analyze_image_detections_total", {"api_version": "3.2", "kind": "faces"}
    ) == 2.0
    assert registry.get_sample_value(
        "analyze_image_detections_total", {"api_version": "3.2", "kind": "tags"}
    ) is None


def test_record_error(metrics, registry):
    metrics.record_error("3.2", "DecodeError")
    assert registry.get_sample_value(
        "analyze_image_errors_total", {"api_version": "3.2", "error_type": "DecodeError"}
    ) == 1.0


def test_client_info(registry, metrics):
    assert registry.get_sample_value(
        "analyze_image_client_info",
        {"version": __version__, "vision_api": "azure_ai_services"},
    ) == 1.0
