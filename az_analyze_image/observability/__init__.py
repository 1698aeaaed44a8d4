"""Observability module - logging and metrics."""

from az_analyze_image.observability.logging import setup_logging, get_logger
from az_analyze_image.observability.metrics import get_metrics, AnalyzeImageMetrics

__all__ = ["setup_logging", "get_logger", "get_metrics", "AnalyzeImageMetrics"]
