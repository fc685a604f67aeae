"""Ingestion of Nsight Compute exports into normalized kernel metrics."""

from ncu_roofline.profiler.metric_extractor import (
    ExtractionResult,
    KernelMetric,
    MetricExtractor,
    RawKernelRow,
    extract_kernel_metrics,
    parse_metric_value,
)
from ncu_roofline.profiler.report_loader import load_raw_records

__all__ = [
    "ExtractionResult",
    "KernelMetric",
    "MetricExtractor",
    "RawKernelRow",
    "extract_kernel_metrics",
    "parse_metric_value",
    "load_raw_records",
]
