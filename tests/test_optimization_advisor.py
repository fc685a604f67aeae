"""Tests for ncu_roofline.analysis.optimization_advisor."""

import pytest

from ncu_roofline.hardware import HardwareSpec
from ncu_roofline.profiler.metric_extractor import KernelMetric
from ncu_roofline.analysis.roofline_analyzer import OptimizationFocus, RooflineAnalyzer
from ncu_roofline.analysis.optimization_advisor import (
    OptimizationAdvisor,
    OptimizationReport,
    Recommendation,
    RecommendationCategory,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

_HARDWARE = HardwareSpec("test", peak_compute_tflops=10.0, peak_bandwidth_tbps=2.0)


def _make_metric(name, tflops, bandwidth=1.0):
    return KernelMetric(
        id=name, name=name, time_seconds=0.1, dram_bandwidth_tbps=bandwidth,
        tensor_instr_per_cycle=1.0, cycles=1000.0, tflops=tflops,
    )


def _memory_heavy_analysis():
    return RooflineAnalyzer(_HARDWARE).analyze(
        [
            _make_metric("copy", tflops=0.5),     # ai 0.5, roof 1, eff 0.5
            _make_metric("norm", tflops=1.0),     # ai 1, roof 2, eff 0.5
            _make_metric("gemm", tflops=9.0),     # ai 9, roof 10, eff 0.9
        ]
    )


def _compute_heavy_analysis():
    return RooflineAnalyzer(_HARDWARE).analyze(
        [
            _make_metric("gemm_a", tflops=6.0),   # ai 6, roof 10, eff 0.6
            _make_metric("gemm_b", tflops=8.0),   # ai 8, roof 10, eff 0.8
            _make_metric("copy", tflops=0.1),     # ai 0.1, roof 0.2, eff 0.5
        ]
    )


# ---------------------------------------------------------------------------
# Recommendation / OptimizationReport
# ---------------------------------------------------------------------------

class TestRecommendation:
    def test_to_dict_from_dict_roundtrip(self):
        rec = Recommendation(
            category=RecommendationCategory.cache,
            title="Optimize cache utilization",
            description="Use shared memory.",
        )
        d = rec.to_dict()
        assert d["category"] == "cache"
        assert Recommendation.from_dict(d) == rec


class TestOptimizationReport:
    def test_to_dict_from_dict_roundtrip(self):
        report = OptimizationAdvisor(_memory_heavy_analysis()).analyze()
        restored = OptimizationReport.from_dict(report.to_dict())
        assert restored.focus is report.focus
        assert restored.headline == report.headline
        assert restored.recommendations == report.recommendations
        assert restored.general == report.general
        assert restored.outliers == report.outliers


# ---------------------------------------------------------------------------
# OptimizationAdvisor
# ---------------------------------------------------------------------------

class TestOptimizationAdvisor:
    def test_memory_bound_guidance(self):
        report = OptimizationAdvisor(_memory_heavy_analysis()).analyze()
        assert report.focus is OptimizationFocus.memory_bound
        assert report.headline.startswith("Memory-Bound Optimization Focus")
        assert [r.title for r in report.recommendations] == [
            "Increase data reuse",
            "Optimize cache utilization",
            "Reduce global memory transactions",
            "Consider algorithmic changes",
        ]

    def test_compute_bound_guidance(self):
        report = OptimizationAdvisor(_compute_heavy_analysis()).analyze()
        assert report.focus is OptimizationFocus.compute_bound
        assert report.headline.startswith("Compute-Bound Optimization Focus")
        assert report.recommendations[0].title == "Increase parallelism"
        assert report.recommendations[-1].category is RecommendationCategory.precision

    def test_general_guidance_always_present(self):
        for analysis in (_memory_heavy_analysis(), _compute_heavy_analysis()):
            report = OptimizationAdvisor(analysis).analyze()
            assert len(report.general) == 3
            assert all(r.category is RecommendationCategory.general for r in report.general)
            assert report.general[0].title == "Profile outliers"

    def test_outliers_sorted_by_roof_efficiency(self):
        report = OptimizationAdvisor(_compute_heavy_analysis()).analyze()
        assert [p.name for p in report.outliers] == ["copy", "gemm_a", "gemm_b"]

    def test_outlier_ties_keep_source_order(self):
        report = OptimizationAdvisor(_memory_heavy_analysis()).analyze()
        assert [p.name for p in report.outliers][:2] == ["copy", "norm"]

    def test_max_outliers(self):
        report = OptimizationAdvisor(_compute_heavy_analysis(), max_outliers=1).analyze()
        assert len(report.outliers) == 1
        assert report.outliers[0].name == "copy"

    def test_empty_analysis(self):
        analysis = RooflineAnalyzer().analyze([])
        report = OptimizationAdvisor(analysis).analyze()
        assert report.focus is OptimizationFocus.compute_bound
        assert report.outliers == []
        assert len(report.recommendations) == 4

    @pytest.mark.parametrize("focus", list(OptimizationFocus))
    def test_every_focus_has_guidance(self, focus):
        analysis = RooflineAnalyzer().analyze([])
        analysis.focus = focus
        report = OptimizationAdvisor(analysis).analyze()
        assert report.focus is focus
        assert report.recommendations
