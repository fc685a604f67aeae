"""Roofline analysis, optimization guidance, and report generation."""

from ncu_roofline.analysis.roofline_analyzer import (
    BoundType,
    KernelPoint,
    OptimizationFocus,
    RooflineAnalysis,
    RooflineAnalyzer,
    RooflineCurve,
    RooflineSummary,
)
from ncu_roofline.analysis.optimization_advisor import (
    OptimizationAdvisor,
    OptimizationReport,
    Recommendation,
)
from ncu_roofline.analysis.report_generator import ReportGenerator

__all__ = [
    "BoundType",
    "KernelPoint",
    "OptimizationFocus",
    "RooflineAnalysis",
    "RooflineAnalyzer",
    "RooflineCurve",
    "RooflineSummary",
    "OptimizationAdvisor",
    "OptimizationReport",
    "Recommendation",
    "ReportGenerator",
]
