"""Optimization guidance driven by the roofline classification.

The kernel mix selects one of two guidance branches: memory-bound focus when
memory-bound kernels are a strict majority, compute-bound focus otherwise.
Each branch comes with a fixed set of recommendations, followed by general
advice and a short list of the kernels that sit farthest below the roof.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Tuple

from ncu_roofline.analysis.roofline_analyzer import (
    KernelPoint,
    OptimizationFocus,
    RooflineAnalysis,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Enums
# ============================================================================


class RecommendationCategory(str, Enum):
    """Category of a recommendation."""

    data_reuse = "data_reuse"
    cache = "cache"
    memory_transactions = "memory_transactions"
    algorithm = "algorithm"
    parallelism = "parallelism"
    instructions = "instructions"
    load_balancing = "load_balancing"
    precision = "precision"
    general = "general"


# ============================================================================
# Data classes
# ============================================================================


@dataclass
class Recommendation:
    """A single piece of optimization guidance."""

    category: RecommendationCategory
    title: str
    description: str

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["category"] = self.category.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Recommendation:
        return cls(
            category=RecommendationCategory(data.get("category", "general")),
            title=str(data.get("title", "")),
            description=str(data.get("description", "")),
        )


@dataclass
class OptimizationReport:
    """Guidance selected for one roofline analysis."""

    focus: OptimizationFocus
    headline: str
    recommendations: List[Recommendation]
    general: List[Recommendation]
    outliers: List[KernelPoint] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "focus": self.focus.value,
            "headline": self.headline,
            "recommendations": [r.to_dict() for r in self.recommendations],
            "general": [r.to_dict() for r in self.general],
            "outliers": [p.to_dict() for p in self.outliers],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> OptimizationReport:
        return cls(
            focus=OptimizationFocus(data.get("focus", "compute_bound")),
            headline=str(data.get("headline", "")),
            recommendations=[
                Recommendation.from_dict(r) for r in data.get("recommendations", [])
            ],
            general=[Recommendation.from_dict(r) for r in data.get("general", [])],
            outliers=[KernelPoint.from_dict(p) for p in data.get("outliers", [])],
        )


# ============================================================================
# Guidance text
# ============================================================================

_HEADLINES: Dict[OptimizationFocus, str] = {
    OptimizationFocus.memory_bound: (
        "Memory-Bound Optimization Focus: Most kernels are memory-bound. "
        "Focus on improving memory access efficiency."
    ),
    OptimizationFocus.compute_bound: (
        "Compute-Bound Optimization Focus: Most kernels are compute-bound. "
        "Focus on maximizing computational throughput."
    ),
}

_GUIDANCE: Dict[OptimizationFocus, List[Tuple[RecommendationCategory, str, str]]] = {
    OptimizationFocus.memory_bound: [
        (
            RecommendationCategory.data_reuse,
            "Increase data reuse",
            "Restructure algorithms to maximize data locality and reuse data in "
            "registers/cache before spilling to global memory.",
        ),
        (
            RecommendationCategory.cache,
            "Optimize cache utilization",
            "Use shared memory for frequently accessed data, consider cooperative "
            "groups for better cache sharing.",
        ),
        (
            RecommendationCategory.memory_transactions,
            "Reduce global memory transactions",
            "Fuse kernels where possible, use vectorized loads (float4/int4), and "
            "minimize scattered memory access patterns.",
        ),
        (
            RecommendationCategory.algorithm,
            "Consider algorithmic changes",
            "Explore cache-friendly representations like blocked algorithms for "
            "matrix operations.",
        ),
    ],
    OptimizationFocus.compute_bound: [
        (
            RecommendationCategory.parallelism,
            "Increase parallelism",
            "Ensure enough concurrent threads to saturate the compute units, "
            "adjust block sizes if needed.",
        ),
        (
            RecommendationCategory.instructions,
            "Optimize instruction selection",
            "Prefer instructions with higher throughput, avoid divergent control flow.",
        ),
        (
            RecommendationCategory.load_balancing,
            "Load balancing",
            "Distribute work evenly across SMs to avoid tail effects in parallel "
            "reduction operations.",
        ),
        (
            RecommendationCategory.precision,
            "Consider precision requirements",
            "If FP64 precision isn't required, consider using TF32 for higher throughput.",
        ),
    ],
}

_GENERAL_GUIDANCE: List[Tuple[str, str]] = [
    (
        "Profile outliers",
        "Focus optimization efforts on kernels with highest TFLOPS or those "
        "farthest from the roofline.",
    ),
    (
        "Balance workloads",
        "For memory-bound kernels near the knee, data access improvements may "
        "provide better ROI than compute optimizations.",
    ),
    (
        "Re-profile after changes",
        "Use roofline model to validate optimization impact and prioritize next "
        "iterations.",
    ),
]

DEFAULT_MAX_OUTLIERS: int = 5


# ============================================================================
# Optimization Advisor
# ============================================================================


class OptimizationAdvisor:
    """Select guidance for a :class:`RooflineAnalysis`.

    Usage::

        advisor = OptimizationAdvisor(analysis)
        report = advisor.analyze()
        print(report.headline)
        for rec in report.recommendations:
            print(f"- {rec.title}: {rec.description}")
    """

    def __init__(
        self,
        analysis: RooflineAnalysis,
        max_outliers: int = DEFAULT_MAX_OUTLIERS,
    ) -> None:
        self._analysis = analysis
        self._max_outliers = max(max_outliers, 0)

    def analyze(self) -> OptimizationReport:
        focus = self._analysis.focus
        recommendations = [
            Recommendation(category=cat, title=title, description=desc)
            for cat, title, desc in _GUIDANCE[focus]
        ]
        general = [
            Recommendation(
                category=RecommendationCategory.general,
                title=title,
                description=desc,
            )
            for title, desc in _GENERAL_GUIDANCE
        ]
        outliers = self._find_outliers()

        logger.debug(
            "Selected %s guidance with %d roofline outliers.",
            focus.value, len(outliers),
        )
        return OptimizationReport(
            focus=focus,
            headline=_HEADLINES[focus],
            recommendations=recommendations,
            general=general,
            outliers=outliers,
        )

    def _find_outliers(self) -> List[KernelPoint]:
        """Kernels with the lowest fraction of their attainable roof, worst first."""
        ranked = sorted(self._analysis.points, key=lambda p: p.roof_efficiency)
        return ranked[: self._max_outliers]
