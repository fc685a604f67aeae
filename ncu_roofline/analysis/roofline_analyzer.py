"""Roofline model analysis of extracted kernel metrics.

Builds the classic two-segment roofline (a bandwidth-limited ramp capped by
a compute ceiling) for the configured hardware, places every kernel on it by
arithmetic intensity and achieved TFLOPS, and aggregates the result into a
:class:`RooflineSummary`: memory- vs compute-bound counts, averages, and the
extremal kernels.

The analysis is a pure function of the kernel metrics and the two hardware
constants.  Kernels whose AI or TFLOPS are not finite are left out of every
statistic and of the plotted series; they are never removed from the input.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from ncu_roofline.hardware import HardwareSpec, HARDWARE_PRESETS, DEFAULT_PRESET
from ncu_roofline.profiler.metric_extractor import KernelMetric

logger = logging.getLogger(__name__)


# ============================================================================
# Enums
# ============================================================================


class BoundType(str, Enum):
    """Which roof limits a kernel."""

    memory = "memory"
    compute = "compute"


class OptimizationFocus(str, Enum):
    """Which guidance branch the kernel mix calls for."""

    memory_bound = "memory_bound"
    compute_bound = "compute_bound"


# ============================================================================
# Thresholds and constants
# ============================================================================

# Floor on DRAM bandwidth (TB/s) when dividing for arithmetic intensity.
_MIN_BANDWIDTH_TBPS: float = 0.01

# Offset added to every curve sample so the first point is not log(0).
_CURVE_EPSILON: float = 1e-4

DEFAULT_CURVE_POINTS: int = 100

# Reported in place of a kernel name when there is nothing to report.
NOT_AVAILABLE = "N/A"


# ============================================================================
# Data classes
# ============================================================================


@dataclass
class RooflineCurve:
    """Sampled roofline: ``performance_tflops[i]`` is the roof at ``arithmetic_intensity[i]``."""

    arithmetic_intensity: List[float] = field(default_factory=list)
    performance_tflops: List[float] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "arithmetic_intensity": list(self.arithmetic_intensity),
            "performance_tflops": list(self.performance_tflops),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> RooflineCurve:
        return cls(
            arithmetic_intensity=[float(x) for x in data.get("arithmetic_intensity", [])],
            performance_tflops=[float(y) for y in data.get("performance_tflops", [])],
        )


@dataclass
class KernelPoint:
    """A valid kernel placed on the roofline."""

    id: str
    name: str
    arithmetic_intensity: float
    tflops: float
    bound: BoundType
    attainable_tflops: float
    roof_efficiency: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "arithmetic_intensity": self.arithmetic_intensity,
            "tflops": self.tflops,
            "bound": self.bound.value,
            "attainable_tflops": self.attainable_tflops,
            "roof_efficiency": self.roof_efficiency,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> KernelPoint:
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            arithmetic_intensity=float(data.get("arithmetic_intensity", 0.0)),
            tflops=float(data.get("tflops", 0.0)),
            bound=BoundType(data.get("bound", "compute")),
            attainable_tflops=float(data.get("attainable_tflops", 0.0)),
            roof_efficiency=float(data.get("roof_efficiency", 0.0)),
        )


@dataclass
class RooflineSummary:
    """Aggregate classification statistics over the valid kernels.

    ``memory_bound_pct`` and ``compute_bound_pct`` are ``None`` when there
    are no valid kernels: the ratio is undefined and the consumer decides
    how to show it.
    """

    ai_knee: float
    peak_compute_tflops: float
    peak_bandwidth_tbps: float
    total_kernels: int
    valid_kernels: int
    memory_bound_count: int
    compute_bound_count: int
    memory_bound_pct: Optional[float]
    compute_bound_pct: Optional[float]
    avg_arithmetic_intensity: float
    avg_performance_tflops: float
    max_ai_kernel: str
    max_perf_kernel: str

    # -- serialisation helpers ------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ai_knee": self.ai_knee,
            "peak_compute_tflops": self.peak_compute_tflops,
            "peak_bandwidth_tbps": self.peak_bandwidth_tbps,
            "total_kernels": self.total_kernels,
            "valid_kernels": self.valid_kernels,
            "memory_bound_count": self.memory_bound_count,
            "compute_bound_count": self.compute_bound_count,
            "memory_bound_pct": self.memory_bound_pct,
            "compute_bound_pct": self.compute_bound_pct,
            "avg_arithmetic_intensity": self.avg_arithmetic_intensity,
            "avg_performance_tflops": self.avg_performance_tflops,
            "max_ai_kernel": self.max_ai_kernel,
            "max_perf_kernel": self.max_perf_kernel,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> RooflineSummary:
        def _optional_float(key: str) -> Optional[float]:
            value = data.get(key)
            return None if value is None else float(value)

        return cls(
            ai_knee=float(data.get("ai_knee", 0.0)),
            peak_compute_tflops=float(data.get("peak_compute_tflops", 0.0)),
            peak_bandwidth_tbps=float(data.get("peak_bandwidth_tbps", 0.0)),
            total_kernels=int(data.get("total_kernels", 0)),
            valid_kernels=int(data.get("valid_kernels", 0)),
            memory_bound_count=int(data.get("memory_bound_count", 0)),
            compute_bound_count=int(data.get("compute_bound_count", 0)),
            memory_bound_pct=_optional_float("memory_bound_pct"),
            compute_bound_pct=_optional_float("compute_bound_pct"),
            avg_arithmetic_intensity=float(data.get("avg_arithmetic_intensity", 0.0)),
            avg_performance_tflops=float(data.get("avg_performance_tflops", 0.0)),
            max_ai_kernel=str(data.get("max_ai_kernel", NOT_AVAILABLE)),
            max_perf_kernel=str(data.get("max_perf_kernel", NOT_AVAILABLE)),
        )


@dataclass
class RooflineAnalysis:
    """Everything one analysis pass produces."""

    hardware: HardwareSpec
    curve: RooflineCurve
    points: List[KernelPoint]
    summary: RooflineSummary
    focus: OptimizationFocus

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hardware": self.hardware.to_dict(),
            "curve": self.curve.to_dict(),
            "points": [p.to_dict() for p in self.points],
            "summary": self.summary.to_dict(),
            "focus": self.focus.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> RooflineAnalysis:
        return cls(
            hardware=HardwareSpec.from_dict(data.get("hardware", {})),
            curve=RooflineCurve.from_dict(data.get("curve", {})),
            points=[KernelPoint.from_dict(p) for p in data.get("points", [])],
            summary=RooflineSummary.from_dict(data.get("summary", {})),
            focus=OptimizationFocus(data.get("focus", "compute_bound")),
        )


# ============================================================================
# Roofline math
# ============================================================================


def compute_knee(peak_compute_tflops: float, peak_bandwidth_tbps: float) -> float:
    """AI at which the bandwidth ramp meets the compute ceiling."""
    return peak_compute_tflops / peak_bandwidth_tbps


def attainable_performance(
    arithmetic_intensity: float,
    peak_compute_tflops: float,
    peak_bandwidth_tbps: float,
) -> float:
    """Roof height at the given arithmetic intensity."""
    return min(arithmetic_intensity * peak_bandwidth_tbps, peak_compute_tflops)


def build_roofline_curve(
    peak_compute_tflops: float,
    peak_bandwidth_tbps: float,
    num_points: int = DEFAULT_CURVE_POINTS,
) -> RooflineCurve:
    """Sample the roofline linearly over ``[0, max(knee * 10, 1)]``.

    Every sample is shifted by a small epsilon so the first one is usable on
    a log axis.
    """
    knee = compute_knee(peak_compute_tflops, peak_bandwidth_tbps)
    max_ai = max(knee * 10, 1.0)
    steps = max(num_points - 1, 1)
    ai_values = [(max_ai / steps) * i + _CURVE_EPSILON for i in range(num_points)]
    perf_values = [
        attainable_performance(ai, peak_compute_tflops, peak_bandwidth_tbps)
        for ai in ai_values
    ]
    return RooflineCurve(arithmetic_intensity=ai_values, performance_tflops=perf_values)


def kernel_arithmetic_intensity(metric: KernelMetric) -> float:
    """TFLOPS per TB/s of DRAM traffic, with the bandwidth floored."""
    return metric.tflops / max(metric.dram_bandwidth_tbps, _MIN_BANDWIDTH_TBPS)


def classify(arithmetic_intensity: float, ai_knee: float) -> BoundType:
    """Memory-bound strictly left of the knee; compute-bound at or right of it."""
    if arithmetic_intensity < ai_knee:
        return BoundType.memory
    return BoundType.compute


def select_optimization_focus(
    memory_bound_count: int,
    compute_bound_count: int,
) -> OptimizationFocus:
    """Memory-bound guidance only on a strict majority; ties go to compute."""
    if memory_bound_count > compute_bound_count:
        return OptimizationFocus.memory_bound
    return OptimizationFocus.compute_bound


# ============================================================================
# Roofline Analyzer
# ============================================================================


class RooflineAnalyzer:
    """Place kernels on the roofline of a given accelerator.

    Usage::

        analyzer = RooflineAnalyzer(HARDWARE_PRESETS["a100-fp64"])
        analysis = analyzer.analyze(metrics)
        print(analysis.summary.memory_bound_count, analysis.focus)
    """

    def __init__(
        self,
        hardware: Optional[HardwareSpec] = None,
        curve_points: int = DEFAULT_CURVE_POINTS,
    ) -> None:
        self._hardware = hardware if hardware is not None else HARDWARE_PRESETS[DEFAULT_PRESET]
        self._curve_points = curve_points

    @property
    def hardware(self) -> HardwareSpec:
        return self._hardware

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def analyze(self, metrics: Sequence[KernelMetric]) -> RooflineAnalysis:
        """Run the roofline analysis over *metrics*.

        Returns
        -------
        RooflineAnalysis
            The roof curve, the valid kernel points in source order, the
            aggregate summary, and the selected optimization focus.
        """
        peak_compute = self._hardware.peak_compute_tflops
        peak_bw = self._hardware.peak_bandwidth_tbps
        knee = compute_knee(peak_compute, peak_bw)

        curve = build_roofline_curve(peak_compute, peak_bw, self._curve_points)
        points = self._build_points(metrics, knee)
        summary = self._summarize(points, len(metrics), knee)
        focus = select_optimization_focus(
            summary.memory_bound_count, summary.compute_bound_count,
        )

        logger.debug(
            "Roofline: knee=%.4f, %d/%d valid kernels, %d memory-bound, "
            "%d compute-bound, focus=%s.",
            knee,
            summary.valid_kernels,
            summary.total_kernels,
            summary.memory_bound_count,
            summary.compute_bound_count,
            focus.value,
        )

        return RooflineAnalysis(
            hardware=self._hardware,
            curve=curve,
            points=points,
            summary=summary,
            focus=focus,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _build_points(
        self,
        metrics: Sequence[KernelMetric],
        knee: float,
    ) -> List[KernelPoint]:
        peak_compute = self._hardware.peak_compute_tflops
        peak_bw = self._hardware.peak_bandwidth_tbps

        points: List[KernelPoint] = []
        for metric in metrics:
            ai = kernel_arithmetic_intensity(metric)
            perf = metric.tflops
            if not (math.isfinite(ai) and math.isfinite(perf)):
                logger.debug("Excluding kernel %s: non-finite AI or TFLOPS.", metric.id)
                continue

            roof = attainable_performance(ai, peak_compute, peak_bw)
            points.append(
                KernelPoint(
                    id=metric.id,
                    name=metric.name,
                    arithmetic_intensity=ai,
                    tflops=perf,
                    bound=classify(ai, knee),
                    attainable_tflops=roof,
                    roof_efficiency=perf / roof if roof > 0 else 0.0,
                )
            )
        return points

    def _summarize(
        self,
        points: List[KernelPoint],
        total_kernels: int,
        knee: float,
    ) -> RooflineSummary:
        valid = len(points)
        memory_bound = sum(1 for p in points if p.bound is BoundType.memory)
        compute_bound = valid - memory_bound

        if valid > 0:
            memory_pct: Optional[float] = memory_bound / valid * 100.0
            compute_pct: Optional[float] = compute_bound / valid * 100.0
            avg_ai = sum(p.arithmetic_intensity for p in points) / valid
            avg_perf = sum(p.tflops for p in points) / valid
        else:
            memory_pct = None
            compute_pct = None
            avg_ai = 0.0
            avg_perf = 0.0

        return RooflineSummary(
            ai_knee=knee,
            peak_compute_tflops=self._hardware.peak_compute_tflops,
            peak_bandwidth_tbps=self._hardware.peak_bandwidth_tbps,
            total_kernels=total_kernels,
            valid_kernels=valid,
            memory_bound_count=memory_bound,
            compute_bound_count=compute_bound,
            memory_bound_pct=memory_pct,
            compute_bound_pct=compute_pct,
            avg_arithmetic_intensity=avg_ai,
            avg_performance_tflops=avg_perf,
            max_ai_kernel=_first_max_name(points, lambda p: p.arithmetic_intensity),
            max_perf_kernel=_first_max_name(points, lambda p: p.tflops),
        )


def _first_max_name(points: List[KernelPoint], key: Any) -> str:
    """Name of the first point with the largest *key*, or ``N/A``."""
    best: Optional[KernelPoint] = None
    for point in points:
        if best is None or key(point) > key(best):
            best = point
    return best.name if best is not None else NOT_AVAILABLE
