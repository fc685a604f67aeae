"""Kernel metric extraction from Nsight Compute raw export rows.

Nsight Compute's raw CSV export interleaves real kernel rows with metadata
rows (unit annotations, repeated headers, blanks).  There is no structural
marker telling them apart, so the DRAM bandwidth column acts as the sole
validity gate: a row whose bandwidth does not parse as a finite number is
dropped.  Every other numeric column degrades to ``0.0`` when it cannot be
parsed.

Nothing in this module raises on malformed input.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Iterable, List, Mapping, Optional

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Export column names
# ---------------------------------------------------------------------------
COL_ID = "ID"
COL_KERNEL_NAME = "Kernel Name"
COL_TIME = "gpu__time_duration.avg"
COL_DRAM_BANDWIDTH = "dram__bytes.sum.per_second"
COL_TENSOR_INSTR = "smsp__inst_executed_pipe_tensor.sum.per_cycle_elapsed"
COL_CYCLES = "gpc__cycles_elapsed.sum"

DEFAULT_KERNEL_ID = "Unknown"
DEFAULT_KERNEL_NAME = "Unknown Kernel"

# Floor on kernel duration (s) so a zero or missing time cannot blow up TFLOPS.
_MIN_TIME_SECONDS: float = 0.001

# FLOPs per tensor instruction times the cycle-to-seconds scaling of the
# reference hardware generation.
_TFLOPS_SCALE: float = 64e-12

# Leading decimal number: sign, digits with optional fraction, optional exponent.
_LEADING_NUMBER: re.Pattern[str] = re.compile(
    r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?"
)


def parse_metric_value(value: Any) -> float:
    """Coerce a raw export cell to a float.

    Thousands separators are stripped and surrounding whitespace trimmed,
    then the longest leading decimal number is read (``"12.5 TB/s"`` ->
    ``12.5``).  Returns ``nan`` for ``None``, blanks, non-numeric text,
    and non-finite results.
    """
    if value is None:
        return math.nan
    cleaned = str(value).replace(",", "").strip()
    match = _LEADING_NUMBER.match(cleaned)
    if match is None:
        return math.nan
    number = float(match.group(0))
    if not math.isfinite(number):
        return math.nan
    return number


def _or_zero(value: float) -> float:
    return 0.0 if math.isnan(value) else value


def _text_or_default(value: Any, default: str) -> str:
    if value is None:
        return default
    text = str(value).strip()
    return text if text else default


def estimate_tflops(
    tensor_instr_per_cycle: float,
    cycles: float,
    time_seconds: float,
) -> float:
    """Estimated tensor throughput in TFLOPS."""
    return (
        tensor_instr_per_cycle * cycles / max(time_seconds, _MIN_TIME_SECONDS)
    ) * _TFLOPS_SCALE


# ============================================================================
# Data classes
# ============================================================================


@dataclass(frozen=True)
class RawKernelRow:
    """Typed view over one loosely-typed export row.

    Every field is optional; the values are kept exactly as they came from
    the loader and only coerced by :class:`MetricExtractor`.
    """

    kernel_id: Optional[Any] = None
    kernel_name: Optional[Any] = None
    time: Optional[Any] = None
    dram_bandwidth: Optional[Any] = None
    tensor_instr_per_cycle: Optional[Any] = None
    cycles: Optional[Any] = None

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> RawKernelRow:
        return cls(
            kernel_id=row.get(COL_ID),
            kernel_name=row.get(COL_KERNEL_NAME),
            time=row.get(COL_TIME),
            dram_bandwidth=row.get(COL_DRAM_BANDWIDTH),
            tensor_instr_per_cycle=row.get(COL_TENSOR_INSTR),
            cycles=row.get(COL_CYCLES),
        )


@dataclass(frozen=True)
class KernelMetric:
    """Normalized performance metrics of one profiled kernel."""

    id: str
    name: str
    time_seconds: float
    dram_bandwidth_tbps: float
    tensor_instr_per_cycle: float
    cycles: float
    tflops: float

    # -- serialisation helpers ------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> KernelMetric:
        return cls(
            id=str(data.get("id", DEFAULT_KERNEL_ID)),
            name=str(data.get("name", DEFAULT_KERNEL_NAME)),
            time_seconds=float(data.get("time_seconds", 0.0)),
            dram_bandwidth_tbps=float(data.get("dram_bandwidth_tbps", 0.0)),
            tensor_instr_per_cycle=float(data.get("tensor_instr_per_cycle", 0.0)),
            cycles=float(data.get("cycles", 0.0)),
            tflops=float(data.get("tflops", 0.0)),
        )


@dataclass
class ExtractionResult:
    """Output of one extraction pass.

    ``rejected_records`` counts rows dropped by the bandwidth gate (unit
    rows, repeated headers, blanks) and is reported separately from the
    kernel metrics.
    """

    metrics: List[KernelMetric] = field(default_factory=list)
    total_records: int = 0
    rejected_records: int = 0

    @property
    def accepted_records(self) -> int:
        return len(self.metrics)

    # -- serialisation helpers ------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metrics": [m.to_dict() for m in self.metrics],
            "total_records": self.total_records,
            "rejected_records": self.rejected_records,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ExtractionResult:
        raw_metrics = data.get("metrics", [])
        metrics = (
            [KernelMetric.from_dict(m) for m in raw_metrics]
            if isinstance(raw_metrics, list)
            else []
        )
        return cls(
            metrics=metrics,
            total_records=int(data.get("total_records", len(metrics))),
            rejected_records=int(data.get("rejected_records", 0)),
        )


# ============================================================================
# Metric Extractor
# ============================================================================


class MetricExtractor:
    """Convert raw export rows into :class:`KernelMetric` values.

    Usage::

        extractor = MetricExtractor()
        result = extractor.extract(rows)
        for metric in result.metrics:
            print(metric.name, metric.tflops)
        print(result.rejected_records, "rows skipped")
    """

    def extract(self, records: Iterable[Mapping[str, Any]]) -> ExtractionResult:
        """Extract kernel metrics, preserving the source order of valid rows."""
        metrics: List[KernelMetric] = []
        total = 0
        rejected = 0

        for index, record in enumerate(records):
            total += 1
            metric = self.extract_one(RawKernelRow.from_mapping(record))
            if metric is None:
                rejected += 1
                logger.debug("Skipping row %d: no numeric DRAM bandwidth.", index)
                continue
            metrics.append(metric)

        logger.debug(
            "Extracted %d kernel metrics from %d rows (%d skipped).",
            len(metrics), total, rejected,
        )
        return ExtractionResult(
            metrics=metrics,
            total_records=total,
            rejected_records=rejected,
        )

    @staticmethod
    def extract_one(row: RawKernelRow) -> Optional[KernelMetric]:
        """Build the metric for a single row, or ``None`` if it is not a kernel row."""
        bandwidth = parse_metric_value(row.dram_bandwidth)
        if math.isnan(bandwidth):
            return None

        time_seconds = _or_zero(parse_metric_value(row.time))
        tensor_instr = _or_zero(parse_metric_value(row.tensor_instr_per_cycle))
        cycles = _or_zero(parse_metric_value(row.cycles))

        return KernelMetric(
            id=_text_or_default(row.kernel_id, DEFAULT_KERNEL_ID),
            name=_text_or_default(row.kernel_name, DEFAULT_KERNEL_NAME),
            time_seconds=time_seconds,
            dram_bandwidth_tbps=bandwidth,
            tensor_instr_per_cycle=tensor_instr,
            cycles=cycles,
            tflops=estimate_tflops(tensor_instr, cycles, time_seconds),
        )


def extract_kernel_metrics(records: Iterable[Mapping[str, Any]]) -> List[KernelMetric]:
    """Shorthand for ``MetricExtractor().extract(records).metrics``."""
    return MetricExtractor().extract(records).metrics
