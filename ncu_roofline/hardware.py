"""Hardware roofline constants.

A roofline needs exactly two numbers from the target accelerator: its peak
compute throughput (TFLOPS) and its peak DRAM bandwidth (TB/s).  This module
keeps a small table of known presets and resolves the effective pair from
explicit arguments, environment variables, and the preset table, in that
order of precedence.
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, asdict
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Environment variable names
# ---------------------------------------------------------------------------
ENV_HARDWARE = "NCU_ROOFLINE_HARDWARE"
ENV_PEAK_TFLOPS = "NCU_ROOFLINE_PEAK_TFLOPS"
ENV_PEAK_BANDWIDTH = "NCU_ROOFLINE_PEAK_BANDWIDTH_TBPS"

DEFAULT_PRESET = "a100-fp64"


# ============================================================================
# Data classes
# ============================================================================


@dataclass(frozen=True)
class HardwareSpec:
    """Peak compute and memory limits of one accelerator configuration."""

    name: str
    peak_compute_tflops: float
    peak_bandwidth_tbps: float
    description: str = ""

    def __post_init__(self) -> None:
        for label, value in (
            ("peak_compute_tflops", self.peak_compute_tflops),
            ("peak_bandwidth_tbps", self.peak_bandwidth_tbps),
        ):
            if not math.isfinite(value) or value <= 0:
                raise ValueError(
                    f"{label} must be a positive finite number, got {value!r}"
                )

    @property
    def ai_knee(self) -> float:
        """Arithmetic intensity where the bandwidth ramp meets the compute roof."""
        return self.peak_compute_tflops / self.peak_bandwidth_tbps

    # -- serialisation helpers ------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> HardwareSpec:
        return cls(
            name=str(data.get("name", "custom")),
            peak_compute_tflops=float(data.get("peak_compute_tflops", 0.0)),
            peak_bandwidth_tbps=float(data.get("peak_bandwidth_tbps", 0.0)),
            description=str(data.get("description", "")),
        )


# ============================================================================
# Presets
# ============================================================================

HARDWARE_PRESETS: Dict[str, HardwareSpec] = {
    "a100-fp64": HardwareSpec(
        "a100-fp64", 19.5, 1.555,
        "A100 40GB, FP64 CUDA cores (tensor cores do not run FP64 here)",
    ),
    "a100-fp32": HardwareSpec("a100-fp32", 19.5, 1.555, "A100 40GB, FP32 CUDA cores"),
    "a100-fp16-tensor": HardwareSpec(
        "a100-fp16-tensor", 312.0, 1.555, "A100 40GB, FP16 tensor cores",
    ),
    "h100-fp64": HardwareSpec("h100-fp64", 34.0, 3.35, "H100 SXM, FP64 CUDA cores"),
    "h100-fp16-tensor": HardwareSpec(
        "h100-fp16-tensor", 989.5, 3.35, "H100 SXM, FP16 tensor cores",
    ),
    "v100-fp64": HardwareSpec("v100-fp64", 7.8, 0.9, "V100 SXM2, FP64 CUDA cores"),
    "l40s-fp32": HardwareSpec("l40s-fp32", 91.6, 0.864, "L40S, FP32 CUDA cores"),
}


def _env_float(env: Mapping[str, str], key: str) -> Optional[float]:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}") from None


def resolve_hardware(
    preset: Optional[str] = None,
    peak_compute_tflops: Optional[float] = None,
    peak_bandwidth_tbps: Optional[float] = None,
    env: Optional[Mapping[str, str]] = None,
) -> HardwareSpec:
    """Resolve the effective hardware constants.

    Parameters
    ----------
    preset:
        Key into :data:`HARDWARE_PRESETS`.  Falls back to the
        ``NCU_ROOFLINE_HARDWARE`` env var, then ``a100-fp64``.
    peak_compute_tflops, peak_bandwidth_tbps:
        Explicit overrides.  Each falls back to its env var
        (``NCU_ROOFLINE_PEAK_TFLOPS`` / ``NCU_ROOFLINE_PEAK_BANDWIDTH_TBPS``)
        and then to the preset value.
    env:
        Environment mapping; defaults to ``os.environ``.

    Raises
    ------
    ValueError
        On an unknown preset, a non-numeric env var, or non-positive peaks.
    """
    if env is None:
        env = os.environ

    preset_name = (preset or env.get(ENV_HARDWARE) or DEFAULT_PRESET).strip().lower()
    if preset_name not in HARDWARE_PRESETS:
        raise ValueError(
            f"Unknown hardware preset {preset_name!r}. "
            f"Expected one of: {', '.join(sorted(HARDWARE_PRESETS))}."
        )
    base = HARDWARE_PRESETS[preset_name]

    if peak_compute_tflops is None:
        peak_compute_tflops = _env_float(env, ENV_PEAK_TFLOPS)
    if peak_bandwidth_tbps is None:
        peak_bandwidth_tbps = _env_float(env, ENV_PEAK_BANDWIDTH)

    if peak_compute_tflops is None and peak_bandwidth_tbps is None:
        return base

    spec = HardwareSpec(
        name=f"{base.name} (custom)",
        peak_compute_tflops=(
            base.peak_compute_tflops if peak_compute_tflops is None else peak_compute_tflops
        ),
        peak_bandwidth_tbps=(
            base.peak_bandwidth_tbps if peak_bandwidth_tbps is None else peak_bandwidth_tbps
        ),
        description=base.description,
    )
    logger.debug(
        "Resolved hardware %s: %.3f TFLOPS, %.3f TB/s.",
        spec.name, spec.peak_compute_tflops, spec.peak_bandwidth_tbps,
    )
    return spec
