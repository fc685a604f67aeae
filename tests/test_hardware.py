"""Tests for ncu_roofline.hardware."""

import math

import pytest

from ncu_roofline.hardware import (
    DEFAULT_PRESET,
    ENV_HARDWARE,
    ENV_PEAK_BANDWIDTH,
    ENV_PEAK_TFLOPS,
    HARDWARE_PRESETS,
    HardwareSpec,
    resolve_hardware,
)


class TestHardwareSpec:
    def test_default_preset_values(self):
        spec = HARDWARE_PRESETS[DEFAULT_PRESET]
        assert spec.peak_compute_tflops == 19.5
        assert spec.peak_bandwidth_tbps == 1.555

    def test_ai_knee(self):
        assert HARDWARE_PRESETS["a100-fp64"].ai_knee == pytest.approx(12.5402, abs=1e-4)

    @pytest.mark.parametrize("compute,bandwidth", [
        (0.0, 1.0),
        (-1.0, 1.0),
        (1.0, 0.0),
        (math.nan, 1.0),
        (1.0, math.inf),
    ])
    def test_rejects_bad_peaks(self, compute, bandwidth):
        with pytest.raises(ValueError):
            HardwareSpec("bad", compute, bandwidth)

    def test_to_dict_from_dict_roundtrip(self):
        spec = HARDWARE_PRESETS["h100-fp64"]
        assert HardwareSpec.from_dict(spec.to_dict()) == spec


class TestResolveHardware:
    def test_default(self):
        assert resolve_hardware(env={}) == HARDWARE_PRESETS[DEFAULT_PRESET]

    def test_named_preset(self):
        spec = resolve_hardware(preset="h100-fp64", env={})
        assert spec is HARDWARE_PRESETS["h100-fp64"]

    def test_preset_is_case_insensitive(self):
        assert resolve_hardware(preset=" A100-FP64 ", env={}).name == "a100-fp64"

    def test_preset_from_env(self):
        spec = resolve_hardware(env={ENV_HARDWARE: "v100-fp64"})
        assert spec.name == "v100-fp64"

    def test_argument_preset_beats_env(self):
        spec = resolve_hardware(preset="h100-fp64", env={ENV_HARDWARE: "v100-fp64"})
        assert spec.name == "h100-fp64"

    def test_explicit_override(self):
        spec = resolve_hardware(peak_compute_tflops=100.0, env={})
        assert spec.peak_compute_tflops == 100.0
        assert spec.peak_bandwidth_tbps == 1.555
        assert spec.name == "a100-fp64 (custom)"

    def test_env_overrides(self):
        spec = resolve_hardware(env={ENV_PEAK_TFLOPS: "50", ENV_PEAK_BANDWIDTH: "2.5"})
        assert spec.peak_compute_tflops == 50.0
        assert spec.peak_bandwidth_tbps == 2.5

    def test_explicit_beats_env(self):
        spec = resolve_hardware(peak_compute_tflops=7.0, env={ENV_PEAK_TFLOPS: "50"})
        assert spec.peak_compute_tflops == 7.0

    def test_blank_env_ignored(self):
        spec = resolve_hardware(env={ENV_HARDWARE: "", ENV_PEAK_TFLOPS: "  "})
        assert spec == HARDWARE_PRESETS[DEFAULT_PRESET]

    def test_unknown_preset(self):
        with pytest.raises(ValueError, match="Unknown hardware preset"):
            resolve_hardware(preset="tpu-v9", env={})

    def test_non_numeric_env(self):
        with pytest.raises(ValueError, match=ENV_PEAK_BANDWIDTH):
            resolve_hardware(env={ENV_PEAK_BANDWIDTH: "fast"})

    def test_non_positive_override(self):
        with pytest.raises(ValueError):
            resolve_hardware(peak_bandwidth_tbps=0.0, env={})
