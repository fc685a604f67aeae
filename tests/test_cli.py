"""Tests for ncu_roofline.cli.main."""

import json
import os
import tempfile

import pytest
from click.testing import CliRunner

from ncu_roofline.cli.main import cli

_CLEAN_ENV = {
    "NCU_ROOFLINE_HARDWARE": "",
    "NCU_ROOFLINE_PEAK_TFLOPS": "",
    "NCU_ROOFLINE_PEAK_BANDWIDTH_TBPS": "",
}


@pytest.fixture
def runner():
    return CliRunner(env=_CLEAN_ENV)


def _write_csv(text):
    with tempfile.NamedTemporaryFile(
        mode="w", suffix=".csv", delete=False, encoding="utf-8",
    ) as f:
        f.write(text)
        return f.name


@pytest.fixture
def sample_report():
    """Create a temporary Nsight Compute raw CSV export."""
    path = _write_csv(
        '"ID","Kernel Name","gpu__time_duration.avg","dram__bytes.sum.per_second",'
        '"smsp__inst_executed_pipe_tensor.sum.per_cycle_elapsed","gpc__cycles_elapsed.sum"\n'
        '"","","second","Tbyte/second","inst/cycle","cycle"\n'
        '"0","ampere_sgemm_128x64_nn","0.5","1.2","1,024","1,000,000"\n'
        '"1","vectorized_elementwise_kernel","0.002","0.8","0.5","2,000,000"\n'
    )
    yield path
    os.unlink(path)


@pytest.fixture
def header_only_report():
    path = _write_csv(
        '"ID","Kernel Name","dram__bytes.sum.per_second"\n'
        '"","","Tbyte/second"\n'
    )
    yield path
    os.unlink(path)


class TestCLIGroup:
    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "NCU Roofline" in result.output


class TestAnalyzeCommand:
    def test_analyze(self, runner, sample_report):
        result = runner.invoke(cli, ["analyze", sample_report])
        assert result.exit_code == 0
        assert "Roofline Insights" in result.output
        assert "Memory-Bound" in result.output

    def test_analyze_with_preset(self, runner, sample_report):
        result = runner.invoke(cli, ["analyze", sample_report, "--hardware", "h100-fp64"])
        assert result.exit_code == 0
        assert "h100-fp64" in result.output

    def test_analyze_unknown_preset(self, runner, sample_report):
        result = runner.invoke(cli, ["analyze", sample_report, "--hardware", "bogus"])
        assert result.exit_code != 0
        assert "Unknown hardware preset" in result.output

    def test_analyze_missing_file(self, runner):
        result = runner.invoke(cli, ["analyze", "/nonexistent/ncu_report_raw.csv"])
        assert result.exit_code != 0

    def test_analyze_no_kernel_rows(self, runner, header_only_report):
        result = runner.invoke(cli, ["analyze", header_only_report])
        assert result.exit_code == 0
        assert "Warning" in result.output

    def test_verbose(self, runner, sample_report):
        result = runner.invoke(cli, ["-v", "analyze", sample_report])
        assert result.exit_code == 0

    def test_analyze_path_with_markup_printed_literally(self, runner):
        with runner.isolated_filesystem():
            with open("a[bold]b.csv", "w", encoding="utf-8") as f:
                f.write(
                    '"ID","Kernel Name","dram__bytes.sum.per_second"\n'
                    '"0","k","1.0"\n'
                )
            result = runner.invoke(cli, ["analyze", "a[bold]b.csv"])
        assert result.exit_code == 0
        assert "a[bold]b.csv" in result.output

    def test_analyze_oversized_field(self, runner):
        with runner.isolated_filesystem():
            with open("huge.csv", "w", encoding="utf-8") as f:
                f.write('"ID","Kernel Name"\n')
                f.write('"0","' + "k" * 200_000 + '"\n')
            result = runner.invoke(cli, ["analyze", "huge.csv"])
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert isinstance(result.exception, SystemExit)


class TestReportCommand:
    def test_report_terminal(self, runner, sample_report):
        result = runner.invoke(cli, ["report", sample_report, "--format", "terminal"])
        assert result.exit_code == 0

    def test_report_json(self, runner, sample_report):
        with tempfile.NamedTemporaryFile(suffix=".json", delete=False) as f:
            out_path = f.name
        try:
            result = runner.invoke(
                cli, [
                    "report", sample_report,
                    "--format", "json",
                    "--output", out_path,
                ],
            )
            assert result.exit_code == 0
            with open(out_path, encoding="utf-8") as f:
                data = json.load(f)
            summary = data["analysis"]["summary"]
            assert summary["total_kernels"] == 2
            assert summary["memory_bound_count"] == 2
            assert data["analysis"]["focus"] == "memory_bound"
            assert data["extraction"]["rejected_records"] == 1
            assert "kernels plotted against a100-fp64" in result.output
        finally:
            if os.path.exists(out_path):
                os.unlink(out_path)

    def test_report_json_peak_override(self, runner, sample_report):
        with tempfile.NamedTemporaryFile(suffix=".json", delete=False) as f:
            out_path = f.name
        try:
            result = runner.invoke(
                cli, [
                    "report", sample_report,
                    "--format", "json",
                    "--output", out_path,
                    "--peak-tflops", "50",
                    "--peak-bandwidth", "2",
                ],
            )
            assert result.exit_code == 0
            with open(out_path, encoding="utf-8") as f:
                data = json.load(f)
            assert data["analysis"]["summary"]["peak_compute_tflops"] == 50.0
            assert data["analysis"]["summary"]["ai_knee"] == 25.0
        finally:
            if os.path.exists(out_path):
                os.unlink(out_path)

    def test_report_peak_from_env(self, sample_report):
        runner = CliRunner(env={**_CLEAN_ENV, "NCU_ROOFLINE_PEAK_TFLOPS": "40"})
        with tempfile.NamedTemporaryFile(suffix=".json", delete=False) as f:
            out_path = f.name
        try:
            result = runner.invoke(
                cli, ["report", sample_report, "-f", "json", "-o", out_path],
            )
            assert result.exit_code == 0
            with open(out_path, encoding="utf-8") as f:
                data = json.load(f)
            assert data["analysis"]["summary"]["peak_compute_tflops"] == 40.0
        finally:
            if os.path.exists(out_path):
                os.unlink(out_path)

    def test_report_html(self, runner, sample_report):
        with tempfile.NamedTemporaryFile(suffix=".html", delete=False) as f:
            out_path = f.name
        try:
            result = runner.invoke(
                cli, [
                    "report", sample_report,
                    "--format", "html",
                    "--output", out_path,
                ],
            )
            assert result.exit_code == 0
            assert os.path.exists(out_path)
            with open(out_path, encoding="utf-8") as f:
                assert "rooflineChart" in f.read()
        finally:
            if os.path.exists(out_path):
                os.unlink(out_path)

    def test_report_bad_format(self, runner, sample_report):
        result = runner.invoke(cli, ["report", sample_report, "--format", "pdf"])
        assert result.exit_code != 0


class TestPresetsCommand:
    def test_presets(self, runner):
        result = runner.invoke(cli, ["presets"])
        assert result.exit_code == 0
        assert "Hardware Presets" in result.output
