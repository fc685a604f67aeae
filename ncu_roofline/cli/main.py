"""CLI interface for ncu-roofline.

Provides commands for analyzing Nsight Compute raw CSV exports against a
roofline model, generating terminal/HTML/JSON reports, and listing the
known hardware presets.

Uses Click for command parsing and Rich for terminal output.
"""

from __future__ import annotations

import csv
import logging
from typing import Optional, Tuple

import click
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ncu_roofline import __version__
from ncu_roofline.hardware import (
    DEFAULT_PRESET,
    ENV_HARDWARE,
    HARDWARE_PRESETS,
    HardwareSpec,
    resolve_hardware,
)
from ncu_roofline.profiler.metric_extractor import ExtractionResult, MetricExtractor
from ncu_roofline.profiler.report_loader import load_raw_records
from ncu_roofline.analysis.roofline_analyzer import RooflineAnalysis, RooflineAnalyzer
from ncu_roofline.analysis.report_generator import REPORT_FORMATS, ReportGenerator

logger = logging.getLogger(__name__)

console = Console()


# ============================================================================
# Helpers
# ============================================================================


def _error(message: str) -> None:
    """Print an error message and exit with code 1."""
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    raise SystemExit(1)


def _warn(message: str) -> None:
    """Print a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {escape(message)}", style="yellow")


def _info(message: str) -> None:
    """Print an informational message."""
    console.print(f"[dim]{escape(message)}[/dim]")


def _resolve_hardware_or_exit(
    preset: Optional[str],
    peak_tflops: Optional[float],
    peak_bandwidth: Optional[float],
) -> HardwareSpec:
    try:
        return resolve_hardware(
            preset=preset,
            peak_compute_tflops=peak_tflops,
            peak_bandwidth_tbps=peak_bandwidth,
        )
    except ValueError as exc:
        _error(str(exc))
    raise AssertionError("unreachable")  # pragma: no cover


def _run_pipeline(
    report_path: str,
    hardware: HardwareSpec,
) -> Tuple[ExtractionResult, RooflineAnalysis]:
    """Load the export, extract kernel metrics, and run the roofline analysis."""
    try:
        records = load_raw_records(report_path)
    except (OSError, ValueError, csv.Error) as exc:
        _error(str(exc))

    extraction = MetricExtractor().extract(records)
    if not extraction.metrics:
        _warn(
            f"No kernel rows found in {report_path} "
            f"({extraction.rejected_records} rows skipped)."
        )

    analysis = RooflineAnalyzer(hardware).analyze(extraction.metrics)
    return extraction, analysis


def _hardware_options(func):  # type: ignore[no-untyped-def]
    """Attach the shared hardware-selection options to a command."""
    func = click.option(
        "--peak-bandwidth",
        type=float,
        default=None,
        help="Override peak DRAM bandwidth in TB/s.",
    )(func)
    func = click.option(
        "--peak-tflops",
        type=float,
        default=None,
        help="Override peak compute throughput in TFLOPS.",
    )(func)
    func = click.option(
        "--hardware", "-H",
        "preset",
        type=str,
        default=None,
        help=f"Hardware preset (default: ${ENV_HARDWARE} or {DEFAULT_PRESET}).",
    )(func)
    return func


# ============================================================================
# CLI group
# ============================================================================


@click.group(name="ncu-roofline")
@click.version_option(version=__version__, prog_name="ncu-roofline")
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable verbose debug logging.",
)
def cli(verbose: bool) -> None:
    """NCU Roofline - Roofline analysis of Nsight Compute kernel exports."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )


# ============================================================================
# analyze
# ============================================================================


@cli.command()
@click.argument("report_path", type=click.Path(exists=True))
@_hardware_options
def analyze(
    report_path: str,
    preset: Optional[str],
    peak_tflops: Optional[float],
    peak_bandwidth: Optional[float],
) -> None:
    """Analyze an Nsight Compute CSV export and print the roofline report.

    Usage: ncu-roofline analyze ncu_report_raw.csv --hardware a100-fp64
    """
    hardware = _resolve_hardware_or_exit(preset, peak_tflops, peak_bandwidth)
    console.print(
        Panel(
            f"[bold]Analyzing:[/bold] {escape(report_path)}\n"
            f"[bold]Hardware:[/bold] {escape(hardware.name)}",
            border_style="cyan",
            padding=(0, 1),
        )
    )

    extraction, analysis = _run_pipeline(report_path, hardware)
    ReportGenerator(analysis, extraction.metrics, extraction=extraction).generate_report(
        format="terminal", console=console,
    )


# ============================================================================
# report
# ============================================================================


@cli.command()
@click.argument("report_path", type=click.Path(exists=True))
@click.option(
    "--format", "-f",
    "report_format",
    type=click.Choice(list(REPORT_FORMATS), case_sensitive=False),
    default="terminal",
    show_default=True,
    help="Report output format.",
)
@click.option(
    "--output", "-o",
    type=click.Path(),
    default=None,
    help="Output file path for html/json formats.",
)
@_hardware_options
def report(
    report_path: str,
    report_format: str,
    output: Optional[str],
    preset: Optional[str],
    peak_tflops: Optional[float],
    peak_bandwidth: Optional[float],
) -> None:
    """Generate a roofline report from an Nsight Compute CSV export.

    Usage: ncu-roofline report ncu_report_raw.csv --format html --output roofline.html
    """
    hardware = _resolve_hardware_or_exit(preset, peak_tflops, peak_bandwidth)
    extraction, analysis = _run_pipeline(report_path, hardware)

    generator = ReportGenerator(analysis, extraction.metrics, extraction=extraction)
    result_path = generator.generate_report(
        format=report_format, output_path=output, console=console,
    )

    if result_path:
        console.print(f"[bold green]Report saved to:[/bold green] {escape(str(result_path))}")
        _info(
            f"{analysis.summary.valid_kernels} of {analysis.summary.total_kernels} "
            f"kernels plotted against {hardware.name}."
        )


# ============================================================================
# presets
# ============================================================================


@cli.command()
def presets() -> None:
    """List the known hardware presets."""
    table = Table(
        title="Hardware Presets",
        box=box.ROUNDED,
        show_lines=False,
        title_style="bold white",
    )
    table.add_column("Preset", style="bold")
    table.add_column("Peak Compute", justify="right")
    table.add_column("Peak Bandwidth", justify="right")
    table.add_column("Knee AI", justify="right")
    table.add_column("Description", style="dim")

    for name, spec in HARDWARE_PRESETS.items():
        label = f"{name} [cyan](default)[/cyan]" if name == DEFAULT_PRESET else name
        table.add_row(
            label,
            f"{spec.peak_compute_tflops:g} TFLOPS",
            f"{spec.peak_bandwidth_tbps:g} TB/s",
            f"{spec.ai_knee:.2f}",
            spec.description,
        )

    console.print(table)


# ============================================================================
# Entry point
# ============================================================================


def main() -> None:
    """Entry point for the CLI.

    This function exists so the CLI can also be invoked via
    ``python -m ncu_roofline.cli.main``.
    """
    cli()


if __name__ == "__main__":
    main()
