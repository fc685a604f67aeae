"""Report generation for roofline analyses.

Generates rich terminal reports, self-contained HTML reports, and structured
JSON exports from the extracted kernel metrics, the roofline analysis, and
the optimization guidance.

All display formatting (unit suffixes, rounding, "N/A" placeholders for
undefined ratios) happens here; the analysis objects only carry numbers.
"""

from __future__ import annotations

import datetime
import html
import json
import logging
import math
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ncu_roofline import __version__
from ncu_roofline.analysis.optimization_advisor import (
    OptimizationAdvisor,
    OptimizationReport,
)
from ncu_roofline.analysis.roofline_analyzer import (
    BoundType,
    OptimizationFocus,
    RooflineAnalysis,
)
from ncu_roofline.profiler.metric_extractor import ExtractionResult, KernelMetric

logger = logging.getLogger(__name__)

REPORT_FORMATS = ("terminal", "html", "json")

_NOT_AVAILABLE = "N/A"


# ============================================================================
# Formatting helpers
# ============================================================================


def _format_number(value: float) -> str:
    """Shortest plain rendering of a float (``2.0`` -> ``2``)."""
    if math.isfinite(value) and value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


def _format_time(seconds: float) -> str:
    return f"{seconds:.3f} s"


def _format_bandwidth(tbps: float) -> str:
    return f"{_format_number(tbps)} TB/s"


def _format_tensor_rate(value: float) -> str:
    return f"{value:.2f}"


def _format_tflops(value: float) -> str:
    return f"{value:.2f} TFLOPS"


def _format_pct(value: Optional[float]) -> str:
    if value is None or not math.isfinite(value):
        return _NOT_AVAILABLE
    return f"{value:.1f}%"


def _truncate_kernel_name(name: str, max_len: int = 60) -> str:
    """Truncate a CUDA kernel name for display, preserving the head."""
    if len(name) <= max_len:
        return name
    return name[: max_len - 3] + "..."


def _bound_color(bound: BoundType) -> str:
    return "blue" if bound is BoundType.memory else "magenta"


def _finite_or_none(value: Any) -> Any:
    """Recursively replace ``inf``/``nan`` floats with ``None`` for strict JSON."""
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {k: _finite_or_none(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_finite_or_none(v) for v in value]
    return value


def _script_json(data: Any) -> str:
    """Serialise *data* for embedding inside an inline ``<script>`` block."""
    return (
        json.dumps(_finite_or_none(data), allow_nan=False)
        .replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
    )


# ============================================================================
# Report Generator
# ============================================================================


class ReportGenerator:
    """Generate roofline reports in multiple formats.

    Usage::

        generator = ReportGenerator(analysis, metrics, extraction=result)
        generator.generate_report(format="terminal")
        generator.generate_report(format="html", output_path="roofline.html")
        generator.generate_report(format="json", output_path="roofline.json")
    """

    def __init__(
        self,
        analysis: RooflineAnalysis,
        metrics: Sequence[KernelMetric],
        extraction: Optional[ExtractionResult] = None,
        advice: Optional[OptimizationReport] = None,
    ) -> None:
        self._analysis = analysis
        self._metrics = list(metrics)
        self._extraction = extraction
        self._advice = advice if advice is not None else OptimizationAdvisor(analysis).analyze()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def generate_report(
        self,
        format: str = "terminal",
        output_path: Optional[str] = None,
        console: Optional[Console] = None,
    ) -> Optional[str]:
        """Dispatch to the appropriate report generation method.

        Parameters
        ----------
        format:
            One of ``"terminal"``, ``"html"``, or ``"json"``.
        output_path:
            File path for HTML and JSON output.  Ignored for terminal format.
        console:
            Rich console for terminal output; a fresh one by default.

        Returns
        -------
        str | None
            The output file path for HTML/JSON, or ``None`` for terminal.

        Raises
        ------
        ValueError
            If *format* is not recognised.
        """
        fmt = format.lower().strip()
        if fmt == "terminal":
            self.generate_terminal_report(console)
            return None
        elif fmt == "html":
            if output_path is None:
                output_path = "roofline_report.html"
            self.generate_html_report(output_path)
            return output_path
        elif fmt == "json":
            if output_path is None:
                output_path = "roofline_report.json"
            self.generate_json_report(output_path)
            return output_path
        else:
            raise ValueError(
                f"Unknown report format {fmt!r}. "
                f"Expected one of: 'terminal', 'html', 'json'."
            )

    # ==================================================================
    # Terminal report
    # ==================================================================

    def generate_terminal_report(self, console: Optional[Console] = None) -> None:
        """Print the kernel table, roofline insights, and guidance."""
        if console is None:
            console = Console()
        summary = self._analysis.summary

        header_text = Text()
        header_text.append("NCU Roofline", style="bold magenta")
        header_text.append(" - Kernel Performance Analysis", style="bold white")
        console.print()
        console.print(Panel(header_text, border_style="magenta", padding=(1, 2)))

        info_table = Table(show_header=False, box=None, padding=(0, 2), expand=False)
        info_table.add_column("Key", style="dim")
        info_table.add_column("Value", style="bold")
        info_table.add_row("Hardware", self._analysis.hardware.name)
        if self._extraction is not None:
            info_table.add_row(
                "Rows read",
                f"{self._extraction.total_records} "
                f"({self._extraction.rejected_records} non-kernel rows skipped)",
            )
        info_table.add_row(
            "Report generated", datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        )
        console.print(info_table)
        console.print()

        if self._metrics:
            self._print_kernel_table(console)
        else:
            console.print("[yellow]No kernel rows found in the report.[/yellow]")
        console.print()

        self._print_insights_table(console)
        console.print()

        self._print_guidance_panel(console)
        console.print()

        if self._advice.outliers:
            self._print_outlier_table(console)
            console.print()

        logger.debug("Terminal report printed for %d kernels.", summary.total_kernels)

    def _print_kernel_table(self, console: Console) -> None:
        table = Table(
            title="Kernel Performance Metrics",
            box=box.ROUNDED,
            show_lines=False,
            title_style="bold white",
        )
        table.add_column("Kernel ID", style="dim", min_width=6)
        table.add_column("Kernel Name", min_width=30, max_width=60)
        table.add_column("Time (s)", justify="right")
        table.add_column("DRAM Bandwidth (TB/s)", justify="right")
        table.add_column("Tensor Instr/Cycle", justify="right")
        table.add_column("Cycles", justify="right")
        table.add_column("TFLOPS", justify="right")

        for m in self._metrics:
            table.add_row(
                Text(m.id),
                Text(_truncate_kernel_name(m.name)),
                _format_time(m.time_seconds),
                _format_bandwidth(m.dram_bandwidth_tbps),
                _format_tensor_rate(m.tensor_instr_per_cycle),
                f"{m.cycles:,.0f}",
                _format_tflops(m.tflops),
            )

        console.print(table)

    def _print_insights_table(self, console: Console) -> None:
        summary = self._analysis.summary
        knee = f"{summary.ai_knee:.2f}"

        table = Table(
            title="Roofline Insights",
            box=box.ROUNDED,
            show_header=False,
            title_style="bold white",
        )
        table.add_column("Metric", style="bold", min_width=34)
        table.add_column("Value", justify="right", min_width=20)

        table.add_row("Total kernels analyzed", str(summary.total_kernels))
        table.add_row(
            f"Memory-bound kernels (AI < {knee} FLOPs/byte)",
            f"[blue]{summary.memory_bound_count}[/blue] "
            f"({_format_pct(summary.memory_bound_pct)})",
        )
        table.add_row(
            f"Compute-bound kernels (AI >= {knee} FLOPs/byte)",
            f"[magenta]{summary.compute_bound_count}[/magenta] "
            f"({_format_pct(summary.compute_bound_pct)})",
        )
        table.add_row(
            "Average arithmetic intensity",
            f"{summary.avg_arithmetic_intensity:.4f} FLOPs/byte",
        )
        table.add_row("Average performance", _format_tflops(summary.avg_performance_tflops))
        table.add_row("Highest arithmetic intensity kernel", Text(summary.max_ai_kernel))
        table.add_row("Highest performance kernel", Text(summary.max_perf_kernel))
        table.add_row(
            "Roofline peaks",
            f"{_format_number(summary.peak_compute_tflops)} TFLOPS, "
            f"{_format_number(summary.peak_bandwidth_tbps)} TB/s",
        )

        console.print(table)

    def _print_guidance_panel(self, console: Console) -> None:
        advice = self._advice
        color = "blue" if advice.focus is OptimizationFocus.memory_bound else "magenta"

        body = Text()
        body.append(advice.headline, style=f"bold {color}")
        body.append("\n")
        for rec in advice.recommendations:
            body.append(f"\n- {rec.title}: ", style="bold")
            body.append(rec.description)
        body.append("\n\nGeneral Recommendations:", style="bold")
        for rec in advice.general:
            body.append(f"\n- {rec.title}: ", style="bold")
            body.append(rec.description)

        console.print(
            Panel(
                body,
                title="[bold]Optimization Recommendations[/bold]",
                border_style=color,
                padding=(1, 2),
            )
        )

    def _print_outlier_table(self, console: Console) -> None:
        table = Table(
            title="Kernels Farthest Below the Roof",
            box=box.ROUNDED,
            show_lines=False,
            title_style="bold white",
        )
        table.add_column("#", style="dim", width=3)
        table.add_column("Kernel Name", min_width=30, max_width=55)
        table.add_column("Bound", min_width=8)
        table.add_column("AI (FLOPs/byte)", justify="right")
        table.add_column("TFLOPS", justify="right")
        table.add_column("% of Roof", justify="right")

        for i, p in enumerate(self._advice.outliers, start=1):
            color = _bound_color(p.bound)
            table.add_row(
                str(i),
                Text(_truncate_kernel_name(p.name, 55)),
                f"[{color}]{p.bound.value}[/{color}]",
                f"{p.arithmetic_intensity:.4g}",
                f"{p.tflops:.4g}",
                _format_pct(p.roof_efficiency * 100.0),
            )

        console.print(table)

    # ==================================================================
    # HTML report
    # ==================================================================

    def generate_html_report(self, output_path: str) -> None:
        """Generate a self-contained HTML report with inline CSS and JS.

        The roofline chart is drawn on a canvas with log-log axes: the roof
        as a line and every valid kernel as a labelled marker.
        """
        summary = self._analysis.summary
        advice = self._advice
        now = datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        knee = f"{summary.ai_knee:.2f}"

        html_content = f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>NCU Roofline Report</title>
<style>
{self._get_css()}
</style>
</head>
<body>

<div class="container">

<header class="header">
    <h1>NCU Roofline</h1>
    <p class="subtitle">Kernel Performance Analysis</p>
    <div class="meta">
        <span>Generated: {html.escape(now)}</span>
        <span>Hardware: {html.escape(self._analysis.hardware.name)}</span>
        <span>Kernels: {summary.total_kernels}</span>
    </div>
</header>

{self._build_kernel_section_html()}

<section class="card">
    <h2>Roofline Model</h2>
    <div class="chart-container-full">
        <canvas id="rooflineChart" width="900" height="500"></canvas>
    </div>
</section>

<section class="card">
    <h2>Roofline Insights</h2>
    <table class="data-table">
        <tbody>
            <tr><td>Total kernels analyzed</td><td>{summary.total_kernels}</td></tr>
            <tr><td>Memory-bound kernels (AI &lt; {knee} FLOPs/byte)</td>
                <td>{summary.memory_bound_count} ({_format_pct(summary.memory_bound_pct)})</td></tr>
            <tr><td>Compute-bound kernels (AI &gt;= {knee} FLOPs/byte)</td>
                <td>{summary.compute_bound_count} ({_format_pct(summary.compute_bound_pct)})</td></tr>
            <tr><td>Average arithmetic intensity</td>
                <td>{summary.avg_arithmetic_intensity:.4f} FLOPs/byte</td></tr>
            <tr><td>Average performance</td>
                <td>{_format_tflops(summary.avg_performance_tflops)}</td></tr>
            <tr><td>Highest arithmetic intensity kernel</td>
                <td class="kernel-name">{html.escape(summary.max_ai_kernel)}</td></tr>
            <tr><td>Highest performance kernel</td>
                <td class="kernel-name">{html.escape(summary.max_perf_kernel)}</td></tr>
            <tr><td>Roofline peaks</td>
                <td>{_format_number(summary.peak_compute_tflops)} TFLOPS,
                    {_format_number(summary.peak_bandwidth_tbps)} TB/s</td></tr>
        </tbody>
    </table>
</section>

<section class="card">
    <h2>Optimization Recommendations</h2>
    <p class="headline">{html.escape(advice.headline)}</p>
    <div class="recommendations-list">
        {self._build_recommendations_html()}
    </div>
</section>

</div>

<script>
{self._get_js()}
</script>

</body>
</html>"""

        output = Path(output_path)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(html_content, encoding="utf-8")
        logger.info("HTML report written to %s", output_path)

    def _build_kernel_section_html(self) -> str:
        if not self._metrics:
            return """
<section class="card">
    <h2>Kernel Performance Metrics</h2>
    <p>No kernel rows found in the report.</p>
</section>"""

        rows_html = ""
        for m in self._metrics:
            rows_html += (
                f"<tr>"
                f"<td>{html.escape(m.id)}</td>"
                f"<td class='kernel-name'>{html.escape(_truncate_kernel_name(m.name, 80))}</td>"
                f"<td>{_format_time(m.time_seconds)}</td>"
                f"<td>{_format_bandwidth(m.dram_bandwidth_tbps)}</td>"
                f"<td>{_format_tensor_rate(m.tensor_instr_per_cycle)}</td>"
                f"<td>{m.cycles:,.0f}</td>"
                f"<td>{_format_tflops(m.tflops)}</td>"
                f"</tr>"
            )

        return f"""
<section class="card">
    <h2>Kernel Performance Metrics</h2>
    <table class="data-table">
        <thead>
            <tr>
                <th>Kernel ID</th>
                <th>Kernel Name</th>
                <th>Time (s)</th>
                <th>DRAM Bandwidth (TB/s)</th>
                <th>Tensor Instr/Cycle</th>
                <th>Cycles</th>
                <th>TFLOPS</th>
            </tr>
        </thead>
        <tbody>
            {rows_html}
        </tbody>
    </table>
</section>"""

    def _build_recommendations_html(self) -> str:
        items_html = ""
        recs = list(self._advice.recommendations) + list(self._advice.general)
        for i, rec in enumerate(recs, start=1):
            items_html += (
                f'<div class="rec-item">'
                f'<div class="rec-number">{i}</div>'
                f'<div class="rec-content">'
                f'<div class="rec-category">{html.escape(rec.title)}</div>'
                f'<div class="rec-text">{html.escape(rec.description)}</div>'
                f'</div>'
                f'</div>'
            )
        return items_html

    def _build_chart_data(self) -> Dict[str, Any]:
        curve = self._analysis.curve
        return {
            "roof": {
                "x": curve.arithmetic_intensity,
                "y": curve.performance_tflops,
            },
            "kernels": [
                {
                    "x": p.arithmetic_intensity,
                    "y": p.tflops,
                    "name": p.name,
                    "bound": p.bound.value,
                }
                # Log axes cannot place non-positive values.
                for p in self._analysis.points
                if p.arithmetic_intensity > 0 and p.tflops > 0
            ],
        }

    @staticmethod
    def _get_css() -> str:
        """Return the inline CSS for the HTML report."""
        return """
* { margin: 0; padding: 0; box-sizing: border-box; }
body {
    font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif;
    background: #0f172a;
    color: #e2e8f0;
    line-height: 1.6;
}
.container { max-width: 1200px; margin: 0 auto; padding: 24px; }
.header {
    text-align: center;
    padding: 40px 20px 30px;
    border-bottom: 1px solid #1e293b;
    margin-bottom: 24px;
}
.header h1 { font-size: 2.2em; color: #c084fc; margin-bottom: 4px; }
.subtitle { color: #94a3b8; font-size: 1.1em; margin-bottom: 16px; }
.meta { display: flex; gap: 24px; justify-content: center; flex-wrap: wrap; color: #94a3b8; font-size: 0.9em; }
.card {
    background: #1e293b;
    border-radius: 12px;
    padding: 24px;
    margin-bottom: 20px;
    border: 1px solid #334155;
}
.card h2 {
    font-size: 1.3em;
    margin-bottom: 16px;
    color: #f1f5f9;
    border-bottom: 1px solid #334155;
    padding-bottom: 8px;
}
.chart-container-full { width: 100%; height: 500px; }
.data-table { width: 100%; border-collapse: collapse; font-size: 0.9em; }
.data-table th {
    text-align: left;
    padding: 10px 12px;
    background: #0f172a;
    color: #94a3b8;
    font-weight: 600;
    text-transform: uppercase;
    font-size: 0.8em;
}
.data-table td { padding: 8px 12px; border-bottom: 1px solid #334155; }
.data-table tbody tr:hover { background: #273549; }
.kernel-name { font-family: 'SF Mono', 'Fira Code', monospace; font-size: 0.85em; word-break: break-all; }
.headline { font-weight: 600; color: #f1f5f9; margin-bottom: 12px; }
.recommendations-list { display: flex; flex-direction: column; gap: 12px; }
.rec-item { display: flex; gap: 14px; padding: 14px; background: #0f172a; border-radius: 8px; border: 1px solid #334155; }
.rec-number {
    width: 28px; height: 28px;
    background: #334155;
    border-radius: 50%;
    display: flex; align-items: center; justify-content: center;
    font-weight: 700; font-size: 0.85em; color: #60a5fa;
    flex-shrink: 0;
}
.rec-content { flex: 1; }
.rec-category { font-size: 0.75em; color: #c084fc; text-transform: uppercase; margin-bottom: 4px; }
.rec-text { font-size: 0.9em; color: #cbd5e1; }
canvas { display: block; width: 100% !important; height: 100% !important; }
"""

    def _get_js(self) -> str:
        """Return the inline JavaScript that draws the log-log roofline chart."""
        chart_json = _script_json(self._build_chart_data())

        return f"""
(function() {{
    'use strict';

    var chartData = {chart_json};

    function getCtx(id) {{
        var el = document.getElementById(id);
        if (!el) return null;
        var rect = el.getBoundingClientRect();
        el.width = rect.width * (window.devicePixelRatio || 1);
        el.height = rect.height * (window.devicePixelRatio || 1);
        var ctx = el.getContext('2d');
        ctx.scale(window.devicePixelRatio || 1, window.devicePixelRatio || 1);
        return {{ ctx: ctx, w: rect.width, h: rect.height }};
    }}

    function log10(v) {{ return Math.log(v) / Math.LN10; }}

    function drawRoofline() {{
        var c = getCtx('rooflineChart');
        if (!c) return;
        var ctx = c.ctx, w = c.w, h = c.h;
        var padding = {{ top: 20, right: 20, bottom: 45, left: 65 }};
        var chartW = w - padding.left - padding.right;
        var chartH = h - padding.top - padding.bottom;

        var xs = chartData.roof.x.concat(chartData.kernels.map(function(k) {{ return k.x; }}));
        var ys = chartData.roof.y.concat(chartData.kernels.map(function(k) {{ return k.y; }}));
        var xMin = Math.floor(log10(Math.min.apply(null, xs)));
        var xMax = Math.ceil(log10(Math.max.apply(null, xs)));
        var yMin = Math.floor(log10(Math.min.apply(null, ys)));
        var yMax = Math.ceil(log10(Math.max.apply(null, ys)));
        if (xMax === xMin) xMax += 1;
        if (yMax === yMin) yMax += 1;

        function px(v) {{ return padding.left + (log10(v) - xMin) / (xMax - xMin) * chartW; }}
        function py(v) {{ return padding.top + chartH - (log10(v) - yMin) / (yMax - yMin) * chartH; }}

        // Decade grid
        ctx.strokeStyle = '#334155';
        ctx.lineWidth = 0.5;
        ctx.font = '10px -apple-system, sans-serif';
        ctx.fillStyle = '#94a3b8';
        ctx.textAlign = 'center';
        for (var gx = xMin; gx <= xMax; gx++) {{
            var x = padding.left + (gx - xMin) / (xMax - xMin) * chartW;
            ctx.beginPath();
            ctx.moveTo(x, padding.top);
            ctx.lineTo(x, padding.top + chartH);
            ctx.stroke();
            ctx.fillText('1e' + gx, x, padding.top + chartH + 16);
        }}
        ctx.textAlign = 'right';
        for (var gy = yMin; gy <= yMax; gy++) {{
            var y = padding.top + chartH - (gy - yMin) / (yMax - yMin) * chartH;
            ctx.beginPath();
            ctx.moveTo(padding.left, y);
            ctx.lineTo(padding.left + chartW, y);
            ctx.stroke();
            ctx.fillText('1e' + gy, padding.left - 6, y + 4);
        }}

        // Axis labels
        ctx.textAlign = 'center';
        ctx.font = '11px -apple-system, sans-serif';
        ctx.fillText('Arithmetic Intensity (FLOPs/byte)', padding.left + chartW / 2, h - 8);
        ctx.save();
        ctx.translate(14, padding.top + chartH / 2);
        ctx.rotate(-Math.PI / 2);
        ctx.fillText('Performance (TFLOPS)', 0, 0);
        ctx.restore();

        // Roof
        ctx.beginPath();
        ctx.strokeStyle = '#22d3ee';
        ctx.lineWidth = 2;
        for (var i = 0; i < chartData.roof.x.length; i++) {{
            var rx = px(chartData.roof.x[i]), ry = py(chartData.roof.y[i]);
            if (i === 0) ctx.moveTo(rx, ry);
            else ctx.lineTo(rx, ry);
        }}
        ctx.stroke();

        // Kernels
        for (var k = 0; k < chartData.kernels.length; k++) {{
            var kern = chartData.kernels[k];
            ctx.beginPath();
            ctx.fillStyle = kern.bound === 'memory' ? '#60a5fa' : '#c084fc';
            ctx.arc(px(kern.x), py(kern.y), 4, 0, 2 * Math.PI);
            ctx.fill();
        }}

        // Kernel labels
        ctx.font = '10px sans-serif';
        ctx.textAlign = 'left';
        ctx.fillStyle = '#e2e8f0';
        for (var kl = 0; kl < chartData.kernels.length; kl++) {{
            var lab = chartData.kernels[kl];
            var text = lab.name.length > 32 ? lab.name.slice(0, 29) + '...' : lab.name;
            ctx.fillText(text, px(lab.x) + 6, py(lab.y) - 6);
        }}

        // Legend
        var legend = [
            {{ color: '#22d3ee', label: 'Roofline' }},
            {{ color: '#60a5fa', label: 'Memory-bound kernels' }},
            {{ color: '#c084fc', label: 'Compute-bound kernels' }}
        ];
        ctx.textAlign = 'left';
        for (var li = 0; li < legend.length; li++) {{
            ctx.fillStyle = legend[li].color;
            ctx.fillRect(padding.left + 10, padding.top + 6 + li * 18, 12, 12);
            ctx.fillStyle = '#cbd5e1';
            ctx.fillText(legend[li].label, padding.left + 28, padding.top + 16 + li * 18);
        }}
    }}

    if (document.readyState === 'loading') {{
        document.addEventListener('DOMContentLoaded', drawRoofline);
    }} else {{
        drawRoofline();
    }}

    window.addEventListener('resize', function() {{
        setTimeout(drawRoofline, 100);
    }});
}})();
"""

    # ==================================================================
    # JSON report
    # ==================================================================

    def generate_json_report(self, output_path: str) -> None:
        """Export the kernel metrics, roofline analysis, and guidance as JSON."""
        data: Dict[str, Any] = {
            "metadata": {
                "tool": "ncu-roofline",
                "version": __version__,
                "report_generated": datetime.datetime.now().isoformat(),
                "format_version": "1.0",
            },
            "kernels": [m.to_dict() for m in self._metrics],
            "analysis": self._analysis.to_dict(),
            "advice": self._advice.to_dict(),
        }

        if self._extraction is not None:
            data["extraction"] = {
                "total_records": self._extraction.total_records,
                "accepted_records": self._extraction.accepted_records,
                "rejected_records": self._extraction.rejected_records,
            }

        output = Path(output_path)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(
            json.dumps(_finite_or_none(data), indent=2, default=str, allow_nan=False),
            encoding="utf-8",
        )
        logger.info("JSON report written to %s", output_path)
