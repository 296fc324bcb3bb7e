from __future__ import annotations

from pathlib import Path

from app.result_view import ChartSeries

BAR_COLOR = "#2563eb"
CHART_HEIGHT_PX = 400
FIGURE_DPI = 100


def _pyplot():
    try:
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
    except Exception as exc:  # pragma: no cover - environment dependent
        raise RuntimeError("matplotlib is required for chart rendering.") from exc
    return plt


def build_bar_figure(series: ChartSeries):
    """Bar chart of ``series``, one bar per row, sized to keep labels readable."""
    plt = _pyplot()

    fig, ax = plt.subplots(
        figsize=(series.min_width_px / FIGURE_DPI, CHART_HEIGHT_PX / FIGURE_DPI),
        dpi=FIGURE_DPI,
    )
    ax.grid(True, linestyle="--", alpha=0.5)
    ax.set_axisbelow(True)
    ax.bar(range(len(series.values)), series.values, color=BAR_COLOR, label=series.y_key)
    ax.set_xticks(range(len(series.names)))
    ax.set_xticklabels(series.names, rotation=45, ha="right", rotation_mode="anchor")
    ax.set_xlabel(series.x_key)
    ax.set_ylabel(series.y_key)
    fig.tight_layout()
    return fig


def render_chart(series: ChartSeries, output_path: str) -> str:
    """Render chart image to output_path and return absolute file path."""
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    plt = _pyplot()
    fig = build_bar_figure(series)
    try:
        fig.savefig(output, dpi=FIGURE_DPI)
    finally:
        plt.close(fig)
    return str(output.resolve())
