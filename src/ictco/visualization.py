"""
Visualization module for TCO calculation results.

This module provides plotting functions for:
- TCO progression (cumulative cost per cooling method)
- Cost category comparison
- PUE comparison
- Annual OPEX breakdown

Supports both matplotlib and plotly backends. All functions take the chart
series from ``CalculationResult.charts``.
"""

from typing import Any, Dict, List, Optional, Tuple
import numpy as np

# Check for visualization libraries
try:
    import matplotlib.pyplot as plt
    HAS_MATPLOTLIB = True
except ImportError:
    HAS_MATPLOTLIB = False

try:
    import plotly.graph_objects as go
    from plotly.subplots import make_subplots
    HAS_PLOTLY = True
except ImportError:
    HAS_PLOTLY = False


# Color schemes
COLORS = {
    "air": "#64748b",        # Slate
    "immersion": "#0ea5e9",  # Sky
    "savings": "#22c55e",    # Green
    "loss": "#ef4444",       # Red
    "primary": "#3b82f6",    # Blue
    "secondary": "#8b5cf6",  # Purple
}


def check_matplotlib():
    """Check if matplotlib is available."""
    if not HAS_MATPLOTLIB:
        raise ImportError(
            "matplotlib is required for plotting. "
            "Install with: pip install matplotlib"
        )


def check_plotly():
    """Check if plotly is available."""
    if not HAS_PLOTLY:
        raise ImportError(
            "plotly is required for interactive plots. "
            "Install with: pip install plotly"
        )


def _finish(fig, save_path: Optional[str]):
    plt.tight_layout()
    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
    return fig


# =============================================================================
# Matplotlib-based plots
# =============================================================================

def plot_tco_progression(
    progression: List[Dict[str, float]],
    currency: str = "USD",
    title: str = "Cumulative Total Cost of Ownership",
    figsize: Tuple[int, int] = (10, 6),
    save_path: Optional[str] = None,
) -> Any:
    """
    Plot cumulative TCO of both cooling methods over the analysis period.

    Args:
        progression: ``charts["tco_progression"]`` points
        currency: Currency code for the axis label
        title: Plot title
        figsize: Figure size
        save_path: Path to save figure (optional)

    Returns:
        matplotlib figure
    """
    check_matplotlib()

    years = [p["year"] for p in progression]
    air = np.array([p["air_cooling"] for p in progression]) / 1e6
    immersion = np.array([p["immersion_cooling"] for p in progression]) / 1e6

    fig, ax = plt.subplots(figsize=figsize)

    ax.plot(years, air, 'o-', color=COLORS["air"], linewidth=2, label='Air Cooling')
    ax.plot(years, immersion, 's-', color=COLORS["immersion"], linewidth=2, label='Immersion Cooling')
    ax.fill_between(years, air, immersion, where=air >= immersion,
                    color=COLORS["savings"], alpha=0.15, label='Savings')
    ax.fill_between(years, air, immersion, where=air < immersion,
                    color=COLORS["loss"], alpha=0.15)

    final = progression[-1]["savings"] / 1e6
    ax.text(0.02, 0.98, f"Savings after year {years[-1]}: {final:,.2f}M {currency}",
            transform=ax.transAxes, fontsize=10, verticalalignment='top',
            bbox=dict(boxstyle='round', facecolor='white', alpha=0.8))

    ax.set_xlabel('Year', fontsize=12)
    ax.set_ylabel(f'Cumulative Cost ({currency} Million)', fontsize=12)
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.set_xticks(years)
    ax.legend(loc='lower right')
    ax.grid(True, alpha=0.3)

    return _finish(fig, save_path)


def plot_cost_categories(
    cost_categories: Dict[str, Dict[str, float]],
    currency: str = "USD",
    title: str = "Cost Category Comparison",
    figsize: Tuple[int, int] = (10, 6),
    save_path: Optional[str] = None,
) -> Any:
    """
    Plot grouped bars of each cost category for both methods.

    Args:
        cost_categories: ``charts["cost_categories"]``
        currency: Currency code for the axis label
        title: Plot title
        figsize: Figure size
        save_path: Path to save figure

    Returns:
        matplotlib figure
    """
    check_matplotlib()

    fig, ax = plt.subplots(figsize=figsize)

    categories = list(cost_categories.keys())
    x = np.arange(len(categories))
    width = 0.35

    air_vals = [cost_categories[c]["air_cooling"] / 1e6 for c in categories]  # In millions
    immersion_vals = [cost_categories[c]["immersion_cooling"] / 1e6 for c in categories]

    bars1 = ax.bar(x - width/2, air_vals, width, label='Air Cooling', color=COLORS["air"])
    bars2 = ax.bar(x + width/2, immersion_vals, width, label='Immersion Cooling',
                   color=COLORS["immersion"])

    ax.set_ylabel(f'Cost ({currency} Million)', fontsize=12)
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.set_xticks(x)
    ax.set_xticklabels(categories, rotation=45, ha='right')
    ax.legend()
    ax.grid(True, alpha=0.3, axis='y')

    # Add value labels
    for bars in [bars1, bars2]:
        for bar in bars:
            height = bar.get_height()
            if height > 0:
                ax.annotate(f'{height:.2f}M',
                            xy=(bar.get_x() + bar.get_width() / 2, height),
                            xytext=(0, 3), textcoords="offset points",
                            ha='center', va='bottom', fontsize=8)

    return _finish(fig, save_path)


def plot_pue_comparison(
    pue: Dict[str, float],
    title: str = "Power Usage Effectiveness",
    figsize: Tuple[int, int] = (6, 5),
    save_path: Optional[str] = None,
) -> Any:
    """
    Plot PUE of both methods against the ideal of 1.0.

    Args:
        pue: ``charts["pue_comparison"]``
        title: Plot title
        figsize: Figure size
        save_path: Path to save figure

    Returns:
        matplotlib figure
    """
    check_matplotlib()

    fig, ax = plt.subplots(figsize=figsize)

    labels = ['Air Cooling', 'Immersion Cooling']
    values = [pue["air_cooling"], pue["immersion_cooling"]]
    bars = ax.bar(labels, values, color=[COLORS["air"], COLORS["immersion"]], width=0.5)

    ax.axhline(1.0, color=COLORS["savings"], linestyle='--', linewidth=2, label='Ideal (1.0)')

    for bar, value in zip(bars, values):
        ax.annotate(f'{value:.3f}',
                    xy=(bar.get_x() + bar.get_width() / 2, value),
                    xytext=(0, 3), textcoords="offset points",
                    ha='center', va='bottom', fontsize=10, fontweight='bold')

    ax.set_ylim(0.9, max(values) * 1.1)
    ax.set_ylabel('PUE', fontsize=12)
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.legend()
    ax.grid(True, alpha=0.3, axis='y')

    return _finish(fig, save_path)


def plot_opex_breakdown(
    opex_annual: List[Dict],
    currency: str = "USD",
    title: str = "Annual Operating Costs",
    figsize: Tuple[int, int] = (12, 6),
    save_path: Optional[str] = None,
) -> Any:
    """
    Plot stacked annual OPEX components side by side for both methods.

    Args:
        opex_annual: ``breakdown["opex_annual"]`` records
        currency: Currency code for the axis label
        title: Plot title
        figsize: Figure size
        save_path: Path to save figure

    Returns:
        matplotlib figure
    """
    check_matplotlib()

    fig, ax = plt.subplots(figsize=figsize)

    years = np.array([r["year"] for r in opex_annual])
    width = 0.38
    components = [
        ("energy", COLORS["primary"]),
        ("maintenance", COLORS["secondary"]),
        ("labor", COLORS["air"]),
        ("coolant", COLORS["immersion"]),
    ]

    for offset, method, hatch in ((-width/2, "air_cooling", ""), (width/2, "immersion_cooling", "//")):
        bottom = np.zeros(len(years))
        for name, color in components:
            values = np.array([r[method][name] for r in opex_annual]) / 1e3
            if not values.any():
                continue
            label = name.capitalize() if method == "air_cooling" or name == "coolant" else None
            ax.bar(years + offset, values, width, bottom=bottom, color=color,
                   hatch=hatch, edgecolor='white', label=label)
            bottom += values

    ax.set_xlabel('Year (left: air, right: immersion)', fontsize=12)
    ax.set_ylabel(f'Cost ({currency} Thousand)', fontsize=12)
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.set_xticks(years)
    ax.legend()
    ax.grid(True, alpha=0.3, axis='y')

    return _finish(fig, save_path)


# =============================================================================
# Plotly-based interactive plots
# =============================================================================

def plot_tco_progression_interactive(
    progression: List[Dict[str, float]],
    currency: str = "USD",
    title: str = "Cumulative Total Cost of Ownership",
) -> Any:
    """
    Create interactive Plotly line chart of cumulative TCO.

    Args:
        progression: ``charts["tco_progression"]`` points
        currency: Currency code for the axis label
        title: Plot title

    Returns:
        Plotly figure
    """
    check_plotly()

    years = [p["year"] for p in progression]

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=years, y=[p["air_cooling"] for p in progression],
        mode='lines+markers', name='Air Cooling', line_color=COLORS["air"],
    ))
    fig.add_trace(go.Scatter(
        x=years, y=[p["immersion_cooling"] for p in progression],
        mode='lines+markers', name='Immersion Cooling', line_color=COLORS["immersion"],
    ))
    fig.add_trace(go.Bar(
        x=years, y=[p["savings"] for p in progression],
        name='Cumulative Savings', marker_color=COLORS["savings"], opacity=0.4,
    ))

    fig.update_layout(
        title=dict(text=title, font=dict(size=16)),
        xaxis_title="Year",
        yaxis_title=f"Cost ({currency})",
        showlegend=True,
    )

    return fig


def create_tco_dashboard(result: 'CalculationResult') -> Any:
    """
    Create a TCO dashboard with multiple plots.

    Args:
        result: CalculationResult from the engine

    Returns:
        Plotly figure with subplots
    """
    check_plotly()

    charts = result.charts
    summary = result.summary_data
    currency = result.currency

    fig = make_subplots(
        rows=2, cols=2,
        subplot_titles=(
            'Cumulative TCO',
            'Cost Categories',
            'PUE Comparison',
            'Key Metrics Summary',
        ),
        specs=[
            [{"type": "scatter"}, {"type": "bar"}],
            [{"type": "bar"}, {"type": "table"}],
        ]
    )

    progression = charts["tco_progression"]
    years = [p["year"] for p in progression]
    fig.add_trace(
        go.Scatter(x=years, y=[p["air_cooling"] for p in progression],
                   name='Air Cooling', line_color=COLORS["air"]),
        row=1, col=1
    )
    fig.add_trace(
        go.Scatter(x=years, y=[p["immersion_cooling"] for p in progression],
                   name='Immersion Cooling', line_color=COLORS["immersion"]),
        row=1, col=1
    )

    categories = list(charts["cost_categories"].keys())
    fig.add_trace(
        go.Bar(x=categories, y=[charts["cost_categories"][c]["air_cooling"] for c in categories],
               marker_color=COLORS["air"]),
        row=1, col=2
    )
    fig.add_trace(
        go.Bar(x=categories, y=[charts["cost_categories"][c]["immersion_cooling"] for c in categories],
               marker_color=COLORS["immersion"]),
        row=1, col=2
    )

    pue = charts["pue_comparison"]
    fig.add_trace(
        go.Bar(x=['Air', 'Immersion'], y=[pue["air_cooling"], pue["immersion_cooling"]],
               marker_color=[COLORS["air"], COLORS["immersion"]]),
        row=2, col=1
    )

    def fmt(value, suffix=""):
        return f"{value:,.1f}{suffix}" if value is not None else "n/a"

    fig.add_trace(
        go.Table(
            header=dict(values=['Metric', 'Value']),
            cells=dict(values=[
                ['5-yr TCO Savings', 'NPV', 'ROI', 'Payback (months)'],
                [f"{fmt(summary['total_tco_savings_5yr'])} {currency}",
                 f"{fmt(summary['npv_savings'])} {currency}",
                 fmt(summary['roi_percent'], '%'),
                 fmt(summary['payback_months'])]
            ])
        ),
        row=2, col=2
    )

    fig.update_layout(
        height=700,
        showlegend=False,
        title_text="Immersion Cooling TCO Dashboard",
    )

    return fig
