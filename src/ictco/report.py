"""
Report generation for TCO comparisons.

This module generates standalone HTML reports with:
- Executive summary
- CAPEX comparison
- Annual OPEX table
- TCO progression and payback
- Environmental impact
- Calculation warnings

Reports contain no generation timestamp so that the same result always
renders the same document.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from .currency import format_currency
from .results import CalculationResult


HTML_TEMPLATE = '''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
    <style>
        :root {{
            --primary: #0ea5e9;
            --secondary: #6366f1;
            --success: #22c55e;
            --warning: #f59e0b;
            --danger: #ef4444;
            --bg: #f8fafc;
            --card-bg: #ffffff;
            --text: #1e293b;
            --text-muted: #64748b;
        }}

        * {{
            margin: 0;
            padding: 0;
            box-sizing: border-box;
        }}

        body {{
            font-family: 'Segoe UI', system-ui, -apple-system, sans-serif;
            background: var(--bg);
            color: var(--text);
            line-height: 1.6;
        }}

        .container {{
            max-width: 1200px;
            margin: 0 auto;
            padding: 2rem;
        }}

        header {{
            background: linear-gradient(135deg, var(--primary), var(--secondary));
            color: white;
            padding: 3rem 2rem;
            margin-bottom: 2rem;
            border-radius: 0 0 1rem 1rem;
        }}

        header h1 {{
            font-size: 2.5rem;
            margin-bottom: 0.5rem;
        }}

        header .subtitle {{
            opacity: 0.9;
            font-size: 1.1rem;
        }}

        .card {{
            background: var(--card-bg);
            border-radius: 1rem;
            box-shadow: 0 4px 6px -1px rgba(0,0,0,0.1);
            padding: 1.5rem;
            margin-bottom: 1.5rem;
        }}

        .card h2 {{
            color: var(--primary);
            border-bottom: 2px solid var(--primary);
            padding-bottom: 0.5rem;
            margin-bottom: 1rem;
        }}

        .card h3 {{
            color: var(--text);
            margin: 1rem 0 0.5rem;
        }}

        .verdict {{
            display: inline-block;
            padding: 0.5rem 1.5rem;
            border-radius: 2rem;
            font-weight: bold;
            font-size: 1.2rem;
            color: white;
        }}

        .verdict.favorable {{
            background: var(--success);
        }}

        .verdict.unfavorable {{
            background: var(--danger);
        }}

        .metrics-grid {{
            display: grid;
            grid-template-columns: repeat(auto-fit, minmax(200px, 1fr));
            gap: 1rem;
            margin: 1rem 0;
        }}

        .metric {{
            background: var(--bg);
            padding: 1rem;
            border-radius: 0.5rem;
            text-align: center;
        }}

        .metric .value {{
            font-size: 1.6rem;
            font-weight: bold;
            color: var(--primary);
        }}

        .metric .label {{
            color: var(--text-muted);
            font-size: 0.9rem;
        }}

        table {{
            width: 100%;
            border-collapse: collapse;
            margin: 1rem 0;
        }}

        th, td {{
            padding: 0.75rem;
            text-align: left;
            border-bottom: 1px solid #e2e8f0;
        }}

        td.num, th.num {{
            text-align: right;
        }}

        th {{
            background: var(--bg);
            font-weight: 600;
        }}

        .positive {{
            color: #166534;
        }}

        .negative {{
            color: #991b1b;
        }}

        .cost-comparison {{
            display: grid;
            grid-template-columns: 1fr 1fr;
            gap: 1rem;
        }}

        .cost-card {{
            padding: 1.5rem;
            border-radius: 0.5rem;
            text-align: center;
        }}

        .cost-card.immersion {{
            background: linear-gradient(135deg, #e0f2fe, #bae6fd);
            border: 2px solid var(--primary);
        }}

        .cost-card.air {{
            background: linear-gradient(135deg, #f1f5f9, #e2e8f0);
            border: 2px solid var(--text-muted);
        }}

        .cost-value {{
            font-size: 2rem;
            font-weight: bold;
        }}

        .savings-banner {{
            background: linear-gradient(135deg, var(--success), #15803d);
            color: white;
            padding: 1.5rem;
            border-radius: 0.5rem;
            text-align: center;
            margin-top: 1rem;
        }}

        .savings-banner .value {{
            font-size: 2.5rem;
            font-weight: bold;
        }}

        .warning-list li {{
            margin-left: 1.5rem;
            color: #92400e;
        }}

        footer {{
            text-align: center;
            padding: 2rem;
            color: var(--text-muted);
            font-size: 0.9rem;
        }}

        @media print {{
            header {{
                background: var(--primary);
                -webkit-print-color-adjust: exact;
            }}
            .card {{
                break-inside: avoid;
            }}
        }}
    </style>
</head>
<body>
    <header>
        <div class="container">
            <h1>💧 Immersion Cooling TCO Report</h1>
            <p class="subtitle">{subtitle}</p>
        </div>
    </header>

    <div class="container">
        {content}
    </div>

    <footer>
        <p>Generated by Immersion Cooling TCO Calculator v{version}</p>
        <p>Configuration {config_hash}</p>
    </footer>
</body>
</html>
'''


@dataclass
class ReportConfig:
    """Configuration for report generation."""

    title: str = "TCO Report"
    include_executive_summary: bool = True
    include_capex: bool = True
    include_opex: bool = True
    include_tco_progression: bool = True
    include_environmental: bool = True
    include_warnings: bool = True


def _money(result: CalculationResult, amount: Optional[float]) -> str:
    if amount is None:
        return "n/a"
    return format_currency(amount, result.currency, decimals=0)


def _signed_class(amount: Optional[float]) -> str:
    if amount is None:
        return ""
    return "positive" if amount >= 0 else "negative"


def _payback_text(summary: Dict) -> str:
    if summary["payback_status"] == "immediate":
        return "Immediate"
    if summary["payback_months"] is None:
        return "Not reached"
    return f"{summary['payback_months']:.1f} months"


def _generate_executive_summary(result: CalculationResult) -> str:
    """Generate executive summary section."""
    s = result.summary_data
    savings = s["total_tco_savings_5yr"]
    favorable = savings is not None and savings > 0
    verdict_class = "favorable" if favorable else "unfavorable"
    verdict_text = "✅ Immersion cooling saves money" if favorable else "❌ Air cooling is cheaper"

    roi = f"{s['roi_percent']:.1f}%" if s["roi_percent"] is not None else "n/a"

    return f'''
    <div class="card">
        <h2>📋 Executive Summary</h2>

        <p style="margin-bottom: 1rem;">
            Total cost of ownership comparison of air cooling and immersion cooling
            over {result.metadata.get("analysis_years", 5)} years
            ({result.metadata.get("region", "")} region, {result.currency}).
        </p>

        <div style="text-align: center; margin: 1.5rem 0;">
            <span class="verdict {verdict_class}">{verdict_text}</span>
        </div>

        <div class="metrics-grid">
            <div class="metric">
                <div class="value">{_money(result, savings)}</div>
                <div class="label">5-Year TCO Savings</div>
            </div>
            <div class="metric">
                <div class="value">{_money(result, s["npv_savings"])}</div>
                <div class="label">NPV of Savings</div>
            </div>
            <div class="metric">
                <div class="value">{_payback_text(s)}</div>
                <div class="label">Payback Period</div>
            </div>
            <div class="metric">
                <div class="value">{roi}</div>
                <div class="label">ROI</div>
            </div>
            <div class="metric">
                <div class="value">{s["pue_air_cooling"]:.2f} → {s["pue_immersion_cooling"]:.2f}</div>
                <div class="label">PUE (Air → Immersion)</div>
            </div>
        </div>
    </div>
    '''


def _generate_capex_section(result: CalculationResult) -> str:
    """Generate CAPEX comparison section."""
    capex = result.breakdown["capex"]
    air = capex["air_cooling"]
    immersion = capex["immersion_cooling"]

    rows = ""
    for category in ("equipment", "installation", "infrastructure", "coolant", "total"):
        difference = air[category] - immersion[category]
        label = category.capitalize()
        if category == "total":
            label = f"<strong>{label}</strong>"
        rows += f'''
            <tr>
                <td>{label}</td>
                <td class="num">{_money(result, air[category])}</td>
                <td class="num">{_money(result, immersion[category])}</td>
                <td class="num {_signed_class(difference)}">{_money(result, difference)}</td>
            </tr>
        '''

    tanks = result.breakdown["tank_allocation"]
    tank_rows = "".join(
        f"<tr><td>{t['size']}</td><td class=\"num\">{t['quantity']}</td>"
        f"<td class=\"num\">{t['power_density_kw_per_u']:.2f}</td>"
        f"<td class=\"num\">{t['power_kw']:,.1f}</td></tr>"
        for t in tanks["tanks"]
    )
    mode = "auto-optimized" if tanks["auto_optimized"] else "manual"

    return f'''
    <div class="card">
        <h2>🏗️ Capital Expenditure</h2>

        <div class="cost-comparison">
            <div class="cost-card air">
                <h3>Air Cooling</h3>
                <div class="cost-value">{_money(result, air["total"])}</div>
                <p>Total CAPEX</p>
            </div>
            <div class="cost-card immersion">
                <h3>Immersion Cooling</h3>
                <div class="cost-value" style="color: var(--primary);">{_money(result, immersion["total"])}</div>
                <p>Total CAPEX</p>
            </div>
        </div>

        <table>
            <tr>
                <th>Category</th>
                <th class="num">Air Cooling</th>
                <th class="num">Immersion Cooling</th>
                <th class="num">Savings</th>
            </tr>
            {rows}
        </table>

        <h3>Tank Allocation ({mode}, {tanks["total_tanks"]} tanks, {tanks["coolant_liters"]:,.0f} L coolant)</h3>
        <table>
            <tr><th>Size</th><th class="num">Quantity</th><th class="num">kW/U</th><th class="num">Power (kW)</th></tr>
            {tank_rows}
        </table>
    </div>
    '''


def _generate_opex_section(result: CalculationResult) -> str:
    """Generate annual OPEX section."""
    rows = ""
    for record in result.breakdown["opex_annual"]:
        air = record["air_cooling"]
        immersion = record["immersion_cooling"]
        rows += f'''
            <tr>
                <td>Year {record["year"]}</td>
                <td class="num">{_money(result, air["energy"])}</td>
                <td class="num">{_money(result, air["total"])}</td>
                <td class="num">{_money(result, immersion["energy"])}</td>
                <td class="num">{_money(result, immersion["total"])}</td>
                <td class="num {_signed_class(record["savings"])}">{_money(result, record["savings"])}</td>
            </tr>
        '''

    return f'''
    <div class="card">
        <h2>⚡ Operating Expenditure</h2>

        <p>
            Annual energy, maintenance and labor costs with escalation applied:
            <strong>cost(year) = base × (1 + rate)<sup>year − 1</sup></strong>
        </p>

        <table>
            <tr>
                <th>Year</th>
                <th class="num">Air Energy</th>
                <th class="num">Air Total</th>
                <th class="num">Immersion Energy</th>
                <th class="num">Immersion Total</th>
                <th class="num">Savings</th>
            </tr>
            {rows}
        </table>
    </div>
    '''


def _generate_tco_section(result: CalculationResult) -> str:
    """Generate TCO progression section."""
    s = result.summary_data
    irr = f"{s['irr_percent']:.1f}%" if s["irr_percent"] is not None else "n/a"

    rows = ""
    for point in result.breakdown["tco_cumulative"]:
        rows += f'''
            <tr>
                <td>{point["year"]}</td>
                <td class="num">{_money(result, point["air_cooling"])}</td>
                <td class="num">{_money(result, point["immersion_cooling"])}</td>
                <td class="num {_signed_class(point["savings"])}">{_money(result, point["savings"])}</td>
                <td class="num">{_money(result, point["discounted_savings"])}</td>
            </tr>
        '''

    return f'''
    <div class="card">
        <h2>📈 TCO Progression</h2>

        <table>
            <tr>
                <th>Year</th>
                <th class="num">Air Cooling</th>
                <th class="num">Immersion Cooling</th>
                <th class="num">Cumulative Savings</th>
                <th class="num">Discounted Savings</th>
            </tr>
            {rows}
        </table>

        <div class="savings-banner">
            <div class="value">{_money(result, s["total_tco_savings_5yr"])}</div>
            <p>5-year TCO savings with immersion cooling</p>
            <p style="font-size: 1.2rem;">Payback: {_payback_text(s)} • IRR: {irr}</p>
        </div>
    </div>
    '''


def _generate_environmental_section(result: CalculationResult) -> str:
    """Generate environmental impact section."""
    env = result.environmental

    return f'''
    <div class="card">
        <h2>🌱 Environmental Impact</h2>

        <div class="metrics-grid">
            <div class="metric">
                <div class="value">{env["energy_savings_kwh_annual"]:,.0f} kWh</div>
                <div class="label">Annual Energy Savings</div>
            </div>
            <div class="metric">
                <div class="value">{env["carbon_savings_kg_annual"] / 1000:,.1f} t</div>
                <div class="label">Annual CO₂ Savings</div>
            </div>
            <div class="metric">
                <div class="value">{env["water_savings_gallons_annual"]:,.0f} gal</div>
                <div class="label">Annual Water Savings</div>
            </div>
            <div class="metric">
                <div class="value">{env["carbon_footprint_reduction_percent"]:.1f}%</div>
                <div class="label">Carbon Footprint Reduction</div>
            </div>
        </div>
    </div>
    '''


def _generate_warnings_section(result: CalculationResult) -> str:
    """Generate warnings section."""
    if not result.warnings:
        return ""

    items = "".join(f"<li>{w.message}</li>" for w in result.warnings)
    return f'''
    <div class="card">
        <h2>⚠️ Calculation Warnings</h2>
        <ul class="warning-list">{items}</ul>
    </div>
    '''


def generate_html_report(result: CalculationResult, config: ReportConfig = None) -> str:
    """
    Generate complete HTML TCO report.

    Args:
        result: CalculationResult from the engine
        config: Section selection (default: all sections)

    Returns:
        Complete HTML report as string
    """
    from . import __version__

    config = config or ReportConfig()

    sections = [
        (config.include_executive_summary, _generate_executive_summary),
        (config.include_capex, _generate_capex_section),
        (config.include_opex, _generate_opex_section),
        (config.include_tco_progression, _generate_tco_section),
        (config.include_environmental, _generate_environmental_section),
        (config.include_warnings, _generate_warnings_section),
    ]
    content = "".join(generate(result) for enabled, generate in sections if enabled)

    metadata = result.metadata
    return HTML_TEMPLATE.format(
        title=config.title,
        subtitle=(
            f"{metadata.get('region', '')} • {result.currency} • "
            f"{metadata.get('analysis_years', '')}-year analysis"
        ),
        content=content,
        version=__version__,
        config_hash=metadata.get("configuration_hash", "")[:12],
    )


def save_html_report(result: CalculationResult, filepath: str, config: ReportConfig = None):
    """
    Save TCO report as HTML file.

    Args:
        result: CalculationResult from the engine
        filepath: Output file path
        config: Section selection (default: all sections)
    """
    html = generate_html_report(result, config)
    with open(filepath, 'w', encoding='utf-8') as f:
        f.write(html)
