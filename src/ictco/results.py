"""
Assembly of the final calculation result.

Composes the CAPEX, OPEX, financial and efficiency outputs into one
JSON-serializable object with summary figures, detailed breakdowns, chart
series and any anomalies raised along the way. The result carries no
timestamp or random identifier: the same configuration always produces the
same result.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple
import hashlib
import json
import logging
import math

from .capex import CapexResult
from .configuration import Configuration
from .currency import format_currency
from .efficiency import EfficiencySummary
from .errors import ComputationAnomaly
from .financial import FinancialSummary
from .opex import OpexYearRecord

logger = logging.getLogger(__name__)

CALCULATION_VERSION = "1.0"

# Major overhaul cost as a multiple of that year's maintenance
MAJOR_OVERHAUL_MULTIPLIER = 2.0


def configuration_hash(config: Configuration) -> str:
    """SHA-256 of the canonical JSON form of a configuration."""
    canonical = json.dumps(config.to_dict(), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def replace_non_finite(data: Any, anomalies: List[ComputationAnomaly], path: str = "") -> Any:
    """
    Replace NaN and infinity with None throughout a nested structure.

    Each replacement is recorded as a ``non_finite`` anomaly naming the path.
    """
    if isinstance(data, dict):
        return {
            k: replace_non_finite(v, anomalies, f"{path}.{k}" if path else str(k))
            for k, v in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [replace_non_finite(v, anomalies, f"{path}[{i}]") for i, v in enumerate(data)]
    if isinstance(data, float) and not math.isfinite(data):
        logger.warning("Non-finite value %r at %s replaced with null", data, path)
        anomalies.append(ComputationAnomaly(
            invariant="non_finite",
            value=None,
            message=f"{path} was {data!r} and has been replaced with null",
            action="clamped",
        ))
        return None
    return data


@dataclass(frozen=True)
class CalculationResult:
    """
    Complete TCO comparison of air and immersion cooling.

    All sections are plain JSON-compatible structures.
    """

    summary_data: Dict[str, Any]
    breakdown: Dict[str, Any]
    environmental: Dict[str, Any]
    charts: Dict[str, Any]
    warnings: List[ComputationAnomaly] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def currency(self) -> str:
        return self.metadata.get("currency", "USD")

    def _money(self, amount) -> str:
        if amount is None:
            return "n/a"
        return format_currency(amount, self.currency, decimals=0)

    def summary(self) -> str:
        """Generate a plain-text summary."""
        s = self.summary_data
        env = self.environmental
        capex = self.breakdown["capex"]

        if s["payback_status"] == "immediate":
            payback = "Immediate (no CAPEX premium)"
        elif s["payback_months"] is None:
            payback = "Not reached within analysis period"
        else:
            payback = f"{s['payback_months']:.1f} months"

        roi = f"{s['roi_percent']:.1f}%" if s["roi_percent"] is not None else "n/a"
        irr = f"{s['irr_percent']:.1f}%" if s["irr_percent"] is not None else "n/a"

        lines = [
            "=" * 70,
            "IMMERSION COOLING TCO ANALYSIS",
            "=" * 70,
            f"Currency: {self.currency}",
            f"Configuration: {self.metadata.get('configuration_hash', '')[:12]}",
            "",
            "CAPITAL EXPENDITURE:",
            f"  Air cooling:       {self._money(capex['air_cooling']['total'])}",
            f"  Immersion cooling: {self._money(capex['immersion_cooling']['total'])}",
            f"  Savings:           {self._money(s['total_capex_savings'])}",
            "",
            "FINANCIAL SUMMARY:",
            f"  5-year OPEX savings: {self._money(s['total_opex_savings_5yr'])}",
            f"  5-year TCO savings:  {self._money(s['total_tco_savings_5yr'])}",
            f"  NPV of savings:      {self._money(s['npv_savings'])}",
            f"  ROI:                 {roi}",
            f"  IRR:                 {irr}",
            f"  Payback:             {payback}",
            "",
            "EFFICIENCY:",
            f"  PUE air cooling:       {s['pue_air_cooling']:.3f}",
            f"  PUE immersion cooling: {s['pue_immersion_cooling']:.3f}",
            f"  Improvement:           {s['energy_efficiency_improvement']:.1f}%",
            "",
            "ENVIRONMENTAL (annual):",
            f"  Energy savings: {env['energy_savings_kwh_annual']:,.0f} kWh",
            f"  Carbon savings: {env['carbon_savings_kg_annual']:,.0f} kg CO2",
            f"  Water savings:  {env['water_savings_gallons_annual']:,.0f} gallons",
        ]

        if self.warnings:
            lines.append("")
            lines.append("WARNINGS:")
            for w in self.warnings:
                lines.append(f"  ⚠️  {w.message}")

        lines.append("=" * 70)
        return "\n".join(lines)

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "summary": self.summary_data,
            "breakdown": self.breakdown,
            "environmental": self.environmental,
            "charts": self.charts,
            "warnings": [w.to_dict() for w in self.warnings],
            "metadata": self.metadata,
        }

    def to_json(self, indent: int = 2) -> str:
        """Export as JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    def save(self, filepath: str):
        """Save results to JSON file."""
        with open(filepath, 'w', encoding='utf-8') as f:
            f.write(self.to_json())


def _maintenance_schedule(opex_series: Sequence[OpexYearRecord], interval: int) -> List[Dict]:
    schedule = []
    for record in opex_series:
        air = record.air_cooling.maintenance
        immersion = record.immersion_cooling.maintenance
        overhaul = record.year % interval == 0 if interval > 0 else False
        schedule.append({
            "year": record.year,
            "air_cooling_maintenance": air,
            "immersion_cooling_maintenance": immersion,
            "major_overhauls": MAJOR_OVERHAUL_MULTIPLIER * (air + immersion) if overhaul else 0.0,
        })
    return schedule


def _cost_categories(capex: CapexResult, opex_series: Sequence[OpexYearRecord]) -> Dict[str, Dict]:
    air = capex.air_cooling
    immersion = capex.immersion_cooling
    first_year = opex_series[0] if opex_series else None

    pairs: List[Tuple[str, float, float]] = [
        ("Equipment", air.equipment, immersion.equipment),
        ("Installation", air.installation, immersion.installation),
        ("Infrastructure", air.infrastructure, immersion.infrastructure),
        ("Coolant", air.coolant, immersion.coolant),
        (
            "Annual Energy",
            first_year.air_cooling.energy if first_year else 0.0,
            first_year.immersion_cooling.energy if first_year else 0.0,
        ),
    ]
    return {
        name: {"air_cooling": a, "immersion_cooling": b, "difference": a - b}
        for name, a, b in pairs
    }


def assemble(
    capex: CapexResult,
    opex_series: Sequence[OpexYearRecord],
    financial: FinancialSummary,
    efficiency: EfficiencySummary,
    config: Configuration,
    anomalies: Sequence[ComputationAnomaly] = (),
    overhaul_interval_years: int = 5,
) -> CalculationResult:
    """
    Compose all calculation outputs into a CalculationResult.

    Args:
        capex: CAPEX result
        opex_series: Annual OPEX records
        financial: Financial summary
        efficiency: PUE and environmental summary
        config: Configuration the result was computed from
        anomalies: Anomalies raised by earlier stages
        overhaul_interval_years: Years between major overhauls

    Returns:
        CalculationResult with every numeric output finite or None
    """
    warnings = list(anomalies)
    air_system = capex.air_system
    immersion_system = capex.immersion_system
    pue = efficiency.pue

    summary = {
        "total_capex_savings": capex.savings,
        "total_opex_savings_5yr": financial.total_opex_savings_5yr,
        "total_tco_savings_5yr": financial.total_tco_savings_5yr,
        "npv_savings": financial.npv_savings,
        "roi_percent": financial.roi_percent,
        "irr_percent": financial.irr_percent,
        "payback_months": financial.payback_months,
        "payback_status": financial.payback_status,
        "pue_air_cooling": pue.air_cooling,
        "pue_immersion_cooling": pue.immersion_cooling,
        "energy_efficiency_improvement": pue.improvement_percent,
        "cost_per_kw_air_cooling": capex.air_cooling.total / air_system.it_power_kw,
        "cost_per_kw_immersion_cooling": capex.immersion_cooling.total / immersion_system.it_power_kw,
        "cost_per_rack_equivalent": capex.immersion_cooling.total / air_system.rack_count,
    }

    progression = [p.to_dict() for p in financial.tco_progression]

    breakdown = {
        "capex": capex.to_dict(),
        "opex_annual": [r.to_dict() for r in opex_series],
        "tco_cumulative": progression,
        "maintenance_schedule": _maintenance_schedule(opex_series, overhaul_interval_years),
        "tank_allocation": {
            "auto_optimized": immersion_system.auto_optimized,
            "tanks": [a.to_dict() for a in immersion_system.allocations],
            "total_tanks": immersion_system.tank_count,
            "coolant_liters": immersion_system.coolant_liters,
        },
        "systems": {
            "air_cooling": {
                "rack_type": air_system.rack_type,
                "rack_count": air_system.rack_count,
                "it_power_kw": air_system.it_power_kw,
                "facility_power_kw": air_system.facility_power_kw,
            },
            "immersion_cooling": {
                "tank_count": immersion_system.tank_count,
                "it_power_kw": immersion_system.it_power_kw,
                "facility_power_kw": immersion_system.facility_power_kw,
            },
        },
    }

    charts = {
        "tco_progression": [
            {
                "year": p["year"],
                "air_cooling": p["air_cooling"],
                "immersion_cooling": p["immersion_cooling"],
                "savings": p["savings"],
                "cumulative_savings": p["savings"],
            }
            for p in progression
        ],
        "cost_categories": _cost_categories(capex, opex_series),
        "pue_comparison": {
            "air_cooling": pue.air_cooling,
            "immersion_cooling": pue.immersion_cooling,
        },
    }

    metadata = {
        "configuration_hash": configuration_hash(config),
        "currency": config.financial.currency,
        "region": config.financial.region,
        "analysis_years": config.financial.analysis_years,
        "calculation_version": CALCULATION_VERSION,
    }

    return CalculationResult(
        summary_data=replace_non_finite(summary, warnings, "summary"),
        breakdown=replace_non_finite(breakdown, warnings, "breakdown"),
        environmental=replace_non_finite(efficiency.environmental.to_dict(), warnings, "environmental"),
        charts=replace_non_finite(charts, warnings, "charts"),
        warnings=warnings,
        metadata=metadata,
    )
