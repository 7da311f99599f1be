"""
PUE and environmental impact.

PUE is facility power over IT power for each cooling method. Environmental
figures are derived from the annual facility energy difference using the
region's grid carbon intensity and a fixed water-per-kWh factor.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional
import logging

from .capex import CapexResult
from .catalog import Catalog
from .configuration import Configuration
from .errors import ComputationAnomaly

logger = logging.getLogger(__name__)

MIN_PUE = 1.0


@dataclass(frozen=True)
class PUEAnalysis:
    """Power usage effectiveness of both methods."""

    air_cooling: float
    immersion_cooling: float

    @property
    def improvement_percent(self) -> float:
        """Relative PUE reduction achieved by immersion cooling."""
        return 100 * (self.air_cooling - self.immersion_cooling) / self.air_cooling

    def to_dict(self) -> Dict[str, float]:
        return {
            "air_cooling": self.air_cooling,
            "immersion_cooling": self.immersion_cooling,
            "improvement_percent": self.improvement_percent,
        }


@dataclass(frozen=True)
class EnvironmentalImpact:
    """Annual resource savings of immersion over air cooling."""

    energy_savings_kwh_annual: float
    carbon_savings_kg_annual: float
    water_savings_gallons_annual: float
    carbon_footprint_reduction_percent: float
    carbon_savings_kg_total: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "energy_savings_kwh_annual": self.energy_savings_kwh_annual,
            "carbon_savings_kg_annual": self.carbon_savings_kg_annual,
            "water_savings_gallons_annual": self.water_savings_gallons_annual,
            "carbon_footprint_reduction_percent": self.carbon_footprint_reduction_percent,
            "carbon_savings_kg_total": self.carbon_savings_kg_total,
        }


@dataclass(frozen=True)
class EfficiencySummary:
    pue: PUEAnalysis
    environmental: EnvironmentalImpact

    def to_dict(self) -> Dict:
        return {
            "pue": self.pue.to_dict(),
            "environmental": self.environmental.to_dict(),
        }


def _pue(name: str, facility_kw: float, it_kw: float, anomalies: List[ComputationAnomaly]) -> float:
    value = facility_kw / it_kw
    if value >= MIN_PUE:
        return value
    logger.warning("%s PUE %.4f below %.1f, clamped", name, value, MIN_PUE)
    anomalies.append(ComputationAnomaly(
        invariant="pue_floor",
        value=value,
        message=f"{name} PUE was below {MIN_PUE} and has been clamped",
        action="clamped",
    ))
    return MIN_PUE


def compute_efficiency(
    config: Configuration,
    capex: CapexResult,
    catalog: Catalog = None,
    anomalies: Optional[List[ComputationAnomaly]] = None,
) -> EfficiencySummary:
    """
    Compute PUE and environmental savings.

    Args:
        config: Validated configuration
        capex: CAPEX result holding the sized systems
        catalog: Reference catalog (default: Catalog.default())
        anomalies: List that clamped values are recorded into

    Returns:
        EfficiencySummary
    """
    catalog = catalog or Catalog.default()
    factors = catalog.factors
    if anomalies is None:
        anomalies = []

    air = capex.air_system
    immersion = capex.immersion_system

    pue = PUEAnalysis(
        air_cooling=_pue("Air cooling", air.facility_power_kw, air.it_power_kw, anomalies),
        immersion_cooling=_pue(
            "Immersion cooling", immersion.facility_power_kw, immersion.it_power_kw, anomalies
        ),
    )

    air_kwh = air.facility_power_kw * factors.hours_per_year
    immersion_kwh = immersion.facility_power_kw * factors.hours_per_year
    energy_savings = air_kwh - immersion_kwh

    carbon_intensity = catalog.region(config.financial.region).carbon_kg_per_kwh
    carbon_savings = energy_savings * carbon_intensity

    environmental = EnvironmentalImpact(
        energy_savings_kwh_annual=energy_savings,
        carbon_savings_kg_annual=carbon_savings,
        water_savings_gallons_annual=energy_savings * factors.water_gallons_per_kwh,
        carbon_footprint_reduction_percent=100 * energy_savings / air_kwh if air_kwh > 0 else 0.0,
        carbon_savings_kg_total=carbon_savings * config.financial.analysis_years,
    )

    return EfficiencySummary(pue=pue, environmental=environmental)
