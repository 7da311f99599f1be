"""
Operating expenditure projection.

Projects energy, maintenance, labor and (for immersion) coolant top-up
costs for each year of the analysis horizon, applying compound escalation.
Energy is billed on facility power, so cooling overhead is included.
"""

from dataclasses import dataclass
from typing import Dict, List
import numpy as np

from .capex import CapexResult
from .catalog import Catalog
from .configuration import Configuration
from .currency import convert


@dataclass(frozen=True)
class AnnualCost:
    """One year of operating cost for one cooling method."""

    energy: float
    maintenance: float
    labor: float
    coolant: float = 0.0

    @property
    def total(self) -> float:
        return self.energy + self.maintenance + self.labor + self.coolant

    def to_dict(self) -> Dict[str, float]:
        return {
            "energy": self.energy,
            "maintenance": self.maintenance,
            "labor": self.labor,
            "coolant": self.coolant,
            "total": self.total,
        }


@dataclass(frozen=True)
class OpexYearRecord:
    """Operating cost of both methods for one analysis year (1-indexed)."""

    year: int
    air_cooling: AnnualCost
    immersion_cooling: AnnualCost
    energy_cost_per_kwh: float

    @property
    def savings(self) -> float:
        """OPEX saved by immersion cooling this year."""
        return self.air_cooling.total - self.immersion_cooling.total

    @property
    def savings_percent(self) -> float:
        if self.air_cooling.total <= 0:
            return 0.0
        return 100 * self.savings / self.air_cooling.total

    def to_dict(self) -> Dict:
        return {
            "year": self.year,
            "air_cooling": self.air_cooling.to_dict(),
            "immersion_cooling": self.immersion_cooling.to_dict(),
            "energy_cost_per_kwh": self.energy_cost_per_kwh,
            "savings": self.savings,
            "savings_percent": self.savings_percent,
        }


def resolve_energy_cost(config: Configuration, catalog: Catalog) -> float:
    """Energy price per kWh in the configured currency."""
    financial = config.financial
    if financial.custom_energy_cost is not None:
        return financial.custom_energy_cost
    region = catalog.region(financial.region)
    return convert(region.energy_cost_per_kwh, region.currency, financial.currency, catalog.exchange_rates)


def resolve_labor_cost(config: Configuration, catalog: Catalog) -> float:
    """Technician hourly rate in the configured currency."""
    financial = config.financial
    if financial.custom_labor_cost is not None:
        return financial.custom_labor_cost
    region = catalog.region(financial.region)
    return convert(region.labor_cost_per_hour, region.currency, financial.currency, catalog.exchange_rates)


def escalation_factors(rate: float, years: int) -> np.ndarray:
    """(1 + rate) ** (i - 1) for years i = 1..years."""
    return (1.0 + rate) ** np.arange(years)


def compute_opex_series(
    config: Configuration,
    capex: CapexResult,
    catalog: Catalog = None,
) -> List[OpexYearRecord]:
    """
    Project annual OPEX for both cooling methods.

    For year i (1-indexed):
        energy[i]      = facility_kW * 8760 * price_per_kWh * (1 + e)^(i-1)
        maintenance[i] = equipment * maintenance_fraction * (1 + m)^(i-1)
        labor[i]       = hours * hourly_rate * (1 + l)^(i-1)

    Immersion cooling additionally tops up a fraction of its coolant every
    replacement cycle.

    Args:
        config: Validated configuration
        capex: CAPEX result holding the sized systems
        catalog: Reference catalog (default: Catalog.default())

    Returns:
        One OpexYearRecord per analysis year
    """
    catalog = catalog or Catalog.default()
    factors = catalog.factors
    financial = config.financial
    years = financial.analysis_years

    energy_price = resolve_energy_cost(config, catalog)
    labor_rate = resolve_labor_cost(config, catalog)

    energy_esc = escalation_factors(financial.energy_escalation_rate, years)
    maintenance_esc = escalation_factors(financial.maintenance_escalation_rate, years)
    labor_esc = escalation_factors(financial.labor_escalation_rate, years)

    air_system = capex.air_system
    immersion_system = capex.immersion_system

    air_energy = air_system.facility_power_kw * factors.hours_per_year * energy_price * energy_esc
    immersion_energy = immersion_system.facility_power_kw * factors.hours_per_year * energy_price * energy_esc

    air_maintenance = capex.air_cooling.equipment * factors.air_maintenance_fraction * maintenance_esc
    immersion_maintenance = (
        capex.immersion_cooling.equipment * factors.immersion_maintenance_fraction * maintenance_esc
    )

    air_labor = air_system.rack_count * factors.air_labor_hours_per_rack * labor_rate * labor_esc
    immersion_labor = (
        immersion_system.tank_count * factors.immersion_labor_hours_per_tank * labor_rate * labor_esc
    )

    topup = capex.immersion_cooling.coolant * factors.coolant_topup_fraction
    cycle = max(1, factors.coolant_replacement_cycle_years)

    records = []
    for i in range(years):
        year = i + 1
        records.append(OpexYearRecord(
            year=year,
            air_cooling=AnnualCost(
                energy=float(air_energy[i]),
                maintenance=float(air_maintenance[i]),
                labor=float(air_labor[i]),
            ),
            immersion_cooling=AnnualCost(
                energy=float(immersion_energy[i]),
                maintenance=float(immersion_maintenance[i]),
                labor=float(immersion_labor[i]),
                coolant=topup if year % cycle == 0 else 0.0,
            ),
            energy_cost_per_kwh=float(energy_price * energy_esc[i]),
        ))

    return records
