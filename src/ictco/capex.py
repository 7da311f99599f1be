"""
Capital expenditure for air and immersion cooling.

This module sizes both systems (IT load, facility power including cooling
overhead, rack/tank counts, coolant volume) and prices them from the
catalog. The sizing figures are reused by the OPEX and efficiency
calculations.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
import logging
import math

from .catalog import Catalog
from .configuration import Configuration, ManualTankInput, RackCountInput
from .errors import ComputationAnomaly
from .optimizer import TankAllocation, optimize_tanks, total_tanks

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AirCoolingSystem:
    """Sized air cooling system."""

    rack_type: str
    rack_count: int
    power_per_rack_kw: float
    it_power_kw: float
    hvac_power_kw: float
    facility_power_kw: float


@dataclass(frozen=True)
class ImmersionCoolingSystem:
    """Sized immersion cooling system."""

    allocations: List[TankAllocation]
    tank_count: int
    it_power_kw: float
    pump_power_kw: float
    heat_exchanger_power_kw: float
    facility_power_kw: float
    coolant_liters: float
    auto_optimized: bool


@dataclass(frozen=True)
class CostBreakdown:
    """CAPEX categories for one cooling method."""

    equipment: float
    installation: float
    infrastructure: float
    coolant: float = 0.0

    @property
    def total(self) -> float:
        return self.equipment + self.installation + self.infrastructure + self.coolant

    def to_dict(self) -> Dict[str, float]:
        return {
            "equipment": self.equipment,
            "installation": self.installation,
            "infrastructure": self.infrastructure,
            "coolant": self.coolant,
            "total": self.total,
        }


@dataclass(frozen=True)
class CapexResult:
    """
    CAPEX for both cooling methods plus the sizing they were derived from.
    """

    air_cooling: CostBreakdown
    immersion_cooling: CostBreakdown
    air_system: AirCoolingSystem
    immersion_system: ImmersionCoolingSystem
    anomalies: List[ComputationAnomaly] = field(default_factory=list)

    @property
    def savings(self) -> float:
        """CAPEX saved by choosing immersion cooling (negative = premium)."""
        return self.air_cooling.total - self.immersion_cooling.total

    @property
    def capex_delta(self) -> float:
        """Immersion CAPEX premium over air cooling."""
        return self.immersion_cooling.total - self.air_cooling.total

    @property
    def savings_percent(self) -> float:
        if self.air_cooling.total <= 0:
            return 0.0
        return 100 * self.savings / self.air_cooling.total

    def to_dict(self) -> Dict:
        return {
            "air_cooling": self.air_cooling.to_dict(),
            "immersion_cooling": self.immersion_cooling.to_dict(),
            "savings": self.savings,
            "savings_percent": self.savings_percent,
        }


def size_air_cooling(config: Configuration, catalog: Catalog) -> AirCoolingSystem:
    """
    Size the air cooling system.

    Facility power is IT power divided by HVAC efficiency.

    Args:
        config: Validated configuration
        catalog: Reference catalog

    Returns:
        AirCoolingSystem
    """
    air = config.air_cooling
    rack = catalog.rack(air.rack_type)

    if isinstance(air.inputs, RackCountInput):
        rack_count = air.inputs.rack_count
        power_per_rack = air.inputs.power_per_rack_kw
        it_power = rack_count * power_per_rack
    else:
        it_power = air.inputs.total_power_kw
        power_per_rack = rack.power_capacity_kw
        rack_count = math.ceil(it_power / power_per_rack)

    facility_power = it_power / air.hvac_efficiency

    return AirCoolingSystem(
        rack_type=rack.rack_type,
        rack_count=rack_count,
        power_per_rack_kw=power_per_rack,
        it_power_kw=it_power,
        hvac_power_kw=facility_power - it_power,
        facility_power_kw=facility_power,
    )


def size_immersion_cooling(
    config: Configuration,
    catalog: Catalog,
    allocations: Optional[List[TankAllocation]] = None,
) -> ImmersionCoolingSystem:
    """
    Size the immersion cooling system.

    In auto-optimize mode the tank mix comes from the tank optimizer unless
    ``allocations`` is supplied. Pump and heat-exchanger overheads grow as
    their efficiencies drop.

    Args:
        config: Validated configuration
        catalog: Reference catalog
        allocations: Precomputed tank mix for auto-optimize mode

    Returns:
        ImmersionCoolingSystem
    """
    immersion = config.immersion_cooling
    factors = catalog.factors

    if isinstance(immersion.inputs, ManualTankInput):
        allocations = [
            TankAllocation(
                size=t.size,
                quantity=t.quantity,
                power_density_kw_per_u=t.power_density_kw_per_u,
                height_units=catalog.tank(t.size).height_units,
            )
            for t in immersion.inputs.tank_configurations
        ]
        it_power = sum(a.power_kw for a in allocations)
        auto = False
    else:
        it_power = immersion.inputs.target_power_kw
        if allocations is None:
            allocations = optimize_tanks(
                it_power, catalog.tanks, factors.optimal_power_density_kw_per_u
            )
        auto = True

    pump_overhead = factors.pump_base_overhead / immersion.pumping_efficiency
    exchanger_overhead = factors.heat_exchanger_base_overhead / immersion.heat_exchanger_efficiency
    pump_power = it_power * pump_overhead
    exchanger_power = it_power * exchanger_overhead

    coolant_liters = sum(a.quantity * catalog.tank(a.size).coolant_liters for a in allocations)

    return ImmersionCoolingSystem(
        allocations=list(allocations),
        tank_count=total_tanks(allocations),
        it_power_kw=it_power,
        pump_power_kw=pump_power,
        heat_exchanger_power_kw=exchanger_power,
        facility_power_kw=it_power + pump_power + exchanger_power,
        coolant_liters=coolant_liters,
        auto_optimized=auto,
    )


def _non_negative(name: str, value: float, anomalies: List[ComputationAnomaly]) -> float:
    if value >= 0:
        return value
    logger.warning("Negative %s cost %.2f clamped to 0", name, value)
    anomalies.append(ComputationAnomaly(
        invariant="non_negative_cost",
        value=value,
        message=f"{name} cost was negative and has been clamped to 0",
        action="clamped",
    ))
    return 0.0


def compute_capex(
    config: Configuration,
    catalog: Catalog = None,
    allocations: Optional[List[TankAllocation]] = None,
) -> CapexResult:
    """
    Compute CAPEX for both cooling methods.

    Air cooling: equipment is rack count times the per-rack cost of the rack
    type. Immersion: equipment is the sum of tank costs; coolant is the fill
    volume times the per-liter price and the coolant type multiplier.
    Installation and infrastructure are catalog fractions of equipment.

    Args:
        config: Validated configuration
        catalog: Reference catalog (default: Catalog.default())
        allocations: Precomputed tank mix for auto-optimize mode

    Returns:
        CapexResult

    Raises:
        ConfigurationCatalogError: If a referenced entry is missing
    """
    catalog = catalog or Catalog.default()
    factors = catalog.factors
    currency = config.financial.currency
    anomalies: List[ComputationAnomaly] = []

    air_system = size_air_cooling(config, catalog)
    immersion_system = size_immersion_cooling(config, catalog, allocations)

    # Air cooling
    air_equipment = _non_negative(
        "air equipment",
        air_system.rack_count * catalog.rack_cost(air_system.rack_type, currency),
        anomalies,
    )
    air = CostBreakdown(
        equipment=air_equipment,
        installation=_non_negative(
            "air installation", air_equipment * factors.air_installation_fraction, anomalies
        ),
        infrastructure=_non_negative(
            "air infrastructure", air_equipment * factors.air_infrastructure_fraction, anomalies
        ),
    )

    # Immersion cooling
    immersion_equipment = _non_negative(
        "immersion equipment",
        sum(a.quantity * catalog.tank_cost(a.size, currency) for a in immersion_system.allocations),
        anomalies,
    )
    coolant_spec = catalog.coolant(config.immersion_cooling.coolant_type)
    coolant_cost = (
        immersion_system.coolant_liters
        * catalog.prices(currency).coolant_per_liter
        * coolant_spec.cost_multiplier
    )
    immersion = CostBreakdown(
        equipment=immersion_equipment,
        installation=_non_negative(
            "immersion installation",
            immersion_equipment * factors.immersion_installation_fraction,
            anomalies,
        ),
        infrastructure=_non_negative(
            "immersion infrastructure",
            immersion_equipment * factors.immersion_infrastructure_fraction,
            anomalies,
        ),
        coolant=_non_negative("coolant", coolant_cost, anomalies),
    )

    return CapexResult(
        air_cooling=air,
        immersion_cooling=immersion,
        air_system=air_system,
        immersion_system=immersion_system,
        anomalies=anomalies,
    )
