"""
Configuration types for a TCO calculation run.

Each cooling method accepts exactly one of two input modes. The modes are
modelled as separate input classes held in a single ``inputs`` slot, so a
configuration can never carry both at once. Switching modes replaces the
slot and discards the previous mode's fields.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple, Union

from .catalog import DEFAULT_RACK_TYPE


# Input method names
RACK_COUNT = "rack_count"
TOTAL_POWER = "total_power"
AUTO_OPTIMIZE = "auto_optimize"
MANUAL_CONFIG = "manual_config"

AIR_INPUT_METHODS = (RACK_COUNT, TOTAL_POWER)
IMMERSION_INPUT_METHODS = (MANUAL_CONFIG, AUTO_OPTIMIZE)


@dataclass(frozen=True)
class RackCountInput:
    """Air cooling sized by rack count and per-rack power."""

    rack_count: int
    power_per_rack_kw: float
    rack_type: str = DEFAULT_RACK_TYPE


@dataclass(frozen=True)
class TotalPowerInput:
    """Air cooling sized by total IT power; racks derived from rack capacity."""

    total_power_kw: float
    rack_type: str = DEFAULT_RACK_TYPE


@dataclass(frozen=True)
class TankConfiguration:
    """One line of a manual immersion tank configuration."""

    size: str
    quantity: int
    power_density_kw_per_u: float


@dataclass(frozen=True)
class AutoOptimizeInput:
    """Immersion cooling sized from a power target by the tank optimizer."""

    target_power_kw: float


@dataclass(frozen=True)
class ManualTankInput:
    """Immersion cooling sized from an explicit list of tanks."""

    tank_configurations: Tuple[TankConfiguration, ...]


AirCoolingInput = Union[RackCountInput, TotalPowerInput]
ImmersionCoolingInput = Union[AutoOptimizeInput, ManualTankInput]


@dataclass(frozen=True)
class AirCoolingConfig:
    """Air cooling parameters."""

    inputs: AirCoolingInput
    hvac_efficiency: float = 0.85
    power_distribution_efficiency: float = 0.95
    space_efficiency: float = 0.8

    @property
    def input_method(self) -> str:
        return RACK_COUNT if isinstance(self.inputs, RackCountInput) else TOTAL_POWER

    @property
    def rack_type(self) -> str:
        return self.inputs.rack_type

    def switch_input_method(self, inputs: AirCoolingInput) -> "AirCoolingConfig":
        """Return a copy using ``inputs``; the previous mode's fields are dropped."""
        return replace(self, inputs=inputs)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "input_method": self.input_method,
            "rack_type": self.rack_type,
            "hvac_efficiency": self.hvac_efficiency,
            "power_distribution_efficiency": self.power_distribution_efficiency,
            "space_efficiency": self.space_efficiency,
        }
        if isinstance(self.inputs, RackCountInput):
            data["rack_count"] = self.inputs.rack_count
            data["power_per_rack_kw"] = self.inputs.power_per_rack_kw
        else:
            data["total_power_kw"] = self.inputs.total_power_kw
        return data


@dataclass(frozen=True)
class ImmersionCoolingConfig:
    """Immersion cooling parameters."""

    inputs: ImmersionCoolingInput
    coolant_type: str = "synthetic"
    pumping_efficiency: float = 0.92
    heat_exchanger_efficiency: float = 0.95

    @property
    def input_method(self) -> str:
        return AUTO_OPTIMIZE if isinstance(self.inputs, AutoOptimizeInput) else MANUAL_CONFIG

    @property
    def auto_optimize(self) -> bool:
        return isinstance(self.inputs, AutoOptimizeInput)

    @property
    def target_power_kw(self) -> Optional[float]:
        if isinstance(self.inputs, AutoOptimizeInput):
            return self.inputs.target_power_kw
        return None

    @property
    def tank_configurations(self) -> Tuple[TankConfiguration, ...]:
        if isinstance(self.inputs, ManualTankInput):
            return self.inputs.tank_configurations
        return ()

    def switch_input_method(self, inputs: ImmersionCoolingInput) -> "ImmersionCoolingConfig":
        """Return a copy using ``inputs``; the previous mode's fields are dropped."""
        return replace(self, inputs=inputs)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "input_method": self.input_method,
            "coolant_type": self.coolant_type,
            "pumping_efficiency": self.pumping_efficiency,
            "heat_exchanger_efficiency": self.heat_exchanger_efficiency,
        }
        if isinstance(self.inputs, AutoOptimizeInput):
            data["target_power_kw"] = self.inputs.target_power_kw
        else:
            data["tank_configurations"] = [
                {
                    "size": t.size,
                    "quantity": t.quantity,
                    "power_density_kw_per_u": t.power_density_kw_per_u,
                }
                for t in self.inputs.tank_configurations
            ]
        return data


@dataclass(frozen=True)
class FinancialConfig:
    """Financial parameters."""

    analysis_years: int = 5
    discount_rate: float = 0.08
    currency: str = "USD"
    region: str = "US"

    # Overrides for the regional defaults, in ``currency``
    custom_energy_cost: Optional[float] = None
    custom_labor_cost: Optional[float] = None

    energy_escalation_rate: float = 0.03
    maintenance_escalation_rate: float = 0.025
    labor_escalation_rate: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "analysis_years": self.analysis_years,
            "discount_rate": self.discount_rate,
            "currency": self.currency,
            "region": self.region,
            "custom_energy_cost": self.custom_energy_cost,
            "custom_labor_cost": self.custom_labor_cost,
            "energy_escalation_rate": self.energy_escalation_rate,
            "maintenance_escalation_rate": self.maintenance_escalation_rate,
            "labor_escalation_rate": self.labor_escalation_rate,
        }


@dataclass(frozen=True)
class Configuration:
    """
    Complete, validated input for one calculation run.

    Instances are produced by ``validate_configuration`` and are never
    modified afterwards.
    """

    air_cooling: AirCoolingConfig
    immersion_cooling: ImmersionCoolingConfig
    financial: FinancialConfig = field(default_factory=FinancialConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the snake_case wire format."""
        return {
            "air_cooling": self.air_cooling.to_dict(),
            "immersion_cooling": self.immersion_cooling.to_dict(),
            "financial": self.financial.to_dict(),
        }
