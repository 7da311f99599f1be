"""
Reference data for TCO calculations.

This module holds the static catalogs the calculation engine consumes:
immersion tank specifications, air-cooled rack types, coolant types,
regional energy/labor defaults, equipment price lists keyed by currency,
and the cost factors used to derive installation, infrastructure and
maintenance figures.

Nothing here is computed from user input. A Catalog is passed into every
calculator so tests and deployments can swap in their own figures.
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional
import json

from .errors import ConfigurationCatalogError


SUPPORTED_CURRENCIES = ("USD", "EUR", "SAR", "AED")
SUPPORTED_REGIONS = ("US", "EU", "ME")
COOLANT_TYPES = ("synthetic", "mineral_oil", "dielectric")

DEFAULT_RACK_TYPE = "42U_STANDARD"

# Static exchange rates (pair key "FROM_TO")
DEFAULT_EXCHANGE_RATES = {
    "USD_EUR": 0.85,
    "USD_SAR": 3.75,
    "USD_AED": 3.67,
    "EUR_USD": 1.18,
    "EUR_SAR": 4.41,
    "EUR_AED": 4.32,
    "SAR_USD": 0.27,
    "SAR_EUR": 0.23,
    "SAR_AED": 0.98,
    "AED_USD": 0.27,
    "AED_EUR": 0.23,
    "AED_SAR": 1.02,
}


@dataclass(frozen=True)
class TankSpec:
    """Immersion tank size specification."""

    size: str
    height_units: int
    max_power_kw: float
    coolant_liters: float


@dataclass(frozen=True)
class RackSpec:
    """Air-cooled rack type specification."""

    rack_type: str
    height_units: int
    power_capacity_kw: float
    typical_servers: int


@dataclass(frozen=True)
class CoolantSpec:
    """Immersion coolant type."""

    name: str
    label: str
    cost_multiplier: float


@dataclass(frozen=True)
class RegionDefaults:
    """Regional defaults, expressed in the region's own currency."""

    region: str
    currency: str
    energy_cost_per_kwh: float
    labor_cost_per_hour: float
    carbon_kg_per_kwh: float


@dataclass(frozen=True)
class PriceList:
    """Equipment prices in one currency."""

    currency: str
    rack_equipment: Dict[str, float]
    tank_equipment: Dict[str, float]
    coolant_per_liter: float

    def converted(self, currency: str, rate: float) -> "PriceList":
        """Return a copy of this price list scaled by an exchange rate."""
        return PriceList(
            currency=currency,
            rack_equipment={k: v * rate for k, v in self.rack_equipment.items()},
            tank_equipment={k: v * rate for k, v in self.tank_equipment.items()},
            coolant_per_liter=self.coolant_per_liter * rate,
        )


@dataclass
class CostFactors:
    """Cost and physical factors applied on top of catalog prices."""

    # CAPEX fractions of equipment cost
    air_installation_fraction: float = 0.25
    air_infrastructure_fraction: float = 0.15
    immersion_installation_fraction: float = 0.25
    immersion_infrastructure_fraction: float = 0.10

    # Annual maintenance as fraction of equipment cost
    air_maintenance_fraction: float = 0.08
    immersion_maintenance_fraction: float = 0.03

    # Technician hours per year
    air_labor_hours_per_rack: float = 24.0
    immersion_labor_hours_per_tank: float = 8.0

    # Coolant top-up
    coolant_topup_fraction: float = 0.10
    coolant_replacement_cycle_years: int = 2

    # Immersion overhead at 100% component efficiency
    pump_base_overhead: float = 0.015
    heat_exchanger_base_overhead: float = 0.005

    optimal_power_density_kw_per_u: float = 2.0
    hours_per_year: float = 8760.0
    water_gallons_per_kwh: float = 0.5
    major_overhaul_interval_years: int = 5


def _default_tanks() -> Dict[str, TankSpec]:
    heights = (1, 2, 4, 6, 8, 10, 12, 14, 16, 18, 20, 22, 23)
    return {
        f"{h}U": TankSpec(
            size=f"{h}U",
            height_units=h,
            max_power_kw=2.0 * h,
            coolant_liters=25.0 * h,  # ~25 L per U
        )
        for h in heights
    }


def _default_racks() -> Dict[str, RackSpec]:
    return {
        "42U_STANDARD": RackSpec("42U_STANDARD", 42, 15.0, 42),
        "42U_HIGH_DENSITY": RackSpec("42U_HIGH_DENSITY", 42, 25.0, 42),
        "45U_STANDARD": RackSpec("45U_STANDARD", 45, 18.0, 45),
    }


def _default_coolants() -> Dict[str, CoolantSpec]:
    return {
        "synthetic": CoolantSpec("synthetic", "Synthetic Oil", 1.0),
        "mineral_oil": CoolantSpec("mineral_oil", "Mineral Oil", 0.6),
        "dielectric": CoolantSpec("dielectric", "Dielectric Fluid", 1.8),
    }


def _default_regions() -> Dict[str, RegionDefaults]:
    return {
        "US": RegionDefaults("US", "USD", 0.12, 75.0, 0.4),
        "EU": RegionDefaults("EU", "EUR", 0.28, 65.0, 0.3),
        "ME": RegionDefaults("ME", "USD", 0.08, 45.0, 0.5),  # Gulf states average
    }


def _default_price_lists(tanks: Dict[str, TankSpec]) -> Dict[str, PriceList]:
    # Air-cooled rack position: rack, CRAC share and containment
    usd = PriceList(
        currency="USD",
        rack_equipment={
            "42U_STANDARD": 18_000.0,
            "42U_HIGH_DENSITY": 26_000.0,
            "45U_STANDARD": 19_500.0,
        },
        # 23U tank at $35k, scaled by height
        tank_equipment={
            size: 35_000.0 * spec.height_units / 23 for size, spec in tanks.items()
        },
        coolant_per_liter=25.0,
    )
    lists = {"USD": usd}
    for currency in SUPPORTED_CURRENCIES:
        if currency != "USD":
            lists[currency] = usd.converted(currency, DEFAULT_EXCHANGE_RATES[f"USD_{currency}"])
    return lists


@dataclass
class Catalog:
    """
    Injectable reference data for the calculation engine.

    Example:
        >>> catalog = Catalog.default()
        >>> catalog.tank("23U").max_power_kw
        46.0
    """

    tanks: Dict[str, TankSpec]
    racks: Dict[str, RackSpec]
    coolants: Dict[str, CoolantSpec]
    regions: Dict[str, RegionDefaults]
    price_lists: Dict[str, PriceList]
    factors: CostFactors = field(default_factory=CostFactors)
    exchange_rates: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_EXCHANGE_RATES))

    @classmethod
    def default(cls) -> "Catalog":
        """Build the standard reference catalog."""
        tanks = _default_tanks()
        return cls(
            tanks=tanks,
            racks=_default_racks(),
            coolants=_default_coolants(),
            regions=_default_regions(),
            price_lists=_default_price_lists(tanks),
        )

    @classmethod
    def from_dict(cls, data: Dict) -> "Catalog":
        """
        Build a catalog from a dictionary in the to_dict() layout.

        Sections missing from ``data`` fall back to the default catalog.

        Args:
            data: Catalog sections keyed by name

        Returns:
            Catalog
        """
        base = cls.default()

        tanks = base.tanks
        if "tanks" in data:
            tanks = {k: TankSpec(**v) for k, v in data["tanks"].items()}

        racks = base.racks
        if "racks" in data:
            racks = {k: RackSpec(**v) for k, v in data["racks"].items()}

        coolants = base.coolants
        if "coolants" in data:
            coolants = {k: CoolantSpec(**v) for k, v in data["coolants"].items()}

        regions = base.regions
        if "regions" in data:
            regions = {k: RegionDefaults(**v) for k, v in data["regions"].items()}

        price_lists = base.price_lists
        if "price_lists" in data:
            price_lists = {k: PriceList(**v) for k, v in data["price_lists"].items()}

        factors = base.factors
        if "factors" in data:
            factors = CostFactors(**data["factors"])

        return cls(
            tanks=tanks,
            racks=racks,
            coolants=coolants,
            regions=regions,
            price_lists=price_lists,
            factors=factors,
            exchange_rates=dict(data.get("exchange_rates", base.exchange_rates)),
        )

    @classmethod
    def from_json(cls, filepath: str) -> "Catalog":
        """Load catalog overrides from a JSON file."""
        with open(filepath, encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization."""
        return {
            "tanks": {k: asdict(v) for k, v in self.tanks.items()},
            "racks": {k: asdict(v) for k, v in self.racks.items()},
            "coolants": {k: asdict(v) for k, v in self.coolants.items()},
            "regions": {k: asdict(v) for k, v in self.regions.items()},
            "price_lists": {k: asdict(v) for k, v in self.price_lists.items()},
            "factors": asdict(self.factors),
            "exchange_rates": dict(self.exchange_rates),
        }

    # Lookups raise ConfigurationCatalogError on a missing key

    def tank(self, size: str) -> TankSpec:
        if size not in self.tanks:
            raise ConfigurationCatalogError("tank_size", size)
        return self.tanks[size]

    def rack(self, rack_type: str) -> RackSpec:
        if rack_type not in self.racks:
            raise ConfigurationCatalogError("rack_type", rack_type)
        return self.racks[rack_type]

    def coolant(self, name: str) -> CoolantSpec:
        if name not in self.coolants:
            raise ConfigurationCatalogError("coolant_type", name)
        return self.coolants[name]

    def region(self, region: str) -> RegionDefaults:
        if region not in self.regions:
            raise ConfigurationCatalogError("region", region)
        return self.regions[region]

    def prices(self, currency: str) -> PriceList:
        if currency not in self.price_lists:
            raise ConfigurationCatalogError("currency", currency)
        return self.price_lists[currency]

    def tank_cost(self, size: str, currency: str) -> float:
        prices = self.prices(currency)
        if size not in prices.tank_equipment:
            raise ConfigurationCatalogError("tank_size", size)
        return prices.tank_equipment[size]

    def rack_cost(self, rack_type: str, currency: str) -> float:
        prices = self.prices(currency)
        if rack_type not in prices.rack_equipment:
            raise ConfigurationCatalogError("rack_type", rack_type)
        return prices.rack_equipment[rack_type]

    def check(self, config) -> List[ConfigurationCatalogError]:
        """
        Collect every catalog entry a configuration needs but cannot find.

        Args:
            config: Normalized Configuration

        Returns:
            List of ConfigurationCatalogError (empty when fully supported)
        """
        from .currency import convert

        errors: List[ConfigurationCatalogError] = []
        currency = config.financial.currency

        if currency not in self.price_lists:
            errors.append(ConfigurationCatalogError("currency", currency, "financial.currency"))
            prices: Optional[PriceList] = None
        else:
            prices = self.price_lists[currency]

        region = config.financial.region
        if region not in self.regions:
            errors.append(ConfigurationCatalogError("region", region, "financial.region"))
        elif self.regions[region].currency != currency:
            try:
                convert(1.0, self.regions[region].currency, currency, self.exchange_rates)
            except ConfigurationCatalogError as e:
                e.field = "financial.currency"
                errors.append(e)

        rack_type = config.air_cooling.rack_type
        if rack_type not in self.racks or (prices and rack_type not in prices.rack_equipment):
            errors.append(ConfigurationCatalogError("rack_type", rack_type, "air_cooling.rack_type"))

        immersion = config.immersion_cooling
        if immersion.coolant_type not in self.coolants:
            errors.append(ConfigurationCatalogError(
                "coolant_type", immersion.coolant_type, "immersion_cooling.coolant_type"
            ))

        if immersion.auto_optimize:
            if not self.tanks:
                errors.append(ConfigurationCatalogError("tank_size", None, "immersion_cooling"))
            for size in self.tanks:
                if prices and size not in prices.tank_equipment:
                    errors.append(ConfigurationCatalogError("tank_size", size, "immersion_cooling"))
        for i, tank in enumerate(immersion.tank_configurations):
            if tank.size not in self.tanks or (prices and tank.size not in prices.tank_equipment):
                errors.append(ConfigurationCatalogError(
                    "tank_size", tank.size,
                    f"immersion_cooling.tank_configurations[{i}].size",
                ))

        return errors
