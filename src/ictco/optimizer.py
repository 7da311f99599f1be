"""
Immersion tank mix optimization.

Packs an immersion-cooling power target into a mix of discrete tank sizes
using a greedy, largest-tank-first heuristic at a fixed optimal power
density of 2.0 kW per rack unit. Any remainder too small for a whole tank
at that density goes into a single tank of the smallest size, run at a
reduced density.

This is an approximation: it favours few physical tanks over total cost and
makes no attempt at optimal bin packing.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping
import math

from .catalog import TankSpec
from .errors import ConfigurationCatalogError


OPTIMAL_POWER_DENSITY_KW_PER_U = 2.0

# Remainders below this are float noise, not unallocated power
_POWER_EPSILON_KW = 1e-9


@dataclass(frozen=True)
class TankAllocation:
    """Quantity and power density assigned to one tank size."""

    size: str
    quantity: int
    power_density_kw_per_u: float
    height_units: int

    @property
    def power_kw(self) -> float:
        """Total power delivered by this allocation."""
        return self.quantity * self.height_units * self.power_density_kw_per_u

    def to_dict(self) -> Dict:
        return {
            "size": self.size,
            "quantity": self.quantity,
            "power_density_kw_per_u": self.power_density_kw_per_u,
            "height_units": self.height_units,
            "power_kw": self.power_kw,
        }


def optimize_tanks(
    target_power_kw: float,
    tank_catalog: Mapping[str, TankSpec],
    power_density_kw_per_u: float = OPTIMAL_POWER_DENSITY_KW_PER_U,
) -> List[TankAllocation]:
    """
    Greedily select a tank mix that covers a power target.

    Args:
        target_power_kw: IT power to accommodate
        tank_catalog: Tank specifications keyed by size label
        power_density_kw_per_u: Density assumed for whole tanks

    Returns:
        List of TankAllocation, largest tanks first. Empty for a
        non-positive target.

    Raises:
        ConfigurationCatalogError: If the catalog has no tanks
    """
    if target_power_kw <= 0:
        return []
    if not tank_catalog:
        raise ConfigurationCatalogError("tank_size", None)

    allocations: List[TankAllocation] = []
    remaining = target_power_kw

    by_height = sorted(tank_catalog.values(), key=lambda t: t.height_units, reverse=True)

    for tank in by_height:
        power_per_tank = tank.height_units * power_density_kw_per_u
        tanks_needed = math.floor(remaining / power_per_tank)

        if tanks_needed > 0:
            allocations.append(TankAllocation(
                size=tank.size,
                quantity=tanks_needed,
                power_density_kw_per_u=power_density_kw_per_u,
                height_units=tank.height_units,
            ))
            remaining -= tanks_needed * power_per_tank

        if remaining <= 0:
            break

    # Remainder smaller than any whole tank
    if remaining > _POWER_EPSILON_KW:
        smallest = by_height[-1]
        allocations.append(TankAllocation(
            size=smallest.size,
            quantity=1,
            power_density_kw_per_u=min(remaining / smallest.height_units, power_density_kw_per_u),
            height_units=smallest.height_units,
        ))

    return allocations


def total_power_kw(allocations: Iterable[TankAllocation]) -> float:
    """Total deliverable power of a tank mix."""
    return sum(a.power_kw for a in allocations)


def total_tanks(allocations: Iterable[TankAllocation]) -> int:
    """Total number of physical tanks in a mix."""
    return sum(a.quantity for a in allocations)


class TankOptimizer:
    """
    Tank optimizer bound to a catalog.

    Example:
        >>> optimizer = TankOptimizer(Catalog.default().tanks)
        >>> [(a.size, a.quantity) for a in optimizer.optimize(100)]
        [('23U', 2), ('4U', 1)]
    """

    def __init__(
        self,
        tank_catalog: Mapping[str, TankSpec],
        power_density_kw_per_u: float = OPTIMAL_POWER_DENSITY_KW_PER_U,
    ):
        self.tank_catalog = tank_catalog
        self.power_density_kw_per_u = power_density_kw_per_u

    def optimize(self, target_power_kw: float) -> List[TankAllocation]:
        return optimize_tanks(target_power_kw, self.tank_catalog, self.power_density_kw_per_u)
