"""
Financial metrics for the air vs immersion comparison.

Derives payback, ROI, NPV and IRR of the immersion CAPEX premium from the
annual OPEX savings, plus the cumulative TCO progression used by charts.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence
import numpy as np
from scipy import optimize

from .capex import CapexResult
from .opex import OpexYearRecord


# Payback status values
PAYBACK_IMMEDIATE = "immediate"
PAYBACK_REACHED = "reached"
PAYBACK_UNREACHABLE = "unreachable"

SUMMARY_HORIZON_YEARS = 5

# IRR search bracket (as fractions)
_IRR_LOWER = -0.99
_IRR_UPPER = 10.0


@dataclass(frozen=True)
class TCOProgressionPoint:
    """Cumulative cost of both methods at the end of a year (0 = CAPEX only)."""

    year: int
    air_cooling: float
    immersion_cooling: float
    savings: float
    discounted_savings: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "year": self.year,
            "air_cooling": self.air_cooling,
            "immersion_cooling": self.immersion_cooling,
            "savings": self.savings,
            "discounted_savings": self.discounted_savings,
        }


@dataclass(frozen=True)
class FinancialSummary:
    """Headline financial metrics."""

    capex_savings: float
    total_opex_savings_5yr: float
    total_tco_savings_5yr: float
    npv_savings: float
    payback_months: Optional[float]
    payback_status: str
    roi_percent: Optional[float]
    irr_percent: Optional[float]
    tco_progression: List[TCOProgressionPoint] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "capex_savings": self.capex_savings,
            "total_opex_savings_5yr": self.total_opex_savings_5yr,
            "total_tco_savings_5yr": self.total_tco_savings_5yr,
            "npv_savings": self.npv_savings,
            "payback_months": self.payback_months,
            "payback_status": self.payback_status,
            "roi_percent": self.roi_percent,
            "irr_percent": self.irr_percent,
            "tco_progression": [p.to_dict() for p in self.tco_progression],
        }


def discount_factors(rate: float, years: int) -> np.ndarray:
    """1 / (1 + rate) ** i for years i = 1..years."""
    return 1.0 / (1.0 + rate) ** np.arange(1, years + 1)


def payback_period(capex_delta: float, annual_savings: Sequence[float]):
    """
    Months until cumulative savings cover the CAPEX premium.

    Interpolates linearly within the year in which the cumulative position
    crosses zero.

    Args:
        capex_delta: Immersion CAPEX minus air CAPEX
        annual_savings: OPEX savings per year

    Returns:
        Tuple of (months or None, status)
    """
    if capex_delta <= 0:
        return 0.0, PAYBACK_IMMEDIATE

    cumulative = -capex_delta
    for year, savings in enumerate(annual_savings, start=1):
        previous = cumulative
        cumulative += savings
        if cumulative >= 0:
            fraction = -previous / savings
            return (year - 1) * 12 + fraction * 12, PAYBACK_REACHED

    return None, PAYBACK_UNREACHABLE


def internal_rate_of_return(capex_delta: float, annual_savings: Sequence[float]) -> Optional[float]:
    """
    IRR of investing ``capex_delta`` for the given savings stream.

    Returns:
        IRR in percent, or None when there is no premium or no root
    """
    if capex_delta <= 0 or len(annual_savings) == 0:
        return None

    cash_flows = np.concatenate(([-capex_delta], np.asarray(annual_savings, dtype=float)))
    periods = np.arange(len(cash_flows))

    def npv(rate: float) -> float:
        return float(np.sum(cash_flows / (1.0 + rate) ** periods))

    if npv(_IRR_LOWER) * npv(_IRR_UPPER) > 0:
        return None

    return 100 * optimize.brentq(npv, _IRR_LOWER, _IRR_UPPER)


def tco_progression(
    capex: CapexResult,
    opex_series: Sequence[OpexYearRecord],
    discount_rate: float,
) -> List[TCOProgressionPoint]:
    """Cumulative TCO per method from year 0 through the analysis horizon."""
    air = capex.air_cooling.total
    immersion = capex.immersion_cooling.total
    discounted = capex.savings

    points = [TCOProgressionPoint(0, air, immersion, air - immersion, discounted)]
    factors = discount_factors(discount_rate, len(opex_series))

    for record, factor in zip(opex_series, factors):
        air += record.air_cooling.total
        immersion += record.immersion_cooling.total
        discounted += record.savings * float(factor)
        points.append(TCOProgressionPoint(record.year, air, immersion, air - immersion, discounted))

    return points


def compute_financials(
    capex: CapexResult,
    opex_series: Sequence[OpexYearRecord],
    discount_rate: float,
) -> FinancialSummary:
    """
    Compute the financial summary.

    Args:
        capex: CAPEX result for both methods
        opex_series: Annual OPEX records
        discount_rate: Annual discount rate (fraction)

    Returns:
        FinancialSummary
    """
    savings = np.array([r.savings for r in opex_series], dtype=float)
    capex_delta = capex.capex_delta

    opex_savings_5yr = float(np.sum(savings[:SUMMARY_HORIZON_YEARS]))
    npv = float(np.sum(savings * discount_factors(discount_rate, len(savings)))) - capex_delta

    months, status = payback_period(capex_delta, savings.tolist())
    roi = 100 * opex_savings_5yr / capex_delta if capex_delta > 0 else None

    return FinancialSummary(
        capex_savings=capex.savings,
        total_opex_savings_5yr=opex_savings_5yr,
        total_tco_savings_5yr=capex.savings + opex_savings_5yr,
        npv_savings=npv,
        payback_months=months,
        payback_status=status,
        roi_percent=roi,
        irr_percent=internal_rate_of_return(capex_delta, savings.tolist()),
        tco_progression=tco_progression(capex, opex_series, discount_rate),
    )
