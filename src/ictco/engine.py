"""
TCO calculation engine.

High-level interface that runs the full pipeline: validate the raw
configuration, check it against the catalog, size and price both cooling
methods, project OPEX, derive financial and efficiency metrics and assemble
the result.

Example usage:
    >>> from ictco import calculate_tco
    >>> outcome = calculate_tco(raw_config)
    >>> if outcome.ok:
    ...     print(outcome.result.summary())
    ... else:
    ...     print(outcome.to_dict()["validation_errors"])
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging

from .capex import compute_capex
from .catalog import Catalog
from .configuration import Configuration
from .efficiency import compute_efficiency
from .errors import ConfigurationCatalogError, ValidationError
from .financial import compute_financials
from .opex import compute_opex_series
from .results import CalculationResult, assemble
from .validation import ConfigurationValidator, ValidationResult

logger = logging.getLogger(__name__)


@dataclass
class CalculationOutcome:
    """
    Either a result or the reasons no result could be produced.
    """

    result: Optional[CalculationResult] = None
    validation_errors: List[ValidationError] = field(default_factory=list)
    catalog_errors: List[ConfigurationCatalogError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.result is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.ok,
            "result": self.result.to_dict() if self.result else None,
            "validation_errors": [e.to_dict() for e in self.validation_errors],
            "catalog_errors": [e.to_dict() for e in self.catalog_errors],
        }


class TCOCalculator:
    """
    TCO calculation engine bound to a reference catalog.

    Stateless between calls: each calculation depends only on its input
    and the catalog.

    Example:
        >>> calculator = TCOCalculator()
        >>> outcome = calculator.calculate(raw_config)
        >>> print(outcome.result.summary())
    """

    def __init__(self, catalog: Catalog = None):
        """
        Initialize calculator.

        Args:
            catalog: Reference catalog (default: Catalog.default())
        """
        self.catalog = catalog or Catalog.default()
        self.validator = ConfigurationValidator()

    def validate(self, raw: Dict[str, Any]) -> ValidationResult:
        """Validate a raw configuration without computing."""
        return self.validator.validate(raw)

    def check_catalog(self, config: Configuration) -> List[ConfigurationCatalogError]:
        """List catalog entries the configuration references but the catalog lacks."""
        return self.catalog.check(config)

    def compute(self, config: Configuration) -> CalculationResult:
        """
        Run the calculation on an already validated configuration.

        Args:
            config: Validated configuration

        Returns:
            CalculationResult

        Raises:
            ConfigurationCatalogError: If a referenced catalog entry is missing
        """
        catalog = self.catalog

        capex = compute_capex(config, catalog)
        anomalies = list(capex.anomalies)

        opex_series = compute_opex_series(config, capex, catalog)
        financial = compute_financials(capex, opex_series, config.financial.discount_rate)
        efficiency = compute_efficiency(config, capex, catalog, anomalies)

        return assemble(
            capex,
            opex_series,
            financial,
            efficiency,
            config,
            anomalies,
            overhaul_interval_years=catalog.factors.major_overhaul_interval_years,
        )

    def calculate(self, raw: Dict[str, Any]) -> CalculationOutcome:
        """
        Validate and calculate.

        Expected failures are returned in the outcome, not raised.

        Args:
            raw: JSON-style configuration

        Returns:
            CalculationOutcome
        """
        validation = self.validate(raw)
        if not validation.ok:
            return CalculationOutcome(validation_errors=validation.errors)

        config = validation.config
        catalog_errors = self.check_catalog(config)
        if catalog_errors:
            logger.debug("Configuration references %d missing catalog entries", len(catalog_errors))
            return CalculationOutcome(catalog_errors=catalog_errors)

        result = self.compute(config)
        logger.debug(
            "Calculated TCO for %s: 5-year savings %.2f %s, %d warning(s)",
            result.metadata["configuration_hash"][:12],
            result.summary_data["total_tco_savings_5yr"] or 0.0,
            config.financial.currency,
            len(result.warnings),
        )
        return CalculationOutcome(result=result)


def calculate_tco(raw: Dict[str, Any], catalog: Catalog = None) -> CalculationOutcome:
    """
    Convenience function to run a TCO calculation.

    Args:
        raw: JSON-style configuration
        catalog: Reference catalog (default: Catalog.default())

    Returns:
        CalculationOutcome
    """
    return TCOCalculator(catalog).calculate(raw)
