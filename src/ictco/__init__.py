"""
Immersion Cooling TCO Calculator (ICTCO)
========================================

A total cost of ownership calculator comparing traditional air cooling with
immersion cooling for data centers: CAPEX, multi-year OPEX with escalation,
NPV/ROI/IRR/payback, PUE and environmental impact.

Example usage:
    >>> from ictco import calculate_tco
    >>> outcome = calculate_tco({
    ...     "air_cooling": {"rack_count": 100, "power_per_rack_kw": 12},
    ...     "immersion_cooling": {"target_power_kw": 1200},
    ...     "financial": {"analysis_years": 5, "currency": "USD", "region": "US"},
    ... })
    >>> print(outcome.result.summary())

License: MIT
"""

__version__ = "0.1.0"

from .errors import (
    ValidationError,
    ConfigurationCatalogError,
    ComputationAnomaly,
)

from .catalog import (
    Catalog,
    CostFactors,
    TankSpec,
    RackSpec,
    CoolantSpec,
    RegionDefaults,
    PriceList,
)

from .currency import (
    convert,
    format_currency,
)

from .configuration import (
    Configuration,
    AirCoolingConfig,
    ImmersionCoolingConfig,
    FinancialConfig,
    RackCountInput,
    TotalPowerInput,
    AutoOptimizeInput,
    ManualTankInput,
    TankConfiguration,
)

from .validation import (
    ConfigurationValidator,
    ValidationResult,
    VALIDATION_LIMITS,
    validate_configuration,
)

from .optimizer import (
    TankOptimizer,
    TankAllocation,
    optimize_tanks,
    total_power_kw,
    total_tanks,
)

from .capex import (
    CapexResult,
    CostBreakdown,
    compute_capex,
)

from .opex import (
    AnnualCost,
    OpexYearRecord,
    compute_opex_series,
)

from .financial import (
    FinancialSummary,
    TCOProgressionPoint,
    compute_financials,
)

from .efficiency import (
    PUEAnalysis,
    EnvironmentalImpact,
    EfficiencySummary,
    compute_efficiency,
)

from .results import (
    CalculationResult,
    assemble,
    configuration_hash,
)

from .engine import (
    TCOCalculator,
    CalculationOutcome,
    calculate_tco,
)

from .report import (
    generate_html_report,
    save_html_report,
    ReportConfig,
)

__all__ = [
    # Version info
    "__version__",

    # Errors
    "ValidationError",
    "ConfigurationCatalogError",
    "ComputationAnomaly",

    # Catalog
    "Catalog",
    "CostFactors",
    "TankSpec",
    "RackSpec",
    "CoolantSpec",
    "RegionDefaults",
    "PriceList",
    "convert",
    "format_currency",

    # Configuration
    "Configuration",
    "AirCoolingConfig",
    "ImmersionCoolingConfig",
    "FinancialConfig",
    "RackCountInput",
    "TotalPowerInput",
    "AutoOptimizeInput",
    "ManualTankInput",
    "TankConfiguration",

    # Validation
    "ConfigurationValidator",
    "ValidationResult",
    "VALIDATION_LIMITS",
    "validate_configuration",

    # Tank optimization
    "TankOptimizer",
    "TankAllocation",
    "optimize_tanks",
    "total_power_kw",
    "total_tanks",

    # Calculations
    "CapexResult",
    "CostBreakdown",
    "compute_capex",
    "AnnualCost",
    "OpexYearRecord",
    "compute_opex_series",
    "FinancialSummary",
    "TCOProgressionPoint",
    "compute_financials",
    "PUEAnalysis",
    "EnvironmentalImpact",
    "EfficiencySummary",
    "compute_efficiency",

    # Results
    "CalculationResult",
    "assemble",
    "configuration_hash",

    # Main calculator
    "TCOCalculator",
    "CalculationOutcome",
    "calculate_tco",

    # Reports
    "generate_html_report",
    "save_html_report",
    "ReportConfig",
]
