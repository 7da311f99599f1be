"""
Configuration validation.

Checks a raw (JSON-style) configuration against the declared numeric
ranges and enumerations, enforces the one-input-mode-per-cooling-method
rule, and produces a normalized, immutable Configuration.

All violations are collected; validation never stops at the first one.

Example usage:
    >>> result = validate_configuration({
    ...     "air_cooling": {"rack_count": 100, "power_per_rack_kw": 12},
    ...     "immersion_cooling": {"target_power_kw": 1200},
    ...     "financial": {"analysis_years": 5},
    ... })
    >>> result.ok
    True
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging
import math
import re

from .catalog import COOLANT_TYPES, SUPPORTED_CURRENCIES, SUPPORTED_REGIONS, DEFAULT_RACK_TYPE
from .configuration import (
    AIR_INPUT_METHODS,
    AUTO_OPTIMIZE,
    IMMERSION_INPUT_METHODS,
    MANUAL_CONFIG,
    RACK_COUNT,
    TOTAL_POWER,
    AirCoolingConfig,
    AutoOptimizeInput,
    Configuration,
    FinancialConfig,
    ImmersionCoolingConfig,
    ManualTankInput,
    RackCountInput,
    TankConfiguration,
    TotalPowerInput,
)
from .errors import ENUM, RANGE, REQUIRED, STRUCTURAL, TYPE, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldLimit:
    """Inclusive numeric range for a configuration field."""

    label: str
    min_value: float
    max_value: float
    unit: str = ""
    integer: bool = False

    def check(self, field_name: str, value: Any) -> Optional[ValidationError]:
        """
        Check a value against this limit.

        Args:
            field_name: Dotted field path used in the error
            value: Raw value

        Returns:
            ValidationError, or None if the value is acceptable
        """
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return ValidationError(field_name, f"{self.label} must be a number", TYPE)
        if isinstance(value, float) and not math.isfinite(value):
            return ValidationError(field_name, f"{self.label} must be a finite number", TYPE)
        if self.integer and isinstance(value, float) and not value.is_integer():
            return ValidationError(field_name, f"{self.label} must be a whole number", TYPE)

        if value < self.min_value or value > self.max_value:
            unit = f" {self.unit}" if self.unit else ""
            # JSON integers can exceed float range
            shown = f"{value:g}" if abs(value) < 1e300 else "an integer beyond float range"
            return ValidationError(
                field_name,
                f"{self.label} must be between {self.min_value:g} and "
                f"{self.max_value:g}{unit} (got {shown})",
                RANGE,
            )
        return None


VALIDATION_LIMITS: Dict[str, FieldLimit] = {
    "RACK_COUNT": FieldLimit("Rack count", 1, 1000, integer=True),
    "POWER_PER_RACK": FieldLimit("Power per rack", 0.5, 50, "kW"),
    "TOTAL_POWER": FieldLimit("Total power", 1, 50_000, "kW"),
    "TARGET_POWER": FieldLimit("Target power", 1, 50_000, "kW"),
    "TANK_QUANTITY": FieldLimit("Tank quantity", 1, 500, integer=True),
    "TANK_CONFIGURATIONS": FieldLimit("Number of tank configurations", 1, 50, integer=True),
    "POWER_DENSITY": FieldLimit("Power density", 0.5, 5.0, "kW/U"),
    "EFFICIENCY": FieldLimit("Efficiency", 0.1, 1.0),
    "ANALYSIS_YEARS": FieldLimit("Analysis years", 1, 10, "years", integer=True),
    "DISCOUNT_RATE": FieldLimit("Discount rate", 0.0, 0.30),
    "ENERGY_COST": FieldLimit("Energy cost", 0.01, 1.0, "per kWh"),
    "LABOR_COST": FieldLimit("Labor cost", 10, 200, "per hour"),
    "ESCALATION_RATE": FieldLimit("Escalation rate", -0.10, 0.20),
}

TANK_SIZE_PATTERN = re.compile(r"^\d+U$")

# Wire-format aliases for field names
FIELD_ALIASES = {
    "energy_cost_kwh": "custom_energy_cost",
    "energy_cost_per_kwh": "custom_energy_cost",
    "labor_cost_per_hour": "custom_labor_cost",
    "custom_discount_rate": "discount_rate",
    "coolant": "coolant_type",
}

# Wire-format aliases for enumerated values
VALUE_ALIASES = {
    "rackCount": RACK_COUNT,
    "totalPower": TOTAL_POWER,
    "autoOptimize": AUTO_OPTIMIZE,
    "manualConfig": MANUAL_CONFIG,
    "mineralOil": "mineral_oil",
}

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def _snake_case(key: str) -> str:
    key = _CAMEL_BOUNDARY.sub("_", key).lower()
    return FIELD_ALIASES.get(key, key)


def normalize_keys(raw: Any) -> Any:
    """
    Recursively convert camelCase keys to snake_case and resolve aliases.

    Args:
        raw: Raw configuration (dict, list or scalar)

    Returns:
        Same structure with normalized keys and enum values
    """
    if isinstance(raw, dict):
        return {_snake_case(str(k)): normalize_keys(v) for k, v in raw.items()}
    if isinstance(raw, list):
        return [normalize_keys(v) for v in raw]
    if isinstance(raw, str):
        return VALUE_ALIASES.get(raw, raw)
    return raw


@dataclass
class ValidationResult:
    """
    Outcome of validating a raw configuration.

    Exactly one of ``config`` (on success) or ``errors`` (on failure) is
    meaningful.
    """

    config: Optional[Configuration] = None
    errors: List[ValidationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors and self.config is not None

    def errors_for(self, field_name: str) -> List[ValidationError]:
        """Errors whose field path ends with ``field_name``."""
        return [e for e in self.errors if e.field.split(".")[-1] == field_name or e.field == field_name]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.ok,
            "errors": [e.to_dict() for e in self.errors],
            "configuration": self.config.to_dict() if self.config else None,
        }


class ConfigurationValidator:
    """
    Validates raw configurations against a table of field limits.

    Example:
        >>> validator = ConfigurationValidator()
        >>> result = validator.validate(raw_config)
        >>> if not result.ok:
        ...     for error in result.errors:
        ...         print(error.field, error.message)
    """

    def __init__(self, limits: Dict[str, FieldLimit] = None):
        """
        Initialize validator.

        Args:
            limits: Field limits (default: VALIDATION_LIMITS)
        """
        self.limits = limits or VALIDATION_LIMITS

    def validate(self, raw: Dict[str, Any]) -> ValidationResult:
        """
        Validate and normalize a raw configuration.

        Args:
            raw: JSON-style configuration with air_cooling, immersion_cooling
                 and financial sections

        Returns:
            ValidationResult
        """
        errors: List[ValidationError] = []

        if not isinstance(raw, dict):
            return ValidationResult(errors=[
                ValidationError("configuration", "Configuration must be an object", TYPE)
            ])

        data = normalize_keys(raw)

        air = self._validate_air(self._section(data, "air_cooling", errors, required=True), errors)
        immersion = self._validate_immersion(
            self._section(data, "immersion_cooling", errors, required=True), errors
        )
        financial = self._validate_financial(
            self._section(data, "financial", errors, required=False), errors
        )

        if errors:
            logger.debug("Configuration rejected with %d error(s)", len(errors))
            return ValidationResult(errors=errors)

        return ValidationResult(
            config=Configuration(air_cooling=air, immersion_cooling=immersion, financial=financial)
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _section(data: Dict, name: str, errors: List[ValidationError], required: bool) -> Optional[Dict]:
        section = data.get(name)
        if section is None:
            if required:
                errors.append(ValidationError(name, f"Section '{name}' is required", REQUIRED))
                return None
            return {}
        if not isinstance(section, dict):
            errors.append(ValidationError(name, f"Section '{name}' must be an object", TYPE))
            return None
        return section

    def _number(
        self,
        section: Dict,
        key: str,
        limit_name: str,
        prefix: str,
        errors: List[ValidationError],
        default: Any = None,
    ) -> Any:
        """Range-check an optional numeric field; returns the value or default."""
        value = section.get(key)
        if value is None:
            return default
        limit = self.limits[limit_name]
        error = limit.check(f"{prefix}.{key}", value)
        if error:
            errors.append(error)
            return default
        return int(value) if limit.integer else float(value)

    @staticmethod
    def _choice(
        section: Dict,
        key: str,
        choices,
        prefix: str,
        errors: List[ValidationError],
        default: str,
    ) -> str:
        value = section.get(key)
        if value is None:
            return default
        if value not in choices:
            errors.append(ValidationError(
                f"{prefix}.{key}",
                f"Unsupported value {value!r}; expected one of: {', '.join(choices)}",
                ENUM,
            ))
            return default
        return value

    @staticmethod
    def _select_mode(
        section: Dict,
        prefix: str,
        modes: Dict[str, List[str]],
        errors: List[ValidationError],
    ) -> Optional[str]:
        """
        Decide which input mode a section uses.

        With an explicit ``input_method`` the named mode's fields must be
        present; the other mode's fields are cleared. Without one, exactly
        one mode's fields must be fully present.
        """
        def present(key: str) -> bool:
            value = section.get(key)
            return value is not None and value != []

        method = section.get("input_method")
        if method is not None:
            if not isinstance(method, str):
                errors.append(ValidationError(
                    f"{prefix}.input_method", "Input method must be a string", TYPE
                ))
                return None
            if method not in modes:
                errors.append(ValidationError(
                    f"{prefix}.input_method",
                    f"Unsupported input method {method!r}; expected one of: {', '.join(modes)}",
                    ENUM,
                ))
                return None
            missing = [k for k in modes[method] if not present(k)]
            for key in missing:
                errors.append(ValidationError(
                    f"{prefix}.{key}", f"'{key}' is required for input method '{method}'", REQUIRED
                ))
            cleared = [k for m, keys in modes.items() if m != method for k in keys if present(k)]
            if cleared:
                logger.debug("Clearing %s fields for input method %s: %s", prefix, method, cleared)
            return None if missing else method

        complete = [m for m, keys in modes.items() if all(present(k) for k in keys)]
        if len(complete) == 1:
            return complete[0]

        options = " or ".join(" + ".join(keys) for keys in modes.values())
        got = "both" if complete else "neither"
        errors.append(ValidationError(
            prefix,
            f"Exactly one input mode must be provided ({options}); got {got}",
            STRUCTURAL,
        ))
        return None

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def _validate_air(self, section: Optional[Dict], errors: List[ValidationError]) -> Optional[AirCoolingConfig]:
        if section is None:
            return None
        prefix = "air_cooling"

        method = self._select_mode(section, prefix, {
            RACK_COUNT: ["rack_count", "power_per_rack_kw"],
            TOTAL_POWER: ["total_power_kw"],
        }, errors)

        rack_type = section.get("rack_type", DEFAULT_RACK_TYPE)
        if not isinstance(rack_type, str):
            errors.append(ValidationError(f"{prefix}.rack_type", "Rack type must be a string", TYPE))
            rack_type = DEFAULT_RACK_TYPE

        inputs = None
        if method == RACK_COUNT:
            rack_count = self._number(section, "rack_count", "RACK_COUNT", prefix, errors)
            power = self._number(section, "power_per_rack_kw", "POWER_PER_RACK", prefix, errors)
            if rack_count is not None and power is not None:
                inputs = RackCountInput(rack_count=rack_count, power_per_rack_kw=power, rack_type=rack_type)
        elif method == TOTAL_POWER:
            total = self._number(section, "total_power_kw", "TOTAL_POWER", prefix, errors)
            if total is not None:
                inputs = TotalPowerInput(total_power_kw=total, rack_type=rack_type)

        defaults = AirCoolingConfig.__dataclass_fields__
        hvac = self._number(section, "hvac_efficiency", "EFFICIENCY", prefix, errors,
                            defaults["hvac_efficiency"].default)
        distribution = self._number(section, "power_distribution_efficiency", "EFFICIENCY", prefix, errors,
                                    defaults["power_distribution_efficiency"].default)
        space = self._number(section, "space_efficiency", "EFFICIENCY", prefix, errors,
                             defaults["space_efficiency"].default)

        if inputs is None:
            return None
        return AirCoolingConfig(
            inputs=inputs,
            hvac_efficiency=hvac,
            power_distribution_efficiency=distribution,
            space_efficiency=space,
        )

    def _validate_tanks(self, tanks: Any, prefix: str, errors: List[ValidationError]) -> Optional[tuple]:
        if not isinstance(tanks, list):
            errors.append(ValidationError(prefix, "Tank configurations must be a list", TYPE))
            return None

        count_error = self.limits["TANK_CONFIGURATIONS"].check(prefix, len(tanks))
        if count_error:
            errors.append(count_error)
            return None

        parsed = []
        n_errors = len(errors)
        for i, tank in enumerate(tanks):
            item = f"{prefix}[{i}]"
            if not isinstance(tank, dict):
                errors.append(ValidationError(item, "Tank configuration must be an object", TYPE))
                continue

            size = tank.get("size")
            if size is None:
                errors.append(ValidationError(f"{item}.size", "Tank size is required", REQUIRED))
            elif not isinstance(size, str) or not TANK_SIZE_PATTERN.match(size):
                errors.append(ValidationError(
                    f"{item}.size", 'Tank size must be in format like "23U"', TYPE
                ))

            for key in ("quantity", "power_density_kw_per_u"):
                if tank.get(key) is None:
                    errors.append(ValidationError(f"{item}.{key}", f"'{key}' is required", REQUIRED))
            quantity = self._number(tank, "quantity", "TANK_QUANTITY", item, errors)
            density = self._number(tank, "power_density_kw_per_u", "POWER_DENSITY", item, errors)

            if len(errors) == n_errors:
                parsed.append(TankConfiguration(size=size, quantity=quantity, power_density_kw_per_u=density))

        if len(errors) != n_errors:
            return None
        return tuple(parsed)

    def _validate_immersion(
        self, section: Optional[Dict], errors: List[ValidationError]
    ) -> Optional[ImmersionCoolingConfig]:
        if section is None:
            return None
        prefix = "immersion_cooling"

        method = self._select_mode(section, prefix, {
            MANUAL_CONFIG: ["tank_configurations"],
            AUTO_OPTIMIZE: ["target_power_kw"],
        }, errors)

        inputs = None
        if method == AUTO_OPTIMIZE:
            target = self._number(section, "target_power_kw", "TARGET_POWER", prefix, errors)
            if target is not None:
                inputs = AutoOptimizeInput(target_power_kw=target)
        elif method == MANUAL_CONFIG:
            tanks = self._validate_tanks(section["tank_configurations"], f"{prefix}.tank_configurations", errors)
            if tanks is not None:
                inputs = ManualTankInput(tank_configurations=tanks)

        defaults = ImmersionCoolingConfig.__dataclass_fields__
        coolant = self._choice(section, "coolant_type", COOLANT_TYPES, prefix, errors,
                               defaults["coolant_type"].default)
        pumping = self._number(section, "pumping_efficiency", "EFFICIENCY", prefix, errors,
                               defaults["pumping_efficiency"].default)
        exchanger = self._number(section, "heat_exchanger_efficiency", "EFFICIENCY", prefix, errors,
                                 defaults["heat_exchanger_efficiency"].default)

        if inputs is None:
            return None
        return ImmersionCoolingConfig(
            inputs=inputs,
            coolant_type=coolant,
            pumping_efficiency=pumping,
            heat_exchanger_efficiency=exchanger,
        )

    def _validate_financial(
        self, section: Optional[Dict], errors: List[ValidationError]
    ) -> Optional[FinancialConfig]:
        if section is None:
            return None
        prefix = "financial"
        defaults = FinancialConfig()

        return FinancialConfig(
            analysis_years=self._number(section, "analysis_years", "ANALYSIS_YEARS", prefix, errors,
                                        defaults.analysis_years),
            discount_rate=self._number(section, "discount_rate", "DISCOUNT_RATE", prefix, errors,
                                       defaults.discount_rate),
            currency=self._choice(section, "currency", SUPPORTED_CURRENCIES, prefix, errors,
                                  defaults.currency),
            region=self._choice(section, "region", SUPPORTED_REGIONS, prefix, errors, defaults.region),
            custom_energy_cost=self._number(section, "custom_energy_cost", "ENERGY_COST", prefix, errors),
            custom_labor_cost=self._number(section, "custom_labor_cost", "LABOR_COST", prefix, errors),
            energy_escalation_rate=self._number(section, "energy_escalation_rate", "ESCALATION_RATE",
                                                prefix, errors, defaults.energy_escalation_rate),
            maintenance_escalation_rate=self._number(section, "maintenance_escalation_rate",
                                                     "ESCALATION_RATE", prefix, errors,
                                                     defaults.maintenance_escalation_rate),
            labor_escalation_rate=self._number(section, "labor_escalation_rate", "ESCALATION_RATE",
                                               prefix, errors, defaults.labor_escalation_rate),
        )


def validate_configuration(raw: Dict[str, Any]) -> ValidationResult:
    """
    Convenience function to validate a raw configuration.

    Args:
        raw: JSON-style configuration

    Returns:
        ValidationResult
    """
    return ConfigurationValidator().validate(raw)
