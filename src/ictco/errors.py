"""
Error taxonomy for the TCO calculation engine.

Three kinds of problems are distinguished:

- ValidationError: a field, range or structural violation in the submitted
  configuration. Always returned to the caller, never raised.
- ConfigurationCatalogError: a structurally valid value (tank size, rack type,
  region, currency, coolant type) that has no entry in the injected catalog.
- ComputationAnomaly: an invariant violated mid-calculation (PUE below 1.0,
  negative cost, non-finite number). Corrected in place where possible and
  reported alongside the result.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


# Validation error codes
RANGE = "range"
TYPE = "type"
ENUM = "enum"
STRUCTURAL = "structural"
REQUIRED = "required"


@dataclass(frozen=True)
class ValidationError:
    """Single violation found in a raw configuration."""

    field: str
    message: str
    code: str = RANGE

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message, "code": self.code}


class ConfigurationCatalogError(LookupError):
    """
    A requested reference entry is missing from the catalog.

    Attributes:
        kind: Catalog section ("tank_size", "rack_type", "region", ...)
        key: The value that could not be resolved
        field: Configuration field the value came from, if known
    """

    def __init__(self, kind: str, key: Any, field: Optional[str] = None):
        self.kind = kind
        self.key = key
        self.field = field
        super().__init__(f"No catalog entry for {kind} {key!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "key": self.key,
            "field": self.field,
            "message": str(self),
        }


@dataclass(frozen=True)
class ComputationAnomaly:
    """
    Invariant violation detected while computing a result.

    Attributes:
        invariant: Short name of the violated invariant ("pue_floor", ...)
        value: Raw value that violated it
        message: Human-readable description
        action: "clamped" if a safe value was substituted, else "flagged"
    """

    invariant: str
    value: Optional[float]
    message: str
    action: str = "flagged"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "invariant": self.invariant,
            "value": self.value,
            "message": self.message,
            "action": self.action,
        }
