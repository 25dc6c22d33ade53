"""Shared type definitions for packer_provider.

This module contains enums and dataclasses shared across subpackages to
avoid circular imports.
"""

from dataclasses import dataclass
from enum import Enum


class AttributeType(str, Enum):
    """Value type of a resource schema attribute."""

    STRING = "string"
    BOOL = "bool"
    MAP_OF_STRING = "map(string)"
    SET_OF_STRING = "set(string)"


class AttributeMode(str, Enum):
    """Who supplies a resource schema attribute."""

    REQUIRED = "required"
    OPTIONAL = "optional"
    COMPUTED = "computed"


class DiagnosticSeverity(str, Enum):
    """Severity of a diagnostic reported to the host."""

    ERROR = "error"


@dataclass(frozen=True)
class AttributeSpec:
    """Declaration of a single resource schema attribute."""

    name: str
    type: AttributeType
    mode: AttributeMode
    description: str = ""

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "type": self.type.value,
            "mode": self.mode.value,
            "description": self.description,
        }


__all__ = [
    "AttributeMode",
    "AttributeSpec",
    "AttributeType",
    "DiagnosticSeverity",
]
