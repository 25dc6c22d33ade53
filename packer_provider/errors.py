"""Diagnostics for reporting failures to the host.

Every error raised by packer_provider carries a stable ``code`` attribute.
Host adapters (CLI, HTTP API) turn exceptions into ``Diagnostic`` values
instead of formatting messages themselves.
"""

from dataclasses import dataclass
from typing import Any

from packer_provider.types import DiagnosticSeverity

# Stable error codes
VALIDATION_ERROR = "validation"
BUILD_ERROR = "build_failed"
EXECUTION_ERROR = "execution_error"
RESOURCE_NOT_FOUND = "resource_not_found"
RESOURCE_EXISTS = "resource_exists"
INTERNAL_ERROR = "internal_error"

_SUMMARIES = {
    VALIDATION_ERROR: "Invalid configuration",
    BUILD_ERROR: "Failed to run packer",
    EXECUTION_ERROR: "Failed to run packer",
    RESOURCE_NOT_FOUND: "Resource not found",
    RESOURCE_EXISTS: "Resource already exists",
}


@dataclass
class Diagnostic:
    """Structured diagnostic for a failed operation.

    Attributes:
        summary: Short headline shown to the user.
        detail: Full error text, including captured build output.
        code: Stable error code for programmatic handling.
        severity: Diagnostic severity.
    """

    summary: str
    detail: str
    code: str = INTERNAL_ERROR
    severity: DiagnosticSeverity = DiagnosticSeverity.ERROR

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "severity": self.severity.value,
            "summary": self.summary,
            "detail": self.detail,
            "code": self.code,
        }


def diagnostic_from_exception(exc: BaseException) -> Diagnostic:
    """Build a diagnostic from an exception raised by packer_provider.

    Args:
        exc: Exception to describe. Exceptions without a ``code``
            attribute are reported as internal errors.

    Returns:
        Diagnostic instance.
    """
    code = getattr(exc, "code", None) or INTERNAL_ERROR
    summary = _SUMMARIES.get(code, "Unexpected error")
    return Diagnostic(summary=summary, detail=str(exc), code=code)


__all__ = [
    "BUILD_ERROR",
    "EXECUTION_ERROR",
    "INTERNAL_ERROR",
    "RESOURCE_EXISTS",
    "RESOURCE_NOT_FOUND",
    "VALIDATION_ERROR",
    "Diagnostic",
    "diagnostic_from_exception",
]
