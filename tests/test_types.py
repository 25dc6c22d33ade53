"""Tests for shared types and diagnostics."""

from packer_provider.errors import (
    BUILD_ERROR,
    INTERNAL_ERROR,
    RESOURCE_NOT_FOUND,
    VALIDATION_ERROR,
    Diagnostic,
    diagnostic_from_exception,
)
from packer_provider.resources.runner import PackerBuildError
from packer_provider.resources.schema import ConfigurationError
from packer_provider.resources.service import ResourceNotFoundError
from packer_provider.types import (
    AttributeMode,
    AttributeSpec,
    AttributeType,
    DiagnosticSeverity,
)


class TestEnums:
    """Test enum definitions."""

    def test_attribute_type_values(self) -> None:
        """AttributeType should name the schema value types."""
        assert AttributeType.STRING.value == "string"
        assert AttributeType.BOOL.value == "bool"
        assert AttributeType.MAP_OF_STRING.value == "map(string)"
        assert AttributeType.SET_OF_STRING.value == "set(string)"

    def test_attribute_mode_values(self) -> None:
        """AttributeMode should have expected values."""
        assert AttributeMode.REQUIRED.value == "required"
        assert AttributeMode.OPTIONAL.value == "optional"
        assert AttributeMode.COMPUTED.value == "computed"

    def test_enums_are_strings(self) -> None:
        """Enums should compare equal to their string values."""
        assert DiagnosticSeverity.ERROR == "error"
        assert AttributeMode.COMPUTED == "computed"

    def test_diagnostic_severity_values(self) -> None:
        """Diagnostics are only ever reported as errors."""
        assert [s.value for s in DiagnosticSeverity] == ["error"]


class TestAttributeSpec:
    """Test AttributeSpec dataclass."""

    def test_to_dict(self) -> None:
        """to_dict should render enum values as strings."""
        spec = AttributeSpec(
            "file", AttributeType.STRING, AttributeMode.REQUIRED, "Packer file"
        )
        assert spec.to_dict() == {
            "name": "file",
            "type": "string",
            "mode": "required",
            "description": "Packer file",
        }


class TestDiagnostics:
    """Test diagnostics built from exceptions."""

    def test_build_error(self) -> None:
        """Build failures should be reported as 'Failed to run packer'."""
        exc = PackerBuildError(
            "could not run packer command; output: boom", exit_code=1, output="boom"
        )
        diagnostic = diagnostic_from_exception(exc)

        assert diagnostic.summary == "Failed to run packer"
        assert diagnostic.code == BUILD_ERROR
        assert "boom" in diagnostic.detail
        assert diagnostic.severity is DiagnosticSeverity.ERROR

    def test_configuration_error(self) -> None:
        """Binding failures should be reported as invalid configuration."""
        diagnostic = diagnostic_from_exception(ConfigurationError("file missing"))
        assert diagnostic.summary == "Invalid configuration"
        assert diagnostic.code == VALIDATION_ERROR

    def test_not_found_error(self) -> None:
        """Missing resources should keep their code."""
        diagnostic = diagnostic_from_exception(ResourceNotFoundError("abc"))
        assert diagnostic.code == RESOURCE_NOT_FOUND
        assert "abc" in diagnostic.detail

    def test_unknown_exception(self) -> None:
        """Exceptions without a code should be internal errors."""
        diagnostic = diagnostic_from_exception(RuntimeError("oops"))
        assert diagnostic.code == INTERNAL_ERROR
        assert diagnostic.detail == "oops"

    def test_to_dict(self) -> None:
        """to_dict should include all fields."""
        diagnostic = Diagnostic(summary="s", detail="d", code="c")
        assert diagnostic.to_dict() == {
            "severity": "error",
            "summary": "s",
            "detail": "d",
            "code": "c",
        }
