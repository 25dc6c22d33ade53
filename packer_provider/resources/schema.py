"""Pydantic models for the packer_build resource.

This module declares the resource schema (attribute names, types and
modes), the user-supplied ``BuildConfig`` and the persisted ``BuildRecord``,
and binds raw configuration documents to them.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from packer_provider.errors import VALIDATION_ERROR
from packer_provider.types import AttributeMode, AttributeSpec, AttributeType

RESOURCE_TYPE_NAME = "packer_build"

RESOURCE_ATTRIBUTES: tuple[AttributeSpec, ...] = (
    AttributeSpec("id", AttributeType.STRING, AttributeMode.COMPUTED),
    AttributeSpec(
        "variables",
        AttributeType.MAP_OF_STRING,
        AttributeMode.OPTIONAL,
        "Variables to pass to Packer",
    ),
    AttributeSpec(
        "additional_params",
        AttributeType.SET_OF_STRING,
        AttributeMode.OPTIONAL,
        "Additional parameters to pass to Packer",
    ),
    AttributeSpec(
        "directory",
        AttributeType.STRING,
        AttributeMode.OPTIONAL,
        "Working directory to run Packer inside. Default is cwd.",
    ),
    AttributeSpec(
        "file",
        AttributeType.STRING,
        AttributeMode.REQUIRED,
        "Packer file to use for building",
    ),
    AttributeSpec(
        "force",
        AttributeType.BOOL,
        AttributeMode.OPTIONAL,
        "Force overwriting existing images",
    ),
    AttributeSpec(
        "environment",
        AttributeType.MAP_OF_STRING,
        AttributeMode.OPTIONAL,
        "Environment variables",
    ),
    AttributeSpec(
        "triggers",
        AttributeType.MAP_OF_STRING,
        AttributeMode.OPTIONAL,
        "Values that, when changed, trigger an update of this resource",
    ),
    AttributeSpec(
        "build_uuid",
        AttributeType.STRING,
        AttributeMode.COMPUTED,
        "UUID that is updated whenever the build has finished. "
        "This allows detecting changes.",
    ),
)


class ConfigurationError(Exception):
    """Raised when configuration cannot be bound to the resource schema."""

    def __init__(
        self,
        message: str,
        errors: list[dict[str, Any]] | None = None,
        code: str = VALIDATION_ERROR,
    ) -> None:
        super().__init__(message)
        self.errors = errors or []
        self.code = code


class BuildConfig(BaseModel):
    """User-supplied configuration of a packer_build resource.

    Attributes:
        variables: Values passed as ``-var key=value``.
        additional_params: Extra arguments appended after the build file.
        directory: Working directory for the build (cwd if not set).
        file: Packer template or directory to build.
        environment: Environment variables for the build process.
        triggers: Opaque values that force a rebuild when changed.
        force: Pass ``-force`` to overwrite existing images.
    """

    model_config = ConfigDict(extra="forbid")

    variables: dict[str, str] = Field(default_factory=dict)
    additional_params: list[str] = Field(default_factory=list)
    directory: str | None = Field(default=None)
    file: str = Field(description="Packer file to use for building")
    environment: dict[str, str] = Field(default_factory=dict)
    triggers: dict[str, str] = Field(default_factory=dict)
    force: bool = Field(default=False)

    @field_validator("file")
    @classmethod
    def validate_file(cls, v: str) -> str:
        """Validate the build file is not blank."""
        if not v.strip():
            raise ValueError("file must not be empty")
        return v

    @field_validator("variables", "environment", "triggers", mode="before")
    @classmethod
    def coerce_map_values(cls, v: Any) -> Any:
        """Render number and bool values as strings, as map(string) does."""
        if not isinstance(v, dict):
            return v
        coerced = {}
        for name, value in v.items():
            if isinstance(value, bool):
                value = "true" if value else "false"
            elif isinstance(value, (int, float)):
                value = str(value)
            coerced[name] = value
        return coerced

    @field_validator("variables", "environment")
    @classmethod
    def validate_names(cls, v: dict[str, str]) -> dict[str, str]:
        """Validate names can be rendered as ``name=value``."""
        for name in v:
            if not name or "=" in name:
                raise ValueError(
                    f"invalid name '{name}': must be non-empty and contain no '='"
                )
        return v

    def config(self) -> "BuildConfig":
        """Return the configuration part of this model."""
        return BuildConfig.model_validate(
            self.model_dump(include=set(BuildConfig.model_fields))
        )


class BuildRecord(BuildConfig):
    """Persisted state of a packer_build resource.

    Attributes:
        id: Stable identifier, minted on first creation.
        build_uuid: Version token, regenerated after every successful build.
    """

    id: str | None = Field(default=None)
    build_uuid: str | None = Field(default=None)

    @classmethod
    def from_config(
        cls,
        config: BuildConfig,
        id: str | None = None,
        build_uuid: str | None = None,
    ) -> "BuildRecord":
        """Create a record from configuration and computed values."""
        return cls(
            **config.model_dump(include=set(BuildConfig.model_fields)),
            id=id,
            build_uuid=build_uuid,
        )


def bind_config(data: Any) -> BuildConfig:
    """Bind a raw configuration document to ``BuildConfig``.

    Args:
        data: Mapping of attribute names to values, or a ``BuildConfig``.

    Returns:
        Validated BuildConfig.

    Raises:
        ConfigurationError: If the document is not a mapping, sets a
            computed attribute, or fails validation.
    """
    if isinstance(data, BuildConfig):
        return data.config()
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Expected a mapping of attributes, got {type(data).__name__}"
        )

    computed = sorted(
        spec.name
        for spec in RESOURCE_ATTRIBUTES
        if spec.mode is AttributeMode.COMPUTED and spec.name in data
    )
    if computed:
        raise ConfigurationError(
            f"Computed attributes cannot be configured: {', '.join(computed)}"
        )

    try:
        return BuildConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid {RESOURCE_TYPE_NAME} configuration: {e}",
            errors=[
                {"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()
            ],
        ) from e


def resource_schema() -> list[AttributeSpec]:
    """Return the attribute declarations of the packer_build resource."""
    return list(RESOURCE_ATTRIBUTES)


__all__ = [
    "RESOURCE_ATTRIBUTES",
    "RESOURCE_TYPE_NAME",
    "BuildConfig",
    "BuildRecord",
    "ConfigurationError",
    "bind_config",
    "resource_schema",
]
