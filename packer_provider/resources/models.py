"""Resource state ORM models.

This module defines the BuildResourceState model, the stored form of a
``BuildRecord`` in the local state database.
"""

from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from packer_provider.db import Base
from packer_provider.resources.schema import BuildRecord


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BuildResourceState(Base):
    """ORM model for the stored state of a packer_build resource.

    Attributes:
        resource_id: Stable resource identifier (``BuildRecord.id``).
        file: Packer file to build.
        directory: Working directory, if any.
        force: Whether ``-force`` is passed.
        variables: JSON object of build variables.
        additional_params: JSON array of extra arguments.
        environment: JSON object of environment variables.
        triggers: JSON object of opaque trigger values.
        build_uuid: Version token of the last successful build.
        created_at: Timestamp when the resource was first stored.
        updated_at: Timestamp of the last stored change.
    """

    __tablename__ = "build_resources"

    resource_id: Mapped[str] = mapped_column(String(64), primary_key=True)

    # Configuration
    file: Mapped[str] = mapped_column(Text, nullable=False)
    directory: Mapped[str | None] = mapped_column(Text, nullable=True)
    force: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    variables: Mapped[dict[str, str]] = mapped_column(
        JSON, nullable=False, default=dict
    )
    additional_params: Mapped[list[str]] = mapped_column(
        JSON, nullable=False, default=list
    )
    environment: Mapped[dict[str, str]] = mapped_column(
        JSON, nullable=False, default=dict
    )
    triggers: Mapped[dict[str, str]] = mapped_column(JSON, nullable=False, default=dict)

    # Computed
    build_uuid: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Timestamps (UTC)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        """Return string representation of BuildResourceState."""
        return (
            f"<BuildResourceState(resource_id='{self.resource_id}', "
            f"file='{self.file}', build_uuid='{self.build_uuid}')>"
        )

    @classmethod
    def from_record(cls, record: BuildRecord) -> "BuildResourceState":
        """Create a row from a record that has an ``id``."""
        if record.id is None:
            raise ValueError("record has no id")
        row = cls(resource_id=record.id)
        row.apply_record(record)
        return row

    def apply_record(self, record: BuildRecord) -> None:
        """Overwrite the stored state with a record."""
        self.file = record.file
        self.directory = record.directory
        self.force = record.force
        self.variables = dict(record.variables)
        self.additional_params = list(record.additional_params)
        self.environment = dict(record.environment)
        self.triggers = dict(record.triggers)
        self.build_uuid = record.build_uuid
        self.updated_at = _utcnow()

    def to_record(self) -> BuildRecord:
        """Convert the stored state to a record."""
        return BuildRecord(
            id=self.resource_id,
            file=self.file,
            directory=self.directory,
            force=self.force,
            variables=dict(self.variables or {}),
            additional_params=list(self.additional_params or []),
            environment=dict(self.environment or {}),
            triggers=dict(self.triggers or {}),
            build_uuid=self.build_uuid,
        )


__all__ = ["BuildResourceState"]
