"""Lifecycle controller for the packer_build resource.

``BuildResourceController`` is the boundary between host adapters and the
resource: it takes and returns plain ``BuildRecord`` values and knows
nothing about how the host stores or transports them.
"""

from __future__ import annotations

import abc
import functools
import logging
import uuid
from collections.abc import Callable
from typing import Any

from packer_provider.config import Settings
from packer_provider.resources.runner import BuildResult, run_packer_build
from packer_provider.resources.schema import BuildConfig, BuildRecord, bind_config

logger = logging.getLogger(__name__)

BuildRunner = Callable[[BuildConfig], BuildResult]


def new_token() -> str:
    """Return a fresh random UUID string."""
    return str(uuid.uuid4())


def assign_tokens(record: BuildRecord) -> BuildRecord:
    """Assign the computed values after a successful build.

    ``build_uuid`` is always regenerated. ``id`` is minted only if unset.

    Args:
        record: Record whose build just succeeded.

    Returns:
        New record with computed values assigned.
    """
    return record.model_copy(
        update={
            "id": record.id or new_token(),
            "build_uuid": new_token(),
        }
    )


class BuildResourceController(abc.ABC):
    """Create/Read/Update/Delete contract of a build resource."""

    @abc.abstractmethod
    def create(self, config: BuildConfig | dict[str, Any]) -> BuildRecord:
        """Build from a new configuration and return the new record."""

    @abc.abstractmethod
    def read(self, record: BuildRecord) -> BuildRecord:
        """Return the current state of a stored record."""

    @abc.abstractmethod
    def update(
        self, record: BuildRecord, config: BuildConfig | dict[str, Any]
    ) -> BuildRecord:
        """Rebuild a record with a proposed configuration."""

    @abc.abstractmethod
    def delete(self, record: BuildRecord) -> None:
        """Forget a record."""


class PackerBuildController(BuildResourceController):
    """Controller that runs `packer build` on create and update.

    Args:
        runner: Callable executing a build; defaults to ``run_packer_build``.
        settings: Settings passed to the default runner.
    """

    def __init__(
        self,
        runner: BuildRunner | None = None,
        settings: Settings | None = None,
    ) -> None:
        if runner is None:
            runner = functools.partial(run_packer_build, settings=settings)
        self._runner = runner

    def _build(self, record: BuildRecord) -> BuildRecord:
        self._runner(record.config())
        return assign_tokens(record)

    def create(self, config: BuildConfig | dict[str, Any]) -> BuildRecord:
        """Run the build for a new resource.

        Raises:
            ConfigurationError: If the configuration is invalid.
            PackerBuildError: If the build fails.
        """
        record = BuildRecord.from_config(bind_config(config))
        created = self._build(record)
        logger.info("Created build resource %s", created.id)
        return created

    def read(self, record: BuildRecord) -> BuildRecord:
        """Return the stored record unchanged; no build is run."""
        return record

    def update(
        self, record: BuildRecord, config: BuildConfig | dict[str, Any]
    ) -> BuildRecord:
        """Run the build with the proposed configuration.

        The stored configuration is ignored; only ``id`` is carried over.
        The passed record is never modified, so it is still the current
        state when the build fails.

        Raises:
            ConfigurationError: If the configuration is invalid.
            PackerBuildError: If the build fails.
        """
        planned = BuildRecord.from_config(
            bind_config(config), id=record.id, build_uuid=record.build_uuid
        )
        updated = self._build(planned)
        logger.info(
            "Updated build resource %s (build_uuid %s -> %s)",
            updated.id,
            record.build_uuid,
            updated.build_uuid,
        )
        return updated

    def delete(self, record: BuildRecord) -> None:
        """Forget the record. Built images are left in place."""
        logger.info("Deleted build resource %s", record.id)


__all__ = [
    "BuildResourceController",
    "BuildRunner",
    "PackerBuildController",
    "assign_tokens",
    "new_token",
]
