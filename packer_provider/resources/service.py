"""Resource service module.

This module drives the packer_build lifecycle against the local state
store, the way an orchestration host would:
- create_resource(): build and store a new resource
- read_resource(): return stored state, no build
- update_resource(): rebuild with a proposed configuration
- delete_resource(): forget a resource
- import_resource(): adopt an existing build under a known id

State is written only after the controller returns successfully.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from packer_provider.errors import RESOURCE_EXISTS, RESOURCE_NOT_FOUND
from packer_provider.resources.controller import (
    BuildResourceController,
    PackerBuildController,
)
from packer_provider.resources.models import BuildResourceState
from packer_provider.resources.schema import BuildConfig, BuildRecord, bind_config

logger = logging.getLogger(__name__)


class ResourceNotFoundError(Exception):
    """Raised when a resource is not in the state store."""

    def __init__(self, resource_id: str, code: str = RESOURCE_NOT_FOUND) -> None:
        super().__init__(f"Resource not found: {resource_id}")
        self.resource_id = resource_id
        self.code = code


class ResourceExistsError(Exception):
    """Raised when a resource id is already in the state store."""

    def __init__(self, resource_id: str, code: str = RESOURCE_EXISTS) -> None:
        super().__init__(f"Resource already exists: {resource_id}")
        self.resource_id = resource_id
        self.code = code


def _get_state(session: Session, resource_id: str) -> BuildResourceState:
    state = session.get(BuildResourceState, resource_id)
    if state is None:
        raise ResourceNotFoundError(resource_id)
    return state


def create_resource(
    session: Session,
    config: BuildConfig | dict[str, Any],
    controller: BuildResourceController | None = None,
) -> BuildRecord:
    """Create a resource: run the build and store the resulting record.

    Args:
        session: Database session.
        config: Resource configuration.
        controller: Lifecycle controller (defaults to PackerBuildController).

    Returns:
        Created BuildRecord.

    Raises:
        ConfigurationError: If the configuration is invalid.
        PackerBuildError: If the build fails. Nothing is stored.
    """
    if controller is None:
        controller = PackerBuildController()

    record = controller.create(config)
    session.add(BuildResourceState.from_record(record))
    session.flush()
    return record


def read_resource(
    session: Session,
    resource_id: str,
    controller: BuildResourceController | None = None,
) -> BuildRecord:
    """Read the stored state of a resource.

    Args:
        session: Database session.
        resource_id: Resource ID.
        controller: Lifecycle controller (defaults to PackerBuildController).

    Returns:
        Stored BuildRecord.

    Raises:
        ResourceNotFoundError: If the resource is not stored.
    """
    if controller is None:
        controller = PackerBuildController()

    return controller.read(_get_state(session, resource_id).to_record())


def get_resource_or_none(session: Session, resource_id: str) -> BuildRecord | None:
    """Get a stored record by ID, or None if not found.

    Args:
        session: Database session.
        resource_id: Resource ID.

    Returns:
        BuildRecord instance or None.
    """
    state = session.get(BuildResourceState, resource_id)
    return state.to_record() if state is not None else None


def update_resource(
    session: Session,
    resource_id: str,
    config: BuildConfig | dict[str, Any],
    controller: BuildResourceController | None = None,
) -> BuildRecord:
    """Rebuild a resource with a proposed configuration.

    Args:
        session: Database session.
        resource_id: Resource ID.
        config: Proposed configuration; replaces the stored one.
        controller: Lifecycle controller (defaults to PackerBuildController).

    Returns:
        Updated BuildRecord.

    Raises:
        ResourceNotFoundError: If the resource is not stored.
        ConfigurationError: If the configuration is invalid.
        PackerBuildError: If the build fails. Stored state is unchanged.
    """
    if controller is None:
        controller = PackerBuildController()

    state = _get_state(session, resource_id)
    record = controller.update(state.to_record(), config)
    state.apply_record(record)
    session.flush()
    return record


def delete_resource(
    session: Session,
    resource_id: str,
    controller: BuildResourceController | None = None,
) -> None:
    """Delete a resource from the state store.

    No command is run and built images are not removed.

    Args:
        session: Database session.
        resource_id: Resource ID.
        controller: Lifecycle controller (defaults to PackerBuildController).

    Raises:
        ResourceNotFoundError: If the resource is not stored.
    """
    if controller is None:
        controller = PackerBuildController()

    state = _get_state(session, resource_id)
    controller.delete(state.to_record())
    session.delete(state)
    session.flush()


def import_resource(
    session: Session,
    resource_id: str,
    config: BuildConfig | dict[str, Any],
) -> BuildRecord:
    """Adopt an existing build under a known ID without running Packer.

    ``build_uuid`` stays unset until the next successful update.

    Args:
        session: Database session.
        resource_id: ID to store the resource under.
        config: Resource configuration.

    Returns:
        Imported BuildRecord.

    Raises:
        ResourceExistsError: If the ID is already stored.
        ConfigurationError: If the configuration is invalid.
    """
    if session.get(BuildResourceState, resource_id) is not None:
        raise ResourceExistsError(resource_id)

    record = BuildRecord.from_config(bind_config(config), id=resource_id)
    session.add(BuildResourceState.from_record(record))
    session.flush()
    logger.info("Imported build resource %s", resource_id)
    return record


def list_resources(session: Session, limit: int = 100) -> list[BuildRecord]:
    """List stored resources, most recently created first.

    Args:
        session: Database session.
        limit: Maximum results to return.

    Returns:
        List of BuildRecord instances.
    """
    stmt = (
        select(BuildResourceState)
        .order_by(
            BuildResourceState.created_at.desc(),
            BuildResourceState.resource_id,
        )
        .limit(limit)
    )
    return [state.to_record() for state in session.execute(stmt).scalars().all()]


__all__ = [
    "ResourceExistsError",
    "ResourceNotFoundError",
    "create_resource",
    "delete_resource",
    "get_resource_or_none",
    "import_resource",
    "list_resources",
    "read_resource",
    "update_resource",
]
