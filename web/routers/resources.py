"""packer_build resource endpoints.

- GET /schema - Resource attribute declarations
- GET /resources - List stored resources
- POST /resources - Build and store a new resource
- GET /resources/{id} - Read stored state
- PUT /resources/{id} - Rebuild with a new configuration
- DELETE /resources/{id} - Forget a resource
- POST /resources/{id}/import - Adopt an existing build
"""

from typing import Any, NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi import status as http_status
from sqlalchemy.orm import Session

from packer_provider.errors import (
    BUILD_ERROR,
    EXECUTION_ERROR,
    RESOURCE_EXISTS,
    RESOURCE_NOT_FOUND,
    VALIDATION_ERROR,
    diagnostic_from_exception,
)
from packer_provider.resources.controller import (
    BuildResourceController,
    PackerBuildController,
)
from packer_provider.resources.runner import PackerBuildError
from packer_provider.resources.schema import (
    RESOURCE_TYPE_NAME,
    BuildConfig,
    BuildRecord,
    ConfigurationError,
    resource_schema,
)
from packer_provider.resources.service import (
    ResourceExistsError,
    ResourceNotFoundError,
    create_resource,
    delete_resource,
    import_resource,
    list_resources,
    read_resource,
    update_resource,
)
from web.deps import get_db

router = APIRouter()

_STATUS_BY_CODE = {
    VALIDATION_ERROR: 422,
    BUILD_ERROR: http_status.HTTP_502_BAD_GATEWAY,
    EXECUTION_ERROR: http_status.HTTP_502_BAD_GATEWAY,
    RESOURCE_NOT_FOUND: http_status.HTTP_404_NOT_FOUND,
    RESOURCE_EXISTS: http_status.HTTP_409_CONFLICT,
}

PROVIDER_ERRORS = (
    ConfigurationError,
    PackerBuildError,
    ResourceExistsError,
    ResourceNotFoundError,
)


def get_controller() -> BuildResourceController:
    """Provide the lifecycle controller for a request."""
    return PackerBuildController()


def _raise_http(exc: Exception) -> NoReturn:
    diagnostic = diagnostic_from_exception(exc)
    raise HTTPException(
        status_code=_STATUS_BY_CODE.get(
            diagnostic.code, http_status.HTTP_500_INTERNAL_SERVER_ERROR
        ),
        detail=diagnostic.to_dict(),
    ) from exc


@router.get("/schema")
def get_schema() -> dict[str, Any]:
    """Get the packer_build resource schema."""
    return {
        "type": RESOURCE_TYPE_NAME,
        "attributes": [a.to_dict() for a in resource_schema()],
    }


@router.get("/resources")
def list_resources_endpoint(
    limit: int = Query(100, ge=1, le=1000, description="Maximum results"),
    db: Session = Depends(get_db),
) -> list[BuildRecord]:
    """List stored resources."""
    return list_resources(db, limit=limit)


@router.post("/resources", status_code=http_status.HTTP_201_CREATED)
def create_resource_endpoint(
    config: BuildConfig,
    db: Session = Depends(get_db),
    controller: BuildResourceController = Depends(get_controller),
) -> BuildRecord:
    """Run a build and store a new resource.

    A failed build returns 502 with the captured Packer output.
    """
    try:
        return create_resource(db, config, controller=controller)
    except PROVIDER_ERRORS as e:
        _raise_http(e)


@router.get("/resources/{resource_id}")
def read_resource_endpoint(
    resource_id: str,
    db: Session = Depends(get_db),
    controller: BuildResourceController = Depends(get_controller),
) -> BuildRecord:
    """Read the stored state of a resource."""
    try:
        return read_resource(db, resource_id, controller=controller)
    except PROVIDER_ERRORS as e:
        _raise_http(e)


@router.put("/resources/{resource_id}")
def update_resource_endpoint(
    resource_id: str,
    config: BuildConfig,
    db: Session = Depends(get_db),
    controller: BuildResourceController = Depends(get_controller),
) -> BuildRecord:
    """Rebuild a resource with a new configuration."""
    try:
        return update_resource(db, resource_id, config, controller=controller)
    except PROVIDER_ERRORS as e:
        _raise_http(e)


@router.delete(
    "/resources/{resource_id}", status_code=http_status.HTTP_204_NO_CONTENT
)
def delete_resource_endpoint(
    resource_id: str,
    db: Session = Depends(get_db),
    controller: BuildResourceController = Depends(get_controller),
) -> None:
    """Forget a resource. Built images are not removed."""
    try:
        delete_resource(db, resource_id, controller=controller)
    except PROVIDER_ERRORS as e:
        _raise_http(e)


@router.post(
    "/resources/{resource_id}/import", status_code=http_status.HTTP_201_CREATED
)
def import_resource_endpoint(
    resource_id: str,
    config: BuildConfig,
    db: Session = Depends(get_db),
) -> BuildRecord:
    """Adopt an existing build under a known ID without running Packer."""
    try:
        return import_resource(db, resource_id, config)
    except PROVIDER_ERRORS as e:
        _raise_http(e)
