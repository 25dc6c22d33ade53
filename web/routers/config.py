"""Configuration endpoints."""

from typing import Any

from fastapi import APIRouter

from packer_provider.config import get_settings

router = APIRouter()


@router.get("")
def get_config() -> dict[str, Any]:
    """Get effective configuration.

    Returns:
        Current configuration as JSON.
    """
    settings = get_settings()
    return {
        "executable": settings.executable,
        "packer_bin": settings.packer_bin,
        "db_url": settings.db_url,
        "log_level": settings.log_level,
    }
