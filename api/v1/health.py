"""Health check endpoint."""

from fastapi import APIRouter

import config
from services import urlable_registry

router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status, environment and the registered urlable types
    """
    return {
        "status": "ok",
        "env": config.settings.ENV,
        "urlable_types": urlable_registry.registered_types(),
    }
