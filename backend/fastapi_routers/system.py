"""
System endpoints router - health checks
"""

from fastapi import APIRouter

from fastapi_models import HealthResponse
from .dependencies import RegistryDep

router = APIRouter(tags=["System"])


@router.get("/health", response_model=HealthResponse)
def health_check(registry: RegistryDep):
    """Health check endpoint"""
    return HealthResponse(status="healthy", rules_index_loaded=registry.index is not None)
