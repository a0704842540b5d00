"""
FastAPI Pydantic models
"""

from .character_models import (
    CharacterListResponse,
    DeleteResponse,
    DiffRowModel,
    DiffSectionModel,
    HealthResponse,
    ImportDecisionResponse,
    ImportRequest,
    ImportResponse,
    ShareTokenResponse,
)

__all__ = [
    'CharacterListResponse',
    'DeleteResponse',
    'DiffRowModel',
    'DiffSectionModel',
    'HealthResponse',
    'ImportDecisionResponse',
    'ImportRequest',
    'ImportResponse',
    'ShareTokenResponse',
]
