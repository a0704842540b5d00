"""
FastAPI dependencies
Shared services live on app.state and are created by the app factory
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from character.import_service import CharacterImporter
from gamedata.services.rules_registry import RulesRegistry
from services.core.character_store import CharacterStore


def _state_service(request: Request, name: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{name} not initialized"
        )
    return service


def get_store(request: Request) -> CharacterStore:
    return _state_service(request, 'store')


def get_importer(request: Request) -> CharacterImporter:
    return _state_service(request, 'importer')


def get_registry(request: Request) -> RulesRegistry:
    return _state_service(request, 'registry')


StoreDep = Annotated[CharacterStore, Depends(get_store)]
ImporterDep = Annotated[CharacterImporter, Depends(get_importer)]
RegistryDep = Annotated[RulesRegistry, Depends(get_registry)]
