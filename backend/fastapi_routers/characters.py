"""
FastAPI router for stored characters.
Handles listing, deletion, share tokens and the import flow.
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException, status
from loguru import logger

from character.diff_service import group_by_section
from character.import_service import InvalidShareTokenError
from character.models import Character
from character.share_service import share_token
from fastapi_models import (
    CharacterListResponse,
    DeleteResponse,
    DiffRowModel,
    DiffSectionModel,
    ImportDecisionResponse,
    ImportRequest,
    ImportResponse,
    ShareTokenResponse,
)
from .dependencies import ImporterDep, StoreDep

router = APIRouter(tags=["Characters"])


def _load_or_404(store, character_id: UUID) -> Character:
    character = store.load(character_id)
    if character is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Character {character_id} not found"
        )
    return character


@router.get("/characters", response_model=CharacterListResponse)
def list_characters(store: StoreDep):
    """List summaries of all stored characters."""
    return CharacterListResponse(characters=store.list_summaries())


@router.get("/characters/{character_id}")
def get_character(character_id: UUID, store: StoreDep):
    """Get a full character record."""
    return _load_or_404(store, character_id).model_dump(mode='json')


@router.delete("/characters/{character_id}", response_model=DeleteResponse)
def delete_character(character_id: UUID, store: StoreDep):
    if not store.delete(character_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Character {character_id} not found"
        )
    return DeleteResponse(id=character_id, deleted=True)


@router.get("/characters/{character_id}/share", response_model=ShareTokenResponse)
def get_share_token(character_id: UUID, store: StoreDep):
    """Build a share token for a stored character."""
    character = _load_or_404(store, character_id)
    return ShareTokenResponse(id=character.id, token=share_token(character))


@router.post("/characters/import", response_model=ImportResponse)
def import_character(payload: ImportRequest, importer: ImporterDep):
    """
    Import a share token.

    The record is persisted straight away unless the stored copy is newer;
    then the differences are returned and the import waits for confirm or
    cancel.
    """
    try:
        result = importer.begin(payload.token)
    except InvalidShareTokenError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to import character: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to import character: {str(e)}"
        )

    sections = [
        DiffSectionModel(
            section=section,
            rows=[DiffRowModel(section=r.section, label=r.label, local=r.local, imported=r.imported)
                  for r in rows],
        )
        for section, rows in group_by_section(result.diff)
    ]
    return ImportResponse(
        id=result.character.id,
        name=result.character.identity.name,
        state=result.state.value,
        persisted=result.persisted,
        has_differences=bool(sections),
        sections=sections,
    )


@router.post("/characters/import/{character_id}/confirm", response_model=ImportDecisionResponse)
def confirm_import(character_id: UUID, importer: ImporterDep):
    """Import a pending character anyway, replacing the newer stored copy."""
    character = importer.confirm(character_id)
    if character is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No pending import for {character_id}"
        )
    return ImportDecisionResponse(id=character.id, persisted=True)


@router.post("/characters/import/{character_id}/cancel", response_model=ImportDecisionResponse)
def cancel_import(character_id: UUID, importer: ImporterDep):
    if not importer.cancel(character_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No pending import for {character_id}"
        )
    return ImportDecisionResponse(id=character_id, persisted=False)
