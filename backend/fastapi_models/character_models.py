"""
Pydantic models for the character endpoints
Listing, sharing and importing characters
"""

from typing import List
from uuid import UUID

from pydantic import BaseModel, Field

from character.models import CharacterSummary


class CharacterListResponse(BaseModel):
    """Summaries of every stored character"""
    characters: List[CharacterSummary] = Field(default_factory=list)


class ShareTokenResponse(BaseModel):
    id: UUID
    token: str = Field(..., description="URL-safe share token without descriptions")


class ImportRequest(BaseModel):
    token: str = Field(..., min_length=1, description="Share token to import")


class DiffRowModel(BaseModel):
    section: str
    label: str
    local: str
    imported: str


class DiffSectionModel(BaseModel):
    section: str
    rows: List[DiffRowModel] = Field(default_factory=list)


class ImportResponse(BaseModel):
    """Outcome of an import; LOCAL_NEWER waits for confirm or cancel"""
    id: UUID
    name: str
    state: str
    persisted: bool
    has_differences: bool = False
    sections: List[DiffSectionModel] = Field(default_factory=list)


class ImportDecisionResponse(BaseModel):
    id: UUID
    persisted: bool


class DeleteResponse(BaseModel):
    id: UUID
    deleted: bool


class HealthResponse(BaseModel):
    status: str = 'healthy'
    service: str = 'character-manager'
    rules_index_loaded: bool = False
