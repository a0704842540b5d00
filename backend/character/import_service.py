"""
Import flow for shared characters

An imported character replaces the stored copy with the same id unless the
stored copy was modified more recently, in which case the import waits for
an explicit confirm or cancel.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union
from uuid import UUID

from loguru import logger

from .diff_service import DiffRow, diff_characters
from .events import EventData, EventEmitter, EventType
from .merge_service import restore_stripped
from .models import Character
from .share_service import decode_character


class ImportState(str, Enum):
    NO_LOCAL_COPY = 'no_local_copy'
    LOCAL_OLDER = 'local_older'
    LOCAL_NEWER = 'local_newer'


class InvalidShareTokenError(ValueError):
    """Raised when a share token cannot be decoded"""


@dataclass
class ImportResult:
    state: ImportState
    character: Character
    diff: List[DiffRow] = field(default_factory=list)
    persisted: bool = False


@dataclass
class CharacterImportedEvent(EventData):
    character_id: str = ''
    state: str = ''

    def __post_init__(self):
        self.event_type = EventType.CHARACTER_IMPORTED


def compare_with_local(imported: Character, local: Optional[Character]) -> ImportState:
    if local is None:
        return ImportState.NO_LOCAL_COPY
    if local.updated_at > imported.updated_at:
        return ImportState.LOCAL_NEWER
    return ImportState.LOCAL_OLDER


class CharacterImporter(EventEmitter):
    """
    Drives imports against a character store

    Args:
        store: Object with load(id) and save(character)
    """

    def __init__(self, store):
        super().__init__()
        self.store = store
        self._pending: Dict[UUID, Character] = {}

    def begin(self, source: Union[str, Character]) -> ImportResult:
        """
        Start importing a share token or an already decoded character

        Raises:
            InvalidShareTokenError: If the token cannot be decoded
        """
        imported = decode_character(source) if isinstance(source, str) else source
        if imported is None:
            raise InvalidShareTokenError('Share token could not be decoded')

        local = self.store.load(imported.id)
        state = compare_with_local(imported, local)
        logger.info(f"Importing '{imported.identity.name}' ({imported.id}): {state.value}")

        if state == ImportState.LOCAL_NEWER:
            self._pending[imported.id] = imported
            return ImportResult(state, imported, diff=diff_characters(local, imported))

        diff = diff_characters(local, imported) if local is not None else []
        saved = self._persist(imported, local, state)
        return ImportResult(state, saved, diff=diff, persisted=True)

    def is_pending(self, character_id: UUID) -> bool:
        return character_id in self._pending

    def confirm(self, character_id: UUID) -> Optional[Character]:
        """
        Import a pending character anyway

        Returns:
            The persisted character, or None if nothing was pending
        """
        imported = self._pending.pop(character_id, None)
        if imported is None:
            logger.warning(f"No pending import for {character_id}")
            return None
        local = self.store.load(character_id)
        return self._persist(imported, local, ImportState.LOCAL_NEWER)

    def cancel(self, character_id: UUID) -> bool:
        """Discard a pending import. Returns True if one was pending."""
        discarded = self._pending.pop(character_id, None) is not None
        if discarded:
            logger.info(f"Cancelled import of {character_id}")
        return discarded

    def _persist(self, imported: Character, local: Optional[Character], state: ImportState) -> Character:
        restore_stripped(imported, local)
        saved = self.store.save(imported)
        self.emit(CharacterImportedEvent(
            event_type=EventType.CHARACTER_IMPORTED,
            source_manager='import',
            timestamp=time.time(),
            character_id=str(imported.id),
            state=state.value,
        ))
        return saved if saved is not None else imported
