"""
Character store - persistence boundary for character records

Each character is kept as one msgpack file keyed by id, next to an index of
summaries used by the character list.
"""

import threading
from pathlib import Path
from typing import List, Optional, Union
from uuid import UUID

import msgpack
from loguru import logger
from pydantic import ValidationError

from character.models import Character, CharacterSummary
from services.core.safe_cache import SafeCache

INDEX_KEY = 'index'
CHARACTER_PREFIX = 'character_'


class CharacterStore:
    """Get/put/delete of characters keyed by id"""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _character_path(self, character_id: Union[UUID, str]) -> Path:
        return self.directory / f"{CHARACTER_PREFIX}{character_id}"

    def _index_path(self) -> Path:
        return self.directory / INDEX_KEY

    # --- Index ---

    def list_summaries(self) -> List[CharacterSummary]:
        if not SafeCache.exists(self._index_path()):
            return []
        try:
            entries = SafeCache.load(self._index_path())
            return [CharacterSummary.model_validate(entry) for entry in entries]
        except (msgpack.UnpackException, ValueError, TypeError) as e:
            logger.error(f"Unreadable character index in {self.directory}: {e}")
            return []

    def _save_index(self, summaries: List[CharacterSummary]) -> None:
        SafeCache.save(self._index_path(), [s.model_dump(mode='json', by_alias=True) for s in summaries])

    # --- Records ---

    def load(self, character_id: Union[UUID, str]) -> Optional[Character]:
        """
        Load a character by id

        Returns:
            The character, or None if missing or unreadable
        """
        path = self._character_path(character_id)
        if not SafeCache.exists(path):
            return None
        try:
            return Character.model_validate(SafeCache.load(path))
        except ValidationError as e:
            logger.error(f"Stored character {character_id} does not match the model: {e}")
        except (msgpack.UnpackException, ValueError, OSError) as e:
            logger.error(f"Failed to read character {character_id}: {e}")
        return None

    def save(self, character: Character) -> Character:
        """
        Persist a character and upsert its summary

        The character's updated_at is refreshed before writing.
        """
        character.touch()
        with self._lock:
            SafeCache.save(self._character_path(character.id), character.model_dump(mode='json'))

            summary = character.summary()
            summaries = self.list_summaries()
            for index, entry in enumerate(summaries):
                if entry.id == character.id:
                    summaries[index] = summary
                    break
            else:
                summaries.append(summary)
            self._save_index(summaries)

        logger.info(f"Saved character '{character.identity.name}' ({character.id})")
        return character

    def delete(self, character_id: Union[UUID, str]) -> bool:
        """Remove a character and its summary. Returns True if a record existed."""
        character_id = UUID(str(character_id))
        with self._lock:
            removed = SafeCache.delete(self._character_path(character_id))
            summaries = self.list_summaries()
            remaining = [s for s in summaries if s.id != character_id]
            if len(remaining) != len(summaries):
                self._save_index(remaining)
                removed = True

        if removed:
            logger.info(f"Deleted character {character_id}")
        return removed

    def exists(self, character_id: Union[UUID, str]) -> bool:
        return SafeCache.exists(self._character_path(character_id))
