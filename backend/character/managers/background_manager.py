"""
Background Manager - applies background rule documents
"""

from typing import List
import time

from loguru import logger

from ..enums import ProficiencyLevel
from ..events import EventType, OriginAppliedEvent
from ..models import insert_unique
from .race_manager import apply_ability_modifiers
from gamedata.models import BackgroundDefinition


class BackgroundManager:
    """Applies a background document to the managed character"""

    def __init__(self, character_manager):
        self.character_manager = character_manager
        self.registry = character_manager.registry

    @property
    def character(self):
        return self.character_manager.character

    def apply_background(self, background_def: BackgroundDefinition) -> List[str]:
        """
        Apply a background to the character

        Granted skills become proficient unless already better. Features are
        applied at level 1.

        Returns:
            Names of the features applied
        """
        character = self.character
        feature_manager = self.character_manager.get_manager('feature')

        with self.character_manager.transaction():
            apply_ability_modifiers(character, background_def.ability_modifiers)
            for proficiency in background_def.proficiencies:
                insert_unique(character.proficiencies, proficiency)
            for skill in background_def.skills:
                if character.skill_level(skill) == ProficiencyLevel.NONE:
                    character.skills[skill] = ProficiencyLevel.PROFICIENT

            applied = []
            for feature_def in background_def.features.values():
                feature_manager.apply_feature(feature_def, 1)
                applied.append(feature_def.name)

            character.identity.background = background_def.name
            character.identity.background_applied = True

        logger.info(f"Applied background '{background_def.name}'")
        self.character_manager.emit(OriginAppliedEvent(
            event_type=EventType.BACKGROUND_APPLIED,
            source_manager='background',
            timestamp=time.time(),
            name=background_def.name,
            features_applied=applied,
        ))
        return applied

    def apply_background_by_name(self, name: str) -> bool:
        background_def = self.registry.get_background(name)
        if background_def is None:
            logger.debug(f"Background '{name}' not loaded yet")
            return False
        self.apply_background(background_def)
        return True
