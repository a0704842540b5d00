"""
Race Manager - applies race rule documents
Manages racial ability modifiers, proficiencies, speed, traits and features
"""

from typing import Dict, List
import time

from loguru import logger

from ..enums import Ability
from ..events import EventType, OriginAppliedEvent
from ..models import RacialTrait, insert_unique
from gamedata.models import RaceDefinition


def apply_ability_modifiers(character, modifiers: Dict[Ability, int]) -> None:
    """Add ability modifiers, keeping every score at least 1"""
    for ability, modifier in modifiers.items():
        character.abilities.set(ability, max(1, character.abilities.get(ability) + modifier))


class RaceManager:
    """Applies a race document to the managed character"""

    def __init__(self, character_manager):
        """
        Initialize the RaceManager

        Args:
            character_manager: Reference to parent CharacterManager
        """
        self.character_manager = character_manager
        self.registry = character_manager.registry

    @property
    def character(self):
        return self.character_manager.character

    def apply_race(self, race_def: RaceDefinition) -> List[str]:
        """
        Apply a race to the character

        The applied flag only suppresses prompting; calling this twice adds
        the ability modifiers twice.

        Args:
            race_def: Race rule document

        Returns:
            Names of the features applied
        """
        character = self.character
        feature_manager = self.character_manager.get_manager('feature')

        with self.character_manager.transaction():
            apply_ability_modifiers(character, race_def.ability_modifiers)
            for proficiency in race_def.proficiencies:
                insert_unique(character.proficiencies, proficiency)
            if race_def.speed is not None:
                character.combat.speed = race_def.speed

            for trait_def in race_def.traits.values():
                if not any(t.name == trait_def.name for t in character.racial_traits):
                    character.racial_traits.append(
                        RacialTrait(name=trait_def.name, description=trait_def.description)
                    )

            applied = []
            level = character.level()
            for feature_def in race_def.features.values():
                feature_manager.apply_feature(feature_def, level)
                applied.append(feature_def.name)

            character.identity.race = race_def.name
            character.identity.race_applied = True

        logger.info(f"Applied race '{race_def.name}' with {len(applied)} features")
        self.character_manager.emit(OriginAppliedEvent(
            event_type=EventType.RACE_APPLIED,
            source_manager='race',
            timestamp=time.time(),
            name=race_def.name,
            features_applied=applied,
        ))
        return applied

    def apply_race_by_name(self, name: str) -> bool:
        """Apply a cached race document; False while it is not loaded"""
        race_def = self.registry.get_race(name)
        if race_def is None:
            logger.debug(f"Race '{name}' not loaded yet")
            return False
        self.apply_race(race_def)
        return True
