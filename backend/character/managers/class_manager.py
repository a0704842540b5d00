"""
Class Manager - applies class levels from class rule documents
Handles hit points, saving throws, proficiencies, caster coefficient and
per-level feature grants, with applied levels tracked per class
"""

from typing import List, Optional, Set
import time

from loguru import logger

from ..events import EventType, LevelGainedEvent
from ..models import MAX_LEVEL, ClassLevel, insert_unique
from ..enums import Ability
from gamedata.lookup import find_field_definition, resolve_choice_options
from gamedata.models import ChoiceFieldDefinition, ChoiceOptionDefinition, ClassDefinition


class ClassManager:
    """
    Class Manager
    Uses CharacterManager as hub for character and rules registry access
    """

    def __init__(self, character_manager):
        """
        Initialize the ClassManager

        Args:
            character_manager: Reference to parent CharacterManager
        """
        self.character_manager = character_manager
        self.registry = character_manager.registry

    @property
    def character(self):
        return self.character_manager.character

    def get_class_level(self, class_name: str) -> Optional[ClassLevel]:
        return self.character.find_class(class_name)

    def caster_coefficient(self, class_def: ClassDefinition, subclass: Optional[str]) -> float:
        """Largest caster coefficient declared by a spellcasting feature visible to the class"""
        coefficients = [
            feature_def.spells.caster_coef
            for _, feature_def in class_def.visible_features(subclass)
            if feature_def.spells is not None
        ]
        return max(coefficients, default=0.0)

    def granted_feature_keys(self, class_def: ClassDefinition, subclass: Optional[str], level: int) -> Optional[Set[str]]:
        """
        Feature keys newly unlocked at a class level

        Returns:
            Set of keys, or None when the class has no rules for the level
        """
        rules = class_def.level_rules(level)
        if rules is None:
            return None
        keys = set(rules.features)
        subclass_def = class_def.find_subclass(subclass)
        if subclass_def is not None:
            keys.update(subclass_def.levels.get(level, []))
        return keys

    def apply_class_level(self, class_def: ClassDefinition, target_level: int) -> bool:
        """
        Apply one level of a class to the character

        Each level is applied at most once per class; applying it again is a
        no-op. Hit points are added and current HP is reset to the new max.

        Args:
            class_def: Class rule document
            target_level: Class level to apply

        Returns:
            True if the level was applied
        """
        character = self.character
        class_level = self.get_class_level(class_def.name)
        if class_level is None:
            logger.warning(f"Character has no '{class_def.name}' class entry")
            return False
        if class_level.is_applied(target_level):
            return False

        granted = self.granted_feature_keys(class_def, class_level.subclass, target_level)
        if granted is None:
            logger.debug(f"No rules for {class_def.name} level {target_level}")
            return False

        class_level.hit_die_sides = class_def.hit_die
        if target_level == 1:
            for ability in class_def.saving_throws:
                insert_unique(character.saving_throws, ability)
            for proficiency in class_def.proficiencies:
                insert_unique(character.proficiencies, proficiency)

        class_level.caster_coef = self.caster_coefficient(class_def, class_level.subclass)

        feature_manager = self.character_manager.get_manager('feature')
        applied_features: List[str] = []
        for key, feature_def in class_def.visible_features(class_level.subclass):
            possessed = character.has_feature(feature_def.name)
            if key in granted:
                if possessed and not feature_def.stackable:
                    logger.debug(f"'{feature_def.name}' already granted by another source")
                    continue
            elif not possessed:
                continue
            feature_manager.apply_feature(feature_def, target_level)
            applied_features.append(feature_def.name)

        hp_gained = self.hit_points_for_level(class_def.hit_die, target_level)
        character.combat.hp_max += hp_gained
        character.combat.hp_current = character.combat.hp_max

        class_level.mark_applied(target_level)
        self.character_manager.record_change('level_applied', {
            'class': class_def.name, 'level': target_level, 'hp': hp_gained
        })
        logger.info(f"Applied {class_def.name} level {target_level} (+{hp_gained} HP, "
                    f"{len(applied_features)} features)")

        self.character_manager.emit(LevelGainedEvent(
            event_type=EventType.LEVEL_GAINED,
            source_manager='class',
            timestamp=time.time(),
            class_name=class_def.name,
            level=target_level,
            hp_gained=hp_gained,
            features_applied=applied_features,
        ))
        return True

    def hit_points_for_level(self, hit_die: int, level: int) -> int:
        """Full die at a class's first level, half rounded down plus one after"""
        con_modifier = self.character.ability_modifier(Ability.CONSTITUTION)
        if level == 1:
            return hit_die + con_modifier
        return hit_die // 2 + 1 + con_modifier

    def apply_class_levels(self, class_name: str) -> List[int]:
        """
        Apply every level from 1 up to the class's current level

        Returns:
            Levels newly applied (empty while the class document is not loaded)
        """
        class_level = self.get_class_level(class_name)
        class_def = self.registry.get_class(class_name)
        if class_level is None or class_def is None:
            return []

        applied = []
        with self.character_manager.transaction():
            for level in range(1, class_level.level + 1):
                if self.apply_class_level(class_def, level):
                    applied.append(level)
        return applied

    def add_class(self, class_name: str) -> ClassLevel:
        """Add a class at level 1 for multiclassing, or return the existing entry"""
        existing = self.get_class_level(class_name)
        if existing is not None:
            return existing

        classes = self.character.identity.classes
        # A fresh sheet starts with one unnamed class entry
        if len(classes) == 1 and not classes[0].class_name and not classes[0].applied_levels:
            classes[0].class_name = class_name
            return classes[0]

        class_level = ClassLevel(class_name=class_name, level=1)
        classes.append(class_level)
        return class_level

    def level_up(self, class_name: str) -> bool:
        """
        Increase a class by one level and apply it

        Returns:
            True if the level was raised
        """
        class_level = self.get_class_level(class_name)
        if class_level is None:
            logger.warning(f"Cannot level up unknown class '{class_name}'")
            return False
        if class_level.level >= MAX_LEVEL:
            logger.warning(f"{class_name} is already at level {MAX_LEVEL}")
            return False

        with self.character_manager.transaction():
            class_level.level += 1
            self.apply_class_levels(class_name)
        return True

    def set_subclass(self, class_name: str, subclass: str) -> bool:
        class_level = self.get_class_level(class_name)
        if class_level is None:
            return False
        class_level.subclass = subclass or None
        return True

    def available_options(self, class_name: str, field_name: str) -> List[ChoiceOptionDefinition]:
        """
        Resolve the selectable options of a class choice field

        Returns:
            Options in definition order, empty if the class or field is unknown
        """
        class_level = self.get_class_level(class_name)
        class_def = self.registry.get_class(class_name)
        if class_level is None or class_def is None:
            return []

        for _, feature_def in class_def.visible_features(class_level.subclass):
            field_def = find_field_definition(feature_def, field_name)
            if isinstance(field_def, ChoiceFieldDefinition):
                visible = self.character_manager.lookup.feature_definitions(self.character)
                return resolve_choice_options(field_def, visible)
        return []
