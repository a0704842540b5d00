"""
Feature Manager - grants features and sizes their level-scaling fields
"""

from typing import List, Optional
import time

from loguru import logger

from ..events import EventType, FeatureGrantedEvent
from ..models import (
    BonusValue,
    ChoiceOption,
    ChoiceValue,
    DieValue,
    Feature,
    FeatureData,
    FeatureField,
    PointsValue,
    insert_unique,
)
from gamedata.levels import resolve_at_level
from gamedata.lookup import find_by_name
from gamedata.models import (
    BonusFieldDefinition,
    ChoiceFieldDefinition,
    DieFieldDefinition,
    FeatureDefinition,
    PointsFieldDefinition,
)


def materialize_field(field_def, level: int) -> FeatureField:
    """Build a field value shaped by the definition's kind at a level"""
    if isinstance(field_def, DieFieldDefinition):
        value = DieValue(die=resolve_at_level(field_def.levels, level, ''))
    elif isinstance(field_def, BonusFieldDefinition):
        value = BonusValue(bonus=resolve_at_level(field_def.levels, level, 0))
    elif isinstance(field_def, PointsFieldDefinition):
        value = PointsValue(used=0, max=resolve_at_level(field_def.levels, level, 0))
    elif isinstance(field_def, ChoiceFieldDefinition):
        slots = resolve_at_level(field_def.levels, level, 0)
        value = ChoiceValue(options=[ChoiceOption() for _ in range(slots)])
    else:
        raise TypeError(f"Unknown field definition {type(field_def).__name__}")

    return FeatureField(name=field_def.name, description=field_def.description, value=value)


def update_field(field: FeatureField, field_def, level: int) -> bool:
    """
    Escalate an existing field to a new level

    Die and bonus values are overwritten, points keep their used count and
    choices only ever grow. A field whose kind no longer matches its
    definition is left alone.

    Returns:
        True if the field changed
    """
    value = field.value
    if isinstance(value, DieValue) and isinstance(field_def, DieFieldDefinition):
        new_die = resolve_at_level(field_def.levels, level, '')
        changed = value.die != new_die
        value.die = new_die
    elif isinstance(value, BonusValue) and isinstance(field_def, BonusFieldDefinition):
        new_bonus = resolve_at_level(field_def.levels, level, 0)
        changed = value.bonus != new_bonus
        value.bonus = new_bonus
    elif isinstance(value, PointsValue) and isinstance(field_def, PointsFieldDefinition):
        new_max = resolve_at_level(field_def.levels, level, 0)
        changed = value.max != new_max
        value.max = new_max
    elif isinstance(value, ChoiceValue) and isinstance(field_def, ChoiceFieldDefinition):
        slots = resolve_at_level(field_def.levels, level, 0)
        missing = slots - len(value.options)
        changed = missing > 0
        if changed:
            value.options.extend(ChoiceOption() for _ in range(missing))
    else:
        logger.debug(f"Field '{field.name}' is a {value.kind} but its definition is a {field_def.kind}")
        return False
    return changed


class FeatureManager:
    """Applies feature definitions to the managed character"""

    def __init__(self, character_manager):
        """
        Initialize the FeatureManager

        Args:
            character_manager: Reference to parent CharacterManager
        """
        self.character_manager = character_manager

    @property
    def character(self):
        return self.character_manager.character

    def has_feature(self, name: str) -> bool:
        return self.character.has_feature(name)

    def should_grant(self, feature_def: FeatureDefinition) -> bool:
        """A possessed feature is granted again only when it stacks"""
        return feature_def.stackable or not self.has_feature(feature_def.name)

    def grant_feature(self, feature_def: FeatureDefinition, level: int) -> bool:
        """
        Grant a feature named by a rule

        Returns:
            True if the feature was applied, False if it was skipped
        """
        if not self.should_grant(feature_def):
            logger.debug(f"Skipping re-grant of non-stackable feature '{feature_def.name}'")
            return False
        self.apply_feature(feature_def, level)
        return True

    def apply_feature(self, feature_def: FeatureDefinition, level: int) -> None:
        """
        Apply a feature definition at a level

        Adds the feature once by name, grants its languages, progresses its
        spellcasting and materializes or escalates its fields.

        Args:
            feature_def: Feature definition to apply
            level: Level the feature's tables are resolved at
        """
        character = self.character

        if not character.has_feature(feature_def.name):
            character.features.append(Feature(name=feature_def.name, description=feature_def.description))
            self.character_manager.record_change('feature_added', {'name': feature_def.name})
            self.character_manager.emit(FeatureGrantedEvent(
                event_type=EventType.FEATURE_GRANTED,
                source_manager='feature',
                timestamp=time.time(),
                feature_name=feature_def.name,
                level=level,
            ))
            logger.debug(f"Granted feature '{feature_def.name}' at level {level}")

        for language in feature_def.languages:
            insert_unique(character.languages, language)

        if feature_def.spells is not None:
            spell_manager = self.character_manager.get_manager('spell')
            if spell_manager is None:
                logger.warning(f"No spell manager registered; spells of '{feature_def.name}' not applied")
            else:
                spell_manager.apply_spellcasting(feature_def, level)

        if feature_def.fields:
            self._apply_fields(feature_def, level)

    def _apply_fields(self, feature_def: FeatureDefinition, level: int) -> None:
        data = self.character.feature_data.get(feature_def.name)
        if data is None:
            data = FeatureData()
            self.character.feature_data[feature_def.name] = data

        if not data.fields:
            data.fields = [materialize_field(d, level) for d in feature_def.fields.values()]
            logger.debug(f"Materialized {len(data.fields)} fields for '{feature_def.name}'")
            return

        for field_def in feature_def.fields.values():
            field = find_by_name(data.fields, field_def.name)
            if field is None:
                data.fields.append(materialize_field(field_def, level))
            elif update_field(field, field_def, level):
                logger.debug(f"Escalated field '{field.name}' of '{feature_def.name}' to level {level}")

    def feature_fields(self, feature_name: str) -> List[FeatureField]:
        data: Optional[FeatureData] = self.character.feature_data.get(feature_name)
        return list(data.fields) if data else []
