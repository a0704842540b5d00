"""
Name-keyed lookups against rule definitions

Characters reference rule definitions by display name only. Every match by
name goes through this module so a stable-identifier scheme can replace it
later without touching callers.
"""

from typing import TYPE_CHECKING, Iterable, List, Optional, Set, TypeVar

from loguru import logger

from .models import (
    ChoiceFieldDefinition,
    ChoiceOptionDefinition,
    FeatureDefinition,
    SpellDefinition,
    TraitDefinition,
)

if TYPE_CHECKING:
    from character.models import Character
    from gamedata.services.rules_registry import RulesRegistry

T = TypeVar('T')


def find_by_name(items: Iterable[T], name: str) -> Optional[T]:
    """Return the first item whose name attribute equals name"""
    for item in items:
        if getattr(item, 'name', None) == name:
            return item
    return None


def find_field_definition(feature_def: FeatureDefinition, field_name: str):
    return find_by_name(feature_def.fields.values(), field_name)


def resolve_choice_options(
    field_def: ChoiceFieldDefinition,
    feature_defs: Iterable[FeatureDefinition],
) -> List[ChoiceOptionDefinition]:
    """
    Resolve the option list of a choice field

    Inline options come first, followed by the options of the field named by
    options_from (searched across feature_defs, following further references).
    An unresolvable reference contributes nothing.

    Args:
        field_def: Choice field definition
        feature_defs: Feature definitions visible to the document

    Returns:
        Ordered option definitions
    """
    feature_defs = list(feature_defs)
    options: List[ChoiceOptionDefinition] = []
    visited: Set[str] = {field_def.name}
    current = field_def

    while True:
        options.extend(current.options)
        reference = current.options_from
        if not reference or reference in visited:
            break
        visited.add(reference)

        target = None
        for feature_def in feature_defs:
            candidate = find_field_definition(feature_def, reference)
            if isinstance(candidate, ChoiceFieldDefinition):
                target = candidate
                break
        if target is None:
            logger.warning(f"Choice field '{field_def.name}' references unknown field '{reference}'")
            break
        current = target

    return options


class DefinitionLookup:
    """
    Finds rule definitions matching character entries by name

    Search order: the character's classes in declared order (each class's own
    features then its chosen subclass's), then background, then race. Only
    documents already in the registry are consulted.
    """

    def __init__(self, registry: 'RulesRegistry'):
        self.registry = registry

    def feature_definitions(self, character: 'Character') -> List[FeatureDefinition]:
        definitions: List[FeatureDefinition] = []
        for class_level in character.identity.classes:
            class_def = self.registry.get_class(class_level.class_name)
            if class_def is None:
                continue
            definitions.extend(d for _, d in class_def.visible_features(class_level.subclass))

        background_def = self.registry.get_background(character.identity.background)
        if background_def is not None:
            definitions.extend(background_def.features.values())

        race_def = self.registry.get_race(character.identity.race)
        if race_def is not None:
            definitions.extend(race_def.features.values())
        return definitions

    def find_feature(self, character: 'Character', name: str) -> Optional[FeatureDefinition]:
        return find_by_name(self.feature_definitions(character), name)

    def find_trait(self, character: 'Character', name: str) -> Optional[TraitDefinition]:
        race_def = self.registry.get_race(character.identity.race)
        if race_def is None:
            return None
        return find_by_name(race_def.traits.values(), name)

    def spell_definitions(self, feature_def: FeatureDefinition) -> List[SpellDefinition]:
        """Inline spells plus those of the referenced spell list, if loaded"""
        if feature_def.spells is None:
            return []
        spells = list(feature_def.spells.spells)
        if feature_def.spells.spell_list:
            spell_list = self.registry.get_spell_list(feature_def.spells.spell_list)
            if spell_list is not None:
                spells.extend(spell_list.spells)
        return spells

    def find_spell(self, feature_def: FeatureDefinition, name: str) -> Optional[SpellDefinition]:
        return find_by_name(self.spell_definitions(feature_def), name)
