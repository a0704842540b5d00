"""
Description Manager - backfills empty descriptions from rule definitions

Only blank descriptions are ever written, so the pass can run as often as
needed, including while rule documents are still loading.
"""

from loguru import logger

from ..models import ChoiceValue
from gamedata.lookup import find_by_name, find_field_definition, resolve_choice_options
from gamedata.models import ChoiceFieldDefinition


class DescriptionManager:
    """Fills blank feature, trait, field, option and spell descriptions"""

    def __init__(self, character_manager):
        self.character_manager = character_manager
        self.lookup = character_manager.lookup

    @property
    def character(self):
        return self.character_manager.character

    def fill_descriptions(self) -> int:
        """
        Copy definition descriptions into blank character entries

        Returns:
            Number of descriptions filled
        """
        character = self.character
        feature_defs = self.lookup.feature_definitions(character)
        filled = 0

        for feature in character.features:
            if feature.description:
                continue
            feature_def = find_by_name(feature_defs, feature.name)
            if feature_def is not None and feature_def.description:
                feature.description = feature_def.description
                filled += 1

        for trait in character.racial_traits:
            if trait.description:
                continue
            trait_def = self.lookup.find_trait(character, trait.name)
            if trait_def is not None and trait_def.description:
                trait.description = trait_def.description
                filled += 1

        for feature_name, data in character.feature_data.items():
            feature_def = find_by_name(feature_defs, feature_name)
            if feature_def is None:
                continue

            for field in data.fields:
                field_def = find_field_definition(feature_def, field.name)
                if field_def is None:
                    continue
                if not field.description and field_def.description:
                    field.description = field_def.description
                    filled += 1
                if isinstance(field.value, ChoiceValue) and isinstance(field_def, ChoiceFieldDefinition):
                    option_defs = resolve_choice_options(field_def, feature_defs)
                    for option in field.value.options:
                        if option.description or not option.name:
                            continue
                        option_def = find_by_name(option_defs, option.name)
                        if option_def is not None and option_def.description:
                            option.description = option_def.description
                            filled += 1

            if data.spells is not None:
                for spell in data.spells.spells:
                    if spell.description or not spell.name:
                        continue
                    spell_def = self.lookup.find_spell(feature_def, spell.name)
                    if spell_def is not None and spell_def.description:
                        spell.description = spell_def.description
                        filled += 1

        if filled:
            logger.debug(f"Filled {filled} descriptions for '{character.identity.name}'")
        return filled
