"""
Restore data stripped from a shared character

A share token omits free-text descriptions, death saves and temporary HP.
When an imported character replaces a stored copy, those values are copied
back from the stored copy before it is persisted.
"""

from typing import Iterable, Optional

from loguru import logger

from .models import Character, ChoiceValue
from gamedata.lookup import find_by_name


def _restore_descriptions_by_name(imported_items: Iterable, local_items: Iterable) -> int:
    """Fill blank descriptions from the first same-named local item"""
    local_items = list(local_items)
    restored = 0
    for item in imported_items:
        if item.description:
            continue
        match = find_by_name(local_items, item.name)
        if match is not None and match.description:
            item.description = match.description
            restored += 1
    return restored


def restore_stripped(imported: Character, local: Optional[Character]) -> Character:
    """
    Copy stripped values from the local copy into the imported one, in place

    Death saves and temporary HP are always overwritten. Feature, racial
    trait, choice option and spell descriptions are filled by name where
    blank. Feature-data fields are paired by position within the same
    feature and take the local field's description as is.

    Args:
        imported: Character decoded from a share token (mutated)
        local: Stored copy with the same id, if any

    Returns:
        The imported character
    """
    if local is None:
        return imported

    imported.combat.death_save_successes = local.combat.death_save_successes
    imported.combat.death_save_failures = local.combat.death_save_failures
    imported.combat.hp_temp = local.combat.hp_temp

    restored = _restore_descriptions_by_name(imported.features, local.features)
    restored += _restore_descriptions_by_name(imported.racial_traits, local.racial_traits)

    for feature_name, imported_data in imported.feature_data.items():
        local_data = local.feature_data.get(feature_name)
        if local_data is None:
            continue

        for imported_field, local_field in zip(imported_data.fields, local_data.fields):
            imported_field.description = local_field.description
            if isinstance(imported_field.value, ChoiceValue) and isinstance(local_field.value, ChoiceValue):
                restored += _restore_descriptions_by_name(
                    imported_field.value.options, local_field.value.options)

        if imported_data.spells is not None and local_data.spells is not None:
            restored += _restore_descriptions_by_name(imported_data.spells.spells, local_data.spells.spells)

    logger.debug(f"Restored {restored} descriptions into '{imported.identity.name}'")
    return imported
