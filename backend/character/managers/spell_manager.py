"""
Spell Manager - spell slots, known-spell placeholders and granted spells
"""

from typing import List, Optional
import time

from loguru import logger

from ..events import EventType, SpellsChangedEvent
from ..models import FeatureData, Spell, SpellData
from gamedata.levels import resolve_at_level
from gamedata.models import FeatureDefinition, SpellsDefinition
from gamedata.tables import CASTER_SLOT_TABLE


class SpellManager:
    """
    Spell Manager
    Progresses the spellcasting declared by features
    """

    def __init__(self, character_manager):
        """
        Initialize the SpellManager

        Args:
            character_manager: Reference to parent CharacterManager
        """
        self.character_manager = character_manager

    @property
    def character(self):
        return self.character_manager.character

    def slot_row(self, spells_def: Optional[SpellsDefinition] = None) -> List[int]:
        """Slot totals for spell levels 1..9 at the character's caster level"""
        table = spells_def.slots if spells_def is not None and spells_def.slots else CASTER_SLOT_TABLE
        return list(resolve_at_level(table, self.character.caster_level(), []))

    def highest_available_level(self, spells_def: Optional[SpellsDefinition] = None) -> int:
        """Highest spell level with a slot at the current caster level, 1 if none"""
        row = self.slot_row(spells_def)
        available = [index + 1 for index, total in enumerate(row) if total > 0]
        return max(available) if available else 1

    def update_spell_slots(self, spells_def: Optional[SpellsDefinition] = None) -> bool:
        """
        Set slot totals from the slot table, keeping used counts

        Nothing changes while the character has no caster level.

        Returns:
            True if the slot totals were updated
        """
        if self.character.caster_level() < 1:
            return False
        row = self.slot_row(spells_def)
        for slot in self.character.spell_slots:
            slot.total = row[slot.level - 1] if slot.level - 1 < len(row) else 0
        return True

    def ensure_spell_data(self, feature_def: FeatureDefinition) -> SpellData:
        data = self.character.feature_data.get(feature_def.name)
        if data is None:
            data = FeatureData()
            self.character.feature_data[feature_def.name] = data
        if data.spells is None:
            data.spells = SpellData(casting_ability=feature_def.spells.casting_ability)
        return data.spells

    def apply_spellcasting(self, feature_def: FeatureDefinition, level: int) -> List[str]:
        """
        Progress a feature's spellcasting at a level

        Placeholder cantrips and spells grow up to the known counts for the
        level (never shrinking) and sticky spells whose minimum level has
        been reached are inserted once. A same-named entry already on the
        list is made sticky and prepared instead.

        Args:
            feature_def: Feature definition declaring spells
            level: Level the known-spell tables are resolved at

        Returns:
            Names of spells added ('' for placeholders)
        """
        spells_def = feature_def.spells
        if spells_def is None:
            return []

        spell_data = self.ensure_spell_data(feature_def)
        self.update_spell_slots(spells_def)
        added: List[str] = []

        # A player may already have picked a sticky spell by hand
        due = [d for d in spells_def.spells if d.sticky and d.min_level <= level]
        for spell_def in due:
            existing = next((s for s in spell_data.spells if s.name == spell_def.name), None)
            if existing is not None:
                existing.sticky = True
                existing.prepared = True
                if not existing.description:
                    existing.description = spell_def.description

        cantrip_target = resolve_at_level(spells_def.cantrips_known, level, 0)
        cantrips = [s for s in spell_data.spells if not s.sticky and s.is_cantrip]
        for _ in range(cantrip_target - len(cantrips)):
            spell_data.spells.append(Spell(level=0))
            added.append('')

        spell_target = resolve_at_level(spells_def.spells_known, level, 0)
        known = [s for s in spell_data.spells if not s.sticky and not s.is_cantrip]
        missing = spell_target - len(known)
        if missing > 0:
            default_level = self.highest_available_level(spells_def)
            for _ in range(missing):
                spell_data.spells.append(Spell(level=default_level))
                added.append('')

        for spell_def in due:
            if any(s.name == spell_def.name for s in spell_data.spells):
                continue
            spell_data.spells.append(Spell(
                name=spell_def.name,
                level=spell_def.level,
                prepared=True,
                sticky=True,
                description=spell_def.description,
            ))
            added.append(spell_def.name)

        if added:
            logger.debug(f"Added {len(added)} spells to '{feature_def.name}' at level {level}")
            self.character_manager.emit(SpellsChangedEvent(
                event_type=EventType.SPELLS_CHANGED,
                source_manager='spell',
                timestamp=time.time(),
                feature_name=feature_def.name,
                added=added,
            ))
        return added

