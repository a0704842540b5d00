"""
Tests for SpellManager slot tables, placeholders and sticky spells
"""
import pytest

from character.events import EventType
from character.models import ClassLevel, Spell


@pytest.fixture
def class_manager(wizard_manager):
    return wizard_manager.get_manager('class')


@pytest.fixture
def spell_manager(wizard_manager):
    return wizard_manager.get_manager('spell')


def _spells(character):
    return character.feature_data['Arcane Spellcasting'].spells.spells


def _totals(character):
    return [slot.total for slot in character.spell_slots]


class TestSpellSlots:
    def test_first_level_slots(self, wizard_manager, class_manager):
        class_manager.apply_class_levels('Wizard')
        assert _totals(wizard_manager.character) == [2, 0, 0, 0, 0, 0, 0, 0, 0]

    def test_slots_track_caster_level(self, wizard_manager, class_manager):
        wizard_manager.character.find_class('Wizard').level = 3
        class_manager.apply_class_levels('Wizard')
        assert _totals(wizard_manager.character)[:3] == [4, 2, 0]

    def test_used_counts_survive(self, wizard_manager, class_manager):
        character = wizard_manager.character
        class_manager.apply_class_levels('Wizard')
        character.spell_slots[0].used = 1

        class_manager.level_up('Wizard')
        assert character.spell_slots[0].total == 3
        assert character.spell_slots[0].used == 1

    def test_no_caster_level_leaves_slots(self, monk_manager):
        spell_manager = monk_manager.get_manager('spell')
        monk_manager.character.spell_slots[0].total = 5
        assert spell_manager.update_spell_slots() is False
        assert monk_manager.character.spell_slots[0].total == 5

    def test_half_caster_rounds_down(self, spell_manager, wizard_manager):
        wizard_manager.character.identity.classes = [ClassLevel(class_name='Paladin', level=1, caster_coef=0.5)]
        assert wizard_manager.character.caster_level() == 0
        assert spell_manager.update_spell_slots() is False

        wizard_manager.character.identity.classes[0].level = 2
        assert spell_manager.update_spell_slots() is True
        assert wizard_manager.character.spell_slots[0].total == 2


class TestKnownSpells:
    def test_first_level_placeholders_and_sticky(self, wizard_manager, class_manager):
        class_manager.apply_class_levels('Wizard')
        spells = _spells(wizard_manager.character)

        cantrips = [s for s in spells if not s.sticky and s.level == 0]
        known = [s for s in spells if not s.sticky and s.level > 0]
        assert len(cantrips) == 3
        assert len(known) == 2
        assert all(s.level == 1 and s.name == '' for s in known)

        sticky = [s for s in spells if s.sticky]
        assert [s.name for s in sticky] == ['Mage Hand']
        assert sticky[0].prepared is True
        assert sticky[0].description == 'A spectral hand.'

    def test_new_placeholders_use_highest_slot_level(self, wizard_manager, class_manager):
        class_manager.apply_class_levels('Wizard')
        class_manager.level_up('Wizard')
        class_manager.level_up('Wizard')

        known = [s for s in _spells(wizard_manager.character) if not s.sticky and s.level > 0]
        assert [s.level for s in known] == [1, 1, 1, 2]

    def test_sticky_min_level(self, wizard_manager, class_manager):
        character = wizard_manager.character
        character.find_class('Wizard').level = 2
        class_manager.apply_class_levels('Wizard')
        assert 'Shield' not in [s.name for s in _spells(character)]

        class_manager.level_up('Wizard')
        shield = [s for s in _spells(character) if s.name == 'Shield']
        assert len(shield) == 1
        assert shield[0].sticky

    def test_hand_picked_sticky_spell_promoted(self, wizard_manager, class_manager):
        character = wizard_manager.character
        class_manager.apply_class_levels('Wizard')
        class_manager.level_up('Wizard')
        placeholder = next(s for s in _spells(character) if not s.sticky and s.level == 1)
        placeholder.name = 'Shield'

        class_manager.level_up('Wizard')
        shield = [s for s in _spells(character) if s.name == 'Shield']
        assert len(shield) == 1
        assert shield[0].sticky and shield[0].prepared
        assert shield[0].description == 'Invisible barrier.'
        assert len([s for s in _spells(character) if not s.sticky and s.level > 0]) == 4

    def test_chosen_spells_preserved(self, wizard_manager, class_manager):
        character = wizard_manager.character
        class_manager.apply_class_levels('Wizard')
        placeholder = next(s for s in _spells(character) if not s.sticky and s.level == 1)
        placeholder.name = 'Magic Missile'

        class_manager.level_up('Wizard')
        names = [s.name for s in _spells(character)]
        assert names.count('Magic Missile') == 1
        assert len([s for s in _spells(character) if not s.sticky and s.level > 0]) == 3

    def test_never_shrinks(self, wizard_manager, spell_manager, registry):
        character = wizard_manager.character
        spellcasting = registry.get_class('Wizard').features['spellcasting']
        spell_manager.apply_spellcasting(spellcasting, 1)
        _spells(character).extend(Spell(level=0) for _ in range(4))

        assert spell_manager.apply_spellcasting(spellcasting, 1) == []
        assert len([s for s in _spells(character) if s.level == 0 and not s.sticky]) == 7

    def test_casting_ability_from_definition(self, wizard_manager, class_manager):
        class_manager.apply_class_levels('Wizard')
        assert wizard_manager.character.spell_save_dc('Arcane Spellcasting') == 8 + 2 + 3

    def test_emits_spells_changed(self, wizard_manager, class_manager):
        class_manager.apply_class_levels('Wizard')
        events = wizard_manager.get_event_history(EventType.SPELLS_CHANGED)
        assert len(events) == 1
        assert events[0].added == ['', '', '', '', '', 'Mage Hand']


class TestHighestAvailableLevel:
    def test_defaults_to_one_without_slots(self, spell_manager):
        assert spell_manager.highest_available_level() == 1

    def test_custom_slot_table(self, spell_manager, wizard_manager, registry):
        spells_def = registry.get_class('Wizard').features['spellcasting'].spells.model_copy(
            update={'slots': {1: [0, 1]}})
        wizard_manager.character.find_class('Wizard').caster_coef = 1.0
        assert spell_manager.highest_available_level(spells_def) == 2
