"""
Tests for the field-level character diff
"""
import pytest

from character.diff_service import (
    SECTION_COMBAT,
    SECTION_FEATURES,
    SECTION_IDENTITY,
    SECTION_SPELLCASTING,
    DiffRow,
    diff_characters,
    group_by_section,
    has_differences,
    names_summary,
    render_classes,
    render_currency,
    truncate,
)
from character.enums import Ability, ProficiencyLevel, Skill
from character.models import Character, ClassLevel, Feature, FeatureData, SpellData, Spell


@pytest.fixture
def pair():
    local = Character()
    local.identity.classes = [ClassLevel(class_name='Monk', subclass='Way of Shadow', level=3)]
    imported = local.model_copy(deep=True)
    return local, imported


def _row(rows, label):
    return next(r for r in rows if r.label == label)


class TestRenderingHelpers:
    def test_names_summary(self):
        assert names_summary([]) == '0'
        assert names_summary(['Rage', 'Unarmored Defense']) == '2: Rage, Unarmored Defense'

    def test_truncate(self):
        assert truncate('a' * 50) == 'a' * 50
        assert truncate('a' * 51) == 'a' * 50 + '…'

    def test_render_classes(self, pair):
        local, _ = pair
        local.identity.classes.append(ClassLevel(class_name='Wizard', level=2))
        assert render_classes(local) == 'Monk (Way of Shadow) 3 / Wizard 2'

    def test_render_currency(self):
        character = Character()
        character.equipment.currency.gp = 15
        assert render_currency(character) == '0 cp, 0 sp, 0 ep, 15 gp, 0 pp'


class TestDiffCharacters:
    def test_identical_copies(self, pair):
        local, imported = pair
        rows = diff_characters(local, imported)
        assert rows == []
        assert has_differences(rows) is False
        assert group_by_section(rows) == []

    def test_stripped_values_ignored(self, pair):
        local, imported = pair
        local.combat.hp_temp = 5
        local.combat.death_save_failures = 2
        local.notes = 'same'
        imported.notes = 'same'
        assert diff_characters(local, imported) == []

    def test_identity_and_combat(self, pair):
        local, imported = pair
        imported.identity.name = 'Shadow'
        imported.combat.hp_max = 24

        rows = diff_characters(local, imported)
        assert rows == [
            DiffRow(SECTION_IDENTITY, 'Name', 'New Character', 'Shadow'),
            DiffRow(SECTION_COMBAT, 'Max HP', '0', '24'),
        ]

    def test_symmetry(self, pair):
        local, imported = pair
        imported.abilities.set(Ability.WISDOM, 18)
        imported.features.append(Feature(name='Ki'))

        forward = diff_characters(local, imported)
        backward = diff_characters(imported, local)
        assert [(r.label, r.local, r.imported) for r in forward] == \
               [(r.label, r.imported, r.local) for r in backward]

    def test_saves_and_skills_use_symbols(self, pair):
        local, imported = pair
        imported.saving_throws = [Ability.DEXTERITY]
        imported.skills[Skill.STEALTH] = ProficiencyLevel.EXPERTISE

        rows = diff_characters(local, imported)
        dex = next(r for r in rows if r.section == 'saving_throws')
        assert (dex.label, dex.local, dex.imported) == ('Dexterity', '○', '●')
        stealth = _row(rows, 'Stealth')
        assert (stealth.local, stealth.imported) == ('○', '◉')

    def test_features_summary(self, pair):
        local, imported = pair
        imported.features = [Feature(name='Ki'), Feature(name='Flurry of Blows')]
        row = _row(diff_characters(local, imported), 'Features')
        assert row.section == SECTION_FEATURES
        assert (row.local, row.imported) == ('0', '2: Ki, Flurry of Blows')

    def test_long_text_truncated(self, pair):
        local, imported = pair
        imported.personality.history = 'x' * 80
        row = _row(diff_characters(local, imported), 'History')
        assert row.imported == 'x' * 50 + '…'

    def test_truncated_equal_text_not_reported(self, pair):
        local, imported = pair
        local.notes = 'n' * 60 + 'a'
        imported.notes = 'n' * 60 + 'b'
        assert diff_characters(local, imported) == []


class TestSpellcastingRows:
    def test_slot_rows(self, pair):
        local, imported = pair
        imported.spell_slots[0].total = 4
        row = _row(diff_characters(local, imported), 'Level 1 Slots')
        assert (row.section, row.local, row.imported) == (SECTION_SPELLCASTING, '0', '4')

    def test_feature_enabled_on_one_side(self, pair):
        local, imported = pair
        imported.feature_data['Pact Magic'] = FeatureData(spells=SpellData(casting_ability=Ability.CHARISMA))
        row = _row(diff_characters(local, imported), 'Pact Magic')
        assert (row.local, row.imported) == ('—', 'Enable spellcasting')

    def test_spell_lists_compared(self, pair):
        local, imported = pair
        local.feature_data['Arcane'] = FeatureData(spells=SpellData())
        imported.feature_data['Arcane'] = FeatureData(spells=SpellData(
            casting_ability=Ability.WISDOM, spells=[Spell(name='Shield', level=1)]))

        rows = diff_characters(local, imported)
        assert _row(rows, 'Arcane: Casting Ability').imported == 'Wisdom'
        assert _row(rows, 'Arcane: Spells').imported == '1: Shield'


def test_group_by_section_keeps_order(pair):
    local, imported = pair
    imported.notes = 'new'
    imported.identity.name = 'Renamed'

    grouped = group_by_section(diff_characters(local, imported))
    assert [name for name, _ in grouped] == ['identity', 'notes']
