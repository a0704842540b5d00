"""
Tests for the description fill pass
"""
from character.factory import create_character_manager
from character.models import ChoiceOption, Spell
from character.share_service import strip_for_sharing
from gamedata.services.rules_registry import DocumentKind, RulesRegistry
from tests.fixtures.rule_documents import monk


def _leveled_monk(monk_manager):
    character = monk_manager.character
    character.find_class('Monk').level = 3
    character.find_class('Monk').subclass = 'Way of the Four Elements'
    character.identity.race = 'Dwarf'
    monk_manager.get_manager('class').apply_class_levels('Monk')
    monk_manager.get_manager('race').apply_race_by_name('Dwarf')
    return character


def _known_disciplines(character):
    return next(f for f in character.feature_data['Disciplines'].fields if f.name == 'Known Disciplines')


class TestFillDescriptions:
    def test_restores_stripped_sheet(self, monk_manager, registry):
        character = _leveled_monk(monk_manager)
        _known_disciplines(character).value.options[0].name = 'Water Whip'
        _known_disciplines(character).value.options[1].name = 'Shape the Flowing River'
        stripped = strip_for_sharing(character)

        filled = create_character_manager(stripped, registry).get_manager('description').fill_descriptions()

        assert filled > 0
        assert stripped.find_feature('Martial Arts').description == 'Unarmed strikes use the martial arts die.'
        assert stripped.racial_traits[0].description == 'See in dim light.'
        die_field = stripped.feature_data['Martial Arts'].fields[0]
        assert die_field.description == 'Damage die for unarmed strikes'
        options = _known_disciplines(stripped).value.options
        assert [o.description for o in options] == ['Lash with water.', 'Shape water and ice.']

    def test_existing_descriptions_kept(self, monk_manager):
        character = _leveled_monk(monk_manager)
        character.features[0].description = 'My own notes'

        monk_manager.get_manager('description').fill_descriptions()
        assert character.features[0].description == 'My own notes'

    def test_second_pass_fills_nothing(self, monk_manager):
        _leveled_monk(monk_manager)
        description_manager = monk_manager.get_manager('description')
        description_manager.fill_descriptions()
        assert description_manager.fill_descriptions() == 0

    def test_unnamed_entries_skipped(self, monk_manager):
        character = _leveled_monk(monk_manager)
        options = _known_disciplines(character).value.options
        assert monk_manager.get_manager('description').fill_descriptions() == 0
        assert all(o.description == '' for o in options)

    def test_spells_from_spell_list(self, wizard_manager):
        character = wizard_manager.character
        wizard_manager.get_manager('class').apply_class_levels('Wizard')
        spells = character.feature_data['Arcane Spellcasting'].spells.spells
        spells.append(Spell(name='Magic Missile', level=1))
        spells.append(Spell(name='Homebrew Bolt', level=1))

        wizard_manager.get_manager('description').fill_descriptions()
        assert spells[-2].description == 'Three glowing darts.'
        assert spells[-1].description == ''

    def test_fills_once_documents_arrive(self, monk_manager):
        character = _leveled_monk(monk_manager)
        stripped = strip_for_sharing(character)

        empty_registry = RulesRegistry(max_workers=1)
        manager = create_character_manager(stripped, empty_registry)
        description_manager = manager.get_manager('description')
        assert description_manager.fill_descriptions() == 0
        assert stripped.find_feature('Martial Arts').description == ''

        empty_registry.register(DocumentKind.CLASS, monk())
        assert description_manager.fill_descriptions() > 0
        assert stripped.find_feature('Martial Arts').description != ''
        empty_registry.shutdown(wait=False)

    def test_option_not_in_definition(self, monk_manager):
        character = _leveled_monk(monk_manager)
        _known_disciplines(character).value.options[0] = ChoiceOption(name='Invented Kata')
        monk_manager.get_manager('description').fill_descriptions()
        assert _known_disciplines(character).value.options[0].description == ''
