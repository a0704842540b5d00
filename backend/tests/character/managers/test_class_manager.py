"""
Tests for ClassManager level application.
Covers idempotency, hit points, feature grants and escalation, subclass
features, multiclassing helpers and choice option resolution.
"""
import pytest
from unittest.mock import patch

from character.enums import Ability, Proficiency
from character.events import EventType
from character.factory import create_character_manager
from character.models import ChoiceValue, ClassLevel
from gamedata.models import ClassDefinition


@pytest.fixture
def class_manager(monk_manager):
    return monk_manager.get_manager('class')


def _field(character, feature_name, field_name):
    return next(f for f in character.feature_data[feature_name].fields if f.name == field_name)


@pytest.fixture
def fighter_def():
    return ClassDefinition(name='Fighter', hit_die=10, levels=[{}, {}, {}])


@pytest.fixture
def regrant_def():
    """Class naming the same non-stackable feature at levels 1 and 2"""
    return ClassDefinition.model_validate({
        'name': 'Scout',
        'hit_die': 8,
        'features': {
            'eyes': {
                'name': 'Keen Eyes',
                'languages': ['Elvish'],
                'fields': {'bonus': {'kind': 'bonus', 'name': 'Perception Bonus', 'levels': {'1': 1, '2': 5}}},
            },
        },
        'levels': [{'features': ['eyes']}, {'features': ['eyes']}],
    })


class TestApplyClassLevel:
    def test_first_level(self, monk_manager, class_manager, registry):
        character = monk_manager.character
        assert class_manager.apply_class_level(registry.get_class('Monk'), 1) is True

        assert character.find_class('Monk').applied_levels == [1]
        assert character.find_class('Monk').hit_die_sides == 8
        assert character.saving_throws == [Ability.STRENGTH, Ability.DEXTERITY]
        assert character.proficiencies == [Proficiency.SIMPLE_WEAPONS]
        assert [f.name for f in character.features] == ['Martial Arts']
        assert _field(character, 'Martial Arts', 'Martial Arts Die').value.die == '1d4'

    def test_idempotent(self, monk_manager, class_manager, registry):
        monk = registry.get_class('Monk')
        class_manager.apply_class_level(monk, 1)
        once = monk_manager.character.model_dump()

        assert class_manager.apply_class_level(monk, 1) is False
        assert monk_manager.character.model_dump() == once

    def test_level_without_rules_is_noop(self, monk_manager, class_manager, registry):
        before = monk_manager.character.model_dump()
        assert class_manager.apply_class_level(registry.get_class('Monk'), 7) is False
        assert monk_manager.character.model_dump() == before

    def test_class_not_taken_is_noop(self, monk_manager, class_manager, registry):
        before = monk_manager.character.model_dump()
        assert class_manager.apply_class_level(registry.get_class('Wizard'), 1) is False
        assert monk_manager.character.model_dump() == before

    def test_saves_only_at_first_level(self, monk_manager, class_manager, registry):
        monk_manager.character.find_class('Monk').level = 2
        class_manager.apply_class_level(registry.get_class('Monk'), 2)
        assert monk_manager.character.saving_throws == []


class TestHitPoints:
    def test_progression(self, monk_manager, class_manager, fighter_def):
        character = monk_manager.character
        character.identity.classes = [ClassLevel(class_name='Fighter', level=3)]

        class_manager.apply_class_level(fighter_def, 1)
        assert character.combat.hp_max == 12

        class_manager.apply_class_level(fighter_def, 2)
        assert character.combat.hp_max == 19

        class_manager.apply_class_level(fighter_def, 3)
        assert character.combat.hp_max == 26

    def test_current_hp_reset_on_level(self, monk_manager, class_manager, fighter_def):
        character = monk_manager.character
        character.identity.classes = [ClassLevel(class_name='Fighter', level=2)]
        class_manager.apply_class_level(fighter_def, 1)
        character.combat.hp_current = 3

        class_manager.apply_class_level(fighter_def, 2)
        assert character.combat.hp_current == character.combat.hp_max == 19


class TestFeatureProgression:
    def test_escalation_of_possessed_features(self, monk_manager, class_manager):
        character = monk_manager.character
        character.find_class('Monk').level = 5
        assert class_manager.apply_class_levels('Monk') == [1, 2, 3, 4, 5]

        assert _field(character, 'Martial Arts', 'Martial Arts Die').value.die == '1d6'
        ki_points = _field(character, 'Ki', 'Ki Points').value
        assert (ki_points.used, ki_points.max) == (0, 5)
        assert _field(character, 'Ki', 'Ki Save Bonus').value.bonus == 2
        assert character.languages == ['Celestial', 'Primordial']

    def test_points_keep_used(self, monk_manager, class_manager):
        character = monk_manager.character
        character.find_class('Monk').level = 3
        class_manager.apply_class_levels('Monk')
        _field(character, 'Ki', 'Ki Points').value.used = 2

        class_manager.level_up('Monk')
        ki_points = _field(character, 'Ki', 'Ki Points').value
        assert (ki_points.used, ki_points.max) == (2, 4)

    def test_choice_growth_preserves_entries(self, monk_manager, class_manager):
        character = monk_manager.character
        character.find_class('Monk').level = 3
        class_manager.apply_class_levels('Monk')

        options = _field(character, 'Disciplines', 'Known Disciplines').value.options
        assert len(options) == 2
        options[0].name = 'Water Whip'

        character.find_class('Monk').level = 6
        class_manager.apply_class_levels('Monk')

        options = _field(character, 'Disciplines', 'Known Disciplines').value.options
        assert len(options) == 3
        assert options[0].name == 'Water Whip'
        assert options[1].name == '' and options[2].name == ''

    def test_choice_never_shrinks(self, monk_manager, class_manager, registry):
        character = monk_manager.character
        character.find_class('Monk').level = 3
        class_manager.apply_class_levels('Monk')
        field = _field(character, 'Disciplines', 'Known Disciplines')
        field.value = ChoiceValue(options=[{'name': n} for n in ('a', 'b', 'c', 'd', 'e')])

        character.find_class('Monk').level = 6
        class_manager.apply_class_levels('Monk')
        assert [o.name for o in field.value.options] == ['a', 'b', 'c', 'd', 'e']

    def test_stackable_feature_escalates_on_regrant(self, monk_manager, class_manager):
        character = monk_manager.character
        character.find_class('Monk').level = 6
        class_manager.apply_class_levels('Monk')

        assert _field(character, 'Unarmored Movement', 'Speed Bonus').value.bonus == 15
        assert [f.name for f in character.features].count('Unarmored Movement') == 1

    def test_non_stackable_regrant_is_skipped(self, monk_manager, class_manager, regrant_def):
        character = monk_manager.character
        character.identity.classes = [ClassLevel(class_name='Scout', level=2)]
        class_manager.apply_class_level(regrant_def, 1)
        character.languages.clear()

        class_manager.apply_class_level(regrant_def, 2)
        assert [f.name for f in character.features] == ['Keen Eyes']
        assert character.languages == []
        assert _field(character, 'Keen Eyes', 'Perception Bonus').value.bonus == 1

    def test_subclass_features_need_subclass(self, monk_manager, class_manager):
        character = monk_manager.character
        character.find_class('Monk').level = 3
        class_manager.apply_class_levels('Monk')
        assert not character.has_feature('Elemental Attunement')

    def test_subclass_level_rules(self, monk_manager, class_manager):
        character = monk_manager.character
        character.find_class('Monk').level = 3
        class_manager.set_subclass('Monk', 'Way of the Four Elements')
        class_manager.apply_class_levels('Monk')

        assert character.has_feature('Elemental Attunement')
        assert len(_field(character, 'Elemental Attunement', 'Extra Disciplines').value.options) == 1


class TestLevelUp:
    def test_level_up_applies_next_level(self, monk_manager, class_manager):
        class_manager.apply_class_levels('Monk')
        assert class_manager.level_up('Monk') is True

        class_level = monk_manager.character.find_class('Monk')
        assert class_level.level == 2
        assert class_level.applied_levels == [1, 2]
        assert monk_manager.character.combat.hp_max == 10 + 7

    def test_level_cap(self, monk_manager, class_manager):
        monk_manager.character.find_class('Monk').level = 20
        assert class_manager.level_up('Monk') is False
        assert monk_manager.character.find_class('Monk').level == 20

    def test_unknown_class(self, class_manager):
        assert class_manager.level_up('Bard') is False

    def test_failure_rolls_back(self, monk_manager, class_manager):
        class_manager.apply_class_levels('Monk')
        feature_manager = monk_manager.get_manager('feature')

        with patch.object(feature_manager, 'apply_feature', side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                class_manager.level_up('Monk')

        character = monk_manager.character
        assert character.find_class('Monk').level == 1
        assert character.find_class('Monk').applied_levels == [1]
        assert character.combat.hp_max == 10

    def test_emits_level_gained(self, monk_manager, class_manager):
        class_manager.apply_class_levels('Monk')
        events = monk_manager.get_event_history(EventType.LEVEL_GAINED)
        assert len(events) == 1
        assert events[0].class_name == 'Monk'
        assert events[0].hp_gained == 10
        assert events[0].features_applied == ['Martial Arts']


class TestMulticlass:
    def test_add_class_fills_blank_entry(self, registry):
        manager = create_character_manager(registry=registry)
        class_level = manager.get_manager('class').add_class('Wizard')
        assert manager.character.identity.classes == [class_level]
        assert class_level.class_name == 'Wizard'

    def test_add_second_class(self, monk_manager, class_manager):
        class_manager.apply_class_levels('Monk')
        class_manager.add_class('Wizard')
        assert [c.class_name for c in monk_manager.character.identity.classes] == ['Monk', 'Wizard']
        assert class_manager.apply_class_levels('Wizard') == [1]
        assert monk_manager.character.level() == 2


class TestAvailableOptions:
    def test_options_follow_reference(self, class_manager):
        class_manager.set_subclass('Monk', 'Way of the Four Elements')
        names = [o.name for o in class_manager.available_options('Monk', 'Known Disciplines')]
        assert names == ['Fist of Unbroken Air', 'Water Whip', 'Shape the Flowing River']

    def test_reference_unresolved_without_subclass(self, class_manager):
        names = [o.name for o in class_manager.available_options('Monk', 'Known Disciplines')]
        assert names == ['Fist of Unbroken Air', 'Water Whip']

    def test_unknown_field_or_class(self, class_manager):
        assert class_manager.available_options('Monk', 'Nope') == []
        assert class_manager.available_options('Bard', 'Known Disciplines') == []
