"""
Tests for restoring stripped values into an imported character
"""
from character.merge_service import restore_stripped
from character.models import (
    Character,
    ChoiceOption,
    ChoiceValue,
    Feature,
    FeatureData,
    FeatureField,
    PointsValue,
    RacialTrait,
    Spell,
    SpellData,
)
from character.share_service import strip_for_sharing


def _local():
    character = Character()
    character.combat.hp_temp = 6
    character.combat.death_save_successes = 1
    character.combat.death_save_failures = 2
    character.features = [Feature(name='Ki', description='Local ki text')]
    character.racial_traits = [RacialTrait(name='Darkvision', description='Local darkvision')]
    character.feature_data['Ki'] = FeatureData(fields=[
        FeatureField(name='Ki Points', description='Pool', value=PointsValue(max=3)),
        FeatureField(name='Disciplines', description='Known', value=ChoiceValue(options=[
            ChoiceOption(name='Water Whip', description='Lash with water.'),
        ])),
    ])
    character.feature_data['Arcane'] = FeatureData(spells=SpellData(spells=[
        Spell(name='Shield', level=1, description='Invisible barrier.'),
    ]))
    return character


class TestRestoreStripped:
    def test_without_local_copy(self):
        imported = strip_for_sharing(_local())
        assert restore_stripped(imported, None) is imported
        assert imported.features[0].description == ''

    def test_round_trip_restores_everything(self):
        local = _local()
        imported = restore_stripped(strip_for_sharing(local), local)
        assert imported == local

    def test_transient_values_always_copied(self):
        local = _local()
        imported = Character(id=local.id)
        imported.combat.hp_temp = 9
        restore_stripped(imported, local)
        assert imported.combat.hp_temp == 6
        assert (imported.combat.death_save_successes, imported.combat.death_save_failures) == (1, 2)

    def test_existing_descriptions_kept(self):
        local = _local()
        imported = strip_for_sharing(local)
        imported.features[0].description = 'Imported ki text'
        restore_stripped(imported, local)
        assert imported.features[0].description == 'Imported ki text'

    def test_unknown_names_stay_blank(self):
        local = _local()
        imported = strip_for_sharing(local)
        imported.features.append(Feature(name='Stunning Strike'))
        imported.feature_data['Arcane'].spells.spells.append(Spell(name='Sleep', level=1))
        restore_stripped(imported, local)
        assert imported.features[-1].description == ''
        assert imported.feature_data['Arcane'].spells.spells[-1].description == ''

    def test_fields_paired_by_position(self):
        local = _local()
        imported = strip_for_sharing(local)
        imported.feature_data['Ki'].fields[0].name = 'Renamed Pool'
        imported.feature_data['Ki'].fields.append(FeatureField(name='Extra', description='kept?'))

        restore_stripped(imported, local)
        fields = imported.feature_data['Ki'].fields
        assert fields[0].description == 'Pool'
        assert fields[1].description == 'Known'
        assert fields[2].description == 'kept?'

    def test_choice_options_by_name(self):
        local = _local()
        imported = strip_for_sharing(local)
        options = imported.feature_data['Ki'].fields[1].value.options
        options.insert(0, ChoiceOption(name='Fist of Unbroken Air'))

        restore_stripped(imported, local)
        assert [o.description for o in options] == ['', 'Lash with water.']
