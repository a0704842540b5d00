"""
Rule definition models
Passive shapes for the externally authored class, subclass, race, background
and spell-list documents. Parsed from JSON with model_validate.
"""

from typing import Annotated, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field

from character.enums import Ability, Proficiency, Skill


# ============================================================
# Fields
# ============================================================

class ChoiceOptionDefinition(BaseModel):
    name: str
    description: str = ''
    cost: int = 0
    level: int = 0


class _FieldDefinitionBase(BaseModel):
    name: str
    description: str = ''


class DieFieldDefinition(_FieldDefinitionBase):
    """Dice expression that grows with level, e.g. martial arts die"""
    kind: Literal['die'] = 'die'
    levels: Dict[int, str] = Field(default_factory=dict)


class BonusFieldDefinition(_FieldDefinitionBase):
    """Signed integer bonus that grows with level"""
    kind: Literal['bonus'] = 'bonus'
    levels: Dict[int, int] = Field(default_factory=dict)


class PointsFieldDefinition(_FieldDefinitionBase):
    """Expendable resource pool; the table gives the maximum"""
    kind: Literal['points'] = 'points'
    levels: Dict[int, int] = Field(default_factory=dict)


class ChoiceFieldDefinition(_FieldDefinitionBase):
    """
    Slots the player fills with named options

    The table gives the number of slots. Options come from the inline list
    and/or from another field named by options_from.
    """
    kind: Literal['choice'] = 'choice'
    levels: Dict[int, int] = Field(default_factory=dict)
    options: List[ChoiceOptionDefinition] = Field(default_factory=list)
    options_from: Optional[str] = None


FieldDefinition = Annotated[
    Union[DieFieldDefinition, BonusFieldDefinition, PointsFieldDefinition, ChoiceFieldDefinition],
    Field(discriminator='kind'),
]


# ============================================================
# Spells
# ============================================================

class SpellDefinition(BaseModel):
    name: str
    level: int = 0
    description: str = ''
    sticky: bool = False
    min_level: int = 1


class SpellListDefinition(BaseModel):
    """Standalone spell-list document referenced by name"""
    name: str
    description: str = ''
    spells: List[SpellDefinition] = Field(default_factory=list)


class SpellsDefinition(BaseModel):
    casting_ability: Ability = Ability.INTELLIGENCE
    caster_coef: float = 1.0
    spells: List[SpellDefinition] = Field(default_factory=list)
    spell_list: Optional[str] = None
    cantrips_known: Dict[int, int] = Field(default_factory=dict)
    spells_known: Dict[int, int] = Field(default_factory=dict)
    # Keyed by effective caster level; empty means the standard table
    slots: Dict[int, List[int]] = Field(default_factory=dict)


# ============================================================
# Features
# ============================================================

class FeatureDefinition(BaseModel):
    name: str
    description: str = ''
    languages: List[str] = Field(default_factory=list)
    stackable: bool = False
    spells: Optional[SpellsDefinition] = None
    fields: Dict[str, FieldDefinition] = Field(default_factory=dict)


class TraitDefinition(BaseModel):
    name: str
    description: str = ''


# ============================================================
# Classes
# ============================================================

class ClassLevelRules(BaseModel):
    """Rules for one class level; features lists newly unlocked feature keys"""
    features: List[str] = Field(default_factory=list)


class SubclassDefinition(BaseModel):
    name: str
    description: str = ''
    features: Dict[str, FeatureDefinition] = Field(default_factory=dict)
    levels: Dict[int, List[str]] = Field(default_factory=dict)

    def min_level(self) -> int:
        return min(self.levels) if self.levels else 1


class ClassDefinition(BaseModel):
    name: str
    description: str = ''
    hit_die: int = 8
    proficiencies: List[Proficiency] = Field(default_factory=list)
    saving_throws: List[Ability] = Field(default_factory=list)
    features: Dict[str, FeatureDefinition] = Field(default_factory=dict)
    # Index 0 holds the rules for level 1
    levels: List[ClassLevelRules] = Field(default_factory=list)
    subclasses: Dict[str, SubclassDefinition] = Field(default_factory=dict)

    def level_rules(self, level: int) -> Optional[ClassLevelRules]:
        if 1 <= level <= len(self.levels):
            return self.levels[level - 1]
        return None

    def find_subclass(self, name: Optional[str]) -> Optional[SubclassDefinition]:
        if not name:
            return None
        if name in self.subclasses:
            return self.subclasses[name]
        return next((s for s in self.subclasses.values() if s.name == name), None)

    def visible_features(self, subclass_name: Optional[str] = None) -> List[Tuple[str, FeatureDefinition]]:
        """Own features followed by the chosen subclass's features"""
        visible = list(self.features.items())
        subclass = self.find_subclass(subclass_name)
        if subclass is not None:
            visible.extend(subclass.features.items())
        return visible


# ============================================================
# Race and background
# ============================================================

class RaceDefinition(BaseModel):
    name: str
    description: str = ''
    ability_modifiers: Dict[Ability, int] = Field(default_factory=dict)
    proficiencies: List[Proficiency] = Field(default_factory=list)
    speed: Optional[int] = None
    traits: Dict[str, TraitDefinition] = Field(default_factory=dict)
    features: Dict[str, FeatureDefinition] = Field(default_factory=dict)


class BackgroundDefinition(BaseModel):
    name: str
    description: str = ''
    ability_modifiers: Dict[Ability, int] = Field(default_factory=dict)
    proficiencies: List[Proficiency] = Field(default_factory=list)
    skills: List[Skill] = Field(default_factory=list)
    features: Dict[str, FeatureDefinition] = Field(default_factory=dict)


# ============================================================
# Index
# ============================================================

class IndexEntry(BaseModel):
    name: str
    url: str
    description: str = ''
    prerequisites: List[Ability] = Field(default_factory=list)


class RulesIndex(BaseModel):
    classes: List[IndexEntry] = Field(default_factory=list)
    races: List[IndexEntry] = Field(default_factory=list)
    backgrounds: List[IndexEntry] = Field(default_factory=list)
    spell_lists: List[IndexEntry] = Field(default_factory=list)
