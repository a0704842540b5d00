"""
Character state model
Pydantic models for the mutable character record edited by the sheet and
derived by the rules engine
"""

import math
from datetime import datetime, timezone
from typing import Annotated, Dict, List, Literal, Optional, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from .enums import Ability, Alignment, Proficiency, ProficiencyLevel, Skill

MAX_LEVEL = 20
SPELL_LEVELS = range(1, 10)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def insert_unique(items: list, value) -> bool:
    """Append value unless already present. Returns True if inserted."""
    if value in items:
        return False
    items.append(value)
    return True


# ============================================================
# Identity
# ============================================================

class ClassLevel(BaseModel):
    """One class taken by the character"""
    class_name: str = ''
    subclass: Optional[str] = None
    level: int = 1
    applied_levels: List[int] = Field(default_factory=list)
    hit_die_sides: int = 8
    hit_dice_used: int = 0
    caster_coef: float = 0.0

    def is_applied(self, level: int) -> bool:
        return level in self.applied_levels

    def mark_applied(self, level: int) -> None:
        insert_unique(self.applied_levels, level)


class CharacterIdentity(BaseModel):
    name: str = 'New Character'
    classes: List[ClassLevel] = Field(default_factory=lambda: [ClassLevel()])
    race: str = ''
    background: str = ''
    alignment: Alignment = Alignment.TRUE_NEUTRAL
    experience_points: int = 0
    race_applied: bool = False
    background_applied: bool = False


class CharacterSummary(BaseModel):
    """Index entry for the character list"""
    id: UUID
    name: str
    class_summary: str = Field('', alias='class')
    level: int = 1

    model_config = ConfigDict(populate_by_name=True)


# ============================================================
# Abilities, combat, personality
# ============================================================

class AbilityScores(BaseModel):
    strength: int = 10
    dexterity: int = 10
    constitution: int = 10
    intelligence: int = 10
    wisdom: int = 10
    charisma: int = 10

    def get(self, ability: Ability) -> int:
        return getattr(self, ability.value.lower())

    def set(self, ability: Ability, value: int) -> None:
        setattr(self, ability.value.lower(), value)


class CombatStats(BaseModel):
    armor_class: int = 10
    speed: int = 30
    hp_max: int = 0
    hp_current: int = 0
    hp_temp: int = 0
    hit_dice_total: str = ''
    hit_dice_remaining: str = ''
    death_save_successes: int = 0
    death_save_failures: int = 0
    initiative_misc_bonus: int = 0


class Personality(BaseModel):
    history: str = ''
    personality_traits: str = ''
    ideals: str = ''
    bonds: str = ''
    flaws: str = ''


# ============================================================
# Equipment
# ============================================================

class Weapon(BaseModel):
    name: str = ''
    attack_bonus: str = ''
    damage: str = ''
    damage_type: str = ''


class Armor(BaseModel):
    name: str = ''
    base_ac: int = 10
    description: str = ''


class Item(BaseModel):
    name: str = ''
    quantity: int = 1
    description: str = ''


class Currency(BaseModel):
    cp: int = 0
    sp: int = 0
    ep: int = 0
    gp: int = 0
    pp: int = 0


class Equipment(BaseModel):
    weapons: List[Weapon] = Field(default_factory=list)
    armor: List[Armor] = Field(default_factory=list)
    items: List[Item] = Field(default_factory=list)
    currency: Currency = Field(default_factory=Currency)


# ============================================================
# Features, fields and spells
# ============================================================

class Feature(BaseModel):
    name: str = ''
    description: str = ''


class RacialTrait(BaseModel):
    name: str = ''
    description: str = ''


class ChoiceOption(BaseModel):
    name: str = ''
    description: str = ''
    cost: int = 0
    level: int = 0


class DieValue(BaseModel):
    kind: Literal['die'] = 'die'
    die: str = ''


class BonusValue(BaseModel):
    kind: Literal['bonus'] = 'bonus'
    bonus: int = 0


class PointsValue(BaseModel):
    kind: Literal['points'] = 'points'
    used: int = 0
    max: int = 0


class ChoiceValue(BaseModel):
    kind: Literal['choice'] = 'choice'
    options: List[ChoiceOption] = Field(default_factory=list)


FieldValue = Annotated[
    Union[DieValue, BonusValue, PointsValue, ChoiceValue],
    Field(discriminator='kind'),
]


class FeatureField(BaseModel):
    name: str = ''
    description: str = ''
    value: FieldValue = Field(default_factory=DieValue)


class Spell(BaseModel):
    name: str = ''
    level: int = 0
    prepared: bool = False
    sticky: bool = False
    description: str = ''

    @property
    def is_cantrip(self) -> bool:
        return self.level == 0


class SpellData(BaseModel):
    casting_ability: Ability = Ability.INTELLIGENCE
    spells: List[Spell] = Field(default_factory=list)


class SpellSlotLevel(BaseModel):
    level: int
    total: int = 0
    used: int = 0


class FeatureData(BaseModel):
    """Structured data attached to a granted feature"""
    fields: List[FeatureField] = Field(default_factory=list)
    spells: Optional[SpellData] = None


def _default_spell_slots() -> List[SpellSlotLevel]:
    return [SpellSlotLevel(level=level) for level in SPELL_LEVELS]


def _default_skills() -> Dict[Skill, ProficiencyLevel]:
    return {skill: ProficiencyLevel.NONE for skill in Skill}


# ============================================================
# Character
# ============================================================

class Character(BaseModel):
    """Aggregate root for a character sheet"""
    id: UUID = Field(default_factory=uuid4)
    identity: CharacterIdentity = Field(default_factory=CharacterIdentity)
    abilities: AbilityScores = Field(default_factory=AbilityScores)
    saving_throws: List[Ability] = Field(default_factory=list)
    skills: Dict[Skill, ProficiencyLevel] = Field(default_factory=_default_skills)
    combat: CombatStats = Field(default_factory=CombatStats)
    personality: Personality = Field(default_factory=Personality)
    features: List[Feature] = Field(default_factory=list)
    racial_traits: List[RacialTrait] = Field(default_factory=list)
    feature_data: Dict[str, FeatureData] = Field(default_factory=dict)
    spell_slots: List[SpellSlotLevel] = Field(default_factory=_default_spell_slots)
    equipment: Equipment = Field(default_factory=Equipment)
    proficiencies: List[Proficiency] = Field(default_factory=list)
    languages: List[str] = Field(default_factory=list)
    notes: str = ''
    updated_at: datetime = Field(default_factory=_utcnow)

    # --- Derived quantities ---

    def level(self) -> int:
        return max(1, sum(c.level for c in self.identity.classes))

    def proficiency_bonus(self) -> int:
        return (self.level() - 1) // 4 + 2

    def ability_modifier(self, ability: Ability) -> int:
        # Floor division rounds toward negative infinity: 9 -> -1
        return (self.abilities.get(ability) - 10) // 2

    def is_proficient_save(self, ability: Ability) -> bool:
        return ability in self.saving_throws

    def saving_throw_bonus(self, ability: Ability) -> int:
        bonus = self.ability_modifier(ability)
        if self.is_proficient_save(ability):
            bonus += self.proficiency_bonus()
        return bonus

    def skill_level(self, skill: Skill) -> ProficiencyLevel:
        return self.skills.get(skill, ProficiencyLevel.NONE)

    def skill_bonus(self, skill: Skill) -> int:
        return (self.ability_modifier(skill.ability)
                + self.skill_level(skill).multiplier * self.proficiency_bonus())

    def initiative(self) -> int:
        return self.ability_modifier(Ability.DEXTERITY) + self.combat.initiative_misc_bonus

    def caster_level(self) -> int:
        """Effective caster level across all classes, weighted by caster coefficient"""
        return math.floor(sum(c.level * c.caster_coef for c in self.identity.classes) + 1e-9)

    @property
    def spellcasting(self) -> Dict[str, SpellData]:
        """Spellcasting view over feature data entries that declare spells"""
        return {
            name: data.spells
            for name, data in self.feature_data.items()
            if data.spells is not None
        }

    def spell_save_dc(self, feature_name: str) -> Optional[int]:
        spell_data = self.spellcasting.get(feature_name)
        if spell_data is None:
            return None
        return 8 + self.proficiency_bonus() + self.ability_modifier(spell_data.casting_ability)

    def spell_attack_bonus(self, feature_name: str) -> Optional[int]:
        spell_data = self.spellcasting.get(feature_name)
        if spell_data is None:
            return None
        return self.proficiency_bonus() + self.ability_modifier(spell_data.casting_ability)

    # --- Lookups ---

    def find_feature(self, name: str) -> Optional[Feature]:
        return next((f for f in self.features if f.name == name), None)

    def has_feature(self, name: str) -> bool:
        return self.find_feature(name) is not None

    def find_class(self, class_name: str) -> Optional[ClassLevel]:
        return next((c for c in self.identity.classes if c.class_name == class_name), None)

    # --- Summaries ---

    def class_summary(self) -> str:
        return ' / '.join(
            f"{c.class_name} {c.level}" for c in self.identity.classes if c.class_name
        )

    def summary(self) -> CharacterSummary:
        return CharacterSummary(
            id=self.id,
            name=self.identity.name,
            class_summary=self.class_summary(),
            level=self.level(),
        )

    def touch(self) -> None:
        self.updated_at = _utcnow()


def parse_int_input(text: str, previous: int) -> int:
    """Parse a numeric form entry, keeping the previous value on bad input"""
    try:
        return int(str(text).strip())
    except (TypeError, ValueError):
        return previous
