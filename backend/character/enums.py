"""
Enumerations shared by character records and rule documents
"""

from enum import Enum
from typing import Dict


class Ability(str, Enum):
    """The six ability scores"""
    STRENGTH = 'Strength'
    DEXTERITY = 'Dexterity'
    CONSTITUTION = 'Constitution'
    INTELLIGENCE = 'Intelligence'
    WISDOM = 'Wisdom'
    CHARISMA = 'Charisma'

    @property
    def short_name(self) -> str:
        return self.value[:3].upper()


class Skill(str, Enum):
    """Skills, each governed by one ability"""
    ACROBATICS = 'Acrobatics'
    ANIMAL_HANDLING = 'Animal Handling'
    ARCANA = 'Arcana'
    ATHLETICS = 'Athletics'
    DECEPTION = 'Deception'
    HISTORY = 'History'
    INSIGHT = 'Insight'
    INTIMIDATION = 'Intimidation'
    INVESTIGATION = 'Investigation'
    MEDICINE = 'Medicine'
    NATURE = 'Nature'
    PERCEPTION = 'Perception'
    PERFORMANCE = 'Performance'
    PERSUASION = 'Persuasion'
    RELIGION = 'Religion'
    SLEIGHT_OF_HAND = 'Sleight of Hand'
    STEALTH = 'Stealth'
    SURVIVAL = 'Survival'

    @property
    def ability(self) -> Ability:
        return SKILL_ABILITIES[self]


SKILL_ABILITIES: Dict[Skill, Ability] = {
    Skill.ATHLETICS: Ability.STRENGTH,
    Skill.ACROBATICS: Ability.DEXTERITY,
    Skill.SLEIGHT_OF_HAND: Ability.DEXTERITY,
    Skill.STEALTH: Ability.DEXTERITY,
    Skill.ARCANA: Ability.INTELLIGENCE,
    Skill.HISTORY: Ability.INTELLIGENCE,
    Skill.INVESTIGATION: Ability.INTELLIGENCE,
    Skill.NATURE: Ability.INTELLIGENCE,
    Skill.RELIGION: Ability.INTELLIGENCE,
    Skill.ANIMAL_HANDLING: Ability.WISDOM,
    Skill.INSIGHT: Ability.WISDOM,
    Skill.MEDICINE: Ability.WISDOM,
    Skill.PERCEPTION: Ability.WISDOM,
    Skill.SURVIVAL: Ability.WISDOM,
    Skill.DECEPTION: Ability.CHARISMA,
    Skill.INTIMIDATION: Ability.CHARISMA,
    Skill.PERFORMANCE: Ability.CHARISMA,
    Skill.PERSUASION: Ability.CHARISMA,
}


class ProficiencyLevel(str, Enum):
    """Proficiency tiers for skills"""
    NONE = 'None'
    PROFICIENT = 'Proficient'
    EXPERTISE = 'Expertise'

    @property
    def multiplier(self) -> int:
        return {
            ProficiencyLevel.NONE: 0,
            ProficiencyLevel.PROFICIENT: 1,
            ProficiencyLevel.EXPERTISE: 2,
        }[self]

    def next(self) -> 'ProficiencyLevel':
        """Cycle None -> Proficient -> Expertise -> None"""
        order = [ProficiencyLevel.NONE, ProficiencyLevel.PROFICIENT, ProficiencyLevel.EXPERTISE]
        return order[(order.index(self) + 1) % len(order)]

    @property
    def symbol(self) -> str:
        return {
            ProficiencyLevel.NONE: '○',        # empty circle
            ProficiencyLevel.PROFICIENT: '●',  # filled circle
            ProficiencyLevel.EXPERTISE: '◉',   # fisheye
        }[self]


class Proficiency(str, Enum):
    """Armor and weapon proficiency categories"""
    LIGHT_ARMOR = 'Light Armor'
    MEDIUM_ARMOR = 'Medium Armor'
    HEAVY_ARMOR = 'Heavy Armor'
    SHIELDS = 'Shields'
    SIMPLE_WEAPONS = 'Simple Weapons'
    MARTIAL_WEAPONS = 'Martial Weapons'


class Alignment(str, Enum):
    LAWFUL_GOOD = 'Lawful Good'
    NEUTRAL_GOOD = 'Neutral Good'
    CHAOTIC_GOOD = 'Chaotic Good'
    LAWFUL_NEUTRAL = 'Lawful Neutral'
    TRUE_NEUTRAL = 'True Neutral'
    CHAOTIC_NEUTRAL = 'Chaotic Neutral'
    LAWFUL_EVIL = 'Lawful Evil'
    NEUTRAL_EVIL = 'Neutral Evil'
    CHAOTIC_EVIL = 'Chaotic Evil'
