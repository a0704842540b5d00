"""
Field-level difference between two snapshots of the same character

Used by the import flow to show what an incoming copy would change. Rows
are rendered as text so they can be shown side by side without further
formatting. Values that never travel in a share token (death saves and
temporary HP) are not compared.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple

from .enums import Ability, Skill
from .models import Character, SpellData

TRUNCATE_LENGTH = 50
ELLIPSIS = '…'
MISSING = '—'
ENABLE_SPELLCASTING = 'Enable spellcasting'
PROFICIENT_SAVE = '●'
NON_PROFICIENT_SAVE = '○'

SECTION_IDENTITY = 'identity'
SECTION_ABILITIES = 'abilities'
SECTION_COMBAT = 'combat'
SECTION_SAVING_THROWS = 'saving_throws'
SECTION_SKILLS = 'skills'
SECTION_FEATURES = 'features'
SECTION_EQUIPMENT = 'equipment'
SECTION_SPELLCASTING = 'spellcasting'
SECTION_PROFICIENCIES = 'proficiencies'
SECTION_PERSONALITY = 'personality'
SECTION_RACIAL_TRAITS = 'racial_traits'
SECTION_NOTES = 'notes'

SECTION_ORDER = [
    SECTION_IDENTITY,
    SECTION_ABILITIES,
    SECTION_COMBAT,
    SECTION_SAVING_THROWS,
    SECTION_SKILLS,
    SECTION_FEATURES,
    SECTION_EQUIPMENT,
    SECTION_SPELLCASTING,
    SECTION_PROFICIENCIES,
    SECTION_PERSONALITY,
    SECTION_RACIAL_TRAITS,
    SECTION_NOTES,
]


@dataclass(frozen=True)
class DiffRow:
    section: str
    label: str
    local: str
    imported: str


# ============================================================
# Rendering helpers
# ============================================================

def names_summary(names: Iterable[str]) -> str:
    """Count followed by the names, e.g. '2: Rage, Unarmored Defense'"""
    names = list(names)
    if not names:
        return '0'
    return f"{len(names)}: {', '.join(names)}"


def truncate(text: str, length: int = TRUNCATE_LENGTH) -> str:
    if len(text) <= length:
        return text
    return text[:length] + ELLIPSIS


def render_classes(character: Character) -> str:
    parts = []
    for class_level in character.identity.classes:
        name = class_level.class_name or MISSING
        if class_level.subclass:
            name = f"{name} ({class_level.subclass})"
        parts.append(f"{name} {class_level.level}")
    return ' / '.join(parts)


def render_currency(character: Character) -> str:
    currency = character.equipment.currency
    return ', '.join(f"{getattr(currency, coin)} {coin}" for coin in ('cp', 'sp', 'ep', 'gp', 'pp'))


def _enum_names(values) -> List[str]:
    return [value.value for value in values]


# Label -> renderer, compared row by row within each section
IDENTITY_FIELDS: List[Tuple[str, Callable[[Character], str]]] = [
    ('Name', lambda c: c.identity.name),
    ('Classes', render_classes),
    ('Race', lambda c: c.identity.race),
    ('Background', lambda c: c.identity.background),
    ('Alignment', lambda c: c.identity.alignment.value),
    ('Experience Points', lambda c: str(c.identity.experience_points)),
]

COMBAT_FIELDS: List[Tuple[str, Callable[[Character], str]]] = [
    ('Armor Class', lambda c: str(c.combat.armor_class)),
    ('Speed', lambda c: str(c.combat.speed)),
    ('Max HP', lambda c: str(c.combat.hp_max)),
    ('Current HP', lambda c: str(c.combat.hp_current)),
    ('Hit Dice', lambda c: c.combat.hit_dice_total),
    ('Hit Dice Remaining', lambda c: c.combat.hit_dice_remaining),
    ('Initiative Bonus', lambda c: str(c.combat.initiative_misc_bonus)),
]

EQUIPMENT_FIELDS: List[Tuple[str, Callable[[Character], str]]] = [
    ('Weapons', lambda c: names_summary(w.name for w in c.equipment.weapons)),
    ('Armor', lambda c: names_summary(a.name for a in c.equipment.armor)),
    ('Items', lambda c: names_summary(i.name for i in c.equipment.items)),
    ('Currency', render_currency),
]

PROFICIENCY_FIELDS: List[Tuple[str, Callable[[Character], str]]] = [
    ('Proficiencies', lambda c: names_summary(_enum_names(c.proficiencies))),
    ('Languages', lambda c: names_summary(c.languages)),
]

PERSONALITY_FIELDS: List[Tuple[str, Callable[[Character], str]]] = [
    ('History', lambda c: truncate(c.personality.history)),
    ('Personality Traits', lambda c: truncate(c.personality.personality_traits)),
    ('Ideals', lambda c: truncate(c.personality.ideals)),
    ('Bonds', lambda c: truncate(c.personality.bonds)),
    ('Flaws', lambda c: truncate(c.personality.flaws)),
]


# ============================================================
# Sections
# ============================================================

class _RowCollector:
    """Accumulates rows for one section, keeping only differing values"""

    def __init__(self, section: str):
        self.section = section
        self.rows: List[DiffRow] = []

    def add(self, label: str, local: str, imported: str):
        if local != imported:
            self.rows.append(DiffRow(self.section, label, local, imported))

    def add_fields(self, fields, local: Character, imported: Character):
        for label, render in fields:
            self.add(label, render(local), render(imported))


def _spellcasting_rows(rows: _RowCollector, local: Character, imported: Character):
    local_slots = {slot.level: slot.total for slot in local.spell_slots}
    imported_slots = {slot.level: slot.total for slot in imported.spell_slots}
    for level in sorted(set(local_slots) | set(imported_slots)):
        rows.add(f"Level {level} Slots",
                 str(local_slots.get(level, 0)), str(imported_slots.get(level, 0)))

    local_casting = local.spellcasting
    imported_casting = imported.spellcasting
    keys = list(local_casting)
    keys.extend(k for k in imported_casting if k not in local_casting)

    for key in keys:
        local_data: Optional[SpellData] = local_casting.get(key)
        imported_data: Optional[SpellData] = imported_casting.get(key)
        if local_data is None or imported_data is None:
            rows.add(key,
                     ENABLE_SPELLCASTING if local_data is not None else MISSING,
                     ENABLE_SPELLCASTING if imported_data is not None else MISSING)
            continue
        rows.add(f"{key}: Casting Ability",
                 local_data.casting_ability.value, imported_data.casting_ability.value)
        rows.add(f"{key}: Spells",
                 names_summary(s.name for s in local_data.spells),
                 names_summary(s.name for s in imported_data.spells))


def diff_characters(local: Character, imported: Character) -> List[DiffRow]:
    """
    Compare two snapshots of a character

    Args:
        local: Stored copy
        imported: Incoming copy

    Returns:
        Differing rows in section order; empty when nothing differs
    """
    sections = {name: _RowCollector(name) for name in SECTION_ORDER}

    sections[SECTION_IDENTITY].add_fields(IDENTITY_FIELDS, local, imported)

    for ability in Ability:
        sections[SECTION_ABILITIES].add(
            ability.value, str(local.abilities.get(ability)), str(imported.abilities.get(ability)))

    sections[SECTION_COMBAT].add_fields(COMBAT_FIELDS, local, imported)

    for ability in Ability:
        sections[SECTION_SAVING_THROWS].add(
            ability.value,
            PROFICIENT_SAVE if local.is_proficient_save(ability) else NON_PROFICIENT_SAVE,
            PROFICIENT_SAVE if imported.is_proficient_save(ability) else NON_PROFICIENT_SAVE,
        )

    for skill in Skill:
        sections[SECTION_SKILLS].add(
            skill.value, local.skill_level(skill).symbol, imported.skill_level(skill).symbol)

    sections[SECTION_FEATURES].add(
        'Features',
        names_summary(f.name for f in local.features),
        names_summary(f.name for f in imported.features),
    )

    sections[SECTION_EQUIPMENT].add_fields(EQUIPMENT_FIELDS, local, imported)
    _spellcasting_rows(sections[SECTION_SPELLCASTING], local, imported)
    sections[SECTION_PROFICIENCIES].add_fields(PROFICIENCY_FIELDS, local, imported)
    sections[SECTION_PERSONALITY].add_fields(PERSONALITY_FIELDS, local, imported)

    sections[SECTION_RACIAL_TRAITS].add(
        'Racial Traits',
        names_summary(t.name for t in local.racial_traits),
        names_summary(t.name for t in imported.racial_traits),
    )
    sections[SECTION_NOTES].add('Notes', truncate(local.notes), truncate(imported.notes))

    rows: List[DiffRow] = []
    for name in SECTION_ORDER:
        rows.extend(sections[name].rows)
    return rows


def group_by_section(rows: Iterable[DiffRow]) -> List[Tuple[str, List[DiffRow]]]:
    """Group rows by section in section order, omitting empty sections"""
    grouped = {name: [] for name in SECTION_ORDER}
    for row in rows:
        grouped.setdefault(row.section, []).append(row)
    return [(name, section_rows) for name, section_rows in grouped.items() if section_rows]


def has_differences(rows: Iterable[DiffRow]) -> bool:
    return any(True for _ in rows)
