"""
Shared fixtures for the character manager test suites
"""
import pytest

from character.enums import Ability
from character.factory import create_character_manager
from character.models import Character, ClassLevel
from tests.fixtures.rule_documents import loaded_registry


@pytest.fixture
def registry():
    """Rules registry with all test documents cached"""
    registry = loaded_registry()
    yield registry
    registry.shutdown(wait=False)


@pytest.fixture
def monk_character():
    """Level 1 monk with CON 14"""
    character = Character()
    character.identity.name = 'Brother Lin'
    character.identity.classes = [ClassLevel(class_name='Monk', level=1)]
    character.abilities.set(Ability.CONSTITUTION, 14)
    return character


@pytest.fixture
def wizard_character():
    character = Character()
    character.identity.name = 'Elminster'
    character.identity.classes = [ClassLevel(class_name='Wizard', level=1)]
    character.abilities.set(Ability.INTELLIGENCE, 16)
    return character


@pytest.fixture
def monk_manager(monk_character, registry):
    return create_character_manager(monk_character, registry)


@pytest.fixture
def wizard_manager(wizard_character, registry):
    return create_character_manager(wizard_character, registry)
