"""
Factory functions for creating properly configured CharacterManager instances.
"""

from typing import Optional

from loguru import logger

from .character_manager import CharacterManager
from .manager_registry import get_all_manager_specs
from .models import Character
from gamedata.services.rules_registry import RulesRegistry


def create_character_manager(
    character: Optional[Character] = None,
    registry: Optional[RulesRegistry] = None,
) -> CharacterManager:
    """
    Create a CharacterManager with every manager registered

    Args:
        character: Character to manage (a new default sheet if omitted)
        registry: Rules registry shared across characters

    Returns:
        CharacterManager instance with all managers registered
    """
    manager = CharacterManager(character if character is not None else Character(), registry)

    for name, manager_class in get_all_manager_specs():
        try:
            manager.register_manager(name, manager_class)
        except Exception as e:
            logger.error(f"Failed to register {name} manager: {e}")
            raise RuntimeError(f"Could not create {name} manager: {e}")

    logger.debug(f"Created CharacterManager with {len(manager.get_all_managers())} managers registered")
    return manager
