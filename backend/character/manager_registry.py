"""
Central registry for all character managers.
Defines the standard set of managers and their registration order.
"""

from typing import List, Tuple, Type
from .managers import (
    FeatureManager,
    SpellManager,
    ClassManager,
    RaceManager,
    BackgroundManager,
    DescriptionManager,
)

# Managers that others call into are registered first
MANAGER_REGISTRY: List[Tuple[str, Type]] = [
    ('spell', SpellManager),            # Slots and known spells
    ('feature', FeatureManager),        # Emits FEATURE_GRANTED, calls spell
    ('class', ClassManager),            # Emits LEVEL_GAINED, calls feature
    ('race', RaceManager),              # Emits RACE_APPLIED
    ('background', BackgroundManager),  # Emits BACKGROUND_APPLIED
    ('description', DescriptionManager),
]

def get_all_manager_specs() -> List[Tuple[str, Type]]:
    """(name, class) pairs in registration order"""
    return list(MANAGER_REGISTRY)


def get_manager_names() -> List[str]:
    return [name for name, _ in MANAGER_REGISTRY]
