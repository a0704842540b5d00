from .feature_manager import FeatureManager
from .spell_manager import SpellManager
from .class_manager import ClassManager
from .race_manager import RaceManager
from .background_manager import BackgroundManager
from .description_manager import DescriptionManager

__all__ = [
    'FeatureManager',
    'SpellManager',
    'ClassManager',
    'RaceManager',
    'BackgroundManager',
    'DescriptionManager',
]
