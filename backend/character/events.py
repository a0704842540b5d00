"""
Event system for character management
Provides pub/sub pattern so callers can observe engine mutations
"""

from typing import Dict, List, Callable, Optional
from dataclasses import dataclass, field
from enum import Enum
from loguru import logger


class EventType(Enum):
    """Standard event types for character management"""
    LEVEL_GAINED = 'level_gained'
    FEATURE_GRANTED = 'feature_granted'
    SPELLS_CHANGED = 'spells_changed'
    RACE_APPLIED = 'race_applied'
    BACKGROUND_APPLIED = 'background_applied'
    CHARACTER_IMPORTED = 'character_imported'


@dataclass
class EventData:
    """Base class for event data"""
    event_type: EventType
    source_manager: str
    timestamp: float

    def validate(self) -> bool:
        """Validate event data"""
        return True


@dataclass
class LevelGainedEvent(EventData):
    """Data for applied class levels"""
    class_name: str = ''
    level: int = 0
    hp_gained: int = 0
    features_applied: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.event_type = EventType.LEVEL_GAINED

    def validate(self) -> bool:
        return bool(self.class_name) and self.level >= 1


@dataclass
class FeatureGrantedEvent(EventData):
    """Data for a feature newly added to the character"""
    feature_name: str = ''
    level: int = 0

    def __post_init__(self):
        self.event_type = EventType.FEATURE_GRANTED


@dataclass
class SpellsChangedEvent(EventData):
    """Data for spell list growth on a spellcasting feature"""
    feature_name: str = ''
    added: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.event_type = EventType.SPELLS_CHANGED


@dataclass
class OriginAppliedEvent(EventData):
    """Data for race or background application"""
    name: str = ''
    features_applied: List[str] = field(default_factory=list)


class EventEmitter:
    """Base class for objects that can emit and listen to events"""

    def __init__(self):
        self._observers: Dict[EventType, List[Callable]] = {}
        self._event_history: List[EventData] = []

    def on(self, event_type: EventType, callback: Callable[[EventData], None]):
        """
        Register a callback for an event type

        Args:
            event_type: The type of event to listen for
            callback: Function to call when event is emitted
        """
        self._observers.setdefault(event_type, []).append(callback)
        logger.debug(f"Registered callback for {event_type.value}")

    def off(self, event_type: EventType, callback: Callable[[EventData], None]):
        """
        Unregister a callback for an event type

        Args:
            event_type: The type of event
            callback: The callback to remove
        """
        if event_type in self._observers:
            try:
                self._observers[event_type].remove(callback)
                logger.debug(f"Unregistered callback for {event_type.value}")
            except ValueError:
                pass  # Callback not in list

    def emit(self, event_data: EventData):
        """
        Emit an event to all registered observers

        Args:
            event_data: Event to deliver
        """
        if not event_data.validate():
            logger.error(f"Invalid event data for {event_data.event_type}")
            return

        self._event_history.append(event_data)

        for callback in self._observers.get(event_data.event_type, []):
            try:
                callback(event_data)
            except Exception as e:
                logger.error(f"Error in event callback for {event_data.event_type.value}: {e}")

    def get_event_history(self, event_type: Optional[EventType] = None) -> List[EventData]:
        """
        Get history of emitted events

        Args:
            event_type: Optional filter by event type

        Returns:
            List of event data
        """
        if event_type:
            return [e for e in self._event_history if e.event_type == event_type]
        return self._event_history.copy()

    def clear_event_history(self):
        """Clear the event history"""
        self._event_history.clear()
