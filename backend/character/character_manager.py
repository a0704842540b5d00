"""
CharacterManager - hub for the rules engine managers
Owns the character being edited, the rules registry it reads definitions
from, and transaction support for multi-step rule application
"""

from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Type
import time

from loguru import logger

from .events import EventEmitter
from .models import Character
from gamedata.lookup import DefinitionLookup
from gamedata.services.rules_registry import RulesRegistry


class Transaction:
    """Represents a set of character changes that can be committed or rolled back"""

    def __init__(self, manager: 'CharacterManager'):
        self.id = f"txn_{int(time.time() * 1000)}"
        self.manager = manager
        self.original_state = manager.character.model_copy(deep=True)
        self.changes: List[Dict[str, Any]] = []
        self.timestamp = time.time()

    def add_change(self, change_type: str, details: Dict[str, Any]):
        """Record a change in this transaction"""
        self.changes.append({
            'type': change_type,
            'details': details,
            'timestamp': time.time()
        })

    def rollback(self):
        """Restore character to state before transaction"""
        logger.info(f"Rolling back transaction {self.id}")
        self.manager.restore_state(self.original_state)

    def commit(self) -> Dict[str, Any]:
        """Finalize the transaction and return summary"""
        logger.debug(f"Committing transaction {self.id} with {len(self.changes)} changes")
        return {
            'transaction_id': self.id,
            'changes': self.changes,
            'duration': time.time() - self.timestamp
        }


class CharacterManager(EventEmitter):
    """
    Character Manager
    Managers reach the character, registry and lookup through this hub
    """

    def __init__(self, character: Character, registry: Optional[RulesRegistry] = None):
        """
        Initialize the character manager

        Args:
            character: Character to edit (mutated in place)
            registry: Rules registry holding cached rule documents
        """
        super().__init__()
        if not isinstance(character, Character):
            raise ValueError(f"character must be a Character, got {type(character)}")

        self.character = character
        self.registry = registry or RulesRegistry()
        self.lookup = DefinitionLookup(self.registry)

        self._managers: Dict[str, Any] = {}
        self._current_transaction: Optional[Transaction] = None
        self._transaction_history: List[Transaction] = []

    # --- Manager registry ---

    def register_manager(self, name: str, manager_class: Type,
                         on_register: Optional[Callable] = None):
        """
        Register a subsystem manager

        Args:
            name: Manager name (e.g., 'class', 'feature')
            manager_class: Manager class to instantiate
            on_register: Optional callback to call after registration
        """
        if not callable(manager_class):
            raise ValueError(f"Manager class {name} is not callable")

        manager_instance = manager_class(self)
        self._managers[name] = manager_instance

        if on_register:
            try:
                on_register(manager_instance)
            except Exception as e:
                logger.error(f"Error in on_register hook for {name}: {e}")

        logger.debug(f"Registered {name} manager")

    def get_manager(self, name: str):
        """
        Get a registered manager by name

        Returns:
            Manager instance or None if not registered
        """
        return self._managers.get(name)

    def unregister_manager(self, name: str):
        if name not in self._managers:
            logger.warning(f"Attempted to unregister non-existent manager: {name}")
            return
        del self._managers[name]
        logger.debug(f"Unregistered {name} manager")

    def get_all_managers(self) -> Dict[str, Any]:
        return dict(self._managers)

    # --- Transactions ---

    def begin_transaction(self) -> Transaction:
        """Start a new transaction for atomic changes"""
        if self._current_transaction:
            raise RuntimeError("Transaction already in progress")

        self._current_transaction = Transaction(self)
        logger.debug(f"Started transaction {self._current_transaction.id}")
        return self._current_transaction

    def commit_transaction(self) -> Dict[str, Any]:
        """Commit the current transaction"""
        if not self._current_transaction:
            raise RuntimeError("No transaction in progress")

        result = self._current_transaction.commit()
        self._transaction_history.append(self._current_transaction)
        self._current_transaction = None
        return result

    def rollback_transaction(self):
        """Rollback the current transaction"""
        if not self._current_transaction:
            raise RuntimeError("No transaction in progress")

        self._current_transaction.rollback()
        self._current_transaction = None

    @contextmanager
    def transaction(self) -> Iterator[Transaction]:
        """
        Run a block as one transaction

        Nested use joins the outer transaction. Any exception rolls the
        character back to the snapshot and is re-raised.
        """
        if self._current_transaction:
            yield self._current_transaction
            return

        txn = self.begin_transaction()
        try:
            yield txn
        except Exception:
            self.rollback_transaction()
            raise
        self.commit_transaction()

    def record_change(self, change_type: str, details: Dict[str, Any]):
        if self._current_transaction:
            self._current_transaction.add_change(change_type, details)

    def restore_state(self, snapshot: Character):
        """Copy every field of snapshot onto the managed character in place"""
        for field_name in Character.model_fields:
            setattr(self.character, field_name, getattr(snapshot, field_name))

    def undo_last_change(self) -> bool:
        """
        Undo the last committed transaction

        Returns:
            True if undo was successful, False if no transaction to undo
        """
        if not self._transaction_history:
            logger.warning("No transaction history to undo")
            return False

        last_transaction = self._transaction_history.pop()
        self.restore_state(last_transaction.original_state.model_copy(deep=True))
        logger.info(f"Undone transaction {last_transaction.id}")
        return True

    def get_transaction_history(self) -> List[Dict[str, Any]]:
        return [
            {
                'id': txn.id,
                'timestamp': txn.timestamp,
                'changes': txn.changes,
                'change_count': len(txn.changes)
            }
            for txn in self._transaction_history
        ]

    # --- Rule application ---

    def request_documents(self) -> List[Any]:
        """Start fetches for every referenced rule document not yet cached"""
        return self.registry.fetch_missing(self.registry.referenced_documents(self.character))

    def apply_pending(self) -> Dict[str, Any]:
        """
        Apply everything the cached rule documents allow

        Fetches are requested for missing documents; anything that depends on
        a document still loading is left for a later call.

        Returns:
            Summary of what was applied
        """
        self.request_documents()
        summary = {'levels': {}, 'race': False, 'background': False}

        with self.transaction():
            # Ability modifiers first so hit points see the final CON
            identity = self.character.identity
            race_manager = self.get_manager('race')
            if race_manager and identity.race and not identity.race_applied:
                summary['race'] = race_manager.apply_race_by_name(identity.race)

            background_manager = self.get_manager('background')
            if background_manager and identity.background and not identity.background_applied:
                summary['background'] = background_manager.apply_background_by_name(identity.background)

            class_manager = self.get_manager('class')
            if class_manager:
                for class_level in list(self.character.identity.classes):
                    if not class_level.class_name:
                        continue
                    applied = class_manager.apply_class_levels(class_level.class_name)
                    summary['levels'][class_level.class_name] = applied

            description_manager = self.get_manager('description')
            if description_manager:
                description_manager.fill_descriptions()

        return summary
