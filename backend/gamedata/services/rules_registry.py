"""
Rules Registry - fetch-and-cache boundary for rule documents

Rule documents (classes, races, backgrounds, spell lists) are retrieved by
name from URLs listed in an index document and cached in memory by name.
Fetches are fire-and-forget on a worker pool; at most one fetch is in flight
per document name. Lookups never fail: an uncached document is simply None.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Set, Tuple, Type

import requests
from loguru import logger
from pydantic import BaseModel, ValidationError

from gamedata.models import (
    BackgroundDefinition,
    ClassDefinition,
    IndexEntry,
    RaceDefinition,
    RulesIndex,
    SpellListDefinition,
)

if TYPE_CHECKING:
    from character.models import Character


class DocumentKind(str, Enum):
    CLASS = 'class'
    RACE = 'race'
    BACKGROUND = 'background'
    SPELL_LIST = 'spell_list'


DOCUMENT_MODELS: Dict[DocumentKind, Type[BaseModel]] = {
    DocumentKind.CLASS: ClassDefinition,
    DocumentKind.RACE: RaceDefinition,
    DocumentKind.BACKGROUND: BackgroundDefinition,
    DocumentKind.SPELL_LIST: SpellListDefinition,
}

INDEX_SECTIONS: Dict[DocumentKind, str] = {
    DocumentKind.CLASS: 'classes',
    DocumentKind.RACE: 'races',
    DocumentKind.BACKGROUND: 'backgrounds',
    DocumentKind.SPELL_LIST: 'spell_lists',
}


class RulesRegistry:
    """Name-keyed caches of rule documents with lazy background fetching"""

    def __init__(self, base_url: str = '', session: Optional[requests.Session] = None,
                 timeout: float = 10.0, max_workers: int = 4):
        """
        Initialize the registry

        Args:
            base_url: Base URL that relative index paths are joined to
            session: Optional requests session (shared connection pool)
            timeout: Per-request timeout in seconds
            max_workers: Size of the fetch worker pool
        """
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout
        self.index: Optional[RulesIndex] = None

        self._caches: Dict[DocumentKind, Dict[str, BaseModel]] = {kind: {} for kind in DocumentKind}
        self._in_flight: Set[Tuple[DocumentKind, str]] = set()
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix='rules-fetch')

    # --- Index ---

    def url_for(self, path: str) -> str:
        if path.startswith(('http://', 'https://')) or not self.base_url:
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def _get_json(self, url: str) -> Any:
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def load_index(self, path: str = 'index.json') -> bool:
        """
        Fetch the index document synchronously

        Returns:
            True if the index was loaded, False on any failure
        """
        url = self.url_for(path)
        try:
            self.index = RulesIndex.model_validate(self._get_json(url))
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Failed to load rules index from {url}: {e}")
            return False
        logger.info(f"Loaded rules index: {len(self.index.classes)} classes, "
                    f"{len(self.index.races)} races, {len(self.index.backgrounds)} backgrounds")
        return True

    def set_index(self, index: RulesIndex) -> None:
        self.index = index

    def index_entries(self, kind: DocumentKind) -> List[IndexEntry]:
        if self.index is None:
            return []
        return list(getattr(self.index, INDEX_SECTIONS[kind]))

    def _index_entry(self, kind: DocumentKind, name: str) -> Optional[IndexEntry]:
        return next((e for e in self.index_entries(kind) if e.name == name), None)

    # --- Cache access ---

    def register(self, kind: DocumentKind, definition: BaseModel) -> None:
        """Place an already parsed document into the cache"""
        with self._lock:
            self._caches[kind][definition.name] = definition

    def get(self, kind: DocumentKind, name: Optional[str]) -> Optional[BaseModel]:
        if not name:
            return None
        with self._lock:
            return self._caches[kind].get(name)

    def get_class(self, name: Optional[str]) -> Optional[ClassDefinition]:
        return self.get(DocumentKind.CLASS, name)

    def get_race(self, name: Optional[str]) -> Optional[RaceDefinition]:
        return self.get(DocumentKind.RACE, name)

    def get_background(self, name: Optional[str]) -> Optional[BackgroundDefinition]:
        return self.get(DocumentKind.BACKGROUND, name)

    def get_spell_list(self, name: Optional[str]) -> Optional[SpellListDefinition]:
        return self.get(DocumentKind.SPELL_LIST, name)

    def is_cached(self, kind: DocumentKind, name: str) -> bool:
        return self.get(kind, name) is not None

    def is_in_flight(self, kind: DocumentKind, name: str) -> bool:
        with self._lock:
            return (kind, name) in self._in_flight

    # --- Fetching ---

    def fetch(self, kind: DocumentKind, name: Optional[str]) -> Optional[Future]:
        """
        Request a document by name

        A request for a cached, in-flight, empty or unindexed name is a no-op.

        Returns:
            Future of the background fetch, or None if nothing was started
        """
        if not name:
            return None

        with self._lock:
            if name in self._caches[kind] or (kind, name) in self._in_flight:
                return None
            entry = self._index_entry(kind, name)
            if entry is None:
                logger.warning(f"No index entry for {kind.value} '{name}'")
                return None
            self._in_flight.add((kind, name))

        url = self.url_for(entry.url)
        logger.debug(f"Fetching {kind.value} '{name}' from {url}")
        return self._executor.submit(self._fetch_document, kind, name, url)

    def _fetch_document(self, kind: DocumentKind, name: str, url: str) -> bool:
        definition = None
        try:
            definition = DOCUMENT_MODELS[kind].model_validate(self._get_json(url))
        except ValidationError as e:
            logger.error(f"Malformed {kind.value} document '{name}': {e}")
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Failed to fetch {kind.value} definition '{name}': {e}")
        finally:
            # Cache and clear the in-flight mark under one lock
            with self._lock:
                self._in_flight.discard((kind, name))
                if definition is not None:
                    self._caches[kind][name] = definition

        if definition is None:
            return False
        logger.info(f"Cached {kind.value} definition '{name}'")
        return True

    def referenced_documents(self, character: 'Character') -> List[Tuple[DocumentKind, str]]:
        """Documents the character refers to, including spell lists of cached classes"""
        wanted: List[Tuple[DocumentKind, str]] = []
        for class_level in character.identity.classes:
            if class_level.class_name:
                wanted.append((DocumentKind.CLASS, class_level.class_name))
        if character.identity.race:
            wanted.append((DocumentKind.RACE, character.identity.race))
        if character.identity.background:
            wanted.append((DocumentKind.BACKGROUND, character.identity.background))

        for class_level in character.identity.classes:
            class_def = self.get_class(class_level.class_name)
            if class_def is None:
                continue
            for _, feature_def in class_def.visible_features(class_level.subclass):
                if feature_def.spells is not None and feature_def.spells.spell_list:
                    wanted.append((DocumentKind.SPELL_LIST, feature_def.spells.spell_list))
        return wanted

    def fetch_missing(self, documents: Iterable[Tuple[DocumentKind, str]]) -> List[Future]:
        futures = []
        for kind, name in documents:
            future = self.fetch(kind, name)
            if future is not None:
                futures.append(future)
        return futures

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
