"""Hierarchy indexer: record each class under its parent and its interfaces."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from phpintel.index.store import HierarchyIndexStore, IndexPartition
from phpintel.reflection.base import ClassReflection, ReflectionOracle, SymbolNotFoundError

logger = logging.getLogger(__name__)


class Indexer(Protocol):
    """What an indexing worker needs: load a file, then index a class."""

    def load(self, path: str) -> None: ...

    def update(self, class_name: str) -> None: ...


class HierarchyIndexer:
    """Maintain the extends/interfaces reverse index of one project."""

    def __init__(self, oracle: ReflectionOracle, store: HierarchyIndexStore) -> None:
        self._oracle = oracle
        self._store = store

    def load(self, path: str | Path) -> None:
        """Load a source file into the oracle.

        Raises:
            FatalLoadError: If the file cannot be loaded.
        """
        self._oracle.load_file(path)

    def update(self, class_name: str) -> None:
        """Index one class; unknown classes are ignored."""
        try:
            cls = self._oracle.get_class(class_name)
        except SymbolNotFoundError as e:
            logger.debug(str(e))
            return

        parent_cls = cls.get_parent_class()
        parent = parent_cls.name if parent_cls is not None else cls.parent_name
        if parent:
            self._store.append(IndexPartition.EXTENDS, parent, cls.name)
        for interface in self.introduced_interfaces(cls):
            self._store.append(IndexPartition.INTERFACES, interface, cls.name)

    @staticmethod
    def introduced_interfaces(cls: ClassReflection) -> list[str]:
        """Transitive interfaces of ``cls`` not already implemented by its parent.

        Subclasses reach inherited interfaces through ``extends/`` instead.
        """
        parent = cls.get_parent_class()
        inherited = {name.lower() for name in parent.get_interface_names()} if parent else set()
        return [name for name in cls.get_interface_names() if name.lower() not in inherited]

    def ls(self, name: str, is_abstract: bool = False) -> list[str]:
        return self._store.ls(name, is_abstract)
