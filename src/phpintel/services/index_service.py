"""Index service for the class hierarchy reverse index.

Wraps the hierarchy indexer for single-class updates and queries, and drives
a full indexing run: regenerate the class map, then hand it to the batch
supervisor.
"""

from __future__ import annotations

import logging
from pathlib import Path

from phpintel.core.config import PhpIntelConfig, get_config
from phpintel.index.classmap import ComposerClassMap
from phpintel.index.indexer import HierarchyIndexer
from phpintel.index.progress import ProgressReporter
from phpintel.index.store import HierarchyIndexStore
from phpintel.index.supervisor import BatchSupervisor, IndexerFactory, IndexRunResult, WorkerIndexerFactory
from phpintel.reflection.base import ReflectionOracle

logger = logging.getLogger(__name__)


class IndexService:
    """Maintain and query the ``extends``/``interfaces`` index of a project."""

    def __init__(
        self,
        oracle: ReflectionOracle,
        root: str | Path,
        config: PhpIntelConfig | None = None,
        class_map: ComposerClassMap | None = None,
        indexer_factory: IndexerFactory | None = None,
    ) -> None:
        """Initialize the index service.

        Args:
            oracle: Reflection oracle used for single-class updates.
            root: Project root directory.
            config: Settings, defaults to the global configuration.
            class_map: Class map source, defaults to composer's for ``root``.
            indexer_factory: Builds the indexer inside worker processes,
                defaults to a tree-sitter indexer over the loaded class map.
        """
        self._root = Path(root)
        self._config = config or get_config()
        self._store = HierarchyIndexStore(self._root / self._config.index_dir_name)
        self._indexer = HierarchyIndexer(oracle, self._store)
        self._class_map = class_map or ComposerClassMap(
            self._root,
            composer_command=self._config.composer_command,
            timeout=self._config.composer_timeout,
            exclude=[self._store.root],
        )
        self._indexer_factory = indexer_factory

    def load(self, path: str | Path) -> None:
        self._indexer.load(path)

    def update(self, class_name: str) -> None:
        """Record one class under its parent and interfaces."""
        self._indexer.update(class_name)

    def ls(self, name: str, is_abstract: bool = False) -> list[str]:
        """Subclasses (``is_abstract=False``) or implementors of ``name``."""
        return self._indexer.ls(name, is_abstract)

    def index(self, progress: ProgressReporter | None = None) -> IndexRunResult:
        """Rebuild the index from the project's whole class map.

        Raises:
            ClassMapError: If the class map exists but cannot be read.
            WorkerStartupError: If indexing workers cannot build their indexer.
        """
        self._class_map.regenerate()
        entries = self._class_map.load()
        logger.info(f"Indexing {len(entries)} classes of {self._root}")

        self._store.init()
        factory = self._indexer_factory or WorkerIndexerFactory(
            index_root=str(self._store.root),
            class_map=self._class_map.as_mapping(entries),
            php_binary=self._config.php_binary,
        )
        supervisor = BatchSupervisor(
            factory,
            progress=progress,
            start_method=self._config.worker_start_method,
        )
        return supervisor.run(entries)
