"""Class hierarchy reverse index and its batch indexer."""

from phpintel.index.classmap import ClassMapError, ComposerClassMap, parse_classmap
from phpintel.index.indexer import HierarchyIndexer, Indexer
from phpintel.index.progress import NullProgress, ProgressReporter, RichProgress
from phpintel.index.store import HierarchyIndexStore, IndexPartition, index_key
from phpintel.index.supervisor import (
    BatchSupervisor,
    IndexerFactory,
    IndexRunResult,
    WorkerIndexerFactory,
    WorkerStartupError,
    run_worker,
)

__all__ = [
    "BatchSupervisor",
    "ClassMapError",
    "ComposerClassMap",
    "HierarchyIndexStore",
    "HierarchyIndexer",
    "IndexPartition",
    "IndexRunResult",
    "Indexer",
    "IndexerFactory",
    "NullProgress",
    "ProgressReporter",
    "RichProgress",
    "WorkerIndexerFactory",
    "WorkerStartupError",
    "index_key",
    "parse_classmap",
    "run_worker",
]
