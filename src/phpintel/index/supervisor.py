"""Crash-resilient batch indexing.

Reflecting an arbitrary class can take a process down, so the class map is
indexed by a chain of worker processes. Each worker generation receives the
remaining batch, processes entries from its head and, whether it finishes or
dies from an exception, sends back exactly one message: the entries it has
not started yet. The entry in flight when a worker fails is lost; everything
else is retried by the next generation. Only one worker is alive at a time.
A worker that cannot build its indexer stops the whole run.
"""

from __future__ import annotations

import logging
import multiprocessing
import signal
import sys
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from multiprocessing.connection import Connection
from multiprocessing.sharedctypes import Synchronized
from pathlib import Path
from types import FrameType

from phpintel.adapters.php.oracle import TreeSitterOracle
from phpintel.adapters.php.runtime import PhpRuntime
from phpintel.core.config import StartMethod
from phpintel.core.models import ClassMapEntry
from phpintel.index.indexer import HierarchyIndexer, Indexer
from phpintel.index.progress import NullProgress, ProgressReporter
from phpintel.index.store import HierarchyIndexStore

logger = logging.getLogger(__name__)

IndexerFactory = Callable[[], Indexer]

WORKER_FAILURE_EXIT_CODE = 70
WORKER_STARTUP_EXIT_CODE = 71


class WorkerStartupError(Exception):
    """Raised when a worker cannot build its indexer, so no entry can be processed."""


@dataclass
class IndexRunResult:
    """Outcome of one indexing run."""

    total: int
    generations: int = 0
    failed: list[ClassMapEntry] = field(default_factory=list)
    abandoned: int = 0

    @property
    def indexed(self) -> int:
        return self.total - len(self.failed)

    @property
    def success(self) -> bool:
        return not self.failed


@dataclass
class WorkerIndexerFactory:
    """Picklable recipe for the indexer used inside a worker process."""

    index_root: str
    class_map: dict[str, str] = field(default_factory=dict)
    php_binary: str = "php"
    load_builtins: bool = False

    def __call__(self) -> HierarchyIndexer:
        oracle = TreeSitterOracle(
            runtime=PhpRuntime(self.php_binary, enabled=self.load_builtins),
            class_map=self.class_map,
        )
        return HierarchyIndexer(oracle, HierarchyIndexStore(Path(self.index_root)))


def _terminate(signum: int, frame: FrameType | None) -> None:
    raise SystemExit(128 + signum)


def run_worker(
    factory: IndexerFactory,
    batch: list[ClassMapEntry],
    sender: Connection,
    consumed: Synchronized | None = None,
) -> None:
    """Worker process body: index ``batch`` and hand back what is left."""
    signal.signal(signal.SIGTERM, _terminate)
    remaining = list(batch)
    try:
        indexer = factory()
    except Exception as exc:
        logger.error(f"Indexing worker could not build its indexer: {exc!r}")
        sender.send(remaining)
        sender.close()
        sys.exit(WORKER_STARTUP_EXIT_CODE)

    try:
        while remaining:
            entry = remaining.pop(0)
            if consumed is not None:
                consumed.value += 1
            indexer.load(entry.path)
            indexer.update(entry.class_name)
    except BaseException as exc:
        logger.warning(f"Indexing worker failed, {len(remaining)} entries handed back: {exc!r}")
        sender.send(remaining)
        sender.close()
        sys.exit(WORKER_FAILURE_EXIT_CODE)

    sender.send([])
    sender.close()


class BatchSupervisor:
    """Drive worker generations until the batch is exhausted."""

    def __init__(
        self,
        indexer_factory: IndexerFactory,
        progress: ProgressReporter | None = None,
        start_method: StartMethod | str = StartMethod.FORK,
    ) -> None:
        self._factory = indexer_factory
        self._progress = progress or NullProgress()
        self._context = multiprocessing.get_context(StartMethod(start_method).value)

    def run(self, batch: Sequence[ClassMapEntry]) -> IndexRunResult:
        """Index ``batch``, retrying after worker failures.

        Raises:
            WorkerStartupError: If a worker cannot build its indexer.
        """
        pending = list(batch)
        result = IndexRunResult(total=len(pending))

        self._progress.open(len(pending))
        try:
            while pending:
                remaining = self._run_generation(pending, result)
                self._progress.increment(len(pending) - len(remaining))
                pending = remaining
        finally:
            self._progress.close()

        if result.failed:
            logger.warning(
                f"Indexed {result.indexed}/{result.total} classes, "
                f"{len(result.failed)} lost to worker crashes"
            )
        return result

    def _run_generation(
        self, pending: list[ClassMapEntry], result: IndexRunResult
    ) -> list[ClassMapEntry]:
        """Run one worker over ``pending`` and return the entries still to do."""
        receiver, sender = self._context.Pipe(duplex=False)
        consumed = self._context.Value("i", 0)
        worker = self._context.Process(
            target=run_worker,
            args=(self._factory, pending, sender, consumed),
            daemon=True,
        )
        worker.start()
        sender.close()
        result.generations += 1

        try:
            handed_back: list[ClassMapEntry] | None = receiver.recv()
        except EOFError:
            handed_back = None
        finally:
            receiver.close()
        worker.join()

        if handed_back is None:
            # Died without a hand-off: resume after the entry it was working on
            result.abandoned += 1
            started = max(consumed.value, 1)
            logger.warning(
                f"Indexing worker exited with code {worker.exitcode} without a hand-off"
            )
            result.failed.append(pending[started - 1])
            return pending[started:]

        if worker.exitcode == WORKER_STARTUP_EXIT_CODE:
            raise WorkerStartupError(
                f"Indexing worker could not build its indexer, "
                f"{len(pending)} of {result.total} classes left unindexed"
            )

        if len(handed_back) >= len(pending):
            result.failed.append(pending[0])
            return pending[1:]

        if worker.exitcode != 0:
            lost = pending[len(pending) - len(handed_back) - 1]
            logger.warning(f"Lost {lost.class_name} ({lost.path}) to a worker crash")
            result.failed.append(lost)
        return handed_back
