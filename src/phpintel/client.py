"""Public client interface for phpintel.

This module provides a stable, ergonomic entrypoint for external callers: one
client per PHP project root, owning the reflection oracle and the services
built on it.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from phpintel.adapters.php.oracle import TreeSitterOracle
from phpintel.adapters.php.runtime import PhpRuntime
from phpintel.core.config import PhpIntelConfig, get_config
from phpintel.core.matcher import Matcher
from phpintel.core.models import CompletionItem, DocResult, Location, SourceFileFacts, StaticMode
from phpintel.index.classmap import ClassMapError, ComposerClassMap
from phpintel.index.progress import ProgressReporter
from phpintel.index.supervisor import IndexRunResult
from phpintel.reflection.base import ReflectionOracle
from phpintel.services.index_service import IndexService
from phpintel.services.symbol_service import SymbolService

if TYPE_CHECKING:
    from types import TracebackType

logger = logging.getLogger(__name__)


class PhpIntelClient:
    """High-level client for one project that exposes the query and index services."""

    def __init__(
        self,
        root: str | Path = ".",
        *,
        config: PhpIntelConfig | None = None,
        oracle: ReflectionOracle | None = None,
    ) -> None:
        """Create a client.

        Args:
            root: Project root (directory holding composer.json).
            config: Optional settings, defaults to the global configuration.
            oracle: Optional pre-built oracle; by default a tree-sitter oracle
                autoloading from the project's class map is created lazily.
        """
        self._root = Path(root).resolve()
        self._config = config or get_config()
        self._oracle = oracle
        self._class_map = ComposerClassMap(
            self._root,
            composer_command=self._config.composer_command,
            timeout=self._config.composer_timeout,
            exclude=[self._root / self._config.index_dir_name],
        )

        self._symbols: SymbolService | None = None
        self._index: IndexService | None = None

    @property
    def root(self) -> Path:
        return self._root

    @property
    def config(self) -> PhpIntelConfig:
        return self._config

    @property
    def oracle(self) -> ReflectionOracle:
        """Reflection oracle, autoloading classes from the project's class map."""
        if self._oracle is None:
            runtime = PhpRuntime(self._config.php_binary, enabled=self._config.load_builtins)
            try:
                class_map = self._class_map.as_mapping()
            except ClassMapError as e:
                logger.warning(f"{e}; classes will only be found once their file is loaded")
                class_map = {}
            self._oracle = TreeSitterOracle(runtime=runtime, class_map=class_map)
        return self._oracle

    @property
    def symbols(self) -> SymbolService:
        """Completion, navigation and type queries."""
        if self._symbols is None:
            self._symbols = SymbolService(
                self.oracle, self._root, matcher=Matcher(self._config.match_type)
            )
        return self._symbols

    @property
    def index(self) -> IndexService:
        """Hierarchy index maintenance and queries."""
        if self._index is None:
            self._index = IndexService(
                self.oracle, self._root, config=self._config, class_map=self._class_map
            )
        return self._index

    # Query-side shortcuts, one per exposed method

    def info(
        self,
        class_name: str | None,
        pattern: str | None,
        static_mode: StaticMode | str = StaticMode.BOTH,
        public_only: bool = True,
    ) -> list[CompletionItem]:
        return self.symbols.info(class_name, pattern, static_mode, public_only)

    def location(self, class_name: str | None, member_name: str | None = None) -> Location:
        return self.symbols.location(class_name, member_name)

    def doc(self, class_name: str | None, name: str, is_method: bool = True) -> DocResult:
        return self.symbols.doc(class_name, name, is_method)

    def nsuse(self, path: str | Path) -> SourceFileFacts:
        return self.symbols.nsuse(path)

    def functype(self, class_name: str | None, name: str) -> list[str]:
        return self.symbols.functype(class_name, name)

    def proptype(self, class_name: str | None, name: str) -> list[str]:
        return self.symbols.proptype(class_name, name)

    def psr4ns(self, path: str | Path) -> list[str]:
        return self.symbols.psr4ns(path)

    def update(self, class_name: str) -> None:
        self.index.update(class_name)

    def ls(self, name: str, is_abstract: bool = False) -> list[str]:
        return self.index.ls(name, is_abstract)

    def run_index(self, progress: ProgressReporter | None = None) -> IndexRunResult:
        return self.index.index(progress)

    def close(self) -> None:
        """Drop cached services and parsed sources."""
        self._symbols = None
        self._index = None

    def __enter__(self) -> PhpIntelClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
