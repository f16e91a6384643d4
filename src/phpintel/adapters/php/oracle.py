"""Reflection oracle backed by tree-sitter-php.

Files are parsed on demand. A class that has not been loaded yet is looked up
in the project's class map and its file is parsed the first time the class is
asked for, which mirrors how an autoloader populates a live PHP process.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping
from pathlib import Path

import tree_sitter_php as tsphp
from tree_sitter import Language, Parser

from phpintel.adapters.php.runtime import PhpRuntime
from phpintel.adapters.php.scanner import PhpScanner
from phpintel.reflection.base import FatalLoadError, ReflectionOracle, normalize_name
from phpintel.reflection.models import ClassDecl, ConstantDecl, FileDeclarations, FunctionDecl

logger = logging.getLogger(__name__)


class TreeSitterOracle(ReflectionOracle):
    """Static reflection over parsed PHP sources."""

    def __init__(
        self,
        runtime: PhpRuntime | None = None,
        class_map: Mapping[str, str] | None = None,
    ) -> None:
        self._language = Language(tsphp.language_php())
        self._parser = Parser(self._language)
        self._scanner = PhpScanner(self._parser)
        self._runtime = runtime or PhpRuntime(enabled=False)

        self._files: dict[str, tuple[float, FileDeclarations]] = {}
        self._classes: dict[str, ClassDecl] = {}
        self._functions: dict[str, FunctionDecl] = {}
        self._constants: dict[str, ConstantDecl] = {}
        self._class_map: dict[str, str] = {}
        if class_map:
            self.set_class_map(class_map)

    def set_class_map(self, class_map: Mapping[str, str]) -> None:
        """Replace the autoload map (class name -> source file)."""
        self._class_map = {normalize_name(name).lower(): path for name, path in class_map.items()}

    def load_file(self, path: str | Path) -> None:
        file_path = Path(path)
        key = os.path.realpath(file_path)
        try:
            mtime = file_path.stat().st_mtime
            cached = self._files.get(key)
            if cached is not None and cached[0] == mtime:
                return
            declarations = self._scanner.scan_file(file_path)
        except (OSError, ValueError) as exc:
            raise FatalLoadError(str(path), str(exc)) from exc

        self._forget(key)
        self._files[key] = (mtime, declarations)
        self.register(declarations)

    def load_directory(self, root: str | Path, exclude: Iterable[str | Path] = ()) -> int:
        """Parse every PHP file below ``root``; returns the number of files loaded."""
        loaded = 0
        for declarations in self._scanner.scan_directory(
            Path(root), exclude=[Path(p) for p in exclude]
        ):
            key = os.path.realpath(declarations.path)
            self._forget(key)
            try:
                mtime = Path(declarations.path).stat().st_mtime
            except OSError:
                mtime = 0.0
            self._files[key] = (mtime, declarations)
            self.register(declarations)
            loaded += 1
        return loaded

    def register(self, declarations: FileDeclarations) -> None:
        """Make a file's declarations visible; later declarations win."""
        for cls in declarations.classes:
            self._classes[cls.name.lower()] = cls
        for fn in declarations.functions:
            self._functions[fn.name.lower()] = fn
        for constant in declarations.constants:
            self._constants[constant.name] = constant

    def _forget(self, key: str) -> None:
        cached = self._files.pop(key, None)
        if cached is None:
            return
        _, declarations = cached
        for cls in declarations.classes:
            if self._classes.get(cls.name.lower()) is cls:
                del self._classes[cls.name.lower()]
        for fn in declarations.functions:
            if self._functions.get(fn.name.lower()) is fn:
                del self._functions[fn.name.lower()]
        for constant in declarations.constants:
            if self._constants.get(constant.name) is constant:
                del self._constants[constant.name]

    def find_class_decl(self, name: str) -> ClassDecl | None:
        key = normalize_name(name).lower()
        decl = self._classes.get(key)
        if decl is not None:
            return decl

        path = self._class_map.get(key)
        if path is None:
            return None
        try:
            self.load_file(path)
        except FatalLoadError as exc:
            logger.debug(f"Autoload of {name} failed: {exc}")
            return None
        return self._classes.get(key)

    def find_function_decl(self, name: str) -> FunctionDecl | None:
        key = normalize_name(name).lower()
        return self._functions.get(key) or self._runtime.functions.get(key)

    def defined_functions(self) -> dict[str, list[str]]:
        return {
            "internal": self._runtime.function_names(),
            "user": [fn.name.lower() for fn in self._functions.values()],
        }

    def defined_constants(self) -> dict[str, str]:
        constants = {name: c.value for name, c in self._runtime.constants().items()}
        constants.update((name, c.value) for name, c in self._constants.items())
        return constants
