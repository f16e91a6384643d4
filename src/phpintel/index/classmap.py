"""Project class map: class name -> declaring source file.

The authoritative source is Composer's optimized autoloader
(``vendor/composer/autoload_classmap.php``). Projects without one are
scanned with tree-sitter instead.
"""

from __future__ import annotations

import logging
import re
import subprocess
from pathlib import Path

import tree_sitter_php as tsphp
from tree_sitter import Language, Parser

from phpintel.adapters.php.scanner import PhpScanner
from phpintel.core.models import ClassMapEntry

logger = logging.getLogger(__name__)

CLASSMAP_RELATIVE_PATH = Path("vendor") / "composer" / "autoload_classmap.php"

_ENTRY_PATTERN = re.compile(
    r"^\s*'(?P<class>(?:[^'\\]|\\.)*)'\s*=>\s*"
    r"(?:\$(?P<base>vendorDir|baseDir)\s*\.\s*)?"
    r"'(?P<path>(?:[^'\\]|\\.)*)'\s*,?\s*$",
    re.MULTILINE,
)
_ESCAPE_PATTERN = re.compile(r"\\([\\'])")


class ClassMapError(RuntimeError):
    """The class map exists but cannot be read."""


def _unescape(literal: str) -> str:
    return _ESCAPE_PATTERN.sub(r"\1", literal)


def parse_classmap(text: str, vendor_dir: Path, base_dir: Path) -> list[ClassMapEntry]:
    """Parse the PHP array literal Composer writes into ``autoload_classmap.php``."""
    entries: list[ClassMapEntry] = []
    for match in _ENTRY_PATTERN.finditer(text):
        path = _unescape(match.group("path"))
        base = match.group("base")
        if base == "vendorDir":
            path = str(vendor_dir) + path
        elif base == "baseDir":
            path = str(base_dir) + path
        entries.append(ClassMapEntry(class_name=_unescape(match.group("class")), path=path))
    return entries


class ComposerClassMap:
    """Regenerate and load a project's class map."""

    def __init__(
        self,
        root: str | Path,
        composer_command: str = "composer",
        timeout: int = 300,
        exclude: list[str | Path] | None = None,
    ) -> None:
        self._root = Path(root)
        self._composer_command = composer_command
        self._timeout = timeout
        self._exclude = [Path(p) for p in exclude or []]

    @property
    def classmap_path(self) -> Path:
        return self._root / CLASSMAP_RELATIVE_PATH

    def regenerate(self) -> bool:
        """Run ``composer dump-autoload -o``; failures are logged, not raised.

        Returns:
            True if composer succeeded.
        """
        command = [self._composer_command, "dump-autoload", "-o", "-d", str(self._root)]
        try:
            result = subprocess.run(
                command,
                cwd=self._root,
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except FileNotFoundError:
            logger.warning(f"{self._composer_command} not found, using the existing class map")
            return False
        except subprocess.TimeoutExpired:
            logger.warning(f"{' '.join(command)} timed out after {self._timeout}s")
            return False

        if result.returncode != 0:
            logger.warning(
                f"composer dump-autoload exited with code {result.returncode}\n"
                f"stderr: {result.stderr}"
            )
            return False
        return True

    def load(self) -> list[ClassMapEntry]:
        """Current class map, scanned from sources when composer has none.

        Raises:
            ClassMapError: If the class map file exists but cannot be read.
        """
        path = self.classmap_path
        if not path.is_file():
            logger.info(f"No {CLASSMAP_RELATIVE_PATH} in {self._root}, scanning sources")
            return self.scan()

        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ClassMapError(f"Cannot read {path}: {e}") from e

        vendor_dir = path.parent.parent
        return parse_classmap(text, vendor_dir=vendor_dir, base_dir=vendor_dir.parent)

    def scan(self) -> list[ClassMapEntry]:
        """Build the class map by parsing every PHP file of the project."""
        scanner = PhpScanner(Parser(Language(tsphp.language_php())))
        entries: list[ClassMapEntry] = []
        for declarations in scanner.scan_directory(self._root, exclude=self._exclude):
            for cls in declarations.classes:
                entries.append(ClassMapEntry(class_name=cls.name, path=declarations.path))
        return entries

    def as_mapping(self, entries: list[ClassMapEntry] | None = None) -> dict[str, str]:
        return {e.class_name: e.path for e in (entries if entries is not None else self.load())}
