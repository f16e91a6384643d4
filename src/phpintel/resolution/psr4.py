"""Derive PSR-4 namespaces for a file from the project's composer.json."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class Psr4Resolver:
    """Map file paths to namespaces using composer autoload declarations."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    def mappings(self) -> dict[str, list[str]]:
        """Merged ``autoload`` and ``autoload-dev`` PSR-4 mappings."""
        composer = self._read_composer()
        merged: dict[str, list[str]] = {}
        for section in ("autoload", "autoload-dev"):
            psr4 = composer.get(section, {}).get("psr-4", {})
            if not isinstance(psr4, dict):
                continue
            for namespace, paths in psr4.items():
                merged.setdefault(namespace, []).extend(_as_list(paths))
        return merged

    def namespaces_for(self, path: str | Path) -> list[str]:
        """Candidate namespaces for ``path``, longest matching directory first."""
        directory = os.path.dirname(os.path.realpath(path))

        candidates: list[tuple[int, str]] = []
        for namespace, paths in self.mappings().items():
            for base in paths:
                base_dir = os.path.realpath(self._root / base)
                if directory != base_dir and not directory.startswith(base_dir.rstrip(os.sep) + os.sep):
                    continue
                sub_path = directory[len(base_dir):].replace(os.sep, "\\").strip("\\")
                prefix = namespace.strip("\\")
                parts = [p for p in (prefix, sub_path) if p]
                candidates.append((len(base_dir), "\\".join(parts)))

        candidates.sort(key=lambda item: item[0], reverse=True)
        return list(dict.fromkeys(name for _, name in candidates))

    def _read_composer(self) -> dict[str, Any]:
        composer_path = self._root / "composer.json"
        try:
            data = json.loads(composer_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as exc:
            logger.debug(f"Cannot read {composer_path}: {exc}")
            return {}
        return data if isinstance(data, dict) else {}


def _as_list(paths: Any) -> list[str]:
    if isinstance(paths, str):
        return [paths]
    if isinstance(paths, list):
        return [p for p in paths if isinstance(p, str)]
    return []
