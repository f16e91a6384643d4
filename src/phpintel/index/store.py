"""On-disk reverse hierarchy index.

Layout under the index root::

    extends/<Key>      JSON array of classes extending the ancestor
    interfaces/<Key>   JSON array of classes implementing the interface

``Key`` is the fully qualified name without its leading separator, with
namespace separators replaced by ``_``.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)


class IndexPartition(str, Enum):
    """Sub-directory of the index holding one kind of relation."""

    EXTENDS = "extends"
    INTERFACES = "interfaces"


def index_key(name: str) -> str:
    """Filesystem-safe file name for a fully qualified name."""
    return name.strip().lstrip("\\").replace("\\", "_")


class HierarchyIndexStore:
    """Read-append-rewrite storage of the extends/interfaces index."""

    def __init__(self, index_root: str | Path) -> None:
        self._root = Path(index_root)

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, partition: IndexPartition, name: str) -> Path:
        return self._root / partition.value / index_key(name)

    def init(self) -> None:
        """Create both partitions if they are missing."""
        for partition in IndexPartition:
            (self._root / partition.value).mkdir(mode=0o700, parents=True, exist_ok=True)

    def append(self, partition: IndexPartition, ancestor: str, child: str) -> None:
        """Record ``child`` under ``ancestor``; appending twice is a no-op."""
        path = self.path_for(partition, ancestor)
        path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

        children = self._read(path)
        children.append(child)
        children = list(dict.fromkeys(children))

        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(children, fh)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def ls(self, name: str, is_abstract: bool = False) -> list[str]:
        """Descendants recorded for ``name``.

        ``is_abstract`` selects the ``interfaces`` partition, otherwise
        ``extends`` is read. Unknown names give an empty list.
        """
        partition = IndexPartition.INTERFACES if is_abstract else IndexPartition.EXTENDS
        return sorted(set(self._read(self.path_for(partition, name))))

    @staticmethod
    def _read(path: Path) -> list[str]:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return []
        except (OSError, ValueError) as e:
            logger.debug(f"Ignoring unreadable index file {path}: {e}")
            return []
        if not isinstance(data, list):
            return []
        return [item for item in data if isinstance(item, str)]
