"""Unit tests for the on-disk hierarchy index."""

from __future__ import annotations

import json
from pathlib import Path

from phpintel.index.store import HierarchyIndexStore, IndexPartition, index_key


def test_index_key() -> None:
    assert index_key("\\App\\Contracts\\Shape") == "App_Contracts_Shape"
    assert index_key("Plain") == "Plain"


class TestHierarchyIndexStore:
    def test_init_creates_partitions(self, tmp_path: Path) -> None:
        store = HierarchyIndexStore(tmp_path / ".phpcd")
        store.init()
        assert (tmp_path / ".phpcd" / "extends").is_dir()
        assert (tmp_path / ".phpcd" / "interfaces").is_dir()

    def test_ls_unknown_name(self, tmp_path: Path) -> None:
        store = HierarchyIndexStore(tmp_path)
        assert store.ls("Nothing") == []
        assert store.ls("Nothing", is_abstract=True) == []

    def test_append_and_ls(self, tmp_path: Path) -> None:
        store = HierarchyIndexStore(tmp_path)
        store.append(IndexPartition.EXTENDS, "App\\Base", "App\\Child")
        store.append(IndexPartition.INTERFACES, "App\\Contract", "App\\Impl")

        assert store.ls("App\\Base") == ["App\\Child"]
        assert store.ls("App\\Contract", is_abstract=True) == ["App\\Impl"]
        assert store.ls("App\\Contract") == []

        on_disk = json.loads((tmp_path / "extends" / "App_Base").read_text())
        assert on_disk == ["App\\Child"]

    def test_append_is_idempotent(self, tmp_path: Path) -> None:
        store = HierarchyIndexStore(tmp_path)
        for _ in range(3):
            store.append(IndexPartition.EXTENDS, "Base", "Child")
        store.append(IndexPartition.EXTENDS, "Base", "Other")

        assert store.ls("Base") == ["Child", "Other"]
        assert json.loads(store.path_for(IndexPartition.EXTENDS, "Base").read_text()) == [
            "Child",
            "Other",
        ]

    def test_leading_separator_shares_the_file(self, tmp_path: Path) -> None:
        store = HierarchyIndexStore(tmp_path)
        store.append(IndexPartition.EXTENDS, "\\App\\Base", "App\\Child")
        assert store.ls("App\\Base") == ["App\\Child"]

    def test_unreadable_files_read_as_empty(self, tmp_path: Path) -> None:
        store = HierarchyIndexStore(tmp_path)
        store.init()
        store.path_for(IndexPartition.EXTENDS, "Broken").write_text("{not json")
        store.path_for(IndexPartition.EXTENDS, "Object").write_text('{"a": 1}')

        assert store.ls("Broken") == []
        assert store.ls("Object") == []

        store.append(IndexPartition.EXTENDS, "Broken", "Fixed")
        assert store.ls("Broken") == ["Fixed"]

    def test_no_temporary_files_left(self, tmp_path: Path) -> None:
        store = HierarchyIndexStore(tmp_path)
        store.append(IndexPartition.INTERFACES, "I", "A")
        assert [p.name for p in (tmp_path / "interfaces").iterdir()] == ["I"]
