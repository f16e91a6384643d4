"""Integration tests for the class hierarchy index."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import write_project
from phpintel.adapters.php.oracle import TreeSitterOracle
from phpintel.core.config import PhpIntelConfig
from phpintel.index.indexer import HierarchyIndexer
from phpintel.index.store import HierarchyIndexStore
from phpintel.reflection.base import FatalLoadError
from phpintel.services.index_service import IndexService


class TestHierarchyIndexer:
    def test_update_records_parent_and_interfaces(
        self, loaded_oracle: TreeSitterOracle, tmp_path: Path
    ) -> None:
        indexer = HierarchyIndexer(loaded_oracle, HierarchyIndexStore(tmp_path / "idx"))
        indexer.update("App\\Geometry\\Polygon")
        indexer.update("\\App\\Geometry\\Square")

        assert indexer.ls("App\\Geometry\\Polygon") == ["App\\Geometry\\Square"]
        assert indexer.ls("App\\Contracts\\Shape", is_abstract=True) == ["App\\Geometry\\Polygon"]
        assert indexer.ls("App\\Contracts\\Named", is_abstract=True) == ["App\\Geometry\\Polygon"]

    def test_interface_extending_interfaces(
        self, loaded_oracle: TreeSitterOracle, tmp_path: Path
    ) -> None:
        indexer = HierarchyIndexer(loaded_oracle, HierarchyIndexStore(tmp_path))
        indexer.update("App\\Contracts\\Shape")
        assert indexer.ls("App\\Contracts\\Named", is_abstract=True) == ["App\\Contracts\\Shape"]
        assert indexer.ls("App\\Contracts\\Named") == []

    def test_unknown_parent_is_still_recorded(self, tmp_path: Path) -> None:
        source = tmp_path / "src" / "Child.php"
        source.parent.mkdir()
        source.write_text("<?php\nnamespace App;\nclass Child extends \\Vendor\\Base {}\n")

        oracle = TreeSitterOracle()
        indexer = HierarchyIndexer(oracle, HierarchyIndexStore(tmp_path / "idx"))
        indexer.load(source)
        indexer.update("App\\Child")

        assert indexer.ls("Vendor\\Base") == ["App\\Child"]

    def test_unknown_class_is_ignored(self, tmp_path: Path) -> None:
        indexer = HierarchyIndexer(TreeSitterOracle(), HierarchyIndexStore(tmp_path))
        indexer.update("Nothing\\Here")
        assert not (tmp_path / "extends").exists()

    def test_load_failure(self, tmp_path: Path) -> None:
        indexer = HierarchyIndexer(TreeSitterOracle(), HierarchyIndexStore(tmp_path))
        with pytest.raises(FatalLoadError):
            indexer.load(tmp_path / "missing.php")


class TestIndexService:
    def test_full_index(self, hierarchy_project: Path, test_config: PhpIntelConfig) -> None:
        service = IndexService(TreeSitterOracle(), hierarchy_project, config=test_config)
        result = service.index()

        assert result.total == 3
        assert result.success
        assert result.generations == 1
        assert service.ls("I", is_abstract=True) == ["A"]
        assert service.ls("A") == ["B"]
        assert service.ls("B") == []

        index_root = hierarchy_project / ".phpcd"
        assert json.loads((index_root / "interfaces" / "I").read_text()) == ["A"]
        assert json.loads((index_root / "extends" / "A").read_text()) == ["B"]

    def test_reindex_is_idempotent(self, hierarchy_project: Path, test_config: PhpIntelConfig) -> None:
        service = IndexService(TreeSitterOracle(), hierarchy_project, config=test_config)
        service.index()
        service.index()
        assert service.ls("A") == ["B"]
        assert service.ls("I", is_abstract=True) == ["A"]

    def test_index_ignores_its_own_directory(
        self, hierarchy_project: Path, test_config: PhpIntelConfig
    ) -> None:
        write_project(
            hierarchy_project / ".phpcd",
            {"Stale.php": "<?php\nclass Stale extends A {}\n"},
        )
        service = IndexService(TreeSitterOracle(), hierarchy_project, config=test_config)
        assert service.index().total == 3
        assert service.ls("A") == ["B"]

    def test_namespaced_project(self, php_project: Path, test_config: PhpIntelConfig) -> None:
        service = IndexService(TreeSitterOracle(), php_project, config=test_config)
        result = service.index()

        assert result.total == 6
        assert service.ls("App\\Geometry\\Polygon") == ["App\\Geometry\\Square"]
        assert service.ls("App\\Contracts\\Shape", is_abstract=True) == ["App\\Geometry\\Polygon"]
        assert service.ls("App\\Contracts\\Named", is_abstract=True) == [
            "App\\Contracts\\Shape",
            "App\\Geometry\\Polygon",
        ]

    def test_single_update(self, hierarchy_project: Path, test_config: PhpIntelConfig) -> None:
        service = IndexService(TreeSitterOracle(), hierarchy_project, config=test_config)
        service.load(hierarchy_project / "src" / "B.php")
        service.load(hierarchy_project / "src" / "A.php")
        service.update("B")

        assert service.ls("A") == ["B"]
        assert service.ls("I", is_abstract=True) == []

    def test_custom_index_dir(self, hierarchy_project: Path) -> None:
        config = PhpIntelConfig(
            _env_file=None,
            composer_command="phpintel-test-no-such-composer",
            index_dir_name="cache/hierarchy",
        )
        service = IndexService(TreeSitterOracle(), hierarchy_project, config=config)
        service.index()
        assert (hierarchy_project / "cache" / "hierarchy" / "extends" / "A").is_file()
