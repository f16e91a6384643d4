"""Unit tests for the composer class map."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from phpintel.core.models import ClassMapEntry
from phpintel.index.classmap import CLASSMAP_RELATIVE_PATH, ClassMapError, ComposerClassMap, parse_classmap

CLASSMAP_PHP = """<?php

// autoload_classmap.php @generated by Composer

$vendorDir = dirname(__DIR__);
$baseDir = dirname($vendorDir);

return array(
    'App\\\\Geometry\\\\Square' => $baseDir . '/src/Geometry/Square.php',
    'Composer\\\\InstalledVersions' => $vendorDir . '/composer/InstalledVersions.php',
    'Legacy_Thing' => '/opt/legacy/it\\'s.php',
);
"""


class TestParseClassmap:
    def test_entries(self) -> None:
        entries = parse_classmap(CLASSMAP_PHP, vendor_dir=Path("/p/vendor"), base_dir=Path("/p"))
        assert entries == [
            ClassMapEntry(class_name="App\\Geometry\\Square", path="/p/src/Geometry/Square.php"),
            ClassMapEntry(
                class_name="Composer\\InstalledVersions",
                path="/p/vendor/composer/InstalledVersions.php",
            ),
            ClassMapEntry(class_name="Legacy_Thing", path="/opt/legacy/it's.php"),
        ]

    def test_empty(self) -> None:
        assert parse_classmap("<?php\nreturn array(\n);\n", Path("/v"), Path("/")) == []


class TestRegenerate:
    def test_runs_composer(self, tmp_path: Path) -> None:
        classmap = ComposerClassMap(tmp_path, composer_command="composer", timeout=12)
        with patch("phpintel.index.classmap.subprocess.run") as run:
            run.return_value = MagicMock(returncode=0, stderr="")
            assert classmap.regenerate() is True

        args, kwargs = run.call_args
        assert args[0] == ["composer", "dump-autoload", "-o", "-d", str(tmp_path)]
        assert kwargs["timeout"] == 12

    def test_missing_composer(self, tmp_path: Path) -> None:
        classmap = ComposerClassMap(tmp_path, composer_command="phpintel-test-no-such-composer")
        assert classmap.regenerate() is False

    def test_failure_exit_code(self, tmp_path: Path) -> None:
        with patch("phpintel.index.classmap.subprocess.run") as run:
            run.return_value = MagicMock(returncode=1, stderr="broken composer.json")
            assert ComposerClassMap(tmp_path).regenerate() is False

    def test_timeout(self, tmp_path: Path) -> None:
        with patch(
            "phpintel.index.classmap.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="composer", timeout=1),
        ):
            assert ComposerClassMap(tmp_path, timeout=1).regenerate() is False


class TestLoad:
    def test_reads_generated_file(self, tmp_path: Path) -> None:
        path = tmp_path / CLASSMAP_RELATIVE_PATH
        path.parent.mkdir(parents=True)
        path.write_text(CLASSMAP_PHP, encoding="utf-8")

        mapping = ComposerClassMap(tmp_path).as_mapping()
        assert mapping["App\\Geometry\\Square"] == f"{tmp_path}/src/Geometry/Square.php"
        assert mapping["Composer\\InstalledVersions"] == (
            f"{tmp_path / 'vendor'}/composer/InstalledVersions.php"
        )

    def test_falls_back_to_scanning(self, php_project: Path) -> None:
        entries = ComposerClassMap(php_project).load()
        names = {entry.class_name for entry in entries}
        assert names == {
            "App\\Contracts\\Named",
            "App\\Contracts\\Shape",
            "App\\Geometry\\Polygon",
            "App\\Geometry\\Square",
            "App\\Support\\HasTags",
            "App\\Support\\Point",
        }
        square = next(e for e in entries if e.class_name == "App\\Geometry\\Square")
        assert Path(square.path) == php_project / "src" / "Geometry" / "Square.php"

    def test_scan_honours_exclude(self, php_project: Path) -> None:
        classmap = ComposerClassMap(php_project, exclude=[php_project / "src" / "Contracts"])
        names = {entry.class_name for entry in classmap.scan()}
        assert "App\\Contracts\\Shape" not in names
        assert "App\\Geometry\\Square" in names

    def test_unreadable_file(self, tmp_path: Path) -> None:
        path = tmp_path / CLASSMAP_RELATIVE_PATH
        path.parent.mkdir(parents=True)
        path.write_bytes(b"<?php return array('\xff\xfe' => 'x');")

        with pytest.raises(ClassMapError):
            ComposerClassMap(tmp_path).load()
