"""End-to-end tests for the phpintel CLI.

Each test runs commands against a real PHP project on disk, the way an
editor plugin would.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from phpintel.cli.main import app
from phpintel.core.config import get_config

runner = CliRunner()

SQUARE = "App\\Geometry\\Square"
POLYGON = "App\\Geometry\\Polygon"

pytestmark = pytest.mark.usefixtures("isolated_env")


def invoke_json(*args: str):
    result = runner.invoke(app, [*args, "--json"])
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


class TestCliHelp:
    def test_main_help(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("info", "location", "doc", "nsuse", "functype", "proptype", "psr4ns", "update", "ls", "index"):
            assert command in result.output

    def test_no_args_shows_help(self) -> None:
        result = runner.invoke(app, [])
        assert "Usage" in result.output


class TestQueries:
    def test_info(self, php_project: Path) -> None:
        items = invoke_json("info", "c", "--class", SQUARE, "--root", str(php_project))
        assert [item["word"] for item in items] == ["copy", "create", "corner", "$count"]
        assert items[0]["kind"] == "f"

    def test_info_static_mode_and_private(self, php_project: Path) -> None:
        items = invoke_json(
            "info", "", "-c", POLYGON, "-s", "only_nonstatic", "--all", "-r", str(php_project)
        )
        words = [item["word"] for item in items]
        assert "guard" in words
        assert "secret" in words
        assert "create" not in words

    def test_info_table(self, php_project: Path) -> None:
        result = runner.invoke(app, ["info", "cop", "--class", SQUARE, "--root", str(php_project)])
        assert result.exit_code == 0
        assert "copy" in result.output

    def test_info_invalid_static_mode(self, php_project: Path) -> None:
        result = runner.invoke(
            app, ["info", "", "--class", SQUARE, "--static-mode", "sometimes", "--root", str(php_project)]
        )
        assert result.exit_code == 1

    def test_info_unknown_class(self, php_project: Path) -> None:
        result = runner.invoke(app, ["info", "", "--class", "App\\Nope", "--root", str(php_project)])
        assert result.exit_code == 0
        assert "No candidates found" in result.output

    def test_location(self, php_project: Path) -> None:
        root = php_project.resolve()
        assert invoke_json("location", "SIDES", "--class", SQUARE, "--root", str(php_project)) == [
            str(root / "src" / "Geometry" / "Polygon.php"),
            "const SIDES",
        ]

    def test_location_not_found(self, php_project: Path) -> None:
        result = runner.invoke(app, ["location", "x", "--class", "App\\Nope", "--root", str(php_project)])
        assert result.exit_code == 1
        assert invoke_json("location", "x", "--class", "App\\Nope", "--root", str(php_project)) == [
            "",
            None,
        ]

    def test_doc(self, php_project: Path) -> None:
        path, doc = invoke_json("doc", "area", "--class", SQUARE, "--root", str(php_project))
        assert path.endswith("Shape.php")
        assert "Area of the shape." in doc

        path, doc = invoke_json("doc", "anchor", "-c", POLYGON, "--property", "-r", str(php_project))
        assert doc == "@var P"

    def test_doc_not_found(self, php_project: Path) -> None:
        result = runner.invoke(app, ["doc", "nothing", "--class", SQUARE, "--root", str(php_project)])
        assert result.exit_code == 1

    def test_nsuse(self, php_project: Path) -> None:
        facts = invoke_json(
            "nsuse", str(php_project / "src" / "Geometry" / "Polygon.php"), "--root", str(php_project)
        )
        assert facts == {
            "namespace": "App\\Geometry",
            "class": "Polygon",
            "imports": {"@": "", "Shape": "App\\Contracts\\Shape", "P": "App\\Support\\Point"},
        }

    def test_nsuse_table_hides_placeholder(self, php_project: Path) -> None:
        result = runner.invoke(
            app, ["nsuse", str(php_project / "src" / "Geometry" / "Polygon.php"), "-r", str(php_project)]
        )
        assert result.exit_code == 0
        assert "Shape" in result.output
        assert "@" not in result.output

    def test_types(self, php_project: Path) -> None:
        assert invoke_json("functype", "first", "-c", SQUARE, "-r", str(php_project)) == [
            "\\App\\Support\\Point"
        ]
        assert invoke_json("proptype", "corner", "-c", SQUARE, "-r", str(php_project)) == [
            "\\App\\Support\\Point"
        ]

    def test_psr4ns(self, php_project: Path) -> None:
        assert invoke_json(
            "psr4ns", str(php_project / "src" / "Geometry" / "Square.php"), "-r", str(php_project)
        ) == ["App\\Geometry"]


class TestIndexCommands:
    def test_update_then_ls(self, hierarchy_project: Path) -> None:
        root = str(hierarchy_project)
        result = runner.invoke(
            app, ["update", "B", "--file", str(hierarchy_project / "src" / "B.php"), "--root", root]
        )
        assert result.exit_code == 0, result.output
        assert "Indexed B" in result.output

        assert invoke_json("ls", "A", "--root", root) == ["B"]
        assert invoke_json("ls", "I", "--abstract", "--root", root) == []

    def test_update_missing_file(self, hierarchy_project: Path) -> None:
        result = runner.invoke(
            app,
            ["update", "B", "--file", str(hierarchy_project / "nope.php"), "--root", str(hierarchy_project)],
        )
        assert result.exit_code == 1

    def test_index(self, hierarchy_project: Path) -> None:
        root = str(hierarchy_project)
        summary = invoke_json("index", "--no-progress", "--root", root)
        assert summary == {"total": 3, "generations": 1, "abandoned": 0, "failed": []}

        assert invoke_json("ls", "I", "--abstract", "--root", root) == ["A"]
        assert invoke_json("ls", "A", "--root", root) == ["B"]

    def test_index_summary(self, hierarchy_project: Path) -> None:
        result = runner.invoke(app, ["index", "--no-progress", "--root", str(hierarchy_project)])
        assert result.exit_code == 0, result.output
        assert "Index completed" in result.output
        assert "Classes: 3" in result.output

    def test_ls_unknown(self, hierarchy_project: Path) -> None:
        result = runner.invoke(app, ["ls", "Nobody", "--root", str(hierarchy_project)])
        assert result.exit_code == 0
        assert "No subclasses found" in result.output


class TestConfiguration:
    def test_invalid_match_type(self, php_project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PHPINTEL_MATCH_TYPE", "match_fuzzy")
        get_config.cache_clear()

        result = runner.invoke(app, ["ls", "A", "--root", str(php_project)])
        assert result.exit_code == 1

    def test_subsequence_match_type(self, php_project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PHPINTEL_MATCH_TYPE", "match_subsequence")
        get_config.cache_clear()

        items = invoke_json("info", "cy", "--class", POLYGON, "--root", str(php_project))
        assert [item["word"] for item in items] == ["copy"]
