"""Unit tests for type name resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from phpintel.resolution.types import TypeResolver, split_union

SOURCE = """<?php
namespace Ns;

use Foo\\Bar as B;
use Other\\Thing;

class Current
{
}
"""


@pytest.fixture
def source(tmp_path: Path) -> Path:
    path = tmp_path / "Current.php"
    path.write_text(SOURCE, encoding="utf-8")
    return path


def test_split_union() -> None:
    assert split_union("int | Foo|null") == ["int", "Foo", "null"]


class TestTypeResolver:
    def test_relative_names_get_the_namespace(self, source: Path) -> None:
        assert TypeResolver().resolve(source, split_union("int|int|Foo")) == ["\\Ns\\Foo"]

    def test_aliases_expand(self, source: Path) -> None:
        resolver = TypeResolver()
        assert resolver.resolve(source, ["B"]) == ["\\Foo\\Bar"]
        assert resolver.resolve(source, ["B\\Baz"]) == ["\\Foo\\Bar\\Baz"]

    def test_self_references(self, source: Path) -> None:
        assert TypeResolver().resolve(source, ["self", "static", "$this"]) == ["\\Ns\\Current"]

    def test_rooted_names_pass_through(self, tmp_path: Path) -> None:
        assert TypeResolver().resolve(tmp_path / "missing.php", ["\\Rooted\\Name"]) == [
            "\\Rooted\\Name"
        ]

    def test_primitives_and_nullable(self, source: Path) -> None:
        resolved = TypeResolver().resolve(source, ["?Thing", "string", "null", "void", "mixed"])
        assert resolved == ["\\Other\\Thing"]

    def test_duplicates_keep_first_seen_order(self, source: Path) -> None:
        resolved = TypeResolver().resolve(source, ["Thing", "B", "\\Other\\Thing"])
        assert resolved == ["\\Other\\Thing", "\\Foo\\Bar"]

    def test_global_namespace(self, tmp_path: Path) -> None:
        path = tmp_path / "Plain.php"
        path.write_text("<?php\nclass Plain {}\n", encoding="utf-8")
        assert TypeResolver().resolve(path, ["Other", "self"]) == ["\\Other", "\\Plain"]
