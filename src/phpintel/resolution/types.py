"""Resolve type references written in a file to fully qualified names."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from phpintel.core.models import SourceFileFacts
from phpintel.resolution.imports import ImportExtractor

# Types with no navigable declaration
PRIMITIVE_TYPES = frozenset(
    {
        "array",
        "bool",
        "boolean",
        "callable",
        "double",
        "false",
        "float",
        "int",
        "integer",
        "iterable",
        "mixed",
        "never",
        "null",
        "object",
        "resource",
        "scalar",
        "string",
        "true",
        "void",
    }
)

SELF_REFERENCES = frozenset({"self", "static", "$this"})


def split_union(type_string: str) -> list[str]:
    """Split a ``A|B|null`` type string into its members."""
    return [part.strip() for part in type_string.split("|")]


class TypeResolver:
    """Turn bare, aliased or relative type names into rooted FQCNs."""

    def __init__(self, extractor: ImportExtractor | None = None) -> None:
        self._extractor = extractor or ImportExtractor()

    def resolve(self, path: str | Path | None, names: Iterable[str]) -> list[str]:
        """Resolve raw type tokens found in ``path``.

        Primitive types are dropped, the result is rooted (leading ``\\``) and
        duplicate-free in first-seen order.
        """
        facts: SourceFileFacts | None = None
        resolved: list[str] = []

        for name in names:
            name = name.strip().lstrip("?")
            if not name or name.lower() in PRIMITIVE_TYPES:
                continue

            if facts is None and not name.startswith("\\"):
                facts = self._extractor.extract(path)

            if name.lower() in SELF_REFERENCES:
                name = self._qualify(facts.namespace, facts.declared_class)
            elif not name.startswith("\\"):
                alias, _, rest = name.partition("\\")
                if alias in facts.imports and alias != "@":
                    name = facts.imports[alias]
                    if rest:
                        name = f"{name}\\{rest}"
                else:
                    name = self._qualify(facts.namespace, name)

            if not name.strip("\\"):
                continue
            if not name.startswith("\\"):
                name = "\\" + name
            resolved.append(name)

        return list(dict.fromkeys(resolved))

    @staticmethod
    def _qualify(namespace: str, name: str) -> str:
        return f"{namespace}\\{name}" if namespace else name
