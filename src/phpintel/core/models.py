"""Data models shared by the query side and the indexer.

These are the records exchanged with the editor client: file facts, completion
items, locations and class map rows.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


def _default_imports() -> dict[str, str]:
    # msgpack clients reject an empty map, so there is always one entry
    return {"@": ""}


class SourceFileFacts(BaseModel):
    """Namespace, declared class and imports of one PHP file."""

    model_config = ConfigDict(populate_by_name=True)

    namespace: str = Field(default="", description="Active namespace, empty for global")
    declared_class: str = Field(
        default="",
        alias="class",
        description="Class/interface/trait declared by the file, empty if none",
    )
    imports: dict[str, str] = Field(
        default_factory=_default_imports,
        description="Import alias -> fully qualified name",
    )


class CompletionKind(str, Enum):
    """Kind tag of a completion item (editor completion kinds)."""

    FUNCTION = "f"
    PROPERTY = "p"
    CONSTANT = "d"


class StaticMode(str, Enum):
    """Which class members a completion request wants."""

    BOTH = "both"
    ONLY_NONSTATIC = "only_nonstatic"
    ONLY_STATIC = "only_static"

    @classmethod
    def parse(cls, value: str | StaticMode | None) -> StaticMode:
        """Translate a request value, unknown values mean BOTH."""
        if isinstance(value, StaticMode):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.BOTH

    @property
    def is_static(self) -> bool | None:
        """Tri-state static filter: None for both, else the wanted staticness."""
        if self is StaticMode.ONLY_STATIC:
            return True
        if self is StaticMode.ONLY_NONSTATIC:
            return False
        return None


class CompletionItem(BaseModel):
    """One completion candidate as rendered by the client."""

    word: str = Field(..., description="Inserted text")
    abbr: str = Field(..., description="Display line")
    kind: CompletionKind
    info: str = Field(default="", description="Documentation text")
    icase: bool = Field(default=True, description="Whether matching ignores case")


class Location(BaseModel):
    """Declaration site of a symbol.

    ``line`` is a line number, a ``const NAME`` label for class constants, or
    None when the symbol could not be found.
    """

    path: str = ""
    line: int | str | None = None

    def as_tuple(self) -> tuple[str, int | str | None]:
        return (self.path, self.line)


class DocResult(BaseModel):
    """Documentation of a symbol and the file its types are relative to."""

    path: str | None = None
    doc: str | None = None


class ClassMapEntry(BaseModel):
    """One row of the project's autoload class map."""

    model_config = ConfigDict(frozen=True)

    class_name: str = Field(..., description="Fully qualified class name")
    path: str = Field(..., description="Source file declaring the class")
