"""Declaration records produced by a reflection oracle.

These mirror what PHP's reflection API reports for classes, functions and
their members. Names are fully qualified without a leading separator.
"""

from __future__ import annotations

from enum import Enum, IntFlag

from pydantic import BaseModel, Field


class Modifier(IntFlag):
    """Member/class modifier bits (same values as PHP's reflection constants)."""

    PUBLIC = 1
    PROTECTED = 2
    PRIVATE = 4
    STATIC = 16
    FINAL = 32
    ABSTRACT = 64
    READONLY = 128


VISIBILITY_MASK = Modifier.PUBLIC | Modifier.PROTECTED | Modifier.PRIVATE


class ClassKind(str, Enum):
    """Kind of class-like declaration."""

    CLASS = "class"
    INTERFACE = "interface"
    TRAIT = "trait"
    ENUM = "enum"


class MethodDecl(BaseModel):
    """Method declared in a class body."""

    name: str
    modifiers: int = Field(default=int(Modifier.PUBLIC), description="Modifier bits")
    parameters: list[str] = Field(default_factory=list, description="Parameter names without $")
    return_type: str | None = Field(None, description="Native return type, names resolved")
    doc_comment: str = ""
    start_line: int = 0
    end_line: int = 0


class PropertyDecl(BaseModel):
    """Property declared in a class body (or promoted by a constructor)."""

    name: str = Field(..., description="Property name without $")
    modifiers: int = int(Modifier.PUBLIC)
    type: str | None = Field(None, description="Native property type, names resolved")
    doc_comment: str = ""
    start_line: int = 0


class ConstantDecl(BaseModel):
    """Class constant or global constant."""

    name: str
    value: str = Field(default="", description="Rendered value")
    is_array: bool = False
    modifiers: int = int(Modifier.PUBLIC)
    doc_comment: str = ""
    file_name: str | None = None
    start_line: int = 0


class ClassDecl(BaseModel):
    """Class, interface, trait or enum declaration."""

    name: str = Field(..., description="Fully qualified name")
    kind: ClassKind = ClassKind.CLASS
    modifiers: int = 0
    parent: str | None = Field(None, description="Parent class FQCN")
    interfaces: list[str] = Field(
        default_factory=list,
        description="Directly implemented interfaces (extended interfaces for interfaces)",
    )
    traits: list[str] = Field(default_factory=list, description="Used trait FQCNs")
    doc_comment: str = ""
    file_name: str = ""
    start_line: int = 0
    end_line: int = 0
    methods: list[MethodDecl] = Field(default_factory=list)
    properties: list[PropertyDecl] = Field(default_factory=list)
    constants: list[ConstantDecl] = Field(default_factory=list)

    @property
    def short_name(self) -> str:
        return self.name.rsplit("\\", 1)[-1]


class FunctionDecl(BaseModel):
    """Free function, user-defined or builtin."""

    name: str
    parameters: list[str] = Field(default_factory=list)
    return_type: str | None = None
    doc_comment: str = ""
    file_name: str | None = Field(None, description="None for builtin functions")
    start_line: int | None = None

    @property
    def is_internal(self) -> bool:
        return self.file_name is None


class FileDeclarations(BaseModel):
    """Everything a single source file declares."""

    path: str
    classes: list[ClassDecl] = Field(default_factory=list)
    functions: list[FunctionDecl] = Field(default_factory=list)
    constants: list[ConstantDecl] = Field(default_factory=list)
