"""Reflection oracle interface and declaration records."""

from phpintel.reflection.base import (
    ClassReflection,
    ConstantReflection,
    FatalLoadError,
    FunctionReflection,
    MethodReflection,
    PropertyReflection,
    ReflectionOracle,
    SymbolNotFoundError,
    normalize_name,
)
from phpintel.reflection.models import (
    ClassDecl,
    ClassKind,
    ConstantDecl,
    FileDeclarations,
    FunctionDecl,
    MethodDecl,
    Modifier,
    PropertyDecl,
)

__all__ = [
    "ClassDecl",
    "ClassKind",
    "ClassReflection",
    "ConstantDecl",
    "ConstantReflection",
    "FatalLoadError",
    "FileDeclarations",
    "FunctionDecl",
    "FunctionReflection",
    "MethodDecl",
    "MethodReflection",
    "Modifier",
    "PropertyDecl",
    "PropertyReflection",
    "ReflectionOracle",
    "SymbolNotFoundError",
    "normalize_name",
]
