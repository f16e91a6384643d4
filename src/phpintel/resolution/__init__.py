"""Source-level name resolution: imports, type references and PSR-4 namespaces."""

from phpintel.resolution.imports import ImportExtractor, UseStatement, parse_use_statement
from phpintel.resolution.psr4 import Psr4Resolver
from phpintel.resolution.types import PRIMITIVE_TYPES, TypeResolver, split_union

__all__ = [
    "ImportExtractor",
    "PRIMITIVE_TYPES",
    "Psr4Resolver",
    "TypeResolver",
    "UseStatement",
    "parse_use_statement",
    "split_union",
]
