"""Reflection oracle interface.

The oracle answers structural questions about classes and functions: parent,
interfaces, members, modifiers, doc comments and declaration sites. Concrete
oracles only have to produce declaration records; inheritance (inherited
members, transitive interfaces, trait merging) is computed here so every
oracle behaves the same way.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from pathlib import Path

from phpintel.reflection.models import (
    ClassDecl,
    ClassKind,
    ConstantDecl,
    FunctionDecl,
    MethodDecl,
    Modifier,
    PropertyDecl,
)


class SymbolNotFoundError(LookupError):
    """A class, function or member is unknown to the oracle."""


class FatalLoadError(RuntimeError):
    """A source file could not be loaded into the reflection environment."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot load {path}: {reason}")
        self.path = path
        self.reason = reason


def normalize_name(name: str) -> str:
    """Strip the leading namespace separator of a class/function name."""
    return name.strip().lstrip("\\")


class ReflectionOracle(ABC):
    """Abstract introspection facility over a PHP code base."""

    @abstractmethod
    def load_file(self, path: str | Path) -> None:
        """Load a source file's declarations.

        Raises:
            FatalLoadError: If the file cannot be loaded.
        """
        ...

    @abstractmethod
    def find_class_decl(self, name: str) -> ClassDecl | None:
        """Return the declaration of a class-like symbol, or None."""
        ...

    @abstractmethod
    def find_function_decl(self, name: str) -> FunctionDecl | None:
        """Return the declaration of a function (user or builtin), or None."""
        ...

    @abstractmethod
    def defined_functions(self) -> dict[str, list[str]]:
        """Names of all known functions as ``{"internal": [...], "user": [...]}``."""
        ...

    @abstractmethod
    def defined_constants(self) -> dict[str, str]:
        """All known global constants with rendered values."""
        ...

    def get_class(self, name: str) -> ClassReflection:
        """Reflect a class, interface, trait or enum.

        Raises:
            SymbolNotFoundError: If the class is unknown.
        """
        decl = self.find_class_decl(normalize_name(name)) if name else None
        if decl is None:
            raise SymbolNotFoundError(f'Class "{name}" does not exist')
        return ClassReflection(self, decl)

    def get_function(self, name: str) -> FunctionReflection:
        """Reflect a free function.

        Raises:
            SymbolNotFoundError: If the function is unknown.
        """
        decl = self.find_function_decl(normalize_name(name)) if name else None
        if decl is None:
            raise SymbolNotFoundError(f"Function {name}() does not exist")
        return FunctionReflection(decl)


class FunctionReflection:
    """Reflection of a free function."""

    def __init__(self, decl: FunctionDecl) -> None:
        self.decl = decl

    @property
    def name(self) -> str:
        return self.decl.name

    @property
    def parameters(self) -> list[str]:
        return self.decl.parameters

    @property
    def doc_comment(self) -> str:
        return self.decl.doc_comment

    @property
    def return_type(self) -> str | None:
        return self.decl.return_type

    @property
    def file_name(self) -> str | None:
        return self.decl.file_name

    @property
    def start_line(self) -> int | None:
        return self.decl.start_line

    @property
    def is_internal(self) -> bool:
        return self.decl.is_internal


class _MemberReflection:
    def __init__(
        self,
        decl: MethodDecl | PropertyDecl | ConstantDecl,
        declaring_class: ClassReflection,
        file_name: str | None = None,
    ) -> None:
        self.decl = decl
        self._declaring_class = declaring_class
        self._file_name = file_name

    @property
    def name(self) -> str:
        return self.decl.name

    @property
    def modifiers(self) -> int:
        return self.decl.modifiers

    @property
    def is_static(self) -> bool:
        return bool(self.decl.modifiers & Modifier.STATIC)

    @property
    def is_public(self) -> bool:
        return bool(self.decl.modifiers & Modifier.PUBLIC)

    @property
    def is_private(self) -> bool:
        return bool(self.decl.modifiers & Modifier.PRIVATE)

    @property
    def doc_comment(self) -> str:
        return self.decl.doc_comment

    @property
    def start_line(self) -> int:
        return self.decl.start_line

    @property
    def file_name(self) -> str:
        """File holding the member (a trait's file for trait members)."""
        return self._file_name or self._declaring_class.file_name

    def get_declaring_class(self) -> ClassReflection:
        return self._declaring_class


class MethodReflection(_MemberReflection):
    decl: MethodDecl

    @property
    def parameters(self) -> list[str]:
        return self.decl.parameters

    @property
    def return_type(self) -> str | None:
        return self.decl.return_type


class PropertyReflection(_MemberReflection):
    decl: PropertyDecl

    @property
    def type(self) -> str | None:
        return self.decl.type


class ConstantReflection(_MemberReflection):
    decl: ConstantDecl

    @property
    def value(self) -> str:
        return self.decl.value

    @property
    def is_array(self) -> bool:
        return self.decl.is_array


class ClassReflection:
    """Reflection of a class-like declaration, inheritance included."""

    def __init__(self, oracle: ReflectionOracle, decl: ClassDecl) -> None:
        self._oracle = oracle
        self.decl = decl

    def __repr__(self) -> str:
        return f"ClassReflection({self.name!r})"

    @property
    def name(self) -> str:
        return self.decl.name

    @property
    def short_name(self) -> str:
        return self.decl.short_name

    @property
    def file_name(self) -> str:
        return self.decl.file_name

    @property
    def start_line(self) -> int:
        return self.decl.start_line

    @property
    def doc_comment(self) -> str:
        return self.decl.doc_comment

    @property
    def modifiers(self) -> int:
        return self.decl.modifiers

    @property
    def is_interface(self) -> bool:
        return self.decl.kind is ClassKind.INTERFACE

    @property
    def is_abstract(self) -> bool:
        return self.is_interface or bool(self.decl.modifiers & Modifier.ABSTRACT)

    @property
    def parent_name(self) -> str | None:
        return self.decl.parent

    def get_parent_class(self) -> ClassReflection | None:
        """Reflect the parent class, None if there is none or it is unknown."""
        if not self.decl.parent:
            return None
        try:
            return self._oracle.get_class(self.decl.parent)
        except SymbolNotFoundError:
            return None

    def iter_ancestors(self) -> Iterator[ClassReflection]:
        """Parent, grand-parent, ... stopping at unknown or repeated classes."""
        seen = {self.name.lower()}
        current = self.get_parent_class()
        while current is not None and current.name.lower() not in seen:
            seen.add(current.name.lower())
            yield current
            current = current.get_parent_class()

    def _lineage(self) -> list[ClassReflection]:
        return [self, *self.iter_ancestors()]

    def get_interface_names(self) -> list[str]:
        """All implemented interfaces, transitively, including unknown ones."""
        names: dict[str, str] = {}

        def visit(interface_name: str) -> None:
            key = interface_name.lower()
            if key in names:
                return
            names[key] = interface_name
            try:
                interface = self._oracle.get_class(interface_name)
            except SymbolNotFoundError:
                return
            for parent_interface in interface.decl.interfaces:
                visit(parent_interface)

        for cls in self._lineage():
            for interface_name in cls.decl.interfaces:
                visit(interface_name)

        return list(names.values())

    def get_interfaces(self) -> dict[str, ClassReflection]:
        """Implemented interfaces the oracle knows about, keyed by name."""
        interfaces: dict[str, ClassReflection] = {}
        for name in self.get_interface_names():
            try:
                interface = self._oracle.get_class(name)
            except SymbolNotFoundError:
                continue
            interfaces[interface.name] = interface
        return interfaces

    def _traits(self) -> list[ClassReflection]:
        traits: list[ClassReflection] = []
        seen: set[str] = set()
        pending = list(self.decl.traits)
        while pending:
            name = pending.pop(0)
            if name.lower() in seen:
                continue
            seen.add(name.lower())
            try:
                trait = self._oracle.get_class(name)
            except SymbolNotFoundError:
                continue
            traits.append(trait)
            pending.extend(trait.decl.traits)
        return traits

    # Methods

    def get_methods(self) -> list[MethodReflection]:
        """Own, trait, inherited and interface methods; nearest declaration wins."""
        methods: dict[str, MethodReflection] = {}

        for depth, cls in enumerate(self._lineage()):
            for method in cls.decl.methods:
                if depth and method.modifiers & Modifier.PRIVATE:
                    continue
                methods.setdefault(method.name.lower(), MethodReflection(method, cls))
            for trait in cls._traits():
                for method in trait.decl.methods:
                    methods.setdefault(
                        method.name.lower(),
                        MethodReflection(method, cls, file_name=trait.file_name),
                    )

        for interface in self.get_interfaces().values():
            for method in interface.decl.methods:
                methods.setdefault(method.name.lower(), MethodReflection(method, interface))

        return list(methods.values())

    def has_method(self, name: str) -> bool:
        return any(m.name.lower() == name.lower() for m in self.get_methods())

    def get_method(self, name: str) -> MethodReflection:
        for method in self.get_methods():
            if method.name.lower() == name.lower():
                return method
        raise SymbolNotFoundError(f"Method {self.name}::{name}() does not exist")

    def get_available_methods(
        self, is_static: bool | None = None, public_only: bool = True
    ) -> list[MethodReflection]:
        """Methods filtered by staticness (None for both) and visibility."""
        return [
            m
            for m in self.get_methods()
            if (is_static is None or m.is_static == is_static)
            and (not public_only or m.is_public)
        ]

    # Constants

    def get_constants(self) -> dict[str, ConstantReflection]:
        constants: dict[str, ConstantReflection] = {}
        for cls in self._lineage():
            for constant in cls.decl.constants:
                constants.setdefault(constant.name, ConstantReflection(constant, cls))
        for interface in self.get_interfaces().values():
            for constant in interface.decl.constants:
                constants.setdefault(constant.name, ConstantReflection(constant, interface))
        return constants

    def has_constant(self, name: str) -> bool:
        return name in self.get_constants()

    # Properties

    def get_properties(self) -> list[PropertyReflection]:
        properties: dict[str, PropertyReflection] = {}
        for depth, cls in enumerate(self._lineage()):
            for prop in cls.decl.properties:
                if depth and prop.modifiers & Modifier.PRIVATE:
                    continue
                properties.setdefault(prop.name, PropertyReflection(prop, cls))
            for trait in cls._traits():
                for prop in trait.decl.properties:
                    properties.setdefault(
                        prop.name, PropertyReflection(prop, cls, file_name=trait.file_name)
                    )
        return list(properties.values())

    def has_property(self, name: str) -> bool:
        return any(p.name == name for p in self.get_properties())

    def get_property(self, name: str) -> PropertyReflection:
        for prop in self.get_properties():
            if prop.name == name:
                return prop
        raise SymbolNotFoundError(f"Property {self.name}::${name} does not exist")

    def get_available_properties(
        self, is_static: bool | None = None, public_only: bool = True
    ) -> list[PropertyReflection]:
        return [
            p
            for p in self.get_properties()
            if (is_static is None or p.is_static == is_static)
            and (not public_only or p.is_public)
        ]
