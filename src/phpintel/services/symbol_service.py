"""Symbol metadata service.

Answers the editor's completion, go-to-definition, documentation and type
queries. Every query tolerates unknown symbols: a ``SymbolNotFoundError``
from the oracle turns into an empty result, never into an error response.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from phpintel.core.matcher import Matcher
from phpintel.core.models import (
    CompletionItem,
    CompletionKind,
    DocResult,
    Location,
    SourceFileFacts,
    StaticMode,
)
from phpintel.reflection.base import (
    ClassReflection,
    MethodReflection,
    PropertyReflection,
    ReflectionOracle,
    SymbolNotFoundError,
)
from phpintel.reflection.models import Modifier
from phpintel.resolution.imports import ImportExtractor
from phpintel.resolution.psr4 import Psr4Resolver
from phpintel.resolution.types import PRIMITIVE_TYPES, TypeResolver, split_union

logger = logging.getLogger(__name__)

# Display order of modifier symbols in completion abbreviations
MODIFIER_SYMBOLS: tuple[tuple[Modifier, str], ...] = (
    (Modifier.FINAL, "!"),
    (Modifier.PRIVATE, "-"),
    (Modifier.PROTECTED, "#"),
    (Modifier.PUBLIC, "+"),
    (Modifier.STATIC, "@"),
)

ARRAY_PLACEHOLDER = "[...]"

INHERIT_DOC_PATTERN = re.compile(r"@inheritDoc", re.IGNORECASE)
STATIC_DOC_TYPE_PATTERN = re.compile(r"@(return|var)\s+static", re.IGNORECASE)
DOC_TYPE_PATTERN = re.compile(r"@(?:return|var)\s+(\S+)", re.MULTILINE)
PSEUDO_PROPERTIES_PATTERN = re.compile(
    r"@property(?:|-read|-write)\s+(?P<type>\S+)\s+\$?(?P<name>[a-zA-Z0-9_$]+)",
    re.MULTILINE | re.IGNORECASE,
)
_DOC_MARKERS_PATTERN = re.compile(r"/?\*(\*|/)?")


def clear_doc(doc: str | None) -> str:
    """Strip comment delimiters and leading asterisks from a doc block."""
    if not doc:
        return ""
    doc = re.sub(r"[ \t]*\* ?", "", doc, flags=re.MULTILINE)
    return re.sub(r"\s*/|/\s*", "", doc)


def render_modifiers(modifiers: int) -> str:
    return "".join(symbol for flag, symbol in MODIFIER_SYMBOLS if modifiers & flag)


def _strip_doc_markers(doc: str | None) -> str:
    return _DOC_MARKERS_PATTERN.sub("", doc or "")


def _property_pattern(name: str) -> re.Pattern[str]:
    # Accepts typed, static and readonly declarations as well as promoted
    # constructor parameters: "public static ?Foo $bar"
    return re.compile(rf"\b(?:private|protected|public|var)\s[^;=(]*?\${re.escape(name)}\b")


class SymbolService:
    """Completion and navigation queries against a reflection oracle."""

    def __init__(
        self,
        oracle: ReflectionOracle,
        root: str | Path = ".",
        matcher: Matcher | None = None,
        extractor: ImportExtractor | None = None,
    ) -> None:
        self._oracle = oracle
        self._matcher = matcher or Matcher()
        self._extractor = extractor or ImportExtractor()
        self._type_resolver = TypeResolver(self._extractor)
        self._psr4 = Psr4Resolver(root)

    @property
    def matcher(self) -> Matcher:
        return self._matcher

    # Source facts

    def nsuse(self, path: str | Path | None) -> SourceFileFacts:
        """Namespace, declared class and imports of a file."""
        return self._extractor.extract(path)

    def psr4ns(self, path: str | Path) -> list[str]:
        """Candidate namespaces of a file according to composer.json PSR-4 rules."""
        return self._psr4.namespaces_for(path)

    # Navigation

    def location(self, class_name: str | None, member_name: str | None = None) -> Location:
        """Declaration site of a class member or free function.

        Returns ``Location("", None)`` when the symbol is unknown.
        """
        try:
            if not class_name:
                function = self._oracle.get_function(member_name or "")
                return Location(path=function.file_name or "", line=function.start_line)

            cls = self._oracle.get_class(class_name)
            if member_name and cls.has_method(member_name):
                method = cls.get_method(member_name)
                return Location(path=method.file_name, line=method.start_line)
            if member_name and cls.has_constant(member_name):
                return Location(
                    path=self._constant_path(cls, member_name),
                    line=f"const {member_name}",
                )
            if member_name and cls.has_property(member_name):
                path, line = self._property_line(cls, member_name)
                return Location(path=path, line=line)
            return Location(path=cls.file_name, line=cls.start_line)
        except SymbolNotFoundError as e:
            logger.debug(str(e))
            return Location()

    def _constant_path(self, cls: ClassReflection, name: str) -> str:
        origin = path = cls.file_name
        for ancestor in cls.iter_ancestors():
            if not ancestor.has_constant(name):
                break
            path = ancestor.file_name

        if path == origin:
            for interface in cls.get_interfaces().values():
                if interface.has_constant(name):
                    return interface.file_name
        return path

    def _property_line(self, cls: ClassReflection, name: str) -> tuple[str, int]:
        pattern = _property_pattern(name)
        for current in [cls, *cls.iter_ancestors()]:
            line = self._find_declaration_line(current, pattern)
            if line is not None:
                return current.file_name, line
        return cls.file_name, cls.start_line

    @staticmethod
    def _find_declaration_line(cls: ClassReflection, pattern: re.Pattern[str]) -> int | None:
        try:
            lines = Path(cls.file_name).read_text(encoding="utf-8", errors="replace").splitlines()
        except OSError as e:
            logger.debug(f"Cannot read {cls.file_name}: {e}")
            return None

        end = cls.decl.end_line or len(lines)
        for index in range(max(cls.start_line - 1, 0), min(end, len(lines))):
            if pattern.search(lines[index]):
                return index + 1
        return None

    # Documentation

    def doc(self, class_name: str | None, name: str, is_method: bool = True) -> DocResult:
        """Cleaned doc comment of a member or function and the file its types refer to."""
        try:
            if not class_name:
                function = self._oracle.get_function(name)
                return DocResult(path=function.file_name, doc=clear_doc(function.doc_comment))
            return self._class_member_doc(class_name, name, is_method)
        except SymbolNotFoundError as e:
            logger.debug(str(e))
            return DocResult()

    def _class_member_doc(self, class_name: str, name: str, is_method: bool) -> DocResult:
        cls = self._oracle.get_class(class_name)

        member: MethodReflection | PropertyReflection
        if is_method:
            member = cls.get_method(name)
        elif cls.has_property(name):
            member = cls.get_property(name)
        else:
            pseudo = re.search(
                rf"@property(?:|-read|-write)\s+(?P<type>\S+)\s+\$?{re.escape(name)}(?![\w$])",
                cls.doc_comment,
                re.MULTILINE | re.IGNORECASE,
            )
            if pseudo is None:
                raise SymbolNotFoundError(f"Property {cls.name}::${name} does not exist")
            return DocResult(path=cls.file_name, doc=f"@var {pseudo.group('type')}")

        doc = member.doc_comment
        if isinstance(member, MethodReflection) and INHERIT_DOC_PATTERN.search(doc):
            member = self._inherited_doc_source(cls, name, set())
            doc = member.doc_comment

        if STATIC_DOC_TYPE_PATTERN.search(doc):
            path = cls.file_name
        else:
            path = member.file_name
        return DocResult(path=path, doc=clear_doc(doc))

    def _inherited_doc_source(
        self, cls: ClassReflection, name: str, visited: set[str]
    ) -> MethodReflection:
        """Method whose doc comment an inherit marker on ``cls::name`` refers to."""
        visited.add(cls.name.lower())
        for interface in cls.get_interfaces().values():
            if interface.has_method(name):
                return interface.get_method(name)

        method = cls.get_method(name)
        parent = cls.get_parent_class()
        if parent is None or parent.name.lower() in visited or not parent.has_method(name):
            return method

        method = parent.get_method(name)
        if INHERIT_DOC_PATTERN.search(method.doc_comment):
            method = self._inherited_doc_source(parent, name, visited)
        return method

    # Types

    def functype(self, class_name: str | None, name: str) -> list[str]:
        """Return types of a method or function as rooted FQCNs."""
        types = self._native_return_types(class_name, name)
        if types:
            return types
        result = self.doc(class_name, name)
        return self._types_from_doc(result.path, result.doc)

    def proptype(self, class_name: str | None, name: str) -> list[str]:
        """Types of a property as rooted FQCNs."""
        types = self._native_property_types(class_name, name)
        if types:
            return types
        result = self.doc(class_name, name, is_method=False)
        return self._types_from_doc(result.path, result.doc)

    def _native_return_types(self, class_name: str | None, name: str) -> list[str]:
        try:
            if class_name:
                cls = self._oracle.get_class(class_name)
                return self._normalize_native(cls.get_method(name).return_type, cls)
            return self._normalize_native(self._oracle.get_function(name).return_type, None)
        except SymbolNotFoundError as e:
            logger.debug(str(e))
            return []

    def _native_property_types(self, class_name: str | None, name: str) -> list[str]:
        if not class_name:
            return []
        try:
            cls = self._oracle.get_class(class_name)
            if not cls.has_property(name):
                return []
            return self._normalize_native(cls.get_property(name).type, cls)
        except SymbolNotFoundError as e:
            logger.debug(str(e))
            return []

    @staticmethod
    def _normalize_native(type_string: str | None, cls: ClassReflection | None) -> list[str]:
        if not type_string:
            return []

        types: list[str] = []
        for member in split_union(type_string):
            for part in member.lstrip("?").split("&"):
                part = part.strip()
                lowered = part.lower()
                if not part or lowered in PRIMITIVE_TYPES:
                    continue
                if lowered in ("self", "static"):
                    if cls is None:
                        continue
                    part = cls.name
                elif lowered == "parent":
                    if cls is None or not cls.parent_name:
                        continue
                    part = cls.parent_name
                types.append("\\" + part.lstrip("\\"))
        return list(dict.fromkeys(types))

    def _types_from_doc(self, path: str | None, doc: str | None) -> list[str]:
        match = DOC_TYPE_PATTERN.search(doc or "")
        if match is None:
            return []
        return self._type_resolver.resolve(path, split_union(match.group(1)))

    # Completion

    def info(
        self,
        class_name: str | None,
        pattern: str | None,
        static_mode: StaticMode | str = StaticMode.BOTH,
        public_only: bool = True,
    ) -> list[CompletionItem]:
        """Completion candidates.

        With a class: its constants, methods, properties and documented
        pseudo-properties. Without a class but with a pattern: every known
        function and global constant.
        """
        if class_name:
            return self._class_info(class_name, pattern, StaticMode.parse(static_mode), public_only)
        if pattern:
            return self._function_or_constant_info(pattern)
        return []

    def _class_info(
        self, class_name: str, pattern: str | None, mode: StaticMode, public_only: bool
    ) -> list[CompletionItem]:
        try:
            cls = self._oracle.get_class(class_name)
        except SymbolNotFoundError as e:
            logger.debug(str(e))
            return []

        is_static = mode.is_static
        items: list[CompletionItem] = []

        if is_static is not False:
            for name, constant in cls.get_constants().items():
                if not self._matcher.matches(pattern, name):
                    continue
                value = ARRAY_PLACEHOLDER if constant.is_array else constant.value
                items.append(
                    CompletionItem(
                        word=name,
                        abbr=f" +@ {name} {value}",
                        kind=CompletionKind.CONSTANT,
                    )
                )

        for method in cls.get_available_methods(is_static, public_only):
            if not self._matcher.matches(pattern, method.name):
                continue
            items.append(
                CompletionItem(
                    word=method.name,
                    abbr="%3s %s (%s)"
                    % (render_modifiers(method.modifiers), method.name, ", ".join(method.parameters)),
                    info=clear_doc(method.doc_comment),
                    kind=CompletionKind.FUNCTION,
                )
            )

        for prop in cls.get_available_properties(is_static, public_only):
            if not self._matcher.matches(pattern, prop.name):
                continue
            word = f"${prop.name}" if prop.is_static else prop.name
            items.append(
                CompletionItem(
                    word=word,
                    abbr="%3s %s" % (render_modifiers(prop.modifiers), word),
                    info=_strip_doc_markers(prop.doc_comment),
                    kind=CompletionKind.PROPERTY,
                )
            )

        if is_static is not True:
            items.extend(self._pseudo_properties(cls, pattern))
        return items

    def _pseudo_properties(self, cls: ClassReflection, pattern: str | None) -> list[CompletionItem]:
        items: list[CompletionItem] = []
        for match in PSEUDO_PROPERTIES_PATTERN.finditer(cls.doc_comment):
            name = match.group("name")
            if not self._matcher.matches(pattern, name):
                continue
            items.append(
                CompletionItem(
                    word=name,
                    abbr="%3s %s" % ("+", name),
                    info=match.group("type"),
                    kind=CompletionKind.PROPERTY,
                )
            )
        return items

    def _function_or_constant_info(self, pattern: str) -> list[CompletionItem]:
        items: list[CompletionItem] = []

        functions = self._oracle.defined_functions()
        for name in [*functions.get("internal", []), *functions.get("user", [])]:
            if not self._matcher.matches(pattern, name):
                continue
            try:
                function = self._oracle.get_function(name)
            except SymbolNotFoundError:
                continue
            items.append(
                CompletionItem(
                    word=name,
                    abbr=f"{name}({', '.join(function.parameters)})",
                    info=_strip_doc_markers(function.doc_comment),
                    kind=CompletionKind.FUNCTION,
                )
            )

        # Constants are case-sensitive and always prefix matched
        for name, value in self._oracle.defined_constants().items():
            if not name.startswith(pattern):
                continue
            items.append(
                CompletionItem(
                    word=name,
                    abbr=f"@ {name} = {value}",
                    kind=CompletionKind.CONSTANT,
                    icase=False,
                )
            )
        return items
